#!/usr/bin/env python3
"""
sim/tiles.py
============
Square tile grid covering an intersection interior, and the path helper
that turns a list of waypoints into a reservation tile set.

Tiles are addressed by the linear index ``y * width + x``; ``(0, 0)`` is
the south-west tile and world ``y`` grows northwards.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional, Set, Tuple

from bus.message import encode_reservation
from sim.vector import Vector2D


class TiledMap:
    """Deterministic mapping between world positions and tile indices."""

    def __init__(
        self,
        width: int,
        height: int,
        offset: Optional[Vector2D] = None,
        scale: float = 3.0,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"tile map must be at least 1x1, got {width}x{height}")
        if scale <= 0.0:
            raise ValueError(f"tile scale must be > 0, got {scale}")
        self.width = int(width)
        self.height = int(height)
        self.offset = offset.copy() if offset is not None else Vector2D()
        self.scale = float(scale)

    @property
    def num_tiles(self) -> int:
        return self.width * self.height

    def tile_xy(self, pos: Vector2D) -> Tuple[int, int]:
        """Unclamped tile coordinates of *pos*."""
        x = math.floor((pos.x - self.offset.x) / self.scale)
        y = math.floor((pos.y - self.offset.y) / self.scale)
        return x, y

    def pos_to_index(self, pos: Vector2D) -> int:
        """Index of the tile under *pos*, clamped to the nearest border tile."""
        x, y = self.tile_xy(pos)
        x = min(max(x, 0), self.width - 1)
        y = min(max(y, 0), self.height - 1)
        return y * self.width + x

    def index_to_pos(self, index: int) -> Vector2D:
        if not 0 <= index < self.num_tiles:
            raise ValueError(f"tile index {index} outside 0..{self.num_tiles - 1}")
        return self.tile_center(index % self.width, index // self.width)

    def tile_center(self, x: int, y: int) -> Vector2D:
        """World-space centre of tile ``(x, y)``; also valid outside the grid."""
        return Vector2D(
            self.offset.x + (x + 0.5) * self.scale,
            self.offset.y + (y + 0.5) * self.scale,
        )

    def contains(self, pos: Vector2D) -> bool:
        x, y = self.tile_xy(pos)
        return 0 <= x < self.width and 0 <= y < self.height

    def create_path_helper(self) -> "PathHelper":
        return PathHelper(self)


class PathHelper:
    """Collects the tiles a sequence of positions covers."""

    def __init__(self, tiled_map: TiledMap) -> None:
        self.map = tiled_map
        self._tiles: Set[int] = set()

    def reserve_pos(self, pos: Vector2D) -> None:
        self._tiles.add(self.map.pos_to_index(pos))

    def reserve_all(self, positions: Iterable[Vector2D]) -> "PathHelper":
        for pos in positions:
            self.reserve_pos(pos)
        return self

    def tiles(self) -> frozenset:
        return frozenset(self._tiles)

    def to_frame(self) -> bytes:
        return encode_reservation(self._tiles, self.map.num_tiles)

