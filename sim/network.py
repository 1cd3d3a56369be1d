"""
sim/network.py
==============
Geometry of a single tiled intersection.

Defines :class:`Turn`, :class:`Lane` and :class:`Intersection`.
:func:`build_intersection` lays out a square grid with one entry and one
exit lane per arm (right-hand traffic, world ``y`` pointing north).

For a grid of ``size`` tiles per side the two carriageways of an arm
use the rows/columns ``near = size // 2 - 1`` and ``far = size - 1 - near``:
eastbound traffic runs on row *near*, westbound on row *far*, northbound
on column *far* and southbound on column *near*.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from sim.tiles import TiledMap
from sim.vector import Vector2D

Tile = Tuple[int, int]

ARMS: Tuple[str, ...] = ("W", "S", "E", "N")

_ANGLE_EPS = 1e-6


class Turn(Enum):
    LEFT = "left"
    STRAIGHT = "straight"
    RIGHT = "right"
    U_TURN = "u_turn"


def classify_turn(entry_dir: Vector2D, exit_dir: Vector2D) -> Turn:
    """Classify the heading change from *entry_dir* to *exit_dir*."""
    a = Vector2D.angle(entry_dir, exit_dir)
    if abs(a) < _ANGLE_EPS:
        return Turn.STRAIGHT
    if abs(a) > math.pi - _ANGLE_EPS:
        return Turn.U_TURN
    return Turn.LEFT if a > 0 else Turn.RIGHT


# ── Lane ──────────────────────────────────────────────────────────────────────

@dataclass
class Lane:
    """One carriageway touching the intersection.

    Parameters
    ----------
    lane_id : int
        Unique id within the intersection.
    arm : str
        Side of the intersection the lane touches (``W``/``S``/``E``/``N``).
    direction : Vector2D
        Unit travel direction.
    border : Tile
        Grid tile where the lane meets the interior.
    end_pos : Vector2D
        Centre of the tile just outside *border*: the last queuing slot of
        an entry lane, the first runway tile of an exit lane.
    is_entry : bool
        Entry (approach) or exit lane.
    length : float
        Usable length of the outside segment; bounds the spawn queue.
    is_final_end_lane : bool
        True when the lane ends the simulated region.
    """

    lane_id: int
    arm: str
    direction: Vector2D
    border: Tile
    end_pos: Vector2D
    is_entry: bool
    length: float = 45.0
    is_final_end_lane: bool = True
    intersection: Optional["Intersection"] = field(default=None, repr=False, compare=False)

    def turn_to(self, exit_lane: "Lane") -> Turn:
        return classify_turn(self.direction, exit_lane.direction)

    def waypoints(self, target: "Lane") -> List[Vector2D]:
        if self.intersection is None:
            raise ValueError(f"lane {self.lane_id} is not attached to an intersection")
        return self.intersection.waypoints(self, target)

    def far_end(self) -> Vector2D:
        """Outer end of the lane segment (spawn side of entries)."""
        sign = -1.0 if self.is_entry else 1.0
        return self.end_pos + self.direction * (sign * self.length)


# ── Intersection ──────────────────────────────────────────────────────────────

class Intersection:
    """Entry/exit lanes around one :class:`TiledMap`.

    The reservation coordinator is attached by :class:`sim.world.World`.
    """

    def __init__(
        self,
        tiled_map: TiledMap,
        entry_lanes: List[Lane],
        exit_lanes: List[Lane],
        steps_into_lane: int = 3,
        u_turns: bool = False,
    ) -> None:
        self.map = tiled_map
        self.entry_lanes = list(entry_lanes)
        self.exit_lanes = list(exit_lanes)
        self.steps_into_lane = steps_into_lane
        self.u_turns = u_turns
        self.coordinator = None
        self._lanes: Dict[int, Lane] = {}
        for lane in self.entry_lanes + self.exit_lanes:
            lane.intersection = self
            self._lanes[lane.lane_id] = lane

    @property
    def size(self) -> int:
        return self.map.width

    @property
    def near(self) -> int:
        return self.size // 2 - 1

    @property
    def far(self) -> int:
        return self.size - 1 - self.near

    def lane(self, lane_id: int) -> Lane:
        return self._lanes[lane_id]

    def entry_lane(self, arm: str) -> Lane:
        return next(l for l in self.entry_lanes if l.arm == arm)

    def exit_lane(self, arm: str) -> Lane:
        return next(l for l in self.exit_lanes if l.arm == arm)

    def possible_lanes(self, entry: Lane) -> List[Lane]:
        """Legal exits for *entry*; U-turns only when enabled."""
        return [
            lane for lane in self.exit_lanes
            if self.u_turns or entry.turn_to(lane) is not Turn.U_TURN
        ]

    # ── paths ─────────────────────────────────────────────────────────────

    def path(self, entry: Lane, exit_lane: Lane) -> List[Tile]:
        """Interior tiles crossed from *entry* to *exit_lane*, in travel order."""
        d = entry.direction
        along_x = abs(d.x) > 0.5
        (sx, sy), (ex, ey) = entry.border, exit_lane.border
        turn = entry.turn_to(exit_lane)

        corners: List[Tile] = []
        if turn in (Turn.LEFT, Turn.RIGHT):
            corners = [(ex, sy) if along_x else (sx, ey)]
        elif turn is Turn.U_TURN:
            # Swing out to the carriageway of the left-hand exit first.
            forward = (d.x if along_x else d.y) > 0
            t = self.far if forward else self.near
            if along_x:
                corners = [(t, sy), (t, ey)]
            else:
                corners = [(sx, t), (ex, t)]

        tiles: List[Tile] = []
        points = [entry.border] + corners + [exit_lane.border]
        for a, b in zip(points, points[1:]):
            for tile in _walk(a, b):
                if not tiles or tiles[-1] != tile:
                    tiles.append(tile)
        return tiles

    def waypoints(self, entry: Lane, exit_lane: Lane) -> List[Vector2D]:
        """Entry end position, interior tile centres, then the exit runway."""
        points = [entry.end_pos.copy()]
        points.extend(self.map.tile_center(x, y) for x, y in self.path(entry, exit_lane))
        bx, by = exit_lane.border
        dx = int(round(exit_lane.direction.x))
        dy = int(round(exit_lane.direction.y))
        for k in range(1, self.steps_into_lane + 1):
            points.append(self.map.tile_center(bx + dx * k, by + dy * k))
        return points


def _walk(a: Tile, b: Tile) -> List[Tile]:
    """Tiles from *a* to *b* inclusive; the two must share a row or column."""
    (ax, ay), (bx, by) = a, b
    if ax != bx and ay != by:
        raise ValueError(f"tiles {a} and {b} are not aligned")
    sx = (bx > ax) - (bx < ax)
    sy = (by > ay) - (by < ay)
    steps = max(abs(bx - ax), abs(by - ay))
    return [(ax + sx * i, ay + sy * i) for i in range(steps + 1)]


# ── Factory ───────────────────────────────────────────────────────────────────

def build_intersection(
    size: int = 5,
    scale: float = 3.0,
    offset: Optional[Vector2D] = None,
    approach_length: float = 45.0,
    steps_into_lane: int = 3,
    u_turns: bool = False,
    final: bool = True,
) -> Intersection:
    """Square four-arm intersection centred on the origin by default.

    Entry lanes get ids 0..3 and exit lanes 4..7, both in ``W, S, E, N``
    order, so lane 0 is the west approach heading east.

    *size* must be at least 2: inbound and outbound lanes of an arm run on
    separate tile rows, which a single tile cannot hold.
    """
    if size < 2:
        raise ValueError(f"intersection size must be >= 2, got {size}")
    if offset is None:
        half = size * scale / 2.0
        offset = Vector2D(-half, -half)
    tiled_map = TiledMap(size, size, offset, scale)
    near = size // 2 - 1
    far = size - 1 - near
    last = size - 1

    entries: Dict[str, Tuple[Tuple[int, int], Tile, Tile]] = {
        # arm: (direction, border tile, end tile)
        "W": ((1, 0), (0, near), (-1, near)),
        "S": ((0, 1), (far, 0), (far, -1)),
        "E": ((-1, 0), (last, far), (size, far)),
        "N": ((0, -1), (near, last), (near, size)),
    }
    exits: Dict[str, Tuple[Tuple[int, int], Tile, Tile]] = {
        "W": ((-1, 0), (0, far), (-1, far)),
        "S": ((0, -1), (near, 0), (near, -1)),
        "E": ((1, 0), (last, near), (size, near)),
        "N": ((0, 1), (far, last), (far, size)),
    }

    def _lane(lane_id: int, arm: str, geometry, is_entry: bool) -> Lane:
        (dx, dy), border, end = geometry
        return Lane(
            lane_id=lane_id,
            arm=arm,
            direction=Vector2D(dx, dy),
            border=border,
            end_pos=tiled_map.tile_center(*end),
            is_entry=is_entry,
            length=approach_length,
            is_final_end_lane=final,
        )

    entry_lanes = [_lane(i, arm, entries[arm], True) for i, arm in enumerate(ARMS)]
    exit_lanes = [
        _lane(len(ARMS) + i, arm, exits[arm], False) for i, arm in enumerate(ARMS)
    ]
    return Intersection(tiled_map, entry_lanes, exit_lanes, steps_into_lane, u_turns)
