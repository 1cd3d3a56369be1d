#!/usr/bin/env python3
"""Approach lanes, the tile grid, reserved tiles and light phase (mixin)."""

from __future__ import annotations

from typing import Any, Mapping

import pygame

from .helpers import draw_alpha_rect, owner_color, with_alpha


class TileRenderer:
    """Mixin that draws the static map and the reservation overlay."""

    # ------------------------------------------------------------------ #
    #  Approach lanes                                                      #
    # ------------------------------------------------------------------ #

    def draw_approaches(self, surface: pygame.Surface, intersection: Mapping[str, Any]) -> None:
        width = self.camera.metres(self.LANE_WIDTH_M)
        for lane in intersection.get("lanes", ()):
            start = self._to_screen(*lane["far"])
            end = self._to_screen(*lane["end"])
            pygame.draw.line(surface, self.ROAD_COLOR, start, end, width)
            if lane["entry"]:
                # Stop line at the lane end.
                pygame.draw.circle(surface, self.LANE_DASH_COLOR, end, max(2, width // 4))

    # ------------------------------------------------------------------ #
    #  Tile grid                                                           #
    # ------------------------------------------------------------------ #

    def _tile_rect(self, intersection: Mapping[str, Any], index: int) -> pygame.Rect:
        w = intersection["width"]
        scale = intersection["scale"]
        ox, oy = intersection["offset"]
        tx, ty = index % w, index // w
        # World y grows upwards, so the top-left pixel is the tile's (x0, y1).
        left, top = self._to_screen(ox + tx * scale, oy + (ty + 1) * scale)
        right, bottom = self._to_screen(ox + (tx + 1) * scale, oy + ty * scale)
        return pygame.Rect(left, top, max(1, right - left), max(1, bottom - top))

    def draw_tiles(self, surface: pygame.Surface, intersection: Mapping[str, Any]) -> None:
        if not intersection.get("width"):
            return
        count = intersection["width"] * intersection["height"]
        for index in range(count):
            rect = self._tile_rect(intersection, index)
            pygame.draw.rect(surface, self.TILE_COLOR, rect)
            pygame.draw.rect(surface, self.TILE_EDGE_COLOR, rect, width=1)

    def draw_reservations(self, surface: pygame.Surface, intersection: Mapping[str, Any]) -> None:
        for tile, owner in intersection.get("owners", {}).items():
            color = owner_color(owner, self.DEFAULT_VEHICLE_COLORS)
            draw_alpha_rect(
                surface,
                with_alpha(color, self.RESERVED_ALPHA),
                self._tile_rect(intersection, tile).inflate(-2, -2),
            )

    # ------------------------------------------------------------------ #
    #  Traffic light                                                       #
    # ------------------------------------------------------------------ #

    def draw_light_phase(self, surface: pygame.Surface, intersection: Mapping[str, Any]) -> None:
        green = intersection.get("green")
        if green is None:
            return
        radius = max(3, self.camera.metres(0.8))
        for lane in intersection.get("lanes", ()):
            if not lane["entry"]:
                continue
            color = self.GO_COLOR if lane["arm"] in green else self.STOP_COLOR
            pygame.draw.circle(surface, color, self._to_screen(*lane["end"]), radius)
