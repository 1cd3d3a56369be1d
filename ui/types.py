"""
ui/types.py
===========
Lightweight data containers used across every UI module.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Tuple

ColorRGB = Tuple[int, int, int]
ColorRGBA = Tuple[int, int, int, int]


@dataclass
class Camera:
    """Viewport mapping world metres to screen pixels (y axis up)."""
    screen_w: int
    screen_h: int
    world_x: float = 0.0
    world_y: float = 0.0
    zoom: float = 3.0

    def world_to_screen(self, wx: float, wy: float) -> Tuple[float, float]:
        cx = self.screen_w / 2
        cy = self.screen_h / 2
        sx = cx + (wx - self.world_x) * self.zoom
        sy = cy - (wy - self.world_y) * self.zoom
        return sx, sy

    def screen_to_world(self, sx: float, sy: float) -> Tuple[float, float]:
        cx = self.screen_w / 2
        cy = self.screen_h / 2
        wx = (sx - cx) / self.zoom + self.world_x
        wy = -((sy - cy) / self.zoom) + self.world_y
        return wx, wy

    def fit(self, points: Iterable[Tuple[float, float]], margin: float = 0.9) -> None:
        """Centre on the bounding box of *points* and zoom so it fills the view."""
        pts = list(points)
        if not pts:
            return
        xs = [p[0] for p in pts]
        ys = [p[1] for p in pts]
        self.world_x = (min(xs) + max(xs)) / 2
        self.world_y = (min(ys) + max(ys)) / 2
        span_x = max(max(xs) - min(xs), 1e-6)
        span_y = max(max(ys) - min(ys), 1e-6)
        self.zoom = margin * min(self.screen_w / span_x, self.screen_h / span_y)

    def metres(self, length: float) -> int:
        return max(1, int(round(length * self.zoom)))


def map_extent(intersection: Mapping[str, Any]) -> Tuple[Tuple[float, float], ...]:
    """Corner points of the tile grid plus every lane's far end."""
    ox, oy = intersection.get("offset", (0.0, 0.0))
    scale = intersection.get("scale", 1.0)
    w = intersection.get("width", 0) * scale
    h = intersection.get("height", 0) * scale
    pts = [(ox, oy), (ox + w, oy + h)]
    pts.extend(tuple(lane["far"]) for lane in intersection.get("lanes", ()))
    return tuple(pts)
