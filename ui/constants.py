#!/usr/bin/env python3
"""Visual constants shared across all renderers."""

from __future__ import annotations

from typing import Dict, Sequence, Tuple

from .types import ColorRGB


class ViewConstants:
    """Mixin providing every visual / layout constant."""

    BG_COLOR: ColorRGB = (15, 15, 15)
    ROAD_COLOR: ColorRGB = (30, 30, 30)
    TILE_COLOR: ColorRGB = (38, 38, 38)
    TILE_EDGE_COLOR: ColorRGB = (58, 58, 58)
    LANE_DASH_COLOR: ColorRGB = (70, 70, 70)
    HUD_BG_COLOR: ColorRGB = (22, 22, 22)
    HUD_BORDER_COLOR: ColorRGB = (42, 42, 42)
    TEXT_COLOR: ColorRGB = (230, 230, 235)
    DIM_TEXT_COLOR: ColorRGB = (150, 150, 150)
    GO_COLOR: ColorRGB = (0, 255, 127)
    STOP_COLOR: ColorRGB = (255, 60, 60)
    SENSOR_COLOR: ColorRGB = (255, 136, 0)

    RESERVED_ALPHA = 110
    ROUTE_ALPHA = 72
    SENSOR_ALPHA = 120

    LANE_WIDTH_M = 3.0

    DEFAULT_VEHICLE_COLORS: Sequence[ColorRGB] = (
        (86, 168, 255),
        (255, 88, 88),
        (100, 226, 170),
        (246, 191, 90),
        (180, 120, 255),
        (255, 160, 100),
    )

    # Outline per vehicle state name.
    STATE_COLORS: Dict[str, ColorRGB] = {
        "QUEUING": (120, 120, 120),
        "WAITING": (255, 60, 60),
        "MOVING": (0, 255, 127),
        "LEAVING": (86, 168, 255),
    }

    LEGEND_ITEMS: Sequence[Tuple[str, ColorRGB]] = (
        ("QUEUING", (120, 120, 120)),
        ("WAITING", (255, 60, 60)),
        ("MOVING", (0, 255, 127)),
        ("SENSOR", (255, 136, 0)),
    )

    SCREENSHOT_DIR = "screenshots"
