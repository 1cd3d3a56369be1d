#!/usr/bin/env python3

from .types import Camera, ColorRGB, ColorRGBA
from .constants import ViewConstants
from .helpers import ViewHelpers
from .draw_tiles import TileRenderer
from .draw_vehicles import VehicleRenderer
from .hud import HudRenderer
from .pygame_view import PygameTileMapView, TileMapRenderer, run_pygame_view, save_image

__all__ = [
    "Camera",
    "ColorRGB",
    "ColorRGBA",
    "ViewConstants",
    "ViewHelpers",
    "TileRenderer",
    "VehicleRenderer",
    "HudRenderer",
    "PygameTileMapView",
    "TileMapRenderer",
    "run_pygame_view",
    "save_image",
]
