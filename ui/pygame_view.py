#!/usr/bin/env python3
"""
Main view classes: combine all UI mixins into a renderer and a window.

Module layout
─────────────
    ui/
    ├── types.py           – ColorRGB, ColorRGBA, Camera
    ├── constants.py       – ViewConstants mixin (all class-level constants)
    ├── helpers.py         – ViewHelpers mixin and drawing utilities
    ├── draw_tiles.py      – TileRenderer mixin (lanes, tiles, reservations)
    ├── draw_vehicles.py   – VehicleRenderer mixin (discs, routes, sensors)
    ├── hud.py             – HudRenderer mixin  (HUD, legend, pause banner)
    └── pygame_view.py     – TileMapRenderer / PygameTileMapView (this file)

:class:`TileMapRenderer` draws a bridge snapshot on any surface, including
an off-screen one, so frames can be exported without opening a window.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pygame

from .constants import ViewConstants
from .draw_tiles import TileRenderer
from .draw_vehicles import VehicleRenderer
from .helpers import ViewHelpers
from .hud import HudRenderer
from .types import Camera, map_extent

log = logging.getLogger("ui")


def save_image(surface: pygame.Surface, export_dir: str, sim_ms: int) -> str:
    """Write *surface* to ``<export_dir>/frame_<sim_ms>.png`` and return the path."""
    os.makedirs(export_dir, exist_ok=True)
    path = os.path.join(export_dir, f"frame_{int(sim_ms)}.png")
    pygame.image.save(surface, path)
    return path


class TileMapRenderer(
    ViewConstants,
    ViewHelpers,
    TileRenderer,
    VehicleRenderer,
    HudRenderer,
):
    """Draws the tile map, reservations and vehicles of one snapshot."""

    def __init__(self, width: int = 1000, height: int = 700) -> None:
        self.width = width
        self.height = height
        self.camera = Camera(width, height)
        self.zoom = 1.0
        self.font_small = self._load_font(18)
        self.font_title = self._load_font(40, bold=True)
        self.show_legend = True
        self._fitted = False

    def fit_to(self, intersection: Mapping[str, Any]) -> None:
        self.camera.screen_w, self.camera.screen_h = self.width, self.height
        self.camera.fit(map_extent(intersection))
        self.camera.zoom *= self.zoom
        self._fitted = True

    def render(
        self,
        surface: pygame.Surface,
        vehicles: Sequence[Mapping[str, Any]],
        intersection: Mapping[str, Any],
    ) -> None:
        if not self._fitted and intersection:
            self.fit_to(intersection)
        surface.fill(self.BG_COLOR)
        self.draw_approaches(surface, intersection)
        self.draw_tiles(surface, intersection)
        self.draw_reservations(surface, intersection)
        self.draw_light_phase(surface, intersection)
        for vehicle in vehicles:
            self.draw_route(surface, vehicle)
        for vehicle in vehicles:
            self.draw_sensor(surface, vehicle)
        for vehicle in vehicles:
            self.draw_vehicle(surface, vehicle)
        self.draw_hud(surface, vehicles, intersection)
        if self.show_legend:
            self._draw_legend(surface)


class PygameTileMapView(TileMapRenderer):
    """Interactive window polling a :class:`sim.sim_bridge.SimBridge`.

    Keys: SPACE pause, R reset, L legend, +/- zoom, F12 screenshot.
    """

    def __init__(self, bus: Any, width: int = 1000, height: int = 700, fps: int = 60):
        pygame.init()
        super().__init__(width, height)
        self.bus = bus
        self.fps = fps
        self.screen: Optional[pygame.Surface] = None
        self.clock: Optional[pygame.time.Clock] = None
        self.paused = False
        self._last_vehicles: List[Dict[str, Any]] = []
        self._last_intersection: Dict[str, Any] = {}

    # ------------------------------------------------------------------ #
    #  Resize                                                              #
    # ------------------------------------------------------------------ #
    def _handle_resize(self, new_w: int, new_h: int) -> None:
        self.width = max(400, new_w)
        self.height = max(300, new_h)
        self.screen = pygame.display.set_mode(
            (self.width, self.height), pygame.RESIZABLE
        )
        self._fitted = False

    # ------------------------------------------------------------------ #
    #  Screenshot                                                          #
    # ------------------------------------------------------------------ #
    def _take_screenshot(self) -> None:
        if self.screen is None:
            return
        path = save_image(
            self.screen, self.SCREENSHOT_DIR, self._last_intersection.get("time_ms", 0)
        )
        log.info("screenshot saved to %s", path)

    def _handle_key(self, key: int) -> None:
        if key == pygame.K_SPACE:
            self.paused = not self.paused
            self.bus.set_paused(self.paused)
        elif key == pygame.K_r:
            self.paused = False
            self.bus.reset()
            self.bus.set_paused(False)
        elif key == pygame.K_l:
            self.show_legend = not self.show_legend
        elif key == pygame.K_F12:
            self._take_screenshot()
        elif key in (pygame.K_EQUALS, pygame.K_PLUS):
            self.zoom = min(3.0, self.zoom + 0.1)
            self._fitted = False
        elif key == pygame.K_MINUS:
            self.zoom = max(0.3, self.zoom - 0.1)
            self._fitted = False

    # ------------------------------------------------------------------ #
    #  Main loop                                                           #
    # ------------------------------------------------------------------ #
    def run(self) -> None:
        pygame.display.set_caption("VANET TILED INTERSECTION")
        self.screen = pygame.display.set_mode(
            (self.width, self.height), pygame.RESIZABLE
        )
        self.clock = pygame.time.Clock()

        running = True
        while running:
            self.clock.tick(self.fps)
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.VIDEORESIZE:
                    self._handle_resize(event.w, event.h)
                elif event.type == pygame.KEYDOWN:
                    self._handle_key(event.key)

            if not self.paused:
                self._last_vehicles = self.bus.get_vehicles()
                self._last_intersection = self.bus.get_intersection()

            self.render(self.screen, self._last_vehicles, self._last_intersection)
            if self.paused:
                self._draw_pause_banner(self.screen)
            pygame.display.flip()

        pygame.quit()


# ---------------------------------------------------------------------- #
#  Convenience entry point                                                 #
# ---------------------------------------------------------------------- #
def run_pygame_view(
    bus: Any, width: int = 1000, height: int = 700, fps: int = 60
) -> None:
    view = PygameTileMapView(bus=bus, width=width, height=height, fps=fps)
    view.run()
