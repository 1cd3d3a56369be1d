#!/usr/bin/env python3
"""
Off-screen rendering tests: draw bridge snapshots on a plain Surface and
export frames without opening a window.
"""

from __future__ import annotations

import os
import tempfile
import unittest

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

import pygame  # noqa: E402

from config import VanetConfig  # noqa: E402
from sim.sim_bridge import SimBridge  # noqa: E402
from ui.helpers import owner_color  # noqa: E402
from ui.pygame_view import TileMapRenderer, save_image  # noqa: E402
from ui.types import Camera  # noqa: E402


class CameraTests(unittest.TestCase):
    def test_world_to_screen_round_trip(self) -> None:
        cam = Camera(200, 100, world_x=1.0, world_y=2.0, zoom=4.0)
        sx, sy = cam.world_to_screen(3.0, 5.0)
        self.assertEqual((sx, sy), (108.0, 38.0))
        self.assertEqual(cam.screen_to_world(sx, sy), (3.0, 5.0))

    def test_fit_centres_the_bounding_box(self) -> None:
        cam = Camera(100, 100)
        cam.fit([(-10.0, -10.0), (10.0, 10.0)], margin=1.0)
        self.assertEqual((cam.world_x, cam.world_y), (0.0, 0.0))
        self.assertAlmostEqual(cam.zoom, 5.0)


class OwnerColorTests(unittest.TestCase):
    def test_vehicle_ids_map_to_palette_slots(self) -> None:
        palette = [(1, 1, 1), (2, 2, 2), (3, 3, 3)]
        self.assertEqual(owner_color("4", palette), (2, 2, 2))
        key = str(("platoon", 0))
        self.assertEqual(owner_color(key, palette), owner_color(key, palette))


class RenderTests(unittest.TestCase):
    def setUp(self) -> None:
        pygame.font.init()
        self.bridge = SimBridge(VanetConfig(vehicles_per_hour=0.0), realtime=False)
        self.bridge.add_motes(3)
        self.bridge.run_for(2.0)

    def test_render_snapshot_off_screen(self) -> None:
        surface = pygame.Surface((320, 240))
        renderer = TileMapRenderer(320, 240)
        renderer.render(surface, self.bridge.get_vehicles(), self.bridge.get_intersection())
        self.assertNotEqual(tuple(surface.get_at((160, 120)))[:3], renderer.BG_COLOR)

    def test_save_image_names_frames_by_sim_time(self) -> None:
        surface = pygame.Surface((64, 48))
        with tempfile.TemporaryDirectory() as tmp:
            path = save_image(surface, os.path.join(tmp, "frames"), 1240)
            self.assertEqual(os.path.basename(path), "frame_1240.png")
            self.assertTrue(os.path.exists(path))

    def test_bridge_exports_one_frame_per_tick(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            bridge = SimBridge(
                VanetConfig(vehicles_per_hour=0.0, screen_export_dir=tmp),
                realtime=False,
                frame_size=(160, 120),
            )
            bridge.add_motes(1)
            bridge.run_for(0.06)
            self.assertEqual(
                sorted(os.listdir(tmp)),
                ["frame_20.png", "frame_40.png", "frame_60.png"],
            )


if __name__ == "__main__":
    unittest.main()
