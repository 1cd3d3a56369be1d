#!/usr/bin/env python3
"""
Tests for the tile grid, the path helper and the intersection geometry.
"""

from __future__ import annotations

import unittest

from sim.network import Turn, build_intersection, classify_turn
from sim.tiles import TiledMap
from sim.vector import Vector2D


class TiledMapTests(unittest.TestCase):
    def setUp(self) -> None:
        self.map = TiledMap(5, 5, Vector2D(-7.5, -7.5), 3.0)

    def test_pos_to_index_is_row_major(self) -> None:
        self.assertEqual(self.map.pos_to_index(Vector2D(0, 0)), 12)
        self.assertEqual(self.map.pos_to_index(Vector2D(-6, -6)), 0)
        self.assertEqual(self.map.pos_to_index(Vector2D(6, -6)), 4)

    def test_outside_positions_clamp_to_border_tiles(self) -> None:
        self.assertEqual(self.map.pos_to_index(Vector2D(-100, 0)), 10)
        self.assertEqual(self.map.pos_to_index(Vector2D(100, 100)), 24)
        self.assertFalse(self.map.contains(Vector2D(-100, 0)))

    def test_index_to_pos_returns_tile_centre(self) -> None:
        self.assertEqual(self.map.index_to_pos(12), Vector2D(0, 0))
        with self.assertRaises(ValueError):
            self.map.index_to_pos(25)

    def test_index_round_trip_for_every_tile(self) -> None:
        for i in range(self.map.num_tiles):
            centre = self.map.index_to_pos(i)
            self.assertEqual(self.map.pos_to_index(centre), i)
            self.assertEqual(self.map.index_to_pos(self.map.pos_to_index(centre)), centre)

    def test_invalid_dimensions(self) -> None:
        with self.assertRaises(ValueError):
            TiledMap(0, 5)
        with self.assertRaises(ValueError):
            TiledMap(5, 5, scale=0.0)

    def test_path_helper_frame(self) -> None:
        helper = self.map.create_path_helper()
        helper.reserve_all([Vector2D(-3, -3), Vector2D(-6, -3), Vector2D(-6.5, -3.2)])
        self.assertEqual(helper.tiles(), frozenset({5, 6}))
        self.assertEqual(helper.to_frame(), b"R\x05\x06")

    def test_oversized_grid_cannot_be_encoded(self) -> None:
        helper = TiledMap(20, 20).create_path_helper()
        helper.reserve_pos(Vector2D(1, 1))
        with self.assertRaises(ValueError):
            helper.to_frame()


class IntersectionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.inter = build_intersection(size=5, scale=3.0)

    def test_lane_layout(self) -> None:
        west = self.inter.lane(0)
        self.assertEqual(west.arm, "W")
        self.assertTrue(west.is_entry)
        self.assertEqual(west.direction, Vector2D(1, 0))
        self.assertEqual(west.end_pos, Vector2D(-9, -3))
        self.assertEqual([l.lane_id for l in self.inter.exit_lanes], [4, 5, 6, 7])

    def test_single_tile_grid_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            build_intersection(size=1)

    def test_turn_classification(self) -> None:
        west = self.inter.entry_lane("W")
        self.assertIs(west.turn_to(self.inter.exit_lane("E")), Turn.STRAIGHT)
        self.assertIs(west.turn_to(self.inter.exit_lane("N")), Turn.LEFT)
        self.assertIs(west.turn_to(self.inter.exit_lane("S")), Turn.RIGHT)
        self.assertIs(west.turn_to(self.inter.exit_lane("W")), Turn.U_TURN)
        self.assertIs(classify_turn(Vector2D(0, 1), Vector2D(-1, 0)), Turn.LEFT)

    def test_u_turns_are_opt_in(self) -> None:
        west = self.inter.entry_lane("W")
        self.assertEqual(len(self.inter.possible_lanes(west)), 3)
        with_u = build_intersection(size=5, u_turns=True)
        self.assertEqual(len(with_u.possible_lanes(with_u.entry_lane("W"))), 4)

    def test_straight_waypoints(self) -> None:
        points = self.inter.waypoints(self.inter.entry_lane("W"), self.inter.exit_lane("E"))
        self.assertEqual(len(points), 1 + 5 + 3)
        self.assertEqual(points[0], Vector2D(-9, -3))
        self.assertEqual(points[1], Vector2D(-6, -3))
        self.assertEqual(points[-1], Vector2D(15, -3))

    def test_turn_paths(self) -> None:
        west = self.inter.entry_lane("W")
        left = self.inter.path(west, self.inter.exit_lane("N"))
        self.assertEqual(left, [(0, 1), (1, 1), (2, 1), (3, 1), (3, 2), (3, 3), (3, 4)])
        right = self.inter.path(west, self.inter.exit_lane("S"))
        self.assertEqual(right, [(0, 1), (1, 1), (1, 0)])

    def test_every_path_steps_between_neighbouring_tiles(self) -> None:
        inter = build_intersection(size=6, u_turns=True)
        for entry in inter.entry_lanes:
            for exit_lane in inter.possible_lanes(entry):
                tiles = inter.path(entry, exit_lane)
                self.assertEqual(tiles[0], entry.border)
                self.assertEqual(tiles[-1], exit_lane.border)
                for (ax, ay), (bx, by) in zip(tiles, tiles[1:]):
                    self.assertEqual(abs(ax - bx) + abs(ay - by), 1, msg=(entry, exit_lane))

    def test_opposite_straights_share_no_tile(self) -> None:
        m = self.inter.map
        def tiles(a, b):
            points = self.inter.waypoints(self.inter.entry_lane(a), self.inter.exit_lane(b))
            return m.create_path_helper().reserve_all(points).tiles()
        self.assertFalse(tiles("W", "E") & tiles("E", "W"))
        self.assertTrue(tiles("W", "E") & tiles("S", "N"))


if __name__ == "__main__":
    unittest.main()
