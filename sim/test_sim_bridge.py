#!/usr/bin/env python3
"""
Tests for the in-process host: scripted motes, Poisson arrivals,
snapshots, reset and the CSV event streams.
"""

from __future__ import annotations

import csv
import os
import tempfile
import unittest

from config import VanetConfig
from sim.sim_bridge import SimBridge


class SimBridgeTests(unittest.TestCase):
    def _bridge(self, **overrides) -> SimBridge:
        config = VanetConfig(vehicles_per_hour=0.0).with_overrides(**overrides)
        return SimBridge(config, realtime=False)

    def test_run_for_advances_the_clock(self) -> None:
        bridge = self._bridge()
        bridge.add_motes(2)
        bridge.run_for(1.0)
        self.assertEqual(bridge.time_ms, 1000)
        self.assertEqual(bridge.total_created, 2)
        vehicles = bridge.get_vehicles()
        self.assertEqual(len(vehicles), 2)
        self.assertEqual({"id", "x", "y", "state", "speed", "route"} - set(vehicles[0]), set())

    def test_intersection_snapshot(self) -> None:
        bridge = self._bridge(intersection_type="traffic_light")
        bridge.step()
        meta = bridge.get_intersection()
        self.assertEqual(len(meta["lanes"]), 8)
        self.assertEqual(meta["width"], 5)
        self.assertEqual(meta["green"], ["W", "E"])
        self.assertEqual(meta["coordinator"]["type"], "traffic_light")
        self.assertEqual(meta["time_ms"], 20)

    def test_poisson_arrivals_follow_the_rate(self) -> None:
        bridge = self._bridge(vehicles_per_hour=36_000.0, seed=3)
        bridge.run_for(10.0)
        # 100 arrivals expected.
        self.assertGreater(bridge.total_created, 60)
        self.assertLess(bridge.total_created, 150)

    def test_same_seed_replays_identically(self) -> None:
        runs = []
        for _ in range(2):
            bridge = self._bridge(vehicles_per_hour=3_600.0, seed=12)
            bridge.run_for(5.0)
            runs.append([(v["id"], round(v["x"], 6), round(v["y"], 6)) for v in bridge.get_vehicles()])
        self.assertEqual(runs[0], runs[1])

    def test_reset_restarts_the_world(self) -> None:
        bridge = self._bridge()
        bridge.add_motes(1)
        bridge.run_for(0.2)
        bridge.reset()
        self.assertEqual(bridge.time_ms, 0)
        self.assertEqual(bridge.total_created, 0)
        self.assertEqual(bridge.get_vehicles(), [])

    def test_paused_flag(self) -> None:
        bridge = self._bridge()
        bridge.set_paused(True)
        self.assertTrue(bridge.is_paused())

    def test_event_streams_written_to_log_dir(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            bridge = self._bridge(log_dir=tmp)
            bridge.add_motes(1)
            bridge.run_for(0.5)
            for name in ("vehicles", "state", "speed"):
                self.assertTrue(os.path.exists(os.path.join(tmp, f"{name}.csv")), name)
            with open(os.path.join(tmp, "state.csv"), newline="") as fh:
                rows = list(csv.reader(fh))
            self.assertEqual(rows[0], ["20", "initialized", "000000"])
            with open(os.path.join(tmp, "vehicles.csv"), newline="") as fh:
                self.assertEqual(len(list(csv.reader(fh))), 1)

    def test_background_thread_start_stop(self) -> None:
        bridge = SimBridge(VanetConfig(vehicles_per_hour=0.0), realtime=False)
        bridge.start()
        bridge.stop()
        self.assertGreaterEqual(bridge.time_ms, 0)


if __name__ == "__main__":
    unittest.main()
