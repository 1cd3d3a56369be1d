#!/usr/bin/env python3
"""
Tests for platoon membership and predecessor/successor links.
"""

from __future__ import annotations

import unittest
from typing import Dict, Optional

from sim.platoon import Platoon
from sim.states import VehicleState


class _StubVehicle:
    def __init__(self, vehicle_id: int) -> None:
        self.vehicle_id = vehicle_id
        self.state = VehicleState.QUEUING
        self.platoon = None
        self.predecessor: Optional[int] = None
        self.successor: Optional[int] = None


class PlatoonTests(unittest.TestCase):
    def setUp(self) -> None:
        self.vehicles: Dict[int, _StubVehicle] = {i: _StubVehicle(i) for i in range(5)}
        self.platoon = Platoon(0, lane_id=0, max_size=3, lookup=self.vehicles.get)

    def _fill(self, count: int) -> None:
        for i in range(count):
            self.platoon.join(self.vehicles[i])

    def test_join_links_the_chain(self) -> None:
        self._fill(3)
        v = self.vehicles
        self.assertEqual(self.platoon.chain(), [0, 1, 2])
        self.assertIsNone(v[0].predecessor)
        self.assertEqual((v[1].predecessor, v[1].successor), (0, 2))
        self.assertIsNone(v[2].successor)
        self.assertTrue(self.platoon.is_head(v[0]))
        self.assertIs(v[2].platoon, self.platoon)

    def test_head_leaving_promotes_successor(self) -> None:
        self._fill(3)
        self.platoon.leave(self.vehicles[0])
        self.assertEqual(self.platoon.head_id, 1)
        self.assertIsNone(self.vehicles[1].predecessor)
        self.assertIsNone(self.vehicles[0].platoon)
        self.assertEqual(self.platoon.chain(), [1, 2])

    def test_middle_leaving_relinks_neighbours(self) -> None:
        self._fill(3)
        self.platoon.leave(self.vehicles[1])
        self.assertEqual(self.vehicles[0].successor, 2)
        self.assertEqual(self.vehicles[2].predecessor, 0)
        self.assertEqual(self.platoon.chain(), [0, 2])
        self.platoon.leave(self.vehicles[1])
        self.assertEqual(self.platoon.size(), 2)

    def test_may_join_respects_size_limit(self) -> None:
        self._fill(3)
        self.assertFalse(self.platoon.may_join(self.vehicles[3]))
        self.assertFalse(self.platoon.may_join(self.vehicles[0]))

    def test_unlimited_size(self) -> None:
        platoon = Platoon(1, 0, -1, self.vehicles.get)
        for vehicle in self.vehicles.values():
            self.assertTrue(platoon.may_join(vehicle))
            platoon.join(vehicle)
        self.assertEqual(platoon.size(), 5)

    def test_no_joining_once_the_head_moves_or_is_accepted(self) -> None:
        self._fill(1)
        self.assertTrue(self.platoon.may_join(self.vehicles[1]))
        self.platoon.accepted = True
        self.assertFalse(self.platoon.may_join(self.vehicles[1]))
        self.platoon.accepted = False
        self.vehicles[0].state = VehicleState.MOVING
        self.assertTrue(self.platoon.is_moving())
        self.assertFalse(self.platoon.may_join(self.vehicles[1]))


if __name__ == "__main__":
    unittest.main()
