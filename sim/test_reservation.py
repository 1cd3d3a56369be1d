#!/usr/bin/env python3
"""
Tests for the chaos, traffic-light and platoon reservation coordinators.
"""

from __future__ import annotations

import unittest
from typing import Dict, Optional

from sim.reservation import (
    ChaosCoordinator,
    PlatoonCoordinator,
    TrafficLightCoordinator,
    Verdict,
    make_coordinator,
)
from sim.states import VehicleState
from sim.traffic_policy import DriverPolicy


class _StubVehicle:
    def __init__(self, vehicle_id: int) -> None:
        self.vehicle_id = vehicle_id
        self.state = VehicleState.QUEUING
        self.platoon = None
        self.predecessor: Optional[int] = None
        self.successor: Optional[int] = None


class ChaosCoordinatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.coord = ChaosCoordinator()

    def test_first_come_wins(self) -> None:
        self.assertIs(self.coord.submit(1, {1, 2}), Verdict.ACCEPT)
        self.assertIs(self.coord.submit(2, {2, 3}), Verdict.REJECT)
        self.assertEqual(self.coord.owners(), {1: 1, 2: 1})
        self.assertEqual(self.coord.reservation_of(2), frozenset())

    def test_shrinking_frees_tiles(self) -> None:
        self.coord.submit(1, {1, 2})
        self.assertIs(self.coord.submit(1, {2}), Verdict.ACCEPT)
        self.assertIsNone(self.coord.owner_of(1))
        self.assertIs(self.coord.submit(2, {1, 3}), Verdict.ACCEPT)

    def test_rejected_replacement_keeps_old_grant(self) -> None:
        self.coord.submit(1, {1})
        self.coord.submit(2, {5})
        self.assertIs(self.coord.submit(1, {1, 5}), Verdict.REJECT)
        self.assertEqual(self.coord.reservation_of(1), frozenset({1}))

    def test_empty_request_and_release(self) -> None:
        self.coord.submit(1, {1, 2})
        self.assertIs(self.coord.submit(1, []), Verdict.ACCEPT)
        self.assertEqual(self.coord.owners(), {})
        self.coord.submit(1, {4})
        self.coord.release(1)
        self.coord.release(1)
        self.assertEqual(self.coord.owners(), {})


class TrafficLightCoordinatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.coord = TrafficLightCoordinator(DriverPolicy(green_ms=10_000))

    def test_phases_alternate(self) -> None:
        self.assertEqual(self.coord.green_arms(), ("W", "E"))
        self.coord.advance(10_000)
        self.assertEqual(self.coord.green_arms(), ("N", "S"))
        self.coord.advance(10_000)
        self.assertEqual(self.coord.green_arms(), ("W", "E"))

    def test_red_request_is_deferred_until_green(self) -> None:
        self.assertIs(self.coord.submit(1, {1}, "W"), Verdict.ACCEPT)
        self.assertIs(self.coord.submit(2, {2}, "N"), Verdict.ACK)
        self.assertEqual(self.coord.advance(5_000), [])
        self.assertEqual(self.coord.advance(5_000), [2])
        self.assertEqual(self.coord.owner_of(2), 2)
        self.assertEqual(self.coord.describe()["pending"], 0)

    def test_shrink_is_accepted_on_red(self) -> None:
        self.coord.submit(1, {1, 2}, "W")
        self.coord.advance(10_000)
        self.assertIs(self.coord.submit(1, {2}, "W"), Verdict.ACCEPT)
        self.assertEqual(self.coord.reservation_of(1), frozenset({2}))

    def test_pending_requests_are_granted_in_arrival_order(self) -> None:
        self.coord.submit(4, {9}, "N")
        self.coord.submit(5, {9}, "S")
        self.assertEqual(self.coord.advance(10_000), [4])
        self.coord.release(4)
        self.assertEqual(self.coord.advance(20), [5])

    def test_release_drops_pending(self) -> None:
        self.coord.submit(3, {7}, "N")
        self.coord.release(3)
        self.assertEqual(self.coord.advance(10_000), [])
        self.assertIsNone(self.coord.owner_of(7))


class PlatoonCoordinatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.vehicles: Dict[int, _StubVehicle] = {}
        self.coord = PlatoonCoordinator(DriverPolicy(platoon_size=3), self.vehicles.get)

    def _assign(self, vehicle_id: int, lane_id: int = 0):
        vehicle = _StubVehicle(vehicle_id)
        self.vehicles[vehicle_id] = vehicle
        return self.coord.assign(vehicle, lane_id)

    def test_platoons_fill_up_to_max_size(self) -> None:
        first = [self._assign(i) for i in range(3)]
        fourth = self._assign(3)
        self.assertTrue(all(p is first[0] for p in first))
        self.assertIsNot(fourth, first[0])
        self.assertEqual(first[0].members, [0, 1, 2])
        self.assertIsNot(self._assign(4, lane_id=1), fourth)

    def test_grant_is_keyed_by_platoon(self) -> None:
        for i in range(2):
            self._assign(i)
        self.assertIs(self.coord.submit(0, {1, 2}), Verdict.ACCEPT)
        self.assertEqual(self.coord.owner_of(1), ("platoon", 0))
        self.assertEqual(self.coord.reservation_of(1), frozenset({1, 2}))

    def test_grant_survives_until_last_member_leaves(self) -> None:
        for i in range(3):
            self._assign(i)
        self.coord.submit(0, {1, 2})
        self.coord.release(0)
        self.coord.release(1)
        self.assertEqual(self.coord.owner_of(1), ("platoon", 0))
        self.coord.release(2)
        self.assertEqual(self.coord.owners(), {})
        self.assertIsNone(self.coord.platoon_of(0))
        self.assertEqual(self._assign(5).platoon_id, 1)

    def test_unassigned_vehicle_falls_back_to_own_key(self) -> None:
        self.assertIs(self.coord.submit(9, {3}), Verdict.ACCEPT)
        self.assertEqual(self.coord.owner_of(3), 9)
        self.coord.release(9)
        self.assertIsNone(self.coord.owner_of(3))


class FactoryTests(unittest.TestCase):
    def test_known_kinds(self) -> None:
        self.assertIsInstance(make_coordinator("chaos"), ChaosCoordinator)
        self.assertIsInstance(make_coordinator(" Traffic_Light "), TrafficLightCoordinator)
        self.assertIsInstance(make_coordinator("platoon"), PlatoonCoordinator)

    def test_unknown_kind_raises(self) -> None:
        with self.assertRaises(ValueError):
            make_coordinator("roundabout")


if __name__ == "__main__":
    unittest.main()
