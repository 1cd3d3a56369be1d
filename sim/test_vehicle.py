#!/usr/bin/env python3
"""
Unit tests for vehicle placement, the host handshake and the vehicle side
of the reservation protocol.
"""

from __future__ import annotations

import unittest

from bus.channel import MessageChannel
from bus.host import Mote, Position
from bus.message import ACCEPTED, ACK, INIT, REJECTED
from sim.events import CsvEventLog
from sim.states import RequestState, VehicleState
from sim.vector import Vector2D
from sim.vehicle import SENTINEL
from sim.world import World

TICK_MS = 20


def _spawn(world: World, entry: str = "W", exit_arm: str = "E", position=True, init=True):
    inter = world.intersection
    mote_id = world.total_created
    mote = Mote(mote_id, MessageChannel(mote_id, world.metrics), Position() if position else None)
    vehicle = world.create(mote, inter.entry_lane(entry), inter.exit_lane(exit_arm))
    if init:
        mote.channel.deliver(INIT)
    return vehicle, mote


class PlacementTests(unittest.TestCase):
    def setUp(self) -> None:
        self.log = CsvEventLog()
        self.world = World(seed=3, event_log=self.log)

    def test_vehicle_waits_for_init(self) -> None:
        vehicle, _ = _spawn(self.world, init=False)
        for _ in range(5):
            self.world.tick(TICK_MS)
        self.assertEqual(vehicle.state, VehicleState.INIT)
        self.assertFalse(vehicle.placed)
        self.assertEqual(vehicle.position, Vector2D(SENTINEL, SENTINEL))

    def test_placed_at_queue_tail_after_init(self) -> None:
        vehicle, mote = _spawn(self.world)
        self.world.tick(TICK_MS)
        self.assertEqual(vehicle.state, VehicleState.QUEUING)
        self.assertTrue(vehicle.placed)
        self.assertTrue(self.world.physics.has_body(vehicle.body))
        self.assertAlmostEqual(mote.position.x, -11.0)
        self.assertAlmostEqual(mote.position.y, -3.0)
        self.assertEqual(self.log.rows("vehicles"), [[TICK_MS, 0, "STRAIGHT"]])
        self.assertEqual(
            [row[1] for row in self.log.rows("state")], ["initialized", "queuing"]
        )

    def test_second_vehicle_queues_behind_the_first(self) -> None:
        first, _ = _spawn(self.world)
        second, _ = _spawn(self.world)
        self.world.tick(TICK_MS)
        self.assertAlmostEqual(first.position.x, -11.0)
        self.assertAlmostEqual(second.position.x, -14.5)
        self.assertAlmostEqual(second.position.y, -3.0)

    def test_unknown_position_defers_placement(self) -> None:
        vehicle, mote = _spawn(self.world, position=False)
        for _ in range(3):
            self.world.tick(TICK_MS)
        self.assertEqual(vehicle.state, VehicleState.INITIALIZED)
        self.assertFalse(vehicle.placed)
        self.assertEqual(vehicle.position.x, SENTINEL)

        mote.position = Position()
        self.world.tick(TICK_MS)
        self.assertEqual(vehicle.state, VehicleState.QUEUING)
        self.assertAlmostEqual(mote.position.x, -11.0)

    def test_removed_vehicle_no_longer_steps(self) -> None:
        vehicle, _ = _spawn(self.world)
        self.world.tick(TICK_MS)
        self.world.remove(vehicle.vehicle_id)
        self.world.remove(vehicle.vehicle_id)
        self.assertTrue(vehicle.destroyed)
        self.assertFalse(self.world.physics.has_body(vehicle.body))
        self.assertIsNone(self.world.get_vehicle(vehicle.vehicle_id))
        self.world.tick(TICK_MS)
        self.assertFalse(self.world.physics.has_body(vehicle.body))


class RequestProtocolTests(unittest.TestCase):
    def setUp(self) -> None:
        self.world = World(seed=3)
        self.vehicle, _ = _spawn(self.world)

    def _sent(self, wanted: bytes) -> None:
        self.vehicle.wanted_request = wanted
        self.vehicle.current_request = wanted
        self.vehicle.request_state = RequestState.REQ_SENT

    def test_ack_then_accept(self) -> None:
        self._sent(b"R\x05")
        self.vehicle._handle_message(ACCEPTED)
        self.assertEqual(self.vehicle.request_state, RequestState.REQ_SENT)
        self.vehicle._handle_message(ACK)
        self.vehicle._handle_message(ACCEPTED)
        self.assertEqual(self.vehicle.request_state, RequestState.REQ_ACCEPTED)

    def test_accept_for_stale_request_restarts(self) -> None:
        self._sent(b"R\x05")
        self.vehicle._handle_message(ACK)
        self.vehicle.wanted_request = b"R\x06"
        self.vehicle._handle_message(ACCEPTED)
        self.assertEqual(self.vehicle.request_state, RequestState.REQ_INIT)

    def test_reject_clears_current_request(self) -> None:
        self._sent(b"R\x05")
        self.vehicle._handle_message(ACK)
        self.vehicle._handle_message(REJECTED)
        self.assertEqual(self.vehicle.request_state, RequestState.REQ_INIT)
        self.assertEqual(self.vehicle.current_request, b"")

    def test_unknown_frame_is_ignored(self) -> None:
        self._sent(b"R\x05")
        self.vehicle._handle_message(b"bogus")
        self.assertEqual(self.vehicle.request_state, RequestState.REQ_SENT)

    def test_full_path_is_reserved_before_entering(self) -> None:
        for _ in range(500):
            self.world.tick(TICK_MS)
            if self.vehicle.state == VehicleState.MOVING:
                break
        self.assertEqual(self.vehicle.state, VehicleState.MOVING)
        self.assertEqual(
            self.world.coordinator.reservation_of(self.vehicle.vehicle_id),
            frozenset(range(5, 10)),
        )
        self.assertTrue(self.vehicle.holds_grant)


if __name__ == "__main__":
    unittest.main()
