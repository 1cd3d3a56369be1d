#!/usr/bin/env python3
"""
sim/arbiter.py
==============
Local host-side shim between the vehicles' byte channels and the
reservation coordinator.

Every reservation frame is answered with ``ack`` followed by
``accepted`` or ``rejected``; a deferred request only gets the ``ack``
until the coordinator grants it later.  Vehicles are served in
ascending id order and each vehicle's frames in send order, which makes
arbitration deterministic.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional

from bus.message import ACCEPTED, ACK, JOIN, LEAVE, REJECTED, Frame, decode_reservation
from bus.metrics import BusMetrics
from sim.reservation import ReservationCoordinator, Verdict

log = logging.getLogger("arbiter")


class IntersectionArbiter:
    """Turns vehicle frames into coordinator calls and replies."""

    def __init__(
        self,
        coordinator: ReservationCoordinator,
        metrics: Optional[BusMetrics] = None,
    ) -> None:
        self.coordinator = coordinator
        self.metrics = metrics or BusMetrics()

    def process(self, vehicles: Iterable[Any]) -> None:
        for vehicle in sorted(vehicles, key=lambda v: v.vehicle_id):
            for frame in vehicle.channel.poll_uplink():
                self._handle(vehicle, frame)

    def advance(self, dt_ms: int, lookup: Callable[[int], Any]) -> None:
        """Advance the coordinator clock and announce deferred grants."""
        for vehicle_id in self.coordinator.advance(dt_ms):
            vehicle = lookup(vehicle_id)
            if vehicle is not None:
                log.debug("late grant for vehicle %d", vehicle_id)
                vehicle.channel.deliver(ACCEPTED)

    def _handle(self, vehicle: Any, frame: Frame) -> None:
        kind = frame.kind
        vid = vehicle.vehicle_id
        if kind == "R":
            tiles = decode_reservation(frame.payload)
            lane = vehicle.current_lane.arm if vehicle.current_lane is not None else None
            verdict = self.coordinator.submit(vid, tiles, lane)
            self.metrics.reservations += 1
            vehicle.channel.deliver(ACK)
            if verdict is Verdict.ACCEPT:
                vehicle.channel.deliver(ACCEPTED)
            elif verdict is Verdict.REJECT:
                self.metrics.rejected += 1
                vehicle.channel.deliver(REJECTED)
            log.debug("vehicle %d requested %s -> %s", vid, tiles, verdict.name)
        elif frame.payload == JOIN:
            log.debug("vehicle %d joined the queue", vid)
        elif frame.payload == LEAVE:
            self.coordinator.release(vid)
            log.debug("vehicle %d left", vid)
        else:
            self.metrics.dropped_unknown += 1
            log.debug("vehicle %d: dropped unknown frame %r", vid, frame.payload)
