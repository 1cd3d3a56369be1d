#!/usr/bin/env python3
"""
sim/world.py
============
Tick driver of one intersection.

The :class:`World` owns the intersection, the physics registry, the
reservation coordinator and the vehicle table.  A host calls
:meth:`World.create` for every new mote, :meth:`World.tick` at a fixed
cadence and :meth:`World.remove` when a mote goes away.

Per tick, in this order: host channels advance and the arbiter answers
the frames that became visible, mote positions are pulled, physics
steps, every vehicle steps, positions are pushed back and the event log
is flushed when the clock crosses a flush boundary.
"""

from __future__ import annotations

import logging
import random
import threading
from typing import Dict, List, Optional, Tuple

from bus.host import Mote
from bus.metrics import BusMetrics
from sim.arbiter import IntersectionArbiter
from sim.events import EventSink
from sim.network import Intersection, Lane, build_intersection
from sim.physics import Body, Physics
from sim.reservation import make_coordinator
from sim.traffic_policy import DriverPolicy
from sim.vector import Vector2D
from sim.vehicle import Vehicle

log = logging.getLogger("world")

# Probe offset past the lane end for free-position raycasts.
_PROBE_OFFSET = 0.5
_MOVED_EPS = 1e-9


class World:
    """Vehicle table, spawner and fixed-order tick driver.

    Parameters
    ----------
    intersection : Intersection or None
        Geometry; a default four-arm grid built from *policy* when *None*.
    policy : DriverPolicy or None
        Tunable constants; uses defaults when *None*.
    seed : int or None
        Seed of :attr:`rng` (lane choice, spawn order).
    coordinator_type : str
        ``chaos``, ``traffic_light`` or ``platoon``.
    event_log : EventSink or None
        Sink attached to every vehicle and flushed on flush boundaries.
    flush_interval_ms : int or None
        Flush period; every tick when *None*.
    metrics : BusMetrics or None
        Shared channel counters.
    """

    def __init__(
        self,
        intersection: Optional[Intersection] = None,
        policy: Optional[DriverPolicy] = None,
        seed: Optional[int] = None,
        coordinator_type: str = "chaos",
        event_log: Optional[EventSink] = None,
        flush_interval_ms: Optional[int] = None,
        metrics: Optional[BusMetrics] = None,
    ) -> None:
        self.policy = policy or DriverPolicy()
        self.intersection = intersection or build_intersection(
            scale=self.policy.scale,
            steps_into_lane=self.policy.steps_into_lane,
        )
        self.rng = random.Random(seed)
        self.physics = Physics()
        self.metrics = metrics or BusMetrics()
        self.coordinator = make_coordinator(coordinator_type, self.policy, self.get_vehicle)
        self.intersection.coordinator = self.coordinator
        self.arbiter = IntersectionArbiter(self.coordinator, self.metrics)
        self.event_log = event_log
        self.flush_interval_ms = flush_interval_ms

        self.time_ms = 0
        self.tick_count = 0
        self.vehicle_failures = 0
        self._vehicles: Dict[int, Vehicle] = {}
        self._motes: Dict[int, Mote] = {}
        self._last_written: Dict[int, Tuple[float, float]] = {}
        self._next_id = 0
        self._lock = threading.Lock()

    # ── queries ───────────────────────────────────────────────────────────

    @property
    def total_created(self) -> int:
        return self._next_id

    def get_vehicle(self, vehicle_id: Optional[int]) -> Optional[Vehicle]:
        if vehicle_id is None:
            return None
        return self._vehicles.get(vehicle_id)

    def vehicles(self) -> List[Vehicle]:
        """Live vehicles in ascending id order."""
        with self._lock:
            return [self._vehicles[k] for k in sorted(self._vehicles)]

    # ── host entry points ─────────────────────────────────────────────────

    def create(
        self,
        mote: Mote,
        entry_lane: Optional[Lane] = None,
        exit_lane: Optional[Lane] = None,
    ) -> Vehicle:
        """Build a vehicle for *mote*, parked at the off-screen sentinel.

        *entry_lane* / *exit_lane* pin the first route; later cycles pick
        random lanes.
        """
        with self._lock:
            vehicle_id = self._next_id
            self._next_id += 1
            vehicle = Vehicle(vehicle_id, self, mote.channel, self.policy, sink=self.event_log)
            if entry_lane is not None:
                vehicle.planned_route = (entry_lane, exit_lane)
            self._vehicles[vehicle_id] = vehicle
            self._motes[vehicle_id] = mote
        self._push_position(vehicle)
        log.info("created vehicle %d for mote %d", vehicle_id, mote.mote_id)
        return vehicle

    def remove(self, vehicle_id: int) -> None:
        """Detach and forget a vehicle; unknown ids are ignored."""
        with self._lock:
            vehicle = self._vehicles.pop(vehicle_id, None)
            self._motes.pop(vehicle_id, None)
            self._last_written.pop(vehicle_id, None)
        if vehicle is None:
            return
        vehicle.destroy()
        self.coordinator.release(vehicle_id)
        log.info("removed vehicle %d", vehicle_id)

    # ── physics registration ──────────────────────────────────────────────

    def attach(self, vehicle: Vehicle) -> None:
        self.physics.add_body(vehicle.body)
        self.physics.add_sensor(vehicle.sensor)

    def detach(self, vehicle: Vehicle) -> None:
        self.physics.remove_sensor(vehicle.sensor)
        self.physics.remove_body(vehicle.body)

    # ── tick ──────────────────────────────────────────────────────────────

    def tick(self, delta_ms: int) -> None:
        vehicles = self.vehicles()
        previous_ms = self.time_ms
        self.time_ms += delta_ms
        self.tick_count += 1
        dt = delta_ms / 1000.0

        for vehicle in vehicles:
            vehicle.channel.advance(self.time_ms)
        self.arbiter.process(vehicles)
        self.arbiter.advance(delta_ms, self.get_vehicle)

        for vehicle in vehicles:
            self._pull_position(vehicle)

        self.physics.simulate(dt)

        for vehicle in vehicles:
            try:
                vehicle.step(dt)
            except Exception:
                self.vehicle_failures += 1
                log.exception("vehicle %d step failed", vehicle.vehicle_id)

        for vehicle in vehicles:
            self._push_position(vehicle)

        if self.event_log is not None:
            interval = self.flush_interval_ms or delta_ms
            if interval > 0 and self.time_ms // interval != previous_ms // interval:
                self.event_log.flush()

    def _pull_position(self, vehicle: Vehicle) -> None:
        mote = self._motes.get(vehicle.vehicle_id)
        if mote is None or mote.position is None:
            vehicle.position_known = False
            return
        vehicle.position_known = True
        last = self._last_written.get(vehicle.vehicle_id)
        if not vehicle.placed or last is None:
            return
        # The host moved the mote since our last write: adopt its position.
        if abs(mote.position.x - last[0]) > _MOVED_EPS or abs(mote.position.y - last[1]) > _MOVED_EPS:
            vehicle.body.center.set(mote.position.x, mote.position.y)

    def _push_position(self, vehicle: Vehicle) -> None:
        mote = self._motes.get(vehicle.vehicle_id)
        if mote is None or mote.position is None:
            return
        mote.position.x = vehicle.body.center.x
        mote.position.y = vehicle.body.center.y
        self._last_written[vehicle.vehicle_id] = (mote.position.x, mote.position.y)

    # ── spawning ──────────────────────────────────────────────────────────

    def get_free_position(
        self,
        lane: Optional[Lane] = None,
        exclude: Optional[Body] = None,
    ) -> Optional[Tuple[Lane, Vector2D]]:
        """Free queuing slot at the tail of *lane*, or of a random entry lane.

        Returns *None* when every candidate lane is full.
        """
        if lane is not None:
            candidates = [lane]
        else:
            entries = self.intersection.entry_lanes
            candidates = self.rng.sample(entries, len(entries))
        for candidate in candidates:
            pos = self._queue_tail(candidate, exclude)
            if pos is not None:
                return candidate, pos
        return None

    def _queue_tail(self, lane: Lane, exclude: Optional[Body] = None) -> Optional[Vector2D]:
        probe = lane.end_pos + lane.direction * _PROBE_OFFSET
        back = -lane.direction
        hits = self.physics.compute_line_intersections(probe, back, exclude=exclude)
        d = max((h.exit_distance for h in hits if h.exit_distance >= 0.0), default=0.0)
        # Clearance is kept surface to surface, so the new centre also sits one
        # radius further back than the last body's far side.
        pos = probe + back * (d + self.policy.spawn_clearance + self.policy.vehicle_radius)
        if Vector2D.distance(pos, lane.end_pos) > lane.length:
            return None
        return pos

    def __repr__(self) -> str:
        return f"World(t={self.time_ms}ms, vehicles={len(self._vehicles)})"
