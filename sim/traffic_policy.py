#!/usr/bin/env python3
"""
sim/traffic_policy.py
=====================
Tunable driver, geometry and coordination parameters for the intersection
simulation.  Every constant lives in the frozen :class:`DriverPolicy`
dataclass so that experiments can swap policies without touching code.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from sim.physics import kmh_to_mps


@dataclass(frozen=True)
class DriverPolicy:
    """Immutable bag of every tunable simulation parameter.

    Groups: longitudinal control, geometry, sensing, waypoint following,
    spawning, coordination.
    """

    # ── Longitudinal control ──────────────────────────────────────────────
    accel: float = 2.0
    """Acceleration in m/s²."""

    decel: float = 4.0
    """Braking deceleration in m/s²; also the constant of the brake law."""

    max_speed: float = kmh_to_mps(50.0)
    """Top speed in m/s (50 km/h)."""

    max_turn: float = math.pi / 2.0
    """Maximum steering rate in rad/s."""

    # ── Geometry ──────────────────────────────────────────────────────────
    scale: float = 3.0
    """World units per tile side."""

    steps_into_lane: int = 3
    """Waypoints appended past the exit border (the exit runway)."""

    vehicle_radius: float = 1.0
    """Radius of every vehicle body."""

    # ── Sensing ───────────────────────────────────────────────────────────
    sensor_range: float = 50.0
    """Maximum reading of the forward distance sensor."""

    sensor_brake_factor: float = 2.5
    """Gap kept to the body ahead, in multiples of the own radius."""

    # ── Waypoint following ────────────────────────────────────────────────
    waypoint_reach_factor: float = 0.5
    """A waypoint counts as reached within this many tiles."""

    lookahead_factor: float = 0.1
    """Waypoints within this many tiles of the current ray are skipped."""

    start_tolerance: float = 0.2
    """Distance to the start position that ends queuing."""

    waiting_dead_zone_factor: float = 0.1
    """While waiting, the start position is only re-targeted beyond this many tiles."""

    standstill_speed: float = 0.05
    """Speeds below this count as stopped."""

    # ── Spawning ──────────────────────────────────────────────────────────
    spawn_clearance: float = 1.5
    """Gap left in front of a newly placed vehicle."""

    # ── Coordination ──────────────────────────────────────────────────────
    green_ms: int = 10_000
    """Green duration of each approach group of the traffic-light variant."""

    platoon_size: int = 3
    """Maximum platoon members; ``-1`` removes the bound."""

    @property
    def waypoint_reach(self) -> float:
        return self.waypoint_reach_factor * self.scale

    @property
    def lookahead(self) -> float:
        return self.lookahead_factor * self.scale

    @property
    def waiting_dead_zone(self) -> float:
        return self.waiting_dead_zone_factor * self.scale

    @property
    def sensor_gap(self) -> float:
        return self.sensor_brake_factor * self.vehicle_radius
