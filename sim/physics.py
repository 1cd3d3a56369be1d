#!/usr/bin/env python3
"""
sim/physics.py
==============
Circular rigid bodies, forward distance sensors and the per-tick physics
step used by :mod:`sim.world`.

The module also keeps the low-level unit and braking helpers shared by
:mod:`sim.traffic_policy` and :mod:`sim.vehicle`, which avoids circular
imports and keeps them easy to unit test.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sim.vector import Vector2D

log = logging.getLogger("physics")


def kmh_to_mps(speed_kmh: float) -> float:
    """Convert km/h to m/s, clamping negatives to zero."""
    return max(0.0, float(speed_kmh)) / 3.6


def braking_distance(speed_mps: float, decel_mps2: float) -> float:
    """Stopping distance assuming constant deceleration.

    Parameters
    ----------
    speed_mps : float
        Current speed in m/s.
    decel_mps2 : float
        Deceleration rate in m/s².

    Returns
    -------
    float
        Distance in metres needed to reach zero speed.
    """
    return (speed_mps * speed_mps) / (2.0 * decel_mps2)


def max_velocity(distance_m: float, decel_mps2: float) -> float:
    """Largest speed from which the vehicle can still stop within *distance_m*.

    Inverse of :func:`braking_distance`; negative distances give ``0``.
    """
    return math.sqrt(2.0 * decel_mps2 * max(0.0, distance_m))


def closest_point_on_line(origin: Vector2D, direction: Vector2D, point: Vector2D) -> Vector2D:
    """Project *point* onto the line through *origin* along unit *direction*."""
    t = Vector2D.diff(point, origin).dot(direction)
    return origin + direction * t


@dataclass
class Body:
    """Circular rigid body.

    Attributes
    ----------
    body_id : str
        Identifier; overlap resolution iterates bodies sorted by it.
    center : Vector2D
        World-space position.
    direction : Vector2D
        Unit heading vector.
    velocity : Vector2D
        Velocity in m/s.
    radius : float
        Disc radius, strictly positive.
    """

    body_id: str
    center: Vector2D = field(default_factory=Vector2D)
    direction: Vector2D = field(default_factory=lambda: Vector2D(1.0, 0.0))
    velocity: Vector2D = field(default_factory=Vector2D)
    radius: float = 1.0

    def __post_init__(self) -> None:
        if self.radius <= 0.0:
            raise ValueError(f"body {self.body_id}: radius must be > 0, got {self.radius}")
        if self.direction.length() == 0.0:
            self.direction = Vector2D(1.0, 0.0)
        self.direction.normalize()

    def speed(self) -> float:
        return self.velocity.length()


@dataclass
class LineIntersection:
    """Where a ray pierces a body disc: entry and exit distances along the ray."""

    body: Body
    distance: float
    exit_distance: float


class DirectionalDistanceSensor:
    """Forward ray sensor attached to a :class:`Body`.

    :meth:`read_value` returns the free distance between the body's
    surface and the nearest other body ahead, clamped to ``max_range``,
    or ``-1`` when nothing is ahead.
    """

    def __init__(self, body: Body, max_range: float = 50.0) -> None:
        self.body = body
        self.max_range = max_range
        self._value = -1.0

    def read_value(self) -> float:
        return self._value

    def update(self, physics: "Physics") -> None:
        hits = physics.compute_line_intersections(
            self.body.center, self.body.direction, exclude=self.body
        )
        nearest = min((h.distance for h in hits if h.distance > 0.0), default=None)
        if nearest is None:
            self._value = -1.0
            return
        self._value = min(self.max_range, max(0.0, nearest - self.body.radius))


class Physics:
    """Registry of bodies and sensors advanced once per tick."""

    def __init__(self) -> None:
        self._bodies: Dict[str, Body] = {}
        self._sensors: List[DirectionalDistanceSensor] = []
        self.overlap_resolutions = 0

    # ── registry ──────────────────────────────────────────────────────────

    def add_body(self, body: Body) -> None:
        self._bodies[body.body_id] = body

    def remove_body(self, body: Body) -> None:
        if self._bodies.get(body.body_id) is body:
            del self._bodies[body.body_id]

    def add_sensor(self, sensor: DirectionalDistanceSensor) -> None:
        if sensor not in self._sensors:
            self._sensors.append(sensor)

    def remove_sensor(self, sensor: DirectionalDistanceSensor) -> None:
        if sensor in self._sensors:
            self._sensors.remove(sensor)

    def has_body(self, body: Body) -> bool:
        return self._bodies.get(body.body_id) is body

    def bodies(self) -> List[Body]:
        return [self._bodies[k] for k in sorted(self._bodies)]

    # ── tick ──────────────────────────────────────────────────────────────

    def simulate(self, dt: float) -> None:
        """Integrate, resolve overlaps, then refresh every sensor."""
        bodies = self.bodies()
        for body in bodies:
            body.center.translate(body.velocity * dt)
            body.direction.normalize()
        self._resolve_overlaps(bodies)
        for sensor in self._sensors:
            sensor.update(self)

    def _resolve_overlaps(self, bodies: List[Body]) -> int:
        """Push overlapping pairs apart by half the penetration depth each.

        One deterministic pass over pairs in body-id order.
        """
        count = 0
        n = len(bodies)
        for i in range(n):
            a = bodies[i]
            for j in range(i + 1, n):
                b = bodies[j]
                axis = Vector2D.diff(a.center, b.center)
                dist = axis.length()
                min_dist = a.radius + b.radius
                if dist >= min_dist:
                    continue
                if dist == 0.0:
                    axis = Vector2D(1.0, 0.0)
                else:
                    axis.scale(1.0 / dist)
                push = (min_dist - dist) / 2.0
                a.center.translate(axis * push)
                b.center.translate(axis * -push)
                count += 1
                log.debug(
                    "overlap %s & %s dist=%.3f push=%.3f",
                    a.body_id, b.body_id, dist, push,
                )
        self.overlap_resolutions += count
        return count

    # ── raycast ───────────────────────────────────────────────────────────

    def compute_line_intersections(
        self,
        origin: Vector2D,
        direction: Vector2D,
        exclude: Optional[Body] = None,
    ) -> List[LineIntersection]:
        """Intersect the ray ``origin + t * direction`` with every body disc.

        Distances are signed: negative when the disc entry lies behind
        *origin*.  Bodies the line misses are left out.
        """
        unit = direction.copy().normalize()
        if unit.length() == 0.0:
            return []
        hits: List[LineIntersection] = []
        for body in self.bodies():
            if body is exclude:
                continue
            to_center = Vector2D.diff(body.center, origin)
            t_closest = to_center.dot(unit)
            d2 = to_center.dot(to_center) - t_closest * t_closest
            r2 = body.radius * body.radius
            if d2 > r2:
                continue
            half = math.sqrt(r2 - d2)
            hits.append(LineIntersection(body, t_closest - half, t_closest + half))
        return hits
