#!/usr/bin/env python3
"""
sim/vehicle.py
==============
Autonomous vehicle: kinematic driver, state machine and the vehicle side
of the reservation protocol.

Each tick :meth:`Vehicle.step` consumes the frames the host delivered,
advances the state machine, picks a target position and steers towards
it without ever exceeding the speed it could still brake from, then
sends a reservation frame if its wanted tile set changed.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, List, Optional, Tuple

from bus.channel import MessageChannel
from bus.message import ACCEPTED, ACK, INIT, JOIN, LEAVE, REJECTED
from sim.network import Lane, Turn
from sim.physics import Body, DirectionalDistanceSensor, closest_point_on_line, max_velocity
from sim.states import RequestState, VehicleState
from sim.traffic_policy import DriverPolicy
from sim.vector import Vector2D

if TYPE_CHECKING:
    from sim.events import EventSink
    from sim.platoon import Platoon
    from sim.world import World

log = logging.getLogger("vehicle")

# Off-screen parking spot for vehicles that are not on the map.
SENTINEL = -1.0e6


class Vehicle:
    """One vehicle driven by a host mote.

    Parameters
    ----------
    vehicle_id : int
        Unique id; also the tie-breaker of the reservation arbiter.
    world : World
        Owning world (physics, intersection, spawner, clock).
    channel : MessageChannel
        Byte channel to the host.
    policy : DriverPolicy or None
        Driver constants; the world's policy when *None*.
    sink : EventSink or None
        Receives spawn, per-tick and state-change events.
    """

    def __init__(
        self,
        vehicle_id: int,
        world: "World",
        channel: MessageChannel,
        policy: Optional[DriverPolicy] = None,
        sink: Optional["EventSink"] = None,
    ) -> None:
        self.vehicle_id = vehicle_id
        self.world = world
        self.channel = channel
        self.policy = policy or world.policy
        self.sink = sink

        self.body = Body(
            body_id=f"{vehicle_id:06d}",
            center=Vector2D(SENTINEL, SENTINEL),
            radius=self.policy.vehicle_radius,
        )
        self.sensor = DirectionalDistanceSensor(self.body, self.policy.sensor_range)

        self.state = VehicleState.INIT
        self.request_state = RequestState.REQ_INIT
        self.wanted_request = b""
        self.current_request = b""
        self.holds_grant = False

        self.current_lane: Optional[Lane] = None
        self.target_lane: Optional[Lane] = None
        self.turn: Optional[Turn] = None
        self.waypoints: List[Vector2D] = []
        self.cursor = 0
        self.start_pos: Optional[Vector2D] = None

        self.platoon: Optional["Platoon"] = None
        self.predecessor: Optional[int] = None
        self.successor: Optional[int] = None

        self.placed = False
        self.destroyed = False
        self.position_known = True
        self.planned_route: Optional[Tuple[Lane, Optional[Lane]]] = None
        self.cycles = 0

    # ── queries ───────────────────────────────────────────────────────────

    @property
    def speed(self) -> float:
        return self.body.velocity.length()

    @property
    def position(self) -> Vector2D:
        return self.body.center

    def remaining_waypoints(self) -> List[Vector2D]:
        return self.waypoints[self.cursor:]

    def is_platoon_head(self) -> bool:
        return self.platoon is not None and self.platoon.is_head(self)

    # ── tick ──────────────────────────────────────────────────────────────

    def step(self, dt: float) -> None:
        if self.destroyed:
            return
        msg = self.channel.receive()
        while msg is not None:
            self._handle_message(msg)
            msg = self.channel.receive()

        self._handle_states()

        if self.placed:
            wanted_pos = self._wanted_position()
            max_brake = Vector2D.distance(wanted_pos, self.body.center) if wanted_pos else 0.0
            reading = self.sensor.read_value()
            if reading >= 0 and not self._on_free_runway():
                # Leave room for the travel before the next reading.
                travel = (self.speed + self.policy.accel * dt) * dt
                free = reading - self.policy.sensor_gap - travel
                max_brake = max(0.0, min(free, max_brake))
            self._drive(dt, wanted_pos, max_brake)

        self._handle_reservation()

        if self.sink is not None and self.placed:
            self.sink.on_step(self.world.time_ms, self)

    # ── messages ──────────────────────────────────────────────────────────

    def _handle_message(self, msg: bytes) -> None:
        if msg == INIT:
            if self.state == VehicleState.INIT:
                self._set_state(VehicleState.INITIALIZED)
        elif msg == ACK:
            if self.request_state == RequestState.REQ_SENT:
                self.request_state = RequestState.REQ_ACKED
        elif msg == ACCEPTED:
            if self.request_state == RequestState.REQ_ACKED:
                if self.wanted_request == self.current_request:
                    self.request_state = RequestState.REQ_ACCEPTED
                else:
                    self.request_state = RequestState.REQ_INIT
        elif msg == REJECTED:
            if self.request_state == RequestState.REQ_ACKED:
                # Forget the refused request so it is sent again.
                self.request_state = RequestState.REQ_INIT
                self.current_request = b""
        else:
            log.debug("vehicle %d: dropped unknown frame %r", self.vehicle_id, msg)

    # ── state machine ─────────────────────────────────────────────────────

    def _set_state(self, new: VehicleState) -> None:
        old = self.state
        if old == new:
            return
        self.state = new
        log.debug("vehicle %d: %s -> %s", self.vehicle_id, old.name, new.name)
        if self.sink is not None:
            self.sink.on_state_change(self.world.time_ms, self, old, new)

    def _handle_states(self) -> None:
        state = self.state
        if state == VehicleState.INITIALIZED:
            if not self.placed and not (self.position_known and self._place()):
                return
            self._set_state(VehicleState.QUEUING)
        elif state == VehicleState.QUEUING:
            if self._ready_to_wait():
                self.channel.send(JOIN)
                self._set_state(VehicleState.WAITING)
                if self._leads_request():
                    self._request_reservation()
        elif state == VehicleState.WAITING:
            if self._leads_request():
                self._request_reservation()
            if self._may_enter():
                self._set_state(VehicleState.MOVING)
        elif state == VehicleState.MOVING:
            self._update_waypoints()
            if self.holds_grant:
                self._request_reservation()
            if self.cursor >= len(self.waypoints):
                self._set_state(VehicleState.LEAVING)
        elif state == VehicleState.LEAVING:
            self.channel.send(LEAVE)
            self._leave_platoon()
            self._clear_requests()
            self._set_state(VehicleState.LEFT)
        elif state == VehicleState.LEFT:
            self._set_state(VehicleState.FINISHED)
        elif state == VehicleState.FINISHED:
            self._respawn()

    def _ready_to_wait(self) -> bool:
        if Vector2D.distance(self.start_pos, self.body.center) < self.policy.start_tolerance:
            return True
        if self.platoon is None or self.is_platoon_head():
            return False
        if self.platoon.accepted:
            return True
        pred = self.world.get_vehicle(self.predecessor) if self.predecessor is not None else None
        return (
            pred is not None
            and pred.state >= VehicleState.WAITING
            and self.speed < self.policy.standstill_speed
        )

    def _leads_request(self) -> bool:
        return self.platoon is None or self.is_platoon_head()

    def _may_enter(self) -> bool:
        if self._leads_request():
            if self.request_state != RequestState.REQ_ACCEPTED:
                return False
            self.holds_grant = True
            if self.platoon is not None:
                self.platoon.accepted = True
            return True
        return self.platoon.accepted

    # ── placement ─────────────────────────────────────────────────────────

    def _place(self) -> bool:
        route = self.planned_route
        found = self.world.get_free_position(route[0] if route else None, exclude=self.body)
        if found is None:
            log.debug("vehicle %d: no free entry position, retrying", self.vehicle_id)
            return False
        lane, pos = found
        intersection = lane.intersection
        if route and route[1] is not None:
            target = route[1]
        else:
            target = self.world.rng.choice(intersection.possible_lanes(lane))
        self.planned_route = None

        self.current_lane = lane
        self.target_lane = target
        self.turn = lane.turn_to(target)
        self.waypoints = lane.waypoints(target)
        self.cursor = 0
        self.start_pos = lane.end_pos.copy()

        self.body.center.set(pos.x, pos.y)
        self.body.direction = lane.direction.copy()
        self.body.velocity.set(0.0, 0.0)
        self.world.attach(self)
        self.placed = True
        self.cycles += 1

        coordinator = intersection.coordinator
        if coordinator is not None and coordinator.supports_platoons:
            coordinator.assign(self, lane.lane_id)

        log.info(
            "vehicle %d placed on lane %d -> %d (%s)",
            self.vehicle_id, lane.lane_id, target.lane_id, self.turn.name,
        )
        if self.sink is not None:
            self.sink.on_spawn(self.world.time_ms, self)
        return True

    def _respawn(self) -> None:
        self.world.detach(self)
        self.body.center.set(SENTINEL, SENTINEL)
        self.body.velocity.set(0.0, 0.0)
        self.placed = False
        self.current_lane = None
        self.target_lane = None
        self.waypoints = []
        self.cursor = 0
        self._clear_requests()
        self._set_state(VehicleState.INITIALIZED)

    def _leave_platoon(self) -> None:
        if self.platoon is not None:
            self.platoon.leave(self)

    def _clear_requests(self) -> None:
        self.wanted_request = b""
        self.current_request = b""
        self.request_state = RequestState.REQ_INIT
        self.holds_grant = False

    def destroy(self) -> None:
        """Unlink from the platoon and leave the physics world; idempotent."""
        self._leave_platoon()
        self.world.detach(self)
        self.placed = False
        self.destroyed = True

    # ── reservation ───────────────────────────────────────────────────────

    def _request_reservation(self) -> None:
        """Recompute the wanted tile set from every remaining waypoint.

        A platoon head asks for the union over all members.
        """
        helper = self.current_lane.intersection.map.create_path_helper()
        members: List[Any] = [self]
        if self.platoon is not None:
            members = [self.world.get_vehicle(vid) for vid in self.platoon.members]
        for member in members:
            if member is not None:
                helper.reserve_all(member.remaining_waypoints())
        self.wanted_request = helper.to_frame()
        if (
            self.wanted_request != self.current_request
            and self.request_state == RequestState.REQ_ACCEPTED
        ):
            self.request_state = RequestState.REQ_INIT

    def _handle_reservation(self) -> None:
        if self.wanted_request == self.current_request:
            return
        if self.request_state != RequestState.REQ_SENT:
            self.current_request = self.wanted_request
            self.channel.send(self.current_request)
            self.request_state = RequestState.REQ_SENT

    # ── waypoint following ────────────────────────────────────────────────

    def _wanted_position(self) -> Optional[Vector2D]:
        state = self.state
        if state == VehicleState.QUEUING:
            return self.start_pos
        if state == VehicleState.WAITING:
            if Vector2D.distance(self.start_pos, self.body.center) > self.policy.waiting_dead_zone:
                return self.start_pos
            return None
        if state in (VehicleState.MOVING, VehicleState.LEAVING, VehicleState.LEFT):
            return self._next_waypoint()
        return None

    def _update_waypoints(self) -> None:
        if self.cursor >= len(self.waypoints):
            return
        if Vector2D.distance(self.waypoints[self.cursor], self.body.center) < self.policy.waypoint_reach:
            self.cursor += 1

    def _runway_start(self) -> int:
        return len(self.waypoints) - self.current_lane.intersection.steps_into_lane

    def _on_free_runway(self) -> bool:
        return (
            self.state == VehicleState.MOVING
            and self.target_lane is not None
            and not self.target_lane.is_final_end_lane
            and self.cursor >= self._runway_start()
        )

    def _next_waypoint(self) -> Optional[Vector2D]:
        """Current waypoint, or a later one still on the current ray."""
        if self.cursor >= len(self.waypoints):
            return None
        target = self.waypoints[self.cursor]
        origin_dir = Vector2D.diff(target, self.body.center)
        if origin_dir.length() == 0.0:
            return target
        origin_dir.normalize()

        limit = len(self.waypoints)
        if self.target_lane is None or not self.target_lane.is_final_end_lane:
            limit = self._runway_start()
        i = self.cursor + 1
        while i < limit:
            candidate = self.waypoints[i]
            if Vector2D.diff(candidate, self.body.center).dot(origin_dir) < 0.0:
                break
            foot = closest_point_on_line(self.body.center, origin_dir, candidate)
            if Vector2D.distance(foot, candidate) >= self.policy.lookahead:
                break
            target = candidate
            i += 1
        return target

    # ── kinematics ────────────────────────────────────────────────────────

    def _drive(self, dt: float, wanted_pos: Optional[Vector2D], max_brake: float) -> None:
        wanted_dir = None
        wanted_vel = 0.0
        if wanted_pos is not None:
            wanted_dir = Vector2D.diff(wanted_pos, self.body.center)
            a = Vector2D.angle(self.body.direction, wanted_dir)
            wanted_vel = self.policy.max_speed
            if max_brake >= 0.0:
                wanted_vel = min(wanted_vel, max_velocity(max_brake, self.policy.decel))
            penalty = (abs(a) / self.policy.max_turn) ** (1.0 / 3.0)
            wanted_vel *= 1.0 - min(1.0, penalty)
        self._handle_vehicle(dt, wanted_dir, wanted_vel)

    def _handle_vehicle(self, dt: float, wanted_dir: Optional[Vector2D], wanted_vel: float) -> None:
        body = self.body
        vel = body.velocity
        direction = body.direction

        if wanted_dir is not None and wanted_dir.length() > 0.0:
            a = Vector2D.angle(direction, wanted_dir)
            turn = math.copysign(min(abs(a), dt * self.policy.max_turn), a)
            direction.rotate(turn)
            vel.rotate(turn)
            direction.normalize()

        x = wanted_vel - vel.length()
        if x > self.policy.accel * dt:
            vel.translate(direction * (self.policy.accel * dt))
        elif x <= 0.0:
            if vel.length() > self.policy.decel * dt:
                vel.translate(direction * (-self.policy.decel * dt))
            else:
                vel.set(0.0, 0.0)

        # Keep the velocity on the heading and within the speed limit.
        speed = min(self.policy.max_speed, vel.dot(direction))
        vel.set(direction.x * max(0.0, speed), direction.y * max(0.0, speed))

    def __repr__(self) -> str:
        return f"Vehicle({self.vehicle_id}, {self.state.name})"
