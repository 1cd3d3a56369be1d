"""
sim/sim_bridge.py
=================
In-process host for :class:`sim.world.World`: creates motes (scripted or
as a Poisson arrival process), owns the simulation clock, flushes the
event log and exports frames.  It either runs synchronously
(:meth:`SimBridge.step`, :meth:`SimBridge.run_for`) or in a background
thread the UI polls for snapshots without blocking.

Public API consumed by :mod:`ui.pygame_view`
--------------------------------------------
* ``get_vehicles()``      → ``List[dict]``
* ``get_intersection()``  → ``dict``
* ``reset()``             → ``None``
* ``set_paused(bool)``    → ``None``
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import replace
from typing import Any, Dict, List, Optional

import numpy as np
import pygame

from bus.channel import MessageChannel
from bus.host import Mote, Position
from bus.message import INIT
from bus.metrics import BusMetrics
from config import (
    DEFAULT_INTERSECTION_SIZE,
    DEFAULT_TICK_MS,
    RANDOM_SEED_OFFSET,
    WINDOW_HEIGHT,
    WINDOW_WIDTH,
    VanetConfig,
)
from sim.events import CsvEventLog
from sim.network import Lane, build_intersection
from sim.traffic_policy import DriverPolicy
from sim.vehicle import Vehicle
from sim.world import World
from ui.pygame_view import TileMapRenderer, save_image

log = logging.getLogger("sim_bridge")

_MS_PER_HOUR = 3_600_000.0


def _vehicle_dict(vehicle: Vehicle) -> Dict[str, Any]:
    body = vehicle.body
    platoon = vehicle.platoon
    return {
        "id": vehicle.vehicle_id,
        "x": body.center.x,
        "y": body.center.y,
        "dir_x": body.direction.x,
        "dir_y": body.direction.y,
        "heading_deg": math.degrees(math.atan2(body.direction.y, body.direction.x)),
        "radius": body.radius,
        "speed": vehicle.speed,
        "state": vehicle.state.name,
        "request_state": vehicle.request_state.name,
        "lane": vehicle.current_lane.lane_id if vehicle.current_lane else None,
        "target": vehicle.target_lane.lane_id if vehicle.target_lane else None,
        "turn": vehicle.turn.name if vehicle.turn else None,
        "sensor": vehicle.sensor.read_value(),
        "platoon": platoon.platoon_id if platoon else None,
        "route": [(p.x, p.y) for p in vehicle.remaining_waypoints()],
    }


class SimBridge:
    """Simulation host running in the caller's thread or a background one.

    Parameters
    ----------
    config : VanetConfig or None
        Arrival rate, output directories, coordinator type, platoon size, seed.
    policy : DriverPolicy or None
        Driver constants; ``platoon_size`` is taken from *config*.
    tick_ms : int
        Simulated milliseconds per tick.
    intersection_size : int
        Tiles per side of the intersection grid.
    realtime : bool
        When True the background thread paces ticks to wall-clock time.
    """

    def __init__(
        self,
        config: Optional[VanetConfig] = None,
        policy: Optional[DriverPolicy] = None,
        tick_ms: int = DEFAULT_TICK_MS,
        intersection_size: int = DEFAULT_INTERSECTION_SIZE,
        realtime: bool = True,
        frame_size: tuple = (WINDOW_WIDTH, WINDOW_HEIGHT),
    ) -> None:
        self.config = (config or VanetConfig()).validate()
        self.policy = replace(policy or DriverPolicy(), platoon_size=self.config.platoon_size)
        self._tick_ms = int(tick_ms)
        self._size = intersection_size
        self._realtime = realtime
        self._frame_size = frame_size

        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._paused = False

        self._renderer: Optional[TileMapRenderer] = None
        self._frame: Optional[pygame.Surface] = None
        self._build()

    # ── construction ──────────────────────────────────────────────────────────

    def _build(self) -> None:
        seed = self.config.seed + RANDOM_SEED_OFFSET
        self.metrics = BusMetrics()
        self.event_log = CsvEventLog(self.config.log_dir)
        self.world = World(
            intersection=build_intersection(
                size=self._size,
                scale=self.policy.scale,
                steps_into_lane=self.policy.steps_into_lane,
            ),
            policy=self.policy,
            seed=seed,
            coordinator_type=self.config.intersection_type,
            event_log=self.event_log,
            metrics=self.metrics,
        )
        self._arrivals = np.random.default_rng(seed)
        self._motes: Dict[int, Mote] = {}
        self._next_mote_id = 0
        self._next_arrival_ms = self._draw_interarrival()
        self._vehicles: List[Dict[str, Any]] = []
        self._intersection: Dict[str, Any] = {}
        self._snapshot()

    def _draw_interarrival(self) -> Optional[float]:
        rate = self.config.vehicles_per_hour
        if rate <= 0:
            return None
        return float(self._arrivals.exponential(_MS_PER_HOUR / rate))

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Spawn the background simulation thread."""
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(
            target=self._loop, daemon=True, name="SimBridge"
        )
        self._thread.start()
        log.info("SimBridge started, %d ms ticks", self._tick_ms)

    def stop(self) -> None:
        """Signal the thread to stop, wait for it and flush the event log."""
        self._running = False
        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None
        self.event_log.flush()
        log.info("SimBridge stopped at %d ms", self.world.time_ms)

    def reset(self) -> None:
        """Re-initialise the world so the scenario replays from the same seed."""
        with self._lock:
            self.event_log.flush()
            self._build()
        log.info("SimBridge reset")

    def set_paused(self, paused: bool) -> None:
        """Pause / unpause the simulation tick."""
        self._paused = paused

    def is_paused(self) -> bool:
        return self._paused

    # ── Host API ──────────────────────────────────────────────────────────────

    @property
    def total_created(self) -> int:
        return self.world.total_created

    @property
    def time_ms(self) -> int:
        return self.world.time_ms

    def add_motes(
        self,
        count: int = 1,
        entry_lane: Optional[Lane] = None,
        exit_lane: Optional[Lane] = None,
        with_position: bool = True,
    ) -> List[Vehicle]:
        """Create *count* motes, their vehicles, and send each ``init``."""
        created = []
        for _ in range(count):
            mote_id = self._next_mote_id
            self._next_mote_id += 1
            mote = Mote(
                mote_id=mote_id,
                channel=MessageChannel(mote_id, self.metrics),
                position=Position() if with_position else None,
            )
            vehicle = self.world.create(mote, entry_lane, exit_lane)
            self._motes[vehicle.vehicle_id] = mote
            mote.channel.deliver(INIT)
            created.append(vehicle)
        return created

    def remove_mote(self, vehicle_id: int) -> None:
        self._motes.pop(vehicle_id, None)
        self.world.remove(vehicle_id)

    def step(self) -> None:
        """Advance one tick: arrivals, world tick, snapshot, frame export."""
        with self._lock:
            horizon = self.world.time_ms + self._tick_ms
            while self._next_arrival_ms is not None and self._next_arrival_ms <= horizon:
                self.add_motes(1)
                self._next_arrival_ms += self._draw_interarrival()
            self.world.tick(self._tick_ms)
            self._snapshot()
            if self.config.screen_export_dir:
                self._export_frame()

    def run_for(self, seconds: float) -> None:
        """Run ``seconds`` of simulated time synchronously."""
        ticks = int(round(seconds * 1000.0 / self._tick_ms))
        for _ in range(ticks):
            self.step()
        self.event_log.flush()

    # ── Bus adapter API ───────────────────────────────────────────────────────

    def get_vehicles(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._vehicles)

    def get_intersection(self) -> Dict[str, Any]:
        """Return intersection metadata (tiles, owners, lanes, light phase, metrics)."""
        with self._lock:
            return dict(self._intersection)

    # ── Background loop ───────────────────────────────────────────────────────

    def _loop(self) -> None:
        dt = self._tick_ms / 1000.0
        while self._running:
            t0 = time.perf_counter()
            if not self._paused:
                try:
                    self.step()
                except Exception:
                    log.exception("SimBridge tick error")
            if self._realtime:
                time.sleep(max(0.0, dt - (time.perf_counter() - t0)))

    # ── snapshots ─────────────────────────────────────────────────────────────

    def _snapshot(self) -> None:
        world = self.world
        inter = world.intersection
        coordinator = world.coordinator
        lanes = [
            {
                "id": lane.lane_id,
                "arm": lane.arm,
                "entry": lane.is_entry,
                "end": (lane.end_pos.x, lane.end_pos.y),
                "far": lane.far_end().as_tuple(),
            }
            for lane in inter.entry_lanes + inter.exit_lanes
        ]
        describe = coordinator.describe()
        meta: Dict[str, Any] = {
            "time_ms": world.time_ms,
            "width": inter.map.width,
            "height": inter.map.height,
            "scale": inter.map.scale,
            "offset": inter.map.offset.as_tuple(),
            "owners": {tile: str(owner) for tile, owner in coordinator.owners().items()},
            "lanes": lanes,
            "coordinator": describe,
            "green": describe.get("green"),
            "total_created": world.total_created,
            "bus_metrics": self.metrics.report(),
        }
        # Snapshot swap; UI thread reads these via public methods.
        self._vehicles = [_vehicle_dict(v) for v in world.vehicles() if v.placed]
        self._intersection = meta

    def _export_frame(self) -> None:
        if self._renderer is None:
            pygame.font.init()
            self._renderer = TileMapRenderer(*self._frame_size)
            self._frame = pygame.Surface(self._frame_size)
        self._renderer.render(self._frame, self._vehicles, self._intersection)
        save_image(self._frame, self.config.screen_export_dir, self.world.time_ms)
