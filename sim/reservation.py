#!/usr/bin/env python3
"""
sim/reservation.py
==================
Tile-ownership arbitration for one intersection.

Three interchangeable coordinators share the :class:`ReservationCoordinator`
interface:

* :class:`ChaosCoordinator`: first come, first served on free tiles.
* :class:`TrafficLightCoordinator`: round-robin green phases per
  approach group; requests from red approaches are deferred.
* :class:`PlatoonCoordinator`: chaos arbitration keyed by platoon, so a
  head vehicle reserves on behalf of its whole platoon.

Every coordinator keeps the reservation invariant: a tile has at most
one owner at any time.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Hashable, Iterable, List, Optional, Set, Tuple

from sim.platoon import Platoon
from sim.traffic_policy import DriverPolicy

log = logging.getLogger("reservation")

_EMPTY: FrozenSet[int] = frozenset()


class Verdict(Enum):
    ACK = "ack"
    ACCEPT = "accept"
    REJECT = "reject"


class ReservationCoordinator:
    """Grant table shared by every variant.

    Grants are stored under a key (the vehicle id by default) and mirrored
    in a tile → key owner map.
    """

    supports_platoons = False
    name = "base"

    def __init__(self, policy: Optional[DriverPolicy] = None) -> None:
        self.policy = policy or DriverPolicy()
        self.now_ms = 0
        self._grants: Dict[Hashable, FrozenSet[int]] = {}
        self._owner: Dict[int, Hashable] = {}

    # ── public interface ──────────────────────────────────────────────────

    def submit(self, vehicle_id: int, tiles: Iterable[int], lane: Optional[str] = None) -> Verdict:
        raise NotImplementedError

    def release(self, vehicle_id: int) -> None:
        """Drop every tile held for *vehicle_id*; releasing twice is a no-op."""
        self._drop(self._key(vehicle_id))

    def advance(self, dt_ms: int) -> List[int]:
        """Move the coordinator clock; returns vehicles accepted meanwhile."""
        self.now_ms += dt_ms
        return []

    def reservation_of(self, vehicle_id: int) -> FrozenSet[int]:
        return self._grants.get(self._key(vehicle_id), _EMPTY)

    def owners(self) -> Dict[int, Hashable]:
        """Snapshot of tile → owner key."""
        return dict(self._owner)

    def owner_of(self, tile: int) -> Optional[Hashable]:
        return self._owner.get(tile)

    def describe(self) -> Dict[str, Any]:
        return {"type": self.name, "grants": len(self._grants)}

    # ── grant table ───────────────────────────────────────────────────────

    def _key(self, vehicle_id: int) -> Hashable:
        return vehicle_id

    def _conflicts(self, key: Hashable, tiles: FrozenSet[int]) -> Set[int]:
        return {t for t in tiles if self._owner.get(t, key) != key}

    def _grant(self, key: Hashable, tiles: FrozenSet[int]) -> None:
        """Replace the grant of *key*; dropped tiles become free."""
        old = self._grants.get(key, _EMPTY)
        for tile in old - tiles:
            del self._owner[tile]
        for tile in tiles:
            self._owner[tile] = key
        if tiles:
            self._grants[key] = tiles
        else:
            self._grants.pop(key, None)
        if old != tiles:
            log.debug("grant %s: %s", key, sorted(tiles))

    def _drop(self, key: Hashable) -> None:
        old = self._grants.pop(key, None)
        if old is None:
            return
        for tile in old:
            if self._owner.get(tile) == key:
                del self._owner[tile]
        log.debug("release %s: %d tiles", key, len(old))


class ChaosCoordinator(ReservationCoordinator):
    """First-come wins; a request is accepted iff none of its tiles is taken.

    A later request from the same key replaces the earlier grant.  If any
    new tile is contended the replacement is rejected as a whole and the
    old grant stays.  Simultaneous requests are ordered by the caller
    (ascending vehicle id), so the lower id wins.
    """

    name = "chaos"

    def submit(self, vehicle_id: int, tiles: Iterable[int], lane: Optional[str] = None) -> Verdict:
        key = self._key(vehicle_id)
        wanted = frozenset(tiles)
        if not wanted:
            self._drop(key)
            return Verdict.ACCEPT
        contended = self._conflicts(key, wanted)
        if contended:
            log.debug("reject %s: contended tiles %s", key, sorted(contended))
            return Verdict.REJECT
        self._grant(key, wanted)
        return Verdict.ACCEPT


# Approach groups sharing a green phase.
LIGHT_GROUPS: Tuple[Tuple[str, ...], ...] = (("W", "E"), ("N", "S"))


class TrafficLightCoordinator(ReservationCoordinator):
    """Round-robin green phases over :data:`LIGHT_GROUPS`.

    A request from a green approach whose tiles are free is accepted at
    once; anything else is acknowledged and kept pending until a later
    :meth:`advance` finds its approach green and its tiles free.  Shrinking
    an existing grant is always accepted.
    """

    name = "traffic_light"

    def __init__(self, policy: Optional[DriverPolicy] = None) -> None:
        super().__init__(policy)
        self.green_ms = max(1, int(self.policy.green_ms))
        self._pending: Dict[int, Tuple[FrozenSet[int], Optional[str]]] = {}

    @property
    def phase(self) -> int:
        return (self.now_ms // self.green_ms) % len(LIGHT_GROUPS)

    def green_arms(self) -> Tuple[str, ...]:
        return LIGHT_GROUPS[self.phase]

    def is_green(self, lane: Optional[str]) -> bool:
        return lane is None or lane in self.green_arms()

    def submit(self, vehicle_id: int, tiles: Iterable[int], lane: Optional[str] = None) -> Verdict:
        wanted = frozenset(tiles)
        if not wanted:
            self.release(vehicle_id)
            return Verdict.ACCEPT
        held = self._grants.get(vehicle_id, _EMPTY)
        if held and wanted <= held:
            self._pending.pop(vehicle_id, None)
            self._grant(vehicle_id, wanted)
            return Verdict.ACCEPT
        if self.is_green(lane) and not self._conflicts(vehicle_id, wanted):
            self._pending.pop(vehicle_id, None)
            self._grant(vehicle_id, wanted)
            return Verdict.ACCEPT
        self._pending[vehicle_id] = (wanted, lane)
        log.debug("defer %s on %s (green=%s)", vehicle_id, lane, self.green_arms())
        return Verdict.ACK

    def release(self, vehicle_id: int) -> None:
        self._pending.pop(vehicle_id, None)
        super().release(vehicle_id)

    def advance(self, dt_ms: int) -> List[int]:
        before = self.phase
        super().advance(dt_ms)
        if self.phase != before:
            log.info("traffic light: green for %s", "/".join(self.green_arms()))
        accepted: List[int] = []
        for vehicle_id, (wanted, lane) in list(self._pending.items()):
            if self.is_green(lane) and not self._conflicts(vehicle_id, wanted):
                del self._pending[vehicle_id]
                self._grant(vehicle_id, wanted)
                accepted.append(vehicle_id)
        return accepted

    def describe(self) -> Dict[str, Any]:
        info = super().describe()
        info["green"] = list(self.green_arms())
        info["pending"] = len(self._pending)
        return info


class PlatoonCoordinator(ChaosCoordinator):
    """Chaos arbitration over platoon-wide grants.

    Vehicles are assigned to a platoon of their entry lane when they are
    placed.  Requests of any member update the platoon grant, which is
    released once its last member has left.
    """

    supports_platoons = True
    name = "platoon"

    def __init__(
        self,
        policy: Optional[DriverPolicy] = None,
        lookup: Optional[Callable[[int], Any]] = None,
    ) -> None:
        super().__init__(policy)
        self.max_size = self.policy.platoon_size
        self._lookup = lookup or (lambda _vid: None)
        self._platoon_of: Dict[int, Platoon] = {}
        self._open: Dict[int, Platoon] = {}
        self._next_id = 0

    def _key(self, vehicle_id: int) -> Hashable:
        platoon = self._platoon_of.get(vehicle_id)
        if platoon is None:
            return vehicle_id
        return ("platoon", platoon.platoon_id)

    def assign(self, vehicle: Any, lane_id: int) -> Platoon:
        """Join the open platoon of *lane_id*, or start a new one."""
        platoon = self._open.get(lane_id)
        if platoon is None or not platoon.may_join(vehicle):
            platoon = Platoon(self._next_id, lane_id, self.max_size, self._lookup)
            self._next_id += 1
            self._open[lane_id] = platoon
        platoon.join(vehicle)
        self._platoon_of[vehicle.vehicle_id] = platoon
        return platoon

    def platoon_of(self, vehicle_id: int) -> Optional[Platoon]:
        return self._platoon_of.get(vehicle_id)

    def release(self, vehicle_id: int) -> None:
        platoon = self._platoon_of.pop(vehicle_id, None)
        if platoon is None:
            super().release(vehicle_id)
            return
        if any(p is platoon for p in self._platoon_of.values()):
            return
        self._drop(("platoon", platoon.platoon_id))
        if self._open.get(platoon.lane_id) is platoon:
            del self._open[platoon.lane_id]


def make_coordinator(
    kind: str,
    policy: Optional[DriverPolicy] = None,
    lookup: Optional[Callable[[int], Any]] = None,
) -> ReservationCoordinator:
    """Build the coordinator named by the ``intersection_type`` config key."""
    kind = (kind or "").strip().lower()
    if kind == "chaos":
        return ChaosCoordinator(policy)
    if kind == "traffic_light":
        return TrafficLightCoordinator(policy)
    if kind == "platoon":
        return PlatoonCoordinator(policy, lookup)
    raise ValueError(f"unknown intersection type {kind!r}")
