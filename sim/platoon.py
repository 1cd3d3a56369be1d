#!/usr/bin/env python3
"""
sim/platoon.py
==============
Platoon membership: a head vehicle plus an ordered tail on one entry
lane, sharing one aggregate reservation.

Members are referred to by vehicle id; ``lookup(id)`` resolves an id to
the live vehicle.  Each vehicle stores its ``predecessor`` and
``successor`` ids, so removing a vehicle only needs its neighbours
re-linked.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from sim.states import VehicleState

log = logging.getLogger("platoon")


class Platoon:
    """Ordered member list with predecessor/successor links.

    Parameters
    ----------
    platoon_id : int
        Key of the aggregate reservation.
    lane_id : int
        Entry lane the platoon queues on.
    max_size : int
        Maximum members; ``-1`` for no limit.
    lookup : callable
        ``lookup(vehicle_id)`` returning the vehicle or *None*.
    """

    def __init__(
        self,
        platoon_id: int,
        lane_id: int,
        max_size: int,
        lookup: Callable[[int], Any],
    ) -> None:
        self.platoon_id = platoon_id
        self.lane_id = lane_id
        self.max_size = max_size
        self._lookup = lookup
        self.members: List[int] = []
        self.accepted = False

    # ── queries ───────────────────────────────────────────────────────────

    @property
    def head_id(self) -> Optional[int]:
        return self.members[0] if self.members else None

    @property
    def tail_id(self) -> Optional[int]:
        return self.members[-1] if self.members else None

    def head(self) -> Any:
        return self._lookup(self.head_id) if self.members else None

    def is_head(self, vehicle: Any) -> bool:
        return self.head_id == vehicle.vehicle_id

    def size(self) -> int:
        return len(self.members)

    def is_moving(self) -> bool:
        head = self.head()
        return head is not None and head.state > VehicleState.WAITING

    def may_join(self, vehicle: Any) -> bool:
        """True while the head has not entered and there is room left."""
        if vehicle.vehicle_id in self.members:
            return False
        if self.is_moving() or self.accepted:
            return False
        return self.max_size < 0 or len(self.members) < self.max_size

    # ── membership ────────────────────────────────────────────────────────

    def join(self, vehicle: Any) -> None:
        tail = self._lookup(self.tail_id) if self.members else None
        if tail is not None:
            tail.successor = vehicle.vehicle_id
            vehicle.predecessor = tail.vehicle_id
        else:
            vehicle.predecessor = None
        vehicle.successor = None
        vehicle.platoon = self
        self.members.append(vehicle.vehicle_id)
        log.debug(
            "platoon %d: vehicle %d joined (size %d)",
            self.platoon_id, vehicle.vehicle_id, len(self.members),
        )

    def leave(self, vehicle: Any) -> None:
        """Unlink *vehicle*; its successor inherits the head role if needed."""
        vid = vehicle.vehicle_id
        if vid not in self.members:
            return
        pred = self._lookup(vehicle.predecessor) if vehicle.predecessor is not None else None
        succ = self._lookup(vehicle.successor) if vehicle.successor is not None else None
        if pred is not None:
            pred.successor = vehicle.successor
        if succ is not None:
            succ.predecessor = vehicle.predecessor
        was_head = self.head_id == vid
        self.members.remove(vid)
        vehicle.predecessor = None
        vehicle.successor = None
        vehicle.platoon = None
        if was_head and self.members:
            log.debug("platoon %d: vehicle %d is the new head", self.platoon_id, self.members[0])
        log.debug("platoon %d: vehicle %d left", self.platoon_id, vid)

    def chain(self) -> List[int]:
        """Member ids following successor links from the head."""
        out: List[int] = []
        current = self.head()
        while current is not None and len(out) <= len(self.members):
            out.append(current.vehicle_id)
            current = self._lookup(current.successor) if current.successor is not None else None
        return out
