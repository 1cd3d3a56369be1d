#!/usr/bin/env python3
"""
sim/events.py
=============
Structured vehicle events.

:class:`EventSink` is the hook interface :class:`sim.vehicle.Vehicle`
calls; :class:`CsvEventLog` buffers the three append-only streams and
writes them with the :mod:`csv` module on :meth:`CsvEventLog.flush`:

* ``vehicles.csv``: ``time,id,turn`` once per placement.
* ``state.csv``   : ``time,state_name,padded_id`` per state change.
* ``speed.csv``   : ``time,speed,padded_id`` per tick.
"""

from __future__ import annotations

import csv
import logging
import os
from typing import Any, Dict, List, Optional

from sim.states import VehicleState

log = logging.getLogger("events")

STREAMS = ("vehicles", "state", "speed")


def padded_id(vehicle_id: int) -> str:
    return f"{vehicle_id:06d}"


class EventSink:
    """No-op base; subclasses override the hooks they need."""

    def on_spawn(self, time_ms: int, vehicle: Any) -> None:
        pass

    def on_step(self, time_ms: int, vehicle: Any) -> None:
        pass

    def on_state_change(
        self, time_ms: int, vehicle: Any, old: VehicleState, new: VehicleState
    ) -> None:
        pass

    def flush(self) -> None:
        pass


class CsvEventLog(EventSink):
    """Buffered CSV writer for the vehicle event streams.

    Parameters
    ----------
    log_dir : str or None
        Target directory, created on first flush.  With *None* rows are
        kept in memory instead (see :attr:`history`).
    """

    def __init__(self, log_dir: Optional[str] = None) -> None:
        self.log_dir = log_dir
        self._pending: Dict[str, List[List[Any]]] = {name: [] for name in STREAMS}
        self.history: Dict[str, List[List[Any]]] = {name: [] for name in STREAMS}

    def _add(self, stream: str, row: List[Any]) -> None:
        if self.log_dir is None:
            self.history[stream].append(row)
        else:
            self._pending[stream].append(row)

    def on_spawn(self, time_ms: int, vehicle: Any) -> None:
        turn = vehicle.turn.name if vehicle.turn is not None else ""
        self._add("vehicles", [time_ms, vehicle.vehicle_id, turn])

    def on_step(self, time_ms: int, vehicle: Any) -> None:
        self._add("speed", [time_ms, round(vehicle.speed, 4), padded_id(vehicle.vehicle_id)])

    def on_state_change(
        self, time_ms: int, vehicle: Any, old: VehicleState, new: VehicleState
    ) -> None:
        self._add("state", [time_ms, new.label, padded_id(vehicle.vehicle_id)])

    def rows(self, stream: str) -> List[List[Any]]:
        return list(self.history[stream])

    def flush(self) -> None:
        """Append every buffered row to its ``<stream>.csv`` file."""
        if self.log_dir is None:
            return
        os.makedirs(self.log_dir, exist_ok=True)
        for stream, rows in self._pending.items():
            if not rows:
                continue
            path = os.path.join(self.log_dir, f"{stream}.csv")
            with open(path, "a", newline="") as fh:
                csv.writer(fh).writerows(rows)
            log.debug("flushed %d rows to %s", len(rows), path)
            rows.clear()
