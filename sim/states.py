#!/usr/bin/env python3
"""
sim/states.py
=============
Driver states and reservation sub-states.  The integer values are
ordered so ``state <= VehicleState.WAITING`` means "not yet inside the
intersection".
"""

from __future__ import annotations

from enum import IntEnum


class VehicleState(IntEnum):
    INIT = 0
    INITIALIZED = 1
    QUEUING = 2
    WAITING = 3
    MOVING = 4
    LEAVING = 5
    LEFT = 6
    FINISHED = 7

    @property
    def label(self) -> str:
        """Lower-case name, as written to ``state.csv``."""
        return self.name.lower()


class RequestState(IntEnum):
    REQ_INIT = 0
    REQ_SENT = 1
    REQ_ACKED = 2
    REQ_ACCEPTED = 3
