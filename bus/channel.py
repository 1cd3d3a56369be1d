"""
MessageChannel: per-vehicle byte channel between a vehicle and its host.

Frames become visible to the other side only after the next call to
:meth:`MessageChannel.advance`, so a frame sent during tick N is
received no earlier than tick N+1.  Receiving never blocks.
"""

import logging
from collections import deque
from typing import Deque, List, Optional

from .message import Frame
from .metrics import BusMetrics

log = logging.getLogger("channel")

HOST_ID = -1


class MessageChannel:
    """
    Two one-way frame queues, each with an in-flight stage.

    Attributes:
        owner (int): Id of the vehicle (mote) owning the channel.
        metrics (BusMetrics): Shared counters.
    """

    def __init__(self, owner: int, metrics: Optional[BusMetrics] = None):
        """
        Initialize an empty channel.

        Args:
            owner (int): Id of the vehicle using the channel.
            metrics (BusMetrics): Counters to update; a private instance when None.
        """
        self.owner = owner
        self.metrics = metrics or BusMetrics()
        self._now_ms = 0
        self._up_in_flight: List[Frame] = []
        self._uplink: Deque[Frame] = deque()
        self._down_in_flight: List[Frame] = []
        self._downlink: Deque[Frame] = deque()

    # ---------- Vehicle side ----------
    def send(self, payload: bytes) -> None:
        """
        Queue a frame towards the host.

        Args:
            payload (bytes): Raw frame.
        """
        self._up_in_flight.append(Frame(bytes(payload), self.owner, self._now_ms))
        self.metrics.sent += 1
        log.debug("send owner=%d payload=%r", self.owner, payload)

    def receive(self) -> Optional[bytes]:
        """
        Pop the next visible frame from the host.

        Returns:
            Optional[bytes]: The frame, or None if nothing is queued.
        """
        if not self._downlink:
            return None
        return self._downlink.popleft().payload

    # ---------- Host side ----------
    def deliver(self, payload: bytes) -> None:
        """
        Queue a frame towards the vehicle.

        Args:
            payload (bytes): Raw frame.
        """
        self._down_in_flight.append(Frame(bytes(payload), HOST_ID, self._now_ms))
        self.metrics.delivered += 1
        log.debug("deliver owner=%d payload=%r", self.owner, payload)

    def poll_uplink(self) -> List[Frame]:
        """
        Retrieve and clear every visible vehicle frame, in send order.

        Returns:
            List[Frame]: Frames sent before the last advance().
        """
        frames = list(self._uplink)
        self._uplink.clear()
        return frames

    # ---------- Clock ----------
    def advance(self, now_ms: int) -> None:
        """
        Make every in-flight frame visible to its receiver.

        Args:
            now_ms (int): Current simulation time; stamps frames sent from now on.
        """
        self._now_ms = now_ms
        self._uplink.extend(self._up_in_flight)
        self._up_in_flight = []
        self._downlink.extend(self._down_in_flight)
        self._down_in_flight = []

    def clear(self) -> None:
        """Drop every queued frame in both directions."""
        self._up_in_flight = []
        self._uplink.clear()
        self._down_in_flight = []
        self._downlink.clear()
