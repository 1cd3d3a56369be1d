"""
bus: Byte-frame transport between vehicles and the intersection host
====================================================================

Provides the per-vehicle message channel with next-tick visibility, the
frame vocabulary of the reservation protocol, and the host adapter
records (mote, position).

Modules
-------
message
    Frame constants, :class:`Frame`, reservation frame codec.
channel
    :class:`MessageChannel` send / receive / deliver / poll transport.
metrics
    :class:`BusMetrics` counter snapshot.
host
    :class:`Position` and :class:`Mote` host adapter records.
"""

from .message import (
    ACCEPTED,
    ACK,
    INIT,
    JOIN,
    LEAVE,
    REJECTED,
    Frame,
    decode_reservation,
    encode_reservation,
    is_reservation,
)
from .channel import MessageChannel
from .metrics import BusMetrics
from .host import Mote, Position

__all__ = [
    "ACCEPTED",
    "ACK",
    "INIT",
    "JOIN",
    "LEAVE",
    "REJECTED",
    "Frame",
    "decode_reservation",
    "encode_reservation",
    "is_reservation",
    "MessageChannel",
    "BusMetrics",
    "Mote",
    "Position",
]
