"""
Byte frames exchanged between a vehicle and the intersection host.

Inbound (host → vehicle): ``init``, ``ack``, ``accepted``, ``rejected``.
Outbound (vehicle → host): ``J`` (joined the queue), ``L`` (left) and
reservation frames ``R<tile_lo_byte>...``.
"""

from dataclasses import dataclass
from typing import Iterable, List

INIT = b"init"
ACK = b"ack"
ACCEPTED = b"accepted"
REJECTED = b"rejected"
JOIN = b"J"
LEAVE = b"L"
RESERVATION_TAG = b"R"

# Tile indices travel as their low byte only.
MAX_WIRE_TILES = 256


@dataclass
class Frame:
    """
    A single frame queued on a :class:`bus.channel.MessageChannel`.

    Attributes:
        payload (bytes): Raw frame bytes.
        sender (int): Vehicle id of the channel owner, or -1 for the host.
        sent_ms (int): Simulation time at which the frame was sent.
    """
    payload: bytes
    sender: int
    sent_ms: int = 0

    @property
    def kind(self) -> str:
        """Short frame type: 'R', 'J', 'L', a text command, or '?' if unknown."""
        if is_reservation(self.payload):
            return "R"
        if self.payload in (JOIN, LEAVE, INIT, ACK, ACCEPTED, REJECTED):
            return self.payload.decode("ascii")
        return "?"


def is_reservation(payload: bytes) -> bool:
    return payload[:1] == RESERVATION_TAG


def encode_reservation(tiles: Iterable[int], num_tiles: int = MAX_WIRE_TILES) -> bytes:
    """
    Encode a tile set as a reservation frame.

    Args:
        tiles (Iterable[int]): Tile indices of the request; empty means "release all".
        num_tiles (int): Number of tiles in the grid the indices belong to.

    Returns:
        bytes: ``b'R'`` followed by the sorted low byte of every index.

    Raises:
        ValueError: If the grid has more tiles than one byte can address.
    """
    if num_tiles > MAX_WIRE_TILES:
        raise ValueError(
            f"{num_tiles} tiles do not fit the one-byte reservation frame"
        )
    return RESERVATION_TAG + bytes(sorted({t & 0xFF for t in tiles}))


def decode_reservation(payload: bytes) -> List[int]:
    """
    Decode a reservation frame back into tile indices.

    Args:
        payload (bytes): A frame starting with ``b'R'``.

    Returns:
        List[int]: The tile indices in frame order.
    """
    if not is_reservation(payload):
        raise ValueError(f"not a reservation frame: {payload!r}")
    return list(payload[1:])
