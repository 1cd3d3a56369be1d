"""
Host adapter contract: the position and channel a host keeps per mote.
"""

from dataclasses import dataclass, field
from typing import Optional

from .channel import MessageChannel


@dataclass
class Position:
    """
    Mote position as seen by the host.

    Attributes:
        x (float): World x in metres.
        y (float): World y in metres.
        z (float): Unused by the intersection, kept for the host.
    """
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass
class Mote:
    """
    One host mote driving a vehicle.

    Attributes:
        mote_id (int): Host identifier.
        channel (MessageChannel): Byte channel to the vehicle.
        position (Optional[Position]): None until the host knows where the mote is.
    """
    mote_id: int
    channel: MessageChannel
    position: Optional[Position] = field(default_factory=Position)
