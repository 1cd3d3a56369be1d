"""
BusMetrics: Tracks simple statistics for the vehicle message channels.
"""


class BusMetrics:
    """
    Tracks metrics for sent, delivered and dropped frames.

    One instance is shared by every channel of a world so the host can
    report totals.

    Attributes:
        sent (int): Frames sent by vehicles towards the host.
        delivered (int): Frames queued by the host towards vehicles.
        reservations (int): Reservation frames handled by the arbiter.
        rejected (int): Reservations answered with ``rejected``.
        dropped_unknown (int): Frames discarded because their type is unknown.
    """

    def __init__(self):
        """Initialize all counters to zero."""
        self.sent = 0
        self.delivered = 0
        self.reservations = 0
        self.rejected = 0
        self.dropped_unknown = 0

    def report(self) -> dict:
        """
        Return a snapshot of current metrics.

        Returns:
            dict: Every counter keyed by its attribute name.
        """
        return {
            "sent": self.sent,
            "delivered": self.delivered,
            "reservations": self.reservations,
            "rejected": self.rejected,
            "dropped_unknown": self.dropped_unknown,
        }
