"""Channel statistics snapshot."""

from __future__ import annotations

from datetime import datetime

import msgspec

__all__ = ['ChannelStats']


class ChannelStats(msgspec.Struct, frozen=True, gc=False):
    """Statistics snapshot for a channel.

    `capacity` is None for unbounded channels. `queue_size` is the number of
    buffered messages (for broadcast channels, the number retained in the ring).
    """

    sender_count: int
    receiver_count: int
    queue_size: int
    capacity: int | None
    senders_closed: bool
    receivers_closed: bool
    created_at: datetime
    high_watermark: int
    total_sent: int
    total_received: int
    blocked_senders: int = 0
