"""
Channel-busy tracker — blocks unrelated commands in a channel while a menu
is collecting input there.

One tracker is shared by every menu of a process and handed to them through
MenuServices; command dispatchers consult `is_busy` before running.
"""
from __future__ import annotations

import structlog

logger = structlog.get_logger()


class ChannelBusyTracker:
    def __init__(self):
        self._busy: set[str] = set()

    def mark_busy(self, channel_id: str) -> None:
        self._busy.add(channel_id)
        logger.debug("channel_marked_busy", channel_id=channel_id)

    def clear_busy(self, channel_id: str) -> None:
        self._busy.discard(channel_id)
        logger.debug("channel_cleared_busy", channel_id=channel_id)

    def is_busy(self, channel_id: str) -> bool:
        return channel_id in self._busy

    @property
    def count(self) -> int:
        return len(self._busy)
