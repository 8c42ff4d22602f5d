"""
Cleanup Registry — every message a Step or Series caused to appear.

Steps register what they send and what they collect; a Series merges each
Step's registry into its own and deletes everything when it ends. Merging
moves entries: a message is owned by exactly one registry at a time.
"""
from __future__ import annotations

import structlog
from typing import Iterator

from models.schemas import ChatMessage
from channels.base import ChannelAdapter, ChannelError

logger = structlog.get_logger()


class CleanupRegistry:
    def __init__(self, adapter: ChannelAdapter):
        self._adapter = adapter
        self._messages: list[ChatMessage] = []

    def add(self, message: ChatMessage) -> None:
        if any(m.id == message.id for m in self._messages):
            return
        self._messages.append(message)

    def merge(self, other: CleanupRegistry) -> CleanupRegistry:
        """Take over every message tracked by `other`, leaving it empty."""
        if other is self:
            return self
        for message in other._messages:
            self.add(message)
        other._messages.clear()
        return self

    async def delete_all(self) -> int:
        """Delete every tracked message. Returns how many deletions succeeded."""
        messages, self._messages = self._messages, []
        deleted = 0
        for message in messages:
            try:
                await self._adapter.delete(message)
                deleted += 1
            except ChannelError as e:
                logger.warning("cleanup_delete_failed",
                               channel_id=message.channel_id,
                               message_id=message.id,
                               error=str(e))
        if messages:
            logger.debug("cleanup_completed", tracked=len(messages), deleted=deleted)
        return deleted

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(list(self._messages))

    def __contains__(self, message: ChatMessage) -> bool:
        return any(m.id == message.id for m in self._messages)
