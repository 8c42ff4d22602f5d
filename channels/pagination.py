"""
Page Controls — reaction-driven page flipping for sent menus.

A menu with more than one page registers its pages here keyed by the sent
message's id. When a user clicks ◀ or ▶ on that message, `on_reaction`
moves the position and edits the message to show the new page.

Entries expire after a TTL so long-lived processes do not accumulate every
menu ever sent.
"""
from __future__ import annotations

import time
import structlog
from dataclasses import dataclass, field
from typing import Optional

from models.schemas import ChatMessage, Page
from channels.base import ChannelAdapter, ChannelError

logger = structlog.get_logger()

PREVIOUS = "◀"
NEXT = "▶"


@dataclass
class PaginatedEntry:
    pages: list[Page]
    position: int = 0
    registered_at: float = field(default_factory=time.monotonic)


class PageControls:
    """TTL-bounded registry of paginated messages."""

    def __init__(self, ttl_seconds: float = 3600.0):
        self.ttl = ttl_seconds
        self._entries: dict[str, PaginatedEntry] = {}

    def register(self, message_id: str, pages: list[Page]) -> None:
        self._prune()
        self._entries[message_id] = PaginatedEntry(pages=list(pages), registered_at=time.monotonic())

    def get(self, message_id: str) -> Optional[PaginatedEntry]:
        self._prune()
        return self._entries.get(message_id)

    def remove(self, message_id: str) -> None:
        self._entries.pop(message_id, None)

    def turn(self, message_id: str, emoji: str) -> Optional[Page]:
        """
        Move the position of a registered message.

        Returns the page to display, or None when the message is unknown,
        the emoji is not a control, or the position is already at an edge.
        """
        entry = self.get(message_id)
        if entry is None:
            return None
        if emoji == NEXT:
            target = entry.position + 1
        elif emoji == PREVIOUS:
            target = entry.position - 1
        else:
            return None
        if target < 0 or target >= len(entry.pages):
            return None
        entry.position = target
        return entry.pages[target]

    async def on_reaction(self, adapter: ChannelAdapter, message: ChatMessage, emoji: str) -> bool:
        page = self.turn(message.id, emoji)
        if page is None:
            return False
        try:
            await adapter.edit(message, page=page)
        except ChannelError as e:
            logger.warning("page_turn_failed",
                           channel_id=message.channel_id,
                           message_id=message.id,
                           error=str(e))
            self.remove(message.id)
            return False
        return True

    def _prune(self):
        cutoff = time.monotonic() - self.ttl
        expired = [k for k, e in self._entries.items() if e.registered_at < cutoff]
        for k in expired:
            del self._entries[k]

    @property
    def count(self) -> int:
        return len(self._entries)
