"""
Chat Channel Adapter — In-process chat backend.

Provides:
- Per-channel transcripts of everything the bot has sent
- Inbound message queues (buffered until a listener consumes them)
- Reaction and deletion tracking
- Per-channel reaction permissions
- Listener bookkeeping for diagnostics

Used for local development, demos and tests; production backends
implement the same ChannelAdapter hooks against a real platform.
"""
from __future__ import annotations

import asyncio
import structlog
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from models.schemas import ChatMessage, Page
from channels.base import ChannelAdapter, MissingPermissionError, UnknownMessageError

logger = structlog.get_logger()

BOT_AUTHOR_ID = "bot"


class ChatAdapter(ChannelAdapter):
    """
    In-memory chat adapter.

    Features:
    - Messages sent by the bot are kept per channel until deleted
    - Inbound messages queue per channel; unconsumed ones wait for the next listener
    - Reactions are recorded per message id
    - Reaction permission can be revoked per channel
    """

    name = "chat"

    def __init__(self, bot_id: str = BOT_AUTHOR_ID):
        super().__init__()
        self.bot_id = bot_id
        self._transcripts: dict[str, list[ChatMessage]] = defaultdict(list)
        self._inbound: dict[str, asyncio.Queue] = {}
        self._reactions: dict[str, list[str]] = defaultdict(list)
        self._deleted: list[str] = []
        self._no_reactions: set[str] = set()
        self._read_only: set[str] = set()
        self._listeners: dict[str, int] = defaultdict(int)

    # ── Permissions ───────────────────────────────────────────

    def can_add_reactions(self, channel_id: str) -> bool:
        return channel_id not in self._no_reactions

    def set_reaction_permission(self, channel_id: str, allowed: bool) -> None:
        if allowed:
            self._no_reactions.discard(channel_id)
        else:
            self._no_reactions.add(channel_id)

    def set_read_only(self, channel_id: str, read_only: bool = True) -> None:
        """Make every send to this channel fail with a missing-permission error."""
        if read_only:
            self._read_only.add(channel_id)
        else:
            self._read_only.discard(channel_id)

    # ── Outbound hooks ────────────────────────────────────────

    async def _do_send(self, channel_id: str, content: Optional[str], page: Optional[Page]) -> ChatMessage:
        if channel_id in self._read_only:
            raise MissingPermissionError(channel_id, "send messages")
        message = ChatMessage(
            channel_id=channel_id,
            author_id=self.bot_id,
            content=content or "",
            page=page.model_copy(deep=True) if page is not None else None,
        )
        self._transcripts[channel_id].append(message)
        logger.debug("chat_message_sent", channel_id=channel_id, message_id=message.id)
        return message

    async def _do_delete(self, message: ChatMessage) -> None:
        if message.id in self._deleted:
            raise UnknownMessageError(message.id, message.channel_id)
        transcript = self._transcripts.get(message.channel_id, [])
        self._transcripts[message.channel_id] = [m for m in transcript if m.id != message.id]
        self._deleted.append(message.id)

    async def _do_react(self, message: ChatMessage, emoji: str) -> None:
        if not self.can_add_reactions(message.channel_id):
            raise MissingPermissionError(message.channel_id, "add reactions")
        self._reactions[message.id].append(emoji)

    async def _do_edit(self, message: ChatMessage, content: Optional[str], page: Optional[Page]) -> ChatMessage:
        for stored in self._transcripts.get(message.channel_id, []):
            if stored.id == message.id:
                if content is not None:
                    stored.content = content
                if page is not None:
                    stored.page = page.model_copy(deep=True)
                return stored
        raise UnknownMessageError(message.id, message.channel_id)

    # ── Inbound ───────────────────────────────────────────────

    def _queue(self, channel_id: str) -> asyncio.Queue:
        if channel_id not in self._inbound:
            self._inbound[channel_id] = asyncio.Queue()
        return self._inbound[channel_id]

    async def receive(self, message: ChatMessage) -> None:
        """Deliver an inbound message (from a user) to the channel."""
        await self._queue(message.channel_id).put(message)

    def say(self, channel_id: str, author_id: str, content: str) -> ChatMessage:
        """Queue a user message without awaiting; returns the queued message."""
        message = ChatMessage(channel_id=channel_id, author_id=author_id, content=content)
        self._queue(channel_id).put_nowait(message)
        return message

    @asynccontextmanager
    async def listen(self, channel_id: str) -> AsyncIterator[asyncio.Queue]:
        self._listeners[channel_id] += 1
        try:
            yield self._queue(channel_id)
        finally:
            self._listeners[channel_id] -= 1
            if not self._listeners[channel_id]:
                del self._listeners[channel_id]

    def is_listening(self, channel_id: str) -> bool:
        return channel_id in self._listeners

    # ── Inspection ────────────────────────────────────────────

    def transcript(self, channel_id: str) -> list[ChatMessage]:
        """Bot messages currently visible in the channel, oldest first."""
        return list(self._transcripts.get(channel_id, []))

    def reactions(self, message_id: str) -> list[str]:
        return list(self._reactions.get(message_id, []))

    def was_deleted(self, message_id: str) -> bool:
        return message_id in self._deleted

    @property
    def deleted(self) -> list[str]:
        return list(self._deleted)

    async def health_check(self) -> dict[str, Any]:
        base = await super().health_check()
        return {
            **base,
            "channels": len(self._transcripts),
            "listening_channels": len(self._listeners),
            "queued_inbound": sum(q.qsize() for q in self._inbound.values()),
        }
