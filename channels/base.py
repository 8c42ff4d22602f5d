"""
Channel Adapters — Base infrastructure for every chat backend a menu can run on.

Provides:
- ChannelError: structured error hierarchy (with platform error codes)
- ChannelMetrics: per-adapter send/fail/delete/reaction tracking
- ChannelAdapter: abstract base wrapping send/delete/react/edit with
  validation, metrics and delayed deletion
"""
from __future__ import annotations

import abc
import asyncio
import structlog
from typing import Any, AsyncContextManager, Optional

from models.schemas import ChatMessage, Page

logger = structlog.get_logger()

MISSING_PERMISSIONS = 50013
UNKNOWN_MESSAGE = 10008
EMPTY_MESSAGE = 50006


# ══════════════════════════════════════════════════════════════
#  ERRORS
# ══════════════════════════════════════════════════════════════

class ChannelError(Exception):
    """Base exception for all channel operations."""

    def __init__(self, message: str, channel: str = "", code: Optional[int] = None,
                 retryable: bool = False):
        self.channel = channel
        self.code = code
        self.retryable = retryable
        super().__init__(message)


class MissingPermissionError(ChannelError):
    def __init__(self, channel: str = "", action: str = ""):
        super().__init__(f"Missing permissions to {action or 'act'} in {channel}",
                         channel, code=MISSING_PERMISSIONS)


class UnknownMessageError(ChannelError):
    def __init__(self, message_id: str, channel: str = ""):
        self.message_id = message_id
        super().__init__(f"Unknown message {message_id}", channel, code=UNKNOWN_MESSAGE)


class EmptyMessageError(ChannelError):
    def __init__(self, channel: str = ""):
        super().__init__("Cannot send an empty message", channel, code=EMPTY_MESSAGE)


def is_missing_permission(error: BaseException) -> bool:
    return getattr(error, "code", None) == MISSING_PERMISSIONS


# ══════════════════════════════════════════════════════════════
#  CHANNEL METRICS
# ══════════════════════════════════════════════════════════════

class ChannelMetrics:
    """Tracks per-adapter send, failure, deletion and reaction counts."""

    def __init__(self, adapter_name: str):
        self.adapter_name = adapter_name
        self.messages_sent: int = 0
        self.messages_failed: int = 0
        self.messages_deleted: int = 0
        self.reactions_added: int = 0
        self._errors: list[str] = []

    def record_send(self):
        self.messages_sent += 1

    def record_failure(self, error: str = ""):
        self.messages_failed += 1
        if error:
            self._errors.append(error)

    def record_delete(self):
        self.messages_deleted += 1

    def record_reaction(self):
        self.reactions_added += 1

    @property
    def failure_rate(self) -> float:
        total = self.messages_sent + self.messages_failed
        return self.messages_failed / total if total > 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "adapter": self.adapter_name,
            "sent": self.messages_sent,
            "failed": self.messages_failed,
            "deleted": self.messages_deleted,
            "reactions": self.reactions_added,
            "failure_rate": round(self.failure_rate, 4),
            "recent_errors": self._errors[-10:],
        }


# ══════════════════════════════════════════════════════════════
#  CHANNEL ADAPTER — Abstract Base
# ══════════════════════════════════════════════════════════════

class ChannelAdapter(abc.ABC):
    """
    Base class for all channel adapters.

    Subclasses implement the _do_* hooks, the permission check and
    `listen`. The base class validates outbound content, tracks metrics,
    and schedules delayed deletions so callers never have to sleep.
    """

    name: str = "base"

    def __init__(self):
        self._metrics = ChannelMetrics(self.name)
        self._pending_deletes: set[asyncio.Task] = set()

    # ── Abstract hooks ────────────────────────────────────────

    @abc.abstractmethod
    async def _do_send(self, channel_id: str, content: Optional[str], page: Optional[Page]) -> ChatMessage:
        ...

    @abc.abstractmethod
    async def _do_delete(self, message: ChatMessage) -> None:
        ...

    @abc.abstractmethod
    async def _do_react(self, message: ChatMessage, emoji: str) -> None:
        ...

    @abc.abstractmethod
    async def _do_edit(self, message: ChatMessage, content: Optional[str], page: Optional[Page]) -> ChatMessage:
        ...

    @abc.abstractmethod
    def can_add_reactions(self, channel_id: str) -> bool:
        """Whether the bot may add reactions and read history in this channel."""
        ...

    @abc.abstractmethod
    def listen(self, channel_id: str) -> AsyncContextManager[asyncio.Queue]:
        """Async context manager yielding a queue of inbound ChatMessages."""
        ...

    # ── Public API ────────────────────────────────────────────

    async def send(self, channel_id: str, content: Optional[str] = None, page: Optional[Page] = None) -> ChatMessage:
        if not content and page is None:
            self._metrics.record_failure("empty_message")
            raise EmptyMessageError(channel_id)
        try:
            message = await self._do_send(channel_id, content, page)
        except ChannelError as e:
            self._metrics.record_failure(str(e))
            raise
        self._metrics.record_send()
        return message

    async def delete(self, message: ChatMessage, delay: Optional[float] = None) -> None:
        """Delete a message now, or schedule its deletion after `delay` seconds."""
        if delay:
            task = asyncio.get_running_loop().create_task(self._delete_later(message, delay))
            self._pending_deletes.add(task)
            task.add_done_callback(self._pending_deletes.discard)
            return
        await self._do_delete(message)
        self._metrics.record_delete()

    async def _delete_later(self, message: ChatMessage, delay: float) -> None:
        await asyncio.sleep(delay)
        try:
            await self.delete(message)
        except ChannelError as e:
            logger.warning("delayed_delete_failed",
                           channel_id=message.channel_id,
                           message_id=message.id,
                           error=str(e))

    async def react(self, message: ChatMessage, emoji: str) -> None:
        await self._do_react(message, emoji)
        self._metrics.record_reaction()

    async def edit(self, message: ChatMessage, content: Optional[str] = None, page: Optional[Page] = None) -> ChatMessage:
        return await self._do_edit(message, content, page)

    # ── Health / lifecycle ────────────────────────────────────

    @property
    def pending_deletes(self) -> int:
        return len(self._pending_deletes)

    async def health_check(self) -> dict[str, Any]:
        return {
            "adapter": self.name,
            "pending_deletes": self.pending_deletes,
            "metrics": self._metrics.to_dict(),
        }

    async def shutdown(self) -> None:
        """Cancel any deletions that have not fired yet."""
        for task in list(self._pending_deletes):
            task.cancel()
        if self._pending_deletes:
            await asyncio.gather(*self._pending_deletes, return_exceptions=True)
        self._pending_deletes.clear()


