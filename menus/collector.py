"""
Input Collector — a bounded window over a channel's inbound messages.

The collector is one cancellable operation with exactly one terminal
outcome. Iterating it yields accepted messages in arrival order until
either `stop(reason)` is called or the window elapses; whichever happens
first fixes `reason` and later stops are ignored.

Reasons:
  "user"  stopped by the owner with nothing to report
  "time"  the window elapsed
  other   free text the owner wants shown to the channel
"""
from __future__ import annotations

import asyncio
from typing import Callable, Optional

from models.schemas import ChatMessage

STOP_USER = "user"
STOP_TIME = "time"


class InputCollector:
    def __init__(
        self,
        inbox: asyncio.Queue,
        predicate: Callable[[ChatMessage], bool],
        timeout: float,
    ):
        self._inbox = inbox
        self._predicate = predicate
        self._loop = asyncio.get_running_loop()
        self._deadline = self._loop.time() + timeout
        self.reason: Optional[str] = None
        self.collected: list[ChatMessage] = []

    @property
    def ended(self) -> bool:
        return self.reason is not None

    def stop(self, reason: str = STOP_USER) -> bool:
        """End the window. Returns False if it had already ended."""
        if self.ended:
            return False
        self.reason = reason
        return True

    def __aiter__(self):
        return self

    async def __anext__(self) -> ChatMessage:
        while not self.ended:
            remaining = self._deadline - self._loop.time()
            if remaining <= 0:
                self.stop(STOP_TIME)
                break
            try:
                message = await asyncio.wait_for(self._inbox.get(), remaining)
            except asyncio.TimeoutError:
                self.stop(STOP_TIME)
                break
            if self.ended:
                # stopped while waiting; leave the message for the next listener
                self._inbox.put_nowait(message)
                break
            if not self._predicate(message):
                continue
            self.collected.append(message)
            return message
        raise StopAsyncIteration
