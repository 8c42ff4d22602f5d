"""
Step — one interactive menu: paginated content plus an optional input handler.

Lifecycle of `send`:

  Idle → Sending → Displaying-only → Resolved     (no handler)
  Idle → Sending → Collecting → Resolved          (with handler)

While collecting, the channel is marked busy and only messages from the
user who triggered the menu are considered. Each one is handled to
completion before the next is read:

  "exit"          stop with the localized "closed" notice; inside a Series
                  resolve with Terminate, otherwise with no data
  handler → Ok    stop and resolve with the handler's data
  handler → Retry tell the user, keep collecting (the window is not reset)
  handler raises  stop and propagate
  window elapses  stop, post the inactivity notice, resolve with no data
"""
from __future__ import annotations

import inspect
import structlog
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Union

from models.schemas import ChatMessage, Page, SplitOptions
from channels.base import ChannelError
from channels.pagination import NEXT, PREVIOUS
from menus.cleanup import CleanupRegistry
from menus.collector import STOP_TIME, STOP_USER, InputCollector
from menus.directives import HandlerResult, Passover, Retry
from menus.pages import PageModel
from menus.services import MenuServices
from utils.text import split_message

if TYPE_CHECKING:
    from menus.series import Series

logger = structlog.get_logger()

Handler = Callable[[ChatMessage, dict[str, Any]], Union[HandlerResult, Awaitable[HandlerResult]]]


@dataclass
class StepOutcome:
    """What a Step resolved with. `passover` is None when there is no data."""
    passover: Optional[Passover]
    cleanup: CleanupRegistry

    @property
    def data(self) -> Optional[dict[str, Any]]:
        return self.passover.data if self.passover is not None else None


class Step:
    def __init__(
        self,
        services: MenuServices,
        trigger: ChatMessage,
        handler: Optional[Handler] = None,
        *,
        text: Union[str, list[str], None] = None,
        page: Union[Page, dict, None] = None,
        max_per_page: Optional[int] = None,
        numbered: bool = True,
        split_options: Optional[SplitOptions] = None,
        locale: Optional[str] = None,
    ):
        """
        Args:
            services:      adapter, busy tracker, page controls, catalog and config
            trigger:       the message that invoked the command; its channel is
                           where the Step runs and its author the only responder
            handler:       fn(message, data) → Ok | Retry | mapping | None, sync or async
            text:          message text, or several texts sent as separate messages
                           with the pages attached to the last one
            page:          initial page style (title, description, author, …)
            max_per_page:  options per page, 1-10; defaults to the configured value
            numbered:      prefix options with their running number
            split_options: split an oversized `text` into several messages
            locale:        language for notices and footers
        """
        self._services = services
        self.trigger = trigger
        self.channel_id = trigger.channel_id
        self._handler = handler
        self.text = text
        self.split_options = split_options
        self.has_reaction_permissions = services.adapter.can_add_reactions(self.channel_id)
        self._series: Optional[Series] = None
        self._cleanup = CleanupRegistry(services.adapter)
        self._locale = locale
        self.translate = services.translator(locale)
        self.page_model = PageModel(
            max_per_page=services.config.max_per_page if max_per_page is None else max_per_page,
            numbered=numbered,
            paginated=self.has_reaction_permissions,
            translator=self.translate,
            color=services.config.color,
            page=page,
        )

    # ── Properties ────────────────────────────────────────────

    @property
    def locale(self) -> Optional[str]:
        return self._locale

    @locale.setter
    def locale(self, value: Optional[str]):
        self._locale = value
        self.translate = self._services.translator(value)
        self.page_model.translator = self.translate

    @property
    def series(self) -> Optional[Series]:
        return self._series

    @series.setter
    def series(self, value: Optional[Series]):
        self._series = value

    @property
    def pages(self) -> list[Page]:
        return self.page_model.pages

    @property
    def max_per_page(self) -> int:
        return self.page_model.max_per_page

    @property
    def cleanup(self) -> CleanupRegistry:
        return self._cleanup

    @property
    def collects_input(self) -> bool:
        return self._handler is not None

    # ── Content mutators ──────────────────────────────────────

    def add_option(self, title: Optional[str] = None, body: Optional[str] = None, inline: bool = False) -> Step:
        self.page_model.add_option(title, body, inline)
        return self

    def add_page(self) -> Step:
        self.page_model.add_page()
        return self

    def set_text(self, text: Union[str, list[str]]) -> Step:
        self.text = text
        return self

    def set_description(self, description: str) -> Step:
        self.page_model.set_description(description)
        return self

    def set_author(self, text: str, url: Optional[str] = None, icon: Optional[str] = None) -> Step:
        self.page_model.set_author(text, url, icon)
        return self

    def set_title(self, title: str) -> Step:
        self.page_model.set_title(title)
        return self

    def set_footer(self, text: str, icon: Optional[str] = None) -> Step:
        self.page_model.set_footer(text, icon)
        return self

    def remove_all_embeds(self) -> Step:
        self.page_model.remove_all_embeds()
        return self

    # ── Sending ───────────────────────────────────────────────

    def _texts(self) -> list[Optional[str]]:
        if isinstance(self.text, (list, tuple)):
            return list(self.text) or [None]
        if self.text and self.split_options:
            return split_message(self.text, self.split_options)
        return [self.text]

    async def _deliver(self) -> ChatMessage:
        adapter = self._services.adapter
        texts = self._texts()
        message = None
        for i, text in enumerate(texts):
            # Pages ride on the final message only, as if one long message was split
            page = self.page_model.first if i == len(texts) - 1 else None
            message = await adapter.send(self.channel_id, text, page)
            self._cleanup.add(message)
        return message

    async def send(self, data: Optional[dict[str, Any]] = None) -> StepOutcome:
        data = {} if data is None else data
        message = await self._deliver()

        if len(self.pages) > 1 and self.has_reaction_permissions:
            await self._services.adapter.react(message, PREVIOUS)
            await self._services.adapter.react(message, NEXT)
            self._services.page_controls.register(message.id, self.pages)

        # Without a handler this is a visual-only menu
        if self._handler is None:
            return StepOutcome(None, self._cleanup)

        busy = self._services.busy
        busy.mark_busy(self.channel_id)
        collector = None
        try:
            async with self._services.adapter.listen(self.channel_id) as inbox:
                collector = InputCollector(
                    inbox,
                    self._from_requester,
                    self._services.config.collect_timeout_seconds,
                )
                return await self._collect(collector, data)
        finally:
            busy.clear_busy(self.channel_id)
            if collector is not None:
                await self._on_end(collector.reason)

    def _from_requester(self, message: ChatMessage) -> bool:
        return message.author_id == self.trigger.author_id

    async def _collect(self, collector: InputCollector, data: dict[str, Any]) -> StepOutcome:
        exit_keyword = self._services.config.exit_keyword.lower()
        async for message in collector:
            self._cleanup.add(message)
            if self._series is not None:
                self._series.record_command(message.content)

            if message.content.lower() == exit_keyword:
                collector.stop(self.translate("menus.closed"))
                if self._series is not None:
                    return StepOutcome(Passover.terminate(), self._cleanup)
                return StepOutcome(None, self._cleanup)

            try:
                result = self._handler(message, data)
                if inspect.isawaitable(result):
                    result = await result
            except Exception:
                collector.stop()
                raise

            if isinstance(result, Retry):
                await self._send_retry_notice(result)
                continue

            collector.stop()
            return StepOutcome(Passover.from_result(result), self._cleanup)

        return StepOutcome(None, self._cleanup)

    async def _send_retry_notice(self, retry: Retry):
        text = retry.message or self.translate("menus.retry_default")
        adapter = self._services.adapter
        try:
            for chunk in split_message(text, SplitOptions()):
                self._cleanup.add(await adapter.send(self.channel_id, chunk))
        except (ChannelError, ValueError) as e:
            logger.warning("menu_retry_notice_failed",
                           channel_id=self.channel_id,
                           error=str(e))

    async def _on_end(self, reason: Optional[str]):
        if reason is None or reason == STOP_USER:
            return
        adapter = self._services.adapter
        if reason == STOP_TIME:
            try:
                await adapter.send(self.channel_id, self.translate("menus.closed_inactivity"))
            except ChannelError as e:
                logger.warning("menu_inactivity_notice_failed",
                               channel_id=self.channel_id,
                               error=str(e))
            return
        try:
            notice = await adapter.send(self.channel_id, reason)
            await adapter.delete(notice, delay=self._services.config.notice_delete_delay_seconds)
        except ChannelError as e:
            logger.warning("menu_stop_notice_failed",
                           channel_id=self.channel_id,
                           reason=reason,
                           error=str(e))
