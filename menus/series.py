"""
Series — runs Steps in order, threading each Step's result into the next.

The list of Steps can grow while the Series runs: a handler may append
Steps (AppendSteps) or splice in whole Series (MergeSeries). Traversal is
driven by an index cursor over the live list, so anything appended while
Step i runs is visited after i, in the order it was appended, and after
any Step that was already queued.

Overlay data registered for a position (via `add(step, data)` or a merged
Series' initial data) is layered onto the threaded data just before the
Step at that position runs.

A Series ends exactly once:
  - the last Step resolved           → delete everything, return its data
  - there are no Steps               → return the initial data
  - a Step's input window elapsed    → delete everything, return None
  - a display-only Step was shown    → delete everything before it and
                                       leave it visible, return None
  - a Step asked to Terminate        → delete everything, return None
  - a Step raised                    → delete everything, log the command
                                       history, raise SeriesError

A handler that returns None resolves with empty data and the Series
continues; only Terminate (or "exit") stops it early.
"""
from __future__ import annotations

import structlog
from typing import Any, Mapping, Optional

from channels.base import is_missing_permission
from menus.cleanup import CleanupRegistry
from menus.directives import (
    AppendSteps, ClearPages, MergeSeries, Passover, SetEmbedFields, SetText,
)
from menus.errors import SeriesError
from menus.services import MenuServices
from menus.step import Step

logger = structlog.get_logger()


class Series:
    def __init__(self, services: MenuServices, steps: list[Step], data: Optional[Mapping[str, Any]] = None):
        """
        Args:
            services: shared collaborators (adapter for cleanup)
            steps:    initial Steps, run in order
            data:     data passed to the first Step; a ``locale`` key applies
                      to every Step in this Series
        """
        self._services = services
        self._steps: list[Step] = []
        self._data: dict[str, Any] = dict(data or {})
        self._merged_data: dict[int, list[Mapping[str, Any]]] = {}
        self._command_history: list[str] = []
        self._cleanup = CleanupRegistry(services.adapter)
        self.locale: Optional[str] = self._data.get("locale")
        for step in steps:
            self._adopt(step)

    # ── Membership ────────────────────────────────────────────

    def _adopt(self, step: Step):
        if self.locale:
            step.locale = self.locale
        step.series = self
        self._steps.append(step)

    def _register_overlay(self, index: int, data: Mapping[str, Any]):
        self._merged_data.setdefault(index, []).append(data)

    def merge(self, series: Series) -> Series:
        """Append every Step of `series`, carrying its data and overlays along."""
        if not isinstance(series, Series):
            raise TypeError("Not a Series")
        offset = len(self._steps)
        if series._data:
            self._register_overlay(offset, series._data)
        for index in sorted(series._merged_data):
            for overlay in series._merged_data[index]:
                self._register_overlay(offset + index, overlay)
        for step in series._steps:
            self._adopt(step)
        self._cleanup.merge(series._cleanup)
        series._steps = []
        series._merged_data = {}
        return self

    def add(self, step: Step, data: Optional[Mapping[str, Any]] = None) -> Series:
        """Append one Step; `data` is layered onto the threaded data when it runs."""
        if not isinstance(step, Step):
            raise TypeError("Not a Step")
        if data:
            self._register_overlay(len(self._steps), data)
        self._adopt(step)
        return self

    def record_command(self, content: str):
        self._command_history.append(content)

    # ── Introspection ─────────────────────────────────────────

    @property
    def steps(self) -> list[Step]:
        return list(self._steps)

    @property
    def command_history(self) -> list[str]:
        return list(self._command_history)

    @property
    def cleanup(self) -> CleanupRegistry:
        return self._cleanup

    def overlays_at(self, index: int) -> list[Mapping[str, Any]]:
        return list(self._merged_data.get(index, []))

    def __len__(self) -> int:
        return len(self._steps)

    # ── Running ───────────────────────────────────────────────

    async def start(self) -> Optional[dict[str, Any]]:
        return await self._send(0, Passover.from_mapping(self._data))

    @staticmethod
    def _apply_display(step: Step, passover: Passover):
        for directive in passover.display():
            if isinstance(directive, SetText):
                step.set_text(directive.text)
            elif isinstance(directive, ClearPages):
                step.remove_all_embeds()
            elif isinstance(directive, SetEmbedFields):
                if directive.title:
                    step.set_title(directive.title)
                if directive.author:
                    a = directive.author
                    step.set_author(a.name, a.url, a.icon_url)
                if directive.description:
                    step.set_description(directive.description)
                for option in directive.options:
                    step.add_option(option.title, option.description, option.inline)

    async def _send(self, index: int = 0, passover: Optional[Passover] = None) -> Optional[dict[str, Any]]:
        passover = passover or Passover()
        while True:
            for overlay in self._merged_data.get(index, []):
                passover = passover.merged(overlay)

            if index >= len(self._steps):
                return await self._end(data=passover)

            step = self._steps[index]
            try:
                self._apply_display(step, passover)
                outcome = await step.send(passover.data)
            except Exception as err:
                self._cleanup.merge(step.cleanup)
                return await self._end(err)

            result = outcome.passover
            if result is None:
                # a display-only Step stays visible; a timed-out one is cleaned up
                if step.collects_input:
                    self._cleanup.merge(outcome.cleanup)
                return await self._end()
            self._cleanup.merge(outcome.cleanup)

            if result.ended:
                await self._cleanup.delete_all()
                logger.info("series_terminated", step_index=index, steps=len(self._steps))
                return None

            try:
                for directive in result.take(AppendSteps):
                    for new_step in directive.steps:
                        self.add(new_step)
                for directive in result.take(MergeSeries):
                    for other in directive.series:
                        self.merge(other)
            except TypeError as err:
                return await self._end(err)

            index += 1
            if index >= len(self._steps):
                return await self._end(data=result)
            passover = result

    async def _end(self, err: Optional[BaseException] = None, data: Optional[Passover] = None) -> Optional[dict[str, Any]]:
        await self._cleanup.delete_all()
        if err is not None:
            if not is_missing_permission(err):
                logger.info("series_command_history",
                            history=self._command_history,
                            error=str(err))
            raise SeriesError(err) from err
        return data.data if data is not None else None
