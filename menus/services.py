"""
Menu Services — the collaborators every Step and Series needs.

Bundled so they are injected once per process (or per test) rather than
reached through module globals.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from channels.base import ChannelAdapter
from channels.busy import ChannelBusyTracker
from channels.pagination import PageControls
from config.settings import MenuConfig, get_settings
from i18n.translator import Translator, default_catalog


@dataclass
class MenuServices:
    adapter: ChannelAdapter
    busy: ChannelBusyTracker = field(default_factory=ChannelBusyTracker)
    page_controls: Optional[PageControls] = None
    config: MenuConfig = field(default_factory=lambda: get_settings().menus)
    catalog: dict[str, dict[str, str]] = field(default_factory=default_catalog)
    default_locale: str = field(default_factory=lambda: get_settings().i18n.default_locale)

    def __post_init__(self):
        if self.page_controls is None:
            self.page_controls = PageControls(ttl_seconds=self.config.page_controls_ttl_seconds)

    def translator(self, locale: Optional[str] = None) -> Translator:
        return Translator(locale, self.catalog, self.default_locale)
