"""
Configuration loader for the menu system.
Reads settings from YAML file with environment variable substitution.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from models.schemas import DEFAULT_PAGE_COLOR


@dataclass
class MenuConfig:
    color: int = DEFAULT_PAGE_COLOR
    max_per_page: int = 7                       # options per page before a new page is created (1-10)
    collect_timeout_seconds: float = 90.0       # input window; never extended by invalid input
    notice_delete_delay_seconds: float = 6.0    # transient stop notices are removed after this
    exit_keyword: str = "exit"
    page_controls_ttl_seconds: float = 3600.0


@dataclass
class I18nConfig:
    default_locale: str = "en-US"
    locales_dir: str = ""                       # extra YAML catalogs, merged over the bundled ones


@dataclass
class Settings:
    app_name: str = "ChatMenus"
    debug: bool = False
    menus: MenuConfig = field(default_factory=MenuConfig)
    i18n: I18nConfig = field(default_factory=I18nConfig)


_settings: Optional[Settings] = None


def _substitute_env_vars(value: str) -> str:
    """Replace ${VAR_NAME} patterns with environment variable values."""
    pattern = re.compile(r'\$\{(\w+)\}')
    def replacer(match):
        var_name = match.group(1)
        return os.environ.get(var_name, match.group(0))
    return pattern.sub(replacer, value)


def _process_values(obj: Any) -> Any:
    """Recursively substitute env vars in all string values."""
    if isinstance(obj, str):
        return _substitute_env_vars(obj)
    elif isinstance(obj, dict):
        return {k: _process_values(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_process_values(v) for v in obj]
    return obj


def _parse_color(value: Any) -> int:
    """Accept 0x7289DA, "#7289DA", "7289DA" or a plain int."""
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.startswith("#"):
        return int(text[1:], 16)
    if text.isdigit():
        return int(text)
    return int(text, 16)


def load_settings(config_path: str = None) -> Settings:
    """Load settings from YAML file."""
    global _settings

    load_dotenv()

    if config_path is None:
        config_path = os.environ.get(
            "MENUS_CONFIG",
            str(Path(__file__).parent / "settings.yaml"),
        )

    settings = Settings()

    if Path(config_path).exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
        raw = _process_values(raw)

        settings.app_name = raw.get("app_name", settings.app_name)
        settings.debug = raw.get("debug", settings.debug)

        if "menus" in raw:
            m = raw["menus"]
            defaults = MenuConfig()
            settings.menus = MenuConfig(
                color=_parse_color(m.get("color", defaults.color)),
                max_per_page=int(m.get("max_per_page", defaults.max_per_page)),
                collect_timeout_seconds=float(m.get("collect_timeout_seconds", defaults.collect_timeout_seconds)),
                notice_delete_delay_seconds=float(
                    m.get("notice_delete_delay_seconds", defaults.notice_delete_delay_seconds)),
                exit_keyword=m.get("exit_keyword", defaults.exit_keyword),
                page_controls_ttl_seconds=float(
                    m.get("page_controls_ttl_seconds", defaults.page_controls_ttl_seconds)),
            )

        if "i18n" in raw:
            i = raw["i18n"]
            settings.i18n = I18nConfig(
                default_locale=i.get("default_locale", "en-US"),
                locales_dir=i.get("locales_dir", ""),
            )

    _settings = settings
    return settings


def get_settings() -> Settings:
    """Return cached settings or load from default path."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
