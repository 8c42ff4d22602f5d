"""
Translator — locale string lookup for user-facing menu text.

Catalogs are YAML files named after their locale (``en-US.yaml``). Nested
keys are flattened to dotted paths, so ``menus: {closed: ...}`` is looked up
as ``menus.closed``. Values may contain ``{{param}}`` placeholders.

Lookup order: requested locale → default locale → the key itself.
"""
from __future__ import annotations

import re
import structlog
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml

from config.settings import get_settings

logger = structlog.get_logger()

BUNDLED_LOCALES_DIR = Path(__file__).parent / "locales"


def _flatten(data: dict[str, Any], prefix: str = "") -> dict[str, str]:
    flat: dict[str, str] = {}
    for key, value in data.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            flat.update(_flatten(value, path))
        elif value is not None:
            flat[path] = str(value)
    return flat


def load_catalog(*directories: Path) -> dict[str, dict[str, str]]:
    """
    Load every ``<locale>.yaml`` under the given directories.
    Later directories override keys of earlier ones.
    """
    catalog: dict[str, dict[str, str]] = {}
    for directory in directories:
        directory = Path(directory)
        if not directory.is_dir():
            logger.warning("locales_dir_missing", path=str(directory))
            continue
        for path in sorted(directory.glob("*.yaml")):
            with open(path, encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
            catalog.setdefault(path.stem, {}).update(_flatten(raw))
    logger.debug("locale_catalog_loaded", locales=sorted(catalog))
    return catalog


@lru_cache(maxsize=1)
def default_catalog() -> dict[str, dict[str, str]]:
    directories = [BUNDLED_LOCALES_DIR]
    extra = get_settings().i18n.locales_dir
    if extra:
        directories.append(Path(extra))
    return load_catalog(*directories)


class Translator:
    """Resolves keys for one locale with fallback to the default locale."""

    def __init__(
        self,
        locale: Optional[str] = None,
        catalog: dict[str, dict[str, str]] = None,
        default_locale: str = None,
    ):
        self.default_locale = default_locale or get_settings().i18n.default_locale
        self.locale = locale or self.default_locale
        self._catalog = catalog if catalog is not None else default_catalog()

    def translate(self, key: str, **params: Any) -> str:
        template = self._catalog.get(self.locale, {}).get(key)
        if template is None:
            template = self._catalog.get(self.default_locale, {}).get(key)
        if template is None:
            logger.warning("translation_missing", key=key, locale=self.locale)
            return key
        return self._interpolate(template, params)

    __call__ = translate

    @staticmethod
    def _interpolate(template: str, params: dict[str, Any]) -> str:
        """Replace {{param}} placeholders; unknown placeholders are left as-is."""
        def replacer(match):
            name = match.group(1).strip()
            return str(params[name]) if name in params else match.group(0)

        return re.sub(r"\{\{([^}]+)\}\}", replacer, template)

    @property
    def locales(self) -> list[str]:
        return sorted(self._catalog)


def create_locale_translator(locale: Optional[str] = None,
                             catalog: dict[str, dict[str, str]] = None) -> Translator:
    return Translator(locale, catalog)
