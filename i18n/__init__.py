"""Locale string lookup."""
from i18n.translator import Translator, create_locale_translator, default_catalog, load_catalog

__all__ = ["Translator", "create_locale_translator", "default_catalog", "load_catalog"]
