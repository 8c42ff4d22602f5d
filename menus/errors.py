"""Errors raised by the menu engine."""
from __future__ import annotations

from channels.base import is_missing_permission

SERIES_ERROR_TAG = "[Series Error]"


class SeriesError(Exception):
    """
    A fatal failure inside a Series, re-raised to the Series' caller.

    The original exception is chained as ``__cause__`` and kept on
    ``original`` so callers can still classify it.
    """

    def __init__(self, original: BaseException):
        self.original = original
        super().__init__(f"{SERIES_ERROR_TAG} {original}")

    @property
    def code(self):
        return getattr(self.original, "code", None)

    @property
    def is_missing_permission(self) -> bool:
        return is_missing_permission(self.original)
