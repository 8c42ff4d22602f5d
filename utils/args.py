"""
Command-line argument helpers for chat commands.
"""
from __future__ import annotations

from typing import Iterable


def trim_array(items: Iterable[str]) -> list[str]:
    """Strip every item, drop empty ones and keep only the first occurrence of each."""
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        item = item.strip()
        if not item or item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result


def extract_args_after_command(line: str) -> list[str]:
    """
    Split a raw command line into arguments, without the command itself.

        >>> extract_args_after_command("!sub  news news  sports")
        ['news', 'sports']
    """
    args = line.split(" ")
    args.pop(0)
    return trim_array(args)
