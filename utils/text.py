"""
Text splitting for messages that exceed the platform's length limit.
"""
from __future__ import annotations

from typing import Optional

from models.schemas import SplitOptions


def split_message(text: str, options: Optional[SplitOptions] = None) -> list[str]:
    """
    Split text into chunks no longer than `options.max_length`.

    Breaks only on `options.char`; `prepend`/`append` wrap every chunk after
    the first and before the last respectively. Raises ValueError when a
    single unbreakable piece, with its prepend and append, is longer than
    the limit. Empty pieces between consecutive separators are kept.
    """
    options = options or SplitOptions()
    if len(text) <= options.max_length:
        return [text]

    pieces = text.split(options.char)
    wrapper = len(options.prepend) + len(options.append)
    if any(len(piece) + wrapper > options.max_length for piece in pieces):
        raise ValueError(
            f"Message exceeds {options.max_length} characters and cannot be split on {options.char!r}"
        )

    chunks: list[str] = []
    current = ""
    fresh = True                            # no piece in the current chunk yet
    for piece in pieces:
        if not fresh and len(current + options.char + piece + options.append) > options.max_length:
            chunks.append(current + options.append)
            current, fresh = options.prepend, True
        current += piece if fresh else options.char + piece
        fresh = False
    chunks.append(current)
    return chunks
