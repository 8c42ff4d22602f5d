"""
Core data models for the menu system.
These are the universal types shared across all modules.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field


BLANK = "\u200b"                           # zero-width space used for spacer fields
DEFAULT_PAGE_COLOR = 0x7289DA


# ──────────────────────────────────────────────────────────────
#  Page — one renderable unit of a menu
# ──────────────────────────────────────────────────────────────

class PageField(BaseModel):
    """A single titled block inside a page."""
    name: str
    value: str
    inline: bool = False

    @property
    def is_blank(self) -> bool:
        return self.name == BLANK and self.value == BLANK


class PageAuthor(BaseModel):
    name: str
    url: Optional[str] = None
    icon_url: Optional[str] = None


class PageFooter(BaseModel):
    text: str
    icon_url: Optional[str] = None


class Page(BaseModel):
    """Rich content attached to a message (title, description, fields, …)."""
    title: Optional[str] = None
    description: Optional[str] = None
    author: Optional[PageAuthor] = None
    footer: Optional[PageFooter] = None
    color: int = DEFAULT_PAGE_COLOR
    fields: list[PageField] = []

    def add_field(self, name: str, value: str, inline: bool = False) -> Page:
        self.fields.append(PageField(name=name, value=value, inline=inline))
        return self

    def add_blank_field(self, inline: bool = False) -> Page:
        return self.add_field(BLANK, BLANK, inline)


class OptionSpec(BaseModel):
    """An option carried by an embed directive, added to a page on arrival."""
    title: Optional[str] = None
    description: Optional[str] = None
    inline: bool = False


# ──────────────────────────────────────────────────────────────
#  Text splitting policy
# ──────────────────────────────────────────────────────────────

class SplitOptions(BaseModel):
    """How to break text that exceeds a single message."""
    max_length: int = 2000
    char: str = "\n"
    prepend: str = ""
    append: str = ""


# ──────────────────────────────────────────────────────────────
#  ChatMessage — handle to a sent or received message
# ──────────────────────────────────────────────────────────────

class ChatMessage(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    channel_id: str
    author_id: str
    content: str = ""
    page: Optional[Page] = None
    metadata: dict[str, Any] = {}
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
