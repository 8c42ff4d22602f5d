"""
Page Model — ordered pages of options with automatic pagination.

Options are added to the current page until it holds `max_per_page`
fields, then a new page is started from page 0's style. Whenever a page
is added every footer is rewritten to ``Page i/N``; if the channel does
not allow reactions the footer also warns that pages cannot be flipped.
"""
from __future__ import annotations

from typing import Optional, Union

from models.schemas import DEFAULT_PAGE_COLOR, Page, PageAuthor, PageFooter
from i18n.translator import Translator

DEFAULT_MAX_PER_PAGE = 7
MAX_FIELD_VALUE = 1024
TRUNCATED_FIELD_VALUE = 1000
ELLIPSIS = "..."


def valid_max_per_page(value) -> int:
    """Capacity must be an int in 1..10; anything else falls back to the default."""
    if isinstance(value, int) and not isinstance(value, bool) and 0 < value <= 10:
        return value
    return DEFAULT_MAX_PER_PAGE


class PageModel:
    def __init__(
        self,
        max_per_page: int = DEFAULT_MAX_PER_PAGE,
        numbered: bool = True,
        paginated: bool = True,
        translator: Translator = None,
        color: int = DEFAULT_PAGE_COLOR,
        page: Union[Page, dict, None] = None,
    ):
        self.max_per_page = valid_max_per_page(max_per_page)
        self.numbered = numbered
        self.paginated = paginated
        self.translator = translator or Translator()
        self.color = color
        self.pages: list[Page] = []
        self._page_num = 0
        self._current: Optional[Page] = None
        if page is not None:
            base = page.model_copy(deep=True) if isinstance(page, Page) else Page(**page)
            base.color = color
            base.fields = []
            self.pages.append(base)
            self._current = base

    def _ensure_page(self):
        if self._page_num == 0 and self._current is None:
            self._current = Page(color=self.color)
            self.pages = [self._current]

    def add_page(self) -> PageModel:
        self._ensure_page()
        self._page_num += 1
        new_page = self.pages[0].model_copy(deep=True)
        new_page.fields = []
        self.pages.append(new_page)
        suffix = ""
        if not self.paginated:
            warning = self.translator.translate("menus.permission_warning", max_per_page=self.max_per_page)
            suffix = f" ({warning})"
        total = len(self.pages)
        for i, p in enumerate(self.pages):
            p.footer = PageFooter(text=f"Page {i + 1}/{total}{suffix}")
        self._current = new_page
        return self

    def add_option(self, title: Optional[str] = None, body: Optional[str] = None,
                   inline: bool = False) -> PageModel:
        self._ensure_page()
        if len(self._current.fields) >= self.max_per_page:
            self.add_page()
        if not title and not body:
            self._current.add_blank_field(inline)
            return self
        if title is None:
            raise ValueError("Option title must be defined")
        if body is None:
            raise ValueError("Option body must be defined")
        if self.numbered:
            number = (len(self.pages) - 1) * self.max_per_page + len(self._current.fields) + 1
            title = f"{number}) {title}"
        if len(body) > MAX_FIELD_VALUE:
            body = body[:TRUNCATED_FIELD_VALUE] + ELLIPSIS
        self._current.add_field(title, body, inline)
        return self

    # ── Uniform setters ───────────────────────────────────────

    def set_description(self, description: str) -> PageModel:
        self._ensure_page()
        for p in self.pages:
            p.description = description
        return self

    def set_author(self, text: str, url: Optional[str] = None, icon: Optional[str] = None) -> PageModel:
        self._ensure_page()
        for p in self.pages:
            p.author = PageAuthor(name=text, url=url, icon_url=icon)
        return self

    def set_title(self, title: str) -> PageModel:
        self._ensure_page()
        for p in self.pages:
            p.title = title
        return self

    def set_footer(self, text: str, icon: Optional[str] = None) -> PageModel:
        self._ensure_page()
        for p in self.pages:
            p.footer = PageFooter(text=text, icon_url=icon)
        return self

    def remove_all_embeds(self) -> PageModel:
        self.pages = []
        self._page_num = 0
        self._current = None
        return self

    # ── Introspection ─────────────────────────────────────────

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def first(self) -> Optional[Page]:
        return self.pages[0] if self.pages else None

    def __len__(self) -> int:
        return len(self.pages)
