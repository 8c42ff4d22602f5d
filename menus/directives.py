"""
Directives and handler results — how a Step talks to the Series it runs in.

A handler returns one of:
  Ok(data, next=[...])   success; `data` is threaded to the next Step and
                         `next` lists directives for the Series
  Retry(message)         the input was invalid; tell the user and keep collecting
  a plain mapping        legacy form, parsed with Passover.from_mapping
  None                   success with no data

Directives:
  SetText          replace the following Step's text
  ClearPages       remove every page of the following Step
  SetEmbedFields   set title/author/description and append options on the following Step
  AppendSteps      append Steps to the Series
  MergeSeries      splice whole Series into the Series
  Terminate        stop the Series now, cleaning up everything it sent

The legacy mapping form uses the reserved keys ``next`` (with ``text``,
``embed``, ``menu``, ``series``) and ``__end``.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, Union

from models.schemas import OptionSpec, PageAuthor

if TYPE_CHECKING:
    from menus.series import Series
    from menus.step import Step

END_KEY = "__end"
NEXT_KEY = "next"


# ──────────────────────────────────────────────────────────────
#  Directives
# ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SetText:
    text: Union[str, list[str]]


@dataclass(frozen=True)
class ClearPages:
    pass


@dataclass(frozen=True)
class SetEmbedFields:
    title: Optional[str] = None
    author: Optional[PageAuthor] = None
    description: Optional[str] = None
    options: tuple[OptionSpec, ...] = ()


@dataclass(frozen=True)
class AppendSteps:
    steps: tuple[Step, ...]


@dataclass(frozen=True)
class MergeSeries:
    series: tuple[Series, ...]


@dataclass(frozen=True)
class Terminate:
    pass


Directive = Union[SetText, ClearPages, SetEmbedFields, AppendSteps, MergeSeries, Terminate]
DISPLAY_DIRECTIVES = (SetText, ClearPages, SetEmbedFields)


# ──────────────────────────────────────────────────────────────
#  Handler results
# ──────────────────────────────────────────────────────────────

@dataclass
class Ok:
    data: dict[str, Any] = field(default_factory=dict)
    next: list[Directive] = field(default_factory=list)


@dataclass
class Retry:
    message: str = ""


HandlerResult = Union[Ok, Retry, Mapping, None]


# ──────────────────────────────────────────────────────────────
#  Passover — the record threaded between Steps
# ──────────────────────────────────────────────────────────────

def _as_tuple(value: Any) -> tuple:
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return (value,)


def _parse_author(value: Any) -> Optional[PageAuthor]:
    if value is None or isinstance(value, PageAuthor):
        return value
    if isinstance(value, str):
        return PageAuthor(name=value)
    return PageAuthor(
        name=value.get("text") or value.get("name", ""),
        url=value.get("url"),
        icon_url=value.get("icon") or value.get("icon_url"),
    )


def _parse_option(value: Any) -> OptionSpec:
    if isinstance(value, OptionSpec):
        return value
    return OptionSpec(**value)


def parse_next(next_value: Optional[Mapping], end: bool = False) -> list[Directive]:
    """Translate a legacy ``next`` mapping (and ``__end`` flag) into directives."""
    directives: list[Directive] = []
    if next_value:
        if next_value.get("text"):
            directives.append(SetText(next_value["text"]))
        if "embed" in next_value and next_value["embed"] is None:
            directives.append(ClearPages())
        elif next_value.get("embed"):
            embed = next_value["embed"]
            options = embed.get("options")
            directives.append(SetEmbedFields(
                title=embed.get("title"),
                author=_parse_author(embed.get("author")),
                description=embed.get("description"),
                options=tuple(_parse_option(o) for o in options) if isinstance(options, (list, tuple)) else (),
            ))
        if next_value.get("menu"):
            directives.append(AppendSteps(_as_tuple(next_value["menu"])))
        if next_value.get("series"):
            directives.append(MergeSeries(_as_tuple(next_value["series"])))
    if end:
        directives.append(Terminate())
    return directives


@dataclass
class Passover:
    data: dict[str, Any] = field(default_factory=dict)
    directives: list[Directive] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping]) -> Passover:
        """Split a data mapping into plain data and directives from its reserved keys."""
        if not mapping:
            return cls()
        data = {k: v for k, v in mapping.items() if k not in (NEXT_KEY, END_KEY)}
        directives = parse_next(mapping.get(NEXT_KEY), bool(mapping.get(END_KEY)))
        return cls(data=data, directives=directives)

    @classmethod
    def from_result(cls, result: HandlerResult) -> Passover:
        if result is None:
            return cls()
        if isinstance(result, Ok):
            return cls(data=dict(result.data), directives=list(result.next))
        if isinstance(result, Passover):
            return result
        if isinstance(result, Mapping):
            return cls.from_mapping(result)
        raise TypeError(f"Unsupported handler result: {type(result).__name__}")

    @classmethod
    def terminate(cls) -> Passover:
        return cls(directives=[Terminate()])

    def merged(self, overlay: Union[Mapping, Passover]) -> Passover:
        """
        Return a new Passover with `overlay` layered on top.
        Overlay keys win; overlay directives replace the current ones.
        """
        if not isinstance(overlay, Passover):
            overlay = Passover.from_mapping(overlay)
        directives = list(overlay.directives) if overlay.directives else list(self.directives)
        return Passover(data={**self.data, **overlay.data}, directives=directives)

    @property
    def ended(self) -> bool:
        return any(isinstance(d, Terminate) for d in self.directives)

    def display(self) -> list[Directive]:
        return [d for d in self.directives if isinstance(d, DISPLAY_DIRECTIVES)]

    def take(self, kind: type) -> list[Directive]:
        """Remove and return every directive of the given kind."""
        taken = [d for d in self.directives if isinstance(d, kind)]
        self.directives = [d for d in self.directives if not isinstance(d, kind)]
        return taken
