"""Small builders for the interactive elements pages commonly emit."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple, Union

from .action import ExitTunnel, GoBack, Next, Tunnel
from .game_state import PageKey
from .page import Page, PageHandle
from .page_state import PageState
from .view import Choice, Line, Span, SpanLike, as_line

LineLike = Union[Line, SpanLike, Iterable[SpanLike]]


def _handle(page: Page | PageHandle) -> PageHandle:
    if isinstance(page, PageHandle):
        return page
    return PageHandle.of(page)


def link(text: SpanLike, page: Page | PageHandle) -> Span:
    """A link span navigating forward to ``page``."""

    span = text if isinstance(text, Span) else Span(text)
    return span.as_link().with_action(Next(_handle(page)))


def tunnel(text: SpanLike, page: Page | PageHandle) -> Span:
    """A link span entering a tunnel that starts at ``page``."""

    span = text if isinstance(text, Span) else Span(text)
    return span.as_link().with_action(Tunnel(_handle(page)))


def exit_link(text: SpanLike) -> Span:
    """A link span leaving the current tunnel."""

    span = text if isinstance(text, Span) else Span(text)
    return span.as_link().with_action(ExitTunnel())


def back_link(text: SpanLike, steps: int = 1) -> Span:
    span = text if isinstance(text, Span) else Span(text)
    return span.as_link().with_action(GoBack(steps))


class Visibility(enum.Enum):
    ONCE = "once"
    HIDDEN = "hidden"
    ALWAYS = "always"


@dataclass(frozen=True)
class ChoiceVariant:
    """How a choice option behaves once it has been picked."""

    visibility: Visibility
    line: Line | None = None

    @classmethod
    def once(cls, line: LineLike) -> "ChoiceVariant":
        return cls(Visibility.ONCE, as_line(line))

    @classmethod
    def always(cls, line: LineLike) -> "ChoiceVariant":
        return cls(Visibility.ALWAYS, as_line(line))

    @classmethod
    def hidden(cls) -> "ChoiceVariant":
        return cls(Visibility.HIDDEN)

    def as_line(self, seen: bool) -> Line | None:
        """Return the line to display, or ``None`` when the option is hidden."""

        if self.visibility is Visibility.HIDDEN:
            return None
        if self.visibility is Visibility.ONCE and seen:
            return None
        return self.line


def _variant(value: ChoiceVariant | LineLike | None) -> ChoiceVariant:
    if isinstance(value, ChoiceVariant):
        return value
    if value is None:
        return ChoiceVariant.hidden()
    return ChoiceVariant.once(value)


def build_choice(
    state: PageState,
    key: PageKey,
    options: Sequence[ChoiceVariant | LineLike | None],
) -> Choice:
    """Build a :class:`Choice` whose visible options depend on past picks.

    Plain lines default to once-options and ``None`` to hidden ones. Option
    ``i`` is seen when bit ``i`` of the mask at ``key`` is set.
    """

    seen = state.get_mask(key, len(options))
    visible: list[Tuple[int, Line]] = []
    for index, option in enumerate(options):
        line = _variant(option).as_line(seen[index])
        if line is not None:
            visible.append((index, line))
    return Choice(key, tuple(visible))


__all__ = [
    "link",
    "tunnel",
    "exit_link",
    "back_link",
    "Visibility",
    "ChoiceVariant",
    "build_choice",
]
