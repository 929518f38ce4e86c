"""Views and the content objects they are made of.

A :class:`View` is one screen's worth of story content. Rendering is left to
the embedding application; this module only fixes the object kinds and the
data each carries so renderers can display them and
:mod:`talestack.interact` can find clickable spans.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Iterable, Iterator, List, Mapping, Sequence, Tuple, Union

from .action import Action, SetBit, SetValue
from .game_state import PageKey, StateKey, validate_bit
from .page import PageId
from .text import fnv1a_64, linguate

RenderData = str
"""Free-form hint for the frontend attached to a few object kinds."""


class SpanVariant(enum.Enum):
    """Style preset applied to a span."""

    NONE = "none"
    LINK = "link"
    MUTED = "muted"
    SECONDARY = "secondary"


class Modifier(enum.Flag):
    NONE = 0
    BOLD = enum.auto()
    DIM = enum.auto()
    ITALIC = enum.auto()
    UNDERLINE = enum.auto()
    SUPERSCRIPT = enum.auto()
    SUBSCRIPT = enum.auto()
    REVERSED = enum.auto()
    HIDDEN = enum.auto()
    STRIKETHROUGH = enum.auto()


@dataclass(frozen=True)
class Span:
    """A run of text with optional action and styling."""

    content: str = ""
    action: Action | None = None
    variant: SpanVariant = SpanVariant.NONE
    modifiers: Modifier = Modifier.NONE
    style: Mapping[str, str] = field(default_factory=dict)
    classes: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.content, str):
            raise TypeError(f"span content must be a string, got {type(self.content)!r}")
        object.__setattr__(self, "style", MappingProxyType(dict(self.style)))
        object.__setattr__(self, "classes", tuple(self.classes))

    @classmethod
    def lingual(cls, content: str) -> "Span":
        return cls(linguate(content))

    def as_link(self) -> "Span":
        return replace(self, variant=SpanVariant.LINK)

    def with_action(self, action: Action) -> "Span":
        return replace(self, action=action)

    def with_text(self, content: str) -> "Span":
        return replace(self, content=content)

    def with_modifiers(self, modifiers: Modifier) -> "Span":
        return replace(self, modifiers=self.modifiers | modifiers)

    def with_style(self, **style: str) -> "Span":
        merged = dict(self.style)
        merged.update({key.replace("_", "-"): value for key, value in style.items()})
        return replace(self, style=merged)

    def hide_if(self, hide: bool) -> "Span":
        """Return an empty, action-less span when ``hide`` is true.

        Used on likely cyclic actions so simulations can prune them.
        """

        return Span() if hide else self

    @property
    def is_interactive(self) -> bool:
        return self.action is not None


SpanLike = Union[Span, str]


def _as_span(value: SpanLike) -> Span:
    if isinstance(value, Span):
        return value
    if isinstance(value, str):
        return Span(value)
    raise TypeError(f"expected a Span or string, got {type(value)!r}")


@dataclass(frozen=True)
class Line:
    """Spans rendered in one wrapped line, joined without spacing."""

    spans: Tuple[Span, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "spans", tuple(_as_span(span) for span in self.spans))

    @classmethod
    def of(cls, *parts: SpanLike) -> "Line":
        return cls(tuple(_as_span(part) for part in parts))

    @classmethod
    def lingual(cls, *parts: SpanLike) -> "Line":
        return cls(
            tuple(span.with_text(linguate(span.content)) for span in map(_as_span, parts))
        )

    @classmethod
    def from_interleaved_actions(
        cls, key: StateKey, parts: Sequence[str], *, mask: bool = True
    ) -> "Line":
        """Build a line from alternating plain and braced segments.

        Odd segments (the braced ones, see :func:`talestack.text.split_braced`)
        become links. With ``mask`` they set bit ``i // 2`` of ``key``;
        otherwise they store the FNV-1a hash of their text.
        """

        spans: List[Span] = []
        for index, part in enumerate(parts):
            if index % 2 == 1:
                action: Action
                if mask:
                    action = SetBit(key, index // 2)
                else:
                    action = SetValue(key, fnv1a_64(part))
                spans.append(Span.lingual(part).as_link().with_action(action))
            else:
                spans.append(Span.lingual(part))
        return cls(tuple(spans))

    @property
    def content(self) -> str:
        return "".join(span.content for span in self.spans)

    def __iter__(self) -> Iterator[Span]:
        return iter(self.spans)

    def __len__(self) -> int:
        return len(self.spans)


def as_line(value: Union[Line, SpanLike, Iterable[SpanLike]]) -> Line:
    """Coerce strings, spans or iterables of them into a :class:`Line`."""

    if isinstance(value, Line):
        return value
    if isinstance(value, (str, Span)):
        return Line.of(value)
    return Line(tuple(_as_span(part) for part in value))


# ----------------------------------------------------------------- objects


@dataclass(frozen=True)
class Text:
    """A single wrapped line; spans may carry newlines."""

    line: Line
    render_data: RenderData = ""


@dataclass(frozen=True)
class Paragraph:
    """Text with a single spaced vertical margin."""

    line: Line


@dataclass(frozen=True)
class Choice:
    """Selectable options whose picks are stored as bits under ``key``."""

    key: PageKey
    options: Tuple[Tuple[int, Line], ...] = ()

    def __post_init__(self) -> None:
        normalised = tuple((validate_bit(index), as_line(line)) for index, line in self.options)
        seen: set[int] = set()
        for index, _ in normalised:
            if index in seen:
                raise ValueError(f"duplicate choice index: {index}")
            seen.add(index)
        object.__setattr__(self, "options", normalised)

    def option(self, index: int) -> Line:
        for option_index, line in self.options:
            if option_index == index:
                return line
        raise KeyError(f"choice {self.key} has no option {index}")


class ImageSource(enum.Enum):
    URL = "url"
    LOCAL = "local"


@dataclass(frozen=True)
class Image:
    """An image by URL or by local path with its bytes."""

    location: str
    source: ImageSource = ImageSource.URL
    data: bytes = b""
    width: int = 0
    height: int = 0
    alt: str = ""
    action: Action | None = None

    @classmethod
    def from_url(cls, url: str) -> "Image":
        return cls(url)

    @classmethod
    def from_local(cls, path: str, data: bytes) -> "Image":
        return cls(path, source=ImageSource.LOCAL, data=data)

    def with_size(self, width: int, height: int) -> "Image":
        return replace(self, width=width, height=height)

    def with_alt(self, alt: str) -> "Image":
        return replace(self, alt=alt)


@dataclass(frozen=True)
class Heading:
    span: Span
    level: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "span", _as_span(self.span))
        if not 1 <= self.level <= 6:
            raise ValueError("heading level must be between 1 and 6")


@dataclass(frozen=True)
class Break:
    """Horizontal rule."""


@dataclass(frozen=True)
class Empty:
    """``count`` blank lines."""

    count: int = 1


@dataclass(frozen=True)
class Note:
    """Annotated line; ``span_range`` indexes the annotated spans."""

    line: Line
    span_range: Tuple[int, int] = (0, 0)


@dataclass(frozen=True)
class Quote:
    line: Line
    render_data: RenderData = ""


@dataclass(frozen=True)
class Custom:
    """Marker for the frontend, e.g. to start music when shown."""

    render_data: RenderData


ViewObject = Union[Text, Paragraph, Choice, Image, Heading, Break, Empty, Note, Quote, Custom]


class View:
    """Ordered content objects produced by a page, plus its resolved id."""

    def __init__(
        self,
        page_id: str,
        objects: Iterable[ViewObject] = (),
        *,
        tags: Iterable[str] = (),
    ) -> None:
        self.page_id = PageId(page_id)
        self.objects: List[ViewObject] = list(objects)
        self.tags: List[PageId] = [PageId(tag) for tag in tags]

    def push(self, obj: ViewObject) -> None:
        self.objects.append(obj)

    def drain_tags(self) -> List[PageId]:
        tags, self.tags = self.tags, []
        return tags

    def __iter__(self) -> Iterator[ViewObject]:
        return iter(self.objects)

    def __len__(self) -> int:
        return len(self.objects)

    def __getitem__(self, index: int) -> ViewObject:
        return self.objects[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, View):
            return NotImplemented
        return (self.page_id, self.objects, self.tags) == (
            other.page_id,
            other.objects,
            other.tags,
        )

    def __repr__(self) -> str:
        return f"View(page_id={self.page_id!r}, objects={len(self.objects)})"


__all__ = [
    "RenderData",
    "SpanVariant",
    "Modifier",
    "Span",
    "Line",
    "as_line",
    "Text",
    "Paragraph",
    "Choice",
    "ImageSource",
    "Image",
    "Heading",
    "Break",
    "Empty",
    "Note",
    "Quote",
    "Custom",
    "ViewObject",
    "View",
]
