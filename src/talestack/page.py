"""Page identities, page handles and the responses a page may produce."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Callable, Protocol, Union

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from .game import Game
    from .view import View


class PageId(str):
    """Immutable name of a page occurrence.

    Declared ids are dotted, module qualified function names
    (``story.chapter1.harbour``). Resolved ids are whatever the produced
    :class:`~talestack.view.View` reports. Only resolved ids are used as
    history and state keys. The empty id marks an unresolved placeholder.
    """

    __slots__ = ()

    @property
    def basename(self) -> str:
        """Return the trailing dotted component of the id."""

        return self.rsplit(".", 1)[-1]

    @property
    def is_unresolved(self) -> bool:
        return not self

    def __repr__(self) -> str:
        return f"PageId({str.__repr__(self)})"


UNRESOLVED = PageId("")


class Page(Protocol):
    """Callable contract every page body satisfies."""

    def __call__(self, game: "Game[Any]") -> "Response":  # pragma: no cover - protocol
        ...


def declared_id(page: Callable[..., Any]) -> PageId:
    """Return the module qualified name used as a page's declared id."""

    name = getattr(page, "__talestack_id__", None)
    if name is not None:
        return PageId(name)
    module = getattr(page, "__module__", None) or ""
    qualname = getattr(page, "__qualname__", None) or type(page).__qualname__
    return PageId(f"{module}.{qualname}" if module else qualname)


@dataclass(frozen=True, eq=False)
class PageHandle:
    """A page callable paired with its identity.

    Copies share the callable. ``id`` is the resolved id (``UNRESOLVED``
    until a view has been produced through this handle) while ``name`` keeps
    the declared id for debugging and simulation grouping.
    """

    page: Page
    id: PageId = UNRESOLVED
    name: PageId = UNRESOLVED

    def __post_init__(self) -> None:
        if not callable(self.page):
            raise TypeError(f"page must be callable, got {type(self.page)!r}")
        object.__setattr__(self, "id", PageId(self.id))
        if not self.name:
            object.__setattr__(self, "name", declared_id(self.page))
        else:
            object.__setattr__(self, "name", PageId(self.name))

    @classmethod
    def of(cls, page: Page, *, resolved: bool = False) -> "PageHandle":
        """Build a handle for ``page``.

        When ``resolved`` is true the declared id is also used as the
        resolved id; otherwise the handle starts as a placeholder.
        """

        name = declared_id(page)
        return cls(page, id=name if resolved else UNRESOLVED, name=name)

    def call(self, game: "Game[Any]") -> "Response":
        return self.page(game)

    def with_id(self, page_id: str) -> "PageHandle":
        return replace(self, id=PageId(page_id))

    def cleared(self) -> "PageHandle":
        """Return a copy carrying the unresolved placeholder id."""

        return replace(self, id=UNRESOLVED)

    @property
    def label(self) -> PageId:
        """Return the resolved id, falling back to the declared one."""

        return self.id or self.name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PageHandle):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"PageHandle(id={self.id!r}, name={self.name!r})"


# ----------------------------------------------------------------- responses


@dataclass(frozen=True)
class Viewed:
    """The page produced a view."""

    view: "View"


@dataclass(frozen=True)
class Redirect:
    """Invisible hop to another page; history is left untouched."""

    target: PageHandle


@dataclass(frozen=True)
class Back:
    """Go back ``steps`` entries in the current tunnel's history."""

    steps: int = 1

    def __post_init__(self) -> None:
        if isinstance(self.steps, bool) or not isinstance(self.steps, int):
            raise TypeError("steps must be an integer")
        if self.steps < 0:
            raise ValueError("steps must be non-negative")


@dataclass(frozen=True)
class EnterTunnel:
    """Open a new frame and continue with ``target``."""

    target: PageHandle


@dataclass(frozen=True)
class Exit:
    """Leave the current tunnel, discarding its history."""


@dataclass(frozen=True)
class End:
    """Finish the story."""


Response = Union[Viewed, Redirect, Back, EnterTunnel, Exit, End]


__all__ = [
    "PageId",
    "UNRESOLVED",
    "Page",
    "PageHandle",
    "declared_id",
    "Response",
    "Viewed",
    "Redirect",
    "Back",
    "EnterTunnel",
    "Exit",
    "End",
]
