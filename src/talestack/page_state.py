"""Page-body access to a page's state slice, the session tags and its view."""

from __future__ import annotations

import functools
import random
from typing import TYPE_CHECKING, Any, Callable, Iterable, MutableSet, Sequence

from .game_state import GameState, PageKey, lowest_bit, mask_indices, validate_bit
from .page import PageId, Response, Viewed, declared_id
from .view import View, ViewObject

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from .game import Game


class PageState:
    """Builds one page's view while reading and writing its own state.

    Every key passed to the accessors is scoped to ``page_id``; pages cannot
    reach another page's entries through this object.
    """

    def __init__(
        self,
        page_id: str,
        state: GameState,
        tags: MutableSet[PageId],
        *,
        fresh: bool = False,
        simulating: bool = False,
        seed: int | None = None,
    ) -> None:
        self._view = View(page_id)
        self._state = state
        self._tags = tags
        self._fresh = fresh
        self.simulating = simulating
        self.seed = seed

    @property
    def id(self) -> PageId:
        return self._view.page_id

    @property
    def fresh(self) -> bool:
        """``True`` until the session has produced its first view."""

        return self._fresh

    @property
    def view(self) -> View:
        return self._view

    def push(self, obj: ViewObject) -> None:
        self._view.push(obj)

    def extend(self, objects: Iterable[ViewObject]) -> None:
        for obj in objects:
            self._view.push(obj)

    def into_response(self) -> Viewed:
        return Viewed(self._view)

    # -- state slice

    def get(self, key: PageKey) -> int | None:
        return self._state.get((self.id, key))

    def insert(self, key: PageKey, value: int) -> None:
        self._state.insert((self.id, key), value)

    def remove(self, key: PageKey) -> int | None:
        return self._state.remove((self.id, key))

    def inc(self, key: PageKey) -> int:
        return self._state.inc((self.id, key))

    def set_bit(self, key: PageKey, position: int) -> int:
        return self._state.set_bit((self.id, key), position)

    def get_mask_indices(self, key: PageKey) -> list[int]:
        return mask_indices(self._state.value((self.id, key)))

    def get_mask(self, key: PageKey, size: int) -> tuple[bool, ...]:
        """Return the first ``size`` bits of the mask at ``key``."""

        value = self._state.value((self.id, key))
        return tuple(index < 64 and bool(value & (1 << index)) for index in range(size))

    def is_set(self, key: PageKey, position: int) -> bool:
        return bool(self._state.value((self.id, key)) & (1 << validate_bit(position)))

    def get_mask_last(self, key: PageKey) -> int | None:
        """Return the lowest set bit of the mask at ``key``."""

        return lowest_bit(self._state.value((self.id, key)))

    def remove_mask_last(self, key: PageKey) -> int | None:
        """Like :meth:`get_mask_last` but also deletes the entry."""

        removed = self._state.remove((self.id, key))
        if removed is None:
            return None
        return lowest_bit(removed)

    def rand(self, upper: int, exclude: Sequence[int] = ()) -> int:
        """Pick an integer from ``range(upper)`` that is not in ``exclude``.

        With a configured seed the pick is deterministic.

        Raises:
            ValueError: If every candidate is excluded.
        """

        excluded = set(exclude)
        pool = [value for value in range(upper) if value not in excluded]
        if not pool:
            raise ValueError("rand(): range exhausted by exclusion list")
        if self.seed is not None:
            return random.Random(self.seed).choice(pool)
        return random.choice(pool)

    # -- tags

    def tag(self, name: str) -> bool:
        """Tag the session with ``name``; return ``True`` if it was new."""

        tag = PageId(name)
        self._view.tags.append(tag)
        if tag in self._tags:
            return False
        self._tags.add(tag)
        return True

    def untag(self, name: str) -> bool:
        tag = PageId(name)
        if tag not in self._tags:
            return False
        self._tags.remove(tag)
        return True

    def has_tag(self, name: str) -> bool:
        return PageId(name) in self._tags

    def __str__(self) -> str:
        return str(self.id)


PageBody = Callable[[PageState, Any], "Response | None"]


def story_page(
    body: PageBody | None = None, *, name: str | None = None
) -> Any:
    """Turn ``body(state, context)`` into a page callable.

    The body fills ``state`` and returns ``None`` to produce the built view,
    or returns a :data:`~talestack.page.Response` to short-circuit. The page
    is identified by ``name`` or by its module qualified function name.
    """

    def decorate(function: PageBody) -> Callable[["Game[Any]"], Response]:
        page_name = PageId(name) if name else declared_id(function)

        @functools.wraps(function)
        def page(game: "Game[Any]") -> Response:
            state = game.page_state(page_name)
            result = function(state, game.context)
            if result is None:
                return state.into_response()
            return result

        page.__talestack_id__ = page_name  # type: ignore[attr-defined]
        return page

    if body is not None:
        return decorate(body)
    return decorate


__all__ = ["PageState", "PageBody", "story_page"]
