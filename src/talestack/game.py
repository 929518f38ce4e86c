"""The session object: state store, tunnel stack, context and tags."""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any, Callable, Generic, Iterator, List, Optional, Set, TypeVar

from .action import (
    Action,
    ExitTunnel,
    GoBack,
    Increment,
    Next,
    NoOp,
    Remove,
    SetBit,
    SetValue,
    Tunnel,
)
from .errors import GameEnd, NoPageError, NoStackError
from .game_state import GameState, StateKey
from .interact import Interactable, apply_interaction
from .page import (
    Back,
    End,
    EnterTunnel,
    Exit,
    Page,
    PageHandle,
    PageId,
    Redirect,
    Viewed,
)
from .page_state import PageState
from .view import View

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from .sim import Simulation

logger = logging.getLogger(__name__)

C = TypeVar("C")

GameTags = Set[PageId]


class PageStack:
    """Frames of page handles; each frame is one tunnel's back history.

    The last handle of the last frame is the current page. Entering a tunnel
    pushes an empty frame; exiting drops the whole top frame.
    """

    def __init__(self, frames: Optional[List[List[PageHandle]]] = None) -> None:
        self._frames: List[List[PageHandle]] = [list(frame) for frame in frames or []]

    @classmethod
    def with_page(cls, handle: PageHandle) -> "PageStack":
        return cls([[handle]])

    def current(self) -> PageHandle | None:
        if not self._frames or not self._frames[-1]:
            return None
        return self._frames[-1][-1]

    def push(self, handle: PageHandle) -> None:
        """Append ``handle`` unless it has the same resolved id as the current page.

        Unresolved placeholders are always appended.
        """

        if not self._frames:
            raise NoStackError()
        frame = self._frames[-1]
        if frame and not handle.id.is_unresolved and frame[-1].id == handle.id:
            return
        frame.append(handle)

    def pop(self) -> PageHandle | None:
        """Remove and return the current page of the top frame."""

        if not self._frames or not self._frames[-1]:
            return None
        return self._frames[-1].pop()

    def pop_n(self, n: int) -> PageHandle:
        """Drop ``n`` entries from the top frame and return the new current page.

        At least one entry must remain, so ``n`` has to be strictly smaller
        than the frame length.
        """

        if not self._frames:
            raise NoStackError()
        frame = self._frames[-1]
        if n < 0 or n >= len(frame):
            raise NoPageError(f"cannot go back {n} from a frame of {len(frame)}")
        if n:
            del frame[-n:]
        return frame[-1]

    def adv_stack(self) -> None:
        """Open a new, empty frame."""

        self._frames.append([])

    def pop_stack(self) -> List[PageHandle] | None:
        """Remove and return the top frame; ``None`` if it is the last one."""

        if len(self._frames) <= 1:
            return None
        return self._frames.pop()

    @property
    def depth(self) -> int:
        """Return the number of frames."""

        return len(self._frames)

    @property
    def frames(self) -> List[List[PageHandle]]:
        return [list(frame) for frame in self._frames]

    def ids(self) -> List[List[PageId]]:
        return [[handle.id for handle in frame] for frame in self._frames]

    def copy(self) -> "PageStack":
        return PageStack(self._frames)

    def __len__(self) -> int:
        """Return the length of the top frame."""

        if not self._frames:
            return 0
        return len(self._frames[-1])

    def __iter__(self) -> Iterator[PageHandle]:
        if not self._frames:
            return iter(())
        return iter(list(self._frames[-1]))

    def __repr__(self) -> str:
        return f"PageStack({self.ids()!r})"


class Game(Generic[C]):
    """A running story.

    ``context`` belongs to the author; the engine only carries it along and
    deep-copies it when the session is cloned.
    """

    def __init__(
        self,
        pages: PageStack,
        *,
        context: C,
        state: GameState | None = None,
        tags: GameTags | None = None,
        seed: int | None = None,
    ) -> None:
        self.state = state if state is not None else GameState()
        self.pages = pages
        self.context = context
        self.tags: GameTags = set(tags) if tags is not None else set()
        self.fresh = True
        self.iterations = 0
        self.simulating = False
        self.seed = seed

    @classmethod
    def new_with_page(
        cls,
        page: Page | PageHandle,
        page_id: str | None = None,
        *,
        context_factory: Callable[[], Any] = dict,
        seed: int | None = None,
    ) -> "Game[Any]":
        """Start a session whose only history entry is ``page``.

        Without ``page_id`` the entry is an unresolved placeholder which the
        first :meth:`view` replaces with the resolved id.
        """

        if isinstance(page, PageHandle):
            handle = page if page_id is None else page.with_id(page_id)
        else:
            handle = PageHandle.of(page)
            if page_id is not None:
                handle = handle.with_id(page_id)
        return cls(PageStack.with_page(handle), context=context_factory(), seed=seed)

    # ----------------------------------------------------------- resolution

    def view(self) -> View:
        """Invoke the current page until it produces a view.

        Raises:
            NoPageError: when there is no current page or a ``Back`` response
                asks for more history than the frame holds.
            GameEnd: when the story ends.
        """

        page = self.pages.current()
        if page is None:
            raise NoPageError("no current page")
        if page.id.is_unresolved:
            # placeholder; the resolved handle is pushed once the view exists
            self.pages.pop()

        self.iterations += 1
        while True:
            response = page.call(self)
            if isinstance(response, Viewed):
                view = response.view
                self.pages.push(page.with_id(view.page_id))
                self.fresh = False
                return view
            if isinstance(response, Redirect):
                logger.debug("redirect %s -> %s", page.label, response.target.name)
                page = response.target
            elif isinstance(response, Back):
                page = self.pages.pop_n(response.steps)
                if page.id.is_unresolved:
                    self.pages.pop()
            elif isinstance(response, EnterTunnel):
                logger.debug("entering tunnel %s", response.target.name)
                self.pages.adv_stack()
                page = response.target
            elif isinstance(response, Exit):
                if self.pages.pop_stack() is None:
                    raise GameEnd()
                current = self.pages.current()
                if current is None:
                    raise NoPageError("no page to resume after leaving tunnel")
                logger.debug("left tunnel, resuming %s", current.label)
                page = current
            elif isinstance(response, End):
                raise GameEnd()
            else:
                raise TypeError(
                    f"page {page.label!r} returned {type(response)!r}, expected a Response"
                )

    def page_state(self, page_id: str) -> PageState:
        """Return the page-body accessor for ``page_id``'s state slice."""

        return PageState(
            page_id,
            self.state,
            self.tags,
            fresh=self.fresh,
            simulating=self.simulating,
            seed=self.seed,
        )

    def current(self) -> PageHandle:
        page = self.pages.current()
        if page is None:
            raise NoPageError("no current page")
        return page

    # ------------------------------------------------------- action handling

    def handle_choice(self, key: StateKey, index: int) -> None:
        """Record that option ``index`` of the choice at ``key`` was picked."""

        self.state.set_bit(key, index)

    def handle_action(self, action: Action) -> None:
        """Apply one state or stack mutation; pages are not invoked."""

        if isinstance(action, NoOp):
            return
        if isinstance(action, SetBit):
            self.state.set_bit(action.key, action.bit)
        elif isinstance(action, SetValue):
            self.state.insert(action.key, action.value)
        elif isinstance(action, Increment):
            self.state.inc(action.key)
        elif isinstance(action, Remove):
            self.state.remove(action.key)
        elif isinstance(action, Next):
            # only rendered pages enter history under their resolved id
            self.pages.push(action.target.cleared())
        elif isinstance(action, GoBack):
            self.pages.pop_n(action.steps)
        elif isinstance(action, Tunnel):
            self.pages.adv_stack()
            self.pages.push(action.target.cleared())
        elif isinstance(action, ExitTunnel):
            if self.pages.pop_stack() is None:
                raise GameEnd()
        else:
            raise TypeError(f"unsupported action {action!r}")

    def interact(self, interactable: Interactable, page_id: str) -> None:
        """Apply an interactable extracted from the view of ``page_id``."""

        apply_interaction(self, interactable, page_id)

    def simulate(self, visitor: Callable[..., bool] | None = None) -> "Simulation":
        """Explore every interaction path from the current page.

        See :func:`talestack.sim.simulate`.
        """

        from .sim import simulate

        return simulate(self, visitor)

    # ------------------------------------------------------------- cloning

    def clone(self) -> "Game[C]":
        """Return an independent deep copy of the session."""

        clone: Game[C] = Game(
            self.pages.copy(),
            context=copy.deepcopy(self.context),
            state=self.state.copy(),
            tags=set(self.tags),
            seed=self.seed,
        )
        clone.fresh = self.fresh
        clone.iterations = self.iterations
        clone.simulating = self.simulating
        return clone

    def __repr__(self) -> str:
        return (
            f"Game(pages={self.pages!r}, state={self.state!r}, "
            f"tags={sorted(self.tags)!r}, context={self.context!r})"
        )


__all__ = ["Game", "GameTags", "PageStack"]
