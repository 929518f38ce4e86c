"""Exhaustive exploration of every interaction path through a story.

Starting from a session's current page, every interactable of every produced
view is tried on its own clone of the session. The result is a graph of
:class:`PageRecord` objects per run; a run is the exploration rooted at the
story start or at a tunnel entrance.

Cycles must pass through tunnels. A tunnel entrance does not continue the
current branch; it queues a new run instead, at most once per source page,
tunnel name and session fingerprint (state store, tags and context). A
tunnel cycle that returns to an already seen session is therefore not
explored again, which is what bounds the exploration. Cycles made of plain
links, or tunnel cycles that keep changing the session (e.g. a counter
incremented on every visit), do not terminate unless the visitor prunes
them.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterator,
    List,
    Mapping,
    Optional,
    Set,
    Tuple,
    TypeVar,
)

from .action import ExitTunnel, Tunnel
from .errors import GameEnd, GameError, NoPageError, SimEnd
from .game import Game, PageStack
from .interact import ChoiceInteractable, Interactable, interactables_flat
from .page import (
    Back,
    End,
    EnterTunnel,
    Exit,
    PageHandle,
    PageId,
    Redirect,
    Viewed,
)
from .view import View

logger = logging.getLogger(__name__)

C = TypeVar("C")


@dataclass
class SimulationState(Generic[C]):
    """One pending branch: a forked session plus its position in the run."""

    game: Game[C]
    depth: int = 0
    last: Optional[PageId] = None

    def next(self, current_id: PageId) -> "SimulationState[C]":
        return SimulationState(self.game.clone(), self.depth + 1, current_id)


Visitor = Callable[[SimulationState[Any]], bool]
"""Called before each resolution; returning ``True`` prunes the branch."""


@dataclass
class PageRecord:
    """What the simulation learned about one resolved page."""

    id: PageId
    min_depth: int
    ends: Set[SimEnd] = field(default_factory=set)
    tags: Set[PageId] = field(default_factory=set)
    incoming: Set[PageId] = field(default_factory=set)
    outgoing_tunnels: Set[str] = field(default_factory=set)

    def split(self) -> Tuple["PageRecord", Set[PageId]]:
        """Return a copy without incoming edges, and the edges."""

        stripped = PageRecord(
            id=self.id,
            min_depth=self.min_depth,
            ends=set(self.ends),
            tags=set(self.tags),
            outgoing_tunnels=set(self.outgoing_tunnels),
        )
        return stripped, set(self.incoming)

    def is_empty(self) -> bool:
        return not self.ends and not self.tags

    def display_width(self) -> int:
        """Return the widest outcome or tag label, at least six characters."""

        widths = [6]
        widths.extend(len(str(end)) for end in self.ends)
        widths.extend(len(tag) for tag in self.tags)
        return max(widths)


class PageRecords(Mapping[PageId, PageRecord]):
    """Records of a single run keyed by resolved page id."""

    def __init__(self) -> None:
        self._records: Dict[PageId, PageRecord] = {}

    def insert_view(self, state: SimulationState[Any], view: View) -> PageRecord:
        """Merge ``view`` into its record, draining the view's tags.

        The branch's previous page becomes an incoming edge and the record
        keeps the smallest depth it was reached at.
        """

        record = self._records.get(view.page_id)
        if record is None:
            record = PageRecord(id=view.page_id, min_depth=state.depth)
            self._records[view.page_id] = record
        else:
            record.min_depth = min(record.min_depth, state.depth)
        record.tags.update(view.drain_tags())
        if state.last is not None:
            record.incoming.add(state.last)
        return record

    def push_sim_end(self, page_id: PageId, end: SimEnd) -> None:
        record = self._records.get(page_id)
        if record is not None:
            record.ends.add(end)

    def add_outgoing_tunnel(self, page_id: PageId, name: str) -> None:
        record = self._records.get(page_id)
        if record is not None:
            record.outgoing_tunnels.add(name)

    def depth(self) -> int:
        """Return the largest minimum depth; ``0`` for a root-only run."""

        return max((record.min_depth for record in self._records.values()), default=0)

    def __getitem__(self, page_id: PageId) -> PageRecord:
        return self._records[PageId(page_id)]

    def __iter__(self) -> Iterator[PageId]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"PageRecords({sorted(self._records)!r})"


@dataclass
class Simulation:
    """Records of every run, keyed by run name."""

    runs: Dict[str, PageRecords] = field(default_factory=dict)

    @property
    def record_count(self) -> int:
        return sum(len(records) for records in self.runs.values())

    def __getitem__(self, run_name: str) -> PageRecords:
        return self.runs[run_name]

    def __contains__(self, run_name: object) -> bool:
        return run_name in self.runs

    def __iter__(self) -> Iterator[str]:
        return iter(self.runs)

    def __len__(self) -> int:
        return len(self.runs)


class _BranchEnded(Exception):
    """Internal signal carrying the outcome that stopped a branch."""

    def __init__(self, end: SimEnd) -> None:
        super().__init__(str(end))
        self.end = end


def _never(_: SimulationState[Any]) -> bool:
    return False


def _session_fingerprint(game: Game[Any]) -> str:
    """Return a stable key for the session data a tunnel run can observe."""

    try:
        context = json.dumps(game.context, sort_keys=True, default=repr)
    except (TypeError, ValueError):
        # mapping keys json cannot encode
        context = repr(game.context)
    return json.dumps(
        {"state": game.state.to_dict(), "tags": sorted(game.tags), "context": context},
        sort_keys=True,
    )


class _Simulator:
    def __init__(self, visitor: Visitor) -> None:
        self.visitor = visitor
        self.simulation = Simulation()
        self.tunnels: List[Tuple[str, Game[Any]]] = []
        self.spawned: Set[Tuple[str, str, str]] = set()
        self.records = PageRecords()

    def run(self, game: Game[Any]) -> Simulation:
        start = game.pages.current()
        if start is None:
            raise NoPageError("cannot simulate a session without a current page")

        # runs are grouped by basename; the same page may be imported under
        # different module paths
        run_name = start.name.basename
        root = game.clone()
        root.simulating = True
        self.tunnels.append((run_name, root))

        while self.tunnels:
            name, root = self.tunnels.pop()
            logger.debug("exploring run %s", name)
            self.records = self.simulation.runs.setdefault(name, PageRecords())
            self._explore([SimulationState(root)])

        logger.info(
            "simulation finished: %d runs, %d page records",
            len(self.simulation),
            self.simulation.record_count,
        )
        return self.simulation

    def _explore(self, queue: List[SimulationState[Any]]) -> None:
        while queue:
            state = queue.pop()
            page = state.game.pages.current()
            if page is None:
                logger.debug("branch at depth %d has no current page", state.depth)
                continue
            if page.id.is_unresolved:
                state.game.pages.pop()

            if self.visitor(state):
                continue

            try:
                view = self._resolve(state, page)
            except _BranchEnded as ended:
                logger.debug("branch after %s ended: %s", state.last, ended.end)
                if state.last is not None:
                    self.records.push_sim_end(state.last, ended.end)
                continue

            current_id = view.page_id
            self.records.insert_view(state, view)

            branches: List[SimulationState[Any]] = []
            for interactable in interactables_flat(view):
                branch = state.next(current_id)
                try:
                    self._interact(branch, interactable, current_id)
                except _BranchEnded as ended:
                    self.records.push_sim_end(current_id, ended.end)
                else:
                    branches.append(branch)

            # popped from the end, so the first interactable is explored first
            queue.extend(reversed(branches))

    def _resolve(self, state: SimulationState[Any], page: PageHandle) -> View:
        game = state.game
        while True:
            try:
                response = page.call(game)
            except GameError as exc:
                raise _BranchEnded(SimEnd.from_error(exc)) from exc

            if isinstance(response, Viewed):
                view = response.view
                try:
                    game.pages.push(page.with_id(view.page_id))
                except GameError as exc:
                    raise _BranchEnded(SimEnd.from_error(exc)) from exc
                game.fresh = False
                return view
            if isinstance(response, Redirect):
                page = response.target
            elif isinstance(response, Back):
                try:
                    page = game.pages.pop_n(response.steps)
                except GameError as exc:
                    raise _BranchEnded(SimEnd.from_error(exc)) from exc
                if page.id.is_unresolved:
                    game.pages.pop()
            elif isinstance(response, EnterTunnel):
                name = self._spawn_tunnel(state.last, response.target, game.clone())
                raise _BranchEnded(SimEnd.tunnel(name))
            elif isinstance(response, Exit):
                # a tunnel exit and the end of the game look the same here
                raise _BranchEnded(SimEnd.tunnel_exit())
            elif isinstance(response, End):
                raise _BranchEnded(SimEnd.from_error(GameEnd()))
            else:
                raise TypeError(
                    f"page {page.label!r} returned {type(response)!r}, expected a Response"
                )

    def _interact(
        self, branch: SimulationState[Any], interactable: Interactable, page_id: PageId
    ) -> None:
        game = branch.game
        if isinstance(interactable, ChoiceInteractable):
            game.handle_choice((page_id, interactable.key), interactable.index)
            return

        action = interactable.span.action
        if isinstance(action, Tunnel):
            name = self._spawn_tunnel(page_id, action.target, game)
            raise _BranchEnded(SimEnd.tunnel(name))
        if isinstance(action, ExitTunnel):
            raise _BranchEnded(SimEnd.tunnel_exit())
        try:
            game.interact(interactable, page_id)
        except GameError as exc:
            raise _BranchEnded(SimEnd.from_error(exc)) from exc

    def _spawn_tunnel(
        self, source: Optional[PageId], target: PageHandle, fork: Game[Any]
    ) -> str:
        """Queue a new run rooted at ``target`` and return its name."""

        name = target.name.basename
        key = (source or "", name, _session_fingerprint(fork))
        if source is not None:
            self.records.add_outgoing_tunnel(source, name)
        if key in self.spawned:
            logger.debug("tunnel %s from %s already queued for this session", name, source)
            return name
        self.spawned.add(key)

        fork.pages = PageStack.with_page(target.cleared())
        fork.simulating = True
        self.tunnels.append((name, fork))
        logger.debug("queued tunnel run %s from %s", name, source)
        return name


def simulate(game: Game[Any], visitor: Visitor | None = None) -> Simulation:
    """Explore every reachable view of ``game`` without mutating it.

    Args:
        game: Session whose current page starts the first run.
        visitor: Optional predicate called with each branch before it is
            resolved. Returning ``True`` stops exploring that branch.

    Raises:
        NoPageError: If ``game`` has no current page.
    """

    return _Simulator(visitor or _never).run(game)


def depth_limit(max_depth: int) -> Visitor:
    """Return a visitor pruning branches deeper than ``max_depth``."""

    if max_depth < 0:
        raise ValueError("max_depth must be non-negative")

    def visitor(state: SimulationState[Any]) -> bool:
        return state.depth > max_depth

    return visitor


__all__ = [
    "Simulation",
    "SimulationState",
    "PageRecord",
    "PageRecords",
    "Visitor",
    "simulate",
    "depth_limit",
]
