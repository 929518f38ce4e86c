"""Helpers for driving and inspecting ``Game`` instances during tests."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence, Union

from .game import Game
from .interact import Interactable, interactables_flat
from .page import PageId
from .view import View


@dataclass(frozen=True)
class GameDebugSnapshot:
    """Structured view of a session's internal state for debugging."""

    stack: tuple[tuple[PageId, ...], ...]
    state: Mapping[str, Mapping[int, int]]
    tags: tuple[PageId, ...]
    context: Any
    iterations: int


@dataclass(frozen=True)
class StepResult:
    """Outcome of a single step: what was picked and the view it led to."""

    selection: Union[int, str, None]
    view: View


__all__ = [
    "GameDebugSnapshot",
    "StepResult",
    "choose",
    "debug_snapshot",
    "step_through",
]


def choose(view: View, selection: Union[int, str]) -> Interactable:
    """Return the interactable picked by flat index or by its exact text.

    Raises:
        ValueError: If nothing on the view matches ``selection``.
    """

    available = interactables_flat(view)
    if isinstance(selection, bool):
        raise TypeError("selections must be integers or strings")
    if isinstance(selection, int):
        if not 0 <= selection < len(available):
            raise ValueError(
                f"Selection {selection} is out of range; the view offers {len(available)}."
            )
        return available[selection]
    if isinstance(selection, str):
        wanted = selection.strip()
        for interactable in available:
            if interactable.content.strip() == wanted:
                return interactable
        formatted = ", ".join(repr(item.content) for item in available) or "(none)"
        raise ValueError(f"'{selection}' is not available. Choose from: {formatted}.")
    raise TypeError("selections must be integers or strings")


def step_through(
    game: Game[Any], selections: Iterable[Union[int, str]]
) -> Sequence[StepResult]:
    """Resolve the current view, then apply each selection and resolve again."""

    steps: list[StepResult] = []
    current = game.view()
    steps.append(StepResult(selection=None, view=current))

    for selection in selections:
        interactable = choose(current, selection)
        game.interact(interactable, current.page_id)
        current = game.view()
        steps.append(StepResult(selection=selection, view=current))

    return tuple(steps)


def debug_snapshot(game: Game[Any]) -> GameDebugSnapshot:
    """Capture a deterministic snapshot of ``game`` for assertions.

    Tags are sorted and the context is deep-copied so later mutation of the
    session does not leak into the snapshot.
    """

    return GameDebugSnapshot(
        stack=tuple(tuple(frame) for frame in game.pages.ids()),
        state=game.state.to_dict(),
        tags=tuple(sorted(game.tags)),
        context=copy.deepcopy(game.context),
        iterations=game.iterations,
    )
