"""Find the clickable parts of a view and apply them to a session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Tuple, Union

from .action import NoOp
from .errors import GameError
from .page import PageId
from .view import Choice, Heading, Line, Note, Paragraph, Quote, Span, Text, View, ViewObject

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from .game import Game


@dataclass(frozen=True, eq=False)
class ChoiceInteractable:
    """Option ``index`` of a choice list."""

    choice: Choice
    index: int

    @property
    def key(self) -> int:
        return self.choice.key

    @property
    def content(self) -> str:
        return self.choice.option(self.index).content


@dataclass(frozen=True, eq=False)
class SpanInteractable:
    """An action-bearing span and the object containing it."""

    parent: ViewObject
    span: Span

    @property
    def content(self) -> str:
        return self.span.content


Interactable = Union[ChoiceInteractable, SpanInteractable]


def _line_spans(line: Line, parent: ViewObject) -> List[Interactable]:
    return [SpanInteractable(parent, span) for span in line.spans if span.action is not None]


def interactables(view: View) -> List[List[Interactable]]:
    """Return one bucket of interactables per view object, in view order.

    Each choice option contributes an aggregate :class:`ChoiceInteractable`
    unless every span of the option carries its own action, followed by its
    action-bearing spans.
    """

    buckets: List[List[Interactable]] = []
    for obj in view:
        bucket: List[Interactable] = []
        if isinstance(obj, (Text, Paragraph, Note, Quote)):
            bucket.extend(_line_spans(obj.line, obj))
        elif isinstance(obj, Heading):
            if obj.span.action is not None:
                bucket.append(SpanInteractable(obj, obj.span))
        elif isinstance(obj, Choice):
            for index, line in obj.options:
                if not all(span.action is not None for span in line.spans):
                    bucket.append(ChoiceInteractable(obj, index))
                bucket.extend(_line_spans(line, obj))
        buckets.append(bucket)
    return buckets


def interactables_flat(view: View) -> List[Interactable]:
    """Concatenate :func:`interactables`, dropping spans whose action is a no-op."""

    return [
        interactable
        for bucket in interactables(view)
        for interactable in bucket
        if not (
            isinstance(interactable, SpanInteractable)
            and isinstance(interactable.span.action, NoOp)
        )
    ]


def apply_interaction(game: "Game[Any]", interactable: Interactable, page_id: str) -> None:
    """Apply ``interactable`` as if the player chose it on page ``page_id``.

    Raises:
        ValueError: If a span interactable carries no action.
        GameError: Propagated from navigation actions.
    """

    if isinstance(interactable, ChoiceInteractable):
        game.handle_choice((PageId(page_id), interactable.key), interactable.index)
        return
    action = interactable.span.action
    if action is None:
        raise ValueError(f"span {interactable.span.content!r} has no action")
    game.handle_action(action)


def fork_interactions(
    game: "Game[Any]", view: View
) -> List[Tuple[Interactable, "Game[Any] | GameError"]]:
    """Apply every flat interactable of ``view`` to its own clone of ``game``."""

    results: List[Tuple[Interactable, "Game[Any] | GameError"]] = []
    for interactable in interactables_flat(view):
        fork = game.clone()
        try:
            apply_interaction(fork, interactable, view.page_id)
        except GameError as exc:
            results.append((interactable, exc))
        else:
            results.append((interactable, fork))
    return results


__all__ = [
    "ChoiceInteractable",
    "SpanInteractable",
    "Interactable",
    "interactables",
    "interactables_flat",
    "apply_interaction",
    "fork_interactions",
]
