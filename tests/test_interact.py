import pytest

from talestack import (
    Choice,
    ChoiceInteractable,
    Game,
    GameError,
    Heading,
    Image,
    Line,
    NoOp,
    NoPageError,
    Paragraph,
    SetBit,
    SetValue,
    Span,
    SpanInteractable,
    View,
    back_link,
    fork_interactions,
    interactables,
    interactables_flat,
)
from talestack.interact import apply_interaction


def _sample_view() -> View:
    return View(
        "P",
        [
            Heading(Span("Title").with_action(NoOp())),
            Paragraph(Line.of("plain ", Span("poke").with_action(SetValue(("P", 1), 3)))),
            Choice(
                4,
                (
                    (0, Line.of("just text")),
                    (1, Line.of(Span("all action").with_action(SetBit(("P", 3), 1)))),
                    (2, Line.of("mixed ", Span("part").with_action(NoOp()))),
                ),
            ),
            Image.from_url("https://example.invalid/map.png"),
        ],
    )


def test_interactables_are_bucketed_per_object() -> None:
    buckets = interactables(_sample_view())

    assert len(buckets) == 4
    assert [item.content for item in buckets[0]] == ["Title"]
    assert [item.content for item in buckets[1]] == ["poke"]
    assert buckets[3] == []

    choice_bucket = buckets[2]
    assert [type(item) for item in choice_bucket] == [
        ChoiceInteractable,
        SpanInteractable,
        ChoiceInteractable,
        SpanInteractable,
    ]
    assert [item.content for item in choice_bucket] == [
        "just text",
        "all action",
        "mixed part",
        "part",
    ]


def test_flat_interactables_skip_no_op_spans() -> None:
    flat = interactables_flat(_sample_view())

    assert [item.content for item in flat] == [
        "poke",
        "just text",
        "all action",
        "mixed part",
    ]


def test_choice_interactable_exposes_key_and_index() -> None:
    choice = next(
        item for item in interactables_flat(_sample_view()) if isinstance(item, ChoiceInteractable)
    )

    assert choice.key == 4
    assert choice.index == 0


def test_span_without_action_is_rejected() -> None:
    game = Game.new_with_page(lambda game: None)
    paragraph = Paragraph(Line.of("inert"))

    with pytest.raises(ValueError):
        apply_interaction(game, SpanInteractable(paragraph, Span("inert")), "P")


def test_span_actions_apply_to_the_game() -> None:
    game = Game.new_with_page(lambda game: None)
    flat = interactables_flat(_sample_view())

    game.interact(flat[0], "P")
    game.interact(flat[1], "P")

    assert game.state.get(("P", 1)) == 3
    assert game.state.get(("P", 4)) == 1


def test_fork_interactions_isolates_each_branch() -> None:
    game = Game.new_with_page(lambda game: None, "P")
    view = View(
        "P",
        [
            Paragraph(
                Line.of(
                    back_link("back"),
                    Span("store").with_action(SetValue(("P", 2), 11)),
                )
            )
        ],
    )

    results = fork_interactions(game, view)

    assert [interactable.content for interactable, _ in results] == ["back", "store"]
    back_outcome = results[0][1]
    store_outcome = results[1][1]
    assert isinstance(back_outcome, NoPageError)
    assert isinstance(back_outcome, GameError)
    assert isinstance(store_outcome, Game)
    assert store_outcome.state.get(("P", 2)) == 11
    assert game.state.get(("P", 2)) is None
