import random

import pytest

from talestack import End, Game, GameState, Line, PageState, Paragraph, Viewed, story_page


def _state(**kwargs):  # type: ignore[no-untyped-def]
    return PageState("P", GameState(), set(), **kwargs)


def test_accessors_are_scoped_to_the_page() -> None:
    store = GameState({"Other": {1: 9}})
    state = PageState("P", store, set())

    state.insert(1, 5)
    assert state.inc(1) == 6
    assert state.get(1) == 6
    assert store.get(("P", 1)) == 6
    assert store.get(("Other", 1)) == 9

    assert state.remove(1) == 6
    assert state.get(1) is None


def test_reads_do_not_create_entries() -> None:
    store = GameState()
    state = PageState("P", store, set())

    assert state.get(3) is None
    assert state.get_mask_indices(3) == []
    assert state.get_mask(3, 2) == (False, False)
    assert len(store) == 0
    assert list(store.pages()) == []


def test_mask_helpers() -> None:
    state = _state()
    state.set_bit(2, 4)
    state.set_bit(2, 1)

    assert state.get_mask_indices(2) == [1, 4]
    assert state.get_mask(2, 5) == (False, True, False, False, True)
    assert state.is_set(2, 4)
    assert not state.is_set(2, 0)
    assert state.get_mask_last(2) == 1

    assert state.remove_mask_last(2) == 1
    assert state.get(2) is None
    assert state.remove_mask_last(2) is None


def test_rand_is_deterministic_with_seed() -> None:
    state = _state(seed=42)

    expected = random.Random(42).choice([0, 1, 3, 4])
    assert state.rand(5, exclude=[2]) == expected
    assert state.rand(5, exclude=[2]) == expected


def test_rand_fails_when_everything_is_excluded() -> None:
    with pytest.raises(ValueError):
        _state(seed=1).rand(2, exclude=[0, 1])
    with pytest.raises(ValueError):
        _state().rand(0)


def test_tags_are_recorded_on_session_and_view() -> None:
    tags: set = set()
    state = PageState("P", GameState(), tags)

    assert state.tag("visited")
    assert not state.tag("visited")
    assert state.has_tag("visited")
    assert state.view.tags == ["visited", "visited"]
    assert tags == {"visited"}

    assert state.untag("visited")
    assert not state.untag("visited")
    assert tags == set()


def test_view_building_and_response() -> None:
    state = _state()
    state.push(Paragraph(Line.of("one")))
    state.extend([Paragraph(Line.of("two")), Paragraph(Line.of("three"))])

    response = state.into_response()

    assert isinstance(response, Viewed)
    assert response.view.page_id == "P"
    assert len(response.view) == 3
    assert str(state) == "P"


def test_story_page_uses_function_name_by_default() -> None:
    @story_page
    def cellar(state, context):  # type: ignore[no-untyped-def]
        state.push(Paragraph(Line.of("Damp stone.")))

    expected = f"{cellar.__module__}.{cellar.__qualname__}"
    assert cellar.__talestack_id__ == expected  # type: ignore[attr-defined]

    view = Game.new_with_page(cellar).view()
    assert view.page_id == expected
    assert view.page_id.basename == "cellar"


def test_story_page_can_short_circuit() -> None:
    @story_page(name="gate")
    def gate(state, context):  # type: ignore[no-untyped-def]
        if context.get("locked"):
            return End()
        state.push(Paragraph(Line.of("Open.")))
        return None

    game = Game.new_with_page(gate, context_factory=lambda: {"locked": True})
    assert isinstance(gate(game), End)

    game.context["locked"] = False
    response = gate(game)
    assert isinstance(response, Viewed)
    assert response.view.page_id == "gate"
