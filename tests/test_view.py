import pytest

from talestack import (
    Choice,
    Heading,
    Line,
    Modifier,
    NoOp,
    SetBit,
    SetValue,
    Span,
    SpanVariant,
    View,
)
from talestack.text import fnv1a_64
from talestack.view import Image, ImageSource, as_line


def test_span_builders_return_new_spans() -> None:
    base = Span("Lantern")
    styled = (
        base.as_link()
        .with_modifiers(Modifier.BOLD)
        .with_modifiers(Modifier.ITALIC)
        .with_style(font_weight="600")
    )

    assert base.variant is SpanVariant.NONE
    assert styled.variant is SpanVariant.LINK
    assert styled.modifiers == Modifier.BOLD | Modifier.ITALIC
    assert dict(styled.style) == {"font-weight": "600"}
    assert not styled.is_interactive
    assert styled.with_action(NoOp()).is_interactive


def test_hide_if_drops_text_and_action() -> None:
    span = Span("again").with_action(NoOp())

    assert span.hide_if(False) is span
    hidden = span.hide_if(True)
    assert hidden.content == ""
    assert hidden.action is None


def test_span_lingual_and_line_content() -> None:
    line = Line.lingual("It's ", Span("late...").as_link())

    assert line.content == "It’s late…"
    assert line.spans[1].variant is SpanVariant.LINK
    assert len(line) == 2


def test_interleaved_actions_with_masks() -> None:
    line = Line.from_interleaved_actions(("P", 4), ["go ", "north", " or ", "south"])

    spans = list(line)
    assert [span.content for span in spans] == ["go ", "north", " or ", "south"]
    assert spans[0].action is None
    assert spans[1].action == SetBit(("P", 4), 0)
    assert spans[3].action == SetBit(("P", 4), 1)
    assert spans[3].variant is SpanVariant.LINK


def test_interleaved_actions_with_hashes() -> None:
    line = Line.from_interleaved_actions(("P", 4), ["", "north"], mask=False)

    assert line.spans[1].action == SetValue(("P", 4), fnv1a_64("north"))


def test_as_line_coerces_values() -> None:
    assert as_line("text").content == "text"
    assert as_line(Span("span")).content == "span"
    assert as_line(["a", Span("b")]).content == "ab"
    with pytest.raises(TypeError):
        as_line([1])  # type: ignore[list-item]


def test_choice_validates_indices() -> None:
    choice = Choice(3, ((0, "zero"), (5, Line.of("five"))))

    assert choice.option(5).content == "five"
    with pytest.raises(KeyError):
        choice.option(1)
    with pytest.raises(ValueError):
        Choice(3, ((1, "a"), (1, "b")))
    with pytest.raises(ValueError):
        Choice(3, ((64, "too far"),))


def test_heading_level_bounds() -> None:
    assert Heading("Title").span.content == "Title"
    with pytest.raises(ValueError):
        Heading("Title", 7)


def test_image_builders() -> None:
    image = Image.from_local("maps/harbour.png", b"\x89PNG").with_size(32, 16).with_alt("Map")

    assert image.source is ImageSource.LOCAL
    assert (image.width, image.height, image.alt) == (32, 16, "Map")
    assert Image.from_url("https://example.invalid/a.png").source is ImageSource.URL


def test_view_collects_objects_and_drains_tags() -> None:
    view = View("harbour", tags=["arrived"])
    view.push(Heading("Harbour"))

    assert len(view) == 1
    assert isinstance(view[0], Heading)
    assert view.drain_tags() == ["arrived"]
    assert view.tags == []
    assert view == View("harbour", view.objects)
    assert view != View("dock", view.objects)
