"""A short bundled story used by the graph CLI and the tests."""

from __future__ import annotations

from typing import Any, MutableMapping

from .elements import build_choice, exit_link, link, tunnel
from .errors import CustomEnd
from .page import End
from .page_state import PageState, story_page
from .view import Heading, Line, Paragraph

RUMOURS = 1
TAVERN_TALK = 2


@story_page
def harbour(state: PageState, context: MutableMapping[str, Any]) -> None:
    context.setdefault("days", 0)
    state.tag("arrived")
    state.push(Heading("The Harbour", 1))
    state.push(Paragraph(Line.lingual("Gulls wheel over the quay... the tide is turning.")))
    state.push(
        build_choice(
            state,
            RUMOURS,
            ["Ask about the wreck", "Check the tide tables"],
        )
    )
    if 0 in state.get_mask_indices(RUMOURS):
        state.push(Paragraph(Line.of("They say the lamp went dark the night she sank.")))
    state.push(
        Paragraph(
            Line.of(
                link("Walk to the lighthouse", lighthouse),
                " or ",
                tunnel("step into the tavern", tavern),
                ".",
            )
        )
    )


@story_page
def lighthouse(state: PageState, context: MutableMapping[str, Any]) -> None:
    context["days"] = context.get("days", 0) + 1
    state.push(Paragraph(Line.lingual("The door groans. Stairs spiral into the dark.")))
    state.push(Paragraph(Line.of(link("Climb to the lamp room", lamp_room))))
    state.push(Paragraph(Line.of(link("Row out toward the wreck", storm))))


@story_page
def lamp_room(state: PageState, context: MutableMapping[str, Any]) -> None:
    state.tag("lamp-seen")
    state.push(Paragraph(Line.lingual("Dust and old oil. The lens is cracked but whole.")))
    state.push(Paragraph(Line.of(link("Light the lamp", dawn))))


@story_page
def dawn(state: PageState, context: MutableMapping[str, Any]) -> End:
    return End()


@story_page
def storm(state: PageState, context: MutableMapping[str, Any]) -> None:
    raise CustomEnd("lost at sea")


@story_page
def tavern(state: PageState, context: MutableMapping[str, Any]) -> None:
    state.push(Heading("The Drowned Anchor", 2))
    state.push(
        build_choice(
            state,
            TAVERN_TALK,
            ["Buy the keeper a drink", "Listen to the fiddler"],
        )
    )
    if state.get_mask_indices(TAVERN_TALK):
        state.tag("tavern-gossip")
    state.push(Paragraph(Line.of(exit_link("Head back outside"))))


__all__ = ["harbour", "lighthouse", "lamp_room", "dawn", "storm", "tavern"]
