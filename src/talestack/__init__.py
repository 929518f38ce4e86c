"""Page navigation runtime and path simulator for interactive fiction."""

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
from .elements import ChoiceVariant, back_link, build_choice, exit_link, link, tunnel
from .errors import CustomEnd, GameEnd, GameError, NoPageError, NoStackError, SimEnd
from .game import Game, GameTags, PageStack
from .game_state import GameState, PageKey, StateKey
from .interact import (
    ChoiceInteractable,
    Interactable,
    SpanInteractable,
    fork_interactions,
    interactables,
    interactables_flat,
)
from .page import (
    UNRESOLVED,
    Back,
    End,
    EnterTunnel,
    Exit,
    Page,
    PageHandle,
    PageId,
    Redirect,
    Response,
    Viewed,
)
from .page_state import PageState, story_page
from .persistence import (
    FileSessionStore,
    InMemorySessionStore,
    SessionSnapshot,
    SessionStore,
)
from .settings import SimulationSettings
from .sim import (
    PageRecord,
    PageRecords,
    Simulation,
    SimulationState,
    depth_limit,
    simulate,
)
from .view import (
    Break,
    Choice,
    Custom,
    Empty,
    Heading,
    Image,
    Line,
    Modifier,
    Note,
    Paragraph,
    Quote,
    Span,
    SpanVariant,
    Text,
    View,
)

__all__ = [
    "Action",
    "NoOp",
    "SetBit",
    "SetValue",
    "Increment",
    "Remove",
    "Next",
    "GoBack",
    "Tunnel",
    "ExitTunnel",
    "ChoiceVariant",
    "link",
    "tunnel",
    "exit_link",
    "back_link",
    "build_choice",
    "GameError",
    "NoStackError",
    "NoPageError",
    "GameEnd",
    "CustomEnd",
    "SimEnd",
    "Game",
    "GameTags",
    "PageStack",
    "GameState",
    "PageKey",
    "StateKey",
    "Interactable",
    "ChoiceInteractable",
    "SpanInteractable",
    "interactables",
    "interactables_flat",
    "fork_interactions",
    "PageId",
    "UNRESOLVED",
    "Page",
    "PageHandle",
    "Response",
    "Viewed",
    "Redirect",
    "Back",
    "EnterTunnel",
    "Exit",
    "End",
    "PageState",
    "story_page",
    "SessionSnapshot",
    "SessionStore",
    "InMemorySessionStore",
    "FileSessionStore",
    "SimulationSettings",
    "Simulation",
    "SimulationState",
    "PageRecord",
    "PageRecords",
    "simulate",
    "depth_limit",
    "View",
    "Text",
    "Paragraph",
    "Choice",
    "Image",
    "Heading",
    "Break",
    "Empty",
    "Note",
    "Quote",
    "Custom",
    "Line",
    "Span",
    "SpanVariant",
    "Modifier",
]
