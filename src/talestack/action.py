"""Commands attached to interactive view elements."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .game_state import StateKey, validate_bit, validate_u64
from .page import PageHandle, PageId


def _normalise_key(key: StateKey) -> StateKey:
    if not isinstance(key, tuple) or len(key) != 2:
        raise TypeError("state keys must be (page id, page key) tuples")
    page_id, entry_key = key
    if isinstance(entry_key, bool) or not isinstance(entry_key, int):
        raise TypeError("page keys must be integers")
    return (PageId(page_id), validate_u64(entry_key, field_name="page key"))


@dataclass(frozen=True)
class NoOp:
    """Does nothing; interaction extraction skips spans carrying it."""


@dataclass(frozen=True)
class SetBit:
    key: StateKey
    bit: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "key", _normalise_key(self.key))
        validate_bit(self.bit)


@dataclass(frozen=True)
class SetValue:
    key: StateKey
    value: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "key", _normalise_key(self.key))
        validate_u64(self.value)


@dataclass(frozen=True)
class Increment:
    key: StateKey

    def __post_init__(self) -> None:
        object.__setattr__(self, "key", _normalise_key(self.key))


@dataclass(frozen=True)
class Remove:
    key: StateKey

    def __post_init__(self) -> None:
        object.__setattr__(self, "key", _normalise_key(self.key))


@dataclass(frozen=True)
class Next:
    """Navigate forward to ``target``.

    The handle's id is only a debugging aid; the page is recorded under its
    resolved id once it produces a view.
    """

    target: PageHandle


@dataclass(frozen=True)
class GoBack:
    steps: int = 1

    def __post_init__(self) -> None:
        if isinstance(self.steps, bool) or not isinstance(self.steps, int):
            raise TypeError("steps must be an integer")
        if self.steps < 0:
            raise ValueError("steps must be non-negative")


@dataclass(frozen=True)
class Tunnel:
    """Enter a new tunnel whose first page is ``target``."""

    target: PageHandle


@dataclass(frozen=True)
class ExitTunnel:
    """Leave the current tunnel."""


Action = Union[NoOp, SetBit, SetValue, Increment, Remove, Next, GoBack, Tunnel, ExitTunnel]


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
]
