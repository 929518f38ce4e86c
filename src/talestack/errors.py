"""Error taxonomy shared by the page stack, the session and the simulator."""

from __future__ import annotations

from dataclasses import dataclass


class GameError(Exception):
    """Base class for failures raised while resolving or navigating pages."""

    kind = "GameError"

    def __str__(self) -> str:
        message = super().__str__()
        return message or self.kind


class NoStackError(GameError):
    """Raised when an operation needs a frame but the page stack has none."""

    kind = "NoStack"


class NoPageError(GameError):
    """Raised when a frame has no valid target for the requested operation."""

    kind = "NoPage"


class GameEnd(GameError):
    """Raised when the story finishes deliberately.

    This is not an abnormal condition; it is kept distinct from
    :class:`NoStackError` and :class:`NoPageError` so callers can tell a
    finished story from a broken one.
    """

    kind = "End"


class CustomEnd(GameEnd):
    """A story ending carrying an author supplied description."""

    kind = "Custom"

    def __init__(self, message: str) -> None:
        if not isinstance(message, str) or not message.strip():
            raise ValueError("custom endings require a non-empty message")
        super().__init__(message.strip())
        self.message = message.strip()


@dataclass(frozen=True)
class SimEnd:
    """Terminal outcome recorded against a page during simulation."""

    kind: str
    detail: str = ""

    GAME_ERROR = "game_error"
    TUNNEL = "tunnel"
    TUNNEL_EXIT = "tunnel_exit"
    CUSTOM = "custom"

    @classmethod
    def from_error(cls, error: GameError) -> "SimEnd":
        if isinstance(error, CustomEnd):
            return cls.custom(error.message)
        return cls(cls.GAME_ERROR, error.kind)

    @classmethod
    def tunnel(cls, name: str) -> "SimEnd":
        return cls(cls.TUNNEL, name)

    @classmethod
    def tunnel_exit(cls) -> "SimEnd":
        return cls(cls.TUNNEL_EXIT)

    @classmethod
    def custom(cls, message: str) -> "SimEnd":
        return cls(cls.CUSTOM, message)

    def __str__(self) -> str:
        if self.kind == self.TUNNEL:
            return self.detail
        if self.kind == self.TUNNEL_EXIT:
            return "⟨Exit⟩"
        return f"⟨{self.detail}⟩"


__all__ = [
    "GameError",
    "NoStackError",
    "NoPageError",
    "GameEnd",
    "CustomEnd",
    "SimEnd",
]
