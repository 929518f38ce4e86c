"""Session persistence utilities.

Only the opaque session data is stored: the state store, the tags, the
freshness flag, the iteration counter and the author context (which must be
JSON compatible for :class:`FileSessionStore`). The page stack holds page
callables and is rebuilt by the embedding application.
"""

from __future__ import annotations

import copy
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List

from pydantic import BaseModel, Field, ValidationError, field_validator

from .game import Game
from .game_state import GameState, validate_u64
from .page import PageId

logger = logging.getLogger(__name__)


class _SessionPayload(BaseModel):
    """Schema of a stored session snapshot."""

    state: Dict[str, Dict[int, int]] = Field(default_factory=dict)
    tags: List[str] = Field(default_factory=list)
    fresh: bool = True
    iterations: int = Field(default=0, ge=0)
    context: Any = None

    @field_validator("state")
    @classmethod
    def _check_values(cls, value: Dict[str, Dict[int, int]]) -> Dict[str, Dict[int, int]]:
        for entries in value.values():
            for key, stored in entries.items():
                validate_u64(key, field_name="page key")
                validate_u64(stored)
        return value


@dataclass
class SessionSnapshot:
    """Represents the data required to persist a single game session."""

    state: GameState = field(default_factory=GameState)
    tags: FrozenSet[PageId] = frozenset()
    fresh: bool = True
    iterations: int = 0
    context: Any = None

    def to_payload(self) -> Dict[str, object]:
        """Return a JSON-serialisable representation of the snapshot."""

        return {
            "state": {
                page_id: {str(key): value for key, value in sorted(entries.items())}
                for page_id, entries in sorted(self.state.to_dict().items())
            },
            "tags": sorted(str(tag) for tag in self.tags),
            "fresh": self.fresh,
            "iterations": self.iterations,
            "context": copy.deepcopy(self.context),
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, object]) -> "SessionSnapshot":
        """Build a snapshot from the stored payload representation.

        Raises:
            ValueError: If the payload does not match the snapshot schema.
        """

        try:
            parsed = _SessionPayload.model_validate(payload)
        except ValidationError as exc:
            raise ValueError(f"Invalid snapshot payload: {exc}") from exc

        return cls(
            state=GameState(
                {PageId(page_id): entries for page_id, entries in parsed.state.items()}
            ),
            tags=frozenset(PageId(tag) for tag in parsed.tags),
            fresh=parsed.fresh,
            iterations=parsed.iterations,
            context=parsed.context,
        )

    @classmethod
    def capture(cls, game: Game[Any]) -> "SessionSnapshot":
        """Create a snapshot from the provided session."""

        return cls(
            state=game.state.copy(),
            tags=frozenset(game.tags),
            fresh=game.fresh,
            iterations=game.iterations,
            context=copy.deepcopy(game.context),
        )

    def apply_to_game(self, game: Game[Any]) -> None:
        """Mutate ``game`` to match this snapshot, leaving its page stack alone."""

        game.state = self.state.copy()
        game.tags = set(self.tags)
        game.fresh = self.fresh
        game.iterations = self.iterations
        if self.context is not None:
            game.context = copy.deepcopy(self.context)


class SessionStore(ABC):
    """Interface describing how session snapshots are persisted."""

    @abstractmethod
    def save(self, session_id: str, snapshot: SessionSnapshot) -> None:
        """Persist the snapshot for later retrieval."""

    @abstractmethod
    def load(self, session_id: str) -> SessionSnapshot:
        """Return the snapshot for the given session.

        Raises:
            KeyError: If the session cannot be found.
        """

    @abstractmethod
    def delete(self, session_id: str) -> None:
        """Remove the stored snapshot if it exists."""

    @abstractmethod
    def list_sessions(self) -> List[str]:
        """Return all session identifiers stored in this persistence layer."""

    def save_game(self, session_id: str, game: Game[Any]) -> SessionSnapshot:
        """Capture ``game`` and store it under ``session_id``."""

        snapshot = SessionSnapshot.capture(game)
        self.save(session_id, snapshot)
        return snapshot

    def restore_game(self, session_id: str, game: Game[Any]) -> SessionSnapshot:
        """Load ``session_id`` into ``game``.

        The page stack is left alone; callers position the session on the
        page it should resume from before or after restoring.

        Raises:
            KeyError: If the session cannot be found.
        """

        snapshot = self.load(session_id)
        snapshot.apply_to_game(game)
        logger.debug(
            "restored session %s (%d state entries, %d tags)",
            session_id,
            len(snapshot.state),
            len(snapshot.tags),
        )
        return snapshot


class InMemorySessionStore(SessionStore):
    """Keep session snapshots in local process memory."""

    def __init__(self) -> None:
        self._sessions: Dict[str, SessionSnapshot] = {}

    def save(self, session_id: str, snapshot: SessionSnapshot) -> None:
        self._sessions[_validate_session_id(session_id)] = snapshot

    def load(self, session_id: str) -> SessionSnapshot:
        key = _validate_session_id(session_id)
        try:
            return self._sessions[key]
        except KeyError as exc:
            raise KeyError(f"Session '{session_id}' does not exist") from exc

    def delete(self, session_id: str) -> None:
        key = _validate_session_id(session_id)
        self._sessions.pop(key, None)

    def list_sessions(self) -> List[str]:
        return sorted(self._sessions.keys())


class FileSessionStore(SessionStore):
    """Persist session snapshots as JSON files on disk."""

    def __init__(self, storage_dir: Path) -> None:
        self.storage_dir = storage_dir
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def save(self, session_id: str, snapshot: SessionSnapshot) -> None:
        session_file = self._session_path(session_id)
        session_file.write_text(
            json.dumps(snapshot.to_payload(), indent=2), encoding="utf-8"
        )
        logger.debug("saved session %s to %s", session_id, session_file)

    def load(self, session_id: str) -> SessionSnapshot:
        session_file = self._session_path(session_id)
        if not session_file.exists():
            raise KeyError(f"Session '{session_id}' does not exist")
        payload = json.loads(session_file.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"Session file {session_file} must contain an object")
        return SessionSnapshot.from_payload(payload)

    def delete(self, session_id: str) -> None:
        session_file = self._session_path(session_id)
        if session_file.exists():
            session_file.unlink()

    def list_sessions(self) -> List[str]:
        return sorted(
            session_path.stem
            for session_path in self.storage_dir.glob("*.json")
            if session_path.is_file()
        )

    def _session_path(self, session_id: str) -> Path:
        validated = _validate_session_id(session_id)
        return self.storage_dir / f"{validated}.json"


def _validate_session_id(session_id: str) -> str:
    if not isinstance(session_id, str):
        raise TypeError("session_id must be a string")
    stripped = session_id.strip()
    if not stripped:
        raise ValueError("session_id must be a non-empty string")
    if "/" in stripped or "\\" in stripped or stripped in {".", ".."}:
        raise ValueError("session_id must not contain path separators")
    return stripped


__all__ = [
    "SessionSnapshot",
    "SessionStore",
    "InMemorySessionStore",
    "FileSessionStore",
]
