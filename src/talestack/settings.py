"""Configuration helpers for simulations and session storage."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .persistence import FileSessionStore, InMemorySessionStore, SessionStore
from .sim import Visitor, depth_limit


def _normalise_path(value: str | None) -> Path | None:
    if value is None:
        return None

    trimmed = value.strip()
    if not trimmed:
        return None

    return Path(trimmed).expanduser()


def _parse_int(value: str | None, *, name: str, minimum: int | None = None) -> int | None:
    if value is None:
        return None

    trimmed = value.strip()
    if not trimmed:
        return None

    try:
        parsed = int(trimmed)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer.") from exc
    if minimum is not None and parsed < minimum:
        raise ValueError(f"{name} must be at least {minimum}.")
    return parsed


@dataclass(frozen=True)
class SimulationSettings:
    """Settings shared by simulation tooling.

    Values are read from environment variables so tooling can be tuned
    without code changes. Empty strings are treated as if the variable was
    unset.
    """

    max_depth: int | None = None
    seed: int | None = None
    session_dir: Path | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SimulationSettings":
        """Return settings populated from ``environ``.

        Args:
            environ: Optional mapping of environment variables. When omitted,
                :data:`os.environ` is used.
        """

        source = environ if environ is not None else os.environ

        return cls(
            max_depth=_parse_int(
                source.get("TALESTACK_SIM_MAX_DEPTH"),
                name="TALESTACK_SIM_MAX_DEPTH",
                minimum=0,
            ),
            seed=_parse_int(source.get("TALESTACK_SEED"), name="TALESTACK_SEED"),
            session_dir=_normalise_path(source.get("TALESTACK_SESSION_DIR")),
        )

    def depth_visitor(self) -> Visitor | None:
        """Return a depth-capping visitor, or ``None`` when unbounded."""

        if self.max_depth is None:
            return None
        return depth_limit(self.max_depth)

    def session_store(self) -> SessionStore:
        """Return the store configured by ``session_dir``.

        Without a directory, sessions only live in process memory.
        """

        if self.session_dir is None:
            return InMemorySessionStore()
        return FileSessionStore(self.session_dir)


__all__ = ["SimulationSettings"]
