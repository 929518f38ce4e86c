"""Test configuration for the talestack project."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from typing import Any

import pytest

from talestack import Game
from talestack.demo_story import harbour


@pytest.fixture()
def demo_game() -> Game[Any]:
    """Return a fresh session positioned at the demo story's first page."""

    return Game.new_with_page(harbour)


__all__ = ["demo_game"]
