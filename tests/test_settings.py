from pathlib import Path

import pytest

from talestack import FileSessionStore, InMemorySessionStore, SimulationSettings


def test_from_env_defaults_when_unset() -> None:
    settings = SimulationSettings.from_env({})

    assert settings == SimulationSettings()
    assert settings.depth_visitor() is None


def test_from_env_parses_values() -> None:
    settings = SimulationSettings.from_env(
        {
            "TALESTACK_SIM_MAX_DEPTH": " 3 ",
            "TALESTACK_SEED": "-7",
            "TALESTACK_SESSION_DIR": "~/sessions",
        }
    )

    assert settings.max_depth == 3
    assert settings.seed == -7
    assert settings.session_dir == Path("~/sessions").expanduser()

    visitor = settings.depth_visitor()
    assert visitor is not None


def test_blank_values_are_treated_as_unset() -> None:
    settings = SimulationSettings.from_env(
        {"TALESTACK_SIM_MAX_DEPTH": "  ", "TALESTACK_SEED": "", "TALESTACK_SESSION_DIR": " "}
    )

    assert settings == SimulationSettings()


@pytest.mark.parametrize(
    "environ",
    [
        {"TALESTACK_SIM_MAX_DEPTH": "deep"},
        {"TALESTACK_SIM_MAX_DEPTH": "-1"},
        {"TALESTACK_SEED": "1.5"},
    ],
)
def test_invalid_values_raise(environ: dict[str, str]) -> None:
    with pytest.raises(ValueError):
        SimulationSettings.from_env(environ)


def test_from_env_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TALESTACK_SIM_MAX_DEPTH", "2")
    monkeypatch.delenv("TALESTACK_SEED", raising=False)
    monkeypatch.delenv("TALESTACK_SESSION_DIR", raising=False)

    assert SimulationSettings.from_env() == SimulationSettings(max_depth=2)


def test_session_store_defaults_to_memory() -> None:
    assert isinstance(SimulationSettings().session_store(), InMemorySessionStore)


def test_session_store_uses_session_dir(tmp_path: Path) -> None:
    store = SimulationSettings(session_dir=tmp_path / "sessions").session_store()

    assert isinstance(store, FileSessionStore)
    assert store.storage_dir == tmp_path / "sessions"
    assert (tmp_path / "sessions").is_dir()
