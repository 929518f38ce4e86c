"""Tests for the simulation graph export and its command line entry point."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from talestack import FileSessionStore, Game, demo_story, simulate
from talestack.graph import (
    SimulationGraph,
    build_simulation_graph,
    format_simulation_report,
    load_page,
    main,
)
from talestack.page import declared_id

HARBOUR = declared_id(demo_story.harbour)
LIGHTHOUSE = declared_id(demo_story.lighthouse)
LAMP_ROOM = declared_id(demo_story.lamp_room)
TAVERN = declared_id(demo_story.tavern)


@pytest.fixture
def demo_graph(demo_game: Game[Any]) -> SimulationGraph:
    return build_simulation_graph(simulate(demo_game))


@pytest.fixture(autouse=True)
def _clear_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("TALESTACK_SIM_MAX_DEPTH", "TALESTACK_SEED", "TALESTACK_SESSION_DIR"):
        monkeypatch.delenv(name, raising=False)


def test_graph_orders_runs_and_nodes(demo_graph: SimulationGraph) -> None:
    assert [run.name for run in demo_graph.runs] == ["harbour", "tavern"]
    assert demo_graph.node_count == 4

    main_run = demo_graph.run("harbour")
    assert main_run.depth == 2
    assert [node.id for node in main_run.nodes] == [HARBOUR, LIGHTHOUSE, LAMP_ROOM]
    assert {"source": HARBOUR, "target": LIGHTHOUSE} in [
        edge.model_dump() for edge in main_run.edges
    ]


def test_graph_nodes_carry_outcomes(demo_graph: SimulationGraph) -> None:
    nodes = {node.id: node for node in demo_graph.run("harbour").nodes}

    assert [end.label for end in nodes[HARBOUR].ends] == ["tavern"]
    assert nodes[HARBOUR].outgoing_tunnels == ["tavern"]
    assert nodes[HARBOUR].tags == ["arrived"]
    assert [end.label for end in nodes[LIGHTHOUSE].ends] == ["⟨lost at sea⟩"]
    assert [end.kind for end in nodes[LAMP_ROOM].ends] == ["game_error"]

    tavern = demo_graph.run("tavern").nodes[0]
    assert tavern.id == TAVERN
    assert [end.label for end in tavern.ends] == ["⟨Exit⟩"]


def test_unknown_run_raises_key_error(demo_graph: SimulationGraph) -> None:
    with pytest.raises(KeyError):
        demo_graph.run("cellar")


def test_graph_serialises_to_json(demo_graph: SimulationGraph) -> None:
    payload = json.loads(demo_graph.model_dump_json())

    assert [run["name"] for run in payload["runs"]] == ["harbour", "tavern"]
    assert SimulationGraph.model_validate(payload) == demo_graph


def test_format_simulation_report(demo_graph: SimulationGraph) -> None:
    report = format_simulation_report(demo_graph)

    assert report.splitlines()[0] == "Story Simulation"
    assert "Runs: 2" in report
    assert "Pages discovered: 4" in report
    assert "Run 'harbour' (depth 2)" in report
    assert f"- {LIGHTHOUSE} [depth 1; from {HARBOUR}]" in report
    assert "    ends: ⟨lost at sea⟩" in report
    assert "    tunnels: tavern" in report


def test_format_report_for_empty_run() -> None:
    graph = build_simulation_graph(
        simulate(Game.new_with_page(demo_story.harbour), lambda state: True)
    )

    assert "(no pages resolved)" in format_simulation_report(graph)


def test_load_page_resolves_references() -> None:
    assert load_page("talestack.demo_story:harbour") is demo_story.harbour

    with pytest.raises(ValueError):
        load_page("talestack.demo_story")
    with pytest.raises(ValueError):
        load_page("talestack.demo_story:missing")
    with pytest.raises(ValueError):
        load_page("talestack.demo_story:RUMOURS")


def test_main_prints_report(capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 0

    output = capsys.readouterr().out
    assert output.startswith("Story Simulation")
    assert "Run 'tavern' (depth 0)" in output


def test_main_json_respects_max_depth(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["talestack.demo_story:harbour", "--json", "--max-depth", "1"]) == 0

    payload = json.loads(capsys.readouterr().out)
    main_run = next(run for run in payload["runs"] if run["name"] == "harbour")
    node_ids = [node["id"] for node in main_run["nodes"]]
    assert node_ids == [HARBOUR, LIGHTHOUSE]


def test_main_uses_environment_depth(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("TALESTACK_SIM_MAX_DEPTH", "0")

    assert main(["--json"]) == 0

    payload = json.loads(capsys.readouterr().out)
    main_run = next(run for run in payload["runs"] if run["name"] == "harbour")
    assert [node["id"] for node in main_run["nodes"]] == [HARBOUR]


def _tavern_tags(payload: dict[str, Any]) -> list[str]:
    tavern_run = next(run for run in payload["runs"] if run["name"] == "tavern")
    return tavern_run["nodes"][0]["tags"]


def test_main_simulates_from_saved_session(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    regular = Game.new_with_page(demo_story.harbour)
    regular.state.set_bit((TAVERN, demo_story.TAVERN_TALK), 0)
    FileSessionStore(tmp_path).save_game("regular", regular)

    assert main(["--json", "--max-depth", "0"]) == 0
    assert _tavern_tags(json.loads(capsys.readouterr().out)) == []

    argv = ["--json", "--max-depth", "0", "--session", "regular", "--session-dir", str(tmp_path)]
    assert main(argv) == 0
    assert _tavern_tags(json.loads(capsys.readouterr().out)) == ["tavern-gossip"]


def test_main_reads_session_dir_from_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    FileSessionStore(tmp_path).save_game("fresh", Game.new_with_page(demo_story.harbour))
    monkeypatch.setenv("TALESTACK_SESSION_DIR", str(tmp_path))

    assert main(["--json", "--session", "fresh"]) == 0
    assert json.loads(capsys.readouterr().out)["runs"]


def test_main_session_errors(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--session", "regular"]) == 2
    assert "--session-dir" in capsys.readouterr().err

    assert main(["--session", "missing", "--session-dir", str(tmp_path)]) == 1
    assert "missing" in capsys.readouterr().err
