"""Project simulations into graph resources and readable reports."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from importlib import import_module
from pathlib import Path
from typing import Any, Sequence

from pydantic import BaseModel, Field

from .errors import SimEnd
from .game import Game
from .page import Page
from .settings import SimulationSettings
from .sim import PageRecords, Simulation, simulate

logger = logging.getLogger(__name__)


class SimEndResource(BaseModel):
    """Terminal outcome recorded on a page."""

    kind: str
    detail: str = ""
    label: str


class PageNodeResource(BaseModel):
    """A resolved page discovered by the simulation."""

    id: str
    min_depth: int = Field(..., ge=0)
    ends: list[SimEndResource] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    outgoing_tunnels: list[str] = Field(default_factory=list)


class PageEdgeResource(BaseModel):
    """An interaction leading from ``source`` to ``target``."""

    source: str
    target: str


class RunGraphResource(BaseModel):
    """Nodes and edges of one simulation run."""

    name: str
    depth: int = Field(..., ge=0)
    nodes: list[PageNodeResource] = Field(default_factory=list)
    edges: list[PageEdgeResource] = Field(default_factory=list)


class SimulationGraph(BaseModel):
    """Every run of a simulation, ordered by run name."""

    runs: list[RunGraphResource] = Field(default_factory=list)

    @property
    def node_count(self) -> int:
        return sum(len(run.nodes) for run in self.runs)

    def run(self, name: str) -> RunGraphResource:
        for run in self.runs:
            if run.name == name:
                return run
        raise KeyError(f"simulation has no run named '{name}'")


def _end_resource(end: SimEnd) -> SimEndResource:
    return SimEndResource(kind=end.kind, detail=end.detail, label=str(end))


def build_run_graph(name: str, records: PageRecords) -> RunGraphResource:
    """Convert one run's records into a graph resource.

    Nodes are ordered by minimum depth and then id; edges by target and then
    source, so repeated simulations serialise identically.
    """

    ordered = sorted(records.values(), key=lambda record: (record.min_depth, record.id))
    nodes = [
        PageNodeResource(
            id=str(record.id),
            min_depth=record.min_depth,
            ends=[
                _end_resource(end)
                for end in sorted(record.ends, key=lambda end: (end.kind, end.detail))
            ],
            tags=sorted(str(tag) for tag in record.tags),
            outgoing_tunnels=sorted(record.outgoing_tunnels),
        )
        for record in ordered
    ]
    edges = [
        PageEdgeResource(source=str(source), target=str(record.id))
        for record in ordered
        for source in sorted(record.incoming)
    ]
    return RunGraphResource(name=name, depth=records.depth(), nodes=nodes, edges=edges)


def build_simulation_graph(simulation: Simulation) -> SimulationGraph:
    return SimulationGraph(
        runs=[
            build_run_graph(name, simulation.runs[name]) for name in sorted(simulation.runs)
        ]
    )


def format_simulation_report(graph: SimulationGraph) -> str:
    """Return a human-friendly report describing a simulation graph."""

    lines = [
        "Story Simulation",
        "================",
        f"Runs: {len(graph.runs)}",
        f"Pages discovered: {graph.node_count}",
    ]

    for run in graph.runs:
        lines.append("")
        title = f"Run '{run.name}' (depth {run.depth})"
        lines.append(title)
        lines.append("-" * len(title))
        if not run.nodes:
            lines.append("(no pages resolved)")
            continue
        for node in run.nodes:
            incoming = sorted(edge.source for edge in run.edges if edge.target == node.id)
            details = [f"depth {node.min_depth}"]
            if incoming:
                details.append("from " + ", ".join(incoming))
            lines.append(f"- {node.id} [{'; '.join(details)}]")
            if node.tags:
                lines.append("    tags: " + ", ".join(node.tags))
            if node.ends:
                lines.append("    ends: " + ", ".join(end.label for end in node.ends))
            if node.outgoing_tunnels:
                lines.append("    tunnels: " + ", ".join(node.outgoing_tunnels))

    return "\n".join(lines)


def load_page(reference: str) -> Page:
    """Import ``module:attribute`` and return the page callable it names."""

    module_name, separator, attribute = reference.partition(":")
    if not separator or not module_name or not attribute:
        raise ValueError(
            f"Page reference '{reference}' must look like 'package.module:page_function'."
        )
    module = import_module(module_name)
    try:
        page = getattr(module, attribute)
    except AttributeError as exc:
        raise ValueError(f"Module '{module_name}' has no page '{attribute}'.") from exc
    if not callable(page):
        raise ValueError(f"'{reference}' is not callable.")
    return page


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Simulate every interaction path of a story and report the page graph."
    )
    parser.add_argument(
        "page",
        nargs="?",
        default="talestack.demo_story:harbour",
        help="Start page as 'package.module:function'. Defaults to the bundled demo story.",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Stop exploring branches deeper than this many interactions.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for page randomness.")
    parser.add_argument(
        "--session",
        default=None,
        help="Simulate from the state, tags and context of this saved session.",
    )
    parser.add_argument(
        "--session-dir",
        type=Path,
        default=None,
        help="Directory of saved sessions. Defaults to TALESTACK_SESSION_DIR.",
    )
    parser.add_argument("--json", action="store_true", help="Print the graph as JSON.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point used by ``python -m talestack.graph``."""

    args = _parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    settings = SimulationSettings.from_env()
    overrides: dict[str, Any] = {}
    if args.max_depth is not None:
        overrides["max_depth"] = args.max_depth
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.session_dir is not None:
        overrides["session_dir"] = args.session_dir.expanduser()
    settings = replace(settings, **overrides)

    page = load_page(args.page)
    game: Game[Any] = Game.new_with_page(page, seed=settings.seed)
    if args.session is not None:
        if settings.session_dir is None:
            print("--session requires --session-dir or TALESTACK_SESSION_DIR", file=sys.stderr)
            return 2
        try:
            settings.session_store().restore_game(args.session, game)
        except KeyError as exc:
            print(exc.args[0], file=sys.stderr)
            return 1

    logger.debug("simulating %s (max depth %s)", args.page, settings.max_depth)
    graph = build_simulation_graph(simulate(game, settings.depth_visitor()))

    if args.json:
        print(graph.model_dump_json(indent=2))
    else:
        print(format_simulation_report(graph))
    return 0


__all__ = [
    "SimEndResource",
    "PageNodeResource",
    "PageEdgeResource",
    "RunGraphResource",
    "SimulationGraph",
    "build_run_graph",
    "build_simulation_graph",
    "format_simulation_report",
    "load_page",
    "main",
]


if __name__ == "__main__":  # pragma: no cover - convenience CLI
    raise SystemExit(main())
