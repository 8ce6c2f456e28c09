"""Plan loading with graph construction and validation."""

from __future__ import annotations

from pathlib import Path

from .cycles import find_cycle
from .exceptions import CircularDependencyError
from .graph import PredecessorGraph
from .models import Plan
from .parser import PlanParser


def load_plan(path: Path | str) -> Plan:
    """Load and validate a plan file.

    1. YAML parsing and schema validation
    2. Graph construction (unknown references, duplicate edges)
    3. Cycle check

    Args:
        path: Path to the plan YAML file

    Returns:
        Plan whose graph satisfies every structural invariant
    """
    metadata, items = PlanParser().parse_file(path)
    graph = PredecessorGraph.from_items(items)
    validate_graph(graph)
    return Plan(metadata=metadata, graph=graph)


def validate_graph(graph: PredecessorGraph) -> None:
    """Validate that a graph built from external data has no cycles.

    Dangling references and duplicate edges are already rejected while the
    graph is built.

    Raises:
        CircularDependencyError: Naming the first edge of the cycle found
    """
    cycle = find_cycle(graph)
    if cycle:
        raise CircularDependencyError(cycle[0], cycle[1])
