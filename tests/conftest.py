"""Pytest configuration and helpers for planlink tests."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from planlink.graph import PredecessorGraph
from planlink.logger import setup_logger
from planlink.models import DependencyType, PlanItem, PredecessorEdge


def edge(predecessor_id: str, type: str = "FS", lag: int = 0) -> PredecessorEdge:
    """Shorthand for building a predecessor edge."""
    return PredecessorEdge(predecessor_id, DependencyType(type), lag)


def make_item(  # noqa: PLR0913 - mirrors PlanItem fields
    item_id: str,
    *,
    sort_order: int = 0,
    duration: float = 0.0,
    start: date | None = None,
    finish: date | None = None,
    pinned: bool = False,
    predecessors: list[PredecessorEdge] | None = None,
) -> PlanItem:
    """Create a plan item with sensible defaults."""
    return PlanItem(
        id=item_id,
        name=item_id.title(),
        sort_order=sort_order,
        duration_days=duration,
        start_date=start,
        finish_date=finish,
        manually_pinned=pinned,
        predecessors=list(predecessors or []),
    )


def make_graph(*items: PlanItem) -> PredecessorGraph:
    """Build a graph from items."""
    return PredecessorGraph.from_items(items)


@pytest.fixture(autouse=True)
def reset_logger():
    """Return the logger to silent after each test (CLI runs reconfigure it)."""
    yield
    setup_logger(0)


@pytest.fixture
def base_date() -> date:
    """A Monday used as the reference date across tests."""
    return date(2024, 1, 1)


PLAN_YAML = """\
metadata:
  version: "1.0"
  project: Test plan

# Items are listed in display order
items:
  design:
    name: Design
    duration_days: 5
    start_date: 2024-01-01
  build:
    name: Build
    duration_days: 10
    owner: alice  # not managed by planlink
    predecessors:
      - design FS+2d
  test:
    name: Test
    duration_days: 3
  docs:
    name: Docs
    duration_days: 2
"""


@pytest.fixture
def plan_file(tmp_path: Path) -> Path:
    """Write a small plan file and return its path."""
    path = tmp_path / "plan.yaml"
    path.write_text(PLAN_YAML, encoding="utf-8")
    return path
