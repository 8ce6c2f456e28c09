"""Tests for plan file parsing and loading."""

from pathlib import Path

import pytest

from planlink.exceptions import (
    CircularDependencyError,
    DanglingReferenceError,
    DuplicateEdgeError,
    ParseError,
    ValidationError,
)
from planlink.loader import load_plan
from planlink.models import DependencyType, PredecessorEdge
from planlink.parser import PlanParser


def write_plan(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "plan.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestPlanParser:
    """Test the YAML parser."""

    @pytest.fixture
    def parser(self) -> PlanParser:
        return PlanParser()

    def test_parse_plan(self, parser: PlanParser, plan_file: Path) -> None:
        """Test parsing the sample plan."""
        metadata, items = parser.parse_file(plan_file)

        assert metadata.project == "Test plan"
        assert [item.id for item in items] == ["design", "build", "test", "docs"]
        build = items[1]
        assert build.name == "Build"
        assert build.duration_days == 10
        assert build.predecessors == [PredecessorEdge("design", DependencyType.FS, 2)]

    def test_sort_order_defaults_to_position(self, parser: PlanParser, plan_file: Path) -> None:
        _, items = parser.parse_file(plan_file)
        assert [item.sort_order for item in items] == [0, 1, 2, 3]

    def test_mapping_form_and_scalar(self, parser: PlanParser, tmp_path: Path) -> None:
        """Test both predecessor forms and a single scalar reference."""
        path = write_plan(
            tmp_path,
            """
items:
  a: {}
  b:
    predecessors: a SS
  c:
    sort_order: 10
    predecessors:
      - {id: a, type: ff, lag: -1}
      - b
""",
        )

        _, items = parser.parse_file(path)
        by_id = {item.id: item for item in items}

        assert by_id["b"].predecessors == [PredecessorEdge("a", DependencyType.SS)]
        assert by_id["c"].predecessors == [
            PredecessorEdge("a", DependencyType.FF, -1),
            PredecessorEdge("b"),
        ]
        assert by_id["c"].sort_order == 10

    def test_numeric_ids(self, parser: PlanParser, tmp_path: Path) -> None:
        """Test that numeric ids in YAML become strings."""
        path = write_plan(tmp_path, "items:\n  1:\n  2:\n    predecessors: [1]\n")

        _, items = parser.parse_file(path)

        assert [item.id for item in items] == ["1", "2"]
        assert items[1].predecessor_ids == ["1"]

    def test_dates(self, parser: PlanParser, plan_file: Path) -> None:
        _, items = parser.parse_file(plan_file)
        assert str(items[0].start_date) == "2024-01-01"
        assert items[0].finish_date is None

    def test_empty_file(self, parser: PlanParser, tmp_path: Path) -> None:
        _, items = parser.parse_file(write_plan(tmp_path, ""))
        assert items == []

    def test_missing_file(self, parser: PlanParser, tmp_path: Path) -> None:
        with pytest.raises(ParseError, match="File not found"):
            parser.parse_file(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, parser: PlanParser, tmp_path: Path) -> None:
        with pytest.raises(ParseError, match="Failed to parse YAML"):
            parser.parse_file(write_plan(tmp_path, "items: [unclosed"))

    def test_root_must_be_mapping(self, parser: PlanParser, tmp_path: Path) -> None:
        with pytest.raises(ParseError, match="dictionary at the root"):
            parser.parse_file(write_plan(tmp_path, "- a\n- b\n"))

    def test_negative_duration(self, parser: PlanParser, tmp_path: Path) -> None:
        path = write_plan(tmp_path, "items:\n  a:\n    duration_days: -2\n")
        with pytest.raises(ValidationError, match="Invalid plan structure"):
            parser.parse_file(path)

    def test_invalid_dependency_type(self, parser: PlanParser, tmp_path: Path) -> None:
        path = write_plan(
            tmp_path, "items:\n  a: {}\n  b:\n    predecessors:\n      - {id: a, type: XX}\n"
        )
        with pytest.raises(ValidationError):
            parser.parse_file(path)


class TestLoadPlan:
    """Test loading plans into a validated graph."""

    def test_load_plan(self, plan_file: Path) -> None:
        plan = load_plan(plan_file)

        assert len(plan.graph) == 4
        assert plan.graph.neighbors("build") == ["design"]
        assert plan.metadata.version == "1.0"

    def test_unknown_reference(self, tmp_path: Path) -> None:
        path = write_plan(tmp_path, "items:\n  a:\n    predecessors: [ghost]\n")
        with pytest.raises(DanglingReferenceError, match="'a' references unknown item 'ghost'"):
            load_plan(path)

    def test_duplicate_edge(self, tmp_path: Path) -> None:
        path = write_plan(tmp_path, "items:\n  a: {}\n  b:\n    predecessors: [a, a SS]\n")
        with pytest.raises(DuplicateEdgeError):
            load_plan(path)

    def test_cycle(self, tmp_path: Path) -> None:
        """Test that a plan file containing a cycle is rejected."""
        path = write_plan(
            tmp_path,
            "items:\n  a:\n    predecessors: [c]\n  b:\n    predecessors: [a]\n"
            "  c:\n    predecessors: [b]\n",
        )
        with pytest.raises(CircularDependencyError):
            load_plan(path)

    def test_self_reference(self, tmp_path: Path) -> None:
        path = write_plan(tmp_path, "items:\n  a:\n    predecessors: [a]\n")
        with pytest.raises(CircularDependencyError, match="cannot depend on itself"):
            load_plan(path)
