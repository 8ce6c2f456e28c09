"""Tests for the forward-pass scheduler."""

from datetime import date, timedelta

import pytest

from planlink.exceptions import CyclicGraphError
from planlink.scheduler import (
    CalendarDays,
    CalendarType,
    ForwardPassScheduler,
    ItemDates,
    WorkingDays,
    check_predecessor_dates,
    compute_dates,
    create_calendar,
    preview_item_dates,
    recompute_schedule,
    topological_order,
)
from planlink.scheduler.calendar import whole_days
from tests.conftest import edge, make_graph, make_item


def day(base: date, offset: int) -> date:
    return base + timedelta(days=offset)


class TestCalendars:
    """Test the day-arithmetic calendars."""

    def test_whole_days_rounds_away_from_zero(self) -> None:
        assert whole_days(2) == 2
        assert whole_days(2.5) == 3
        assert whole_days(-2.5) == -3
        assert whole_days(0) == 0

    def test_calendar_days(self, base_date: date) -> None:
        calendar = CalendarDays()
        assert calendar.add_days(base_date, 5) == date(2024, 1, 6)
        assert calendar.add_days(base_date, -1) == date(2023, 12, 31)
        assert calendar.add_days(base_date, 1.5) == date(2024, 1, 3)

    def test_working_days_skip_weekends(self) -> None:
        """Test that Saturdays and Sundays are not counted."""
        calendar = WorkingDays()
        friday = date(2024, 1, 5)

        assert calendar.add_days(friday, 1) == date(2024, 1, 8)
        assert calendar.add_days(date(2024, 1, 8), -1) == friday
        assert calendar.add_days(friday, 6) == date(2024, 1, 15)

    def test_working_days_zero_keeps_date(self) -> None:
        saturday = date(2024, 1, 6)
        assert WorkingDays().add_days(saturday, 0) == saturday

    def test_create_calendar(self) -> None:
        assert isinstance(create_calendar(CalendarType.CALENDAR_DAYS), CalendarDays)
        assert isinstance(create_calendar(CalendarType.WORKING_DAYS), WorkingDays)


class TestTopologicalOrder:
    """Test the dependency ordering used by the forward pass."""

    def test_predecessors_first(self) -> None:
        graph = make_graph(
            make_item("a", sort_order=2),
            make_item("b", sort_order=0, predecessors=[edge("a")]),
            make_item("c", sort_order=1),
        )

        order = topological_order(graph)

        assert order.index("a") < order.index("b")
        # Ready items are taken by sort_order
        assert order == ["c", "a", "b"]

    def test_cycle_raises(self) -> None:
        """Test that a cycle that slipped past validation is reported."""
        graph = make_graph(make_item("a"), make_item("b", predecessors=[edge("a")]))
        graph.add_edge("a", edge("b"))

        with pytest.raises(CyclicGraphError) as exc_info:
            topological_order(graph)

        assert set(exc_info.value.cycle) == {"a", "b"}


class TestForwardPass:
    """Test date propagation along predecessor edges."""

    def test_date_propagation(self, base_date: date) -> None:
        """Test FS with lag and SS propagation through a chain."""
        graph = make_graph(
            make_item("a", sort_order=0, duration=5, start=base_date),
            make_item("b", sort_order=1, duration=3, predecessors=[edge("a", "FS", 2)]),
            make_item("c", sort_order=2, duration=4, predecessors=[edge("b", "SS")]),
        )

        dates = compute_dates(graph).dates

        assert dates["a"] == ItemDates(base_date, day(base_date, 5))
        assert dates["b"] == ItemDates(day(base_date, 7), day(base_date, 10))
        assert dates["c"] == ItemDates(day(base_date, 7), day(base_date, 11))

    def test_latest_predecessor_wins(self, base_date: date) -> None:
        """Test that the latest candidate start is used with multiple predecessors."""
        graph = make_graph(
            make_item("a", duration=5, start=base_date),
            make_item("c", duration=4, start=day(base_date, 3)),
            make_item("d", duration=1, predecessors=[edge("a"), edge("c")]),
        )

        dates = compute_dates(graph).dates

        assert dates["d"].start_date == day(base_date, 7)

    def test_finish_to_finish(self, base_date: date) -> None:
        """Test that FF aligns the finish and backs off the start by the duration."""
        graph = make_graph(
            make_item("a", duration=5, start=base_date),
            make_item("b", duration=2, predecessors=[edge("a", "FF", 1)]),
        )

        dates = compute_dates(graph).dates

        assert dates["b"] == ItemDates(day(base_date, 4), day(base_date, 6))

    def test_start_to_finish(self, base_date: date) -> None:
        """Test that SF finishes when the predecessor starts."""
        graph = make_graph(
            make_item("a", duration=5, start=base_date),
            make_item("b", duration=3, predecessors=[edge("a", "SF")]),
        )

        dates = compute_dates(graph).dates

        assert dates["b"] == ItemDates(day(base_date, -3), base_date)

    def test_negative_lag(self, base_date: date) -> None:
        """Test that a lead lets the dependent overlap its predecessor."""
        graph = make_graph(
            make_item("a", duration=5, start=base_date),
            make_item("b", duration=1, predecessors=[edge("a", "FS", -2)]),
        )

        assert compute_dates(graph).dates["b"].start_date == day(base_date, 3)

    def test_pinned_item_keeps_start(self, base_date: date) -> None:
        """Test that a manually pinned item is not moved by its predecessors."""
        graph = make_graph(
            make_item("a", duration=5, start=base_date),
            make_item(
                "b", duration=2, start=day(base_date, 1), pinned=True, predecessors=[edge("a")]
            ),
            make_item("c", duration=1, predecessors=[edge("b")]),
        )

        dates = compute_dates(graph).dates

        assert dates["b"] == ItemDates(day(base_date, 1), day(base_date, 3))
        assert dates["c"].start_date == day(base_date, 3)

    def test_island_keeps_its_start(self, base_date: date) -> None:
        graph = make_graph(make_item("a", duration=2, start=day(base_date, 10)))
        assert compute_dates(graph).dates["a"].start_date == day(base_date, 10)

    def test_project_start_for_undated_islands(self, base_date: date) -> None:
        """Test that items with no start date and no predecessors get the project start."""
        graph = make_graph(
            make_item("a", duration=2),
            make_item("b", duration=1, predecessors=[edge("a")]),
        )

        dates = compute_dates(graph, project_start=base_date).dates

        assert dates["a"] == ItemDates(base_date, day(base_date, 2))
        assert dates["b"].start_date == day(base_date, 2)

    def test_undated_predecessor_gives_no_candidate(self, base_date: date) -> None:
        """Test that a predecessor without dates does not constrain its dependents."""
        graph = make_graph(
            make_item("a", duration=2),
            make_item("b", duration=1, start=base_date, predecessors=[edge("a")]),
            make_item("c", duration=1, predecessors=[edge("a")]),
        )

        dates = compute_dates(graph).dates

        assert dates["a"] == ItemDates(None, None)
        assert dates["b"].start_date == base_date
        assert dates["c"] == ItemDates(None, None)

    def test_working_days_calendar(self) -> None:
        friday = date(2024, 1, 5)
        graph = make_graph(
            make_item("a", duration=2, start=friday),
            make_item("b", duration=1, predecessors=[edge("a", "FS", 1)]),
        )

        dates = ForwardPassScheduler(WorkingDays()).compute(graph).dates

        assert dates["a"].finish_date == date(2024, 1, 9)
        assert dates["b"] == ItemDates(date(2024, 1, 10), date(2024, 1, 11))

    def test_compute_does_not_modify_graph(self, base_date: date) -> None:
        graph = make_graph(
            make_item("a", duration=5, start=base_date),
            make_item("b", duration=1, predecessors=[edge("a")]),
        )

        compute_dates(graph)

        assert graph.get_item("b").start_date is None

    def test_changed_ids(self, base_date: date) -> None:
        """Test that only items whose dates moved are reported as changed."""
        graph = make_graph(
            make_item("a", duration=5, start=base_date, finish=day(base_date, 5)),
            make_item("b", duration=1, predecessors=[edge("a")]),
        )

        result = compute_dates(graph)

        assert result.changed_ids() == ["b"]
        assert result.changed_dates() == {"b": ItemDates(day(base_date, 5), day(base_date, 6))}

    def test_cyclic_graph(self) -> None:
        graph = make_graph(make_item("a"), make_item("b", predecessors=[edge("a")]))
        graph.add_edge("a", edge("b"))
        with pytest.raises(CyclicGraphError):
            compute_dates(graph)


class TestRecomputeSchedule:
    """Test the graph-updating entry points."""

    def test_writes_dates_into_items(self, base_date: date) -> None:
        graph = make_graph(
            make_item("a", duration=5, start=base_date),
            make_item("b", duration=1, predecessors=[edge("a")]),
        )

        dates = recompute_schedule(graph)

        assert set(dates) == {"a", "b"}
        assert graph.get_item("a").finish_date == day(base_date, 5)
        assert graph.get_item("b").start_date == day(base_date, 5)

    def test_preview_item_dates(self, base_date: date) -> None:
        """Test previewing one item's dates from its predecessors' stored dates."""
        graph = make_graph(
            make_item("a", duration=5, start=base_date, finish=day(base_date, 5)),
            make_item("b", duration=3, predecessors=[edge("a", "FS", 2)]),
        )

        preview = preview_item_dates(graph, "b")

        assert preview == ItemDates(day(base_date, 7), day(base_date, 10))
        assert graph.get_item("b").start_date is None

    def test_preview_without_usable_dates(self) -> None:
        graph = make_graph(make_item("a"), make_item("b", predecessors=[edge("a")]))
        assert preview_item_dates(graph, "b") is None

    def test_check_predecessor_dates(self, base_date: date) -> None:
        """Test reporting predecessors that lack the date their edge type reads."""
        graph = make_graph(
            make_item("a", start=base_date),
            make_item("b", predecessors=[edge("a", "FS"), edge("c", "SS")]),
            make_item("c"),
        )

        errors = check_predecessor_dates(graph, "b")

        assert errors == [
            'Predecessor "A" needs a finish date for FS',
            'Predecessor "C" needs a start date for SS',
        ]

    def test_item_dates_to_dict(self, base_date: date) -> None:
        assert ItemDates(base_date, None).to_dict() == {
            "start_date": "2024-01-01",
            "finish_date": None,
        }
