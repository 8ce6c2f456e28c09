"""Forward pass: derive start/finish dates from the predecessor graph."""

import heapq
from datetime import date
from typing import TYPE_CHECKING

from planlink.cycles import find_cycle
from planlink.exceptions import CyclicGraphError
from planlink.logger import get_logger
from planlink.models import DependencyType, PlanItem, PredecessorEdge

from .calendar import Calendar, CalendarDays
from .core import ItemDates, ScheduleResult

if TYPE_CHECKING:
    from planlink.graph import PredecessorGraph

logger = get_logger()


class ForwardPassScheduler:
    """Computes dates for every item in dependency order.

    1. Topologically sort the items (ties broken by sort_order)
    2. Walk the order, taking for each item the latest start that its
       predecessor edges allow

    Items without predecessors, and pinned items, keep their own start date.
    """

    def __init__(self, calendar: Calendar | None = None, project_start: date | None = None):
        """Initialize the scheduler.

        Args:
            calendar: Day arithmetic to use (defaults to plain calendar days)
            project_start: Start for unconstrained items that have no start date
        """
        self.calendar = calendar or CalendarDays()
        self.project_start = project_start

    def compute(self, graph: "PredecessorGraph") -> ScheduleResult:
        """Compute dates for the whole graph without modifying it.

        Raises:
            CyclicGraphError: If the graph contains a cycle
        """
        order = topological_order(graph)
        dates: dict[str, ItemDates] = {}
        previous: dict[str, ItemDates] = {}

        for item_id in order:
            item = graph.get_item(item_id)
            previous[item_id] = ItemDates(item.start_date, item.finish_date)
            start = self._resolve_start(item, dates)
            finish = self.calendar.add_days(start, item.duration_days) if start else None
            dates[item_id] = ItemDates(start, finish)
            logger.debug(f"  {item_id}: start={start} finish={finish}")

        return ScheduleResult(dates=dates, order=order, previous=previous)

    def _resolve_start(self, item: PlanItem, dates: dict[str, ItemDates]) -> date | None:
        if item.manually_pinned and item.start_date is not None:
            return item.start_date

        # Multiple predecessors: the latest constraint wins
        candidates: list[date] = []
        for edge in item.predecessors:
            candidate = self.candidate_start(item, edge, dates[edge.predecessor_id])
            if candidate is not None:
                candidates.append(candidate)
        if candidates:
            return max(candidates)

        return item.start_date or self.project_start

    def candidate_start(
        self, item: PlanItem, edge: PredecessorEdge, predecessor: ItemDates
    ) -> date | None:
        """Earliest start one edge allows, or None if the predecessor lacks the needed date."""
        if edge.type in (DependencyType.FS, DependencyType.FF):
            anchor = predecessor.finish_date
        else:
            anchor = predecessor.start_date

        if anchor is None:
            logger.debug(
                f"    {item.id}: {edge.predecessor_id} has no date for {edge.type.value}"
            )
            return None

        shifted = self.calendar.add_days(anchor, edge.lag)
        if edge.type in (DependencyType.FS, DependencyType.SS):
            candidate = shifted
        else:
            # FF/SF constrain the finish; back off by the item's own duration
            candidate = self.calendar.add_days(shifted, -item.duration_days)

        logger.debug(
            f"    {item.id}: {edge.type.value} {edge.predecessor_id} lag={edge.lag} -> {candidate}"
        )
        return candidate


def topological_order(graph: "PredecessorGraph") -> list[str]:
    """Order item ids so every predecessor comes before its dependents.

    Kahn's algorithm; among items that are ready at the same time the one with
    the lowest (sort_order, id) goes first.

    Raises:
        CyclicGraphError: If the graph contains a cycle
    """
    in_degree = {item.id: len(item.predecessors) for item in graph.all_items()}
    ready = [
        (graph.get_item(item_id).sort_order, item_id)
        for item_id, degree in in_degree.items()
        if degree == 0
    ]
    heapq.heapify(ready)
    result: list[str] = []

    while ready:
        _, item_id = heapq.heappop(ready)
        result.append(item_id)
        for dependent_id in graph.reverse_neighbors(item_id):
            in_degree[dependent_id] -= 1
            if in_degree[dependent_id] == 0:
                heapq.heappush(ready, (graph.get_item(dependent_id).sort_order, dependent_id))

    if len(result) != len(in_degree):
        cycle = find_cycle(graph) or sorted(set(in_degree) - set(result))
        raise CyclicGraphError(cycle)

    return result


def compute_dates(
    graph: "PredecessorGraph",
    calendar: Calendar | None = None,
    *,
    project_start: date | None = None,
) -> ScheduleResult:
    """Compute start/finish dates for every item without modifying the graph."""
    return ForwardPassScheduler(calendar, project_start).compute(graph)


def apply_dates(graph: "PredecessorGraph", result: ScheduleResult) -> None:
    """Write computed dates into the graph's items."""
    for item_id, item_dates in result.dates.items():
        item = graph.get_item(item_id)
        item.start_date = item_dates.start_date
        item.finish_date = item_dates.finish_date


def recompute_schedule(
    graph: "PredecessorGraph",
    calendar: Calendar | None = None,
    *,
    project_start: date | None = None,
) -> dict[str, ItemDates]:
    """Recompute and store dates for the whole graph.

    Returns:
        Dictionary mapping every item id to its computed dates
    """
    result = compute_dates(graph, calendar, project_start=project_start)
    apply_dates(graph, result)
    for item_id in result.changed_ids():
        logger.changes(f"Rescheduled {item_id}: {result.dates[item_id].start_date}")
    return result.dates


def preview_item_dates(
    graph: "PredecessorGraph",
    item_id: str,
    calendar: Calendar | None = None,
) -> ItemDates | None:
    """Dates one item would get from its predecessors' current dates.

    Nothing else is recomputed, so this is only exact when the predecessors
    are already up to date.

    Returns:
        The candidate dates, or None if no predecessor supplies a usable date
    """
    scheduler = ForwardPassScheduler(calendar)
    item = graph.get_item(item_id)
    candidates: list[date] = []
    for edge in item.predecessors:
        predecessor = graph.get_item(edge.predecessor_id)
        candidate = scheduler.candidate_start(
            item, edge, ItemDates(predecessor.start_date, predecessor.finish_date)
        )
        if candidate is not None:
            candidates.append(candidate)

    if not candidates:
        return None
    start = max(candidates)
    return ItemDates(start, scheduler.calendar.add_days(start, item.duration_days))


def check_predecessor_dates(graph: "PredecessorGraph", item_id: str) -> list[str]:
    """List predecessors that lack the date their dependency type reads.

    FS/FF edges need the predecessor's finish date; SS/SF need its start date.
    """
    errors: list[str] = []
    item = graph.get_item(item_id)
    for edge in item.predecessors:
        predecessor = graph.get_item(edge.predecessor_id)
        label = predecessor.name or predecessor.id
        if edge.type in (DependencyType.FS, DependencyType.FF) and predecessor.finish_date is None:
            errors.append(f'Predecessor "{label}" needs a finish date for {edge.type.value}')
        if edge.type in (DependencyType.SS, DependencyType.SF) and predecessor.start_date is None:
            errors.append(f'Predecessor "{label}" needs a start date for {edge.type.value}')
    return errors
