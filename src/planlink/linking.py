"""Bulk link operations over a selection of plan items.

Every adding operation goes through an EdgeBatch: proposed edges are checked
one at a time against a copy of the graph that already holds the edges
accepted earlier in the same batch, and only a fully valid batch is attached
to the real graph. A rejected batch leaves the graph exactly as it was.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from .cycles import would_create_cycle
from .exceptions import CircularDependencyError, InsufficientSelectionError
from .logger import get_logger
from .models import DependencyType, EdgeRef, PlanItem, PredecessorEdge
from .scheduler import ForwardPassScheduler, ItemDates, ScheduleResult, apply_dates

if TYPE_CHECKING:
    from .graph import PredecessorGraph

logger = get_logger()

MIN_SELECTION = 2


class LinkOperation(str, Enum):
    """Available link operations."""

    CHAIN = "chain"
    FAN_IN = "fan_in"  # All -> last
    FAN_OUT = "fan_out"  # First -> all
    UNLINK = "unlink"
    CLEAR_ALL = "clear_all"
    LINK = "link"  # Single edge


@dataclass(frozen=True)
class EdgeProposal:
    """An edge attached to (or detached from) a dependent item."""

    dependent_id: str
    edge: PredecessorEdge

    @property
    def ref(self) -> EdgeRef:
        return EdgeRef(self.dependent_id, self.edge.predecessor_id)

    def __str__(self) -> str:
        return f"{self.dependent_id} <- {self.edge}"


@dataclass(frozen=True)
class RejectedEdge:
    """A proposed edge that was skipped, with the reason."""

    dependent_id: str
    edge: PredecessorEdge
    reason: str


def _default_proposals() -> list[EdgeProposal]:
    return []


def _default_rejections() -> list[RejectedEdge]:
    return []


def _default_dates() -> dict[str, ItemDates]:
    return {}


@dataclass
class LinkResult:
    """Outcome of a link operation that was committed to the graph."""

    operation: LinkOperation
    accepted_edges: list[EdgeProposal] = field(default_factory=_default_proposals)
    rejected_edges: list[RejectedEdge] = field(default_factory=_default_rejections)
    removed_edges: list[EdgeProposal] = field(default_factory=_default_proposals)
    updated_dates: dict[str, ItemDates] = field(default_factory=_default_dates)
    schedule: ScheduleResult | None = None

    @property
    def changed(self) -> bool:
        """True if the operation altered any edge or date."""
        return bool(self.accepted_edges or self.removed_edges or self.updated_dates)


class EdgeBatch:
    """Accumulates proposed edges and validates them before anything is committed."""

    def __init__(self, graph: PredecessorGraph):
        self.graph = graph
        self.overlay = graph.copy()
        self.accepted: list[EdgeProposal] = []
        self.rejected: list[RejectedEdge] = []

    def propose(self, dependent_id: str, edge: PredecessorEdge) -> bool:
        """Validate one edge against the graph plus edges accepted so far.

        Returns:
            True if accepted, False if skipped as a duplicate

        Raises:
            CircularDependencyError: If the edge would close a loop
            DanglingReferenceError: If either endpoint is unknown
        """
        self.overlay.get_item(dependent_id)
        self.overlay.get_item(edge.predecessor_id)

        if self.overlay.has_edge(dependent_id, edge.predecessor_id):
            logger.checks(f"  Skipping {dependent_id} <- {edge.predecessor_id}: already linked")
            self.rejected.append(RejectedEdge(dependent_id, edge, "duplicate"))
            return False

        logger.checks(f"  Checking {dependent_id} <- {edge.predecessor_id}")
        if would_create_cycle(self.overlay, dependent_id, edge.predecessor_id):
            raise CircularDependencyError(dependent_id, edge.predecessor_id)

        self.overlay.add_edge(dependent_id, edge)
        self.accepted.append(EdgeProposal(dependent_id, edge))
        return True

    def commit(self) -> list[EdgeProposal]:
        """Attach every accepted edge to the real graph."""
        for proposal in self.accepted:
            self.graph.add_edge(proposal.dependent_id, proposal.edge)
            logger.changes(f"Linked {proposal}")
        return list(self.accepted)


def order_selection(graph: PredecessorGraph, item_ids: Iterable[str]) -> list[PlanItem]:
    """Resolve a selection and order it by sort_order (not click order).

    Raises:
        DanglingReferenceError: If an id is not in the graph
        InsufficientSelectionError: If fewer than two distinct items are selected
    """
    unique_ids = list(dict.fromkeys(item_ids))
    items = [graph.get_item(item_id) for item_id in unique_ids]
    if len(items) < MIN_SELECTION:
        raise InsufficientSelectionError(len(items), MIN_SELECTION)
    return sorted(items, key=lambda item: (item.sort_order, item.id))


def _reschedule(
    graph: PredecessorGraph,
    result: LinkResult,
    scheduler: ForwardPassScheduler | None,
) -> LinkResult:
    schedule = (scheduler or ForwardPassScheduler()).compute(graph)
    apply_dates(graph, schedule)
    result.schedule = schedule
    result.updated_dates = schedule.changed_dates()
    for item_id, item_dates in result.updated_dates.items():
        logger.changes(
            f"Moved {item_id}: {item_dates.start_date} -> {item_dates.finish_date}"
        )
    return result


def _add_edges(
    graph: PredecessorGraph,
    operation: LinkOperation,
    pairs: list[tuple[str, str]],
    edge_type: DependencyType,
    lag: int,
    scheduler: ForwardPassScheduler | None,
) -> LinkResult:
    logger.changes(f"{operation.value}: proposing {len(pairs)} edge(s)")
    batch = EdgeBatch(graph)
    for dependent_id, predecessor_id in pairs:
        batch.propose(dependent_id, PredecessorEdge(predecessor_id, edge_type, lag))

    result = LinkResult(
        operation=operation,
        accepted_edges=batch.commit(),
        rejected_edges=list(batch.rejected),
    )
    return _reschedule(graph, result, scheduler)


def propose_chain(
    graph: PredecessorGraph,
    selection: Iterable[str],
    *,
    edge_type: DependencyType = DependencyType.FS,
    lag: int = 0,
    scheduler: ForwardPassScheduler | None = None,
) -> LinkResult:
    """Link the selection in sequence: each item depends on the one before it."""
    items = order_selection(graph, selection)
    pairs = [(items[i].id, items[i - 1].id) for i in range(1, len(items))]
    return _add_edges(graph, LinkOperation.CHAIN, pairs, edge_type, lag, scheduler)


def propose_fan_in(
    graph: PredecessorGraph,
    selection: Iterable[str],
    *,
    edge_type: DependencyType = DependencyType.FS,
    lag: int = 0,
    scheduler: ForwardPassScheduler | None = None,
) -> LinkResult:
    """Make the last selected item depend on every other selected item."""
    items = order_selection(graph, selection)
    last = items[-1]
    pairs = [(last.id, item.id) for item in items[:-1]]
    return _add_edges(graph, LinkOperation.FAN_IN, pairs, edge_type, lag, scheduler)


def propose_fan_out(
    graph: PredecessorGraph,
    selection: Iterable[str],
    *,
    edge_type: DependencyType = DependencyType.FS,
    lag: int = 0,
    scheduler: ForwardPassScheduler | None = None,
) -> LinkResult:
    """Make every other selected item depend on the first selected item."""
    items = order_selection(graph, selection)
    first = items[0]
    pairs = [(item.id, first.id) for item in items[1:]]
    return _add_edges(graph, LinkOperation.FAN_OUT, pairs, edge_type, lag, scheduler)


def propose_link(
    graph: PredecessorGraph,
    dependent_id: str,
    predecessor_id: str,
    *,
    edge_type: DependencyType = DependencyType.FS,
    lag: int = 0,
    scheduler: ForwardPassScheduler | None = None,
) -> LinkResult:
    """Add a single edge through the same validation as the bulk operations."""
    return _add_edges(
        graph,
        LinkOperation.LINK,
        [(dependent_id, predecessor_id)],
        edge_type,
        lag,
        scheduler,
    )


def propose_unlink(
    graph: PredecessorGraph,
    selection: Iterable[str],
    *,
    scheduler: ForwardPassScheduler | None = None,
) -> LinkResult:
    """Remove every edge whose dependent and predecessor are both selected."""
    items = order_selection(graph, selection)
    selected_ids = {item.id for item in items}
    removed: list[EdgeProposal] = []
    for item in items:
        for edge in list(item.predecessors):
            if edge.predecessor_id in selected_ids:
                graph.remove_edge(item.id, edge.predecessor_id)
                removed.append(EdgeProposal(item.id, edge))
                logger.changes(f"Unlinked {item.id} <- {edge}")

    result = LinkResult(operation=LinkOperation.UNLINK, removed_edges=removed)
    return _reschedule(graph, result, scheduler)


def propose_clear_all(
    graph: PredecessorGraph,
    selection: Iterable[str],
    *,
    scheduler: ForwardPassScheduler | None = None,
) -> LinkResult:
    """Remove every predecessor edge of the selected items."""
    items = order_selection(graph, selection)
    removed: list[EdgeProposal] = []
    for item in items:
        for edge in list(item.predecessors):
            graph.remove_edge(item.id, edge.predecessor_id)
            removed.append(EdgeProposal(item.id, edge))
            logger.changes(f"Cleared {item.id} <- {edge}")

    result = LinkResult(operation=LinkOperation.CLEAR_ALL, removed_edges=removed)
    return _reschedule(graph, result, scheduler)
