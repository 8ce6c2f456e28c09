"""High-level planning service running link operations as transactions."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .applier import ApplyResult, DateChange, MutationApplier, changes_from_result
from .config import PlanlinkConfig
from .graph import PredecessorGraph
from .linking import (
    LinkOperation,
    LinkResult,
    propose_chain,
    propose_clear_all,
    propose_fan_in,
    propose_fan_out,
    propose_link,
    propose_unlink,
)
from .loader import validate_graph
from .logger import get_logger
from .models import DependencyType
from .scheduler import ItemDates, apply_dates

if TYPE_CHECKING:
    from .stores import PlanStore

logger = get_logger()


@dataclass
class LinkOutcome:
    """A committed link operation and what happened when it was persisted."""

    result: LinkResult
    applied: ApplyResult | None  # None for dry runs

    @property
    def needs_refresh(self) -> bool:
        return self.applied is not None and self.applied.needs_refresh


@dataclass
class ScheduleOutcome:
    """A full recompute and what happened when it was persisted."""

    dates: dict[str, ItemDates]
    changed: dict[str, ItemDates]
    applied: ApplyResult | None


class PlanningService:
    """Coordinates store, link operations, scheduler and mutation applier.

    Each call is one transaction: load graph -> operate -> compute dates ->
    persist. Transactions are serialized by a lock, so an operation started
    while another is persisting waits and then works on a freshly loaded
    graph rather than a partially committed one.
    """

    def __init__(self, store: PlanStore, config: PlanlinkConfig | None = None):
        """Initialize planning service.

        Args:
            store: Where plan items are loaded from and persisted to
            config: Optional configuration (calendar, project start, edge defaults)
        """
        self.store = store
        self.config = config or PlanlinkConfig()
        self.applier = MutationApplier(store)
        self._lock = asyncio.Lock()

    async def load_graph(self) -> PredecessorGraph:
        """Load a fresh, validated graph from the store."""
        graph = PredecessorGraph.from_items(await self.store.load_items())
        validate_graph(graph)
        return graph

    async def propose_chain(
        self, selection: Iterable[str], *, dry_run: bool = False
    ) -> LinkOutcome:
        return await self._run_bulk(LinkOperation.CHAIN, list(selection), dry_run)

    async def propose_fan_in(
        self, selection: Iterable[str], *, dry_run: bool = False
    ) -> LinkOutcome:
        return await self._run_bulk(LinkOperation.FAN_IN, list(selection), dry_run)

    async def propose_fan_out(
        self, selection: Iterable[str], *, dry_run: bool = False
    ) -> LinkOutcome:
        return await self._run_bulk(LinkOperation.FAN_OUT, list(selection), dry_run)

    async def propose_unlink(
        self, selection: Iterable[str], *, dry_run: bool = False
    ) -> LinkOutcome:
        return await self._run_bulk(LinkOperation.UNLINK, list(selection), dry_run)

    async def propose_clear_all(
        self, selection: Iterable[str], *, dry_run: bool = False
    ) -> LinkOutcome:
        return await self._run_bulk(LinkOperation.CLEAR_ALL, list(selection), dry_run)

    async def propose_link(
        self,
        dependent_id: str,
        predecessor_id: str,
        *,
        edge_type: DependencyType | None = None,
        lag: int | None = None,
        dry_run: bool = False,
    ) -> LinkOutcome:
        """Add one edge with the same validation and persistence as the bulk operations."""
        linking = self.config.linking

        def operate(graph: PredecessorGraph) -> LinkResult:
            return propose_link(
                graph,
                dependent_id,
                predecessor_id,
                edge_type=edge_type or linking.default_type,
                lag=linking.default_lag if lag is None else lag,
                scheduler=self.config.create_scheduler(),
            )

        return await self._transaction(operate, dry_run)

    async def recompute_schedule(self, *, dry_run: bool = False) -> ScheduleOutcome:
        """Recompute every item's dates and persist the ones that moved."""
        async with self._lock:
            graph = await self.load_graph()
            schedule = self.config.create_scheduler().compute(graph)
            apply_dates(graph, schedule)
            changed = schedule.changed_dates()
            applied = None
            if not dry_run:
                date_changes = [
                    DateChange(item_id, item_dates.start_date, item_dates.finish_date)
                    for item_id, item_dates in changed.items()
                ]
                applied = await self.applier.apply([], date_changes)
            return ScheduleOutcome(dates=schedule.dates, changed=changed, applied=applied)

    async def _run_bulk(
        self, operation: LinkOperation, selection: list[str], dry_run: bool
    ) -> LinkOutcome:
        linking = self.config.linking

        def operate(graph: PredecessorGraph) -> LinkResult:
            scheduler = self.config.create_scheduler()
            if operation == LinkOperation.UNLINK:
                return propose_unlink(graph, selection, scheduler=scheduler)
            if operation == LinkOperation.CLEAR_ALL:
                return propose_clear_all(graph, selection, scheduler=scheduler)

            propose = {
                LinkOperation.CHAIN: propose_chain,
                LinkOperation.FAN_IN: propose_fan_in,
                LinkOperation.FAN_OUT: propose_fan_out,
            }[operation]
            return propose(
                graph,
                selection,
                edge_type=linking.default_type,
                lag=linking.default_lag,
                scheduler=scheduler,
            )

        return await self._transaction(operate, dry_run)

    async def _transaction(
        self, operate: Callable[[PredecessorGraph], LinkResult], dry_run: bool
    ) -> LinkOutcome:
        async with self._lock:
            graph = await self.load_graph()
            result = operate(graph)
            if dry_run:
                return LinkOutcome(result=result, applied=None)

            edge_changes, date_changes = changes_from_result(result)
            applied = await self.applier.apply(edge_changes, date_changes)
            if applied.needs_refresh:
                logger.warning(
                    f"{result.operation.value}: {len(applied.failed)} item(s) not saved; "
                    "reload the plan before retrying"
                )
            return LinkOutcome(result=result, applied=applied)
