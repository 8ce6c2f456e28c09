"""Persist committed edge and date changes through a plan store.

In-memory link operations are all-or-nothing. Storage is not: unless the
store is transactional, items are written one at a time and a failed item
does not undo the ones already written. The result says which items made it
so the caller can reload and retry the rest.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING

from .exceptions import PlanlinkError
from .logger import get_logger
from .models import PlanItem, PredecessorEdge
from .stores import TransactionalPlanStore

if TYPE_CHECKING:
    from .linking import LinkResult
    from .stores import PlanStore

logger = get_logger()


class EdgeAction(str, Enum):
    """What to do with an edge."""

    ADD = "add"
    REMOVE = "remove"


@dataclass(frozen=True)
class EdgeChange:
    """Add or remove one edge on a dependent item."""

    dependent_id: str
    edge: PredecessorEdge
    action: EdgeAction = EdgeAction.ADD


@dataclass(frozen=True)
class DateChange:
    """New start/finish for one item."""

    item_id: str
    start_date: date | None
    finish_date: date | None


def _default_str_list() -> list[str]:
    return []


def _default_str_dict() -> dict[str, str]:
    return {}


@dataclass
class ApplyResult:
    """Which items were persisted and which were not."""

    success: list[str] = field(default_factory=_default_str_list)
    failed: list[str] = field(default_factory=_default_str_list)
    errors: dict[str, str] = field(default_factory=_default_str_dict)  # item_id -> message

    @property
    def needs_refresh(self) -> bool:
        """True when the caller's view of the graph may be stale."""
        return bool(self.failed)


def changes_from_result(result: LinkResult) -> tuple[list[EdgeChange], list[DateChange]]:
    """Build the change lists for a committed link operation."""
    edge_changes = [
        EdgeChange(proposal.dependent_id, proposal.edge, EdgeAction.ADD)
        for proposal in result.accepted_edges
    ]
    edge_changes.extend(
        EdgeChange(proposal.dependent_id, proposal.edge, EdgeAction.REMOVE)
        for proposal in result.removed_edges
    )
    date_changes = [
        DateChange(item_id, item_dates.start_date, item_dates.finish_date)
        for item_id, item_dates in result.updated_dates.items()
    ]
    return edge_changes, date_changes


def _apply_to_item(
    item: PlanItem, edge_changes: list[EdgeChange], date_change: DateChange | None
) -> None:
    for change in edge_changes:
        predecessor_id = change.edge.predecessor_id
        item.predecessors = [e for e in item.predecessors if e.predecessor_id != predecessor_id]
        if change.action == EdgeAction.ADD:
            item.predecessors.append(change.edge)
    if date_change is not None:
        item.start_date = date_change.start_date
        item.finish_date = date_change.finish_date


class MutationApplier:
    """Writes edge and date changes to a store, reporting per-item outcomes."""

    def __init__(self, store: PlanStore):
        self.store = store

    async def apply(
        self,
        edge_changes: Iterable[EdgeChange],
        date_changes: Iterable[DateChange],
    ) -> ApplyResult:
        """Persist changes grouped by item.

        Store failures (PlanlinkError, including a concurrently deleted item)
        are recorded per item rather than raised.
        """
        edges_by_item: dict[str, list[EdgeChange]] = {}
        for change in edge_changes:
            edges_by_item.setdefault(change.dependent_id, []).append(change)
        dates_by_item = {change.item_id: change for change in date_changes}

        item_ids = list(dict.fromkeys([*edges_by_item, *dates_by_item]))
        result = ApplyResult()
        if not item_ids:
            return result

        updated: list[PlanItem] = []
        for item_id in item_ids:
            try:
                item = await self.store.get_item(item_id)
            except PlanlinkError as e:
                self._record_failure(result, item_id, e)
                continue
            _apply_to_item(item, edges_by_item.get(item_id, []), dates_by_item.get(item_id))
            updated.append(item)

        if isinstance(self.store, TransactionalPlanStore):
            await self._save_batch(self.store, updated, result)
        else:
            for item in updated:
                try:
                    await self.store.save_item(item)
                except PlanlinkError as e:
                    self._record_failure(result, item.id, e)
                else:
                    result.success.append(item.id)

        logger.changes(f"Persisted {len(result.success)} item(s), {len(result.failed)} failed")
        return result

    async def _save_batch(
        self, store: TransactionalPlanStore, items: list[PlanItem], result: ApplyResult
    ) -> None:
        if not items:
            return
        try:
            await store.save_items(items)
        except PlanlinkError as e:
            for item in items:
                self._record_failure(result, item.id, e)
        else:
            result.success.extend(item.id for item in items)

    @staticmethod
    def _record_failure(result: ApplyResult, item_id: str, error: Exception) -> None:
        logger.warning(f"Failed to persist {item_id}: {error}")
        result.failed.append(item_id)
        result.errors[item_id] = str(error)
