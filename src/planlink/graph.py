"""Predecessor graph: plan items keyed by id plus their dependency edges."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from .exceptions import DanglingReferenceError, DuplicateEdgeError, ValidationError
from .models import EdgeRef, PlanItem, PredecessorEdge


class PredecessorGraph:
    """Arena of plan items with directed predecessor edges.

    Each item owns its ordered list of outgoing predecessor edges. The graph
    keeps a reverse index (predecessor id -> dependent ids) so dependents can
    be found in O(degree). Items reference each other only by id.

    The graph holds structure only. Adding an edge never checks for cycles;
    callers run planlink.cycles.would_create_cycle first.
    """

    def __init__(self) -> None:
        self._items: dict[str, PlanItem] = {}
        self._dependents: dict[str, dict[str, None]] = {}  # insertion-ordered set

    @classmethod
    def from_items(cls, items: Iterable[PlanItem]) -> PredecessorGraph:
        """Build a graph from items, taking ownership of them.

        Raises:
            ValidationError: Two items share an id
            DanglingReferenceError: An edge references an unknown item
            DuplicateEdgeError: An item lists the same predecessor twice
        """
        graph = cls()
        pending: list[tuple[str, list[PredecessorEdge]]] = []
        for item in items:
            if item.id in graph._items:
                raise ValidationError(f"Duplicate item id '{item.id}'")
            edges = item.predecessors
            item.predecessors = []
            graph.add_item(item)
            pending.append((item.id, edges))

        for dependent_id, edges in pending:
            for edge in edges:
                graph.add_edge(dependent_id, edge)
        return graph

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[PlanItem]:
        return iter(self.all_items())

    def add_item(self, item: PlanItem) -> None:
        """Add an item with no edges attached yet; existing predecessors are added too."""
        if item.id in self._items:
            raise ValidationError(f"Duplicate item id '{item.id}'")
        edges = item.predecessors
        item.predecessors = []
        self._items[item.id] = item
        self._dependents.setdefault(item.id, {})
        for edge in edges:
            self.add_edge(item.id, edge)

    def remove_item(self, item_id: str) -> PlanItem:
        """Remove an item along with every edge into or out of it."""
        item = self.get_item(item_id)
        for dependent_id in list(self._dependents.get(item_id, {})):
            self.remove_edge(dependent_id, item_id)
        for edge in list(item.predecessors):
            self.remove_edge(item_id, edge.predecessor_id)
        del self._items[item_id]
        del self._dependents[item_id]
        return item

    def get_item(self, item_id: str) -> PlanItem:
        """Get an item by id."""
        try:
            return self._items[item_id]
        except KeyError:
            raise DanglingReferenceError(item_id) from None

    def all_items(self) -> list[PlanItem]:
        """All items in display order (sort_order, then id)."""
        return sorted(self._items.values(), key=lambda item: (item.sort_order, item.id))

    def item_ids(self) -> set[str]:
        """Get all item ids in the graph."""
        return set(self._items)

    def add_edge(self, dependent_id: str, edge: PredecessorEdge) -> None:
        """Attach an edge to its dependent item."""
        dependent = self.get_item(dependent_id)
        if edge.predecessor_id not in self._items:
            raise DanglingReferenceError(edge.predecessor_id, referenced_by=dependent_id)
        if dependent.get_edge(edge.predecessor_id) is not None:
            raise DuplicateEdgeError(dependent_id, edge.predecessor_id)

        dependent.predecessors.append(edge)
        self._dependents[edge.predecessor_id][dependent_id] = None

    def remove_edge(self, dependent_id: str, predecessor_id: str) -> PredecessorEdge | None:
        """Detach an edge; returns it, or None if it did not exist."""
        dependent = self.get_item(dependent_id)
        for index, edge in enumerate(dependent.predecessors):
            if edge.predecessor_id == predecessor_id:
                del dependent.predecessors[index]
                self._dependents[predecessor_id].pop(dependent_id, None)
                return edge
        return None

    def get_edge(self, dependent_id: str, predecessor_id: str) -> PredecessorEdge | None:
        """Get the edge between two items, if any."""
        item = self._items.get(dependent_id)
        if item is None:
            return None
        return item.get_edge(predecessor_id)

    def has_edge(self, dependent_id: str, predecessor_id: str) -> bool:
        """Check whether dependent already depends on predecessor."""
        return self.get_edge(dependent_id, predecessor_id) is not None

    def neighbors(self, item_id: str) -> list[str]:
        """Ids of the item's predecessors, in edge order."""
        return self.get_item(item_id).predecessor_ids

    def reverse_neighbors(self, item_id: str) -> list[str]:
        """Ids of the items that depend on this one."""
        self.get_item(item_id)
        return list(self._dependents[item_id])

    def edges(self) -> list[tuple[str, PredecessorEdge]]:
        """All edges as (dependent_id, edge), in display order of dependents."""
        return [(item.id, edge) for item in self.all_items() for edge in item.predecessors]

    def edge_refs(self) -> set[EdgeRef]:
        """All edges as (dependent_id, predecessor_id) pairs."""
        return {EdgeRef(dependent_id, edge.predecessor_id) for dependent_id, edge in self.edges()}

    def copy(self) -> PredecessorGraph:
        """Independent copy; mutating it never touches this graph."""
        clone = PredecessorGraph()
        clone._items = {item_id: item.copy() for item_id, item in self._items.items()}
        clone._dependents = {
            item_id: dict(dependents) for item_id, dependents in self._dependents.items()
        }
        return clone
