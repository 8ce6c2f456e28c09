"""Cycle detection over the predecessor graph."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .logger import get_logger

if TYPE_CHECKING:
    from .graph import PredecessorGraph

logger = get_logger()


def would_create_cycle(graph: PredecessorGraph, dependent_id: str, predecessor_id: str) -> bool:
    """Check whether making dependent_id depend on predecessor_id closes a loop.

    That happens exactly when predecessor_id already (transitively) depends on
    dependent_id, so the walk starts at predecessor_id and follows its own
    predecessors looking for dependent_id.

    Nodes finished on another branch (diamonds) are not explored again; the
    on-path set distinguishes them from nodes still being explored.
    """
    if dependent_id == predecessor_id:
        logger.checks(f"  Self-loop rejected: {dependent_id}")
        return True

    visited: set[str] = set()
    on_path: set[str] = set()
    # Stack of (node, iterator over its predecessors)
    stack = [(predecessor_id, iter(graph.neighbors(predecessor_id)))]
    visited.add(predecessor_id)
    on_path.add(predecessor_id)

    while stack:
        node_id, remaining = stack[-1]
        next_id = next(remaining, None)
        if next_id is None:
            stack.pop()
            on_path.discard(node_id)
            continue
        if next_id == dependent_id:
            logger.checks(
                f"  Cycle: {predecessor_id} already depends on {dependent_id} (via {node_id})"
            )
            return True
        if next_id in on_path or next_id in visited:
            continue
        visited.add(next_id)
        on_path.add(next_id)
        stack.append((next_id, iter(graph.neighbors(next_id))))

    return False


def find_cycle(graph: PredecessorGraph) -> list[str] | None:
    """Find any cycle in the graph.

    Returns:
        The cycle as a path that starts and ends on the same id
        (e.g. ["a", "b", "a"]), or None if the graph is acyclic.
    """
    done: set[str] = set()

    for root in graph.all_items():
        if root.id in done:
            continue
        path: list[str] = [root.id]
        on_path: set[str] = {root.id}
        stack = [iter(graph.neighbors(root.id))]

        while stack:
            next_id = next(stack[-1], None)
            if next_id is None:
                stack.pop()
                finished = path.pop()
                on_path.discard(finished)
                done.add(finished)
                continue
            if next_id in on_path:
                return path[path.index(next_id) :] + [next_id]
            if next_id in done:
                continue
            path.append(next_id)
            on_path.add(next_id)
            stack.append(iter(graph.neighbors(next_id)))

    return None
