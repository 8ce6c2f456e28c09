"""Custom exceptions for planlink."""

from __future__ import annotations


class PlanlinkError(Exception):
    """Base exception for all planlink errors."""

    pass


class ParseError(PlanlinkError):
    """Raised when a plan file cannot be read or parsed."""

    pass


class ValidationError(PlanlinkError):
    """Raised when validation fails."""

    pass


class DuplicateEdgeError(ValidationError):
    """Raised when an item would depend on the same predecessor twice."""

    def __init__(self, dependent_id: str, predecessor_id: str):
        self.dependent_id = dependent_id
        self.predecessor_id = predecessor_id
        super().__init__(f"Item '{dependent_id}' already depends on '{predecessor_id}'")


class CircularDependencyError(ValidationError):
    """Raised when a proposed edge would close a loop in the predecessor graph."""

    def __init__(self, dependent_id: str, predecessor_id: str):
        self.dependent_id = dependent_id
        self.predecessor_id = predecessor_id
        if dependent_id == predecessor_id:
            message = f"Item '{dependent_id}' cannot depend on itself"
        else:
            message = (
                f"Making '{dependent_id}' depend on '{predecessor_id}' would create a "
                f"circular dependency ('{predecessor_id}' already depends on '{dependent_id}')"
            )
        super().__init__(message)

    @property
    def pair(self) -> tuple[str, str]:
        """The offending (dependent, predecessor) pair."""
        return (self.dependent_id, self.predecessor_id)


class DanglingReferenceError(ValidationError):
    """Raised when an id does not refer to an item in the current graph."""

    def __init__(self, item_id: str, referenced_by: str | None = None):
        self.item_id = item_id
        self.referenced_by = referenced_by
        if referenced_by:
            message = f"Item '{referenced_by}' references unknown item '{item_id}'"
        else:
            message = f"Unknown item '{item_id}'"
        super().__init__(f"{message}; refresh the plan and retry")


class InsufficientSelectionError(PlanlinkError):
    """Raised when a link operation is given fewer than two items."""

    def __init__(self, count: int, required: int = 2):
        self.count = count
        self.required = required
        super().__init__(f"Select at least {required} items (got {count})")


class CyclicGraphError(PlanlinkError):
    """Raised when dates are requested for a graph that already contains a cycle.

    Seeing this means an edge bypassed cycle detection somewhere upstream.
    """

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__(f"Cannot schedule a cyclic graph: {' -> '.join(cycle)}")


class PersistenceError(PlanlinkError):
    """Raised by a plan store when a write or read fails."""

    pass
