"""Data models for planlink."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Any, NamedTuple

from .exceptions import ValidationError

if TYPE_CHECKING:
    from .graph import PredecessorGraph


class DependencyType(str, Enum):
    """How a dependent item's dates are tied to its predecessor's."""

    FS = "FS"  # Finish-to-Start: starts when the predecessor finishes
    SS = "SS"  # Start-to-Start: starts when the predecessor starts
    FF = "FF"  # Finish-to-Finish: finishes when the predecessor finishes
    SF = "SF"  # Start-to-Finish: finishes when the predecessor starts

    @classmethod
    def coerce(cls, value: Any) -> DependencyType:
        """Convert a payload value into a DependencyType (None means FS)."""
        if value is None or value == "":
            return cls.FS
        if isinstance(value, DependencyType):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValidationError(
                f"Unknown dependency type '{value}'. Valid types are: FS, SS, FF, SF"
            ) from None


# "<id>[ <type>][+/-<n>d]", e.g. "design", "design SS", "design FF+3d", "design-2d"
_SHORTHAND_RE = re.compile(
    r"^(?P<id>.+?)(?:\s+(?P<type>(?i:FS|SS|FF|SF)))?(?:\s*(?P<sign>[+-])\s*(?P<lag>\d+)d)?$"
)


@dataclass(frozen=True)
class PredecessorEdge:
    """A dependency on another item, owned by the dependent item.

    The lag is a signed number of days applied by the type-specific date rule;
    a negative lag is a lead (overlap).
    """

    predecessor_id: str
    type: DependencyType = DependencyType.FS
    lag: int = 0

    @classmethod
    def parse(cls, text: str) -> PredecessorEdge:
        """Parse the compact shorthand used in plan files and CLI output.

        Supported formats:
        - "design" - finish-to-start with no lag
        - "design SS" - start-to-start with no lag
        - "design FF+3d" - finish-to-finish, 3 days lag
        - "design SF-2d" / "design-2d" - 2 days lead

        Ids that themselves end in "-<n>d" need the mapping form instead.
        """
        match = _SHORTHAND_RE.match(text.strip())
        if not match:
            raise ValidationError(f"Invalid predecessor reference: '{text}'")

        lag = 0
        if match.group("lag") is not None:
            lag = int(match.group("lag"))
            if match.group("sign") == "-":
                lag = -lag

        return cls(
            predecessor_id=match.group("id").strip(),
            type=DependencyType.coerce(match.group("type")),
            lag=lag,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PredecessorEdge:
        """Build an edge from the interchange form {id, type, lag}."""
        if "id" not in data or data["id"] in (None, ""):
            raise ValidationError(f"Predecessor entry is missing 'id': {data}")
        lag = data.get("lag") or 0
        if isinstance(lag, bool) or not isinstance(lag, int):
            if isinstance(lag, float) and lag.is_integer():
                lag = int(lag)
            else:
                raise ValidationError(f"Lag must be a whole number of days, got {lag!r}")
        return cls(
            predecessor_id=str(data["id"]),
            type=DependencyType.coerce(data.get("type")),
            lag=lag,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the interchange form."""
        return {"id": self.predecessor_id, "type": self.type.value, "lag": self.lag}

    def __str__(self) -> str:
        if self.type == DependencyType.FS and self.lag == 0:
            return self.predecessor_id
        lag = ""
        if self.lag > 0:
            lag = f"+{self.lag}d"
        elif self.lag < 0:
            lag = f"{self.lag}d"
        return f"{self.predecessor_id} {self.type.value}{lag}"


class EdgeRef(NamedTuple):
    """Names an edge by its endpoints: dependent depends on predecessor."""

    dependent_id: str
    predecessor_id: str

    def __str__(self) -> str:
        return f"{self.dependent_id} -> {self.predecessor_id}"


def _default_edge_list() -> list[PredecessorEdge]:
    return []


@dataclass
class PlanItem:
    """A work item in a project plan."""

    id: str
    name: str = ""
    sort_order: int = 0
    duration_days: float = 0.0
    start_date: date | None = None
    finish_date: date | None = None
    manually_pinned: bool = False
    predecessors: list[PredecessorEdge] = field(default_factory=_default_edge_list)

    def __post_init__(self) -> None:
        if self.duration_days < 0:
            raise ValidationError(
                f"Item '{self.id}' has negative duration {self.duration_days}"
            )

    @property
    def predecessor_ids(self) -> list[str]:
        """Get just the predecessor ids, in edge order."""
        return [edge.predecessor_id for edge in self.predecessors]

    def get_edge(self, predecessor_id: str) -> PredecessorEdge | None:
        """Get this item's edge to a predecessor, if any."""
        for edge in self.predecessors:
            if edge.predecessor_id == predecessor_id:
                return edge
        return None

    def copy(self) -> PlanItem:
        """Copy with an independent predecessor list (edges themselves are immutable)."""
        return PlanItem(
            id=self.id,
            name=self.name,
            sort_order=self.sort_order,
            duration_days=self.duration_days,
            start_date=self.start_date,
            finish_date=self.finish_date,
            manually_pinned=self.manually_pinned,
            predecessors=list(self.predecessors),
        )


@dataclass
class PlanMetadata:
    """Metadata for a plan file."""

    version: str = "1.0"
    project: str | None = None
    last_updated: str | None = None


@dataclass
class Plan:
    """A loaded plan: its metadata plus the predecessor graph of its items."""

    metadata: PlanMetadata
    graph: PredecessorGraph
