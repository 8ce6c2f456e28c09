"""Core dataclasses for the scheduling system."""

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class ItemDates:
    """Computed start and finish for one plan item."""

    start_date: date | None
    finish_date: date | None

    def to_dict(self) -> dict[str, str | None]:
        """Convert to ISO date strings for payloads."""
        return {
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "finish_date": self.finish_date.isoformat() if self.finish_date else None,
        }


def _default_dates() -> dict[str, ItemDates]:
    return {}


def _default_str_list() -> list[str]:
    return []


@dataclass
class ScheduleResult:
    """Result of a forward pass over the whole graph."""

    dates: dict[str, ItemDates] = field(default_factory=_default_dates)
    order: list[str] = field(default_factory=_default_str_list)  # Topological order used
    previous: dict[str, ItemDates] = field(default_factory=_default_dates)  # Dates before the pass

    def changed_ids(self) -> list[str]:
        """Ids whose dates differ from what the items held before the pass, in order."""
        return [
            item_id
            for item_id in self.order
            if self.dates[item_id] != self.previous.get(item_id)
        ]

    def changed_dates(self) -> dict[str, ItemDates]:
        """Computed dates of the items that moved."""
        return {item_id: self.dates[item_id] for item_id in self.changed_ids()}
