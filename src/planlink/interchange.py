"""Predecessor interchange format for API payloads and persistence.

Each item carries an ordered list of {"id": <predecessor id>, "type": "FS"|"SS"|"FF"|"SF",
"lag": <int>} entries. Dates travel as ISO strings.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from .exceptions import ValidationError
from .graph import PredecessorGraph
from .models import PlanItem, PredecessorEdge


def edges_to_payload(item: PlanItem) -> list[dict[str, Any]]:
    """Serialize an item's predecessor list, keeping its order."""
    return [edge.to_dict() for edge in item.predecessors]


def edges_from_payload(payload: list[dict[str, Any]] | None) -> list[PredecessorEdge]:
    """Deserialize a predecessor list; a missing list means no predecessors."""
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ValidationError(f"Predecessors must be a list, got {type(payload).__name__}")
    return [PredecessorEdge.from_dict(entry) for entry in payload]


def _date_to_str(value: date | None) -> str | None:
    return value.isoformat() if value else None


def _date_from_str(value: Any, field_name: str, item_id: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as e:
        raise ValidationError(f"Invalid {field_name} for item '{item_id}': {value}") from e


def item_to_payload(item: PlanItem) -> dict[str, Any]:
    """Serialize one item."""
    return {
        "id": item.id,
        "name": item.name,
        "sort_order": item.sort_order,
        "duration_days": item.duration_days,
        "start_date": _date_to_str(item.start_date),
        "finish_date": _date_to_str(item.finish_date),
        "manually_pinned": item.manually_pinned,
        "predecessors": edges_to_payload(item),
    }


def item_from_payload(data: dict[str, Any]) -> PlanItem:
    """Deserialize one item."""
    if "id" not in data:
        raise ValidationError(f"Item payload is missing 'id': {data}")
    item_id = str(data["id"])
    return PlanItem(
        id=item_id,
        name=data.get("name") or "",
        sort_order=int(data.get("sort_order") or 0),
        duration_days=float(data.get("duration_days") or 0),
        start_date=_date_from_str(data.get("start_date"), "start_date", item_id),
        finish_date=_date_from_str(data.get("finish_date"), "finish_date", item_id),
        manually_pinned=bool(data.get("manually_pinned", False)),
        predecessors=edges_from_payload(data.get("predecessors")),
    )


def graph_to_payload(graph: PredecessorGraph) -> dict[str, Any]:
    """Serialize a whole graph as {"items": [...]} in display order."""
    return {"items": [item_to_payload(item) for item in graph.all_items()]}


def graph_from_payload(payload: dict[str, Any]) -> PredecessorGraph:
    """Rebuild a graph; references and duplicates are validated while building."""
    items = payload.get("items")
    if not isinstance(items, list):
        raise ValidationError("Graph payload must contain an 'items' list")
    return PredecessorGraph.from_items(item_from_payload(entry) for entry in items)
