"""YAML parser for planlink plan files."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ParseError, ValidationError
from .models import PlanItem, PlanMetadata, PredecessorEdge
from .schemas import PlanItemSchema, PlanSchema, PredecessorSchema


def schema_to_edge(entry: str | PredecessorSchema) -> PredecessorEdge:
    """Convert a validated predecessor entry (shorthand or mapping) to an edge."""
    if isinstance(entry, str):
        return PredecessorEdge.parse(entry)
    return PredecessorEdge(predecessor_id=entry.id, type=entry.type, lag=entry.lag)


def schema_to_item(item_id: str, data: PlanItemSchema, position: int) -> PlanItem:
    """Convert a validated item schema to a PlanItem."""
    return PlanItem(
        id=item_id,
        name=data.name,
        sort_order=data.sort_order if data.sort_order is not None else position,
        duration_days=data.duration_days,
        start_date=data.start_date,
        finish_date=data.finish_date,
        manually_pinned=data.manually_pinned,
        predecessors=[schema_to_edge(entry) for entry in data.predecessors],
    )


class PlanParser:
    """Parser for plan YAML files.

    This parser only handles YAML parsing and item creation. For a validated
    predecessor graph use load_plan() from planlink.loader.
    """

    def parse_file(self, file_path: Path | str) -> tuple[PlanMetadata, list[PlanItem]]:
        """Parse a YAML file into plan metadata and items."""
        path = Path(file_path)
        if not path.exists():
            raise ParseError(f"File not found: {file_path}")

        try:
            with path.open(encoding="utf-8") as f:
                data: Any = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ParseError(f"Failed to parse YAML: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ParseError("YAML must contain a dictionary at the root level")

        return self.parse_data(data)  # type: ignore[arg-type]

    def parse_data(self, data: dict[str, Any]) -> tuple[PlanMetadata, list[PlanItem]]:
        """Parse already-loaded YAML data."""
        try:
            schema = PlanSchema(**data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid plan structure: {e}") from e

        metadata = PlanMetadata(
            version=schema.metadata.version,
            project=schema.metadata.project,
            last_updated=schema.metadata.last_updated,
        )

        items: list[PlanItem] = []
        for position, (item_id, item_data) in enumerate(schema.items.items()):
            items.append(schema_to_item(item_id, item_data or PlanItemSchema(), position))

        return metadata, items
