"""Pydantic schemas for plan file validation."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .models import DependencyType


class PredecessorSchema(BaseModel):
    """Schema for the mapping form of a predecessor reference."""

    id: str
    type: DependencyType = DependencyType.FS
    lag: int = 0

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id_to_string(cls, v: Any) -> str:
        """Allow numeric ids in YAML."""
        return str(v)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> Any:
        """Accept lowercase dependency types."""
        if v is None:
            return DependencyType.FS
        if isinstance(v, str):
            return v.strip().upper()
        return v


class PlanItemSchema(BaseModel):
    """Schema for one plan item."""

    name: str = ""
    sort_order: int | None = None  # Defaults to position in the file
    duration_days: float = Field(default=0.0, ge=0)
    start_date: date | None = None
    finish_date: date | None = None
    manually_pinned: bool = False
    predecessors: list[str | PredecessorSchema] = Field(default_factory=list)

    @field_validator("predecessors", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> list[Any]:
        """Ensure value is a list; scalars become single shorthand references."""
        if v is None:
            return []
        if isinstance(v, list):
            entries: list[Any] = v  # type: ignore[assignment]
            return [str(e) if isinstance(e, (int, float)) else e for e in entries]
        if isinstance(v, dict):
            return [v]
        return [str(v)]


class MetadataSchema(BaseModel):
    """Schema for plan metadata."""

    version: str = "1.0"
    project: str | None = None
    last_updated: str | None = None

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version_to_string(cls, v: Any) -> str:
        """Ensure version is a string."""
        return str(v)

    @field_validator("last_updated", mode="before")
    @classmethod
    def coerce_date_to_string(cls, v: Any) -> str | None:
        """Convert date objects to string."""
        if v is None:
            return None
        return str(v)


class PlanSchema(BaseModel):
    """Schema for an entire plan file."""

    metadata: MetadataSchema = Field(default_factory=MetadataSchema)
    items: dict[str, PlanItemSchema | None] = Field(default_factory=dict)

    @field_validator("items", mode="before")
    @classmethod
    def coerce_keys_to_string(cls, v: Any) -> Any:
        """Allow numeric item ids in YAML."""
        if isinstance(v, dict):
            return {str(key): value for key, value in v.items()}  # type: ignore[misc]
        return v
