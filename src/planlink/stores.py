"""Plan stores: the persistence boundary the mutation applier writes through."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.error import YAMLError

from .exceptions import DanglingReferenceError, ParseError, PersistenceError, ValidationError
from .models import PlanItem, PredecessorEdge
from .parser import PlanParser


@runtime_checkable
class PlanStore(Protocol):
    """Keyed store of plan items."""

    async def load_items(self) -> list[PlanItem]:
        """Load every item."""
        ...

    async def get_item(self, item_id: str) -> PlanItem:
        """Load one item; raises DanglingReferenceError if it no longer exists."""
        ...

    async def save_item(self, item: PlanItem) -> None:
        """Persist one item's edges and dates."""
        ...


@runtime_checkable
class TransactionalPlanStore(PlanStore, Protocol):
    """A store that can persist several items all-or-nothing."""

    async def save_items(self, items: list[PlanItem]) -> None:
        """Persist every item, or none of them."""
        ...


class InMemoryPlanStore:
    """Dictionary-backed store.

    Items are copied on the way in and out so callers never share state with
    the store. `failing_ids` makes saves of those items raise PersistenceError.
    """

    def __init__(self, items: Iterable[PlanItem] = (), failing_ids: Iterable[str] = ()):
        self._items: dict[str, PlanItem] = {item.id: item.copy() for item in items}
        self.failing_ids: set[str] = set(failing_ids)
        self.saved_ids: list[str] = []

    async def load_items(self) -> list[PlanItem]:
        return [item.copy() for item in self._items.values()]

    async def get_item(self, item_id: str) -> PlanItem:
        if item_id not in self._items:
            raise DanglingReferenceError(item_id)
        return self._items[item_id].copy()

    async def save_item(self, item: PlanItem) -> None:
        if item.id not in self._items:
            raise DanglingReferenceError(item.id)
        if item.id in self.failing_ids:
            raise PersistenceError(f"Store rejected write for '{item.id}'")
        self._items[item.id] = item.copy()
        self.saved_ids.append(item.id)

    def delete_item(self, item_id: str) -> None:
        """Delete an item, as a concurrent editor would."""
        del self._items[item_id]


def _edge_to_yaml(edge: PredecessorEdge) -> Any:
    """Shorthand when it reads back as the same edge, mapping form otherwise."""
    shorthand = str(edge)
    try:
        round_trips = PredecessorEdge.parse(shorthand) == edge
    except ValidationError:
        round_trips = False
    return shorthand if round_trips else CommentedMap(edge.to_dict())


class YamlPlanStore:
    """Store backed by a plan YAML file.

    Writes use ruamel.yaml round-tripping so comments, ordering and fields the
    scheduler does not own survive. A save rewrites the file once, which
    makes batch saves all-or-nothing. Reads reuse the last parse until the
    file changes, so fetching a batch of items parses the file once.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock = asyncio.Lock()
        # Last parse, keyed by the file's (mtime_ns, size)
        self._cache: tuple[tuple[int, int], dict[str, PlanItem]] | None = None

    async def load_items(self) -> list[PlanItem]:
        items = await asyncio.to_thread(self._read_items)
        return [item.copy() for item in items.values()]

    async def get_item(self, item_id: str) -> PlanItem:
        items = await asyncio.to_thread(self._read_items)
        if item_id not in items:
            raise DanglingReferenceError(item_id)
        return items[item_id].copy()

    def _read_items(self) -> dict[str, PlanItem]:
        """Parse the plan file, reusing the last parse while the file is unchanged."""
        try:
            stat = self.path.stat()
        except OSError:
            stat = None
        signature = (stat.st_mtime_ns, stat.st_size) if stat else None
        if signature is not None and self._cache is not None and self._cache[0] == signature:
            return self._cache[1]

        _, parsed = PlanParser().parse_file(self.path)
        items = {item.id: item for item in parsed}
        if signature is not None:
            self._cache = (signature, items)
        return items

    async def save_item(self, item: PlanItem) -> None:
        await self.save_items([item])

    async def save_items(self, items: list[PlanItem]) -> None:
        async with self._lock:
            await asyncio.to_thread(self._write_items, items)

    def _write_items(self, items: list[PlanItem]) -> None:
        yaml_rt = YAML()
        yaml_rt.preserve_quotes = True  # type: ignore[assignment]

        try:
            with self.path.open(encoding="utf-8") as f:
                data: Any = yaml_rt.load(f)  # type: ignore[no-untyped-call]
        except OSError as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e
        except YAMLError as e:
            raise ParseError(f"Failed to parse YAML: {e}") from e

        if not isinstance(data, dict) or "items" not in data:
            raise PersistenceError(f"No 'items' section found in {self.path}")
        section = data["items"]

        # Numeric ids load as int keys here but are strings on PlanItem
        keys = {str(key): key for key in section or {}}

        # Check every item first so a missing one leaves the file untouched
        for item in items:
            if item.id not in keys:
                raise DanglingReferenceError(item.id)

        for item in items:
            key = keys[item.id]
            entry = section[key]
            if entry is None:
                entry = CommentedMap()
                section[key] = entry
            self._update_entry(entry, item)

        tmp_path = self.path.with_name(self.path.name + ".tmp")
        self._cache = None
        try:
            with tmp_path.open("w", encoding="utf-8") as f:
                yaml_rt.dump(data, f)  # type: ignore[no-untyped-call]
            os.replace(tmp_path, self.path)
        except (OSError, YAMLError) as e:
            tmp_path.unlink(missing_ok=True)
            raise PersistenceError(f"Cannot write {self.path}: {e}") from e

    @staticmethod
    def _update_entry(entry: Any, item: PlanItem) -> None:
        """Write the fields the scheduler owns; leave everything else alone."""
        for key, value in (("start_date", item.start_date), ("finish_date", item.finish_date)):
            if value is None:
                entry.pop(key, None)
            else:
                entry[key] = value

        if item.predecessors:
            entry["predecessors"] = [_edge_to_yaml(edge) for edge in item.predecessors]
        else:
            entry.pop("predecessors", None)
