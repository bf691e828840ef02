"""Data layer contract consumed by the enforcement gate.

The gate wraps a :class:`DataLayer` per list rather than reimplementing
storage. :class:`InMemoryStore` is a reference implementation for tests
and local runs; data does not survive a restart.
"""

from __future__ import annotations

import itertools
import threading
from typing import Any, Callable, Mapping, Optional, Protocol, runtime_checkable

Item = dict[str, Any]
ItemFilter = Optional[Mapping[str, Any]]
Visibility = Callable[[Any, Mapping[str, Any]], bool]


@runtime_checkable
class DataLayer(Protocol):
    """Storage entry points for one list.

    ``read`` receives an optional ``visible`` callable ``(item_id, item) ->
    bool``; implementations must apply it while building the result set,
    so items it rejects are never materialized for the caller.
    """

    def create(self, item: Mapping[str, Any]) -> Item:
        """Persist a new item and return it with its id."""

    def read(self, filter: ItemFilter = None, *, visible: Visibility | None = None) -> list[Item]:
        """Return items matching ``filter`` that ``visible`` accepts."""

    def get(self, item_id: Any) -> Item | None:
        """Return one item or None."""

    def update(self, item_id: Any, changes: Mapping[str, Any]) -> Item:
        """Apply changes and return the updated item."""

    def delete(self, item_id: Any) -> None:
        """Remove an item."""


class InMemoryStore:
    """Store items in local memory, keyed by an auto-increment ``id``."""

    def __init__(self, items: list[Mapping[str, Any]] | None = None) -> None:
        self._items: dict[Any, Item] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        for item in items or ():
            self.create(item)

    # ------------------------------------------------------------------
    def create(self, item: Mapping[str, Any]) -> Item:
        with self._lock:
            record = dict(item)
            if record.get("id") is None:
                record["id"] = str(next(self._ids))
            if record["id"] in self._items:
                raise KeyError(f"Duplicate item id: {record['id']!r}")
            self._items[record["id"]] = record
            return dict(record)

    def read(self, filter: ItemFilter = None, *, visible: Visibility | None = None) -> list[Item]:
        with self._lock:
            snapshot = list(self._items.values())
        results = []
        for record in snapshot:
            if filter and any(record.get(k) != v for k, v in filter.items()):
                continue
            if visible is not None and not visible(record["id"], dict(record)):
                continue
            results.append(dict(record))
        return results

    def get(self, item_id: Any) -> Item | None:
        with self._lock:
            record = self._items.get(item_id)
            return dict(record) if record is not None else None

    def update(self, item_id: Any, changes: Mapping[str, Any]) -> Item:
        with self._lock:
            record = self._items.get(item_id)
            if record is None:
                raise KeyError(item_id)
            record.update({k: v for k, v in changes.items() if k != "id"})
            return dict(record)

    def delete(self, item_id: Any) -> None:
        with self._lock:
            if self._items.pop(item_id, None) is None:
                raise KeyError(item_id)

    def __len__(self) -> int:
        return len(self._items)


__all__ = ["DataLayer", "InMemoryStore", "Item", "ItemFilter", "Visibility"]
