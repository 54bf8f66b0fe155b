"""The storage collaborator consumed by the engine.

The engine only needs a key-value table with equality on a partition key
plus an ordered range on a sort key.  ``PointStore`` is that contract;
adapters translate it to a concrete backend (``InMemoryPointStore``,
``FirestorePointStore``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from geoscan.contracts.item import BatchWriteResult, StoredItem
from geoscan.index.ranges import GeohashRange


@dataclass(frozen=True)
class WindowOverlapFilter:
    """Keeps items whose validity window intersects ``[start, end)``.

    Expressed over stored attributes as
    ``window_end > start AND window_start < end``.
    """

    start: datetime
    end: datetime

    def matches(self, item: StoredItem) -> bool:
        return item.window_end > self.start and item.window_start < self.end


@dataclass(frozen=True)
class ScanRequest:
    """One range scan: equality on ``geo_key``, sort key within ``range``."""

    geo_key: str
    range: GeohashRange
    window_filter: WindowOverlapFilter | None = None

    def matches(self, item: StoredItem) -> bool:
        if item.geo_key != self.geo_key or not self.range.contains(item.geohash):
            return False
        return self.window_filter is None or self.window_filter.matches(item)


@dataclass
class ScanPage:
    """One page of a scan; ``next_cursor`` is None on the last page."""

    items: list[StoredItem] = field(default_factory=list)
    next_cursor: Any | None = None


@runtime_checkable
class PointStore(Protocol):
    """Async storage contract. Failures are raised as ``BackendError``.

    ``put`` with ``overwrite=False`` is create-only: it raises
    ``PointExistsError`` when the primary key is already taken.
    """

    async def scan(self, request: ScanRequest, cursor: Any | None = None) -> ScanPage: ...

    async def put(self, item: StoredItem, overwrite: bool = True) -> None: ...

    async def get(self, hash_key: str, range_key: str) -> StoredItem | None: ...

    async def update(
        self, hash_key: str, range_key: str, changes: dict[str, Any]
    ) -> StoredItem: ...

    async def delete(self, hash_key: str, range_key: str) -> None: ...

    async def batch_put(self, items: list[StoredItem]) -> BatchWriteResult: ...
