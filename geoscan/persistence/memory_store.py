"""In-process ``PointStore`` for local development and tests.

Items are held in a primary map keyed by ``(hash_key, range_key)`` and a
geo index per ``geo_key`` kept sorted by curve position, which gives the
same equality-plus-ordered-range access path as the production table.

Scans are paginated like the real backend: at most ``page_size`` index
entries are *evaluated* per page (before the window filter), and the
cursor is the last evaluated index key.
"""

from __future__ import annotations

import bisect
import logging
from typing import Any

from geoscan.contracts.item import BatchWriteResult, StoredItem
from geoscan.persistence.errors import PointExistsError, PointNotFoundError
from geoscan.persistence.store import ScanPage, ScanRequest

logger = logging.getLogger(__name__)

IndexKey = tuple[int, str, str]


class InMemoryPointStore:
    def __init__(self, page_size: int = 100):
        self.page_size = page_size
        self.items: dict[tuple[str, str], StoredItem] = {}
        self._geo_index: dict[str, list[IndexKey]] = {}
        self.scan_calls = 0

    # ------------------------------------------------------------------
    # Index maintenance
    # ------------------------------------------------------------------

    def _index_add(self, item: StoredItem) -> None:
        entries = self._geo_index.setdefault(item.geo_key, [])
        bisect.insort(entries, (item.geohash, item.hash_key, item.range_key))

    def _index_remove(self, item: StoredItem) -> None:
        entries = self._geo_index.get(item.geo_key, [])
        key = (item.geohash, item.hash_key, item.range_key)
        idx = bisect.bisect_left(entries, key)
        if idx < len(entries) and entries[idx] == key:
            entries.pop(idx)
        if not entries:
            self._geo_index.pop(item.geo_key, None)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def scan(self, request: ScanRequest, cursor: Any | None = None) -> ScanPage:
        self.scan_calls += 1
        entries = self._geo_index.get(request.geo_key, [])
        if cursor is None:
            start = bisect.bisect_left(entries, (request.range.range_min, "", ""))
        else:
            start = bisect.bisect_right(entries, tuple(cursor))

        page = ScanPage()
        idx = start
        last: IndexKey | None = None
        while idx < len(entries) and idx - start < self.page_size:
            entry = entries[idx]
            if entry[0] > request.range.range_max:
                break
            last = entry
            item = self.items[(entry[1], entry[2])]
            if request.window_filter is None or request.window_filter.matches(item):
                page.items.append(item)
            idx += 1

        more = idx < len(entries) and entries[idx][0] <= request.range.range_max
        page.next_cursor = last if more else None
        return page

    async def get(self, hash_key: str, range_key: str) -> StoredItem | None:
        return self.items.get((hash_key, range_key))

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def put(self, item: StoredItem, overwrite: bool = True) -> None:
        key = (item.hash_key, item.range_key)
        previous = self.items.get(key)
        if previous is not None and not overwrite:
            raise PointExistsError(item.hash_key, item.range_key)
        if previous is not None:
            self._index_remove(previous)
        self.items[key] = item
        self._index_add(item)

    async def update(
        self, hash_key: str, range_key: str, changes: dict[str, Any]
    ) -> StoredItem:
        """Merge *changes* into the caller attributes (``None`` removes a key)."""
        current = self.items.get((hash_key, range_key))
        if current is None:
            raise PointNotFoundError(hash_key, range_key)
        attributes = dict(current.attributes)
        for name, value in changes.items():
            if value is None:
                attributes.pop(name, None)
            else:
                attributes[name] = value
        updated = current.model_copy(update={"attributes": attributes})
        self.items[(hash_key, range_key)] = updated
        return updated

    async def delete(self, hash_key: str, range_key: str) -> None:
        previous = self.items.pop((hash_key, range_key), None)
        if previous is not None:
            self._index_remove(previous)

    async def batch_put(self, items: list[StoredItem]) -> BatchWriteResult:
        for item in items:
            await self.put(item)
        logger.debug("Batch wrote %d item(s) in memory", len(items))
        return BatchWriteResult(written=len(items))
