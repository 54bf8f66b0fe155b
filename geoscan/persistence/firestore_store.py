"""Firestore-backed ``PointStore``.

Layout: one document per point in the ``table_name`` collection, keyed by
the escaped primary key ``hash_key|range_key``.  Geo scans are composite
queries (equality on the geo key attribute, range + ordering on the
geohash attribute) and need the matching composite index, see
``firestore_indexes``.

Firestore integers are signed 64-bit, so the unsigned curve position is
stored shifted by ``2**63``; the shift preserves ordering.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any
from urllib.parse import quote

from geoscan.config import GeoTableConfig
from geoscan.contracts.item import BatchWriteResult, StoredItem
from geoscan.persistence.errors import BackendError, PointExistsError, PointNotFoundError
from geoscan.persistence.firestore_client import get_firestore_client
from geoscan.persistence.store import ScanPage, ScanRequest

logger = logging.getLogger(__name__)

SIGN_SHIFT = 1 << 63
MAX_BATCH_WRITES = 500


def to_signed(position: int) -> int:
    return position - SIGN_SHIFT


def from_signed(value: int) -> int:
    return int(value) + SIGN_SHIFT


def document_id(hash_key: str, range_key: str) -> str:
    return f"{quote(hash_key, safe='')}|{quote(range_key, safe='')}"


class FirestorePointStore:
    def __init__(self, config: GeoTableConfig, client: Any = None):
        self._config = config
        self._client = client

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _db(self) -> Any:
        return self._client if self._client is not None else get_firestore_client()

    def _collection_ref(self):
        return self._db().collection(self._config.table_name)

    def _document_ref(self, hash_key: str, range_key: str):
        return self._collection_ref().document(document_id(hash_key, range_key))

    def _to_document(self, item: StoredItem) -> dict[str, Any]:
        data = item.to_attributes(self._config)
        data[self._config.geohash_attribute_name] = to_signed(item.geohash)
        return data

    def _from_document(self, data: dict[str, Any]) -> StoredItem:
        data = dict(data)
        name = self._config.geohash_attribute_name
        data[name] = from_signed(data[name])
        return StoredItem.from_attributes(data, self._config)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def scan(self, request: ScanRequest, cursor: Any | None = None) -> ScanPage:
        gh = self._config.geohash_attribute_name
        query = (
            self._collection_ref()
            .where(self._config.geohash_key_attribute_name, "==", request.geo_key)
            .where(gh, ">=", to_signed(request.range.range_min))
            .where(gh, "<=", to_signed(request.range.range_max))
            .order_by(gh)
            .limit(self._config.scan_page_size)
        )
        if cursor is not None:
            query = query.start_after(cursor)

        page = ScanPage()
        evaluated = 0
        last = None
        try:
            async for doc in query.stream():
                evaluated += 1
                last = doc
                item = self._from_document(doc.to_dict())
                if request.window_filter is None or request.window_filter.matches(item):
                    page.items.append(item)
        except Exception as exc:
            raise BackendError(str(exc), "scan") from exc

        if evaluated >= self._config.scan_page_size:
            page.next_cursor = last
        return page

    async def get(self, hash_key: str, range_key: str) -> StoredItem | None:
        try:
            doc = await self._document_ref(hash_key, range_key).get()
        except Exception as exc:
            raise BackendError(str(exc), "get") from exc
        if not doc.exists:
            return None
        return self._from_document(doc.to_dict())

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def put(self, item: StoredItem, overwrite: bool = True) -> None:
        ref = self._document_ref(item.hash_key, item.range_key)
        data = self._to_document(item)
        try:
            if overwrite:
                await ref.set(data)
            else:
                await ref.create(data)
        except Exception as exc:
            # google.api_core errors carry their HTTP status as ``code``
            if not overwrite and getattr(exc, "code", None) == HTTPStatus.CONFLICT:
                raise PointExistsError(item.hash_key, item.range_key) from exc
            raise BackendError(str(exc), "put") from exc

    async def update(
        self, hash_key: str, range_key: str, changes: dict[str, Any]
    ) -> StoredItem:
        """Merge *changes* into the caller attributes (``None`` removes a key)."""
        current = await self.get(hash_key, range_key)
        if current is None:
            raise PointNotFoundError(hash_key, range_key)
        attributes = dict(current.attributes)
        for name, value in changes.items():
            if value is None:
                attributes.pop(name, None)
            else:
                attributes[name] = value
        updated = current.model_copy(update={"attributes": attributes})
        await self.put(updated)
        return updated

    async def delete(self, hash_key: str, range_key: str) -> None:
        try:
            await self._document_ref(hash_key, range_key).delete()
        except Exception as exc:
            raise BackendError(str(exc), "delete") from exc

    async def batch_put(self, items: list[StoredItem]) -> BatchWriteResult:
        """Commit in chunks; a failed chunk is reported, not raised."""
        result = BatchWriteResult()
        for start in range(0, len(items), MAX_BATCH_WRITES):
            chunk = items[start:start + MAX_BATCH_WRITES]
            batch = self._db().batch()
            for item in chunk:
                batch.set(self._document_ref(item.hash_key, item.range_key), self._to_document(item))
            try:
                await batch.commit()
            except Exception as exc:
                logger.warning("Batch of %d point(s) failed: %s", len(chunk), exc)
                result.unprocessed.extend(chunk)
            else:
                result.written += len(chunk)
        return result
