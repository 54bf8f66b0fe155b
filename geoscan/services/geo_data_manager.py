"""GeoDataManager — the engine's public entry points for one geo table.

Writes derive the curve position, the partition key and the composite
(temporal + spatial) geo key, attach the exact GeoJSON payload and
delegate to the store.  Reads, updates and deletes address points by
their primary key and need no range logic.  Queries go through the
``QueryCoordinator``.
"""

from __future__ import annotations

import logging
from typing import Any

import pydantic

from geoscan.config import GeoTableConfig
from geoscan.contracts.geo import GeoPoint, TimeWindow
from geoscan.contracts.item import BatchWriteResult, PutPointRequest, StoredItem, geo_json_for
from geoscan.contracts.shapes import radius_query, rectangle_query
from geoscan.errors import ValidationError
from geoscan.index.curve import CurveEncoder
from geoscan.index.partition import PartitionKeyDeriver
from geoscan.index.temporal import TemporalBucketer
from geoscan.persistence.store import PointStore
from geoscan.services.query_coordinator import QueryCoordinator

logger = logging.getLogger(__name__)


class GeoDataManager:
    """Point writes, reads and geo queries against one table."""

    def __init__(
        self,
        config: GeoTableConfig,
        store: PointStore,
        coordinator: QueryCoordinator | None = None,
    ):
        self._config = config
        self._store = store
        self._encoder = CurveEncoder()
        self._partitioner = PartitionKeyDeriver(config.hash_key_length)
        self._bucketer = TemporalBucketer(config.bucket_lookback_weeks)
        self._coordinator = coordinator or QueryCoordinator(
            config, store, bucketer=self._bucketer
        )

    @property
    def config(self) -> GeoTableConfig:
        return self._config

    # ------------------------------------------------------------------
    # Key derivation
    # ------------------------------------------------------------------

    def build_item(self, request: PutPointRequest) -> StoredItem:
        """Derive every engine-owned field of a point."""
        geohash = self._encoder.encode(request.point)
        partition_key = self._partitioner.derive(geohash)
        return StoredItem(
            hash_key=request.hash_key,
            range_key=request.range_key,
            geo_key=self._bucketer.composite_key(partition_key, request.window),
            geohash=geohash,
            window_start=request.window.start,
            window_end=request.window.end,
            geo_json=geo_json_for(request.point, self._config),
            attributes={
                k: v
                for k, v in request.attributes.items()
                if k not in self._config.engine_attribute_names
            },
        )

    # ------------------------------------------------------------------
    # Write / read pass-throughs
    # ------------------------------------------------------------------

    async def put_point(self, request: PutPointRequest, overwrite: bool = True) -> StoredItem:
        """Write a point; ``overwrite=False`` makes the write create-only."""
        item = self.build_item(request)
        await self._store.put(item, overwrite=overwrite)
        logger.debug("Put %s/%s under %s", item.hash_key, item.range_key, item.geo_key)
        return item

    async def batch_write_points(self, requests: list[PutPointRequest]) -> BatchWriteResult:
        """Best-effort batch write; see ``BatchWriteResult.unprocessed``."""
        items = [self.build_item(request) for request in requests]
        result = await self._store.batch_put(items)
        if result.unprocessed:
            logger.warning(
                "Batch write: %d written, %d unprocessed",
                result.written,
                len(result.unprocessed),
            )
        return result

    async def get_point(self, hash_key: str, range_key: str) -> StoredItem | None:
        return await self._store.get(hash_key, range_key)

    async def update_point(
        self, hash_key: str, range_key: str, changes: dict[str, Any]
    ) -> StoredItem:
        """Update caller attributes.

        The curve position, GeoJSON payload and the other engine-owned
        attributes are immutable: moving a point means delete + put.
        """
        forbidden = sorted(set(changes) & self._config.engine_attribute_names)
        if forbidden:
            raise ValidationError(f"Engine-owned attributes cannot be updated: {forbidden}")
        return await self._store.update(hash_key, range_key, changes)

    async def delete_point(self, hash_key: str, range_key: str) -> None:
        await self._store.delete(hash_key, range_key)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def query_radius(
        self, center: GeoPoint, radius_m: float, window: TimeWindow
    ) -> list[StoredItem]:
        """Points within ``radius_m`` of ``center`` valid during ``window``."""
        shape = radius_query(center, radius_m)
        return await self._coordinator.query(shape, _checked_window(window))

    async def query_rectangle(
        self, min_point: GeoPoint, max_point: GeoPoint, window: TimeWindow
    ) -> list[StoredItem]:
        """Points inside ``[min_point, max_point]`` valid during ``window``."""
        shape = rectangle_query(min_point, max_point)
        return await self._coordinator.query(shape, _checked_window(window))


def _checked_window(window: TimeWindow | dict[str, Any]) -> TimeWindow:
    if isinstance(window, TimeWindow):
        return window
    try:
        return TimeWindow.model_validate(window)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid time window: {exc}") from exc
