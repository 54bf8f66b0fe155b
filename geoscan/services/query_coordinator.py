"""QueryCoordinator — fan out range scans, aggregate, post-filter.

Query path::

    shape  -> covering ranges -> merge -> split per partition key
    window -> temporal buckets
    (range x bucket) -> one paginated scan each, run concurrently
    -> concatenate -> exact shape + window filter

Scans run as asyncio tasks.  Each task keeps its own buffer and the
buffers are concatenated after the join, so no result state is shared
between tasks.  Pages within a scan are strictly sequential.

The first failing scan aborts the query: pending sibling scans are
cancelled and the error surfaces as ``AggregationError``.  A cause that is
not a ``BackendError`` is wrapped in one.  A partial result is never
returned.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from geoscan.config import GeoTableConfig
from geoscan.contracts.geo import TimeWindow
from geoscan.contracts.item import StoredItem
from geoscan.contracts.shapes import RadiusQuery, RectangleQuery
from geoscan.errors import AggregationError, ValidationError
from geoscan.index.covering import CoveringRangeCalculator
from geoscan.index.partition import PartitionKeyDeriver
from geoscan.index.ranges import GeohashRange, RangeMerger
from geoscan.index.temporal import TemporalBucketer
from geoscan.persistence.errors import BackendError
from geoscan.persistence.store import PointStore, ScanRequest, WindowOverlapFilter

logger = logging.getLogger(__name__)


@dataclass
class QueryPlan:
    """Scans to issue for one query (kept for logging and tests)."""

    ranges: list[GeohashRange]
    temporal_keys: list[str]
    requests: list[ScanRequest]


class QueryCoordinator:
    def __init__(
        self,
        config: GeoTableConfig,
        store: PointStore,
        covering: CoveringRangeCalculator | None = None,
        merger: RangeMerger | None = None,
        bucketer: TemporalBucketer | None = None,
    ):
        self._config = config
        self._store = store
        self._covering = covering or CoveringRangeCalculator.from_config(config)
        self._merger = merger or RangeMerger()
        self._partitioner = PartitionKeyDeriver(config.hash_key_length)
        self._bucketer = bucketer or TemporalBucketer(config.bucket_lookback_weeks)

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def plan(self, shape: RadiusQuery | RectangleQuery, window: TimeWindow) -> QueryPlan:
        merged = self._merger.merge(self._covering.cover(shape))
        temporal_keys = self._bucketer.buckets_for(window)

        # Count before splitting: long partition keys can cut a coarse range
        # into more parts than fit in memory
        num_scans = sum(self._partitioner.count(rng) for rng in merged) * len(temporal_keys)
        if num_scans > self._config.max_scans_per_query:
            raise ValidationError(
                f"Query {shape.kind} needs {num_scans} scans, more than "
                f"max_scans_per_query={self._config.max_scans_per_query}; "
                "use a shorter hash_key_length or a smaller shape"
            )

        ranges = [part for rng in merged for part in self._partitioner.split(rng)]
        window_filter = WindowOverlapFilter(start=window.start, end=window.end)

        requests = [
            ScanRequest(
                geo_key=f"{temporal_key}{self._partitioner.derive(rng.range_min)}",
                range=rng,
                window_filter=window_filter,
            )
            for rng in ranges
            for temporal_key in temporal_keys
        ]
        return QueryPlan(ranges=ranges, temporal_keys=temporal_keys, requests=requests)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def query(
        self, shape: RadiusQuery | RectangleQuery, window: TimeWindow
    ) -> list[StoredItem]:
        plan = self.plan(shape, window)
        logger.debug(
            "Query %s: %d range(s) x %d bucket(s) = %d scan(s)",
            shape.kind,
            len(plan.ranges),
            len(plan.temporal_keys),
            len(plan.requests),
        )

        tasks = [asyncio.ensure_future(self._scan_all(request)) for request in plan.requests]
        try:
            buffers = await asyncio.gather(*tasks)
        except Exception as exc:
            for task in tasks:
                task.cancel()
            cause = exc if isinstance(exc, BackendError) else BackendError(str(exc), "scan")
            failed = sum(
                1
                for task in tasks
                if task.done() and not task.cancelled() and task.exception() is not None
            )
            logger.error("Query %s aborted after scan failure: %s", shape.kind, exc)
            raise AggregationError(cause, failed_scans=max(failed, 1)) from exc

        candidates = [item for buffer in buffers for item in buffer]
        results = [item for item in candidates if self._accepts(shape, window, item)]
        logger.info(
            "Query %s: %d candidate(s), %d match(es)",
            shape.kind,
            len(candidates),
            len(results),
        )
        return results

    async def _scan_all(self, request: ScanRequest) -> list[StoredItem]:
        """Drain one scan; page N+1 is only requested once page N's cursor is known."""
        items: list[StoredItem] = []
        cursor = None
        pages = 0
        while True:
            page = await self._store.scan(request, cursor)
            pages += 1
            items.extend(page.items)
            cursor = page.next_cursor
            if cursor is None:
                break
        logger.debug(
            "Scan %s [%d, %d]: %d page(s), %d item(s)",
            request.geo_key,
            request.range.range_min,
            request.range.range_max,
            pages,
            len(items),
        )
        return items

    def _accepts(
        self, shape: RadiusQuery | RectangleQuery, window: TimeWindow, item: StoredItem
    ) -> bool:
        if not window.overlaps(item.window_start, item.window_end):
            return False
        return shape.contains(item.point(self._config))
