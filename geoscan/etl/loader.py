"""Bulk loading of point records into a geo table.

Input records are JSON objects such as::

    {"country": "United Kingdom", "capital": "London",
     "latitude": 51.51, "longitude": -0.13,
     "from": "2019-06-27T11:00:36.969Z", "to": "2019-06-28T11:00:36.969Z"}
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from geoscan.contracts.common import parse_instant
from geoscan.contracts.geo import TimeWindow, geo_point
from geoscan.contracts.item import BatchWriteResult, PutPointRequest
from geoscan.services.geo_data_manager import GeoDataManager

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 25
GEO_FIELDS = ("latitude", "longitude", "from", "to")


def read_records(path: Path) -> list[dict[str, Any]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of records")
    return data


def to_request(
    record: dict[str, Any],
    hash_key_field: str = "country",
    range_key_field: str = "capital",
) -> PutPointRequest:
    """Map one record to a write; non-geo fields become caller attributes."""
    return PutPointRequest(
        hash_key=str(record[hash_key_field]),
        range_key=str(record[range_key_field]),
        point=geo_point(record["latitude"], record["longitude"]),
        window=TimeWindow(
            start=parse_instant(record["from"]),
            end=parse_instant(record["to"]),
        ),
        attributes={k: v for k, v in record.items() if k not in GEO_FIELDS},
    )


async def load_points(
    manager: GeoDataManager,
    requests: list[PutPointRequest],
    batch_size: int = DEFAULT_BATCH_SIZE,
    pause_s: float = 0.0,
) -> BatchWriteResult:
    """Write *requests* in batches, optionally pausing between batches."""
    total = BatchWriteResult()
    batches = (len(requests) + batch_size - 1) // batch_size
    for number, start in enumerate(range(0, len(requests), batch_size), start=1):
        logger.info("Writing batch %d/%d", number, batches)
        result = await manager.batch_write_points(requests[start:start + batch_size])
        total.written += result.written
        total.unprocessed.extend(result.unprocessed)
        if pause_s and number < batches:
            await asyncio.sleep(pause_s)
    logger.info(
        "Finished loading: %d written, %d unprocessed",
        total.written,
        len(total.unprocessed),
    )
    return total
