"""Firestore index definitions for a geo table.

Every geo scan filters on the geo key with ``==`` and on the geohash with
a range, ordered by geohash.  Firestore serves that query only from a
composite index on ``(geohashKey ASC, geohash ASC)``.  The definitions
are emitted in the ``firestore.indexes.json`` format read by
``firebase deploy --only firestore:indexes``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from geoscan.config import GeoTableConfig

logger = logging.getLogger(__name__)


def scan_index(config: GeoTableConfig) -> dict[str, Any]:
    """The composite index backing ``FirestorePointStore.scan``."""
    return {
        "collectionGroup": config.table_name,
        "queryScope": "COLLECTION",
        "fields": [
            {"fieldPath": config.geohash_key_attribute_name, "order": "ASCENDING"},
            {"fieldPath": config.geohash_attribute_name, "order": "ASCENDING"},
        ],
    }


def index_definitions(config: GeoTableConfig) -> dict[str, Any]:
    return {"indexes": [scan_index(config)], "fieldOverrides": []}


def write_index_file(config: GeoTableConfig, path: Path) -> Path:
    """Write the table's index definitions to *path* as JSON."""
    path.write_text(json.dumps(index_definitions(config), indent=2) + "\n", encoding="utf-8")
    logger.info("Wrote Firestore index definitions for %s to %s", config.table_name, path)
    return path
