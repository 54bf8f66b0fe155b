"""Geo table configuration.

One immutable ``GeoTableConfig`` describes a table: its attribute names,
the partition key length and the covering knobs.  It is built once and
passed to every component at construction.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "GEOSCAN_"

# How many partition keys one deepest covering cell may span
MAX_PARTITIONS_PER_CELL = 64


class GeoTableConfig(BaseModel):
    """Immutable table configuration.

    Changing ``hash_key_length`` invalidates every stored geo key: it is a
    deployment-time choice, never a per-call one.
    """

    model_config = ConfigDict(frozen=True)

    table_name: str = Field(..., min_length=1)

    # Attribute names of the stored items
    hash_key_attribute_name: str = "hashKey"
    range_key_attribute_name: str = "rangeKey"
    geohash_attribute_name: str = "geohash"
    geohash_key_attribute_name: str = "geohashKey"
    geo_json_attribute_name: str = "geoJson"
    window_start_attribute_name: str = "from"
    window_end_attribute_name: str = "to"

    # Partitioning
    hash_key_length: int = Field(default=2, ge=1, le=19)
    bucket_lookback_weeks: int = Field(default=0, ge=0, le=52)

    # GeoJSON payload
    geo_json_point_type: str = "Point"
    longitude_first: bool = True

    # Covering resolution: deepest cell level and cell budget
    covering_max_level: int = Field(default=12, ge=0, le=30)
    covering_max_cells: int = Field(default=32, ge=1)

    scan_page_size: int = Field(default=100, ge=1)
    max_scans_per_query: int = Field(default=4096, ge=1)

    @model_validator(mode="after")
    def check_partition_resolution(self) -> "GeoTableConfig":
        cell_span = 1 << (61 - 2 * self.covering_max_level)
        partition_span = 10 ** (19 - self.hash_key_length)
        if cell_span > MAX_PARTITIONS_PER_CELL * partition_span:
            raise ValueError(
                f"hash_key_length {self.hash_key_length} is too long for "
                f"covering_max_level {self.covering_max_level}: one covering cell "
                f"would span more than {MAX_PARTITIONS_PER_CELL} partition keys"
            )
        return self

    @property
    def engine_attribute_names(self) -> frozenset[str]:
        """Attribute names owned by the engine (callers cannot set or update them)."""
        return frozenset(
            {
                self.hash_key_attribute_name,
                self.range_key_attribute_name,
                self.geohash_attribute_name,
                self.geohash_key_attribute_name,
                self.geo_json_attribute_name,
                self.window_start_attribute_name,
                self.window_end_attribute_name,
            }
        )

    @classmethod
    def from_env(cls, table_name: str | None = None, **overrides: Any) -> "GeoTableConfig":
        """Build a config from ``GEOSCAN_*`` environment variables.

        ``GEOSCAN_TABLE_NAME``, ``GEOSCAN_HASH_KEY_LENGTH``,
        ``GEOSCAN_COVERING_MAX_LEVEL``... map to the field of the same name.
        Explicit keyword overrides win over the environment.
        """
        values: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw
        if table_name is not None:
            values["table_name"] = table_name
        values.update(overrides)
        config = cls.model_validate(values)
        logger.debug(
            "Geo table config: table=%s hash_key_length=%d",
            config.table_name,
            config.hash_key_length,
        )
        return config
