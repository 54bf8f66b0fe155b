"""Tests for GeoTableConfig."""

import pydantic
import pytest

from geoscan.config import GeoTableConfig


class TestGeoTableConfig:
    def test_defaults(self):
        config = GeoTableConfig(table_name="geo-points")
        assert config.hash_key_length == 2
        assert config.geohash_attribute_name == "geohash"
        assert config.covering_max_level == 12

    def test_frozen(self):
        config = GeoTableConfig(table_name="geo-points")
        with pytest.raises(pydantic.ValidationError):
            config.hash_key_length = 5

    @pytest.mark.parametrize("length", [0, 20])
    def test_hash_key_length_bounds(self, length):
        with pytest.raises(pydantic.ValidationError):
            GeoTableConfig(table_name="geo-points", hash_key_length=length)

    @pytest.mark.parametrize("length,level", [(10, 12), (19, 12), (3, 0)])
    def test_partition_key_too_long_for_cells(self, length, level):
        with pytest.raises(pydantic.ValidationError, match="too long"):
            GeoTableConfig(
                table_name="geo-points", hash_key_length=length, covering_max_level=level
            )

    def test_long_partition_key_with_fine_cells(self):
        config = GeoTableConfig(table_name="geo-points", hash_key_length=10, covering_max_level=16)
        assert config.max_scans_per_query == 4096

    def test_engine_attribute_names(self):
        config = GeoTableConfig(table_name="geo-points", geo_json_attribute_name="shape")
        assert config.engine_attribute_names == {
            "hashKey",
            "rangeKey",
            "geohash",
            "geohashKey",
            "shape",
            "from",
            "to",
        }

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("GEOSCAN_TABLE_NAME", "env-table")
        monkeypatch.setenv("GEOSCAN_HASH_KEY_LENGTH", "3")
        monkeypatch.setenv("GEOSCAN_LONGITUDE_FIRST", "false")
        config = GeoTableConfig.from_env()
        assert config.table_name == "env-table"
        assert config.hash_key_length == 3
        assert config.longitude_first is False

    def test_from_env_overrides_win(self, monkeypatch):
        monkeypatch.setenv("GEOSCAN_HASH_KEY_LENGTH", "3")
        config = GeoTableConfig.from_env(table_name="explicit", hash_key_length=4)
        assert config.table_name == "explicit"
        assert config.hash_key_length == 4
