"""Tests for StoredItem and its flat attribute form."""

import json
from datetime import datetime, timezone

import pytest

from geoscan.config import GeoTableConfig
from geoscan.contracts.common import format_instant, parse_instant
from geoscan.contracts.geo import GeoPoint
from geoscan.contracts.item import BatchWriteResult, StoredItem, geo_json_for

LONDON = GeoPoint(latitude=51.51, longitude=-0.13)


@pytest.fixture
def config():
    return GeoTableConfig(table_name="test-capitals", hash_key_length=3)


def _item(**overrides) -> StoredItem:
    values = {
        "hash_key": "United Kingdom",
        "range_key": "London",
        "geo_key": "201926522",
        "geohash": 5221366118452580119,
        "window_start": datetime(2019, 6, 27, 11, 0, 36, 969000, tzinfo=timezone.utc),
        "window_end": datetime(2019, 6, 28, 11, 0, 36, 969000, tzinfo=timezone.utc),
        "geo_json": '{"type":"Point","coordinates":[-0.13,51.51]}',
        "attributes": {"country": "United Kingdom", "capital": "London"},
    }
    values.update(overrides)
    return StoredItem(**values)


class TestInstants:
    def test_format_millis_z(self):
        value = datetime(2019, 6, 27, 11, 0, 36, 969123, tzinfo=timezone.utc)
        assert format_instant(value) == "2019-06-27T11:00:36.969Z"

    def test_parse_z(self):
        assert parse_instant("2019-06-27T11:00:36.969Z") == datetime(
            2019, 6, 27, 11, 0, 36, 969000, tzinfo=timezone.utc
        )


class TestGeoJson:
    def test_longitude_first(self, config):
        assert geo_json_for(LONDON, config) == '{"type":"Point","coordinates":[-0.13,51.51]}'

    def test_latitude_first(self):
        config = GeoTableConfig(table_name="t", longitude_first=False, geo_json_point_type="point")
        payload = json.loads(geo_json_for(LONDON, config))
        assert payload == {"type": "point", "coordinates": [51.51, -0.13]}

    def test_point_decodes_payload(self, config):
        assert _item().point(config) == LONDON


class TestStoredItem:
    def test_to_attributes(self, config):
        assert _item().to_attributes(config) == {
            "rangeKey": "London",
            "country": "United Kingdom",
            "capital": "London",
            "hashKey": "United Kingdom",
            "geohashKey": "201926522",
            "geoJson": '{"type":"Point","coordinates":[-0.13,51.51]}',
            "geohash": 5221366118452580119,
            "from": "2019-06-27T11:00:36.969Z",
            "to": "2019-06-28T11:00:36.969Z",
        }

    def test_engine_fields_win(self, config):
        item = _item(attributes={"geohash": "spoofed", "capital": "London"})
        assert item.to_attributes(config)["geohash"] == 5221366118452580119

    def test_from_attributes(self, config):
        item = _item()
        restored = StoredItem.from_attributes(item.to_attributes(config), config)
        assert restored == item
        assert set(restored.attributes) == {"country", "capital"}

    def test_geohash_unsigned_64(self):
        with pytest.raises(ValueError):
            _item(geohash=-1)
        with pytest.raises(ValueError):
            _item(geohash=1 << 64)


def test_batch_result_complete():
    assert BatchWriteResult(written=3).complete
    assert not BatchWriteResult(written=0, unprocessed=[_item()]).complete
