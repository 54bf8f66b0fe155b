"""Tests for GeoDataManager writes, reads and validation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from geoscan.config import GeoTableConfig
from geoscan.contracts.geo import GeoPoint, TimeWindow
from geoscan.contracts.item import PutPointRequest
from geoscan.errors import ValidationError
from geoscan.persistence.errors import BackendError, PointExistsError, PointNotFoundError
from geoscan.persistence.memory_store import InMemoryPointStore
from geoscan.services.geo_data_manager import GeoDataManager

START = datetime(2019, 6, 27, 11, 0, 36, 969000, tzinfo=timezone.utc)
WINDOW = TimeWindow(start=START, end=START + timedelta(days=1))
LONDON = GeoPoint(latitude=51.51, longitude=-0.13)


def _london(**attributes) -> PutPointRequest:
    return PutPointRequest(
        hash_key="United Kingdom",
        range_key="London",
        point=LONDON,
        window=WINDOW,
        attributes={"country": "United Kingdom", "capital": "London", **attributes},
    )


@pytest.fixture
def config():
    return GeoTableConfig(table_name="test-capitals", hash_key_length=3)


@pytest.fixture
def store():
    return InMemoryPointStore()


@pytest.fixture
def manager(config, store):
    return GeoDataManager(config, store)


class BrokenStore(InMemoryPointStore):
    async def put(self, item, overwrite=True):
        raise BackendError("table unavailable", "put")


class TestBuildItem:
    def test_london(self, manager, config):
        item = manager.build_item(_london())
        assert item.to_attributes(config) == {
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

    def test_default_partition_length(self, store):
        manager = GeoDataManager(GeoTableConfig(table_name="t"), store)
        assert manager.build_item(_london()).geo_key == "20192652"

    def test_caller_cannot_set_engine_fields(self, manager):
        item = manager.build_item(_london(geohash="spoofed", geohashKey="x"))
        assert "geohash" not in item.attributes
        assert "geohashKey" not in item.attributes
        assert item.geohash == 5221366118452580119


class TestWritesAndReads:
    async def test_put_and_get(self, manager):
        put = await manager.put_point(_london())
        assert await manager.get_point("United Kingdom", "London") == put

    async def test_get_missing(self, manager):
        assert await manager.get_point("United Kingdom", "Leeds") is None

    async def test_create_only_put(self, manager):
        await manager.put_point(_london(), overwrite=False)
        with pytest.raises(PointExistsError):
            await manager.put_point(_london(population=1), overwrite=False)
        stored = await manager.get_point("United Kingdom", "London")
        assert "population" not in stored.attributes

        await manager.put_point(_london(population=1))
        stored = await manager.get_point("United Kingdom", "London")
        assert stored.attributes["population"] == 1

    async def test_put_backend_error_propagates(self, config):
        manager = GeoDataManager(config, BrokenStore())
        with pytest.raises(BackendError):
            await manager.put_point(_london())

    async def test_update_attributes(self, manager):
        await manager.put_point(_london())
        updated = await manager.update_point("United Kingdom", "London", {"population": 8_900_000})
        assert updated.attributes["population"] == 8_900_000
        assert updated.geohash == 5221366118452580119

    @pytest.mark.parametrize("name", ["geohash", "geoJson", "geohashKey", "from", "hashKey"])
    async def test_update_rejects_engine_fields(self, manager, name):
        await manager.put_point(_london())
        with pytest.raises(ValidationError):
            await manager.update_point("United Kingdom", "London", {name: "x"})
        assert (await manager.get_point("United Kingdom", "London")).geohash == 5221366118452580119

    async def test_update_missing(self, manager):
        with pytest.raises(PointNotFoundError):
            await manager.update_point("United Kingdom", "Leeds", {"a": 1})

    async def test_delete(self, manager):
        await manager.put_point(_london())
        await manager.delete_point("United Kingdom", "London")
        assert await manager.get_point("United Kingdom", "London") is None
        assert await manager.query_radius(LONDON, 1_000, WINDOW) == []

    async def test_batch_write(self, manager):
        requests = [
            PutPointRequest(
                hash_key="c",
                range_key=f"p{n}",
                point=GeoPoint(latitude=10.0 + n, longitude=20.0),
                window=WINDOW,
            )
            for n in range(4)
        ]
        result = await manager.batch_write_points(requests)
        assert result.written == 4
        assert result.complete
        assert await manager.get_point("c", "p3") is not None


class TestQueryValidation:
    async def test_invalid_radius_issues_no_scan(self, manager, store):
        with pytest.raises(ValidationError):
            await manager.query_radius(LONDON, -5, WINDOW)
        assert store.scan_calls == 0

    async def test_inverted_rectangle(self, manager, store):
        with pytest.raises(ValidationError):
            await manager.query_rectangle(
                GeoPoint(latitude=52.0, longitude=0.0), GeoPoint(latitude=51.0, longitude=-1.0), WINDOW
            )
        assert store.scan_calls == 0

    async def test_out_of_range_centre_issues_no_scan(self, manager, store):
        with pytest.raises(ValidationError):
            await manager.query_radius({"latitude": 91.0, "longitude": 0.0}, 1_000, WINDOW)
        assert store.scan_calls == 0

    async def test_window_as_mapping(self, manager):
        await manager.put_point(_london())
        found = await manager.query_radius(
            LONDON,
            1_000,
            {"start": "2019-06-27T00:00:00Z", "end": "2019-06-28T00:00:00Z"},
        )
        assert len(found) == 1

    async def test_invalid_window_mapping(self, manager, store):
        with pytest.raises(ValidationError):
            await manager.query_radius(
                LONDON,
                1_000,
                {"start": "2019-06-28T00:00:00Z", "end": "2019-06-27T00:00:00Z"},
            )
        assert store.scan_calls == 0
