"""Tests for the cube-face Hilbert curve encoder and cells."""

from __future__ import annotations

import math
import random

import pytest

from geoscan.contracts.geo import GeoPoint
from geoscan.errors import EncodingError, OutOfRangeError
from geoscan.index.curve import (
    CurveEncoder,
    angle_between,
    face_cells,
    face_of,
    lat_lng_to_xyz,
    leaf_cell,
    level_of,
)
from geoscan.index.partition import derive

LONDON = GeoPoint(latitude=51.51, longitude=-0.13)
LONDON_POSITION = 5221366118452580119


@pytest.fixture
def encoder():
    return CurveEncoder()


def _bound_contains(bound, lat: float, lng: float) -> bool:
    if not bound.lat_lo <= lat <= bound.lat_hi:
        return False
    if bound.full_lng:
        return True
    return any(bound.lng_lo <= lng + shift <= bound.lng_hi for shift in (-360.0, 0.0, 360.0))


class TestEncoder:
    def test_reference_position(self, encoder):
        assert encoder.encode(LONDON) == LONDON_POSITION

    def test_reference_partition_prefixes(self, encoder):
        position = encoder.encode(LONDON)
        assert derive(position, 2) == 52
        assert derive(position, 3) == 522

    def test_deterministic(self, encoder):
        assert encoder.encode(LONDON) == CurveEncoder().encode(LONDON)
        assert encoder.encode_lat_lng(51.51, -0.13) == encoder.encode(LONDON)

    def test_leaf_positions_are_odd_level_30(self, encoder):
        position = encoder.encode(LONDON)
        assert position % 2 == 1
        assert level_of(position) == 30
        assert face_of(position) == 2

    def test_nearby_points_differ(self, encoder):
        other = encoder.encode_lat_lng(51.5101, -0.13)
        assert other != LONDON_POSITION

    def test_poles(self, encoder):
        assert face_of(encoder.encode_lat_lng(90.0, 0.0)) == 2
        assert face_of(encoder.encode_lat_lng(-90.0, 0.0)) == 5

    def test_antimeridian_both_signs(self, encoder):
        assert face_of(encoder.encode_lat_lng(0.0, 180.0)) == 3
        assert face_of(encoder.encode_lat_lng(0.0, -180.0)) == 3

    @pytest.mark.parametrize(
        "lat,lng",
        [(90.5, 0.0), (-91.0, 0.0), (0.0, 180.1), (0.0, -181.0), (math.nan, 0.0), (0.0, math.inf)],
    )
    def test_out_of_range(self, encoder, lat, lng):
        with pytest.raises(OutOfRangeError) as exc_info:
            encoder.encode_lat_lng(lat, lng)
        assert isinstance(exc_info.value, EncodingError)

    def test_leaf_cell_round_trip(self, encoder):
        rng = random.Random(7)
        for _ in range(200):
            lat = rng.uniform(-89.9, 89.9)
            lng = rng.uniform(-179.9, 179.9)
            position = encoder.encode_lat_lng(lat, lng)
            cell = leaf_cell(position)
            assert cell.id == position
            # A leaf cell is about a centimetre across
            assert angle_between(cell.center(), lat_lng_to_xyz(lat, lng)) < 1e-8


class TestCells:
    def test_face_cells_span_the_curve(self):
        faces = face_cells()
        assert [c.face for c in faces] == list(range(6))
        assert faces[0].range_min == 1
        assert faces[5].range_max == 6 << 61
        for cell in faces:
            assert level_of(cell.id) == 0

    def test_children_partition_parent(self):
        parent = face_cells()[2]
        children = parent.children()
        assert len(children) == 4
        assert children[0].range_min == parent.range_min
        assert children[-1].range_max == parent.range_max
        for left, right in zip(children, children[1:]):
            assert right.range_min == left.range_max + 1
        for child in children:
            assert child.level == 1
            assert parent.range_min <= child.range_min <= child.range_max <= parent.range_max

    def test_leaf_has_no_children(self):
        assert leaf_cell(LONDON_POSITION).children() == []

    def test_descending_path_contains_point(self, encoder):
        """Every ancestor of a leaf contains it, both by range and geometrically."""
        rng = random.Random(11)
        for _ in range(50):
            lat = rng.uniform(-89.0, 89.0)
            lng = rng.uniform(-180.0, 180.0)
            position = encoder.encode_lat_lng(lat, lng)
            point_xyz = lat_lng_to_xyz(lat, lng)

            cell = face_cells()[face_of(position)]
            for _level in range(14):
                assert cell.contains_position(position)
                axis, angle = cell.bounding_cap()
                assert angle_between(axis, point_xyz) <= angle
                assert _bound_contains(cell.lat_lng_bound(), lat, lng)
                cell = next(c for c in cell.children() if c.contains_position(position))
