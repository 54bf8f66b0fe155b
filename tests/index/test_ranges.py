"""Tests for GeohashRange and RangeMerger."""

from __future__ import annotations

import random

import pytest

from geoscan.index.ranges import GeohashRange, RangeMerger, covers


@pytest.fixture
def merger():
    return RangeMerger()


class TestGeohashRange:
    def test_inverted_rejected(self):
        with pytest.raises(ValueError):
            GeohashRange(10, 9)

    def test_contains_is_inclusive(self):
        rng = GeohashRange(10, 20)
        assert rng.contains(10)
        assert rng.contains(20)
        assert not rng.contains(21)

    def test_size_beyond_maxsize(self):
        rng = GeohashRange(1, (1 << 64) - 1)
        assert rng.size == (1 << 64) - 1


class TestRangeMerger:
    def test_empty(self, merger):
        assert merger.merge([]) == []

    def test_overlapping(self, merger):
        assert merger.merge([GeohashRange(1, 10), GeohashRange(5, 15)]) == [GeohashRange(1, 15)]

    def test_touching(self, merger):
        assert merger.merge([GeohashRange(1, 10), GeohashRange(11, 20)]) == [GeohashRange(1, 20)]

    def test_gap_of_one_kept(self, merger):
        ranges = [GeohashRange(1, 10), GeohashRange(12, 20)]
        assert merger.merge(ranges) == ranges

    def test_nested_and_unsorted(self, merger):
        ranges = [GeohashRange(30, 40), GeohashRange(1, 100), GeohashRange(5, 6)]
        assert merger.merge(ranges) == [GeohashRange(1, 100)]

    def test_union_preserved(self, merger):
        rng = random.Random(3)
        for _ in range(50):
            ranges = []
            for _ in range(rng.randint(1, 8)):
                low = rng.randint(0, 150)
                ranges.append(GeohashRange(low, low + rng.randint(0, 30)))
            merged = merger.merge(ranges)

            expected = {p for r in ranges for p in range(r.range_min, r.range_max + 1)}
            actual = {p for r in merged for p in range(r.range_min, r.range_max + 1)}
            assert actual == expected
            for left, right in zip(merged, merged[1:]):
                assert right.range_min > left.range_max + 1

    def test_covers(self):
        ranges = [GeohashRange(1, 5), GeohashRange(10, 12)]
        assert covers(ranges, 11)
        assert not covers(ranges, 7)
