"""GeohashRange and the RangeMerger."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class GeohashRange:
    """Inclusive interval ``[range_min, range_max]`` of curve positions."""

    range_min: int
    range_max: int

    def __post_init__(self) -> None:
        if self.range_min > self.range_max:
            raise ValueError(
                f"range_min {self.range_min} is greater than range_max {self.range_max}"
            )

    def contains(self, position: int) -> bool:
        return self.range_min <= position <= self.range_max

    @property
    def size(self) -> int:
        return self.range_max - self.range_min + 1


class RangeMerger:
    """Coalesces overlapping or touching ranges.

    Output is sorted by ``range_min``, with a gap of at least one position
    between consecutive ranges, and covers exactly the union of the input.
    """

    def merge(self, ranges: Iterable[GeohashRange]) -> list[GeohashRange]:
        ordered = sorted(ranges)
        if not ordered:
            return []

        merged: list[GeohashRange] = []
        running = ordered[0]
        for rng in ordered[1:]:
            if rng.range_min <= running.range_max + 1:
                if rng.range_max > running.range_max:
                    running = GeohashRange(running.range_min, rng.range_max)
            else:
                merged.append(running)
                running = rng
        merged.append(running)

        logger.debug("Merged %d ranges into %d", len(ordered), len(merged))
        return merged


def covers(ranges: Iterable[GeohashRange], position: int) -> bool:
    return any(rng.contains(position) for rng in ranges)
