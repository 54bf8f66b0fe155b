"""PartitionKeyDeriver: coarse partition keys from curve positions.

A partition key is the leading ``prefix_length`` decimal digits of a
curve position.  Longer prefixes spread items over more partitions but
make a query touch more of them.
"""

from __future__ import annotations

from geoscan.index.ranges import GeohashRange


class PartitionKeyDeriver:
    def __init__(self, prefix_length: int):
        if not 1 <= prefix_length <= 19:
            raise ValueError(f"prefix_length must be in [1, 19], got {prefix_length}")
        self.prefix_length = prefix_length

    def derive(self, position: int) -> int:
        return derive(position, self.prefix_length)

    def split(self, rng: GeohashRange) -> list[GeohashRange]:
        return split(rng, self.prefix_length)

    def count(self, rng: GeohashRange) -> int:
        return count_partitions(rng, self.prefix_length)


def derive(position: int, prefix_length: int) -> int:
    """Leading *prefix_length* digits of *position* (all digits if shorter)."""
    if position < 0:
        raise ValueError(f"Curve positions are unsigned, got {position}")
    digits = str(position)
    return int(digits[:prefix_length])


def split(rng: GeohashRange, prefix_length: int) -> list[GeohashRange]:
    """Cut *rng* at partition key boundaries.

    Every returned range maps to exactly one partition key, so it can be
    served by a single equality-keyed scan.  A range also never straddles
    a change in digit count (which changes what the prefix means).
    """
    result: list[GeohashRange] = []
    low = rng.range_min
    while low <= rng.range_max:
        num_digits = len(str(low))
        if num_digits <= prefix_length:
            block_end = low
        else:
            scale = 10 ** (num_digits - prefix_length)
            block_end = (low // scale + 1) * scale - 1
        high = min(block_end, rng.range_max)
        result.append(GeohashRange(low, high))
        low = high + 1
    return result


def count_partitions(rng: GeohashRange, prefix_length: int) -> int:
    """Number of ranges ``split`` returns for *rng*, without building them."""
    total = 0
    low = rng.range_min
    while low <= rng.range_max:
        num_digits = len(str(low))
        high = min(10**num_digits - 1, rng.range_max)
        if num_digits <= prefix_length:
            total += high - low + 1
        else:
            scale = 10 ** (num_digits - prefix_length)
            total += high // scale - low // scale + 1
        low = high + 1
    return total
