"""Engine-level exceptions.

Validation and encoding errors are raised synchronously, before any scan
is issued.  Storage failures live in ``geoscan.persistence.errors``; a
failed scan during a query surfaces here as ``AggregationError``.
"""

from __future__ import annotations


class GeoScanError(Exception):
    """Base exception for all geoscan errors."""


class ValidationError(GeoScanError, ValueError):
    """Raised for a malformed query shape, time window or point update."""


class EncodingError(GeoScanError, ValueError):
    """Raised when the curve encoder is given out-of-domain input."""


class OutOfRangeError(EncodingError):
    """Latitude or longitude outside its valid bounds."""

    def __init__(self, latitude: float, longitude: float):
        self.latitude = latitude
        self.longitude = longitude
        super().__init__(
            f"Coordinates out of range: latitude={latitude}, longitude={longitude}"
        )


class AggregationError(GeoScanError):
    """One or more concurrent scans of a query failed.

    ``cause`` holds the first backend error observed; sibling results are
    discarded.
    """

    def __init__(self, cause: Exception, failed_scans: int = 1):
        self.cause = cause
        self.failed_scans = failed_scans
        super().__init__(f"Query aborted, scan failed: {cause}")
