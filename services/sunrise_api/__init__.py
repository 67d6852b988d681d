"""
Almanac Remote Sunrise/Sunset Service

HTTP-backed SunTimesProvider used as the primary source when enabled.
"""

from .client import (
    SunriseSunsetApiProvider,
    parse_sun_times_payload,
)

__all__ = [
    "SunriseSunsetApiProvider",
    "parse_sun_times_payload",
]
