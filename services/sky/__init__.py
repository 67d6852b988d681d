"""
Almanac Sky Conditions Service

Milky Way visibility and aurora probability heuristics.
"""

from .conditions import (
    SkyThresholds,
    is_northern,
    local_winter_month,
    sky_conditions,
)

__all__ = [
    "SkyThresholds",
    "is_northern",
    "local_winter_month",
    "sky_conditions",
]
