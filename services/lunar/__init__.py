"""
Almanac Lunar Service

Moon age, phase name, illumination and next new/full moon projection.
"""

from .moon_phase import (
    PHASE_BOUNDARIES,
    lunar_age,
    phase_name_for_age,
    illumination_for_age,
    days_until_new_moon,
    days_until_full_moon,
    moon_phase,
)

__all__ = [
    "PHASE_BOUNDARIES",
    "lunar_age",
    "phase_name_for_age",
    "illumination_for_age",
    "days_until_new_moon",
    "days_until_full_moon",
    "moon_phase",
]
