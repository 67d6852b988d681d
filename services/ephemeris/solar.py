"""
Almanac Solar Position

Low-order solar ephemeris (Meeus ch. 25, truncated): accurate to about an
arc-minute, which is enough for sunrise/sunset but is not a precision
ephemeris.
"""

import math

from almanac.constants import (
    ABERRATION_EOT_DEG,
    OBLIQUITY_J2000_DEG,
    OBLIQUITY_RATE,
    SUN_MEAN_ANOMALY_DEG,
    SUN_MEAN_ANOMALY_RATE,
    SUN_MEAN_LONGITUDE_DEG,
    SUN_MEAN_LONGITUDE_RATE,
)
from almanac.models import SolarEphemeris
from services.ephemeris.julian import julian_centuries

__all__ = ["solar_position", "equation_of_center", "wrap_degrees_180"]


def wrap_degrees_180(angle: float) -> float:
    """Fold an angle into [-180, 180)."""
    return (angle + 180.0) % 360.0 - 180.0


def equation_of_center(mean_anomaly_deg: float, t: float) -> float:
    """Sun's equation of center in degrees for Julian centuries ``t``."""
    m = math.radians(mean_anomaly_deg)
    return (
        (1.9146 - 0.004817 * t - 0.000014 * t * t) * math.sin(m)
        + (0.019993 - 0.000101 * t) * math.sin(2 * m)
        + 0.000289 * math.sin(3 * m)
    )


def solar_position(jd: float) -> SolarEphemeris:
    """
    Solar declination, right ascension and equation of time at a Julian Day.

    Args:
        jd: Julian Day (UT)

    Returns:
        SolarEphemeris with declination in [-23.44, 23.44] degrees and
        right ascension in [0, 360) degrees.
    """
    t = julian_centuries(jd)

    mean_anomaly = (SUN_MEAN_ANOMALY_DEG + SUN_MEAN_ANOMALY_RATE * t) % 360.0
    mean_longitude = (SUN_MEAN_LONGITUDE_DEG + SUN_MEAN_LONGITUDE_RATE * t) % 360.0
    true_longitude = math.radians(mean_longitude + equation_of_center(mean_anomaly, t))
    obliquity = math.radians(OBLIQUITY_J2000_DEG - OBLIQUITY_RATE * t)

    right_ascension = math.degrees(
        math.atan2(math.cos(obliquity) * math.sin(true_longitude), math.cos(true_longitude))
    ) % 360.0
    if right_ascension >= 360.0:
        right_ascension = 0.0
    declination = math.degrees(
        math.asin(math.sin(obliquity) * math.sin(true_longitude))
    )

    # 4 minutes of time per degree
    equation_of_time = 4.0 * wrap_degrees_180(
        mean_longitude - ABERRATION_EOT_DEG - right_ascension
    )

    return SolarEphemeris(
        declination_deg=declination,
        right_ascension_deg=right_ascension,
        equation_of_time_minutes=equation_of_time,
    )
