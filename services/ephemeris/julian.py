"""
Almanac Time Conversion

Calendar date <-> Julian Day for the proleptic Gregorian calendar
(Meeus, Astronomical Algorithms, ch. 7).
"""

import math
from datetime import date, datetime, timedelta, timezone
from typing import Union

from almanac.constants import DAYS_PER_JULIAN_CENTURY, J2000_JD

__all__ = [
    "julian_day",
    "calendar_from_julian_day",
    "julian_centuries",
]


def julian_day(moment: Union[datetime, date]) -> float:
    """
    Julian Day of a calendar instant.

    Aware datetimes are converted to UTC; naive datetimes are taken as UTC;
    plain dates mean 00:00 UTC. Defined for every date Python can represent.

    Example:
        julian_day(datetime(2000, 1, 1, 12, tzinfo=timezone.utc))  # 2451545.0
    """
    if isinstance(moment, datetime):
        if moment.tzinfo is not None:
            moment = moment.astimezone(timezone.utc)
        seconds = (
            moment.hour * 3600
            + moment.minute * 60
            + moment.second
            + moment.microsecond / 1e6
        )
    else:
        seconds = 0.0

    year, month = moment.year, moment.month
    day = moment.day + seconds / 86400.0

    # January and February count as months 13 and 14 of the previous year
    if month <= 2:
        year -= 1
        month += 12

    century = year // 100
    gregorian_correction = 2 - century + century // 4

    return (
        math.floor(365.25 * (year + 4716))
        + math.floor(30.6001 * (month + 1))
        + day
        + gregorian_correction
        - 1524.5
    )


def calendar_from_julian_day(jd: float) -> datetime:
    """
    UTC datetime for a Julian Day, rounded to the microsecond.

    Inverse of julian_day(); used to project future moon events.
    """
    shifted = jd + 0.5
    z = math.floor(shifted)
    fraction = shifted - z

    alpha = math.floor((z - 1867216.25) / 36524.25)
    a = z + 1 + alpha - alpha // 4
    b = a + 1524
    c = math.floor((b - 122.1) / 365.25)
    d = math.floor(365.25 * c)
    e = math.floor((b - d) / 30.6001)

    day = b - d - math.floor(30.6001 * e)
    month = e - 1 if e < 14 else e - 13
    year = c - 4716 if month > 2 else c - 4715

    midnight = datetime(int(year), int(month), int(day), tzinfo=timezone.utc)
    return midnight + timedelta(microseconds=round(fraction * 86400e6))


def julian_centuries(jd: float) -> float:
    """Julian centuries elapsed since J2000.0."""
    return (jd - J2000_JD) / DAYS_PER_JULIAN_CENTURY
