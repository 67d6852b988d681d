"""
Almanac Lunar Phase

Mean synodic-month model: the moon's age is the time since a reference new
moon folded into one synodic month. Phase name, illumination and the next
new/full moon all follow from the age. Good to roughly a day, which is what
a trip-planning almanac needs.
"""

import bisect
from datetime import datetime, timedelta

from almanac.constants import (
    FIRST_QUARTER_END_DAYS,
    FULL_MOON_END_DAYS,
    LAST_QUARTER_END_DAYS,
    MOON_AGE_PRECISION_DAYS,
    NEW_MOON_END_DAYS,
    REFERENCE_NEW_MOON_JD,
    SYNODIC_MONTH_DAYS,
    WANING_CRESCENT_END_DAYS,
    WANING_GIBBOUS_END_DAYS,
    WAXING_CRESCENT_END_DAYS,
    WAXING_GIBBOUS_END_DAYS,
)
from almanac.models import MomentLike, MoonPhase, MoonPhaseName, normalize_moment
from services.ephemeris.julian import calendar_from_julian_day, julian_day

__all__ = [
    "PHASE_BOUNDARIES",
    "lunar_age",
    "phase_name_for_age",
    "illumination_for_age",
    "days_until_new_moon",
    "days_until_full_moon",
    "moon_phase",
]

HALF_SYNODIC_MONTH_DAYS = SYNODIC_MONTH_DAYS / 2.0

# Exclusive upper bound of each phase; the last bucket wraps back to New Moon
PHASE_BOUNDARIES = (
    NEW_MOON_END_DAYS,
    WAXING_CRESCENT_END_DAYS,
    FIRST_QUARTER_END_DAYS,
    WAXING_GIBBOUS_END_DAYS,
    FULL_MOON_END_DAYS,
    WANING_GIBBOUS_END_DAYS,
    LAST_QUARTER_END_DAYS,
    WANING_CRESCENT_END_DAYS,
)
_PHASES_BY_BUCKET = (
    MoonPhaseName.NEW_MOON,
    MoonPhaseName.WAXING_CRESCENT,
    MoonPhaseName.FIRST_QUARTER,
    MoonPhaseName.WAXING_GIBBOUS,
    MoonPhaseName.FULL_MOON,
    MoonPhaseName.WANING_GIBBOUS,
    MoonPhaseName.LAST_QUARTER,
    MoonPhaseName.WANING_CRESCENT,
    MoonPhaseName.NEW_MOON,
)


def lunar_age(jd: float) -> float:
    """
    Days since the last mean new moon, in [0, SYNODIC_MONTH_DAYS).

    Rounded to MOON_AGE_PRECISION_DAYS decimals so sub-second noise from JD
    arithmetic cannot move the age across a phase boundary.
    """
    age = round((jd - REFERENCE_NEW_MOON_JD) % SYNODIC_MONTH_DAYS, MOON_AGE_PRECISION_DAYS)
    if age >= SYNODIC_MONTH_DAYS or age < 0.0:
        return 0.0
    return age


def phase_name_for_age(age_days: float) -> MoonPhaseName:
    """Phase for an age; each boundary belongs to the phase that starts there."""
    return _PHASES_BY_BUCKET[bisect.bisect_right(PHASE_BOUNDARIES, age_days)]


def illumination_for_age(age_days: float) -> float:
    """Illuminated percentage: 0 at new moon, 100 at full, linear in between."""
    distance_from_full = abs(age_days - HALF_SYNODIC_MONTH_DAYS)
    illumination = 100.0 * (1.0 - distance_from_full / HALF_SYNODIC_MONTH_DAYS)
    return min(100.0, max(0.0, illumination))


def days_until_new_moon(age_days: float) -> float:
    """In (0, synodic month]; a moon exactly new waits a full cycle."""
    return SYNODIC_MONTH_DAYS - age_days


def days_until_full_moon(age_days: float) -> float:
    """In (0, synodic month]; a moon at or past full waits for the next one."""
    offset = HALF_SYNODIC_MONTH_DAYS - age_days % SYNODIC_MONTH_DAYS
    if offset <= 0:
        offset += SYNODIC_MONTH_DAYS
    return offset


def moon_phase(when: MomentLike) -> MoonPhase:
    """
    Lunar phase at an instant.

    Args:
        when: datetime, date or ISO string (naive values are UTC)

    Returns:
        MoonPhase whose next_new_moon / next_full_moon are strictly after
        ``when`` and no more than one synodic month away.
    """
    moment = normalize_moment(when)
    jd = julian_day(moment)
    age = lunar_age(jd)

    next_new = calendar_from_julian_day(jd + days_until_new_moon(age))
    next_full = calendar_from_julian_day(jd + days_until_full_moon(age))

    # JD round-off is tens of microseconds; keep both events in (moment, moment + month]
    resolution = timedelta(microseconds=1)
    horizon = moment + timedelta(days=SYNODIC_MONTH_DAYS)
    next_new = min(max(next_new, moment + resolution), horizon)
    next_full = min(max(next_full, moment + resolution), horizon)

    return MoonPhase(
        phase=phase_name_for_age(age),
        illumination_percent=illumination_for_age(age),
        age_days=age,
        next_new_moon=next_new,
        next_full_moon=next_full,
    )
