"""
Almanac Sunrise/Sunset

Hour-angle sunrise equation with polar-case detection and timezone
normalization, plus the SunTimesProvider interface that lets a remote service
stand in for the local solver:

    SunTimesProvider            interface
    LocalSunTimesProvider       this module's solver, never fails for valid input
    FallbackSunTimesProvider    primary provider, local solver when it fails
    SunriseSunsetApiProvider    remote source (services/sunrise_api/client.py)
"""

import logging
import math
from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from almanac.constants import (
    DEGREES_PER_HOUR,
    HORIZON_DIP_COEFFICIENT,
    HOURS_PER_DAY,
    MINUTES_PER_DAY,
    POLAR_DAY_LENGTH_HOURS,
    POLAR_NIGHT_LENGTH_HOURS,
    POLE_DENOMINATOR_EPSILON,
    SUNRISE_HORIZON_ALTITUDE_DEG,
)
from almanac.exceptions import SunTimesUnavailableError
from almanac.logging_config import get_logger, log_exception
from almanac.models import GeoCoordinate, ObservationRequest, SolarEphemeris, SunTimes
from services.ephemeris.timezones import TimezoneOffsetPolicy, UsLongitudeBandPolicy

__all__ = [
    "format_clock",
    "normalize_hours",
    "horizon_dip_deg",
    "solve_sun_times",
    "SunTimesProvider",
    "LocalSunTimesProvider",
    "FallbackSunTimesProvider",
]

logger = get_logger("services.ephemeris.sun_times")


def normalize_hours(hours: float) -> float:
    """Wrap decimal hours into [0, 24)."""
    wrapped = hours % HOURS_PER_DAY
    return 0.0 if wrapped >= HOURS_PER_DAY else wrapped


def format_clock(hours: float) -> str:
    """Decimal hours to a 12-hour clock string, rounded to the minute.

    Example:
        format_clock(4.65)   # "4:39 AM"
        format_clock(0.0)    # "12:00 AM"
        format_clock(12.5)   # "12:30 PM"
    """
    total_minutes = int(round(hours * 60)) % MINUTES_PER_DAY
    hour, minute = divmod(total_minutes, 60)
    suffix = "AM" if hour < 12 else "PM"
    display_hour = hour % 12 or 12
    return f"{display_hour}:{minute:02d} {suffix}"


def horizon_dip_deg(elevation_m: float) -> float:
    """Geometric dip of the horizon for an observer ``elevation_m`` above it."""
    if elevation_m <= 0:
        return 0.0
    return HORIZON_DIP_COEFFICIENT * math.sqrt(elevation_m)


def _polar_sun_times(is_polar_day: bool, utc_offset: float, source: str) -> SunTimes:
    return SunTimes(
        sunrise_local=None,
        sunset_local=None,
        day_length_hours=POLAR_DAY_LENGTH_HOURS if is_polar_day else POLAR_NIGHT_LENGTH_HOURS,
        is_polar_day=is_polar_day,
        is_polar_night=not is_polar_day,
        utc_offset_hours=utc_offset,
        source=source,
    )


def solve_sun_times(
    coordinate: GeoCoordinate,
    ephemeris: SolarEphemeris,
    day: date,
    timezone_policy: Optional[TimezoneOffsetPolicy] = None,
    elevation_m: float = 0.0,
    horizon_altitude_deg: float = SUNRISE_HORIZON_ALTITUDE_DEG,
    apply_elevation_dip: bool = False,
) -> SunTimes:
    """
    Sunrise and sunset in local clock time.

    Solves cos H = (sin h0 - sin(lat) sin(decl)) / (cos(lat) cos(decl)).
    A ratio below -1 means the sun stays above h0 all day (polar day),
    above +1 that it never reaches it (polar night).

    Args:
        coordinate: Observer position
        ephemeris: Solar position for the day
        day: Calendar date, used for the timezone offset
        timezone_policy: UTC offset source (default: US longitude bands)
        elevation_m: Observer elevation above the horizon
        horizon_altitude_deg: Sun altitude that counts as rise/set
        apply_elevation_dip: Lower the horizon by the elevation dip

    Returns:
        SunTimes; polar results carry no clock times.
    """
    policy = timezone_policy or UsLongitudeBandPolicy()
    utc_offset = policy.offset_hours(coordinate, day)

    h0 = horizon_altitude_deg
    if apply_elevation_dip:
        h0 -= horizon_dip_deg(elevation_m)

    lat = math.radians(coordinate.latitude)
    decl = math.radians(ephemeris.declination_deg)
    denominator = math.cos(lat) * math.cos(decl)

    if abs(denominator) < POLE_DENOMINATOR_EPSILON:
        # At the poles the sun's altitude is constant over the day
        noon_altitude = 90.0 - abs(coordinate.latitude - ephemeris.declination_deg)
        return _polar_sun_times(noon_altitude > h0, utc_offset, "local")

    cos_hour_angle = (
        math.sin(math.radians(h0)) - math.sin(lat) * math.sin(decl)
    ) / denominator

    if cos_hour_angle < -1.0:
        return _polar_sun_times(True, utc_offset, "local")
    if cos_hour_angle > 1.0:
        return _polar_sun_times(False, utc_offset, "local")

    half_day_hours = math.degrees(math.acos(cos_hour_angle)) / DEGREES_PER_HOUR
    solar_noon_utc = (
        12.0
        - coordinate.longitude / DEGREES_PER_HOUR
        - ephemeris.equation_of_time_minutes / 60.0
    )
    sunrise_utc = solar_noon_utc - half_day_hours
    sunset_utc = solar_noon_utc + half_day_hours

    sunrise_local = normalize_hours(sunrise_utc + utc_offset)
    sunset_local = normalize_hours(sunset_utc + utc_offset)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            f"Sun times lat={coordinate.latitude} lon={coordinate.longitude} day={day}: "
            f"UTC {sunrise_utc:.3f}/{sunset_utc:.3f}, offset {utc_offset:+.1f}h, "
            f"local {sunrise_local:.3f}/{sunset_local:.3f}"
        )

    return SunTimes(
        sunrise_local=format_clock(sunrise_local),
        sunset_local=format_clock(sunset_local),
        day_length_hours=sunset_utc - sunrise_utc,
        sunrise_hours=sunrise_local,
        sunset_hours=sunset_local,
        utc_offset_hours=utc_offset,
        source="local",
    )


# =============================================================================
# PROVIDERS
# =============================================================================


class SunTimesProvider(ABC):
    """Source of SunTimes for a request."""

    name: str = "abstract"

    @abstractmethod
    async def get_sun_times(
        self,
        request: ObservationRequest,
        ephemeris: SolarEphemeris,
    ) -> SunTimes:
        """
        Sun times for the request's coordinate and day.

        Raises:
            SunTimesUnavailableError: the provider cannot answer.
        """


class LocalSunTimesProvider(SunTimesProvider):
    """The numeric solver behind the provider interface."""

    name = "local"

    def __init__(
        self,
        timezone_policy: Optional[TimezoneOffsetPolicy] = None,
        horizon_altitude_deg: float = SUNRISE_HORIZON_ALTITUDE_DEG,
        apply_elevation_dip: bool = False,
    ):
        self.timezone_policy = timezone_policy or UsLongitudeBandPolicy()
        self.horizon_altitude_deg = horizon_altitude_deg
        self.apply_elevation_dip = apply_elevation_dip

    def solve(self, request: ObservationRequest, ephemeris: SolarEphemeris) -> SunTimes:
        """Synchronous form used by the pure engine entry point."""
        return solve_sun_times(
            request.coordinate,
            ephemeris,
            request.day,
            timezone_policy=self.timezone_policy,
            elevation_m=request.elevation_m,
            horizon_altitude_deg=self.horizon_altitude_deg,
            apply_elevation_dip=self.apply_elevation_dip,
        )

    async def get_sun_times(
        self,
        request: ObservationRequest,
        ephemeris: SolarEphemeris,
    ) -> SunTimes:
        return self.solve(request, ephemeris)


class FallbackSunTimesProvider(SunTimesProvider):
    """
    Ask ``primary`` once; on SunTimesUnavailableError answer from ``fallback``.

    The failure is logged and never reaches the caller.
    """

    def __init__(self, primary: SunTimesProvider, fallback: SunTimesProvider):
        self.primary = primary
        self.fallback = fallback
        self.name = f"{primary.name}->{fallback.name}"
        self.fallback_count = 0

    async def get_sun_times(
        self,
        request: ObservationRequest,
        ephemeris: SolarEphemeris,
    ) -> SunTimes:
        try:
            return await self.primary.get_sun_times(request, ephemeris)
        except SunTimesUnavailableError as e:
            self.fallback_count += 1
            log_exception(
                logger,
                f"{self.primary.name} unavailable for {request.day}, "
                f"using {self.fallback.name}",
                e,
                level=logging.WARNING,
                include_traceback=False,
            )
            return await self.fallback.get_sun_times(request, ephemeris)
