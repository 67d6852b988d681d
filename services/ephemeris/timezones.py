"""
Almanac Timezone Offset Policies

The sunrise solver works in UTC and asks a TimezoneOffsetPolicy for the local
offset. Three policies are provided:

- UsLongitudeBandPolicy   standard time from fixed longitude bands (default)
- NauticalTimezonePolicy  round(longitude / 15), anywhere on Earth
- IanaTimezonePolicy      real, DST-aware offsets from the IANA database

Only one policy is active per solver, so results never mix standard and
daylight time.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from almanac.exceptions import ConfigurationError
from almanac.logging_config import get_logger
from almanac.models import GeoCoordinate

__all__ = [
    "TimezoneOffsetPolicy",
    "LongitudeBand",
    "UsLongitudeBandPolicy",
    "NauticalTimezonePolicy",
    "IanaTimezonePolicy",
    "build_timezone_policy",
    "TIMEZONE_POLICIES",
]

logger = get_logger("services.ephemeris.timezones")


class TimezoneOffsetPolicy(ABC):
    """Maps a coordinate and calendar date to a UTC offset in hours."""

    name: str = "abstract"

    @abstractmethod
    def offset_hours(self, coordinate: GeoCoordinate, day: date) -> float:
        """Hours to add to UTC to get local clock time."""


class NauticalTimezonePolicy(TimezoneOffsetPolicy):
    """Offset of the 15-degree nautical zone containing the longitude."""

    name = "nautical"

    def offset_hours(self, coordinate: GeoCoordinate, day: date) -> float:
        # Half-up rounding so +7.5 and -7.5 both go east (+8 / -7)
        offset = math.floor(coordinate.longitude / 15.0 + 0.5)
        return float(max(-12, min(12, offset)))


@dataclass(frozen=True)
class LongitudeBand:
    """Half-open band [min_longitude, max_longitude) within a latitude window."""
    label: str
    offset_hours: float
    min_longitude: float
    max_longitude: float
    min_latitude: float = -90.0
    max_latitude: float = 90.0

    def contains(self, coordinate: GeoCoordinate) -> bool:
        return (
            self.min_longitude <= coordinate.longitude < self.max_longitude
            and self.min_latitude <= coordinate.latitude <= self.max_latitude
        )


# Contiguous US window, generous enough for border parks
_CONUS_MIN_LAT = 24.0
_CONUS_MAX_LAT = 50.0

US_STANDARD_TIME_BANDS = (
    LongitudeBand("EST", -5.0, -84.0, -67.0, _CONUS_MIN_LAT, _CONUS_MAX_LAT),
    LongitudeBand("CST", -6.0, -102.0, -84.0, _CONUS_MIN_LAT, _CONUS_MAX_LAT),
    LongitudeBand("MST", -7.0, -115.0, -102.0, _CONUS_MIN_LAT, _CONUS_MAX_LAT),
    LongitudeBand("PST", -8.0, -125.0, -115.0, _CONUS_MIN_LAT, _CONUS_MAX_LAT),
    LongitudeBand("AKST", -9.0, -180.0, -125.0, min_latitude=50.0),
    LongitudeBand("HST", -10.0, -162.0, -154.0, max_latitude=30.0),
)


class UsLongitudeBandPolicy(TimezoneOffsetPolicy):
    """
    Standard-time offsets from fixed US longitude bands.

    Bands are checked in order and are half-open on longitude, so a point on
    a boundary (e.g. -102.0) always resolves to the band whose western edge
    it is (Central). Points outside every band use the nautical zone.
    No daylight saving time is applied.
    """

    name = "us_bands"

    def __init__(self, bands: tuple = US_STANDARD_TIME_BANDS):
        self.bands = bands
        self._fallback = NauticalTimezonePolicy()

    def band_for(self, coordinate: GeoCoordinate) -> Optional[LongitudeBand]:
        for band in self.bands:
            if band.contains(coordinate):
                return band
        return None

    def offset_hours(self, coordinate: GeoCoordinate, day: date) -> float:
        band = self.band_for(coordinate)
        if band is None:
            return self._fallback.offset_hours(coordinate, day)
        return band.offset_hours


class IanaTimezonePolicy(TimezoneOffsetPolicy):
    """
    DST-aware offsets from the IANA timezone database.

    With a fixed ``zone_name`` every coordinate uses that zone. Without one the
    zone is looked up from the coordinate with timezonefinder; coordinates in
    no zone (open ocean) fall back to the nautical offset. The offset is
    sampled at local noon so it reflects the clock in use during daylight.
    """

    name = "iana"

    def __init__(self, zone_name: Optional[str] = None):
        self.zone_name = zone_name
        self._fixed_zone: Optional[ZoneInfo] = None
        self._finder = None
        self._fallback = NauticalTimezonePolicy()

        if zone_name:
            try:
                self._fixed_zone = ZoneInfo(zone_name)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ConfigurationError(f"Unknown IANA timezone: {zone_name}") from e

    def _zone_for(self, coordinate: GeoCoordinate) -> Optional[ZoneInfo]:
        if self._fixed_zone is not None:
            return self._fixed_zone

        if self._finder is None:
            from timezonefinder import TimezoneFinder

            self._finder = TimezoneFinder()

        zone_name = self._finder.timezone_at(
            lat=coordinate.latitude, lng=coordinate.longitude
        )
        if zone_name is None:
            return None
        try:
            return ZoneInfo(zone_name)
        except ZoneInfoNotFoundError:
            logger.warning(f"timezonefinder returned unknown zone {zone_name!r}")
            return None

    def offset_hours(self, coordinate: GeoCoordinate, day: date) -> float:
        zone = self._zone_for(coordinate)
        if zone is None:
            return self._fallback.offset_hours(coordinate, day)
        local_noon = datetime.combine(day, time(12, 0), tzinfo=zone)
        return local_noon.utcoffset().total_seconds() / 3600.0


TIMEZONE_POLICIES = {
    UsLongitudeBandPolicy.name: UsLongitudeBandPolicy,
    NauticalTimezonePolicy.name: NauticalTimezonePolicy,
    IanaTimezonePolicy.name: IanaTimezonePolicy,
}


def build_timezone_policy(name: str = "us_bands", zone_name: Optional[str] = None) -> TimezoneOffsetPolicy:
    """Create a policy by its configuration name."""
    if name == IanaTimezonePolicy.name:
        return IanaTimezonePolicy(zone_name)
    try:
        return TIMEZONE_POLICIES[name]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown timezone policy {name!r}; expected one of {sorted(TIMEZONE_POLICIES)}"
        ) from None
