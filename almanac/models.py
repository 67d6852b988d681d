"""
Almanac Data Models

Value records passed between the engine's layers. Everything here is a frozen
dataclass built fresh per request; the engine stores none of them.

    GeoCoordinate / ObservationRequest   validated input
    SolarEphemeris                       sun position (services/ephemeris/solar.py)
    SunTimes                             sunrise/sunset (services/ephemeris/sun_times.py)
    MoonPhase                            lunar phase (services/lunar/moon_phase.py)
    SkyConditions                        viewing heuristics (services/sky/conditions.py)
    AstronomicalReport                   the aggregate handed to callers
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Any, Optional, Union

from almanac.constants import MOMENT_END_MARGIN_DAYS
from almanac.exceptions import InvalidCoordinateError, InvalidObservationError

__all__ = [
    "MoonPhaseName",
    "MilkyWayVisibility",
    "AuroraProbability",
    "GeoCoordinate",
    "ObservationRequest",
    "SolarEphemeris",
    "SunTimes",
    "MoonPhase",
    "SkyConditions",
    "AstronomicalReport",
    "normalize_moment",
    "LATEST_MOMENT",
]

MomentLike = Union[datetime, date, str]

LATEST_MOMENT = datetime.max.replace(tzinfo=timezone.utc) - timedelta(days=MOMENT_END_MARGIN_DAYS)


class MoonPhaseName(Enum):
    """The eight named lunar phases, in order of increasing age."""
    NEW_MOON = "New Moon"
    WAXING_CRESCENT = "Waxing Crescent"
    FIRST_QUARTER = "First Quarter"
    WAXING_GIBBOUS = "Waxing Gibbous"
    FULL_MOON = "Full Moon"
    WANING_GIBBOUS = "Waning Gibbous"
    LAST_QUARTER = "Last Quarter"
    WANING_CRESCENT = "Waning Crescent"


class MilkyWayVisibility(Enum):
    """Milky Way viewing tier."""
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class AuroraProbability(Enum):
    """Aurora likelihood tier."""
    HIGH = "High"
    MODERATE = "Moderate"
    LOW = "Low"
    VERY_LOW = "Very Low"


def normalize_moment(value: MomentLike) -> datetime:
    """Coerce a date representation into a UTC-aware datetime.

    Aware datetimes are converted to UTC, naive ones are taken as UTC,
    plain dates mean midnight UTC and strings are parsed as ISO-8601.

    Raises:
        InvalidObservationError: unsupported type, unparseable string, or a
            moment within a month of the last representable datetime.
    """
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise InvalidObservationError(f"Unparseable date string: {value!r}") from e

    if isinstance(value, datetime):
        if value.tzinfo is None:
            moment = value.replace(tzinfo=timezone.utc)
        else:
            try:
                moment = value.astimezone(timezone.utc)
            except OverflowError as e:
                raise InvalidObservationError(f"Date out of range: {value!r}") from e
    elif isinstance(value, date):
        moment = datetime.combine(value, time(0, 0), tzinfo=timezone.utc)
    else:
        raise InvalidObservationError(
            f"Unsupported date value of type {type(value).__name__}: {value!r}"
        )

    if moment > LATEST_MOMENT:
        raise InvalidObservationError(
            f"Date {moment.isoformat()} is too late, the latest supported is "
            f"{LATEST_MOMENT.isoformat()}"
        )
    return moment


@dataclass(frozen=True)
class GeoCoordinate:
    """Observer position in decimal degrees (positive = North / East)."""
    latitude: float
    longitude: float

    def __post_init__(self):
        lat, lon = self.latitude, self.longitude
        valid = (
            isinstance(lat, (int, float))
            and isinstance(lon, (int, float))
            and math.isfinite(lat)
            and math.isfinite(lon)
            and -90.0 <= lat <= 90.0
            and -180.0 <= lon <= 180.0
        )
        if not valid:
            raise InvalidCoordinateError(lat, lon)


@dataclass(frozen=True)
class ObservationRequest:
    """A validated (coordinate, instant, elevation) triple."""
    coordinate: GeoCoordinate
    moment: datetime          # UTC-aware
    elevation_m: float = 0.0

    @classmethod
    def create(
        cls,
        coordinate: GeoCoordinate,
        when: MomentLike,
        elevation_m: float = 0.0,
    ) -> "ObservationRequest":
        """Build a request from any supported date representation."""
        if not isinstance(coordinate, GeoCoordinate):
            raise InvalidObservationError(
                f"coordinate must be a GeoCoordinate, got {type(coordinate).__name__}"
            )
        if elevation_m is None:
            elevation_m = 0.0
        if not math.isfinite(elevation_m) or elevation_m < 0:
            raise InvalidObservationError(
                f"elevation_m must be a finite value >= 0, got {elevation_m!r}"
            )
        return cls(
            coordinate=coordinate,
            moment=normalize_moment(when),
            elevation_m=float(elevation_m),
        )

    @property
    def day(self) -> date:
        """UTC calendar date of the request."""
        return self.moment.date()


@dataclass(frozen=True)
class SolarEphemeris:
    """Apparent solar position from the low-order series."""
    declination_deg: float
    right_ascension_deg: float            # 0-360
    equation_of_time_minutes: float = 0.0  # apparent minus mean solar time


@dataclass(frozen=True)
class SunTimes:
    """
    Sunrise/sunset for one day at one place.

    Either both clock times are present and no polar flag is set, or both are
    None and exactly one of is_polar_day / is_polar_night is True.
    """
    sunrise_local: Optional[str]      # "6:12 AM"
    sunset_local: Optional[str]
    day_length_hours: float
    is_polar_day: bool = False
    is_polar_night: bool = False
    sunrise_hours: Optional[float] = None  # local decimal hours in [0, 24)
    sunset_hours: Optional[float] = None
    utc_offset_hours: float = 0.0
    source: str = "local"

    def __post_init__(self):
        has_times = self.sunrise_local is not None and self.sunset_local is not None
        no_times = self.sunrise_local is None and self.sunset_local is None
        polar_flags = int(self.is_polar_day) + int(self.is_polar_night)
        if not ((has_times and polar_flags == 0) or (no_times and polar_flags == 1)):
            raise ValueError(
                "SunTimes needs both times and no polar flag, "
                "or no times and exactly one polar flag"
            )

    @property
    def is_polar(self) -> bool:
        return self.is_polar_day or self.is_polar_night


@dataclass(frozen=True)
class MoonPhase:
    """Lunar phase at an instant."""
    phase: MoonPhaseName
    illumination_percent: float   # 0-100
    age_days: float               # [0, synodic month)
    next_new_moon: datetime
    next_full_moon: datetime


@dataclass(frozen=True)
class SkyConditions:
    """Heuristic viewing tiers."""
    milky_way_visibility: MilkyWayVisibility
    aurora_probability: AuroraProbability


@dataclass(frozen=True)
class AstronomicalReport:
    """Everything the engine knows about one request."""
    request: ObservationRequest
    sun_times: SunTimes
    moon_phase: MoonPhase
    sky_conditions: SkyConditions
    solar_ephemeris: SolarEphemeris

    def to_dict(self) -> dict[str, Any]:
        """Flat, JSON-ready summary for API layers and narrators."""
        sun = self.sun_times
        moon = self.moon_phase
        return {
            "latitude": self.request.coordinate.latitude,
            "longitude": self.request.coordinate.longitude,
            "elevation_m": self.request.elevation_m,
            "date": self.request.moment.isoformat(),
            "sunrise": sun.sunrise_local,
            "sunset": sun.sunset_local,
            "day_length_hours": round(sun.day_length_hours, 2),
            "is_polar_day": sun.is_polar_day,
            "is_polar_night": sun.is_polar_night,
            "utc_offset_hours": sun.utc_offset_hours,
            "sun_times_source": sun.source,
            "moon_phase": moon.phase.value,
            "moon_illumination": round(moon.illumination_percent),
            "moon_age": round(moon.age_days, 1),
            "next_new_moon": moon.next_new_moon.isoformat(),
            "next_full_moon": moon.next_full_moon.isoformat(),
            "milky_way_visibility": self.sky_conditions.milky_way_visibility.value,
            "aurora_probability": self.sky_conditions.aurora_probability.value,
            "sun_declination": round(self.solar_ephemeris.declination_deg, 4),
            "sun_right_ascension": round(self.solar_ephemeris.right_ascension_deg, 4),
        }
