"""
Almanac Ephemeris Service

Sun-related calculations:
- Julian Day conversion (both directions)
- Low-order solar position
- Sunrise/sunset with polar-day/night detection
- Pluggable timezone offset policies
"""

from .julian import (
    julian_day,
    calendar_from_julian_day,
    julian_centuries,
)
from .solar import solar_position
from .timezones import (
    TimezoneOffsetPolicy,
    UsLongitudeBandPolicy,
    NauticalTimezonePolicy,
    IanaTimezonePolicy,
    build_timezone_policy,
)
from .sun_times import (
    SunTimesProvider,
    LocalSunTimesProvider,
    FallbackSunTimesProvider,
    solve_sun_times,
    format_clock,
)

__all__ = [
    # Time conversion
    "julian_day",
    "calendar_from_julian_day",
    "julian_centuries",
    # Solar position
    "solar_position",
    # Timezones
    "TimezoneOffsetPolicy",
    "UsLongitudeBandPolicy",
    "NauticalTimezonePolicy",
    "IanaTimezonePolicy",
    "build_timezone_policy",
    # Sun times
    "SunTimesProvider",
    "LocalSunTimesProvider",
    "FallbackSunTimesProvider",
    "solve_sun_times",
    "format_clock",
]
