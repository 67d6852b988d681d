"""
Almanac Shared Constants

Centralizes the astronomical constants and the tunable sky-condition
thresholds used across the engine. Astronomical values are fixed by the
low-order models in services/ephemeris and services/lunar; sky thresholds are
UX hints and can be overridden through the `sky` configuration section.

Constants are organized by category:
    - Version and identity
    - Time and calendar
    - Solar model
    - Lunar model
    - Sky-condition heuristics
    - Remote provider and cache defaults
"""

from typing import Final

# =============================================================================
# Version and Identity
# =============================================================================

ALMANAC_VERSION: Final[str] = "0.3.0"

# =============================================================================
# Time and Calendar
# =============================================================================

J2000_JD: Final[float] = 2451545.0  # 2000-01-01 12:00 UTC
DAYS_PER_JULIAN_CENTURY: Final[float] = 36525.0
HOURS_PER_DAY: Final[float] = 24.0
MINUTES_PER_DAY: Final[int] = 1440
DEGREES_PER_HOUR: Final[float] = 15.0  # Earth rotation

# =============================================================================
# Solar Model (Meeus low-order series)
# =============================================================================

SUN_MEAN_ANOMALY_DEG: Final[float] = 357.5291
SUN_MEAN_ANOMALY_RATE: Final[float] = 35999.0503  # deg per Julian century
SUN_MEAN_LONGITUDE_DEG: Final[float] = 280.4665
SUN_MEAN_LONGITUDE_RATE: Final[float] = 36000.7698  # deg per Julian century
OBLIQUITY_J2000_DEG: Final[float] = 23.4393
OBLIQUITY_RATE: Final[float] = 0.0000004  # deg per Julian century
ABERRATION_EOT_DEG: Final[float] = 0.0057183

# Standard altitude of the sun's upper limb at rise/set: refraction + semi-diameter
SUNRISE_HORIZON_ALTITUDE_DEG: Final[float] = -0.833

# Horizon dip for an elevated observer: dip_deg = coefficient * sqrt(elevation_m)
HORIZON_DIP_COEFFICIENT: Final[float] = 0.0347

# Below this |cos(lat) * cos(decl)| the hour-angle ratio is undefined (exact poles)
POLE_DENOMINATOR_EPSILON: Final[float] = 1e-12

POLAR_DAY_LENGTH_HOURS: Final[float] = 24.0
POLAR_NIGHT_LENGTH_HOURS: Final[float] = 0.0

# =============================================================================
# Lunar Model
# =============================================================================

SYNODIC_MONTH_DAYS: Final[float] = 29.53059
REFERENCE_NEW_MOON_JD: Final[float] = 2451549.5  # 2000-01-06 00:00 UTC
MOON_AGE_PRECISION_DAYS: Final[int] = 6  # decimal places kept on the age

# Next-moon projections must stay inside datetime.max
MOMENT_END_MARGIN_DAYS: Final[int] = 31

# Upper bounds (exclusive) of each phase, in days of age
NEW_MOON_END_DAYS: Final[float] = 1.84566
WAXING_CRESCENT_END_DAYS: Final[float] = 5.53699
FIRST_QUARTER_END_DAYS: Final[float] = 9.22831
WAXING_GIBBOUS_END_DAYS: Final[float] = 12.91963
FULL_MOON_END_DAYS: Final[float] = 16.61096
WANING_GIBBOUS_END_DAYS: Final[float] = 20.30228
LAST_QUARTER_END_DAYS: Final[float] = 23.99361
WANING_CRESCENT_END_DAYS: Final[float] = 27.68493

# =============================================================================
# Sky-Condition Heuristics
# =============================================================================

# Milky Way: maximum moon illumination (percent, exclusive) per tier
MILKY_WAY_EXCELLENT_MAX_ILLUMINATION: Final[float] = 10.0
MILKY_WAY_GOOD_MAX_ILLUMINATION: Final[float] = 25.0
MILKY_WAY_FAIR_MAX_ILLUMINATION: Final[float] = 50.0

# Galactic core season, calendar months (1-12)
NORTHERN_CORE_SEASON_MONTHS: Final[frozenset] = frozenset({5, 6, 7, 8, 9})
NORTHERN_EXTENDED_SEASON_MONTHS: Final[frozenset] = frozenset({4, 5, 6, 7, 8, 9, 10})
SOUTHERN_CORE_SEASON_MONTHS: Final[frozenset] = frozenset({4, 5, 6, 7, 8})
SOUTHERN_EXTENDED_SEASON_MONTHS: Final[frozenset] = frozenset({3, 4, 5, 6, 7, 8, 9})

# Aurora: minimum |latitude| (exclusive) per tier
AURORA_HIGH_MIN_LATITUDE: Final[float] = 60.0
AURORA_MODERATE_MIN_LATITUDE: Final[float] = 50.0
AURORA_LOW_MIN_LATITUDE: Final[float] = 40.0

# Aurora season per tier, expressed as northern-hemisphere months (1-12)
AURORA_HIGH_SEASON_MONTHS: Final[frozenset] = frozenset({10, 11, 12, 1, 2, 3})
AURORA_MODERATE_SEASON_MONTHS: Final[frozenset] = frozenset({11, 12, 1, 2, 3, 4})
AURORA_LOW_SEASON_MONTHS: Final[frozenset] = frozenset({12, 1, 2})

# =============================================================================
# Remote Provider and Cache Defaults
# =============================================================================

SUNRISE_SUNSET_API_URL: Final[str] = "https://api.sunrise-sunset.org/json"
REMOTE_TIMEOUT_SEC: Final[float] = 5.0

CACHE_COORDINATE_PRECISION: Final[int] = 3  # ~110 m at the equator
CACHE_MAX_ENTRIES: Final[int] = 1024
