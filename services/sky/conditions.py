"""
Almanac Sky Conditions

Heuristic viewing hints for trip planning. These are rule tables, not
physics: every threshold is a named field of SkyThresholds so it can be
tuned from configuration and tested on its own.

Milky Way visibility improves as moon illumination drops and as the date
falls inside the hemisphere's galactic-core season. Aurora probability rises
with absolute latitude and is gated toward local winter.
"""

from dataclasses import dataclass, field
from typing import Optional

from almanac.constants import (
    AURORA_HIGH_MIN_LATITUDE,
    AURORA_HIGH_SEASON_MONTHS,
    AURORA_LOW_MIN_LATITUDE,
    AURORA_LOW_SEASON_MONTHS,
    AURORA_MODERATE_MIN_LATITUDE,
    AURORA_MODERATE_SEASON_MONTHS,
    MILKY_WAY_EXCELLENT_MAX_ILLUMINATION,
    MILKY_WAY_FAIR_MAX_ILLUMINATION,
    MILKY_WAY_GOOD_MAX_ILLUMINATION,
    NORTHERN_CORE_SEASON_MONTHS,
    NORTHERN_EXTENDED_SEASON_MONTHS,
    SOUTHERN_CORE_SEASON_MONTHS,
    SOUTHERN_EXTENDED_SEASON_MONTHS,
)
from almanac.models import AuroraProbability, MilkyWayVisibility, SkyConditions

__all__ = ["SkyThresholds", "is_northern", "local_winter_month", "sky_conditions"]


def is_northern(latitude: float) -> bool:
    """Equator counts as northern."""
    return latitude >= 0.0


def local_winter_month(month: int, latitude: float) -> int:
    """
    Express a calendar month as its northern-hemisphere season equivalent.

    Southern latitudes are shifted by six months, so July at -65 behaves like
    January at +65.
    """
    if is_northern(latitude):
        return month
    return (month + 5) % 12 + 1


@dataclass
class SkyThresholds:
    """
    Tunable thresholds for the sky-condition heuristics.

    Illumination limits are exclusive upper bounds in percent; latitude
    limits are exclusive lower bounds on |latitude|; seasons are sets of
    calendar months (1-12).
    """
    milky_way_excellent_max_illumination: float = MILKY_WAY_EXCELLENT_MAX_ILLUMINATION
    milky_way_good_max_illumination: float = MILKY_WAY_GOOD_MAX_ILLUMINATION
    milky_way_fair_max_illumination: float = MILKY_WAY_FAIR_MAX_ILLUMINATION

    northern_core_season: frozenset = field(default=NORTHERN_CORE_SEASON_MONTHS)
    northern_extended_season: frozenset = field(default=NORTHERN_EXTENDED_SEASON_MONTHS)
    southern_core_season: frozenset = field(default=SOUTHERN_CORE_SEASON_MONTHS)
    southern_extended_season: frozenset = field(default=SOUTHERN_EXTENDED_SEASON_MONTHS)

    aurora_high_min_latitude: float = AURORA_HIGH_MIN_LATITUDE
    aurora_moderate_min_latitude: float = AURORA_MODERATE_MIN_LATITUDE
    aurora_low_min_latitude: float = AURORA_LOW_MIN_LATITUDE

    aurora_high_season: frozenset = field(default=AURORA_HIGH_SEASON_MONTHS)
    aurora_moderate_season: frozenset = field(default=AURORA_MODERATE_SEASON_MONTHS)
    aurora_low_season: frozenset = field(default=AURORA_LOW_SEASON_MONTHS)

    def in_core_season(self, month: int, latitude: float) -> bool:
        season = self.northern_core_season if is_northern(latitude) else self.southern_core_season
        return month in season

    def in_extended_season(self, month: int, latitude: float) -> bool:
        season = (
            self.northern_extended_season if is_northern(latitude) else self.southern_extended_season
        )
        return month in season

    def classify_milky_way(
        self, illumination_percent: float, month: int, latitude: float
    ) -> MilkyWayVisibility:
        """Milky Way tier from moon illumination and season."""
        if (
            illumination_percent < self.milky_way_excellent_max_illumination
            and self.in_core_season(month, latitude)
        ):
            return MilkyWayVisibility.EXCELLENT
        elif (
            illumination_percent < self.milky_way_good_max_illumination
            and self.in_extended_season(month, latitude)
        ):
            return MilkyWayVisibility.GOOD
        elif illumination_percent < self.milky_way_fair_max_illumination:
            return MilkyWayVisibility.FAIR
        else:
            return MilkyWayVisibility.POOR

    def classify_aurora(self, month: int, latitude: float) -> AuroraProbability:
        """Aurora tier from |latitude| and local-winter month."""
        abs_lat = abs(latitude)
        season_month = local_winter_month(month, latitude)

        if abs_lat > self.aurora_high_min_latitude and season_month in self.aurora_high_season:
            return AuroraProbability.HIGH
        elif (
            abs_lat > self.aurora_moderate_min_latitude
            and season_month in self.aurora_moderate_season
        ):
            return AuroraProbability.MODERATE
        elif abs_lat > self.aurora_low_min_latitude and season_month in self.aurora_low_season:
            return AuroraProbability.LOW
        else:
            return AuroraProbability.VERY_LOW


def sky_conditions(
    illumination_percent: float,
    month: int,
    latitude: float,
    thresholds: Optional[SkyThresholds] = None,
) -> SkyConditions:
    """
    Viewing tiers for a night.

    Args:
        illumination_percent: Moon illumination, 0-100
        month: Calendar month, 1-12
        latitude: Observer latitude in degrees
        thresholds: Rule table (default: SkyThresholds())
    """
    rules = thresholds or SkyThresholds()
    return SkyConditions(
        milky_way_visibility=rules.classify_milky_way(illumination_percent, month, latitude),
        aurora_probability=rules.classify_aurora(month, latitude),
    )
