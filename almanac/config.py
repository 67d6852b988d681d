"""
Almanac Configuration System

Typed configuration for the astronomy engine using pydantic for validation
and YAML for human-readable config files.

Configuration loading priority:
1. Environment variables (ALMANAC_*)
2. Config file passed to load_config()
3. ./almanac.yaml (current directory)
4. ~/.almanac/config.yaml (user home)
5. Built-in defaults

Usage:
    from almanac.config import load_config

    config = load_config()
    print(config.solver.timezone_policy)
    print(config.remote.enabled)

Example almanac.yaml:
    site:
      latitude: 44.428
      longitude: -110.5885
      elevation: 2400
    solver:
      timezone_policy: iana
      timezone: America/Denver
    remote:
      enabled: true
      timeout: 3.0
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from almanac.constants import (
    AURORA_HIGH_MIN_LATITUDE,
    AURORA_HIGH_SEASON_MONTHS,
    AURORA_LOW_MIN_LATITUDE,
    AURORA_LOW_SEASON_MONTHS,
    AURORA_MODERATE_MIN_LATITUDE,
    AURORA_MODERATE_SEASON_MONTHS,
    CACHE_COORDINATE_PRECISION,
    CACHE_MAX_ENTRIES,
    MILKY_WAY_EXCELLENT_MAX_ILLUMINATION,
    MILKY_WAY_FAIR_MAX_ILLUMINATION,
    MILKY_WAY_GOOD_MAX_ILLUMINATION,
    NORTHERN_CORE_SEASON_MONTHS,
    NORTHERN_EXTENDED_SEASON_MONTHS,
    REMOTE_TIMEOUT_SEC,
    SOUTHERN_CORE_SEASON_MONTHS,
    SOUTHERN_EXTENDED_SEASON_MONTHS,
    SUNRISE_HORIZON_ALTITUDE_DEG,
    SUNRISE_SUNSET_API_URL,
)
from almanac.exceptions import ConfigurationError

__all__ = [
    "AlmanacConfig",
    "SiteConfig",
    "SolverConfig",
    "RemoteConfig",
    "CacheConfig",
    "SkyConfig",
    "load_config",
    "get_config_paths",
]

ENV_PREFIX = "ALMANAC_"


# =============================================================================
# Configuration Sections
# =============================================================================


class SiteConfig(BaseModel):
    """Default observing site, used when a caller supplies no coordinate."""

    latitude: float = Field(
        default=44.428,
        ge=-90.0,
        le=90.0,
        description="Site latitude in decimal degrees (positive = North)",
    )
    longitude: float = Field(
        default=-110.5885,
        ge=-180.0,
        le=180.0,
        description="Site longitude in decimal degrees (positive = East)",
    )
    elevation: float = Field(
        default=0.0,
        ge=0.0,
        le=9000.0,
        description="Site elevation in meters above the horizon",
    )
    name: str = Field(
        default="Yellowstone National Park",
        description="Human-readable site name",
    )


class SolverConfig(BaseModel):
    """Local sunrise/sunset solver settings."""

    horizon_altitude_deg: float = Field(
        default=SUNRISE_HORIZON_ALTITUDE_DEG,
        ge=-5.0,
        le=0.0,
        description="Sun altitude counted as rise/set (refraction + semi-diameter)",
    )
    apply_elevation_dip: bool = Field(
        default=False,
        description="Lower the horizon by the dip for the observer's elevation",
    )
    timezone_policy: Literal["us_bands", "nautical", "iana"] = Field(
        default="us_bands",
        description="Local-time policy: US standard-time bands, nautical zones, or IANA (DST-aware)",
    )
    timezone: Optional[str] = Field(
        default=None,
        description="Fixed IANA zone for the 'iana' policy; looked up per coordinate when empty",
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        """Validate timezone is a plausible IANA identifier."""
        if v is None or v == "":
            return None
        if "/" not in v and v not in ("UTC", "GMT"):
            raise ValueError(f"Invalid timezone format: {v}. Use IANA format like 'America/Denver'")
        return v


class RemoteConfig(BaseModel):
    """Remote sunrise/sunset provider settings."""

    enabled: bool = Field(
        default=False,
        description="Use the remote provider as primary, with the local solver as fallback",
    )
    url: str = Field(
        default=SUNRISE_SUNSET_API_URL,
        description="sunrise-sunset.org compatible endpoint",
    )
    timeout: float = Field(
        default=REMOTE_TIMEOUT_SEC,
        ge=0.5,
        le=30.0,
        description="Total request timeout in seconds (single attempt)",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Remote url must be http(s): {v}")
        return v


class CacheConfig(BaseModel):
    """Caller-side sun-times cache settings."""

    enabled: bool = Field(
        default=True,
        description="Create an AstronomyCache for the service",
    )
    precision: int = Field(
        default=CACHE_COORDINATE_PRECISION,
        ge=0,
        le=6,
        description="Decimal places of latitude/longitude in the cache key",
    )
    max_entries: int = Field(
        default=CACHE_MAX_ENTRIES,
        ge=1,
        le=1_000_000,
        description="Maximum cached sun-times entries (least recently used evicted first)",
    )


def _months(values: frozenset) -> list[int]:
    return sorted(values)


class SkyConfig(BaseModel):
    """Sky-condition heuristic thresholds."""

    milky_way_excellent_max_illumination: float = Field(
        default=MILKY_WAY_EXCELLENT_MAX_ILLUMINATION, ge=0.0, le=100.0
    )
    milky_way_good_max_illumination: float = Field(
        default=MILKY_WAY_GOOD_MAX_ILLUMINATION, ge=0.0, le=100.0
    )
    milky_way_fair_max_illumination: float = Field(
        default=MILKY_WAY_FAIR_MAX_ILLUMINATION, ge=0.0, le=100.0
    )

    northern_core_season: list[int] = Field(default_factory=lambda: _months(NORTHERN_CORE_SEASON_MONTHS))
    northern_extended_season: list[int] = Field(default_factory=lambda: _months(NORTHERN_EXTENDED_SEASON_MONTHS))
    southern_core_season: list[int] = Field(default_factory=lambda: _months(SOUTHERN_CORE_SEASON_MONTHS))
    southern_extended_season: list[int] = Field(default_factory=lambda: _months(SOUTHERN_EXTENDED_SEASON_MONTHS))

    aurora_high_min_latitude: float = Field(default=AURORA_HIGH_MIN_LATITUDE, ge=0.0, le=90.0)
    aurora_moderate_min_latitude: float = Field(default=AURORA_MODERATE_MIN_LATITUDE, ge=0.0, le=90.0)
    aurora_low_min_latitude: float = Field(default=AURORA_LOW_MIN_LATITUDE, ge=0.0, le=90.0)

    aurora_high_season: list[int] = Field(default_factory=lambda: _months(AURORA_HIGH_SEASON_MONTHS))
    aurora_moderate_season: list[int] = Field(default_factory=lambda: _months(AURORA_MODERATE_SEASON_MONTHS))
    aurora_low_season: list[int] = Field(default_factory=lambda: _months(AURORA_LOW_SEASON_MONTHS))

    @field_validator(
        "northern_core_season",
        "northern_extended_season",
        "southern_core_season",
        "southern_extended_season",
        "aurora_high_season",
        "aurora_moderate_season",
        "aurora_low_season",
    )
    @classmethod
    def validate_months(cls, v: list[int]) -> list[int]:
        bad = [m for m in v if not 1 <= m <= 12]
        if bad:
            raise ValueError(f"Months must be 1-12, got {bad}")
        return v

    @model_validator(mode="after")
    def validate_ordering(self) -> "SkyConfig":
        """Tiers must tighten from Fair to Excellent and from Low to High."""
        if not (
            self.milky_way_excellent_max_illumination
            <= self.milky_way_good_max_illumination
            <= self.milky_way_fair_max_illumination
        ):
            raise ValueError("Milky Way illumination limits must satisfy excellent <= good <= fair")
        if not (
            self.aurora_low_min_latitude
            <= self.aurora_moderate_min_latitude
            <= self.aurora_high_min_latitude
        ):
            raise ValueError("Aurora latitude limits must satisfy low <= moderate <= high")
        return self

    def to_thresholds(self):
        """Build the SkyThresholds rule table for services/sky."""
        from services.sky.conditions import SkyThresholds

        return SkyThresholds(
            milky_way_excellent_max_illumination=self.milky_way_excellent_max_illumination,
            milky_way_good_max_illumination=self.milky_way_good_max_illumination,
            milky_way_fair_max_illumination=self.milky_way_fair_max_illumination,
            northern_core_season=frozenset(self.northern_core_season),
            northern_extended_season=frozenset(self.northern_extended_season),
            southern_core_season=frozenset(self.southern_core_season),
            southern_extended_season=frozenset(self.southern_extended_season),
            aurora_high_min_latitude=self.aurora_high_min_latitude,
            aurora_moderate_min_latitude=self.aurora_moderate_min_latitude,
            aurora_low_min_latitude=self.aurora_low_min_latitude,
            aurora_high_season=frozenset(self.aurora_high_season),
            aurora_moderate_season=frozenset(self.aurora_moderate_season),
            aurora_low_season=frozenset(self.aurora_low_season),
        )


# =============================================================================
# Master Configuration
# =============================================================================


class AlmanacConfig(BaseModel):
    """Top-level configuration aggregating every section."""

    model_config = ConfigDict(extra="ignore")

    site: SiteConfig = Field(default_factory=SiteConfig)
    solver: SolverConfig = Field(default_factory=SolverConfig)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    sky: SkyConfig = Field(default_factory=SkyConfig)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Global logging level",
    )


# =============================================================================
# Configuration Loading
# =============================================================================


def get_config_paths() -> list[Path]:
    """Config file paths to search, in priority order (first found wins)."""
    home = Path.home()
    return [
        Path("./almanac.yaml"),
        Path("./almanac.yml"),
        home / ".almanac" / "config.yaml",
        home / ".almanac" / "config.yml",
        Path("/etc/almanac/config.yaml"),
    ]


def _convert_env_value(value: str):
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.lstrip("-").isdigit():
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


def _apply_env_overrides(config_dict: dict) -> dict:
    """Apply ALMANAC_SECTION_KEY environment overrides.

    ALMANAC_REMOTE_ENABLED=true       -> remote.enabled
    ALMANAC_SOLVER_TIMEZONE_POLICY=iana -> solver.timezone_policy
    ALMANAC_LOG_LEVEL=DEBUG           -> log_level
    """
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        name = key[len(ENV_PREFIX):].lower()
        if name == "log_level":
            config_dict["log_level"] = value.upper()
            continue

        parts = name.split("_")
        if len(parts) < 2:
            continue

        section = parts[0]
        setting = "_".join(parts[1:])

        if not isinstance(config_dict.get(section), dict):
            config_dict[section] = {}
        config_dict[section][setting] = _convert_env_value(value)

    return config_dict


def load_config(config_path: Optional[str | Path] = None) -> AlmanacConfig:
    """Load configuration from file with validation.

    Args:
        config_path: Explicit config file path, or None for auto-discovery

    Returns:
        Validated AlmanacConfig

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    config_dict: dict = {}

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        config_files = [path]
    else:
        config_files = get_config_paths()

    for path in config_files:
        if path.exists():
            try:
                with open(path, encoding="utf-8") as f:
                    config_dict = yaml.safe_load(f) or {}
                break
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
            except OSError as e:
                raise ConfigurationError(f"Cannot read {path}: {e}") from e

    if not isinstance(config_dict, dict):
        raise ConfigurationError("Top-level configuration must be a mapping")

    config_dict = _apply_env_overrides(config_dict)

    try:
        return AlmanacConfig(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e
