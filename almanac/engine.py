"""
Almanac Astronomy Engine

Composes the ephemeris, lunar and sky services into one AstronomicalReport.

Two entry points:
- compute_astronomy(): pure and synchronous, uses the local solver only.
  Identical arguments always give an identical report.
- AstronomyService: async façade whose sunrise/sunset come from a
  SunTimesProvider (optionally a remote source with the local solver as
  fallback), with a clock for "now" and an optional caller-owned cache.

Usage:
    from almanac.engine import compute_astronomy
    from almanac.models import GeoCoordinate

    report = compute_astronomy(GeoCoordinate(44.428, -110.5885), "2024-06-25")
    print(report.sun_times.sunrise_local, report.moon_phase.phase.value)

    service = create_astronomy_service(load_config())
    report = await service.get_report(GeoCoordinate(78.0, 15.0))
    report = await service.get_report()   # configured site
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from almanac.cache import AstronomyCache
from almanac.constants import SUNRISE_HORIZON_ALTITUDE_DEG
from almanac.exceptions import InvalidObservationError
from almanac.logging_config import correlation_context, get_logger, log_timing, set_log_level
from almanac.models import (
    AstronomicalReport,
    GeoCoordinate,
    MomentLike,
    MoonPhase,
    ObservationRequest,
    SkyConditions,
    SolarEphemeris,
    SunTimes,
)
from services.ephemeris.julian import julian_day
from services.ephemeris.solar import solar_position
from services.ephemeris.sun_times import (
    FallbackSunTimesProvider,
    LocalSunTimesProvider,
    SunTimesProvider,
)
from services.ephemeris.timezones import TimezoneOffsetPolicy, build_timezone_policy
from services.lunar.moon_phase import moon_phase
from services.sky.conditions import SkyThresholds, sky_conditions

__all__ = [
    "compute_astronomy",
    "AstronomyService",
    "create_astronomy_service",
    "utc_now",
]

logger = get_logger("engine")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


def _sun_independent_parts(
    request: ObservationRequest,
    sky_thresholds: Optional[SkyThresholds],
) -> tuple[SolarEphemeris, MoonPhase, SkyConditions]:
    """Solar position, moon phase and sky tiers; everything but sunrise/sunset."""
    ephemeris = solar_position(julian_day(request.moment))
    moon = moon_phase(request.moment)
    sky = sky_conditions(
        moon.illumination_percent,
        request.moment.month,
        request.coordinate.latitude,
        sky_thresholds,
    )
    return ephemeris, moon, sky


def _build_report(request, ephemeris, moon, sky, sun_times: SunTimes) -> AstronomicalReport:
    return AstronomicalReport(
        request=request,
        sun_times=sun_times,
        moon_phase=moon,
        sky_conditions=sky,
        solar_ephemeris=ephemeris,
    )


def compute_astronomy(
    coordinate: GeoCoordinate,
    when: MomentLike,
    elevation_m: float = 0.0,
    *,
    timezone_policy: Optional[TimezoneOffsetPolicy] = None,
    sky_thresholds: Optional[SkyThresholds] = None,
    horizon_altitude_deg: float = SUNRISE_HORIZON_ALTITUDE_DEG,
    apply_elevation_dip: bool = False,
) -> AstronomicalReport:
    """
    Full astronomical report for one place and instant.

    Pure: no I/O, no clock, no shared state.

    Args:
        coordinate: Validated observer position
        when: datetime, date or ISO-8601 string (naive values are UTC)
        elevation_m: Observer elevation, >= 0
        timezone_policy: Local-time policy (default: US standard-time bands)
        sky_thresholds: Sky heuristic rule table (default: SkyThresholds())
        horizon_altitude_deg: Sun altitude counted as rise/set
        apply_elevation_dip: Lower the horizon for the observer's elevation

    Raises:
        InvalidObservationError: unsupported date value or negative elevation
    """
    request = ObservationRequest.create(coordinate, when, elevation_m)
    solver = LocalSunTimesProvider(
        timezone_policy=timezone_policy,
        horizon_altitude_deg=horizon_altitude_deg,
        apply_elevation_dip=apply_elevation_dip,
    )
    ephemeris, moon, sky = _sun_independent_parts(request, sky_thresholds)
    sun_times = solver.solve(request, ephemeris)
    return _build_report(request, ephemeris, moon, sky, sun_times)


class AstronomyService:
    """
    Async report service with pluggable sunrise/sunset provider.

    The service holds configuration only. A cache, if any, belongs to the
    caller that passes it in and only ever holds the day's sun times; moon
    phase, solar position and sky tiers are computed for every request.
    """

    def __init__(
        self,
        sun_times_provider: Optional[SunTimesProvider] = None,
        timezone_policy: Optional[TimezoneOffsetPolicy] = None,
        sky_thresholds: Optional[SkyThresholds] = None,
        cache: Optional[AstronomyCache] = None,
        clock: Optional[Clock] = None,
        default_coordinate: Optional[GeoCoordinate] = None,
        default_elevation_m: float = 0.0,
    ):
        # timezone_policy only configures the default local provider
        self.sun_times_provider = sun_times_provider or LocalSunTimesProvider(
            timezone_policy=timezone_policy
        )
        self.sky_thresholds = sky_thresholds
        self.cache = cache
        self.clock = clock or utc_now
        self.default_coordinate = default_coordinate
        self.default_elevation_m = default_elevation_m

    def _resolve_request(
        self,
        coordinate: Optional[GeoCoordinate],
        when: Optional[MomentLike],
        elevation_m: Optional[float],
    ) -> ObservationRequest:
        if coordinate is None:
            if self.default_coordinate is None:
                raise InvalidObservationError(
                    "No coordinate given and no default site configured"
                )
            coordinate = self.default_coordinate
            if elevation_m is None:
                elevation_m = self.default_elevation_m
        return ObservationRequest.create(
            coordinate, self.clock() if when is None else when, elevation_m
        )

    async def _sun_times(
        self, request: ObservationRequest, ephemeris: SolarEphemeris
    ) -> SunTimes:
        if self.cache is None:
            return await self.sun_times_provider.get_sun_times(request, ephemeris)

        cached = self.cache.get(request.coordinate, request.day, request.elevation_m)
        if cached is not None:
            logger.debug(f"Sun times cache hit for {request.coordinate} on {request.day}")
            return cached

        sun_times = await self.sun_times_provider.get_sun_times(request, ephemeris)
        self.cache.put(request.coordinate, request.day, sun_times, request.elevation_m)
        return sun_times

    async def get_report(
        self,
        coordinate: Optional[GeoCoordinate] = None,
        when: Optional[MomentLike] = None,
        elevation_m: Optional[float] = None,
    ) -> AstronomicalReport:
        """
        Report for ``coordinate`` at ``when``.

        Without a coordinate the configured default site and its elevation
        are used; without ``when`` the clock's now.

        Never fails because of the sunrise/sunset provider: provider errors
        are handled by FallbackSunTimesProvider.

        Raises:
            InvalidObservationError: invalid input, or no coordinate and no default site
        """
        request = self._resolve_request(coordinate, when, elevation_m)

        where = f"{request.coordinate.latitude},{request.coordinate.longitude} {request.day}"
        with correlation_context(prefix="astro"):
            with log_timing(logger, f"report {where}"):
                ephemeris, moon, sky = _sun_independent_parts(request, self.sky_thresholds)
                sun_times = await self._sun_times(request, ephemeris)
            report = _build_report(request, ephemeris, moon, sky, sun_times)
            logger.info(
                f"Report {where}: sun via {sun_times.source}, moon {moon.phase.value}"
            )
        return report


def create_astronomy_service(
    config,
    cache: Optional[AstronomyCache] = None,
    clock: Optional[Clock] = None,
    session=None,
) -> AstronomyService:
    """
    Build an AstronomyService from an AlmanacConfig.

    The local solver is always present; with ``remote.enabled`` the remote
    provider becomes primary and the local solver its fallback. When
    ``cache.enabled`` is set and no cache is passed, a new AstronomyCache is
    created for this service instance. The configured site becomes the
    default coordinate and ``log_level`` is applied to the almanac loggers.
    """
    set_log_level(config.log_level)

    policy = build_timezone_policy(config.solver.timezone_policy, config.solver.timezone)
    local = LocalSunTimesProvider(
        timezone_policy=policy,
        horizon_altitude_deg=config.solver.horizon_altitude_deg,
        apply_elevation_dip=config.solver.apply_elevation_dip,
    )

    provider: SunTimesProvider = local
    if config.remote.enabled:
        from services.sunrise_api.client import SunriseSunsetApiProvider

        remote = SunriseSunsetApiProvider(
            base_url=config.remote.url,
            timeout_sec=config.remote.timeout,
            timezone_policy=policy,
            session=session,
        )
        provider = FallbackSunTimesProvider(primary=remote, fallback=local)

    if cache is None and config.cache.enabled:
        cache = AstronomyCache(
            precision=config.cache.precision,
            max_entries=config.cache.max_entries,
        )

    logger.info(
        f"Astronomy service: sun times via {provider.name}, timezone policy {policy.name}, "
        f"cache {'on' if cache is not None else 'off'}"
    )
    return AstronomyService(
        sun_times_provider=provider,
        sky_thresholds=config.sky.to_thresholds(),
        cache=cache,
        clock=clock,
        default_coordinate=GeoCoordinate(config.site.latitude, config.site.longitude),
        default_elevation_m=config.site.elevation,
    )


# =============================================================================
# MAIN (for testing)
# =============================================================================

if __name__ == "__main__":
    import asyncio

    from almanac.config import load_config
    from almanac.logging_config import setup_logging

    config = load_config()
    setup_logging(log_level=config.log_level)

    sites = {
        "Yellowstone": GeoCoordinate(44.4280, -110.5885),
        "Svalbard": GeoCoordinate(78.0, 15.0),
        "Quito": GeoCoordinate(-0.18, -78.47),
    }
    print("Almanac Engine Test\n")
    for name, coordinate in sites.items():
        report = compute_astronomy(coordinate, datetime.now(timezone.utc))
        print(f"{name}:")
        for key, value in report.to_dict().items():
            print(f"  {key:22} {value}")
        print()

    service = create_astronomy_service(config)
    report = asyncio.run(service.get_report())
    print(f"{config.site.name} (configured site):")
    for key, value in report.to_dict().items():
        print(f"  {key:22} {value}")
