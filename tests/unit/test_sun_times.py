"""
Almanac Sunrise/Sunset Tests

Unit tests for services/ephemeris/sun_times.py: clock formatting, the
hour-angle solver with its polar cases, and the provider classes.

Run:
    pytest tests/unit/test_sun_times.py -v
"""

import pytest
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, Mock

from almanac.exceptions import SunTimesUnavailableError
from almanac.models import GeoCoordinate, ObservationRequest, SunTimes
from services.ephemeris.julian import julian_day
from services.ephemeris.solar import solar_position
from services.ephemeris.sun_times import (
    FallbackSunTimesProvider,
    LocalSunTimesProvider,
    format_clock,
    horizon_dip_deg,
    normalize_hours,
    solve_sun_times,
)
from services.ephemeris.timezones import NauticalTimezonePolicy, TimezoneOffsetPolicy


YELLOWSTONE = GeoCoordinate(44.4280, -110.5885)
SVALBARD = GeoCoordinate(78.0, 15.0)
EQUATOR = GeoCoordinate(0.0, 0.0)


class FixedOffsetPolicy(TimezoneOffsetPolicy):
    name = "fixed"

    def __init__(self, offset: float):
        self.offset = offset

    def offset_hours(self, coordinate, day):
        return self.offset


def solve(coordinate, day, **kwargs):
    ephemeris = solar_position(julian_day(day))
    return solve_sun_times(coordinate, ephemeris, day, **kwargs)


# =============================================================================
# Formatting helpers
# =============================================================================


class TestFormatClock:
    @pytest.mark.parametrize("hours,expected", [
        (4.65, "4:39 AM"),
        (0.0, "12:00 AM"),
        (12.5, "12:30 PM"),
        (20.1833, "8:11 PM"),
        (23.999, "12:00 AM"),
        (11.9999, "12:00 PM"),
    ])
    def test_format(self, hours, expected):
        assert format_clock(hours) == expected


class TestNormalizeHours:
    @pytest.mark.parametrize("hours,expected", [
        (-1.0, 23.0),
        (25.5, 1.5),
        (24.0, 0.0),
        (6.25, 6.25),
    ])
    def test_wraps_into_day(self, hours, expected):
        assert normalize_hours(hours) == pytest.approx(expected)


class TestHorizonDip:
    def test_sea_level_has_no_dip(self):
        assert horizon_dip_deg(0.0) == 0.0

    def test_dip_grows_with_elevation(self):
        assert horizon_dip_deg(2400.0) == pytest.approx(1.70, abs=0.01)
        assert horizon_dip_deg(100.0) < horizon_dip_deg(2400.0)


# =============================================================================
# Solver
# =============================================================================


class TestSolveSunTimes:
    """Tests for the hour-angle sunrise equation."""

    def test_yellowstone_summer(self):
        """Late June in Yellowstone: sunrise around 4:39 AM, sunset around 8:10 PM MST."""
        sun = solve(YELLOWSTONE, date(2024, 6, 25))

        assert not sun.is_polar
        assert sun.utc_offset_hours == -7.0
        assert 4.5 < sun.sunrise_hours < 4.8
        assert 20.0 < sun.sunset_hours < 20.35
        assert sun.sunrise_local.endswith("AM")
        assert sun.sunset_local.endswith("PM")
        assert sun.day_length_hours == pytest.approx(15.5, abs=0.2)

    def test_svalbard_polar_day(self):
        sun = solve(SVALBARD, date(2024, 6, 21))

        assert sun.is_polar_day
        assert not sun.is_polar_night
        assert sun.sunrise_local is None
        assert sun.sunset_local is None
        assert sun.day_length_hours == 24.0

    def test_svalbard_polar_night(self):
        sun = solve(SVALBARD, date(2024, 12, 21))

        assert sun.is_polar_night
        assert not sun.is_polar_day
        assert sun.sunrise_local is None
        assert sun.day_length_hours == 0.0

    def test_southern_winter_polar_night(self):
        assert solve(GeoCoordinate(-75.0, 0.0), date(2024, 6, 21)).is_polar_night

    def test_arctic_circle_summer_polar_day(self):
        assert solve(GeoCoordinate(67.0, 25.0), date(2024, 6, 21)).is_polar_day

    def test_north_of_circle_winter_polar_night(self):
        assert solve(GeoCoordinate(70.0, 25.0), date(2024, 12, 21)).is_polar_night

    def test_just_north_of_circle_keeps_short_winter_day(self):
        """Refraction lifts the sun above the horizon at 67N on the solstice."""
        sun = solve(GeoCoordinate(67.0, 25.0), date(2024, 12, 21))

        assert not sun.is_polar_night
        assert 1.0 < sun.day_length_hours < 2.0
        assert solve(GeoCoordinate(68.0, 25.0), date(2024, 12, 21)).is_polar_night

    def test_just_north_of_circle_geometric_horizon_polar_night(self):
        sun = solve(GeoCoordinate(67.0, 25.0), date(2024, 12, 21), horizon_altitude_deg=0.0)
        assert sun.is_polar_night

    @pytest.mark.parametrize("latitude,day,polar_day", [
        (90.0, date(2024, 6, 21), True),
        (90.0, date(2024, 12, 21), False),
        (-90.0, date(2024, 6, 21), False),
        (-90.0, date(2024, 12, 21), True),
    ])
    def test_exact_poles(self, latitude, day, polar_day):
        """Poles resolve without dividing by zero."""
        sun = solve(GeoCoordinate(latitude, 0.0), day)
        assert sun.is_polar_day is polar_day
        assert sun.is_polar_night is (not polar_day)

    def test_equator_equinox_geometric_horizon(self):
        """With a geometric horizon the equinox day is twelve hours long."""
        sun = solve(EQUATOR, date(2024, 3, 20), horizon_altitude_deg=0.0)
        assert sun.day_length_hours == pytest.approx(12.0, abs=0.1)

    def test_equator_equinox_standard_horizon(self):
        """Refraction and the solar disc add a few minutes to the equinox day."""
        sun = solve(EQUATOR, date(2024, 3, 20))
        assert 12.0 < sun.day_length_hours < 12.2

    def test_sunrise_before_sunset_in_utc(self):
        sun = solve(YELLOWSTONE, date(2024, 1, 15), timezone_policy=FixedOffsetPolicy(0.0))
        assert 0.0 < sun.day_length_hours < 24.0
        assert sun.utc_offset_hours == 0.0

    def test_timezone_policy_shifts_local_times(self):
        utc = solve(YELLOWSTONE, date(2024, 6, 25), timezone_policy=FixedOffsetPolicy(0.0))
        mst = solve(YELLOWSTONE, date(2024, 6, 25))

        assert (utc.sunrise_hours - mst.sunrise_hours) % 24 == pytest.approx(7.0)
        assert utc.day_length_hours == pytest.approx(mst.day_length_hours)

    def test_nautical_policy(self):
        sun = solve(SVALBARD, date(2024, 3, 20), timezone_policy=NauticalTimezonePolicy())
        assert sun.utc_offset_hours == 1.0
        assert not sun.is_polar

    def test_elevation_dip_lengthens_day(self):
        day = date(2024, 6, 25)
        flat = solve(YELLOWSTONE, day, elevation_m=2400.0)
        dipped = solve(YELLOWSTONE, day, elevation_m=2400.0, apply_elevation_dip=True)

        # Elevation alone changes nothing unless the dip is enabled
        assert flat == solve(YELLOWSTONE, day)
        assert dipped.day_length_hours > flat.day_length_hours

    def test_local_times_within_day(self):
        for month in range(1, 13):
            sun = solve(YELLOWSTONE, date(2024, month, 15))
            assert 0.0 <= sun.sunrise_hours < 24.0
            assert 0.0 <= sun.sunset_hours < 24.0


class TestSunTimesInvariant:
    """SunTimes rejects inconsistent combinations of times and polar flags."""

    def test_times_with_polar_flag_rejected(self):
        with pytest.raises(ValueError):
            SunTimes("6:00 AM", "6:00 PM", 12.0, is_polar_day=True)

    def test_missing_times_without_flag_rejected(self):
        with pytest.raises(ValueError):
            SunTimes(None, None, 0.0)

    def test_both_flags_rejected(self):
        with pytest.raises(ValueError):
            SunTimes(None, None, 0.0, is_polar_day=True, is_polar_night=True)


# =============================================================================
# Providers
# =============================================================================


def make_request(coordinate=YELLOWSTONE, when="2024-06-25"):
    request = ObservationRequest.create(coordinate, when)
    return request, solar_position(julian_day(request.moment))


class TestLocalSunTimesProvider:
    @pytest.mark.asyncio
    async def test_async_matches_sync(self):
        provider = LocalSunTimesProvider()
        request, ephemeris = make_request()

        assert await provider.get_sun_times(request, ephemeris) == provider.solve(request, ephemeris)

    def test_source_is_local(self):
        request, ephemeris = make_request()
        assert LocalSunTimesProvider().solve(request, ephemeris).source == "local"

    def test_uses_configured_policy(self):
        provider = LocalSunTimesProvider(timezone_policy=FixedOffsetPolicy(2.0))
        request, ephemeris = make_request()
        assert provider.solve(request, ephemeris).utc_offset_hours == 2.0


class TestFallbackSunTimesProvider:
    """The fallback answers once the primary raises SunTimesUnavailableError."""

    @pytest.mark.asyncio
    async def test_primary_success_skips_fallback(self):
        request, ephemeris = make_request()
        expected = LocalSunTimesProvider().solve(request, ephemeris)

        primary = Mock(name="primary")
        primary.name = "remote"
        primary.get_sun_times = AsyncMock(return_value=expected)
        fallback = Mock(name="fallback")
        fallback.name = "local"
        fallback.get_sun_times = AsyncMock()

        provider = FallbackSunTimesProvider(primary, fallback)
        result = await provider.get_sun_times(request, ephemeris)

        assert result is expected
        fallback.get_sun_times.assert_not_called()
        assert provider.fallback_count == 0

    @pytest.mark.asyncio
    async def test_primary_failure_uses_fallback_once(self):
        request, ephemeris = make_request()

        primary = Mock(name="primary")
        primary.name = "remote"
        primary.get_sun_times = AsyncMock(
            side_effect=SunTimesUnavailableError("remote", "timed out")
        )
        provider = FallbackSunTimesProvider(primary, LocalSunTimesProvider())

        result = await provider.get_sun_times(request, ephemeris)

        assert result.source == "local"
        assert primary.get_sun_times.await_count == 1
        assert provider.fallback_count == 1
        assert provider.name == "remote->local"

    @pytest.mark.asyncio
    async def test_failure_logged_as_warning(self, caplog):
        request, ephemeris = make_request()
        primary = Mock()
        primary.name = "remote"
        primary.get_sun_times = AsyncMock(
            side_effect=SunTimesUnavailableError("remote", "HTTP 503")
        )
        provider = FallbackSunTimesProvider(primary, LocalSunTimesProvider())

        with caplog.at_level("WARNING", logger="almanac.services.ephemeris.sun_times"):
            await provider.get_sun_times(request, ephemeris)

        assert any("HTTP 503" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self):
        request, ephemeris = make_request()
        primary = Mock()
        primary.name = "remote"
        primary.get_sun_times = AsyncMock(side_effect=RuntimeError("bug"))
        provider = FallbackSunTimesProvider(primary, LocalSunTimesProvider())

        with pytest.raises(RuntimeError):
            await provider.get_sun_times(request, ephemeris)
