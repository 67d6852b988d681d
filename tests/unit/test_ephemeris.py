"""
Almanac Ephemeris Tests

Tests for Julian Day conversion and the low-order solar position series.
"""

import math
import pytest
from datetime import date, datetime, timedelta, timezone

from services.ephemeris.julian import (
    calendar_from_julian_day,
    julian_centuries,
    julian_day,
)
from services.ephemeris.solar import (
    equation_of_center,
    solar_position,
    wrap_degrees_180,
)


# =============================================================================
# Julian Day
# =============================================================================


class TestJulianDay:
    """Tests for calendar -> Julian Day conversion."""

    def test_j2000_epoch(self):
        """2000-01-01 12:00 UTC is JD 2451545.0."""
        assert julian_day(datetime(2000, 1, 1, 12, tzinfo=timezone.utc)) == pytest.approx(2451545.0)

    def test_plain_date_is_midnight_utc(self):
        assert julian_day(date(2000, 1, 6)) == pytest.approx(2451549.5)

    def test_naive_datetime_treated_as_utc(self):
        naive = datetime(2024, 6, 25, 18, 30)
        aware = datetime(2024, 6, 25, 18, 30, tzinfo=timezone.utc)
        assert julian_day(naive) == julian_day(aware)

    def test_aware_datetime_converted_to_utc(self):
        plus_one = timezone(timedelta(hours=1))
        assert julian_day(datetime(2000, 1, 1, 13, tzinfo=plus_one)) == pytest.approx(2451545.0)

    @pytest.mark.parametrize("moment,expected", [
        (datetime(1957, 10, 4, 19, 26, 24, tzinfo=timezone.utc), 2436116.31),
        (datetime(1987, 1, 27, tzinfo=timezone.utc), 2446822.5),
        (datetime(1988, 6, 19, 12, tzinfo=timezone.utc), 2447332.0),
        (datetime(1600, 1, 1, tzinfo=timezone.utc), 2305447.5),
    ])
    def test_reference_dates(self, moment, expected):
        """Published reference values for the Gregorian calendar."""
        assert julian_day(moment) == pytest.approx(expected, abs=1e-6)

    def test_january_and_february_handled(self):
        """Months 1 and 2 roll into the previous year without a discontinuity."""
        feb_28 = julian_day(date(2024, 2, 28))
        feb_29 = julian_day(date(2024, 2, 29))
        mar_1 = julian_day(date(2024, 3, 1))
        assert feb_29 - feb_28 == pytest.approx(1.0)
        assert mar_1 - feb_29 == pytest.approx(1.0)

    def test_microseconds_included(self):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        later = base + timedelta(seconds=43200)
        assert julian_day(later) - julian_day(base) == pytest.approx(0.5)


class TestCalendarFromJulianDay:
    """Tests for Julian Day -> calendar conversion."""

    def test_j2000_epoch(self):
        assert calendar_from_julian_day(2451545.0) == datetime(2000, 1, 1, 12, tzinfo=timezone.utc)

    def test_result_is_utc_aware(self):
        result = calendar_from_julian_day(2460000.25)
        assert result.tzinfo == timezone.utc

    @pytest.mark.parametrize("moment", [
        datetime(1999, 12, 31, 23, 59, 59, tzinfo=timezone.utc),
        datetime(2024, 2, 29, 6, 15, 30, tzinfo=timezone.utc),
        datetime(2024, 6, 25, 11, 39, tzinfo=timezone.utc),
        datetime(2100, 3, 1, tzinfo=timezone.utc),
    ])
    def test_inverse_of_julian_day(self, moment):
        """Converting back lands within a millisecond of the original."""
        restored = calendar_from_julian_day(julian_day(moment))
        assert abs((restored - moment).total_seconds()) < 1e-3


class TestJulianCenturies:
    def test_zero_at_j2000(self):
        assert julian_centuries(2451545.0) == 0.0

    def test_one_century(self):
        assert julian_centuries(2451545.0 + 36525.0) == pytest.approx(1.0)


# =============================================================================
# Solar Position
# =============================================================================


class TestWrapDegrees:
    @pytest.mark.parametrize("angle,expected", [
        (0.0, 0.0),
        (190.0, -170.0),
        (-190.0, 170.0),
        (360.0, 0.0),
        (-180.0, -180.0),
    ])
    def test_wrap(self, angle, expected):
        assert wrap_degrees_180(angle) == pytest.approx(expected)


class TestEquationOfCenter:
    def test_zero_at_perihelion(self):
        assert equation_of_center(0.0, 0.0) == pytest.approx(0.0, abs=1e-9)

    def test_maximum_near_quadrature(self):
        """Largest near a mean anomaly of 90 degrees, about 1.9 degrees."""
        assert equation_of_center(90.0, 0.0) == pytest.approx(1.9143, abs=0.001)


class TestSolarPosition:
    """Tests for declination, right ascension and equation of time."""

    def test_j2000_position(self):
        """Sun near RA 281.3, Dec -23.0 at the J2000 epoch."""
        eph = solar_position(2451545.0)
        assert eph.declination_deg == pytest.approx(-23.03, abs=0.05)
        assert eph.right_ascension_deg == pytest.approx(281.29, abs=0.05)

    def test_june_solstice_declination(self):
        jd = julian_day(datetime(2024, 6, 20, 20, 51, tzinfo=timezone.utc))
        assert solar_position(jd).declination_deg == pytest.approx(23.44, abs=0.02)

    def test_december_solstice_declination(self):
        jd = julian_day(datetime(2024, 12, 21, 9, 20, tzinfo=timezone.utc))
        assert solar_position(jd).declination_deg == pytest.approx(-23.44, abs=0.02)

    def test_march_equinox_declination(self):
        jd = julian_day(datetime(2024, 3, 20, 3, 6, tzinfo=timezone.utc))
        eph = solar_position(jd)
        assert abs(eph.declination_deg) < 0.05
        # RA wraps through 0 at the March equinox
        assert eph.right_ascension_deg < 0.1 or eph.right_ascension_deg > 359.9

    def test_ranges_over_a_year(self):
        start = julian_day(date(2024, 1, 1))
        for offset in range(0, 366, 5):
            eph = solar_position(start + offset)
            assert -23.45 <= eph.declination_deg <= 23.45
            assert 0.0 <= eph.right_ascension_deg < 360.0
            assert math.isfinite(eph.equation_of_time_minutes)

    def test_equation_of_time_extremes(self):
        """About +16.4 min in early November, -14.2 min mid February."""
        november = solar_position(julian_day(date(2024, 11, 3)))
        february = solar_position(julian_day(date(2024, 2, 11)))
        assert november.equation_of_time_minutes == pytest.approx(16.4, abs=0.6)
        assert february.equation_of_time_minutes == pytest.approx(-14.2, abs=0.6)

    def test_deterministic(self):
        jd = julian_day(datetime(2024, 6, 25, tzinfo=timezone.utc))
        assert solar_position(jd) == solar_position(jd)
