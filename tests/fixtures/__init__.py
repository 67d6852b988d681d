"""
Almanac Test Fixtures Package.

Provides mock implementations of external services for testing, so the
engine can be exercised without network access.

Available fixtures:
- MockSunTimesProvider: Simulates the remote sunrise/sunset provider

Usage:
    from tests.fixtures import MockSunTimesProvider

    async def test_outage():
        remote = MockSunTimesProvider()
        remote.set_failure("HTTP 503")
        service = AstronomyService(
            sun_times_provider=FallbackSunTimesProvider(remote, LocalSunTimesProvider())
        )
        report = await service.get_report(GeoCoordinate(44.4, -110.6))
        assert report.sun_times.source == "local"
"""

from tests.fixtures.mock_sun_times import MockSunTimesProvider

__all__ = [
    "MockSunTimesProvider",
]
