"""
Almanac Remote Sunrise/Sunset Provider

SunTimesProvider backed by a sunrise-sunset.org compatible HTTP API:

    GET {base_url}?lat=..&lng=..&date=YYYY-MM-DD&formatted=0
    {"status": "OK",
     "results": {"sunrise": "<ISO UTC>", "sunset": "<ISO UTC>",
                 "day_length": <seconds>, "polar_day": "0", "polar_night": "0"}}

One attempt per request, bounded by a total timeout. Timeouts, client errors,
non-200 responses, a status other than "OK" and malformed payloads all raise
SunTimesUnavailableError, which FallbackSunTimesProvider turns into a local
computation.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Optional

import aiohttp

from almanac.constants import REMOTE_TIMEOUT_SEC, SUNRISE_SUNSET_API_URL
from almanac.exceptions import SunTimesUnavailableError
from almanac.logging_config import get_logger, log_timing
from almanac.models import ObservationRequest, SolarEphemeris, SunTimes
from services.ephemeris.sun_times import SunTimesProvider, format_clock, normalize_hours
from services.ephemeris.timezones import TimezoneOffsetPolicy, UsLongitudeBandPolicy

__all__ = ["SunriseSunsetApiProvider", "parse_sun_times_payload"]

logger = get_logger("services.sunrise_api.client")

PROVIDER_NAME = "sunrise-sunset.org"


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def _utc_hours(moment: datetime) -> float:
    moment = moment.astimezone(timezone.utc)
    return moment.hour + moment.minute / 60.0 + moment.second / 3600.0


def parse_sun_times_payload(
    payload: dict,
    request: ObservationRequest,
    timezone_policy: TimezoneOffsetPolicy,
    source: str = PROVIDER_NAME,
) -> SunTimes:
    """
    Convert an API payload into SunTimes in local clock time.

    Raises:
        SunTimesUnavailableError: status not OK or payload malformed.
    """
    status = payload.get("status") if isinstance(payload, dict) else None
    if status != "OK":
        raise SunTimesUnavailableError(source, f"API status {status!r}")

    results = payload.get("results")
    if not isinstance(results, dict):
        raise SunTimesUnavailableError(source, "payload has no results object")

    utc_offset = timezone_policy.offset_hours(request.coordinate, request.day)
    is_polar_day = _flag(results.get("polar_day", False))
    is_polar_night = _flag(results.get("polar_night", False))

    if is_polar_day or is_polar_night:
        if is_polar_day and is_polar_night:
            raise SunTimesUnavailableError(source, "both polar_day and polar_night set")
        return SunTimes(
            sunrise_local=None,
            sunset_local=None,
            day_length_hours=24.0 if is_polar_day else 0.0,
            is_polar_day=is_polar_day,
            is_polar_night=is_polar_night,
            utc_offset_hours=utc_offset,
            source=source,
        )

    try:
        sunrise_utc = datetime.fromisoformat(results["sunrise"])
        sunset_utc = datetime.fromisoformat(results["sunset"])
        if "day_length" in results:
            day_length = float(results["day_length"]) / 3600.0
        else:
            day_length = (sunset_utc - sunrise_utc).total_seconds() / 3600.0
    except (KeyError, TypeError, ValueError) as e:
        raise SunTimesUnavailableError(source, f"malformed results: {e}") from e

    sunrise_local = normalize_hours(_utc_hours(sunrise_utc) + utc_offset)
    sunset_local = normalize_hours(_utc_hours(sunset_utc) + utc_offset)

    return SunTimes(
        sunrise_local=format_clock(sunrise_local),
        sunset_local=format_clock(sunset_local),
        day_length_hours=day_length,
        sunrise_hours=sunrise_local,
        sunset_hours=sunset_local,
        utc_offset_hours=utc_offset,
        source=source,
    )


class SunriseSunsetApiProvider(SunTimesProvider):
    """
    Remote sunrise/sunset source.

    Pass ``session`` to share an aiohttp.ClientSession owned by the caller;
    otherwise a short-lived session is opened per request.
    """

    name = PROVIDER_NAME

    def __init__(
        self,
        base_url: str = SUNRISE_SUNSET_API_URL,
        timeout_sec: float = REMOTE_TIMEOUT_SEC,
        timezone_policy: Optional[TimezoneOffsetPolicy] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url
        self.timeout_sec = timeout_sec
        self.timezone_policy = timezone_policy or UsLongitudeBandPolicy()
        self._session = session

    def _unavailable(self, reason: str) -> SunTimesUnavailableError:
        logger.info(f"{self.name} request failed: {reason}")
        return SunTimesUnavailableError(self.name, reason)

    def _params(self, request: ObservationRequest) -> dict:
        return {
            "lat": request.coordinate.latitude,
            "lng": request.coordinate.longitude,
            "date": request.day.isoformat(),
            "formatted": 0,
        }

    async def _fetch(self, session: aiohttp.ClientSession, params: dict) -> dict:
        timeout = aiohttp.ClientTimeout(total=self.timeout_sec)
        async with session.get(self.base_url, params=params, timeout=timeout) as resp:
            status = resp.status
            payload = await resp.json() if status == 200 else None

        if status != 200:
            raise self._unavailable(f"HTTP {status}")
        return payload

    async def get_sun_times(
        self,
        request: ObservationRequest,
        ephemeris: SolarEphemeris,
    ) -> SunTimes:
        params = self._params(request)

        try:
            with log_timing(logger, f"{self.name} request", warn_threshold_sec=self.timeout_sec / 2):
                if self._session is not None:
                    payload = await self._fetch(self._session, params)
                else:
                    async with aiohttp.ClientSession() as session:
                        payload = await self._fetch(session, params)
        except asyncio.TimeoutError as e:
            raise self._unavailable(f"timed out after {self.timeout_sec}s") from e
        except aiohttp.ClientError as e:
            raise self._unavailable(f"client error: {e}") from e
        except ValueError as e:
            # resp.json() on a non-JSON body
            raise self._unavailable(f"invalid JSON: {e}") from e

        sun_times = parse_sun_times_payload(payload, request, self.timezone_policy, self.name)
        logger.debug(
            f"{self.name} sun times for {request.day}: "
            f"{sun_times.sunrise_local} / {sun_times.sunset_local}"
        )
        return sun_times
