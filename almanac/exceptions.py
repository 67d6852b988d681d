"""
Almanac Exceptions

Exception hierarchy shared by the engine, its services and the configuration
loader. Everything raised on purpose derives from AlmanacError so callers can
catch the whole family in one place.
"""

__all__ = [
    "AlmanacError",
    "ConfigurationError",
    "InvalidObservationError",
    "InvalidCoordinateError",
    "SunTimesUnavailableError",
]


class AlmanacError(Exception):
    """Base class for all almanac errors."""


class ConfigurationError(AlmanacError):
    """Configuration file missing, unreadable or failing validation."""


class InvalidObservationError(AlmanacError, ValueError):
    """Observation request cannot be interpreted (bad date value, negative elevation)."""


class InvalidCoordinateError(InvalidObservationError):
    """Latitude or longitude outside the valid range, or not finite."""

    def __init__(self, latitude: float, longitude: float):
        self.latitude = latitude
        self.longitude = longitude
        super().__init__(
            f"Invalid coordinate: latitude={latitude!r} must be within [-90, 90], "
            f"longitude={longitude!r} must be within [-180, 180]"
        )


class SunTimesUnavailableError(AlmanacError):
    """A sunrise/sunset provider could not answer (timeout, HTTP error, bad payload)."""

    def __init__(self, provider: str, reason: str):
        self.provider = provider
        self.reason = reason
        super().__init__(f"{provider}: {reason}")
