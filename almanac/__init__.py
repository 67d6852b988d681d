"""
Almanac - sun, moon and sky conditions for any point on Earth.

The engine lives in almanac.engine; the numeric services under services/.

    from almanac.engine import compute_astronomy
    from almanac.models import GeoCoordinate

    report = compute_astronomy(GeoCoordinate(44.428, -110.5885), "2024-06-25")
    report.to_dict()
"""

from almanac.constants import ALMANAC_VERSION

__version__ = ALMANAC_VERSION
