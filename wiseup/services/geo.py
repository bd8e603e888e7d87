"""Zip-code geocoding against the zip_coords reference table."""

from typing import TYPE_CHECKING

import structlog
from haversine import Unit, haversine

if TYPE_CHECKING:
    from wiseup.repositories.base import ReferenceData
    from wiseup.schemas.matching import Coordinates

logger = structlog.get_logger()


def distance_km(a: "Coordinates", b: "Coordinates") -> float:
    return haversine((a.lat, a.lon), (b.lat, b.lon), unit=Unit.KILOMETERS)


class CoordinateLookup:
    """Memoizing resolver of (zip, country) to coordinates.

    Misses are cached too, so an unknown zip costs one query per lookup instance.
    """

    def __init__(self, reference_data: "ReferenceData"):
        self._reference_data = reference_data
        self._cache: dict[tuple[str, str], "Coordinates | None"] = {}

    def __call__(self, zip_code: str, country: str) -> "Coordinates | None":
        key = (zip_code, country)
        if key not in self._cache:
            coords = self._reference_data.find_coordinates(zip_code, country)
            if coords is None:
                logger.info("zip_coords_missing", zip=zip_code, country=country)
            self._cache[key] = coords
        return self._cache[key]
