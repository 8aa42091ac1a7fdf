"""Geo Math: coordinate validation, great-circle distance and radius bounding boxes.

Invariants:
    - Latitude in [-90, 90], longitude in [-180, 180]; anything else is a ValidationError
    - haversine_km is symmetric and returns 0.0 for identical points
    - bounding_box(center, r) contains every point within r km of center
"""

import math
from dataclasses import dataclass

from app.core.errors import ValidationError

EARTH_RADIUS_KM = 6371.0088
KM_PER_MILE = 1.609344


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class BoundingBox:
    min_latitude: float
    max_latitude: float
    min_longitude: float
    max_longitude: float


def validate_coordinates(latitude: object, longitude: object) -> GeoPoint:
    """Return a GeoPoint or raise ValidationError for out-of-range/non-numeric input."""
    valid = (
        isinstance(latitude, (int, float)) and not isinstance(latitude, bool)
        and isinstance(longitude, (int, float)) and not isinstance(longitude, bool)
        and -90 <= latitude <= 90
        and -180 <= longitude <= 180
    )
    if not valid:
        raise ValidationError(
            "Location coordinates must be a valid latitude/longitude pair",
            field="location",
        )
    return GeoPoint(float(latitude), float(longitude))


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    lat1, lat2 = math.radians(a.latitude), math.radians(b.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(b.longitude - a.longitude)
    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def bounding_box(center: GeoPoint, radius_km: float) -> BoundingBox:
    """Coarse lat/lng box around center; used as an indexable SQL prefilter."""
    dlat = math.degrees(radius_km / EARTH_RADIUS_KM)
    cos_lat = math.cos(math.radians(center.latitude))
    if cos_lat < 1e-9 or center.latitude + dlat >= 90 or center.latitude - dlat <= -90:
        # Near a pole every longitude can be in range
        dlon = 180.0
    else:
        dlon = min(180.0, math.degrees(radius_km / (EARTH_RADIUS_KM * cos_lat)))
    return BoundingBox(
        min_latitude=max(-90.0, center.latitude - dlat),
        max_latitude=min(90.0, center.latitude + dlat),
        min_longitude=center.longitude - dlon,
        max_longitude=center.longitude + dlon,
    )


def miles_to_km(miles: float) -> float:
    return miles * KM_PER_MILE
