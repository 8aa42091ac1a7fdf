"""Geo Math: coordinate validation, haversine distance and bounding boxes."""

import pytest

from app.config import Settings
from app.core.errors import ValidationError
from app.core.geo import (
    GeoPoint, bounding_box, haversine_km, miles_to_km, validate_coordinates,
)

NYC = GeoPoint(40.7128, -74.0060)
LA = GeoPoint(34.0522, -118.2437)


def test_validate_coordinates_accepts_valid_pair():
    assert validate_coordinates(40.7128, -74.006) == GeoPoint(40.7128, -74.006)


@pytest.mark.parametrize("lat,lng", [
    (91, 0), (-91, 0), (0, 181), (0, -181), ("40", 0), (None, 0), (True, 0),
])
def test_validate_coordinates_rejects_invalid(lat, lng):
    with pytest.raises(ValidationError) as exc:
        validate_coordinates(lat, lng)
    assert exc.value.field == "location"


def test_haversine_zero_for_same_point():
    assert haversine_km(NYC, NYC) == 0.0


def test_haversine_nyc_to_la():
    assert haversine_km(NYC, LA) == pytest.approx(3936, rel=0.01)


def test_haversine_is_symmetric():
    assert haversine_km(NYC, LA) == pytest.approx(haversine_km(LA, NYC))


def test_bounding_box_contains_radius():
    box = bounding_box(NYC, 50)
    assert box.min_latitude < NYC.latitude < box.max_latitude
    assert box.min_longitude < NYC.longitude < box.max_longitude
    north = GeoPoint(NYC.latitude + 0.44, NYC.longitude)  # ~49 km north
    assert box.min_latitude <= north.latitude <= box.max_latitude


def test_bounding_box_near_pole_spans_all_longitudes():
    box = bounding_box(GeoPoint(89.9, 10.0), 50)
    assert box.max_latitude == 90.0
    assert box.max_longitude - box.min_longitude == pytest.approx(360.0)


def test_miles_to_km():
    assert miles_to_km(50) == pytest.approx(80.47, abs=0.01)


def test_default_nearby_radius_is_fifty_miles(monkeypatch):
    monkeypatch.delenv("NEARBY_RADIUS_KM", raising=False)
    assert Settings().nearby_radius_km == miles_to_km(50)
