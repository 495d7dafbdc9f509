"""Tests for distance helpers."""

import pytest

from civicwatch.services.geo import EARTH_RADIUS_KM, bounding_box, haversine_km


class TestHaversine:
    """Tests for haversine_km."""

    def test_same_point_is_zero(self):
        """Identical points must not blow up acos through rounding."""
        assert haversine_km(12.9716, 77.5946, 12.9716, 77.5946) == 0.0

    def test_one_degree_along_equator(self):
        assert haversine_km(0, 0, 0, 1) == pytest.approx(111.19, abs=0.01)

    def test_symmetric(self):
        a = haversine_km(12.97, 77.59, 19.07, 72.87)
        b = haversine_km(19.07, 72.87, 12.97, 77.59)
        assert a == pytest.approx(b)

    def test_antipodes(self):
        assert haversine_km(0, 0, 0, 180) == pytest.approx(3.141592653589793 * EARTH_RADIUS_KM)


class TestBoundingBox:
    """Tests for bounding_box."""

    def test_box_contains_radius(self):
        min_lat, max_lat, min_lng, max_lng = bounding_box(12.97, 77.59, 5)

        assert min_lat < 12.97 < max_lat
        assert min_lng < 77.59 < max_lng
        # Points on the box edge along each axis are at least radius away
        assert haversine_km(12.97, 77.59, max_lat, 77.59) == pytest.approx(5, abs=0.001)
        assert haversine_km(12.97, 77.59, 12.97, max_lng) >= 5

    def test_near_pole_drops_longitude(self):
        min_lat, max_lat, min_lng, max_lng = bounding_box(89.99, 0, 50)

        assert max_lat == 90.0
        assert min_lng is None
        assert max_lng is None

    def test_antimeridian_drops_longitude(self):
        _, _, min_lng, max_lng = bounding_box(0, 179.99, 10)

        assert min_lng is None
        assert max_lng is None

    def test_zero_radius(self):
        min_lat, max_lat, min_lng, max_lng = bounding_box(10, 20, 0)

        assert (min_lat, max_lat, min_lng, max_lng) == (10, 10, 20, 20)
