"""Great-circle distance helpers for proximity search."""

import math

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance in kilometres between two lat/lng points.

    Uses the spherical law of cosines form; the ``acos`` argument is clamped
    because rounding can push it just past 1 for identical points.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_lambda = math.radians(lon2) - math.radians(lon1)

    cos_angle = math.cos(phi1) * math.cos(phi2) * math.cos(delta_lambda) + math.sin(
        phi1
    ) * math.sin(phi2)
    cos_angle = max(-1.0, min(1.0, cos_angle))

    return EARTH_RADIUS_KM * math.acos(cos_angle)


def bounding_box(
    latitude: float, longitude: float, radius_km: float
) -> tuple[float, float, float | None, float | None]:
    """
    Lat/lng box that contains every point within ``radius_km`` of the centre.

    Returns ``(min_lat, max_lat, min_lng, max_lng)``. Longitude bounds are
    ``None`` when the box would wrap the antimeridian or reach a pole, in
    which case callers should not filter on longitude at all.
    """
    angular_radius = radius_km / EARTH_RADIUS_KM
    delta_lat = math.degrees(angular_radius)
    min_lat = max(latitude - delta_lat, -90.0)
    max_lat = min(latitude + delta_lat, 90.0)

    if min_lat <= -90.0 or max_lat >= 90.0:
        return min_lat, max_lat, None, None

    # Longitude half-width of a spherical cap (Matuschek)
    ratio = math.sin(angular_radius) / math.cos(math.radians(latitude))
    if ratio >= 1.0:
        return min_lat, max_lat, None, None
    delta_lng = math.degrees(math.asin(ratio))
    min_lng = longitude - delta_lng
    max_lng = longitude + delta_lng

    if min_lng < -180.0 or max_lng > 180.0:
        return min_lat, max_lat, None, None

    return min_lat, max_lat, min_lng, max_lng
