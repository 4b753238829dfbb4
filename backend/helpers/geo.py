"""
Coordinate validation and distance helpers for map queries.
"""

import math

from models.exceptions import ValidationException

EARTH_RADIUS_KM = 6371.0088


def validate_coordinates(latitude: float | None, longitude: float | None) -> None:
    """
    Check that a latitude/longitude pair is present and in range.

    Raises:
        ValidationException: If either value is missing, not finite, or out of
            range (-90..90 for latitude, -180..180 for longitude).
    """
    if latitude is None or longitude is None:
        raise ValidationException("Latitude and longitude are required")
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise ValidationException("Coordinates must be finite numbers")
    if not -90 <= latitude <= 90:
        raise ValidationException("Latitude must be between -90 and 90")
    if not -180 <= longitude <= 180:
        raise ValidationException("Longitude must be between -180 and 180")


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(
    latitude: float, longitude: float, radius_km: float
) -> tuple[float, float, float, float]:
    """
    Smallest lat/lng box that contains a circle.

    Used as an index-friendly prefilter before the exact haversine check.
    The longitude span is clamped to the full range near the poles and
    wraps past the antimeridian, in which case min_lng > max_lng.

    Returns:
        (min_lat, max_lat, min_lng, max_lng)
    """
    d_lat = math.degrees(radius_km / EARTH_RADIUS_KM)
    min_lat = max(-90.0, latitude - d_lat)
    max_lat = min(90.0, latitude + d_lat)

    cos_lat = math.cos(math.radians(latitude))
    if cos_lat < 1e-6 or max_lat >= 90.0 or min_lat <= -90.0:
        return min_lat, max_lat, -180.0, 180.0

    d_lng = math.degrees(radius_km / (EARTH_RADIUS_KM * cos_lat))
    if d_lng >= 180.0:
        return min_lat, max_lat, -180.0, 180.0

    min_lng = longitude - d_lng
    max_lng = longitude + d_lng
    if min_lng < -180.0:
        min_lng += 360.0
    elif max_lng > 180.0:
        max_lng -= 360.0
    return min_lat, max_lat, min_lng, max_lng
