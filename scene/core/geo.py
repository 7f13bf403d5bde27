"""Geographic calculations - Pure functions.

This module provides distance and geofence calculations for event locations.
All functions are pure with no side effects.
"""

import math
from dataclasses import dataclass


# Earth's radius in meters
EARTH_RADIUS_M = 6_371_000.0

# Check-in is permitted within this distance of an event
CHECKIN_RADIUS_M = 100.0


@dataclass(frozen=True)
class GeoPoint:
    """A geographic position in degrees.

    Attributes:
        latitude: Latitude in [-90, 90]
        longitude: Longitude in [-180, 180]
    """
    latitude: float
    longitude: float

    @property
    def coordinates(self) -> tuple[float, float]:
        """Return (latitude, longitude) tuple."""
        return (self.latitude, self.longitude)


def calculate_distance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Calculate distance between two points using Haversine formula.

    Pure function. No validation is done here; out-of-range or NaN
    coordinates produce meaningless results (NaN propagates).

    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point

    Returns:
        Distance in meters
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def distance_between(a: GeoPoint, b: GeoPoint) -> float:
    """Distance in meters between two GeoPoints.

    Pure function.
    """
    return calculate_distance(a.latitude, a.longitude, b.latitude, b.longitude)


def is_within_radius(
    center: GeoPoint,
    point: GeoPoint,
    radius_m: float = CHECKIN_RADIUS_M,
) -> bool:
    """Check if a point lies within a radius of a center point.

    Pure function. The boundary is inclusive.

    Args:
        center: Center of the geofence
        point: Point to test
        radius_m: Radius in meters

    Returns:
        True if the point is within the radius
    """
    return distance_between(center, point) <= radius_m


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    """Check that a latitude/longitude pair is finite and in range.

    Pure function.
    """
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        return False
    return -90 <= latitude <= 90 and -180 <= longitude <= 180
