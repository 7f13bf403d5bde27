"""Static map configuration - Pure functions.

This module provides pure functions for building board map snapshots:
one marker per visible event, colored by category.
The actual image generation (I/O) is handled by the shell layer.
"""

import math
from dataclasses import dataclass, field

from scene.core.event import Event
from scene.core.geo import CHECKIN_RADIUS_M, EARTH_RADIUS_M, GeoPoint


CATEGORY_COLORS: dict[str, str] = {
    "Music": "#8b5cf6",  # violet-500
    "Art": "#ec4899",  # pink-500
    "Food": "#f97316",  # orange-500
    "Sports": "#22c55e",  # green-500
    "Tech": "#3b82f6",  # blue-500
    "Community": "#eab308",  # yellow-500
}

DEFAULT_MARKER_COLOR = "#6b7280"  # gray-500

GEOFENCE_COLOR = "#2563eb"


@dataclass(frozen=True)
class MapMarker:
    """A circle marker on the map.

    Attributes:
        latitude: Marker latitude
        longitude: Marker longitude
        color: Hex fill color
        radius: Radius in pixels
    """
    latitude: float
    longitude: float
    color: str
    radius: int


@dataclass(frozen=True)
class MapConfig:
    """Immutable configuration for a static map image.

    Attributes:
        latitude: Center latitude
        longitude: Center longitude
        zoom: Zoom level (1-18)
        width: Image width in pixels
        height: Image height in pixels
        markers: Event markers, drawn in order
        geofence: Outline points of a check-in geofence (optional)
    """
    latitude: float
    longitude: float
    zoom: int
    width: int
    height: int
    markers: tuple[MapMarker, ...] = field(default_factory=tuple)
    geofence: tuple[GeoPoint, ...] = field(default_factory=tuple)


def get_category_color(category: str) -> str:
    """Get hex marker color for an event category.

    Pure function. Unknown categories and "Other" share a neutral color.
    """
    return CATEGORY_COLORS.get(category, DEFAULT_MARKER_COLOR)


def event_marker(event: Event, radius: int = 8) -> MapMarker:
    """Build the marker for one event.

    Pure function.
    """
    return MapMarker(
        latitude=event.latitude,
        longitude=event.longitude,
        color=get_category_color(event.category),
        radius=radius,
    )


def geofence_outline(
    center: GeoPoint,
    radius_m: float = CHECKIN_RADIUS_M,
    points: int = 36,
) -> tuple[GeoPoint, ...]:
    """Approximate a geofence circle as a closed polygon.

    Pure function. Uses the spherical destination-point formula, so every
    vertex lies radius_m from the center by the haversine distance.

    Args:
        center: Geofence center
        radius_m: Radius in meters
        points: Number of vertices

    Returns:
        Vertices, with the first repeated at the end to close the ring
    """
    lat1 = math.radians(center.latitude)
    lon1 = math.radians(center.longitude)
    angular = radius_m / EARTH_RADIUS_M

    outline = []
    for i in range(points):
        bearing = 2 * math.pi * i / points
        lat2 = math.asin(
            math.sin(lat1) * math.cos(angular)
            + math.cos(lat1) * math.sin(angular) * math.cos(bearing)
        )
        lon2 = lon1 + math.atan2(
            math.sin(bearing) * math.sin(angular) * math.cos(lat1),
            math.cos(angular) - math.sin(lat1) * math.sin(lat2),
        )
        outline.append(GeoPoint(math.degrees(lat2), math.degrees(lon2)))

    outline.append(outline[0])
    return tuple(outline)


def create_board_map_config(
    events: list[Event],
    center: GeoPoint,
    zoom: int = 13,
    width: int = 800,
    height: int = 600,
) -> MapConfig:
    """Create map configuration for the visible events on the board.

    Pure function.

    Args:
        events: Visible events (already filtered)
        center: Map center
        zoom: Zoom level
        width: Image width in pixels
        height: Image height in pixels

    Returns:
        MapConfig with one marker per event
    """
    return MapConfig(
        latitude=center.latitude,
        longitude=center.longitude,
        zoom=zoom,
        width=width,
        height=height,
        markers=tuple(event_marker(e) for e in events),
    )


def create_event_map_config(
    event: Event,
    radius_m: float = CHECKIN_RADIUS_M,
    width: int = 600,
    height: int = 400,
) -> MapConfig:
    """Create map configuration for a single event with its geofence.

    Pure function. Zoomed in close enough for the geofence to be visible.
    """
    return MapConfig(
        latitude=event.latitude,
        longitude=event.longitude,
        zoom=17,
        width=width,
        height=height,
        markers=(event_marker(event, radius=10),),
        geofence=geofence_outline(event.position, radius_m),
    )
