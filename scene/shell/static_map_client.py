"""Static Map Client - Imperative Shell.

This module renders board map snapshots using OpenStreetMap tiles.
All I/O is contained here; map configuration is in the core module.
"""

import io
import logging
from dataclasses import dataclass

from staticmap import CircleMarker, Line, StaticMap

from scene.core.static_map import GEOFENCE_COLOR, MapConfig


logger = logging.getLogger(__name__)


DEFAULT_TILE_URL = "https://tile.openstreetmap.org/{z}/{x}/{y}.png"


@dataclass
class MapImageResult:
    """Result of map image generation.

    Attributes:
        success: Whether the image was generated successfully
        image_bytes: PNG image data if successful
        error: Error message if failed
    """
    success: bool
    image_bytes: bytes | None = None
    error: str | None = None


class StaticMapClient:
    """Client for rendering static map images.

    This is part of the imperative shell - it handles I/O (fetching map
    tiles and rendering images).
    """

    def __init__(self, tile_url: str | None = None) -> None:
        """Initialize static map client.

        Args:
            tile_url: Custom tile URL template. Defaults to OpenStreetMap.
        """
        self.tile_url = tile_url or DEFAULT_TILE_URL

    def generate_map(self, config: MapConfig) -> MapImageResult:
        """Render a map image from a core MapConfig.

        This method performs I/O (fetches map tiles from tile server).

        Args:
            config: Map configuration from core module

        Returns:
            MapImageResult with PNG bytes or error
        """
        logger.info(
            "Generating static map for (%.4f, %.4f) at zoom %d with %d markers",
            config.latitude,
            config.longitude,
            config.zoom,
            len(config.markers),
        )

        try:
            static_map = StaticMap(
                config.width,
                config.height,
                url_template=self.tile_url,
            )

            if config.geofence:
                # staticmap takes (lon, lat) pairs
                static_map.add_line(Line(
                    [(p.longitude, p.latitude) for p in config.geofence],
                    GEOFENCE_COLOR,
                    2,
                ))

            for marker in config.markers:
                coordinate = (marker.longitude, marker.latitude)
                # White ring first so it renders behind the colored dot
                static_map.add_marker(CircleMarker(coordinate, "white", marker.radius + 3))
                static_map.add_marker(CircleMarker(coordinate, marker.color, marker.radius))

            image = static_map.render(
                zoom=config.zoom,
                center=[config.longitude, config.latitude],
            )

            buffer = io.BytesIO()
            image.save(buffer, format="PNG")
            image_bytes = buffer.getvalue()

            logger.info("Generated map image: %d bytes", len(image_bytes))

            return MapImageResult(
                success=True,
                image_bytes=image_bytes,
            )

        except Exception as e:
            logger.error("Failed to generate map: %s", str(e))
            return MapImageResult(
                success=False,
                error=str(e),
            )
