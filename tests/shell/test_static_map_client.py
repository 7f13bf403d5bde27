"""Tests for the static map client.

StaticMap is patched so no tiles are fetched.
"""

from unittest.mock import MagicMock, patch

import pytest

from scene.core.geo import GeoPoint
from scene.core.static_map import GEOFENCE_COLOR, MapConfig, MapMarker
from scene.shell.static_map_client import DEFAULT_TILE_URL, StaticMapClient


@pytest.fixture
def board_config():
    return MapConfig(
        latitude=51.505,
        longitude=-0.09,
        zoom=13,
        width=800,
        height=600,
        markers=(
            MapMarker(51.5055, -0.0754, "#8b5cf6", 8),
            MapMarker(51.5033, -0.1195, "#3b82f6", 8),
        ),
    )


def fake_image(data: bytes = b"PNGDATA"):
    image = MagicMock()
    image.save.side_effect = lambda buffer, format: buffer.write(data)
    return image


class TestStaticMapClientGenerateMap:
    @patch("scene.shell.static_map_client.StaticMap")
    def test_renders_png(self, MockStaticMap, board_config):
        MockStaticMap.return_value.render.return_value = fake_image()

        result = StaticMapClient().generate_map(board_config)

        assert result.success is True
        assert result.image_bytes == b"PNGDATA"
        MockStaticMap.assert_called_once_with(800, 600, url_template=DEFAULT_TILE_URL)
        MockStaticMap.return_value.render.assert_called_once_with(
            zoom=13, center=[-0.09, 51.505]
        )

    @patch("scene.shell.static_map_client.StaticMap")
    def test_each_marker_gets_outline(self, MockStaticMap, board_config):
        MockStaticMap.return_value.render.return_value = fake_image()

        StaticMapClient().generate_map(board_config)

        added = [c.args[0] for c in MockStaticMap.return_value.add_marker.call_args_list]
        assert len(added) == 4
        assert added[0].color == "white"
        assert added[1].color == "#8b5cf6"
        assert added[1].coord == (-0.0754, 51.5055)
        MockStaticMap.return_value.add_line.assert_not_called()

    @patch("scene.shell.static_map_client.StaticMap")
    def test_geofence_drawn_as_line(self, MockStaticMap, board_config):
        MockStaticMap.return_value.render.return_value = fake_image()
        ring = (GeoPoint(0, 0), GeoPoint(0, 1), GeoPoint(0, 0))
        config = MapConfig(
            latitude=0, longitude=0, zoom=17, width=600, height=400, geofence=ring
        )

        StaticMapClient().generate_map(config)

        line = MockStaticMap.return_value.add_line.call_args.args[0]
        assert line.coords == [(0, 0), (1, 0), (0, 0)]
        assert line.color == GEOFENCE_COLOR

    @patch("scene.shell.static_map_client.StaticMap")
    def test_custom_tile_url(self, MockStaticMap, board_config):
        MockStaticMap.return_value.render.return_value = fake_image()

        StaticMapClient(tile_url="https://tiles.example.com/{z}/{x}/{y}.png").generate_map(
            board_config
        )

        assert MockStaticMap.call_args.kwargs["url_template"] == (
            "https://tiles.example.com/{z}/{x}/{y}.png"
        )

    @patch("scene.shell.static_map_client.StaticMap")
    def test_render_failure(self, MockStaticMap, board_config):
        MockStaticMap.return_value.render.side_effect = RuntimeError("tile server down")

        result = StaticMapClient().generate_map(board_config)

        assert result.success is False
        assert "tile server down" in result.error
        assert result.image_bytes is None
