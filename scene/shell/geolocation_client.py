"""Geolocation Client - Imperative Shell.

This module handles HTTP communication with the Google Geolocation API
for server-side location lookups. Every failure maps to one of the four
LocationError codes; nothing is retried.

All I/O is contained here; the check-in decision is in the core module.
"""

import logging
from typing import Any

import requests

from scene.core.checkin import LocationError, LocationFix


logger = logging.getLogger(__name__)


# Google Geolocation API endpoint
GEOLOCATION_API_URL = "https://www.googleapis.com/geolocation/v1/geolocate"

# Pending lookups resolve as a timeout after this many seconds
DEFAULT_TIMEOUT = 10


class GeolocationClient:
    """Client for resolving a device position via the Geolocation API.

    This is part of the imperative shell - it handles HTTP I/O.
    Without an API key the client reports UNSUPPORTED.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = GEOLOCATION_API_URL,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize geolocation client.

        Args:
            api_key: Geolocation API key
            base_url: API endpoint
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout

    @property
    def supported(self) -> bool:
        return bool(self.api_key) and not self.api_key.startswith("${")

    def _build_payload(
        self,
        wifi_access_points: list[dict[str, Any]] | None,
        consider_ip: bool,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"considerIp": consider_ip}
        if wifi_access_points:
            payload["wifiAccessPoints"] = wifi_access_points
        return payload

    def locate(
        self,
        wifi_access_points: list[dict[str, Any]] | None = None,
        consider_ip: bool = True,
    ) -> LocationFix:
        """Ask the Geolocation API for the current position.

        This method performs HTTP I/O.

        Args:
            wifi_access_points: Nearby access points reported by the device
            consider_ip: Fall back to IP-based location

        Returns:
            LocationFix with a point or a LocationError
        """
        if not self.supported:
            logger.warning("Geolocation lookup requested without an API key")
            return LocationFix.failed(LocationError.UNSUPPORTED)

        logger.info("Requesting location fix from Geolocation API")

        try:
            response = requests.post(
                self.base_url,
                params={"key": self.api_key},
                json=self._build_payload(wifi_access_points, consider_ip),
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.error("Geolocation request timed out after %ds", self.timeout)
            return LocationFix.failed(LocationError.TIMEOUT)
        except requests.RequestException as e:
            logger.error("Geolocation request failed: %s", str(e))
            return LocationFix.failed(LocationError.POSITION_UNAVAILABLE)

        if response.status_code in (401, 403):
            logger.warning(
                "Geolocation API refused request: %d - %s",
                response.status_code,
                response.text,
            )
            return LocationFix.failed(LocationError.PERMISSION_DENIED)

        if response.status_code != 200:
            logger.warning(
                "Geolocation API returned non-200: %d - %s",
                response.status_code,
                response.text,
            )
            return LocationFix.failed(LocationError.POSITION_UNAVAILABLE)

        try:
            data = response.json()
            location = data["location"]
            fix = LocationFix.at(
                float(location["lat"]),
                float(location["lng"]),
                accuracy_m=data.get("accuracy"),
            )
        except (ValueError, KeyError, TypeError) as e:
            logger.error("Unexpected Geolocation API response: %s", str(e))
            return LocationFix.failed(LocationError.POSITION_UNAVAILABLE)

        logger.info(
            "Location fix (%.5f, %.5f) accuracy %s m",
            fix.point.latitude,
            fix.point.longitude,
            fix.accuracy_m,
        )
        return fix
