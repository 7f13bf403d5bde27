"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config, MapSettings, OAuthSettings) are defined in
scene/core/config.py.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from scene.core.config import Config, MapSettings, OAuthSettings
from scene.core.event import CATEGORIES
from scene.shell.secret_manager_client import SecretManagerClient, SecretManagerConfig


logger = logging.getLogger(__name__)


def _get_secret_manager_client() -> SecretManagerClient | None:
    """Create a Secret Manager client when a GCP project is configured.

    Returns None if GCP_PROJECT is not set (e.g., local development).
    """
    project_id = os.environ.get("GCP_PROJECT") or os.environ.get("GOOGLE_CLOUD_PROJECT")
    if project_id:
        return SecretManagerClient(SecretManagerConfig(project_id=project_id))
    return None


def _resolve_value(value: Any, secret_client: SecretManagerClient | None = None) -> Any:
    """Resolve a value that may contain secret or env var placeholders.

    Args:
        value: Value to resolve (may contain ${...} placeholders)
        secret_client: Client for resolving secrets

    Returns:
        Resolved value
    """
    if not isinstance(value, str):
        return value

    if secret_client:
        return secret_client.resolve(value)

    # No secret client - only handle env vars
    if value.startswith("${") and value.endswith("}"):
        var_spec = value[2:-1]
        if not var_spec.startswith("secret:"):
            env_value = os.environ.get(var_spec)
            if env_value:
                return env_value
            logger.warning("Environment variable %s not set", var_spec)

    return value


def _parse_map(data: dict[str, Any]) -> MapSettings:
    """Parse board map settings from config data."""
    defaults = MapSettings()
    center = data.get("center", {})
    return MapSettings(
        center_latitude=float(center.get("latitude", defaults.center_latitude)),
        center_longitude=float(center.get("longitude", defaults.center_longitude)),
        zoom=int(data.get("zoom", defaults.zoom)),
        width=int(data.get("width", defaults.width)),
        height=int(data.get("height", defaults.height)),
        tile_url=data.get("tile_url", defaults.tile_url),
    )


def _parse_oauth(
    data: dict[str, Any],
    secret_client: SecretManagerClient | None = None,
) -> OAuthSettings:
    """Parse OAuth settings, resolving placeholders."""
    defaults = OAuthSettings()
    return OAuthSettings(
        client_id=_resolve_value(data.get("client_id", defaults.client_id), secret_client),
        client_secret=_resolve_value(data.get("client_secret", defaults.client_secret), secret_client),
        redirect_uri=data.get("redirect_uri", defaults.redirect_uri),
    )


def _parse_categories(data: Any) -> tuple[str, ...]:
    """Parse the category list, keeping order and dropping duplicates."""
    if not data:
        return CATEGORIES
    return tuple(dict.fromkeys(str(c) for c in data))


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only placeholder expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object
    """
    secret_client = _get_secret_manager_client()
    defaults = Config()
    collections = data.get("collections", {})

    return Config(
        firestore_database=data.get("firestore_database"),
        events_collection=collections.get("events", defaults.events_collection),
        interests_collection=collections.get("interests", defaults.interests_collection),
        checkins_collection=collections.get("checkins", defaults.checkins_collection),
        checkin_radius_m=float(data.get("checkin_radius_m", defaults.checkin_radius_m)),
        geolocation_timeout_seconds=int(
            data.get("geolocation_timeout_seconds", defaults.geolocation_timeout_seconds)
        ),
        geolocation_api_key=_resolve_value(
            data.get("geolocation_api_key", defaults.geolocation_api_key),
            secret_client,
        ),
        default_window_days=int(data.get("default_window_days", defaults.default_window_days)),
        categories=_parse_categories(data.get("categories")),
        map=_parse_map(data.get("map", {})),
        oauth=_parse_oauth(data.get("oauth", {}), secret_client),
    )


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O. Falls back to load_config_from_env()
    when the file does not exist.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", "config/config.yaml")

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using environment", path)
        return load_config_from_env()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return Config()

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: database=%s, %d categories, radius %.0f m",
        config.firestore_database or "(default)",
        len(config.categories),
        config.checkin_radius_m,
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Useful for simple deployments without a YAML file.

    Environment variables:
        FIRESTORE_DATABASE: Firestore database name
        GEOLOCATION_API_KEY: Geolocation API key (or GEOLOCATION_API_KEY_SECRET)
        OAUTH_CLIENT_ID: OAuth client ID
        OAUTH_CLIENT_SECRET: OAuth client secret (or OAUTH_CLIENT_SECRET_NAME)
        OAUTH_REDIRECT_URI: OAuth callback URL
        CHECKIN_RADIUS_M: Geofence radius in meters

    Returns:
        Config object from environment
    """
    secret_client = _get_secret_manager_client()

    def secret_or_env(env_var: str, secret_env_var: str) -> str:
        secret_name = os.environ.get(secret_env_var)
        if secret_client and secret_name:
            value = secret_client.get_secret(secret_name)
            if value:
                logger.info("Using %s from Secret Manager", env_var)
                return value
        return os.environ.get(env_var, "")

    defaults = Config()

    return Config(
        firestore_database=os.environ.get("FIRESTORE_DATABASE"),
        checkin_radius_m=float(os.environ.get("CHECKIN_RADIUS_M", defaults.checkin_radius_m)),
        geolocation_api_key=secret_or_env("GEOLOCATION_API_KEY", "GEOLOCATION_API_KEY_SECRET"),
        oauth=OAuthSettings(
            client_id=os.environ.get("OAUTH_CLIENT_ID", ""),
            client_secret=secret_or_env("OAUTH_CLIENT_SECRET", "OAUTH_CLIENT_SECRET_NAME"),
            redirect_uri=os.environ.get("OAUTH_REDIRECT_URI", defaults.oauth.redirect_uri),
        ),
    )
