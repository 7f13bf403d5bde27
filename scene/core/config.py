"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field

from scene.core.event import CATEGORIES, DEFAULT_CATEGORY
from scene.core.filters import DEFAULT_WINDOW_DAYS
from scene.core.geo import CHECKIN_RADIUS_M
from scene.core.validation import ValidationError, ValidationResult, validate_coordinates


@dataclass
class MapSettings:
    """Board map defaults.

    Attributes:
        center_latitude: Initial map center latitude
        center_longitude: Initial map center longitude
        zoom: Initial zoom level (1-18)
        width: Rendered snapshot width in pixels
        height: Rendered snapshot height in pixels
        tile_url: Tile URL template for rendered snapshots
    """
    center_latitude: float = 51.505
    center_longitude: float = -0.09
    zoom: int = 13
    width: int = 800
    height: int = 600
    tile_url: str = "https://tile.openstreetmap.org/{z}/{x}/{y}.png"


@dataclass
class OAuthSettings:
    """OAuth 2.0 sign-in settings.

    Attributes:
        client_id: OAuth client ID
        client_secret: OAuth client secret
        redirect_uri: Callback URL registered with the provider
    """
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = "https://localhost:8000/api-auth/callback"


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        firestore_database: Firestore database name (None for default)
        events_collection: Firestore collection for events
        interests_collection: Firestore collection for interest records
        checkins_collection: Firestore collection for check-in records
        checkin_radius_m: Geofence radius for check-in
        geolocation_timeout_seconds: Timeout for server-side location lookups
        geolocation_api_key: Geolocation API key (empty disables lookups)
        default_window_days: Width of the default date filter
        categories: Allowed event categories
        map: Board map defaults
        oauth: Sign-in settings
    """
    firestore_database: str | None = None
    events_collection: str = "events"
    interests_collection: str = "interests"
    checkins_collection: str = "checkins"
    checkin_radius_m: float = CHECKIN_RADIUS_M
    geolocation_timeout_seconds: int = 10
    geolocation_api_key: str = ""
    default_window_days: int = DEFAULT_WINDOW_DAYS
    categories: tuple[str, ...] = CATEGORIES
    map: MapSettings = field(default_factory=MapSettings)
    oauth: OAuthSettings = field(default_factory=OAuthSettings)


def _is_unresolved(value: str) -> bool:
    return not value or value.startswith("${")


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    errors.extend(validate_coordinates(
        config.map.center_latitude,
        config.map.center_longitude,
        "map.center",
    ))

    if not 1 <= config.map.zoom <= 18:
        errors.append(ValidationError(
            field="map.zoom",
            message=f"Zoom must be between 1 and 18, got {config.map.zoom}",
        ))

    if config.checkin_radius_m <= 0:
        errors.append(ValidationError(
            field="checkin_radius_m",
            message=f"Check-in radius must be positive, got {config.checkin_radius_m}",
        ))

    if config.geolocation_timeout_seconds <= 0:
        errors.append(ValidationError(
            field="geolocation_timeout_seconds",
            message=f"Timeout must be positive, got {config.geolocation_timeout_seconds}",
        ))

    if config.default_window_days < 0:
        errors.append(ValidationError(
            field="default_window_days",
            message=f"Window must not be negative, got {config.default_window_days}",
        ))

    if DEFAULT_CATEGORY not in config.categories:
        errors.append(ValidationError(
            field="categories",
            message=f"Categories must include '{DEFAULT_CATEGORY}'",
        ))

    if _is_unresolved(config.oauth.client_id) or _is_unresolved(config.oauth.client_secret):
        errors.append(ValidationError(
            field="oauth",
            message="OAuth client credentials not resolved; sign-in disabled",
            severity="warning",
        ))

    if not config.oauth.redirect_uri.startswith("https://"):
        errors.append(ValidationError(
            field="oauth.redirect_uri",
            message="Redirect URI is not https; sign-in needs OAUTHLIB_INSECURE_TRANSPORT=1",
            severity="warning",
        ))

    if _is_unresolved(config.geolocation_api_key):
        errors.append(ValidationError(
            field="geolocation_api_key",
            message="No geolocation API key; server-side location lookups unsupported",
            severity="warning",
        ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
