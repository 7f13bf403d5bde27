"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- Firestore client (events, interests, check-ins)
- OAuth sign-in client (HTTP)
- Geolocation client (HTTP)
- Static map rendering (tile fetches)
- Configuration loading (environment/files/Secret Manager)

Keep this layer thin and simple. All business logic should be in core.
"""

from scene.shell.auth_client import AuthClient, OAuthCredentials
from scene.shell.config_loader import load_config
from scene.shell.firestore_client import FirestoreClient, StoreError
from scene.shell.geolocation_client import GeolocationClient
from scene.shell.static_map_client import StaticMapClient

__all__ = [
    "AuthClient",
    "OAuthCredentials",
    "FirestoreClient",
    "StoreError",
    "GeolocationClient",
    "StaticMapClient",
    "load_config",
]
