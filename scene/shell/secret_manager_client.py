"""Secret Manager Client - Imperative Shell.

This module reads OAuth client secrets and API keys from Google Cloud
Secret Manager, and resolves "${secret:name}" / "${VAR}" placeholders
found in configuration values.
"""

import logging
import os
from dataclasses import dataclass

from google.cloud import secretmanager


logger = logging.getLogger(__name__)


SECRET_PREFIX = "secret:"


@dataclass
class SecretManagerConfig:
    """Configuration for Secret Manager client.

    Attributes:
        project_id: GCP project ID (None for default)
    """
    project_id: str | None = None


class SecretManagerClient:
    """Client for reading secrets from Google Cloud Secret Manager.

    This is part of the imperative shell - it handles secret I/O.
    """

    def __init__(self, config: SecretManagerConfig | None = None) -> None:
        """Initialize Secret Manager client.

        Args:
            config: Secret Manager configuration
        """
        self.config = config or SecretManagerConfig()
        self._client: secretmanager.SecretManagerServiceClient | None = None

    @property
    def client(self) -> secretmanager.SecretManagerServiceClient:
        """Lazy initialization of Secret Manager client."""
        if self._client is None:
            self._client = secretmanager.SecretManagerServiceClient()
        return self._client

    def get_secret(self, secret_name: str, version: str = "latest") -> str | None:
        """Fetch a secret value from Secret Manager.

        This method performs I/O.

        Args:
            secret_name: Name of the secret (not the full resource path)
            version: Version of the secret (default: "latest")

        Returns:
            Secret value as string, or None if it cannot be read
        """
        if not self.config.project_id:
            logger.error("No project ID configured for Secret Manager")
            return None

        name = f"projects/{self.config.project_id}/secrets/{secret_name}/versions/{version}"

        try:
            logger.info("Fetching secret: %s", secret_name)
            response = self.client.access_secret_version(request={"name": name})
            return response.payload.data.decode("UTF-8")

        except Exception as e:
            logger.error("Failed to fetch secret %s: %s", secret_name, str(e))
            return None

    def resolve(self, value: str) -> str:
        """Resolve a "${secret:name}" or "${VAR}" placeholder.

        Values that are not placeholders, or that cannot be resolved, are
        returned unchanged so validation can flag them.

        Args:
            value: Raw configuration value

        Returns:
            Resolved value
        """
        if not (value.startswith("${") and value.endswith("}")):
            return value

        spec = value[2:-1]

        if spec.startswith(SECRET_PREFIX):
            secret = self.get_secret(spec[len(SECRET_PREFIX):])
            return secret if secret is not None else value

        env_value = os.environ.get(spec)
        if env_value:
            return env_value

        logger.warning("Environment variable %s not set", spec)
        return value
