"""OAuth Sign-in Client - Imperative Shell.

This module handles the OAuth 2.0 authorization-code flow against Google,
resolves access tokens to user identities and publishes sign-in/sign-out
to a SessionChannel.

All I/O is contained here; the identity model is in the core module.
"""

import logging
from dataclasses import dataclass
from typing import Any

import requests
from oauthlib.oauth2 import OAuth2Error
from requests_oauthlib import OAuth2Session

from scene.core.session import SessionChannel, UserIdentity, parse_identity


logger = logging.getLogger(__name__)


# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 10

AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
REVOKE_URL = "https://oauth2.googleapis.com/revoke"

# Must match the scope string Google echoes back in the token response
SCOPES = [
    "openid",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
]


@dataclass
class OAuthCredentials:
    """OAuth 2.0 client credentials.

    Attributes:
        client_id: OAuth client ID
        client_secret: OAuth client secret
        redirect_uri: Registered callback URL
    """
    client_id: str
    client_secret: str
    redirect_uri: str


@dataclass
class SignInResult:
    """Result of completing a sign-in.

    Attributes:
        success: Whether sign-in completed
        identity: Signed-in user if successful
        token: OAuth token dict if successful
        error: Error message if failed
    """
    success: bool
    identity: UserIdentity | None = None
    token: dict[str, Any] | None = None
    error: str | None = None


class AuthClient:
    """Client for signing users in and out via OAuth 2.0.

    This is part of the imperative shell - it handles HTTP I/O.
    Sign-in and sign-out are published to the given SessionChannel only
    after the provider confirms them.
    """

    def __init__(
        self,
        credentials: OAuthCredentials,
        session: SessionChannel | None = None,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize auth client.

        Args:
            credentials: OAuth client credentials
            session: Channel to publish identity changes to
            timeout: Request timeout in seconds
        """
        self.credentials = credentials
        self.session = session or SessionChannel()
        self.timeout = timeout

    def _oauth_session(self, state: str | None = None) -> OAuth2Session:
        return OAuth2Session(
            self.credentials.client_id,
            redirect_uri=self.credentials.redirect_uri,
            scope=SCOPES,
            state=state,
        )

    def authorization_url(self) -> tuple[str, str]:
        """Build the provider URL the user is sent to for sign-in.

        Returns:
            Tuple of (authorization URL, state to verify on callback)
        """
        return self._oauth_session().authorization_url(
            AUTHORIZATION_URL,
            access_type="online",
            prompt="select_account",
        )

    def callback_url(self, query: str) -> str:
        """Rebuild the provider callback from the registered redirect URI.

        The URL the request arrived on can differ in scheme or host when TLS
        is terminated in front of the app, so only its query string is used.
        """
        if not query:
            return self.credentials.redirect_uri
        return f"{self.credentials.redirect_uri}?{query}"

    def complete_sign_in(self, authorization_response: str, state: str) -> SignInResult:
        """Exchange the callback for a token and resolve the identity.

        This method performs HTTP I/O.

        Args:
            authorization_response: Full callback URL including the code
            state: State returned by authorization_url()

        Returns:
            SignInResult with identity and token, or an error
        """
        logger.info("Completing OAuth sign-in")
        oauth = self._oauth_session(state=state)

        try:
            token = oauth.fetch_token(
                TOKEN_URL,
                authorization_response=authorization_response,
                client_secret=self.credentials.client_secret,
                timeout=self.timeout,
            )
            response = oauth.get(USERINFO_URL, timeout=self.timeout)
            response.raise_for_status()
            identity = parse_identity(response.json())
        except (OAuth2Error, requests.RequestException, ValueError) as e:
            logger.error("OAuth sign-in failed: %s", str(e))
            return SignInResult(success=False, error=str(e))

        if identity is None:
            logger.error("Userinfo response had no subject")
            return SignInResult(success=False, error="Identity provider returned no user")

        logger.info("Signed in user %s", identity.user_id)
        self.session.publish(identity)
        return SignInResult(success=True, identity=identity, token=token)

    def identify(self, access_token: str) -> UserIdentity | None:
        """Resolve a bearer access token to a user identity.

        This method performs HTTP I/O.

        Returns:
            UserIdentity, or None if the token is invalid or the call fails
        """
        try:
            response = requests.get(
                USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Userinfo request failed: %s", str(e))
            return None

        if response.status_code != 200:
            logger.info("Access token rejected: %d", response.status_code)
            return None

        try:
            return parse_identity(response.json())
        except ValueError:
            logger.error("Userinfo response was not JSON")
            return None

    def sign_out(self, access_token: str | None = None) -> bool:
        """Revoke the token and clear the session identity.

        This method performs HTTP I/O. The session keeps its identity if
        revocation fails.

        Args:
            access_token: Token to revoke; None just clears the session

        Returns:
            True if sign-out was completed
        """
        if access_token:
            logger.info("Revoking OAuth token")
            try:
                response = requests.post(
                    REVOKE_URL,
                    params={"token": access_token},
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                logger.error("Token revocation failed: %s", str(e))
                return False

            # 400 means the token was already invalid, which is signed out too
            if response.status_code not in (200, 400):
                logger.warning(
                    "Token revocation returned %d - %s",
                    response.status_code,
                    response.text,
                )
                return False

        self.session.publish(None)
        logger.info("Signed out")
        return True
