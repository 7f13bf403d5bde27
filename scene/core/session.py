"""Session identity - Pure data structures.

The signed-in user is an explicit optional value. Components that need to
react to sign-in and sign-out subscribe to a SessionChannel created by the
caller; there is no module-level session.
"""

from dataclasses import dataclass
from typing import Any, Callable


@dataclass(frozen=True)
class UserIdentity:
    """A signed-in user.

    Attributes:
        user_id: Stable identifier from the identity provider
        display_name: Name to show in the UI
        email: Email address (optional)
        avatar_url: Profile picture URL (optional)
    """
    user_id: str
    display_name: str
    email: str | None = None
    avatar_url: str | None = None


def parse_identity(userinfo: dict[str, Any]) -> UserIdentity | None:
    """Parse an OpenID Connect userinfo payload.

    Pure function: returns None when the payload has no subject.
    """
    user_id = userinfo.get("sub")
    if not user_id:
        return None

    return UserIdentity(
        user_id=str(user_id),
        display_name=userinfo.get("name") or userinfo.get("email") or str(user_id),
        email=userinfo.get("email"),
        avatar_url=userinfo.get("picture"),
    )


SessionListener = Callable[[UserIdentity | None], None]


class SessionChannel:
    """Holds the current identity and notifies listeners when it changes."""

    def __init__(self, identity: UserIdentity | None = None) -> None:
        self._identity = identity
        self._listeners: list[SessionListener] = []

    @property
    def current(self) -> UserIdentity | None:
        return self._identity

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener and deliver the current identity to it.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)
        listener(self._identity)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, identity: UserIdentity | None) -> None:
        """Set the identity, notifying listeners only if it changed."""
        if identity == self._identity:
            return

        self._identity = identity
        for listener in list(self._listeners):
            listener(identity)
