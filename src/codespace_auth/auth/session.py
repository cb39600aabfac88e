"""
Session types observed by the auth screen.

Sessions and users are built by identity providers only; the UI reads them
to decide whether someone is signed in.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from ..utils.errors import ProviderError


class AuthChangeEvent(str, Enum):
    """Session-change notifications emitted by identity providers."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"

    @classmethod
    def parse(cls, value: Any) -> Optional["AuthChangeEvent"]:
        """Map a provider's event value to an AuthChangeEvent, or None."""
        if isinstance(value, cls):
            return value
        raw = getattr(value, "value", value)
        try:
            return cls(str(raw).upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class User:
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.user_metadata.get("name") or self.email or self.id


@dataclass(frozen=True)
class Session:
    """An issued session. A session is active when it carries a user."""

    access_token: str
    user: Optional[User] = None
    expires_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.user is not None


def has_active_user(session: Optional[Session]) -> bool:
    """Return True if the session exists and carries a user."""
    return session is not None and session.user is not None


@dataclass
class AuthResult:
    """Outcome of a provider request.

    Attributes:
        error: The provider's error, or None on success.
        session: Session established by the request, if any.
        user: User created or signed in, if any.
        url: Redirect target for OAuth requests.
    """

    error: Optional[ProviderError] = None
    session: Optional[Session] = None
    user: Optional[User] = None
    url: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, message: Optional[str], **kwargs: Any) -> "AuthResult":
        return cls(error=ProviderError(message, **kwargs))
