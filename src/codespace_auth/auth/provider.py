"""
Identity provider interface for Codespace Auth.

This module defines the boundary between the auth screen and the external
identity service. The screen never owns session state; it only asks the
provider to act and listens for the provider's session notifications.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from .session import AuthChangeEvent, AuthResult, Session

logger = logging.getLogger(__name__)

SessionCallback = Callable[[AuthChangeEvent, Optional[Session]], None]


class Subscription:
    """Handle for a session-change subscription.

    unsubscribe() is idempotent; once called the callback is never invoked
    again.
    """

    def __init__(
        self,
        callback: SessionCallback,
        on_unsubscribe: Optional[Callable[["Subscription"], None]] = None,
    ) -> None:
        self.id = uuid.uuid4().hex
        self.callback = callback
        self._on_unsubscribe = on_unsubscribe
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def deliver(self, event: AuthChangeEvent, session: Optional[Session]) -> None:
        """Invoke the callback unless the subscription was released."""
        if not self._active:
            logger.debug("Dropping %s for released subscription %s", event.value, self.id[:8])
            return
        self.callback(event, session)

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._on_unsubscribe is not None:
            self._on_unsubscribe(self)
        logger.debug("Released session subscription %s", self.id[:8])


class IdentityProvider(ABC):
    """Abstract base class for identity/session providers."""

    @abstractmethod
    def subscribe_session_changes(self, callback: SessionCallback) -> Subscription:
        """Register a callback for session-change notifications."""
        pass

    @abstractmethod
    async def get_current_session(self) -> Optional[Session]:
        """Return the current session, or None when signed out."""
        pass

    @abstractmethod
    async def sign_up(
        self,
        email: str,
        password: str,
        *,
        email_redirect_to: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> AuthResult:
        """Request account creation."""
        pass

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        """Request password authentication."""
        pass

    @abstractmethod
    async def sign_in_with_oauth(
        self, provider: str, *, redirect_to: Optional[str] = None
    ) -> AuthResult:
        """Request an OAuth-redirect sign-in; the result carries the redirect URL."""
        pass

    @abstractmethod
    async def sign_out(self) -> AuthResult:
        """End the current session."""
        pass
