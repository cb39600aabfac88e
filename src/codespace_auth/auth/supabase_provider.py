"""
Supabase identity provider for Codespace Auth.

Adapts the synchronous supabase client to the IdentityProvider interface.
Blocking calls run in a worker thread; session notifications are marshalled
back onto the event loop that subscribed.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from supabase import Client, create_client

from .provider import IdentityProvider, SessionCallback, Subscription
from .session import AuthChangeEvent, AuthResult, Session, User
from ..core.config import AuthConfig, get_auth_config
from ..utils.errors import ConfigurationError, provider_error_from_exception

logger = logging.getLogger(__name__)


def _to_user(raw: Any) -> Optional[User]:
    if raw is None:
        return None
    return User(
        id=str(raw.id),
        email=getattr(raw, "email", None),
        user_metadata=dict(getattr(raw, "user_metadata", None) or {}),
    )


def _to_session(raw: Any) -> Optional[Session]:
    """Convert a supabase session object to a Session."""
    if raw is None:
        return None
    expires_at = getattr(raw, "expires_at", None)
    if isinstance(expires_at, (int, float)):
        expires_at = datetime.fromtimestamp(expires_at, tz=timezone.utc)
    elif not isinstance(expires_at, datetime):
        expires_at = None
    return Session(
        access_token=raw.access_token,
        user=_to_user(getattr(raw, "user", None)),
        expires_at=expires_at,
    )


class SupabaseIdentityProvider(IdentityProvider):
    """Identity provider backed by Supabase Auth."""

    def __init__(self, client: Client) -> None:
        self.client = client

    @classmethod
    def from_config(cls, config: Optional[AuthConfig] = None) -> "SupabaseIdentityProvider":
        """
        Create a provider from SUPABASE_URL and SUPABASE_KEY.

        Raises:
            ConfigurationError: If the Supabase URL or key is missing.
        """
        config = config or get_auth_config()
        if not config.is_supabase_configured():
            raise ConfigurationError(
                "Supabase backend selected but SUPABASE_URL/SUPABASE_KEY are not set"
            )
        client = create_client(config.supabase_url, config.supabase_key)
        logger.info("Created Supabase auth client for %s", config.supabase_url)
        return cls(client)

    async def _request(self, action: str, fn: Any, *args: Any) -> AuthResult:
        try:
            response = await asyncio.to_thread(fn, *args)
        except Exception as e:
            error = provider_error_from_exception(e)
            logger.warning("%s rejected by Supabase: %s", action, error.message)
            return AuthResult(error=error)

        if response is None:
            return AuthResult()
        return AuthResult(
            session=_to_session(getattr(response, "session", None)),
            user=_to_user(getattr(response, "user", None)),
            url=getattr(response, "url", None),
        )

    def subscribe_session_changes(self, callback: SessionCallback) -> Subscription:
        try:
            loop: Optional[asyncio.AbstractEventLoop] = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        subscription: Optional[Subscription] = None

        def relay(event: Any, raw_session: Any) -> None:
            parsed = AuthChangeEvent.parse(event)
            if parsed is None or subscription is None:
                logger.debug("Ignoring Supabase auth event %r", event)
                return
            session = _to_session(raw_session)
            if loop is not None and not loop.is_closed():
                loop.call_soon_threadsafe(subscription.deliver, parsed, session)
            else:
                subscription.deliver(parsed, session)

        upstream = self.client.auth.on_auth_state_change(relay)

        def release(_: Subscription) -> None:
            upstream.unsubscribe()

        subscription = Subscription(callback, on_unsubscribe=release)
        return subscription

    async def get_current_session(self) -> Optional[Session]:
        raw = await asyncio.to_thread(self.client.auth.get_session)
        return _to_session(raw)

    async def sign_up(
        self,
        email: str,
        password: str,
        *,
        email_redirect_to: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> AuthResult:
        options: Dict[str, Any] = {}
        if email_redirect_to:
            options["email_redirect_to"] = email_redirect_to
        if data:
            options["data"] = data
        credentials: Dict[str, Any] = {"email": email, "password": password}
        if options:
            credentials["options"] = options
        return await self._request("Sign up", self.client.auth.sign_up, credentials)

    async def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        return await self._request(
            "Sign in",
            self.client.auth.sign_in_with_password,
            {"email": email, "password": password},
        )

    async def sign_in_with_oauth(
        self, provider: str, *, redirect_to: Optional[str] = None
    ) -> AuthResult:
        credentials: Dict[str, Any] = {"provider": provider}
        if redirect_to:
            credentials["options"] = {"redirect_to": redirect_to}
        return await self._request(
            "OAuth sign in", self.client.auth.sign_in_with_oauth, credentials
        )

    async def sign_out(self) -> AuthResult:
        return await self._request("Sign out", self.client.auth.sign_out)
