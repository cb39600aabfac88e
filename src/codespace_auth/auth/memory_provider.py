"""
In-memory identity backend for Codespace Auth.

InMemoryAuthServer plays the part of the hosted identity service: accounts,
email confirmation and OAuth state. InMemoryIdentityProvider is the per-browser
client that holds the current session and notifies subscribers
asynchronously, the way a hosted provider's client library does.

Used for local development and tests; nothing is persisted.
"""

import asyncio
import logging
import re
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from threading import RLock
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlencode

import bcrypt

from .provider import IdentityProvider, SessionCallback, Subscription
from .session import AuthChangeEvent, AuthResult, Session, User
from ..core.config import MIN_PASSWORD_LENGTH
from ..utils.constants import (
    CONFIRMATION_TTL_SECONDS,
    OAUTH_PROVIDERS,
    OAUTH_STATE_TTL_SECONDS,
    SESSION_TTL_SECONDS,
)
from ..utils.errors import ProviderError

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _hash_password(password: str) -> bytes:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())


def _check_password(password: str, password_hash: bytes) -> bool:
    if not password_hash:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), password_hash)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class InMemoryAuthServer:
    """
    Shared account store standing in for a hosted identity service.

    Thread-safe; one instance serves every browser client of the app.
    """

    def __init__(
        self,
        require_email_confirmation: bool = False,
        oauth_providers: Iterable[str] = OAUTH_PROVIDERS,
        site_url: str = "http://localhost:8080",
        session_ttl: int = SESSION_TTL_SECONDS,
        confirmation_ttl: int = CONFIRMATION_TTL_SECONDS,
    ) -> None:
        self.require_email_confirmation = require_email_confirmation
        self.oauth_providers = tuple(p.lower() for p in oauth_providers)
        self.site_url = site_url.rstrip("/")
        self.session_ttl = session_ttl
        self.confirmation_ttl = confirmation_ttl
        self._accounts: Dict[str, Dict[str, Any]] = {}
        self._confirmations: Dict[str, Dict[str, Any]] = {}
        self._oauth_states: Dict[str, Dict[str, Any]] = {}
        self._lock = RLock()
        # Links that would have been mailed, newest last
        self.outbox: List[str] = []

    def _cleanup_expired_oauth_states_locked(self) -> None:
        """Remove expired OAuth state entries. Caller must hold lock."""
        now = datetime.now(timezone.utc)
        expired_states = [
            state
            for state, data in self._oauth_states.items()
            if data["expires_at"] <= now
        ]
        for state in expired_states:
            del self._oauth_states[state]
            logger.debug("Removed expired OAuth state: %s...", state[:8])

    def _cleanup_expired_confirmations_locked(self) -> None:
        """Remove expired confirmation tokens. Caller must hold lock."""
        now = datetime.now(timezone.utc)
        expired_tokens = [
            token
            for token, data in self._confirmations.items()
            if data["expires_at"] <= now
        ]
        for token in expired_tokens:
            del self._confirmations[token]
            logger.debug("Removed expired confirmation token: %s...", token[:8])

    def _user_for(self, account: Dict[str, Any]) -> User:
        return User(
            id=account["id"],
            email=account["email"],
            user_metadata=dict(account["metadata"]),
        )

    def register(
        self,
        email: str,
        password: str,
        metadata: Optional[Dict[str, Any]] = None,
        email_redirect_to: Optional[str] = None,
    ) -> Tuple[User, Optional[str]]:
        """
        Create an account.

        Returns:
            The new user and, when confirmation is required, the confirmation
            token that was "mailed".

        Raises:
            ProviderError: If the email is invalid, the password is too weak,
                or the account already exists.
        """
        key = _normalize_email(email)
        if not _EMAIL_PATTERN.match(key):
            raise ProviderError(
                "Unable to validate email address: invalid format",
                status=400,
                code="validation_failed",
            )
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ProviderError(
                f"Password should be at least {MIN_PASSWORD_LENGTH} characters.",
                status=422,
                code="weak_password",
            )

        with self._lock:
            if key in self._accounts:
                raise ProviderError(
                    "User already registered", status=422, code="user_already_exists"
                )

            account = {
                "id": str(uuid.uuid4()),
                "email": key,
                "password_hash": _hash_password(password),
                "metadata": dict(metadata or {}),
                "confirmed": not self.require_email_confirmation,
            }
            self._accounts[key] = account
            user = self._user_for(account)

            token = None
            if self.require_email_confirmation:
                self._cleanup_expired_confirmations_locked()
                token = secrets.token_urlsafe(24)
                self._confirmations[token] = {
                    "email": key,
                    "redirect_to": email_redirect_to,
                    "expires_at": datetime.now(timezone.utc)
                    + timedelta(seconds=self.confirmation_ttl),
                }
                link = f"{self.site_url}/auth/confirm?{urlencode({'token': token})}"
                self.outbox.append(link)
                logger.info("Confirmation link for %s: %s", key, link)

            logger.info("Registered account %s", key)
            return user, token

    def authenticate(self, email: str, password: str) -> User:
        """
        Verify a password sign-in.

        Raises:
            ProviderError: On unknown email, wrong password or unconfirmed email.
        """
        key = _normalize_email(email)
        with self._lock:
            account = self._accounts.get(key)
            if account is None or not _check_password(password, account["password_hash"]):
                raise ProviderError(
                    "Invalid login credentials", status=400, code="invalid_credentials"
                )
            if not account["confirmed"]:
                raise ProviderError(
                    "Email not confirmed", status=400, code="email_not_confirmed"
                )
            return self._user_for(account)

    def confirm_email(self, token: str) -> Tuple[User, Optional[str]]:
        """
        Consume a confirmation token.

        Returns:
            The confirmed user and the redirect target given at sign-up.
        """
        with self._lock:
            self._cleanup_expired_confirmations_locked()
            pending = self._confirmations.pop(token, None)
            if pending is None:
                raise ProviderError(
                    "Email link is invalid or has expired", status=403, code="otp_expired"
                )
            account = self._accounts[pending["email"]]
            account["confirmed"] = True
            logger.info("Confirmed email for %s", account["email"])
            return self._user_for(account), pending["redirect_to"]

    def issue_session(self, user: User) -> Session:
        return Session(
            access_token=secrets.token_urlsafe(32),
            user=user,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=self.session_ttl),
        )

    def create_oauth_state(
        self, provider: str, redirect_to: Optional[str] = None
    ) -> str:
        """
        Start an OAuth flow and return its state value.

        Raises:
            ProviderError: If the provider is not enabled.
        """
        name = (provider or "").lower()
        if name not in self.oauth_providers:
            raise ProviderError(
                "Unsupported provider: provider is not enabled",
                status=400,
                code="validation_failed",
            )

        with self._lock:
            self._cleanup_expired_oauth_states_locked()
            state = secrets.token_urlsafe(24)
            now = datetime.now(timezone.utc)
            self._oauth_states[state] = {
                "provider": name,
                "redirect_to": redirect_to,
                "created_at": now,
                "expires_at": now + timedelta(seconds=OAUTH_STATE_TTL_SECONDS),
            }
            logger.debug("Stored OAuth state %s... for %s", state[:8], name)
            return state

    def authorize_url(self, state: str) -> str:
        """Build the consent-page URL for a stored OAuth state."""
        with self._lock:
            info = self._oauth_states[state]
        query = {"provider": info["provider"], "state": state}
        if info["redirect_to"]:
            query["redirect_to"] = info["redirect_to"]
        return f"{self.site_url}/auth/v1/authorize?{urlencode(query)}"

    def complete_oauth(
        self, state: str, email: str, name: Optional[str] = None
    ) -> Tuple[User, Optional[str]]:
        """
        Finish an OAuth flow, creating the account on first sign-in.

        Returns:
            The signed-in user and the redirect target of the flow.

        Raises:
            ProviderError: If the state is missing, expired or already used.
        """
        with self._lock:
            self._cleanup_expired_oauth_states_locked()
            info = self._oauth_states.pop(state, None) if state else None
            if info is None:
                logger.error("OAuth completion received unknown or expired state")
                raise ProviderError(
                    "Invalid or expired OAuth state", status=400, code="bad_oauth_state"
                )

            key = _normalize_email(email)
            account = self._accounts.get(key)
            if account is None:
                account = {
                    "id": str(uuid.uuid4()),
                    "email": key,
                    "password_hash": b"",
                    "metadata": {"name": name or key, "provider": info["provider"]},
                    "confirmed": True,
                }
                self._accounts[key] = account
                logger.info("Created %s account for %s", info["provider"], key)
            return self._user_for(account), info["redirect_to"]


class InMemoryIdentityProvider(IdentityProvider):
    """
    Per-browser identity client backed by an InMemoryAuthServer.

    Session notifications are delivered on a later event-loop iteration, never
    synchronously inside the request that caused them.
    """

    def __init__(
        self,
        server: Optional[InMemoryAuthServer] = None,
        latency: float = 0.0,
    ) -> None:
        self.server = server or InMemoryAuthServer()
        self.latency = latency
        self._session: Optional[Session] = None
        self._subscriptions: List[Subscription] = []
        self._lock = RLock()

    async def _simulate_network(self) -> None:
        await asyncio.sleep(self.latency)

    def _dispatch(
        self,
        subscription: Subscription,
        event: AuthChangeEvent,
        session: Optional[Session],
    ) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            subscription.deliver(event, session)
            return
        loop.call_soon(subscription.deliver, event, session)

    def _emit(self, event: AuthChangeEvent, session: Optional[Session]) -> None:
        with self._lock:
            subscribers = list(self._subscriptions)
        logger.debug("Emitting %s to %d subscribers", event.value, len(subscribers))
        for subscription in subscribers:
            self._dispatch(subscription, event, session)

    def _set_session(self, session: Optional[Session], event: AuthChangeEvent) -> None:
        with self._lock:
            self._session = session
        self._emit(event, session)

    def _remove_subscription(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def subscribe_session_changes(self, callback: SessionCallback) -> Subscription:
        subscription = Subscription(callback, on_unsubscribe=self._remove_subscription)
        with self._lock:
            self._subscriptions.append(subscription)
            session = self._session
        self._dispatch(subscription, AuthChangeEvent.INITIAL_SESSION, session)
        return subscription

    async def get_current_session(self) -> Optional[Session]:
        await self._simulate_network()
        with self._lock:
            session = self._session
        if session is not None and session.expires_at is not None:
            if session.expires_at <= datetime.now(timezone.utc):
                logger.info("Session for %s expired", session.user.email if session.user else "?")
                self._set_session(None, AuthChangeEvent.SIGNED_OUT)
                return None
        return session

    async def sign_up(
        self,
        email: str,
        password: str,
        *,
        email_redirect_to: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> AuthResult:
        await self._simulate_network()
        try:
            user, token = self.server.register(
                email, password, metadata=data, email_redirect_to=email_redirect_to
            )
        except ProviderError as e:
            return AuthResult(error=e)

        if token is not None:
            # Session only exists once the email link is followed
            return AuthResult(user=user)

        session = self.server.issue_session(user)
        self._set_session(session, AuthChangeEvent.SIGNED_IN)
        return AuthResult(user=user, session=session)

    async def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        await self._simulate_network()
        try:
            user = self.server.authenticate(email, password)
        except ProviderError as e:
            return AuthResult(error=e)

        session = self.server.issue_session(user)
        self._set_session(session, AuthChangeEvent.SIGNED_IN)
        return AuthResult(user=user, session=session)

    async def sign_in_with_oauth(
        self, provider: str, *, redirect_to: Optional[str] = None
    ) -> AuthResult:
        await self._simulate_network()
        try:
            state = self.server.create_oauth_state(provider, redirect_to)
        except ProviderError as e:
            return AuthResult(error=e)
        return AuthResult(url=self.server.authorize_url(state))

    async def sign_out(self) -> AuthResult:
        await self._simulate_network()
        with self._lock:
            had_session = self._session is not None
        if had_session:
            self._set_session(None, AuthChangeEvent.SIGNED_OUT)
        return AuthResult()

    async def verify_email(self, token: str) -> AuthResult:
        """Follow a confirmation link, establishing a session on success."""
        await self._simulate_network()
        try:
            user, redirect_to = self.server.confirm_email(token)
        except ProviderError as e:
            return AuthResult(error=e)
        session = self.server.issue_session(user)
        self._set_session(session, AuthChangeEvent.SIGNED_IN)
        return AuthResult(user=user, session=session, url=redirect_to)

    async def complete_oauth(
        self, state: str, email: str, name: Optional[str] = None
    ) -> AuthResult:
        """Return from the consent page, establishing a session on success."""
        await self._simulate_network()
        try:
            user, redirect_to = self.server.complete_oauth(state, email, name)
        except ProviderError as e:
            return AuthResult(error=e)
        session = self.server.issue_session(user)
        self._set_session(session, AuthChangeEvent.SIGNED_IN)
        return AuthResult(user=user, session=session, url=redirect_to)
