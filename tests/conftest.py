"""Shared fixtures and fakes for the codespace_auth tests."""
import asyncio
import os
import sys
from typing import Any, Dict, List, Optional, Tuple

import pytest

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../src"))

from codespace_auth.auth.provider import IdentityProvider, Subscription
from codespace_auth.auth.session import AuthChangeEvent, AuthResult, Session, User
from codespace_auth.core.config import AuthConfig

CONFIG_ENV_VARS = (
    "CODESPACE_BASE_URI",
    "CODESPACE_PORT",
    "CODESPACE_EXTERNAL_URL",
    "CODESPACE_EDITOR_ROUTE",
    "CODESPACE_AUTH_ROUTE",
    "CODESPACE_AUTH_REQUEST_TIMEOUT",
    "CODESPACE_IDENTITY_BACKEND",
    "CODESPACE_REQUIRE_EMAIL_CONFIRMATION",
    "SUPABASE_URL",
    "SUPABASE_KEY",
)


def make_session(email: str = "ada@example.com", name: str = "Ada") -> Session:
    return Session(
        access_token="token-123",
        user=User(id="user-1", email=email, user_metadata={"name": name}),
    )


class FakeIdentityProvider(IdentityProvider):
    """Scriptable provider: records calls, can hold requests behind gates.

    Notifications are delivered synchronously by emit() so tests control
    exactly when they arrive.
    """

    def __init__(self, session: Optional[Session] = None) -> None:
        self.session = session
        self.session_error: Optional[Exception] = None
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.results: Dict[str, AuthResult] = {}
        self.raises: Dict[str, Exception] = {}
        self.gates: Dict[str, asyncio.Event] = {}
        self.subscriptions: List[Subscription] = []

    def call_names(self) -> List[str]:
        return [name for name, _ in self.calls]

    def hold(self, name: str) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[name] = gate
        return gate

    def emit(self, event: AuthChangeEvent, session: Optional[Session]) -> None:
        for subscription in list(self.subscriptions):
            subscription.deliver(event, session)

    async def _handle(self, name: str, **kwargs: Any) -> AuthResult:
        self.calls.append((name, kwargs))
        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()
        if name in self.raises:
            raise self.raises[name]
        return self.results.get(name, AuthResult())

    def subscribe_session_changes(self, callback) -> Subscription:
        subscription = Subscription(callback, on_unsubscribe=self.subscriptions.remove)
        self.subscriptions.append(subscription)
        return subscription

    async def get_current_session(self) -> Optional[Session]:
        self.calls.append(("get_current_session", {}))
        gate = self.gates.get("get_current_session")
        if gate is not None:
            await gate.wait()
        if self.session_error is not None:
            raise self.session_error
        return self.session

    async def sign_up(self, email, password, *, email_redirect_to=None, data=None):
        return await self._handle(
            "sign_up",
            email=email,
            password=password,
            email_redirect_to=email_redirect_to,
            data=data,
        )

    async def sign_in_with_password(self, email, password):
        return await self._handle("sign_in_with_password", email=email, password=password)

    async def sign_in_with_oauth(self, provider, *, redirect_to=None):
        return await self._handle(
            "sign_in_with_oauth", provider=provider, redirect_to=redirect_to
        )

    async def sign_out(self):
        return await self._handle("sign_out")


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all codespace configuration from the environment."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def config(clean_env):
    return AuthConfig()


@pytest.fixture
def provider():
    return FakeIdentityProvider()
