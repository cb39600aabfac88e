"""
Authentication session layer for Codespace.

This package provides:
- The identity provider interface and its in-memory and Supabase backends
- The session watcher that keeps signed-in users off the auth screen
- The auth form controller driving password and OAuth-redirect sign-in
"""

from .session import AuthChangeEvent, AuthResult, Session, User, has_active_user
from .provider import IdentityProvider, Subscription
from .memory_provider import InMemoryAuthServer, InMemoryIdentityProvider
from .form import AuthFormState, AuthMode, FormField, validate_credentials
from .watcher import SessionWatcher
from .controller import AuthFormController

__all__ = [
    # Session types
    "AuthChangeEvent",
    "AuthResult",
    "Session",
    "User",
    "has_active_user",
    # Providers
    "IdentityProvider",
    "Subscription",
    "InMemoryAuthServer",
    "InMemoryIdentityProvider",
    # Form
    "AuthFormState",
    "AuthMode",
    "FormField",
    "validate_credentials",
    # Components
    "SessionWatcher",
    "AuthFormController",
]
