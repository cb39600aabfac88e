"""Codespace Auth - session layer of the Codespace auth screen.

This package keeps the auth screen in sync with an external identity
provider: password and OAuth-redirect sign-in, and a one-time redirect to the
editor once a session is active.
"""
from .auth import AuthFormController, IdentityProvider, SessionWatcher
from .ui.screen import AuthScreen

__version__ = "0.1.0"
__all__ = ["AuthFormController", "AuthScreen", "IdentityProvider", "SessionWatcher"]
