"""
Configuration management for Codespace Auth.

This module centralizes the auth screen's configuration: where the app is
served, where signed-in users land, which identity backend to talk to and
how long provider requests may take.
"""

import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from ..utils.errors import ConfigurationError

# Load environment variables from a local .env file, if present
load_dotenv()

MIN_PASSWORD_LENGTH = 6

SUPPORTED_BACKENDS = ("memory", "supabase")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got '{value}'")


class AuthConfig:
    """
    Centralized configuration for the auth screen.

    Provides a single source of truth for routes, origin, timeouts and the
    identity backend selection.
    """

    def __init__(self) -> None:
        # Base server configuration
        self.base_uri = os.getenv("CODESPACE_BASE_URI", "http://localhost")
        try:
            self.port = int(os.getenv("CODESPACE_PORT", "8080"))
        except ValueError:
            raise ConfigurationError("CODESPACE_PORT must be an integer")
        self.base_url = f"{self.base_uri}:{self.port}"

        # External URL for reverse proxy scenarios
        self.external_url = os.getenv("CODESPACE_EXTERNAL_URL")

        # Routes
        self.editor_route = os.getenv("CODESPACE_EDITOR_ROUTE", "/editor")
        self.auth_route = os.getenv("CODESPACE_AUTH_ROUTE", "/auth")

        # Provider request timeout in seconds, 0 disables it
        self.request_timeout = _env_float("CODESPACE_AUTH_REQUEST_TIMEOUT", 30.0)
        if self.request_timeout < 0:
            raise ConfigurationError("CODESPACE_AUTH_REQUEST_TIMEOUT must be >= 0")

        self.min_password_length = MIN_PASSWORD_LENGTH

        # Identity backend
        self.identity_backend = os.getenv("CODESPACE_IDENTITY_BACKEND", "memory").lower()
        if self.identity_backend not in SUPPORTED_BACKENDS:
            raise ConfigurationError(
                f"Unknown identity backend '{self.identity_backend}'. "
                f"Supported: {', '.join(SUPPORTED_BACKENDS)}"
            )
        self.require_email_confirmation = _env_bool(
            "CODESPACE_REQUIRE_EMAIL_CONFIRMATION", False
        )

        # Supabase client configuration
        self.supabase_url = os.getenv("SUPABASE_URL")
        self.supabase_key = os.getenv("SUPABASE_KEY")

    def get_origin(self) -> str:
        """
        Get the public origin of the app.

        Uses CODESPACE_EXTERNAL_URL if set, otherwise the constructed base_url.
        """
        if self.external_url:
            return self.external_url.rstrip("/")
        return self.base_url

    def get_editor_redirect_url(self) -> str:
        """Get the absolute URL of the authenticated landing page."""
        return f"{self.get_origin()}{self.editor_route}"

    def get_timeout(self) -> Optional[float]:
        """Get the provider request timeout, or None when disabled."""
        return self.request_timeout or None

    def is_supabase_configured(self) -> bool:
        """Check if the Supabase backend has a URL and key."""
        return bool(self.supabase_url and self.supabase_key)

    def get_environment_summary(self) -> Dict[str, Any]:
        """Get a summary of the current configuration (excluding secrets)."""
        return {
            "origin": self.get_origin(),
            "editor_route": self.editor_route,
            "auth_route": self.auth_route,
            "request_timeout": self.request_timeout,
            "identity_backend": self.identity_backend,
            "require_email_confirmation": self.require_email_confirmation,
            "supabase_configured": self.is_supabase_configured(),
        }


# Global configuration instance
_auth_config: Optional[AuthConfig] = None


def get_auth_config() -> AuthConfig:
    """Get the global auth configuration instance."""
    global _auth_config
    if _auth_config is None:
        _auth_config = AuthConfig()
    return _auth_config


def reload_auth_config() -> AuthConfig:
    """Reload the auth configuration from environment variables."""
    global _auth_config
    _auth_config = AuthConfig()
    return _auth_config


def get_editor_redirect_url() -> str:
    """Get the absolute URL of the authenticated landing page."""
    return get_auth_config().get_editor_redirect_url()
