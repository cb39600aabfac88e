"""
Core utilities package for Codespace Auth.

This package provides shared configuration.
"""

from .config import (
    MIN_PASSWORD_LENGTH,
    AuthConfig,
    get_auth_config,
    get_editor_redirect_url,
    reload_auth_config,
)

__all__ = [
    "MIN_PASSWORD_LENGTH",
    "AuthConfig",
    "get_auth_config",
    "get_editor_redirect_url",
    "reload_auth_config",
]
