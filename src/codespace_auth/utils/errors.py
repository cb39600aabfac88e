"""Custom exceptions for Codespace Auth.

This module provides structured error handling with specific exception types
for different failure scenarios. All exceptions inherit from CodespaceAuthError.
"""
from typing import Any, Optional


class CodespaceAuthError(Exception):
    """Base exception for all codespace-auth errors.

    Attributes:
        message: Human-readable error description, may be empty.
    """

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or ""
        super().__init__(self.message)


class ConfigurationError(CodespaceAuthError):
    """Raised when the environment configuration is invalid."""
    pass


class CredentialValidationError(CodespaceAuthError):
    """Raised when credentials fail the local policy before any request."""
    pass


class ProviderError(CodespaceAuthError):
    """Error reported by the identity provider for a request.

    Attributes:
        status: HTTP-like status code, when the provider gives one.
        code: Machine-readable error code, when the provider gives one.
    """

    def __init__(
        self,
        message: Optional[str] = None,
        status: Optional[int] = None,
        code: Optional[str] = None,
    ) -> None:
        self.status = status
        self.code = code
        super().__init__(message)


class ProviderTimeoutError(ProviderError):
    """Raised when a provider request does not settle in time."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(
            "The request timed out. Please try again.", status=408, code="timeout"
        )


def provider_error_from_exception(error: Any) -> ProviderError:
    """Convert an exception raised by a provider client to a ProviderError.

    Args:
        error: The exception raised by the client library.

    Returns:
        A ProviderError carrying the client's message, status and code.
    """
    if isinstance(error, ProviderError):
        return error
    message = getattr(error, "message", None) or str(error)
    status = getattr(error, "status", None)
    code = getattr(error, "code", None)
    return ProviderError(
        message,
        status=status if isinstance(status, int) else None,
        code=code if isinstance(code, str) else None,
    )


def format_error(action: str, error: Exception) -> str:
    """Format an error message consistently.

    Args:
        action: The action that failed (e.g., "Sign in", "Sign up").
        error: The exception that occurred.

    Returns:
        Formatted error string.
    """
    if isinstance(error, CodespaceAuthError):
        return f"{action} failed: {error.message or type(error).__name__}"
    return f"{action} failed: {str(error)}"
