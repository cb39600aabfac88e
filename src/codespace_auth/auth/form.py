"""Transient state of the auth form."""

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from ..core.config import MIN_PASSWORD_LENGTH
from ..utils.constants import MODE_QUERY_PARAM
from ..utils.errors import CredentialValidationError


class AuthMode(str, Enum):
    SIGN_IN = "login"
    SIGN_UP = "signup"

    @classmethod
    def from_query(cls, params: Optional[Mapping[str, str]]) -> "AuthMode":
        """Seed the mode from query parameters: "signup" is SIGN_UP, anything else SIGN_IN."""
        if params and params.get(MODE_QUERY_PARAM) == cls.SIGN_UP.value:
            return cls.SIGN_UP
        return cls.SIGN_IN

    def toggled(self) -> "AuthMode":
        return AuthMode.SIGN_UP if self is AuthMode.SIGN_IN else AuthMode.SIGN_IN


class FormField(str, Enum):
    NAME = "name"
    EMAIL = "email"
    PASSWORD = "password"


@dataclass
class AuthFormState:
    mode: AuthMode = AuthMode.SIGN_IN
    name: str = ""
    email: str = ""
    password: str = ""
    submitting: bool = False
    focused_field: Optional[FormField] = None
    password_visible: bool = False

    @property
    def status(self) -> str:
        return "submitting" if self.submitting else "idle"


def validate_credentials(
    state: AuthFormState, min_password_length: int = MIN_PASSWORD_LENGTH
) -> None:
    """
    Check the local credential policy before anything is sent.

    Raises:
        CredentialValidationError: If email or password is empty or the
            password is shorter than the policy floor.
    """
    if not state.email:
        raise CredentialValidationError("Email is required")
    if not state.password:
        raise CredentialValidationError("Password is required")
    if len(state.password) < min_password_length:
        raise CredentialValidationError(
            f"Password must be at least {min_password_length} characters"
        )
