"""
Auth form controller.

Translates submitted credentials into identity provider requests and surfaces
the outcome through the notification channel. Navigation after success is
left to the SessionWatcher, since a session may only exist after email
confirmation or an OAuth redirect.
"""

import asyncio
import logging
from typing import Awaitable, Optional

from .form import AuthFormState, AuthMode, FormField, validate_credentials
from .provider import IdentityProvider
from .session import AuthResult
from ..core.config import MIN_PASSWORD_LENGTH
from ..ui.notifications import NotificationChannel
from ..utils.constants import (
    DEFAULT_OAUTH_ERROR,
    DEFAULT_SUBMIT_ERROR,
    SIGNIN_SUCCESS_DESCRIPTION,
    SIGNIN_SUCCESS_TITLE,
    SIGNUP_SUCCESS_DESCRIPTION,
    SIGNUP_SUCCESS_TITLE,
)
from ..utils.errors import (
    CredentialValidationError,
    ProviderError,
    ProviderTimeoutError,
    format_error,
)

logger = logging.getLogger(__name__)


class AuthFormController:
    """
    Owns the auth form state and the two request flows.

    Submission is Idle -> Submitting -> Idle; a submit while a request is in
    flight is ignored.
    """

    def __init__(
        self,
        provider: IdentityProvider,
        notifications: NotificationChannel,
        redirect_url: str,
        mode: AuthMode = AuthMode.SIGN_IN,
        min_password_length: int = MIN_PASSWORD_LENGTH,
        request_timeout: Optional[float] = None,
    ) -> None:
        self.provider = provider
        self.notifications = notifications
        self.redirect_url = redirect_url
        self.min_password_length = min_password_length
        self.request_timeout = request_timeout
        self.state = AuthFormState(mode=mode)
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unmount(self) -> None:
        """Discard the form; results of in-flight requests are dropped."""
        self._active = False

    # Field-level setters

    def set_field(self, field: FormField, value: str) -> None:
        setattr(self.state, FormField(field).value, value)

    def set_name(self, value: str) -> None:
        self.state.name = value

    def set_email(self, value: str) -> None:
        self.state.email = value

    def set_password(self, value: str) -> None:
        self.state.password = value

    def focus(self, field: FormField) -> None:
        self.state.focused_field = FormField(field)

    def blur(self) -> None:
        self.state.focused_field = None

    def toggle_password_visibility(self) -> None:
        self.state.password_visible = not self.state.password_visible

    def toggle_mode(self) -> None:
        """Flip between sign-in and sign-up, keeping field values."""
        self.state.mode = self.state.mode.toggled()

    # Request flows

    async def _send(self, request: Awaitable[AuthResult]) -> AuthResult:
        if self.request_timeout is None:
            return await request
        try:
            return await asyncio.wait_for(request, timeout=self.request_timeout)
        except asyncio.TimeoutError:
            raise ProviderTimeoutError(self.request_timeout)

    async def submit_credentials(self) -> bool:
        """
        Submit the form in its current mode.

        Returns:
            True if the provider accepted the request, False if it was
            rejected locally, ignored, or failed.
        """
        if self.state.submitting:
            logger.debug("Submission already in flight, ignoring")
            return False
        if not self._active:
            return False

        try:
            validate_credentials(self.state, self.min_password_length)
        except CredentialValidationError as e:
            logger.debug("Credentials rejected locally: %s", e.message)
            return False

        state = self.state
        state.submitting = True
        mode = state.mode
        try:
            if mode is AuthMode.SIGN_UP:
                result = await self._send(
                    self.provider.sign_up(
                        state.email,
                        state.password,
                        email_redirect_to=self.redirect_url,
                        data={"name": state.name},
                    )
                )
            else:
                result = await self._send(
                    self.provider.sign_in_with_password(state.email, state.password)
                )

            if result.error is not None:
                raise result.error

            if not self._active:
                return True
            if mode is AuthMode.SIGN_UP:
                logger.info("Account created for %s", state.email)
                self.notifications.success(SIGNUP_SUCCESS_TITLE, SIGNUP_SUCCESS_DESCRIPTION)
            else:
                logger.info("Signed in %s", state.email)
                self.notifications.success(SIGNIN_SUCCESS_TITLE, SIGNIN_SUCCESS_DESCRIPTION)
            return True

        except ProviderError as e:
            action = "Sign up" if mode is AuthMode.SIGN_UP else "Sign in"
            logger.warning(format_error(action, e))
            if self._active:
                self.notifications.error(e.message or DEFAULT_SUBMIT_ERROR)
            return False
        except Exception as e:
            logger.error(f"Unexpected error during {mode.value}: {e}", exc_info=True)
            if self._active:
                self.notifications.error(str(e) or DEFAULT_SUBMIT_ERROR)
            return False
        finally:
            if self._active:
                state.submitting = False

    async def sign_in_with_provider(self, name: str) -> Optional[str]:
        """
        Start an OAuth-redirect sign-in with the named provider.

        Returns:
            The URL the browser should be redirected to, or None if the
            provider rejected the request before redirecting.
        """
        try:
            result = await self._send(
                self.provider.sign_in_with_oauth(name, redirect_to=self.redirect_url)
            )
            if result.error is not None:
                raise result.error
        except ProviderError as e:
            logger.warning(format_error(f"OAuth sign in with {name}", e))
            if self._active:
                self.notifications.error(e.message or DEFAULT_OAUTH_ERROR)
            return None
        except Exception as e:
            logger.error(f"Unexpected error starting OAuth with {name}: {e}", exc_info=True)
            if self._active:
                self.notifications.error(str(e) or DEFAULT_OAUTH_ERROR)
            return None

        if not self._active:
            return None
        logger.info("Redirecting to %s for OAuth sign in", name)
        return result.url
