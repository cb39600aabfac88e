"""
Auth screen composition.

An AuthScreen is one mount of the authentication page: a SessionWatcher and
an AuthFormController sharing a provider, a notification channel and a
navigator. Mounting is a scoped acquisition; use it as an async context
manager so the session subscription is always released.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from .navigation import Navigator
from .notifications import NotificationChannel
from ..auth.controller import AuthFormController
from ..auth.form import AuthMode
from ..auth.provider import IdentityProvider
from ..auth.watcher import SessionWatcher
from ..core.config import AuthConfig, get_auth_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthView:
    """Mode-dependent copy and layout flags for rendering the form."""

    mode: AuthMode
    headline: str
    subtitle: str
    submit_label: str
    toggle_prompt: str
    toggle_label: str
    show_name_field: bool
    show_forgot_password: bool
    password_input_type: str
    submit_disabled: bool

    @classmethod
    def for_state(cls, mode: AuthMode, submitting: bool, password_visible: bool) -> "AuthView":
        signing_in = mode is AuthMode.SIGN_IN
        return cls(
            mode=mode,
            headline="Sign in to your account" if signing_in else "Create your account",
            subtitle=(
                "Enter your credentials to continue"
                if signing_in
                else "Fill in your details to get started"
            ),
            submit_label="Sign in" if signing_in else "Create account",
            toggle_prompt="Don't have an account?" if signing_in else "Already have an account?",
            toggle_label="Sign up" if signing_in else "Sign in",
            show_name_field=not signing_in,
            show_forgot_password=signing_in,
            password_input_type="text" if password_visible else "password",
            submit_disabled=submitting,
        )


class AuthScreen:
    """One mounted instance of the auth page."""

    def __init__(
        self,
        provider: IdentityProvider,
        query_params: Optional[Mapping[str, str]] = None,
        navigator: Optional[Navigator] = None,
        notifications: Optional[NotificationChannel] = None,
        config: Optional[AuthConfig] = None,
    ) -> None:
        self.config = config if config is not None else get_auth_config()
        self.provider = provider
        self.navigator = (
            navigator if navigator is not None else Navigator(self.config.auth_route)
        )
        self.notifications = (
            notifications if notifications is not None else NotificationChannel()
        )
        self.watcher = SessionWatcher(
            provider, self.navigator.navigate, target=self.config.editor_route
        )
        self.controller = AuthFormController(
            provider,
            self.notifications,
            redirect_url=self.config.get_editor_redirect_url(),
            mode=AuthMode.from_query(query_params),
            min_password_length=self.config.min_password_length,
            request_timeout=self.config.get_timeout(),
        )

    @property
    def state(self):
        return self.controller.state

    @property
    def navigated(self) -> bool:
        return self.watcher.navigated

    def view(self) -> AuthView:
        state = self.controller.state
        return AuthView.for_state(state.mode, state.submitting, state.password_visible)

    def mount(self) -> None:
        self.watcher.mount()

    def unmount(self) -> None:
        self.watcher.unmount()
        self.controller.unmount()

    async def settle(self) -> None:
        """Wait for the initial session query and any queued notifications."""
        await self.watcher.settled()
        # Provider notifications are delivered on the next loop iteration
        await asyncio.sleep(0)

    async def __aenter__(self) -> "AuthScreen":
        self.mount()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.unmount()
