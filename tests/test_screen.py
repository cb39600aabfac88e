"""Tests for the auth screen and its notification channel."""
import pytest

from codespace_auth.auth.form import AuthMode
from codespace_auth.auth.session import AuthChangeEvent, AuthResult
from codespace_auth.ui.notifications import NotificationChannel, NotificationVariant
from codespace_auth.ui.screen import AuthScreen, AuthView

from conftest import FakeIdentityProvider, make_session


class TestNotificationChannel:
    """Tests for NotificationChannel."""

    def test_newest_first_and_limited(self):
        channel = NotificationChannel(limit=2)
        channel.success("one")
        channel.success("two")
        channel.error("three")

        titles = [n.title for n in channel.items]
        assert titles == ["Error", "two"]
        assert channel.items[0].variant is NotificationVariant.DESTRUCTIVE

    def test_dismiss_one_and_all(self):
        channel = NotificationChannel()
        first = channel.success("one")
        channel.success("two")

        channel.dismiss(first.id)
        assert [n.title for n in channel.items] == ["two"]

        channel.dismiss()
        assert len(channel) == 0

    def test_drain_clears(self):
        channel = NotificationChannel()
        channel.success("one")

        assert [n.title for n in channel.drain()] == ["one"]
        assert channel.items == []

    def test_ids_are_local_to_each_channel(self):
        first = NotificationChannel()
        second = NotificationChannel()
        first.success("one")
        first.success("two")

        assert second.success("three").id == 1
        assert [n.id for n in first.items] == [2, 1]


class TestAuthView:
    """Tests for the per-mode view model."""

    def test_sign_in_view(self):
        view = AuthView.for_state(AuthMode.SIGN_IN, submitting=False, password_visible=False)
        assert view.headline == "Sign in to your account"
        assert view.submit_label == "Sign in"
        assert view.show_name_field is False
        assert view.show_forgot_password is True
        assert view.password_input_type == "password"
        assert view.submit_disabled is False

    def test_sign_up_view_while_submitting(self):
        view = AuthView.for_state(AuthMode.SIGN_UP, submitting=True, password_visible=True)
        assert view.headline == "Create your account"
        assert view.toggle_prompt == "Already have an account?"
        assert view.show_name_field is True
        assert view.password_input_type == "text"
        assert view.submit_disabled is True


class TestAuthScreen:
    """Tests for the composed screen."""

    def setup_method(self):
        self.provider = FakeIdentityProvider()

    @pytest.mark.asyncio
    async def test_mode_seeded_from_query(self, config):
        screen = AuthScreen(self.provider, {"mode": "signup"}, config=config)
        assert screen.state.mode is AuthMode.SIGN_UP
        assert screen.view().show_name_field is True

    @pytest.mark.asyncio
    async def test_signup_scenario(self, config):
        """Sign-up succeeds; navigation waits for the provider's session."""
        async with AuthScreen(self.provider, {"mode": "signup"}, config=config) as screen:
            await screen.settle()
            screen.controller.set_name("Ada")
            screen.controller.set_email("ada@example.com")
            screen.controller.set_password("secret1")

            assert await screen.controller.submit_credentials() is True
            _, payload = self.provider.calls[-1]
            assert payload["data"] == {"name": "Ada"}
            assert payload["email_redirect_to"].endswith("/editor")
            assert screen.state.submitting is False
            assert screen.notifications.items[0].title == "Account created!"
            assert screen.navigated is False

            self.provider.emit(AuthChangeEvent.SIGNED_IN, make_session())
            assert screen.navigator.current == "/editor"

    @pytest.mark.asyncio
    async def test_short_password_scenario(self, config):
        async with AuthScreen(self.provider, {"mode": "login"}, config=config) as screen:
            await screen.settle()
            screen.controller.set_email("ada@example.com")
            screen.controller.set_password("ab")

            assert await screen.controller.submit_credentials() is False
            assert self.provider.call_names() == ["get_current_session"]
            assert screen.notifications.items == []
            assert screen.view().submit_disabled is False

    @pytest.mark.asyncio
    async def test_oauth_error_scenario(self, config):
        self.provider.results["sign_in_with_oauth"] = AuthResult.failure(
            "Unsupported provider: provider is not enabled"
        )
        async with AuthScreen(self.provider, config=config) as screen:
            await screen.settle()

            assert await screen.controller.sign_in_with_provider("github") is None

            [notification] = screen.notifications.items
            assert notification.description == "Unsupported provider: provider is not enabled"
            assert screen.navigated is False
            assert screen.navigator.current == "/auth"

    @pytest.mark.asyncio
    async def test_unmount_releases_everything(self, config):
        screen = AuthScreen(self.provider, config=config)
        async with screen:
            await screen.settle()
            assert len(self.provider.subscriptions) == 1

        assert self.provider.subscriptions == []
        assert screen.controller.active is False

    @pytest.mark.asyncio
    async def test_uses_given_empty_channel(self, config):
        channel = NotificationChannel()
        self.provider.results["sign_in_with_password"] = AuthResult.failure(
            "Invalid login credentials"
        )
        async with AuthScreen(self.provider, notifications=channel, config=config) as screen:
            await screen.settle()
            screen.controller.set_email("ada@example.com")
            screen.controller.set_password("wrong-pass")

            assert await screen.controller.submit_credentials() is False

        assert screen.notifications is channel
        [notification] = channel.items
        assert notification.description == "Invalid login credentials"
