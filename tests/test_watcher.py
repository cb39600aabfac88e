"""Unit tests for the session watcher."""
import asyncio

import pytest

from codespace_auth.auth.session import AuthChangeEvent, Session
from codespace_auth.auth.watcher import SessionWatcher

from conftest import FakeIdentityProvider, make_session


class TestSessionWatcher:
    """Tests for SessionWatcher mount/unmount and navigation."""

    def setup_method(self):
        self.provider = FakeIdentityProvider()
        self.navigations = []
        self.watcher = SessionWatcher(
            self.provider, self.navigations.append, target="/editor"
        )

    @pytest.mark.asyncio
    async def test_existing_session_navigates_once(self):
        self.provider.session = make_session()

        self.watcher.mount()
        await self.watcher.settled()

        assert self.navigations == ["/editor"]
        self.watcher.unmount()

    @pytest.mark.asyncio
    async def test_session_notification_navigates(self):
        self.watcher.mount()
        await self.watcher.settled()
        assert self.navigations == []

        self.provider.emit(AuthChangeEvent.SIGNED_IN, make_session())

        assert self.navigations == ["/editor"]
        self.watcher.unmount()

    @pytest.mark.asyncio
    async def test_redundant_notifications_navigate_once(self):
        self.provider.session = make_session()
        self.watcher.mount()
        await self.watcher.settled()

        self.provider.emit(AuthChangeEvent.SIGNED_IN, make_session())
        self.provider.emit(AuthChangeEvent.TOKEN_REFRESHED, make_session())

        assert self.navigations == ["/editor"]
        self.watcher.unmount()

    @pytest.mark.asyncio
    async def test_notification_before_query_resolves(self):
        """Notification wins the race; the later query result is absorbed."""
        gate = self.provider.hold("get_current_session")
        self.provider.session = make_session()

        self.watcher.mount()
        await asyncio.sleep(0)
        self.provider.emit(AuthChangeEvent.SIGNED_IN, make_session())
        assert self.navigations == ["/editor"]

        gate.set()
        await self.watcher.settled()
        assert self.navigations == ["/editor"]
        self.watcher.unmount()

    @pytest.mark.asyncio
    async def test_no_active_session_never_navigates(self):
        self.watcher.mount()
        await self.watcher.settled()
        self.provider.emit(AuthChangeEvent.INITIAL_SESSION, None)
        self.provider.emit(
            AuthChangeEvent.TOKEN_REFRESHED, Session(access_token="anon", user=None)
        )

        assert self.navigations == []
        self.watcher.unmount()

    @pytest.mark.asyncio
    async def test_unmount_releases_subscription(self):
        self.watcher.mount()
        await self.watcher.settled()
        assert len(self.provider.subscriptions) == 1

        self.watcher.unmount()
        self.provider.emit(AuthChangeEvent.SIGNED_IN, make_session())

        assert self.provider.subscriptions == []
        assert self.navigations == []

    @pytest.mark.asyncio
    async def test_query_resolving_after_unmount_is_ignored(self):
        gate = self.provider.hold("get_current_session")
        self.provider.session = make_session()

        self.watcher.mount()
        await asyncio.sleep(0)
        self.watcher.unmount()
        gate.set()
        await self.watcher.settled()

        assert self.navigations == []

    @pytest.mark.asyncio
    async def test_query_failure_does_not_raise(self):
        self.provider.session_error = RuntimeError("network down")

        self.watcher.mount()
        await self.watcher.settled()

        assert self.navigations == []
        assert self.watcher.mounted
        self.watcher.unmount()

    @pytest.mark.asyncio
    async def test_signed_out_rearms_navigation(self):
        self.watcher.mount()
        await self.watcher.settled()

        self.provider.emit(AuthChangeEvent.SIGNED_IN, make_session())
        self.provider.emit(AuthChangeEvent.SIGNED_OUT, None)
        self.provider.emit(AuthChangeEvent.SIGNED_IN, make_session("grace@example.com"))

        assert self.navigations == ["/editor", "/editor"]
        self.watcher.unmount()

    @pytest.mark.asyncio
    async def test_remount_navigates_again(self):
        self.provider.session = make_session()
        self.watcher.mount()
        await self.watcher.settled()
        self.watcher.unmount()

        self.watcher.mount()
        await self.watcher.settled()
        self.watcher.unmount()

        assert self.navigations == ["/editor", "/editor"]

    @pytest.mark.asyncio
    async def test_double_mount_subscribes_once(self):
        self.watcher.mount()
        self.watcher.mount()
        await self.watcher.settled()

        assert len(self.provider.subscriptions) == 1
        assert self.provider.call_names().count("get_current_session") == 1
        self.watcher.unmount()

    @pytest.mark.asyncio
    async def test_context_manager_unmounts(self):
        async with self.watcher as watcher:
            await watcher.settled()
            assert watcher.mounted
        assert not self.watcher.mounted
        assert self.provider.subscriptions == []


@pytest.mark.asyncio
@pytest.mark.parametrize("query_active", [True, False])
@pytest.mark.parametrize("notified", [None, "before_query", "after_query"])
async def test_navigation_iff_any_channel_sees_session(query_active, notified):
    provider = FakeIdentityProvider(make_session() if query_active else None)
    gate = provider.hold("get_current_session")
    navigations = []
    watcher = SessionWatcher(provider, navigations.append, target="/editor")

    watcher.mount()
    await asyncio.sleep(0)
    if notified == "before_query":
        provider.emit(AuthChangeEvent.SIGNED_IN, make_session())
    gate.set()
    await watcher.settled()
    if notified == "after_query":
        provider.emit(AuthChangeEvent.SIGNED_IN, make_session())
    watcher.unmount()

    expected = ["/editor"] if (query_active or notified) else []
    assert navigations == expected
