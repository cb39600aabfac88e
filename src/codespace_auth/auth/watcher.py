"""
Session watcher for the auth screen.

Keeps a signed-in user off the auth screen. Two independent listeners feed
the same idempotent navigation action:

1. a subscription to the provider's session-change notifications
2. a one-time query for the current session

Either may observe the active session first, e.g. an OAuth redirect that
completes after the screen was remounted.
"""

import asyncio
import logging
from typing import Callable, Optional

from .provider import IdentityProvider, Subscription
from .session import AuthChangeEvent, Session, has_active_user

logger = logging.getLogger(__name__)


class SessionWatcher:
    """Subscribes to a provider and navigates once an active session is seen."""

    def __init__(
        self,
        provider: IdentityProvider,
        navigate: Callable[[str], None],
        target: str = "/editor",
    ) -> None:
        self.provider = provider
        self.navigate = navigate
        self.target = target
        self._mounted = False
        self._navigated = False
        self._subscription: Optional[Subscription] = None
        self._initial_query: Optional["asyncio.Task[None]"] = None

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def navigated(self) -> bool:
        return self._navigated

    def mount(self) -> None:
        """
        Start watching. Must be called from a running event loop.

        Registers the session subscription and schedules the current-session
        query; both resolve asynchronously.
        """
        if self._mounted:
            logger.debug("Session watcher already mounted")
            return
        self._mounted = True
        self._navigated = False
        self._subscription = self.provider.subscribe_session_changes(
            self._on_session_change
        )
        self._initial_query = asyncio.ensure_future(self._check_current_session())
        logger.debug("Session watcher mounted (target: %s)", self.target)

    def unmount(self) -> None:
        """Stop watching. Late results are ignored from here on."""
        if not self._mounted:
            return
        self._mounted = False
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        logger.debug("Session watcher unmounted")

    async def settled(self) -> None:
        """Wait for the one-time session query to finish."""
        if self._initial_query is not None:
            await asyncio.shield(self._initial_query)

    async def __aenter__(self) -> "SessionWatcher":
        self.mount()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.unmount()

    def _on_session_change(
        self, event: AuthChangeEvent, session: Optional[Session]
    ) -> None:
        if not self._mounted:
            return
        if event is AuthChangeEvent.SIGNED_OUT:
            # Re-arm so the next session counts as newly detected
            self._navigated = False
            return
        self._ensure_navigated(session, source=event.value)

    async def _check_current_session(self) -> None:
        try:
            session = await self.provider.get_current_session()
        except Exception as e:
            if self._mounted:
                logger.warning("Current session query failed: %s", e, exc_info=True)
            return
        self._ensure_navigated(session, source="current session query")

    def _ensure_navigated(self, session: Optional[Session], source: str) -> None:
        if not self._mounted or not has_active_user(session):
            return
        if self._navigated:
            logger.debug("Already navigated; ignoring session from %s", source)
            return
        self._navigated = True
        logger.info(
            "Active session for %s detected via %s; navigating to %s",
            session.user.email or session.user.id,
            source,
            self.target,
        )
        self.navigate(self.target)
