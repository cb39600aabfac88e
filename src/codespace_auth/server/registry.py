"""
Browser client registry for the Codespace web surface.

Each browser gets its own identity client and notification channel, bound to
it by a cookie, the way a browser-side SDK keeps one client per tab origin.
"""

import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from threading import RLock
from typing import Callable, Dict, Optional, Tuple

from fastapi import Response

from ..auth.memory_provider import InMemoryAuthServer, InMemoryIdentityProvider
from ..auth.provider import IdentityProvider
from ..core.config import AuthConfig
from ..ui.notifications import NotificationChannel
from ..utils.constants import CLIENT_COOKIE_NAME, CLIENT_IDLE_TTL_SECONDS

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[], IdentityProvider]


@dataclass
class ClientState:
    """Per-browser identity client and pending notifications."""

    provider: IdentityProvider
    notifications: NotificationChannel = field(default_factory=NotificationChannel)
    last_seen: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def default_provider_factory(config: AuthConfig) -> ProviderFactory:
    """
    Build the provider factory for the configured identity backend.

    The in-memory backend shares one InMemoryAuthServer across all clients.
    """
    if config.identity_backend == "supabase":
        from ..auth.supabase_provider import SupabaseIdentityProvider

        return lambda: SupabaseIdentityProvider.from_config(config)

    server = InMemoryAuthServer(
        require_email_confirmation=config.require_email_confirmation,
        site_url=config.get_origin(),
    )
    logger.info("Using in-memory identity backend (site: %s)", server.site_url)
    return lambda: InMemoryIdentityProvider(server)


class ClientRegistry:
    """
    Maps client cookies to ClientState instances.

    Clients not seen for `idle_ttl` seconds are evicted; their browser gets a
    fresh client on its next request.
    """

    def __init__(
        self,
        provider_factory: ProviderFactory,
        idle_ttl: int = CLIENT_IDLE_TTL_SECONDS,
    ) -> None:
        self.provider_factory = provider_factory
        self.idle_ttl = idle_ttl
        self._clients: Dict[str, ClientState] = {}
        self._lock = RLock()

    def _cleanup_idle_clients_locked(self, now: datetime) -> None:
        """Remove clients idle past the TTL. Caller must hold lock."""
        cutoff = now - timedelta(seconds=self.idle_ttl)
        idle = [
            cid for cid, client in self._clients.items() if client.last_seen <= cutoff
        ]
        for cid in idle:
            del self._clients[cid]
            logger.debug("Evicted idle browser client %s...", cid[:8])

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    def get(self, client_id: str) -> Optional[ClientState]:
        with self._lock:
            return self._clients.get(client_id)

    def resolve(self, client_id: Optional[str]) -> Tuple[str, ClientState]:
        """Return the client for a cookie value, creating one if unknown."""
        now = datetime.now(timezone.utc)
        with self._lock:
            self._cleanup_idle_clients_locked(now)
            client = self._clients.get(client_id) if client_id else None
            if client is not None:
                client.last_seen = now
                return client_id, client

            client_id = secrets.token_urlsafe(16)
            client = ClientState(provider=self.provider_factory(), last_seen=now)
            self._clients[client_id] = client
            logger.debug("Registered browser client %s...", client_id[:8])
            return client_id, client

    def bind(self, response: Response, client_id: str) -> Response:
        """Attach the client cookie to a response."""
        response.set_cookie(
            CLIENT_COOKIE_NAME, client_id, httponly=True, samesite="lax"
        )
        return response
