"""
OAuth2 access token cache.

Access tokens are cached per credential set together with the instant they
expire. A token is handed out only while it has more than the safety
margin left; otherwise it is refreshed lazily on the next request.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Refresh when the token has less than this many seconds left
TOKEN_REFRESH_MARGIN_SECONDS = 60.0


@dataclass(frozen=True)
class OAuthCredentials:
    """Client credentials plus long-lived refresh token."""

    client_id: str
    client_secret: str
    refresh_token: str

    @property
    def complete(self) -> bool:
        return bool(self.client_id and self.client_secret and self.refresh_token)

    def __repr__(self) -> str:
        # Never print secrets
        return f"OAuthCredentials(client_id={self.client_id!r})"


@dataclass(frozen=True)
class TokenGrant:
    """Access token returned by the token endpoint."""

    access_token: str
    expires_in: float


@dataclass(frozen=True)
class CachedToken:
    access_token: str
    expires_at: float


class AccessTokenCache:
    """
    Lazily refreshed access tokens keyed by OAuthCredentials.

    Args:
        refresh: Exchanges credentials for a fresh TokenGrant
        margin_seconds: Safety margin before the real expiry
        clock: Monotonic clock (injected in tests)
    """

    def __init__(
        self,
        refresh: Callable[[OAuthCredentials], TokenGrant],
        margin_seconds: float = TOKEN_REFRESH_MARGIN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._refresh = refresh
        self._margin = margin_seconds
        self._clock = clock
        self._tokens: dict[OAuthCredentials, CachedToken] = {}
        self._lock = threading.Lock()

    def get(self, credentials: OAuthCredentials) -> str:
        """Return a valid access token for credentials, refreshing if needed."""
        with self._lock:
            cached = self._tokens.get(credentials)
            if cached is not None and self._clock() < cached.expires_at - self._margin:
                return cached.access_token

            logger.debug("Refreshing access token for %r", credentials)
            grant = self._refresh(credentials)
            self._tokens[credentials] = CachedToken(
                access_token=grant.access_token,
                expires_at=self._clock() + grant.expires_in,
            )
            return grant.access_token

    def invalidate(self, credentials: OAuthCredentials) -> None:
        """Drop the cached token so the next get() refreshes."""
        with self._lock:
            self._tokens.pop(credentials, None)
