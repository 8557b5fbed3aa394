"""TokenManager - holds the single upstream bearer token.

The token is obtained lazily on first use and kept in memory until the
analytics service rejects it. Nothing tracks its expiry locally: a 401 from
the stats endpoint is the only signal, after which the fetcher calls
``invalidate()`` and the next ``ensure_token()`` logs in again.
"""

import asyncio

import structlog
from pydantic import SecretStr

from statsproxy.core.exceptions import AuthenticationFailedError
from statsproxy.services.analytics import AnalyticsClient

logger = structlog.get_logger(__name__)


class TokenManager:
    """Owns the upstream session token.

    Login failures are recoverable: they leave the manager without a token and
    are reported as ``False`` / ``None`` rather than raised.
    """

    def __init__(
        self,
        client: AnalyticsClient,
        username: str,
        password: SecretStr,
    ) -> None:
        self._client = client
        self._username = username
        self._password = password
        self._token: str | None = None
        self._lock = asyncio.Lock()

    @property
    def token(self) -> str | None:
        """Currently held token, if any."""
        return self._token

    @property
    def has_token(self) -> bool:
        return self._token is not None

    async def ensure_token(self) -> str | None:
        """Return the held token, logging in first if there is none.

        The held token is returned as-is without checking it upstream.
        Concurrent callers share one login: whoever waits on the lock picks up
        the token obtained by the caller ahead of it.

        Returns:
            The bearer token, or None if login failed
        """
        if self._token is not None:
            return self._token

        async with self._lock:
            if self._token is None:
                await self._login_locked()
            return self._token

    async def login(self) -> bool:
        """Log in unconditionally, replacing any held token.

        Returns:
            True if a token was obtained
        """
        async with self._lock:
            return await self._login_locked()

    def invalidate(self) -> None:
        """Drop the held token so the next ``ensure_token`` logs in again."""
        if self._token is not None:
            logger.info("analytics_token_invalidated")
        self._token = None

    async def _login_locked(self) -> bool:
        try:
            token = await self._client.login(
                self._username, self._password.get_secret_value()
            )
        except AuthenticationFailedError as e:
            self._token = None
            logger.error("analytics_login_failed", error=str(e))
            return False

        self._token = token
        logger.info("analytics_login_succeeded")
        return True
