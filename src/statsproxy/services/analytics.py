"""Upstream analytics API client.

Thin async wrapper over the two analytics endpoints the proxy consumes:

- ``POST /api/auth/login`` exchanges the configured credentials for a
  bearer token.
- ``GET /api/websites/{id}/stats`` returns the visitor statistics of one
  tracked website.

The client knows nothing about token lifetime or caching; see
``statsproxy.services.auth`` and ``statsproxy.services.visitors``.
"""

import httpx
import structlog

from statsproxy.core.exceptions import (
    AuthenticationFailedError,
    UpstreamTransportError,
)

logger = structlog.get_logger(__name__)

LOGIN_PATH = "/api/auth/login"
STATS_PATH = "/api/websites/{website_id}/stats"

# Whole history: from the epoch to far in the future (milliseconds)
STATS_RANGE = {"startAt": "0", "endAt": "9999999999999"}


class AnalyticsClient:
    """Async client for the upstream analytics service.

    Usage:
        ```python
        async with httpx.AsyncClient() as http:
            client = AnalyticsClient(http, base_url="https://analytics.example")
            token = await client.login("admin", "secret")
            response = await client.fetch_stats(website_id, token)
        ```
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        timeout: float = 10.0,
    ) -> None:
        """Initialize the client.

        Args:
            http: Shared HTTP client (owned by the caller)
            base_url: Analytics service base URL, without trailing slash
            timeout: Per-request timeout in seconds
        """
        self._http = http
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def stats_url(self, website_id: str) -> str:
        """Build the stats endpoint URL for a website."""
        return self.base_url + STATS_PATH.format(website_id=website_id)

    async def login(self, username: str, password: str) -> str:
        """Exchange credentials for a bearer token.

        Args:
            username: Analytics account username
            password: Analytics account password

        Returns:
            The bearer token

        Raises:
            AuthenticationFailedError: On transport errors, non-2xx responses,
                unparseable bodies, or a response without a token
        """
        try:
            response = await self._http.post(
                self.base_url + LOGIN_PATH,
                json={"username": username, "password": password},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise AuthenticationFailedError(
                f"Login rejected: {e.response.status_code}"
            ) from e
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise AuthenticationFailedError(f"Login request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise AuthenticationFailedError("Login response is not JSON") from e

        token = data.get("token") if isinstance(data, dict) else None
        if not token or not isinstance(token, str):
            raise AuthenticationFailedError("Login response contained no token")
        return token

    async def fetch_stats(self, website_id: str, token: str) -> httpx.Response:
        """Request the all-time stats of a website.

        The response is returned whatever its status so the caller can react
        to 401s; only network failures and unusable URLs raise.

        Args:
            website_id: Upstream website identifier
            token: Bearer token from ``login``

        Returns:
            The raw upstream response

        Raises:
            UpstreamTransportError: If the request could not be sent or completed
        """
        url = self.stats_url(website_id)
        logger.debug("analytics_stats_request", url=url)
        try:
            return await self._http.get(
                url,
                params=STATS_RANGE,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise UpstreamTransportError(f"Stats request failed: {e}") from e
