"""VisitorService - fetches visitor stats through the token and cache layers.

Flow for one request:

1. Serve from ``VisitorCache`` while the entry is fresh.
2. Obtain a bearer token from ``TokenManager`` (logging in if needed).
3. Call the stats endpoint.
4. On 401, drop the token and try again while the retry budget lasts.
5. Cache and return a 200 payload; anything else is an error.

Requests for the same website are serialised with a per-website lock, so a
burst of cache misses results in one upstream call and the waiting callers
are answered from the freshly stored entry.
"""

import asyncio
from typing import Any

import structlog

from statsproxy.core.exceptions import (
    AnalyticsError,
    TokenUnavailableError,
    UpstreamStatusError,
)
from statsproxy.services.analytics import AnalyticsClient
from statsproxy.services.auth import TokenManager
from statsproxy.services.cache import VisitorCache

logger = structlog.get_logger(__name__)


def _reject_constant(name: str) -> Any:
    """Refuse NaN and Infinity, which the response encoder cannot render."""
    raise ValueError(f"Non-finite JSON constant: {name}")


class VisitorService:
    """Fetches and caches per-website visitor statistics.

    Usage:
        ```python
        service = VisitorService(client, tokens, cache)
        payload = await service.get_visitor_data(website_id)
        ```
    """

    def __init__(
        self,
        client: AnalyticsClient,
        tokens: TokenManager,
        cache: VisitorCache,
        retry_budget: int = 1,
    ) -> None:
        """Initialize the service.

        Args:
            client: Upstream analytics client
            tokens: Shared token manager
            cache: Shared visitor cache
            retry_budget: Re-login attempts allowed after a 401, per call
        """
        self.client = client
        self.tokens = tokens
        self.cache = cache
        self.retry_budget = retry_budget
        self._locks: dict[str, asyncio.Lock] = {}

    async def get_visitor_data(
        self, website_id: str, max_retries: int | None = None
    ) -> Any:
        """Return the stats payload for a website.

        Args:
            website_id: Upstream website identifier
            max_retries: Override of the 401 retry budget for this call

        Returns:
            The upstream JSON payload, verbatim

        Raises:
            TokenUnavailableError: If no token could be obtained
            UpstreamStatusError: On a non-200 answer (or a 401 once the
                budget is spent)
            UpstreamTransportError: On network failure
        """
        entry = self.cache.get_entry(website_id)
        if entry is not None:
            logger.debug("visitor_cache_hit", website_id=website_id)
            return entry.payload

        retries_left = self.retry_budget if max_retries is None else max_retries

        async with self._lock_for(website_id):
            try:
                return await self._fetch(website_id, retries_left)
            except AnalyticsError as e:
                logger.error(
                    "visitor_fetch_failed",
                    website_id=website_id,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                raise

    async def _fetch(self, website_id: str, retries_left: int) -> Any:
        while True:
            # Another caller may have filled the entry while we waited
            entry = self.cache.get_entry(website_id)
            if entry is not None:
                logger.debug("visitor_cache_hit", website_id=website_id)
                return entry.payload

            token = await self.tokens.ensure_token()
            if token is None:
                raise TokenUnavailableError()

            logger.info(
                "visitor_stats_fetch",
                website_id=website_id,
                url=self.client.stats_url(website_id),
            )
            response = await self.client.fetch_stats(website_id, token)

            if response.status_code == 401 and retries_left > 0:
                logger.warning(
                    "analytics_token_rejected",
                    website_id=website_id,
                    retries_left=retries_left,
                )
                self.tokens.invalidate()
                retries_left -= 1
                continue

            if response.status_code != 200:
                raise UpstreamStatusError(
                    response.status_code,
                    f"Upstream request failed: {response.status_code} "
                    f"{response.reason_phrase}".rstrip(),
                )

            try:
                payload = response.json(parse_constant=_reject_constant)
            except ValueError as e:
                raise UpstreamStatusError(
                    response.status_code, "Upstream returned an invalid JSON body"
                ) from e

            self.cache.set(website_id, payload)
            return payload

    def _lock_for(self, website_id: str) -> asyncio.Lock:
        lock = self._locks.get(website_id)
        if lock is None:
            lock = self._locks[website_id] = asyncio.Lock()
        return lock
