"""Mirakl marketplace API integration."""

from typing import Any, Optional

import structlog

from src.config import SyncConfig, settings
from src.integrations.fetcher import RateLimitedFetcher, normalize_base_url
from src.models.store import Store
from src.sync.errors import MalformedResponseError, MissingCredentialsError

logger = structlog.get_logger()


class MiraklClient:
    """Client for the Mirakl seller (shop) API."""

    def __init__(self, domain: str, authorization: str, fetcher: RateLimitedFetcher):
        """
        Initialize Mirakl client.

        Args:
            domain: Marketplace host or base URL (e.g., "acme-prod.mirakl.net")
            authorization: Raw API key, or "Bearer <token>" for OAuth stores
            fetcher: Fetcher carrying the retry policy
        """
        self.base_url = normalize_base_url(domain)
        self.headers = {"Authorization": authorization}
        self.fetcher = fetcher

    async def close(self):
        await self.fetcher.close()

    async def _get(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}/{endpoint}"
        data = await self.fetcher.get_json(url, params=params, headers=self.headers)
        if not isinstance(data, dict):
            raise MalformedResponseError(f"Expected a JSON object from {url}")
        return data

    async def _count(self, endpoint: str) -> int:
        data = await self._get(endpoint, {"offset": 0, "max": 1})
        total = data.get("total_count")
        if total is None:
            raise MalformedResponseError(f"Response from {endpoint} is missing total_count")
        try:
            return int(total)
        except (TypeError, ValueError) as e:
            raise MalformedResponseError(f"Invalid total_count {total!r} from {endpoint}") from e

    async def _page(self, endpoint: str, key: str, offset: int, limit: int) -> list[dict[str, Any]]:
        data = await self._get(endpoint, {"offset": offset, "max": limit})
        records = data.get(key)
        if not isinstance(records, list):
            raise MalformedResponseError(f"Invalid response format: {key} array not found")
        return records

    # === Offers ===

    async def count_offers(self) -> int:
        """Total number of offers the shop exposes."""
        return await self._count("api/offers")

    async def get_offers_page(self, offset: int, limit: int = 100) -> list[dict[str, Any]]:
        """Fetch one page of offers."""
        return await self._page("api/offers", "offers", offset, limit)

    # === Orders ===

    async def count_orders(self) -> int:
        """Total number of orders the shop exposes."""
        return await self._count("api/orders")

    async def get_orders_page(self, offset: int, limit: int = 100) -> list[dict[str, Any]]:
        """Fetch one page of orders."""
        return await self._page("api/orders", "orders", offset, limit)

    async def validate_credentials(self) -> bool:
        """Check the credentials with a one-record call. Raises on failure."""
        await self._get("api/orders", {"max": 1})
        return True


async def fetch_mirakl_access_token(
    fetcher: RateLimitedFetcher,
    client_id: str,
    client_secret: str,
    audience: str,
    token_url: Optional[str] = None,
) -> str:
    """Exchange OAuth client credentials for an access token."""
    data = await fetcher.post_json(
        token_url or settings.mirakl_token_url,
        data={
            "grant_type": "client_credentials",
            "client_id": client_id,
            "client_secret": client_secret,
            "audience": audience,
        },
    )
    token = data.get("access_token") if isinstance(data, dict) else None
    if not token:
        raise MalformedResponseError("Access token not found in OAuth response")
    logger.info("mirakl_oauth_token_obtained", client_id=client_id)
    return token


async def create_mirakl_client(
    store: Store,
    config: SyncConfig,
    fetcher: Optional[RateLimitedFetcher] = None,
) -> MiraklClient:
    """Build a client for a store, exchanging OAuth credentials when needed."""
    fetcher = fetcher or RateLimitedFetcher(
        timeout=settings.http_timeout_seconds,
        max_rate_limit_retries=config.max_rate_limit_retries,
        retry_delay=config.retry_delay_seconds,
    )
    if store.api_key:
        authorization = store.api_key
    elif store.has_oauth_credentials:
        creds = store.credentials
        token = await fetch_mirakl_access_token(
            fetcher,
            creds["client_id"],
            creds["client_secret"],
            creds["audience"],
        )
        authorization = f"Bearer {token}"
    else:
        raise MissingCredentialsError("Store missing Mirakl API key")

    return MiraklClient(store.domain, authorization, fetcher)
