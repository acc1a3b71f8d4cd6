"""Shopify Admin GraphQL API integration."""

from typing import Any, Optional

import structlog

from src.config import SyncConfig, settings
from src.integrations.fetcher import RateLimitedFetcher, normalize_base_url
from src.models.store import Store
from src.sync.errors import MalformedResponseError, MissingCredentialsError

logger = structlog.get_logger()


def is_throttled(body: Any) -> bool:
    """Shopify reports GraphQL cost throttling as a 200 with a THROTTLED error."""
    if not isinstance(body, dict):
        return False
    errors = body.get("errors")
    if not isinstance(errors, list):
        return False
    return any(
        isinstance(error, dict)
        and isinstance(error.get("extensions"), dict)
        and error["extensions"].get("code") == "THROTTLED"
        for error in errors
    )


PRODUCTS_QUERY = """
query Products($first: Int!, $after: String) {
  products(first: $first, after: $after) {
    edges {
      node {
        id
        title
        description
        variants(first: 1) {
          edges {
            node {
              id
              price
              sku
              inventoryQuantity
            }
          }
        }
        images(first: 1) {
          edges {
            node {
              url
            }
          }
        }
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""

PRODUCTS_COUNT_QUERY = """
query ProductsCount {
  productsCount {
    count
  }
}
"""


class ShopifyClient:
    """Client for the Shopify Admin GraphQL API."""

    def __init__(
        self,
        shop: str,
        access_token: str,
        fetcher: RateLimitedFetcher,
        api_version: Optional[str] = None,
    ):
        """
        Initialize Shopify client.

        Args:
            shop: Shop domain (e.g., "mystore.myshopify.com")
            access_token: Shopify Admin API access token
            fetcher: Fetcher carrying the retry policy
            api_version: Admin API version, defaults to settings
        """
        self.base_url = normalize_base_url(shop)
        self.shop = self.base_url.split("://", 1)[1]
        version = api_version or settings.shopify_api_version
        self.endpoint = f"{self.base_url}/admin/api/{version}/graphql.json"
        self.headers = {
            "X-Shopify-Access-Token": access_token,
            "Content-Type": "application/json",
        }
        self.fetcher = fetcher

    async def close(self):
        await self.fetcher.close()

    async def _query(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """Run a GraphQL query and return its ``data`` object."""
        body = await self.fetcher.post_json(
            self.endpoint,
            json={"query": query, "variables": variables or {}},
            headers=self.headers,
            throttled=is_throttled,
        )
        if not isinstance(body, dict):
            raise MalformedResponseError(f"Expected a JSON object from {self.endpoint}")
        if body.get("errors"):
            logger.error("shopify_graphql_error", shop=self.shop, errors=body["errors"])
            raise MalformedResponseError(f"Shopify GraphQL errors: {body['errors']}")
        data = body.get("data")
        if not isinstance(data, dict):
            raise MalformedResponseError("Shopify response is missing data")
        return data

    # === Products ===

    async def count_products(self) -> int:
        data = await self._query(PRODUCTS_COUNT_QUERY)
        try:
            return int(data["productsCount"]["count"])
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponseError("Shopify response is missing productsCount") from e

    async def get_products_page(
        self,
        first: int,
        after: Optional[str] = None,
    ) -> tuple[list[dict[str, Any]], dict[str, Any]]:
        """
        Fetch one page of products.

        Returns:
            Tuple of (product nodes, pageInfo)
        """
        data = await self._query(PRODUCTS_QUERY, {"first": first, "after": after})
        products = data.get("products")
        if not isinstance(products, dict) or not isinstance(products.get("edges"), list):
            raise MalformedResponseError("Invalid response format: products edges not found")
        nodes = [edge.get("node") or {} for edge in products["edges"]]
        page_info = products.get("pageInfo") or {"hasNextPage": False, "endCursor": None}
        return nodes, page_info


def create_shopify_client(
    store: Store,
    config: SyncConfig,
    fetcher: Optional[RateLimitedFetcher] = None,
) -> ShopifyClient:
    """Build a client for a store."""
    if not store.access_token:
        raise MissingCredentialsError("Store missing Shopify access token")
    fetcher = fetcher or RateLimitedFetcher(
        timeout=settings.http_timeout_seconds,
        max_rate_limit_retries=config.max_rate_limit_retries,
        retry_delay=config.retry_delay_seconds,
    )
    return ShopifyClient(store.domain, store.access_token, fetcher)
