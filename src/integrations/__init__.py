"""External marketplace integrations."""

from src.integrations.fetcher import RateLimitedFetcher
from src.integrations.mirakl import MiraklClient, create_mirakl_client
from src.integrations.shopify import ShopifyClient, create_shopify_client

__all__ = [
    "RateLimitedFetcher",
    "MiraklClient",
    "create_mirakl_client",
    "ShopifyClient",
    "create_shopify_client",
]
