"""Store connection validation."""

from typing import Optional

import structlog

from src.config import SyncConfig
from src.integrations import RateLimitedFetcher, create_mirakl_client, create_shopify_client
from src.models.store import Platform, Store, StoreStatus
from src.sync.dispatcher import check_credentials
from src.sync.errors import SyncError

logger = structlog.get_logger()


async def connect_store(
    store: Store,
    config: Optional[SyncConfig] = None,
    fetcher: Optional[RateLimitedFetcher] = None,
) -> bool:
    """
    Validate a store's credentials against its platform and set its status.

    The store moves to ``active`` on success and to ``error`` otherwise.
    The caller commits the change.

    Args:
        store: Store to validate
        config: Retry policy for the validation call
        fetcher: HTTP fetcher, injectable for tests

    Returns:
        True if the store is now active
    """
    config = config or SyncConfig.from_settings()

    try:
        check_credentials(store)
        if store.platform == Platform.MIRAKL:
            client = await create_mirakl_client(store, config, fetcher)
            try:
                await client.validate_credentials()
            finally:
                await client.close()
        elif store.platform == Platform.SHOPIFY:
            client = create_shopify_client(store, config, fetcher)
            try:
                await client.count_products()
            finally:
                await client.close()
        else:
            raise SyncError(f"Unsupported platform: {store.platform}")
    except SyncError as e:
        store.status = StoreStatus.ERROR
        logger.warning("store_connection_failed", store_id=store.id, platform=store.platform, error=str(e))
        return False

    store.status = StoreStatus.ACTIVE
    logger.info("store_connected", store_id=store.id, platform=store.platform)
    return True
