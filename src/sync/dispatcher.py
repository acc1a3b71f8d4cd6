"""Platform-polymorphic sync entry point."""

import asyncio
from typing import Any, Awaitable, Callable, Optional

import structlog

from src.config import SyncConfig
from src.models.store import Platform, Store
from src.models.sync_log import SyncStatus, SyncType
from src.services.auth import CurrentUser, ensure_can_manage_store
from src.services.sync_logs import SyncLogService
from src.sync.adapters import ADAPTERS, AdapterFactory, SyncAdapter, find_adapter_factory
from src.sync.errors import DuplicateKeyError, MissingCredentialsError, UnsupportedSyncError
from src.sync.orchestrator import BatchOrchestrator, ChunkResult
from src.sync.results import SyncOutcome, SyncResult
from src.sync.writer import UpsertWriter

logger = structlog.get_logger()

DUPLICATE_LABELS = {
    SyncType.PRODUCTS: "SKUs",
    SyncType.ORDERS: "commercial ids",
}


def check_credentials(store: Store) -> None:
    """
    Verify the store holds what its platform needs, before any network call.

    Unknown platforms pass; they are reported as not implemented later.

    Raises:
        MissingCredentialsError: A required field is absent
    """
    if store.platform not in (Platform.SHOPIFY, Platform.MIRAKL):
        return
    if not (store.domain or "").strip():
        raise MissingCredentialsError("Store missing domain")
    if store.platform == Platform.SHOPIFY and not store.access_token:
        raise MissingCredentialsError("Store missing Shopify access token")
    if store.platform == Platform.MIRAKL and not (store.api_key or store.has_oauth_credentials):
        raise MissingCredentialsError("Store missing Mirakl API key")


class SyncDispatcher:
    """
    Picks the pipeline for a store and sync type and runs it.

    Every attempt returns one SyncResult and writes exactly one final
    SyncLog entry, whatever happened. Long syncs also get one ``partial``
    entry per committed non-final chunk.
    """

    def __init__(
        self,
        writer: Optional[UpsertWriter] = None,
        config: Optional[SyncConfig] = None,
        adapters: Optional[dict[tuple[str, str], AdapterFactory]] = None,
        sync_logs: Optional[SyncLogService] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config or SyncConfig.from_settings()
        self.writer = writer or UpsertWriter(batch_size=self.config.upsert_batch_size)
        self.adapters = ADAPTERS if adapters is None else adapters
        self.sync_logs = sync_logs or SyncLogService()
        self._sleep = sleep

    async def sync(
        self,
        store: Store,
        sync_type: SyncType | str,
        user: Optional[CurrentUser] = None,
    ) -> SyncResult:
        """
        Run one sync for one store.

        Args:
            store: Store to pull from
            sync_type: products, orders or inventory
            user: Caller; when given, must own the store or be an admin

        Returns:
            SyncResult; failures are reported here, never raised

        Raises:
            PermissionError: The caller may not manage this store
        """
        if user is not None:
            ensure_can_manage_store(user, store)

        logger.info(
            "sync_dispatch_started",
            store_id=store.id,
            platform=store.platform,
            sync_type=str(sync_type),
        )

        result = await self._dispatch(store, sync_type)

        status = SyncStatus.SUCCESS if result.success else SyncStatus.ERROR
        await self.sync_logs.record(store.user_id, str(sync_type), status, result.message, store.id)

        logger.info(
            "sync_dispatch_finished",
            store_id=store.id,
            sync_type=str(sync_type),
            outcome=str(result.outcome),
            synced=result.synced_items,
        )
        return result

    async def sync_all(self, store: Store, user: Optional[CurrentUser] = None) -> SyncResult:
        """Products, then orders, then inventory, aggregated into one result."""
        results = [await self.sync(store, sync_type, user) for sync_type in SyncType]

        synced = sum(r.synced_items for r in results)
        message = "; ".join(r.message for r in results)
        if any(r.outcome == SyncOutcome.ERROR for r in results):
            return SyncResult.failed(message, synced)
        if all(r.outcome == SyncOutcome.NOT_IMPLEMENTED for r in results):
            return SyncResult.not_implemented(message)
        return SyncResult.succeeded(message, synced)

    async def _dispatch(self, store: Store, sync_type: SyncType | str) -> SyncResult:
        try:
            check_credentials(store)
        except MissingCredentialsError as e:
            logger.warning("sync_dispatch_missing_credentials", store_id=store.id, error=str(e))
            return SyncResult.failed(str(e))

        try:
            factory = find_adapter_factory(store.platform, sync_type, self.adapters)
        except UnsupportedSyncError as e:
            logger.info(
                "sync_dispatch_not_implemented",
                store_id=store.id,
                platform=store.platform,
                sync_type=str(sync_type),
            )
            return SyncResult.not_implemented(str(e))

        adapter: Optional[SyncAdapter] = None
        try:
            adapter = await factory(store, self.config)
            orchestrator = BatchOrchestrator(
                adapter,
                self.writer,
                self.config,
                sleep=self._sleep,
                on_chunk=lambda chunk, is_last: self._record_chunk(store, sync_type, chunk, is_last),
            )
            synced = await orchestrator.run()
            return SyncResult.succeeded(f"Successfully synced {synced} {sync_type}", synced)
        except DuplicateKeyError as e:
            label = DUPLICATE_LABELS.get(sync_type, "keys")
            logger.error("sync_dispatch_duplicate_keys", store_id=store.id, error=str(e))
            return SyncResult.failed(f"Duplicate {label} detected: {e}")
        except Exception as e:
            logger.error("sync_dispatch_failed", store_id=store.id, sync_type=str(sync_type), error=str(e))
            return SyncResult.failed(f"Failed to sync {sync_type}: {e}")
        finally:
            if adapter is not None:
                await adapter.close()

    async def _record_chunk(
        self,
        store: Store,
        sync_type: SyncType | str,
        chunk: ChunkResult,
        is_last: bool,
    ) -> None:
        if is_last:
            return
        await self.sync_logs.record(
            store.user_id,
            str(sync_type),
            SyncStatus.PARTIAL,
            f"Synced {chunk.written} {sync_type} from offset {chunk.offset}",
            store.id,
        )
