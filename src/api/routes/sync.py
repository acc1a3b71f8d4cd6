"""Sync trigger and audit endpoints."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.auth import get_current_user
from src.api.schemas import StoreConnectionResponse, SyncLogEntry, SyncResultResponse
from src.database import get_session
from src.models import Store, SyncType
from src.services.auth import CurrentUser, can_manage_store
from src.services.connections import connect_store
from src.services.sync_logs import SyncLogService
from src.sync.dispatcher import SyncDispatcher

logger = structlog.get_logger()
router = APIRouter()

# Stores with a sync running in this process
_in_flight: set[str] = set()


def get_dispatcher() -> SyncDispatcher:
    """Dispatcher dependency."""
    return SyncDispatcher()


def get_sync_log_service() -> SyncLogService:
    """Audit log dependency."""
    return SyncLogService()


async def _load_store(store_id: str, user: CurrentUser, session: AsyncSession) -> Store:
    store = await session.get(Store, store_id)
    if store is None:
        raise HTTPException(status_code=404, detail="Store not found")
    if not can_manage_store(user, store):
        raise HTTPException(status_code=403, detail="Not allowed to manage this store")
    return store


async def _load_store_for_sync(store_id: str, user: CurrentUser, session: AsyncSession) -> Store:
    """Load the store, then hand the request's connection back to the pool.

    A sync can run for minutes and opens its own short sessions per chunk
    write and audit row. The loaded store stays usable once detached.
    """
    store = await _load_store(store_id, user, session)
    await session.close()
    return store


@asynccontextmanager
async def _sync_slot(store_id: str) -> AsyncIterator[None]:
    """At most one sync per store at a time."""
    if store_id in _in_flight:
        logger.info("sync_already_running", store_id=store_id)
        raise HTTPException(status_code=409, detail="A sync is already running for this store")
    _in_flight.add(store_id)
    try:
        yield
    finally:
        _in_flight.discard(store_id)


@router.post("/stores/{store_id}/sync/{sync_type}", response_model=SyncResultResponse)
async def trigger_sync(
    store_id: str,
    sync_type: SyncType,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    dispatcher: SyncDispatcher = Depends(get_dispatcher),
):
    """
    Run one sync for a store and wait for its result.

    Not-implemented sync types answer 200 with ``outcome="not_implemented"``.
    """
    store = await _load_store_for_sync(store_id, user, session)
    async with _sync_slot(store.id):
        result = await dispatcher.sync(store, sync_type, user)
    return SyncResultResponse.from_result(result)


@router.post("/stores/{store_id}/sync", response_model=SyncResultResponse)
async def trigger_full_sync(
    store_id: str,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    dispatcher: SyncDispatcher = Depends(get_dispatcher),
):
    """Sync products, orders and inventory in turn."""
    store = await _load_store_for_sync(store_id, user, session)
    async with _sync_slot(store.id):
        result = await dispatcher.sync_all(store, user)
    return SyncResultResponse.from_result(result)


@router.post("/stores/{store_id}/connect", response_model=StoreConnectionResponse)
async def connect(
    store_id: str,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Validate the store's credentials and mark it active or errored."""
    store = await _load_store(store_id, user, session)
    connected = await connect_store(store)
    await session.commit()
    return StoreConnectionResponse(store_id=store.id, connected=connected, status=store.status)


@router.get("/sync-logs", response_model=list[SyncLogEntry])
async def list_sync_logs(
    store_id: Optional[str] = Query(None, description="Filter by store"),
    user_id: Optional[str] = Query(None, description="Filter by owner (admins only)"),
    limit: int = Query(50, ge=1, le=500),
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    service: SyncLogService = Depends(get_sync_log_service),
):
    """Recent sync audit entries, newest first. Users only see their own."""
    if user_id and not user.is_admin and user_id != user.user_id:
        raise HTTPException(status_code=403, detail="Not allowed to read other users' logs")

    owner = user_id if user.is_admin else user.user_id
    logs = await service.list_logs(session, user_id=owner, store_id=store_id, limit=limit)
    return [SyncLogEntry.model_validate(log) for log in logs]
