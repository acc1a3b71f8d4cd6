"""Sync audit log service."""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.models.sync_log import SyncLog, SyncStatus

logger = structlog.get_logger()


class SyncLogService:
    """Appends and lists sync audit entries."""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        self._session_factory = session_factory

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            from src.database import get_session_factory

            self._session_factory = get_session_factory()
        return self._session_factory

    async def record(
        self,
        user_id: str,
        sync_type: str,
        status: SyncStatus,
        details: str,
        related_id: Optional[str] = None,
    ) -> bool:
        """
        Append one log entry in its own transaction.

        A failed write is logged and reported through the return value, so
        that an audit outage never changes the outcome of the sync itself.

        Args:
            user_id: Owner of the synced store
            sync_type: products, orders or inventory
            status: success, error or partial
            details: Human-readable summary
            related_id: Store id

        Returns:
            True if the entry was committed
        """
        try:
            async with self.session_factory() as session:
                session.add(
                    SyncLog(
                        user_id=user_id,
                        type=str(sync_type),
                        status=str(status),
                        details=details,
                        related_id=related_id,
                    )
                )
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "sync_log_write_failed",
                user_id=user_id,
                sync_type=str(sync_type),
                status=str(status),
                error=str(e),
            )
            return False

        logger.info("sync_log_written", user_id=user_id, sync_type=str(sync_type), status=str(status))
        return True

    async def list_logs(
        self,
        session: AsyncSession,
        user_id: Optional[str] = None,
        store_id: Optional[str] = None,
        limit: int = 50,
    ) -> list[SyncLog]:
        """
        Most recent entries first.

        Args:
            session: Database session
            user_id: Restrict to one owner (None for all, admins only)
            store_id: Restrict to one store
            limit: Max entries
        """
        stmt = select(SyncLog).order_by(SyncLog.timestamp.desc()).limit(limit)
        if user_id is not None:
            stmt = stmt.where(SyncLog.user_id == user_id)
        if store_id is not None:
            stmt = stmt.where(SyncLog.related_id == store_id)

        result = await session.execute(stmt)
        return list(result.scalars().all())
