"""Bulk insert-or-update of synced entities."""

import uuid
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Optional, Sequence

import structlog
from sqlalchemy import func
from sqlalchemy.dialects.postgresql import Insert, insert
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.models import Customer, Order, Product
from src.sync.errors import DuplicateKeyError, StorageError

logger = structlog.get_logger()


class EntityKind(StrEnum):
    """Tables the sync pipeline writes to."""

    PRODUCTS = "products"
    ORDERS = "orders"
    CUSTOMERS = "customers"


MODELS = {
    EntityKind.PRODUCTS: Product,
    EntityKind.ORDERS: Order,
    EntityKind.CUSTOMERS: Customer,
}

# Natural keys, matching the unique constraints on each table
CONFLICT_KEYS: dict[EntityKind, tuple[str, ...]] = {
    EntityKind.PRODUCTS: ("owner_user_id", "shop_sku"),
    EntityKind.ORDERS: ("store_id", "commercial_id"),
    EntityKind.CUSTOMERS: ("external_id",),
}

# Never overwritten on conflict
_IMMUTABLE_COLUMNS = {"id", "created_at"}

# unique_violation, cardinality_violation ("cannot affect row a second time")
_DUPLICATE_SQLSTATES = {"23505", "21000"}
_DUPLICATE_MESSAGES = ("duplicate key", "unique constraint", "cannot affect row a second time")


@dataclass
class WriteBatch:
    """Rows for one table, already deduplicated."""

    kind: EntityKind
    rows: list[dict[str, Any]]


def build_upsert(kind: EntityKind, rows: Sequence[dict[str, Any]]) -> Insert:
    """INSERT ... ON CONFLICT (natural key) DO UPDATE every non-key column."""
    model = MODELS[kind]
    keys = CONFLICT_KEYS[kind]
    values = [{"id": str(uuid.uuid4()), **row} for row in rows]

    stmt = insert(model).values(values)
    update_columns = {
        column: stmt.excluded[column]
        for column in values[0]
        if column not in keys and column not in _IMMUTABLE_COLUMNS
    }
    update_columns["updated_at"] = func.now()
    return stmt.on_conflict_do_update(index_elements=list(keys), set_=update_columns)


def is_duplicate_key_error(error: DBAPIError) -> bool:
    """Whether a driver error means a uniqueness conflict."""
    orig = error.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code in _DUPLICATE_SQLSTATES:
        return True
    message = str(orig).lower()
    return any(fragment in message for fragment in _DUPLICATE_MESSAGES)


class UpsertWriter:
    """Writes deduplicated batches, one transaction per call."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        batch_size: int = 100,
    ):
        """
        Args:
            session_factory: Session factory, defaults to the app's
            batch_size: Max rows per INSERT statement
        """
        self._session_factory = session_factory
        self.batch_size = batch_size

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            from src.database import get_session_factory

            self._session_factory = get_session_factory()
        return self._session_factory

    async def upsert(self, kind: EntityKind, rows: Sequence[dict[str, Any]]) -> int:
        """Upsert rows of one kind. Returns the number of rows written."""
        counts = await self.write([WriteBatch(kind, list(rows))])
        return counts[kind]

    async def write(self, batches: Sequence[WriteBatch]) -> dict[EntityKind, int]:
        """
        Upsert several batches atomically, in the order given.

        Empty batches are skipped; if every batch is empty no session is
        opened at all.

        Raises:
            DuplicateKeyError: A uniqueness conflict reached the database
            StorageError: Any other database failure
        """
        counts = {batch.kind: 0 for batch in batches}
        pending = [batch for batch in batches if batch.rows]
        if not pending:
            return counts

        try:
            async with self.session_factory() as session:
                async with session.begin():
                    for batch in pending:
                        for start in range(0, len(batch.rows), self.batch_size):
                            chunk = batch.rows[start:start + self.batch_size]
                            await session.execute(build_upsert(batch.kind, chunk))
                        counts[batch.kind] += len(batch.rows)
        except DBAPIError as e:
            if is_duplicate_key_error(e):
                logger.error("upsert_duplicate_key", error=str(e.orig))
                raise DuplicateKeyError(str(e.orig)) from e
            logger.error("upsert_failed", error=str(e))
            raise StorageError(str(e)) from e
        except SQLAlchemyError as e:
            logger.error("upsert_failed", error=str(e))
            raise StorageError(str(e)) from e

        logger.info("upsert_complete", **{str(kind): count for kind, count in counts.items()})
        return counts
