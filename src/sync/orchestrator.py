"""Chunked sync state machine."""

import asyncio
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Awaitable, Callable, Optional

import structlog

from src.config import SyncConfig
from src.sync.adapters import SyncAdapter
from src.sync.paginator import paginate
from src.sync.writer import UpsertWriter

logger = structlog.get_logger()


class SyncState(StrEnum):
    COUNTING = "counting"
    SYNCING = "syncing"
    WAITING = "waiting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ChunkResult:
    """One committed chunk."""

    offset: int
    fetched: int
    written: int


ChunkCallback = Callable[[ChunkResult, bool], Awaitable[Any]]


class BatchOrchestrator:
    """
    Runs one sync: counting -> syncing(offset) -> (waiting -> syncing)* -> done.

    Each chunk of up to ``config.chunk_size`` records is paginated, parsed,
    deduplicated and upserted as its own transaction, so a failure leaves
    earlier chunks committed. Errors move the machine to ``failed`` and
    propagate unchanged.
    """

    def __init__(
        self,
        adapter: SyncAdapter,
        writer: UpsertWriter,
        config: SyncConfig,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        on_chunk: Optional[ChunkCallback] = None,
    ):
        """
        Args:
            adapter: Source of raw records and their parsing
            writer: Upsert writer for the parsed batches
            config: Page size, chunk cap and delays
            sleep: Awaitable sleep, injectable for tests
            on_chunk: Called after every committed chunk with (chunk, is_last)
        """
        self.adapter = adapter
        self.writer = writer
        self.config = config
        self._sleep = sleep
        self._on_chunk = on_chunk

        self.state: Optional[SyncState] = None
        self.history: list[SyncState] = []
        self.chunks: list[ChunkResult] = []
        self.total = 0
        self.synced_items = 0
        self.error: Optional[str] = None

    def _transition(self, state: SyncState, **context) -> None:
        self.state = state
        self.history.append(state)
        logger.info(
            "sync_state_transition",
            store_id=self.adapter.store.id,
            sync_type=str(self.adapter.sync_type),
            state=str(state),
            **context,
        )

    async def run(self) -> int:
        """Run to completion. Returns the number of primary entities written."""
        try:
            return await self._run()
        except Exception as e:
            self.error = str(e)
            self._transition(SyncState.FAILED, error=self.error, synced=self.synced_items)
            raise

    async def _run(self) -> int:
        self._transition(SyncState.COUNTING)
        self.total = await self.adapter.count_total()
        if self.total == 0:
            self._transition(SyncState.DONE, synced=0)
            return 0

        chunk_size = self.config.chunk_size
        offset = 0
        while True:
            self._transition(SyncState.SYNCING, offset=offset, total=self.total)
            chunk = await self._sync_chunk(offset)

            is_last = offset + chunk_size >= self.total or chunk.fetched < chunk_size
            if self._on_chunk is not None:
                await self._on_chunk(chunk, is_last)
            if is_last:
                self._transition(SyncState.DONE, synced=self.synced_items)
                return self.synced_items

            self._transition(SyncState.WAITING, delay=self.config.chunk_delay_seconds)
            await self._sleep(self.config.chunk_delay_seconds)
            offset += chunk_size

    async def _sync_chunk(self, offset: int) -> ChunkResult:
        records = [record async for record in paginate(self.adapter.fetch_page, offset, self.config, self._sleep)]
        parsed = [self.adapter.parse_record(record) for record in records]
        counts = await self.writer.write(self.adapter.prepare(parsed))

        written = counts.get(self.adapter.entity_kind, 0)
        self.synced_items += written
        chunk = ChunkResult(offset=offset, fetched=len(records), written=written)
        self.chunks.append(chunk)

        logger.info(
            "chunk_complete",
            store_id=self.adapter.store.id,
            offset=offset,
            fetched=chunk.fetched,
            written=written,
            synced=self.synced_items,
        )
        return chunk
