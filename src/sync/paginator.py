"""Offset pagination over a marketplace endpoint."""

import asyncio
from typing import Any, AsyncIterator, Awaitable, Callable

import structlog

from src.config import SyncConfig

logger = structlog.get_logger()

PageFetcher = Callable[[int, int], Awaitable[list[dict[str, Any]]]]


async def paginate(
    fetch_page: PageFetcher,
    start_offset: int,
    config: SyncConfig,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> AsyncIterator[dict[str, Any]]:
    """
    Yield raw records page by page, starting at ``start_offset``.

    A page shorter than ``config.page_size`` is terminal. A dataset whose
    size is an exact multiple of the page size therefore costs one extra
    call that comes back empty. At most ``config.max_pages_per_chunk``
    pages are requested per call; callers continue from
    ``start_offset + config.chunk_size``.

    Fetch errors propagate and end the iteration.

    Args:
        fetch_page: ``(offset, limit) -> records`` for one endpoint
        start_offset: Offset of the first record to request
        config: Page size, page cap and inter-page delay
        sleep: Awaitable sleep, injectable for tests
    """
    offset = start_offset
    fetched = 0

    for page_number in range(config.max_pages_per_chunk):
        records = await fetch_page(offset, config.page_size)
        fetched += len(records)
        logger.info(
            "page_fetched",
            offset=offset,
            page=page_number + 1,
            count=len(records),
            total=fetched,
        )

        for record in records:
            yield record

        if len(records) < config.page_size:
            logger.info("pagination_complete", start_offset=start_offset, fetched=fetched)
            return

        offset += config.page_size
        if page_number + 1 < config.max_pages_per_chunk:
            await sleep(config.page_delay_seconds)

    logger.info(
        "pagination_page_cap_reached",
        start_offset=start_offset,
        next_offset=offset,
        fetched=fetched,
    )
