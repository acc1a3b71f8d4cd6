"""Fixtures for end-to-end sync scenarios."""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from src.integrations.fetcher import RateLimitedFetcher
from src.integrations.mirakl import MiraklClient
from src.models.sync_log import SyncStatus
from src.sync.adapters import MiraklOffersAdapter, MiraklOrdersAdapter
from src.sync.writer import UpsertWriter


class FakeMiraklApi:
    """In-memory Mirakl shop API serving offers and orders by offset."""

    def __init__(self, offers=None, orders=None):
        self.data = {"offers": offers or [], "orders": orders or []}
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = urlparse(str(request.url)).path.rsplit("/", 1)[-1]
        params = parse_qs(urlparse(str(request.url)).query)
        offset = int(params.get("offset", ["0"])[0])
        limit = int(params.get("max", ["100"])[0])
        records = self.data[key]
        return httpx.Response(
            200,
            json={key: records[offset:offset + limit], "total_count": len(records)},
        )

    def page_offsets(self, key: str) -> list[int]:
        """Offsets of page requests (count calls excluded)."""
        offsets = []
        for request in self.requests:
            if request.url.path.endswith(key) and request.url.params.get("max") != "1":
                offsets.append(int(request.url.params["offset"]))
        return offsets

    def client(self, sleep) -> MiraklClient:
        fetcher = RateLimitedFetcher(transport=httpx.MockTransport(self.handler), sleep=sleep, retry_delay=0)
        return MiraklClient("acme-prod.mirakl.net", "mirakl-shop-key", fetcher)

    def adapters(self, sleep) -> dict:
        async def offers(store, config):
            return MiraklOffersAdapter(store, self.client(sleep))

        async def orders(store, config):
            return MiraklOrdersAdapter(store, self.client(sleep))

        return {("mirakl", "products"): offers, ("mirakl", "orders"): orders}


class RecordingWriter(UpsertWriter):
    """Upsert writer that records each chunk's batches and reports their row counts."""

    def __init__(self, error: Exception | None = None):
        super().__init__(session_factory=None)
        self.calls: list[list] = []
        self.error = error

    async def write(self, batches):
        self.calls.append(batches)
        if self.error is not None:
            raise self.error
        return {batch.kind: len(batch.rows) for batch in batches}


class FakeSyncLogs:
    """Sync log service collecting entries."""

    def __init__(self):
        self.entries: list[dict] = []

    async def record(self, user_id, sync_type, status, details, related_id=None):
        self.entries.append(
            {
                "user_id": user_id,
                "type": sync_type,
                "status": SyncStatus(status),
                "details": details,
                "related_id": related_id,
            }
        )
        return True

    def statuses(self) -> list[SyncStatus]:
        return [entry["status"] for entry in self.entries]


def numbered_offers(count: int) -> list[dict]:
    return [
        {"shop_sku": f"SKU-{n:05d}", "product_title": f"Item {n}", "total_price": 10, "quantity": 1}
        for n in range(count)
    ]


@pytest.fixture
def recording_writer():
    return RecordingWriter()


@pytest.fixture
def sync_logs():
    return FakeSyncLogs()


@pytest.fixture
def make_mirakl_api():
    """Build a fake Mirakl API from offers/orders lists."""
    return FakeMiraklApi


@pytest.fixture
def make_offers():
    """Build ``count`` distinct raw offers."""
    return numbered_offers


@pytest.fixture
def failing_writer():
    """Build a writer that raises the given error."""
    return RecordingWriter
