"""HTTP fetcher with marketplace rate-limit handling."""

import asyncio
from typing import Any, Awaitable, Callable, Optional

import httpx
import structlog
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, wait_fixed

from src.sync.errors import FetchFailedError, MalformedResponseError, RateLimitExceededError

logger = structlog.get_logger()

Sleep = Callable[[float], Awaitable[Any]]
ThrottleCheck = Callable[[Any], bool]


def normalize_base_url(domain: str) -> str:
    """Add ``https://`` when no scheme is given and drop trailing slashes."""
    domain = domain.strip().rstrip("/")
    if not domain.startswith(("http://", "https://")):
        domain = f"https://{domain}"
    return domain


class RateLimited(Exception):
    """The server asked us to slow down (HTTP 429 or a throttled body)."""

    def __init__(self, body: str = ""):
        self.body = body
        super().__init__("rate limited")


class TransientFailure(Exception):
    """A non-2xx status or a transport error worth one more try."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body[:200]}")


class _Attempts:
    """Per-call retry budget shared by the send step and the stop check."""

    def __init__(self, max_rate_limit_retries: int):
        self.max_rate_limit_retries = max_rate_limit_retries
        self.rate_limited = 0
        self.failed = 0

    def exhausted(self, retry_state: RetryCallState) -> bool:
        return self.rate_limited > self.max_rate_limit_retries or self.failed > 1


class RateLimitedFetcher:
    """Issues JSON requests and retries throttled or failed calls.

    Retry state is local to one call:
    - 429 (or a body the caller flags as throttled) is retried up to
      ``max_rate_limit_retries`` times, sleeping ``retry_delay`` seconds
      before each retry.
    - Any other non-2xx (or a transport error) is retried exactly once.
    """

    def __init__(
        self,
        headers: Optional[dict[str, str]] = None,
        *,
        timeout: float = 30.0,
        max_rate_limit_retries: int = 3,
        retry_delay: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.headers = {"Accept": "application/json", **(headers or {})}
        self.timeout = timeout
        self.max_rate_limit_retries = max_rate_limit_retries
        self.retry_delay = retry_delay
        self._transport = transport
        self._sleep = sleep
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=self.headers,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RateLimitedFetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def get_json(self, url: str, **kwargs) -> Any:
        return await self.request_json("GET", url, **kwargs)

    async def post_json(self, url: str, **kwargs) -> Any:
        return await self.request_json("POST", url, **kwargs)

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        throttled: Optional[ThrottleCheck] = None,
        **kwargs,
    ) -> Any:
        """Make a request and return the decoded JSON body.

        Args:
            method: HTTP method
            url: Absolute URL
            throttled: Optional check on a decoded 2xx body; returning True
                treats the response like a 429 and spends the same budget
            **kwargs: Passed through to ``httpx.AsyncClient.request``

        Returns:
            Decoded JSON body
        """
        attempts = _Attempts(self.max_rate_limit_retries)
        retrying = AsyncRetrying(
            sleep=self._sleep,
            stop=attempts.exhausted,
            wait=wait_fixed(self.retry_delay),
            retry=retry_if_exception_type((RateLimited, TransientFailure)),
            before_sleep=lambda state: self._log_retry(url, attempts, state),
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    body = await self._send(method, url, attempts, throttled, **kwargs)
        except RateLimited as e:
            logger.error(
                "fetch_rate_limit_exceeded",
                url=url,
                attempts=attempts.rate_limited,
                response=e.body[:500],
            )
            raise RateLimitExceededError(url, attempts.rate_limited) from e
        except TransientFailure as e:
            logger.error("fetch_failed", url=url, status_code=e.status_code, response=e.body[:500])
            raise FetchFailedError(url, e.status_code, e.body) from e

        return body

    async def _send(
        self,
        method: str,
        url: str,
        attempts: _Attempts,
        throttled: Optional[ThrottleCheck],
        **kwargs,
    ) -> Any:
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            attempts.failed += 1
            raise TransientFailure(0, str(e)) from e

        if response.status_code == 429:
            attempts.rate_limited += 1
            raise RateLimited(response.text)

        if not response.is_success:
            attempts.failed += 1
            raise TransientFailure(response.status_code, response.text)

        body = self._decode(url, response)
        if throttled is not None and throttled(body):
            attempts.rate_limited += 1
            raise RateLimited(response.text)
        return body

    def _log_retry(self, url: str, attempts: _Attempts, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception()
        if isinstance(error, RateLimited):
            logger.warning(
                "fetch_rate_limited",
                url=url,
                attempt=attempts.rate_limited,
                max_retries=self.max_rate_limit_retries,
                delay=self.retry_delay,
            )
        else:
            logger.warning(
                "fetch_retry",
                url=url,
                status_code=error.status_code,
                error=error.body[:200],
                delay=self.retry_delay,
            )

    @staticmethod
    def _decode(url: str, response: httpx.Response) -> Any:
        content_type = response.headers.get("content-type", "")
        if content_type and "json" not in content_type:
            raise MalformedResponseError(
                f"Unexpected content type {content_type!r} from {url}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Failed to parse response from {url}: {e}") from e
