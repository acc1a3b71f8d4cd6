"""Error types raised by the sync pipeline."""


class SyncError(Exception):
    """Base class for all sync failures."""


# === Fetch ===


class FetchError(SyncError):
    """A marketplace request could not produce usable data."""


class RateLimitExceededError(FetchError):
    """The marketplace kept answering 429 after the retry budget was spent."""

    def __init__(self, url: str, attempts: int):
        self.url = url
        self.attempts = attempts
        super().__init__(f"Rate limit exceeded for {url} after {attempts} attempts")


class FetchFailedError(FetchError):
    """Non-2xx response (or transport failure, status 0) after one retry."""

    def __init__(self, url: str, status_code: int, body: str):
        self.url = url
        self.status_code = status_code
        self.body = body
        super().__init__(f"Fetch failed for {url}: {status_code} {body[:200]}")


class MalformedResponseError(FetchError):
    """The marketplace answered 2xx with a body we cannot use."""


# === Storage ===


class StorageError(SyncError):
    """Any failure writing a batch."""


class DuplicateKeyError(StorageError):
    """A uniqueness conflict survived deduplication."""


# === Dispatch ===


class MissingCredentialsError(SyncError):
    """The store lacks the credential its platform requires."""


class UnsupportedSyncError(SyncError):
    """No pipeline exists for this platform and sync type."""
