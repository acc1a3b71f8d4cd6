"""Sync outcome returned to callers."""

from dataclasses import dataclass
from enum import StrEnum


class SyncOutcome(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    NOT_IMPLEMENTED = "not_implemented"


@dataclass
class SyncResult:
    """Top-level result of one sync attempt.

    ``success`` stays True for not-implemented syncs so that placeholder
    sync types do not show up as failures; ``outcome`` tells them apart.
    """

    success: bool
    message: str
    synced_items: int = 0
    outcome: SyncOutcome = SyncOutcome.SUCCESS

    @classmethod
    def succeeded(cls, message: str, synced_items: int) -> "SyncResult":
        return cls(True, message, synced_items, SyncOutcome.SUCCESS)

    @classmethod
    def failed(cls, message: str, synced_items: int = 0) -> "SyncResult":
        return cls(False, message, synced_items, SyncOutcome.ERROR)

    @classmethod
    def not_implemented(cls, message: str) -> "SyncResult":
        return cls(True, message, 0, SyncOutcome.NOT_IMPLEMENTED)
