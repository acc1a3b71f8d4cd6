"""API request/response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.sync.results import SyncResult


# === Sync Schemas ===

class SyncResultResponse(BaseModel):
    """Outcome of a triggered sync."""
    success: bool
    message: str
    synced_items: int = Field(0, serialization_alias="syncedItems")
    outcome: str = Field(..., description="success, error or not_implemented")

    @classmethod
    def from_result(cls, result: SyncResult) -> "SyncResultResponse":
        return cls(
            success=result.success,
            message=result.message,
            synced_items=result.synced_items,
            outcome=str(result.outcome),
        )


class StoreConnectionResponse(BaseModel):
    """Outcome of a credential check."""
    store_id: str
    connected: bool
    status: str


# === Audit Schemas ===

class SyncLogEntry(BaseModel):
    """One sync audit record."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    type: str
    status: str
    details: str
    related_id: Optional[str] = None
    timestamp: datetime
