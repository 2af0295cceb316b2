"""
Generation quota models.
"""
from datetime import date
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class QuotaRecord(BaseModel):
    """Local ledger of generation requests for one calendar day."""
    window_start: date
    used: int = Field(0, ge=0)
    limit: int = Field(..., ge=0)
    blocked_message: Optional[str] = None  # Set when the server reports exhaustion
    reset_in: Optional[str] = None  # Human-readable, e.g. "5 hours"


class QuotaStatus(BaseModel):
    """Read-only projection of the quota for display and gating."""
    used: int
    limit: int
    remaining: int
    exhausted: bool
    reset_in: Optional[str] = None
    message: Optional[str] = None


class ServerQuota(BaseModel):
    """Body returned by the track-generation-limit endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    used: int = 0
    remaining: Optional[int] = None
    reset_in: Optional[str] = Field(None, alias="resetIn")
