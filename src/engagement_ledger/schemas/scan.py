"""Scan-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from engagement_ledger.models.scan import MediaKind, ScanResult


class ScanCreate(BaseModel):
    """Schema for reporting a completed scan."""

    result: ScanResult
    media_kind: MediaKind
    risk_score: int = Field(..., ge=0, le=100, strict=True)
    request_token: str | None = Field(
        None,
        min_length=1,
        max_length=64,
        description="Client token; resubmitting the same token records the scan once",
    )


class ScanResponse(BaseModel):
    """Schema for scan information returned by the API."""

    id: int
    user_id: str
    result: ScanResult
    media_kind: MediaKind
    risk_score: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ScanTrackingResponse(BaseModel):
    """Outcome of best-effort scan tracking."""

    tracked: bool
    queued: bool
    scan: ScanResponse | None = None


class ScanFlushResponse(BaseModel):
    """Outcome of retrying queued scans."""

    recorded: int
    pending: int
