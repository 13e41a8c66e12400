"""Response schemas for API endpoints."""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class SyncResponse(BaseModel):
    """Response schema for a completed sync pass."""
    ok: bool = Field(default=True)
    mode: str = Field(..., description="Sync mode used for the pass")
    feeds_processed: int = Field(..., description="Feeds upserted")
    feeds_synced: int = Field(..., description="Feeds whose items were all processed")
    articles_processed: int = Field(..., description="Articles processed or enqueued")
    articles_failed: int = Field(..., description="Articles that failed")
    failed_feeds: List[str] = Field(default_factory=list, description="Subscriptions whose items could not be fetched")
    failed_items: List[str] = Field(default_factory=list, description="Source item ids that failed")
    started_at: Optional[datetime] = Field(None, description="Pass start timestamp")
    finished_at: Optional[datetime] = Field(None, description="Pass end timestamp")


class SyncErrorResponse(BaseModel):
    """Schema for a failed sync pass."""
    ok: bool = Field(default=False)
    error: str = Field(..., description="Error message")
    error_type: Optional[str] = Field(None, description="Error class name")


class QueueStatusResponse(BaseModel):
    """Response schema for work queue status."""
    pending: int = Field(..., description="Tasks waiting to be processed")
    dead: int = Field(..., description="Tasks in the dead-letter list")
