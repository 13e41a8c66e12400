"""Request schemas for API endpoints."""
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class SyncRequest(BaseModel):
    """Request schema for a manually triggered sync pass."""
    since: Optional[int] = Field(
        default=None,
        ge=0,
        description="Only fetch items newer than this epoch timestamp (seconds)"
    )
    mode: Optional[str] = Field(
        default=None,
        description="Override the configured sync mode (inline or queue)"
    )

    @field_validator('mode')
    @classmethod
    def validate_mode(cls, v: Optional[str]) -> Optional[str]:
        """Validate sync mode."""
        if v is not None and v not in ('inline', 'queue'):
            raise ValueError('mode must be "inline" or "queue"')
        return v
