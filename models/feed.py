"""Feed model definitions."""
from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class FeedStatusEnum(str, Enum):
    """Feed moderation status enumeration."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SUSPENDED = "suspended"


class FeedModel(BaseModel):
    """Feed model for database representation."""
    id: str = Field(alias="_id")
    user_id: str
    feed_url: str
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    status: FeedStatusEnum = FeedStatusEnum.PENDING
    consent_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        populate_by_name = True
