"""Article model definitions."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class ArticleTask(BaseModel):
    """One item as handed from the fetch loop to a sink (or the queue)."""
    source_item_id: str
    feed_id: str
    title: str = ""
    content: Optional[str] = None
    summary: Optional[str] = None
    author_name: Optional[str] = None
    original_link: Optional[str] = None
    published_at: Optional[int] = None  # epoch seconds


class ProcessedArticle(BaseModel):
    """Sanitized article ready for the upsert store."""
    source_item_id: str
    feed_id: str
    title: str
    content: str
    summary: str
    author_name: Optional[str] = None
    original_link: Optional[str] = None
    published_at: Optional[datetime] = None


class ArticleModel(BaseModel):
    """Article model for database representation."""
    id: str = Field(alias="_id")
    feed_id: str
    source_item_id: str
    title: str
    content: Optional[str] = None
    summary: Optional[str] = None
    original_link: Optional[str] = None
    author_name: Optional[str] = None
    published_at: Optional[datetime] = None
    synced_at: datetime
    media_pending: bool = True

    class Config:
        populate_by_name = True
