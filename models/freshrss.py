"""FreshRSS (Google Reader API) response shapes.

Only the fields the sync pipeline reads are declared; anything else in the
payload is ignored.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class Category(BaseModel):
    id: str = ""
    label: str = ""


class Subscription(BaseModel):
    """A subscribed feed as listed by FreshRSS."""
    id: str
    title: str = ""
    url: str = ""
    html_url: Optional[str] = Field(default=None, alias="htmlUrl")
    categories: List[Category] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class SubscriptionList(BaseModel):
    subscriptions: List[Subscription] = Field(default_factory=list)


class ItemLink(BaseModel):
    href: str = ""
    type: Optional[str] = None


class ItemContent(BaseModel):
    content: str = ""
    direction: Optional[str] = None


class StreamItem(BaseModel):
    """A single item from a stream/contents response."""
    id: str
    title: str = ""
    published: Optional[int] = None
    author: Optional[str] = None
    canonical: List[ItemLink] = Field(default_factory=list)
    alternate: List[ItemLink] = Field(default_factory=list)
    summary: Optional[ItemContent] = None
    content: Optional[ItemContent] = None
    categories: List[str] = Field(default_factory=list)


class StreamPage(BaseModel):
    """One page of a stream/contents response.

    Items are kept raw so a single malformed item can be rejected on its own
    instead of failing the whole page.
    """
    id: Optional[str] = None
    items: List[Dict[str, Any]] = Field(default_factory=list)
    continuation: Optional[str] = None
