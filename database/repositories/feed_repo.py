"""Feed repository for the Feeds collection."""
from typing import Optional, Dict, Any
from datetime import datetime
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from models.feed import FeedStatusEnum
from shared.exceptions import StoreError
from shared.utils import get_utc_now


class FeedRepository:
    """Repository for idempotent feed writes keyed by the derived feed id."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.feeds

    async def upsert_feed(
        self,
        feed_id: str,
        user_id: str,
        feed_url: str,
        title: str,
        description: str = "",
        category: Optional[str] = None,
        status: str = FeedStatusEnum.APPROVED.value,
        consent_at: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Insert or update a feed.

        Ownership, URL, status and creation time are fixed by the first
        write; title, description, category and ``updated_at`` follow the
        latest sync.
        """
        now = get_utc_now()
        update = {
            "$set": {
                "title": title,
                "description": description,
                "category": category,
                "updated_at": now
            },
            "$setOnInsert": {
                "user_id": user_id,
                "feed_url": feed_url,
                "status": status,
                "consent_at": consent_at,
                "created_at": now
            }
        }

        try:
            return await self._upsert(feed_id, update)
        except DuplicateKeyError:
            try:
                return await self._upsert(feed_id, update)
            except PyMongoError as e:
                raise StoreError(f"Failed to upsert feed {feed_id}: {e}") from e
        except PyMongoError as e:
            raise StoreError(f"Failed to upsert feed {feed_id}: {e}") from e

    async def _upsert(self, feed_id: str, update: Dict[str, Any]) -> Dict[str, Any]:
        return await self.collection.find_one_and_update(
            {"_id": feed_id},
            update,
            upsert=True,
            return_document=ReturnDocument.AFTER
        )

    async def get_feed(self, feed_id: str) -> Optional[Dict[str, Any]]:
        """Get a feed by ID."""
        return await self.collection.find_one({"_id": feed_id})

    async def count_feeds(self) -> int:
        return await self.collection.count_documents({})
