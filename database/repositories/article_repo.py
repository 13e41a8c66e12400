"""Article repository for the Articles collection."""
import logging
from typing import Optional, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from models.article import ProcessedArticle
from shared.exceptions import StoreError
from shared.utils import generate_article_id, get_utc_now

logger = logging.getLogger(__name__)


class ArticleRepository:
    """Repository for idempotent article writes keyed by source item id."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.articles

    async def upsert_article(self, article: ProcessedArticle) -> Dict[str, Any]:
        """
        Insert or update an article by its source item id.

        The local id, feed reference and media flag are only written on
        insert; display fields and ``synced_at`` are overwritten every time.
        """
        update = {
            "$set": {
                "title": article.title,
                "content": article.content,
                "summary": article.summary,
                "original_link": article.original_link,
                "author_name": article.author_name,
                "published_at": article.published_at,
                "synced_at": get_utc_now()
            },
            "$setOnInsert": {
                "_id": generate_article_id(),
                "feed_id": article.feed_id,
                "media_pending": True
            }
        }

        try:
            return await self._upsert(article.source_item_id, update)
        except DuplicateKeyError:
            # Lost a race with a concurrent first insert; the row exists now.
            logger.debug(f"Retrying upsert for article {article.source_item_id} after duplicate key")
            try:
                return await self._upsert(article.source_item_id, update)
            except PyMongoError as e:
                raise StoreError(f"Failed to upsert article {article.source_item_id}: {e}") from e
        except PyMongoError as e:
            raise StoreError(f"Failed to upsert article {article.source_item_id}: {e}") from e

    async def _upsert(self, source_item_id: str, update: Dict[str, Any]) -> Dict[str, Any]:
        return await self.collection.find_one_and_update(
            {"source_item_id": source_item_id},
            update,
            upsert=True,
            return_document=ReturnDocument.AFTER
        )

    async def get_article(self, article_id: str) -> Optional[Dict[str, Any]]:
        """Get an article by local ID."""
        return await self.collection.find_one({"_id": article_id})

    async def get_article_by_source_id(self, source_item_id: str) -> Optional[Dict[str, Any]]:
        """Get an article by its FreshRSS item id."""
        return await self.collection.find_one({"source_item_id": source_item_id})

    async def count_articles(self, feed_id: Optional[str] = None) -> int:
        """Count articles, optionally for one feed."""
        query = {}
        if feed_id:
            query["feed_id"] = feed_id
        return await self.collection.count_documents(query)
