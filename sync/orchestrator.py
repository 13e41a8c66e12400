"""Sync orchestrator: one pass from FreshRSS into the store."""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import redis.asyncio as redis
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError as PydanticValidationError

from consumer.queue import ArticleQueue
from database.repositories.article_repo import ArticleRepository
from database.repositories.feed_repo import FeedRepository
from database.repositories.user_repo import UserRepository
from models.article import ArticleTask
from models.feed import FeedStatusEnum
from models.freshrss import StreamItem, Subscription
from shared.config import settings
from shared.exceptions import FetchError, ValidationError
from shared.utils import get_utc_now
from sync.client import FreshRssClient
from sync.sinks import ArticleSink, InlineSink, QueueSink

logger = logging.getLogger(__name__)

SOURCE_FEED_PREFIX = "feed/"
FEED_ID_PREFIX = "feed_"


def derive_feed_id(subscription_id: str) -> str:
    """Stable local feed id for a FreshRSS subscription id (``feed/12`` -> ``feed_12``)."""
    return f"{FEED_ID_PREFIX}{subscription_id.removeprefix(SOURCE_FEED_PREFIX)}"


def subscription_category(subscription: Subscription) -> str:
    for category in subscription.categories:
        if category.label:
            return category.label
    return settings.fallback_category


def map_item(raw: Dict[str, Any], feed_id: str) -> ArticleTask:
    """Normalize one raw stream item into an article task."""
    try:
        item = StreamItem.model_validate(raw)
    except PydanticValidationError as e:
        item_id = raw.get("id") if isinstance(raw, dict) else None
        raise ValidationError(f"Malformed item {item_id!r}: {e}") from e

    if not item.id:
        raise ValidationError("Item has an empty id")

    content = item.content.content if item.content else None
    summary = item.summary.content if item.summary else None

    link = None
    for candidates in (item.canonical, item.alternate):
        if candidates and candidates[0].href:
            link = candidates[0].href
            break

    return ArticleTask(
        source_item_id=item.id,
        feed_id=feed_id,
        title=item.title,
        content=content or summary,
        summary=summary,
        author_name=item.author or None,
        original_link=link,
        published_at=item.published
    )


@dataclass
class SyncSummary:
    """Outcome of one sync pass."""
    mode: str
    feeds_processed: int = 0
    feeds_synced: int = 0
    articles_processed: int = 0
    articles_failed: int = 0
    failed_feeds: List[str] = field(default_factory=list)
    failed_items: List[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


class SyncOrchestrator:
    """Drives a sync pass: login, subscriptions, feed upserts, then items."""

    def __init__(
        self,
        client: FreshRssClient,
        feed_repo: FeedRepository,
        user_repo: UserRepository,
        sink: ArticleSink
    ):
        self.client = client
        self.feed_repo = feed_repo
        self.user_repo = user_repo
        self.sink = sink

    async def run(self, since: Optional[int] = None) -> SyncSummary:
        """
        Run one pass.

        Login, subscription listing and feed upserts are fatal: their errors
        propagate and the pass stops. Item listing and per-item failures are
        logged and counted, and the pass carries on.
        """
        summary = SyncSummary(mode=self.sink.mode, started_at=get_utc_now())
        logger.info(f"Starting sync pass ({summary.mode} mode)")

        await self.client.authenticate()
        subscriptions = await self.client.list_subscriptions()

        owner_id = await self.user_repo.ensure_system_user()
        feed_ids = {}
        for subscription in subscriptions:
            feed_id = derive_feed_id(subscription.id)
            await self.feed_repo.upsert_feed(
                feed_id=feed_id,
                user_id=owner_id,
                feed_url=subscription.url,
                title=subscription.title,
                description="",
                category=subscription_category(subscription),
                status=FeedStatusEnum.APPROVED.value
            )
            feed_ids[subscription.id] = feed_id
            summary.feeds_processed += 1

        for subscription in subscriptions:
            await self._sync_feed(subscription, feed_ids[subscription.id], since, summary)

        summary.finished_at = get_utc_now()
        logger.info(
            f"Sync complete: {summary.feeds_processed} feeds, "
            f"{summary.articles_processed} articles {'enqueued' if summary.mode == 'queue' else 'processed'}, "
            f"{summary.articles_failed} failed"
        )
        return summary

    async def _sync_feed(self, subscription: Subscription, feed_id: str, since: Optional[int], summary: SyncSummary):
        try:
            page = await self.client.list_items(subscription.id, since)
        except FetchError as e:
            logger.warning(f"Failed to fetch items for {subscription.id}: {e}")
            summary.failed_feeds.append(subscription.id)
            return

        failures = 0
        for raw in page.items:
            item_id = raw.get("id") if isinstance(raw, dict) else None
            try:
                task = map_item(raw, feed_id)
                await self.sink.submit(task)
            except Exception as e:
                logger.warning(f"Failed to process article {item_id} from {subscription.id}: {e}")
                summary.failed_items.append(str(item_id))
                summary.articles_failed += 1
                failures += 1
                continue
            summary.articles_processed += 1

        if failures == 0:
            summary.feeds_synced += 1
        logger.info(f"Synced {len(page.items) - failures}/{len(page.items)} items for {subscription.id}")


def build_orchestrator(
    db: AsyncIOMotorDatabase,
    redis_client: Optional[redis.Redis] = None,
    mode: Optional[str] = None,
    client: Optional[FreshRssClient] = None
) -> SyncOrchestrator:
    """Wire an orchestrator for ``inline`` or ``queue`` mode."""
    mode = mode or settings.sync_mode
    if mode == "inline":
        sink = InlineSink(ArticleRepository(db))
    elif mode == "queue":
        if redis_client is None:
            raise ValueError("Queue mode requires a Redis client")
        sink = QueueSink(ArticleQueue(redis_client))
    else:
        raise ValueError(f"Unknown sync mode: {mode}")

    return SyncOrchestrator(
        client=client or FreshRssClient(),
        feed_repo=FeedRepository(db),
        user_repo=UserRepository(db),
        sink=sink
    )
