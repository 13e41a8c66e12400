"""Where the sync loop hands each article task."""
from typing import Any, Dict

from consumer.queue import ArticleQueue
from database.repositories.article_repo import ArticleRepository
from models.article import ArticleTask
from sync.processor import process_article


async def store_article(task: ArticleTask, article_repo: ArticleRepository) -> Dict[str, Any]:
    """Process a task and upsert the result. Shared by inline mode and the queue worker."""
    processed = process_article(task)
    return await article_repo.upsert_article(processed)


class ArticleSink:
    """Receives article tasks from the sync loop."""

    mode = "abstract"

    async def submit(self, task: ArticleTask):
        raise NotImplementedError


class InlineSink(ArticleSink):
    """Processes and stores each task immediately."""

    mode = "inline"

    def __init__(self, article_repo: ArticleRepository):
        self.article_repo = article_repo

    async def submit(self, task: ArticleTask):
        await store_article(task, self.article_repo)


class QueueSink(ArticleSink):
    """Enqueues each task for the consumer process."""

    mode = "queue"

    def __init__(self, queue: ArticleQueue):
        self.queue = queue

    async def submit(self, task: ArticleTask):
        await self.queue.enqueue(task)
