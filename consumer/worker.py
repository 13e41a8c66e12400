"""Worker process for consuming article tasks."""
import asyncio
import logging
import redis.asyncio as redis
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError as PydanticValidationError

from consumer.queue import ArticleQueue, QueuedMessage
from database.repositories.article_repo import ArticleRepository
from shared.config import settings
from shared.exceptions import ValidationError
from shared.utils import calculate_exponential_backoff
from sync.sinks import store_article

logger = logging.getLogger(__name__)


class ArticleWorker:
    """Worker that processes and stores article tasks from the Redis queue."""

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        redis_client: redis.Redis,
        worker_id: str = "worker-1"
    ):
        self.worker_id = worker_id
        self.queue = ArticleQueue(redis_client, worker_id)
        self.article_repo = ArticleRepository(db)
        self.running = True

    async def start(self):
        """Start the worker loop."""
        logger.info(f"Worker {self.worker_id} starting...")
        await self.queue.recover()

        while self.running:
            message = await self.queue.dequeue()

            if message:
                await self.process_message(message)
            else:
                # No tasks available, wait before polling again
                await asyncio.sleep(settings.consumer_poll_interval)

    async def stop(self):
        """Stop the worker gracefully."""
        logger.info(f"Worker {self.worker_id} stopping...")
        self.running = False

    async def process_message(self, message: QueuedMessage) -> bool:
        """
        Process one delivered task, then ack it or ask for a retry.

        Returns True when the task was stored and acknowledged.
        """
        try:
            task = message.to_task()
            await store_article(task, self.article_repo)
        except (ValidationError, PydanticValidationError) as e:
            logger.error(f"Dropping task {message.task_id}: {e}")
            await self.queue.dead_letter(message)
            return False
        except Exception as e:
            await self._handle_failure(message, e)
            return False

        await self.queue.ack(message)
        logger.info(f"Stored article {task.source_item_id} (task {message.task_id})")
        return True

    async def _handle_failure(self, message: QueuedMessage, error: Exception):
        """Handle a failed task with retry logic."""
        item_id = message.payload.get("source_item_id")

        if message.retry_count < self.queue.max_retries:
            delay = calculate_exponential_backoff(message.retry_count, settings.retry_base_delay)
            logger.warning(
                f"Retrying article {item_id} in {delay}s (attempt {message.retry_count + 1}): {error}"
            )
            await asyncio.sleep(delay)

        requeued = await self.queue.retry(message)
        if not requeued:
            logger.error(f"Article {item_id} failed after {message.retry_count + 1} attempts: {error}")
