"""Redis-backed work queue for article tasks."""
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
import redis.asyncio as redis

from models.article import ArticleTask
from shared.config import settings
from shared.utils import format_datetime, generate_task_id, get_utc_now

logger = logging.getLogger(__name__)


@dataclass
class QueuedMessage:
    """A task taken off the queue and not yet acknowledged."""
    raw: str
    task_id: str
    retry_count: int
    payload: Dict[str, Any]

    def to_task(self) -> ArticleTask:
        return ArticleTask.model_validate(self.payload)


class ArticleQueue:
    """
    At-least-once queue built on Redis lists.

    ``dequeue`` moves a message into a per-worker processing list; it stays
    there until ``ack`` or ``retry`` removes it, and ``recover`` pushes
    whatever a crashed worker left behind back onto the queue.
    """

    def __init__(self, redis_client: redis.Redis, worker_id: str = "worker-1", queue_name: str = None):
        self.redis = redis_client
        self.queue_name = queue_name or settings.redis_queue_name
        self.processing_name = f"{self.queue_name}:processing:{worker_id}"
        self.dead_letter_name = f"{self.queue_name}:dead"
        self.max_retries = settings.max_retry_attempts

    def _envelope(self, payload: Dict[str, Any], retry_count: int, task_id: str = None) -> Dict[str, Any]:
        return {
            "task_id": task_id or generate_task_id(),
            "retry_count": retry_count,
            "enqueued_at": format_datetime(get_utc_now()),
            "payload": payload
        }

    async def enqueue(self, task: ArticleTask, retry_count: int = 0) -> str:
        """Push a task onto the queue. Returns once Redis has accepted it."""
        envelope = self._envelope(task.model_dump(), retry_count)
        await self.redis.lpush(self.queue_name, json.dumps(envelope))
        return envelope["task_id"]

    async def dequeue(self) -> Optional[QueuedMessage]:
        """Take the oldest task, or None when the queue is empty."""
        while True:
            raw = await self.redis.lmove(self.queue_name, self.processing_name, "RIGHT", "LEFT")
            if raw is None:
                return None

            try:
                envelope = json.loads(raw)
                return QueuedMessage(
                    raw=raw,
                    task_id=envelope["task_id"],
                    retry_count=envelope.get("retry_count", 0),
                    payload=envelope["payload"]
                )
            except (json.JSONDecodeError, KeyError, TypeError):
                logger.error(f"Failed to parse task, moving to dead letter: {raw}")
                await self.redis.lpush(self.dead_letter_name, raw)
                await self.redis.lrem(self.processing_name, 1, raw)

    async def ack(self, message: QueuedMessage):
        """Remove a processed task for good."""
        await self.redis.lrem(self.processing_name, 1, message.raw)

    async def retry(self, message: QueuedMessage) -> bool:
        """
        Ask for redelivery of a failed task.

        Returns True if the task was requeued, False if it ran out of
        attempts and went to the dead-letter list.
        """
        if message.retry_count < self.max_retries:
            envelope = self._envelope(message.payload, message.retry_count + 1, message.task_id)
            await self.redis.lpush(self.queue_name, json.dumps(envelope))
            await self.redis.lrem(self.processing_name, 1, message.raw)
            return True

        await self.dead_letter(message)
        return False

    async def dead_letter(self, message: QueuedMessage):
        """Park a task that will never succeed."""
        await self.redis.lpush(self.dead_letter_name, message.raw)
        await self.redis.lrem(self.processing_name, 1, message.raw)

    async def recover(self) -> int:
        """Return unacknowledged tasks from this worker's processing list to the queue."""
        recovered = 0
        while await self.redis.lmove(self.processing_name, self.queue_name, "LEFT", "RIGHT") is not None:
            recovered += 1
        if recovered:
            logger.info(f"Recovered {recovered} unacknowledged tasks from {self.processing_name}")
        return recovered

    async def length(self) -> int:
        """Number of tasks waiting to be processed."""
        return await self.redis.llen(self.queue_name)

    async def dead_length(self) -> int:
        return await self.redis.llen(self.dead_letter_name)
