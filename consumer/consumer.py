"""Queue consumer process: drains article tasks into the store."""
import asyncio
import signal
import logging
from consumer.worker import ArticleWorker
from database.connection import DatabaseConnection
from shared.config import settings

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main():
    """Run one worker until SIGTERM or SIGINT."""
    # Reuse the same id across restarts so unacked tasks are recovered
    worker_id = settings.worker_id

    db = await DatabaseConnection.init_mongo()
    redis_client = await DatabaseConnection.init_redis()

    worker = ArticleWorker(db, redis_client, worker_id)
    logger.info(
        f"Consumer {worker_id} on queue {worker.queue.queue_name} "
        f"({await worker.queue.length()} pending, {await worker.queue.dead_length()} dead)"
    )

    loop = asyncio.get_running_loop()

    def request_shutdown():
        logger.info("Received shutdown signal")
        asyncio.create_task(worker.stop())

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, request_shutdown)

    try:
        await worker.start()
    finally:
        await DatabaseConnection.close_connections()
        logger.info(f"Consumer {worker_id} shut down")


if __name__ == "__main__":
    asyncio.run(main())
