"""One-shot sync entry point, for cron or any other scheduler."""
import argparse
import asyncio
import logging
import sys

from pymongo.errors import PyMongoError
from redis.exceptions import RedisError

from database.connection import DatabaseConnection
from shared.config import settings
from shared.exceptions import SyncError
from sync.orchestrator import build_orchestrator

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run one FreshRSS sync pass")
    parser.add_argument("--since", type=int, default=None,
                        help="Only fetch items newer than this epoch timestamp")
    parser.add_argument("--mode", choices=["inline", "queue"], default=None,
                        help=f"Override SYNC_MODE (currently {settings.sync_mode})")
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    args = parse_args(argv)

    if not settings.freshrss_url:
        logger.error("FRESHRSS_URL is not configured")
        return 1

    mode = args.mode or settings.sync_mode
    try:
        db = await DatabaseConnection.init_mongo()
        redis_client = await DatabaseConnection.init_redis() if mode == "queue" else None
        orchestrator = build_orchestrator(db, redis_client, mode)
        summary = await orchestrator.run(since=args.since)
    except SyncError as e:
        logger.error(f"Sync failed: {e}")
        return 1
    except (PyMongoError, RedisError) as e:
        logger.error(f"Sync failed, store unavailable: {e}")
        return 1
    finally:
        await DatabaseConnection.close_connections()

    print(
        f"feeds={summary.feeds_processed} synced={summary.feeds_synced} "
        f"articles={summary.articles_processed} failed={summary.articles_failed}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
