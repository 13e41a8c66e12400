"""Admin routes for triggering and inspecting sync."""
import logging
from dataclasses import asdict
from typing import Optional
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase
import redis.asyncio as redis

from database.connection import get_db, get_redis
from consumer.queue import ArticleQueue
from shared.config import settings
from shared.exceptions import SyncError
from sync.orchestrator import build_orchestrator
from api.schemas.requests import SyncRequest
from api.schemas.responses import SyncResponse, SyncErrorResponse, QueueStatusResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["sync"])


@router.post(
    "/sync",
    response_model=SyncResponse,
    responses={
        status.HTTP_502_BAD_GATEWAY: {"model": SyncErrorResponse},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": SyncErrorResponse},
    }
)
async def trigger_sync(
    request: Optional[SyncRequest] = None,
    db: AsyncIOMotorDatabase = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis)
):
    """
    Run one sync pass and return its summary.

    Not authenticated; keep it behind the access gateway.
    """
    request = request or SyncRequest()

    if not settings.freshrss_url:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=SyncErrorResponse(error="FreshRSS not configured").model_dump()
        )

    orchestrator = build_orchestrator(db, redis_client, request.mode)

    try:
        summary = await orchestrator.run(since=request.since)
    except SyncError as e:
        logger.error(f"Manual sync failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=SyncErrorResponse(error=str(e), error_type=type(e).__name__).model_dump()
        )

    return SyncResponse(**asdict(summary))


@router.get("/queue", response_model=QueueStatusResponse)
async def queue_status(redis_client: redis.Redis = Depends(get_redis)):
    """Get the length of the article queue and its dead-letter list."""
    queue = ArticleQueue(redis_client)
    return QueueStatusResponse(
        pending=await queue.length(),
        dead=await queue.dead_length()
    )
