# Schemas module
from .requests import SyncRequest
from .responses import (
    SyncResponse,
    SyncErrorResponse,
    QueueStatusResponse
)

__all__ = [
    "SyncRequest",
    "SyncResponse",
    "SyncErrorResponse",
    "QueueStatusResponse"
]
