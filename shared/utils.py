"""Shared utility functions."""
import uuid
from datetime import datetime, timezone
from typing import Optional


def generate_article_id() -> str:
    """Generate a unique article ID."""
    return f"art_{uuid.uuid4().hex[:12]}"


def generate_task_id() -> str:
    """Generate a unique task ID."""
    return f"task_{uuid.uuid4().hex[:12]}"


def get_utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def from_epoch_seconds(value: Optional[int]) -> Optional[datetime]:
    """Convert epoch seconds to an aware UTC datetime."""
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


def format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format datetime to ISO format string."""
    if dt is None:
        return None
    return dt.isoformat()


def calculate_exponential_backoff(attempt: int, base_delay: float = 1.0, max_delay: float = 60.0) -> float:
    """Calculate exponential backoff delay."""
    delay = base_delay * (2 ** attempt)
    return min(delay, max_delay)
