"""Shared configuration for all services."""
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # FreshRSS Configuration
    freshrss_url: str = ""
    freshrss_user: str = ""
    freshrss_api_password: str = ""
    cf_access_client_id: Optional[str] = None
    cf_access_client_secret: Optional[str] = None
    request_timeout: int = 30
    sync_page_size: int = 100

    # Sync Configuration
    sync_mode: str = "inline"  # inline | queue
    fallback_category: str = "Uncategorised"
    system_user_id: str = "system"

    # Redis Configuration
    redis_url: str = "redis://localhost:6379"
    redis_queue_name: str = "article_tasks"

    # MongoDB Configuration
    mongo_url: str = "mongodb://localhost:27017"
    mongo_db_name: str = "community_rss"

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False

    # Consumer Configuration
    worker_id: str = "worker-1"
    consumer_poll_interval: float = 1.0
    max_retry_attempts: int = 3
    retry_base_delay: float = 1.0

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
