from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Application
    app_name: str = "Shorty"
    app_version: str = "1.0.0"

    # Server
    host: str = "0.0.0.0"
    app_port: int = 8080

    # Database
    database_url: str = "sqlite:///./shorty.db"
    db_connect_retries: int = 10  # Startup attempts before giving up
    db_connect_backoff: float = 2.0  # Seconds between startup attempts

    # URL Shortener specific
    base_url: Optional[str] = None  # Derived from the request when unset
    short_code_length: int = 6  # Column allows up to 10 characters
    short_code_strategy: str = "random"  # Options: "random", "token"
    list_limit: int = 100

    # Click queue settings
    queue_backend: str = "memory"  # Options: "memory", "redis_streams"
    redis_url: str = "redis://localhost:6379/0"
    queue_name: str = "url_clicks"
    queue_consumer_group: str = "click_workers"

    # Click worker settings
    click_worker_enabled: bool = True  # Run the worker inside the web process
    click_worker_batch_size: int = 100
    click_worker_interval: float = 0.5  # Poll interval in seconds when idle

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
