"""Application settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings."""

    debug_mode: bool = False
    local_store: str = "in_memory"  # in_memory or sql
    remote_store: str = "in_memory"  # in_memory or redis
    database_url: str = ""  # Required when local_store=sql
    redis_url: str = "redis://localhost:6379/0"
    preferences_path: str = ""  # Empty keeps preferences in memory
    cache_directories: list[str] = []

    # Sync timing
    sync_poll_interval_seconds: float = 0.5
    pre_sign_out_sync_timeout_seconds: float = 10.0
    guest_migration_timeout_seconds: float = 30.0
    sync_max_retries: int = 3
    sync_retry_delay_seconds: float = 2.0
    post_bulk_push_settle_seconds: float = 2.0
    recent_local_edit_window_seconds: int = 300  # 5 minutes
    auto_sync_enabled: bool = False
    sync_interval: str = "1hour"

    min_password_length: int = 6

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
    )


settings = Settings()
