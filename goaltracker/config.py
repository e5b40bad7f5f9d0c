from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "postgresql+asyncpg://localhost:5432/goaltracker"
    default_tz: str = "UTC"
    tracker_api_key: str | None = None

    # Local cache is per installation, not per user
    local_cache_dir: str = ".goaltracker"

    # Replication
    sync_debounce_ms: int = 600  # quiet period before the latest state is pushed
    remote_timeout_seconds: float = 10.0  # bound on a single fetch/upsert

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
