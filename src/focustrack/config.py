"""Application settings via pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables with FOCUS_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="FOCUS_",
        env_file=".env",
        case_sensitive=False,
    )

    # --- Core ---
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "json"

    # --- Storage ---
    store_backend: str = "sql"  # "sql" or "memory"
    database_url: str = "sqlite+aiosqlite:///./focustrack.db"
    database_create_tables: bool = True
    redis_url: str = "redis://localhost:6379/0"
    redis_enabled: bool = True

    # --- Timers ---
    auto_post_delay_seconds: float = 600  # 10 minutes after leaving a focus room
    auto_end_delay_seconds: float = 600  # 10 minutes after a voice disconnect

    # --- Progression ---
    xp_per_hour: int = 100
    session_completion_xp: int = 25
    first_session_of_day_xp: int = 25
    streak_milestone_bonuses: dict[int, int] = {7: 100, 30: 500}
    stats_timezone: str = "UTC"

    # --- Weekly challenge ---
    weekly_target_xp: int = 1000
    weekly_bonus_xp: int = 200
    weekly_top_earners: int = 10

    # --- Leaderboards ---
    leaderboard_timezone: str = "America/Los_Angeles"
    leaderboard_default_limit: int = 20
    live_sessions_limit: int = 10


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
