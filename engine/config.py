"""Engine settings loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Tunables for the sync engine and its host bridge.

    Every field can be overridden with a ``CHANSYNC_``-prefixed environment
    variable or a ``.env`` file entry.
    """

    # Presence
    typing_ttl_seconds: float = 5.0
    typing_sweep_interval_seconds: float = 1.0
    typing_throttle_seconds: float = 3.0

    # Sending
    send_timeout_seconds: float = 30.0

    # Paging
    posts_page_size: int = 30

    # Host bridge
    clock_tick_seconds: float = 0.25  # Wall-clock interval between clock advances
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="CHANSYNC_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache
def get_settings() -> EngineSettings:
    return EngineSettings()
