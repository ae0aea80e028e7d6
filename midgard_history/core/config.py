from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parent.parent
PROJECT_ROOT = BASE_DIR.parent

# 2022-03-22 01:00 UTC, the first hourly interval the service tracks.
DEFAULT_START_TIMESTAMP = 1647910800


class Settings(BaseSettings):
    app_env: str = "dev"
    app_port: int = 8080
    app_timezone: str = Field(default="UTC", alias="APP_TIMEZONE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    enable_scheduler: bool = Field(default=True, alias="ENABLE_SCHEDULER")

    database_url_override: str | None = Field(default=None, alias="DATABASE_URL")
    sqlite_db_path: str = str(PROJECT_ROOT / "data" / "midgard.db")

    midgard_base_url: str = Field(default="https://midgard.ninerealms.com/v2", alias="MIDGARD_BASE_URL")
    midgard_depth_pool: str = Field(default="BTC.BTC", alias="MIDGARD_DEPTH_POOL")
    midgard_interval: str = "hour"
    midgard_timeout: float = 30.0
    page_size: int = Field(default=400, alias="PAGE_SIZE")
    rate_limit_backoff_seconds: float = Field(default=5.0, alias="RATE_LIMIT_BACKOFF_SECONDS")

    scheduler_interval_seconds: int = Field(default=3600, alias="SCHEDULER_INTERVAL_SECONDS")
    staleness_threshold_seconds: int = Field(default=3600, alias="STALENESS_THRESHOLD_SECONDS")

    query_default_limit: int = 400

    depth_start_timestamp: int = Field(default=DEFAULT_START_TIMESTAMP, alias="DEPTH_START_TIMESTAMP")
    rune_pool_start_timestamp: int = Field(default=DEFAULT_START_TIMESTAMP, alias="RUNE_POOL_START_TIMESTAMP")
    swap_start_timestamp: int = Field(default=DEFAULT_START_TIMESTAMP, alias="SWAP_START_TIMESTAMP")
    earnings_start_timestamp: int = Field(default=DEFAULT_START_TIMESTAMP, alias="EARNINGS_START_TIMESTAMP")

    model_config = SettingsConfigDict(
        env_file=PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @computed_field
    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override

        sqlite_path = Path(self.sqlite_db_path).resolve()
        return f"sqlite:///{sqlite_path}"

    @computed_field
    @property
    def tzinfo(self) -> ZoneInfo:
        try:
            return ZoneInfo(self.app_timezone)
        except Exception:
            return ZoneInfo("UTC")

    def start_timestamp_for(self, series: str) -> int:
        """Fallback ingestion start for a series with nothing persisted yet."""
        attr = f"{series.replace('-', '_')}_start_timestamp"
        return int(getattr(self, attr, DEFAULT_START_TIMESTAMP))


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
