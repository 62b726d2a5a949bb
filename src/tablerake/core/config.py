"""Configuration management.

Uses pydantic-settings for type-safe configuration from environment variables.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_config_dir() -> Path:
    """Locate the bundled config directory (null_values.yaml).

    Ships inside the package so installed copies find it without a CWD lookup.
    """
    # src/tablerake/core/config.py -> src/tablerake/config
    return Path(__file__).resolve().parent.parent / "config"


class Settings(BaseSettings):
    """Application settings.

    All settings can be overridden via environment variables.
    Prefix: TABLERAKE_
    """

    model_config = SettingsConfigDict(
        env_prefix="TABLERAKE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    output_dir: Path = Field(
        default=Path("./tablerake_output"),
        description="Directory holding jobs.db (job store + queue) and data.duckdb",
    )

    # Configuration paths
    config_path: Path = Field(
        default_factory=_find_config_dir,
        description="Path to configuration files (null value tokens)",
    )

    # Fetch
    fetch_timeout_seconds: float = Field(
        default=10.0,
        description="Deadline for fetching a source page",
    )
    user_agent: str = Field(
        default="tablerake/0.1 (+https://github.com/tablerake/tablerake)",
        description="User-Agent header sent when fetching pages",
    )

    # Queue and worker
    queue_partitions: int = Field(
        default=1,
        ge=1,
        description="Number of queue partitions; tasks are keyed by target table",
    )
    run_worker: bool = Field(
        default=True,
        description="Start the ingestion worker(s) inside the API process",
    )
    worker_poll_interval: float = Field(
        default=0.5,
        description="Seconds a worker sleeps when its partition is empty",
    )
    progress_every: int = Field(
        default=50,
        ge=1,
        description="Write job progress after this many inserted rows",
    )
    max_logged_row_failures: int = Field(
        default=5,
        ge=0,
        description="Row failures per job surfaced as log entries",
    )

    # API
    api_host: str = Field(default="127.0.0.1")
    api_port: int = Field(default=8000)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")  # 'json' or 'console'


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
