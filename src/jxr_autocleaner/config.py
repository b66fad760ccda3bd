"""Agent configuration via pydantic-settings (.env + JXR_* env vars)."""

import os
import sys
from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def default_data_dir() -> Path:
    """Per-user state directory for the log file and instance lock."""
    if sys.platform == "win32":
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            return Path(local_app_data) / "JxrAutoCleaner"
    return Path.home() / ".local" / "state" / "jxr-autocleaner"


def default_watch_dir() -> Path:
    return Path.home() / "Videos"


class AgentConfig(BaseSettings):
    """All agent configuration with layered resolution:
    .env file < environment variables (JXR_ prefix) < constructor kwargs.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="JXR_",
        extra="ignore",
    )

    # -- Directories --
    watch_dir: Path = Field(default_factory=default_watch_dir)
    log_dir: Path = Field(default_factory=default_data_dir)
    lock_dir: Path = Field(default_factory=default_data_dir)

    # -- Files --
    source_extension: str = ".jxr"
    output_extension: str = ".jpg"
    temp_marker: str = ".tmp"

    # -- Encoding --
    jpeg_quality: int = Field(default=95, ge=0, le=100)

    # -- Scheduling --
    queue_timeout: float = 30.0
    busy_retry_delay: float = 30.0
    ready_attempts: int = Field(default=5, ge=1)
    ready_delay: float = 2.0
    cpu_threshold: float = 25.0
    cpu_sample_window: float = 1.0
    cpu_cache_ttl: float = 5.0
    event_buffer_size: int = Field(default=4096, ge=1)
    rescan_interval: float = Field(default=60.0, gt=0)

    # -- Behavior --
    verbose: bool = False
    log_level: str = "INFO"
    log_rotation: str = "1 MB"
    log_retention: int = 3

    @field_validator("source_extension", "output_extension", "temp_marker")
    @classmethod
    def _normalize_suffix(cls, value: str) -> str:
        value = value.strip().lower()
        if not value.startswith("."):
            value = "." + value
        return value

    @property
    def log_file(self) -> Path:
        """Path to the rotating agent log."""
        return self.log_dir / "autocleaner.log"

    @property
    def lock_file(self) -> Path:
        return self.lock_dir / "autocleaner.lock"

    def ensure_dirs(self) -> None:
        """Create the log and lock directories if they don't exist."""
        for d in (self.log_dir, self.lock_dir):
            d.mkdir(parents=True, exist_ok=True)

    def setup_logging(self) -> None:
        """Configure loguru for the agent."""
        logger.remove()  # Remove default stderr handler

        log_format = (
            "{time:YYYY-MM-DDTHH:mm:ssZ} | {level:<8} | "
            "{extra[component]:<10} | {message}"
        )

        def _default_extra(record):
            record["extra"].setdefault("component", "")
            return True

        level = "DEBUG" if self.verbose else self.log_level.upper()
        logger.add(
            sys.stderr,
            format=log_format,
            level=level,
            filter=_default_extra,
        )

        self.log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(self.log_file),
            format=log_format,
            level="DEBUG",
            rotation=self.log_rotation,
            retention=self.log_retention,
            filter=_default_extra,
        )
