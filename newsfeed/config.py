"""Runtime settings read from the environment (and a local .env file)."""

import logging
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_FLUSH_TIMEOUT_SEC = 5.0


class Settings(BaseModel):
    """Process-wide knobs for logging and queued delivery."""

    model_config = ConfigDict(frozen=True)

    log_level: str = DEFAULT_LOG_LEVEL
    flush_timeout_sec: float = DEFAULT_FLUSH_TIMEOUT_SEC

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load .env (without overriding real env vars) and build settings; bad values fall back to defaults."""
        load_dotenv()
        level = (os.environ.get("NEWSFEED_LOG_LEVEL") or DEFAULT_LOG_LEVEL).strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            level = DEFAULT_LOG_LEVEL
        try:
            timeout = float(os.environ.get("NEWSFEED_FLUSH_TIMEOUT_SEC", DEFAULT_FLUSH_TIMEOUT_SEC))
        except (ValueError, TypeError):
            timeout = DEFAULT_FLUSH_TIMEOUT_SEC
        if timeout <= 0:
            timeout = DEFAULT_FLUSH_TIMEOUT_SEC
        return cls(log_level=level, flush_timeout_sec=timeout)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings for this process, read once."""
    return Settings.from_env()
