"""Logging setup for the Snowscribe AI service."""

import logging
import os
import sys

from pydantic import BaseModel, Field, field_validator

LEVEL_ENV_VARS = ("SNOWSCRIBE_LOG_LEVEL", "LOG_LEVEL")

# Vendor SDKs and the HTTP stack log every request at INFO
QUIET_LOGGERS = ("anthropic", "openai", "httpx", "uvicorn.access")


def level_from_env(default: str = "INFO") -> str:
    """First non-blank level among ``SNOWSCRIBE_LOG_LEVEL`` and ``LOG_LEVEL``."""
    for name in LEVEL_ENV_VARS:
        value = os.getenv(name, "").strip()
        if value:
            return value.upper()
    return default


class LogConfig(BaseModel):
    """Root logging settings; third-party ``quiet_loggers`` are held at WARNING."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    quiet_loggers: list[str] = Field(default_factory=lambda: list(QUIET_LOGGERS))

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def from_env(cls) -> "LogConfig":
        return cls(level=level_from_env())


def setup_logging(config: LogConfig | None = None) -> None:
    """Configure the root logger once at startup."""
    config = config or LogConfig.from_env()

    logging.basicConfig(
        level=config.level,
        format=config.format,
        datefmt=config.date_format,
        stream=sys.stdout,
        force=True,
    )
    for name in config.quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """Get a module logger.

    Args:
        name: Module name (typically __name__)
        level: Optional level override (defaults to the environment level)
    """
    logger = logging.getLogger(name)
    logger.setLevel((level or level_from_env()).upper())
    return logger
