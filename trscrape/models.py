"""Pydantic models for trscrape.

Provides validated configuration and scrape result models.
"""

from __future__ import annotations

from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from trscrape import __version__

U32_MAX = 2**32 - 1


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class NetworkConfig(BaseModel):
    """Network configuration."""

    timeout: float = Field(
        default=30.0,
        gt=0.0,
        le=86400.0,
        description="Overall scrape timeout budget in seconds",
    )
    user_agent: str = Field(
        default=f"trscrape/{__version__}",
        description="User-Agent header sent to HTTP trackers",
    )

    @field_validator("user_agent")
    @classmethod
    def validate_user_agent(cls, v: str) -> str:
        """Validate user agent is not blank."""
        if not v.strip():
            msg = "User agent cannot be empty"
            raise ValueError(msg)
        return v


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: LogLevel = Field(default=LogLevel.WARNING, description="Log level")
    log_file: str | None = Field(None, description="Log file path")
    structured_logging: bool = Field(
        default=False,
        description="Write JSON records to the log file",
    )
    log_correlation_id: bool = Field(
        default=True,
        description="Include correlation IDs",
    )


class Config(BaseModel):
    """Main configuration model."""

    network: NetworkConfig = Field(
        default_factory=NetworkConfig,
        description="Network configuration",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Observability configuration",
    )


class ScrapeStats(BaseModel):
    """Aggregate statistics a tracker reports for one torrent."""

    model_config = ConfigDict(frozen=True)

    complete: int = Field(
        ...,
        ge=0,
        le=U32_MAX,
        description="Number of seeders (complete peers)",
    )
    incomplete: int = Field(
        ...,
        ge=0,
        le=U32_MAX,
        description="Number of leechers (incomplete peers)",
    )
    downloaded: int = Field(
        ...,
        ge=0,
        le=U32_MAX,
        description="Total number of completed downloads",
    )


class Tracked(BaseModel):
    """The tracker reported statistics for the hash."""

    model_config = ConfigDict(frozen=True)

    stats: ScrapeStats


class NotTracked(BaseModel):
    """The tracker omitted the hash from its reply."""

    model_config = ConfigDict(frozen=True)


ScrapeOutcome = Union[Tracked, NotTracked]
