"""Runtime configuration for listguard.

Pydantic-validated settings shared by every process that embeds the
engine. Direct os.environ/os.getenv usage is confined to
:func:`load_config_from_env`; all other code receives a ``GuardConfig``.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class LogLevel(str, Enum):
    """Standard log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class GuardConfig(BaseModel):
    """Configuration contract for the access-control engine.

    The registry itself is declared in a definitions file
    (see :mod:`listguard.permissions.schema`); this model only says where
    to find it and how to log.
    """

    # Logging
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Use JSON log format (default: plain text)",
    )
    log_decisions: bool = Field(
        default=False,
        description="Log every access decision at DEBUG (denials are always logged)",
    )

    # Service identification
    service_name: Optional[str] = Field(
        default=None,
        description="Service name used for logger identification",
    )

    # Registry
    definitions_path: Optional[str] = Field(
        default=None,
        description="Path to a JSON file holding the list definitions",
    )

    @field_validator("definitions_path")
    @classmethod
    def validate_definitions_path(cls, v: Optional[str]) -> Optional[str]:
        """Reject blank paths; a missing file is detected at bootstrap."""
        if v is None:
            return v
        v = v.strip()
        if not v:
            return None
        if not v.endswith(".json"):
            raise ValueError("Definitions file must be a .json file")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Convert string to LogLevel enum."""
        if isinstance(v, LogLevel):
            return v
        if isinstance(v, str):
            try:
                return LogLevel[v.upper()]
            except KeyError:
                raise ValueError(f"Invalid log level: {v}. Must be one of {[e.value for e in LogLevel]}")
        raise ValueError(f"Log level must be string or LogLevel enum, got {type(v)}")

    model_config = {
        "use_enum_values": True,
        "extra": "forbid",
    }


def load_config_from_env() -> GuardConfig:
    """Load configuration from environment variables.

    Environment variables:
    - LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - LOG_JSON: Use JSON log format (true/false, default: false)
    - SERVICE_NAME: Service name
    - LISTGUARD_DEFINITIONS: Path to the list definitions JSON file
    - LISTGUARD_LOG_DECISIONS: Log every decision (true/false)

    Returns:
        GuardConfig instance with values from environment or defaults.
    """
    import os

    truthy = ("true", "1", "yes", "on")

    return GuardConfig(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_json=os.getenv("LOG_JSON", "false").lower() in truthy,
        log_decisions=os.getenv("LISTGUARD_LOG_DECISIONS", "false").lower() in truthy,
        service_name=os.getenv("SERVICE_NAME"),
        definitions_path=os.getenv("LISTGUARD_DEFINITIONS"),
    )


__all__ = [
    "GuardConfig",
    "LogLevel",
    "load_config_from_env",
]
