"""Centralized logging utilities for listguard.

This module provides:
- Logging configuration from GuardConfig
- Safe preview utilities for item data that ends up in log records
- Secret redaction
- Structured logging with request/resource/operation fields
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from .config import GuardConfig, LogLevel

# Patterns for detecting secrets (common patterns to redact)
SECRET_PATTERNS = [
    r'(?i)(?:password|passwd|pwd|secret|token|key|api[_-]?key|auth[_-]?token)\s*[:=]\s*["\']?([^"\'\s]+)',
    r'(?i)(?:bearer|basic)\s+([a-zA-Z0-9+/=]+)',
    r'(?i)(?:sk-|pk-)[a-zA-Z0-9]{32,}',
    r'[a-f0-9]{32,}',  # Long hex strings (could be hashes or keys)
]

# Fields lifted out of ``extra`` and rendered next to the message
_CONTEXT_FIELDS = ("request_id", "resource_type", "operation")

_RESERVED = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "taskName", *_CONTEXT_FIELDS,
}


def safe_preview(value: Any, limit: int = 240) -> str:
    """Create a safe, length-bounded preview of a value for logging.

    Converts any value to a single-line string, normalizes whitespace and
    truncates to ``limit`` characters (ending with an ellipsis).
    """
    if value is None:
        return ""

    if isinstance(value, str):
        s = value
    elif isinstance(value, (dict, list, tuple)):
        try:
            s = json.dumps(value, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            s = str(value)
    else:
        s = str(value)

    s = " ".join(s.split())

    if len(s) > limit:
        return s[: limit - 1] + "…"

    return s


def redact_secrets(text: str, replacement: str = "[REDACTED]") -> str:
    """Redact secret patterns (passwords, tokens, API keys) from text."""
    if not isinstance(text, str):
        return text

    result = text
    for pattern in SECRET_PATTERNS:
        result = re.sub(pattern, replacement, result, flags=re.IGNORECASE | re.DOTALL)

    return result


def safe_log_value(value: Any, limit: int = 240, redact: bool = True) -> str:
    """Preview plus optional redaction. Use this for anything item-derived."""
    preview = safe_preview(value, limit=limit)
    if redact:
        preview = redact_secrets(preview)
    return preview


class AccessLogFormatter(logging.Formatter):
    """Formatter that renders request context fields and optional JSON output."""

    def __init__(
        self,
        json_format: bool = True,
        redact_secrets: bool = True,
        *args: Any,
        **kwargs: Any,
    ):
        super().__init__(*args, **kwargs)
        self.json_format = json_format
        self.redact_secrets = redact_secrets

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in _CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_data[key] = getattr(value, "value", value)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED:
                log_data[key] = safe_log_value(value, redact=self.redact_secrets)

        if self.redact_secrets:
            log_data["message"] = redact_secrets(log_data["message"])

        if self.json_format:
            return json.dumps(log_data, default=str, ensure_ascii=False)

        parts = [
            f"[{log_data['timestamp']}]",
            f"{log_data['level']}",
            f"{log_data['logger']}",
        ]
        for key in _CONTEXT_FIELDS:
            if key in log_data:
                parts.append(f"{key}={log_data[key]}")
        parts.append(f": {log_data['message']}")
        if "exception" in log_data:
            parts.append("\n" + log_data["exception"])
        return " ".join(parts)


class AccessLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds request_id, resource_type and operation.

    Usage:
        logger = get_access_logger(__name__, resource_type="Widget")
        logger.info("Update denied", operation="update", request_id=rid)
    """

    def __init__(
        self,
        logger: logging.Logger,
        request_id: Optional[str] = None,
        resource_type: Optional[str] = None,
    ):
        super().__init__(logger, {})
        self.request_id = request_id
        self.resource_type = resource_type

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        request_id = kwargs.pop("request_id", self.request_id)
        resource_type = kwargs.pop("resource_type", self.resource_type)
        operation = kwargs.pop("operation", None)

        # A RequestContext may be passed whole
        context = kwargs.pop("context", None)
        if context is not None:
            request_id = request_id or context.request_id
            resource_type = resource_type or context.resource_type
            operation = operation or context.operation

        extra = kwargs.get("extra", {})
        if request_id:
            extra["request_id"] = request_id
        if resource_type:
            extra["resource_type"] = resource_type
        if operation:
            extra["operation"] = getattr(operation, "value", operation)
        kwargs["extra"] = extra

        return msg, kwargs


def setup_logging(
    config: Optional[GuardConfig] = None,
    json_format: Optional[bool] = None,
    redact_secrets: bool = True,
) -> None:
    """Configure the root logger from GuardConfig.

    Args:
        config: GuardConfig instance (if None, loads from environment)
        json_format: Override ``config.log_json``
        redact_secrets: Whether to redact secrets (default: True)
    """
    if config is None:
        from .config import load_config_from_env

        config = load_config_from_env()

    level_map = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
        LogLevel.CRITICAL: logging.CRITICAL,
    }
    log_level = level_map.get(LogLevel(config.log_level), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        AccessLogFormatter(
            json_format=config.log_json if json_format is None else json_format,
            redact_secrets=redact_secrets,
        )
    )
    root_logger.addHandler(console_handler)

    if config.service_name:
        logging.getLogger(config.service_name).setLevel(log_level)


def get_access_logger(
    name: str,
    request_id: Optional[str] = None,
    resource_type: Optional[str] = None,
) -> AccessLoggerAdapter:
    """Get a logger adapter carrying request context fields.

    Example:
        logger = get_access_logger(__name__)
        logger.info("Decision", context=ctx)
    """
    return AccessLoggerAdapter(logging.getLogger(name), request_id=request_id, resource_type=resource_type)


__all__ = [
    "safe_preview",
    "redact_secrets",
    "safe_log_value",
    "AccessLogFormatter",
    "AccessLoggerAdapter",
    "setup_logging",
    "get_access_logger",
]
