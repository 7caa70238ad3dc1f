# ============================================================================
# STRUCTURED LOGGING
# ============================================================================
# STATUS: Core - Structured logging with operation context
# PURPOSE: Tag every data-layer log line with the table and operation in flight
# ============================================================================
"""
Structured Logging

Repository operations open a log_context(table=..., operation=...); every
record logged inside it, by any data-layer module, carries those fields.

Output is one JSON object per line (LOG_FORMAT=json) or a single readable
line for development. Level and format default to LoggingDefaults.

Usage:
    from core.logging import ComponentType, get_logger, log_context

    logger = get_logger(__name__, ComponentType.REPOSITORY)

    with log_context(table="users", operation="insert"):
        logger.info("Inserted record")
"""

import json
import logging
import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union

from core.config import get_defaults


class ComponentType(str, Enum):
    """Data-layer component that emitted a record."""
    QUERY_BUILDER = "query_builder"
    REPOSITORY = "repository"
    DATABASE = "database"
    SCHEMA = "schema"


@dataclass(frozen=True)
class LogContext:
    """Fields of the operation currently in flight on this thread."""
    table: Optional[str] = None
    operation: Optional[str] = None
    correlation_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Set fields only, extra merged in."""
        result = {
            name: value
            for name, value in (
                ("table", self.table),
                ("operation", self.operation),
                ("correlation_id", self.correlation_id),
            )
            if value is not None
        }
        result.update(self.extra)
        return result


_local = threading.local()
_EMPTY = LogContext()


def get_current_context() -> LogContext:
    stack = getattr(_local, "stack", None)
    return stack[-1] if stack else _EMPTY


@contextmanager
def log_context(**fields):
    """
    Push context fields for the duration of the block.

    Nested blocks inherit unset fields from the enclosing one; extra dicts
    are merged.
    """
    parent = get_current_context()
    extra = {**parent.extra, **fields.pop("extra", {})}
    context = replace(parent, extra=extra, **fields)

    if not hasattr(_local, "stack"):
        _local.stack = []
    _local.stack.append(context)
    try:
        yield context
    finally:
        _local.stack.pop()


# ============================================================================
# FORMATTERS
# ============================================================================

def _record_data(record: logging.LogRecord) -> Dict[str, Any]:
    # Set by ContextLogger
    return getattr(record, "extra", None) or {}


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = get_current_context().to_dict()
        if context:
            payload["context"] = context

        data = _record_data(record)
        if data:
            payload["data"] = data

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        payload["source"] = {"file": record.filename, "line": record.lineno}
        return json.dumps(payload, default=str)


class HumanFormatter(logging.Formatter):
    """`<time> <LEVEL> <logger> [table=.., op=.., cid=..]: <message>`."""

    _LABELS = (("table", "table"), ("operation", "op"), ("correlation_id", "cid"))

    def format(self, record: logging.LogRecord) -> str:
        context = get_current_context()
        tags = [
            f"{label}={getattr(context, name)}"
            for name, label in self._LABELS
            if getattr(context, name)
        ]

        line = "{} {:<8} {}{}: {}".format(
            datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
            record.levelname,
            record.name,
            f" [{', '.join(tags)}]" if tags else "",
            record.getMessage(),
        )

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# ============================================================================
# LOGGERS
# ============================================================================

class ContextLogger(logging.LoggerAdapter):
    """Attaches the current context and the component to every record."""

    def process(self, msg, kwargs):
        data = dict(kwargs.get("extra") or {})
        data.update(get_current_context().to_dict())

        component = self.extra.get("component")
        if component is not None:
            data.setdefault("component", component.value)

        kwargs["extra"] = {"extra": data}
        return msg, kwargs


def get_logger(name: str, component: Optional[ComponentType] = None) -> ContextLogger:
    return ContextLogger(logging.getLogger(name), {"component": component})


def configure_logging(
    level: Union[str, int, None] = None,
    json_output: Optional[bool] = None,
) -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: Log level name or number; LoggingDefaults.level (LOG_LEVEL)
            when omitted
        json_output: JSON lines instead of readable lines;
            LoggingDefaults.json_output (LOG_FORMAT=json) when omitted
    """
    defaults = get_defaults().logging
    if level is None:
        level = defaults.level
    if json_output is None:
        json_output = defaults.json_output

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter() if json_output else HumanFormatter())

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)


__all__ = [
    "ComponentType",
    "LogContext",
    "StructuredFormatter",
    "HumanFormatter",
    "ContextLogger",
    "get_logger",
    "configure_logging",
    "log_context",
    "get_current_context",
]
