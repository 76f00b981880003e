"""Structured logging configuration for the PDF store."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

from loguru import logger


# bound by the API middleware for the lifetime of each request
REQUEST_FIELDS = ("method", "path")

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
)


def console_format(record: dict[str, Any]) -> str:
    """Loguru format template, prefixing the message with the bound request if any."""
    template = _CONSOLE_FORMAT
    if all(field in record["extra"] for field in REQUEST_FIELDS):
        template += "<magenta>{extra[method]} {extra[path]}</magenta> | "
    template += "<level>{message}</level>\n{exception}"
    return template


class JSONFormatter:
    """Render each record as one JSON document per line."""

    def __call__(self, record: dict[str, Any]) -> str:
        extra = dict(record["extra"])
        log_data: dict[str, Any] = {
            "timestamp": record["time"].isoformat(),
            "level": record["level"].name,
            "message": record["message"],
            "logger": record["name"],
            "location": f'{record["function"]}:{record["line"]}',
        }

        request = {field: extra.pop(field) for field in REQUEST_FIELDS if field in extra}
        if request:
            log_data["request"] = request
        if extra:
            log_data["context"] = extra

        exception = record.get("exception")
        if exception:
            log_data["exception"] = {
                "type": exception.type.__name__ if exception.type else None,
                "value": str(exception.value) if exception.value else None,
            }

        # loguru treats the returned string as a format template
        line = json.dumps(log_data, ensure_ascii=False, default=str)
        return line.replace("{", "{{").replace("}", "}}") + "\n"


def setup_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: Path | None = None,
) -> None:
    """Replace loguru's sinks with the service's stderr sink and optional file sink.

    Args:
        level: Minimum level name.
        json_format: Emit JSON lines instead of the coloured console layout.
        log_file: Rotating log file; stderr only when None.
    """
    logger.remove()

    formatter: Any = JSONFormatter() if json_format else console_format
    logger.add(sys.stderr, format=formatter, level=level, colorize=not json_format)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=formatter,
            level=level,
            colorize=False,
            rotation="10 MB",
            retention="7 days",
            compression="zip",
        )


__all__ = ["JSONFormatter", "REQUEST_FIELDS", "console_format", "setup_logging"]
