from __future__ import annotations

import json
import logging
import traceback
from datetime import datetime, timezone
from logging import Logger
from pathlib import Path

# Extra attributes passed via ``extra=`` that the JSON formatter keeps.
_EXTRA_FIELDS = (
    "page_offset",
    "page_number",
    "row_offset",
    "row_id",
    "batch_index",
    "batch_size",
    "group_count",
    "record_count",
    "duration_ms",
    "error_type",
)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                log_obj[name] = getattr(record, name)

        if record.exc_info:
            log_obj["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_obj, default=str)


def setup_logging(
    log_dir: str = "logs",
    filename: str = "triviadedup.log",
    level: str = "INFO",
    structured: bool = False,
) -> Logger:
    """Configure dual console/file logging using stdlib logging.

    Creates the logs directory if needed and sets a consistent formatter.
    The file handler switches to JSON lines when ``structured`` is set.
    Multiple calls are safe; handlers are added only once.
    """
    logger = logging.getLogger("triviadedup")
    if getattr(logger, "_configured", False):
        return logger

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    log_path = Path(log_dir) / filename

    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console handler
    ch = logging.StreamHandler()
    ch.setLevel(logger.level)
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    # File handler
    fh = logging.FileHandler(str(log_path), encoding="utf-8")
    fh.setLevel(logger.level)
    fh.setFormatter(StructuredFormatter() if structured else fmt)
    logger.addHandler(fh)

    logger._configured = True  # type: ignore[attr-defined]
    logger.debug("Logging configured")
    return logger
