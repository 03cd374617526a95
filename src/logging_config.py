"""
Logging configuration.

- readable: colored single-line format for development
- json: one JSON object per line for log aggregation
- LOG_LEVEL overrides the level (default: DEBUG when DEBUG is on, else INFO)
"""

import json
import logging
import sys
from datetime import datetime, timezone

from src.config import Settings


class JSONFormatter(logging.Formatter):
    """JSON log formatter for production / log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "thread": record.threadName,
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        for key in ("contract_id", "actor", "to_email"):
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val
        return json.dumps(log_entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Human-readable colored formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",      # cyan
        "INFO": "\033[32m",       # green
        "WARNING": "\033[33m",    # yellow
        "ERROR": "\033[31m",      # red
        "CRITICAL": "\033[35m",   # magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        ts = datetime.now().strftime("%H:%M:%S")
        base = f"{color}{ts} {record.levelname:<8}{self.RESET} {record.name}: {record.getMessage()}"
        if record.exc_info and record.exc_info[0] is not None:
            base += "\n" + self.formatException(record.exc_info)
        return base


def configure_logging(config: Settings) -> None:
    """Install a single stderr handler on the root logger"""
    level_name = config.LOG_LEVEL or ("DEBUG" if config.DEBUG else "INFO")
    level = getattr(logging, level_name.upper(), logging.INFO)

    use_json = config.LOG_FORMAT.lower() == "json"
    formatter = JSONFormatter() if use_json else ReadableFormatter()

    root = logging.getLogger()
    # Remove existing handlers to prevent duplicates on reload
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    root.addHandler(handler)
    root.setLevel(level)

    # Quieten noisy libraries
    for noisy in ("sqlalchemy.engine", "multipart", "PIL"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured: level=%s format=%s", level_name, "JSON" if use_json else "readable"
    )
