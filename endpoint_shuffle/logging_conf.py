"""Logging configuration built around structlog JSON logging."""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import Iterable

import structlog

LOGGER_NAME = "endpoint_shuffle"

_LOGGING_INITIALISED = False
_LOG_DIR: Path | None = None


def _default_log_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "logs"


def current_log_dir() -> Path:
    return _LOG_DIR or _default_log_dir()


def build_logging_config(level: str, log_dir: Path) -> dict:
    """Return the ``dictConfig`` payload writing JSON lines to console and log files."""

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "json",
            },
            "service_file": {
                "class": "logging.FileHandler",
                "level": "INFO",
                "filename": str(log_dir / "service.log"),
                "formatter": "json",
                "encoding": "utf-8",
            },
            "error_file": {
                "class": "logging.FileHandler",
                "level": "ERROR",
                "filename": str(log_dir / "error.log"),
                "formatter": "json",
                "encoding": "utf-8",
            },
        },
        "loggers": {
            LOGGER_NAME: {
                "handlers": ["console", "service_file", "error_file"],
                "level": level,
                "propagate": False,
            },
            # uvicorn.error and uvicorn.access propagate into this one
            "uvicorn": {
                "handlers": ["console", "service_file", "error_file"],
                "level": "INFO",
                "propagate": False,
            },
            "apscheduler": {
                "handlers": ["service_file", "error_file"],
                "level": "INFO",
                "propagate": True,
            },
        },
    }


def configure_logging(verbose: bool = False, log_dir: Path | None = None) -> structlog.BoundLogger:
    """Configure structlog + stdlib handlers and return the application logger."""

    global _LOGGING_INITIALISED, _LOG_DIR
    if not _LOGGING_INITIALISED:
        _LOG_DIR = log_dir or _default_log_dir()
        _LOG_DIR.mkdir(parents=True, exist_ok=True)
        level = "DEBUG" if verbose else "INFO"
        logging.config.dictConfig(build_logging_config(level, _LOG_DIR))

        # structlog hands the event to stdlib; bound keys become JSON fields
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.filter_by_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.render_to_log_kwargs,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        _LOGGING_INITIALISED = True
    return structlog.get_logger(LOGGER_NAME)


def component_logger(component: str) -> structlog.BoundLogger:
    """Return a logger under the application namespace bound to ``component``."""

    return structlog.get_logger(f"{LOGGER_NAME}.{component}").bind(component=component)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    """Return the last N lines from a log file."""

    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        lines = stream.readlines()
    return lines[-line_count:]


def available_logs() -> Iterable[Path]:
    """Yield available log file paths."""

    log_dir = current_log_dir()
    if not log_dir.exists():
        return []
    return sorted(log_dir.glob("*.log"))


__all__ = [
    "LOGGER_NAME",
    "available_logs",
    "build_logging_config",
    "component_logger",
    "configure_logging",
    "current_log_dir",
    "tail_log",
]
