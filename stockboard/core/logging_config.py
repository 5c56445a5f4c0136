from __future__ import annotations

import logging
import logging.config
from pathlib import Path

from stockboard.core.config import settings

PROJECT_ROOT = Path(__file__).resolve().parents[2]
LOG_DIR = PROJECT_ROOT / "logs"


def build_logging_config(log_dir: Path = LOG_DIR, *, debug: bool = settings.STOCKBOARD_DEBUG) -> dict:
    console_level = "DEBUG" if debug else "INFO"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "verbose": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": console_level,
                "formatter": "verbose",
            },
            "stockboard_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "DEBUG",
                "formatter": "verbose",
                "filename": str(log_dir / "stockboard.log"),
                "maxBytes": 5 * 1024 * 1024,
                "backupCount": 5,
                "encoding": "utf-8",
            },
        },
        "loggers": {
            "": {
                "handlers": ["console", "stockboard_file"],
                "level": "DEBUG",
            },
            "uvicorn": {
                "handlers": ["console", "stockboard_file"],
                "level": "INFO",
                "propagate": False,
            },
            "uvicorn.error": {
                "handlers": ["console", "stockboard_file"],
                "level": "INFO",
                "propagate": False,
            },
            "uvicorn.access": {
                "handlers": ["console", "stockboard_file"],
                "level": "INFO",
                "propagate": False,
            },
            "httpx": {
                "handlers": ["console", "stockboard_file"],
                "level": "WARNING",
                "propagate": False,
            },
        },
    }


def configure_logging(log_dir: Path = LOG_DIR) -> None:
    """Configure application-wide logging with rotating file handlers."""

    log_dir.mkdir(parents=True, exist_ok=True)
    logging.captureWarnings(True)
    logging.config.dictConfig(build_logging_config(log_dir))


__all__ = ["configure_logging", "build_logging_config", "LOG_DIR"]
