"""Logging setup: console output plus a daily-rotating file."""

from __future__ import annotations

from logging.config import dictConfig

from .config import OfflineFormSettings


def configure_logging(settings: OfflineFormSettings) -> None:
    """Configure root logging for the service. Safe to call more than once."""
    log_level = settings.log_level.upper()
    log_dir = settings.log_path
    log_dir.mkdir(parents=True, exist_ok=True)

    dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": log_level,
            },
            "file": {
                "class": "logging.handlers.TimedRotatingFileHandler",
                "formatter": "default",
                "filename": str(log_dir / "offline-forms.log"),
                "when": "midnight",
                "backupCount": settings.log_backup_days,
                "encoding": "utf-8",
                "level": log_level,
            },
        },
        "root": {
            "level": log_level,
            "handlers": ["console", "file"],
        },
    })
