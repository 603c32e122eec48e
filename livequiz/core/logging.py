import logging
import logging.config

from livequiz.core.config import settings


def _rotating(filename: str, level: str) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "default",
        "level": level,
        "filename": filename,
        "maxBytes": 5 * 1024 * 1024,
        "backupCount": 3,
        "encoding": "utf-8",
    }


def configure_logging():
    log_level = settings.log_level.upper()
    log_dir = settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": log_level,
            },
            "file": _rotating(str(log_dir / "app.log"), log_level),
            "runtime_file": _rotating(str(log_dir / "runtime.log"), log_level),
            "admin_file": _rotating(str(log_dir / "admin.log"), log_level),
        },
        "root": {
            "level": log_level,
            "handlers": ["console", "file"],
        },
        "loggers": {
            # Lifecycle transitions, answer intake and fan-out
            "runtime": {
                "level": log_level,
                "handlers": ["console", "runtime_file"],
                "propagate": False,
            },
            "admin": {
                "level": log_level,
                "handlers": ["console", "admin_file"],
                "propagate": False,
            },
        },
    }

    logging.config.dictConfig(config)
