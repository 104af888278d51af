import logging
import logging.config
from pathlib import Path
from app.core.config import settings


def _handlers() -> dict:
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "level": settings.LOG_LEVEL,
        }
    }
    if settings.LOG_DIR:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.TimedRotatingFileHandler",
            "formatter": "default",
            "level": settings.LOG_LEVEL,
            "filename": str(log_dir / "library.log"),
            "when": "midnight",
            "backupCount": settings.LOG_RETENTION_DAYS,
            "encoding": "utf-8",
            "utc": True,
        }
    return handlers


def setup_logging():
    handlers = _handlers()
    names = list(handlers)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s [%(levelname)s] %(name)s %(message)s",
                }
            },
            "handlers": handlers,
            "loggers": {
                "uvicorn.error": {"handlers": names, "level": settings.LOG_LEVEL, "propagate": False},
                "uvicorn.access": {"handlers": names, "level": settings.LOG_LEVEL, "propagate": False},
                "": {"handlers": names, "level": settings.LOG_LEVEL},
            },
        }
    )
