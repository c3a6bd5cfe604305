from __future__ import annotations

import logging
import logging.config
from pathlib import Path

from app.core.config import BACKEND_DIR

# Loggers whose records also go to schedule.log: every exam write, clash
# rejection and saved-timetable change is emitted by one of these.
SCHEDULE_LOGGERS = (
    "app.services.exam_service",
    "app.services.timetable_service",
    "app.services.schedule_lock",
    "app.services.rate_limit",
)

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _default_level(environment: str) -> str:
    return "DEBUG" if environment == "development" else "INFO"


def build_logging_config(*, environment: str, level: str | None = None, log_dir: Path | None = None) -> dict:
    """Build a ``dictConfig`` mapping for the API process.

    Everything goes to the console. Outside development the scheduling loggers
    are also written to a rotating ``schedule.log`` under ``log_dir`` so a
    rejected or accepted timetable change can be traced after the fact.
    """
    env = (environment or "development").lower().strip()
    resolved_level = (level or _default_level(env)).upper()

    handlers: dict[str, dict] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
            "level": resolved_level,
        }
    }
    schedule_handlers = ["console"]
    if env != "development":
        target = (log_dir or BACKEND_DIR / "logs") / "schedule.log"
        handlers["schedule_file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "plain",
            "level": resolved_level,
            "filename": str(target),
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "encoding": "utf-8",
        }
        schedule_handlers.append("schedule_file")

    loggers: dict[str, dict] = {
        name: {"handlers": schedule_handlers, "level": resolved_level, "propagate": False} for name in SCHEDULE_LOGGERS
    }
    # SQL echo is too chatty at DEBUG.
    loggers["sqlalchemy.engine"] = {"level": "WARNING"}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"plain": {"format": _FORMAT, "datefmt": "%Y-%m-%dT%H:%M:%S%z"}},
        "handlers": handlers,
        "loggers": loggers,
        "root": {"handlers": ["console"], "level": resolved_level},
    }


def setup_logging(*, environment: str, level: str | None = None, log_dir: str | Path | None = None) -> None:
    """Configure application logging once; later calls are ignored."""
    if logging.getLogger().handlers:
        return

    directory = Path(log_dir) if log_dir else None
    config = build_logging_config(environment=environment, level=level, log_dir=directory)
    schedule_file = config["handlers"].get("schedule_file")
    if schedule_file is not None:
        Path(schedule_file["filename"]).parent.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(config)
