"""Logging configuration driven by RobotsSettings.

Library modules only call logging.getLogger(__name__); an embedding crawler
calls setup_logging(settings) once at startup. Records go to a rotating JSON
file under ``settings.log_dir`` (stamped with the configured user agent so
logs from several crawlers can be told apart) and to a text console handler.
httpx and httpcore are held at WARNING so per-request chatter from robots.txt
fetches does not drown out cache and fetch decisions.
"""

import logging
import logging.handlers
from pathlib import Path

from pythonjsonlogger.json import JsonFormatter

from robotx.config import RobotsSettings

LOG_FILENAME = "robotx.log"

_HTTP_LOGGERS = ("httpx", "httpcore")


def _json_file_handler(settings: RobotsSettings, level: int) -> logging.Handler:
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        filename=str(log_dir / LOG_FILENAME),
        maxBytes=settings.log_max_bytes,
        backupCount=settings.log_backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(
        JsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
            rename_fields={
                "asctime": "timestamp",
                "levelname": "level",
                "name": "component",
            },
            static_fields={"user_agent": settings.user_agent},
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    return handler


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    return handler


def setup_logging(
    settings: RobotsSettings | None = None,
    file_level: int = logging.DEBUG,
    console_level: int = logging.INFO,
) -> Path:
    """Route logging to a JSON file and the console, as configured.

    Replaces any handlers already on the root logger, so calling it twice
    does not duplicate output.

    Args:
        settings: Source of ``log_dir``, ``log_max_bytes``,
            ``log_backup_count`` and ``user_agent``. Loaded from the
            environment / YAML when omitted.
        file_level: Threshold for the JSON file handler.
        console_level: Threshold for the console handler.

    Returns:
        Path of the JSON log file.
    """
    if settings is None:
        settings = RobotsSettings()

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Handlers filter
    root_logger.handlers.clear()
    root_logger.addHandler(_json_file_handler(settings, file_level))
    root_logger.addHandler(_console_handler(console_level))

    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return Path(settings.log_dir) / LOG_FILENAME
