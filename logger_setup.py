"""
Logging for the gesture authentication service.

Defaults come from config (GESTURE_LOG_LEVEL, GESTURE_LOG_FILE), so the
Flask app only needs:

    from logger_setup import setup_logging

    setup_logging()
"""

import logging
import logging.handlers
from pathlib import Path

from config import LOG_FILE, LOG_LEVEL
from errors import ConfigError

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Marks handlers installed here so repeated calls replace only our own
_HANDLER_TAG = "_gesture_auth_handler"


def _resolve_level(level):
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ConfigError(f"Unknown log level {level!r}")
    return resolved


def _tagged(handler, formatter):
    handler.setFormatter(formatter)
    setattr(handler, _HANDLER_TAG, True)
    return handler


def setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE, max_bytes=5_000_000, backup_count=3):
    """
    Install console (and optionally rotating file) handlers on the root logger.

    Safe to call more than once: handlers from an earlier call are
    replaced, handlers installed by anything else are left alone.

    Args:
        log_level: Level name or number.
        log_file: Path of the rotating log file, or None for console only.
        max_bytes: Size at which the log file rotates.
        backup_count: Rotated files to keep.

    Returns:
        The root logger.

    Raises:
        ConfigError: If log_level is not a known level.
    """
    level = _resolve_level(log_level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    for handler in [h for h in root_logger.handlers if getattr(h, _HANDLER_TAG, False)]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(level)

    root_logger.addHandler(_tagged(logging.StreamHandler(), formatter))

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=str(log_path),
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        root_logger.addHandler(_tagged(file_handler, formatter))

    # Flask's per-request log is noisy at INFO
    logging.getLogger("werkzeug").setLevel(max(level, logging.WARNING))
    return root_logger
