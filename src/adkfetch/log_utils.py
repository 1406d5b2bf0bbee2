import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

from adkfetch.constants import (
    DEBUG_LOG_FORMAT,
    INFO_LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOG_FILE_BACKUP_COUNT,
    LOG_FILE_MAX_BYTES,
    LOG_FILE_NAME,
    LOG_LEVEL_ENV_VAR,
    LOGGER_NAME,
)

logger = logging.getLogger(LOGGER_NAME)

# Kept module-level so file logging can be reconfigured
_file_handler: Optional[RotatingFileHandler] = None


def _file_formatter(level: int) -> logging.Formatter:
    fmt = INFO_LOG_FORMAT if level >= logging.INFO else DEBUG_LOG_FORMAT
    return logging.Formatter(fmt, datefmt=LOG_DATE_FORMAT)


def set_log_level(level_name: str) -> None:
    """
    Set the log level for the adkfetch logger and reconfigure all attached handlers.

    If `level_name` is not a valid logging level name (e.g., "DEBUG", "INFO"), the function logs a warning and leaves the current configuration unchanged.

    Console handlers always use a message-only formatter; file handlers use
    INFO_LOG_FORMAT for INFO and above and DEBUG_LOG_FORMAT below INFO.

    Parameters:
        level_name (str): Case-insensitive name of the desired logging level (e.g., "debug", "INFO").
    """
    level = getattr(logging, level_name.upper(), None)
    if not isinstance(level, int):
        logger.warning(f"Invalid log level name: {level_name}. Using current level.")
        return

    logger.setLevel(level)

    for handler in logger.handlers:
        handler.setLevel(level)

        if isinstance(handler, RichHandler):
            handler.setFormatter(logging.Formatter("%(message)s"))
        else:
            handler.setFormatter(_file_formatter(level))

    logger.log(level, f"Log level set to {logging.getLevelName(level)}")


def add_file_logging(log_dir: Union[str, Path], level_name: Optional[str] = None) -> Path:
    """
    Mirror the adkfetch log into a rotating ``adkfetch.log`` inside `log_dir`.

    The file handler follows the logger's current level unless `level_name`
    names another one; an unknown name falls back to INFO. Calling this again
    replaces the previous file handler.

    Returns:
        Path: The log file being written.
    """
    global _file_handler
    if _file_handler is not None:
        logger.removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None

    if level_name is None:
        level = logger.level or logging.INFO
    else:
        level = getattr(logging, level_name.upper(), None)
        if not isinstance(level, int):
            logger.warning(f"Invalid file log level name: {level_name}. Defaulting to INFO.")
            level = logging.INFO

    log_file = Path(log_dir) / LOG_FILE_NAME
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(_file_formatter(level))
    logger.addHandler(handler)
    _file_handler = handler

    logger.debug(f"Logging to {log_file} at {logging.getLevelName(level)}")
    return log_file


def _initialize_logger() -> None:
    """
    Initialize the adkfetch logger with a console RichHandler and an initial log level.

    The console handler writes to stderr so that tables, feature listings and
    download descriptors printed to stdout stay machine-readable. The initial
    level comes from the environment variable named by LOG_LEVEL_ENV_VAR
    (defaults to "INFO"; invalid values fall back to INFO).
    """
    logger.propagate = False

    # Drop handlers left over from previous imports (interactive sessions, tests)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_time=True,
        show_level=True,
        show_path=False,
        markup=False,
        log_time_format=LOG_DATE_FORMAT,
    )

    default_log_level = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").upper()
    resolved = getattr(logging, default_log_level, None)
    if not isinstance(resolved, int):
        logger.warning(
            f"Invalid {LOG_LEVEL_ENV_VAR}={default_log_level}; defaulting to INFO."
        )
        resolved = logging.INFO
    initial_level = resolved

    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    logger.setLevel(initial_level)
    console_handler.setLevel(initial_level)


# Initialize the logger when the module is imported
_initialize_logger()
