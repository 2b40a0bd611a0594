"""
Logging for Vouchcord.

Every module asks for its logger through :func:`get_logger`. Loggers write
coloured lines to the console through prompt_toolkit and plain lines to one
rotating file per bot session under ``logs/``.

Environment overrides:
    VOUCHCORD_LOG_DIR: directory for the session log files.
    VOUCHCORD_CONSOLE_LEVEL: console level name, ``INFO`` by default.
"""

import logging
from logging.handlers import RotatingFileHandler
import os
import sys
from pathlib import Path
from datetime import datetime
from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import ANSI

LOGS_DIR: Path = Path(os.environ.get("VOUCHCORD_LOG_DIR") or Path(__file__).parents[3] / "logs").resolve()
CONSOLE_LEVEL: int = logging.getLevelName(os.environ.get("VOUCHCORD_CONSOLE_LEVEL", "INFO").upper())
if not isinstance(CONSOLE_LEVEL, int):
    CONSOLE_LEVEL = logging.INFO

LOG_FORMAT: str = "[%(asctime)s] [%(levelname)s] [%(name)s:%(funcName)s:%(lineno)d] %(message)s"
DATE_FORMAT: str = "%Y-%m-%d %H-%M-%S"

# A log touched this recently is treated as the same session after a quick restart
SESSION_REUSE_SECONDS = 60
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3

LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[38;5;88m",
}
RESET_COLOR = "\033[0m"

LOG_FILEPATH: Path | None = None


class ColorFormatter(logging.Formatter):
    """Formatter that wraps each line in the ANSI colour of its level."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        return f"{color}{line}{RESET_COLOR}" if color else line


class PromptToolkitHandler(logging.Handler):
    """
    Console handler printing through prompt_toolkit.

    Args:
        formatter (logging.Formatter | None): Optional formatter to apply to log records.
    """

    def __init__(self, formatter: logging.Formatter | None = None):
        super().__init__()
        if formatter:
            self.setFormatter(formatter)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            print_formatted_text(ANSI(self.format(record)))
        except Exception:
            self.handleError(record)


def should_use_color() -> bool:
    """Return True when stderr is a terminal."""
    try:
        return sys.stderr.isatty()
    except (AttributeError, ValueError):
        return False


def _find_recent_session_log(now: datetime) -> Path | None:
    todays_logs = sorted(
        LOGS_DIR.glob(f"{now:%Y-%m-%d}*.log"),
        key=lambda path: path.stat().st_mtime,
        reverse=True,
    )
    if todays_logs and now.timestamp() - todays_logs[0].stat().st_mtime < SESSION_REUSE_SECONDS:
        return todays_logs[0]
    return None


def get_log_filepath() -> Path:
    """
    Return the log file shared by every logger of this session.

    Returns:
        Path: The session log file, chosen on the first call.
    """
    global LOG_FILEPATH

    if LOG_FILEPATH is None:
        LOGS_DIR.mkdir(parents=True, exist_ok=True)
        now = datetime.now()
        LOG_FILEPATH = _find_recent_session_log(now) or LOGS_DIR / f"{now.strftime(DATE_FORMAT)}.log"
    return LOG_FILEPATH


def _console_handler() -> logging.Handler:
    formatter = ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT) if should_use_color() else logging.Formatter(
        LOG_FORMAT, datefmt=DATE_FORMAT
    )
    handler = PromptToolkitHandler(formatter=formatter)
    handler.setLevel(CONSOLE_LEVEL)
    return handler


def _file_handler() -> logging.Handler:
    handler = RotatingFileHandler(
        get_log_filepath(),
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def get_logger(logger_name: str) -> logging.Logger:
    """Return the named Vouchcord logger, attaching its handlers on first use.

    Parameters
    ----------
    logger_name:
        Name of the logger requested by the caller.

    Returns
    -------
    logging.Logger
        Logger instance ready for use.
    """
    logger = logging.getLogger(logger_name)
    if not logger.handlers:
        logger.setLevel(logging.DEBUG)
        logger.propagate = False
        logger.addHandler(_console_handler())
        logger.addHandler(_file_handler())
    return logger


def handle_exception(exception_type, exception_instance, exception_traceback) -> None:
    """Log uncaught exceptions; Ctrl+C still goes to the default hook."""
    if issubclass(exception_type, KeyboardInterrupt):
        sys.__excepthook__(exception_type, exception_instance, exception_traceback)
        return
    logging.error("Uncaught exception", exc_info=(exception_type, exception_instance, exception_traceback))


def quiet_library_loggers(names=("discord", "discord.gateway", "discord.client", "discord.http",
                                 "websockets", "aiohttp", "urllib3", "aiosqlite")) -> None:
    """Raise third-party loggers to ERROR and drop handlers they installed."""
    for name in names:
        library_logger = logging.getLogger(name)
        library_logger.setLevel(logging.ERROR)
        library_logger.propagate = False
        library_logger.handlers = []


quiet_library_loggers()
sys.excepthook = handle_exception
