"""
Logging Configuration Module.

The desktop app and the CLI log through the same root logger but want
different output. ``GUI_PROFILE`` keeps a rotating session log in the user
data directory and mirrors it to the console; ``CLI_PROFILE`` prints terse
``LEVEL: message`` lines and leaves no file behind.
"""

import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_DIR = "logs"
LOG_FILENAME = "healthmap.log"
MAX_BYTES = 2 * 1024 * 1024
BACKUP_COUNT = 3
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
CLI_FORMAT = "%(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty dependencies: the photo downloader and the image decoder.
QUIET_LOGGERS = ("urllib3", "PIL")


@dataclass(frozen=True)
class LogProfile:
    """Where log records go and how they look on the console."""

    console_format: str
    log_to_file: bool
    session_banner: bool


GUI_PROFILE = LogProfile(console_format=LOG_FORMAT, log_to_file=True, session_banner=True)
CLI_PROFILE = LogProfile(console_format=CLI_FORMAT, log_to_file=False, session_banner=False)


class SafeRotatingFileHandler(RotatingFileHandler):
    """
    Skips rollover while another process holds the log file (Windows only).
    """

    def doRollover(self) -> None:
        try:
            super().doRollover()
        except PermissionError:
            if sys.platform != "win32":
                raise


def _build_file_handler(log_dir: Optional[str]) -> Optional[logging.Handler]:
    directory = log_dir or LOG_DIR
    try:
        os.makedirs(directory, exist_ok=True)
        handler = SafeRotatingFileHandler(
            os.path.join(directory, LOG_FILENAME),
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as e:
        print(f"Could not open log file in {directory}: {e}", file=sys.stderr)
        return None
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    debug_mode: bool = False,
    profile: LogProfile = GUI_PROFILE,
    log_dir: Optional[str] = None,
    log_to_console: bool = True,
) -> None:
    """
    Replaces the root logger's handlers according to ``profile``.

    Safe to call more than once; earlier handlers are closed first.

    Args:
        debug_mode: Log at DEBUG instead of INFO, including the quieted
            third-party loggers.
        profile: ``GUI_PROFILE`` or ``CLI_PROFILE``.
        log_dir: Directory for the log file when the profile writes one.
        log_to_console: Set False to keep the console silent.
    """
    level = logging.DEBUG if debug_mode else logging.INFO
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(level)

    if profile.log_to_file:
        file_handler = _build_file_handler(log_dir)
        if file_handler is not None:
            root_logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            logging.Formatter(profile.console_format, datefmt=DATE_FORMAT)
        )
        root_logger.addHandler(console_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug_mode else logging.WARNING)

    if profile.session_banner:
        logging.info("Pet Health Map session started at %s", datetime.now().isoformat())


def shutdown_logging() -> None:
    """Flushes and closes every handler so the log file is released."""
    logging.shutdown()
