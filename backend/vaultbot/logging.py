"""
Centralized logging configuration for vaultbot.

Provides:
- Console logging with colored, prefixed output by application area
- Optional file logging with full timestamps for post-mortem analysis
- A logger factory keyed by area ("bot", "vault", "telegram", ...)

Every area logger is a child of the "vaultbot" logger, which owns the
handlers. Pass chat and user ids with extra={"chat_id": ..., "user_id": ...}.

Secrets (passwords, passphrases, ciphertext) must never reach a log line.
Log ids and operations instead.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "vaultbot"


# ANSI color codes for console output
class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_BLUE = "\033[94m"
    BRIGHT_MAGENTA = "\033[95m"
    BRIGHT_CYAN = "\033[96m"


AREA_COLORS = {
    "main": Colors.BRIGHT_CYAN,
    "bot": Colors.BRIGHT_GREEN,
    "vault": Colors.BRIGHT_MAGENTA,
    "context": Colors.MAGENTA,
    "database": Colors.BRIGHT_BLUE,
    "migrations": Colors.BLUE,
    "telegram": Colors.CYAN,
    "ai": Colors.BRIGHT_YELLOW,
    "api": Colors.GREEN,
}


def _area_of(record: logging.LogRecord) -> str:
    """"vaultbot.telegram" -> "telegram"; anything outside the tree is "main"."""
    prefix = ROOT_LOGGER_NAME + "."
    if record.name.startswith(prefix):
        return record.name[len(prefix):]
    return "main"


def _ids_of(record: logging.LogRecord) -> str:
    parts = [
        f"{key}={getattr(record, key)}"
        for key in ("chat_id", "user_id")
        if hasattr(record, key)
    ]
    return (" (" + " ".join(parts) + ")") if parts else ""


class ColoredConsoleFormatter(logging.Formatter):
    """Adds colors and area prefixes to console output."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.DIM,
        logging.INFO: Colors.RESET,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BRIGHT_RED + Colors.BOLD,
    }

    def format(self, record: logging.LogRecord) -> str:
        area = _area_of(record)
        area_color = AREA_COLORS.get(area, Colors.WHITE)
        level_color = self.LEVEL_COLORS.get(record.levelno, Colors.RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        # [VAULTBOT.area] HH:MM:SS LEVEL    message (ids)
        message = (
            f"{area_color}[VAULTBOT.{area}]{Colors.RESET} "
            f"{Colors.DIM}{timestamp}{Colors.RESET} "
            f"{level_color}{record.levelname:<8}{Colors.RESET} "
            f"{record.getMessage()}{_ids_of(record)}"
        )
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


class FileFormatter(logging.Formatter):
    """Plain lines with millisecond timestamps."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        line = (
            f"{timestamp} [VAULTBOT.{_area_of(record)}] {record.levelname}: "
            f"{record.getMessage()}{_ids_of(record)}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    log_dir: Optional[str] = None,
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Optional[Path]:
    """
    Initialize the logging system. Safe to call more than once.

    Args:
        log_dir: Directory for log files. When None, only console logging is used.
        console_level: Minimum level for console output
        file_level: Minimum level for file output

    Returns:
        Path to the log file, if file logging is enabled
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(logging.DEBUG)  # Handlers do the filtering
    root.propagate = False
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root.addHandler(console_handler)

    if not log_dir:
        return None

    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    log_filename = datetime.now().strftime("vaultbot_%Y%m%d_%H%M%S.log")
    log_path = directory / log_filename

    latest_link = directory / "latest.log"
    try:
        if latest_link.is_symlink() or latest_link.exists():
            latest_link.unlink()
        latest_link.symlink_to(log_filename)
    except OSError as e:
        root.debug(f"Could not update latest.log link: {e}")

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(FileFormatter())
    root.addHandler(file_handler)

    get_logger("main").info(f"Logging to {log_path}")
    return log_path


def get_logger(area: str = "main") -> logging.Logger:
    """
    Get a logger for a specific application area.

    Example:
        logger = get_logger("vault")
        logger.info("Credential 12 stored")
        # Output: [VAULTBOT.vault] 14:32:15 INFO     Credential 12 stored
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{area}")
