"""
Logging utilities.

WHAT: Logging setup for the seller assistant plus secret masking
WHY: LLM fallbacks, calendar failures and shadow drafts must be visible to
     the seller without leaking API keys or OAuth tokens into log files
HOW: Console handler always, file handler when LOG_FILE is set, chatty
     HTTP client loggers capped at WARNING
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from ..core.config import settings

CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(pathname)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Log every request line at INFO, which drowns out dispatch decisions
QUIET_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None):
    """
    Configure application logging.

    Args:
        level: Root level name, defaults to LOG_LEVEL
        log_file: File path, defaults to LOG_FILE; empty means console only
    """
    level = (level or settings.LOG_LEVEL).upper()
    log_file = settings.LOG_FILE if log_file is None else log_file

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level, logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info(f"Logging initialized (level={level}, file={log_file or 'none'})")


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    """Mask an API key or token, keeping the last few characters."""
    if not value or len(value) <= visible:
        return "***"
    return "*" * 10 + value[-visible:]


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
