import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from ...constants import LOG_FILE_NAME
from ..config.get_home_dir import get_home_dir

# Prevent multiple configurations
_CONFIGURED = False

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}


def configure_logging(home: Path | None = None, level: str = "INFO", verbose: bool = False) -> None:
    """Configure unified autorun logging.

    Args:
        home: autorun home directory. If None, derived from environment.
        level: Level name from LogConfig (DEBUG, INFO, WARN, ERROR).
        verbose: Force DEBUG and mirror records to stderr.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    if home is None:
        home = get_home_dir()

    # AUTORUN_LOG_LEVEL=debug behaves like --verbose
    if os.environ.get("AUTORUN_LOG_LEVEL", "").lower() == "debug":
        verbose = True

    home.mkdir(parents=True, exist_ok=True)
    log_file = home / LOG_FILE_NAME

    root_logger = logging.getLogger("autorun")
    root_logger.setLevel(logging.DEBUG if verbose else _LEVELS.get(level.upper(), logging.INFO))

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,  # 5MB * 3
    )
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    if verbose:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        root_logger.addHandler(stream_handler)

    _CONFIGURED = True
