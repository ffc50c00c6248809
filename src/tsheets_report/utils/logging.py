"""Logging configuration for the TSheets report tools."""

import logging
import sys
from pathlib import Path

from tsheets_report.utils.storage import DEFAULT_CONFIG_DIR

LOG_FILE_NAME = "tsheets-report.log"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(name)s - %(levelname)s - %(message)s"

# Libraries that log every request or protocol message at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "mcp")


def setup_logging(
    log_level: int = logging.INFO,
    config_dir: Path | None = None,
    console: bool = True,
) -> Path:
    """Configure the root logger with a log file and an optional stderr handler.

    Nothing is ever written to stdout: the MCP stdio transport owns it, and the
    report command prints its output there.

    Args:
        log_level: Logging level (e.g., logging.INFO, logging.DEBUG).
        config_dir: Directory for the log file. Defaults to ~/.tsheets-report/
        console: Also log to stderr.

    Returns:
        Path of the log file.
    """
    config_dir = config_dir or DEFAULT_CONFIG_DIR
    config_dir.mkdir(parents=True, exist_ok=True)
    log_file = config_dir / LOG_FILE_NAME

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root_logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    return log_file


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)
