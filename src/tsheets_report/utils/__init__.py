"""Utility modules for the TSheets report tools."""

from tsheets_report.utils.logging import get_logger, setup_logging
from tsheets_report.utils.storage import StorageManager

__all__ = ["get_logger", "setup_logging", "StorageManager"]
