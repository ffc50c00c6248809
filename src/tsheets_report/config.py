"""Configuration management for the TSheets report tools."""

import logging
import os
from pathlib import Path
from typing import Any

from tsheets_report.utils.storage import StorageManager

DEFAULT_BASE_URL = "https://rest.tsheets.com/api/v1"
DEFAULT_TIMEOUT = 30.0
DEFAULT_PAGE_LIMIT = 200


class Config:
    """Application settings from config.yaml with environment overrides.

    Environment variables win over the file:
    TSHEETS_BASE_URL, TSHEETS_TIMEOUT, TSHEETS_TOKEN_FILE, TSHEETS_REPORT_LOG_LEVEL.
    """

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize configuration.

        Args:
            config_dir: Directory for storing configuration.
        """
        self.storage = StorageManager(config_dir)
        self._settings = self.storage.load_config()

    def _tsheets(self) -> dict[str, Any]:
        return self._settings.get("tsheets", {}) or {}

    @property
    def base_url(self) -> str:
        """TSheets REST API base URL."""
        return os.environ.get("TSHEETS_BASE_URL") or self._tsheets().get(
            "base_url", DEFAULT_BASE_URL
        )

    @property
    def timeout(self) -> float:
        """Per-request timeout in seconds."""
        value = os.environ.get("TSHEETS_TIMEOUT") or self._tsheets().get(
            "timeout", DEFAULT_TIMEOUT
        )
        return float(value)

    @property
    def page_limit(self) -> int:
        """Records requested per page (TSheets caps this at 200)."""
        return min(int(self._tsheets().get("page_limit", DEFAULT_PAGE_LIMIT)), DEFAULT_PAGE_LIMIT)

    @property
    def token_file(self) -> Path:
        """Path to the stored OAuth token JSON."""
        value = os.environ.get("TSHEETS_TOKEN_FILE") or self._tsheets().get("token_file")
        if value:
            return Path(value).expanduser()
        return self.storage.tokens_file

    @property
    def log_level(self) -> int:
        """Logging level name resolved to its numeric value."""
        name = os.environ.get("TSHEETS_REPORT_LOG_LEVEL") or self._settings.get(
            "log_level", "INFO"
        )
        level = logging.getLevelName(str(name).upper())
        return level if isinstance(level, int) else logging.INFO

    def update(self, section: str, values: dict[str, Any]) -> None:
        """Merge values into a config section and persist it.

        Args:
            section: Top-level key in config.yaml (e.g. "tsheets").
            values: Settings to set; None values are ignored.
        """
        current = self._settings.setdefault(section, {})
        current.update({k: v for k, v in values.items() if v is not None})
        self.storage.save_config(self._settings)
