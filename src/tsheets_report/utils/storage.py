"""Storage for TSheets report configuration files."""

from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_DIR = Path.home() / ".tsheets-report"


class StorageManager:
    """Manages config.yaml and the location of the token file."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize storage manager.

        Args:
            config_dir: Directory to store configuration. Defaults to ~/.tsheets-report/
        """
        self.config_dir = config_dir or DEFAULT_CONFIG_DIR
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.config_file = self.config_dir / "config.yaml"
        self.tokens_file = self.config_dir / "tokens.json"

    def load_config(self) -> dict[str, Any]:
        """Load application configuration.

        Returns:
            Configuration dictionary, empty if no file has been written yet.
        """
        if self.config_file.exists():
            with open(self.config_file) as f:
                return yaml.safe_load(f) or {}
        return {}

    def save_config(self, config: dict[str, Any]) -> None:
        """Save application configuration.

        Args:
            config: Configuration dictionary to save.
        """
        with open(self.config_file, "w") as f:
            yaml.dump(config, f, default_flow_style=False, sort_keys=False)
