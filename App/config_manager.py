"""Configuration persistence manager for the quilt pattern generator.

This module handles loading and saving of quilt settings to/from JSON files.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Tuple

from models import CONFIG_FILE, QuiltSettings

logger = logging.getLogger(__name__)


class ConfigManager:
    """Handles loading and saving of quilt settings."""

    def __init__(self, config_path: Path = CONFIG_FILE):
        """Initialize config manager.

        Args:
            config_path: Path to configuration file (defaults to ~/.quiltpattern_config.json)
        """
        self.config_path = Path(config_path)

    def load(self) -> QuiltSettings:
        """Load settings from file, returning defaults if not found.

        Unknown keys are ignored and missing keys keep their defaults. A file
        that cannot be read or parsed is reported and defaults are returned.

        Returns:
            QuiltSettings with loaded or default values
        """
        if not self.config_path.exists():
            return QuiltSettings()

        try:
            with open(self.config_path, "r") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("top-level JSON value must be an object")
            settings = QuiltSettings.from_dict(data)
            logger.info("Loaded configuration from %s", self.config_path)
            return settings
        except Exception as e:
            logger.warning("Could not load config file %s: %s", self.config_path, e)
            return QuiltSettings()

    def save(self, settings: QuiltSettings) -> Tuple[bool, Optional[str]]:
        """Save settings to file.

        Args:
            settings: QuiltSettings to save

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        try:
            with open(self.config_path, "w") as f:
                json.dump(settings.to_dict(), f, indent=2)
            return True, None
        except Exception as e:
            return False, str(e)
