"""Configuration management for incremental backups."""

import os
import yaml
from typing import Dict, List, Any, Optional

from .config_validator import ConfigValidator
from ..core.models import BackupConfig
from ..exceptions import InvalidConfig


class ConfigManager:
    """Manages configuration loading and validation for backups."""

    DEFAULT_CONFIG_LOCATIONS = [
        "backup.yaml",
        "backup.yml",
        os.path.expanduser("~/.incremental-backup/config.yaml"),
        os.path.expanduser("~/.incremental-backup/config.yml"),
        "/etc/incremental-backup/config.yaml",
        "/etc/incremental-backup/config.yml"
    ]

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional path to config file. If not provided,
                        will search in default locations.
        """
        self.config_path = config_path
        self.config_data: Dict[str, Any] = {}
        self.validator = ConfigValidator()

    def load_config(self) -> Dict[str, Any]:
        """Load configuration from file.

        Returns:
            Dictionary containing configuration data.

        Raises:
            FileNotFoundError: If config file cannot be found.
            InvalidConfig: If config file is invalid.
        """
        config_file = self._find_config_file()

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                self.config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise InvalidConfig(f"Invalid YAML in config file {config_file}: {e}")
        except OSError as e:
            raise InvalidConfig(f"Error reading config file {config_file}: {e}")

        # Validate configuration
        self.validator.validate(self.config_data)

        # Set defaults
        self._set_defaults()

        return self.config_data

    def find_config_file(self) -> Optional[str]:
        """Return the config file that would be loaded, or None if there is none."""
        try:
            return self._find_config_file()
        except FileNotFoundError:
            return None

    def _find_config_file(self) -> str:
        """Find configuration file in default locations.

        Returns:
            Path to configuration file.

        Raises:
            FileNotFoundError: If no config file is found.
        """
        if self.config_path:
            if os.path.exists(self.config_path):
                return self.config_path
            else:
                raise FileNotFoundError(f"Config file not found: {self.config_path}")

        for location in self.DEFAULT_CONFIG_LOCATIONS:
            if os.path.exists(location):
                return location

        raise FileNotFoundError(
            f"Configuration file not found in any of these locations:\n" +
            "\n".join(f"  - {loc}" for loc in self.DEFAULT_CONFIG_LOCATIONS) +
            "\n\nPlease copy config.example.yaml to backup.yaml and customize it."
        )

    def _set_defaults(self):
        """Set default values for optional configuration parameters."""
        defaults = {
            'backup': {
                'interval_minutes': 30,
                'compression': 'deflated',
                'exclude': []
            },
            'logging': {
                'level': 'INFO',
                'file': None
            }
        }

        # Merge defaults with existing config
        for section, section_defaults in defaults.items():
            if section not in self.config_data:
                self.config_data[section] = {}
            for key, value in section_defaults.items():
                if key not in self.config_data[section]:
                    self.config_data[section][key] = value

    def get_backup_config(self) -> Dict[str, Any]:
        """Get backup configuration.

        Returns:
            Backup configuration dictionary.
        """
        return self.config_data.get('backup', {})

    def get_logging_config(self) -> Dict[str, Any]:
        """Get logging configuration.

        Returns:
            Logging configuration dictionary.
        """
        return self.config_data.get('logging', {})

    def get_exclude_patterns(self) -> List[str]:
        return list(self.get_backup_config().get('exclude') or [])

    def build_backup_config(self) -> BackupConfig:
        """Build a validated BackupConfig from the backup section.

        Raises:
            InvalidConfig: If the configured paths or interval are unusable.
        """
        backup = self.get_backup_config()
        return BackupConfig.create(
            backup.get('source'),
            backup.get('destination'),
            backup.get('interval_minutes', 30),
            exclude_patterns=self.get_exclude_patterns(),
            compression=backup.get('compression', 'deflated')
        )
