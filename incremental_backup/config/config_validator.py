"""Configuration validation for incremental backups."""

from typing import Dict, List, Any

from ..core.models import COMPRESSION_METHODS
from ..exceptions import InvalidConfig


class ConfigValidator:
    """Validates backup configuration."""

    REQUIRED_SECTIONS = ['backup']
    REQUIRED_BACKUP_FIELDS = ['source', 'destination']
    LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

    def validate(self, config: Dict[str, Any]) -> None:
        """Validate configuration data.

        Args:
            config: Configuration dictionary to validate.

        Raises:
            InvalidConfig: If configuration is invalid.
        """
        if not isinstance(config, dict):
            raise InvalidConfig("Configuration must be a mapping")

        self._validate_structure(config)
        self._validate_backup_section(config['backup'])

        if 'logging' in config:
            self._validate_logging_config(config['logging'])

    def _validate_structure(self, config: Dict[str, Any]) -> None:
        """Validate basic configuration structure.

        Raises:
            InvalidConfig: If required sections are missing.
        """
        missing_sections = []
        for section in self.REQUIRED_SECTIONS:
            if section not in config:
                missing_sections.append(section)

        if missing_sections:
            raise InvalidConfig(f"Missing required configuration sections: {missing_sections}")

    def _validate_backup_section(self, backup: Dict[str, Any]) -> None:
        """Validate the backup section.

        Args:
            backup: Backup section of the configuration.

        Raises:
            InvalidConfig: If the backup section is invalid.
        """
        if not isinstance(backup, dict):
            raise InvalidConfig("Backup section must be a dictionary")

        missing_fields = [field for field in self.REQUIRED_BACKUP_FIELDS if not backup.get(field)]
        if missing_fields:
            raise InvalidConfig(f"Backup section missing required fields: {missing_fields}")

        if 'interval_minutes' in backup:
            interval = backup['interval_minutes']
            if isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
                raise InvalidConfig(f"Backup interval_minutes must be a positive integer: {interval!r}")

        compression = backup.get('compression', 'deflated')
        if compression not in COMPRESSION_METHODS:
            raise InvalidConfig(f"Backup section has invalid compression: {compression}")

        self._validate_exclude(backup.get('exclude', []))

    def _validate_exclude(self, exclude: List[Any]) -> None:
        if exclude is None:
            return
        if not isinstance(exclude, list) or not all(isinstance(p, str) for p in exclude):
            raise InvalidConfig("Backup exclude must be a list of glob patterns")

    def _validate_logging_config(self, logging_config: Dict[str, Any]) -> None:
        """Validate logging configuration.

        Raises:
            InvalidConfig: If logging configuration is invalid.
        """
        if not isinstance(logging_config, dict):
            raise InvalidConfig("Logging section must be a dictionary")

        level = logging_config.get('level', 'INFO')
        if not isinstance(level, str) or level.upper() not in self.LOG_LEVELS:
            raise InvalidConfig(f"Logging configuration has invalid level: {level}")
