"""
Incremental Backup - periodic incremental zip backups of a directory tree.

This package schedules backup passes that archive new and modified files into
timestamped zip archives, and restores those archives into a destination
directory.
"""

__version__ = "1.0.0"

from .core.service import BackupService
from .core.models import BackupConfig
from .core.restorer import restore_archive
from .exceptions import BackupError, InvalidConfig, PassFailure, RestoreFailure, AlreadyRunning

__all__ = [
    "BackupService", "BackupConfig", "restore_archive",
    "BackupError", "InvalidConfig", "PassFailure", "RestoreFailure", "AlreadyRunning",
]
