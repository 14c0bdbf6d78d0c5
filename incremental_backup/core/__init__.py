"""Core backup, scheduling and restore functionality."""

from .service import BackupService
from .session import BackupSession
from .scheduler import BackupScheduler
from .scanner import FileScanner
from .archiver import Archiver
from .restorer import restore_archive
from .models import BackupConfig, BackupState, FileCandidate, PassResult, RestoreResult

__all__ = [
    "BackupService", "BackupSession", "BackupScheduler", "FileScanner", "Archiver",
    "restore_archive", "BackupConfig", "BackupState", "FileCandidate", "PassResult", "RestoreResult",
]
