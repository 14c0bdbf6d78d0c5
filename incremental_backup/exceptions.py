"""Exceptions raised by the incremental backup system."""


class BackupError(Exception):
    """Base class for all backup errors."""


class InvalidConfig(BackupError, ValueError):
    """Raised when a backup configuration is rejected before scheduling starts."""


class PassFailure(BackupError):
    """Raised when a single backup pass fails with an I/O error."""


class RestoreFailure(BackupError):
    """Raised when an archive cannot be read or an entry cannot be restored.

    ``result`` holds the partial RestoreResult when entries were already written.
    """

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result


class AlreadyRunning(BackupError, RuntimeError):
    """Raised when starting a scheduler or service that is already running."""
