"""Data models for incremental backups."""

import os
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..exceptions import InvalidConfig


COMPRESSION_METHODS = {
    'stored': zipfile.ZIP_STORED,
    'deflated': zipfile.ZIP_DEFLATED,
    'bzip2': zipfile.ZIP_BZIP2,
    'lzma': zipfile.ZIP_LZMA,
}

PathLike = Union[str, os.PathLike]


@dataclass(frozen=True)
class BackupConfig:
    """Immutable settings of one backup session."""
    source_root: Path
    backup_root: Path
    interval_minutes: int
    exclude_patterns: Tuple[str, ...] = ()
    compression: int = zipfile.ZIP_DEFLATED

    @classmethod
    def create(cls, source_root: PathLike, backup_root: PathLike, interval_minutes: int,
               exclude_patterns: Optional[List[str]] = None,
               compression: str = 'deflated') -> 'BackupConfig':
        """Validate raw settings and build a config.

        Args:
            source_root: Directory tree to back up.
            backup_root: Directory that receives the archives.
            interval_minutes: Minutes between two backup passes.
            exclude_patterns: Glob patterns matched against relative paths.
            compression: Name of the zip compression method.

        Returns:
            A validated BackupConfig.

        Raises:
            InvalidConfig: If any setting is unusable.
        """
        if not source_root:
            raise InvalidConfig("Source directory must be set")
        if not backup_root:
            raise InvalidConfig("Backup directory must be set")

        source = Path(source_root).expanduser().resolve()
        backup = Path(backup_root).expanduser().resolve()

        if not source.exists():
            raise InvalidConfig(f"Source directory does not exist: {source}")
        if not source.is_dir():
            raise InvalidConfig(f"Source path is not a directory: {source}")
        if backup.exists() and not backup.is_dir():
            raise InvalidConfig(f"Backup path is not a directory: {backup}")
        if source == backup:
            raise InvalidConfig("Backup directory must differ from the source directory")

        if isinstance(interval_minutes, bool) or not isinstance(interval_minutes, int):
            raise InvalidConfig(f"Interval must be an integer number of minutes: {interval_minutes!r}")
        if interval_minutes <= 0:
            raise InvalidConfig(f"Interval must be positive: {interval_minutes}")

        if compression not in COMPRESSION_METHODS:
            raise InvalidConfig(
                f"Unknown compression '{compression}', expected one of {sorted(COMPRESSION_METHODS)}"
            )

        return cls(
            source_root=source,
            backup_root=backup,
            interval_minutes=interval_minutes,
            exclude_patterns=tuple(exclude_patterns or ()),
            compression=COMPRESSION_METHODS[compression],
        )

    @property
    def interval_seconds(self) -> float:
        return self.interval_minutes * 60.0


@dataclass
class BackupState:
    """Mutable watermark owned by a single backup session.

    A ``None`` timestamp means no pass has completed yet.
    """
    last_backup_timestamp: Optional[float] = None

    @property
    def is_never(self) -> bool:
        return self.last_backup_timestamp is None

    def advance(self, timestamp: float) -> None:
        """Move the watermark forward, never backwards."""
        if self.last_backup_timestamp is None or timestamp > self.last_backup_timestamp:
            self.last_backup_timestamp = timestamp


@dataclass
class FileCandidate:
    """A file selected for the current pass."""
    absolute_path: Path
    relative_path: str
    modification_time: float
    size: int


@dataclass
class PassResult:
    """Outcome of one backup pass."""
    started_at: float
    archive_path: Optional[Path] = None
    files: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class RestoreResult:
    """Outcome of one restore call."""
    archive_path: Path
    destination: Path
    restored: List[Path] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None
