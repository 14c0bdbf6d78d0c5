"""Source tree scanning for incremental backups."""

import os
import fnmatch
import logging
from pathlib import Path
from typing import Generator, List, Optional, Sequence

from .models import FileCandidate
from ..exceptions import PassFailure


class FileScanner:
    """Walks a source tree and selects files changed since the watermark."""

    def __init__(self, exclude_patterns: Sequence[str] = (), skip_dirs: Sequence[Path] = ()):
        """Initialize file scanner.

        Args:
            exclude_patterns: Glob patterns matched against forward-slash relative paths.
            skip_dirs: Absolute directories never descended into (e.g. a nested backup root).
        """
        self.exclude_patterns = list(exclude_patterns)
        self.skip_dirs = {os.path.normcase(os.path.realpath(d)) for d in skip_dirs}
        self.logger = logging.getLogger(__name__)

    def scan(self, source_root: Path, watermark: Optional[float]) -> List[FileCandidate]:
        """Collect candidate files for a backup pass.

        A file is a candidate when no pass has completed yet (``watermark`` is
        None) or its modification time is strictly greater than the watermark.

        Args:
            source_root: Root of the tree to scan.
            watermark: Timestamp of the last completed pass, or None.

        Returns:
            List of FileCandidate objects in walk order.

        Raises:
            PassFailure: If the tree cannot be traversed.
        """
        candidates = []
        scanned = 0

        try:
            for entry, relative_path in self._walk(str(source_root), ''):
                scanned += 1
                if self._is_excluded(relative_path):
                    continue

                entry_stat = entry.stat(follow_symlinks=False)
                if watermark is None or entry_stat.st_mtime > watermark:
                    candidates.append(FileCandidate(
                        absolute_path=Path(entry.path),
                        relative_path=relative_path,
                        modification_time=entry_stat.st_mtime,
                        size=entry_stat.st_size
                    ))
        except OSError as e:
            raise PassFailure(f"Error scanning {source_root}: {e}") from e

        self.logger.debug(f"Scanned {scanned} files under {source_root}, {len(candidates)} candidates")
        return candidates

    def _walk(self, directory: str, prefix: str) -> Generator:
        """Yield (entry, relative_path) for every regular file below directory.

        Entries are sorted by name so the walk order is deterministic.
        Symbolic links and special files are skipped; errors propagate.
        """
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)

        for entry in entries:
            relative_path = f"{prefix}{entry.name}"
            if entry.is_dir(follow_symlinks=False):
                if os.path.normcase(os.path.realpath(entry.path)) in self.skip_dirs:
                    self.logger.debug(f"Skipping backup directory {entry.path}")
                    continue
                yield from self._walk(entry.path, relative_path + '/')
            elif entry.is_file(follow_symlinks=False):
                yield entry, relative_path

    def _is_excluded(self, relative_path: str) -> bool:
        """Check if a relative path matches an exclude pattern."""
        for pattern in self.exclude_patterns:
            if fnmatch.fnmatchcase(relative_path, pattern):
                return True
        return False
