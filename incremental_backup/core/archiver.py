"""Zip archive writing for backup passes."""

import os
import zipfile
import logging
from pathlib import Path
from typing import List

from .models import FileCandidate
from ..exceptions import PassFailure


PARTIAL_SUFFIX = ".partial"


class Archiver:
    """Packs candidate files into a single zip archive."""

    def __init__(self, compression: int = zipfile.ZIP_DEFLATED):
        self.compression = compression
        self.logger = logging.getLogger(__name__)

    def pack(self, candidates: List[FileCandidate], archive_path: Path) -> Path:
        """Write candidates into a new archive.

        Each candidate becomes one entry named by its relative path. The
        archive is written to a ``.partial`` file and renamed once complete,
        so ``archive_path`` only ever appears fully written.

        Args:
            candidates: Files to archive.
            archive_path: Final path of the archive.

        Returns:
            The archive path.

        Raises:
            PassFailure: If the archive exists already or any file cannot be
                read or written.
        """
        if archive_path.exists():
            raise PassFailure(f"Archive already exists: {archive_path}")

        partial_path = archive_path.with_name(archive_path.name + PARTIAL_SUFFIX)

        try:
            with zipfile.ZipFile(partial_path, 'w', compression=self.compression,
                                 strict_timestamps=False) as zf:
                for candidate in candidates:
                    zf.write(candidate.absolute_path, arcname=candidate.relative_path)
                    self.logger.debug(f"Added {candidate.relative_path} to {archive_path.name}")
            os.replace(partial_path, archive_path)
        except (OSError, ValueError, zipfile.BadZipFile, zipfile.LargeZipFile) as e:
            # ValueError covers names zip cannot encode (undecodable bytes on POSIX)
            self._discard(partial_path)
            raise PassFailure(f"Error writing archive {archive_path}: {e}") from e
        except BaseException:
            self._discard(partial_path)
            raise

        return archive_path

    def _discard(self, partial_path: Path) -> None:
        try:
            partial_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Could not remove partial archive {partial_path}: {e}")
