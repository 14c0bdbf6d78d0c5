"""Archive restoration."""

import os
import shutil
import zipfile
import logging
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Optional

from .models import PathLike, RestoreResult
from .notifier import LogSink, Notifier
from ..exceptions import RestoreFailure


logger = logging.getLogger(__name__)


def resolve_entry_target(destination: Path, entry_name: str) -> Path:
    """Map an archive entry name to a path inside ``destination``.

    Only ``/`` separates path components. Backslashes and drive letters are
    treated as separators and roots on Windows alone; on POSIX they are
    ordinary file name characters.

    Args:
        destination: Resolved destination directory.
        entry_name: Name of the entry as stored in the archive.

    Returns:
        Absolute target path.

    Raises:
        RestoreFailure: If the entry would be written outside ``destination``.
    """
    normalized = entry_name
    if os.name == 'nt':
        normalized = entry_name.replace('\\', '/')
        if PureWindowsPath(entry_name).drive:
            raise RestoreFailure(f"Unsafe entry name in archive: {entry_name!r}")

    if not normalized.strip('/') or PurePosixPath(normalized).is_absolute():
        raise RestoreFailure(f"Unsafe entry name in archive: {entry_name!r}")

    parts = [part for part in normalized.split('/') if part not in ('', '.')]
    target = destination.joinpath(*parts).resolve()

    if target != destination and destination not in target.parents:
        raise RestoreFailure(f"Entry escapes destination directory: {entry_name!r}")
    return target


def restore_archive(archive_path: PathLike, destination_dir: PathLike,
                    on_log: Optional[LogSink] = None) -> RestoreResult:
    """Extract every entry of an archive into a destination directory.

    Entries are written in stored order, creating missing directories and
    overwriting existing files. Processing stops at the first failing entry;
    files restored before it are kept and listed in the result.

    Args:
        archive_path: Zip archive to restore.
        destination_dir: Directory receiving the files; created if missing.
        on_log: Optional callback receiving one message per restored entry.

    Returns:
        RestoreResult listing the restored files.

    Raises:
        RestoreFailure: If the archive cannot be read, an entry is unsafe, or
            a file cannot be written.
    """
    notifier = Notifier(on_log, logger)
    archive = Path(archive_path).expanduser().absolute()
    destination = Path(destination_dir).expanduser().absolute()
    result = RestoreResult(archive_path=archive, destination=destination)

    if not archive.is_file():
        raise RestoreFailure(f"Archive does not exist or is not a file: {archive}")

    try:
        destination.mkdir(parents=True, exist_ok=True)
        destination = destination.resolve()
        result.destination = destination

        with zipfile.ZipFile(archive, 'r') as zf:
            for info in zf.infolist():
                target = resolve_entry_target(destination, info.filename)

                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue

                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info, 'r') as source, open(target, 'wb') as out:
                    shutil.copyfileobj(source, out)

                result.restored.append(target)
                notifier.info(f"Restored file: {target}")
    except RestoreFailure as e:
        e.result = result
        raise
    except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, RuntimeError) as e:
        raise RestoreFailure(f"Error restoring {archive}: {e}", result=result) from e

    notifier.info(f"Restore completed into {destination} ({len(result.restored)} files)")
    return result
