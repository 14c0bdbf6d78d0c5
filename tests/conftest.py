import os
import zipfile
import tempfile
from pathlib import Path

import pytest

from incremental_backup.core.models import BackupConfig


# Fixed point in time used as t0 by the watermark tests
BASE_TIME = 1_700_000_000.0


class FakeClock:
    """Manually advanced clock injected into backup sessions."""

    def __init__(self, start: float = BASE_TIME):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def set(self, value: float) -> None:
        self.now = value


def write_file(path: Path, content, mtime: float = None) -> Path:
    """Write a file, creating parents, and optionally pin its mtime."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, str):
        content = content.encode('utf-8')
    path.write_bytes(content)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def read_archive(archive_path: Path) -> dict:
    """Return {entry name: content} for a zip archive."""
    with zipfile.ZipFile(archive_path) as zf:
        return {info.filename: zf.read(info) for info in zf.infolist()}


def list_archives(backup_dir: Path) -> list:
    return sorted(p.name for p in backup_dir.glob("backup_*.zip"))


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def source_dir(temp_dir):
    """Create a source directory with test files, all modified at t0."""
    source_dir = temp_dir / "source"
    source_dir.mkdir()

    for i in range(1, 4):
        write_file(source_dir / f"file_{i}.txt", f"Content of file {i}", BASE_TIME)

    write_file(source_dir / "nested" / "deep" / "notes.md", "# notes", BASE_TIME)
    write_file(source_dir / "binary.bin", os.urandom(1024), BASE_TIME)

    return source_dir


@pytest.fixture
def backup_dir(temp_dir):
    backup_dir = temp_dir / "backups"
    backup_dir.mkdir()
    return backup_dir


@pytest.fixture
def restore_dir(temp_dir):
    """Restore destination; intentionally not created."""
    return temp_dir / "restore"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config(source_dir, backup_dir):
    return BackupConfig.create(source_dir, backup_dir, 30)


@pytest.fixture
def messages():
    """Collects on_log messages."""
    return []
