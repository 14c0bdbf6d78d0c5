import os
import zipfile
from concurrent.futures import ThreadPoolExecutor

import pytest

from incremental_backup.core.models import BackupConfig
from incremental_backup.core.restorer import resolve_entry_target, restore_archive
from incremental_backup.core.session import BackupSession
from incremental_backup.exceptions import RestoreFailure
from tests.conftest import write_file


def make_zip(path, entries):
    """Write a zip with the given (name, content) pairs in order."""
    with zipfile.ZipFile(path, 'w') as zf:
        for name, content in entries:
            zf.writestr(name, content)
    return path


def tree(root):
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*")) if p.is_file()
    }


def test_round_trip_reproduces_source(config, clock, source_dir, restore_dir):
    archive = BackupSession(config, clock=clock).run_pass().archive_path

    result = restore_archive(archive, restore_dir)

    assert result.success
    assert tree(restore_dir) == tree(source_dir)
    assert len(result.restored) == 5


def test_restore_overwrites_and_is_idempotent(temp_dir, restore_dir):
    archive = make_zip(temp_dir / "a.zip", [("a.txt", b"x"), ("sub/b.txt", b"b")])
    write_file(restore_dir / "a.txt", "old content")

    restore_archive(archive, restore_dir)
    first = tree(restore_dir)
    restore_archive(archive, restore_dir)

    assert first == {"a.txt": b"x", "sub/b.txt": b"b"}
    assert tree(restore_dir) == first


def test_restore_keeps_unrelated_files(temp_dir, restore_dir):
    archive = make_zip(temp_dir / "a.zip", [("a.txt", b"x")])
    write_file(restore_dir / "keep.txt", "mine")

    restore_archive(archive, restore_dir)

    assert tree(restore_dir) == {"a.txt": b"x", "keep.txt": b"mine"}


def test_directory_entries_and_empty_files(temp_dir, restore_dir):
    archive = make_zip(temp_dir / "a.zip", [("empty_dir/", b""), ("zero.bin", b"")])

    result = restore_archive(archive, restore_dir)

    assert (restore_dir / "empty_dir").is_dir()
    assert (restore_dir / "zero.bin").read_bytes() == b""
    assert result.restored == [restore_dir.resolve() / "zero.bin"]


def test_on_log_called_per_entry_and_on_completion(temp_dir, restore_dir, messages):
    archive = make_zip(temp_dir / "a.zip", [("a.txt", b"x"), ("b.txt", b"y")])

    restore_archive(archive, restore_dir, on_log=messages.append)

    assert len(messages) == 3
    assert messages[0].startswith("Restored file:")
    assert messages[-1].startswith("Restore completed")


@pytest.mark.parametrize("name", [
    "../evil.txt",
    "nested/../../evil.txt",
    "/tmp/evil.txt",
])
def test_path_escaping_entries_are_rejected(temp_dir, restore_dir, name):
    archive = make_zip(temp_dir / "evil.zip", [(name, b"pwned")])

    with pytest.raises(RestoreFailure):
        restore_archive(archive, restore_dir)

    assert not (temp_dir / "evil.txt").exists()


@pytest.mark.skipif(os.name != 'nt', reason="Windows path rules")
@pytest.mark.parametrize("name", ["..\\evil.txt", "C:/evil.txt", "C:evil.txt"])
def test_windows_escaping_entries_are_rejected(temp_dir, restore_dir, name):
    archive = make_zip(temp_dir / "evil.zip", [(name, b"pwned")])

    with pytest.raises(RestoreFailure):
        restore_archive(archive, restore_dir)

    assert not (temp_dir / "evil.txt").exists()


@pytest.mark.skipif(os.name == 'nt', reason="POSIX file names")
def test_backslash_name_stays_inside_destination_on_posix(temp_dir, restore_dir):
    archive = make_zip(temp_dir / "a.zip", [("..\\evil.txt", b"x")])

    restore_archive(archive, restore_dir)

    assert (restore_dir / "..\\evil.txt").read_bytes() == b"x"
    assert not (temp_dir / "evil.txt").exists()


@pytest.mark.skipif(os.name == 'nt', reason="POSIX file names")
def test_round_trip_of_backslash_and_colon_names(temp_dir, clock, restore_dir):
    source = temp_dir / "odd_names"
    write_file(source / "a\\b.txt", "backslash")
    write_file(source / "c:notes.txt", "colon")
    write_file(source / "dir" / "x:y\\z.txt", "nested")
    backups = temp_dir / "odd_backups"
    session = BackupSession(BackupConfig.create(source, backups, 1), clock=clock)
    backups.mkdir()

    archive = session.run_pass().archive_path
    result = restore_archive(archive, restore_dir)

    assert result.success
    assert tree(restore_dir) == tree(source)
    assert sorted(p.name for p in restore_dir.iterdir()) == ["a\\b.txt", "c:notes.txt", "dir"]


def test_dot_segments_inside_destination_are_allowed(temp_dir, restore_dir):
    archive = make_zip(temp_dir / "a.zip", [("sub/../a.txt", b"x")])

    restore_archive(archive, restore_dir)

    assert (restore_dir / "a.txt").read_bytes() == b"x"


def test_failure_stops_and_reports_partial_restore(temp_dir, restore_dir):
    archive = make_zip(temp_dir / "a.zip", [
        ("first.txt", b"1"),
        ("../escape.txt", b"2"),
        ("third.txt", b"3"),
    ])

    with pytest.raises(RestoreFailure) as excinfo:
        restore_archive(archive, restore_dir)

    assert [p.name for p in excinfo.value.result.restored] == ["first.txt"]
    assert (restore_dir / "first.txt").exists()
    assert not (restore_dir / "third.txt").exists()


def test_write_failure_is_reported(temp_dir, restore_dir):
    archive = make_zip(temp_dir / "a.zip", [("blocked/file.txt", b"x")])
    write_file(restore_dir / "blocked", "a file where a directory is needed")

    with pytest.raises(RestoreFailure):
        restore_archive(archive, restore_dir)


def test_missing_archive(temp_dir, restore_dir):
    with pytest.raises(RestoreFailure, match="does not exist"):
        restore_archive(temp_dir / "missing.zip", restore_dir)


def test_corrupt_archive(temp_dir, restore_dir):
    bogus = write_file(temp_dir / "bogus.zip", "this is not a zip file")

    with pytest.raises(RestoreFailure):
        restore_archive(bogus, restore_dir)


def test_concurrent_restores_to_different_destinations(temp_dir):
    archives = [
        make_zip(temp_dir / f"a{i}.zip", [(f"dir/file{i}.txt", str(i).encode())])
        for i in range(4)
    ]

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(
            lambda i: restore_archive(archives[i], temp_dir / f"out{i}"), range(4)
        ))

    assert all(r.success for r in results)
    for i in range(4):
        assert tree(temp_dir / f"out{i}") == {f"dir/file{i}.txt": str(i).encode()}


def test_resolve_entry_target(temp_dir):
    destination = temp_dir.resolve()

    assert resolve_entry_target(destination, "a/b.txt") == destination / "a" / "b.txt"
    with pytest.raises(RestoreFailure):
        resolve_entry_target(destination, "")
