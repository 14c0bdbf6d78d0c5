"""Formatting utilities for backup archives and status messages."""

import re
from datetime import datetime
from typing import Optional


ARCHIVE_PREFIX = "backup_"
ARCHIVE_SUFFIX = ".zip"
ARCHIVE_TIMESTAMP_FORMAT = '%Y%m%d_%H%M%S'
ARCHIVE_NAME_PATTERN = re.compile(r'^backup_(\d{8}_\d{6})\.zip$')


def format_file_size(size_bytes: int) -> str:
    """Format file size in human readable format.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Human readable size string.
    """
    if size_bytes < 1024:
        return f"{size_bytes}B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes // 1024}KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes // (1024 * 1024)}MB"
    else:
        return f"{size_bytes // (1024 * 1024 * 1024)}GB"


def format_date(dt: datetime, short: bool = False) -> str:
    """Format datetime for display.

    Args:
        dt: Datetime to format.
        short: If True, use short format.

    Returns:
        Formatted date string.
    """
    if short:
        return dt.strftime('%Y-%m-%d %H:%M')
    else:
        return dt.strftime('%Y-%m-%d %H:%M:%S')


def format_timestamp(timestamp: float) -> str:
    """Format an epoch timestamp in local time for log messages."""
    return format_date(datetime.fromtimestamp(timestamp))


def archive_name(timestamp: float) -> str:
    """Build the archive file name for a pass started at ``timestamp``.

    Args:
        timestamp: Epoch seconds of the pass start.

    Returns:
        Name of the form ``backup_<yyyyMMdd_HHmmss>.zip`` in local time.
    """
    stamp = datetime.fromtimestamp(timestamp).strftime(ARCHIVE_TIMESTAMP_FORMAT)
    return f"{ARCHIVE_PREFIX}{stamp}{ARCHIVE_SUFFIX}"


def parse_archive_name(name: str) -> Optional[datetime]:
    """Return the timestamp encoded in an archive name, or None if it is not one."""
    match = ARCHIVE_NAME_PATTERN.match(name)
    if not match:
        return None
    try:
        return datetime.strptime(match.group(1), ARCHIVE_TIMESTAMP_FORMAT)
    except ValueError:
        return None
