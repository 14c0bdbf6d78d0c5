"""Utility modules for incremental backups."""

from .formatters import format_file_size, format_date, format_timestamp, archive_name, parse_archive_name

__all__ = ["format_file_size", "format_date", "format_timestamp", "archive_name", "parse_archive_name"]
