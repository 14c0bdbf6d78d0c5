"""Backup session: one config, one watermark, one pass at a time."""

import threading
import time
import logging
from typing import Callable, Optional

from .archiver import Archiver
from .models import BackupConfig, BackupState, PassResult
from .notifier import LogSink, Notifier
from .scanner import FileScanner
from ..exceptions import PassFailure
from ..utils.formatters import archive_name, format_file_size, format_timestamp


class BackupSession:
    """Owns the backup config and the watermark of a running backup.

    Every pass runs under the session lock, so two passes never touch the
    watermark at the same time.
    """

    def __init__(self, config: BackupConfig, on_log: Optional[LogSink] = None,
                 clock: Callable[[], float] = time.time):
        """Initialize backup session.

        Args:
            config: Validated backup configuration.
            on_log: Optional callback receiving status messages.
            clock: Returns the current time in epoch seconds.
        """
        self.config = config
        self.state = BackupState()
        self.clock = clock
        self.logger = logging.getLogger(__name__)
        self.notifier = Notifier(on_log, self.logger)
        self.scanner = FileScanner(
            exclude_patterns=config.exclude_patterns,
            skip_dirs=[config.backup_root]
        )
        self.archiver = Archiver(compression=config.compression)
        self._pass_lock = threading.Lock()
        self.last_result: Optional[PassResult] = None

    @property
    def watermark(self) -> Optional[float]:
        return self.state.last_backup_timestamp

    def run_pass(self) -> PassResult:
        """Run one backup pass.

        Failures are reported through the notifier and the returned result;
        they never raise, and leave the watermark untouched.

        Returns:
            PassResult describing the pass.
        """
        with self._pass_lock:
            now = self.clock()
            result = PassResult(started_at=now)

            try:
                self._execute(now, result)
            except PassFailure as e:
                self._fail(result, str(e))
            except Exception as e:
                self.logger.exception(f"Unexpected error during backup pass: {e}")
                self._fail(result, f"Unexpected error: {e}")

            self.last_result = result
            return result

    def _fail(self, result: PassResult, error: str) -> None:
        result.archive_path = None
        result.files = []
        result.error = error
        self.notifier.error(f"Backup failed: {error}")

    def _execute(self, now: float, result: PassResult) -> None:
        source_root = self.config.source_root
        self.notifier.info(f"Scanning {source_root} at {format_timestamp(now)}")

        candidates = self.scanner.scan(source_root, self.state.last_backup_timestamp)

        if not candidates:
            self.notifier.info("No new or modified files to back up.")
            self.state.advance(now)
            return

        archive_path = self.config.backup_root / archive_name(now)
        self.archiver.pack(candidates, archive_path)
        self.state.advance(now)

        total_size = sum(c.size for c in candidates)
        result.archive_path = archive_path
        result.files = [c.relative_path for c in candidates]
        self.notifier.info(
            f"Backup created: {archive_path} ({len(candidates)} files, {format_file_size(total_size)})"
        )
