"""Backup service: the start / stop / restore surface used by front ends."""

import time
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, List, Optional

from .models import BackupConfig, PathLike, RestoreResult
from .notifier import LogSink, Notifier
from .restorer import restore_archive
from .scheduler import BackupScheduler
from .session import BackupSession
from ..exceptions import AlreadyRunning, InvalidConfig, RestoreFailure


class BackupService:
    """Main backup coordinator."""

    def __init__(self, clock: Callable[[], float] = time.time, max_restore_workers: int = 2):
        """Initialize backup service.

        Args:
            clock: Time source handed to every backup session.
            max_restore_workers: Worker threads used by submit_restore.
        """
        self.clock = clock
        self.max_restore_workers = max_restore_workers
        self.logger = logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._session: Optional[BackupSession] = None
        self._scheduler: Optional[BackupScheduler] = None
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def session(self) -> Optional[BackupSession]:
        return self._session

    @property
    def scheduler(self) -> Optional[BackupScheduler]:
        return self._scheduler

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.is_running

    def start(self, source_root: PathLike, backup_root: PathLike, interval_minutes: int,
              on_log: Optional[LogSink] = None, exclude_patterns: Optional[List[str]] = None,
              compression: str = 'deflated') -> BackupSession:
        """Validate settings and start scheduled backups.

        The first pass runs immediately on the scheduler thread.

        Raises:
            InvalidConfig: If the settings are rejected.
            AlreadyRunning: If backups are already scheduled.
        """
        config = BackupConfig.create(
            source_root, backup_root, interval_minutes,
            exclude_patterns=exclude_patterns, compression=compression
        )
        return self.start_config(config, on_log)

    def start_config(self, config: BackupConfig, on_log: Optional[LogSink] = None) -> BackupSession:
        """Start scheduled backups from an already validated config.

        Args:
            config: Backup configuration.
            on_log: Optional callback receiving status messages.

        Returns:
            The new backup session.
        """
        notifier = Notifier(on_log, self.logger)

        with self._lock:
            if self.is_running:
                raise AlreadyRunning("Backup service is already running")

            try:
                config.backup_root.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise InvalidConfig(f"Cannot create backup directory {config.backup_root}: {e}") from e

            session = BackupSession(config, on_log=on_log, clock=self.clock)
            scheduler = BackupScheduler(session.run_pass, config.interval_seconds)
            self._session = session
            self._scheduler = scheduler

            notifier.info(
                f"Backup service started: {config.source_root} -> {config.backup_root} "
                f"every {config.interval_minutes} min"
            )
            scheduler.start()

        return session

    def stop(self) -> None:
        """Stop scheduling backups. A pass in progress is allowed to finish."""
        with self._lock:
            scheduler = self._scheduler
            if scheduler is None or not scheduler.is_running:
                return
            in_flight = scheduler.stop()
            on_log = self._session.notifier.on_log if self._session else None

        message = "Backup service stopped."
        if in_flight:
            message += " The pass in progress will finish."
        Notifier(on_log, self.logger).info(message)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the scheduler thread exits, see BackupScheduler.join."""
        if self._scheduler is None:
            return True
        return self._scheduler.join(timeout)

    def restore(self, archive_path: PathLike, destination_dir: PathLike,
                on_log: Optional[LogSink] = None) -> RestoreResult:
        """Restore an archive, reporting failures in the result instead of raising.

        Safe to call while backups are running and from several threads at
        once for different archive/destination pairs.
        """
        try:
            return restore_archive(archive_path, destination_dir, on_log=on_log)
        except RestoreFailure as e:
            Notifier(on_log, self.logger).error(f"Restore failed: {e}")
            result = e.result or RestoreResult(
                archive_path=Path(archive_path), destination=Path(destination_dir)
            )
            result.error = str(e)
            return result

    def submit_restore(self, archive_path: PathLike, destination_dir: PathLike,
                       on_log: Optional[LogSink] = None) -> 'Future[RestoreResult]':
        """Run restore() on a background worker and return its future."""
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_restore_workers, thread_name_prefix="restore"
                )
            executor = self._executor
        return executor.submit(self.restore, archive_path, destination_dir, on_log)

    def close(self) -> None:
        """Stop backups and wait for background restores to finish."""
        self.stop()
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)
