"""Periodic single-flight scheduling of backup passes."""

import threading
import time
import logging
from typing import Callable, Optional

from ..exceptions import AlreadyRunning


class BackupScheduler:
    """Runs a task immediately and then every ``interval_seconds`` until stopped.

    Ticks are serialized: the next tick is due one interval after the previous
    tick started, and a task that overruns pushes the next tick back until it
    finishes. Missed ticks collapse into one, so the task never overlaps itself.
    """

    def __init__(self, task: Callable[[], object], interval_seconds: float, name: str = "backup-scheduler"):
        """Initialize backup scheduler.

        Args:
            task: Callable run on every tick.
            interval_seconds: Delay between the starts of two consecutive ticks.
            name: Name of the worker thread.
        """
        if interval_seconds <= 0:
            raise ValueError(f"Interval must be positive: {interval_seconds}")

        self.task = task
        self.interval_seconds = interval_seconds
        self.name = name
        self.logger = logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.tick_count = 0
        self._active_ticks = 0

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._thread is not None and not self._stop_event.is_set()

    def start(self) -> None:
        """Start the worker thread; the first tick fires immediately.

        Raises:
            AlreadyRunning: If the scheduler is already running.
        """
        with self._lock:
            if self._thread is not None and not self._stop_event.is_set():
                raise AlreadyRunning("Backup scheduler is already running")

            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run, args=(self._stop_event,), name=self.name, daemon=True
            )
            self._thread.start()

        self.logger.info(f"Scheduler started, interval {self.interval_seconds:g}s")

    def stop(self) -> bool:
        """Cancel future ticks. A tick already in progress runs to completion.

        A tick counts as in progress from the moment the worker commits to it,
        which happens under the same lock, so once stop() returns no further
        tick is committed.

        Returns:
            True if a committed tick is still running or about to run.
        """
        with self._lock:
            if self._thread is None or self._stop_event.is_set():
                return self._active_ticks > 0
            self._stop_event.set()
            in_flight = self._active_ticks > 0

        self.logger.info("Scheduler stopped")
        return in_flight

    @property
    def tick_in_progress(self) -> bool:
        with self._lock:
            return self._active_ticks > 0

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the worker thread to exit.

        Returns:
            True if the worker has exited (or never started).
        """
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def _run(self, stop_event: threading.Event) -> None:
        next_due = time.monotonic()

        while True:
            delay = next_due - time.monotonic()
            if delay > 0 and stop_event.wait(delay):
                break

            # Commit to the tick under the lock shared with stop()
            with self._lock:
                if stop_event.is_set():
                    break
                self.tick_count += 1
                self._active_ticks += 1

            tick_started = time.monotonic()
            try:
                self.task()
            except Exception as e:
                self.logger.exception(f"Scheduled task failed: {e}")
            finally:
                with self._lock:
                    self._active_ticks -= 1

            next_due = tick_started + self.interval_seconds
