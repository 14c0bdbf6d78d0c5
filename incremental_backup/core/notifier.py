"""One-way notification sink shared by backup passes and restores."""

import logging
from typing import Callable, Optional


LogSink = Callable[[str], None]


class Notifier:
    """Sends status messages to a logger and an optional ``on_log`` callback."""

    def __init__(self, on_log: Optional[LogSink] = None, logger: Optional[logging.Logger] = None):
        self.on_log = on_log
        self.logger = logger or logging.getLogger(__name__)

    def info(self, message: str) -> None:
        self.logger.info(message)
        self._emit(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)
        self._emit(message)

    def error(self, message: str) -> None:
        self.logger.error(message)
        self._emit(message)

    def _emit(self, message: str) -> None:
        if self.on_log is None:
            return
        try:
            self.on_log(message)
        except Exception as e:
            # Sink errors are logged, never propagated
            self.logger.warning(f"Log callback failed: {e}")
