# File-backed target source and result log, plus the poller that watches the target.
from __future__ import annotations

import logging
import threading
from pathlib import Path

from .errors import InvalidArgument

logger = logging.getLogger(__name__)


class FileTargetSource:
    def __init__(self, path):
        self.path = Path(path)

    def read_current_target(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8").strip()
        except UnicodeDecodeError as e:
            raise InvalidArgument(f"{self.path} is not valid UTF-8: {e.reason}") from None


class FileResultSink:
    """Append-only result log, one line per factored target."""

    def __init__(self, path):
        self.path = Path(path)

    def append(self, line: str) -> None:
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(line)
            f.flush()


class TargetPoller:
    """Re-reads the target source every interval_s seconds."""

    def __init__(self, source, coordinator, interval_s: float = 5.0):
        self.source = source
        self.coordinator = coordinator
        self.interval_s = interval_s
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def poll_once(self):
        try:
            return self.coordinator.load_target(self.source.read_current_target())
        except (OSError, InvalidArgument) as e:
            logger.error(f"error reading target: {e}")
            return None

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_s):
            self.poll_once()

    def start(self) -> None:
        self._thread = threading.Thread(target=self._loop, daemon=True, name="target-poller")
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
