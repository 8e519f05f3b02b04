"""
Fixed-interval polling used by clients to refresh nearby users and messages.

There is no backoff and no change detection: the callback runs on every tick
until the poller is stopped.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

NEARBY_POLL_SECONDS = 10.0
MESSAGE_POLL_SECONDS = 2.0


class Poller:
    """Runs ``callback`` now and then every ``interval`` seconds on a thread."""

    def __init__(self, interval: float, callback: Callable[[], None], name: str = "poller"):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.callback = callback
        self.name = name
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "Poller":
        if self.running:
            return self
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        return self

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.callback()
            except Exception:
                # Keep polling; the next tick may succeed.
                logger.exception("[%s] poll failed", self.name)
            self._stop.wait(self.interval)

    def __enter__(self) -> "Poller":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()
