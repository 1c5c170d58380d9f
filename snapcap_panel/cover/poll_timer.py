"""
One-shot deferred status poll.
"""

import logging
import threading
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class PollTimer:
    """
    Single-shot timer that never has more than one poll pending.

    schedule() cancels the pending poll before arming a new one.
    """

    def __init__(self, interval_ms: int = 1000):
        """
        Args:
            interval_ms: Delay between schedule() and the callback.
        """
        self.interval_ms = interval_ms
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None and self._timer.is_alive()

    def schedule(self, callback: Callable[[], None]) -> None:
        """Cancel any pending poll and run callback after interval_ms."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()

            timer = threading.Timer(self.interval_ms / 1000.0, self._fire, args=(callback,))
            timer.daemon = True
            self._timer = timer
            timer.start()

        logger.debug(f"Status poll scheduled in {self.interval_ms} ms")

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _fire(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if self._timer is threading.current_thread():
                self._timer = None

        try:
            callback()
        except Exception as e:
            logger.error(f"Error in status poll: {e}", exc_info=True)
