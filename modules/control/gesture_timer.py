"""
One-shot timeout timer for an expected-gesture cycle.
"""

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class GestureTimer:
    """Fires ``callback`` once after ``timeout_s`` seconds unless cancelled.

    Runs on its own daemon thread, so the callback may race with prediction
    on the sampling thread. Callers must guard their own state.
    """

    def __init__(self, timeout_s: float, callback: Callable[[], None]):
        self._timeout_s = timeout_s
        self._callback = callback
        self._timer = None
        self._fired = threading.Event()

    def _run(self):
        self._fired.set()
        self._callback()

    def start(self):
        if self._timer is not None:
            return
        self._timer = threading.Timer(self._timeout_s, self._run)
        self._timer.daemon = True
        self._timer.start()
        logger.debug("Gesture timer armed (%.2fs)", self._timeout_s)

    def cancel(self):
        if self._timer is not None:
            self._timer.cancel()

    @property
    def timeout_s(self) -> float:
        return self._timeout_s

    @property
    def is_active(self) -> bool:
        return (self._timer is not None
                and self._timer.is_alive()
                and not self._fired.is_set())
