"""
Reconciliation scheduling for NetGuardian.

Merges a fixed-interval timer and an optional OS change listener into one
callback path. The callback itself is responsible for refusing overlapping
runs; the scheduler only decides when to call it.
"""

import threading
from typing import Callable, Optional

from .logging_config import get_logger, log_crash

logger = get_logger(__name__)


class ReconciliationScheduler:
    """Timer loop plus event listener driving a single reconciliation callback."""

    def __init__(
        self,
        name: str,
        callback: Callable[[str], None],
        interval: float,
        listener=None,
    ):
        self.name = name
        self.callback = callback
        self.interval = interval
        self.listener = listener
        self.listener_registered = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_alive:
            return

        self._stop_event.clear()
        if self.listener is not None:
            self.listener_registered = self.listener.start()
            if not self.listener_registered:
                logger.warning(f"[{self.name}] No change notifications; timer is the only trigger")

        self._thread = threading.Thread(target=self._loop, name=f"{self.name}-timer", daemon=True)
        self._thread.start()
        logger.info(f"[{self.name}] Scheduler started (interval {self.interval}s)")

    def stop(self) -> None:
        """Cancel the loop; a callback already running finishes on its own."""
        self._stop_event.set()
        if self.listener is not None:
            self.listener.stop()
        logger.info(f"[{self.name}] Scheduler stopped")

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _loop(self) -> None:
        try:
            # First check runs immediately, not after the first interval
            while not self._stop_event.is_set():
                self.callback("timer")
                if self._stop_event.wait(self.interval):
                    break
        except Exception as e:
            log_crash(f"[{self.name}] Reconciliation loop died", e)
            return
        logger.debug(f"[{self.name}] Timer loop exited")
