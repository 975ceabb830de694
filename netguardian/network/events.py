"""
Adapter configuration change notifications for NetGuardian.

Subscribes to WMI modification events on Win32_NetworkAdapterConfiguration
and calls back after a short settle delay, so the OS has finished applying
the change before anything re-reads it.
"""

import threading

try:
    import pythoncom
    import wmi
except ImportError:
    pythoncom = None
    wmi = None

from .. import config
from ..logging_config import get_logger, log_crash

# Get module logger
logger = get_logger(__name__)


class AdapterConfigurationListener:
    """Background WMI subscription feeding a reconciliation callback."""

    def __init__(self, on_change, settle_delay=config.SETTLE_DELAY, name="adapter-events"):
        self.on_change = on_change
        self.settle_delay = settle_delay
        self.name = name
        self._stop_event = threading.Event()
        self._ready = threading.Event()
        self._registered = False
        self._thread = None

    @property
    def is_alive(self):
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """
        Register the subscription on a background thread.

        Returns:
            bool: False when notifications are unavailable (no WMI, or the
            subscription was refused); the caller keeps its timer either way.
        """
        if wmi is None:
            logger.warning("WMI is not available; relying on periodic checks only")
            return False

        self._stop_event.clear()
        self._ready.clear()
        self._registered = False
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

        if not self._ready.wait(config.LISTENER_READY_TIMEOUT):
            logger.warning("Adapter change subscription did not register in time")
            return False
        return self._registered

    def stop(self):
        self._stop_event.set()

    def _subscribe(self):
        connection = wmi.WMI()
        return connection.Win32_NetworkAdapterConfiguration.watch_for(
            notification_type="Modification", delay_secs=1
        )

    def _run(self):
        pythoncom.CoInitialize()
        try:
            try:
                watcher = self._subscribe()
            except Exception as e:
                logger.warning(f"Could not subscribe to adapter changes (insufficient privilege?): {e}")
                self._ready.set()
                return

            self._registered = True
            self._ready.set()
            logger.info("Adapter configuration change listener registered")
            self._listen(watcher)
        except Exception as e:
            log_crash("Adapter change listener stopped unexpectedly", e)
        finally:
            pythoncom.CoUninitialize()

    def _listen(self, watcher):
        while not self._stop_event.is_set():
            try:
                watcher(timeout_ms=config.EVENT_POLL_TIMEOUT_MS)
            except wmi.x_wmi_timed_out:
                continue

            logger.debug(f"Adapter configuration changed, settling for {self.settle_delay}s")
            if self._stop_event.wait(self.settle_delay):
                break
            self.on_change("os-event")

        logger.info("Adapter configuration change listener stopped")
