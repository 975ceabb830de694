import signal
import sys
import threading

from . import config
from .external import VpnOrchestrator
from .guardian import DnsGuardian
from .logging_config import get_logger, log, log_crash, setup_logging
from .status import StatusBus
from .utils import is_administrator

# Get module logger
logger = get_logger(__name__)


def install_exception_hooks():
    """Turn uncaught exceptions into crash reports instead of silent thread deaths."""

    def excepthook(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        log_crash("Unhandled exception", exc_value)

    def thread_excepthook(args):
        if args.exc_value is None:
            return
        name = args.thread.name if args.thread else "unknown"
        log_crash(f"Unhandled exception in thread {name}", args.exc_value)
        log("Thread exception recorded, agent continues")

    sys.excepthook = excepthook
    threading.excepthook = thread_excepthook


class GuardianAgent:
    """Hosts the DNS Guardian and the VPN monitor for the life of the process."""

    def __init__(self, cfg=None):
        self.config = cfg if cfg is not None else config.load_config()
        self.bus = StatusBus()
        self.dns_guardian = DnsGuardian(bus=self.bus)
        self.vpn = VpnOrchestrator(bus=self.bus)
        self._shutdown_done = False
        self._shutdown_lock = threading.Lock()
        self._stop_event = threading.Event()

        self.bus.on_dns_guardian_status_changed(
            lambda running: logger.info(f"DNS Guardian {'running' if running else 'stopped'}")
        )
        self.bus.on_vpn_status_changed(
            lambda active: logger.info(f"VPN client {'active' if active else 'inactive'}")
        )
        self.bus.on_vpn_connection_changed(
            lambda connected, ip: logger.info(
                f"VPN {'connected as ' + ip if connected else 'disconnected'}"
            )
        )

    def start(self):
        """Start each component the persisted settings enable."""
        settings = self.config.get("settings", {})

        if not is_administrator():
            logger.warning("Not running elevated; enforcement commands will be simulated")

        if settings.get("dns_guardian_enabled", False):
            logger.info("DNS Guardian is enabled, starting service...")
            self.dns_guardian.start()
        else:
            logger.info("DNS Guardian is disabled in config.")

        if settings.get("vpn_monitor_enabled", True):
            self.vpn.start()
        else:
            logger.info("VPN monitor is disabled in config.")

    def health(self):
        """Liveness of each component. A dead loop is degraded, not fatal."""
        return {
            "dns_guardian_running": self.dns_guardian.is_running,
            "dns_guardian_alive": self.dns_guardian.is_alive,
            "vpn_monitor_alive": self.vpn.is_alive,
        }

    def run(self):
        """Block until request_stop() is called."""
        # Short waits keep the main thread responsive to Ctrl+C on Windows
        while not self._stop_event.wait(1.0):
            pass

    def request_stop(self, *_):
        self._stop_event.set()

    def shutdown(self):
        """Stop everything exactly once; one failing component never blocks the rest."""
        with self._shutdown_lock:
            if self._shutdown_done:
                return
            self._shutdown_done = True

        logger.info("Shutdown sequence initiated.")

        try:
            self.dns_guardian.stop()
            logger.info("DNS Guardian stopped.")
        except Exception as e:
            log("DNS Guardian stop error", e)

        try:
            self.vpn.close()
            logger.info("VPN monitor disposed.")
        except Exception as e:
            log("VPN monitor disposal error", e)

        logger.info("Shutdown completed.")


def main(debug=False):
    """Main function to run the agent."""
    cfg = config.load_config()
    # Module imports already set logging up at INFO; apply the requested level
    setup_logging(debug or cfg.get("settings", {}).get("debug", False), force_reinit=True)
    install_exception_hooks()

    logger.info("=== NetGuardian session started ===")
    agent = GuardianAgent(cfg)

    signal.signal(signal.SIGINT, agent.request_stop)
    signal.signal(signal.SIGTERM, agent.request_stop)

    try:
        agent.start()
        agent.run()
    except Exception as e:
        log_crash("Bootstrap failed", e)
    finally:
        agent.shutdown()


if __name__ == "__main__":
    main()
