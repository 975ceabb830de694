"""
VPN client orchestration for NetGuardian.

This module detects whether the FortiClient VPN client is running, toggles
it on and off with generated PowerShell scripts, and monitors the client's
virtual adapter for link and IP-level connectivity.
"""

import copy
import ipaddress
import threading
import time

from .. import config
from ..logging_config import get_logger, log_crash
from ..models import VpnRunState
from ..network.interfaces import find_interfaces_by_description
from ..status import VPN_CONNECTION_CHANGED, VPN_STATUS_CHANGED, StatusBus
from ..utils import (
    get_interface_ipv4,
    get_interface_stats,
    is_administrator,
    list_process_names,
    render_script,
    run_powershell,
)
from ..utils.scripts import VPN_GUI_LAUNCH_SCRIPT, VPN_SHUTDOWN_SCRIPT, VPN_STARTUP_SCRIPT

# Get module logger
logger = get_logger(__name__)


def is_vpn_process(name):
    """Whether a process name belongs to the VPN client."""
    lowered = (name or "").lower()
    return config.VPN_PROCESS_SUBSTRING in lowered or lowered.startswith(config.VPN_PROCESS_PREFIX)


def any_vpn_process(names):
    return any(is_vpn_process(name) for name in names)


def is_vpn_adapter(name, known_names=()):
    """Whether an adapter name is the VPN client's virtual adapter."""
    if name in known_names:
        return True
    lowered = name.lower()
    return any(marker in lowered for marker in config.VPN_ADAPTER_MARKERS)


def is_routable_ipv4(address):
    try:
        ip = ipaddress.IPv4Address(address)
    except ValueError:
        return False
    return not (ip.is_link_local or ip.is_loopback or ip.is_unspecified or ip.is_multicast)


def _script_params():
    return {
        "client_dir": config.VPN_CLIENT_DIR,
        "client_exe": config.VPN_CLIENT_EXE,
        "trash_log": str(config.VPN_TRASH_LOG),
    }


def startup_script():
    return render_script(VPN_STARTUP_SCRIPT, service=config.VPN_SERVICE_NAME, **_script_params())


def shutdown_script():
    return render_script(VPN_SHUTDOWN_SCRIPT, service=config.VPN_SERVICE_NAME)


def gui_launch_script():
    return render_script(VPN_GUI_LAUNCH_SCRIPT, **_script_params())


class VpnOrchestrator:
    """Toggles the VPN client and publishes its process, link and connectivity state."""

    def __init__(
        self,
        bus=None,
        tick_interval=config.VPN_TICK_INTERVAL,
        settle_delay=config.VPN_SETTLE_DELAY,
    ):
        self.bus = bus or StatusBus()
        self.tick_interval = tick_interval
        self.settle_delay = settle_delay

        self._state = VpnRunState()
        self._state_lock = threading.Lock()
        # Single toggle slot; the monitor skips its tick while it is taken
        self._toggle_lock = threading.Lock()
        self._ticks_since_resample = 0
        self._adapter_names = []
        self._stop_event = threading.Event()
        self._thread = None

    # --- Probes ---

    @property
    def is_active(self):
        """Whether a VPN client process is running right now."""
        return any_vpn_process(list_process_names())

    def refresh_adapter_names(self):
        """Resolve the VPN adapter's connection name from adapter descriptions."""
        try:
            self._adapter_names = find_interfaces_by_description(config.VPN_ADAPTER_MARKERS)
        except Exception as e:
            logger.debug(f"VPN adapter lookup failed: {e}")
        return self._adapter_names

    def _vpn_adapters(self):
        stats = get_interface_stats()
        return {
            name: stat for name, stat in stats.items() if is_vpn_adapter(name, self._adapter_names)
        }

    def link_up(self):
        """Whether the VPN virtual adapter is operationally up."""
        return any(stat.isup for stat in self._vpn_adapters().values())

    def vpn_ip(self):
        """Routable IPv4 address held by an up VPN adapter, if any."""
        for name, stat in self._vpn_adapters().items():
            if not stat.isup:
                continue
            for address in get_interface_ipv4(name):
                if is_routable_ipv4(address):
                    return address
        return None

    @property
    def state(self):
        with self._state_lock:
            return copy.copy(self._state)

    @property
    def is_toggling(self):
        return self._toggle_lock.locked()

    @property
    def is_alive(self):
        return self._thread is not None and self._thread.is_alive()

    # --- Lifecycle ---

    def start(self):
        """Sample the current state and start the monitor loop."""
        if self.is_alive:
            return

        self.refresh_adapter_names()
        with self._state_lock:
            self._state.process_active = self.is_active
            self._state.link_up = self.link_up()

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._monitor_loop, name="vpn-monitor", daemon=True)
        self._thread.start()
        logger.info("VPN monitor started")

    def stop(self):
        self._stop_event.set()
        logger.info("VPN monitor stopped")

    close = stop

    # --- Toggle ---

    def toggle(self):
        """
        Start the client if it is stopped, stop it if it is running.

        Returns:
            bool: False if another toggle was already in flight.
        """
        if not self._toggle_lock.acquire(blocking=False):
            logger.info("VPN toggle already in progress, ignoring request")
            return False
        try:
            self._run_toggle()
        finally:
            self._toggle_lock.release()
        return True

    def toggle_async(self):
        """
        Toggle on a worker thread.

        Returns:
            The worker Thread, or None if another toggle was already in flight.
        """
        if not self._toggle_lock.acquire(blocking=False):
            logger.info("VPN toggle already in progress, ignoring request")
            return None

        def worker():
            try:
                self._run_toggle()
            finally:
                self._toggle_lock.release()

        thread = threading.Thread(target=worker, name="vpn-toggle", daemon=True)
        thread.start()
        return thread

    def _run_toggle(self):
        active = self.is_active
        action = "SHUTDOWN" if active else "STARTUP"
        logger.info(f"VPN {action} sequence initiated")
        elevated = is_administrator()
        if not elevated:
            logger.warning(
                f"Not elevated: the VPN {action} script cannot reconfigure service "
                f"{config.VPN_SERVICE_NAME} (sc.exe needs administrator rights)"
            )

        try:
            script = shutdown_script() if active else startup_script()
            result = run_powershell(script)
            if not result.success:
                reason = "" if elevated else ", likely because the agent is not elevated"
                logger.warning(f"VPN {action} script reported failure (exit {result.exit_code}{reason})")

            time.sleep(self.settle_delay)

            self.refresh_adapter_names()
            process_active = self.is_active
            link_up = self.link_up()
            with self._state_lock:
                self._state.process_active = process_active
                self._state.link_up = link_up
            logger.info(f"VPN {action} finished, client {'running' if process_active else 'stopped'}")
            self.bus.publish(VPN_STATUS_CHANGED, process_active)
        except Exception as e:
            logger.error(f"Critical failure during VPN {action}: {e}", exc_info=e)

    # --- Monitor ---

    def _monitor_loop(self):
        try:
            while not self._stop_event.wait(self.tick_interval):
                self.tick()
        except Exception as e:
            log_crash("VPN monitor loop died", e)

    def tick(self):
        """One monitor iteration. Skipped entirely while a toggle is in flight."""
        if self.is_toggling:
            return

        process_active = self.is_active
        link_up = self.link_up()

        sampled_ip = None
        resample = False
        if process_active:
            self._ticks_since_resample += 1
            if self._ticks_since_resample >= config.CONNECTIVITY_RESAMPLE_TICKS:
                self._ticks_since_resample = 0
                resample = True
                if not self._adapter_names:
                    self.refresh_adapter_names()
                sampled_ip = self.vpn_ip()
        else:
            self._ticks_since_resample = 0

        notifications = []
        wake_gui = False
        with self._state_lock:
            state = self._state
            if process_active != state.process_active:
                state.process_active = process_active
                notifications.append((VPN_STATUS_CHANGED, process_active))

            if link_up and not state.link_up:
                wake_gui = True
            state.link_up = link_up

            if not process_active:
                was_connected = state.connected
                state.connected = False
                state.current_vpn_ip = None
                if was_connected:
                    notifications.append((VPN_CONNECTION_CHANGED, False, None))
            elif resample:
                connected = sampled_ip is not None
                changed = connected != state.connected or sampled_ip != state.current_vpn_ip
                state.connected = connected
                state.current_vpn_ip = sampled_ip
                if changed:
                    notifications.append((VPN_CONNECTION_CHANGED, connected, sampled_ip))

        for topic, *args in notifications:
            logger.info(f"VPN {topic}: {args}")
            self.bus.publish(topic, *args)

        if wake_gui:
            logger.info("VPN tunnel established, bringing client window to front")
            threading.Thread(target=self._wake_gui, name="vpn-gui-wake", daemon=True).start()

    def _wake_gui(self):
        result = run_powershell(gui_launch_script())
        if not result.success:
            logger.debug(f"VPN client window launch failed (exit {result.exit_code})")
