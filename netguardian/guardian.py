"""
DNS Guardian for NetGuardian.

Keeps the primary physical interface's resolver on the policy target. A
check runs immediately on start, every CHECK_INTERVAL seconds after that,
and shortly after every adapter configuration change the OS reports.
"""

import copy
import threading

from . import config
from .logging_config import get_logger
from .models import DnsPolicy, GuardianRunState
from .network import (
    AdapterConfigurationListener,
    apply_rules,
    build_strict_rules,
    get_primary_physical_interface,
    register_doh,
    remove_rules,
    set_static_dns,
)
from .scheduler import ReconciliationScheduler
from .status import DNS_GUARDIAN_STATUS_CHANGED, StatusBus

# Get module logger
logger = get_logger(__name__)

# Outcomes of one check_and_restore call
CHECK_SKIPPED = "skipped"
CHECK_NO_INTERFACE = "no-interface"
CHECK_HOLDS = "holds"
CHECK_RESTORED = "restored"
CHECK_SIMULATED = "simulated"
CHECK_FAILED = "failed"


def default_policy():
    return DnsPolicy(
        target_dns=config.TARGET_DNS,
        doh_template=config.DOH_TEMPLATE,
        strict_mode=config.STRICT_MODE,
    )


class DnsGuardian:
    """Detects resolver hijacks on the primary interface and restores the policy."""

    def __init__(
        self,
        policy=None,
        bus=None,
        interval=config.CHECK_INTERVAL,
        settle_delay=config.SETTLE_DELAY,
    ):
        self.policy = policy or default_policy()
        self.bus = bus or StatusBus()
        self.interval = interval
        self.settle_delay = settle_delay

        self._state = GuardianRunState()
        self._state_lock = threading.Lock()
        # Held for the duration of one check; never waited on
        self._check_lock = threading.Lock()
        self._scheduler = None
        self._installed_rules = []

    @property
    def state(self) -> GuardianRunState:
        with self._state_lock:
            return copy.copy(self._state)

    @property
    def is_running(self) -> bool:
        with self._state_lock:
            return self._state.running

    @property
    def is_alive(self) -> bool:
        """False when running but the timer loop has died."""
        scheduler = self._scheduler
        return scheduler is not None and scheduler.is_alive

    def start(self):
        """Start enforcing. No-op when already running."""
        with self._state_lock:
            if self._state.running:
                return
            self._state.running = True

        listener = AdapterConfigurationListener(
            self.check_and_restore, settle_delay=self.settle_delay, name="dns-guardian-events"
        )
        self._scheduler = ReconciliationScheduler(
            "dns-guardian", self.check_and_restore, self.interval, listener=listener
        )
        self._scheduler.start()

        if self.policy.strict_mode:
            self.apply_firewall_rules()

        logger.info(f"DNS Guardian started (target {self.policy.target_dns})")
        self.bus.publish(DNS_GUARDIAN_STATUS_CHANGED, True)

    def stop(self):
        """Stop enforcing and take down strict-mode rules. No-op when stopped."""
        with self._state_lock:
            if not self._state.running:
                return
            self._state.running = False

        if self._scheduler is not None:
            self._scheduler.stop()
            self._scheduler = None

        self.remove_firewall_rules()

        logger.info("DNS Guardian stopped")
        self.bus.publish(DNS_GUARDIAN_STATUS_CHANGED, False)

    def apply_firewall_rules(self):
        """Install the strict-mode rules unless they already are."""
        with self._state_lock:
            if self._state.firewall_rules_applied:
                logger.debug("Strict-mode rules already applied")
                return
            self._state.firewall_rules_applied = True

        rules = build_strict_rules(self.policy.target_dns)
        self._installed_rules = rules
        apply_rules(rules)

    def remove_firewall_rules(self):
        """Remove every installed strict-mode rule by name, if any were applied."""
        with self._state_lock:
            if not self._state.firewall_rules_applied:
                return
            self._state.firewall_rules_applied = False

        rules, self._installed_rules = self._installed_rules, []
        remove_rules(rules)

    def check_and_restore(self, source="manual"):
        """
        Run one reconciliation step.

        Returns immediately if another step is in flight. Never raises; a
        failed step leaves the next trigger free to retry.

        Returns:
            str: one of the CHECK_* outcomes
        """
        if not self._check_lock.acquire(blocking=False):
            logger.debug(f"DNS check from {source} skipped, one is already running")
            return CHECK_SKIPPED

        try:
            logger.debug(f"DNS check triggered by {source}")

            iface = get_primary_physical_interface()
            if iface is None:
                logger.info("No primary physical interface, nothing to enforce")
                return CHECK_NO_INTERFACE

            current = iface.first_ipv4_dns
            target = self.policy.target_dns
            if current == target:
                logger.debug(f"DNS on '{iface.name}' matches policy ({target})")
                return CHECK_HOLDS

            with self._state_lock:
                self._state.last_anomalous_dns = current
            logger.warning(f"DNS hijack on '{iface.name}': found {current}, expected {target}")

            results = [set_static_dns(iface.name, target)]
            if self.policy.doh_template:
                results.append(register_doh(iface.name, target, self.policy.doh_template))

            if any(not r.success and not r.simulated for r in results):
                return CHECK_FAILED
            if any(r.simulated for r in results):
                return CHECK_SIMULATED
            return CHECK_RESTORED

        except Exception as e:
            logger.error(f"DNS check from {source} failed: {e}", exc_info=e)
            return CHECK_FAILED
        finally:
            self._check_lock.release()


# Name used by the rest of the system for the DNS enforcer
DnsPolicyEnforcer = DnsGuardian
