"""StatusBus: state-change notifications from the enforcers.

Topics and their callback arguments:
    dns_guardian_status_changed  (running: bool)
    vpn_status_changed           (active: bool)
    vpn_connection_changed       (connected: bool, ip: str | None)

Callbacks run synchronously on the publishing thread but outside the
subscriber lock, and a failing subscriber never affects the others.
"""

import threading
from collections import defaultdict
from typing import Callable, Dict, List

from .logging_config import get_logger

logger = get_logger(__name__)

DNS_GUARDIAN_STATUS_CHANGED = "dns_guardian_status_changed"
VPN_STATUS_CHANGED = "vpn_status_changed"
VPN_CONNECTION_CHANGED = "vpn_connection_changed"

TOPICS = (DNS_GUARDIAN_STATUS_CHANGED, VPN_STATUS_CHANGED, VPN_CONNECTION_CHANGED)


class StatusBus:
    """Observer registry for enforcer status changes."""

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, topic: str, callback: Callable) -> None:
        if topic not in TOPICS:
            raise ValueError(f"Unknown status topic: {topic}")
        with self._lock:
            if callback not in self._subscribers[topic]:
                self._subscribers[topic].append(callback)

    def unsubscribe(self, topic: str, callback: Callable) -> None:
        with self._lock:
            if callback in self._subscribers.get(topic, []):
                self._subscribers[topic].remove(callback)

    def publish(self, topic: str, *args) -> None:
        with self._lock:
            callbacks = list(self._subscribers.get(topic, []))

        for callback in callbacks:
            try:
                callback(*args)
            except Exception as e:
                logger.error(f"Status subscriber {callback!r} failed on {topic}: {e}", exc_info=e)

    def on_dns_guardian_status_changed(self, callback: Callable[[bool], None]) -> None:
        self.subscribe(DNS_GUARDIAN_STATUS_CHANGED, callback)

    def on_vpn_status_changed(self, callback: Callable[[bool], None]) -> None:
        self.subscribe(VPN_STATUS_CHANGED, callback)

    def on_vpn_connection_changed(self, callback: Callable) -> None:
        self.subscribe(VPN_CONNECTION_CHANGED, callback)
