"""
Data model shared by the NetGuardian enforcers.
"""

import ipaddress
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class AdapterKind(Enum):
    ETHERNET = "ethernet"
    WIRELESS = "wireless"
    VIRTUAL = "virtual"
    LOOPBACK = "loopback"


def is_ipv4_literal(value) -> bool:
    try:
        ipaddress.IPv4Address(str(value))
    except ValueError:
        return False
    return True


@dataclass(frozen=True)
class DnsPolicy:
    """Desired resolver posture. Fixed for the lifetime of an enforcer."""

    target_dns: str
    doh_template: Optional[str] = None
    strict_mode: bool = False

    def __post_init__(self):
        if not is_ipv4_literal(self.target_dns):
            raise ValueError(f"target_dns must be an IPv4 address, got {self.target_dns!r}")


@dataclass(frozen=True)
class InterfaceSnapshot:
    """One network adapter as seen by a single check."""

    name: str
    description: str
    is_up: bool
    kind: AdapterKind
    speed: int = 0
    has_gateway: bool = False
    dns_servers: List[str] = field(default_factory=list)
    ipv4_addresses: List[str] = field(default_factory=list)

    @property
    def first_ipv4_dns(self) -> Optional[str]:
        for server in self.dns_servers:
            if is_ipv4_literal(server):
                return server
        return None


@dataclass
class GuardianRunState:
    running: bool = False
    last_anomalous_dns: Optional[str] = None
    firewall_rules_applied: bool = False


@dataclass
class VpnRunState:
    process_active: bool = False
    link_up: bool = False
    connected: bool = False
    current_vpn_ip: Optional[str] = None
