"""
External integrations for NetGuardian.

This module handles the programs NetGuardian drives but does not own:
- The FortiClient VPN client (detection, toggling, monitoring)
- Work tooling stopped by the "work off" sequence
"""

from .vpn import VpnOrchestrator, is_vpn_process, any_vpn_process
from .workstation import switch_to_work_off

__all__ = [
    "VpnOrchestrator",
    "is_vpn_process",
    "any_vpn_process",
    "switch_to_work_off",
]
