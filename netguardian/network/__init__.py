"""
Network module for NetGuardian.

This module handles all network-related operations including:
- Adapter enumeration and primary physical interface selection
- Resolver restore and DoH registration
- Strict-mode firewall rules
- Adapter configuration change notifications
"""

from .interfaces import (
    list_interfaces,
    parse_interface_query,
    find_interfaces_by_description,
)
from .selection import (
    select_primary_physical,
    get_primary_physical_interface,
)
from .configuration import (
    set_static_dns,
    register_doh,
)
from .firewall import (
    RULE_PREFIX,
    FirewallRule,
    RuleReport,
    build_strict_rules,
    apply_rules,
    remove_rules,
)
from .events import AdapterConfigurationListener

__all__ = [
    "list_interfaces",
    "parse_interface_query",
    "find_interfaces_by_description",
    "select_primary_physical",
    "get_primary_physical_interface",
    "set_static_dns",
    "register_doh",
    "RULE_PREFIX",
    "FirewallRule",
    "RuleReport",
    "build_strict_rules",
    "apply_rules",
    "remove_rules",
    "AdapterConfigurationListener",
]
