"""
Primary physical interface selection.

Picks the single adapter DNS policy is checked against: up, physical,
gateway-bearing, and the fastest of those.
"""

from .. import config
from ..logging_config import get_logger
from ..models import AdapterKind
from .interfaces import list_interfaces

logger = get_logger(__name__)

PHYSICAL_KINDS = (AdapterKind.ETHERNET, AdapterKind.WIRELESS)


def is_physical_candidate(iface, exclude=None):
    """Whether an adapter can be the physical uplink."""
    if exclude is None:
        exclude = config.VIRTUAL_ADAPTER_MARKERS

    if not iface.is_up or iface.kind not in PHYSICAL_KINDS or not iface.has_gateway:
        return False

    description = iface.description.lower()
    return not any(marker.lower() in description for marker in exclude)


def select_primary_physical(interfaces, exclude=None):
    """
    Select the primary physical interface.

    Args:
        interfaces: Iterable of InterfaceSnapshot
        exclude: Description substrings that mark virtual/VPN adapters

    Returns:
        The fastest qualifying InterfaceSnapshot, or None. Equal speeds keep
        enumeration order.
    """
    candidates = [iface for iface in interfaces if is_physical_candidate(iface, exclude)]
    if not candidates:
        return None

    candidates.sort(key=lambda iface: iface.speed, reverse=True)
    return candidates[0]


def get_primary_physical_interface():
    """Enumerate adapters now and select the primary physical one."""
    selected = select_primary_physical(list_interfaces())
    if selected:
        logger.debug(f"Primary physical interface: {selected.name} ({selected.description})")
    else:
        logger.debug("No primary physical interface found")
    return selected
