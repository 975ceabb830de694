"""
Network interface enumeration for NetGuardian.

Adapters are read in-process from WMI (MSFT_NetAdapter joined with
Win32_NetworkAdapterConfiguration), so a routine check never starts a
child process. When WMI is missing or the query fails, the PowerShell
adapter query is used instead. Snapshots are produced fresh on every call;
adapter sets change across sleep/resume and plug events.
"""

import json

try:
    import pythoncom
    import wmi
except ImportError:
    pythoncom = None
    wmi = None

from .. import config
from ..logging_config import get_logger
from ..models import AdapterKind, InterfaceSnapshot, is_ipv4_literal
from ..utils import run_powershell, render_script
from ..utils.scripts import INTERFACE_QUERY_SCRIPT

# Get module logger
logger = get_logger(__name__)

# IANA ifType values reported by Get-NetAdapter
IFTYPE_ETHERNET = 6
IFTYPE_LOOPBACK = 24
IFTYPE_WIRELESS = 71

# MSFT_NetAdapter.InterfaceOperationalStatus
OPER_STATUS_UP = 1

STANDARD_CIMV2 = "root/StandardCimv2"


def adapter_kind(if_type):
    """Map an IANA ifType number to an AdapterKind."""
    try:
        if_type = int(if_type)
    except (TypeError, ValueError):
        return AdapterKind.VIRTUAL

    if if_type == IFTYPE_ETHERNET:
        return AdapterKind.ETHERNET
    elif if_type == IFTYPE_WIRELESS:
        return AdapterKind.WIRELESS
    elif if_type == IFTYPE_LOOPBACK:
        return AdapterKind.LOOPBACK
    return AdapterKind.VIRTUAL


def _as_list(value):
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v]
    return [str(value)] if value else []


def _gateways(value):
    return [g for g in _as_list(value) if g != "0.0.0.0"]


def parse_interface_query(output):
    """Parse the JSON emitted by the adapter query into snapshots."""
    if not output:
        return []

    data = json.loads(output)
    if isinstance(data, dict):
        # ConvertTo-Json collapses one-element arrays
        data = [data]

    snapshots = []
    for item in data:
        if not isinstance(item, dict) or not item.get("Name"):
            continue
        snapshots.append(
            InterfaceSnapshot(
                name=item["Name"],
                description=item.get("Description") or "",
                is_up=str(item.get("Status", "")).lower() == "up",
                kind=adapter_kind(item.get("InterfaceType")),
                speed=int(item.get("Speed") or 0),
                has_gateway=bool(_gateways(item.get("Gateways"))),
                dns_servers=_as_list(item.get("DnsServers")),
                ipv4_addresses=_as_list(item.get("IPv4")),
            )
        )
    return snapshots


def snapshots_from_wmi(adapters, configurations):
    """
    Join MSFT_NetAdapter rows with their Win32_NetworkAdapterConfiguration.

    Args:
        adapters: MSFT_NetAdapter instances (or objects with the same attributes)
        configurations: Win32_NetworkAdapterConfiguration instances

    Returns:
        list of InterfaceSnapshot, in adapter enumeration order
    """
    by_index = {cfg.InterfaceIndex: cfg for cfg in configurations}

    snapshots = []
    for adapter in adapters:
        if not adapter.Name:
            continue
        cfg = by_index.get(adapter.InterfaceIndex)
        addresses = _as_list(getattr(cfg, "IPAddress", None))
        snapshots.append(
            InterfaceSnapshot(
                name=adapter.Name,
                description=adapter.InterfaceDescription or "",
                is_up=adapter.InterfaceOperationalStatus == OPER_STATUS_UP,
                kind=adapter_kind(adapter.InterfaceType),
                speed=int(adapter.Speed or 0),
                has_gateway=bool(_gateways(getattr(cfg, "DefaultIPGateway", None))),
                dns_servers=_as_list(getattr(cfg, "DNSServerSearchOrder", None)),
                ipv4_addresses=[a for a in addresses if is_ipv4_literal(a)],
            )
        )
    return snapshots


def _query_wmi():
    # COM must be initialized on every thread that talks to WMI
    pythoncom.CoInitialize()
    try:
        adapters = wmi.WMI(namespace=STANDARD_CIMV2).MSFT_NetAdapter()
        configurations = wmi.WMI().Win32_NetworkAdapterConfiguration(IPEnabled=True)
        return snapshots_from_wmi(adapters, configurations)
    finally:
        pythoncom.CoUninitialize()


def _query_powershell():
    result = run_powershell(
        render_script(INTERFACE_QUERY_SCRIPT), timeout=config.INTERFACE_QUERY_TIMEOUT
    )
    if not result.success:
        logger.warning(f"Adapter query failed (exit {result.exit_code}): {result.stderr}")
        return []

    try:
        return parse_interface_query(result.stdout)
    except (ValueError, TypeError) as e:
        logger.warning(f"Could not parse adapter query output: {e}")
        return []


def list_interfaces():
    """Enumerate all adapters. Returns an empty list if every query fails."""
    interfaces = None
    if wmi is not None:
        try:
            interfaces = _query_wmi()
        except Exception as e:
            logger.warning(f"WMI adapter query failed, falling back to PowerShell: {e}")

    if interfaces is None:
        interfaces = _query_powershell()

    logger.debug(f"Found {len(interfaces)} adapters: {[i.name for i in interfaces]}")
    return interfaces


def find_interfaces_by_description(markers, interfaces=None):
    """Names of adapters whose name or description contains one of the markers."""
    if interfaces is None:
        interfaces = list_interfaces()
    markers = [m.lower() for m in markers]
    return [
        iface.name
        for iface in interfaces
        if any(m in iface.description.lower() or m in iface.name.lower() for m in markers)
    ]
