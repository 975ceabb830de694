"""
Network configuration functions for NetGuardian.

This module issues the commands that put an interface's resolver back to
the policy target and register the encrypted-resolver template for it.
"""

from ..logging_config import get_logger
from ..utils import render_script, run_privileged, run_privileged_powershell
from ..utils.scripts import DOH_REGISTRATION_SCRIPT

# Get module logger
logger = get_logger(__name__)


def set_static_dns(interface_name, dns_server):
    """Sets a single static resolver on an interface, skipping validation."""
    logger.info(f"Setting DNS server for '{interface_name}' to {dns_server}")

    # validate=no avoids a resolver round trip before the change applies
    cmd = [
        "interface",
        "ipv4",
        "set",
        "dnsservers",
        f"name={interface_name}",
        "static",
        dns_server,
        "primary",
        "validate=no",
    ]
    result = run_privileged("netsh", cmd)
    if result.success:
        logger.info(f"DNS server for '{interface_name}' restored to {dns_server}")
    elif not result.simulated:
        logger.error(
            f"Failed to set DNS server for '{interface_name}' "
            f"(exit {result.exit_code}): {result.stderr or result.stdout}"
        )
    return result


def register_doh(interface_name, dns_server, doh_template):
    """Registers or updates the DoH template for a resolver and re-applies it."""
    logger.info(f"Registering DoH template for {dns_server} on '{interface_name}'")
    script = render_script(
        DOH_REGISTRATION_SCRIPT,
        target_dns=dns_server,
        doh_template=doh_template,
        interface_name=interface_name,
    )
    result = run_privileged_powershell(
        script, description=f"DoH registration for {dns_server} on '{interface_name}'"
    )
    if not result.success and not result.simulated:
        logger.error(f"DoH registration failed (exit {result.exit_code}): {result.stderr}")
    return result
