"""
Native OS probes for NetGuardian.

This module provides the cheap, in-process queries (privilege level, process
list, adapter status) that the monitor loops call frequently, so they never
have to spawn a command for them. It serves as the central location for all
native API calls to avoid duplication.
"""

import ctypes
import os
import socket

import psutil

from ..logging_config import get_logger

# Get module logger
logger = get_logger(__name__)

_is_admin = None


def is_administrator():
    """
    Check whether the agent runs with elevated rights.

    Returns:
        bool: True when running as Administrator (Windows) or root (elsewhere).
              The answer is cached for the lifetime of the process.
    """
    global _is_admin
    if _is_admin is not None:
        return _is_admin

    try:
        if hasattr(ctypes, "windll"):
            _is_admin = ctypes.windll.shell32.IsUserAnAdmin() != 0
        else:
            _is_admin = os.geteuid() == 0
    except Exception as e:
        logger.warning(f"Could not determine privilege level, assuming standard user: {e}")
        _is_admin = False

    return _is_admin


def list_process_names():
    """Get the names of all live processes, or an empty list if enumeration fails."""
    names = []
    try:
        for proc in psutil.process_iter(["name"]):
            try:
                name = proc.info["name"]
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
            if name:
                names.append(name)
    except Exception as e:
        logger.warning(f"Process enumeration failed: {e}")
        return []
    return names


def get_interface_stats():
    """Map adapter name -> psutil stats (isup, speed). Empty on failure."""
    try:
        return psutil.net_if_stats()
    except Exception as e:
        logger.debug(f"Interface stats lookup failed: {e}")
        return {}


def get_interface_ipv4(interface_name):
    """Get the IPv4 addresses bound to one adapter."""
    try:
        addrs = psutil.net_if_addrs().get(interface_name, [])
    except Exception as e:
        logger.debug(f"Address lookup for '{interface_name}' failed: {e}")
        return []
    return [addr.address for addr in addrs if addr.family == socket.AF_INET]
