"""
Utility functions for NetGuardian.

This module provides command execution, native OS probes and script
templating used throughout the application.
"""

from .commands import (
    CommandResult,
    run_command,
    run_powershell,
    run_privileged,
    run_privileged_powershell,
    encode_powershell,
)
from .native import (
    is_administrator,
    list_process_names,
    get_interface_stats,
    get_interface_ipv4,
)
from .scripts import ScriptTemplate, ps_quote, render_script

__all__ = [
    "CommandResult",
    "run_command",
    "run_powershell",
    "run_privileged",
    "run_privileged_powershell",
    "encode_powershell",
    "is_administrator",
    "list_process_names",
    "get_interface_stats",
    "get_interface_ipv4",
    "ScriptTemplate",
    "ps_quote",
    "render_script",
]
