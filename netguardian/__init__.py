"""
NetGuardian - DNS and VPN policy enforcement agent for Windows.

Watches the host's active network configuration and the FortiClient VPN
client, and restores the desired DNS and VPN posture when it drifts.
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Make key components available at package level
from . import config, watcher, logging_config

__all__ = ["config", "watcher", "logging_config"]
