"""
Configuration management for NetGuardian.

This module holds the compiled-in policy constants and handles loading,
validation, and saving of the small persisted settings file.
"""

import copy
import logging
import os
from pathlib import Path

import toml

# --- App Constants ---
APP_NAME = "netguardian"
APP_DIR = Path(os.environ.get("LOCALAPPDATA", str(Path.home() / ".local" / "share"))) / "NetGuardian"
LOG_DIR = APP_DIR / "logs"
LOG_FILE = LOG_DIR / "netguardian.log"
CRASH_LOG_FILE = LOG_DIR / "crash.log"
LOG_MAX_BYTES = 2 * 1024 * 1024
LOG_BACKUP_COUNT = 1

# --- Logging Constants ---
LOG_FORMAT = "%(asctime)s.%(msecs)03d - %(levelname)s - %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# --- DNS Policy Constants ---
TARGET_DNS = "192.168.50.100"
DOH_TEMPLATE = None  # e.g. "https://dns.example.net/dns-query"
STRICT_MODE = False

# Resolvers commonly used as DoH fallbacks by browsers and the OS
PUBLIC_RESOLVERS = [
    "1.1.1.1",
    "1.0.0.1",
    "8.8.8.8",
    "8.8.4.4",
    "9.9.9.9",
    "149.112.112.112",
    "208.67.222.222",
    "208.67.220.220",
    "94.140.14.14",
    "94.140.15.15",
    "76.76.2.0",
    "185.228.168.9",
]

# --- Scheduling Constants (seconds) ---
CHECK_INTERVAL = 300
SETTLE_DELAY = 2.0
EVENT_POLL_TIMEOUT_MS = 1000
LISTENER_READY_TIMEOUT = 10

# --- Command Constants (seconds) ---
DEFAULT_COMMAND_TIMEOUT = 30
SCRIPT_TIMEOUT = 45
INTERFACE_QUERY_TIMEOUT = 20
POWERSHELL = "powershell.exe"

# Adapter descriptions that never count as the physical uplink
VIRTUAL_ADAPTER_MARKERS = [
    "virtual",
    "vmware",
    "virtualbox",
    "hyper-v",
    "docker",
    "fortinet",
    "forti",
]

# --- VPN Client Constants ---
VPN_PROCESS_SUBSTRING = "forti"
VPN_PROCESS_PREFIX = "fc"
VPN_ADAPTER_MARKERS = ["fortinet", "forti"]
VPN_SERVICE_NAME = "FA_Scheduler"
VPN_CLIENT_DIR = r"C:\Program Files\Fortinet\FortiClient"
VPN_CLIENT_EXE = "FortiClient.exe"
VPN_TRASH_LOG = APP_DIR / "forti_trash.log"
VPN_TICK_INTERVAL = 0.5
VPN_SETTLE_DELAY = 1.5
CONNECTIVITY_RESAMPLE_TICKS = 10

# Processes stopped by the "work off" sequence
WORK_OFF_PROCESSES = ["LM Studio", "Docker Desktop"]

DEFAULT_DEBUG = False

# Default configuration for the application
DEFAULT_CONFIG = {
    "settings": {
        "debug": DEFAULT_DEBUG,
        "dns_guardian_enabled": False,
        "vpn_monitor_enabled": True,
    },
}


def get_config_path():
    """Gets the path to the configuration file."""
    return Path.home() / ".config" / "netguardian" / "config.toml"


def _merge_defaults(loaded):
    """Fill in any settings missing from a partial config file."""
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for section, values in loaded.items():
        if isinstance(values, dict):
            merged.setdefault(section, {}).update(values)
        else:
            merged[section] = values
    return merged


def load_config():
    """Loads the configuration from the TOML file."""
    # stdlib logger so loading config never initializes the app's handlers
    logger = logging.getLogger(__name__)

    path = get_config_path()
    if not path.exists():
        # Create a default config if one doesn't exist
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            toml.dump(DEFAULT_CONFIG, f)
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(path, "r") as f:
            loaded = toml.load(f)
    except toml.TomlDecodeError as e:
        logger.warning(f"Config file {path} is corrupt ({e}), using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    config = _merge_defaults(loaded)
    logger.debug(f"Loaded settings: {config['settings']}")
    return config


def save_config(config):
    """Writes the configuration, replacing the old file in one step."""
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(".toml.tmp")
    with open(tmp_path, "w") as f:
        toml.dump(config, f)
    os.replace(tmp_path, path)


if __name__ == "__main__":
    config = load_config()
    import json

    print(json.dumps(config, indent=4))
