"""
Pytest configuration and shared fixtures for NetGuardian tests.

This module provides reusable fixtures and configuration for all tests.
"""

from types import SimpleNamespace

import pytest
from unittest.mock import MagicMock, patch


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with every OS call mocked")


@pytest.fixture
def mock_config():
    """Provide a mock configuration dictionary."""
    return {
        "settings": {
            "debug": False,
            "dns_guardian_enabled": True,
            "vpn_monitor_enabled": False,
        },
    }


@pytest.fixture
def make_snapshot():
    """Factory for InterfaceSnapshot objects with sensible physical defaults."""
    from netguardian.models import AdapterKind, InterfaceSnapshot

    def _make(
        name="Ethernet",
        description="Intel(R) Ethernet Connection I219-V",
        is_up=True,
        kind=AdapterKind.ETHERNET,
        speed=1_000_000_000,
        has_gateway=True,
        dns_servers=None,
        ipv4_addresses=None,
    ):
        return InterfaceSnapshot(
            name=name,
            description=description,
            is_up=is_up,
            kind=kind,
            speed=speed,
            has_gateway=has_gateway,
            dns_servers=list(dns_servers or []),
            ipv4_addresses=list(ipv4_addresses or ["192.168.50.20"]),
        )

    return _make


@pytest.fixture
def wmi_host():
    """
    Replace the WMI adapter tables with in-memory rows.

    Use wmi_host.add(...) to describe one adapter and its IP configuration.
    """
    adapters = []
    configurations = []

    standard_cimv2 = MagicMock()
    standard_cimv2.MSFT_NetAdapter.side_effect = lambda: list(adapters)
    cimv2 = MagicMock()
    cimv2.Win32_NetworkAdapterConfiguration.side_effect = lambda **kwargs: list(configurations)

    fake_wmi = MagicMock()
    fake_wmi.WMI.side_effect = lambda namespace=None: standard_cimv2 if namespace else cimv2

    def add(
        name="Ethernet",
        description="Intel(R) Ethernet Connection I219-V",
        if_type=6,
        status=1,
        speed=1_000_000_000,
        dns=("192.168.50.100",),
        gateways=("192.168.50.1",),
        addresses=("192.168.50.20", "fe80::1c2d:3e4f:5a6b:7c8d"),
    ):
        index = len(adapters) + 1
        adapters.append(
            SimpleNamespace(
                Name=name,
                InterfaceDescription=description,
                InterfaceType=if_type,
                InterfaceOperationalStatus=status,
                Speed=speed,
                InterfaceIndex=index,
            )
        )
        configurations.append(
            SimpleNamespace(
                InterfaceIndex=index,
                DNSServerSearchOrder=tuple(dns) if dns else None,
                DefaultIPGateway=tuple(gateways) if gateways else None,
                IPAddress=tuple(addresses),
            )
        )

    with patch("netguardian.network.interfaces.wmi", fake_wmi), patch(
        "netguardian.network.interfaces.pythoncom"
    ):
        yield SimpleNamespace(add=add, wmi=fake_wmi)


@pytest.fixture
def policy():
    from netguardian.models import DnsPolicy

    return DnsPolicy(target_dns="192.168.50.100")


@pytest.fixture
def bus():
    """A StatusBus whose publish calls are recorded."""
    from netguardian.status import StatusBus

    real = StatusBus()
    real.publish = MagicMock(wraps=real.publish)
    return real


@pytest.fixture
def ok_result():
    from netguardian.utils import CommandResult

    return CommandResult(True, "", "", 0)


@pytest.fixture
def as_admin():
    """Pretend the test process is elevated."""
    with patch("netguardian.utils.commands.is_administrator", return_value=True):
        yield


@pytest.fixture
def temp_config_dir(tmp_path):
    """Provide a temporary config directory."""
    config_dir = tmp_path / ".config" / "netguardian"
    config_dir.mkdir(parents=True)
    return config_dir


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration between tests."""
    import logging

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.WARNING)
    yield
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
