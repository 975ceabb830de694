"""
Unit tests for netguardian/guardian.py

Tests the DNS reconciliation step, its mutual exclusion, and the strict-mode
start/stop lifecycle.
"""

import threading

import pytest
from unittest.mock import MagicMock, call, patch

from netguardian.models import DnsPolicy
from netguardian.network import RuleReport
from netguardian.status import DNS_GUARDIAN_STATUS_CHANGED
from netguardian.utils import CommandResult

GUARDIAN = "netguardian.guardian"


@pytest.fixture
def commands():
    """Patch every external effect of a reconciliation step."""
    ok = CommandResult(True, exit_code=0)
    with patch(f"{GUARDIAN}.get_primary_physical_interface") as select, patch(
        f"{GUARDIAN}.set_static_dns", return_value=ok
    ) as set_dns, patch(f"{GUARDIAN}.register_doh", return_value=ok) as doh:
        yield MagicMock(select=select, set_dns=set_dns, doh=doh)


@pytest.mark.unit
class TestCheckAndRestore:
    """Tests for DnsGuardian.check_and_restore."""

    def test_policy_holds_runs_nothing(self, commands, make_snapshot, policy):
        from netguardian.guardian import DnsGuardian

        commands.select.return_value = make_snapshot(dns_servers=["192.168.50.100"])
        guardian = DnsGuardian(policy=policy)

        assert guardian.check_and_restore("timer") == "holds"

        commands.set_dns.assert_not_called()
        commands.doh.assert_not_called()
        assert guardian.state.last_anomalous_dns is None

    def test_restores_hijacked_resolver(self, commands, make_snapshot, policy):
        from netguardian.guardian import DnsGuardian

        commands.select.return_value = make_snapshot(name="Ethernet", dns_servers=["10.0.0.1"])
        guardian = DnsGuardian(policy=policy)

        assert guardian.check_and_restore("os-event") == "restored"

        commands.set_dns.assert_called_once_with("Ethernet", "192.168.50.100")
        assert guardian.state.last_anomalous_dns == "10.0.0.1"
        commands.doh.assert_not_called()

    def test_doh_registered_only_with_template(self, commands, make_snapshot):
        from netguardian.guardian import DnsGuardian

        commands.select.return_value = make_snapshot(name="Wi-Fi", dns_servers=["10.0.0.1"])
        policy = DnsPolicy("192.168.50.100", doh_template="https://dns.example.net/dns-query")
        guardian = DnsGuardian(policy=policy)

        guardian.check_and_restore()

        commands.doh.assert_called_once_with(
            "Wi-Fi", "192.168.50.100", "https://dns.example.net/dns-query"
        )

    def test_no_resolver_counts_as_deviation(self, commands, make_snapshot, policy):
        from netguardian.guardian import DnsGuardian

        commands.select.return_value = make_snapshot(dns_servers=[])
        guardian = DnsGuardian(policy=policy)

        assert guardian.check_and_restore() == "restored"

        commands.set_dns.assert_called_once()
        assert guardian.state.last_anomalous_dns is None

    def test_no_interface(self, commands, policy):
        from netguardian.guardian import DnsGuardian

        commands.select.return_value = None
        guardian = DnsGuardian(policy=policy)

        assert guardian.check_and_restore() == "no-interface"

        commands.set_dns.assert_not_called()
        assert not guardian._check_lock.locked()

    def test_failure_releases_lock(self, commands, make_snapshot, policy):
        from netguardian.guardian import DnsGuardian

        commands.select.side_effect = RuntimeError("adapter query exploded")
        guardian = DnsGuardian(policy=policy)

        assert guardian.check_and_restore() == "failed"
        assert not guardian._check_lock.locked()

        commands.select.side_effect = None
        commands.select.return_value = make_snapshot(dns_servers=["10.0.0.1"])
        guardian.check_and_restore()

        commands.set_dns.assert_called_once()

    def test_simulated_restore_is_reported(self, commands, make_snapshot, policy):
        from netguardian.guardian import DnsGuardian

        commands.select.return_value = make_snapshot(dns_servers=["10.0.0.1"])
        commands.set_dns.return_value = CommandResult(False, simulated=True)
        guardian = DnsGuardian(policy=policy)

        assert guardian.check_and_restore() == "simulated"

    def test_failed_doh_registration_fails_the_check(self, commands, make_snapshot):
        from netguardian.guardian import DnsGuardian

        commands.select.return_value = make_snapshot(dns_servers=["10.0.0.1"])
        commands.doh.return_value = CommandResult(False, stderr="access denied", exit_code=1)
        policy = DnsPolicy("192.168.50.100", doh_template="https://dns.example.net/dns-query")
        guardian = DnsGuardian(policy=policy)

        assert guardian.check_and_restore() == "failed"

    def test_concurrent_checks_are_exclusive(self, commands, make_snapshot, policy):
        from netguardian.guardian import DnsGuardian

        entered = threading.Event()
        release = threading.Event()

        def slow_select():
            entered.set()
            release.wait(5)
            return make_snapshot(dns_servers=["10.0.0.1"])

        commands.select.side_effect = slow_select
        guardian = DnsGuardian(policy=policy)

        timer_check = threading.Thread(target=guardian.check_and_restore, args=("timer",))
        timer_check.start()
        assert entered.wait(5)

        # Returns at once while the timer check is still in flight
        assert guardian.check_and_restore("os-event") == "skipped"
        assert commands.select.call_count == 1
        commands.set_dns.assert_not_called()

        release.set()
        timer_check.join(5)

        assert commands.select.call_count == 1
        commands.set_dns.assert_called_once()


@pytest.fixture
def scheduler_cls():
    with patch(f"{GUARDIAN}.ReconciliationScheduler") as cls, patch(
        f"{GUARDIAN}.AdapterConfigurationListener"
    ):
        yield cls


@pytest.mark.unit
class TestLifecycle:
    """Tests for DnsGuardian.start and stop."""

    def test_start_and_stop_publish_status(self, scheduler_cls, policy, bus):
        from netguardian.guardian import DnsGuardian

        guardian = DnsGuardian(policy=policy, bus=bus)
        guardian.start()
        guardian.start()

        assert guardian.is_running
        scheduler_cls.return_value.start.assert_called_once()

        guardian.stop()
        guardian.stop()

        assert not guardian.is_running
        scheduler_cls.return_value.stop.assert_called_once()
        assert bus.publish.call_args_list == [
            call(DNS_GUARDIAN_STATUS_CHANGED, True),
            call(DNS_GUARDIAN_STATUS_CHANGED, False),
        ]

    def test_stop_when_not_running_is_noop(self, scheduler_cls, policy, bus):
        from netguardian.guardian import DnsGuardian

        guardian = DnsGuardian(policy=policy, bus=bus)
        guardian.stop()

        bus.publish.assert_not_called()

    def test_strict_mode_symmetry(self, scheduler_cls):
        from netguardian.guardian import DnsGuardian

        policy = DnsPolicy("192.168.50.100", strict_mode=True)
        guardian = DnsGuardian(policy=policy)

        with patch(f"{GUARDIAN}.apply_rules", return_value=RuleReport(total=7)) as mock_apply, patch(
            f"{GUARDIAN}.remove_rules", return_value=[]
        ) as mock_remove:
            guardian.start()
            assert guardian.state.firewall_rules_applied is True

            guardian.stop()

        installed = mock_apply.call_args[0][0]
        removed = mock_remove.call_args[0][0]
        assert [r.name for r in removed] == [r.name for r in installed]
        assert guardian.state.firewall_rules_applied is False

    def test_strict_mode_off_installs_nothing(self, scheduler_cls, policy):
        from netguardian.guardian import DnsGuardian

        guardian = DnsGuardian(policy=policy)

        with patch(f"{GUARDIAN}.apply_rules") as mock_apply, patch(
            f"{GUARDIAN}.remove_rules"
        ) as mock_remove:
            guardian.start()
            guardian.stop()

        mock_apply.assert_not_called()
        mock_remove.assert_not_called()

    def test_firewall_apply_is_idempotent(self, policy):
        from netguardian.guardian import DnsGuardian

        guardian = DnsGuardian(policy=policy)

        with patch(f"{GUARDIAN}.apply_rules", return_value=RuleReport(total=7)) as mock_apply:
            guardian.apply_firewall_rules()
            guardian.apply_firewall_rules()

        mock_apply.assert_called_once()

    def test_restore_commands_through_real_runner(self, scheduler_cls, make_snapshot, policy, as_admin):
        """End to end through set_static_dns down to the netsh invocation."""
        from netguardian.guardian import DnsGuardian
        from netguardian.utils import CommandResult

        guardian = DnsGuardian(policy=policy)
        with patch(
            f"{GUARDIAN}.get_primary_physical_interface",
            return_value=make_snapshot(name="Ethernet", dns_servers=["10.0.0.1"]),
        ), patch(
            "netguardian.utils.commands.run_command", return_value=CommandResult(True, exit_code=0)
        ) as mock_run:
            guardian.check_and_restore()

        command, args = mock_run.call_args[0]
        assert command == "netsh"
        assert "name=Ethernet" in args
        assert "192.168.50.100" in args
        assert "validate=no" in args


@pytest.mark.unit
class TestUnpatchedCheck:
    """check_and_restore with only the OS boundary replaced."""

    def test_policy_holds_spawns_no_process(self, wmi_host, policy, as_admin):
        from netguardian.guardian import DnsGuardian

        wmi_host.add(name="Ethernet", dns=("192.168.50.100",))
        wmi_host.add(name="Wi-Fi", description="Intel(R) Wi-Fi 6", if_type=71, speed=100, dns=("10.0.0.1",))
        guardian = DnsGuardian(policy=policy)

        with patch("subprocess.Popen") as mock_popen:
            outcome = guardian.check_and_restore("timer")

        assert outcome == "holds"
        mock_popen.assert_not_called()

    def test_hijack_spawns_only_netsh(self, wmi_host, policy, as_admin):
        from netguardian.guardian import DnsGuardian

        wmi_host.add(name="Ethernet", dns=("10.0.0.1",))
        guardian = DnsGuardian(policy=policy)

        with patch("subprocess.Popen") as mock_popen:
            mock_popen.return_value.communicate.return_value = ("Ok.", "")
            mock_popen.return_value.returncode = 0
            outcome = guardian.check_and_restore("timer")

        assert outcome == "restored"
        assert [c[0][0][0] for c in mock_popen.call_args_list] == ["netsh"]


@pytest.mark.unit
def test_policy_rejects_non_ipv4():
    with pytest.raises(ValueError):
        DnsPolicy("dns.example.net")
