"""
Unit tests for netguardian/network/firewall.py

Tests strict-mode rule construction and best-effort application.
"""

import pytest
from unittest.mock import patch

from netguardian.utils import CommandResult


@pytest.mark.unit
class TestBuildStrictRules:
    """Tests for build_strict_rules."""

    def test_rule_set(self):
        from netguardian.network.firewall import build_strict_rules

        rules = build_strict_rules("192.168.50.100", public_resolvers=["1.1.1.1", "8.8.8.8"])
        by_name = {rule.name: rule for rule in rules}

        allow_udp = by_name["NetGuardian_DNS_Allow_Target_UDP"]
        assert allow_udp.action == "allow"
        assert allow_udp.remote_port == 53
        assert allow_udp.remote_ip == "192.168.50.100"
        assert by_name["NetGuardian_DNS_Allow_Target_TCP"].protocol == "TCP"

        block_udp = by_name["NetGuardian_DNS_Block_Other_UDP"]
        assert block_udp.action == "block"
        assert "192.168.50.100" not in block_udp.remote_ip.split(",")

        dot = by_name["NetGuardian_DNS_Block_DoT"]
        assert dot.remote_port == 853
        assert dot.remote_ip is None

        assert by_name["NetGuardian_DNS_Block_DoH_1_1_1_1"].remote_port == 443
        assert by_name["NetGuardian_DNS_Block_DoH_8_8_8_8"].remote_ip == "8.8.8.8"
        assert len(rules) == 7

    def test_target_never_blocked_for_doh(self):
        from netguardian.network.firewall import build_strict_rules

        rules = build_strict_rules("1.1.1.1", public_resolvers=["1.1.1.1", "9.9.9.9"])

        assert not any(rule.remote_ip == "1.1.1.1" and rule.action == "block" for rule in rules)

    def test_complement_ranges(self):
        from netguardian.network.firewall import complement_ranges

        assert complement_ranges("192.168.50.100") == (
            "0.0.0.0-192.168.50.99,192.168.50.101-255.255.255.255"
        )
        assert complement_ranges("0.0.0.0") == "0.0.0.1-255.255.255.255"

    def test_netsh_arguments(self):
        from netguardian.network.firewall import FirewallRule

        rule = FirewallRule("NetGuardian_DNS_Allow_Target_UDP", "allow", "UDP", 53, "192.168.50.100")

        assert rule.add_args() == [
            "advfirewall", "firewall", "add", "rule",
            "name=NetGuardian_DNS_Allow_Target_UDP",
            "dir=out",
            "action=allow",
            "enable=yes",
            "profile=any",
            "protocol=UDP",
            "remoteport=53",
            "remoteip=192.168.50.100",
        ]
        assert rule.delete_args()[-1] == "name=NetGuardian_DNS_Allow_Target_UDP"


@pytest.mark.unit
class TestApplyRemove:
    """Tests for apply_rules and remove_rules."""

    def test_one_failure_does_not_abort_the_rest(self):
        from netguardian.network.firewall import apply_rules, build_strict_rules

        rules = build_strict_rules("192.168.50.100", public_resolvers=["1.1.1.1"])
        results = [CommandResult(True, exit_code=0)] * len(rules)
        results[1] = CommandResult(False, stdout="The object already exists.", exit_code=1)

        with patch("netguardian.network.firewall.run_privileged", side_effect=results) as mock_run:
            report = apply_rules(rules)

        assert mock_run.call_count == len(rules)
        assert report.failed == [rules[1].name]
        assert report.simulated == []
        assert report.completed == len(rules) - 1

    def test_remove_deletes_every_rule_by_name(self):
        from netguardian.network.firewall import build_strict_rules, remove_rules

        rules = build_strict_rules("192.168.50.100", public_resolvers=["1.1.1.1"])

        with patch(
            "netguardian.network.firewall.run_privileged",
            return_value=CommandResult(True, exit_code=0),
        ) as mock_run:
            report = remove_rules(rules)

        assert report.failed == []
        assert report.completed == len(rules)

        deleted = [c[0][1][-1] for c in mock_run.call_args_list]
        assert deleted == [f"name={rule.name}" for rule in rules]

    def test_simulated_rules_are_reported_separately(self):
        from netguardian.network.firewall import apply_rules, build_strict_rules

        rules = build_strict_rules("192.168.50.100", public_resolvers=[])

        with patch("netguardian.utils.commands.is_administrator", return_value=False), patch(
            "netguardian.utils.commands.run_command"
        ) as mock_run:
            report = apply_rules(rules)

        mock_run.assert_not_called()
        assert report.failed == []
        assert report.simulated == [rule.name for rule in rules]
        assert report.completed == 0
