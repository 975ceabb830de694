"""Windows Firewall rules for DNS strict mode.

Uses netsh advfirewall to allow plaintext DNS only to the policy resolver
and to block DNS-over-TLS and DoH to well-known public resolvers. Each rule
is its own command; one failing rule never stops the others.
"""

import ipaddress
from dataclasses import dataclass, field
from typing import List, Optional

from .. import config
from ..logging_config import get_logger
from ..utils import run_privileged

logger = get_logger(__name__)

# Firewall rule name prefix for easy identification/cleanup
RULE_PREFIX = "NetGuardian_DNS"


@dataclass(frozen=True)
class FirewallRule:
    name: str
    action: str  # allow or block
    protocol: str  # UDP or TCP
    remote_port: int
    remote_ip: Optional[str] = None  # None means any

    def add_args(self) -> List[str]:
        args = [
            "advfirewall", "firewall", "add", "rule",
            f"name={self.name}",
            "dir=out",
            f"action={self.action}",
            "enable=yes",
            "profile=any",
            f"protocol={self.protocol}",
            f"remoteport={self.remote_port}",
        ]
        if self.remote_ip:
            args.append(f"remoteip={self.remote_ip}")
        return args

    def delete_args(self) -> List[str]:
        return ["advfirewall", "firewall", "delete", "rule", f"name={self.name}"]


def complement_ranges(address):
    """IPv4 ranges covering every address except one, in netsh remoteip syntax."""
    target = int(ipaddress.IPv4Address(address))
    lowest, highest = 0, 2**32 - 1
    ranges = []
    if target > lowest:
        ranges.append((lowest, target - 1))
    if target < highest:
        ranges.append((target + 1, highest))
    return ",".join(
        f"{ipaddress.IPv4Address(start)}-{ipaddress.IPv4Address(end)}" for start, end in ranges
    )


def build_strict_rules(target_dns, public_resolvers=None):
    """
    Build the strict-mode rule set for a target resolver.

    Windows evaluates block rules before allow rules, so the port 53 block is
    scoped to every address except the target rather than to "any".
    """
    if public_resolvers is None:
        public_resolvers = config.PUBLIC_RESOLVERS

    others = complement_ranges(target_dns)
    rules = [
        FirewallRule(f"{RULE_PREFIX}_Allow_Target_UDP", "allow", "UDP", 53, target_dns),
        FirewallRule(f"{RULE_PREFIX}_Allow_Target_TCP", "allow", "TCP", 53, target_dns),
        FirewallRule(f"{RULE_PREFIX}_Block_Other_UDP", "block", "UDP", 53, others),
        FirewallRule(f"{RULE_PREFIX}_Block_Other_TCP", "block", "TCP", 53, others),
        FirewallRule(f"{RULE_PREFIX}_Block_DoT", "block", "TCP", 853),
    ]
    for resolver in public_resolvers:
        if resolver == target_dns:
            continue
        rules.append(
            FirewallRule(
                f"{RULE_PREFIX}_Block_DoH_{resolver.replace('.', '_')}",
                "block",
                "TCP",
                443,
                resolver,
            )
        )
    return rules


@dataclass
class RuleReport:
    """Per-rule outcome of one apply or remove pass."""

    total: int
    failed: List[str] = field(default_factory=list)
    simulated: List[str] = field(default_factory=list)

    @property
    def completed(self) -> int:
        return self.total - len(self.failed) - len(self.simulated)


def _run_rules(rules, verb, build_args):
    report = RuleReport(total=len(rules))
    for rule in rules:
        result = run_privileged("netsh", build_args(rule))
        if result.simulated:
            report.simulated.append(rule.name)
        elif not result.success:
            report.failed.append(rule.name)
            logger.warning(f"Firewall rule {rule.name} not {verb}: {result.stdout or result.stderr}")
    if report.failed:
        logger.warning(f"{len(report.failed)} of {report.total} strict-mode rules not {verb}")
    return report


def apply_rules(rules):
    """Install every rule. One failing rule never stops the others."""
    logger.info(f"Applying {len(rules)} DNS strict-mode firewall rules")
    return _run_rules(rules, "applied", FirewallRule.add_args)


def remove_rules(rules):
    """Delete every rule by name. One failing rule never stops the others."""
    logger.info(f"Removing {len(rules)} DNS strict-mode firewall rules")
    return _run_rules(rules, "removed", FirewallRule.delete_args)
