import sys

import click

from . import config
from .logging_config import setup_logging


class OrderedGroup(click.Group):
    """Custom Click group that preserves command order."""

    def list_commands(self, ctx):
        return list(self.commands.keys())


@click.group(cls=OrderedGroup)
def cli():
    """
    NetGuardian - DNS and VPN policy enforcement for Windows.

    NetGuardian keeps your primary network interface's DNS resolver on the
    configured target, optionally locks outbound DNS down with firewall rules,
    and drives the FortiClient VPN client.
    """
    pass


def _yes_no(value):
    return click.style("yes", fg="green") if value else click.style("no", fg="yellow")


@cli.command()
@click.option("--debug", is_flag=True, help="Enable verbose debug logging.")
def run(debug):
    """
    Run the NetGuardian agent in the foreground.

    Starts the DNS Guardian and the VPN monitor according to your settings
    and keeps running until interrupted with Ctrl+C.
    """
    from .watcher import main

    main(debug=debug)


@cli.command()
@click.option("--debug", is_flag=True, help="Enable verbose debug logging.")
def check(debug):
    """
    Run one DNS check now and restore the policy if it was changed.

    This performs the same reconciliation step the background agent runs on
    every timer tick and adapter change:

    \b
    1. Select the primary physical interface
    2. Compare its resolver with the policy target
    3. Restore the target (and DoH template, if configured) on mismatch
    """
    setup_logging(debug=debug, force_reinit=True)

    from .guardian import (
        CHECK_HOLDS,
        CHECK_NO_INTERFACE,
        CHECK_RESTORED,
        CHECK_SIMULATED,
        DnsGuardian,
    )

    guardian = DnsGuardian()
    click.echo(f"Checking DNS policy (target {guardian.policy.target_dns})...")
    outcome = guardian.check_and_restore("cli")

    found = guardian.state.last_anomalous_dns or "no resolver"
    if outcome == CHECK_HOLDS:
        click.echo(click.style("DNS policy holds, nothing to do.", fg="green"))
    elif outcome == CHECK_NO_INTERFACE:
        click.echo(click.style("No primary physical interface found, nothing checked.", fg="yellow"))
    elif outcome == CHECK_RESTORED:
        click.echo(click.style(f"Found {found}; restored {guardian.policy.target_dns}.", fg="green"))
    elif outcome == CHECK_SIMULATED:
        click.echo(
            click.style(f"Found {found}; restore simulated (not elevated), nothing changed.", fg="yellow")
        )
    else:
        click.echo(click.style(f"Found {found}; restore failed, see the log for details.", fg="red"))
        sys.exit(1)


@cli.command()
def status():
    """
    Show the primary interface, its resolver, privilege level and VPN state.
    """
    from .external.vpn import VpnOrchestrator
    from .network import get_primary_physical_interface
    from .utils import is_administrator

    setup_logging()
    cfg = config.load_config()
    settings = cfg.get("settings", {})

    click.echo(f"Target DNS:         {config.TARGET_DNS}")
    click.echo(f"DoH template:       {config.DOH_TEMPLATE or '(none)'}")
    click.echo(f"Strict mode:        {_yes_no(config.STRICT_MODE)}")
    click.echo(f"Guardian enabled:   {_yes_no(settings.get('dns_guardian_enabled', False))}")
    click.echo(f"Elevated:           {_yes_no(is_administrator())}")

    iface = get_primary_physical_interface()
    if iface is None:
        click.echo("Primary interface:  (none found)")
    else:
        click.echo(f"Primary interface:  {iface.name} ({iface.description}, {iface.speed} bps)")
        resolver = iface.first_ipv4_dns or "(none)"
        color = "green" if resolver == config.TARGET_DNS else "red"
        click.echo(f"Current resolver:   {click.style(resolver, fg=color)}")

    vpn = VpnOrchestrator()
    vpn.refresh_adapter_names()
    click.echo(f"VPN client running: {_yes_no(vpn.is_active)}")
    click.echo(f"VPN link up:        {_yes_no(vpn.link_up())}")
    click.echo(f"VPN address:        {vpn.vpn_ip() or '(none)'}")


# --- Guardian settings ---


@cli.group()
def guardian():
    """
    Enable or disable the DNS Guardian at agent startup.
    """
    pass


def _set_guardian_enabled(enabled):
    cfg = config.load_config()
    cfg.setdefault("settings", {})["dns_guardian_enabled"] = enabled
    config.save_config(cfg)
    state = "enabled" if enabled else "disabled"
    click.echo(f"DNS Guardian {state}. Restart the agent for the change to take effect.")


@guardian.command()
def enable():
    """Start the DNS Guardian whenever the agent starts."""
    _set_guardian_enabled(True)


@guardian.command()
def disable():
    """Do not start the DNS Guardian with the agent."""
    _set_guardian_enabled(False)


# --- VPN commands ---


@cli.group()
def vpn():
    """
    Inspect or toggle the FortiClient VPN client.
    """
    pass


@vpn.command(name="status")
def vpn_status():
    """Show whether the VPN client is running and connected."""
    from .external.vpn import VpnOrchestrator

    setup_logging()
    orchestrator = VpnOrchestrator()
    orchestrator.refresh_adapter_names()
    click.echo(f"Client running: {_yes_no(orchestrator.is_active)}")
    click.echo(f"Link up:        {_yes_no(orchestrator.link_up())}")
    click.echo(f"Address:        {orchestrator.vpn_ip() or '(none)'}")


@vpn.command()
def toggle():
    """Start the VPN client if it is stopped, stop it if it is running."""
    from .external.vpn import VpnOrchestrator

    setup_logging()
    orchestrator = VpnOrchestrator()
    click.echo("Stopping VPN client..." if orchestrator.is_active else "Starting VPN client...")
    orchestrator.toggle()
    state = orchestrator.state
    click.echo(f"VPN client is now {'running' if state.process_active else 'stopped'}.")


# --- Firewall commands ---


@cli.group()
def firewall():
    """
    Install or remove the DNS strict-mode firewall rules by hand.

    Requires an elevated prompt; without it the commands are only logged.
    """
    pass


@firewall.command()
def apply():
    """Install the strict-mode rules for the configured target."""
    from .network import apply_rules, build_strict_rules

    setup_logging()
    rules = build_strict_rules(config.TARGET_DNS)
    _report_rules(apply_rules(rules), "applied")


@firewall.command()
def remove():
    """Remove every strict-mode rule."""
    from .network import build_strict_rules, remove_rules

    setup_logging()
    rules = build_strict_rules(config.TARGET_DNS)
    _report_rules(remove_rules(rules), "removed")


def _report_rules(report, verb):
    if report.failed:
        click.echo(click.style(f"{report.completed} of {report.total} rules {verb}.", fg="red"))
        for name in report.failed:
            click.echo(f"  ✗ {name}")
        sys.exit(1)
    if report.simulated:
        click.echo(
            click.style(
                f"{len(report.simulated)} of {report.total} rules simulated (not elevated), "
                f"nothing was {verb}. Run from an elevated prompt.",
                fg="yellow",
            )
        )
        return
    click.echo(click.style(f"All {report.total} rules {verb}.", fg="green"))


@cli.command(name="work-off")
def work_off():
    """
    End the work session: stop the VPN client, WSL, LM Studio and Docker Desktop.
    """
    from .external import VpnOrchestrator, switch_to_work_off

    setup_logging()
    if switch_to_work_off(VpnOrchestrator()):
        click.echo(click.style("Work-off sequence completed.", fg="green"))
    else:
        click.echo(click.style("Work-off cleanup reported errors; see the log.", fg="yellow"))


if __name__ == "__main__":
    cli()
