"""
Command execution utilities for NetGuardian.

This module provides robust command execution with error handling and logging.
It serves as the central location for all command execution to avoid
duplication: plain commands, encoded PowerShell scripts, and the privileged
variants that fall back to a logged simulation when the agent is not elevated.
"""

import base64
import os
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

from .. import config
from ..logging_config import get_logger
from .native import is_administrator

# Get module logger
logger = get_logger(__name__)

CREATE_NO_WINDOW = getattr(subprocess, "CREATE_NO_WINDOW", 0)
CREATE_NEW_CONSOLE = getattr(subprocess, "CREATE_NEW_CONSOLE", 0)


@dataclass
class CommandResult:
    success: bool
    stdout: str = ""
    stderr: str = ""
    exit_code: Optional[int] = None
    simulated: bool = False


def _child_environment(interactive):
    env = os.environ.copy()
    if interactive:
        env["GIT_TERMINAL_PROMPT"] = "1"
        env["GCM_INTERACTIVE"] = "always"
    else:
        env["GIT_TERMINAL_PROMPT"] = "0"
    return env


def run_command(
    command: str,
    args: Sequence[str] = (),
    cwd=None,
    timeout: float = config.DEFAULT_COMMAND_TIMEOUT,
    interactive: bool = False,
) -> CommandResult:
    """
    Execute a command with robust error handling and logging.

    Args:
        command: Executable to run
        args: Arguments, passed as a list (never through a shell)
        cwd: Working directory, or None for the current one
        timeout: Seconds to wait for the process to exit
        interactive: If True, keep a visible console and leave the streams
            attached so credential prompts can reach the user

    Returns:
        CommandResult. A process still running when the timeout expires is
        left alone and reported as a failure.
    """
    argv = [command] + list(args)
    logger.debug(f"Running command ({'interactive' if interactive else 'captured'}): {argv}")

    try:
        if interactive:
            proc = subprocess.Popen(
                argv,
                cwd=cwd,
                env=_child_environment(True),
                creationflags=CREATE_NEW_CONSOLE,
            )
            exit_code = proc.wait(timeout=timeout)
            stdout, stderr = "", ""
        else:
            proc = subprocess.Popen(
                argv,
                cwd=cwd,
                env=_child_environment(False),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="ignore",
                creationflags=CREATE_NO_WINDOW,
            )
            stdout, stderr = proc.communicate(timeout=timeout)
            exit_code = proc.returncode

    except subprocess.TimeoutExpired:
        logger.warning(f"Command '{command}' did not finish within {timeout}s; leaving it running")
        return CommandResult(False, stderr="timeout")
    except FileNotFoundError:
        logger.error(f"Command not found: {command}")
        return CommandResult(False, stderr=f"{command} not found")
    except Exception as e:
        logger.error(f"Unexpected error running command '{command}': {e}")
        return CommandResult(False, stderr=str(e))

    stdout = (stdout or "").strip()
    stderr = (stderr or "").strip()

    if stderr:
        logger.debug(f"Command stderr: {stderr}")

    if exit_code != 0:
        logger.debug(f"Command '{command}' failed with status {exit_code}")
        if stdout:
            logger.debug(f"Stdout: {stdout}")

    return CommandResult(exit_code == 0, stdout, stderr, exit_code)


def encode_powershell(script: str) -> str:
    """Encode a script body for powershell's -EncodedCommand (base64 of UTF-16-LE)."""
    return base64.b64encode(script.encode("utf-16-le")).decode("ascii")


def run_powershell(script: str, timeout: float = config.SCRIPT_TIMEOUT, cwd=None) -> CommandResult:
    """Run a multi-line PowerShell script without putting its text on the command line."""
    args = [
        "-NoProfile",
        "-NonInteractive",
        "-ExecutionPolicy",
        "Bypass",
        "-WindowStyle",
        "Hidden",
        "-EncodedCommand",
        encode_powershell(script),
    ]
    return run_command(config.POWERSHELL, args, cwd=cwd, timeout=timeout)


def _simulate(description):
    logger.warning(f"SIMULATED (not elevated, nothing executed): {description}")
    return CommandResult(False, simulated=True)


def run_privileged(command, args=(), cwd=None, timeout=config.DEFAULT_COMMAND_TIMEOUT):
    """Run a system-changing command, or log it as simulated without admin rights."""
    if not is_administrator():
        return _simulate(" ".join([command] + list(args)))
    return run_command(command, args, cwd=cwd, timeout=timeout)


def run_privileged_powershell(script, timeout=config.SCRIPT_TIMEOUT, description="PowerShell script"):
    """Encoded-script variant of run_privileged."""
    if not is_administrator():
        return _simulate(description)
    return run_powershell(script, timeout=timeout)
