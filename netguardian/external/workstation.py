"""
"Work off" sequence for NetGuardian.

Shuts the VPN client down if it is running, then stops the heavyweight
work tooling (WSL, LM Studio, Docker Desktop).
"""

from .. import config
from ..logging_config import get_logger
from ..utils import render_script, run_powershell
from ..utils.scripts import WORK_OFF_SCRIPT

logger = get_logger(__name__)


def switch_to_work_off(vpn):
    """Run the cleanup sequence. Returns False if the resource cleanup failed."""
    logger.info("Starting work-off cleanup sequence")

    try:
        if vpn.is_active:
            logger.info("Active VPN detected, initiating shutdown")
            vpn.toggle()
    except Exception as e:
        logger.error(f"Error during VPN shutdown: {e}", exc_info=e)

    logger.info(f"Stopping WSL and {', '.join(config.WORK_OFF_PROCESSES)}")
    script = render_script(WORK_OFF_SCRIPT, process_names=",".join(config.WORK_OFF_PROCESSES))
    result = run_powershell(script)
    if not result.success:
        logger.warning(f"Cleanup command finished with exit code: {result.exit_code}")
        return False

    logger.info("Work-off cleanup sequence completed")
    return True
