"""
Unit tests for netguardian/external/workstation.py
"""

import pytest
from unittest.mock import MagicMock, patch

from netguardian.utils import CommandResult


@pytest.mark.unit
class TestSwitchToWorkOff:
    """Tests for the work-off sequence."""

    def test_active_vpn_is_toggled_off_first(self):
        from netguardian.external.workstation import switch_to_work_off

        vpn = MagicMock(is_active=True)
        with patch(
            "netguardian.external.workstation.run_powershell",
            return_value=CommandResult(True, exit_code=0),
        ) as mock_ps:
            assert switch_to_work_off(vpn) is True

        vpn.toggle.assert_called_once()
        script = mock_ps.call_args[0][0]
        assert "wsl --shutdown" in script
        assert "'LM Studio,Docker Desktop'" in script

    def test_inactive_vpn_left_alone(self):
        from netguardian.external.workstation import switch_to_work_off

        vpn = MagicMock(is_active=False)
        with patch(
            "netguardian.external.workstation.run_powershell",
            return_value=CommandResult(True, exit_code=0),
        ):
            switch_to_work_off(vpn)

        vpn.toggle.assert_not_called()

    def test_vpn_failure_does_not_stop_cleanup(self):
        from netguardian.external.workstation import switch_to_work_off

        vpn = MagicMock(is_active=True)
        vpn.toggle.side_effect = RuntimeError("service missing")
        with patch(
            "netguardian.external.workstation.run_powershell",
            return_value=CommandResult(False, exit_code=1),
        ) as mock_ps:
            assert switch_to_work_off(vpn) is False

        mock_ps.assert_called_once()
