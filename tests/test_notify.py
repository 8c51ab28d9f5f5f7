"""Tests for completion notifications."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

from focustimer.notify import DesktopNotifier, NullNotifier


class TestNullNotifier:
    def test_accepts_anything(self) -> None:
        assert NullNotifier().notify("title", "message") is None


class TestDesktopNotifier:
    """notify-send is invoked when present; failures never propagate."""

    @patch("focustimer.notify.subprocess.run")
    @patch("focustimer.notify.shutil.which", return_value="/usr/bin/notify-send")
    def test_sends_desktop_notification(self, mock_which: MagicMock, mock_run: MagicMock) -> None:
        DesktopNotifier(sound=False).notify("Work complete!", "'refactor' finished")
        args = mock_run.call_args.args[0]
        assert args == ["/usr/bin/notify-send", "Work complete!", "'refactor' finished"]

    @patch("focustimer.notify.subprocess.run")
    @patch("focustimer.notify.shutil.which", return_value=None)
    def test_missing_notify_send_is_skipped(self, mock_which: MagicMock, mock_run: MagicMock) -> None:
        DesktopNotifier(sound=False).notify("t", "m")
        mock_run.assert_not_called()

    @patch("focustimer.notify.subprocess.run", side_effect=subprocess.TimeoutExpired("notify-send", 5))
    @patch("focustimer.notify.shutil.which", return_value="/usr/bin/notify-send")
    def test_timeout_is_logged(self, mock_which: MagicMock, mock_run: MagicMock) -> None:
        logger = MagicMock()
        DesktopNotifier(sound=False, logger=logger).notify("t", "m")
        logger.warning.assert_called_once()

    @patch("focustimer.notify.subprocess.run", side_effect=OSError("exec failed"))
    @patch("focustimer.notify.shutil.which", return_value="/usr/bin/notify-send")
    def test_os_error_is_logged(self, mock_which: MagicMock, mock_run: MagicMock) -> None:
        logger = MagicMock()
        DesktopNotifier(sound=False, logger=logger).notify("t", "m")
        logger.warning.assert_called_once()

    @patch("focustimer.notify.subprocess.run")
    def test_desktop_disabled(self, mock_run: MagicMock) -> None:
        DesktopNotifier(desktop=False, sound=False).notify("t", "m")
        mock_run.assert_not_called()

    @patch("focustimer.notify.click.echo")
    def test_sound_rings_bell(self, mock_echo: MagicMock) -> None:
        DesktopNotifier(desktop=False).notify("t", "m")
        mock_echo.assert_called_once_with("\a", nl=False)

    @patch("focustimer.notify.click.echo")
    def test_sound_disabled(self, mock_echo: MagicMock) -> None:
        DesktopNotifier(desktop=False, sound=False).notify("t", "m")
        mock_echo.assert_not_called()
