"""Notification dispatchers: fire-and-forget, best effort."""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Optional, Protocol

import click


class Notifier(Protocol):
    def notify(self, title: str, message: str) -> None: ...


class NullNotifier:
    """Drops every notification."""

    def notify(self, title: str, message: str) -> None:
        return None


class DesktopNotifier:
    """Desktop popup via ``notify-send`` plus a terminal bell.

    Failures are logged and otherwise ignored.
    """

    def __init__(
        self,
        *,
        desktop: bool = True,
        sound: bool = True,
        timeout_seconds: float = 5.0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._desktop = desktop
        self._sound = sound
        self._timeout = timeout_seconds
        self._logger = logger or logging.getLogger(__name__)

    def notify(self, title: str, message: str) -> None:
        if self._desktop:
            self._send_desktop(title, message)
        if self._sound:
            click.echo("\a", nl=False)

    def _send_desktop(self, title: str, message: str) -> None:
        executable = shutil.which("notify-send")
        if executable is None:
            self._logger.debug("notify-send not available; skipping desktop notification")
            return
        try:
            subprocess.run(
                [executable, title, message],
                check=True,
                timeout=self._timeout,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            self._logger.warning("Desktop notification failed: %s", exc)
