"""Pause requests: a level-triggered flag per timer name.

The countdown loop polls :meth:`PauseRequests.is_requested` at the top of
every tick instead of being preempted, so a tick is never half-applied.
With a ``flag_dir`` the flag is also a marker file, which lets a
``focustimer pause`` issued from another terminal reach a running countdown.
"""

from __future__ import annotations

import threading
from contextlib import suppress
from pathlib import Path
from urllib.parse import quote

_FLAG_SUFFIX = ".pause"


class PauseRequests:
    """Pending pause requests, keyed by timer name.

    A request stays raised until :meth:`clear` is called; polling does not
    consume it.  The lock is re-entrant because Ctrl+C handlers run on the
    countdown's own thread and may interrupt it inside :meth:`is_requested`.
    """

    def __init__(self, flag_dir: Path | None = None) -> None:
        self._flag_dir = Path(flag_dir) if flag_dir is not None else None
        self._pending: set[str] = set()
        self._lock = threading.RLock()

    def request(self, name: str) -> None:
        """Mark a pause as requested for *name*."""
        with self._lock:
            self._pending.add(name)
        if self._flag_dir is not None:
            self._flag_dir.mkdir(parents=True, exist_ok=True)
            self._flag_path(name).touch()

    def is_requested(self, name: str) -> bool:
        """Whether a pause is pending for *name*, in memory or on disk."""
        with self._lock:
            if name in self._pending:
                return True
        return self._flag_dir is not None and self._flag_path(name).exists()

    def clear(self, name: str) -> None:
        """Drop any pending request for *name*.  Harmless when none is pending."""
        with self._lock:
            self._pending.discard(name)
        if self._flag_dir is not None:
            with suppress(FileNotFoundError):
                self._flag_path(name).unlink()

    def _flag_path(self, name: str) -> Path:
        assert self._flag_dir is not None
        return self._flag_dir / (quote(name, safe="") + _FLAG_SUFFIX)
