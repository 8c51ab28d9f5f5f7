"""Persistence Store: one JSON document per named timer.

Each record lives at ``<state_dir>/<quoted name>.json``.  Writes go to a
temporary file in the same directory and are renamed over the target, so a
reader only ever sees a complete old or a complete new record.  A sibling
``.lock`` file is held with :func:`fcntl.flock` around every check-then-write
so that ``stop`` in one process cannot be undone by a countdown tick in
another.  Lock files are never removed, so every writer of a name locks the
same inode; ``sessions/`` keeps one empty ``.lock`` per name ever used.
"""

from __future__ import annotations

import fcntl
import json
import logging
import os
import tempfile
from contextlib import contextmanager, suppress
from pathlib import Path
from typing import Iterator, Optional
from urllib.parse import quote, unquote

from focustimer.core.timer import (
    AlreadyActiveError,
    CorruptRecordError,
    PersistenceWriteError,
    SessionRecord,
)

_RECORD_SUFFIX = ".json"
_LOCK_SUFFIX = ".lock"


def _filename(name: str) -> str:
    if not name:
        raise ValueError("timer name must not be empty")
    return quote(name, safe="")


class SessionStore:
    """Durable storage for at most one :class:`SessionRecord` per name."""

    def __init__(self, state_dir: Path, logger: Optional[logging.Logger] = None) -> None:
        self._state_dir = Path(state_dir)
        self._logger = logger or logging.getLogger(__name__)

    @property
    def state_dir(self) -> Path:
        """Directory holding the record and lock files."""
        return self._state_dir

    def path_for(self, name: str) -> Path:
        """Location of the JSON document for *name*, whether or not it exists."""
        return self._state_dir / (_filename(name) + _RECORD_SUFFIX)

    # -- public API ----------------------------------------------------------

    def load(self, name: str) -> SessionRecord | None:
        """Return the record stored for *name*, or ``None``."""
        with self._locked(name, exclusive=False):
            return self._read(name)

    def create(self, record: SessionRecord) -> None:
        """Persist a brand-new record.  Raises :class:`AlreadyActiveError` if one exists."""
        with self._locked(record.name):
            if self._read(record.name) is not None:
                raise AlreadyActiveError(record.name)
            self._write(record)
        self._logger.debug("Created record %s for '%s'", record.session_id, record.name)

    def save(self, record: SessionRecord) -> bool:
        """Replace the stored record for ``record.name``.

        Only replaces a record with the same ``session_id``; returns ``False``
        without writing when the record was deleted or replaced meanwhile.
        """
        with self._locked(record.name):
            current = self._read(record.name)
            if current is None or current.session_id != record.session_id:
                return False
            self._write(record)
        return True

    def delete(self, name: str, session_id: str | None = None) -> SessionRecord | None:
        """Delete the record for *name* and return it.

        With *session_id*, only a record with that id is deleted.
        """
        with self._locked(name):
            current = self._read(name, strict=False)
            if current is not None and session_id is not None and current.session_id != session_id:
                return None
            try:
                self.path_for(name).unlink()
            except FileNotFoundError:
                return None
            except OSError as exc:
                raise PersistenceWriteError(f"Cannot delete timer '{name}': {exc}") from exc
        return current

    def names(self) -> list[str]:
        """Return the names of every stored record, sorted."""
        if not self._state_dir.is_dir():
            return []
        return sorted(
            unquote(path.name[: -len(_RECORD_SUFFIX)])
            for path in self._state_dir.glob("*" + _RECORD_SUFFIX)
        )

    # -- private helpers -----------------------------------------------------

    @contextmanager
    def _locked(self, name: str, exclusive: bool = True) -> Iterator[None]:
        lock_path = self._state_dir / (_filename(name) + _LOCK_SUFFIX)
        try:
            self._state_dir.mkdir(parents=True, exist_ok=True)
            handle = open(lock_path, "a")
        except OSError as exc:
            raise PersistenceWriteError(f"Cannot open lock file {lock_path}: {exc}") from exc
        with handle:
            fcntl.flock(handle, fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
            try:
                yield
            finally:
                fcntl.flock(handle, fcntl.LOCK_UN)

    def _read(self, name: str, strict: bool = True) -> SessionRecord | None:
        path = self.path_for(name)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            if not strict:
                return None
            raise CorruptRecordError(f"Cannot read {path}: {exc}") from exc
        try:
            return SessionRecord.from_dict(data)
        except CorruptRecordError:
            if not strict:
                return None
            raise

    def _write(self, record: SessionRecord) -> None:
        path = self.path_for(record.name)
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self._state_dir, prefix=".", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record.to_dict(), f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None:
                with suppress(OSError):
                    os.unlink(tmp_name)
            raise PersistenceWriteError(f"Cannot write {path}: {exc}") from exc
