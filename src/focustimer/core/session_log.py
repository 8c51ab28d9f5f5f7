"""Session Log: append-only CSV history of completed intervals.

Columns are ``date,time,label,kind,duration_seconds,completed,notes,
session_id``.  The ``session_id`` of the interval keeps a completion from
being logged twice; rows written before it existed simply leave it empty.
There is no update or delete operation.

Every row is exactly one physical line: newlines inside values are written
as spaces, and each line is parsed on its own, so a row torn by a crash can
only ever lose itself.
"""

from __future__ import annotations

import csv
import fcntl
import io
import logging
import os
import threading
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Iterator, Optional

from focustimer.core.timer import PersistenceWriteError, SessionKind, SessionRecord

LOG_FIELDS = (
    "date",
    "time",
    "label",
    "kind",
    "duration_seconds",
    "completed",
    "notes",
    "session_id",
)
_OPTIONAL_FIELDS = frozenset({"notes", "session_id"})


@dataclass(frozen=True)
class LogEntry:
    date: str
    time_of_day: str
    label: str
    kind: SessionKind
    duration_seconds: int
    completed: bool
    notes: str = ""
    session_id: str = ""

    @classmethod
    def for_completion(cls, record: SessionRecord, finished_at: datetime, notes: str = "") -> LogEntry:
        """Build the entry written when *record* finishes naturally."""
        return cls(
            date=finished_at.strftime("%Y-%m-%d"),
            time_of_day=finished_at.strftime("%H:%M"),
            label=record.label,
            kind=record.kind,
            duration_seconds=record.planned_duration_seconds,
            completed=True,
            notes=notes,
            session_id=record.session_id,
        )

    @property
    def day(self) -> date:
        return date.fromisoformat(self.date)

    def to_row(self) -> list[str]:
        return [
            self.date,
            self.time_of_day,
            self.label,
            self.kind.value,
            str(self.duration_seconds),
            "true" if self.completed else "false",
            self.notes,
            self.session_id,
        ]

    @classmethod
    def from_row(cls, row: dict[str, str]) -> LogEntry:
        """Parse a CSV row; raises ``ValueError`` for a malformed one."""
        values = {field: row.get(field) for field in LOG_FIELDS}
        missing = [
            field for field, value in values.items() if value is None and field not in _OPTIONAL_FIELDS
        ]
        if missing:
            raise ValueError(f"missing columns: {', '.join(missing)}")
        completed = values["completed"]
        if completed not in ("true", "false"):
            raise ValueError(f"invalid completed flag {completed!r}")
        date.fromisoformat(values["date"])
        return cls(
            date=values["date"],
            time_of_day=values["time"],
            label=values["label"],
            kind=SessionKind(values["kind"]),
            duration_seconds=int(values["duration_seconds"]),
            completed=completed == "true",
            notes=values["notes"] or "",
            session_id=values["session_id"] or "",
        )


def _encode_row(values: list[str]) -> bytes:
    buffer = io.StringIO()
    flat = [value.replace("\r", " ").replace("\n", " ") for value in values]
    csv.writer(buffer, lineterminator="\n").writerow(flat)
    return buffer.getvalue().encode("utf-8")


class SessionLog:
    """Durable, append-only sink for :class:`LogEntry` rows.

    ``append`` is serialized with a lock inside the process and an exclusive
    ``flock`` across processes.  Each row goes out in a single append-mode
    write followed by ``fsync``; a row torn by a crash is skipped by
    :meth:`entries` and never merges with the next row.
    """

    def __init__(self, path: Path, logger: Optional[logging.Logger] = None) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._logger = logger or logging.getLogger(__name__)

    @property
    def path(self) -> Path:
        return self._path

    def append(self, entry: LogEntry) -> bool:
        """Append *entry*; return ``False`` if its session is already logged."""
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with open(self._path, "a+b") as f:
                    fcntl.flock(f, fcntl.LOCK_EX)
                    try:
                        if entry.session_id and self._is_logged(entry.session_id):
                            self._logger.debug("Session %s is already logged", entry.session_id)
                            return False
                        f.write(self._prefix_for(f) + _encode_row(entry.to_row()))
                        f.flush()
                        os.fsync(f.fileno())
                    finally:
                        fcntl.flock(f, fcntl.LOCK_UN)
            except OSError as exc:
                raise PersistenceWriteError(f"Cannot append to {self._path}: {exc}") from exc
        self._logger.debug("Logged %s '%s' (%ds)", entry.kind.value, entry.label, entry.duration_seconds)
        return True

    def entries(self) -> list[LogEntry]:
        return list(self._iter_entries())

    def completed_work_count(self, day: date) -> int:
        """Number of completed work sessions logged on *day*."""
        wanted = day.isoformat()
        return sum(
            1
            for entry in self._iter_entries()
            if entry.date == wanted and entry.kind is SessionKind.WORK and entry.completed
        )

    # -- private helpers -----------------------------------------------------

    def _is_logged(self, session_id: str) -> bool:
        return any(entry.session_id == session_id for entry in self._iter_entries())

    @staticmethod
    def _prefix_for(f: io.BufferedRandom) -> bytes:
        """Header for an empty file, a newline after a torn last row, else nothing."""
        size = f.seek(0, os.SEEK_END)
        if size == 0:
            return _encode_row(list(LOG_FIELDS))
        f.seek(size - 1)
        if f.read(1) != b"\n":
            return b"\n"
        return b""

    def _iter_entries(self) -> Iterator[LogEntry]:
        try:
            f = open(self._path, newline="", encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return
        with f:
            for line_no, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    entry = self._parse_line(line)
                except (csv.Error, ValueError) as exc:
                    self._logger.warning("Skipping malformed log row %d in %s: %s", line_no, self._path, exc)
                    continue
                if entry is not None:
                    yield entry

    @staticmethod
    def _parse_line(line: str) -> LogEntry | None:
        """Parse one physical line; ``None`` for the header."""
        values = next(csv.reader([line], strict=True), [])
        if values[:1] == [LOG_FIELDS[0]]:
            return None
        if len(values) > len(LOG_FIELDS):
            raise ValueError(f"expected at most {len(LOG_FIELDS)} columns, got {len(values)}")
        return LogEntry.from_row(dict(zip(LOG_FIELDS, values)))
