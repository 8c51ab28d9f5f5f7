"""Session Controller: start/pause/resume/stop/status over named timers.

The controller owns the persistence store and the session log.  It creates
or revives a :class:`SessionRecord`, hands it to the countdown loop, and on
natural completion logs the interval, deletes the record and suggests the
next break.
"""

from __future__ import annotations

import logging
import os
import threading
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from focustimer.config import TimerConfig
from focustimer.core.cadence import next_break_kind
from focustimer.core.clock import Clock, SystemClock
from focustimer.core.countdown import (
    TICK_SECONDS,
    CountdownResult,
    Outcome,
    ProgressCallback,
    run_countdown,
)
from focustimer.core.interrupts import PauseRequests
from focustimer.core.session_log import LogEntry, SessionLog
from focustimer.core.store import SessionStore
from focustimer.core.timer import (
    DEFAULT_LABEL,
    DEFAULT_NAME,
    NotFoundError,
    NotPausedError,
    SessionKind,
    SessionRecord,
    TimerState,
)
from focustimer.notify import NullNotifier, Notifier

# (state dir, name) pairs with a countdown running in this process.
_live_loops: set[tuple[str, str]] = set()
_live_loops_lock = threading.Lock()


def _pid_alive(pid: int) -> bool:
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


@dataclass(frozen=True)
class SessionResult:
    """What a ``start``/``resume`` call ended with.

    ``next_break`` is only set after a work session completes naturally.
    """

    session_id: str
    outcome: Outcome
    record: SessionRecord
    next_break: SessionKind | None = None
    completed_today: int = 0


class SessionController:
    """Orchestrates named interval timers with crash-safe persistence.

    Records are written after every tick so that progress survives across
    terminal invocations and process crashes.  A running record whose
    countdown is gone (its process died) is treated as paused.
    """

    def __init__(
        self,
        store: SessionStore,
        session_log: SessionLog,
        *,
        clock: Optional[Clock] = None,
        pause_requests: Optional[PauseRequests] = None,
        notifier: Optional[Notifier] = None,
        config: Optional[TimerConfig] = None,
        on_progress: Optional[ProgressCallback] = None,
        logger: Optional[logging.Logger] = None,
        tick_seconds: int = TICK_SECONDS,
        stale_after_seconds: float | None = None,
    ) -> None:
        self._store = store
        self._log = session_log
        self._clock: Clock = clock if clock is not None else SystemClock()
        self._pause_requests = pause_requests if pause_requests is not None else PauseRequests()
        self._notifier: Notifier = notifier if notifier is not None else NullNotifier()
        self._config = config if config is not None else TimerConfig()
        self._on_progress = on_progress
        self._logger = logger or logging.getLogger(__name__)
        self._tick_seconds = tick_seconds
        self._stale_after = (
            stale_after_seconds if stale_after_seconds is not None else 3 * tick_seconds
        )

    @property
    def config(self) -> TimerConfig:
        return self._config

    # -- public API ----------------------------------------------------------

    def start(
        self,
        name: str = DEFAULT_NAME,
        kind: SessionKind = SessionKind.WORK,
        duration_seconds: int | None = None,
        label: str = DEFAULT_LABEL,
    ) -> SessionResult:
        """Start a new timer and block until it completes, pauses or is stopped.

        Raises :class:`AlreadyActiveError` if a record exists for *name*.
        """
        if duration_seconds is None:
            duration_seconds = self._config.duration_for(kind)
        now = self._clock.now()
        record = SessionRecord(
            session_id=uuid.uuid4().hex,
            name=name,
            kind=kind,
            planned_duration_seconds=duration_seconds,
            elapsed_seconds=0,
            state=TimerState.RUNNING,
            started_at=now,
            updated_at=now,
            label=label,
            owner_pid=os.getpid(),
        )
        self._store.create(record)
        self._pause_requests.clear(name)
        self._logger.info(
            "Started %s '%s' (%ds, label=%s)", kind.value, name, duration_seconds, label
        )
        return self._run(record)

    def resume(self, name: str = DEFAULT_NAME) -> SessionResult:
        """Resume a paused (or orphaned) timer from its stored elapsed time."""
        record = self._require(name)
        if record.state is TimerState.RUNNING and self._is_live(record):
            raise NotPausedError(name)
        now = self._clock.now()
        revived = record.evolve(
            state=TimerState.RUNNING,
            started_at=now,
            updated_at=now,
            owner_pid=os.getpid(),
        )
        self._pause_requests.clear(name)
        if not self._store.save(revived):
            raise NotFoundError(name)
        self._logger.info("Resumed '%s' at %ds elapsed", name, revived.elapsed_seconds)
        return self._run(revived)

    def pause(self, name: str = DEFAULT_NAME) -> None:
        """Ask the countdown for *name* to pause at its next tick.

        A record with no live countdown is paused directly.  Pausing a paused
        timer does nothing.
        """
        record = self._require(name)
        if record.state is not TimerState.RUNNING:
            return
        if self._is_live(record):
            self._pause_requests.request(name)
            self._logger.info("Pause requested for '%s'", name)
            return
        paused = record.evolve(state=TimerState.PAUSED, owner_pid=0)
        if not self._store.save(paused):
            raise NotFoundError(name)
        self._logger.info("Paused orphaned timer '%s' at %ds elapsed", name, paused.elapsed_seconds)

    def request_pause(self, name: str = DEFAULT_NAME) -> None:
        """Raise the pause flag without touching the store.

        Safe to call from a signal handler on the thread running the countdown.
        """
        self._pause_requests.request(name)

    def stop(self, name: str = DEFAULT_NAME) -> SessionRecord | None:
        """Abort the timer for *name* without logging it.  Idempotent."""
        removed = self._store.delete(name)
        self._pause_requests.clear(name)
        if removed is not None:
            self._logger.info("Stopped '%s' at %ds elapsed", name, removed.elapsed_seconds)
        return removed

    def status(self, name: str = DEFAULT_NAME) -> SessionRecord:
        """Return the record for *name* as it stands now, without writing."""
        return self._effective(self._require(name))

    def active(self) -> list[SessionRecord]:
        """Return the current status of every stored timer."""
        records = []
        for name in self._store.names():
            record = self._store.load(name)
            if record is not None:
                records.append(self._effective(record))
        return records

    def completed_today(self) -> int:
        return self._log.completed_work_count(self._today())

    # -- private helpers -----------------------------------------------------

    def _require(self, name: str) -> SessionRecord:
        record = self._store.load(name)
        if record is None:
            raise NotFoundError(name)
        return record

    def _today(self) -> date:
        return datetime.fromtimestamp(self._clock.now()).date()

    def _loop_key(self, name: str) -> tuple[str, str]:
        return (str(self._store.state_dir), name)

    def _is_live(self, record: SessionRecord) -> bool:
        """Whether a countdown is currently driving *record*."""
        if record.state is not TimerState.RUNNING:
            return False
        if record.owner_pid == os.getpid():
            with _live_loops_lock:
                return self._loop_key(record.name) in _live_loops
        if self._clock.now() - record.updated_at > self._stale_after:
            return False
        return _pid_alive(record.owner_pid)

    def _effective(self, record: SessionRecord) -> SessionRecord:
        if record.state is not TimerState.RUNNING:
            return record
        if not self._is_live(record):
            return record.evolve(state=TimerState.PAUSED)
        since_write = max(0, int(self._clock.now() - record.updated_at))
        elapsed = min(record.planned_duration_seconds, record.elapsed_seconds + since_write)
        return record.evolve(elapsed_seconds=elapsed)

    def _run(self, record: SessionRecord) -> SessionResult:
        key = self._loop_key(record.name)
        with _live_loops_lock:
            _live_loops.add(key)
        try:
            result = run_countdown(
                record,
                store=self._store,
                clock=self._clock,
                pause_requests=self._pause_requests,
                on_progress=self._on_progress,
                tick_seconds=self._tick_seconds,
                logger=self._logger,
            )
        finally:
            with _live_loops_lock:
                _live_loops.discard(key)

        if result.outcome is Outcome.COMPLETED:
            return self._complete(result)
        return SessionResult(session_id=record.session_id, outcome=result.outcome, record=result.record)

    def _complete(self, result: CountdownResult) -> SessionResult:
        record = result.record.evolve(state=TimerState.COMPLETED, owner_pid=0)
        finished_at = datetime.fromtimestamp(self._clock.now())
        if not self._log.append(LogEntry.for_completion(record, finished_at)):
            self._logger.info("Session %s was logged before a crash; not logging again", record.session_id)
        self._store.delete(record.name, session_id=record.session_id)
        self._logger.info("Completed %s '%s' (%ds)", record.kind.value, record.name, record.planned_duration_seconds)

        completed_today = self._log.completed_work_count(finished_at.date())
        next_break = None
        if record.kind is SessionKind.WORK:
            next_break = next_break_kind(completed_today, self._config.sessions_until_long_break)
        self._notify(f"{record.kind.title} complete!", f"'{record.label}' finished")
        return SessionResult(
            session_id=record.session_id,
            outcome=Outcome.COMPLETED,
            record=record,
            next_break=next_break,
            completed_today=completed_today,
        )

    def _notify(self, title: str, message: str) -> None:
        try:
            self._notifier.notify(title, message)
        except Exception as exc:
            self._logger.warning("Notification failed: %s", exc)
