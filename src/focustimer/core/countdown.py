"""Countdown loop: advances a running session record one tick at a time."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from focustimer.core.clock import Clock
from focustimer.core.interrupts import PauseRequests
from focustimer.core.store import SessionStore
from focustimer.core.timer import SessionRecord, TimerState

TICK_SECONDS = 1

ProgressCallback = Callable[[str, int], None]


class Outcome(Enum):
    """How a countdown invocation ended."""

    COMPLETED = "completed"
    PAUSED = "paused"
    STOPPED = "stopped"


@dataclass(frozen=True)
class CountdownResult:
    """How the loop ended and the last record it persisted."""

    outcome: Outcome
    record: SessionRecord


def run_countdown(
    record: SessionRecord,
    *,
    store: SessionStore,
    clock: Clock,
    pause_requests: PauseRequests,
    on_progress: Optional[ProgressCallback] = None,
    tick_seconds: int = TICK_SECONDS,
    logger: Optional[logging.Logger] = None,
) -> CountdownResult:
    """Run *record* until it completes, is paused, or disappears from *store*.

    Every tick is persisted before it counts, so a process killed between
    ticks loses at most one tick of progress.  A pause requested during a
    tick is honoured at the top of the next one.  The record is never
    advanced past a failed write: :class:`PersistenceWriteError` propagates.
    """
    logger = logger or logging.getLogger(__name__)
    name = record.name
    current = record

    while True:
        if current.is_finished:
            return CountdownResult(Outcome.COMPLETED, current)

        if pause_requests.is_requested(name):
            paused = current.evolve(state=TimerState.PAUSED, updated_at=clock.now(), owner_pid=0)
            saved = store.save(paused)
            pause_requests.clear(name)
            if not saved:
                logger.info("Timer '%s' was stopped while pausing", name)
                return CountdownResult(Outcome.STOPPED, current)
            logger.info("Paused '%s' at %ds elapsed", name, paused.elapsed_seconds)
            return CountdownResult(Outcome.PAUSED, paused)

        clock.sleep(tick_seconds)
        ticked = current.evolve(
            elapsed_seconds=min(
                current.elapsed_seconds + tick_seconds, current.planned_duration_seconds
            ),
            updated_at=clock.now(),
        )
        if not store.save(ticked):
            logger.info("Timer '%s' was stopped; ending countdown", name)
            return CountdownResult(Outcome.STOPPED, current)
        current = ticked
        logger.debug("Tick '%s': %ds elapsed", name, current.elapsed_seconds)

        if current.is_finished:
            return CountdownResult(Outcome.COMPLETED, current)

        if on_progress is not None:
            on_progress(name, current.remaining_seconds)
