"""Break cadence policy."""

from __future__ import annotations

from focustimer.core.timer import SessionKind


def next_break_kind(completed_work_sessions_today: int, sessions_until_long_break: int) -> SessionKind:
    """Decide which break follows a completed work session.

    Every ``sessions_until_long_break``-th completed work session of the day
    earns a long break; any other count gets a short one.  A non-positive
    ``sessions_until_long_break`` disables long breaks.
    """
    if sessions_until_long_break <= 0:
        return SessionKind.SHORT_BREAK
    if completed_work_sessions_today > 0 and completed_work_sessions_today % sessions_until_long_break == 0:
        return SessionKind.LONG_BREAK
    return SessionKind.SHORT_BREAK
