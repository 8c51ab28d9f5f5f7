"""Summaries over the session log: today, per-day history and statistics.

Only completed work entries count towards focus time.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable

from focustimer.core.session_log import LogEntry
from focustimer.core.timer import SessionKind


def format_duration(seconds: int) -> str:
    """Format *seconds* as ``Xh Ym`` (or ``Ym`` under an hour)."""
    minutes = seconds // 60
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def _focus_entries(entries: Iterable[LogEntry]) -> list[LogEntry]:
    return [entry for entry in entries if entry.kind is SessionKind.WORK and entry.completed]


@dataclass(frozen=True)
class LabelTotal:
    label: str
    sessions: int
    seconds: int


@dataclass(frozen=True)
class DaySummary:
    day: date
    sessions: list[LogEntry] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.sessions)

    @property
    def focus_seconds(self) -> int:
        return sum(entry.duration_seconds for entry in self.sessions)

    @property
    def by_label(self) -> list[LabelTotal]:
        return totals_by_label(self.sessions)


@dataclass(frozen=True)
class Stats:
    days: int
    total_count: int
    total_seconds: int
    active_days: int
    by_label: list[LabelTotal]

    @property
    def average_per_day(self) -> float:
        """Average sessions per *active* day."""
        if self.active_days == 0:
            return 0.0
        return self.total_count / self.active_days

    @property
    def top_label(self) -> LabelTotal | None:
        return self.by_label[0] if self.by_label else None


def totals_by_label(entries: Iterable[LogEntry]) -> list[LabelTotal]:
    """Per-label session counts and focus seconds, most time first."""
    counts: Counter[str] = Counter()
    seconds: defaultdict[str, int] = defaultdict(int)
    for entry in _focus_entries(entries):
        counts[entry.label] += 1
        seconds[entry.label] += entry.duration_seconds
    totals = [LabelTotal(label, counts[label], seconds[label]) for label in counts]
    return sorted(totals, key=lambda total: (-total.seconds, total.label))


def summarize_day(entries: Iterable[LogEntry], day: date) -> DaySummary:
    wanted = day.isoformat()
    return DaySummary(day=day, sessions=[e for e in _focus_entries(entries) if e.date == wanted])


def _window(entries: Iterable[LogEntry], days: int, today: date) -> list[LogEntry]:
    if days <= 0:
        raise ValueError(f"days must be positive, got {days}")
    cutoff = (today - timedelta(days=days)).isoformat()
    return [entry for entry in _focus_entries(entries) if entry.date >= cutoff]


def history(entries: Iterable[LogEntry], days: int, today: date) -> list[DaySummary]:
    """One summary per day with completed work in the last *days* days, newest first."""
    per_day: defaultdict[str, list[LogEntry]] = defaultdict(list)
    for entry in _window(entries, days, today):
        per_day[entry.date].append(entry)
    return [
        DaySummary(day=date.fromisoformat(day), sessions=per_day[day])
        for day in sorted(per_day, reverse=True)
    ]


def stats(entries: Iterable[LogEntry], days: int, today: date) -> Stats:
    window = _window(entries, days, today)
    return Stats(
        days=days,
        total_count=len(window),
        total_seconds=sum(entry.duration_seconds for entry in window),
        active_days=len({entry.date for entry in window}),
        by_label=totals_by_label(window),
    )
