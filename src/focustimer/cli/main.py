"""CLI entry point for focustimer.

Uses Click to expose the ``focustimer`` command group with subcommands
that delegate to the SessionController.
"""

from __future__ import annotations

import logging
import signal
import sys
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from datetime import date
from pathlib import Path
from typing import Callable, Iterator, TypeVar

import click

import focustimer
from focustimer.config import ConfigError, TimerConfig, load_config, set_config_value
from focustimer.core.countdown import Outcome
from focustimer.core.interrupts import PauseRequests
from focustimer.core.report import format_duration, history, stats, summarize_day, totals_by_label
from focustimer.core.session import SessionController, SessionResult
from focustimer.core.session_log import SessionLog
from focustimer.core.store import SessionStore
from focustimer.core.timer import (
    DEFAULT_LABEL,
    DEFAULT_NAME,
    SessionKind,
    SessionRecord,
    TimerError,
    TimerState,
)
from focustimer.notify import DesktopNotifier

_DEFAULT_HOME = Path.home() / ".config" / "focustimer"
_CONFIG_FILE = "config.json"
_SESSIONS_DIR = "sessions"
_PAUSE_DIR = "pause"
_LOG_FILE = "sessions.csv"

T = TypeVar("T")


@dataclass(frozen=True)
class AppContext:
    home: Path

    @property
    def config_path(self) -> Path:
        return self.home / _CONFIG_FILE

    @property
    def log_path(self) -> Path:
        return self.home / _LOG_FILE


def format_remaining(seconds: int) -> str:
    """Format *seconds* as ``M:SS``."""
    return f"{seconds // 60}:{seconds % 60:02d}"


def _run(action: Callable[[], T]) -> T:
    """Execute *action*, converting engine and config errors to a CLI error.

    The message is printed to stderr and the process exits with code 1.
    """
    try:
        return action()
    except (TimerError, ConfigError) as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)


def _render_progress(name: str, remaining_seconds: int) -> None:
    click.echo(f"\r  {format_remaining(remaining_seconds)} remaining   ", nl=False)


def _load_config(app: AppContext) -> TimerConfig:
    return _run(lambda: load_config(app.config_path))


def _make_controller(app: AppContext, config: TimerConfig) -> SessionController:
    return SessionController(
        SessionStore(app.home / _SESSIONS_DIR),
        SessionLog(app.log_path),
        pause_requests=PauseRequests(app.home / _PAUSE_DIR),
        notifier=DesktopNotifier(
            desktop=config.desktop_notification, sound=config.sound_enabled
        ),
        config=config,
        on_progress=_render_progress,
    )


@contextmanager
def _pause_on_interrupt(controller: SessionController, name: str) -> Iterator[None]:
    """Turn Ctrl+C into a pause request for *name* while the countdown runs."""

    def _handler(signum: int, frame: object) -> None:
        controller.request_pause(name)

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _countdown(
    controller: SessionController, name: str, action: Callable[[], SessionResult]
) -> SessionResult:
    with _pause_on_interrupt(controller, name):
        result = _run(action)
    click.echo("")
    return result


def _describe(record: SessionRecord) -> str:
    suffix = " (paused)" if record.state is TimerState.PAUSED else ""
    return (
        f"{record.name}: {record.kind.title} {format_remaining(record.remaining_seconds)} "
        f"remaining{suffix} [{record.label}]"
    )


def _finish(
    controller: SessionController, result: SessionResult, name: str, label: str
) -> None:
    """Report how a countdown ended and offer the suggested break."""
    record = result.record
    if result.outcome is Outcome.PAUSED:
        click.echo(f"Timer paused with {format_remaining(record.remaining_seconds)} remaining.")
        click.echo(f"Resume with: focustimer resume -n {name}")
        return
    if result.outcome is Outcome.STOPPED:
        click.echo("Timer stopped. Session was not logged.")
        return

    click.echo(f"{record.kind.title} complete!")
    if result.next_break is None:
        return
    click.echo(f"Pomodoro #{result.completed_today} completed today.")
    next_break = result.next_break
    if next_break is SessionKind.LONG_BREAK:
        click.echo(
            f"You've completed {controller.config.sessions_until_long_break} sessions! "
            "Time for a long break."
        )
    break_name = next_break.title.lower()
    if controller.config.auto_start_break or click.confirm(f"Start {break_name}?", default=True):
        planned = controller.config.duration_for(next_break)
        click.echo(f"Starting {break_name}: {format_remaining(planned)}")
        break_result = _countdown(
            controller, name, lambda: controller.start(name, kind=next_break, label=label)
        )
        _finish(controller, break_result, name, label)
    else:
        click.echo(f"Ready for another pomodoro? Run: focustimer start {label}")


name_option = click.option(
    "-n", "--name", default=DEFAULT_NAME, show_default=True, help="Timer name."
)


@click.group()
@click.version_option(version=focustimer.__version__, prog_name="focustimer")
@click.option(
    "--home",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="FOCUSTIMER_HOME",
    default=None,
    help="Data directory (default: ~/.config/focustimer).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, home: Path | None, verbose: bool) -> None:
    """focustimer: a crash-safe focus interval timer."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = AppContext(home=home if home is not None else _DEFAULT_HOME)


@cli.command()
@click.argument("label", default=DEFAULT_LABEL)
@name_option
@click.option("-m", "--minutes", type=click.IntRange(min=1), help="Work duration in minutes.")
@click.option("--seconds", type=click.IntRange(min=1), help="Work duration in seconds.")
@click.pass_obj
def start(app: AppContext, label: str, name: str, minutes: int | None, seconds: int | None) -> None:
    """Start a work interval tagged LABEL."""
    config = _load_config(app)
    controller = _make_controller(app, config)
    duration = seconds if seconds is not None else (minutes * 60 if minutes is not None else None)
    planned = duration if duration is not None else config.work_duration_seconds
    click.echo(f"Starting work on '{label}': {format_remaining(planned)} (Ctrl+C to pause)")
    result = _countdown(
        controller,
        name,
        lambda: controller.start(name, kind=SessionKind.WORK, duration_seconds=duration, label=label),
    )
    _finish(controller, result, name, label)


@cli.command(name="break")
@click.argument("length", type=click.Choice(["short", "long"]), default="short")
@name_option
@click.pass_obj
def take_break(app: AppContext, length: str, name: str) -> None:
    """Start a short or long break."""
    config = _load_config(app)
    controller = _make_controller(app, config)
    kind = SessionKind.LONG_BREAK if length == "long" else SessionKind.SHORT_BREAK
    click.echo(f"Starting {kind.title.lower()}: {format_remaining(config.duration_for(kind))}")
    result = _countdown(controller, name, lambda: controller.start(name, kind=kind, label="break"))
    _finish(controller, result, name, "break")


@cli.command()
@name_option
@click.pass_obj
def pause(app: AppContext, name: str) -> None:
    """Pause a running timer."""
    controller = _make_controller(app, _load_config(app))
    _run(lambda: controller.pause(name))
    click.echo(f"Pause signal sent to '{name}'.")


@cli.command()
@name_option
@click.pass_obj
def resume(app: AppContext, name: str) -> None:
    """Resume a paused timer."""
    controller = _make_controller(app, _load_config(app))
    record = _run(lambda: controller.status(name))
    click.echo(f"Resuming '{name}': {format_remaining(record.remaining_seconds)} remaining")
    result = _countdown(controller, name, lambda: controller.resume(name))
    _finish(controller, result, name, record.label)


@cli.command()
@name_option
@click.pass_obj
def stop(app: AppContext, name: str) -> None:
    """Stop a timer early without logging it."""
    controller = _make_controller(app, _load_config(app))
    removed = _run(lambda: controller.stop(name))
    if removed is None:
        click.echo(f"No active timer named '{name}'.")
        return
    click.echo(f"Stopped '{name}' [{removed.label}]. Session was not logged.")


@cli.command()
@click.option("-n", "--name", default=None, help="Show only this timer.")
@click.pass_obj
def status(app: AppContext, name: str | None) -> None:
    """Show active and paused timers."""
    controller = _make_controller(app, _load_config(app))
    if name is not None:
        click.echo(_describe(_run(lambda: controller.status(name))))
        return
    records = _run(controller.active)
    if not records:
        click.echo("No active timers")
        sys.exit(1)
    for record in records:
        click.echo(_describe(record))


@cli.command()
@click.pass_obj
def today(app: AppContext) -> None:
    """Show today's completed work sessions."""
    summary = summarize_day(SessionLog(app.log_path).entries(), date.today())
    if not summary.count:
        click.echo("No completed pomodoros today.")
        return
    click.echo(f"Completed: {summary.count} pomodoros")
    click.echo(f"Focus time: {format_duration(summary.focus_seconds)}")
    click.echo("")
    click.echo("Sessions:")
    for entry in summary.sessions:
        click.echo(f"  {entry.time_of_day} - {entry.label} ({format_duration(entry.duration_seconds)})")
    click.echo("")
    click.echo("By label:")
    for total in summary.by_label:
        click.echo(f"  {total.label:<20} {format_duration(total.seconds)}")


@cli.command(name="history")
@click.argument("days", type=click.IntRange(min=1), default=7)
@click.pass_obj
def show_history(app: AppContext, days: int) -> None:
    """Show completed sessions per day for the last DAYS days."""
    summaries = history(SessionLog(app.log_path).entries(), days, date.today())
    if not summaries:
        click.echo(f"No pomodoros completed in the last {days} days.")
        return
    for summary in summaries:
        click.echo(
            f"  {summary.day.isoformat()}: {summary.count} pomodoros "
            f"({format_duration(summary.focus_seconds)} focus time)"
        )


@cli.command(name="stats")
@click.argument("days", type=click.IntRange(min=1), default=7)
@click.pass_obj
def show_stats(app: AppContext, days: int) -> None:
    """Show statistics for the last DAYS days."""
    result = stats(SessionLog(app.log_path).entries(), days, date.today())
    if not result.total_count:
        click.echo(f"No pomodoros completed in the last {days} days.")
        return
    click.echo(f"Total pomodoros:   {result.total_count}")
    click.echo(f"Total focus time:  {format_duration(result.total_seconds)}")
    click.echo(f"Active days:       {result.active_days}")
    click.echo(f"Average per day:   {result.average_per_day:.1f} pomodoros")
    top = result.top_label
    if top is not None:
        click.echo(f"Top label:         {top.label} ({format_duration(top.seconds)})")
    click.echo("")
    click.echo("Time by label:")
    for total in result.by_label:
        click.echo(f"  {total.label:<20} {total.sessions} sessions, {format_duration(total.seconds)}")


@cli.command()
@click.pass_obj
def projects(app: AppContext) -> None:
    """List every label with its total focus time."""
    totals = totals_by_label(SessionLog(app.log_path).entries())
    if not totals:
        click.echo("No projects yet.")
        return
    for total in sorted(totals, key=lambda t: t.label):
        click.echo(f"  {total.label:<20} {total.sessions} pomodoros, {format_duration(total.seconds)}")


@cli.command()
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.pass_obj
def config(app: AppContext, key: str | None, value: str | None) -> None:
    """View or set configuration values."""
    current = _load_config(app)
    if key is None:
        for setting, setting_value in asdict(current).items():
            click.echo(f"  {setting}: {_format_setting(setting_value)}")
        return
    if value is None:
        if not hasattr(current, key):
            click.echo(f"Unknown setting '{key}'", err=True)
            sys.exit(1)
        click.echo(f"{key}: {_format_setting(getattr(current, key))}")
        return
    updated = _run(lambda: set_config_value(app.config_path, key, value))
    click.echo(f"Set {key} = {_format_setting(getattr(updated, key))}")


def _format_setting(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)