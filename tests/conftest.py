"""Shared pytest fixtures for focustimer tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from focustimer.config import TimerConfig
from focustimer.core.interrupts import PauseRequests
from focustimer.core.session import SessionController
from focustimer.core.session_log import SessionLog
from focustimer.core.store import SessionStore
from helpers import FakeClock


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(tmp_path: Path) -> SessionStore:
    return SessionStore(tmp_path / "sessions")


@pytest.fixture()
def session_log(tmp_path: Path) -> SessionLog:
    return SessionLog(tmp_path / "sessions.csv")


@pytest.fixture()
def pause_requests() -> PauseRequests:
    return PauseRequests()


@pytest.fixture()
def make_controller(
    store: SessionStore,
    session_log: SessionLog,
    clock: FakeClock,
    pause_requests: PauseRequests,
) -> Callable[..., SessionController]:
    """Factory for controllers sharing the test's store, log, clock and flags."""

    def _make(**overrides: Any) -> SessionController:
        kwargs: dict[str, Any] = {
            "clock": clock,
            "pause_requests": pause_requests,
            "config": TimerConfig(),
        }
        kwargs.update(overrides)
        return SessionController(store, session_log, **kwargs)

    return _make
