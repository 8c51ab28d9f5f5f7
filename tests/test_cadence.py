"""Tests for the break cadence policy."""

import pytest

from focustimer.core.cadence import next_break_kind
from focustimer.core.timer import SessionKind


class TestNextBreakKind:
    """Every Nth completed work session of the day earns a long break."""

    @pytest.mark.parametrize("count", range(0, 17))
    def test_every_fourth_session_is_long(self, count: int) -> None:
        expected = SessionKind.LONG_BREAK if count > 0 and count % 4 == 0 else SessionKind.SHORT_BREAK
        assert next_break_kind(count, 4) is expected

    def test_zero_completed_is_short(self) -> None:
        assert next_break_kind(0, 4) is SessionKind.SHORT_BREAK

    @pytest.mark.parametrize("count", [0, 1, 4, 8, 100])
    def test_disabled_when_zero(self, count: int) -> None:
        assert next_break_kind(count, 0) is SessionKind.SHORT_BREAK

    @pytest.mark.parametrize("count", [1, 4, 12])
    def test_disabled_when_negative(self, count: int) -> None:
        assert next_break_kind(count, -3) is SessionKind.SHORT_BREAK

    @pytest.mark.parametrize("count", [1, 2, 3])
    def test_every_session_long_when_one(self, count: int) -> None:
        assert next_break_kind(count, 1) is SessionKind.LONG_BREAK
