"""Tests for session kinds, timer states, errors and the session record."""

import pytest

from focustimer.core.timer import (
    AlreadyActiveError,
    CorruptRecordError,
    NotFoundError,
    NotPausedError,
    SessionKind,
    SessionRecord,
    TimerError,
    TimerState,
)


def _record(**overrides) -> SessionRecord:
    values = {
        "session_id": "abc123",
        "name": "coding",
        "kind": SessionKind.WORK,
        "planned_duration_seconds": 1500,
        "elapsed_seconds": 0,
        "state": TimerState.RUNNING,
        "started_at": 1_000_000.0,
        "updated_at": 1_000_000.0,
        "label": "refactor",
        "owner_pid": 42,
    }
    values.update(overrides)
    return SessionRecord(**values)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class TestSessionKind:
    """SessionKind values double as the on-disk representation."""

    def test_values_match_log_types(self) -> None:
        assert SessionKind.WORK.value == "work"
        assert SessionKind.SHORT_BREAK.value == "short_break"
        assert SessionKind.LONG_BREAK.value == "long_break"

    def test_title(self) -> None:
        assert SessionKind.WORK.title == "Work"
        assert SessionKind.LONG_BREAK.title == "Long break"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestSessionRecordValidation:
    """A record can never hold elapsed time outside [0, planned]."""

    def test_valid_record(self) -> None:
        record = _record(elapsed_seconds=10)
        assert record.remaining_seconds == 1490
        assert not record.is_finished

    def test_finished_when_elapsed_equals_planned(self) -> None:
        assert _record(elapsed_seconds=1500).is_finished

    def test_zero_duration_raises_value_error(self) -> None:
        with pytest.raises(ValueError):
            _record(planned_duration_seconds=0)

    def test_negative_duration_raises_value_error(self) -> None:
        with pytest.raises(ValueError):
            _record(planned_duration_seconds=-5)

    def test_non_integer_duration_raises_type_error(self) -> None:
        with pytest.raises(TypeError):
            _record(planned_duration_seconds=25.5)

    def test_bool_duration_raises_type_error(self) -> None:
        with pytest.raises(TypeError):
            _record(planned_duration_seconds=True)

    def test_elapsed_beyond_planned_raises(self) -> None:
        with pytest.raises(ValueError):
            _record(elapsed_seconds=1501)

    def test_negative_elapsed_raises(self) -> None:
        with pytest.raises(ValueError):
            _record(elapsed_seconds=-1)

    def test_empty_name_raises(self) -> None:
        with pytest.raises(ValueError):
            _record(name="")

    def test_evolve_revalidates(self) -> None:
        record = _record()
        with pytest.raises(ValueError):
            record.evolve(elapsed_seconds=2000)

    def test_evolve_returns_copy(self) -> None:
        record = _record()
        paused = record.evolve(state=TimerState.PAUSED)
        assert paused.state is TimerState.PAUSED
        assert record.state is TimerState.RUNNING


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


class TestSessionRecordSerialization:
    """to_dict()/from_dict() use plain JSON types."""

    def test_to_dict_uses_enum_values(self) -> None:
        data = _record(elapsed_seconds=10).to_dict()
        assert data["kind"] == "work"
        assert data["state"] == "running"
        assert data["elapsed_seconds"] == 10
        assert data["label"] == "refactor"

    def test_from_dict_restores_record(self) -> None:
        record = _record(elapsed_seconds=10, state=TimerState.PAUSED)
        assert SessionRecord.from_dict(record.to_dict()) == record

    def test_from_dict_defaults_optional_fields(self) -> None:
        data = _record().to_dict()
        del data["label"]
        del data["owner_pid"]
        record = SessionRecord.from_dict(data)
        assert record.label == "general"
        assert record.owner_pid == 0

    def test_missing_key_is_corrupt(self) -> None:
        data = _record().to_dict()
        del data["elapsed_seconds"]
        with pytest.raises(CorruptRecordError):
            SessionRecord.from_dict(data)

    def test_unknown_kind_is_corrupt(self) -> None:
        data = _record().to_dict()
        data["kind"] = "nap"
        with pytest.raises(CorruptRecordError):
            SessionRecord.from_dict(data)

    def test_out_of_range_elapsed_is_corrupt(self) -> None:
        data = _record().to_dict()
        data["elapsed_seconds"] = 9999
        with pytest.raises(CorruptRecordError):
            SessionRecord.from_dict(data)

    def test_non_object_is_corrupt(self) -> None:
        with pytest.raises(CorruptRecordError):
            SessionRecord.from_dict(["not", "a", "record"])


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    """Every engine error shares the TimerError base and names the timer."""

    @pytest.mark.parametrize("error_cls", [AlreadyActiveError, NotFoundError, NotPausedError])
    def test_errors_are_timer_errors(self, error_cls: type) -> None:
        error = error_cls("coding")
        assert isinstance(error, TimerError)
        assert error.name == "coding"
        assert "coding" in str(error)

    def test_already_active_message_says_so(self) -> None:
        assert "already active" in str(AlreadyActiveError("coding"))
