"""Timer core: session kinds, timer states, errors and the session record."""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any

DEFAULT_NAME = "default"
DEFAULT_LABEL = "general"


class SessionKind(Enum):
    """What a timed interval is for."""

    WORK = "work"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"

    @property
    def title(self) -> str:
        return self.value.replace("_", " ").capitalize()


class TimerState(Enum):
    """Possible states of a persisted session record."""

    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


class TimerError(Exception):
    """Base class for every error the session engine surfaces to callers."""


class AlreadyActiveError(TimerError):
    """Raised by ``start()`` while a record already exists for the name."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Timer '{name}' is already active; resume it or stop it first"
        )
        self.name = name


class NotFoundError(TimerError):
    """Raised when an operation targets a name with no persisted record."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No active timer named '{name}'")
        self.name = name


class NotPausedError(TimerError):
    """Raised by ``resume()`` when the countdown is still running."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Timer '{name}' is running, not paused")
        self.name = name


class PersistenceWriteError(TimerError):
    """Raised when the durable store rejects a write."""


class CorruptRecordError(TimerError):
    """Raised when a persisted document cannot be turned back into a record."""


def _require_duration(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{field} must be an integer, got {type(value).__name__}")
    if value <= 0:
        raise ValueError(f"{field} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class SessionRecord:
    """Serializable state of one named timer.

    ``started_at`` is the wall-clock time of the most recent entry into
    RUNNING.  ``updated_at`` is the time of the last persisted write and
    doubles as the countdown's heartbeat.  ``owner_pid`` is the process
    driving the countdown, or ``0`` when none is.
    """

    session_id: str
    name: str
    kind: SessionKind
    planned_duration_seconds: int
    elapsed_seconds: int
    state: TimerState
    started_at: float
    updated_at: float
    label: str = DEFAULT_LABEL
    owner_pid: int = 0

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("name must not be empty")
        _require_duration(self.planned_duration_seconds, "planned_duration_seconds")
        if isinstance(self.elapsed_seconds, bool) or not isinstance(self.elapsed_seconds, int):
            raise TypeError(
                f"elapsed_seconds must be an integer, got {type(self.elapsed_seconds).__name__}"
            )
        if not (0 <= self.elapsed_seconds <= self.planned_duration_seconds):
            raise ValueError(
                f"elapsed_seconds must be between 0 and {self.planned_duration_seconds}, "
                f"got {self.elapsed_seconds}"
            )

    @property
    def remaining_seconds(self) -> int:
        return self.planned_duration_seconds - self.elapsed_seconds

    @property
    def is_finished(self) -> bool:
        return self.elapsed_seconds >= self.planned_duration_seconds

    def evolve(self, **changes: Any) -> SessionRecord:
        """Return a copy with *changes* applied (validation runs again)."""
        return replace(self, **changes)

    # -- serialization -------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        data["state"] = self.state.value
        return data

    @classmethod
    def from_dict(cls, data: Any) -> SessionRecord:
        """Rebuild a record from :meth:`to_dict` output.

        Raises :class:`CorruptRecordError` for anything that is not a valid
        record document.
        """
        if not isinstance(data, dict):
            raise CorruptRecordError(f"expected a JSON object, got {type(data).__name__}")
        try:
            return cls(
                session_id=str(data["session_id"]),
                name=str(data["name"]),
                kind=SessionKind(data["kind"]),
                planned_duration_seconds=data["planned_duration_seconds"],
                elapsed_seconds=data["elapsed_seconds"],
                state=TimerState(data["state"]),
                started_at=float(data["started_at"]),
                updated_at=float(data["updated_at"]),
                label=str(data.get("label", DEFAULT_LABEL)),
                owner_pid=int(data.get("owner_pid", 0)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise CorruptRecordError(f"invalid session record: {exc}") from exc
