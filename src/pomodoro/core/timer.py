"""Timer record -- the persisted state machine behind every command.

One record exists per installation.  Each command loads it, optionally
applies a transition, and saves it back; nothing stays in memory between
invocations.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Mapping

from pomodoro.core import storage
from pomodoro.core.storage import StorageError

logger = logging.getLogger(__name__)

DEFAULT_TIMER_DURATION = 25 * 60

Clock = Callable[[], int]


def system_clock() -> int:
    """Return the current wall-clock time in whole seconds since the epoch."""
    return int(time.time())


class TimerState(Enum):
    """Possible states of the timer."""

    RUNNING = "Running"
    PAUSED = "Paused"
    FINISHED = "Finished"


class InvalidStateError(Exception):
    """Raised when an invalid state transition is attempted."""


_INT_FIELDS = ("start_time", "pause_time", "duration")
_OPTIONAL_FLAGS = ("silent", "notify")


@dataclass
class TimerRecord:
    """Persisted timer state plus the time arithmetic built on it.

    ``clock`` supplies "now" for elapsed-time calculations and is not part
    of the stored record.
    """

    state: TimerState
    start_time: int
    pause_time: int
    duration: int
    silent: bool = False
    notify: bool = False
    clock: Clock = field(default=system_clock, repr=False, compare=False)

    # -- construction --------------------------------------------------------

    @classmethod
    def default(cls, clock: Clock = system_clock) -> TimerRecord:
        """Return the zero-state record: paused, 25 minutes, nothing elapsed."""
        now = clock()
        return cls(
            state=TimerState.PAUSED,
            start_time=now,
            pause_time=now,
            duration=DEFAULT_TIMER_DURATION,
            clock=clock,
        )

    @classmethod
    def from_dict(cls, data: Any, clock: Clock = system_clock) -> TimerRecord:
        """Build a record from decoded JSON, validating the schema.

        Missing ``silent``/``notify`` flags default to ``False`` and unknown
        keys are ignored; anything else malformed raises ``StorageError``.
        """
        if not isinstance(data, Mapping):
            raise StorageError(f"expected a JSON object, got {type(data).__name__}")

        try:
            state = TimerState(data["state"])
        except KeyError:
            raise StorageError("missing field 'state'") from None
        except (TypeError, ValueError):
            raise StorageError(f"unknown timer state {data['state']!r}") from None

        values: dict[str, Any] = {}
        for name in _INT_FIELDS:
            if name not in data:
                raise StorageError(f"missing field {name!r}")
            value = data[name]
            # bool is an int subclass but never a valid timestamp
            if isinstance(value, bool) or not isinstance(value, int):
                raise StorageError(f"field {name!r} must be an integer, got {value!r}")
            values[name] = value
        for name in _OPTIONAL_FLAGS:
            value = data.get(name, False)
            if not isinstance(value, bool):
                raise StorageError(f"field {name!r} must be a boolean, got {value!r}")
            values[name] = value

        return cls(state=state, clock=clock, **values)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-serializable form of the record."""
        return {
            "state": self.state.value,
            "start_time": self.start_time,
            "pause_time": self.pause_time,
            "duration": self.duration,
            "silent": self.silent,
            "notify": self.notify,
        }

    # -- persistence ---------------------------------------------------------

    @classmethod
    def load(cls, path: Path, clock: Clock = system_clock) -> TimerRecord:
        """Load the record at *path*, or the default record if there is none.

        A missing file is not created.  A file that is present but unreadable
        or corrupt raises ``StorageError`` rather than falling back to the
        default, which would silently discard a running timer.
        """
        if not cls.exists(path):
            logger.debug("No state file at %s; using default record", path)
            return cls.default(clock)
        try:
            data = storage.read_json(path)
        except OSError as exc:
            raise StorageError(f"cannot read {path}: {exc}") from exc
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise StorageError(f"corrupt state file {path}: {exc}") from exc
        try:
            record = cls.from_dict(data, clock)
        except StorageError as exc:
            raise StorageError(f"invalid state file {path}: {exc}") from exc
        logger.debug("Loaded %r from %s", record, path)
        return record

    def save(self, path: Path) -> None:
        """Overwrite the record at *path* atomically."""
        try:
            storage.write_json_atomic(path, self.to_dict())
        except OSError as exc:
            raise StorageError(f"cannot write {path}: {exc}") from exc

    @staticmethod
    def delete(path: Path) -> None:
        """Remove the record at *path*; a missing file is not an error."""
        try:
            storage.remove(path)
        except OSError as exc:
            raise StorageError(f"cannot remove {path}: {exc}") from exc

    @staticmethod
    def exists(path: Path) -> bool:
        """Return True if a record has been saved at *path*."""
        try:
            return path.exists()
        except OSError as exc:
            raise StorageError(f"cannot access {path}: {exc}") from exc

    # -- time arithmetic -----------------------------------------------------

    def is_running(self) -> bool:
        """Return True if the timer is counting down."""
        return self.state == TimerState.RUNNING

    def elapsed_seconds(self) -> int:
        """Return the seconds used up against ``duration``.

        Frozen while paused, pinned to ``duration`` once finished, and never
        negative while running even if ``start_time`` lies in the future.
        """
        if self.state == TimerState.FINISHED:
            return self.duration
        if self.state == TimerState.PAUSED:
            return self.pause_time - self.start_time
        return max(0, self.clock() - self.start_time)

    def remaining_seconds(self) -> int:
        """Return ``duration - elapsed``; negative once the timer is overdue."""
        return self.duration - self.elapsed_seconds()

    # -- transitions ---------------------------------------------------------

    def start(self) -> None:
        """Start or resume a paused timer, keeping the time already elapsed."""
        self._require_state("start", frozenset({TimerState.PAUSED}))
        now = self.clock()
        self.start_time = now - self.elapsed_seconds()
        self.state = TimerState.RUNNING
        logger.debug("Timer running from %d", self.start_time)

    def pause(self) -> None:
        """Freeze the elapsed time of a running timer."""
        self._require_state("pause", frozenset({TimerState.RUNNING}))
        self.pause_time = self.clock()
        self.state = TimerState.PAUSED
        logger.debug("Timer paused at %d", self.pause_time)

    def finish(self) -> None:
        """Mark the timer finished; elapsed time becomes ``duration``."""
        self._require_state("finish", frozenset({TimerState.RUNNING, TimerState.PAUSED}))
        self.state = TimerState.FINISHED
        logger.debug("Timer finished")

    def reconfigure(self, duration: int, silent: bool = False, notify: bool = False) -> None:
        """Replace the duration and flags and reset to a fresh paused timer."""
        if duration <= 0:
            raise ValueError(f"duration must be positive, got {duration}")
        now = self.clock()
        self.state = TimerState.PAUSED
        self.start_time = now
        self.pause_time = now
        self.duration = duration
        self.silent = silent
        self.notify = notify
        logger.debug("Timer reconfigured for %d seconds", duration)

    # -- private helpers -----------------------------------------------------

    def _require_state(self, method: str, valid: frozenset[TimerState]) -> None:
        """Raise ``InvalidStateError`` if the current state is not in *valid*."""
        if self.state not in valid:
            raise InvalidStateError(f"{method}() is not valid from {self.state.value} state")
