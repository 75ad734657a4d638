"""Session -- runs one command against the persisted timer record."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from pomodoro.core import storage
from pomodoro.core.duration import format_duration, parse_duration
from pomodoro.core.timer import (
    DEFAULT_TIMER_DURATION,
    Clock,
    InvalidStateError,
    TimerRecord,
    TimerState,
    system_clock,
)

logger = logging.getLogger(__name__)


class InvalidDurationError(ValueError):
    """Raised when a duration string does not describe a positive duration."""


@dataclass(frozen=True)
class Status:
    """Result of ``Session.status()``."""

    message: str
    exit_code: int
    # True only on the invocation that observed the timer running out
    should_alert: bool = False


def _format_remaining(seconds: int) -> str:
    """Format a possibly negative remaining time."""
    if seconds < 0:
        return f"{format_duration(-seconds)} overdue"
    return f"{format_duration(seconds)} remaining"


class Session:
    """Loads, mutates and saves the timer record for a single command.

    Every mutating command holds the advisory lock from load to save, so
    concurrent invocations are serialized rather than last-writer-wins.
    """

    def __init__(self, state_file: Path | None = None, clock: Clock = system_clock) -> None:
        self._state_file: Path = (
            state_file if state_file is not None else storage.default_state_file()
        )
        self._clock = clock

    @property
    def state_file(self) -> Path:
        return self._state_file

    # -- public API ----------------------------------------------------------

    def start(self, duration: str | None = None, silent: bool = False, notify: bool = False) -> str:
        """Start a timer, or resume a paused one when no *duration* is given.

        Raises :class:`InvalidDurationError` if *duration* parses to zero and
        :class:`InvalidStateError` if a timer is already running.
        """
        seconds = None
        if duration is not None:
            seconds = parse_duration(duration)
            if seconds <= 0:
                raise InvalidDurationError(f"invalid duration: {duration!r}")

        with storage.locked(self._state_file):
            record = self._load()
            if record.is_running():
                raise InvalidStateError("start() is not valid from Running state")
            fresh = not TimerRecord.exists(self._state_file)
            if seconds is not None:
                record.reconfigure(seconds, silent=silent, notify=notify)
            elif fresh or record.state == TimerState.FINISHED:
                record.reconfigure(DEFAULT_TIMER_DURATION, silent=silent, notify=notify)
            record.start()
            record.save(self._state_file)

        logger.info("Started timer for %d seconds", record.duration)
        return f"Timer started: {_format_remaining(record.remaining_seconds())}"

    def pause(self) -> str:
        """Pause the running timer."""
        with storage.locked(self._state_file):
            record = self._load_existing("pause")
            if self._expire_if_due(record):
                record.save(self._state_file)
            record.pause()
            record.save(self._state_file)
        return f"Timer paused: {_format_remaining(record.remaining_seconds())}"

    def resume(self) -> str:
        """Resume a paused timer."""
        with storage.locked(self._state_file):
            record = self._load_existing("resume")
            record.start()
            record.save(self._state_file)
        return f"Timer resumed: {_format_remaining(record.remaining_seconds())}"

    def finish(self) -> str:
        """Mark the timer finished."""
        with storage.locked(self._state_file):
            record = self._load_existing("finish")
            record.finish()
            record.save(self._state_file)
        return f"Timer finished: {format_duration(record.duration)}"

    def stop(self) -> str:
        """Discard the timer record."""
        with storage.locked(self._state_file):
            if not TimerRecord.exists(self._state_file):
                return "No active timer"
            TimerRecord.delete(self._state_file)
        logger.info("Removed %s", self._state_file)
        return "Timer stopped"

    def status(self) -> Status:
        """Describe the timer, finishing it first if it has run out."""
        with storage.locked(self._state_file):
            if not TimerRecord.exists(self._state_file):
                return Status("No active timer", 1)
            record = self._load()
            just_finished = self._expire_if_due(record)
            if just_finished:
                record.save(self._state_file)

        if record.state == TimerState.FINISHED:
            flags = " (notify)" if record.notify else ""
            return Status(
                f"Timer finished: {format_duration(record.duration)}{flags}",
                1,
                should_alert=just_finished and not record.silent,
            )
        message = _format_remaining(record.remaining_seconds())
        if record.state == TimerState.PAUSED:
            message += " (paused)"
        return Status(message, 0)

    # -- private helpers -----------------------------------------------------

    def _load(self) -> TimerRecord:
        return TimerRecord.load(self._state_file, clock=self._clock)

    def _load_existing(self, method: str) -> TimerRecord:
        """Load the record, refusing to act on a timer that was never created."""
        if not TimerRecord.exists(self._state_file):
            raise InvalidStateError(f"{method}() is not valid: no active timer")
        return self._load()

    @staticmethod
    def _expire_if_due(record: TimerRecord) -> bool:
        """Finish a running record whose time is up; return True if it changed."""
        if record.is_running() and record.remaining_seconds() <= 0:
            record.finish()
            return True
        return False
