"""Tests for the pomodoro CLI layer.

Most tests mock ``Session`` so the command surface is checked
independently of the session manager; the last class runs real
commands against a temporary state file.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import click.testing
import pytest

from pomodoro.cli.main import cli
from pomodoro.core.session import InvalidDurationError, Status
from pomodoro.core.timer import InvalidStateError, StorageError


@pytest.fixture()
def runner() -> click.testing.CliRunner:
    """Return a Click CliRunner for invoking CLI commands."""
    return click.testing.CliRunner()


# ---------------------------------------------------------------------------
# pomodoro start
# ---------------------------------------------------------------------------


class TestStartCommand:
    """Tests for ``pomodoro start [duration]``."""

    @patch("pomodoro.cli.main.Session")
    def test_start_success(
        self, mock_session_cls: MagicMock, runner: click.testing.CliRunner
    ) -> None:
        mock_session_cls.return_value.start.return_value = "Timer started: 30m 0s remaining"
        result = runner.invoke(cli, ["start", "30m"])
        assert result.exit_code == 0
        assert "Timer started: 30m 0s remaining" in result.output
        mock_session_cls.return_value.start.assert_called_once_with(
            "30m", silent=False, notify=False
        )

    @patch("pomodoro.cli.main.Session")
    def test_start_without_duration(
        self, mock_session_cls: MagicMock, runner: click.testing.CliRunner
    ) -> None:
        mock_session_cls.return_value.start.return_value = "Timer started: 25m 0s remaining"
        result = runner.invoke(cli, ["start"])
        assert result.exit_code == 0
        mock_session_cls.return_value.start.assert_called_once_with(
            None, silent=False, notify=False
        )

    @patch("pomodoro.cli.main.Session")
    def test_start_flags(
        self, mock_session_cls: MagicMock, runner: click.testing.CliRunner
    ) -> None:
        mock_session_cls.return_value.start.return_value = "ok"
        result = runner.invoke(cli, ["start", "1h 30m", "--silent", "--notify"])
        assert result.exit_code == 0
        mock_session_cls.return_value.start.assert_called_once_with(
            "1h 30m", silent=True, notify=True
        )

    @patch("pomodoro.cli.main.Session")
    def test_start_invalid_duration(
        self, mock_session_cls: MagicMock, runner: click.testing.CliRunner
    ) -> None:
        mock_session_cls.return_value.start.side_effect = InvalidDurationError(
            "invalid duration: 'soon'"
        )
        result = runner.invoke(cli, ["start", "soon"])
        assert result.exit_code == 1
        assert "invalid duration: 'soon'" in result.output

    @patch("pomodoro.cli.main.Session")
    def test_start_invalid_state_error(
        self, mock_session_cls: MagicMock, runner: click.testing.CliRunner
    ) -> None:
        """When Session.start raises InvalidStateError, print to stderr and exit 1."""
        mock_session_cls.return_value.start.side_effect = InvalidStateError(
            "start() is not valid from Running state"
        )
        result = runner.invoke(cli, ["start", "10"])
        assert result.exit_code == 1
        assert "start() is not valid from Running state" in result.output


# ---------------------------------------------------------------------------
# pomodoro status
# ---------------------------------------------------------------------------


class TestStatusCommand:
    """Tests for ``pomodoro status``."""

    @patch("pomodoro.cli.main.Session")
    def test_status_active(
        self, mock_session_cls: MagicMock, runner: click.testing.CliRunner
    ) -> None:
        mock_session_cls.return_value.status.return_value = Status("7m 34s remaining", 0)
        result = runner.invoke(cli, ["status"])
        assert result.exit_code == 0
        assert result.output == "7m 34s remaining\n"

    @patch("pomodoro.cli.main.Session")
    def test_status_no_timer(
        self, mock_session_cls: MagicMock, runner: click.testing.CliRunner
    ) -> None:
        mock_session_cls.return_value.status.return_value = Status("No active timer", 1)
        result = runner.invoke(cli, ["status"])
        assert result.exit_code == 1
        assert "No active timer" in result.output

    @patch("pomodoro.cli.main.Session")
    def test_status_rings_bell_when_alerting(
        self, mock_session_cls: MagicMock, runner: click.testing.CliRunner
    ) -> None:
        mock_session_cls.return_value.status.return_value = Status(
            "Timer finished: 25m 0s", 1, should_alert=True
        )
        result = runner.invoke(cli, ["status"])
        assert result.output.endswith("\a")

    @patch("pomodoro.cli.main.Session")
    def test_status_storage_error(
        self, mock_session_cls: MagicMock, runner: click.testing.CliRunner
    ) -> None:
        mock_session_cls.return_value.status.side_effect = StorageError("corrupt state file")
        result = runner.invoke(cli, ["status"])
        assert result.exit_code == 1
        assert "corrupt state file" in result.output


# ---------------------------------------------------------------------------
# pomodoro pause / resume / finish / stop
# ---------------------------------------------------------------------------


class TestSimpleCommands:
    """Commands that take no arguments and echo the session's message."""

    @pytest.mark.parametrize("command", ["pause", "resume", "finish", "stop"])
    @patch("pomodoro.cli.main.Session")
    def test_success(
        self, mock_session_cls: MagicMock, command: str, runner: click.testing.CliRunner
    ) -> None:
        getattr(mock_session_cls.return_value, command).return_value = f"{command} done"
        result = runner.invoke(cli, [command])
        assert result.exit_code == 0
        assert f"{command} done" in result.output

    @pytest.mark.parametrize("command", ["pause", "resume", "finish"])
    @patch("pomodoro.cli.main.Session")
    def test_invalid_state_error(
        self, mock_session_cls: MagicMock, command: str, runner: click.testing.CliRunner
    ) -> None:
        getattr(mock_session_cls.return_value, command).side_effect = InvalidStateError(
            f"{command}() is not valid: no active timer"
        )
        result = runner.invoke(cli, [command])
        assert result.exit_code == 1
        assert f"{command}() is not valid: no active timer" in result.output


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------


class TestGlobalOptions:
    """Tests for ``--state-file`` and ``--version``."""

    @patch("pomodoro.cli.main.Session")
    def test_state_file_option(
        self, mock_session_cls: MagicMock, runner: click.testing.CliRunner, tmp_path: Path
    ) -> None:
        mock_session_cls.return_value.stop.return_value = "Timer stopped"
        path = tmp_path / "state.json"
        runner.invoke(cli, ["--state-file", str(path), "stop"])
        mock_session_cls.assert_called_once_with(state_file=path)

    @patch("pomodoro.cli.main.Session")
    def test_state_file_env_var(
        self, mock_session_cls: MagicMock, runner: click.testing.CliRunner, tmp_path: Path
    ) -> None:
        mock_session_cls.return_value.stop.return_value = "Timer stopped"
        path = tmp_path / "env.json"
        runner.invoke(cli, ["stop"], env={"POMODORO_STATE_FILE": str(path)})
        mock_session_cls.assert_called_once_with(state_file=path)

    def test_unusable_state_location_is_reported(
        self, runner: click.testing.CliRunner, tmp_path: Path
    ) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        result = runner.invoke(cli, ["--state-file", str(blocker / "state.json"), "status"])
        assert result.exit_code == 1
        assert not isinstance(result.exception, OSError)
        assert "cannot create lock file" in result.output

    def test_version_output(self, runner: click.testing.CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


class TestEndToEnd:
    """Separate invocations share state through the state file."""

    def test_start_pause_status_stop(
        self, runner: click.testing.CliRunner, tmp_path: Path
    ) -> None:
        args = ["--state-file", str(tmp_path / "state.json")]

        result = runner.invoke(cli, [*args, "start", "25"])
        assert result.exit_code == 0
        assert "Timer started" in result.output

        result = runner.invoke(cli, [*args, "pause"])
        assert result.exit_code == 0

        result = runner.invoke(cli, [*args, "status"])
        assert result.exit_code == 0
        assert "(paused)" in result.output

        result = runner.invoke(cli, [*args, "stop"])
        assert result.output == "Timer stopped\n"

        result = runner.invoke(cli, [*args, "status"])
        assert result.exit_code == 1
        assert "No active timer" in result.output
