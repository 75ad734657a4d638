"""CLI entry point for pomodoro-cli.

Uses Click to expose the ``pomodoro`` command group with subcommands
that delegate to the Session manager.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable, TypeVar

import click

import pomodoro
from pomodoro.core.session import InvalidDurationError, Session
from pomodoro.core.timer import InvalidStateError, StorageError

T = TypeVar("T")

_HANDLED_ERRORS = (InvalidStateError, InvalidDurationError, StorageError)


def _run(action: Callable[[], T]) -> T:
    """Execute *action*, converting timer errors to a CLI error.

    The message is printed to stderr and the process exits with code 1.
    """
    try:
        return action()
    except _HANDLED_ERRORS as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)


def _session(ctx: click.Context) -> Session:
    return Session(state_file=ctx.obj["state_file"])


@click.group()
@click.version_option(version=pomodoro.__version__, prog_name="pomodoro")
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="POMODORO_STATE_FILE",
    default=None,
    help="Timer state file (defaults to the user cache directory).",
)
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def cli(ctx: click.Context, state_file: Path | None, verbose: bool) -> None:
    """pomodoro: a countdown timer that persists between commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["state_file"] = state_file


@cli.command()
@click.argument("duration", required=False)
@click.option("--silent", is_flag=True, help="Do not ring the bell when the timer ends.")
@click.option("--notify", is_flag=True, help="Request a desktop notification on completion.")
@click.pass_context
def start(ctx: click.Context, duration: str | None, silent: bool, notify: bool) -> None:
    """Start a timer for DURATION (minutes, or e.g. "1h 30m 10s").

    Without DURATION a paused timer is resumed, otherwise a 25 minute
    timer is started.
    """
    session = _session(ctx)
    message = _run(lambda: session.start(duration, silent=silent, notify=notify))
    click.echo(message)


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the current timer status."""
    session = _session(ctx)
    result = _run(session.status)
    click.echo(result.message)
    if result.should_alert:
        click.echo("\a", nl=False)
    sys.exit(result.exit_code)


@cli.command()
@click.pass_context
def pause(ctx: click.Context) -> None:
    """Pause the running timer."""
    session = _session(ctx)
    message = _run(session.pause)
    click.echo(message)


@cli.command()
@click.pass_context
def resume(ctx: click.Context) -> None:
    """Resume a paused timer."""
    session = _session(ctx)
    message = _run(session.resume)
    click.echo(message)


@cli.command()
@click.pass_context
def finish(ctx: click.Context) -> None:
    """Mark the timer as finished."""
    session = _session(ctx)
    message = _run(session.finish)
    click.echo(message)


@cli.command()
@click.pass_context
def stop(ctx: click.Context) -> None:
    """Discard the timer."""
    session = _session(ctx)
    message = _run(session.stop)
    click.echo(message)
