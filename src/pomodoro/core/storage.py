"""Durable state file -- location, atomic JSON writes, advisory locking."""

from __future__ import annotations

import contextlib
import fcntl
import json
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Iterator, Mapping

logger = logging.getLogger(__name__)

STATE_FILE_NAME = "pomodoro-cli-info.json"
_LOCK_SUFFIX = ".lock"


class StorageError(Exception):
    """Raised when the state file exists but cannot be read, parsed or written."""


def cache_dir() -> Path | None:
    """Return the per-user cache directory for this platform, if any.

    Only POSIX platforms are supported since locking relies on ``fcntl``.
    """
    try:
        home = Path.home()
    except RuntimeError:
        home = None

    if sys.platform == "darwin":
        return home / "Library" / "Caches" if home is not None else None

    xdg = os.environ.get("XDG_CACHE_HOME")
    if xdg and os.path.isabs(xdg):
        return Path(xdg)
    return home / ".cache" if home is not None else None


def default_state_file() -> Path:
    """Resolve the state file path, falling back to the current directory."""
    base = cache_dir()
    if base is None:
        base = Path(".")
    return base / STATE_FILE_NAME


def read_json(path: Path) -> Any:
    """Read and decode the JSON document at *path*.

    Raises ``OSError`` or ``json.JSONDecodeError``; callers translate them.
    """
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def write_json_atomic(path: Path, data: Mapping[str, Any]) -> None:
    """Write *data* as pretty-printed JSON, replacing *path* atomically.

    The document goes to a temporary file in the same directory which is
    then renamed over *path*, so readers see either the old or new file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise
    logger.debug("Wrote %s", path)


def remove(path: Path) -> bool:
    """Remove *path*; return ``False`` if it did not exist."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    logger.debug("Removed %s", path)
    return True


@contextlib.contextmanager
def locked(path: Path) -> Iterator[None]:
    """Hold an exclusive advisory lock for the state file at *path*.

    The lock lives on a sibling ``.lock`` file because the state file
    itself is replaced on every save.
    """
    lock_path = path.with_name(path.name + _LOCK_SUFFIX)
    try:
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        f = open(lock_path, "a")
    except OSError as exc:
        raise StorageError(f"cannot create lock file {lock_path}: {exc}") from exc
    with f:
        try:
            fcntl.flock(f, fcntl.LOCK_EX)
        except OSError as exc:
            raise StorageError(f"cannot lock {lock_path}: {exc}") from exc
        try:
            yield
        finally:
            fcntl.flock(f, fcntl.LOCK_UN)
