"""Utility helpers for :mod:`intellideck`."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Mapping, MutableMapping, Sequence, Union

PathLike = Union[str, os.PathLike[str]]

_LOGGER = logging.getLogger("intellideck")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure package-wide logging."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("intellideck").setLevel(level)


def ensure_parent_dir(path: Path) -> None:
    """Create parent directory for *path* if it does not exist."""

    path.parent.mkdir(parents=True, exist_ok=True)


def which(executables: Sequence[str]) -> str | None:
    """Return the first executable from *executables* found on ``PATH``."""

    for candidate in executables:
        found = shutil.which(candidate)
        if found:
            _LOGGER.debug("Detected external tool: %s -> %s", candidate, found)
            return found
    return None


def merge_env(overrides: Mapping[str, str] | None) -> MutableMapping[str, str] | None:
    """Return a copy of the process environment updated with *overrides*."""

    if not overrides:
        return None
    env = dict(os.environ)
    env.update(overrides)
    return env


def run_subprocess(
    command: Sequence[str],
    *,
    env: MutableMapping[str, str] | None = None,
    timeout: float | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run *command* capturing output.

    Parameters
    ----------
    command:
        Command and arguments to execute.
    env:
        Optional full environment for the child process.
    timeout:
        Seconds to wait before :class:`subprocess.TimeoutExpired` is raised.
        ``None`` waits indefinitely.
    """

    _LOGGER.debug("Executing command: %s", " ".join(command))
    completed = subprocess.run(
        list(command),
        env=env,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        check=False,
        text=True,
        timeout=timeout,
    )
    _LOGGER.debug(
        "Command finished with exit code %s\nstdout: %s\nstderr: %s",
        completed.returncode,
        completed.stdout,
        completed.stderr,
    )
    return completed


def list_directory(path: Path) -> list[str]:
    """Return the sorted entry names of *path*, or an empty list if it is missing."""

    try:
        return sorted(entry.name for entry in path.iterdir())
    except FileNotFoundError:
        return []


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


@contextmanager
def time_block(logger: logging.Logger, message: str) -> Iterator[None]:
    """Context manager that logs the execution time of a code block."""
    start = utc_now()
    logger.debug("Starting %s", message)
    try:
        yield
    finally:
        elapsed = (utc_now() - start).total_seconds()
        logger.info("%s completed in %.2fs", message, elapsed)


def sizeof_fmt(num_bytes: float) -> str:
    """Format *num_bytes* into a human-friendly string."""

    step_unit = 1024.0
    for unit in ("bytes", "KiB", "MiB", "GiB"):
        if abs(num_bytes) < step_unit:
            return f"{num_bytes:3.1f} {unit}"
        num_bytes /= step_unit
    return f"{num_bytes:.1f} TiB"


__all__ = [
    "PathLike",
    "LOG_FORMAT",
    "configure_logging",
    "ensure_parent_dir",
    "which",
    "merge_env",
    "run_subprocess",
    "list_directory",
    "utc_now",
    "time_block",
    "sizeof_fmt",
]
