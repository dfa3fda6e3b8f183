"""External rendering engine (LibreOffice) integration for :mod:`intellideck`."""

from __future__ import annotations

import logging
import os
import subprocess
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping, Sequence

from .exceptions import (
    EngineInvocationFailed,
    EngineNotFoundError,
    OutputMissingError,
    UnsupportedFormatError,
)
from .utils import PathLike, list_directory, merge_env, run_subprocess, which

__all__ = [
    "ENGINE_ENV_VAR",
    "SUPPORTED_TARGETS",
    "FALLBACK_FILTERS",
    "DEFAULT_FILTERS",
    "EngineConfig",
    "EngineInfo",
    "EngineResult",
    "EngineInvoker",
    "Runner",
    "build_arguments",
    "find_output_file",
    "normalise_format",
    "probe_engine",
    "require_engine",
    "reset_probe_cache",
    "resolve_binary",
]

_LOGGER = logging.getLogger("intellideck.engine")

ENGINE_ENV_VAR = "INTELLIDECK_SOFFICE"

SUPPORTED_TARGETS: tuple[str, ...] = ("html", "pdf", "fodp", "pptx")

# Only the web-markup target has a scripted second attempt.
FALLBACK_FILTERS: dict[str, str] = {"html": "HTML (StarWriter)"}

DEFAULT_FILTERS: dict[str, str] = {"pptx": "Impress MS PowerPoint 2007 XML"}

_ALTERNATE_EXTENSIONS: dict[str, tuple[str, ...]] = {"html": ("htm",)}

_FORMAT_ALIASES: dict[str, str] = {
    "ppt": "pptx",
    "pptx": "pptx",
    "fodp": "fodp",
    "odp": "odp",
    "html": "html",
    "htm": "html",
    "pdf": "pdf",
}

_PROBE_TIMEOUT = 60.0

Runner = Callable[..., "subprocess.CompletedProcess[str]"]


def normalise_format(fmt: str) -> str:
    """Map a file extension or format name onto the engine's format name."""

    cleaned = fmt.strip().lower().lstrip(".")
    return _FORMAT_ALIASES.get(cleaned, cleaned)


@dataclass(frozen=True)
class EngineConfig:
    """Settings controlling how the rendering engine is located and spawned."""

    binary: str | None = None
    candidates: tuple[str, ...] = ("soffice", "libreoffice")
    timeout: float | None = None
    extra_args: tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=dict, hash=False, compare=False)


@dataclass(frozen=True)
class EngineInfo:
    """Result of the one-time engine capability probe."""

    binary: str
    version: str | None = None


@dataclass(slots=True)
class EngineResult:
    """Outcome of a successful engine invocation."""

    output_file_name: str
    output_path: Path
    stdout: str
    stderr: str
    exit_code: int
    filter_name: str | None = None
    attempts: int = 1


_PROBE_CACHE: dict[tuple[object, ...], EngineInfo] = {}
_PROBE_LOCK = threading.Lock()


def reset_probe_cache() -> None:
    """Forget cached probe results."""

    with _PROBE_LOCK:
        _PROBE_CACHE.clear()


def _locate(candidate: str) -> str | None:
    found = which([candidate])
    if found:
        return found
    if Path(candidate).is_file():
        return str(Path(candidate))
    return None


def resolve_binary(config: EngineConfig | None = None) -> str | None:
    """Resolve the engine executable from config, environment, then ``PATH``."""

    config = config or EngineConfig()
    if config.binary:
        return _locate(config.binary)
    from_env = os.getenv(ENGINE_ENV_VAR, "").strip()
    if from_env:
        located = _locate(from_env)
        if located:
            return located
        _LOGGER.warning("%s points to %s which cannot be found", ENGINE_ENV_VAR, from_env)
    return which(config.candidates)


def probe_engine(config: EngineConfig | None = None, *, runner: Runner | None = None) -> EngineInfo:
    """Resolve and verify the engine once per process.

    Successful probes are cached, keyed by the configuration and the
    environment override, so later conversions skip the ``--version`` call.
    """

    config = config or EngineConfig()
    key = (config.binary, config.candidates, os.getenv(ENGINE_ENV_VAR, ""))
    run = runner or run_subprocess
    with _PROBE_LOCK:
        cached = _PROBE_CACHE.get(key)
        if cached is not None:
            return cached

        binary = resolve_binary(config)
        if binary is None:
            raise EngineNotFoundError()
        try:
            completed = run([binary, "--version"], timeout=_PROBE_TIMEOUT)
        except OSError as exc:
            raise EngineNotFoundError(f"Failed to start {binary}: {exc}") from exc
        except subprocess.TimeoutExpired as exc:
            raise EngineNotFoundError(f"{binary} --version did not answer: {exc}") from exc
        if completed.returncode != 0:
            raise EngineNotFoundError(
                f"{binary} --version exited with code {completed.returncode}: {completed.stderr.strip()}"
            )
        info = EngineInfo(binary=binary, version=completed.stdout.strip() or None)
        _LOGGER.debug("Engine probe succeeded: %s (%s)", info.binary, info.version)
        _PROBE_CACHE[key] = info
        return info


def require_engine(config: EngineConfig | None = None) -> EngineInfo:
    """Precondition check raising :class:`EngineNotFoundError` when unavailable."""

    return probe_engine(config)


def build_arguments(
    binary: str,
    input_path: PathLike,
    output_dir: PathLike,
    target_format: str,
    filter_name: str | None = None,
    extra_args: Sequence[str] = (),
) -> list[str]:
    """Construct the engine command line for a single conversion."""

    convert_to = f"{target_format}:{filter_name}" if filter_name else target_format
    return [
        binary,
        "--headless",
        *extra_args,
        "--convert-to",
        convert_to,
        "--outdir",
        str(output_dir),
        str(input_path),
    ]


def find_output_file(
    output_dir: Path,
    target_format: str,
    *,
    stem: str | None = None,
    exclude: Sequence[str] = (),
) -> Path | None:
    """Locate the file produced for *target_format* inside *output_dir*."""

    names = [name for name in list_directory(output_dir) if name not in exclude]
    files = [name for name in names if (output_dir / name).is_file()]
    for extension in (target_format, *_ALTERNATE_EXTENSIONS.get(target_format, ())):
        suffix = f".{extension}"
        if stem is not None and f"{stem}{suffix}" in files:
            return output_dir / f"{stem}{suffix}"
        for name in files:
            if name.lower().endswith(suffix):
                return output_dir / name
    return None


class EngineInvoker:
    """Spawn the rendering engine and discover the file it produced."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        runner: Runner | None = None,
        engine: EngineInfo | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self._runner = runner or run_subprocess
        self._engine = engine
        self.logger = logger or _LOGGER

    @property
    def engine(self) -> EngineInfo:
        if self._engine is None:
            self._engine = probe_engine(self.config, runner=self._runner)
        return self._engine

    def invoke(
        self,
        input_path: PathLike,
        output_dir: PathLike,
        target_format: str,
        filter_name: str | None = None,
    ) -> EngineResult:
        """Convert *input_path* into *target_format* inside *output_dir*."""

        fmt = normalise_format(target_format)
        if fmt not in SUPPORTED_TARGETS:
            raise UnsupportedFormatError(target_format)
        source = Path(input_path)
        destination = Path(output_dir)
        destination.mkdir(parents=True, exist_ok=True)
        exclude = (source.name,) if source.parent.resolve() == destination.resolve() else ()

        chosen_filter = filter_name if filter_name is not None else DEFAULT_FILTERS.get(fmt)
        completed = self._spawn(source, destination, fmt, chosen_filter)
        attempts = 1
        output = find_output_file(destination, fmt, stem=source.stem, exclude=exclude)

        fallback = FALLBACK_FILTERS.get(fmt)
        if output is None and fallback and fallback != chosen_filter:
            self.logger.info(
                "No %s output after first attempt, retrying with filter '%s'", fmt, fallback
            )
            chosen_filter = fallback
            completed = self._spawn(source, destination, fmt, chosen_filter)
            attempts += 1
            output = find_output_file(destination, fmt, stem=source.stem, exclude=exclude)

        if output is None:
            listing = list_directory(destination)
            self.logger.error(
                "Could not find output file in format %s. Files in directory: %s",
                fmt,
                ", ".join(listing),
            )
            raise OutputMissingError(fmt, destination, listing)

        self.logger.debug("Engine produced %s after %d attempt(s)", output.name, attempts)
        return EngineResult(
            output_file_name=output.name,
            output_path=output,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            exit_code=completed.returncode,
            filter_name=chosen_filter,
            attempts=attempts,
        )

    def _spawn(
        self,
        source: Path,
        destination: Path,
        fmt: str,
        filter_name: str | None,
    ) -> "subprocess.CompletedProcess[str]":
        command = build_arguments(
            self.engine.binary,
            source,
            destination,
            fmt,
            filter_name,
            self.config.extra_args,
        )
        self.logger.debug("LibreOffice command: %s", " ".join(command))
        try:
            completed = self._runner(
                command,
                env=merge_env(self.config.env),
                timeout=self.config.timeout,
            )
        except OSError as exc:
            raise EngineNotFoundError(f"Failed to spawn LibreOffice process: {exc}") from exc
        except subprocess.TimeoutExpired as exc:
            stderr = exc.stderr if isinstance(exc.stderr, str) else ""
            raise EngineInvocationFailed(
                f"LibreOffice did not finish within {self.config.timeout}s", None, stderr
            ) from exc

        if completed.stderr:
            self.logger.warning("LibreOffice stderr: %s", completed.stderr.strip())
        exit_code = completed.returncode
        if exit_code is None or exit_code != 0:
            raise EngineInvocationFailed(
                f"LibreOffice process exited with code {exit_code}",
                exit_code,
                completed.stderr or "",
            )
        return completed
