"""End-to-end conversion pipeline driving the rendering engine."""

from __future__ import annotations

import logging
import os
import secrets
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from .engine import SUPPORTED_TARGETS, EngineInvoker, EngineResult, normalise_format
from .exceptions import (
    ConversionError,
    IntelliDeckError,
    OutputGenerationError,
    UnsupportedFormatError,
    WorkspaceError,
)
from .packaging import build_archive, resource_dir_for
from .utils import PathLike, time_block, utc_now
from .validators import validate_input, validate_pdf_output
from .workspace import WorkspaceManager

__all__ = [
    "PipelineState",
    "ConversionOptions",
    "ConversionInfo",
    "ConversionResult",
    "ConversionPipeline",
    "default_output_dir",
]

_LOGGER = logging.getLogger("intellideck.pipeline")


class PipelineState(str, Enum):
    VALIDATING = "validating"
    WORKSPACE_PREPARED = "workspace_prepared"
    ENGINE_INVOKED = "engine_invoked"
    POST_PROCESSED = "post_processed"
    CLEANED_UP = "cleaned_up"
    COMPLETED = "completed"
    FAILED = "failed"


def default_output_dir() -> Path:
    return Path.cwd() / "output"


@dataclass(frozen=True)
class ConversionOptions:
    """User-configurable options controlling a conversion run."""

    output_dir: PathLike | None = None
    output_name: str | None = None
    keep_temp_files: bool = False
    create_zip: bool = True
    filter_name: str | None = None
    validate_output: bool = False


@dataclass(slots=True)
class ConversionInfo:
    start_time: datetime
    end_time: datetime
    duration_ms: float
    engine_version: str | None = None


@dataclass(slots=True)
class ConversionResult:
    output_path: Path
    format: str
    conversion_info: ConversionInfo
    additional_files: list[str] = field(default_factory=list)
    workspace: Path | None = None


class ConversionPipeline:
    """Validate, prepare a workspace, run the engine, post-process and clean up.

    ``history`` holds the states visited by the most recent :meth:`run`.
    """

    def __init__(
        self,
        invoker: EngineInvoker | None = None,
        workspace_manager: WorkspaceManager | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.logger = logger or _LOGGER
        self.invoker = invoker or EngineInvoker(logger=self.logger.getChild("engine"))
        self.workspace_manager = workspace_manager or WorkspaceManager(logger=self.logger.getChild("workspace"))
        self.history: list[PipelineState] = []

    def run(
        self,
        input_path: PathLike,
        target_format: str,
        options: ConversionOptions | None = None,
    ) -> ConversionResult:
        options = options or ConversionOptions()
        history: list[PipelineState] = []
        self.history = history
        start_time = utc_now()

        history.append(PipelineState.VALIDATING)
        try:
            fmt = normalise_format(target_format)
            if fmt not in SUPPORTED_TARGETS:
                raise UnsupportedFormatError(target_format)
            source = validate_input(input_path)
            engine = self.invoker.engine
        except IntelliDeckError:
            history.append(PipelineState.FAILED)
            raise

        workspace: Path | None = None
        try:
            workspace = self.workspace_manager.create_workspace()
            staged = self.workspace_manager.copy_into(workspace, source)
            history.append(PipelineState.WORKSPACE_PREPARED)

            with time_block(self.logger, f"LibreOffice conversion to {fmt}"):
                produced = self.invoker.invoke(staged, workspace / "output", fmt, options.filter_name)
            history.append(PipelineState.ENGINE_INVOKED)

            output_path, additional_files = self._post_process(produced, fmt, source, options)
            history.append(PipelineState.POST_PROCESSED)
        except IntelliDeckError:
            history.append(PipelineState.FAILED)
            self._discard(workspace, options)
            raise
        except Exception as exc:
            history.append(PipelineState.FAILED)
            self._discard(workspace, options)
            raise ConversionError(f"Unexpected failure converting {source}: {exc}") from exc

        retained = self._cleanup(workspace, options)
        history.append(PipelineState.CLEANED_UP)

        end_time = utc_now()
        duration_ms = (end_time - start_time).total_seconds() * 1000
        history.append(PipelineState.COMPLETED)
        self.logger.info("Conversion to %s completed: %s", fmt, output_path)
        return ConversionResult(
            output_path=output_path,
            format=fmt,
            conversion_info=ConversionInfo(
                start_time=start_time,
                end_time=end_time,
                duration_ms=duration_ms,
                engine_version=engine.version,
            ),
            additional_files=additional_files,
            workspace=retained,
        )

    def _post_process(
        self,
        produced: EngineResult,
        fmt: str,
        source: Path,
        options: ConversionOptions,
    ) -> tuple[Path, list[str]]:
        output_dir = Path(options.output_dir) if options.output_dir is not None else default_output_dir()
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputGenerationError(f"cannot create output directory {output_dir}: {exc}") from exc
        name = options.output_name or source.stem

        if fmt == "html" and options.create_zip:
            destination = output_dir / f"{name}.zip"
            partial = self._partial_path(destination)
            try:
                archive = build_archive(
                    produced.output_path,
                    resource_dir_for(produced.output_path),
                    partial,
                    logger=self.logger.getChild("packaging"),
                )
                self._publish(partial, destination)
            finally:
                partial.unlink(missing_ok=True)
            return destination, archive.additional_files

        destination = output_dir / f"{name}.{fmt}"
        partial = self._partial_path(destination)
        try:
            try:
                shutil.copyfile(produced.output_path, partial)
            except OSError as exc:
                raise OutputGenerationError(f"cannot copy {produced.output_name} to {destination}: {exc}") from exc
            if fmt == "pdf" and options.validate_output:
                validate_pdf_output(partial)
            self._publish(partial, destination)
        finally:
            partial.unlink(missing_ok=True)
        self.logger.debug("Output copied to %s", destination)

        additional_files: list[str] = []
        resources = resource_dir_for(produced.output_path)
        if fmt == "html" and resources.is_dir():
            additional_files = self._copy_resources(resources, output_dir / f"{name}_html_files")
        return destination, additional_files

    def _copy_resources(self, resources: Path, target: Path) -> list[str]:
        try:
            shutil.copytree(resources, target, dirs_exist_ok=True)
        except OSError as exc:
            raise OutputGenerationError(f"cannot copy HTML resources to {target}: {exc}") from exc
        copied = sorted(
            path.relative_to(resources).as_posix() for path in resources.rglob("*") if path.is_file()
        )
        self.logger.debug("Copied %d HTML resource file(s) to %s", len(copied), target)
        return copied

    @staticmethod
    def _partial_path(destination: Path) -> Path:
        return destination.with_name(f".{destination.name}.{secrets.token_hex(4)}.part")

    @staticmethod
    def _publish(partial: Path, destination: Path) -> None:
        try:
            os.replace(partial, destination)
        except OSError as exc:
            raise OutputGenerationError(f"cannot move output into {destination}: {exc}") from exc

    def _discard(self, workspace: Path | None, options: ConversionOptions) -> None:
        if workspace is None:
            return
        if options.keep_temp_files:
            self.logger.info("Keeping temporary files in %s after failure", workspace)
            return
        try:
            self.workspace_manager.destroy_workspace(workspace)
        except WorkspaceError as exc:
            self.logger.warning("Failed to clean up temp directory: %s", exc)

    def _cleanup(self, workspace: Path, options: ConversionOptions) -> Path | None:
        if options.keep_temp_files:
            self.logger.info("Keeping temporary files in %s", workspace)
            return workspace
        try:
            self.workspace_manager.destroy_workspace(workspace)
        except WorkspaceError as exc:
            self.logger.warning("Failed to clean up temp directory: %s", exc)
        return None
