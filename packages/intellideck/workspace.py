"""Temporary workspace management for conversion runs."""

from __future__ import annotations

import logging
import secrets
import shutil
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .exceptions import WorkspaceError
from .utils import PathLike

__all__ = ["WorkspaceManager", "canonical_input_name", "DEFAULT_PREFIX"]

DEFAULT_PREFIX = "intellideck-"

_LOGGER = logging.getLogger("intellideck.workspace")


def canonical_input_name(extension: str) -> str:
    """Return the simplified file name used for engine input (``input.pptx``)."""

    cleaned = extension.lower().lstrip(".")
    return f"input.{cleaned}" if cleaned else "input"


class WorkspaceManager:
    """Create, fill and destroy uniquely named temporary directories."""

    def __init__(
        self,
        root: PathLike | None = None,
        *,
        prefix: str = DEFAULT_PREFIX,
        logger: logging.Logger | None = None,
    ) -> None:
        self.root = Path(root) if root is not None else Path(tempfile.gettempdir())
        self.prefix = prefix
        self.logger = logger or _LOGGER

    def generate_name(self) -> str:
        timestamp = int(time.time() * 1000)
        return f"{self.prefix}{timestamp}-{secrets.token_hex(4)}"

    def create_workspace(self) -> Path:
        """Create a new workspace directory and return its path."""

        path = self.root / self.generate_name()
        try:
            path.mkdir(parents=True, exist_ok=False)
        except OSError as exc:
            raise WorkspaceError(f"could not create workspace {path}: {exc}") from exc
        self.logger.debug("Created temp directory: %s", path)
        return path

    def destroy_workspace(self, path: PathLike) -> None:
        """Remove *path* recursively. A missing directory is not an error."""

        target = Path(path)
        if not target.exists():
            self.logger.debug("Workspace %s already removed", target)
            return
        self.logger.debug("Cleaning up temp directory: %s", target)
        try:
            shutil.rmtree(target)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise WorkspaceError(f"could not remove workspace {target}: {exc}") from exc

    def copy_into(
        self,
        workspace: PathLike,
        source: PathLike,
        canonical_name: str | None = None,
    ) -> Path:
        """Copy *source* into *workspace* under a short, safe file name."""

        source_path = Path(source)
        name = canonical_name or canonical_input_name(source_path.suffix)
        destination = Path(workspace) / name
        try:
            shutil.copyfile(source_path, destination)
        except OSError as exc:
            raise WorkspaceError(f"could not copy {source_path} into {workspace}: {exc}") from exc
        self.logger.debug("Copied input file to: %s", destination)
        return destination

    @contextmanager
    def workspace(self, *, keep: bool = False) -> Iterator[Path]:
        """Yield a fresh workspace, removing it afterwards unless *keep* is set."""

        path = self.create_workspace()
        try:
            yield path
        finally:
            if keep:
                self.logger.info("Keeping temporary files in %s", path)
            else:
                try:
                    self.destroy_workspace(path)
                except WorkspaceError as exc:
                    self.logger.warning("Failed to clean up temp directory: %s", exc)
