"""Bundle a primary output file with its resource directory into a zip archive."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from zipfile import ZIP_DEFLATED, ZipFile

from .exceptions import PackagingError
from .utils import PathLike, ensure_parent_dir

__all__ = ["RESOURCE_PREFIX", "ArchiveResult", "build_archive", "resource_dir_for"]

_LOGGER = logging.getLogger("intellideck.packaging")

RESOURCE_PREFIX = "html_files"


@dataclass(slots=True)
class ArchiveResult:
    path: Path
    members: list[str] = field(default_factory=list)
    additional_files: list[str] = field(default_factory=list)


def resource_dir_for(primary: PathLike) -> Path:
    """Return the conventional ``<stem>_html_files`` directory beside *primary*."""

    primary_path = Path(primary)
    return primary_path.with_name(f"{primary_path.stem}_html_files")


def build_archive(
    primary: PathLike,
    resources_dir: PathLike | None,
    destination: PathLike,
    *,
    resource_prefix: str = RESOURCE_PREFIX,
    logger: logging.Logger | None = None,
) -> ArchiveResult:
    """Write *primary* and every file under *resources_dir* into *destination*.

    The primary file sits at the archive root; resources keep their relative
    layout beneath ``resource_prefix/``. A missing resource directory is not
    an error. On failure the partial archive is removed.
    """

    log = logger or _LOGGER
    primary_path = Path(primary)
    archive_path = Path(destination)
    if not primary_path.is_file():
        raise PackagingError(f"Primary file does not exist: {primary_path}")

    resources: list[Path] = []
    resource_root = Path(resources_dir) if resources_dir is not None else None
    if resource_root is not None and resource_root.is_dir():
        resources = sorted(path for path in resource_root.rglob("*") if path.is_file())

    result = ArchiveResult(path=archive_path)
    try:
        ensure_parent_dir(archive_path)
        with ZipFile(archive_path, "w", compression=ZIP_DEFLATED) as archive:
            archive.write(primary_path, arcname=primary_path.name)
            result.members.append(primary_path.name)
            for resource in resources:
                relative = resource.relative_to(resource_root).as_posix()
                arcname = f"{resource_prefix}/{relative}"
                archive.write(resource, arcname=arcname)
                result.members.append(arcname)
                result.additional_files.append(relative)
    except (OSError, ValueError) as exc:
        archive_path.unlink(missing_ok=True)
        raise PackagingError(f"Failed to build archive {archive_path}: {exc}") from exc

    log.info(
        "Archive %s written with %d resource file(s)", archive_path, len(result.additional_files)
    )
    return result
