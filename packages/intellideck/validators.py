"""Validation helpers for :mod:`intellideck`."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from pypdf import PdfReader

from .exceptions import InvalidInputError, OutputGenerationError, UnsupportedFormatError
from .utils import PathLike

_LOGGER = logging.getLogger("intellideck.validators")

SUPPORTED_INPUTS = (".pptx", ".ppt", ".odp", ".fodp")


def validate_input(path: PathLike, *, extensions: Iterable[str] | None = SUPPORTED_INPUTS) -> Path:
    """Check that *path* names an existing, non-empty regular file.

    When *extensions* is given, the suffix must be one of them.
    """

    source = Path(path)
    if not source.exists():
        raise InvalidInputError(source)
    if not source.is_file():
        raise InvalidInputError(source, "not a regular file")
    try:
        size = source.stat().st_size
    except OSError as exc:
        raise InvalidInputError(source, f"cannot be read: {exc}") from exc
    if size == 0:
        raise InvalidInputError(source, "file is empty")
    if extensions is not None:
        allowed = {ext.lower() for ext in extensions}
        if source.suffix.lower() not in allowed:
            raise UnsupportedFormatError(source.suffix.lstrip(".") or source.name)
    _LOGGER.debug("Validated input %s (%d bytes)", source, size)
    return source


def validate_pdf_output(path: PathLike) -> int:
    """Parse the produced PDF with :mod:`pypdf` and return its page count."""

    pdf_path = Path(path)
    try:
        reader = PdfReader(str(pdf_path))
        pages = len(reader.pages)
    except Exception as exc:
        raise OutputGenerationError(f"produced PDF {pdf_path} cannot be read: {exc}") from exc
    if pages == 0:
        raise OutputGenerationError(f"produced PDF {pdf_path} contains no pages")
    _LOGGER.debug("Validated PDF output %s (%d pages)", pdf_path, pages)
    return pages


__all__ = ["SUPPORTED_INPUTS", "validate_input", "validate_pdf_output"]
