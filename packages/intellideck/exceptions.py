"""Custom exception types for :mod:`intellideck`."""

from __future__ import annotations

from typing import Sequence


class IntelliDeckError(RuntimeError):
    """Base exception for all intellideck related errors."""


class InvalidInputError(IntelliDeckError):
    """Raised when the source document is missing, unreadable or empty."""

    def __init__(self, path: object, reason: str = "file not found or not accessible") -> None:
        super().__init__(f"Invalid input file: {path} ({reason})")
        self.path = path
        self.reason = reason


class UnsupportedFormatError(IntelliDeckError):
    """Raised when a conversion target or source format is not supported."""

    def __init__(self, fmt: str) -> None:
        super().__init__(f"Unsupported format: {fmt}")
        self.format = fmt


class EngineNotFoundError(IntelliDeckError):
    """Raised when the external rendering engine cannot be started."""

    def __init__(
        self,
        message: str = (
            "LibreOffice executable not found. Please ensure LibreOffice is installed "
            "and available in the PATH."
        ),
    ) -> None:
        super().__init__(message)


class EngineInvocationFailed(IntelliDeckError):
    """Raised when the rendering engine exits unsuccessfully."""

    def __init__(self, message: str, exit_code: int | None = None, stderr: str = "") -> None:
        super().__init__(f"Conversion failed: {message}")
        self.exit_code = exit_code
        self.stderr = stderr


class OutputMissingError(IntelliDeckError):
    """Raised when the engine ran but produced no recognisable output file."""

    def __init__(self, fmt: str, directory: object, listing: Sequence[str] = ()) -> None:
        files = ", ".join(listing) if listing else "<empty>"
        super().__init__(
            f"Could not find output file in format {fmt} in {directory}. Files in directory: {files}"
        )
        self.format = fmt
        self.directory = directory
        self.listing = list(listing)


class OutputGenerationError(IntelliDeckError):
    """Raised when a produced file cannot be moved to its final location."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Failed to generate output: {message}")


class WorkspaceError(IntelliDeckError):
    """Raised when a temporary workspace cannot be created, filled or removed."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Temporary file error: {message}")


class XmlStructureInvalid(IntelliDeckError):
    """Raised when flat XML input has no usable document root."""


class PackagingError(IntelliDeckError):
    """Raised when the output archive cannot be built."""


class ConversionError(IntelliDeckError):
    """Raised for unexpected failures during a conversion run."""


__all__ = [
    "IntelliDeckError",
    "InvalidInputError",
    "UnsupportedFormatError",
    "EngineNotFoundError",
    "EngineInvocationFailed",
    "OutputMissingError",
    "OutputGenerationError",
    "WorkspaceError",
    "XmlStructureInvalid",
    "PackagingError",
    "ConversionError",
]
