"""Command line entry points for :mod:`intellideck`."""

from .main import cli, main

__all__ = ["cli", "main"]
