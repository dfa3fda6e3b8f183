"""Convenience functions covering every supported conversion leg."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import replace
from pathlib import Path
from typing import Any, Mapping, Union

from .exceptions import InvalidInputError
from .fodp.decoder import decode_fodp, decode_fodp_file
from .fodp.encoder import encode_fodp, write_fodp
from .model import Presentation
from .pipeline import ConversionOptions, ConversionPipeline, ConversionResult, default_output_dir
from .utils import PathLike
from .validators import validate_input
from .workspace import WorkspaceManager

__all__ = [
    "PresentationSource",
    "convert_pptx_to_html",
    "convert_pptx_to_pdf",
    "convert_pptx_to_fodp",
    "convert_fodp_to_pptx",
    "convert_fodp_to_json",
    "convert_pptx_to_json",
    "convert_json_to_fodp",
    "convert_json_to_pptx",
    "decode_fodp",
    "encode_fodp",
    "load_presentation",
]

_LOGGER = logging.getLogger("intellideck.converter")

PresentationSource = Union[Presentation, Mapping[str, Any], str, Path]


def _pipeline(pipeline: ConversionPipeline | None) -> ConversionPipeline:
    return pipeline or ConversionPipeline()


def convert_pptx_to_html(
    input_path: PathLike,
    options: ConversionOptions | None = None,
    *,
    pipeline: ConversionPipeline | None = None,
) -> ConversionResult:
    """Convert a presentation to HTML, zipped with its resources by default."""

    return _pipeline(pipeline).run(input_path, "html", options)


def convert_pptx_to_pdf(
    input_path: PathLike,
    options: ConversionOptions | None = None,
    *,
    pipeline: ConversionPipeline | None = None,
) -> ConversionResult:
    return _pipeline(pipeline).run(input_path, "pdf", options)


def convert_pptx_to_fodp(
    input_path: PathLike,
    options: ConversionOptions | None = None,
    *,
    pipeline: ConversionPipeline | None = None,
) -> ConversionResult:
    return _pipeline(pipeline).run(input_path, "fodp", options)


def convert_fodp_to_pptx(
    input_path: PathLike,
    options: ConversionOptions | None = None,
    *,
    pipeline: ConversionPipeline | None = None,
) -> ConversionResult:
    return _pipeline(pipeline).run(input_path, "pptx", options)


def convert_fodp_to_json(input_path: PathLike, *, logger: logging.Logger | None = None) -> Presentation:
    """Decode a flat XML presentation file into the canonical model."""

    source = validate_input(input_path, extensions=(".fodp", ".xml"))
    return decode_fodp_file(source, logger=logger)


def convert_pptx_to_json(
    input_path: PathLike,
    options: ConversionOptions | None = None,
    *,
    pipeline: ConversionPipeline | None = None,
    workspace_manager: WorkspaceManager | None = None,
) -> Presentation:
    """Convert through flat XML and decode the result.

    Without an explicit ``output_dir`` the intermediate ``.fodp`` lives in a
    scratch workspace that is removed afterwards unless ``keep_temp_files``.
    """

    options = options or ConversionOptions()
    runner = _pipeline(pipeline)
    if options.output_dir is not None:
        result = runner.run(input_path, "fodp", options)
        return decode_fodp_file(result.output_path)

    manager = workspace_manager or WorkspaceManager()
    with manager.workspace(keep=options.keep_temp_files) as scratch:
        result = runner.run(input_path, "fodp", replace(options, output_dir=scratch))
        return decode_fodp_file(result.output_path)


def load_presentation(source: PresentationSource) -> Presentation:
    """Accept a :class:`Presentation`, a JSON-like mapping or a path to a JSON file."""

    if isinstance(source, Presentation):
        return source
    if isinstance(source, Mapping):
        return Presentation.from_dict(source)
    path = Path(source)
    validate_input(path, extensions=(".json",))
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise InvalidInputError(path, f"not a JSON presentation: {exc}") from exc
    if not isinstance(data, Mapping):
        raise InvalidInputError(path, "JSON root must be an object")
    return Presentation.from_dict(data)


def _default_name() -> str:
    return f"presentation-{int(time.time() * 1000)}"


def convert_json_to_fodp(
    presentation: PresentationSource,
    options: ConversionOptions | None = None,
) -> Path:
    """Encode *presentation* into ``<output_dir>/<output_name>.fodp``."""

    options = options or ConversionOptions()
    output_dir = Path(options.output_dir) if options.output_dir is not None else default_output_dir()
    name = options.output_name or _default_name()
    return write_fodp(load_presentation(presentation), output_dir / f"{name}.fodp")


def convert_json_to_pptx(
    presentation: PresentationSource,
    options: ConversionOptions | None = None,
    *,
    pipeline: ConversionPipeline | None = None,
    workspace_manager: WorkspaceManager | None = None,
) -> ConversionResult:
    """Encode to flat XML in a scratch workspace and let the engine build the ``.pptx``."""

    options = options or ConversionOptions()
    name = options.output_name or _default_name()
    manager = workspace_manager or WorkspaceManager()
    with manager.workspace(keep=options.keep_temp_files) as scratch:
        fodp_path = write_fodp(load_presentation(presentation), scratch / f"{name}.fodp")
        _LOGGER.debug("Intermediate flat XML written to %s", fodp_path)
        return _pipeline(pipeline).run(fodp_path, "pptx", replace(options, output_name=name))
