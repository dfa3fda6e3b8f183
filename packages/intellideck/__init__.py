"""Presentation conversion toolkit: PPTX, flat OpenDocument XML and a JSON document model."""

from __future__ import annotations

__version__ = "0.1.0"

from .adapters import (
    from_nested_position,
    presentation_from_nested,
    presentation_to_nested,
    to_nested_position,
)
from .converter import (
    convert_fodp_to_json,
    convert_fodp_to_pptx,
    convert_json_to_fodp,
    convert_json_to_pptx,
    convert_pptx_to_fodp,
    convert_pptx_to_html,
    convert_pptx_to_json,
    convert_pptx_to_pdf,
    load_presentation,
)
from .engine import (
    EngineConfig,
    EngineInfo,
    EngineInvoker,
    EngineResult,
    probe_engine,
    require_engine,
    reset_probe_cache,
)
from .exceptions import (
    ConversionError,
    EngineInvocationFailed,
    EngineNotFoundError,
    IntelliDeckError,
    InvalidInputError,
    OutputGenerationError,
    OutputMissingError,
    PackagingError,
    UnsupportedFormatError,
    WorkspaceError,
    XmlStructureInvalid,
)
from .fodp import FodpDecoder, FodpEncoder, decode_fodp, encode_fodp
from .model import (
    Background,
    ImageElement,
    Presentation,
    ShapeElement,
    Slide,
    SlideElement,
    SlideSize,
    TextElement,
    Theme,
    ThemeFonts,
    element_from_dict,
)
from .packaging import ArchiveResult, build_archive
from .pipeline import (
    ConversionInfo,
    ConversionOptions,
    ConversionPipeline,
    ConversionResult,
    PipelineState,
)
from .units import to_centimeters, to_pixels
from .workspace import WorkspaceManager

__all__ = [
    "__version__",
    "ArchiveResult",
    "Background",
    "ConversionError",
    "ConversionInfo",
    "ConversionOptions",
    "ConversionPipeline",
    "ConversionResult",
    "EngineConfig",
    "EngineInfo",
    "EngineInvocationFailed",
    "EngineInvoker",
    "EngineNotFoundError",
    "EngineResult",
    "FodpDecoder",
    "FodpEncoder",
    "ImageElement",
    "IntelliDeckError",
    "InvalidInputError",
    "OutputGenerationError",
    "OutputMissingError",
    "PackagingError",
    "PipelineState",
    "Presentation",
    "ShapeElement",
    "Slide",
    "SlideElement",
    "SlideSize",
    "TextElement",
    "Theme",
    "ThemeFonts",
    "UnsupportedFormatError",
    "WorkspaceError",
    "WorkspaceManager",
    "XmlStructureInvalid",
    "build_archive",
    "convert_fodp_to_json",
    "convert_fodp_to_pptx",
    "convert_json_to_fodp",
    "convert_json_to_pptx",
    "convert_pptx_to_fodp",
    "convert_pptx_to_html",
    "convert_pptx_to_json",
    "convert_pptx_to_pdf",
    "decode_fodp",
    "element_from_dict",
    "encode_fodp",
    "from_nested_position",
    "load_presentation",
    "presentation_from_nested",
    "presentation_to_nested",
    "probe_engine",
    "require_engine",
    "reset_probe_cache",
    "to_centimeters",
    "to_nested_position",
    "to_pixels",
]
