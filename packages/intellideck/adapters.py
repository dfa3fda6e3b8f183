"""Translate between the canonical flat-position schema and the legacy nested one.

The legacy schema nests geometry under ``position`` and uses short style keys
(``fill``, ``stroke``, ``bold``, ``align`` ...). Everything inside IntelliDeck
works on the flat schema; these helpers exist for callers holding older JSON.
"""

from __future__ import annotations

from typing import Any, Mapping

from .model import Presentation

__all__ = [
    "from_nested_position",
    "to_nested_position",
    "presentation_from_nested",
    "presentation_to_nested",
]

_GEOMETRY_KEYS = ("x", "y", "width", "height")

_SHAPE_STYLE_KEYS = {
    "fill": "backgroundColor",
    "stroke": "borderColor",
    "strokeWidth": "borderWidth",
}


def from_nested_position(element: Mapping[str, Any]) -> dict[str, Any]:
    """Convert one legacy element dictionary into the flat schema."""

    flat: dict[str, Any] = {
        key: value
        for key, value in element.items()
        if key not in ("position", "style")
    }
    position = element.get("position")
    if isinstance(position, Mapping):
        for key in _GEOMETRY_KEYS:
            flat[key] = position.get(key, 0)
    else:
        for key in _GEOMETRY_KEYS:
            flat.setdefault(key, 0)

    legacy_style = element.get("style")
    if not isinstance(legacy_style, Mapping):
        return flat

    style: dict[str, Any] = {}
    text_style: dict[str, Any] = {}
    for key, value in legacy_style.items():
        if key in _SHAPE_STYLE_KEYS:
            style[_SHAPE_STYLE_KEYS[key]] = value
        elif key == "color":
            style["color"] = value
        elif key in ("fontFamily", "fontSize"):
            text_style[key] = value
        elif key == "bold":
            if value:
                text_style["fontWeight"] = "bold"
        elif key == "italic":
            if value:
                text_style["fontStyle"] = "italic"
        elif key == "underline":
            if value:
                text_style["textDecoration"] = "underline"
        elif key == "align":
            text_style["alignment"] = value
        else:
            style[key] = value
    if style:
        flat["style"] = style
    if text_style:
        flat["textStyle"] = text_style
    return flat


def to_nested_position(element: Mapping[str, Any]) -> dict[str, Any]:
    """Convert one flat element dictionary into the legacy nested schema."""

    nested: dict[str, Any] = {
        key: value
        for key, value in element.items()
        if key not in (*_GEOMETRY_KEYS, "style", "textStyle", "rotation", "isBase64")
    }
    nested["position"] = {key: element.get(key, 0) for key in _GEOMETRY_KEYS}

    legacy_style: dict[str, Any] = {}
    reverse_shape_keys = {value: key for key, value in _SHAPE_STYLE_KEYS.items()}
    style = element.get("style")
    if isinstance(style, Mapping):
        for key, value in style.items():
            legacy_style[reverse_shape_keys.get(key, key)] = value
    text_style = element.get("textStyle")
    if isinstance(text_style, Mapping):
        for key in ("fontFamily", "fontSize"):
            if key in text_style:
                legacy_style[key] = text_style[key]
        if "fontWeight" in text_style:
            legacy_style["bold"] = text_style["fontWeight"] == "bold"
        if "fontStyle" in text_style:
            legacy_style["italic"] = text_style["fontStyle"] == "italic"
        if "textDecoration" in text_style:
            legacy_style["underline"] = text_style["textDecoration"] == "underline"
        if "alignment" in text_style:
            legacy_style["align"] = text_style["alignment"]
    if legacy_style:
        nested["style"] = legacy_style
    return nested


def presentation_from_nested(data: Mapping[str, Any]) -> Presentation:
    """Build a :class:`Presentation` from a legacy nested-position document."""

    document = dict(data)
    metadata = data.get("metadata")
    if isinstance(metadata, Mapping):
        remaining = dict(metadata)
        if "author" in remaining and "author" not in document:
            document["author"] = remaining.pop("author")
        if "created" in remaining and "creationDate" not in document:
            document["creationDate"] = remaining.pop("created")
        document["metadata"] = remaining or None

    slides = []
    for slide in data.get("slides") or ():
        if not isinstance(slide, Mapping):
            continue
        converted = dict(slide)
        converted["elements"] = [
            from_nested_position(element)
            for element in slide.get("elements") or ()
            if isinstance(element, Mapping)
        ]
        slides.append(converted)
    document["slides"] = slides
    return Presentation.from_dict(document)


def presentation_to_nested(presentation: Presentation) -> dict[str, Any]:
    """Render *presentation* as a legacy nested-position dictionary."""

    data = presentation.to_dict()
    metadata = dict(data.pop("metadata", None) or {})
    if "author" in data:
        metadata["author"] = data.pop("author")
    if "creationDate" in data:
        metadata["created"] = data.pop("creationDate")
    if metadata:
        data["metadata"] = metadata
    for slide in data["slides"]:
        slide["elements"] = [to_nested_position(element) for element in slide["elements"]]
    return data
