"""Canonical document model shared by the decoder, encoder and JSON API."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterable, Mapping

from .units import parse_number

__all__ = [
    "DEFAULT_TITLE",
    "Background",
    "Theme",
    "ThemeFonts",
    "SlideSize",
    "SlideElement",
    "TextElement",
    "ImageElement",
    "ShapeElement",
    "Slide",
    "Presentation",
    "element_from_dict",
    "assign_element_ids",
    "assign_slide_ids",
    "sanitize_length",
]

DEFAULT_TITLE = "Untitled presentation"


def sanitize_length(value: Any) -> float:
    """Return a non-negative finite length, ``0.0`` for anything else."""

    number = parse_number(value)
    if number is None or number < 0:
        return 0.0
    return number


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


@dataclass(slots=True)
class Background:
    color: str | None = None
    image: str | None = None

    @property
    def is_base64(self) -> bool:
        return bool(self.image) and self.image.startswith("data:")

    def to_dict(self) -> dict[str, Any]:
        data = _compact({"color": self.color, "image": self.image})
        if self.image is not None:
            data["isBase64"] = self.is_base64
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Background":
        return cls(color=_optional_str(data.get("color")), image=_optional_str(data.get("image")))


@dataclass(slots=True)
class ThemeFonts:
    heading: str | None = None
    body: str | None = None


@dataclass(slots=True)
class Theme:
    colors: list[str] = field(default_factory=list)
    fonts: ThemeFonts | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"colors": list(self.colors)}
        if self.fonts is not None:
            data["fonts"] = _compact({"heading": self.fonts.heading, "body": self.fonts.body})
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Theme":
        fonts_data = data.get("fonts")
        fonts = None
        if isinstance(fonts_data, Mapping):
            fonts = ThemeFonts(
                heading=_optional_str(fonts_data.get("heading")),
                body=_optional_str(fonts_data.get("body")),
            )
        return cls(colors=[str(color) for color in data.get("colors") or ()], fonts=fonts)


@dataclass(slots=True)
class SlideSize:
    """Slide dimensions in pixels."""

    width: float
    height: float

    def to_dict(self) -> dict[str, float]:
        return {"width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SlideSize":
        return cls(width=sanitize_length(data.get("width")), height=sanitize_length(data.get("height")))


@dataclass(slots=True)
class SlideElement:
    """Positioned drawable on a slide.

    Used directly for elements whose kind is not recognised; ``original_type``
    keeps the ``type`` string read from JSON in that case.
    """

    TYPE: ClassVar[str] = "unknown"

    id: str = ""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    rotation: float | None = None
    style: dict[str, Any] = field(default_factory=dict)
    original_type: str | None = None

    def __post_init__(self) -> None:
        self.x = sanitize_length(self.x)
        self.y = sanitize_length(self.y)
        self.width = sanitize_length(self.width)
        self.height = sanitize_length(self.height)

    @property
    def type(self) -> str:
        if self.TYPE == "unknown" and self.original_type:
            return self.original_type
        return self.TYPE

    def _base_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }
        if self.rotation is not None:
            data["rotation"] = self.rotation
        if self.style:
            data["style"] = dict(self.style)
        return data

    def to_dict(self) -> dict[str, Any]:
        return self._base_dict()

    @staticmethod
    def _base_kwargs(data: Mapping[str, Any]) -> dict[str, Any]:
        rotation = parse_number(data.get("rotation"))
        style = data.get("style")
        return {
            "id": str(data.get("id") or ""),
            "x": data.get("x"),
            "y": data.get("y"),
            "width": data.get("width"),
            "height": data.get("height"),
            "rotation": rotation,
            "style": dict(style) if isinstance(style, Mapping) else {},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SlideElement":
        kwargs = cls._base_kwargs(data)
        raw_type = data.get("type")
        if raw_type and raw_type != "unknown":
            kwargs["original_type"] = str(raw_type)
        return cls(**kwargs)


@dataclass(slots=True)
class TextElement(SlideElement):
    TYPE: ClassVar[str] = "text"

    text: str = ""
    text_style: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data = self._base_dict()
        data["text"] = self.text
        if self.text_style:
            data["textStyle"] = dict(self.text_style)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TextElement":
        text_style = data.get("textStyle")
        return cls(
            **cls._base_kwargs(data),
            text=str(data.get("text") or ""),
            text_style=dict(text_style) if isinstance(text_style, Mapping) else None,
        )


@dataclass(slots=True)
class ImageElement(SlideElement):
    TYPE: ClassVar[str] = "image"

    src: str = ""
    alt: str | None = None

    @property
    def is_base64(self) -> bool:
        return self.src.startswith("data:")

    def to_dict(self) -> dict[str, Any]:
        data = self._base_dict()
        data["src"] = self.src
        if self.alt is not None:
            data["alt"] = self.alt
        data["isBase64"] = self.is_base64
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ImageElement":
        return cls(
            **cls._base_kwargs(data),
            src=str(data.get("src") or ""),
            alt=_optional_str(data.get("alt")),
        )


@dataclass(slots=True)
class ShapeElement(SlideElement):
    TYPE: ClassVar[str] = "shape"

    shape_type: str = "rectangle"
    path: str | None = None
    text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = self._base_dict()
        data["shapeType"] = self.shape_type
        if self.path is not None:
            data["path"] = self.path
        if self.text is not None:
            data["text"] = self.text
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ShapeElement":
        return cls(
            **cls._base_kwargs(data),
            shape_type=str(data.get("shapeType") or "rectangle"),
            path=_optional_str(data.get("path")),
            text=_optional_str(data.get("text")),
        )


_ELEMENT_TYPES: dict[str, type[SlideElement]] = {
    "text": TextElement,
    "image": ImageElement,
    "shape": ShapeElement,
}


def element_from_dict(data: Mapping[str, Any]) -> SlideElement:
    """Build the element variant named by ``data["type"]``."""

    element_cls = _ELEMENT_TYPES.get(str(data.get("type") or ""), SlideElement)
    return element_cls.from_dict(data)


@dataclass(slots=True)
class Slide:
    id: str
    title: str | None = None
    notes: str | None = None
    background: Background | None = None
    elements: list[SlideElement] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.id:
            assign_element_ids(self.elements, self.id)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id}
        if self.title is not None:
            data["title"] = self.title
        if self.notes is not None:
            data["notes"] = self.notes
        if self.background is not None:
            data["background"] = self.background.to_dict()
        data["elements"] = [element.to_dict() for element in self.elements]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Slide":
        background = data.get("background")
        return cls(
            id=str(data.get("id") or ""),
            title=_optional_str(data.get("title")),
            notes=_optional_str(data.get("notes")),
            background=Background.from_dict(background) if isinstance(background, Mapping) else None,
            elements=[
                element_from_dict(item)
                for item in data.get("elements") or ()
                if isinstance(item, Mapping)
            ],
        )


def assign_element_ids(elements: Iterable[SlideElement], slide_id: str) -> None:
    """Give every element on a slide a unique id, replacing blanks and duplicates
    with ``<slide_id>-element-<n>``.
    """

    seen: set[str] = set()
    for position, element in enumerate(elements, start=1):
        candidate = element.id
        if not candidate or candidate in seen:
            candidate = f"{slide_id}-element-{position}"
        base = candidate
        suffix = 1
        while candidate in seen:
            suffix += 1
            candidate = f"{base}-{suffix}"
        element.id = candidate
        seen.add(candidate)


def assign_slide_ids(slides: Iterable[Slide]) -> None:
    """Give every slide a unique id, replacing blanks and duplicates with ``slide-<n>``."""

    seen: set[str] = set()
    for index, slide in enumerate(slides, start=1):
        candidate = slide.id
        if not candidate or candidate in seen:
            candidate = f"slide-{index}"
        base = candidate
        suffix = 1
        while candidate in seen:
            suffix += 1
            candidate = f"{base}-{suffix}"
        slide.id = candidate
        seen.add(candidate)


@dataclass(slots=True)
class Presentation:
    """A whole slide deck in the canonical flat-position schema."""

    title: str = DEFAULT_TITLE
    author: str | None = None
    creation_date: str | None = None
    metadata: dict[str, Any] | None = None
    theme: Theme | None = None
    size: SlideSize | None = None
    slides: list[Slide] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.title:
            self.title = DEFAULT_TITLE
        assign_slide_ids(self.slides)
        for slide in self.slides:
            assign_element_ids(slide.elements, slide.id)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"title": self.title}
        if self.author is not None:
            data["author"] = self.author
        if self.creation_date is not None:
            data["creationDate"] = self.creation_date
        if self.metadata is not None:
            data["metadata"] = dict(self.metadata)
        if self.theme is not None:
            data["theme"] = self.theme.to_dict()
        if self.size is not None:
            data["size"] = self.size.to_dict()
        data["slides"] = [slide.to_dict() for slide in self.slides]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Presentation":
        theme = data.get("theme")
        size = data.get("size")
        metadata = data.get("metadata")
        return cls(
            title=str(data.get("title") or DEFAULT_TITLE),
            author=_optional_str(data.get("author")),
            creation_date=_optional_str(data.get("creationDate")),
            metadata=dict(metadata) if isinstance(metadata, Mapping) else None,
            theme=Theme.from_dict(theme) if isinstance(theme, Mapping) else None,
            size=SlideSize.from_dict(size) if isinstance(size, Mapping) else None,
            slides=[
                Slide.from_dict(item)
                for item in data.get("slides") or ()
                if isinstance(item, Mapping)
            ],
        )

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> "Presentation":
        data = json.loads(text)
        if not isinstance(data, Mapping):
            raise ValueError("presentation JSON must be an object")
        return cls.from_dict(data)
