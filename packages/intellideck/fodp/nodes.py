"""Typed views over the flat presentation XML elements the decoder understands.

Every node is built from an :class:`xml.etree.ElementTree.Element` by its
``from_element`` classmethod. Child lookups always go through ``findall`` or
iteration, so a single ``draw:page`` and a run of them are handled alike.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Iterator
from xml.etree.ElementTree import Element

from ..units import parse_number, radians_to_degrees, to_pixels
from .namespaces import prefixed, qn

__all__ = [
    "DRAWABLE_TAGS",
    "SHAPE_TAGS",
    "Geometry",
    "StyleNode",
    "StyleIndex",
    "TextBoxNode",
    "ImageNode",
    "FrameNode",
    "ShapeNode",
    "PageNode",
    "collect_paragraphs",
    "flatten_text",
    "paragraphs_text",
    "parse_transform",
]

PARAGRAPH_TAGS = frozenset({qn("text:p"), qn("text:h")})

_SKIPPED_TEXT_TAGS = frozenset(
    {qn("svg:title"), qn("svg:desc"), qn("office:annotation"), qn("draw:enhanced-geometry")}
)

SHAPE_TAGS: dict[str, str | None] = {
    qn("draw:custom-shape"): None,
    qn("draw:shape"): None,
    qn("draw:rect"): "rectangle",
    qn("draw:ellipse"): "ellipse",
    qn("draw:circle"): "circle",
    qn("draw:regular-polygon"): "polygon",
    qn("draw:polygon"): "polygon",
    qn("draw:path"): "path",
}

DRAWABLE_TAGS = frozenset({qn("draw:frame"), *SHAPE_TAGS})

BACKGROUND_STYLE = "background"

_TRANSFORM_RE = re.compile(r"([a-zA-Z]+)\s*\(([^)]*)\)")


def flatten_text(element: Element) -> str:
    """Concatenate the character content of *element* and its descendants."""

    parts: list[str] = [element.text or ""]
    for child in element:
        tag = child.tag
        if tag == qn("text:s"):
            count = parse_number(child.get(qn("text:c")))
            parts.append(" " * (int(count) if count and count > 0 else 1))
        elif tag == qn("text:tab"):
            parts.append("\t")
        elif tag == qn("text:line-break"):
            parts.append("\n")
        elif tag not in _SKIPPED_TEXT_TAGS:
            parts.append(flatten_text(child))
        parts.append(child.tail or "")
    return "".join(parts)


def collect_paragraphs(element: Element) -> Iterator[Element]:
    """Yield ``text:p``/``text:h`` descendants in document order.

    Lists, sections and nested frames are descended into; paragraphs are not.
    """

    for child in element:
        if child.tag in PARAGRAPH_TAGS:
            yield child
        elif child.tag not in _SKIPPED_TEXT_TAGS:
            yield from collect_paragraphs(child)


def paragraphs_text(element: Element) -> str | None:
    paragraphs = [flatten_text(paragraph) for paragraph in collect_paragraphs(element)]
    if not paragraphs:
        return None
    return "\n".join(paragraphs)


def parse_transform(value: str | None) -> tuple[float | None, tuple[float, float] | None]:
    """Read ``rotate`` (as clockwise degrees) and ``translate`` from ``draw:transform``."""

    if not value:
        return None, None
    rotation: float | None = None
    translate: tuple[float, float] | None = None
    for name, raw_args in _TRANSFORM_RE.findall(value):
        args = raw_args.replace(",", " ").split()
        if name == "rotate" and args:
            radians = parse_number(args[0])
            if radians is not None:
                # ODF rotates counter-clockwise.
                rotation = -radians_to_degrees(radians) + 0.0
        elif name == "translate" and args:
            tx = to_pixels(args[0])
            ty = to_pixels(args[1]) if len(args) > 1 else 0.0
            translate = (tx, ty)
    return rotation, translate


def _attributes(element: Element | None) -> dict[str, str]:
    if element is None:
        return {}
    return {prefixed(key): value for key, value in element.attrib.items()}


def _length(value: str | None) -> float:
    number = to_pixels(value)
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


@dataclass(slots=True)
class Geometry:
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    rotation: float | None = None

    @classmethod
    def from_element(cls, element: Element) -> "Geometry":
        rotation, translate = parse_transform(element.get(qn("draw:transform")))
        raw_x = element.get(qn("svg:x"))
        raw_y = element.get(qn("svg:y"))
        width = _length(element.get(qn("svg:width")))
        height = _length(element.get(qn("svg:height")))

        radius = element.get(qn("svg:r"))
        if radius is not None and raw_x is None and not width:
            r = _length(radius)
            width = height = 2 * r
            x = max(to_pixels(element.get(qn("svg:cx"))) - r, 0.0)
            y = max(to_pixels(element.get(qn("svg:cy"))) - r, 0.0)
            return cls(x=x, y=y, width=width, height=height, rotation=rotation)

        if raw_x is None and translate is not None:
            x = max(translate[0], 0.0)
        else:
            x = _length(raw_x)
        if raw_y is None and translate is not None:
            y = max(translate[1], 0.0)
        else:
            y = _length(raw_y)
        return cls(x=x, y=y, width=width, height=height, rotation=rotation)


@dataclass(slots=True)
class StyleNode:
    """A ``style:style`` definition with its property groups flattened to dicts."""

    name: str
    family: str | None = None
    parent: str | None = None
    graphic: dict[str, str] = field(default_factory=dict)
    paragraph: dict[str, str] = field(default_factory=dict)
    text: dict[str, str] = field(default_factory=dict)
    drawing_page: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_element(cls, element: Element) -> "StyleNode":
        return cls(
            name=element.get(qn("style:name"), ""),
            family=element.get(qn("style:family")),
            parent=element.get(qn("style:parent-style-name")),
            graphic=_attributes(element.find(qn("style:graphic-properties"))),
            paragraph=_attributes(element.find(qn("style:paragraph-properties"))),
            text=_attributes(element.find(qn("style:text-properties"))),
            drawing_page=_attributes(element.find(qn("style:drawing-page-properties"))),
        )


class StyleIndex:
    """Every ``style:style`` in a document, looked up by name with inheritance."""

    def __init__(self, styles: dict[str, StyleNode] | None = None) -> None:
        self._styles = styles or {}

    @classmethod
    def from_root(cls, root: Element) -> "StyleIndex":
        styles: dict[str, StyleNode] = {}
        for element in root.iter(qn("style:style")):
            node = StyleNode.from_element(element)
            if node.name:
                styles.setdefault(node.name, node)
        return cls(styles)

    def __len__(self) -> int:
        return len(self._styles)

    def __contains__(self, name: object) -> bool:
        return name in self._styles

    def get(self, name: str | None) -> StyleNode | None:
        if not name:
            return None
        return self._styles.get(name)

    def resolve(self, name: str | None) -> StyleNode | None:
        """Return *name* merged over its ``style:parent-style-name`` chain."""

        chain: list[StyleNode] = []
        seen: set[str] = set()
        current = self.get(name)
        while current is not None and current.name not in seen:
            chain.append(current)
            seen.add(current.name)
            current = self.get(current.parent)
        if not chain:
            return None
        merged = StyleNode(name=chain[0].name, family=chain[0].family, parent=chain[0].parent)
        for node in reversed(chain):
            merged.graphic.update(node.graphic)
            merged.paragraph.update(node.paragraph)
            merged.text.update(node.text)
            merged.drawing_page.update(node.drawing_page)
        return merged


@dataclass(slots=True)
class TextBoxNode:
    text: str
    paragraph_style: str | None = None
    span_style: str | None = None

    @classmethod
    def from_element(cls, element: Element) -> "TextBoxNode":
        paragraphs = list(collect_paragraphs(element))
        paragraph_style = None
        span_style = None
        if paragraphs:
            first = paragraphs[0]
            paragraph_style = first.get(qn("text:style-name"))
            for span in first.iter(qn("text:span")):
                span_style = span.get(qn("text:style-name"))
                if span_style:
                    break
        text = "\n".join(flatten_text(paragraph) for paragraph in paragraphs)
        return cls(text=text, paragraph_style=paragraph_style, span_style=span_style)


@dataclass(slots=True)
class ImageNode:
    href: str
    title: str | None = None

    @classmethod
    def from_element(cls, element: Element) -> "ImageNode":
        href = element.get(qn("xlink:href"), "")
        if not href:
            binary = element.find(qn("office:binary-data"))
            if binary is not None and binary.text:
                mime = element.get(qn("draw:mime-type")) or element.get(qn("loext:mime-type")) or "image/png"
                data = "".join(binary.text.split())
                href = f"data:{mime};base64,{data}"
        title = element.findtext(qn("svg:title"))
        return cls(href=href, title=title)


def _element_id(element: Element) -> str | None:
    return element.get(qn("draw:id")) or element.get(qn("xml:id"))


def _alt_text(element: Element) -> str | None:
    for tag in ("svg:title", "svg:desc"):
        value = element.findtext(qn(tag))
        if value:
            return value
    return None


@dataclass(slots=True)
class FrameNode:
    element_id: str | None
    name: str | None
    style_name: str | None
    presentation_class: str | None
    geometry: Geometry
    text_box: TextBoxNode | None = None
    image: ImageNode | None = None
    alt: str | None = None

    @classmethod
    def from_element(cls, element: Element) -> "FrameNode":
        text_box_element = element.find(qn("draw:text-box"))
        image_element = element.find(qn("draw:image"))
        return cls(
            element_id=_element_id(element),
            name=element.get(qn("draw:name")),
            style_name=element.get(qn("draw:style-name")) or element.get(qn("presentation:style-name")),
            presentation_class=element.get(qn("presentation:class")),
            geometry=Geometry.from_element(element),
            text_box=TextBoxNode.from_element(text_box_element) if text_box_element is not None else None,
            image=ImageNode.from_element(image_element) if image_element is not None else None,
            alt=_alt_text(element),
        )


@dataclass(slots=True)
class ShapeNode:
    tag: str
    element_id: str | None
    style_name: str | None
    geometry: Geometry
    shape_type: str
    path: str | None = None
    text: str | None = None
    paragraph_style: str | None = None
    span_style: str | None = None

    @classmethod
    def from_element(cls, element: Element) -> "ShapeNode":
        geometry_element = element.find(qn("draw:enhanced-geometry"))
        text_box = TextBoxNode.from_element(element)
        has_paragraphs = next(collect_paragraphs(element), None) is not None
        return cls(
            tag=prefixed(element.tag),
            element_id=_element_id(element),
            style_name=element.get(qn("draw:style-name")),
            geometry=Geometry.from_element(element),
            shape_type=_shape_kind(element, geometry_element),
            path=_shape_path(element, geometry_element),
            text=text_box.text if has_paragraphs else None,
            paragraph_style=text_box.paragraph_style,
            span_style=text_box.span_style,
        )


def _shape_kind(element: Element, geometry_element: Element | None) -> str:
    explicit = element.get(qn("draw:shape-type"))
    if explicit:
        return explicit
    if geometry_element is not None:
        geometry_type = geometry_element.get(qn("draw:type"))
        if geometry_type:
            return geometry_type
    implied = SHAPE_TAGS.get(element.tag)
    if element.tag == qn("draw:regular-polygon") and element.get(qn("draw:corners")) == "3":
        implied = "triangle"
    return implied or "rectangle"


def _shape_path(element: Element, geometry_element: Element | None) -> str | None:
    if geometry_element is not None:
        enhanced = geometry_element.get(qn("draw:enhanced-path"))
        if enhanced:
            return enhanced
    return element.get(qn("svg:d")) or element.get(qn("draw:points"))


def _is_background_rect(element: Element) -> bool:
    return element.tag == qn("draw:rect") and element.get(qn("draw:style-name")) == BACKGROUND_STYLE


@dataclass(slots=True)
class PageNode:
    """A ``draw:page`` with its drawables kept in document (paint) order."""

    element: Element
    page_id: str | None
    name: str | None
    style_name: str | None
    background_color: str | None = None
    background_image: str | None = None
    notes: str | None = None
    drawables: list[Element] = field(default_factory=list)

    @classmethod
    def from_element(cls, element: Element) -> "PageNode":
        background_color = None
        drawables: list[Element] = []
        for child in element:
            if _is_background_rect(child):
                fill = child.find(f".//{qn('draw:fill-color')}")
                if fill is not None:
                    background_color = fill.get(qn("svg:color")) or background_color
                background_color = child.get(qn("draw:fill-color")) or background_color
                continue
            if child.tag in DRAWABLE_TAGS:
                drawables.append(child)

        background_image = None
        for group in element.findall(qn("draw:g")):
            image = group.find(f".//{qn('draw:image')}")
            if image is None:
                continue
            href = ImageNode.from_element(image).href
            if href:
                background_image = href
                break

        notes_element = element.find(qn("presentation:notes"))
        notes = paragraphs_text(notes_element) if notes_element is not None else None

        return cls(
            element=element,
            page_id=element.get(qn("draw:id")) or element.get(qn("xml:id")),
            name=element.get(qn("draw:name")),
            style_name=element.get(qn("draw:style-name")),
            background_color=background_color,
            background_image=background_image,
            notes=notes,
            drawables=drawables,
        )

    def title_frame(self) -> FrameNode | None:
        for child in self.drawables:
            if child.tag == qn("draw:frame") and child.get(qn("presentation:class")) == "title":
                return FrameNode.from_element(child)
        return None
