"""Decode OpenDocument flat presentation XML into the canonical model."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Sequence
from xml.etree.ElementTree import Element

from ..exceptions import XmlStructureInvalid
from ..model import (
    DEFAULT_TITLE,
    Background,
    ImageElement,
    Presentation,
    ShapeElement,
    Slide,
    SlideElement,
    SlideSize,
    TextElement,
)
from ..units import parse_number, to_pixels
from ..utils import PathLike
from .namespaces import prefixed, qn
from .nodes import FrameNode, PageNode, ShapeNode, StyleIndex, StyleNode

__all__ = [
    "PLACEHOLDER_TITLE",
    "ROOT_TAGS",
    "PageLocator",
    "PAGE_LOCATORS",
    "FodpDecoder",
    "decode_fodp",
    "decode_fodp_file",
    "locate_pages",
    "parse_root",
]

_LOGGER = logging.getLogger("intellideck.fodp.decoder")

PLACEHOLDER_TITLE = "Slide not found"

ROOT_TAGS = frozenset({qn("office:document"), qn("office:document-content")})

_ALIGNMENTS = {"start": "left", "end": "right", "left": "left", "right": "right", "center": "center", "justify": "justify"}


@dataclass(frozen=True)
class PageLocator:
    """Named strategy returning the ``draw:page`` elements it can find, or ``None``."""

    name: str
    locate: Callable[[Element], "list[Element] | None"]


def _pages_under(root: Element, root_tag: str) -> list[Element] | None:
    if root.tag != qn(root_tag):
        return None
    body = root.find(qn("office:body"))
    if body is None:
        return None
    presentation = body.find(qn("office:presentation"))
    if presentation is None:
        return None
    return presentation.findall(qn("draw:page")) or None


def locate_flat_document(root: Element) -> list[Element] | None:
    return _pages_under(root, "office:document")


def locate_document_content(root: Element) -> list[Element] | None:
    return _pages_under(root, "office:document-content")


def locate_deep_search(root: Element) -> list[Element] | None:
    """Search the tree for the first node that directly holds ``draw:page`` children.

    A node's own children are checked before any of its subtrees, and the
    first subtree with a match ends the search.
    """

    pages = root.findall(qn("draw:page"))
    if pages:
        return pages
    for child in root:
        found = locate_deep_search(child)
        if found:
            return found
    return None


PAGE_LOCATORS: tuple[PageLocator, ...] = (
    PageLocator("flat-document", locate_flat_document),
    PageLocator("document-content", locate_document_content),
    PageLocator("deep-search", locate_deep_search),
)


def locate_pages(
    root: Element,
    locators: Sequence[PageLocator] = PAGE_LOCATORS,
    logger: logging.Logger | None = None,
) -> list[Element]:
    """Run *locators* in order and return the first non-empty page list."""

    log = logger or _LOGGER
    for locator in locators:
        try:
            pages = locator.locate(root)
        except RecursionError:
            log.warning("Page locator '%s' exceeded the recursion limit", locator.name)
            continue
        if pages:
            log.debug("Page locator '%s' found %d page(s)", locator.name, len(pages))
            return pages
    return []


def parse_root(source: str | bytes) -> Element:
    """Parse *source* and return its document root, or raise :class:`XmlStructureInvalid`."""

    if not source or not source.strip():
        raise XmlStructureInvalid("Flat XML input is empty")
    try:
        root = ET.fromstring(source)
    except ET.ParseError as exc:
        raise XmlStructureInvalid(f"Flat XML input is not well-formed: {exc}") from exc
    if root.tag not in ROOT_TAGS:
        raise XmlStructureInvalid(
            f"Unexpected document root {prefixed(root.tag)!r}; expected office:document or office:document-content"
        )
    return root


def _first(value: Any) -> Any:
    # repeated metadata keys are collected into lists
    if isinstance(value, list):
        return value[0] if value else None
    return value


class FodpDecoder:
    """Build a :class:`Presentation` from flat presentation XML.

    Only a missing or foreign document root is fatal. Every other extraction
    step that fails is logged as a warning and treated as absent.
    """

    def __init__(
        self,
        *,
        locators: Sequence[PageLocator] = PAGE_LOCATORS,
        logger: logging.Logger | None = None,
    ) -> None:
        self.locators = tuple(locators)
        self.logger = logger or _LOGGER

    def decode(self, source: str | bytes) -> Presentation:
        root = parse_root(source)
        styles = self._guard("style index", lambda: StyleIndex.from_root(root)) or StyleIndex()
        meta = self._guard("metadata", lambda: self._read_meta(root)) or {}

        title = _first(meta.pop("dc:title", None)) or self._guard(
            "presentation name", lambda: self._presentation_name(root)
        )
        author = _first(meta.pop("dc:creator", None)) or _first(meta.pop("meta:initial-creator", None))
        meta.pop("meta:initial-creator", None)
        creation_date = _first(meta.pop("meta:creation-date", None)) or _first(meta.pop("dc:date", None))

        size = self._guard("slide size", lambda: self._read_size(root))
        slides = self._read_slides(root, styles)

        presentation = Presentation(
            title=str(title) if title else DEFAULT_TITLE,
            author=str(author) if author else None,
            creation_date=str(creation_date) if creation_date else None,
            metadata=meta or None,
            size=size,
            slides=slides,
        )
        self.logger.info("Decoded presentation with %d slide(s)", len(presentation.slides))
        return presentation

    def _guard(self, step: str, func: Callable[[], Any]) -> Any:
        try:
            return func()
        except Exception as exc:
            self.logger.warning("Could not extract %s: %s", step, exc)
            return None

    def _read_meta(self, root: Element) -> dict[str, Any]:
        meta_element = root.find(qn("office:meta"))
        if meta_element is None:
            return {}
        meta: dict[str, Any] = {}
        for child in meta_element:
            key = prefixed(child.tag)
            if child.tag == qn("meta:user-defined"):
                key = child.get(qn("meta:name")) or key
                value: Any = (child.text or "").strip()
            elif child.tag == qn("meta:document-statistic"):
                value = {prefixed(name): attr for name, attr in child.attrib.items()}
            else:
                value = (child.text or "").strip()
            if key in meta:
                existing = meta[key]
                meta[key] = [*existing, value] if isinstance(existing, list) else [existing, value]
            else:
                meta[key] = value
        return meta

    @staticmethod
    def _presentation_name(root: Element) -> str | None:
        presentation = root.find(f".//{qn('office:presentation')}")
        if presentation is None:
            return None
        return presentation.get(qn("draw:name"))

    @staticmethod
    def _read_size(root: Element) -> SlideSize | None:
        for properties in root.iter(qn("style:page-layout-properties")):
            width = properties.get(qn("fo:page-width"))
            height = properties.get(qn("fo:page-height"))
            if width and height:
                return SlideSize(width=to_pixels(width), height=to_pixels(height))
        return None

    def _read_slides(self, root: Element, styles: StyleIndex) -> list[Slide]:
        pages = self._guard("pages", lambda: locate_pages(root, self.locators, self.logger)) or []
        if not pages:
            self.logger.warning("No slide pages found, substituting a placeholder slide")
            return [Slide(id="slide-1", title=PLACEHOLDER_TITLE, elements=[])]

        slides: list[Slide] = []
        for index, page in enumerate(pages, start=1):
            slide = self._guard(f"slide {index}", lambda page=page, index=index: self._read_slide(page, index, styles))
            slides.append(slide if slide is not None else Slide(id=f"slide-{index}", elements=[]))
        return slides

    def _read_slide(self, element: Element, index: int, styles: StyleIndex) -> Slide:
        page = PageNode.from_element(element)
        slide_id = page.page_id or page.name or f"slide-{index}"

        title = page.name
        if not title:
            frame = self._guard("slide title", page.title_frame)
            if frame is not None and frame.text_box is not None:
                title = frame.text_box.text or None

        background = self._guard("slide background", lambda: self._read_background(page, styles))

        elements: list[SlideElement] = []
        seen_ids: set[str] = set()
        for position, child in enumerate(page.drawables, start=1):
            item = self._guard(
                f"element {position} on slide {index}",
                lambda child=child: self._read_element(child, styles),
            )
            if item is None:
                continue
            if not item.id or item.id in seen_ids:
                item.id = f"{slide_id}-element-{position}"
            seen_ids.add(item.id)
            elements.append(item)

        return Slide(
            id=slide_id,
            title=title,
            notes=page.notes,
            background=background,
            elements=elements,
        )

    @staticmethod
    def _read_background(page: PageNode, styles: StyleIndex) -> Background | None:
        color = page.background_color
        if color is None:
            style = styles.resolve(page.style_name)
            if style is not None:
                properties = style.drawing_page or style.graphic
                if properties.get("draw:fill") != "none":
                    color = properties.get("draw:fill-color")
        if color is None and page.background_image is None:
            return None
        return Background(color=color, image=page.background_image)

    def _read_element(self, element: Element, styles: StyleIndex) -> SlideElement:
        if element.tag == qn("draw:frame"):
            return self._read_frame(FrameNode.from_element(element), styles)
        return self._read_shape(ShapeNode.from_element(element), styles)

    def _read_frame(self, frame: FrameNode, styles: StyleIndex) -> SlideElement:
        geometry = frame.geometry
        common = {
            "id": frame.element_id or "",
            "x": geometry.x,
            "y": geometry.y,
            "width": geometry.width,
            "height": geometry.height,
            "rotation": geometry.rotation,
        }
        graphic = styles.resolve(frame.style_name)
        if frame.text_box is not None:
            paragraph = styles.resolve(frame.text_box.paragraph_style)
            span = styles.resolve(frame.text_box.span_style)
            return TextElement(
                **common,
                style=_element_style(graphic, paragraph, span),
                text=frame.text_box.text,
                text_style=_text_style(graphic, paragraph, span) or None,
            )
        if frame.image is not None:
            return ImageElement(
                **common,
                style=_element_style(graphic),
                src=frame.image.href,
                alt=frame.image.title or frame.alt,
            )
        return SlideElement(**common, style=_element_style(graphic))

    def _read_shape(self, shape: ShapeNode, styles: StyleIndex) -> ShapeElement:
        geometry = shape.geometry
        graphic = styles.resolve(shape.style_name)
        paragraph = styles.resolve(shape.paragraph_style)
        span = styles.resolve(shape.span_style)
        return ShapeElement(
            id=shape.element_id or "",
            x=geometry.x,
            y=geometry.y,
            width=geometry.width,
            height=geometry.height,
            rotation=geometry.rotation,
            style=_element_style(graphic, paragraph, span),
            shape_type=shape.shape_type,
            path=shape.path,
            text=shape.text,
        )

    def decode_file(self, path: PathLike) -> Presentation:
        return self.decode(Path(path).read_bytes())


def _element_style(
    graphic: StyleNode | None,
    paragraph: StyleNode | None = None,
    span: StyleNode | None = None,
) -> dict[str, Any]:
    style: dict[str, Any] = {}
    if graphic is not None:
        properties = graphic.graphic
        fill = properties.get("draw:fill")
        if fill != "none" and properties.get("draw:fill-color"):
            style["backgroundColor"] = properties["draw:fill-color"]
        stroke = properties.get("draw:stroke")
        stroke_color = properties.get("svg:stroke-color") or properties.get("draw:stroke-color")
        if stroke != "none" and stroke_color:
            style["borderColor"] = stroke_color
        stroke_width = properties.get("svg:stroke-width") or properties.get("draw:stroke-width")
        if stroke != "none" and stroke_width:
            style["borderWidth"] = to_pixels(stroke_width)
        if stroke:
            style["borderStyle"] = stroke
        opacity = properties.get("draw:opacity")
        if opacity:
            number = parse_number(opacity)
            if number is not None:
                style["opacity"] = number / 100 if opacity.strip().endswith("%") else number
    for node in (graphic, paragraph, span):
        if node is not None and node.text.get("fo:color"):
            style["color"] = node.text["fo:color"]
    return style


def _text_style(
    graphic: StyleNode | None,
    paragraph: StyleNode | None,
    span: StyleNode | None,
) -> dict[str, Any]:
    text_style: dict[str, Any] = {}
    for node in (graphic, paragraph, span):
        if node is None:
            continue
        props = node.text
        family = props.get("fo:font-family") or props.get("style:font-name")
        if family:
            text_style["fontFamily"] = family.strip("'\"")
        size = parse_number(props.get("fo:font-size"))
        if size is not None:
            text_style["fontSize"] = size
        if props.get("fo:font-weight"):
            text_style["fontWeight"] = props["fo:font-weight"]
        if props.get("fo:font-style"):
            text_style["fontStyle"] = props["fo:font-style"]
        if props.get("style:text-underline-style", "none") != "none":
            text_style["textDecoration"] = "underline"
        elif props.get("style:text-line-through-style", "none") != "none":
            text_style["textDecoration"] = "line-through"

        align = node.paragraph.get("fo:text-align")
        if align:
            text_style["alignment"] = _ALIGNMENTS.get(align, align)
        line_height = node.paragraph.get("fo:line-height")
        if line_height:
            number = parse_number(line_height)
            if number is not None:
                text_style["lineHeight"] = number / 100 if line_height.strip().endswith("%") else to_pixels(line_height)

        vertical = node.graphic.get("draw:textarea-vertical-align")
        if vertical:
            text_style["verticalAlignment"] = vertical
    return text_style


def decode_fodp(source: str | bytes, *, logger: logging.Logger | None = None) -> Presentation:
    """Decode flat presentation XML text into a :class:`Presentation`."""

    return FodpDecoder(logger=logger).decode(source)


def decode_fodp_file(path: PathLike, *, logger: logging.Logger | None = None) -> Presentation:
    return FodpDecoder(logger=logger).decode_file(path)
