"""Encode the canonical model as OpenDocument flat presentation XML."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Callable, Mapping
from xml.sax.saxutils import escape

from ..model import ImageElement, Presentation, ShapeElement, Slide, SlideElement, TextElement
from ..units import degrees_to_radians, format_number, parse_number, to_centimeters, to_pixels, to_points
from ..utils import PathLike, ensure_parent_dir, utc_now
from .templates import DOCUMENT_TEMPLATE

__all__ = [
    "DEFAULT_TITLE",
    "DEFAULT_AUTHOR",
    "FodpEncoder",
    "encode_fodp",
    "escape_xml",
    "write_fodp",
]

_LOGGER = logging.getLogger("intellideck.fodp.encoder")

DEFAULT_TITLE = "Presentation"
DEFAULT_AUTHOR = "IntelliDeck"
DEFAULT_BACKGROUND = "#FFFFFF"

_ENTITIES = {'"': "&quot;", "'": "&apos;"}

_SPACE_RUN = re.compile(r" {2,}")

_INVALID_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")

_DATA_URI = re.compile(r"^data:(?P<mime>[^;,]+)?(?P<base64>;base64)?,(?P<data>.*)$", re.DOTALL)


def escape_xml(value: Any) -> str:
    """Escape ``& < > " '`` in *value* for use in text or attribute content.

    Characters XML 1.0 cannot carry (C0 controls other than tab, newline and
    carriage return, lone surrogates, U+FFFE and U+FFFF) are dropped.
    """

    if value is None:
        return ""
    return escape(_INVALID_XML_CHARS.sub("", str(value)), _ENTITIES)


def _line_height(value: Any) -> str | None:
    if isinstance(value, str) and value.strip().endswith("%"):
        number = parse_number(value)
        return f"{format_number(number)}%" if number is not None else None
    if isinstance(value, str) and value.strip()[-2:].lower() in ("cm", "mm", "pt", "px"):
        return to_centimeters(to_pixels(value))
    number = parse_number(value)
    return f"{format_number(number * 100)}%" if number is not None else None


def _text_content(line: str) -> str:
    def spaces(match: re.Match[str]) -> str:
        return f' <text:s text:c="{len(match.group(0)) - 1}"/>'

    escaped = _SPACE_RUN.sub(spaces, escape_xml(line))
    return escaped.replace("\t", "<text:tab/>")


def _properties(values: Mapping[str, Any]) -> str:
    return " ".join(f'{name}="{escape_xml(value)}"' for name, value in values.items() if value is not None)


class FodpEncoder:
    """Render a :class:`Presentation` into a complete flat XML document."""

    def __init__(
        self,
        *,
        logger: logging.Logger | None = None,
        clock: Callable[[], Any] = utc_now,
    ) -> None:
        self.logger = logger or _LOGGER
        self._clock = clock

    def encode(self, presentation: Presentation) -> str:
        creation_date = presentation.creation_date or self._clock().isoformat()
        slides = "\n".join(
            self._slide(slide, index) for index, slide in enumerate(presentation.slides, start=1)
        )
        document = DOCUMENT_TEMPLATE.substitute(
            title=escape_xml(presentation.title or DEFAULT_TITLE),
            author=escape_xml(presentation.author or DEFAULT_AUTHOR),
            creation_date=escape_xml(creation_date),
            slides=slides,
        )
        self.logger.debug("Encoded %d slide(s) into flat XML", len(presentation.slides))
        return document

    def _slide(self, slide: Slide, slide_index: int) -> str:
        slide_id = slide.id or f"slide-{slide_index}"
        name = f'draw:name="{escape_xml(slide.title)}" ' if slide.title else ""
        color = (slide.background.color if slide.background else None) or DEFAULT_BACKGROUND

        parts = [
            f'      <draw:page {name}draw:style-name="dp1" '
            f'draw:master-page-name="DefaultMaster" draw:id="{escape_xml(slide_id)}">',
            '        <draw:rect draw:style-name="background" draw:layer="layout" '
            'svg:width="28cm" svg:height="21cm" svg:x="0cm" svg:y="0cm">',
            "          <svg:title>Background</svg:title>",
            f'          <draw:fill><draw:fill-color svg:color="{escape_xml(color)}"/></draw:fill>',
            "        </draw:rect>",
        ]
        if slide.background is not None and slide.background.image:
            parts.append(
                '        <draw:g><draw:frame draw:layer="background" svg:width="28cm" svg:height="21cm" '
                'svg:x="0cm" svg:y="0cm">'
                f"{self._image_content(slide.background.image)}</draw:frame></draw:g>"
            )
        for element_index, element in enumerate(slide.elements, start=1):
            parts.append(self._element(element, slide_index, element_index))
        if slide.notes:
            paragraphs = "".join(
                f"<text:p>{_text_content(line)}</text:p>" for line in slide.notes.split("\n")
            )
            parts.append(
                '        <presentation:notes draw:style-name="dp1">'
                '<draw:frame presentation:class="notes" svg:width="16cm" svg:height="12cm" '
                'svg:x="2cm" svg:y="14cm">'
                f"<draw:text-box>{paragraphs}</draw:text-box></draw:frame></presentation:notes>"
            )
        parts.append("      </draw:page>")
        return "\n".join(parts)

    def _element(self, element: SlideElement, slide_index: int, element_index: int) -> str:
        suffix = f"{slide_index}_{element_index}"
        if isinstance(element, TextElement):
            return self._text(element, suffix)
        if isinstance(element, ImageElement):
            return self._image(element, suffix)
        if isinstance(element, ShapeElement):
            return self._shape(element, suffix)
        self.logger.debug("Encoding element type %r as an empty frame", element.type)
        return self._placeholder(element, suffix)

    @staticmethod
    def _geometry(element: SlideElement, style_name: str) -> str:
        x = to_centimeters(element.x)
        y = to_centimeters(element.y)
        attributes = (
            f'draw:style-name="{style_name}" draw:layer="layout" '
            f'svg:width="{to_centimeters(element.width)}" svg:height="{to_centimeters(element.height)}" '
            f'svg:x="{x}" svg:y="{y}"'
        )
        if element.id:
            attributes += f' draw:id="{escape_xml(element.id)}"'
        if element.rotation:
            angle = format_number(-degrees_to_radians(element.rotation))
            attributes += f' draw:transform="rotate ({angle}) translate ({x} {y})"'
        return attributes

    @staticmethod
    def _graphic_style(name: str, properties: Mapping[str, Any]) -> str:
        return (
            f'        <style:style style:name="{name}" style:family="graphic">'
            f"<style:graphic-properties {_properties(properties)}/></style:style>"
        )

    @staticmethod
    def _graphic_properties(
        style: Mapping[str, Any],
        *,
        fill: str | None = None,
        stroke: str | None = None,
        stroke_width: float | None = None,
    ) -> dict[str, Any]:
        background = style.get("backgroundColor") or fill
        border = style.get("borderColor") or stroke
        width = parse_number(style.get("borderWidth"))
        if width is None:
            width = stroke_width
        properties: dict[str, Any] = {
            "draw:fill": "solid" if background else "none",
            "draw:fill-color": background,
            "draw:stroke": style.get("borderStyle") or ("solid" if border else "none"),
            "svg:stroke-color": border,
            "svg:stroke-width": to_centimeters(float(width)) if border and width is not None else None,
        }
        opacity = style.get("opacity")
        if isinstance(opacity, (int, float)):
            properties["draw:opacity"] = f"{format_number(float(opacity) * 100)}%"
        return properties

    def _text(self, element: TextElement, suffix: str) -> str:
        text_style = element.text_style or {}
        frame_style = f"TextBox{suffix}"
        paragraph_style = f"TextStyle{suffix}"
        span_style = f"TextSpanStyle{suffix}"

        paragraphs = "".join(
            f'<text:p text:style-name="{paragraph_style}">'
            f'<text:span text:style-name="{span_style}">{_text_content(line)}</text:span></text:p>'
            for line in element.text.split("\n")
        )

        graphic = self._graphic_properties(element.style)
        graphic["draw:textarea-vertical-align"] = text_style.get("verticalAlignment")

        paragraph_properties = {
            "fo:text-align": text_style.get("alignment") or "left",
            "fo:line-height": _line_height(text_style.get("lineHeight")),
        }
        decoration = text_style.get("textDecoration")
        text_properties = {
            "fo:font-family": text_style.get("fontFamily") or "Arial",
            "fo:font-size": to_points(parse_number(text_style.get("fontSize")) or 18),
            "fo:color": element.style.get("color") or "#000000",
            "fo:font-weight": text_style.get("fontWeight") or "normal",
            "fo:font-style": text_style.get("fontStyle") or "normal",
            "style:text-underline-style": "solid" if decoration == "underline" else "none",
            "style:text-line-through-style": "solid" if decoration == "line-through" else None,
        }
        return "\n".join(
            [
                f"        <draw:frame {self._geometry(element, frame_style)}>"
                f"<draw:text-box>{paragraphs}</draw:text-box></draw:frame>",
                self._graphic_style(frame_style, graphic),
                f'        <style:style style:name="{paragraph_style}" style:family="paragraph">'
                f"<style:paragraph-properties {_properties(paragraph_properties)}/></style:style>",
                f'        <style:style style:name="{span_style}" style:family="text">'
                f"<style:text-properties {_properties(text_properties)}/></style:style>",
            ]
        )

    @staticmethod
    def _image_content(src: str, alt: str | None = None) -> str:
        title = f"<svg:title>{escape_xml(alt)}</svg:title>" if alt else ""
        match = _DATA_URI.match(src)
        if match and match.group("base64"):
            mime = match.group("mime") or "image/png"
            return (
                f'<draw:image loext:mime-type="{escape_xml(mime)}">'
                f"<office:binary-data>{escape_xml(match.group('data'))}</office:binary-data>"
                f"{title}</draw:image>"
            )
        return (
            f'<draw:image xlink:href="{escape_xml(src)}" xlink:type="simple" '
            f'xlink:show="embed" xlink:actuate="onLoad">{title}</draw:image>'
        )

    def _image(self, element: ImageElement, suffix: str) -> str:
        frame_style = f"ImageFrame{suffix}"
        return "\n".join(
            [
                f"        <draw:frame {self._geometry(element, frame_style)}>"
                f"{self._image_content(element.src, element.alt)}</draw:frame>",
                self._graphic_style(frame_style, self._graphic_properties(element.style)),
            ]
        )

    def _shape(self, element: ShapeElement, suffix: str) -> str:
        style_name = f"ShapeBox{suffix}"
        kind = (element.shape_type or "").lower()
        if kind in ("ellipse", "circle"):
            tag, extra = "draw:ellipse", ""
        elif kind == "triangle":
            tag, extra = "draw:regular-polygon", ' draw:corners="3" draw:concave="false"'
        else:
            if kind != "rectangle":
                self.logger.debug("Unknown shape type %r encoded as rectangle", element.shape_type)
            tag, extra = "draw:rect", ""

        text = ""
        if element.text:
            text = "".join(f"<text:p>{_text_content(line)}</text:p>" for line in element.text.split("\n"))

        properties = self._graphic_properties(
            element.style, fill="#e6e6e6", stroke="#000000", stroke_width=1
        )
        return "\n".join(
            [
                f"        <{tag} {self._geometry(element, style_name)}{extra}>{text}</{tag}>",
                self._graphic_style(style_name, properties),
            ]
        )

    def _placeholder(self, element: SlideElement, suffix: str) -> str:
        style_name = f"ElementFrame{suffix}"
        return "\n".join(
            [
                f"        <draw:frame {self._geometry(element, style_name)}/>",
                self._graphic_style(style_name, self._graphic_properties(element.style)),
            ]
        )


def encode_fodp(presentation: Presentation, *, logger: logging.Logger | None = None) -> str:
    """Return *presentation* as flat presentation XML text."""

    return FodpEncoder(logger=logger).encode(presentation)


def write_fodp(
    presentation: Presentation,
    path: PathLike,
    *,
    logger: logging.Logger | None = None,
) -> Path:
    """Encode *presentation* and write it to *path* as UTF-8."""

    destination = Path(path)
    ensure_parent_dir(destination)
    destination.write_text(encode_fodp(presentation, logger=logger), encoding="utf-8")
    (logger or _LOGGER).info("Flat XML written to %s", destination)
    return destination
