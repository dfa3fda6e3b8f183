import logging
import xml.etree.ElementTree as ET

import pytest

from conftest import HELLO_FODP, NAMESPACES, flat_document
from intellideck.exceptions import XmlStructureInvalid
from intellideck.fodp import decoder as decoder_module
from intellideck.fodp.decoder import (
    PLACEHOLDER_TITLE,
    FodpDecoder,
    PageLocator,
    decode_fodp,
    decode_fodp_file,
    locate_deep_search,
    locate_document_content,
    locate_flat_document,
    locate_pages,
    parse_root,
)
from intellideck.fodp.namespaces import qn
from intellideck.model import ImageElement, ShapeElement, SlideElement, TextElement
from intellideck.units import to_pixels


def _root(xml: str) -> ET.Element:
    return ET.fromstring(xml)


def test_decode_hello_frame() -> None:
    presentation = decode_fodp(HELLO_FODP)

    assert presentation.title == "Greeting"
    assert len(presentation.slides) == 1
    slide = presentation.slides[0]
    assert slide.title == "Welcome"
    assert len(slide.elements) == 1
    element = slide.elements[0]
    assert isinstance(element, TextElement)
    assert element.text == "Hello"
    assert element.x == pytest.approx(to_pixels("10cm"))
    assert element.y == pytest.approx(to_pixels("20cm"))
    assert element.width == pytest.approx(to_pixels("100cm"))
    assert element.height == pytest.approx(to_pixels("50cm"))
    assert element.id == "Welcome-element-1"


def test_decode_file(hello_fodp) -> None:
    assert decode_fodp_file(hello_fodp).slides[0].elements[0].text == "Hello"


@pytest.mark.parametrize("source", ["", "   ", b""])
def test_empty_input_is_invalid(source) -> None:
    with pytest.raises(XmlStructureInvalid):
        decode_fodp(source)


def test_malformed_input_is_invalid() -> None:
    with pytest.raises(XmlStructureInvalid):
        decode_fodp("<office:document")


def test_foreign_root_is_invalid() -> None:
    with pytest.raises(XmlStructureInvalid):
        parse_root(f"<office:document-meta {NAMESPACES}/>")
    with pytest.raises(XmlStructureInvalid):
        parse_root("<root/>")


def test_document_without_pages_gets_placeholder_slide() -> None:
    presentation = decode_fodp(flat_document(""))

    assert len(presentation.slides) == 1
    slide = presentation.slides[0]
    assert slide.id == "slide-1"
    assert slide.title == PLACEHOLDER_TITLE
    assert slide.elements == []


def test_document_content_root() -> None:
    xml = flat_document('<draw:page draw:name="One"/><draw:page draw:name="Two"/>', root="office:document-content")
    root = _root(xml)

    assert locate_flat_document(root) is None
    assert len(locate_document_content(root)) == 2
    assert [slide.title for slide in decode_fodp(xml).slides] == ["One", "Two"]


def test_deep_search_finds_nested_pages() -> None:
    xml = (
        f"<office:document {NAMESPACES}><office:body>"
        "<office:drawing><draw:page draw:name=\"Nested\"/></office:drawing>"
        "</office:body></office:document>"
    )
    root = _root(xml)

    assert locate_flat_document(root) is None
    assert locate_document_content(root) is None
    assert [page.get(qn("draw:name")) for page in locate_deep_search(root)] == ["Nested"]
    assert decode_fodp(xml).slides[0].title == "Nested"


def test_deep_search_prefers_direct_children_over_earlier_subtrees() -> None:
    xml = (
        f"<office:document {NAMESPACES}><office:body><office:drawing>"
        '<draw:g><draw:page draw:name="deep"/></draw:g>'
        '<draw:page draw:name="shallow"/>'
        "</office:drawing></office:body></office:document>"
    )

    pages = locate_deep_search(_root(xml))

    assert [page.get(qn("draw:name")) for page in pages] == ["shallow"]


def test_locate_pages_survives_recursion_error() -> None:
    def explode(root):
        raise RecursionError("too deep")

    locators = (
        PageLocator("explode", explode),
        PageLocator("flat-document", locate_flat_document),
    )

    pages = locate_pages(_root(HELLO_FODP), locators)

    assert len(pages) == 1


def test_metadata_fields() -> None:
    meta = (
        "<dc:title>Quarterly</dc:title>"
        "<meta:initial-creator>Jordan</meta:initial-creator>"
        "<meta:creation-date>2024-03-01T10:00:00</meta:creation-date>"
        "<meta:generator>LibreOffice/7.6</meta:generator>"
        '<meta:user-defined meta:name="Department">Finance</meta:user-defined>'
        '<meta:document-statistic meta:object-count="4"/>'
    )
    presentation = decode_fodp(flat_document('<draw:page draw:name="A"/>', meta=meta))

    assert presentation.title == "Quarterly"
    assert presentation.author == "Jordan"
    assert presentation.creation_date == "2024-03-01T10:00:00"
    assert presentation.metadata["meta:generator"] == "LibreOffice/7.6"
    assert presentation.metadata["Department"] == "Finance"
    assert presentation.metadata["meta:document-statistic"] == {"meta:object-count": "4"}


def test_repeated_metadata_fields_use_first_value() -> None:
    meta = (
        "<dc:title>First</dc:title>"
        "<dc:title>Second</dc:title>"
        "<dc:creator>Ana</dc:creator>"
        "<dc:creator>Bo</dc:creator>"
        "<dc:date>2024-01-01</dc:date>"
        "<dc:date>2024-02-02</dc:date>"
    )
    presentation = decode_fodp(flat_document('<draw:page draw:name="A"/>', meta=meta))

    assert presentation.title == "First"
    assert presentation.author == "Ana"
    assert presentation.creation_date == "2024-01-01"


def test_title_falls_back_to_presentation_name_then_default() -> None:
    named = flat_document("<draw:page/>").replace(
        "<office:presentation>", '<office:presentation draw:name="From Body">'
    )

    assert decode_fodp(named).title == "From Body"
    assert decode_fodp(flat_document("<draw:page/>")).title == "Untitled presentation"


def test_slide_size_from_page_layout() -> None:
    styles = (
        '<style:page-layout style:name="PM1">'
        '<style:page-layout-properties fo:page-width="28cm" fo:page-height="21cm"/>'
        "</style:page-layout>"
    )
    presentation = decode_fodp(flat_document("<draw:page/>", styles=styles))

    assert presentation.size.width == pytest.approx(28 * 37.795)
    assert presentation.size.height == pytest.approx(21 * 37.795)


def test_slide_ids_are_unique() -> None:
    xml = flat_document('<draw:page draw:name="Intro"/><draw:page draw:name="Intro"/><draw:page/>')

    ids = [slide.id for slide in decode_fodp(xml).slides]

    assert ids == ["Intro", "slide-2", "slide-3"]


def test_title_from_title_placeholder_frame() -> None:
    xml = flat_document(
        "<draw:page>"
        '<draw:frame presentation:class="title" svg:x="1cm" svg:y="1cm" svg:width="10cm" svg:height="2cm">'
        "<draw:text-box><text:p>Agenda</text:p></draw:text-box></draw:frame>"
        "</draw:page>"
    )

    slide = decode_fodp(xml).slides[0]

    assert slide.title == "Agenda"
    assert slide.id == "slide-1"


def test_text_flattening_and_lists() -> None:
    xml = flat_document(
        "<draw:page>"
        '<draw:frame svg:x="0cm" svg:y="0cm" svg:width="5cm" svg:height="5cm"><draw:text-box>'
        '<text:p>Hello<text:s text:c="2"/>World<text:tab/>!</text:p>'
        "<text:list><text:list-item><text:p>Item<text:line-break/>two</text:p></text:list-item></text:list>"
        "</draw:text-box></draw:frame>"
        "</draw:page>"
    )

    element = decode_fodp(xml).slides[0].elements[0]

    assert element.text == "Hello  World\t!\nItem\ntwo"


def test_rotation_and_translate_fallback() -> None:
    xml = flat_document(
        "<draw:page>"
        '<draw:rect draw:id="r1" svg:width="4cm" svg:height="2cm" '
        'draw:transform="rotate (1.5707963267949) translate (2cm 3cm)"/>'
        "</draw:page>"
    )

    element = decode_fodp(xml).slides[0].elements[0]

    assert isinstance(element, ShapeElement)
    assert element.id == "r1"
    assert element.rotation == pytest.approx(-90.0)
    assert element.x == pytest.approx(to_pixels("2cm"))
    assert element.y == pytest.approx(to_pixels("3cm"))


def test_negative_coordinates_are_clamped() -> None:
    xml = flat_document(
        "<draw:page>"
        '<draw:rect svg:x="-2cm" svg:y="1cm" svg:width="-4cm" svg:height="2cm"/>'
        "</draw:page>"
    )

    element = decode_fodp(xml).slides[0].elements[0]

    assert element.x == 0.0
    assert element.width == 0.0
    assert element.y == pytest.approx(to_pixels("1cm"))


def test_shape_kinds_and_paths() -> None:
    xml = flat_document(
        "<draw:page>"
        '<draw:custom-shape svg:x="0cm" svg:y="0cm" svg:width="2cm" svg:height="2cm">'
        '<draw:enhanced-geometry draw:type="ellipse" draw:enhanced-path="U 10800 10800 10800 10800 0 360 Z N"/>'
        "</draw:custom-shape>"
        '<draw:custom-shape draw:shape-type="star5" svg:x="0cm" svg:y="0cm" svg:width="2cm" svg:height="2cm">'
        '<draw:enhanced-geometry draw:type="ellipse"/>'
        "</draw:custom-shape>"
        '<draw:regular-polygon draw:corners="3" svg:x="0cm" svg:y="0cm" svg:width="2cm" svg:height="2cm"/>'
        '<draw:rect svg:x="0cm" svg:y="0cm" svg:width="2cm" svg:height="2cm"><text:p>Label</text:p></draw:rect>'
        '<draw:path svg:d="M 0 0 L 10 10" svg:x="0cm" svg:y="0cm" svg:width="2cm" svg:height="2cm"/>'
        '<draw:circle svg:cx="3cm" svg:cy="3cm" svg:r="1cm"/>'
        "</draw:page>"
    )

    elements = decode_fodp(xml).slides[0].elements

    assert [element.shape_type for element in elements] == [
        "ellipse",
        "star5",
        "triangle",
        "rectangle",
        "path",
        "circle",
    ]
    assert elements[0].path == "U 10800 10800 10800 10800 0 360 Z N"
    assert elements[3].text == "Label"
    assert elements[4].path == "M 0 0 L 10 10"
    assert elements[5].width == pytest.approx(2 * 37.795)
    assert elements[5].x == pytest.approx(2 * 37.795)


def test_images_and_unknown_frames() -> None:
    xml = flat_document(
        "<draw:page>"
        '<draw:frame draw:id="img" svg:x="0cm" svg:y="0cm" svg:width="2cm" svg:height="2cm">'
        '<draw:image xlink:href="data:image/png;base64,AAAA"><svg:title>Logo</svg:title></draw:image>'
        "</draw:frame>"
        '<draw:frame svg:x="0cm" svg:y="0cm" svg:width="2cm" svg:height="2cm">'
        '<draw:image loext:mime-type="image/jpeg"><office:binary-data>QUJD\nREVG</office:binary-data></draw:image>'
        "</draw:frame>"
        '<draw:frame svg:x="0cm" svg:y="0cm" svg:width="2cm" svg:height="2cm"><draw:object/></draw:frame>'
        "</draw:page>"
    )

    elements = decode_fodp(xml).slides[0].elements

    assert isinstance(elements[0], ImageElement)
    assert elements[0].is_base64
    assert elements[0].alt == "Logo"
    assert elements[1].src == "data:image/jpeg;base64,QUJDREVG"
    assert type(elements[2]) is SlideElement
    assert elements[2].type == "unknown"


def test_background_notes_and_paint_order() -> None:
    xml = flat_document(
        '<draw:page draw:name="Styled">'
        '<draw:rect draw:style-name="background" svg:x="0cm" svg:y="0cm" svg:width="28cm" svg:height="21cm">'
        '<draw:fill><draw:fill-color svg:color="#112233"/></draw:fill></draw:rect>'
        '<draw:frame draw:id="a" svg:x="0cm" svg:y="0cm" svg:width="1cm" svg:height="1cm">'
        "<draw:text-box><text:p>first</text:p></draw:text-box></draw:frame>"
        '<draw:rect draw:id="b" svg:x="0cm" svg:y="0cm" svg:width="1cm" svg:height="1cm"/>'
        "<presentation:notes><draw:frame><draw:text-box>"
        "<text:p>Remember</text:p><text:p>the demo</text:p>"
        "</draw:text-box></draw:frame></presentation:notes>"
        "</draw:page>"
    )

    slide = decode_fodp(xml).slides[0]

    assert slide.background.color == "#112233"
    assert slide.notes == "Remember\nthe demo"
    assert [element.id for element in slide.elements] == ["a", "b"]


def test_styles_are_resolved_with_inheritance() -> None:
    styles = (
        '<style:style style:name="base" style:family="graphic">'
        '<style:graphic-properties draw:fill="solid" draw:fill-color="#ff0000" draw:opacity="50%"/>'
        "</style:style>"
        '<style:style style:name="gr1" style:family="graphic" style:parent-style-name="base">'
        '<style:graphic-properties draw:stroke="solid" svg:stroke-color="#00ff00" svg:stroke-width="1cm"/>'
        "</style:style>"
        '<style:style style:name="P1" style:family="paragraph">'
        '<style:paragraph-properties fo:text-align="end"/></style:style>'
        '<style:style style:name="T1" style:family="text">'
        '<style:text-properties fo:font-size="24pt" fo:font-weight="bold" fo:color="#333333" '
        "fo:font-family=\"'Liberation Sans'\" style:text-underline-style=\"solid\"/></style:style>"
    )
    xml = flat_document(
        "<draw:page>"
        '<draw:frame draw:style-name="gr1" svg:x="0cm" svg:y="0cm" svg:width="1cm" svg:height="1cm">'
        '<draw:text-box><text:p text:style-name="P1"><text:span text:style-name="T1">Hi</text:span></text:p>'
        "</draw:text-box></draw:frame>"
        "</draw:page>",
        styles=styles,
    )

    element = decode_fodp(xml).slides[0].elements[0]

    assert element.style["backgroundColor"] == "#ff0000"
    assert element.style["borderColor"] == "#00ff00"
    assert element.style["borderWidth"] == pytest.approx(37.795)
    assert element.style["opacity"] == pytest.approx(0.5)
    assert element.style["color"] == "#333333"
    assert element.text_style == {
        "fontFamily": "Liberation Sans",
        "fontSize": 24.0,
        "fontWeight": "bold",
        "textDecoration": "underline",
        "alignment": "right",
    }


def test_failed_element_is_skipped_with_warning(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    def broken(element):
        raise ValueError("bad frame")

    monkeypatch.setattr(decoder_module.FrameNode, "from_element", staticmethod(broken))

    with caplog.at_level(logging.WARNING, logger="intellideck"):
        presentation = FodpDecoder().decode(HELLO_FODP)

    assert len(presentation.slides) == 1
    assert presentation.slides[0].elements == []
    assert any("bad frame" in record.getMessage() for record in caplog.records)
