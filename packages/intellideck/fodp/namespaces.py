"""Namespace configuration for OpenDocument flat presentation XML."""

from __future__ import annotations

from xml.etree.ElementTree import register_namespace

__all__ = ["XML_NS", "XML_URI", "qn", "prefixed"]

XML_NS = {
    "office": "urn:oasis:names:tc:opendocument:xmlns:office:1.0",
    "style": "urn:oasis:names:tc:opendocument:xmlns:style:1.0",
    "text": "urn:oasis:names:tc:opendocument:xmlns:text:1.0",
    "table": "urn:oasis:names:tc:opendocument:xmlns:table:1.0",
    "draw": "urn:oasis:names:tc:opendocument:xmlns:drawing:1.0",
    "fo": "urn:oasis:names:tc:opendocument:xmlns:xsl-fo-compatible:1.0",
    "xlink": "http://www.w3.org/1999/xlink",
    "dc": "http://purl.org/dc/elements/1.1/",
    "meta": "urn:oasis:names:tc:opendocument:xmlns:meta:1.0",
    "number": "urn:oasis:names:tc:opendocument:xmlns:datastyle:1.0",
    "presentation": "urn:oasis:names:tc:opendocument:xmlns:presentation:1.0",
    "svg": "urn:oasis:names:tc:opendocument:xmlns:svg-compatible:1.0",
    "smil": "urn:oasis:names:tc:opendocument:xmlns:smil-compatible:1.0",
    "anim": "urn:oasis:names:tc:opendocument:xmlns:animation:1.0",
    "ooo": "http://openoffice.org/2004/office",
    "loext": "urn:org:documentfoundation:names:experimental:office:xmlns:loext:1.0",
}

XML_URI = "http://www.w3.org/XML/1998/namespace"

for prefix, uri in XML_NS.items():
    register_namespace(prefix, uri)

_PREFIX_BY_URI = {uri: prefix for prefix, uri in XML_NS.items()}
_PREFIX_BY_URI[XML_URI] = "xml"


def qn(name: str) -> str:
    """Expand ``"draw:page"`` into ElementTree's ``"{uri}page"`` form."""

    prefix, _, local = name.partition(":")
    uri = XML_URI if prefix == "xml" else XML_NS[prefix]
    return f"{{{uri}}}{local}"


def prefixed(tag: str) -> str:
    """Collapse ``"{uri}local"`` back into ``"prefix:local"`` where the URI is known."""

    if not tag.startswith("{"):
        return tag
    uri, _, local = tag[1:].partition("}")
    prefix = _PREFIX_BY_URI.get(uri)
    return f"{prefix}:{local}" if prefix else local
