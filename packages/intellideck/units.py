"""Length conversions between flat XML units and the canonical pixel domain.

Decoding reads physical lengths (``"2.54cm"``, ``"12pt"``) and maps them to
pixels. Encoding writes pixels back as ``pixels / 100`` centimetres. The two
directions are not inverses of each other; see ``DESIGN.md``.
"""

from __future__ import annotations

import math
import re

__all__ = [
    "CM_TO_PIXELS",
    "MM_TO_PIXELS",
    "PT_TO_PIXELS",
    "PX_TO_PIXELS",
    "UNIT_MULTIPLIERS",
    "parse_number",
    "to_pixels",
    "to_centimeters",
    "to_points",
    "format_number",
    "radians_to_degrees",
    "degrees_to_radians",
]

CM_TO_PIXELS = 37.795
MM_TO_PIXELS = 3.7795
PT_TO_PIXELS = 1.33
PX_TO_PIXELS = 1.0

UNIT_MULTIPLIERS: dict[str, float] = {
    "cm": CM_TO_PIXELS,
    "mm": MM_TO_PIXELS,
    "pt": PT_TO_PIXELS,
    "px": PX_TO_PIXELS,
}

_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_number(value: object) -> float | None:
    """Parse the leading decimal number of *value*, ignoring trailing text.

    Returns ``None`` when no number can be read.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    match = _LEADING_NUMBER.match(str(value))
    if not match:
        return None
    number = float(match.group(1))
    return number if math.isfinite(number) else None


def to_pixels(value: str | float | None) -> float:
    """Convert a length such as ``"2.5cm"`` into pixels.

    Absent or unparsable input yields ``0.0``. Unknown unit suffixes are
    ignored and the leading number is returned as-is.
    """

    if value is None:
        return 0.0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = parse_number(value)
        return number if number is not None else 0.0

    text = str(value).strip()
    if not text:
        return 0.0
    multiplier = UNIT_MULTIPLIERS.get(text[-2:].lower())
    if multiplier is not None:
        number = parse_number(text[:-2])
        return number * multiplier if number is not None else 0.0
    number = parse_number(text)
    return number if number is not None else 0.0


def format_number(value: float, precision: int = 6) -> str:
    """Format *value* without trailing zeros (``1.0`` -> ``"1"``)."""

    text = f"{value:.{precision}f}".rstrip("0").rstrip(".")
    if text in {"-0", ""}:
        return "0"
    return text


def to_centimeters(pixels: float) -> str:
    """Render *pixels* as a centimetre length string (``pixels / 100``)."""

    return f"{format_number(float(pixels) / 100)}cm"


def to_points(value: float) -> str:
    return f"{format_number(float(value))}pt"


def radians_to_degrees(value: float) -> float:
    return math.degrees(value)


def degrees_to_radians(value: float) -> float:
    return math.radians(value)
