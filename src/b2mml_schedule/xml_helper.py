"""Lexical codec for the XML Schema numeric and boolean types.

Quantity strings travel as free text; these helpers parse and print them
according to the XML Schema lexical grammar rather than Python's own
(``float("1_0")`` or ``int(" ٣ ")`` are accepted by Python but are not valid
schema values).

Leading and trailing whitespace is ignored when parsing, matching the
``collapse`` whitespace facet of the schema types.

Example:
    >>> parse_xml_double("9e15")
    9000000000000000.0
    >>> serialise_xml_boolean(True)
    'true'
    >>> parse_xml_boolean(" 0 ")
    False
"""

from __future__ import annotations

import math
import re

_DOUBLE_PATTERN = re.compile(
    r"^(?:[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[+-]?INF|NaN)$"
)
_INTEGER_PATTERN = re.compile(r"^[+-]?[0-9]+$")

INT_MIN = -(2**31)
INT_MAX = 2**31 - 1
LONG_MIN = -(2**63)
LONG_MAX = 2**63 - 1


def parse_xml_boolean(value: str) -> bool:
    """Parse an ``xs:boolean``; only ``true``, ``false``, ``1`` and ``0`` are legal.

    Raises:
        ValueError: If the trimmed value is not one of the four tokens.
    """
    text = value.strip()
    if text in ("0", "false"):
        return False
    if text in ("1", "true"):
        return True
    raise ValueError(f'Failed to parse xsd:boolean from "{text}"')


def serialise_xml_boolean(value: bool) -> str:
    return "true" if value else "false"


def parse_xml_double(value: str) -> float:
    """Parse an ``xs:double``.

    Raises:
        ValueError: Message starts with ``Failed to parse double from``.
    """
    text = value.strip()
    if not _DOUBLE_PATTERN.match(text):
        raise ValueError(f'Failed to parse double from "{value}"')
    if text.endswith("INF"):
        return -math.inf if text.startswith("-") else math.inf
    return float(text)


def serialise_xml_double(value: float) -> str:
    """Print a float in ``xs:double`` lexical form (``INF``, ``-INF``, ``NaN`` for specials)."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "INF" if value > 0 else "-INF"
    return repr(float(value))


def parse_xml_int(value: str) -> int:
    """Parse an ``xs:int`` (32-bit signed)."""
    return _parse_integer(value, INT_MIN, INT_MAX, "int")


def serialise_xml_int(value: int) -> str:
    return str(int(value))


def parse_xml_long(value: str) -> int:
    """Parse an ``xs:long`` (64-bit signed)."""
    return _parse_integer(value, LONG_MIN, LONG_MAX, "long")


def serialise_xml_long(value: int) -> str:
    return str(int(value))


def _parse_integer(value: str, minimum: int, maximum: int, type_name: str) -> int:
    text = value.strip()
    if not _INTEGER_PATTERN.match(text):
        raise ValueError(f"Not a number: {value}")
    number = int(text)
    if number < minimum or number > maximum:
        raise ValueError(f"Value out of range for xsd:{type_name}: {value}")
    return number
