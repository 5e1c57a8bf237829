"""Datatype tag of a quantity value.

B2MML names datatypes with bare tokens such as ``double`` or ``Amount``. Some
tokens come from the XML Schema standard, others from UN/CEFACT. In memory
the two families are told apart by a suffix on the member name
(``doubleXml``, ``Amount_UN_CEFACT``), the wire form is the member name with
the suffix removed. ``Other`` has no suffix and is written verbatim.

Example:
    >>> dt = DataType(TypeType.doubleXml)
    >>> dt.to_token()
    'double'
    >>> DataType.from_token("Quantity").type
    <TypeType.Quantity_UN_CEFACT: 'Quantity_UN_CEFACT'>
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from .errors import InvalidMessageError

SUFFIX_XML = "Xml"
SUFFIX_UN_CEFACT = "_UN_CEFACT"


class TypeType(Enum):
    """Datatypes known to B2MML. Values equal member names."""

    Other = "Other"
    Amount_UN_CEFACT = "Amount_UN_CEFACT"
    BinaryObject_UN_CEFACT = "BinaryObject_UN_CEFACT"
    Code_UN_CEFACT = "Code_UN_CEFACT"
    DateTime_UN_CEFACT = "DateTime_UN_CEFACT"
    Identifier_UN_CEFACT = "Identifier_UN_CEFACT"
    Indicator_UN_CEFACT = "Indicator_UN_CEFACT"
    Measure_UN_CEFACT = "Measure_UN_CEFACT"
    Numeric_UN_CEFACT = "Numeric_UN_CEFACT"
    Quantity_UN_CEFACT = "Quantity_UN_CEFACT"
    Text_UN_CEFACT = "Text_UN_CEFACT"
    stringXml = "stringXml"
    byteXml = "byteXml"
    unsignedByteXml = "unsignedByteXml"
    binaryXml = "binaryXml"
    integerXml = "integerXml"
    positiveIntegerXml = "positiveIntegerXml"
    negativeIntegerXml = "negativeIntegerXml"
    nonNegativeIntegerXml = "nonNegativeIntegerXml"
    nonPositiveIntegerXml = "nonPositiveIntegerXml"
    intXml = "intXml"
    unsignedIntXml = "unsignedIntXml"
    longXml = "longXml"
    unsignedLongXml = "unsignedLongXml"
    shortXml = "shortXml"
    unsignedShortXml = "unsignedShortXml"
    decimalXml = "decimalXml"
    floatXml = "floatXml"
    doubleXml = "doubleXml"
    booleanXml = "booleanXml"
    timeXml = "timeXml"
    timeInstantXml = "timeInstantXml"
    timePeriodXml = "timePeriodXml"
    durationXml = "durationXml"
    dateXml = "dateXml"
    dateTimeXml = "dateTimeXml"
    monthXml = "monthXml"
    yearXml = "yearXml"
    centuryXml = "centuryXml"
    recurringDayXml = "recurringDayXml"
    recurringDateXml = "recurringDateXml"
    recurringDurationXml = "recurringDurationXml"
    NameXml = "NameXml"
    QNameXml = "QNameXml"
    NCNameXml = "NCNameXml"
    uriReferenceXml = "uriReferenceXml"
    languageXml = "languageXml"
    IDXml = "IDXml"
    IDREFXml = "IDREFXml"
    IDREFSXml = "IDREFSXml"
    ENTITYXml = "ENTITYXml"
    ENTITIESXml = "ENTITIESXml"
    NOTATIONXml = "NOTATIONXml"
    NMTOKENXml = "NMTOKENXml"
    NMTOKENSXml = "NMTOKENSXml"
    EnumerationXml = "EnumerationXml"
    SVGXml = "SVGXml"


# Candidate member names for a wire token, tried in order.
_TOKEN_CANDIDATES: Tuple[Callable[[str], Optional[str]], ...] = (
    lambda token: token if token == TypeType.Other.name else None,
    lambda token: token + SUFFIX_XML,
    lambda token: token + SUFFIX_UN_CEFACT,
)


def lookup_type(token: str) -> Optional[TypeType]:
    """Resolve a wire token to a :class:`TypeType`, or ``None`` if unknown."""
    for candidate in _TOKEN_CANDIDATES:
        name = candidate(token)
        if name is not None and name in TypeType.__members__:
            return TypeType[name]
    return None


def type_to_token(type_: TypeType) -> str:
    """Return the wire token of ``type_``.

    Raises:
        RuntimeError: If the member name carries neither known suffix. This
            can only happen if the enumeration and this function disagree.
    """
    if type_ is TypeType.Other:
        return type_.name

    name = type_.name
    for suffix in (SUFFIX_XML, SUFFIX_UN_CEFACT):
        if name.endswith(suffix):
            return name[: -len(suffix)]
    raise RuntimeError(f'Unexpected datatype value "{name}"')


@dataclass(frozen=True)
class DataType:
    """Datatype of a quantity value."""

    type: TypeType

    @classmethod
    def from_token(cls, token: str) -> "DataType":
        """Parse a wire token.

        Raises:
            InvalidMessageError: ``Failed to parse datatype`` for unknown tokens.
        """
        resolved = lookup_type(token)
        if resolved is None:
            raise InvalidMessageError("Failed to parse datatype")
        return cls(resolved)

    @classmethod
    def from_xml_proxy(cls, proxy: ET.Element) -> "DataType":
        if proxy.text is None:
            raise InvalidMessageError(
                "If datatype element is present, it must have a value"
            )
        return cls.from_token(proxy.text.strip())

    def to_token(self) -> str:
        return type_to_token(self.type)

    def populate_xml_proxy(self, proxy: ET.Element) -> None:
        proxy.text = self.to_token()
