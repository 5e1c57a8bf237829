"""Leaf value types of the production schedule model.

These small classes wrap loosely typed B2MML elements with something safer
to program against:

    * ``IdentifierType`` - normalised string (whitespace trimmed).
    * ``MaterialUse`` - one of :class:`MaterialUseType`; the wire form uses
      spaces where member names use underscores (``Returned Sample``).
    * ``HierarchyScope`` - equipment id plus :class:`EquipmentElementLevelType`.
    * ``QuantityValue`` - raw quantity string with optional datatype tag,
      unit of measure and key.

Each type converts itself to and from an ``xml.etree.ElementTree`` proxy
element (``from_xml_proxy`` / ``to_xml_proxy`` or ``populate_xml_proxy``) and
exposes ``to_dict`` for JSON output.

Typical construction::

    from b2mml_schedule.models import IdentifierType, QuantityValue

    quantity = QuantityValue.from_double(12.2)
    quantity.unit_of_measure = "t"
    quantity.key = IdentifierType("my-mat-key")
    quantity.try_parse_value_as_xml_double()  # 12.2

Design notes:
    * A quantity's raw string is never validated against its datatype. The
      typed constructors (``from_double`` ...) are the safe way to produce a
      consistent pair; the ``try_parse_*`` accessors only look at the string.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from . import xml_helper
from .datatype import DataType, TypeType
from .document import add_child, find_child, qname
from .errors import InvalidMessageError


class IdentifierType:
    """Identifier value; B2MML types it as ``normalizedString``.

    Example:
        >>> IdentifierType("  psc3 ").value
        'psc3'
    """

    __slots__ = ("_value",)

    def __init__(self, value: str) -> None:
        self._value = value.strip()

    @classmethod
    def from_xml_proxy(cls, proxy: ET.Element) -> "IdentifierType":
        return cls(proxy.text or "")

    @property
    def value(self) -> str:
        return self._value

    def populate_xml_proxy(self, proxy: ET.Element) -> None:
        proxy.text = self._value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IdentifierType):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)

    def __repr__(self) -> str:
        return f"IdentifierType({self._value!r})"


def _identifier_child(
    parent: ET.Element, local_name: str, identifier: IdentifierType
) -> ET.Element:
    child = add_child(parent, local_name)
    identifier.populate_xml_proxy(child)
    return child


class MaterialUseType(Enum):
    """How a material is used. Underscores stand for spaces on the wire."""

    Other = "Other"
    Produced = "Produced"
    Consumed = "Consumed"
    Consumable = "Consumable"
    Replaced_Asset = "Replaced_Asset"
    Replacement_Asset = "Replacement_Asset"
    Sample = "Sample"
    Returned_Sample = "Returned_Sample"
    Carrier = "Carrier"
    Returned_Carrier = "Returned_Carrier"


@dataclass
class MaterialUse:
    """Use of a material within a material requirement."""

    value: MaterialUseType

    @classmethod
    def parse(cls, text: Optional[str]) -> "MaterialUse":
        """Parse the wire form (``"Returned Sample"`` etc.).

        Raises:
            InvalidMessageError: Empty or unknown value.
        """
        if not text:
            raise InvalidMessageError("Invalid material use value - value is empty")
        name = text.replace(" ", "_")
        if name not in MaterialUseType.__members__:
            raise InvalidMessageError("Invalid material use value")
        return cls(MaterialUseType[name])

    @classmethod
    def from_xml_proxy(cls, proxy: ET.Element) -> "MaterialUse":
        return cls.parse(proxy.text)

    def to_token(self) -> str:
        return self.value.name.replace("_", " ")

    def populate_xml_proxy(self, proxy: ET.Element) -> None:
        proxy.text = self.to_token()


class EquipmentElementLevelType(Enum):
    """Level of an equipment element in the plant hierarchy."""

    Enterprise = "Enterprise"
    Site = "Site"
    Area = "Area"
    ProcessCell = "ProcessCell"
    Unit = "Unit"
    ProductionLine = "ProductionLine"
    WorkCell = "WorkCell"
    ProductionUnit = "ProductionUnit"
    StorageZone = "StorageZone"
    StorageUnit = "StorageUnit"
    WorkCenter = "WorkCenter"
    WorkUnit = "WorkUnit"
    EquipmentModule = "EquipmentModule"
    ControlModule = "ControlModule"
    Other = "Other"


@dataclass
class HierarchyScope:
    """Scope of equipment within the plant hierarchy.

    Attributes:
        equipment_id: Equipment identifier; required and non-empty.
        equipment_element_level: Level of the equipment (``Other`` by default).

    Raises:
        ValueError: If the equipment id is missing or empty.
    """

    equipment_id: IdentifierType
    equipment_element_level: EquipmentElementLevelType = EquipmentElementLevelType.Other

    def __post_init__(self) -> None:
        if self.equipment_id is None or not self.equipment_id.value:
            raise ValueError("Equipment ID must not be null in hierarchy scope")

    @classmethod
    def from_xml_proxy(cls, proxy: ET.Element) -> "HierarchyScope":
        equipment_proxy = find_child(proxy, "EquipmentID")
        level_proxy = find_child(proxy, "EquipmentElementLevel")
        if equipment_proxy is None or level_proxy is None or level_proxy.text is None:
            raise InvalidMessageError(
                "Failed to read HierarchyScope - something expected is missing"
            )

        level_name = level_proxy.text.strip()
        if level_name not in EquipmentElementLevelType.__members__:
            raise InvalidMessageError("Invalid equipment element level")

        # Bypass __post_init__: an empty equipment id is tolerated on read.
        scope = cls.__new__(cls)
        scope.equipment_id = IdentifierType.from_xml_proxy(equipment_proxy)
        scope.equipment_element_level = EquipmentElementLevelType[level_name]
        return scope

    def to_xml_proxy(self) -> ET.Element:
        proxy = ET.Element(qname("HierarchyScope"))
        _identifier_child(proxy, "EquipmentID", self.equipment_id)
        add_child(proxy, "EquipmentElementLevel", self.equipment_element_level.name)
        return proxy

    def to_dict(self) -> Dict[str, Any]:
        return {
            "equipment_id": self.equipment_id.value,
            "equipment_element_level": self.equipment_element_level.name,
        }


class QuantityValue:
    """A quantity string plus optional datatype, unit of measure and key.

    Args:
        raw: Quantity string; ``None`` is normalised to ``""``.
        data_type: Declared datatype of ``raw`` (not validated).
        unit_of_measure: Unit such as ``"t/h"``.
        key: Identifier naming the quantity.

    Example:
        >>> q = QuantityValue("0", DataType(TypeType.intXml))
        >>> q.try_parse_value_as_xml_int()
        0
        >>> QuantityValue.from_bool(True).raw_quantity_string
        'true'
    """

    def __init__(
        self,
        raw: Optional[str] = "",
        data_type: Optional[DataType] = None,
        unit_of_measure: Optional[str] = None,
        key: Optional[IdentifierType] = None,
    ) -> None:
        self._raw = raw if raw is not None else ""
        self._data_type = data_type
        self.unit_of_measure = unit_of_measure
        self.key = key

    @classmethod
    def from_double(cls, value: float) -> "QuantityValue":
        return cls(xml_helper.serialise_xml_double(value), DataType(TypeType.doubleXml))

    @classmethod
    def from_bool(cls, value: bool) -> "QuantityValue":
        return cls(xml_helper.serialise_xml_boolean(value), DataType(TypeType.booleanXml))

    @classmethod
    def from_int(cls, value: int) -> "QuantityValue":
        text = xml_helper.serialise_xml_int(value)
        xml_helper.parse_xml_int(text)  # range check
        return cls(text, DataType(TypeType.intXml))

    @classmethod
    def from_long(cls, value: int) -> "QuantityValue":
        text = xml_helper.serialise_xml_long(value)
        xml_helper.parse_xml_long(text)  # range check
        return cls(text, DataType(TypeType.longXml))

    @classmethod
    def from_xml_proxy(cls, proxy: ET.Element) -> "QuantityValue":
        """Read a ``Quantity`` element.

        Raises:
            InvalidMessageError: Missing ``QuantityString`` or invalid datatype.
        """
        string_proxy = find_child(proxy, "QuantityString")
        if string_proxy is None:
            raise InvalidMessageError("Quantity value is required")

        data_type = None
        data_type_proxy = find_child(proxy, "DataType")
        if data_type_proxy is not None:
            data_type = DataType.from_xml_proxy(data_type_proxy)

        unit_of_measure = None
        uom_proxy = find_child(proxy, "UnitOfMeasure")
        if uom_proxy is not None and uom_proxy.text is not None:
            unit_of_measure = uom_proxy.text

        key = None
        key_proxy = find_child(proxy, "Key")
        if key_proxy is not None:
            key = IdentifierType.from_xml_proxy(key_proxy)

        return cls(string_proxy.text or "", data_type, unit_of_measure, key)

    @property
    def raw_quantity_string(self) -> str:
        return self._raw

    @property
    def data_type(self) -> Optional[DataType]:
        return self._data_type

    def try_parse_value_as_xml_double(self) -> float:
        """Parse the raw string as ``xs:double`` (``ValueError`` on failure)."""
        return xml_helper.parse_xml_double(self._raw)

    def try_parse_value_as_xml_bool(self) -> bool:
        """Parse the raw string as ``xs:boolean`` (``ValueError`` on failure)."""
        return xml_helper.parse_xml_boolean(self._raw)

    def try_parse_value_as_xml_int(self) -> int:
        """Parse the raw string as ``xs:int`` (``ValueError`` on failure)."""
        return xml_helper.parse_xml_int(self._raw)

    def try_parse_value_as_xml_long(self) -> int:
        """Parse the raw string as ``xs:long`` (``ValueError`` on failure)."""
        return xml_helper.parse_xml_long(self._raw)

    def to_xml_proxy(self) -> ET.Element:
        proxy = ET.Element(qname("Quantity"))
        add_child(proxy, "QuantityString", self._raw)
        if self._data_type is not None:
            self._data_type.populate_xml_proxy(add_child(proxy, "DataType"))
        if self.unit_of_measure:
            add_child(proxy, "UnitOfMeasure", self.unit_of_measure)
        if self.key is not None:
            _identifier_child(proxy, "Key", self.key)
        return proxy

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self._raw,
            "data_type": self._data_type.to_token() if self._data_type else None,
            "unit_of_measure": self.unit_of_measure,
            "key": self.key.value if self.key else None,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QuantityValue):
            return NotImplemented
        return (
            self._raw == other._raw
            and self._data_type == other._data_type
            and self.unit_of_measure == other.unit_of_measure
            and self.key == other.key
        )

    def __repr__(self) -> str:
        return (
            f"QuantityValue({self._raw!r}, data_type={self._data_type!r}, "
            f"unit_of_measure={self.unit_of_measure!r}, key={self.key!r})"
        )
