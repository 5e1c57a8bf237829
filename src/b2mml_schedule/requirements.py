"""Equipment, material and segment requirements.

Requirements form the recursive middle of the schedule tree::

    SegmentRequirement
    ├── EquipmentRequirement*      (quantities)
    ├── MaterialRequirement*       (ids, use, quantities)
    │   └── AssemblyRequirement*   (MaterialRequirement, nested)
    └── SegmentRequirement*        (nested)

Children live in plain lists owned by their parent, so the structure is a
tree by construction. Absent repeated elements decode to empty lists.

Decoding takes the active :class:`~b2mml_schedule.config.SerialiserConfig`
and the current nesting depth; documents nesting segment or assembly
requirements deeper than ``max_nesting_depth`` are rejected.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import SerialiserConfig, get_config
from .document import add_child, find_child, find_children, qname
from .errors import InvalidMessageError
from .models import IdentifierType, MaterialUse, QuantityValue
from .time_instant import TimeInstant


def _check_depth(depth: int, config: SerialiserConfig) -> None:
    if depth > config.max_nesting_depth:
        raise InvalidMessageError("Maximum nesting depth exceeded")


def _read_quantities(proxy: ET.Element) -> List[QuantityValue]:
    return [QuantityValue.from_xml_proxy(q) for q in find_children(proxy, "Quantity")]


def _read_identifiers(proxy: ET.Element, local_name: str) -> List[IdentifierType]:
    return [
        IdentifierType.from_xml_proxy(child)
        for child in find_children(proxy, local_name)
    ]


@dataclass
class EquipmentRequirement:
    """Equipment needed by a segment, expressed as quantities."""

    quantities: List[QuantityValue] = field(default_factory=list)

    @classmethod
    def from_xml_proxy(cls, proxy: ET.Element) -> "EquipmentRequirement":
        return cls(quantities=_read_quantities(proxy))

    def to_xml_proxy(self) -> ET.Element:
        proxy = ET.Element(qname("EquipmentRequirement"))
        proxy.extend(q.to_xml_proxy() for q in self.quantities)
        return proxy

    def to_dict(self) -> Dict[str, Any]:
        return {"quantities": [q.to_dict() for q in self.quantities]}


@dataclass
class MaterialRequirement:
    """Material consumed or produced by a segment.

    Attributes:
        material_definition_ids: Material definitions the requirement refers to.
        material_lot_ids: Specific lots, if known.
        material_use: How the material is used (optional).
        quantities: Amounts, in document order.
        assembly_requirements: Nested requirements of the same type.
    """

    material_definition_ids: List[IdentifierType] = field(default_factory=list)
    material_lot_ids: List[IdentifierType] = field(default_factory=list)
    material_use: Optional[MaterialUse] = None
    quantities: List[QuantityValue] = field(default_factory=list)
    assembly_requirements: List["MaterialRequirement"] = field(default_factory=list)

    @classmethod
    def from_xml_proxy(
        cls,
        proxy: ET.Element,
        config: Optional[SerialiserConfig] = None,
        depth: int = 1,
    ) -> "MaterialRequirement":
        """Read a ``MaterialRequirement`` (or ``AssemblyRequirement``) element.

        Raises:
            InvalidMessageError: Invalid material use or quantity, or nesting
                deeper than ``config.max_nesting_depth``.
        """
        config = config or get_config()
        _check_depth(depth, config)

        material_use = None
        use_proxy = find_child(proxy, "MaterialUse")
        if use_proxy is not None:
            material_use = MaterialUse.from_xml_proxy(use_proxy)

        return cls(
            material_definition_ids=_read_identifiers(proxy, "MaterialDefinitionID"),
            material_lot_ids=_read_identifiers(proxy, "MaterialLotID"),
            material_use=material_use,
            quantities=_read_quantities(proxy),
            assembly_requirements=[
                cls.from_xml_proxy(child, config, depth + 1)
                for child in find_children(proxy, "AssemblyRequirement")
            ],
        )

    def to_xml_proxy(self, local_name: str = "MaterialRequirement") -> ET.Element:
        proxy = ET.Element(qname(local_name))
        for identifier in self.material_definition_ids:
            identifier.populate_xml_proxy(add_child(proxy, "MaterialDefinitionID"))
        for identifier in self.material_lot_ids:
            identifier.populate_xml_proxy(add_child(proxy, "MaterialLotID"))
        if self.material_use is not None:
            self.material_use.populate_xml_proxy(add_child(proxy, "MaterialUse"))
        proxy.extend(q.to_xml_proxy() for q in self.quantities)
        proxy.extend(
            assembly.to_xml_proxy("AssemblyRequirement")
            for assembly in self.assembly_requirements
        )
        return proxy

    def to_dict(self) -> Dict[str, Any]:
        return {
            "material_definition_ids": [i.value for i in self.material_definition_ids],
            "material_lot_ids": [i.value for i in self.material_lot_ids],
            "material_use": self.material_use.to_token() if self.material_use else None,
            "quantities": [q.to_dict() for q in self.quantities],
            "assembly_requirements": [a.to_dict() for a in self.assembly_requirements],
        }


def _read_time(proxy: ET.Element, local_name: str) -> Optional[TimeInstant]:
    child = find_child(proxy, local_name)
    if child is None:
        return None
    try:
        return TimeInstant.from_xsd_datetime((child.text or "").strip())
    except ValueError as exc:
        raise InvalidMessageError("Failed to parse datetime value") from exc


@dataclass
class SegmentRequirement:
    """A process segment to run, optionally within a time window.

    Attributes:
        process_segment_id: Segment identifier.
        earliest_start_time: Earliest start; decode rejects a window that ends
            before it starts.
        latest_end_time: Latest end.
        equipment_requirements: Equipment needed.
        material_requirements: Material needed or produced.
        segment_requirements: Nested segments.
    """

    process_segment_id: Optional[IdentifierType] = None
    earliest_start_time: Optional[TimeInstant] = None
    latest_end_time: Optional[TimeInstant] = None
    equipment_requirements: List[EquipmentRequirement] = field(default_factory=list)
    material_requirements: List[MaterialRequirement] = field(default_factory=list)
    segment_requirements: List["SegmentRequirement"] = field(default_factory=list)

    @classmethod
    def from_xml_proxy(
        cls,
        proxy: ET.Element,
        config: Optional[SerialiserConfig] = None,
        depth: int = 1,
    ) -> "SegmentRequirement":
        """Read a ``SegmentRequirement`` element and its nested requirements.

        Raises:
            InvalidMessageError: Unparsable time, end before start, invalid
                nested content, or nesting deeper than the configured limit.
        """
        config = config or get_config()
        _check_depth(depth, config)

        process_segment_id = None
        id_proxy = find_child(proxy, "ProcessSegmentID")
        if id_proxy is not None:
            process_segment_id = IdentifierType.from_xml_proxy(id_proxy)

        start = _read_time(proxy, "EarliestStartTime")
        end = _read_time(proxy, "LatestEndTime")
        if start is not None and end is not None and end < start:
            raise InvalidMessageError("Segment end must not be before start")

        return cls(
            process_segment_id=process_segment_id,
            earliest_start_time=start,
            latest_end_time=end,
            equipment_requirements=[
                EquipmentRequirement.from_xml_proxy(child)
                for child in find_children(proxy, "EquipmentRequirement")
            ],
            material_requirements=[
                MaterialRequirement.from_xml_proxy(child, config)
                for child in find_children(proxy, "MaterialRequirement")
            ],
            segment_requirements=[
                cls.from_xml_proxy(child, config, depth + 1)
                for child in find_children(proxy, "SegmentRequirement")
            ],
        )

    def to_xml_proxy(self) -> ET.Element:
        proxy = ET.Element(qname("SegmentRequirement"))
        if self.process_segment_id is not None:
            self.process_segment_id.populate_xml_proxy(
                add_child(proxy, "ProcessSegmentID")
            )
        if self.earliest_start_time is not None:
            add_child(
                proxy, "EarliestStartTime", self.earliest_start_time.to_xsd_datetime()
            )
        if self.latest_end_time is not None:
            add_child(proxy, "LatestEndTime", self.latest_end_time.to_xsd_datetime())
        proxy.extend(r.to_xml_proxy() for r in self.equipment_requirements)
        proxy.extend(r.to_xml_proxy() for r in self.material_requirements)
        proxy.extend(r.to_xml_proxy() for r in self.segment_requirements)
        return proxy

    def iter_segments(self):
        """Yield this segment and all nested segments depth first."""
        yield self
        for child in self.segment_requirements:
            yield from child.iter_segments()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "process_segment_id": (
                self.process_segment_id.value if self.process_segment_id else None
            ),
            "earliest_start_time": (
                self.earliest_start_time.to_xsd_datetime()
                if self.earliest_start_time
                else None
            ),
            "latest_end_time": (
                self.latest_end_time.to_xsd_datetime() if self.latest_end_time else None
            ),
            "equipment_requirements": [r.to_dict() for r in self.equipment_requirements],
            "material_requirements": [r.to_dict() for r in self.material_requirements],
            "segment_requirements": [r.to_dict() for r in self.segment_requirements],
        }
