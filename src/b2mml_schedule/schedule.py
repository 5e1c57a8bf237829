"""Production requests, schedules and the ``ProcessProductionSchedule`` root.

The root is the entry and exit point of serialisation::

    from b2mml_schedule import (
        HierarchyScope, IdentifierType, ProcessProductionSchedule,
        ProductionRequest, ProductionSchedule,
    )

    request = ProductionRequest(
        identifier=IdentifierType("some-id"),
        hierarchy_scope=HierarchyScope(IdentifierType("psc3")),
    )
    message = ProcessProductionSchedule(
        production_schedules=[ProductionSchedule(production_requests=[request])]
    )
    xml_bytes = message.to_xml_bytes()
    again = ProcessProductionSchedule.from_xml_bytes(xml_bytes)

Scheduling parameters of a request are opaque. Whatever runtime type they
have is reported as an *extra type* so the document bridge can register it;
one document may carry at most one distinct extra type.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import SerialiserConfig, get_config
from .document import (
    DocumentBridge,
    add_child,
    find_child,
    find_children,
    get_document_bridge,
    qname,
    render_payload,
    type_identity,
)
from .errors import InvalidMessageError
from .models import HierarchyScope, IdentifierType
from .requirements import SegmentRequirement
from .time_instant import TimeInstant

logger = logging.getLogger(__name__)

LABEL_PREFIX = "B2ProcProdSched_i"


def _element_depth(element: ET.Element) -> int:
    """Depth of the deepest element below and including ``element``."""
    deepest = 0
    pending = [(element, 1)]
    while pending:
        node, depth = pending.pop()
        deepest = max(deepest, depth)
        pending.extend((child, depth + 1) for child in node)
    return deepest


@dataclass
class ProductionRequest:
    """A request to produce something within a hierarchy scope.

    Attributes:
        identifier: Request identifier.
        hierarchy_scope: Where in the plant the request applies.
        segment_requirements: Segments to run, in order.
        scheduling_parameters: Opaque payload. Decoded messages hold the
            ``SchedulingParameters`` element itself; when encoding, an
            ``Element`` or any object with ``to_xml_proxy()`` is accepted.
            Not part of equality.
    """

    identifier: Optional[IdentifierType] = None
    hierarchy_scope: Optional[HierarchyScope] = None
    segment_requirements: List[SegmentRequirement] = field(default_factory=list)
    scheduling_parameters: Any = field(default=None, compare=False)

    @classmethod
    def from_xml_proxy(
        cls, proxy: ET.Element, config: Optional[SerialiserConfig] = None
    ) -> "ProductionRequest":
        config = config or get_config()
        request = cls()

        id_proxy = find_child(proxy, "ID")
        if id_proxy is not None:
            request.identifier = IdentifierType.from_xml_proxy(id_proxy)

        scope_proxy = find_child(proxy, "HierarchyScope")
        if scope_proxy is not None:
            request.hierarchy_scope = HierarchyScope.from_xml_proxy(scope_proxy)

        request.segment_requirements = [
            SegmentRequirement.from_xml_proxy(child, config)
            for child in find_children(proxy, "SegmentRequirement")
        ]
        params_proxy = find_child(proxy, "SchedulingParameters")
        if params_proxy is not None and (
            _element_depth(params_proxy) > config.max_nesting_depth
        ):
            raise InvalidMessageError("Maximum nesting depth exceeded")
        request.scheduling_parameters = params_proxy
        return request

    def collect_extra_types(self) -> Dict[str, type]:
        """Runtime types that must be registered to serialise this request."""
        if self.scheduling_parameters is None:
            return {}
        payload_type = type(self.scheduling_parameters)
        return {type_identity(payload_type): payload_type}

    def to_xml_proxy(self, label: Optional[str] = None) -> ET.Element:
        """Build the ``ProductionRequest`` element.

        Args:
            label: Readability label written as a leading comment.

        Raises:
            TypeError: If the scheduling parameters cannot be rendered.
        """
        proxy = ET.Element(qname("ProductionRequest"))
        if label:
            proxy.append(ET.Comment(label))
        if self.identifier is not None:
            self.identifier.populate_xml_proxy(add_child(proxy, "ID"))
        if self.hierarchy_scope is not None:
            proxy.append(self.hierarchy_scope.to_xml_proxy())
        proxy.extend(r.to_xml_proxy() for r in self.segment_requirements)
        if self.scheduling_parameters is not None:
            proxy.append(
                render_payload(self.scheduling_parameters, "SchedulingParameters")
            )
        return proxy

    def to_dict(self) -> Dict[str, Any]:
        payload = self.scheduling_parameters
        return {
            "identifier": self.identifier.value if self.identifier else None,
            "hierarchy_scope": (
                self.hierarchy_scope.to_dict() if self.hierarchy_scope else None
            ),
            "segment_requirements": [r.to_dict() for r in self.segment_requirements],
            "scheduling_parameters": (
                type_identity(type(payload)) if payload is not None else None
            ),
        }


@dataclass
class ProductionSchedule:
    """An ordered collection of production requests."""

    production_requests: List[ProductionRequest] = field(default_factory=list)

    @classmethod
    def from_xml_proxy(
        cls, proxy: ET.Element, config: Optional[SerialiserConfig] = None
    ) -> "ProductionSchedule":
        return cls(
            production_requests=[
                ProductionRequest.from_xml_proxy(child, config)
                for child in find_children(proxy, "ProductionRequest")
            ]
        )

    def collect_extra_types(self) -> Dict[str, type]:
        extra_types: Dict[str, type] = {}
        for request in self.production_requests:
            extra_types.update(request.collect_extra_types())
        return extra_types

    def to_xml_proxy(self, label: Optional[str] = None) -> ET.Element:
        proxy = ET.Element(qname("ProductionSchedule"))
        if label:
            proxy.append(ET.Comment(label))
        for index, request in enumerate(self.production_requests, start=1):
            request_label = f"{label}-Sched_i{index}" if label else None
            proxy.append(request.to_xml_proxy(request_label))
        return proxy

    def to_dict(self) -> Dict[str, Any]:
        return {"production_requests": [r.to_dict() for r in self.production_requests]}


@dataclass
class ProcessProductionSchedule:
    """Root of a B2MML ``ProcessProductionSchedule`` message.

    Attributes:
        production_schedules: Schedules carried by the message.
        creation_time: Message creation time; defaults to the current UTC time.
    """

    production_schedules: List[ProductionSchedule] = field(default_factory=list)
    creation_time: TimeInstant = field(default_factory=TimeInstant.now)

    @classmethod
    def from_xml_bytes(
        cls,
        xml_bytes: bytes,
        config: Optional[SerialiserConfig] = None,
        bridge: Optional[DocumentBridge] = None,
    ) -> "ProcessProductionSchedule":
        """Decode a message.

        Args:
            xml_bytes: UTF-8 XML document.
            config: Decoding limits; process default when omitted.
            bridge: Document bridge; process default when omitted.

        Returns:
            The decoded message. Nothing partial is returned on failure.

        Raises:
            InvalidMessageError: If the document is malformed or invalid.
        """
        config = config or get_config()
        bridge = bridge or get_document_bridge()
        root = bridge.parse(xml_bytes)

        application_area = find_child(root, "ApplicationArea")
        creation_proxy = (
            find_child(application_area, "CreationDateTime")
            if application_area is not None
            else None
        )
        data_area = find_child(root, "DataArea")
        if creation_proxy is None or data_area is None:
            raise InvalidMessageError(
                "Failed to read ProcessProductionSchedule - something expected is missing"
            )

        try:
            creation_time = TimeInstant.from_xsd_datetime(
                (creation_proxy.text or "").strip()
            )
        except ValueError as exc:
            raise InvalidMessageError("Invalid creation time") from exc

        message = cls(
            production_schedules=[
                ProductionSchedule.from_xml_proxy(child, config)
                for child in find_children(data_area, "ProductionSchedule")
            ],
            creation_time=creation_time,
        )
        logger.debug(
            "Decoded ProcessProductionSchedule with %d schedule(s)",
            len(message.production_schedules),
        )
        return message

    def collect_extra_types(self) -> Dict[str, type]:
        extra_types: Dict[str, type] = {}
        for schedule in self.production_schedules:
            extra_types.update(schedule.collect_extra_types())
        return extra_types

    def to_xml_proxy(self, config: Optional[SerialiserConfig] = None) -> ET.Element:
        """Assemble the root element of the message."""
        config = config or get_config()
        root = ET.Element(qname("ProcessProductionSchedule"))
        root.set("releaseID", config.release_id)

        application_area = add_child(root, "ApplicationArea")
        add_child(
            application_area, "CreationDateTime", self.creation_time.to_xsd_datetime()
        )

        data_area = add_child(root, "DataArea")
        add_child(data_area, "Process")
        for index, schedule in enumerate(self.production_schedules, start=1):
            data_area.append(schedule.to_xml_proxy(f"{LABEL_PREFIX}{index}"))
        return root

    def to_xml_bytes(
        self,
        config: Optional[SerialiserConfig] = None,
        bridge: Optional[DocumentBridge] = None,
    ) -> bytes:
        """Encode the message as UTF-8 XML.

        Raises:
            InvalidMessageError: If scheduling parameters of more than one
                runtime type are present.
            TypeError: If a scheduling parameters payload cannot be rendered.
        """
        config = config or get_config()
        bridge = bridge or get_document_bridge()

        extra_types = self.collect_extra_types()
        if len(extra_types) > 1:
            raise InvalidMessageError(
                "Only one extra type is currently supported in serialisation"
            )
        extra_type = next(iter(extra_types.values()), None)

        root = self.to_xml_proxy(config)
        return bridge.serialise(root, extra_type=extra_type, config=config)

    def iter_requests(self):
        """Yield every production request in document order."""
        for schedule in self.production_schedules:
            yield from schedule.production_requests

    def to_dict(self) -> Dict[str, Any]:
        return {
            "creation_time": self.creation_time.to_xsd_datetime(),
            "creation_time_explicit_offset": self.creation_time.has_explicit_utc_offset,
            "production_schedules": [s.to_dict() for s in self.production_schedules],
        }
