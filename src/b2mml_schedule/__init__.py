"""B2MML Production Schedule
==========================

Typed object model and XML serialiser for the B2MML (MESA International,
schema release V0600) ``ProcessProductionSchedule`` message.

Key capabilities
----------------
- Recursive entity tree: schedules, production requests, segment, equipment
  and material requirements, quantities.
- Datatype tags mapped to and from their bare schema tokens.
- Timestamps that remember whether the source carried a UTC offset.
- Opaque scheduling parameters passed through untouched.
- FastAPI service and ``b2mml-schedule`` CLI on top of the model.

Design principles
-----------------
1. **Whole-message errors** - decoding stops at the first invalid value and
   raises :class:`~b2mml_schedule.errors.InvalidMessageError`; no partial
   tree is returned.
2. **Generic proxy tree** - entities convert to and from
   ``xml.etree.ElementTree`` elements; only
   :mod:`~b2mml_schedule.document` deals with bytes.
3. **Shared, immutable contexts** - prepared schema contexts are cached per
   type set and safe to use from many threads.

Minimal quick start
-------------------
>>> from b2mml_schedule import ProcessProductionSchedule
>>> message = ProcessProductionSchedule.from_xml_bytes(xml_bytes)
>>> [r.identifier.value for r in message.iter_requests()]

FastAPI application instance (for ASGI servers like uvicorn):
>>> from b2mml_schedule.app import app  # noqa: F401

Public surface
--------------
Only the model is exported at the package level; the service, CLI and
document bridge are imported explicitly.
"""

__version__ = "0.1.0"

from .datatype import DataType, TypeType
from .errors import IllegalDateTimeError, InvalidMessageError
from .models import (
    EquipmentElementLevelType,
    HierarchyScope,
    IdentifierType,
    MaterialUse,
    MaterialUseType,
    QuantityValue,
)
from .requirements import EquipmentRequirement, MaterialRequirement, SegmentRequirement
from .schedule import ProcessProductionSchedule, ProductionRequest, ProductionSchedule
from .time_instant import TimeInstant

__all__ = [
    "DataType",
    "TypeType",
    "IllegalDateTimeError",
    "InvalidMessageError",
    "EquipmentElementLevelType",
    "HierarchyScope",
    "IdentifierType",
    "MaterialUse",
    "MaterialUseType",
    "QuantityValue",
    "EquipmentRequirement",
    "MaterialRequirement",
    "SegmentRequirement",
    "ProcessProductionSchedule",
    "ProductionRequest",
    "ProductionSchedule",
    "TimeInstant",
]
