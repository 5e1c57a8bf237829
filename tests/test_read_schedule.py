"""Tests for decoding ProcessProductionSchedule messages from XML."""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from b2mml_schedule.config import SerialiserConfig
from b2mml_schedule.datatype import TypeType
from b2mml_schedule.document import qname
from b2mml_schedule.errors import InvalidMessageError
from b2mml_schedule.models import EquipmentElementLevelType, MaterialUseType
from b2mml_schedule.requirements import MaterialRequirement, SegmentRequirement
from b2mml_schedule.schedule import (
    ProcessProductionSchedule,
    ProductionRequest,
    ProductionSchedule,
)
from b2mml_schedule.time_instant import TimeInstant

FIXTURES = Path(__file__).resolve().parent / "fixtures" / "messages"
SWE_NS = {"swe": "http://www.opengis.net/swe/2.0"}


def _read(filename, config=None):
    return ProcessProductionSchedule.from_xml_bytes(
        (FIXTURES / filename).read_bytes(), config=config
    )


def _utc(*args):
    return TimeInstant(datetime(*args, tzinfo=timezone.utc))


def test_read_full_message():
    """A message using every supported feature is read completely."""
    message = _read("ProcessProductionSchedule.xml")

    assert message.creation_time == _utc(2019, 4, 24, 14, 10, 25)
    assert len(message.production_schedules) == 1

    schedule = message.production_schedules[0]
    assert len(schedule.production_requests) == 2

    request1 = schedule.production_requests[0]
    assert request1.identifier.value == "my-identifier-1"
    assert request1.hierarchy_scope.equipment_id.value == "fsf"
    assert (
        request1.hierarchy_scope.equipment_element_level
        is EquipmentElementLevelType.ProcessCell
    )
    assert request1.scheduling_parameters is None
    assert len(request1.segment_requirements) == 2

    segment = request1.segment_requirements[0]
    assert segment.process_segment_id.value == "1"
    assert segment.earliest_start_time == _utc(2019, 4, 24, 15, 0, 0)
    # Written with a +03:00 offset
    assert segment.latest_end_time == _utc(2019, 4, 24, 15, 30, 0)
    assert segment.latest_end_time.has_explicit_utc_offset is True

    equipment = segment.equipment_requirements[0]
    availability1, availability2 = equipment.quantities
    assert availability1.raw_quantity_string == "false"
    assert availability2.raw_quantity_string == "true"
    assert availability1.try_parse_value_as_xml_bool() is False
    assert availability2.try_parse_value_as_xml_bool() is True
    assert availability1.data_type.type is TypeType.booleanXml

    material = segment.material_requirements[0]
    assert [i.value for i in material.material_definition_ids] == ["matte"]
    assert [i.value for i in material.material_lot_ids] == ["psc2-15"]
    assert material.material_use.value is MaterialUseType.Produced

    rate = material.quantities[0]
    assert rate.raw_quantity_string == "41.9"
    assert rate.try_parse_value_as_xml_double() == pytest.approx(41.9)
    assert rate.unit_of_measure == "t/h"
    assert rate.data_type.type is TypeType.doubleXml
    assert rate.key.value == "ProdRate"
    assert material.quantities[1].raw_quantity_string == "11.9"

    assemblies = material.assembly_requirements
    assert [a.material_definition_ids[0].value for a in assemblies] == ["Cu", "S"]

    sample = segment.material_requirements[1]
    assert sample.material_use.value is MaterialUseType.Returned_Sample
    assert sample.quantities == []

    nested = request1.segment_requirements[1].segment_requirements[0]
    assert nested.earliest_start_time == _utc(2019, 4, 24, 15, 31, 0)
    assert nested.latest_end_time is None

    request2 = schedule.production_requests[1]
    assert request2.identifier.value == "my-identifier-2"
    assert request2.hierarchy_scope is None
    assert request2.segment_requirements == []


def test_iter_segments_and_requests():
    message = _read("ProcessProductionSchedule.xml")
    requests = list(message.iter_requests())
    assert [r.identifier.value for r in requests] == ["my-identifier-1", "my-identifier-2"]

    segments = [
        s for top in requests[0].segment_requirements for s in top.iter_segments()
    ]
    assert len(segments) == 3


def assert_empty_process_message(message):
    assert len(message.production_schedules) == 1
    assert message.production_schedules[0].production_requests == []


def assert_empty_items_message(message):
    """Shared by the read and write tests of the empty-items document."""
    schedule = message.production_schedules[0]
    assert len(schedule.production_requests) == 3
    request1, request2, request3 = schedule.production_requests

    assert request1.identifier is None
    assert request1.hierarchy_scope is None
    assert request1.segment_requirements == []

    assert request2.hierarchy_scope.equipment_id.value == "psc2"
    assert request2.segment_requirements == [SegmentRequirement()]

    segment = request3.segment_requirements[0]
    assert segment.equipment_requirements[0].quantities == []
    assert segment.material_requirements[0] == MaterialRequirement()

    quantity = segment.material_requirements[1].quantities[0]
    assert quantity.raw_quantity_string == ""
    assert quantity.data_type is None
    assert quantity.unit_of_measure is None
    assert quantity.key is None


def test_read_empty_schedule():
    assert_empty_process_message(_read("ProcessProductionSchedule_EmptySched.xml"))


def test_read_empty_items():
    assert_empty_items_message(_read("ProcessProductionSchedule_EmptyItems.xml"))


def test_read_scheduling_parameters():
    """Scheduling parameters are kept as the raw element."""
    message = _read("ProcessProductionSchedule_SchedulingParams.xml")
    request = message.production_schedules[0].production_requests[0]

    params = request.scheduling_parameters
    assert params.tag == qname("SchedulingParameters")
    value = params.find(
        "swe:DataRecord/swe:field[@name='SomeParam1']/swe:Quantity/swe:value", SWE_NS
    )
    assert float(value.text) == pytest.approx(10.6)
    uom = params.find(
        "swe:DataRecord/swe:field[@name='SomeParam1']/swe:Quantity/swe:uom", SWE_NS
    )
    assert uom.get("code") == "t/h"


def test_read_invalid_quantity_values():
    """Invalid quantity strings are read as-is and only fail when parsed."""
    message = _read("Neg_ProcessProductionSchedule_InvalidQuantityValue.xml")
    material = (
        message.production_schedules[0]
        .production_requests[0]
        .segment_requirements[0]
        .material_requirements[0]
    )
    as_double, as_bool, as_int = material.quantities
    assert as_double.raw_quantity_string == "41fs.9"
    assert as_bool.raw_quantity_string == "faflse"
    assert as_int.raw_quantity_string == "0r3"

    with pytest.raises(ValueError, match="^Failed to parse double from"):
        as_double.try_parse_value_as_xml_double()
    with pytest.raises(ValueError, match="^Failed to parse"):
        as_bool.try_parse_value_as_xml_bool()
    with pytest.raises(ValueError, match="^Not a number"):
        as_int.try_parse_value_as_xml_int()


@pytest.mark.parametrize(
    "filename,message",
    [
        ("Neg_ProcessProductionSchedule_InvalidDate.xml", "Failed to parse datetime value"),
        ("Neg_ProcessProductionSchedule_InvalidQuantityDataType.xml", "Failed to parse datatype"),
        ("Neg_ProcessProductionSchedule_InvalidEqElemLevel.xml", "Invalid equipment element level"),
        ("Neg_ProcessProductionSchedule_InvalidMatUse.xml", "Invalid material use value"),
        ("Neg_ProcessProductionSchedule_InvalidCreationTime.xml", "Invalid creation time"),
        ("Neg_ProcessProductionSchedule_EndBeforeStart.xml", "Segment end must not be before start"),
        (
            "Neg_ProcessProductionSchedule_MissingEquipmentId.xml",
            "Failed to read HierarchyScope - something expected is missing",
        ),
    ],
)
def test_read_invalid_message(filename, message):
    with pytest.raises(InvalidMessageError) as excinfo:
        _read(filename)
    assert str(excinfo.value) == message


def test_invalid_datetime_cause_is_chained():
    with pytest.raises(InvalidMessageError) as excinfo:
        _read("Neg_ProcessProductionSchedule_InvalidDate.xml")
    assert isinstance(excinfo.value.__cause__, ValueError)


def test_segment_with_equal_start_and_end_is_accepted():
    moment = _utc(2019, 5, 9, 13, 36, 2)
    segment = SegmentRequirement(earliest_start_time=moment, latest_end_time=moment)
    message = ProcessProductionSchedule(
        production_schedules=[
            ProductionSchedule(
                production_requests=[ProductionRequest(segment_requirements=[segment])]
            )
        ]
    )
    decoded = ProcessProductionSchedule.from_xml_bytes(message.to_xml_bytes())
    again = decoded.production_schedules[0].production_requests[0].segment_requirements[0]
    assert again.earliest_start_time == again.latest_end_time == moment


def test_missing_application_area():
    data = (
        b'<b2mml:ProcessProductionSchedule xmlns:b2mml="http://www.mesa.org/xml/B2MML-V0600">'
        b"<b2mml:DataArea><b2mml:Process/></b2mml:DataArea>"
        b"</b2mml:ProcessProductionSchedule>"
    )
    with pytest.raises(InvalidMessageError, match="something expected is missing"):
        ProcessProductionSchedule.from_xml_bytes(data)


def test_malformed_xml():
    with pytest.raises(InvalidMessageError, match="^Failed to deserialise from XML$"):
        ProcessProductionSchedule.from_xml_bytes(b"<b2mml:ProcessProductionSchedule")


def test_unexpected_root_element():
    data = b'<ProcessProductionSchedule releaseID="1"/>'
    with pytest.raises(InvalidMessageError, match="^Failed to parse XML"):
        ProcessProductionSchedule.from_xml_bytes(data)


def _nested_segments(depth):
    segment = SegmentRequirement()
    for _ in range(depth - 1):
        segment = SegmentRequirement(segment_requirements=[segment])
    return segment


def _nested_assemblies(depth):
    material = MaterialRequirement()
    for _ in range(depth - 1):
        material = MaterialRequirement(assembly_requirements=[material])
    return material


def _message_with(segment):
    request = ProductionRequest(segment_requirements=[segment])
    return ProcessProductionSchedule(
        production_schedules=[ProductionSchedule(production_requests=[request])]
    )


def test_nesting_depth_limit_for_segments():
    """Documents nested deeper than configured are rejected."""
    data = _message_with(_nested_segments(5)).to_xml_bytes()

    decoded = ProcessProductionSchedule.from_xml_bytes(
        data, config=SerialiserConfig(max_nesting_depth=5)
    )
    assert len(list(next(decoded.iter_requests()).segment_requirements[0].iter_segments())) == 5

    with pytest.raises(InvalidMessageError, match="^Maximum nesting depth exceeded$"):
        ProcessProductionSchedule.from_xml_bytes(
            data, config=SerialiserConfig(max_nesting_depth=4)
        )


def test_nesting_depth_limit_for_assemblies():
    segment = SegmentRequirement(material_requirements=[_nested_assemblies(4)])
    data = _message_with(segment).to_xml_bytes()

    ProcessProductionSchedule.from_xml_bytes(data, config=SerialiserConfig(max_nesting_depth=4))
    with pytest.raises(InvalidMessageError, match="^Maximum nesting depth exceeded$"):
        ProcessProductionSchedule.from_xml_bytes(
            data, config=SerialiserConfig(max_nesting_depth=3)
        )


def _deep_payload_message(depth):
    data = (FIXTURES / "ProcessProductionSchedule_SchedulingParams.xml").read_bytes()
    nested = b"<x>" * depth + b"</x>" * depth
    return data.replace(b"<swe:value>10.6</swe:value>", b"<swe:value>" + nested + b"</swe:value>")


def test_nesting_depth_limit_for_scheduling_parameters():
    """The opaque payload is held to the same nesting limit."""
    # SchedulingParameters/DataRecord/field/Quantity/value
    _read("ProcessProductionSchedule_SchedulingParams.xml", SerialiserConfig(max_nesting_depth=5))
    with pytest.raises(InvalidMessageError, match="^Maximum nesting depth exceeded$"):
        _read(
            "ProcessProductionSchedule_SchedulingParams.xml",
            SerialiserConfig(max_nesting_depth=4),
        )


def test_deeply_nested_scheduling_parameters_are_rejected():
    with pytest.raises(InvalidMessageError, match="^Maximum nesting depth exceeded$"):
        ProcessProductionSchedule.from_xml_bytes(_deep_payload_message(5000))
