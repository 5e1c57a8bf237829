"""Tests for identifier, material use, hierarchy scope and quantity values."""

import xml.etree.ElementTree as ET

import pytest

from b2mml_schedule.datatype import DataType, TypeType
from b2mml_schedule.document import add_child, find_child, qname
from b2mml_schedule.errors import InvalidMessageError
from b2mml_schedule.models import (
    EquipmentElementLevelType,
    HierarchyScope,
    IdentifierType,
    MaterialUse,
    MaterialUseType,
    QuantityValue,
)
from b2mml_schedule.xml_helper import parse_xml_int


def _element(local_name, text=None):
    element = ET.Element(qname(local_name))
    element.text = text
    return element


def test_identifier_is_trimmed():
    assert IdentifierType("  psc3 ").value == "psc3"
    assert IdentifierType.from_xml_proxy(_element("ID")).value == ""
    assert IdentifierType("a") == IdentifierType(" a ")


def test_material_use_wire_form():
    """Underscores in member names are spaces on the wire."""
    assert MaterialUse.parse("Produced").value is MaterialUseType.Produced
    assert MaterialUse.parse("Returned Sample").value is MaterialUseType.Returned_Sample
    assert MaterialUse(MaterialUseType.Replacement_Asset).to_token() == "Replacement Asset"


@pytest.mark.parametrize("use_type", list(MaterialUseType))
def test_material_use_round_trip(use_type):
    use = MaterialUse(use_type)
    assert MaterialUse.parse(use.to_token()) == use


@pytest.mark.parametrize("text", ["", None, "Prodused", "produced"])
def test_material_use_rejects_invalid(text):
    with pytest.raises(InvalidMessageError, match="^Invalid material use value"):
        MaterialUse.from_xml_proxy(_element("MaterialUse", text))


def test_hierarchy_scope_requires_equipment_id():
    with pytest.raises(ValueError, match="Equipment ID must not be null"):
        HierarchyScope(None)
    with pytest.raises(ValueError):
        HierarchyScope(IdentifierType("  "))

    scope = HierarchyScope(IdentifierType("psc3"))
    assert scope.equipment_element_level is EquipmentElementLevelType.Other


def test_hierarchy_scope_proxy_round_trip():
    scope = HierarchyScope(IdentifierType("psc3"), EquipmentElementLevelType.ProcessCell)
    proxy = scope.to_xml_proxy()
    assert [child.tag for child in proxy] == [
        qname("EquipmentID"),
        qname("EquipmentElementLevel"),
    ]
    assert HierarchyScope.from_xml_proxy(proxy) == scope


def test_hierarchy_scope_missing_parts():
    proxy = _element("HierarchyScope")
    add_child(proxy, "EquipmentID", "psc3")
    with pytest.raises(InvalidMessageError, match="^Failed to read HierarchyScope"):
        HierarchyScope.from_xml_proxy(proxy)


def test_hierarchy_scope_invalid_level():
    proxy = _element("HierarchyScope")
    add_child(proxy, "EquipmentID", "psc3")
    add_child(proxy, "EquipmentElementLevel", "ProcesCell")
    with pytest.raises(InvalidMessageError, match="^Invalid equipment element level$"):
        HierarchyScope.from_xml_proxy(proxy)


def test_quantity_typed_constructors():
    """Typed constructors set canonical text and the matching datatype."""
    assert QuantityValue.from_bool(True).raw_quantity_string == "true"
    assert QuantityValue.from_bool(False).data_type == DataType(TypeType.booleanXml)

    double = QuantityValue.from_double(12.2)
    assert double.raw_quantity_string == "12.2"
    assert double.data_type.type is TypeType.doubleXml
    assert double.try_parse_value_as_xml_double() == pytest.approx(12.2)

    assert QuantityValue.from_int(-5).raw_quantity_string == "-5"
    assert QuantityValue.from_long(2**40).data_type.type is TypeType.longXml

    with pytest.raises(ValueError, match="out of range"):
        QuantityValue.from_int(2**31)


def test_quantity_none_becomes_empty():
    quantity = QuantityValue(None)
    assert quantity.raw_quantity_string == ""
    assert quantity.data_type is None
    assert quantity.unit_of_measure is None
    assert quantity.key is None


def test_quantity_accessors_ignore_datatype():
    """Parsing looks at the string only, whatever the datatype says."""
    assert QuantityValue("0", DataType(TypeType.intXml)).try_parse_value_as_xml_int() == 0
    assert QuantityValue("1", DataType(TypeType.doubleXml)).try_parse_value_as_xml_bool() is True
    assert QuantityValue("77").try_parse_value_as_xml_long() == 77

    with pytest.raises(ValueError, match="^Failed to parse double from"):
        QuantityValue("41fs.9").try_parse_value_as_xml_double()
    with pytest.raises(ValueError, match="^Failed to parse"):
        QuantityValue("faflse").try_parse_value_as_xml_bool()

    with pytest.raises(ValueError) as direct:
        parse_xml_int("0r3")
    with pytest.raises(ValueError) as via_quantity:
        QuantityValue("0r3").try_parse_value_as_xml_int()
    assert str(via_quantity.value) == str(direct.value)


def test_quantity_proxy():
    quantity = QuantityValue.from_double(41.9)
    quantity.unit_of_measure = "t/h"
    quantity.key = IdentifierType("ProdRate")

    proxy = quantity.to_xml_proxy()
    assert [child.tag for child in proxy] == [
        qname("QuantityString"),
        qname("DataType"),
        qname("UnitOfMeasure"),
        qname("Key"),
    ]
    assert find_child(proxy, "DataType").text == "double"
    assert QuantityValue.from_xml_proxy(proxy) == quantity


def test_quantity_proxy_omits_empty_unit():
    quantity = QuantityValue("3", unit_of_measure="")
    assert find_child(quantity.to_xml_proxy(), "UnitOfMeasure") is None


def test_quantity_string_required():
    proxy = _element("Quantity")
    add_child(proxy, "DataType", "double")
    with pytest.raises(InvalidMessageError, match="^Quantity value is required$"):
        QuantityValue.from_xml_proxy(proxy)


def test_to_dict():
    quantity = QuantityValue.from_double(1.5)
    assert quantity.to_dict() == {
        "value": "1.5",
        "data_type": "double",
        "unit_of_measure": None,
        "key": None,
    }
    scope = HierarchyScope(IdentifierType("psc3"), EquipmentElementLevelType.Site)
    assert scope.to_dict() == {"equipment_id": "psc3", "equipment_element_level": "Site"}
