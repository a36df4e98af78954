# tests/unit/property/test_map_type.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest

from classkit.core.errors import (
    ConstraintViolationError,
    InvalidPropertyOptionError,
    ReadOnlyPropertyError,
    TypeMismatchError,
    UnknownMapKeyError,
)
from classkit.property.map import MapType, MapValue


@pytest.fixture
def point(property_manager, owner):
    prop = property_manager.create_property("point", {"type": "map", "schema": {"x": "number", "y": "number"}})
    prop.initialize(owner)
    return prop


@pytest.fixture
def box(property_manager, owner):
    prop = property_manager.create_property(
        "box",
        {
            "type": "map",
            "schema": {
                "label": {"type": "string", "default": "box"},
                "origin": {"type": "map", "schema": {"x": "number", "y": "number"}},
            },
        },
    )
    prop.initialize(owner)
    return prop


def test_schema_is_required(property_manager):
    with pytest.raises(InvalidPropertyOptionError):
        property_manager.create_property("point", {"type": "map"})
    with pytest.raises(InvalidPropertyOptionError):
        property_manager.create_property("point", {"type": "map", "schema": {}})


def test_children_are_named_under_the_map(point):
    assert set(point.children) == {"x", "y"}
    assert point.get_child("x").full_name == "point.x"
    assert point.get_child("x").root_property is point
    with pytest.raises(UnknownMapKeyError):
        point.get_child("z")


def test_default_value_comes_from_children(point, owner):
    value = point.get_value(owner)
    assert isinstance(value, MapValue)
    assert value.to_dict() == {"x": None, "y": None}
    assert not point.is_nullable()


def test_partial_write_merges(point, owner):
    point.set_value(owner, {"x": 5, "y": 0})
    point.set_value(owner, {"x": 9})
    assert point.get_value(owner).to_dict() == {"x": 9, "y": 0}
    assert owner.modified == {"point"}


def test_unknown_key_is_rejected_without_change(point, owner):
    point.set_value(owner, {"x": 5, "y": 0})
    with pytest.raises(UnknownMapKeyError):
        point.set_value(owner, {"z": 1})
    assert point.get_value(owner).to_dict() == {"x": 5, "y": 0}


def test_child_values_are_validated(point, owner):
    with pytest.raises(TypeMismatchError):
        point.set_value(owner, {"x": "five"})
    with pytest.raises(TypeMismatchError):
        point.set_value(owner, [1, 2])


def test_nested_maps_merge_recursively(box, owner):
    box.set_value(owner, {"origin": {"x": 1, "y": 2}})
    box.set_value(owner, {"origin": {"y": 5}})
    assert box.get_value(owner).to_dict() == {"label": "box", "origin": {"x": 1, "y": 5}}
    assert isinstance(box.get_child("origin"), MapType)


def test_declared_default_is_merged_over_child_defaults(property_manager):
    prop = property_manager.create_property(
        "size", {"type": "map", "schema": {"w": {"type": "number", "default": 1}, "h": "number"}, "default": {"h": 2}}
    )
    assert prop.get_default_value() == {"w": 1, "h": 2}


class TestMapValue:
    def test_item_assignment_validates_and_marks_root(self, box, owner):
        value = box.get_value(owner)
        value["label"] = "crate"
        assert value["label"] == "crate"
        assert owner.modified == {"box"}
        with pytest.raises(TypeMismatchError):
            value["label"] = 3
        with pytest.raises(UnknownMapKeyError):
            value["color"] = "red"

    def test_nested_item_assignment_marks_root(self, box, owner):
        box.get_value(owner)["origin"]["x"] = 4
        assert box.get_value(owner)["origin"]["x"] == 4
        assert owner.modified == {"box"}

    def test_nested_map_item_merges(self, box, owner):
        value = box.get_value(owner)
        value["origin"] = {"x": 1, "y": 1}
        value["origin"] = {"y": 3}
        assert value.to_dict()["origin"] == {"x": 1, "y": 3}

    def test_keys_cannot_be_deleted(self, point, owner):
        with pytest.raises(ConstraintViolationError):
            del point.get_value(owner)["x"]

    def test_mapping_protocol(self, point, owner):
        point.set_value(owner, {"x": 1, "y": 2})
        value = point.get_value(owner)
        assert len(value) == 2
        assert sorted(value) == ["x", "y"]
        assert dict(value) == {"x": 1, "y": 2}
        assert value == {"x": 1, "y": 2}
        assert "MapValue" in repr(value)

    def test_read_only_map(self, property_manager, owner):
        prop = property_manager.create_property(
            "origin", {"type": "map", "writable": False, "schema": {"x": {"type": "number", "default": 0}}}
        )
        prop.initialize(owner)
        with pytest.raises(ReadOnlyPropertyError):
            prop.get_value(owner)["x"] = 1
        with pytest.raises(ReadOnlyPropertyError):
            prop.set_value(owner, {"x": 1})

    def test_read_only_child(self, property_manager, owner):
        prop = property_manager.create_property(
            "origin", {"type": "map", "schema": {"x": {"type": "number", "writable": False}, "y": "number"}}
        )
        prop.initialize(owner)
        value = prop.get_value(owner)
        value["y"] = 2
        with pytest.raises(ReadOnlyPropertyError):
            value["x"] = 1

    def test_collections_inside_read_only_map(self, property_manager, owner):
        prop = property_manager.create_property(
            "options",
            {
                "type": "map",
                "writable": False,
                "schema": {
                    "tags": {"type": "array_collection", "proto": "string"},
                    "limits": {"type": "object_collection", "proto": {"type": "map", "schema": {"max": "number"}}},
                },
            },
        )
        prop.initialize(owner)
        value = prop.get_value(owner)
        with pytest.raises(ReadOnlyPropertyError):
            value["tags"].add_item("x")
        with pytest.raises(ReadOnlyPropertyError):
            value["limits"].set_item("cpu", {"max": 2})
        assert value["tags"].is_empty()
        assert owner.modified == set()
