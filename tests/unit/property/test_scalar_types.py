# tests/unit/property/test_scalar_types.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import dataclasses

import pytest

from classkit.core.errors import (
    ConstraintViolationError,
    InvalidPropertyOptionError,
    ReadOnlyPropertyError,
    TypeMismatchError,
)
from classkit.core.types import AccessorKind
from classkit.property.base import PropertyDescriptor


@pytest.fixture
def create(property_manager):
    return property_manager.create_property


def test_definition_is_normalized(create):
    prop = create("age", "number")
    assert prop.definition == {
        "type": "number",
        "default": None,
        "nullable": True,
        "writable": True,
        "accessors": True,
        "watcher": None,
    }
    assert prop.storage_key == "_age_test1234"


@pytest.mark.parametrize(
    "definition",
    [
        {"type": "number", "minimum": 1},
        {"type": "string", "nullable": "yes"},
        {"type": "string", "watcher": "not callable"},
        {"type": "string", "pattern": "("},
        {"type": "string", "min_length": -1},
        {"type": "string", "min_length": 4, "max_length": 2},
        {"type": "number", "min_value": 10, "max_value": 1},
        {"type": "number", "min_value": "0"},
        {"type": "number", "default": "ten"},
        {"type": "enum", "allows": []},
        {"type": "enum"},
    ],
)
def test_invalid_definitions(create, definition):
    with pytest.raises(InvalidPropertyOptionError):
        create("field", definition)


class TestString:
    def test_type(self, create):
        prop = create("title", "string")
        prop.validate("hello")
        prop.validate(None)
        with pytest.raises(TypeMismatchError):
            prop.validate(5)

    def test_pattern_is_searched(self, create):
        prop = create("code", {"type": "string", "pattern": r"\d{3}"})
        prop.validate("ab123cd")
        with pytest.raises(ConstraintViolationError):
            prop.validate("ab12")

    def test_lengths(self, create):
        prop = create("code", {"type": "string", "min_length": 2, "max_length": 4})
        prop.validate("abcd")
        with pytest.raises(ConstraintViolationError):
            prop.validate("a")
        with pytest.raises(ConstraintViolationError):
            prop.validate("abcde")

    def test_empty_value_when_not_nullable(self, create):
        assert create("title", {"type": "string", "nullable": False}).get_default_value() == ""
        assert create("title", "string").get_default_value() is None


class TestNumber:
    def test_booleans_are_not_numbers(self, create):
        prop = create("count", "number")
        prop.validate(3)
        prop.validate(2.5)
        with pytest.raises(TypeMismatchError):
            prop.validate(True)
        with pytest.raises(TypeMismatchError):
            prop.validate("3")

    def test_bounds(self, create):
        prop = create("age", {"type": "number", "min_value": 0, "max_value": 150})
        prop.validate(0)
        prop.validate(150)
        with pytest.raises(ConstraintViolationError):
            prop.validate(-1)
        with pytest.raises(ConstraintViolationError):
            prop.validate(200)

    def test_not_nullable(self, create):
        prop = create("count", {"type": "number", "nullable": False})
        assert prop.get_default_value() == 0
        with pytest.raises(TypeMismatchError):
            prop.validate(None)


class TestEnum:
    def test_default_is_first_allowed(self, create):
        prop = create("size", {"type": "enum", "allows": ["small", "large"]})
        assert prop.get_default_value() == "small"
        assert not prop.is_nullable()
        with pytest.raises(TypeMismatchError):
            prop.validate(None)

    def test_explicit_default(self, create):
        prop = create("size", {"type": "enum", "allows": ["small", "large"], "default": "large"})
        assert prop.get_default_value() == "large"

    def test_membership_does_not_mix_bools_and_numbers(self, create):
        prop = create("flag", {"type": "enum", "allows": [1, "x"]})
        prop.validate(1)
        with pytest.raises(ConstraintViolationError):
            prop.validate(True)
        with pytest.raises(ConstraintViolationError):
            prop.validate("y")

    def test_tuple_allows(self, create):
        assert create("size", {"type": "enum", "allows": ("a", "b")}).definition["allows"] == ["a", "b"]


class TestOtherScalars:
    def test_boolean(self, create, owner):
        prop = create("active", "boolean")
        assert AccessorKind.CHECK in prop.get_accessor_kinds()
        prop.initialize(owner)
        prop.set_value(owner, True)
        assert prop.generate_accessor(AccessorKind.CHECK)(owner) is True
        with pytest.raises(TypeMismatchError):
            prop.validate(1)

    def test_array_stores_tuples_as_lists(self, create, owner):
        prop = create("items", "array")
        prop.initialize(owner)
        prop.set_value(owner, ("a", "b"))
        assert prop.get_value(owner) == ["a", "b"]
        with pytest.raises(TypeMismatchError):
            prop.validate("ab")

    def test_object(self, create):
        prop = create("meta", {"type": "object", "nullable": False})
        assert prop.get_default_value() == {}
        with pytest.raises(TypeMismatchError):
            prop.validate([])

    def test_function(self, create):
        prop = create("callback", {"type": "function", "nullable": False})
        assert prop.get_default_value()() is None
        prop.validate(len)
        with pytest.raises(TypeMismatchError):
            prop.validate("len")

    def test_untyped_accepts_anything(self, create):
        prop = create("anything", "untyped")
        for value in (1, "a", [], object()):
            prop.validate(value)


class TestValueFlow:
    def test_initialize_does_not_mark_modified(self, create, owner):
        prop = create("age", {"type": "number", "default": 7})
        prop.initialize(owner)
        assert prop.get_value(owner) == 7
        assert owner.modified == set()
        prop.set_value(owner, 8)
        assert owner.modified == {"age"}
        assert owner.slots["_age_test1234"] == 8

    def test_default_is_copied(self, create, owner):
        prop = create("tags", {"type": "array", "default": ["a"]})
        first = prop.get_default_value()
        first.append("b")
        assert prop.get_default_value() == ["a"]

    def test_watcher_transforms_value(self, create, owner):
        seen = []

        def watcher(context, value, current):
            seen.append((value, current))
            return value.strip()

        prop = create("name", {"type": "string", "watcher": watcher})
        prop.initialize(owner)
        prop.set_value(owner, "  Rex ")
        assert prop.get_value(owner) == "Rex"
        assert seen == [("  Rex ", None)]

    def test_rejected_value_is_not_stored(self, create, owner):
        prop = create("age", {"type": "number", "max_value": 10})
        prop.initialize(owner)
        with pytest.raises(ConstraintViolationError):
            prop.set_value(owner, 11)
        assert prop.get_value(owner) is None
        assert owner.modified == set()

    def test_read_only(self, create, owner):
        prop = create("id", {"type": "number", "writable": False})
        prop.initialize(owner)
        with pytest.raises(ReadOnlyPropertyError):
            prop.set_value(owner, 1)
        prop.apply_value(owner, 1)
        assert prop.get_value(owner) == 1
        assert prop.get_accessor_kinds() == [AccessorKind.GET]


class TestAccessors:
    def test_generated_accessors(self, create, owner):
        prop = create("age", "number")
        prop.initialize(owner)
        setter = prop.generate_accessor(AccessorKind.SET)
        getter = prop.generate_accessor(AccessorKind.GET)
        assert setter.__name__ == "set_age"
        assert setter(owner, 4) is owner
        assert getter(owner) == 4

    def test_check_accessor_only_for_booleans(self, create):
        with pytest.raises(InvalidPropertyOptionError):
            create("age", "number").generate_accessor(AccessorKind.CHECK)

    def test_accessors_can_be_disabled(self, create):
        prop = create("age", {"type": "number", "accessors": False})
        namespace = {}
        prop.attach(namespace)
        assert list(namespace) == ["age"]


def test_descriptor_snapshot(create):
    descriptor = create("age", {"type": "number", "min_value": 0, "default": 3}).descriptor()
    assert isinstance(descriptor, PropertyDescriptor)
    assert descriptor.type_name == "number"
    assert descriptor.default == 3
    assert descriptor.constraints == {"min_value": 0}
    assert descriptor.context is None
    with pytest.raises(dataclasses.FrozenInstanceError):
        descriptor.name = "other"
