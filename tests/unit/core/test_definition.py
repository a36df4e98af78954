# tests/unit/core/test_definition.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import inspect

import pytest

from classkit.core.definition import ClassDefinition
from classkit.core.errors import InvalidClassOptionError, InvalidPropertyOptionError, UnknownPropertyTypeError
from classkit.core.types import ClassKind


def make(kind, spec=None, name="Sample", property_manager=None):
    return ClassDefinition(name, kind, spec, property_manager)


def test_spec_is_split_into_options_methods_and_fields(property_manager):
    def greet(self):
        return "hi"

    def init(self, name):
        self.name = name

    definition = make(
        "Class",
        {
            "extends": "Base",
            "traits": ["Walker"],
            "properties": {"name": "string"},
            "constants": {"LIMIT": 3},
            "greet": greet,
            "tags": ["a"],
            "__init__": init,
        },
        property_manager=property_manager,
    )
    assert definition.get_parent() == "Base"
    assert definition.get_traits() == ["Walker"]
    assert definition.get_properties() == {"name": {"type": "string"}}
    assert definition.get_constants() == {"LIMIT": 3}
    assert definition.get_methods() == {"greet": greet}
    assert definition.get_fields() == {"tags": ["a"]}
    assert definition.get_constructor() is init


def test_dependencies_in_resolution_order():
    definition = make(
        "Class",
        {"extends": "Base", "traits": ["T"], "implements": ["I", "T"], "requires": {"helper": "Helper"}},
    )
    assert definition.get_dependencies() == ["Base", "T", "I"]
    assert definition.get_references() == ["Helper"]


def test_includes_are_dependencies_and_decorators_are_references():
    definition = make("Config", {"includes": ["Defaults"], "decorators": ["Verbose", "Defaults"]})
    assert definition.get_dependencies() == ["Defaults"]
    assert definition.get_references() == ["Verbose", "Defaults"]


@pytest.mark.parametrize(
    "kind, option, value",
    [
        ("Trait", "traits", ["Other"]),
        ("Trait", "implements", ["Shape"]),
        ("Trait", "abstract_methods", ["run"]),
        ("Trait", "static", {"count": 0}),
        ("Interface", "implements", ["Shape"]),
        ("Interface", "traits", ["Walker"]),
        ("Interface", "abstract_methods", ["run"]),
        ("Interface", "static", {"count": 0}),
        ("Interface", "requires", ["Helper"]),
        ("Config", "static", {"count": 0}),
        ("Config", "traits", ["Walker"]),
        ("Class", "includes", ["Defaults"]),
        ("AbstractClass", "decorators", ["Extra"]),
    ],
)
def test_options_forbidden_for_kind(kind, option, value):
    with pytest.raises(InvalidClassOptionError):
        make(kind, {option: value})


def test_interface_cannot_have_fields():
    with pytest.raises(InvalidClassOptionError):
        make("Interface", {"sides": 4})


def test_interface_properties_are_forced_read_only(property_manager):
    definition = make("Interface", {"properties": {"sides": "number"}}, property_manager=property_manager)
    assert definition.get_property("sides") == {"type": "number", "writable": False}
    with pytest.raises(InvalidPropertyOptionError):
        make("Interface", {"properties": {"sides": {"type": "number", "writable": True}}}, property_manager=property_manager)


def test_property_definitions_are_checked_eagerly(property_manager):
    with pytest.raises(UnknownPropertyTypeError):
        make("Class", {"properties": {"age": "decimal"}}, property_manager=property_manager)
    with pytest.raises(InvalidPropertyOptionError):
        make(
            "Class",
            {"properties": {"code": {"type": "string", "min_length": 5, "max_length": 2}}},
            property_manager=property_manager,
        )
    with pytest.raises(InvalidPropertyOptionError):
        make("Class", {"properties": {"class_name": "string"}}, property_manager=property_manager)


def test_self_reference_is_rejected():
    with pytest.raises(InvalidClassOptionError):
        make("Class", {"extends": "Sample"})
    with pytest.raises(InvalidClassOptionError):
        make("Class", {"traits": ["Sample"]})


def test_member_name_collisions(property_manager):
    with pytest.raises(InvalidClassOptionError):
        make("Class", {"properties": {"size": "number"}, "size": lambda self: 1}, property_manager=property_manager)
    with pytest.raises(InvalidClassOptionError):
        make("Class", {"constants": {"MAX": 1}, "MAX": 2})


@pytest.mark.parametrize(
    "properties",
    [
        {"modified": "boolean"},
        {"instance_of": "boolean"},
    ],
)
def test_accessors_cannot_use_reserved_names(property_manager, properties):
    with pytest.raises(InvalidPropertyOptionError):
        make("Class", {"properties": properties}, property_manager=property_manager)


def test_reserved_accessor_allowed_without_accessors(property_manager):
    definition = make(
        "Class", {"properties": {"modified": {"type": "boolean", "accessors": False}}}, property_manager=property_manager
    )
    assert definition.has_property("modified")


@pytest.mark.parametrize(
    "spec",
    [
        {"properties": {"size": "number"}, "get_size": lambda self: 1},
        {"set_size": lambda self, value: None, "properties": {"size": "number"}},
        {"properties": {"big": "boolean"}, "is_big": True},
        {"properties": {"size": "number", "get_size": "string"}},
        {"constants": {"get_size": 1}, "properties": {"size": "number"}},
    ],
)
def test_members_cannot_shadow_generated_accessors(property_manager, spec):
    with pytest.raises(InvalidClassOptionError):
        make("Class", spec, property_manager=property_manager)


def test_removing_property_frees_its_accessor_names(property_manager):
    definition = make("Class", {"properties": {"size": "number"}}, property_manager=property_manager)
    definition.remove_property("size")
    definition.set_method("get_size", lambda self: 1)
    assert "get_size" in definition.get_methods()


def test_abstract_methods_accept_names_and_signatures():
    definition = make("AbstractClass", {"abstract_methods": {"speak": lambda self, loud=False: None, "eat": None}})
    methods = definition.get_abstract_methods()
    assert list(methods) == ["speak", "eat"]
    assert isinstance(methods["speak"], inspect.Signature)
    assert list(methods["speak"].parameters) == ["self", "loud"]
    assert methods["eat"] is None


def test_requires_list_uses_last_segment_as_alias():
    definition = make("Class", {"requires": ["App.Models.User", "Logger"]})
    assert definition.get_requires() == {"User": "App.Models.User", "Logger": "Logger"}


def test_copy_is_independent(property_manager):
    definition = make("Class", {"properties": {"age": "number"}, "tags": ["a"]}, property_manager=property_manager)
    clone = definition.copy()
    clone.add_property("name", "string")
    clone.set_field("tags", ["b"])
    assert not definition.has_property("name")
    assert definition.get_fields() == {"tags": ["a"]}
    assert clone.get_name() == "Sample"
    assert clone.kind is ClassKind.CLASS


def test_set_body_replaces_members_and_rolls_back():
    definition = make("Class", {"run": lambda self: 1, "speed": 3})
    definition.set_body({"walk": lambda self: 2})
    assert list(definition.get_methods()) == ["walk"]
    assert definition.get_fields() == {}
    with pytest.raises(InvalidClassOptionError):
        definition.set_body({"fly": lambda self: 3, "static": 1})
    assert list(definition.get_methods()) == ["walk"]


def test_spec_must_be_a_mapping():
    with pytest.raises(InvalidClassOptionError):
        make("Class", ["not", "a", "dict"])
    with pytest.raises(InvalidClassOptionError):
        ClassDefinition("", "Class")
