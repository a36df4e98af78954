# tests/unit/property/test_class_reference.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest

from classkit.core.errors import InvalidPropertyOptionError, TypeMismatchError, UnknownClassError


@pytest.fixture
def people(class_manager):
    class_manager.register("Pet", "Interface")
    class_manager.register("Dog", "Class", {"implements": ["Pet"]})
    class_manager.register("Rock", "Class")
    class_manager.register(
        "Person",
        "Class",
        {
            "properties": {
                "friend": {"type": "class", "class_name": "Person"},
                "pet": {"type": "class", "class_name": "Pet"},
            }
        },
    )
    return class_manager


def test_self_reference(people):
    alice = people.create_instance("Person")
    bob = people.create_instance("Person")
    assert alice.friend is None
    alice.friend = bob
    assert alice.get_friend() is bob
    alice.friend = None
    assert alice.friend is None


def test_value_must_be_instance_of_named_class(people):
    alice = people.create_instance("Person")
    with pytest.raises(TypeMismatchError):
        alice.friend = people.create_instance("Rock")
    with pytest.raises(TypeMismatchError):
        alice.friend = "bob"


def test_interfaces_count_as_kind(people):
    alice = people.create_instance("Person")
    alice.pet = people.create_instance("Dog")
    with pytest.raises(TypeMismatchError):
        alice.pet = people.create_instance("Rock")


def test_named_class_must_be_known(class_manager):
    class_manager.register("Owner", "Class", {"properties": {"pet": {"type": "class", "class_name": "Unicorn"}}})
    with pytest.raises(UnknownClassError):
        class_manager.load("Owner")


def test_named_class_can_come_from_loader(class_manager, dict_loader):
    dict_loader.manager = class_manager
    dict_loader.pending["Unicorn"] = ("Class", {})
    class_manager.set_loader(dict_loader)
    class_manager.register("Owner", "Class", {"properties": {"pet": {"type": "class", "class_name": "Unicorn"}}})
    owner = class_manager.create_instance("Owner")
    owner.pet = class_manager.create_instance("Unicorn")
    assert owner.pet.get_class_name() == "Unicorn"


def test_invalid_definitions(property_manager):
    with pytest.raises(InvalidPropertyOptionError):
        property_manager.create_property("friend", {"type": "class"})
    with pytest.raises(InvalidPropertyOptionError):
        property_manager.create_property("friend", {"type": "class", "class_name": "Person", "default": "x"})
