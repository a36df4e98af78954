# tests/unit/core/test_kinds.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest

from classkit.core.errors import InvalidClassOptionError
from classkit.core.settings import RegistrySettings
from classkit.core.types import CAPABILITIES, ClassKind, get_capabilities


@pytest.mark.parametrize(
    "value, expected",
    [
        ("Class", ClassKind.CLASS),
        ("AbstractClass", ClassKind.ABSTRACT_CLASS),
        ("INTERFACE", ClassKind.INTERFACE),
        (ClassKind.TRAIT, ClassKind.TRAIT),
        ("Config", ClassKind.CONFIG),
    ],
)
def test_coerce_kind(value, expected):
    assert ClassKind.coerce(value) is expected


def test_coerce_unknown_kind():
    with pytest.raises(InvalidClassOptionError):
        ClassKind.coerce("Struct")


def test_every_kind_has_capabilities():
    assert set(CAPABILITIES) == set(ClassKind)


def test_parent_kind_rules():
    assert get_capabilities("Interface").allowed_parent_kinds == {ClassKind.INTERFACE}
    assert get_capabilities("Trait").allowed_parent_kinds == {ClassKind.TRAIT}
    assert get_capabilities("AbstractClass").allowed_parent_kinds == {ClassKind.ABSTRACT_CLASS}
    assert get_capabilities("Config").allowed_parent_kinds == {ClassKind.CONFIG}
    assert ClassKind.ABSTRACT_CLASS in get_capabilities("Class").allowed_parent_kinds


def test_only_class_and_config_are_instantiable():
    instantiable = {kind for kind, caps in CAPABILITIES.items() if caps.can_be_instantiated}
    assert instantiable == {ClassKind.CLASS, ClassKind.CONFIG}


def test_trait_and_interface_restrictions():
    for kind in (ClassKind.TRAIT, ClassKind.INTERFACE):
        caps = get_capabilities(kind)
        assert not caps.can_include_traits
        assert not caps.can_implement_interfaces
        assert not caps.can_declare_abstract
        assert not caps.can_have_statics
    assert not get_capabilities(ClassKind.INTERFACE).can_have_fields


def test_settings_validation():
    assert RegistrySettings(hash_token="abc").hash_token == "abc"
    assert len(RegistrySettings().hash_token) == 8
    with pytest.raises(ValueError):
        RegistrySettings(hash_token="has space")
    with pytest.raises(ValueError):
        RegistrySettings(max_resolution_depth=0)
