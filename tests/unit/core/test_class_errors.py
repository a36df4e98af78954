# tests/unit/core/test_class_errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest

from classkit.core import errors


def test_error_hierarchy():
    assert issubclass(errors.DeclarationError, errors.ClassKitError)
    assert issubclass(errors.ResolutionError, errors.ClassKitError)
    assert issubclass(errors.InvalidClassOptionError, errors.DeclarationError)
    assert issubclass(errors.InvalidPropertyOptionError, errors.DeclarationError)
    assert issubclass(errors.AlreadyRegisteredError, errors.DeclarationError)
    assert issubclass(errors.CyclicDependencyError, errors.ResolutionError)
    assert issubclass(errors.IncompatibleInterfaceMemberError, errors.ResolutionError)
    assert issubclass(errors.NotImplementedMethodError, errors.CannotInstantiateError)
    assert issubclass(errors.UnknownMapKeyError, errors.ConstraintViolationError)


def test_value_and_lookup_errors_match_builtin_families():
    assert issubclass(errors.TypeMismatchError, ValueError)
    assert issubclass(errors.NoMatchingTypeError, ValueError)
    assert issubclass(errors.UnknownClassError, LookupError)
    assert issubclass(errors.MissingItemError, LookupError)
    assert issubclass(errors.NonExistentMemberError, AttributeError)


def test_not_implemented_method_message():
    e = errors.NotImplementedMethodError("Dog", ["speak"])
    assert str(e) == "Abstract method not implemented: Dog#speak"
    assert e.class_name == "Dog"
    assert e.method_name == "speak"
    assert e.method_names == ["speak"]


def test_cyclic_dependency_carries_path():
    e = errors.CyclicDependencyError(["A", "B", "A"])
    assert e.path == ["A", "B", "A"]
    assert "A -> B -> A" in str(e)


def test_no_matching_type_lists_names():
    e = errors.NoMatchingTypeError("nothing matched", ["number", "boolean"])
    assert e.type_names == ["number", "boolean"]
    with pytest.raises(errors.PropertyValueError):
        raise e
