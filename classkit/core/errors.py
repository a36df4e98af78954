# classkit/core/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from typing import Iterable, List, Sequence


class ClassKitError(Exception):
    """
    Base exception class for errors within the classkit object model.
    """


# Declaration errors: raised immediately while a spec is being set.


class DeclarationError(ClassKitError):
    """
    Raised when a class spec or property definition is malformed.
    """


class InvalidClassOptionError(DeclarationError):
    """
    Raised when a class option has the wrong shape or is not allowed for the class kind.
    """


class InvalidPropertyOptionError(DeclarationError):
    """
    Raised when a property definition contains an invalid or unsupported option.
    """


class UnknownPropertyTypeError(DeclarationError):
    """
    Raised when a property definition names a type that is neither built in nor an alias.
    """


class AlreadyRegisteredError(DeclarationError):
    """
    Raised when a class, property type or type alias name is already taken.
    """


# Resolution errors: raised while loading a class and its relatives.


class ResolutionError(ClassKitError):
    """
    Raised when a declared class cannot be resolved against the registry.
    """


class UnknownClassError(ResolutionError, LookupError):
    """
    Raised when a referenced class name is unknown to the registry and its loader.
    """


class CyclicDependencyError(ResolutionError):
    """
    Raised when resolving a class revisits a class that is still being resolved.
    """

    def __init__(self, path: Sequence[str]) -> None:
        self.path: List[str] = list(path)
        super().__init__("Cyclic class dependency: " + " -> ".join(self.path))


class IncompatibleParentError(ResolutionError):
    """
    Raised when a parent, trait, interface or config has a kind the class cannot use.
    """


class IncompatibleInterfaceMemberError(ResolutionError):
    """
    Raised when members required by interfaces conflict with each other or with the class.
    """


# Alteration errors.


class AlreadySealedError(ClassKitError):
    """
    Raised when altering a class that already produced an instance.
    """


# Instantiation errors.


class CannotInstantiateError(ClassKitError):
    """
    Raised when creating an instance of a class kind that cannot be instantiated.
    """


class NotImplementedMethodError(CannotInstantiateError):
    """
    Raised when a class still has abstract methods without an implementation.
    """

    def __init__(self, class_name: str, method_names: Iterable[str]) -> None:
        self.class_name = class_name
        self.method_names: List[str] = list(method_names)
        self.method_name = self.method_names[0] if self.method_names else ""
        qualified = ", ".join(f"{class_name}#{name}" for name in self.method_names)
        super().__init__(f"Abstract method not implemented: {qualified}")


# Value errors: raised on property access.


class PropertyValueError(ClassKitError, ValueError):
    """
    Base class for errors raised when a property value is rejected.
    """


class TypeMismatchError(PropertyValueError):
    """
    Raised when a value does not have the type a property requires.
    """


class ConstraintViolationError(PropertyValueError):
    """
    Raised when a value has the right type but breaks a property constraint.
    """


class UnknownMapKeyError(ConstraintViolationError):
    """
    Raised when a map value contains a key its schema does not declare.
    """


class NoMatchingTypeError(PropertyValueError):
    """
    Raised when no member type of a mixed property accepts a value.
    """

    def __init__(self, message: str, type_names: Sequence[str] = ()) -> None:
        self.type_names: List[str] = list(type_names)
        super().__init__(message)


class ReadOnlyPropertyError(PropertyValueError):
    """
    Raised when writing a non-writable property, a constant or a method slot.
    """


class MissingItemError(ClassKitError, LookupError):
    """
    Raised when a collection has no item under the requested index or key.
    """


class NonExistentMemberError(ClassKitError, AttributeError):
    """
    Raised when a class or instance has no member with the requested name.
    """
