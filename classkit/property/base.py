# classkit/property/base.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Property type contract.

Architecture:
- A PropertyType is built from a declarative definition by the PropertyManager
- Subclasses register under a type name with the ``property_type`` decorator
- Values are stored on a ValueContext (an Instance) under a hashed slot name
- Container types (map, mixed, collections) own child PropertyTypes whose
  ``context_property`` points back at the container

Design Patterns:
- Template Method: ``set_value`` runs watcher, validation, preparation and
  storage, with subclasses overriding individual steps
- Registry: type names map to PropertyType subclasses
- Descriptor: PropertyAttribute exposes a property as a plain attribute

Responsibilities:
- Normalize and validate definitions at declaration time
- Validate values, compute defaults, generate accessor functions
- Produce frozen PropertyDescriptor snapshots for introspection
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Dict, FrozenSet, Optional, Type

from classkit.core.errors import (
    InvalidPropertyOptionError,
    PropertyValueError,
    ReadOnlyPropertyError,
    TypeMismatchError,
)
from classkit.core.types import AccessorKind, PropertyDefinition

if TYPE_CHECKING:
    from classkit.core.class_type import ClassType
    from classkit.core.manager import ClassManager
    from classkit.interfaces.protocols import ValueContext
    from classkit.property.manager import PropertyManager

logger = logging.getLogger(__name__)

PROPERTY_TYPES: Dict[str, Type["PropertyType"]] = {}

BASE_OPTION_KEYS: FrozenSet[str] = frozenset({"type", "default", "nullable", "writable", "accessors", "watcher"})


def property_type(cls: Type["PropertyType"]) -> Type["PropertyType"]:
    """Class decorator registering a PropertyType subclass under its ``type_name``."""
    if not cls.type_name:
        raise ValueError(f"{cls.__name__} does not define a type_name")
    PROPERTY_TYPES[cls.type_name] = cls
    return cls


@dataclass(frozen=True)
class PropertyDescriptor:
    """Immutable snapshot of a property definition."""

    name: str
    type_name: str
    alias: Optional[str]
    nullable: bool
    default: Any
    writable: bool
    accessors: bool
    constraints: Dict[str, Any] = field(default_factory=dict)
    context: Optional[str] = None


class PropertyType:
    """
    Base class of all property types.

    Class Invariants:
    - The definition is normalized and validated once, in ``__init__``
    - ``type`` in the definition is always the concrete type name, never an alias
    - Every write goes through ``validate`` before it is stored
    """

    type_name: ClassVar[str] = ""
    option_keys: ClassVar[FrozenSet[str]] = frozenset()
    supports_check: ClassVar[bool] = False

    def __init__(
        self,
        name: str,
        definition: PropertyDefinition,
        manager: "PropertyManager",
        context_class: Optional["ClassType"] = None,
        context_property: Optional["PropertyType"] = None,
        alias: Optional[str] = None,
    ) -> None:
        self._name = name
        self._manager = manager
        self._context_class = context_class
        self._context_property = context_property
        self._alias = alias
        definition = self.normalize_definition(dict(definition))
        self.validate_definition(definition)
        self._definition = definition
        self.process_definition()
        self._check_default()

    # Definition handling

    def normalize_definition(self, definition: PropertyDefinition) -> PropertyDefinition:
        """Fill in base options a definition left out."""
        definition["type"] = self.type_name
        definition.setdefault("default", None)
        definition.setdefault("nullable", True)
        definition.setdefault("writable", True)
        definition.setdefault("accessors", self._manager.default_accessors)
        definition.setdefault("watcher", None)
        return definition

    def validate_definition(self, definition: PropertyDefinition) -> None:
        """Reject unknown options and badly typed base options."""
        unknown = set(definition) - BASE_OPTION_KEYS - self.option_keys
        if unknown:
            raise InvalidPropertyOptionError(
                f"Property '{self.full_name}' of type '{self.type_name}' has unknown options: {sorted(unknown)}"
            )
        for key in ("nullable", "writable", "accessors"):
            if not isinstance(definition[key], bool):
                raise InvalidPropertyOptionError(f"Option '{key}' of property '{self.full_name}' must be a bool")
        if definition["watcher"] is not None and not callable(definition["watcher"]):
            raise InvalidPropertyOptionError(f"Watcher of property '{self.full_name}' must be callable")

    def process_definition(self) -> None:
        """Hook for subclasses that build child properties from their definition."""

    def _check_default(self) -> None:
        default = self._definition["default"]
        if default is None:
            return
        try:
            self.validate(default)
        except PropertyValueError as exc:
            raise InvalidPropertyOptionError(f"Default of property '{self.full_name}' is invalid: {exc}") from exc

    # Introspection

    @property
    def name(self) -> str:
        return self._name

    @property
    def full_name(self) -> str:
        if self._context_property is not None:
            return f"{self._context_property.full_name}.{self._name}"
        return self._name

    @property
    def alias(self) -> Optional[str]:
        return self._alias

    @property
    def definition(self) -> PropertyDefinition:
        return copy.deepcopy(self._definition)

    @property
    def context_class(self) -> Optional["ClassType"]:
        return self._context_class

    @property
    def context_property(self) -> Optional["PropertyType"]:
        return self._context_property

    @property
    def root_property(self) -> "PropertyType":
        """Outermost container property, the one that owns the storage slot."""
        prop = self
        while prop._context_property is not None:
            prop = prop._context_property
        return prop

    @property
    def watcher(self) -> Optional[Callable[[Any, Any, Any], Any]]:
        return self._definition["watcher"]

    def is_nullable(self) -> bool:
        return self._definition["nullable"]

    def is_writable(self) -> bool:
        return self._definition["writable"]

    def has_accessors(self) -> bool:
        return self._definition["accessors"]

    @property
    def storage_key(self) -> str:
        return self._manager.get_hashed_name(self._name)

    def get_constraints(self) -> Dict[str, Any]:
        return {key: copy.deepcopy(self._definition[key]) for key in self.option_keys if key in self._definition}

    def descriptor(self) -> PropertyDescriptor:
        context = self._context_property.full_name if self._context_property is not None else None
        return PropertyDescriptor(
            name=self._name,
            type_name=self.type_name,
            alias=self._alias,
            nullable=self.is_nullable(),
            default=copy.deepcopy(self._definition["default"]),
            writable=self.is_writable(),
            accessors=self.has_accessors(),
            constraints=self.get_constraints(),
            context=context,
        )

    # Values

    def get_empty_value(self) -> Any:
        """Value used when no default is declared."""
        if self.is_nullable():
            return None
        return self._empty_value()

    def _empty_value(self) -> Any:
        return None

    def get_default_value(self) -> Any:
        default = self._definition["default"]
        if default is None:
            return self.get_empty_value()
        return copy.deepcopy(default)

    def validate(self, value: Any) -> None:
        """Raise TypeMismatchError or ConstraintViolationError for a rejected value."""
        if value is None:
            if not self.is_nullable():
                raise TypeMismatchError(f"Property '{self.full_name}' is not nullable")
            return
        self.validate_value(value)

    def validate_value(self, value: Any) -> None:
        raise NotImplementedError()

    def _type_error(self, value: Any, expected: str) -> TypeMismatchError:
        return TypeMismatchError(
            f"Property '{self.full_name}' expects {expected}, got {type(value).__name__} {value!r}"
        )

    def prepare(self, value: Any, owner: Optional["ValueContext"], read_only: bool = False) -> Any:
        """
        Convert a validated value into its stored representation.

        :param read_only: Set when an enclosing map or collection is not writable;
            containers built here must refuse mutation.
        """
        return value

    def initialize(self, owner: "ValueContext") -> None:
        """Store the default value in a fresh owner without marking it modified."""
        owner._write_slot(self.storage_key, self.prepare(self.get_default_value(), owner))

    def get_value(self, owner: "ValueContext") -> Any:
        return owner._read_slot(self.storage_key)

    def set_value(self, owner: "ValueContext", value: Any) -> None:
        if not self.is_writable():
            raise ReadOnlyPropertyError(f"Property '{self.full_name}' is not writable")
        self.apply_value(owner, value)

    def apply_value(self, owner: "ValueContext", value: Any) -> None:
        """Run watcher, validation and storage without the writability check."""
        current = self.get_value(owner)
        if self.watcher is not None:
            value = self.watcher(owner, value, current)
        self.validate(value)
        owner._write_slot(self.storage_key, self.prepare(value, owner))
        owner._mark_modified(self._name)

    # Accessors

    def get_accessor_name(self, kind: AccessorKind) -> str:
        return f"{kind.value}_{self._name}"

    def get_accessor_kinds(self) -> list:
        """Accessor kinds this property installs on its class."""
        if not self.has_accessors():
            return []
        kinds = [AccessorKind.GET]
        if self.is_writable():
            kinds.append(AccessorKind.SET)
        if self.supports_check:
            kinds.append(AccessorKind.CHECK)
        return kinds

    def generate_accessor(self, kind: AccessorKind) -> Callable[..., Any]:
        """
        Build the function installed as ``get_<name>``, ``set_<name>`` or ``is_<name>``.
        Setters return the instance so calls can be chained.
        """
        prop = self
        if kind is AccessorKind.GET:

            def accessor(instance):
                return prop.get_value(instance)

        elif kind is AccessorKind.SET:

            def accessor(instance, value):
                prop.set_value(instance, value)
                return instance

        elif kind is AccessorKind.CHECK:
            if not self.supports_check:
                raise InvalidPropertyOptionError(
                    f"Property '{self.full_name}' of type '{self.type_name}' has no check accessor"
                )

            def accessor(instance):
                return bool(prop.get_value(instance))

        else:
            raise InvalidPropertyOptionError(f"Unknown accessor kind: {kind!r}")
        accessor.__name__ = self.get_accessor_name(kind)
        accessor.__qualname__ = accessor.__name__
        accessor.__doc__ = f"{kind.name.capitalize()} accessor of property '{self._name}'."
        return accessor

    def attach(self, namespace: Dict[str, Any]) -> None:
        """Install the attribute descriptor and accessors into a class namespace."""
        namespace[self._name] = PropertyAttribute(self)
        for kind in self.get_accessor_kinds():
            namespace[self.get_accessor_name(kind)] = self.generate_accessor(kind)

    # Composition

    def clone(self, context_class: Optional["ClassType"] = None) -> "PropertyType":
        """Independent copy of this property bound to another class."""
        return self._manager.create_property(
            self._name,
            self._alias_definition(),
            context_class=context_class if context_class is not None else self._context_class,
            context_property=self._context_property,
        )

    def _alias_definition(self) -> PropertyDefinition:
        definition = self.definition
        if self._alias is not None:
            definition["type"] = self._alias
        return definition

    def comparable_definition(self) -> PropertyDefinition:
        """Definition without the options that do not change the stored value contract."""
        definition = self.definition
        definition.pop("watcher", None)
        definition.pop("accessors", None)
        return definition

    def is_compatible_with(self, other: "PropertyType") -> bool:
        return self.type_name == other.type_name and self.comparable_definition() == other.comparable_definition()

    def resolve(self, registry: "ClassManager") -> None:
        """Check references to other classes once the owning class resolves."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.full_name!r}>"


class PropertyAttribute:
    """Data descriptor exposing a property as ``instance.<name>``."""

    def __init__(self, prop: PropertyType) -> None:
        self.property = prop

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        if instance is None:
            return self
        return self.property.get_value(instance)

    def __set__(self, instance: Any, value: Any) -> None:
        self.property.set_value(instance, value)

    def __delete__(self, instance: Any) -> None:
        raise ReadOnlyPropertyError(f"Property '{self.property.name}' cannot be deleted")
