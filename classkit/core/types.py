# classkit/core/types.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Type definitions and enums for the object model.

This module contains shared type definitions and enums used across
the class and property packages. It helps break circular dependencies
between modules and provides a central location for type information.

Design:
- No runtime dependencies on other classkit modules except errors
- One capability record per class kind instead of a class per kind
- Provides type hints for static analysis
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Dict, FrozenSet, List, Union

from classkit.core.errors import InvalidClassOptionError


class ClassKind(Enum):
    """Defines the kinds of class-like entities the registry can hold.

    The value is the display name used in error messages and in
    ``ClassKind.coerce`` lookups.
    """

    CLASS = "Class"  # Concrete, instantiable class
    ABSTRACT_CLASS = "AbstractClass"  # Class with abstract methods, never instantiated
    INTERFACE = "Interface"  # Property and method signatures only
    TRAIT = "Trait"  # Reusable bodies copied into including classes
    CONFIG = "Config"  # Data record without statics, may include other configs

    @classmethod
    def coerce(cls, value: Union["ClassKind", str]) -> "ClassKind":
        """Return the kind matching an enum member, its value or its name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for kind in cls:
                if value in (kind.value, kind.name):
                    return kind
        raise InvalidClassOptionError(f"Unknown class kind: {value!r}")


class ClassState(Enum):
    """Lifecycle of a registered class.

    DECLARED -> RESOLVING -> RESOLVED -> SEALED, with a reset back to
    DECLARED for any class that was not sealed.
    """

    DECLARED = auto()  # Registered, relatives not looked at yet
    RESOLVING = auto()  # On the active resolution path
    RESOLVED = auto()  # Composed and ready for use
    SEALED = auto()  # Instantiated at least once, no more alteration


class AccessorKind(Enum):
    """Accessor flavours a property can generate, valued by method prefix."""

    GET = "get"
    SET = "set"
    CHECK = "is"


@dataclass(frozen=True)
class KindCapabilities:
    """What a class kind may declare and do.

    One shared resolution algorithm reads these flags instead of
    dispatching on a hierarchy of kind-specific classes.
    """

    can_have_statics: bool
    can_be_instantiated: bool
    can_declare_abstract: bool
    can_implement_interfaces: bool
    can_include_traits: bool
    can_extend_only_same_kind: bool
    can_include_configs: bool
    can_have_fields: bool
    allowed_parent_kinds: FrozenSet[ClassKind]


CAPABILITIES: Dict[ClassKind, KindCapabilities] = {
    ClassKind.CLASS: KindCapabilities(
        can_have_statics=True,
        can_be_instantiated=True,
        can_declare_abstract=True,
        can_implement_interfaces=True,
        can_include_traits=True,
        can_extend_only_same_kind=False,
        can_include_configs=False,
        can_have_fields=True,
        allowed_parent_kinds=frozenset({ClassKind.CLASS, ClassKind.ABSTRACT_CLASS}),
    ),
    ClassKind.ABSTRACT_CLASS: KindCapabilities(
        can_have_statics=True,
        can_be_instantiated=False,
        can_declare_abstract=True,
        can_implement_interfaces=True,
        can_include_traits=True,
        can_extend_only_same_kind=True,
        can_include_configs=False,
        can_have_fields=True,
        allowed_parent_kinds=frozenset({ClassKind.ABSTRACT_CLASS}),
    ),
    ClassKind.INTERFACE: KindCapabilities(
        can_have_statics=False,
        can_be_instantiated=False,
        can_declare_abstract=False,
        can_implement_interfaces=False,
        can_include_traits=False,
        can_extend_only_same_kind=True,
        can_include_configs=False,
        can_have_fields=False,
        allowed_parent_kinds=frozenset({ClassKind.INTERFACE}),
    ),
    ClassKind.TRAIT: KindCapabilities(
        can_have_statics=False,
        can_be_instantiated=False,
        can_declare_abstract=False,
        can_implement_interfaces=False,
        can_include_traits=False,
        can_extend_only_same_kind=True,
        can_include_configs=False,
        can_have_fields=True,
        allowed_parent_kinds=frozenset({ClassKind.TRAIT}),
    ),
    ClassKind.CONFIG: KindCapabilities(
        can_have_statics=False,
        can_be_instantiated=True,
        can_declare_abstract=False,
        can_implement_interfaces=False,
        can_include_traits=False,
        can_extend_only_same_kind=True,
        can_include_configs=True,
        can_have_fields=True,
        allowed_parent_kinds=frozenset({ClassKind.CONFIG}),
    ),
}


def get_capabilities(kind: Union[ClassKind, str]) -> KindCapabilities:
    """Return the capability record for a class kind."""
    return CAPABILITIES[ClassKind.coerce(kind)]


# Type aliases for common types
ClassName = str
ClassSpec = Dict[str, Any]
PropertyDefinition = Dict[str, Any]
PropertySchema = Dict[str, Union[PropertyDefinition, str]]
NameList = List[ClassName]
Watcher = Callable[[Any, Any, Any], Any]
