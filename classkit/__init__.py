"""classkit: runtime object model with classes, interfaces, traits and typed properties

This package builds class-like entities from declarative specs, resolves the
graph between them lazily and produces instances whose fields are governed
by a typed property system.

Responsibilities:
    - Class, abstract class, interface, trait and config declarations
    - Lazy, cycle-checked resolution of parents, traits and interfaces
    - By-value trait composition
    - Typed properties with validation, defaults, maps, collections and aliases
    - Sealing of classes once instantiated

Interactions:
    - Client code through ClassManager and ClassBuilder
    - A Loader collaborator for classes the registry does not know yet
    - Registry hooks for "class resolved" and "instance created" notifications
    - Logging system for diagnostics

Cross-cutting Concerns:
    Threading:
        - Single-threaded and synchronous, no locks

    Error Handling:
        - Structured error hierarchy rooted at ClassKitError
        - Errors propagate unmodified, failed resolutions are rolled back

    Logging:
        - Standard library logging, one logger per module
        - No handlers configured by the library
"""

from .core.errors import (
    AlreadyRegisteredError,
    AlreadySealedError,
    CannotInstantiateError,
    ClassKitError,
    ConstraintViolationError,
    CyclicDependencyError,
    DeclarationError,
    IncompatibleInterfaceMemberError,
    IncompatibleParentError,
    InvalidClassOptionError,
    InvalidPropertyOptionError,
    MissingItemError,
    NoMatchingTypeError,
    NonExistentMemberError,
    NotImplementedMethodError,
    PropertyValueError,
    ReadOnlyPropertyError,
    ResolutionError,
    TypeMismatchError,
    UnknownClassError,
    UnknownMapKeyError,
    UnknownPropertyTypeError,
)
from .core.types import AccessorKind, ClassKind, ClassState, KindCapabilities
from .core.settings import RegistrySettings
from .core.instance import Instance
from .property import (
    ArrayCollection,
    MapValue,
    ObjectCollection,
    PropertyDescriptor,
    PropertyManager,
    PropertyType,
    property_type,
)
from .core.definition import ClassDefinition
from .core.class_type import ClassType
from .core.hooks import HookManager
from .core.manager import ClassManager
from .core.builder import ClassBuilder

__version__ = "0.1.0"

__all__ = [
    "AccessorKind",
    "AlreadyRegisteredError",
    "AlreadySealedError",
    "ArrayCollection",
    "CannotInstantiateError",
    "ClassBuilder",
    "ClassDefinition",
    "ClassKind",
    "ClassKitError",
    "ClassManager",
    "ClassState",
    "ClassType",
    "ConstraintViolationError",
    "CyclicDependencyError",
    "DeclarationError",
    "HookManager",
    "IncompatibleInterfaceMemberError",
    "IncompatibleParentError",
    "Instance",
    "InvalidClassOptionError",
    "InvalidPropertyOptionError",
    "KindCapabilities",
    "MapValue",
    "MissingItemError",
    "NoMatchingTypeError",
    "NonExistentMemberError",
    "NotImplementedMethodError",
    "ObjectCollection",
    "PropertyDescriptor",
    "PropertyManager",
    "PropertyType",
    "PropertyValueError",
    "ReadOnlyPropertyError",
    "RegistrySettings",
    "ResolutionError",
    "TypeMismatchError",
    "UnknownClassError",
    "UnknownMapKeyError",
    "UnknownPropertyTypeError",
    "property_type",
]
