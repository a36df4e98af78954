# classkit/core/class_type.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Resolved class node.

Architecture:
- One ClassType per registered name, parameterized by its ClassKind and the
  kind's KindCapabilities record
- The owning ClassManager is held through a weak reference and relatives
  are looked up by name on demand
- Resolution composes a by-value snapshot: inherited members come from the
  parent's runtime class, trait and included-config members are copied in

Design Patterns:
- State Pattern for the DECLARED/RESOLVING/RESOLVED/SEALED lifecycle
- Template Method: one resolution algorithm, capability flags choose the steps
- Prototype: traits and included configs are cloned, never referenced

Responsibilities:
- Check parent, trait, interface and config kinds
- Merge interface requirements and detect conflicting members
- Track outstanding abstract methods
- Build the Python runtime class and prepare instances
- Hold static members and answer hierarchy queries

Member precedence when names collide:
    local declaration > inherited member > trait or included-config member
"""

from __future__ import annotations

import copy
import inspect
import logging
import types
import weakref
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set

from classkit.core.definition import CONSTRUCTOR_NAME, ClassDefinition
from classkit.core.errors import (
    AlreadySealedError,
    CannotInstantiateError,
    ClassKitError,
    IncompatibleInterfaceMemberError,
    IncompatibleParentError,
    NonExistentMemberError,
    NotImplementedMethodError,
    ResolutionError,
)
from classkit.core.instance import Instance
from classkit.core.types import ClassKind, ClassState, KindCapabilities

if TYPE_CHECKING:
    from classkit.core.manager import ClassManager
    from classkit.property.base import PropertyType

logger = logging.getLogger(__name__)

_MISSING = object()


def clone_member(member: Any) -> Any:
    """
    Independent copy of a method-like member.

    Plain functions get a new function object sharing the code, so attributes
    set on one copy never show up on another. Wrappers are rebuilt around
    cloned functions; anything else is deep-copied.
    """
    if isinstance(member, types.FunctionType):
        clone = types.FunctionType(
            member.__code__,
            member.__globals__,
            member.__name__,
            member.__defaults__,
            member.__closure__,
        )
        clone.__kwdefaults__ = copy.copy(member.__kwdefaults__)
        clone.__qualname__ = member.__qualname__
        clone.__doc__ = member.__doc__
        clone.__module__ = member.__module__
        clone.__dict__.update(copy.deepcopy(member.__dict__))
        return clone
    if isinstance(member, staticmethod):
        return staticmethod(clone_member(member.__func__))
    if isinstance(member, classmethod):
        return classmethod(clone_member(member.__func__))
    if isinstance(member, property):
        return property(
            clone_member(member.fget) if member.fget else None,
            clone_member(member.fset) if member.fset else None,
            clone_member(member.fdel) if member.fdel else None,
            member.__doc__,
        )
    return copy.deepcopy(member)


class RequiredClass:
    """Class attribute that resolves a required class on first access."""

    def __init__(self, class_name: str) -> None:
        self.class_name = class_name

    def __get__(self, instance: Any, owner: type) -> "ClassType":
        return owner._classkit_class_type.manager.get_class(self.class_name)


class ClassType:
    """
    Runtime node of one declared class, abstract class, interface, trait or config.

    Class Invariants:
    - State only advances DECLARED -> RESOLVING -> RESOLVED -> SEALED
    - Resolved members are a snapshot; relatives changing later do not leak in
    - A SEALED class never changes its definition again
    """

    def __init__(self, manager: "ClassManager", definition: ClassDefinition) -> None:
        self._manager_ref = weakref.ref(manager)
        self._definition = definition
        self._state = ClassState.DECLARED
        self._instance_created = False
        self._statics: Dict[str, Any] = definition.get_static_properties()
        self._clear_resolution()

    def _clear_resolution(self) -> None:
        self._properties: Dict[str, "PropertyType"] = {}
        self._own_properties: Dict[str, "PropertyType"] = {}
        self._methods: Dict[str, Any] = {}
        self._own_methods: Dict[str, Any] = {}
        self._fields: Dict[str, Any] = {}
        self._constants: Dict[str, Any] = {}
        self._abstract_methods: Dict[str, Optional[inspect.Signature]] = {}
        self._signatures: Dict[str, Optional[inspect.Signature]] = {}
        self._required: Dict[str, str] = {}
        self._constructor: Optional[type] = None

    # Identity and state

    @property
    def name(self) -> str:
        return self._definition.get_name()

    @property
    def kind(self) -> ClassKind:
        return self._definition.kind

    @property
    def capabilities(self) -> KindCapabilities:
        return self._definition.capabilities

    @property
    def state(self) -> ClassState:
        return self._state

    @property
    def definition(self) -> ClassDefinition:
        return self._definition

    @property
    def manager(self) -> "ClassManager":
        manager = self._manager_ref()
        if manager is None:
            raise ClassKitError(f"The registry owning class '{self.name}' no longer exists")
        return manager

    def is_resolved(self) -> bool:
        return self._state in (ClassState.RESOLVED, ClassState.SEALED)

    def is_sealed(self) -> bool:
        return self._state is ClassState.SEALED

    def was_instance_created(self) -> bool:
        return self._instance_created

    def _ensure_resolved(self) -> None:
        if not self.is_resolved():
            self.manager.load(self.name)

    def _begin_resolution(self) -> None:
        self._state = ClassState.RESOLVING

    def reset(self) -> None:
        """Drop the resolved snapshot and go back to DECLARED."""
        if self._state is ClassState.SEALED:
            raise AlreadySealedError(f"Class '{self.name}' is sealed")
        self._clear_resolution()
        self._state = ClassState.DECLARED

    def _set_definition(self, definition: ClassDefinition) -> None:
        if self._state is ClassState.SEALED:
            raise AlreadySealedError(f"Class '{self.name}' is sealed")
        self._definition = definition
        self._statics = definition.get_static_properties()
        self.reset()

    def _seal(self) -> None:
        if self._state is not ClassState.SEALED:
            logger.debug("Sealing class %s", self.name)
        self._instance_created = True
        self._state = ClassState.SEALED

    # Relatives

    @property
    def parent_name(self) -> Optional[str]:
        return self._definition.get_parent()

    def has_parent(self) -> bool:
        return self.parent_name is not None

    @property
    def parent(self) -> Optional["ClassType"]:
        if self.parent_name is None:
            return None
        return self.manager.get_class(self.parent_name)

    def get_trait_names(self) -> List[str]:
        return self._definition.get_traits()

    def get_interface_names(self) -> List[str]:
        return self._definition.get_interfaces()

    def _relatives(
        self, names: List[str], kind: ClassKind, relation: str, resolve: bool = True
    ) -> List["ClassType"]:
        relatives = []
        for name in names:
            relative = self.manager.get_class(name) if resolve else self.manager.get_declared(name)
            if relative.kind is not kind:
                raise IncompatibleParentError(
                    f"{self.kind.value} '{self.name}' cannot use {relative.kind.value} '{name}' as {relation}"
                )
            relatives.append(relative)
        return relatives

    # Resolution

    def _resolve(self) -> None:
        """
        Compose this class from its already resolved relatives. Called by the
        manager once every dependency is RESOLVED.
        """
        capabilities = self.capabilities
        manager = self.manager
        definition = self._definition

        parent = None
        if self.parent_name is not None:
            parent = manager.get_class(self.parent_name)
            if parent.kind not in capabilities.allowed_parent_kinds:
                raise IncompatibleParentError(
                    f"{self.kind.value} '{self.name}' cannot extend {parent.kind.value} '{parent.name}'"
                )
        traits = self._relatives(definition.get_traits(), ClassKind.TRAIT, "trait")
        interfaces = self._relatives(definition.get_interfaces(), ClassKind.INTERFACE, "interface")
        includes = self._relatives(definition.get_includes(), ClassKind.CONFIG, "include")
        self._relatives(definition.get_decorators(), ClassKind.CONFIG, "decorator", resolve=False)

        properties: Dict[str, "PropertyType"] = dict(parent._properties) if parent else {}
        methods: Dict[str, Any] = dict(parent._methods) if parent else {}
        fields: Dict[str, Any] = copy.deepcopy(parent._fields) if parent else {}
        own_properties: Dict[str, "PropertyType"] = {}
        own_methods: Dict[str, Any] = {}

        property_manager = manager.property_manager
        for name, raw in definition.get_properties().items():
            prop = property_manager.create_property(name, raw, context_class=self)
            own_properties[name] = prop
        own_methods.update(definition.get_methods())
        own_fields = definition.get_fields()

        local_names = set(own_properties) | set(own_methods) | set(own_fields) | set(definition.get_constants())
        for prop in own_properties.values():
            local_names |= self._accessor_names(prop)
        inherited_names = self._member_names(properties, methods, fields)
        if parent is not None:
            inherited_names |= set(parent._constants)
        taken = local_names | inherited_names

        # Traits and included configs only fill gaps, first contributor wins.
        for source in traits + includes:
            for name, prop in source._properties.items():
                if name not in taken:
                    own_properties[name] = prop.clone(context_class=self)
                    taken |= self._accessor_names(prop) | {name}
            for name, member in source._methods.items():
                if name not in taken:
                    own_methods[name] = clone_member(member)
                    taken.add(name)
            for name, value in source._fields.items():
                if name not in taken:
                    fields[name] = copy.deepcopy(value)
                    taken.add(name)

        properties.update(own_properties)
        methods.update(own_methods)
        fields.update(own_fields)

        for prop in own_properties.values():
            prop.resolve(manager)

        if self.kind is ClassKind.INTERFACE:
            signatures = dict(parent._signatures) if parent else {}
            self._merge_signatures(signatures, definition.get_method_signatures(), self.name)
            self._check_interface_properties(parent, own_properties)
            self._signatures = signatures
        else:
            self._apply_interfaces(interfaces, properties, own_properties)

        self._constants = dict(parent._constants) if parent else {}
        for interface in interfaces:
            self._constants.update(interface._constants)
        self._constants.update(definition.get_constants())

        self._abstract_methods = self._collect_abstract(parent, interfaces, properties, methods)

        self._properties = properties
        self._own_properties = own_properties
        self._methods = methods
        self._own_methods = own_methods
        self._fields = fields
        self._required = definition.get_requires()

        if self.kind in (ClassKind.CLASS, ClassKind.ABSTRACT_CLASS, ClassKind.CONFIG):
            self._constructor = self._build_constructor(parent)
        self._state = ClassState.RESOLVED
        logger.debug("Resolved %s %s", self.kind.value, self.name)

    @staticmethod
    def _accessor_names(prop: "PropertyType") -> Set[str]:
        return {prop.get_accessor_name(kind) for kind in prop.get_accessor_kinds()}

    def _member_names(self, properties: Dict[str, Any], methods: Dict[str, Any], fields: Dict[str, Any]) -> Set[str]:
        names = set(properties) | set(methods) | set(fields)
        for prop in properties.values():
            names |= self._accessor_names(prop)
        return names

    def _merge_signatures(
        self,
        target: Dict[str, Optional[inspect.Signature]],
        source: Dict[str, Optional[inspect.Signature]],
        source_name: str,
    ) -> None:
        for name, signature in source.items():
            existing = target.get(name, _MISSING)
            if existing is not _MISSING and existing is not None and signature is not None and existing != signature:
                raise IncompatibleInterfaceMemberError(
                    f"Method '{name}' from '{source_name}' conflicts with another declaration in '{self.name}': "
                    f"{signature} vs {existing}"
                )
            if existing is _MISSING or existing is None:
                target[name] = signature

    def _check_interface_properties(
        self, parent: Optional["ClassType"], own_properties: Dict[str, "PropertyType"]
    ) -> None:
        if parent is None:
            return
        for name, prop in own_properties.items():
            inherited = parent._properties.get(name)
            if inherited is not None and not inherited.is_compatible_with(prop):
                raise IncompatibleInterfaceMemberError(
                    f"Property '{name}' of interface '{self.name}' conflicts with interface '{parent.name}'"
                )

    def _apply_interfaces(
        self,
        interfaces: List["ClassType"],
        properties: Dict[str, "PropertyType"],
        own_properties: Dict[str, "PropertyType"],
    ) -> None:
        required: Dict[str, "PropertyType"] = {}
        origin: Dict[str, str] = {}
        for interface in interfaces:
            for name, prop in interface._properties.items():
                if name in required and not required[name].is_compatible_with(prop):
                    raise IncompatibleInterfaceMemberError(
                        f"Interfaces '{origin[name]}' and '{interface.name}' declare property '{name}' differently"
                    )
                required.setdefault(name, prop)
                origin.setdefault(name, interface.name)
        for name, prop in required.items():
            existing = properties.get(name)
            if existing is None:
                clone = prop.clone(context_class=self)
                properties[name] = clone
                own_properties[name] = clone
            elif not existing.is_compatible_with(prop):
                raise IncompatibleInterfaceMemberError(
                    f"Property '{name}' of '{self.name}' does not match its declaration in interface '{origin[name]}'"
                )

    def _collect_abstract(
        self,
        parent: Optional["ClassType"],
        interfaces: List["ClassType"],
        properties: Dict[str, "PropertyType"],
        methods: Dict[str, Any],
    ) -> Dict[str, Optional[inspect.Signature]]:
        if self.kind is ClassKind.INTERFACE:
            return dict(self._signatures)
        required: Dict[str, Optional[inspect.Signature]] = dict(parent._abstract_methods) if parent else {}
        required.update(self._definition.get_abstract_methods())
        for interface in interfaces:
            self._merge_signatures(required, interface._signatures, interface.name)
        implemented = set(methods)
        for prop in properties.values():
            implemented |= self._accessor_names(prop)
        return {name: signature for name, signature in required.items() if name not in implemented}

    def _build_constructor(self, parent: Optional["ClassType"]) -> type:
        base = parent.get_constructor() if parent is not None else Instance
        namespace: Dict[str, Any] = {
            "__module__": "classkit.runtime",
            "__qualname__": self.name,
            "__doc__": f"Runtime class of {self.kind.value} '{self.name}'.",
            "_classkit_class_type": self,
        }
        for alias, class_name in self._required.items():
            if alias in self._methods or alias in self._properties or alias in self._fields:
                raise ResolutionError(f"Required class alias '{alias}' of '{self.name}' collides with a member")
            namespace[alias] = RequiredClass(class_name)
        for name, value in self._constants.items():
            namespace[name] = value
        for prop in self._own_properties.values():
            prop.attach(namespace)
        namespace.update(self._own_methods)
        constructor = self._definition.get_constructor()
        if constructor is not None:
            namespace[CONSTRUCTOR_NAME] = constructor
        return type(self.name, (base,), namespace)

    # Instances

    def _check_instantiable(self) -> None:
        self._ensure_resolved()
        if not self.capabilities.can_be_instantiated:
            raise CannotInstantiateError(f"Cannot instantiate {self.kind.value} '{self.name}'")
        if self._abstract_methods:
            raise NotImplementedMethodError(self.name, self._abstract_methods)

    def _prepare_instance(self, instance: Instance) -> None:
        """Fill a fresh instance and seal the class. Runs for every construction path."""
        instance._init_storage()
        for prop in self._properties.values():
            prop.initialize(instance)
        for name, value in self._fields.items():
            instance.__dict__[name] = copy.deepcopy(value)
        self._seal()

    def _instantiate(self, args: tuple, kwargs: Dict[str, Any]) -> Instance:
        self._check_instantiable()
        return self._constructor(*args, **kwargs)

    def create_instance(self, *args: Any, **kwargs: Any) -> Instance:
        """Create an instance through the owning registry, firing its hooks."""
        return self.manager.create_instance(self.name, *args, **kwargs)

    def get_constructor(self) -> type:
        """The Python runtime class. Traits and interfaces have none."""
        self._ensure_resolved()
        if self._constructor is None:
            raise CannotInstantiateError(f"{self.kind.value} '{self.name}' has no runtime class")
        return self._constructor

    # Hierarchy queries

    def get_class_parents(self, grouping: bool = False) -> Any:
        """
        Transitive closure of extends, traits and implements without duplicates.

        :param grouping: Return ``{"parents": [...], "traits": [...], "interfaces": [...]}``
            grouped by the kind of each ancestor instead of one flat list.
        """
        names: List[str] = []
        direct = ([self.parent_name] if self.parent_name else []) + self.get_trait_names() + self.get_interface_names()
        for name in direct:
            if name not in names:
                names.append(name)
            for ancestor in self.manager.get_class(name).get_class_parents():
                if ancestor not in names:
                    names.append(ancestor)
        if not grouping:
            return names
        groups: Dict[str, List[str]] = {"parents": [], "traits": [], "interfaces": []}
        for name in names:
            kind = self.manager.get_class(name).kind
            if kind is ClassKind.TRAIT:
                groups["traits"].append(name)
            elif kind is ClassKind.INTERFACE:
                groups["interfaces"].append(name)
            else:
                groups["parents"].append(name)
        return groups

    def is_instance_of(self, class_name: str) -> bool:
        return class_name == self.name or class_name in self.get_class_parents()

    def get_traits(self, with_inherited: bool = True) -> List[str]:
        if not with_inherited:
            return self.get_trait_names()
        return self.get_class_parents(grouping=True)["traits"]

    def has_trait(self, name: str) -> bool:
        return name in self.get_traits()

    def get_interfaces(self, with_inherited: bool = True) -> List[str]:
        if not with_inherited:
            return self.get_interface_names()
        return self.get_class_parents(grouping=True)["interfaces"]

    def is_implements(self, name: str) -> bool:
        return name in self.get_interfaces()

    # Config queries

    def get_includes(self, with_inherited: bool = True) -> List[str]:
        names = self._definition.get_includes()
        if with_inherited and self.parent_name is not None:
            names += [name for name in self.parent.get_includes() if name not in names]
        return names

    def is_includes(self, name: str) -> bool:
        return name in self.get_includes()

    def get_decorators(self, with_inherited: bool = True) -> List[str]:
        names = self._definition.get_decorators()
        if with_inherited and self.parent_name is not None:
            names += [name for name in self.parent.get_decorators() if name not in names]
        return names

    def has_decorator(self, name: str) -> bool:
        return name in self.get_decorators()

    # Members

    def get_properties(self, with_inherited: bool = True) -> Dict[str, "PropertyType"]:
        self._ensure_resolved()
        return dict(self._properties if with_inherited else self._own_properties)

    def get_property(self, name: str) -> "PropertyType":
        self._ensure_resolved()
        try:
            return self._properties[name]
        except KeyError:
            raise NonExistentMemberError(f"{self.kind.value} '{self.name}' has no property '{name}'") from None

    def has_property(self, name: str) -> bool:
        self._ensure_resolved()
        return name in self._properties

    def get_methods(self, with_inherited: bool = True) -> Dict[str, Any]:
        self._ensure_resolved()
        return dict(self._methods if with_inherited else self._own_methods)

    def get_method(self, name: str) -> Any:
        self._ensure_resolved()
        try:
            return self._methods[name]
        except KeyError:
            raise NonExistentMemberError(f"{self.kind.value} '{self.name}' has no method '{name}'") from None

    def has_method(self, name: str) -> bool:
        self._ensure_resolved()
        return name in self._methods

    def get_abstract_methods(self) -> Dict[str, Optional[inspect.Signature]]:
        """Abstract methods still lacking an implementation (interface signatures for interfaces)."""
        self._ensure_resolved()
        return dict(self._abstract_methods)

    def get_fields(self) -> Dict[str, Any]:
        self._ensure_resolved()
        return copy.deepcopy(self._fields)

    def get_constants(self) -> Dict[str, Any]:
        self._ensure_resolved()
        return dict(self._constants)

    def get_constant(self, name: str) -> Any:
        constants = self.get_constants()
        if name not in constants:
            raise NonExistentMemberError(f"{self.kind.value} '{self.name}' has no constant '{name}'")
        return constants[name]

    def get_required_classes(self) -> Dict[str, "ClassType"]:
        self._ensure_resolved()
        return {alias: self.manager.get_class(name) for alias, name in self._required.items()}

    # Statics

    def _static_owner(self, name: str) -> Optional["ClassType"]:
        class_type: Optional[ClassType] = self
        while class_type is not None:
            if name in class_type._statics:
                return class_type
            class_type = class_type.parent
        return None

    def get_statics(self) -> Dict[str, Any]:
        statics = self.parent.get_statics() if self.parent_name is not None else {}
        statics.update(self._statics)
        return statics

    def has_static(self, name: str) -> bool:
        return self._static_owner(name) is not None

    def get_static(self, name: str) -> Any:
        owner = self._static_owner(name)
        if owner is None:
            raise NonExistentMemberError(f"{self.kind.value} '{self.name}' has no static member '{name}'")
        return owner._statics[name]

    def set_static(self, name: str, value: Any) -> None:
        """Update a static member on the class that declares it."""
        owner = self._static_owner(name)
        if owner is None:
            raise NonExistentMemberError(f"{self.kind.value} '{self.name}' has no static member '{name}'")
        owner._statics[name] = value

    def call_static(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Call a static function with this class as its first argument."""
        function = self.get_static(name)
        if isinstance(function, (staticmethod, classmethod)):
            function = function.__func__
        if not callable(function):
            raise NonExistentMemberError(f"Static member '{name}' of '{self.name}' is not callable")
        return function(self, *args, **kwargs)

    def __repr__(self) -> str:
        return f"<ClassType {self.kind.value} {self.name!r} {self._state.name}>"
