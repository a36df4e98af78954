# classkit/core/builder.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Fluent declaration and alteration facade.

A ClassBuilder works on a private copy of a ClassDefinition. Setters return
the builder so calls chain; nothing reaches the registry until ``save()``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from classkit.core.definition import ClassDefinition
from classkit.core.errors import AlreadySealedError
from classkit.core.types import ClassKind, PropertyDefinition

if TYPE_CHECKING:
    from classkit.core.class_type import ClassType
    from classkit.core.manager import ClassManager

logger = logging.getLogger(__name__)


class ClassBuilder:
    """
    Builder for new classes and for alterations of unsealed ones.

    Class Invariants:
    - The builder never mutates the registered definition in place
    - Every mutation fails once the bound class is sealed
    """

    def __init__(
        self,
        manager: "ClassManager",
        kind: Union[ClassKind, str, None] = None,
        name: Optional[str] = None,
        class_type: Optional["ClassType"] = None,
    ) -> None:
        """
        :param manager: Registry the builder saves into.
        :param kind: Kind of a new class. Ignored when ``class_type`` is given.
        :param name: Name of a new class, may also be set later with set_name.
        :param class_type: Registered class to alter.
        """
        self._manager = manager
        self._class_type = class_type
        if class_type is not None:
            self._definition = class_type.definition.copy()
        else:
            self._definition = ClassDefinition(name, kind or ClassKind.CLASS, None, manager.property_manager)

    def _check_not_sealed(self) -> None:
        if self._class_type is not None and self._class_type.is_sealed():
            raise AlreadySealedError(f"Class '{self._class_type.name}' already has instances and cannot be altered")

    def _mutate(self, method: Callable[..., Any], *args: Any) -> "ClassBuilder":
        self._check_not_sealed()
        method(*args)
        return self

    @property
    def definition(self) -> ClassDefinition:
        """Copy of the definition being built."""
        return self._definition.copy()

    @property
    def class_type(self) -> Optional["ClassType"]:
        return self._class_type

    # Identity

    def get_name(self) -> Optional[str]:
        return self._definition.get_name()

    def set_name(self, name: str) -> "ClassBuilder":
        return self._mutate(self._definition.set_name, name)

    def get_kind(self) -> ClassKind:
        return self._definition.kind

    # Parent

    def get_parent(self) -> Optional[str]:
        return self._definition.get_parent()

    def set_parent(self, name: Optional[str]) -> "ClassBuilder":
        return self._mutate(self._definition.set_parent, name)

    # Traits

    def get_traits(self) -> List[str]:
        return self._definition.get_traits()

    def set_traits(self, names: Iterable[str]) -> "ClassBuilder":
        return self._mutate(self._definition.set_traits, names)

    def add_trait(self, name: str) -> "ClassBuilder":
        return self._mutate(self._definition.add_trait, name)

    def remove_trait(self, name: str) -> "ClassBuilder":
        return self._mutate(self._definition.remove_trait, name)

    # Interfaces

    def get_interfaces(self) -> List[str]:
        return self._definition.get_interfaces()

    def set_interfaces(self, names: Iterable[str]) -> "ClassBuilder":
        return self._mutate(self._definition.set_interfaces, names)

    def add_interface(self, name: str) -> "ClassBuilder":
        return self._mutate(self._definition.add_interface, name)

    def remove_interface(self, name: str) -> "ClassBuilder":
        return self._mutate(self._definition.remove_interface, name)

    # Abstract methods

    def get_abstract_methods(self) -> Dict[str, Any]:
        return self._definition.get_abstract_methods()

    def set_abstract_methods(self, methods: Union[Iterable[str], Mapping[str, Any]]) -> "ClassBuilder":
        return self._mutate(self._definition.set_abstract_methods, methods)

    def add_abstract_method(self, name: str, signature: Any = None) -> "ClassBuilder":
        return self._mutate(self._definition.add_abstract_method, name, signature)

    def remove_abstract_method(self, name: str) -> "ClassBuilder":
        return self._mutate(self._definition.remove_abstract_method, name)

    # Statics

    def get_static_properties(self) -> Dict[str, Any]:
        return self._definition.get_static_properties()

    def set_static_properties(self, statics: Mapping[str, Any]) -> "ClassBuilder":
        return self._mutate(self._definition.set_static_properties, statics)

    def set_static_property(self, name: str, value: Any) -> "ClassBuilder":
        return self._mutate(self._definition.set_static_property, name, value)

    def remove_static_property(self, name: str) -> "ClassBuilder":
        return self._mutate(self._definition.remove_static_property, name)

    # Properties

    def get_properties(self) -> Dict[str, PropertyDefinition]:
        return self._definition.get_properties()

    def get_property(self, name: str) -> PropertyDefinition:
        return self._definition.get_property(name)

    def has_property(self, name: str) -> bool:
        return self._definition.has_property(name)

    def set_properties(self, properties: Mapping[str, Any]) -> "ClassBuilder":
        return self._mutate(self._definition.set_properties, properties)

    def add_property(self, name: str, definition: Union[PropertyDefinition, str]) -> "ClassBuilder":
        return self._mutate(self._definition.add_property, name, definition)

    def remove_property(self, name: str) -> "ClassBuilder":
        return self._mutate(self._definition.remove_property, name)

    # Constants

    def get_constants(self) -> Dict[str, Any]:
        return self._definition.get_constants()

    def set_constants(self, constants: Mapping[str, Any]) -> "ClassBuilder":
        return self._mutate(self._definition.set_constants, constants)

    def set_constant(self, name: str, value: Any) -> "ClassBuilder":
        return self._mutate(self._definition.set_constant, name, value)

    def remove_constant(self, name: str) -> "ClassBuilder":
        return self._mutate(self._definition.remove_constant, name)

    # Requires

    def get_requires(self) -> Dict[str, str]:
        return self._definition.get_requires()

    def set_requires(self, requires: Union[Mapping[str, str], Iterable[str]]) -> "ClassBuilder":
        return self._mutate(self._definition.set_requires, requires)

    # Configs

    def get_includes(self) -> List[str]:
        return self._definition.get_includes()

    def add_include(self, name: str) -> "ClassBuilder":
        return self._mutate(self._definition.add_include, name)

    def remove_include(self, name: str) -> "ClassBuilder":
        return self._mutate(self._definition.remove_include, name)

    def get_decorators(self) -> List[str]:
        return self._definition.get_decorators()

    def add_decorator(self, name: str) -> "ClassBuilder":
        return self._mutate(self._definition.add_decorator, name)

    def remove_decorator(self, name: str) -> "ClassBuilder":
        return self._mutate(self._definition.remove_decorator, name)

    # Body

    def get_methods(self) -> Dict[str, Any]:
        return self._definition.get_methods()

    def set_method(self, name: str, method: Callable[..., Any]) -> "ClassBuilder":
        return self._mutate(self._definition.set_method, name, method)

    def remove_method(self, name: str) -> "ClassBuilder":
        return self._mutate(self._definition.remove_method, name)

    def get_fields(self) -> Dict[str, Any]:
        return self._definition.get_fields()

    def set_field(self, name: str, value: Any) -> "ClassBuilder":
        return self._mutate(self._definition.set_field, name, value)

    def remove_field(self, name: str) -> "ClassBuilder":
        return self._mutate(self._definition.remove_field, name)

    def set_constructor(self, constructor: Optional[Callable[..., Any]]) -> "ClassBuilder":
        return self._mutate(self._definition.set_constructor, constructor)

    def get_body(self) -> Dict[str, Any]:
        return self._definition.get_body()

    def set_body(self, body: Mapping[str, Any]) -> "ClassBuilder":
        return self._mutate(self._definition.set_body, body)

    def add_to_body(self, body: Mapping[str, Any]) -> "ClassBuilder":
        return self._mutate(self._definition.add_to_body, body)

    # Commit

    def save(self) -> "ClassType":
        """
        Commit the definition to the registry and resolve it.

        A new class that fails to resolve is unregistered again; an altered
        class gets its previous definition back. The error propagates either way.
        """
        self._check_not_sealed()
        definition = self._definition.copy()
        if self._class_type is not None:
            return self._manager._replace_definition(self._class_type, definition)
        class_type = self._manager.register_definition(definition)
        try:
            self._manager.load(class_type.name)
        except Exception:
            self._manager._remove(class_type.name)
            raise
        self._class_type = class_type
        logger.debug("Saved new %s %s", class_type.kind.value, class_type.name)
        return class_type
