# classkit/core/manager.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Class registry and lazy resolution.

Architecture:
- One explicitly constructed ClassManager per application, passed to
  whatever needs it; there is no module-level registry
- Registration only stores a validated declaration; relatives are resolved
  depth-first the first time a class is loaded
- Unknown names are requested from an optional Loader collaborator

Design Patterns:
- Registry for name to ClassType lookup
- Observer through HookManager notifications
- Memento: a failed alteration restores the previous declaration

Responsibilities:
- Register declarations and record their dependency edges
- Resolve classes, detecting cycles on the active resolution path
- Create instances and seal their classes
- Hand out builders for new and existing classes
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Union

from classkit.core.class_type import ClassType
from classkit.core.definition import ClassDefinition
from classkit.core.errors import (
    AlreadyRegisteredError,
    AlreadySealedError,
    CyclicDependencyError,
    InvalidClassOptionError,
    ResolutionError,
    UnknownClassError,
)
from classkit.core.graph import DependencyGraph
from classkit.core.hooks import HookManager
from classkit.core.instance import Instance
from classkit.core.settings import RegistrySettings
from classkit.core.types import ClassKind, ClassSpec, ClassState
from classkit.property.manager import PropertyManager

if TYPE_CHECKING:
    from classkit.core.builder import ClassBuilder
    from classkit.interfaces.protocols import Loader, RegistryHook

logger = logging.getLogger(__name__)


class ClassManager:
    """
    Registry of every class, abstract class, interface, trait and config.

    Class Invariants:
    - Names are unique
    - A class is RESOLVING only while it is on the active resolution path
    - A failed resolution leaves the class DECLARED
    """

    def __init__(
        self,
        settings: Optional[RegistrySettings] = None,
        loader: Optional["Loader"] = None,
        hooks: Union[HookManager, Iterable["RegistryHook"], None] = None,
        property_manager: Optional[PropertyManager] = None,
    ) -> None:
        """
        :param settings: Registry configuration. Defaults to RegistrySettings().
        :param loader: Collaborator asked to register classes the registry does not know.
        :param hooks: A HookManager or a list of hook objects.
        :param property_manager: Property factory. Built from the settings when omitted.
        """
        self._settings = settings or RegistrySettings()
        self._loader = loader
        self._hooks = hooks if isinstance(hooks, HookManager) else HookManager(hooks)
        self._property_manager = property_manager or PropertyManager(
            hash_token=self._settings.hash_token, accessors=self._settings.accessors
        )
        self._classes: Dict[str, ClassType] = {}
        self._graph = DependencyGraph()
        self._resolution_path: List[str] = []

    @property
    def settings(self) -> RegistrySettings:
        return self._settings

    @property
    def hooks(self) -> HookManager:
        return self._hooks

    @property
    def property_manager(self) -> PropertyManager:
        return self._property_manager

    @property
    def loader(self) -> Optional["Loader"]:
        return self._loader

    def set_loader(self, loader: Optional["Loader"]) -> None:
        self._loader = loader

    # Registration

    def register(self, name: str, kind: Union[ClassKind, str], spec: Optional[ClassSpec] = None) -> ClassType:
        """
        Validate a declaration and store it as DECLARED. Relatives are not
        looked at until the class is loaded.

        :raises AlreadyRegisteredError: If the name is taken.
        :raises DeclarationError: If the spec is invalid for the kind.
        """
        if isinstance(name, str) and name in self._classes:
            raise AlreadyRegisteredError(f"Class '{name}' is already registered")
        definition = ClassDefinition(name, kind, spec, self._property_manager)
        return self._add(definition)

    def register_definition(self, definition: ClassDefinition) -> ClassType:
        """Store a definition built elsewhere, typically by a ClassBuilder."""
        return self._add(definition)

    def _add(self, definition: ClassDefinition) -> ClassType:
        name = definition.get_name()
        if name is None:
            raise InvalidClassOptionError("Cannot register a class without a name")
        if name in self._classes:
            raise AlreadyRegisteredError(f"Class '{name}' is already registered")
        class_type = ClassType(self, definition)
        self._classes[name] = class_type
        self._graph.set_dependencies(name, definition.get_dependencies())
        logger.debug("Registered %s %s", definition.kind.value, name)
        return class_type

    def _remove(self, name: str) -> None:
        self._classes.pop(name, None)
        self._graph.remove_node(name)

    def has_class(self, name: str) -> bool:
        return name in self._classes

    def get_class_names(self) -> List[str]:
        return list(self._classes)

    def ensure_known(self, name: str) -> bool:
        """Ask the loader for ``name`` if needed; report whether it is registered."""
        if name not in self._classes:
            self._request_load(name)
        return name in self._classes

    def _request_load(self, name: str) -> None:
        if self._loader is None:
            return
        logger.debug("Requesting class %s from loader", name)
        self._loader.load_by_name(name, lambda: logger.debug("Loader finished %s", name))

    def _lookup(self, name: str) -> ClassType:
        if not self.ensure_known(name):
            raise UnknownClassError(f"Class '{name}' is not registered")
        return self._classes[name]

    def get_declared(self, name: str) -> ClassType:
        """
        Return the class called ``name`` in whatever state it is in, without
        resolving it.

        :raises UnknownClassError: If neither the registry nor the loader knows the name.
        """
        return self._lookup(name)

    # Resolution

    def load(self, name: str) -> ClassType:
        """
        Return the resolved class called ``name``, resolving it and its
        relatives depth-first when it is still DECLARED.

        :raises UnknownClassError: If the name or one of its relatives is unknown.
        :raises CyclicDependencyError: If the relatives form a cycle.
        :raises ResolutionError: For kind mismatches and interface conflicts.
        """
        class_type = self._lookup(name)
        if class_type.state is ClassState.RESOLVING:
            raise CyclicDependencyError(self._cycle_path(name))
        if class_type.state is ClassState.DECLARED:
            self._resolve(class_type)
        return class_type

    get_class = load

    def _cycle_path(self, name: str) -> List[str]:
        if name in self._resolution_path:
            return self._resolution_path[self._resolution_path.index(name) :] + [name]
        return [name, name]

    def _resolve(self, class_type: ClassType) -> None:
        if len(self._resolution_path) >= self._settings.max_resolution_depth:
            raise ResolutionError(
                f"Resolving '{class_type.name}' exceeds the maximum depth of {self._settings.max_resolution_depth}"
            )
        class_type._begin_resolution()
        self._resolution_path.append(class_type.name)
        try:
            for dependency in class_type.definition.get_dependencies():
                self.load(dependency)
            for reference in class_type.definition.get_references():
                self._lookup(reference)
            class_type._resolve()
        except Exception:
            class_type.reset()
            raise
        finally:
            self._resolution_path.pop()
        self._hooks.notify_class_resolved(class_type)

    # Instances

    def create_instance(self, name: str, *args: Any, **kwargs: Any) -> Instance:
        """
        Load ``name`` if needed, build an instance and seal the class.

        :raises CannotInstantiateError: For interfaces, traits and abstract classes.
        :raises NotImplementedMethodError: If abstract methods are still outstanding.
        """
        class_type = self.load(name)
        instance = class_type._instantiate(args, kwargs)
        logger.debug("Created instance of %s", name)
        self._hooks.notify_instance_created(class_type, instance)
        return instance

    # Alteration

    def build_class(self, kind: Union[ClassKind, str], name: Optional[str] = None) -> "ClassBuilder":
        """Builder for a class that is registered on ``save()``."""
        from classkit.core.builder import ClassBuilder

        return ClassBuilder(self, kind=kind, name=name)

    def alter(self, name: str) -> "ClassBuilder":
        """
        Builder bound to an existing declaration.

        :raises AlreadySealedError: If the class already produced an instance.
        """
        from classkit.core.builder import ClassBuilder

        class_type = self._lookup(name)
        if class_type.is_sealed():
            raise AlreadySealedError(f"Class '{name}' already has instances and cannot be altered")
        return ClassBuilder(self, class_type=class_type)

    def _replace_definition(self, class_type: ClassType, definition: ClassDefinition) -> ClassType:
        """
        Swap in a new definition and resolve it. The previous definition is
        restored if resolution fails.
        """
        name = class_type.name
        if definition.get_name() != name:
            raise InvalidClassOptionError(f"Class '{name}' cannot be renamed to '{definition.get_name()}'")
        if class_type.is_sealed():
            raise AlreadySealedError(f"Class '{name}' already has instances and cannot be altered")
        cycle = self._graph.find_cycle_with(name, definition.get_dependencies())
        if cycle is not None:
            raise CyclicDependencyError(cycle)
        previous = class_type.definition
        class_type._set_definition(definition)
        self._graph.set_dependencies(name, definition.get_dependencies())
        try:
            self.load(name)
        except Exception:
            class_type._set_definition(previous)
            self._graph.set_dependencies(name, previous.get_dependencies())
            raise
        logger.debug("Altered %s %s", definition.kind.value, name)
        return class_type

    # Graph introspection

    def get_dependencies(self, name: str) -> List[str]:
        return self._graph.get_dependencies(name)

    def get_dependents(self, name: str, transitive: bool = False) -> List[str]:
        if transitive:
            return self._graph.get_all_dependents(name)
        return self._graph.get_dependents(name)

    def find_cycle(self, name: str) -> Optional[List[str]]:
        """Cycle reachable from ``name`` in the declared graph, without resolving anything."""
        return self._graph.find_cycle(name)

    def __contains__(self, name: str) -> bool:
        return name in self._classes

    def __len__(self) -> int:
        return len(self._classes)
