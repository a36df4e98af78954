# classkit/core/instance.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Base class of every runtime class built by the registry.

Architecture:
- Each resolved Class, AbstractClass or Config gets a Python class built
  with ``type()`` on top of its parent's runtime class or of Instance
- Property values live in the instance ``__dict__`` under hashed slot
  names and are reached through descriptors and accessor methods
- Data fields are plain instance attributes copied from the class on creation

Responsibilities:
- Prepare property slots and fields before the user constructor runs
- Reject writes to undeclared attributes, constants and methods
- Track which properties were modified since creation
- Offer call_parent for specs whose functions cannot use zero-argument super()
"""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, FrozenSet, Optional, Set

from classkit.core.errors import CannotInstantiateError, NonExistentMemberError, ReadOnlyPropertyError

if TYPE_CHECKING:
    from classkit.core.class_type import ClassType

_MODIFIED_SLOT = "_classkit_modified"
_MISSING = object()

RESERVED_NAMES: FrozenSet[str] = frozenset(
    {
        "class_type",
        "get_class_name",
        "is_instance_of",
        "is_modified",
        "call_parent",
        "parent",
        "class_name",
        _MODIFIED_SLOT,
        "_classkit_class_type",
    }
)


class Instance:
    """
    Root of all generated runtime classes.

    Class Invariants:
    - Every concrete runtime class carries its ClassType in ``_classkit_class_type``
    - Construction fails for non-instantiable kinds and outstanding abstract
      methods, and seals the class otherwise, whatever path calls it
    - Property slots exist for every property before ``__init__`` runs
    - Only fields and data descriptors may be assigned on an instance
    """

    _classkit_class_type: Optional["ClassType"] = None

    def __new__(cls, *args: Any, **kwargs: Any) -> "Instance":
        class_type = cls._classkit_class_type
        if class_type is None:
            raise CannotInstantiateError(f"{cls.__name__} is not bound to a registered class")
        class_type._check_instantiable()
        instance = super().__new__(cls)
        class_type._prepare_instance(instance)
        return instance

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        """Default constructor. Arguments are accepted and ignored."""

    @property
    def class_type(self) -> "ClassType":
        """The ClassType this instance was created from."""
        return type(self)._classkit_class_type

    def get_class_name(self) -> str:
        return self.class_type.name

    def is_instance_of(self, class_name: str) -> bool:
        """True if the class, one of its parents, traits or interfaces is named ``class_name``."""
        return self.class_type.is_instance_of(class_name)

    def is_modified(self, name: Optional[str] = None) -> bool:
        """
        Check whether a property was written since creation.

        :param name: Property name. When omitted, report whether any property was written.
        """
        modified: Set[str] = self.__dict__[_MODIFIED_SLOT]
        if name is None:
            return bool(modified)
        if not self.class_type.has_property(name):
            raise NonExistentMemberError(f"{self.get_class_name()} has no property '{name}'")
        return name in modified

    def call_parent(self, *args: Any, **kwargs: Any) -> Any:
        """
        Call the parent implementation of the method that is currently running.

        The caller is identified by its code object, so this works for plain
        functions declared in a spec, which cannot use zero-argument super().
        """
        frame = inspect.currentframe()
        try:
            code = frame.f_back.f_code
        finally:
            del frame
        mro = type(self).__mro__
        for klass in mro:
            for member_name, member in vars(klass).items():
                function = getattr(member, "__func__", member)
                if getattr(function, "__code__", None) is code:
                    parent_member = getattr(super(klass, self), member_name, _MISSING)
                    if parent_member is _MISSING:
                        raise NonExistentMemberError(
                            f"Method '{member_name}' of {self.get_class_name()} has no parent implementation"
                        )
                    return parent_member(*args, **kwargs)
        raise NonExistentMemberError(f"call_parent() called outside a method of {self.get_class_name()}")

    # Value storage used by property types, maps and collections.

    def _read_slot(self, key: str) -> Any:
        return self.__dict__.get(key)

    def _write_slot(self, key: str, value: Any) -> None:
        self.__dict__[key] = value

    def _mark_modified(self, name: str) -> None:
        self.__dict__[_MODIFIED_SLOT].add(name)

    def _init_storage(self) -> None:
        self.__dict__[_MODIFIED_SLOT] = set()

    def __setattr__(self, name: str, value: Any) -> None:
        class_type = self.class_type
        if name in class_type.get_constants():
            raise ReadOnlyPropertyError(f"Constant '{name}' of {class_type.name} is read-only")
        attribute = _lookup_class_attribute(type(self), name)
        if attribute is not _MISSING:
            if hasattr(type(attribute), "__set__"):
                object.__setattr__(self, name, value)
                return
            raise ReadOnlyPropertyError(f"Member '{name}' of {class_type.name} cannot be reassigned")
        if name in self.__dict__:
            self.__dict__[name] = value
            return
        raise NonExistentMemberError(f"{class_type.name} has no member '{name}'")

    def __delattr__(self, name: str) -> None:
        raise ReadOnlyPropertyError(f"Members of {self.get_class_name()} cannot be deleted")

    def __repr__(self) -> str:
        return f"<{self.get_class_name()} instance at {id(self):#x}>"


def _lookup_class_attribute(cls: type, name: str) -> Any:
    for klass in cls.__mro__:
        if name in vars(klass):
            return vars(klass)[name]
    return _MISSING
