# classkit/property/map.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Map property type.

A map has a fixed ``schema`` of child properties. Writing a map merges the
supplied keys into the current value instead of replacing it, nested maps
merge recursively, and keys outside the schema are rejected.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

from classkit.core.errors import (
    ConstraintViolationError,
    InvalidPropertyOptionError,
    ReadOnlyPropertyError,
    UnknownMapKeyError,
)
from classkit.core.types import PropertyDefinition
from classkit.property.base import PropertyType, property_type

if TYPE_CHECKING:
    from classkit.core.manager import ClassManager
    from classkit.interfaces.protocols import ValueContext


@property_type
class MapType(PropertyType):
    """Fixed-key record validated against a schema of child properties."""

    type_name = "map"
    option_keys = frozenset({"schema"})

    def normalize_definition(self, definition: PropertyDefinition) -> PropertyDefinition:
        definition.setdefault("nullable", False)
        return super().normalize_definition(definition)

    def validate_definition(self, definition: PropertyDefinition) -> None:
        super().validate_definition(definition)
        schema = definition.get("schema")
        if not isinstance(schema, dict) or not schema:
            raise InvalidPropertyOptionError(f"Map property '{self.full_name}' needs a non-empty 'schema' dict")
        for key in schema:
            if not isinstance(key, str) or not key:
                raise InvalidPropertyOptionError(f"Schema keys of map '{self.full_name}' must be non-empty strings")

    def process_definition(self) -> None:
        self._children: Dict[str, PropertyType] = {
            key: self._manager.create_property(
                key, child, context_class=self._context_class, context_property=self
            )
            for key, child in self._definition["schema"].items()
        }

    @property
    def children(self) -> Dict[str, PropertyType]:
        return dict(self._children)

    def get_child(self, key: str) -> PropertyType:
        try:
            return self._children[key]
        except KeyError:
            raise UnknownMapKeyError(
                f"Map '{self.full_name}' has no key '{key}', expected one of {sorted(self._children)}"
            ) from None

    def validate_value(self, value: Any) -> None:
        if not isinstance(value, Mapping):
            raise self._type_error(value, "a mapping")
        for key, item in value.items():
            self.get_child(key).validate(item)

    def _children_defaults(self) -> Dict[str, Any]:
        return {key: child.get_default_value() for key, child in self._children.items()}

    def _empty_value(self) -> Any:
        return self._children_defaults()

    def get_default_value(self) -> Any:
        default = self._definition["default"]
        if default is None:
            if self.is_nullable():
                return None
            return self._children_defaults()
        return self.merge(None, default)

    def merge(self, current: Optional[Mapping], partial: Mapping) -> Dict[str, Any]:
        """
        Merge ``partial`` over ``current`` (or over the schema defaults when
        there is no current value) and return a plain dict.
        """
        if current is None:
            base = self._children_defaults()
        elif isinstance(current, MapValue):
            base = current.to_dict()
        else:
            base = self._children_defaults()
            base.update(current)
        for key, item in partial.items():
            child = self.get_child(key)
            if isinstance(child, MapType) and item is not None and base.get(key) is not None:
                base[key] = child.merge(base[key], item)
            else:
                base[key] = item
        return base

    def prepare(self, value: Any, owner: Optional["ValueContext"], read_only: bool = False) -> Any:
        if value is None:
            return None
        full = self.merge(None, value)
        read_only = read_only or not self.is_writable()
        values = {}
        for key, child in self._children.items():
            values[key] = child.prepare(full[key], owner, read_only=read_only)
        return MapValue(self, owner, values, read_only=read_only)

    def apply_value(self, owner: "ValueContext", value: Any) -> None:
        current = self.get_value(owner)
        if self.watcher is not None:
            value = self.watcher(owner, value, current)
        self.validate(value)
        if value is not None:
            value = self.merge(current, value)
        owner._write_slot(self.storage_key, self.prepare(value, owner))
        owner._mark_modified(self._name)

    def resolve(self, registry: "ClassManager") -> None:
        for child in self._children.values():
            child.resolve(registry)


class MapValue(MutableMapping):
    """
    Stored value of a map property.

    Behaves like a dict with a fixed key set: item assignment validates the
    value against the child property, nested maps merge, and the owner is
    marked modified. Keys cannot be deleted.
    """

    def __init__(
        self,
        map_type: MapType,
        owner: Optional["ValueContext"],
        values: Dict[str, Any],
        read_only: bool = False,
    ) -> None:
        self._map_type = map_type
        self._owner = owner
        self._values = values
        self._read_only = read_only

    @property
    def map_type(self) -> MapType:
        return self._map_type

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if self._read_only:
            raise ReadOnlyPropertyError(f"Map '{self._map_type.full_name}' is not writable")
        child = self._map_type.get_child(key)
        if not child.is_writable():
            raise ReadOnlyPropertyError(f"Property '{child.full_name}' is not writable")
        current = self._values.get(key)
        if child.watcher is not None:
            value = child.watcher(self._owner, value, current)
        child.validate(value)
        if isinstance(child, MapType):
            if value is not None:
                value = child.merge(current, value)
            self._values[key] = child.prepare(value, self._owner)
        else:
            self._values[key] = child.prepare(value, self._owner)
        if self._owner is not None:
            self._owner._mark_modified(self._map_type.root_property.name)

    def __delitem__(self, key: str) -> None:
        raise ConstraintViolationError(f"Keys of map '{self._map_type.full_name}' cannot be removed")

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def to_dict(self) -> Dict[str, Any]:
        """Plain nested dict copy of the stored values."""
        return {key: value.to_dict() if isinstance(value, MapValue) else value for key, value in self._values.items()}

    def __repr__(self) -> str:
        return f"MapValue({self.to_dict()!r})"
