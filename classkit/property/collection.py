# classkit/property/collection.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Collection property types and their runtime containers.

Architecture:
- A collection property holds one ``proto`` child property that every item
  is validated and prepared against
- The stored value is a Collection object bound to the owning instance, so
  item mutations mark the owning property modified
- ArrayCollection keeps contiguous integer indices; ObjectCollection keys
  items by string

Responsibilities:
- Validate whole-collection writes and single-item mutations
- Keep array indices contiguous on removal and insertion
- Refuse mutations when the owning property is not writable
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Dict, Iterable, Iterator, List, Optional, Type

from classkit.core.errors import (
    InvalidPropertyOptionError,
    MissingItemError,
    ReadOnlyPropertyError,
    TypeMismatchError,
)
from classkit.core.types import PropertyDefinition
from classkit.property.base import PropertyType, property_type

if TYPE_CHECKING:
    from classkit.core.manager import ClassManager
    from classkit.interfaces.protocols import ValueContext

logger = logging.getLogger(__name__)


class CollectionType(PropertyType):
    """Base of collection property types. Subclasses pick the container class."""

    option_keys = frozenset({"proto"})
    collection_class: ClassVar[Type["Collection"]]

    def normalize_definition(self, definition: PropertyDefinition) -> PropertyDefinition:
        definition = super().normalize_definition(definition)
        if isinstance(definition.get("proto"), str):
            definition["proto"] = {"type": definition["proto"]}
        return definition

    def validate_definition(self, definition: PropertyDefinition) -> None:
        super().validate_definition(definition)
        if not isinstance(definition.get("proto"), dict):
            raise InvalidPropertyOptionError(
                f"Collection property '{self.full_name}' needs a 'proto' type name or definition"
            )

    def process_definition(self) -> None:
        self._proto = self._manager.create_property(
            "item", self._definition["proto"], context_class=self._context_class, context_property=self
        )

    @property
    def proto(self) -> PropertyType:
        return self._proto

    def validate_value(self, value: Any) -> None:
        for item in self._iter_items(value):
            self._proto.validate(item)

    def _iter_items(self, value: Any) -> Iterable[Any]:
        raise NotImplementedError()

    def prepare(self, value: Any, owner: Optional["ValueContext"], read_only: bool = False) -> "Collection":
        collection = self.collection_class(self, owner, read_only=read_only)
        if value is not None:
            collection._load(value)
        return collection

    def resolve(self, registry: "ClassManager") -> None:
        self._proto.resolve(registry)


@property_type
class ArrayCollectionType(CollectionType):
    """Ordered collection addressed by contiguous integer indices."""

    type_name = "array_collection"

    def _iter_items(self, value: Any) -> Iterable[Any]:
        if not isinstance(value, (list, tuple, ArrayCollection)):
            raise self._type_error(value, "a list")
        return list(value)

    def _empty_value(self) -> Any:
        return []


@property_type
class ObjectCollectionType(CollectionType):
    """Associative collection addressed by string keys."""

    type_name = "object_collection"

    def _iter_items(self, value: Any) -> Iterable[Any]:
        if not isinstance(value, (Mapping, ObjectCollection)):
            raise self._type_error(value, "a mapping")
        for key in value.keys():
            _check_key(key)
        return [value[key] for key in value.keys()]

    def _empty_value(self) -> Any:
        return {}


def _check_key(key: Any) -> None:
    if not isinstance(key, str):
        raise TypeMismatchError(f"Collection keys must be strings, got {type(key).__name__} {key!r}")


def _check_index(index: Any) -> None:
    if not isinstance(index, int) or isinstance(index, bool):
        raise TypeMismatchError(f"Collection indices must be integers, got {type(index).__name__} {index!r}")


class Collection:
    """
    Runtime container shared by array and object collections.

    Class Invariants:
    - Every stored item was validated and prepared by the proto property
    - Mutations mark the owning property modified on the owner
    """

    def __init__(
        self, collection_type: CollectionType, owner: Optional["ValueContext"] = None, read_only: bool = False
    ) -> None:
        self._type = collection_type
        self._owner = owner
        self._read_only = read_only or not collection_type.is_writable()

    @property
    def collection_type(self) -> CollectionType:
        return self._type

    @property
    def proto(self) -> PropertyType:
        return self._type.proto

    def length(self) -> int:
        return len(self)

    def is_empty(self) -> bool:
        return len(self) == 0

    def _load(self, value: Any) -> None:
        raise NotImplementedError()

    def _check_writable(self) -> None:
        if self._read_only:
            raise ReadOnlyPropertyError(f"Collection '{self._type.full_name}' is not writable")

    def _prepare_item(self, value: Any) -> Any:
        self._type.proto.validate(value)
        return self._type.proto.prepare(value, self._owner, read_only=self._read_only)

    def _touch(self) -> None:
        if self._owner is not None:
            self._owner._mark_modified(self._type.root_property.name)

    def __len__(self) -> int:
        raise NotImplementedError()


class ArrayCollection(Collection):
    """List-like collection. Removing an item shifts every later item down by one."""

    def __init__(
        self, collection_type: CollectionType, owner: Optional["ValueContext"] = None, read_only: bool = False
    ) -> None:
        super().__init__(collection_type, owner, read_only=read_only)
        self._items: List[Any] = []

    def _load(self, value: Iterable[Any]) -> None:
        self._items = [self._prepare_item(item) for item in value]

    def add_item(self, value: Any) -> "ArrayCollection":
        """Append an item at index ``length``."""
        self._check_writable()
        self._items.append(self._prepare_item(value))
        self._touch()
        return self

    def add_items(self, values: Iterable[Any]) -> "ArrayCollection":
        self._check_writable()
        prepared = [self._prepare_item(value) for value in values]
        self._items.extend(prepared)
        self._touch()
        return self

    def set_item(self, index: int, value: Any) -> "ArrayCollection":
        """Replace the item at ``index``, or append when ``index`` equals the length."""
        self._check_writable()
        _check_index(index)
        if index < 0 or index > len(self._items):
            raise MissingItemError(f"Index {index} is out of range for collection '{self._type.full_name}'")
        prepared = self._prepare_item(value)
        if index == len(self._items):
            self._items.append(prepared)
        else:
            self._items[index] = prepared
        self._touch()
        return self

    def set_items(self, values: Iterable[Any]) -> "ArrayCollection":
        """Replace every item."""
        self._check_writable()
        self._items = [self._prepare_item(value) for value in values]
        self._touch()
        return self

    def has_item(self, index: int) -> bool:
        _check_index(index)
        return 0 <= index < len(self._items)

    def get_item(self, index: int) -> Any:
        if not self.has_item(index):
            raise MissingItemError(f"Collection '{self._type.full_name}' has no item at index {index}")
        return self._items[index]

    def remove_item(self, index: int) -> "ArrayCollection":
        self._check_writable()
        if not self.has_item(index):
            raise MissingItemError(f"Collection '{self._type.full_name}' has no item at index {index}")
        del self._items[index]
        self._touch()
        return self

    def remove_items(self, indices: Optional[Iterable[int]] = None) -> "ArrayCollection":
        """Remove the given indices, or every item when none are given."""
        self._check_writable()
        if indices is None:
            self._items = []
        else:
            indices = sorted(set(indices), reverse=True)
            for index in indices:
                if not self.has_item(index):
                    raise MissingItemError(f"Collection '{self._type.full_name}' has no item at index {index}")
            for index in indices:
                del self._items[index]
        self._touch()
        return self

    def pop(self) -> Any:
        """Remove and return the last item, or None when empty."""
        self._check_writable()
        if not self._items:
            return None
        item = self._items.pop()
        self._touch()
        return item

    def shift(self) -> Any:
        """Remove and return the first item, or None when empty."""
        self._check_writable()
        if not self._items:
            return None
        item = self._items.pop(0)
        self._touch()
        return item

    def unshift(self, *values: Any) -> "ArrayCollection":
        """Insert items at the front, keeping their order."""
        self._check_writable()
        prepared = [self._prepare_item(value) for value in values]
        self._items[0:0] = prepared
        self._touch()
        return self

    def index_of(self, value: Any, start: int = 0) -> int:
        for index in range(start, len(self._items)):
            if self._items[index] == value:
                return index
        return -1

    def last_index_of(self, value: Any) -> int:
        for index in range(len(self._items) - 1, -1, -1):
            if self._items[index] == value:
                return index
        return -1

    def swap_items(self, first: int, second: int) -> "ArrayCollection":
        self._check_writable()
        for index in (first, second):
            if not self.has_item(index):
                raise MissingItemError(f"Collection '{self._type.full_name}' has no item at index {index}")
        self._items[first], self._items[second] = self._items[second], self._items[first]
        self._touch()
        return self

    def reverse(self) -> "ArrayCollection":
        self._check_writable()
        self._items.reverse()
        self._touch()
        return self

    def sort(self, key: Optional[Callable[[Any], Any]] = None, reverse: bool = False) -> "ArrayCollection":
        self._check_writable()
        self._items.sort(key=key, reverse=reverse)
        self._touch()
        return self

    def slice(self, start: int = 0, end: Optional[int] = None) -> List[Any]:
        return self._items[start:end]

    def filter(self, predicate: Callable[[Any, int], bool]) -> List[Any]:
        """Items for which ``predicate(item, index)`` is truthy."""
        return [item for index, item in enumerate(self._items) if predicate(item, index)]

    def join(self, separator: str = ",") -> str:
        return separator.join(str(item) for item in self._items)

    def each_item(self, callback: Callable[[Any, int], Any]) -> "ArrayCollection":
        """Call ``callback(item, index)`` in order until it returns False."""
        for index, item in enumerate(list(self._items)):
            if callback(item, index) is False:
                break
        return self

    def get_data(self) -> List[Any]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._items))

    def __getitem__(self, index: int) -> Any:
        return self.get_item(index)

    def __contains__(self, value: Any) -> bool:
        return value in self._items

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, ArrayCollection):
            return self._items == other._items
        if isinstance(other, (list, tuple)):
            return self._items == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"ArrayCollection({self._items!r})"


class ObjectCollection(Collection):
    """Dict-like collection keyed by strings. Adding an existing key is ignored."""

    def __init__(
        self, collection_type: CollectionType, owner: Optional["ValueContext"] = None, read_only: bool = False
    ) -> None:
        super().__init__(collection_type, owner, read_only=read_only)
        self._items: Dict[str, Any] = {}

    def _load(self, value: Any) -> None:
        items = {}
        for key in value.keys():
            _check_key(key)
            items[key] = self._prepare_item(value[key])
        self._items = items

    def add_item(self, key: str, value: Any) -> "ObjectCollection":
        """Add an item under a new key. An existing key is left untouched."""
        self._check_writable()
        _check_key(key)
        if key in self._items:
            logger.warning("Collection '%s' already has key '%s', item not added", self._type.full_name, key)
            return self
        self._items[key] = self._prepare_item(value)
        self._touch()
        return self

    def add_items(self, values: Mapping) -> "ObjectCollection":
        for key, value in values.items():
            self.add_item(key, value)
        return self

    def set_item(self, key: str, value: Any) -> "ObjectCollection":
        self._check_writable()
        _check_key(key)
        self._items[key] = self._prepare_item(value)
        self._touch()
        return self

    def set_items(self, values: Mapping) -> "ObjectCollection":
        """Replace every item."""
        self._check_writable()
        items = {}
        for key, value in values.items():
            _check_key(key)
            items[key] = self._prepare_item(value)
        self._items = items
        self._touch()
        return self

    def has_item(self, key: str) -> bool:
        return key in self._items

    def get_item(self, key: str) -> Any:
        try:
            return self._items[key]
        except KeyError:
            raise MissingItemError(f"Collection '{self._type.full_name}' has no item '{key}'") from None

    def remove_item(self, key: str) -> "ObjectCollection":
        self._check_writable()
        if key not in self._items:
            raise MissingItemError(f"Collection '{self._type.full_name}' has no item '{key}'")
        del self._items[key]
        self._touch()
        return self

    def remove_items(self, keys: Optional[Iterable[str]] = None) -> "ObjectCollection":
        """Remove the given keys, or every item when none are given."""
        self._check_writable()
        if keys is None:
            self._items = {}
        else:
            keys = list(keys)
            for key in keys:
                if key not in self._items:
                    raise MissingItemError(f"Collection '{self._type.full_name}' has no item '{key}'")
            for key in keys:
                self._items.pop(key, None)
        self._touch()
        return self

    def index_of(self, value: Any) -> Optional[str]:
        """Key of the first item equal to ``value``, or None."""
        for key, item in self._items.items():
            if item == value:
                return key
        return None

    def filter(self, predicate: Callable[[Any, str], bool]) -> Dict[str, Any]:
        return {key: item for key, item in self._items.items() if predicate(item, key)}

    def each_item(self, callback: Callable[[Any, str], Any]) -> "ObjectCollection":
        """Call ``callback(item, key)`` in insertion order until it returns False."""
        for key, item in list(self._items.items()):
            if callback(item, key) is False:
                break
        return self

    def keys(self) -> List[str]:
        return list(self._items)

    def get_data(self) -> Dict[str, Any]:
        return dict(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def __getitem__(self, key: str) -> Any:
        return self.get_item(key)

    def __contains__(self, key: Any) -> bool:
        return key in self._items

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, ObjectCollection):
            return self._items == other._items
        if isinstance(other, Mapping):
            return self._items == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"ObjectCollection({self._items!r})"


ArrayCollectionType.collection_class = ArrayCollection
ObjectCollectionType.collection_class = ObjectCollection
