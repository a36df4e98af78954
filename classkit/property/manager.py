# classkit/property/manager.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Property factory and type registry.

Architecture:
- Starts from the module-level registry filled by ``@property_type``
- Resolves custom type aliases into concrete definitions before building
- Owns the hash token that names value slots on instances

Responsibilities:
- Build PropertyType trees from declarative definitions
- Register extra property types and custom type aliases
- Decide which names may be used for properties
"""

from __future__ import annotations

import copy
import keyword
import logging
import uuid
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Type, Union

from classkit.core.errors import (
    AlreadyRegisteredError,
    InvalidPropertyOptionError,
    UnknownPropertyTypeError,
)
from classkit.core.instance import RESERVED_NAMES
from classkit.core.types import PropertyDefinition
from classkit.property.base import PROPERTY_TYPES, PropertyType

if TYPE_CHECKING:
    from classkit.core.class_type import ClassType

logger = logging.getLogger(__name__)


class PropertyManager:
    """
    Factory for property types.

    Class Invariants:
    - Type aliases never shadow a registered property type
    - Every alias resolves to a registered property type
    - Hashed slot names are unique per manager token
    """

    def __init__(
        self,
        hash_token: Optional[str] = None,
        accessors: bool = True,
        not_allowed_names: Optional[Iterable[str]] = None,
    ) -> None:
        """
        :param hash_token: Suffix of value slot names. Random when omitted.
        :param accessors: Default of the ``accessors`` property option.
        :param not_allowed_names: Extra names properties may not use.
        """
        self._hash_token = hash_token or uuid.uuid4().hex[:8]
        self._default_accessors = accessors
        self._types: Dict[str, Type[PropertyType]] = dict(PROPERTY_TYPES)
        self._aliases: Dict[str, PropertyDefinition] = {}
        self._not_allowed: set = set(RESERVED_NAMES) | set(not_allowed_names or ())

    @property
    def hash_token(self) -> str:
        return self._hash_token

    @property
    def default_accessors(self) -> bool:
        return self._default_accessors

    # Factory

    def create_property(
        self,
        name: str,
        definition: Union[PropertyDefinition, str],
        context_class: Optional["ClassType"] = None,
        context_property: Optional[PropertyType] = None,
    ) -> PropertyType:
        """
        Build a property from its definition.

        :param name: Property name.
        :param definition: Definition dict, or a bare type or alias name.
        :param context_class: Class the property belongs to.
        :param context_property: Container property for map, mixed and collection children.
        :raises UnknownPropertyTypeError: If the type is neither registered nor an alias.
        :raises InvalidPropertyOptionError: If the definition is malformed.
        """
        definition, alias = self.expand_definition(definition)
        property_class = self._types[definition["type"]]
        return property_class(
            name,
            definition,
            self,
            context_class=context_class,
            context_property=context_property,
            alias=alias,
        )

    def check_definition(self, name: str, definition: Union[PropertyDefinition, str]) -> PropertyType:
        """Validate a definition by building a throwaway property from it."""
        return self.create_property(name, definition)

    def expand_definition(self, definition: Union[PropertyDefinition, str]) -> Tuple[PropertyDefinition, Optional[str]]:
        """
        Turn a definition into one whose ``type`` is a registered property type.

        Alias definitions are merged under the declaration: keys given in the
        declaration win, missing keys come from the alias.

        :return: The expanded definition and the alias name used, if any.
        """
        if isinstance(definition, str):
            definition = {"type": definition}
        if not isinstance(definition, Mapping):
            raise InvalidPropertyOptionError(f"Property definition must be a dict or type name, got {definition!r}")
        definition = copy.deepcopy(dict(definition))
        type_name = definition.get("type")
        if not isinstance(type_name, str) or not type_name:
            raise InvalidPropertyOptionError(f"Property definition needs a 'type': {definition!r}")
        alias = None
        while type_name in self._aliases:
            if alias is None:
                alias = type_name
            merged = copy.deepcopy(self._aliases[type_name])
            merged.update({key: value for key, value in definition.items() if key != "type"})
            definition = merged
            type_name = definition["type"]
        if type_name not in self._types:
            raise UnknownPropertyTypeError(f"Unknown property type '{type_name}'")
        return definition, alias

    # Registry

    def register_property_type(self, property_class: Type[PropertyType]) -> Type[PropertyType]:
        """Add a PropertyType subclass to this manager. Usable as a decorator."""
        name = property_class.type_name
        if not name:
            raise InvalidPropertyOptionError(f"{property_class.__name__} does not define a type_name")
        if name in self._types or name in self._aliases:
            raise AlreadyRegisteredError(f"Property type '{name}' is already registered")
        self._types[name] = property_class
        logger.debug("Registered property type %s", name)
        return property_class

    def has_property_type(self, name: str) -> bool:
        return name in self._types

    def register_type_alias(self, alias: str, definition: Union[PropertyDefinition, str]) -> None:
        """
        Register ``alias`` as a base type plus a fixed partial definition,
        for example ``"percents"`` as a string with a pattern.
        """
        if not isinstance(alias, str) or not alias:
            raise InvalidPropertyOptionError("Type alias name must be a non-empty string")
        if alias in self._types:
            raise AlreadyRegisteredError(f"Type alias '{alias}' would shadow a property type")
        if alias in self._aliases:
            raise AlreadyRegisteredError(f"Type alias '{alias}' is already registered")
        if isinstance(definition, str):
            definition = {"type": definition}
        # Build once so a broken alias fails here, not at first use.
        self.create_property(alias, definition)
        self._aliases[alias] = copy.deepcopy(dict(definition))
        logger.debug("Registered type alias %s -> %s", alias, definition["type"])

    def add_type_aliases(self, aliases: Mapping[str, Union[PropertyDefinition, str]]) -> None:
        for alias, definition in aliases.items():
            self.register_type_alias(alias, definition)

    def has_type_alias(self, alias: str) -> bool:
        return alias in self._aliases

    def get_type_alias(self, alias: str) -> PropertyDefinition:
        try:
            return copy.deepcopy(self._aliases[alias])
        except KeyError:
            raise UnknownPropertyTypeError(f"Unknown type alias '{alias}'") from None

    def get_type_names(self) -> List[str]:
        return sorted(self._types) + sorted(self._aliases)

    # Names

    def register_not_allowed_names(self, names: Iterable[str]) -> None:
        self._not_allowed.update(names)

    def get_not_allowed_names(self) -> FrozenSet[str]:
        return frozenset(self._not_allowed)

    def is_property_name_allowed(self, name: Any) -> bool:
        return (
            isinstance(name, str)
            and name.isidentifier()
            and not keyword.iskeyword(name)
            and not name.startswith("__")
            and name not in self._not_allowed
        )

    def get_hashed_name(self, name: str) -> str:
        return f"_{name}_{self._hash_token}"
