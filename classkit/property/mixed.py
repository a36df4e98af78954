# classkit/property/mixed.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Optional

from classkit.core.errors import InvalidPropertyOptionError, NoMatchingTypeError, PropertyValueError
from classkit.core.types import PropertyDefinition
from classkit.property.base import PropertyType, property_type

if TYPE_CHECKING:
    from classkit.core.manager import ClassManager
    from classkit.interfaces.protocols import ValueContext


@property_type
class MixedType(PropertyType):
    """
    Union of several property types.

    ``allows`` is an ordered list of definitions (or bare type names). A value
    is accepted by the first member type that validates it, and that member
    type also prepares it for storage.
    """

    type_name = "mixed"
    option_keys = frozenset({"allows"})

    def normalize_definition(self, definition: PropertyDefinition) -> PropertyDefinition:
        definition = super().normalize_definition(definition)
        allows = definition.get("allows")
        if isinstance(allows, (list, tuple)):
            definition["allows"] = [{"type": item} if isinstance(item, str) else item for item in allows]
        return definition

    def validate_definition(self, definition: PropertyDefinition) -> None:
        super().validate_definition(definition)
        allows = definition.get("allows")
        if not isinstance(allows, list) or not allows:
            raise InvalidPropertyOptionError(f"Mixed property '{self.full_name}' needs a non-empty 'allows' list")
        for item in allows:
            if not isinstance(item, dict):
                raise InvalidPropertyOptionError(
                    f"Members of mixed property '{self.full_name}' must be type names or definitions"
                )

    def process_definition(self) -> None:
        self._types: List[PropertyType] = [
            self._manager.create_property(
                self._name, dict(item, nullable=False), context_class=self._context_class, context_property=self
            )
            for item in self._definition["allows"]
        ]

    @property
    def types(self) -> List[PropertyType]:
        return list(self._types)

    def get_type_names(self) -> List[str]:
        return [prop.alias or prop.type_name for prop in self._types]

    def match(self, value: Any) -> Optional[PropertyType]:
        """First member type accepting ``value``, or None."""
        for prop in self._types:
            try:
                prop.validate(value)
            except PropertyValueError:
                continue
            return prop
        return None

    def validate_value(self, value: Any) -> None:
        if self.match(value) is None:
            names = self.get_type_names()
            raise NoMatchingTypeError(
                f"Property '{self.full_name}' value {value!r} matches none of the types {names}", names
            )

    def prepare(self, value: Any, owner: Optional["ValueContext"], read_only: bool = False) -> Any:
        if value is None:
            return None
        prop = self.match(value)
        return prop.prepare(value, owner, read_only=read_only) if prop is not None else value

    def _empty_value(self) -> Any:
        return self._types[0].get_default_value()

    def resolve(self, registry: "ClassManager") -> None:
        for prop in self._types:
            prop.resolve(registry)
