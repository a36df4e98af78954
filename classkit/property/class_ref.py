# classkit/property/class_ref.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from classkit.core.errors import InvalidPropertyOptionError, UnknownClassError
from classkit.core.instance import Instance
from classkit.core.types import PropertyDefinition
from classkit.property.base import PropertyType, property_type

if TYPE_CHECKING:
    from classkit.core.manager import ClassManager


@property_type
class ClassReferenceType(PropertyType):
    """
    Reference to an instance of a registered class.

    The value must be None or an Instance whose class, parents, traits or
    interfaces include ``class_name``. The named class only has to be known
    to the registry when the owning class resolves, so a class may refer to
    itself.
    """

    type_name = "class"
    option_keys = frozenset({"class_name"})

    def validate_definition(self, definition: PropertyDefinition) -> None:
        super().validate_definition(definition)
        class_name = definition.get("class_name")
        if not isinstance(class_name, str) or not class_name:
            raise InvalidPropertyOptionError(f"Property '{self.full_name}' needs a 'class_name' string")
        if definition["default"] is not None:
            raise InvalidPropertyOptionError(f"Class reference property '{self.full_name}' cannot have a default")

    @property
    def class_name(self) -> str:
        return self._definition["class_name"]

    def validate_value(self, value: Any) -> None:
        if not isinstance(value, Instance):
            raise self._type_error(value, f"an instance of {self.class_name}")
        if not value.is_instance_of(self.class_name):
            raise self._type_error(value, f"an instance of {self.class_name}")

    def resolve(self, registry: "ClassManager") -> None:
        if not registry.ensure_known(self.class_name):
            raise UnknownClassError(
                f"Property '{self.full_name}' refers to unknown class '{self.class_name}'"
            )
