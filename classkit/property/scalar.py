# classkit/property/scalar.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""Scalar and opaque property types."""

import numbers
import re
from typing import Any, Optional

from classkit.core.errors import ConstraintViolationError, InvalidPropertyOptionError
from classkit.core.types import PropertyDefinition
from classkit.property.base import PropertyType, property_type


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _noop(*args: Any, **kwargs: Any) -> None:
    return None


@property_type
class BooleanType(PropertyType):
    """True or False. Generates an ``is_<name>`` check accessor."""

    type_name = "boolean"
    supports_check = True

    def validate_value(self, value: Any) -> None:
        if not isinstance(value, bool):
            raise self._type_error(value, "a boolean")

    def _empty_value(self) -> Any:
        return False


@property_type
class StringType(PropertyType):
    """
    Text value with optional ``pattern`` (searched, not fully matched),
    ``min_length`` and ``max_length`` constraints.
    """

    type_name = "string"
    option_keys = frozenset({"pattern", "min_length", "max_length"})

    def validate_definition(self, definition: PropertyDefinition) -> None:
        super().validate_definition(definition)
        pattern = definition.get("pattern")
        if pattern is not None:
            if not isinstance(pattern, (str, re.Pattern)):
                raise InvalidPropertyOptionError(f"Pattern of property '{self.full_name}' must be a string")
            try:
                re.compile(pattern)
            except re.error as exc:
                raise InvalidPropertyOptionError(f"Pattern of property '{self.full_name}' is invalid: {exc}") from exc
        for key in ("min_length", "max_length"):
            length = definition.get(key)
            if length is not None and (not _is_int(length) or length < 0):
                raise InvalidPropertyOptionError(
                    f"Option '{key}' of property '{self.full_name}' must be a non-negative integer"
                )
        min_length, max_length = definition.get("min_length"), definition.get("max_length")
        if min_length is not None and max_length is not None and min_length > max_length:
            raise InvalidPropertyOptionError(
                f"Property '{self.full_name}' has min_length {min_length} greater than max_length {max_length}"
            )

    def process_definition(self) -> None:
        pattern = self._definition.get("pattern")
        self._pattern: Optional[re.Pattern] = re.compile(pattern) if pattern is not None else None

    def validate_value(self, value: Any) -> None:
        if not isinstance(value, str):
            raise self._type_error(value, "a string")
        min_length = self._definition.get("min_length")
        if min_length is not None and len(value) < min_length:
            raise ConstraintViolationError(
                f"Property '{self.full_name}' must be at least {min_length} characters long, got {len(value)}"
            )
        max_length = self._definition.get("max_length")
        if max_length is not None and len(value) > max_length:
            raise ConstraintViolationError(
                f"Property '{self.full_name}' must be at most {max_length} characters long, got {len(value)}"
            )
        if self._pattern is not None and not self._pattern.search(value):
            raise ConstraintViolationError(
                f"Property '{self.full_name}' value {value!r} does not match pattern {self._pattern.pattern!r}"
            )

    def _empty_value(self) -> Any:
        return ""


@property_type
class NumberType(PropertyType):
    """Integer or float with optional ``min_value`` and ``max_value``. Booleans are rejected."""

    type_name = "number"
    option_keys = frozenset({"min_value", "max_value"})

    def validate_definition(self, definition: PropertyDefinition) -> None:
        super().validate_definition(definition)
        for key in ("min_value", "max_value"):
            bound = definition.get(key)
            if bound is not None and not _is_number(bound):
                raise InvalidPropertyOptionError(f"Option '{key}' of property '{self.full_name}' must be a number")
        min_value, max_value = definition.get("min_value"), definition.get("max_value")
        if min_value is not None and max_value is not None and min_value > max_value:
            raise InvalidPropertyOptionError(
                f"Property '{self.full_name}' has min_value {min_value} greater than max_value {max_value}"
            )

    def validate_value(self, value: Any) -> None:
        if not _is_number(value):
            raise self._type_error(value, "a number")
        min_value = self._definition.get("min_value")
        if min_value is not None and value < min_value:
            raise ConstraintViolationError(f"Property '{self.full_name}' must be >= {min_value}, got {value}")
        max_value = self._definition.get("max_value")
        if max_value is not None and value > max_value:
            raise ConstraintViolationError(f"Property '{self.full_name}' must be <= {max_value}, got {value}")

    def _empty_value(self) -> Any:
        return 0


@property_type
class EnumType(PropertyType):
    """
    One of a fixed list of literals in ``allows``. Not nullable unless the
    definition says so; the default is the first allowed literal.
    """

    type_name = "enum"
    option_keys = frozenset({"allows"})

    def normalize_definition(self, definition: PropertyDefinition) -> PropertyDefinition:
        definition.setdefault("nullable", False)
        definition = super().normalize_definition(definition)
        if isinstance(definition.get("allows"), tuple):
            definition["allows"] = list(definition["allows"])
        return definition

    def validate_definition(self, definition: PropertyDefinition) -> None:
        super().validate_definition(definition)
        allows = definition.get("allows")
        if not isinstance(allows, list) or not allows:
            raise InvalidPropertyOptionError(f"Property '{self.full_name}' needs a non-empty 'allows' list")

    def validate_value(self, value: Any) -> None:
        for allowed in self._definition["allows"]:
            if isinstance(allowed, bool) != isinstance(value, bool):
                continue
            if allowed == value:
                return
        raise ConstraintViolationError(
            f"Property '{self.full_name}' value {value!r} is not one of {self._definition['allows']!r}"
        )

    def get_default_value(self) -> Any:
        if self._definition["default"] is None:
            return self._definition["allows"][0]
        return super().get_default_value()

    def _empty_value(self) -> Any:
        return self._definition["allows"][0]


@property_type
class ArrayType(PropertyType):
    """Plain list value. Tuples are stored as lists."""

    type_name = "array"

    def validate_value(self, value: Any) -> None:
        if not isinstance(value, (list, tuple)):
            raise self._type_error(value, "a list")

    def prepare(self, value, owner, read_only=False):
        if isinstance(value, tuple):
            return list(value)
        return value

    def _empty_value(self) -> Any:
        return []


@property_type
class ObjectType(PropertyType):
    """Plain dict value."""

    type_name = "object"

    def validate_value(self, value: Any) -> None:
        if not isinstance(value, dict):
            raise self._type_error(value, "a dict")

    def _empty_value(self) -> Any:
        return {}


@property_type
class FunctionType(PropertyType):
    """Any callable."""

    type_name = "function"

    def validate_value(self, value: Any) -> None:
        if not callable(value):
            raise self._type_error(value, "a callable")

    def _empty_value(self) -> Any:
        return _noop


@property_type
class UntypedType(PropertyType):
    """Accepts any value."""

    type_name = "untyped"

    def validate_value(self, value: Any) -> None:
        return None
