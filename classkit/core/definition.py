# classkit/core/definition.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Normalized class declaration.

Architecture:
- A raw ClassSpec is a flat dict: reserved option keys plus members
- Callables become methods (``__init__`` is the constructor), other values
  become per-instance data fields
- Every option goes through a setter that checks it against the kind's
  capabilities, so the builder and direct registration validate the same way

Responsibilities:
- Split a spec into options, methods and fields
- Reject options a class kind may not declare
- Validate property definitions eagerly through the PropertyManager
- List the class names the declaration depends on or refers to
"""

from __future__ import annotations

import copy
import inspect
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Union

from classkit.core.errors import InvalidClassOptionError, InvalidPropertyOptionError
from classkit.core.instance import RESERVED_NAMES
from classkit.core.types import ClassKind, ClassSpec, KindCapabilities, PropertyDefinition, get_capabilities

if TYPE_CHECKING:
    from classkit.property.manager import PropertyManager

OPTION_KEYS = frozenset(
    {
        "extends",
        "implements",
        "traits",
        "abstract_methods",
        "static",
        "properties",
        "constants",
        "requires",
        "includes",
        "decorators",
    }
)

CONSTRUCTOR_NAME = "__init__"


def is_method_like(value: Any) -> bool:
    return callable(value) or isinstance(value, (staticmethod, classmethod, property))


def _unique(names: Iterable[str]) -> List[str]:
    result: List[str] = []
    for name in names:
        if name not in result:
            result.append(name)
    return result


def _signature_of(value: Any) -> Optional[inspect.Signature]:
    function = getattr(value, "__func__", value)
    if isinstance(function, property):
        function = function.fget
    if function is None or not callable(function):
        return None
    try:
        return inspect.signature(function)
    except (TypeError, ValueError):
        return None


class ClassDefinition:
    """
    Declarative description of one class, validated per kind.

    Class Invariants:
    - Options the kind's capabilities forbid are never stored
    - Every stored property definition builds a valid PropertyType
    - Interface properties are non-writable
    """

    def __init__(
        self,
        name: Optional[str],
        kind: Union[ClassKind, str],
        spec: Optional[ClassSpec] = None,
        property_manager: Optional["PropertyManager"] = None,
    ) -> None:
        self._kind = ClassKind.coerce(kind)
        self._capabilities = get_capabilities(self._kind)
        self._property_manager = property_manager
        self._name: Optional[str] = None
        if name is not None:
            self.set_name(name)
        self._parent: Optional[str] = None
        self._interfaces: List[str] = []
        self._traits: List[str] = []
        self._abstract_methods: Dict[str, Optional[inspect.Signature]] = {}
        self._statics: Dict[str, Any] = {}
        self._properties: Dict[str, PropertyDefinition] = {}
        self._accessors: Dict[str, Set[str]] = {}
        self._constants: Dict[str, Any] = {}
        self._requires: Dict[str, str] = {}
        self._includes: List[str] = []
        self._decorators: List[str] = []
        self._methods: Dict[str, Any] = {}
        self._fields: Dict[str, Any] = {}
        self._constructor: Optional[Callable[..., Any]] = None
        if spec is not None:
            self.apply_spec(spec)

    # Identity

    @property
    def kind(self) -> ClassKind:
        return self._kind

    @property
    def capabilities(self) -> KindCapabilities:
        return self._capabilities

    @property
    def property_manager(self) -> Optional["PropertyManager"]:
        return self._property_manager

    def get_name(self) -> Optional[str]:
        return self._name

    def set_name(self, name: str) -> None:
        if not isinstance(name, str) or not name.strip():
            raise InvalidClassOptionError(f"Class name must be a non-empty string, got {name!r}")
        self._name = name

    def get_kind(self) -> ClassKind:
        return self._kind

    # Spec handling

    def apply_spec(self, spec: ClassSpec) -> None:
        """Route every key of a raw spec to its setter."""
        if not isinstance(spec, Mapping):
            raise InvalidClassOptionError(f"Spec of class '{self._name}' must be a dict, got {type(spec).__name__}")
        for key, value in spec.items():
            if key == "extends":
                self.set_parent(value)
            elif key == "implements":
                self.set_interfaces(value)
            elif key == "traits":
                self.set_traits(value)
            elif key == "abstract_methods":
                self.set_abstract_methods(value)
            elif key == "static":
                self.set_static_properties(value)
            elif key == "properties":
                self.set_properties(value)
            elif key == "constants":
                self.set_constants(value)
            elif key == "requires":
                self.set_requires(value)
            elif key == "includes":
                self.set_includes(value)
            elif key == "decorators":
                self.set_decorators(value)
            else:
                self.add_member(key, value)

    def to_spec(self) -> ClassSpec:
        """Rebuild a raw spec equivalent to this definition."""
        spec: ClassSpec = {}
        if self._parent is not None:
            spec["extends"] = self._parent
        if self._interfaces:
            spec["implements"] = list(self._interfaces)
        if self._traits:
            spec["traits"] = list(self._traits)
        if self._abstract_methods:
            spec["abstract_methods"] = dict(self._abstract_methods)
        if self._statics:
            spec["static"] = copy.deepcopy(self._statics)
        if self._properties:
            spec["properties"] = copy.deepcopy(self._properties)
        if self._constants:
            spec["constants"] = copy.deepcopy(self._constants)
        if self._requires:
            spec["requires"] = dict(self._requires)
        if self._includes:
            spec["includes"] = list(self._includes)
        if self._decorators:
            spec["decorators"] = list(self._decorators)
        spec.update(self._methods)
        spec.update(copy.deepcopy(self._fields))
        if self._constructor is not None:
            spec[CONSTRUCTOR_NAME] = self._constructor
        return spec

    def copy(self) -> "ClassDefinition":
        return ClassDefinition(self._name, self._kind, self.to_spec(), self._property_manager)

    def get_dependencies(self) -> List[str]:
        """Names this class needs resolved before it can resolve, in resolution order."""
        candidates = [self._parent] if self._parent else []
        return _unique(candidates + self._traits + self._interfaces + self._includes)

    def get_references(self) -> List[str]:
        """
        Names that only have to be known when this class resolves. Required
        classes and decorators are looked up lazily, so they may point back.
        """
        return _unique(self._decorators + list(self._requires.values()))

    # Helpers

    def _require(self, allowed: bool, option: str) -> None:
        if not allowed:
            raise InvalidClassOptionError(
                f"{self._kind.value} '{self._name}' cannot declare option '{option}'"
            )

    def _name_list(self, option: str, value: Union[str, Iterable[str], None]) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            raise InvalidClassOptionError(f"Option '{option}' of '{self._name}' must be a name or a list of names")
        names: List[str] = []
        for item in value:
            if not isinstance(item, str) or not item:
                raise InvalidClassOptionError(f"Option '{option}' of '{self._name}' contains {item!r}")
            if item == self._name:
                raise InvalidClassOptionError(f"Class '{self._name}' cannot reference itself in '{option}'")
            if item not in names:
                names.append(item)
        return names

    def _check_member_name(self, name: Any, what: str) -> None:
        if not isinstance(name, str) or not name.isidentifier():
            raise InvalidClassOptionError(f"{what} name {name!r} of '{self._name}' is not a valid identifier")
        if name in RESERVED_NAMES:
            raise InvalidClassOptionError(f"{what} name '{name}' of '{self._name}' is reserved")

    def _check_collision(self, name: str, own_kind: str) -> None:
        if own_kind in ("method", "field") and name in OPTION_KEYS:
            raise InvalidClassOptionError(f"Cannot declare {own_kind} '{name}' on '{self._name}': it is an option name")
        taken = {
            "property": self._properties,
            "method": self._methods,
            "field": self._fields,
            "constant": self._constants,
        }
        for kind, members in taken.items():
            if kind != own_kind and name in members:
                raise InvalidClassOptionError(
                    f"Cannot declare {own_kind} '{name}' on '{self._name}': a {kind} with that name exists"
                )
        for prop_name, accessors in self._accessors.items():
            if name in accessors:
                raise InvalidClassOptionError(
                    f"Cannot declare {own_kind} '{name}' on '{self._name}': it is an accessor of property '{prop_name}'"
                )

    def _check_accessors(self, prop_name: str, accessors: Set[str]) -> None:
        for accessor in accessors:
            if accessor in RESERVED_NAMES:
                raise InvalidPropertyOptionError(
                    f"Property '{prop_name}' of '{self._name}' would install reserved accessor '{accessor}'"
                )
            for members in (self._properties, self._methods, self._fields, self._constants):
                if accessor in members:
                    raise InvalidClassOptionError(
                        f"Accessor '{accessor}' of property '{prop_name}' collides with member "
                        f"'{accessor}' of '{self._name}'"
                    )

    # Parent

    def get_parent(self) -> Optional[str]:
        return self._parent

    def set_parent(self, name: Optional[str]) -> None:
        if name is None:
            self._parent = None
            return
        if not isinstance(name, str) or not name:
            raise InvalidClassOptionError(f"Parent of '{self._name}' must be a class name, got {name!r}")
        if name == self._name:
            raise InvalidClassOptionError(f"Class '{self._name}' cannot extend itself")
        self._parent = name

    # Interfaces

    def get_interfaces(self) -> List[str]:
        return list(self._interfaces)

    def set_interfaces(self, names: Union[str, Iterable[str], None]) -> None:
        names = self._name_list("implements", names)
        if names:
            self._require(self._capabilities.can_implement_interfaces, "implements")
        self._interfaces = names

    def add_interface(self, name: str) -> None:
        self._require(self._capabilities.can_implement_interfaces, "implements")
        self._interfaces = self._name_list("implements", self._interfaces + [name])

    def remove_interface(self, name: str) -> None:
        if name in self._interfaces:
            self._interfaces.remove(name)

    # Traits

    def get_traits(self) -> List[str]:
        return list(self._traits)

    def set_traits(self, names: Union[str, Iterable[str], None]) -> None:
        names = self._name_list("traits", names)
        if names:
            self._require(self._capabilities.can_include_traits, "traits")
        self._traits = names

    def add_trait(self, name: str) -> None:
        self._require(self._capabilities.can_include_traits, "traits")
        self._traits = self._name_list("traits", self._traits + [name])

    def remove_trait(self, name: str) -> None:
        if name in self._traits:
            self._traits.remove(name)

    # Abstract methods

    def get_abstract_methods(self) -> Dict[str, Optional[inspect.Signature]]:
        return dict(self._abstract_methods)

    def set_abstract_methods(self, methods: Union[Iterable[str], Mapping[str, Any], None]) -> None:
        """
        Declare abstract methods as a list of names or a dict mapping names to
        a signature, a callable whose signature is used, or None.
        """
        if not methods:
            self._abstract_methods = {}
            return
        self._require(self._capabilities.can_declare_abstract, "abstract_methods")
        if isinstance(methods, str):
            methods = [methods]
        if isinstance(methods, Mapping):
            items = list(methods.items())
        elif isinstance(methods, (list, tuple)):
            items = [(name, None) for name in methods]
        else:
            raise InvalidClassOptionError(f"Option 'abstract_methods' of '{self._name}' must be a list or dict")
        abstract: Dict[str, Optional[inspect.Signature]] = {}
        for name, signature in items:
            abstract[name] = self._abstract_signature(name, signature)
        self._abstract_methods = abstract

    def add_abstract_method(self, name: str, signature: Any = None) -> None:
        self._require(self._capabilities.can_declare_abstract, "abstract_methods")
        self._abstract_methods[name] = self._abstract_signature(name, signature)

    def remove_abstract_method(self, name: str) -> None:
        self._abstract_methods.pop(name, None)

    def _abstract_signature(self, name: str, signature: Any) -> Optional[inspect.Signature]:
        self._check_member_name(name, "Abstract method")
        if signature is None or isinstance(signature, inspect.Signature):
            return signature
        if is_method_like(signature):
            return _signature_of(signature)
        raise InvalidClassOptionError(f"Abstract method '{name}' of '{self._name}' has an invalid signature")

    # Statics

    def get_static_properties(self) -> Dict[str, Any]:
        return dict(self._statics)

    def set_static_properties(self, statics: Optional[Mapping[str, Any]]) -> None:
        if not statics:
            self._statics = {}
            return
        self._require(self._capabilities.can_have_statics, "static")
        if not isinstance(statics, Mapping):
            raise InvalidClassOptionError(f"Option 'static' of '{self._name}' must be a dict")
        for name in statics:
            self._check_member_name(name, "Static")
        self._statics = dict(statics)

    def set_static_property(self, name: str, value: Any) -> None:
        self._require(self._capabilities.can_have_statics, "static")
        self._check_member_name(name, "Static")
        self._statics[name] = value

    def remove_static_property(self, name: str) -> None:
        self._statics.pop(name, None)

    # Properties

    def get_properties(self) -> Dict[str, PropertyDefinition]:
        return copy.deepcopy(self._properties)

    def get_property(self, name: str) -> PropertyDefinition:
        try:
            return copy.deepcopy(self._properties[name])
        except KeyError:
            raise InvalidClassOptionError(f"Class '{self._name}' declares no property '{name}'") from None

    def has_property(self, name: str) -> bool:
        return name in self._properties

    def set_properties(self, properties: Optional[Mapping[str, Any]]) -> None:
        if properties is None:
            properties = {}
        if not isinstance(properties, Mapping):
            raise InvalidClassOptionError(f"Option 'properties' of '{self._name}' must be a dict")
        previous = self._properties, self._accessors
        self._properties, self._accessors = {}, {}
        try:
            for name, definition in properties.items():
                self.add_property(name, definition)
        except Exception:
            self._properties, self._accessors = previous
            raise

    def add_property(self, name: str, definition: Union[PropertyDefinition, str]) -> None:
        manager = self._property_manager
        if manager is not None and not manager.is_property_name_allowed(name):
            raise InvalidPropertyOptionError(f"Property name {name!r} of '{self._name}' is not allowed")
        self._check_member_name(name, "Property")
        self._check_collision(name, "property")
        if isinstance(definition, str):
            definition = {"type": definition}
        if not isinstance(definition, Mapping):
            raise InvalidPropertyOptionError(f"Definition of property '{name}' must be a dict or type name")
        definition = copy.deepcopy(dict(definition))
        if self._kind is ClassKind.INTERFACE:
            if definition.get("writable", False):
                raise InvalidPropertyOptionError(
                    f"Property '{name}' of interface '{self._name}' cannot be writable"
                )
            definition["writable"] = False
        accessors: Set[str] = set()
        if manager is not None:
            prop = manager.check_definition(name, definition)
            accessors = {prop.get_accessor_name(kind) for kind in prop.get_accessor_kinds()}
            self._check_accessors(name, accessors)
        self._properties[name] = definition
        self._accessors[name] = accessors

    def remove_property(self, name: str) -> None:
        self._properties.pop(name, None)
        self._accessors.pop(name, None)

    # Constants

    def get_constants(self) -> Dict[str, Any]:
        return copy.deepcopy(self._constants)

    def set_constants(self, constants: Optional[Mapping[str, Any]]) -> None:
        if constants is None:
            constants = {}
        if not isinstance(constants, Mapping):
            raise InvalidClassOptionError(f"Option 'constants' of '{self._name}' must be a dict")
        previous = self._constants
        self._constants = {}
        try:
            for name, value in constants.items():
                self.set_constant(name, value)
        except Exception:
            self._constants = previous
            raise

    def set_constant(self, name: str, value: Any) -> None:
        self._check_member_name(name, "Constant")
        self._check_collision(name, "constant")
        self._constants[name] = copy.deepcopy(value)

    def remove_constant(self, name: str) -> None:
        self._constants.pop(name, None)

    # Requires

    def get_requires(self) -> Dict[str, str]:
        return dict(self._requires)

    def set_requires(self, requires: Union[Mapping[str, str], Iterable[str], None]) -> None:
        """
        Declare classes the methods use. A dict maps attribute aliases to class
        names; a list uses the last dotted segment of each name as the alias.
        """
        if not requires:
            self._requires = {}
            return
        self._require(self._capabilities.can_have_fields, "requires")
        if isinstance(requires, str):
            requires = [requires]
        if isinstance(requires, Mapping):
            items = list(requires.items())
        elif isinstance(requires, (list, tuple)):
            items = [(name.rsplit(".", 1)[-1] if isinstance(name, str) else name, name) for name in requires]
        else:
            raise InvalidClassOptionError(f"Option 'requires' of '{self._name}' must be a dict or list")
        result: Dict[str, str] = {}
        for alias, name in items:
            self._check_member_name(alias, "Required class alias")
            result[alias] = self._name_list("requires", [name])[0]
        self._requires = result

    # Configs

    def get_includes(self) -> List[str]:
        return list(self._includes)

    def set_includes(self, names: Union[str, Iterable[str], None]) -> None:
        names = self._name_list("includes", names)
        if names:
            self._require(self._capabilities.can_include_configs, "includes")
        self._includes = names

    def add_include(self, name: str) -> None:
        self._require(self._capabilities.can_include_configs, "includes")
        self._includes = self._name_list("includes", self._includes + [name])

    def remove_include(self, name: str) -> None:
        if name in self._includes:
            self._includes.remove(name)

    def get_decorators(self) -> List[str]:
        return list(self._decorators)

    def set_decorators(self, names: Union[str, Iterable[str], None]) -> None:
        names = self._name_list("decorators", names)
        if names:
            self._require(self._capabilities.can_include_configs, "decorators")
        self._decorators = names

    def add_decorator(self, name: str) -> None:
        self._require(self._capabilities.can_include_configs, "decorators")
        self._decorators = self._name_list("decorators", self._decorators + [name])

    def remove_decorator(self, name: str) -> None:
        if name in self._decorators:
            self._decorators.remove(name)

    # Members

    def add_member(self, name: str, value: Any) -> None:
        """Store a body member: the constructor, a method or a data field."""
        if name == CONSTRUCTOR_NAME:
            self.set_constructor(value)
        elif is_method_like(value):
            self.set_method(name, value)
        else:
            self.set_field(name, value)

    def get_methods(self) -> Dict[str, Any]:
        return dict(self._methods)

    def get_method_signatures(self) -> Dict[str, Optional[inspect.Signature]]:
        return {name: _signature_of(method) for name, method in self._methods.items()}

    def set_method(self, name: str, method: Any) -> None:
        if name == CONSTRUCTOR_NAME:
            self.set_constructor(method)
            return
        if not (name.startswith("__") and name.endswith("__")):
            self._check_member_name(name, "Method")
        if not is_method_like(method):
            raise InvalidClassOptionError(f"Method '{name}' of '{self._name}' must be callable")
        self._check_collision(name, "method")
        self._methods[name] = method

    def remove_method(self, name: str) -> None:
        if name == CONSTRUCTOR_NAME:
            self._constructor = None
        self._methods.pop(name, None)

    def get_fields(self) -> Dict[str, Any]:
        return copy.deepcopy(self._fields)

    def set_field(self, name: str, value: Any) -> None:
        self._require(self._capabilities.can_have_fields, f"field '{name}'")
        self._check_member_name(name, "Field")
        if name.startswith("__"):
            raise InvalidClassOptionError(f"Field name '{name}' of '{self._name}' cannot start with '__'")
        self._check_collision(name, "field")
        self._fields[name] = copy.deepcopy(value)

    def remove_field(self, name: str) -> None:
        self._fields.pop(name, None)

    def get_constructor(self) -> Optional[Callable[..., Any]]:
        return self._constructor

    def set_constructor(self, constructor: Optional[Callable[..., Any]]) -> None:
        if constructor is not None and not callable(constructor):
            raise InvalidClassOptionError(f"Constructor of '{self._name}' must be callable")
        if constructor is not None and self._kind is ClassKind.INTERFACE:
            raise InvalidClassOptionError(f"Interface '{self._name}' cannot declare a constructor")
        self._constructor = constructor

    def get_body(self) -> Dict[str, Any]:
        body = dict(self._methods)
        body.update(copy.deepcopy(self._fields))
        if self._constructor is not None:
            body[CONSTRUCTOR_NAME] = self._constructor
        return body

    def set_body(self, body: Optional[Mapping[str, Any]]) -> None:
        """Replace every method, field and the constructor."""
        previous = (self._methods, self._fields, self._constructor)
        self._methods, self._fields, self._constructor = {}, {}, None
        try:
            self.add_to_body(body or {})
        except Exception:
            self._methods, self._fields, self._constructor = previous
            raise

    def add_to_body(self, body: Mapping[str, Any]) -> None:
        if not isinstance(body, Mapping):
            raise InvalidClassOptionError(f"Body of '{self._name}' must be a dict")
        for name, value in body.items():
            self.add_member(name, value)

    def __repr__(self) -> str:
        return f"<ClassDefinition {self._kind.value} {self._name!r}>"
