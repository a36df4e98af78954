"""
Typed property system.

Architecture:
- base: PropertyType contract, descriptors and the type registry
- scalar, class_ref, map, mixed, collection: built-in property types
- manager: PropertyManager factory with custom type aliases

Importing this package registers every built-in property type.
"""

# Import order matters: type modules register themselves before the manager copies the registry
from .base import PropertyAttribute, PropertyDescriptor, PropertyType, property_type
from .scalar import ArrayType, BooleanType, EnumType, FunctionType, NumberType, ObjectType, StringType, UntypedType
from .class_ref import ClassReferenceType
from .map import MapType, MapValue
from .mixed import MixedType
from .collection import (
    ArrayCollection,
    ArrayCollectionType,
    Collection,
    CollectionType,
    ObjectCollection,
    ObjectCollectionType,
)
from .manager import PropertyManager

__all__ = [
    "PropertyAttribute",
    "PropertyDescriptor",
    "PropertyType",
    "property_type",
    "ArrayType",
    "BooleanType",
    "EnumType",
    "FunctionType",
    "NumberType",
    "ObjectType",
    "StringType",
    "UntypedType",
    "ClassReferenceType",
    "MapType",
    "MapValue",
    "MixedType",
    "ArrayCollection",
    "ArrayCollectionType",
    "Collection",
    "CollectionType",
    "ObjectCollection",
    "ObjectCollectionType",
    "PropertyManager",
]
