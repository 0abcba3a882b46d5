"""
Pydantic models for proto-glue.
"""
from .common import BasePydanticModel, FrozenPydanticModel
from .glue import (
    DEFAULT_TYPE_MAPPING,
    ArrayType,
    CatalogType,
    Column,
    GlueJsonColumn,
    ScalarType,
    StructType,
    resolve_scalar_type,
)
from .proto import (
    EnumFieldType,
    EnumType,
    FieldType,
    MessageFieldType,
    MessageType,
    PrimitiveFieldType,
    ProtoField,
    TypeGraph,
)

__all__ = [
    "ArrayType",
    "BasePydanticModel",
    "CatalogType",
    "Column",
    "DEFAULT_TYPE_MAPPING",
    "EnumFieldType",
    "EnumType",
    "FieldType",
    "FrozenPydanticModel",
    "GlueJsonColumn",
    "MessageFieldType",
    "MessageType",
    "PrimitiveFieldType",
    "ProtoField",
    "ScalarType",
    "StructType",
    "TypeGraph",
    "resolve_scalar_type",
]
