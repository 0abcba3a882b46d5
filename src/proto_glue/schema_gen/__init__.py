"""
Schema loading and conversion for proto-glue.

Loads .proto files through protoc and converts their message types into
AWS Glue Data Catalog columns.
"""

from .exceptions import (
    CircularReferenceError,
    MessageNotFoundError,
    NoMessageTypeFoundError,
    SchemaConversionError,
    SchemaLoadError,
    UnsupportedTypeError,
)
from .proto_loader import ProtoSchemaLoader, build_type_graph
from .schema_converter_service import (
    SchemaConverter,
    columns_to_json_schema,
    convert_proto_to_glue_schema,
    convert_proto_to_json_glue_schema,
)

__all__ = [
    "CircularReferenceError",
    "MessageNotFoundError",
    "NoMessageTypeFoundError",
    "ProtoSchemaLoader",
    "SchemaConversionError",
    "SchemaConverter",
    "SchemaLoadError",
    "UnsupportedTypeError",
    "build_type_graph",
    "columns_to_json_schema",
    "convert_proto_to_glue_schema",
    "convert_proto_to_json_glue_schema",
]
