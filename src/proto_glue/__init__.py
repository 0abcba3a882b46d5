"""proto-glue - converts Protocol Buffers schemas to AWS Glue table schemas.

Message types become Glue columns: nested messages map to struct columns,
repeated fields to array columns and enums to strings.
"""

__version__ = "0.1.0"

from .config import Config
from .schema_gen import (
    SchemaConverter,
    convert_proto_to_glue_schema,
    convert_proto_to_json_glue_schema,
)

__all__ = [
    "Config",
    "SchemaConverter",
    "convert_proto_to_glue_schema",
    "convert_proto_to_json_glue_schema",
]
