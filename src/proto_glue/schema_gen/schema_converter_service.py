"""
Service responsible for converting Protocol Buffers message types to AWS Glue
table columns: scalar mapping, nested messages as structs, repeated fields as
arrays, memoization of converted message types and circular reference checks.
"""
import threading
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Set, Union

import structlog

from ..config import Config
from ..models.glue import (
    DEFAULT_TYPE_MAPPING,
    Column,
    GlueJsonColumn,
    ScalarType,
    array_of,
    resolve_scalar_type,
    struct_of,
)
from ..models.proto import EnumFieldType, MessageFieldType, MessageType, PrimitiveFieldType, ProtoField, TypeGraph
from .exceptions import (
    CircularReferenceError,
    MessageNotFoundError,
    NoMessageTypeFoundError,
    SchemaConversionError,
    UnsupportedTypeError,
)
from .proto_loader import ProtoSchemaLoader

logger = structlog.get_logger(__name__)

TypeMappingOverrides = Mapping[str, Union[str, ScalarType]]


class SchemaConverter:
    """
    Converts message types of a resolved TypeGraph into Glue columns.

    Each instance owns its conversion cache, keyed by fully-qualified message
    name. The cache is never invalidated, so an instance should be used for
    schemas that agree on what every message name means.
    """

    def __init__(self, type_mapping: Optional[TypeMappingOverrides] = None, loader: Optional[ProtoSchemaLoader] = None):
        merged: Dict[str, ScalarType] = dict(DEFAULT_TYPE_MAPPING)
        for tag, type_spec in (type_mapping or {}).items():
            merged[tag] = resolve_scalar_type(type_spec)
        self._type_mapping: Mapping[str, ScalarType] = MappingProxyType(merged)

        self.loader = loader or ProtoSchemaLoader()
        self._processed_messages: Dict[str, List[Column]] = {}
        self._cache_lock = threading.Lock()
        self.logger = logger.bind(service="SchemaConverter")

    @classmethod
    def from_config(cls, app_config: Config, type_mapping: Optional[TypeMappingOverrides] = None) -> "SchemaConverter":
        """Builds a converter from application config. Explicit type_mapping entries win over configured ones."""
        overrides: Dict[str, Union[str, ScalarType]] = dict(app_config.converter.resolved_type_mapping())
        overrides.update(type_mapping or {})
        loader = ProtoSchemaLoader(
            include_paths=app_config.converter.include_paths,
            protoc_timeout_seconds=app_config.converter.protoc_timeout_seconds,
        )
        return cls(type_mapping=overrides, loader=loader)

    @property
    def type_mapping(self) -> Mapping[str, ScalarType]:
        return self._type_mapping

    def _lookup_scalar(self, tag: str, field: ProtoField) -> ScalarType:
        scalar = self._type_mapping.get(tag)
        if scalar is None:
            raise UnsupportedTypeError(tag, field_name=field.name)
        return scalar

    def _resolve_repeated_field(self, field: ProtoField, graph: TypeGraph) -> Column:
        """Converts a repeated field to an array column of its element type."""
        element = self._convert_non_repeated_field(field, graph)
        return Column(name=field.name, type=array_of(element.type))

    def _convert_non_repeated_field(self, field: ProtoField, graph: TypeGraph) -> Column:
        match field.type:
            case MessageFieldType(full_name=full_name):
                nested_columns = self.convert_message_type(graph.messages[full_name], graph)
                return Column(name=field.name, type=struct_of(nested_columns))
            case EnumFieldType():
                # Enums are never expanded, whatever their name or values
                return Column(name=field.name, type=self._lookup_scalar("enum", field))
            case PrimitiveFieldType(tag=tag):
                return Column(name=field.name, type=self._lookup_scalar(tag, field))
        raise UnsupportedTypeError(str(field.type), field_name=field.name)

    def convert_field(self, field: ProtoField, graph: TypeGraph) -> Column:
        """Converts one field to one Glue column named after the field."""
        if field.repeated:
            return self._resolve_repeated_field(field, graph)
        return self._convert_non_repeated_field(field, graph)

    def detect_circular_reference(self, message_type: MessageType, reference_message_type: MessageType, graph: TypeGraph) -> None:
        """
        Raises CircularReferenceError if reference_message_type is reachable from
        message_type through message-typed fields (repeated or not).

        The error always names reference_message_type, the type whose conversion
        was requested, even when the back edge is found deeper in the graph.
        """
        self._walk_for_reference(message_type, reference_message_type, graph, visited=set())

    def _walk_for_reference(self, message_type: MessageType, reference_message_type: MessageType, graph: TypeGraph, visited: Set[str]) -> None:
        visited.add(message_type.full_name)
        nested_names = [f.type.full_name for f in message_type.fields if isinstance(f.type, MessageFieldType)]

        if reference_message_type.full_name in nested_names:
            raise CircularReferenceError(reference_message_type.full_name)

        for nested_name in nested_names:
            # A cycle that does not pass through the reference type is reported
            # when the converter reaches one of its own members.
            if nested_name in visited:
                continue
            self._walk_for_reference(graph.messages[nested_name], reference_message_type, graph, visited)

    def convert_message_type(self, message_type: MessageType, graph: TypeGraph) -> List[Column]:
        """Converts every field of a message type, in declaration order. Results are memoized per instance."""
        cached = self._processed_messages.get(message_type.full_name)
        if cached is not None:
            return list(cached)

        self.detect_circular_reference(message_type, message_type, graph)
        columns = [self.convert_field(field, graph) for field in message_type.fields]

        with self._cache_lock:
            columns = self._processed_messages.setdefault(message_type.full_name, columns)

        self.logger.debug("Message type converted.", message_type=message_type.full_name, column_count=len(columns))
        return list(columns)

    def _select_message_type(self, graph: TypeGraph, proto_file: Union[str, Path], message_name: Optional[str]) -> MessageType:
        if message_name is not None:
            target = graph.find_message(message_name)
            if target is None:
                raise MessageNotFoundError(message_name)
            return target

        target = graph.first_top_level_message()
        if target is None:
            raise NoMessageTypeFoundError(str(proto_file))
        return target

    def generate_schema(self, proto_file: Union[str, Path], message_name: Optional[str] = None) -> List[Column]:
        """
        Generates the Glue columns for a message of a .proto file.

        Without message_name the first message declared at the top level of the
        file is used. Errors are logged and re-raised unchanged.
        """
        log = self.logger.bind(proto_file=str(proto_file), message_name=message_name)

        try:
            graph = self.loader.load(proto_file)
            target = self._select_message_type(graph, proto_file, message_name)
            columns = self.convert_message_type(target, graph)
        except SchemaConversionError as e:
            log.error("Failed to generate Glue schema.", error=str(e), error_type=type(e).__name__)
            raise

        log.info("Glue schema generated.", message_type=target.full_name, column_count=len(columns))
        return columns


def columns_to_json_schema(columns: List[Column]) -> List[GlueJsonColumn]:
    """Projects columns to their (name, Glue type string) form."""
    return [GlueJsonColumn(name=column.name, type=column.type.input_string) for column in columns]


def convert_proto_to_glue_schema(
    proto_file: Union[str, Path],
    message_name: Optional[str] = None,
    type_mapping: Optional[TypeMappingOverrides] = None,
    app_config: Optional[Config] = None,
) -> List[Column]:
    """Converts a .proto file to Glue columns with a fresh converter."""
    if app_config is not None:
        converter = SchemaConverter.from_config(app_config, type_mapping=type_mapping)
    else:
        converter = SchemaConverter(type_mapping=type_mapping)
    return converter.generate_schema(proto_file, message_name)


def convert_proto_to_json_glue_schema(
    proto_file: Union[str, Path],
    message_name: Optional[str] = None,
    type_mapping: Optional[TypeMappingOverrides] = None,
    app_config: Optional[Config] = None,
) -> List[GlueJsonColumn]:
    """Converts a .proto file to the JSON-friendly (name, type) Glue schema."""
    return columns_to_json_schema(convert_proto_to_glue_schema(proto_file, message_name, type_mapping, app_config))
