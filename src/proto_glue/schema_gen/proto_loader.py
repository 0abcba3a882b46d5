"""
Loads .proto files into a resolved TypeGraph.

Parsing and cross-file linking are delegated to protoc (shipped by grpcio-tools).
protoc writes a FileDescriptorSet for the requested file and all of its imports,
which is then flattened into the TypeGraph the schema converter walks.
"""
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import structlog
from google.protobuf import descriptor_pb2
from google.protobuf.message import DecodeError

from ..models.proto import (
    EnumFieldType,
    EnumType,
    MessageFieldType,
    MessageType,
    PrimitiveFieldType,
    ProtoField,
    TypeGraph,
)
from .exceptions import SchemaLoadError

logger = structlog.get_logger(__name__)

_FieldProto = descriptor_pb2.FieldDescriptorProto

# Scalar descriptor types, named the way they are spelled in .proto files.
PRIMITIVE_TAGS: Dict[int, str] = {
    _FieldProto.TYPE_DOUBLE: "double",
    _FieldProto.TYPE_FLOAT: "float",
    _FieldProto.TYPE_INT64: "int64",
    _FieldProto.TYPE_UINT64: "uint64",
    _FieldProto.TYPE_INT32: "int32",
    _FieldProto.TYPE_FIXED64: "fixed64",
    _FieldProto.TYPE_FIXED32: "fixed32",
    _FieldProto.TYPE_BOOL: "bool",
    _FieldProto.TYPE_STRING: "string",
    _FieldProto.TYPE_BYTES: "bytes",
    _FieldProto.TYPE_UINT32: "uint32",
    _FieldProto.TYPE_SFIXED32: "sfixed32",
    _FieldProto.TYPE_SFIXED64: "sfixed64",
    _FieldProto.TYPE_SINT32: "sint32",
    _FieldProto.TYPE_SINT64: "sint64",
}


def _qualify(scope: str, name: str) -> str:
    return f"{scope}.{name}" if scope else name


def _field_from_descriptor(field_proto: descriptor_pb2.FieldDescriptorProto) -> ProtoField:
    if field_proto.type in (_FieldProto.TYPE_MESSAGE, _FieldProto.TYPE_GROUP):
        field_type: Union[PrimitiveFieldType, EnumFieldType, MessageFieldType] = MessageFieldType(full_name=field_proto.type_name.lstrip("."))
    elif field_proto.type == _FieldProto.TYPE_ENUM:
        field_type = EnumFieldType(full_name=field_proto.type_name.lstrip("."))
    else:
        field_type = PrimitiveFieldType(tag=PRIMITIVE_TAGS[field_proto.type])

    return ProtoField(
        name=field_proto.name,
        number=field_proto.number,
        type=field_type,
        repeated=field_proto.label == _FieldProto.LABEL_REPEATED,
    )


def _add_enum(graph: TypeGraph, enum_proto: descriptor_pb2.EnumDescriptorProto, scope: str) -> None:
    graph.add_enum(EnumType(
        full_name=_qualify(scope, enum_proto.name),
        values=[value.name for value in enum_proto.value],
    ))


def _add_message(graph: TypeGraph, message_proto: descriptor_pb2.DescriptorProto, scope: str, top_level: bool) -> None:
    full_name = _qualify(scope, message_proto.name)
    graph.add_message(
        MessageType(full_name=full_name, fields=[_field_from_descriptor(f) for f in message_proto.field]),
        top_level=top_level,
    )
    for enum_proto in message_proto.enum_type:
        _add_enum(graph, enum_proto, full_name)
    # Nested declarations, including the synthetic *Entry messages behind map fields
    for nested_proto in message_proto.nested_type:
        _add_message(graph, nested_proto, full_name, top_level=False)


def build_type_graph(descriptor_set: descriptor_pb2.FileDescriptorSet, main_file_name: Optional[str] = None) -> TypeGraph:
    """
    Flattens a FileDescriptorSet into a TypeGraph.

    Types from every file in the set are added, so references into imported
    files resolve. Only messages declared at file scope of the main file are
    recorded as top-level. When main_file_name is not in the set the last file
    is used, which is where protoc puts the requested file.
    """
    graph = TypeGraph()
    files = list(descriptor_set.file)
    if not files:
        return graph

    main_name = main_file_name if any(f.name == main_file_name for f in files) else files[-1].name

    for file_proto in files:
        for enum_proto in file_proto.enum_type:
            _add_enum(graph, enum_proto, file_proto.package)
        for message_proto in file_proto.message_type:
            _add_message(graph, message_proto, file_proto.package, top_level=file_proto.name == main_name)

    return graph


class ProtoSchemaLoader:
    """
    Runs protoc on a .proto file and returns the resolved TypeGraph.
    Every failure surfaces as a SchemaLoadError.
    """

    def __init__(self, include_paths: Optional[Sequence[Union[str, Path]]] = None, protoc_timeout_seconds: float = 60.0):
        self.include_paths: List[Path] = [Path(p).resolve() for p in include_paths or []]
        self.protoc_timeout_seconds = protoc_timeout_seconds
        self.logger = logger.bind(service="ProtoSchemaLoader")

    def _protoc_command(self, proto_path: Path, descriptor_out: Path) -> List[str]:
        # The file's own directory goes first so protoc names it by its bare file name.
        include_dirs = [proto_path.parent, *self.include_paths]
        return [
            sys.executable, "-m", "grpc_tools.protoc",
            *[f"--proto_path={d}" for d in include_dirs],
            "--include_imports",
            f"--descriptor_set_out={descriptor_out}",
            str(proto_path),
        ]

    def _run_protoc(self, proto_path: Path) -> descriptor_pb2.FileDescriptorSet:
        with tempfile.TemporaryDirectory(prefix="proto-glue-") as tmp_dir:
            descriptor_out = Path(tmp_dir) / "descriptor_set.pb"
            cmd = self._protoc_command(proto_path, descriptor_out)
            self.logger.debug("Running protoc.", command=cmd)

            try:
                completed = subprocess.run(cmd, capture_output=True, text=True, timeout=self.protoc_timeout_seconds, check=False)
            except subprocess.TimeoutExpired as e:
                raise SchemaLoadError(str(proto_path), f"protoc timed out after {self.protoc_timeout_seconds}s") from e
            except OSError as e:
                raise SchemaLoadError(str(proto_path), f"could not run protoc: {e}") from e

            if completed.returncode != 0:
                raise SchemaLoadError(str(proto_path), f"protoc exited with status {completed.returncode}", stderr=completed.stderr)

            try:
                return descriptor_pb2.FileDescriptorSet.FromString(descriptor_out.read_bytes())
            except (OSError, DecodeError) as e:
                raise SchemaLoadError(str(proto_path), f"could not read descriptor set: {e}") from e

    def load(self, proto_file: Union[str, Path]) -> TypeGraph:
        proto_path = Path(proto_file).resolve()
        log = self.logger.bind(proto_file=str(proto_path))

        if not proto_path.is_file():
            raise SchemaLoadError(str(proto_file), "file does not exist")

        descriptor_set = self._run_protoc(proto_path)
        graph = build_type_graph(descriptor_set, main_file_name=proto_path.name)
        graph.source = str(proto_path)

        log.debug(
            "Proto file loaded.",
            files=len(descriptor_set.file),
            message_count=len(graph.messages),
            enum_count=len(graph.enums),
        )
        return graph
