"""
Tests for loading .proto files into a TypeGraph.
"""
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest
from google.protobuf import descriptor_pb2

from proto_glue.models.proto import EnumFieldType, MessageFieldType, PrimitiveFieldType
from proto_glue.schema_gen.exceptions import SchemaLoadError
from proto_glue.schema_gen.proto_loader import ProtoSchemaLoader, build_type_graph

FieldProto = descriptor_pb2.FieldDescriptorProto


@pytest.fixture
def loader() -> ProtoSchemaLoader:
    return ProtoSchemaLoader()


# --- build_type_graph on hand-built descriptors ---

@pytest.fixture
def shop_descriptor_set() -> descriptor_pb2.FileDescriptorSet:
    descriptor_set = descriptor_pb2.FileDescriptorSet()

    common = descriptor_set.file.add(name="common.proto", package="common")
    money = common.message_type.add(name="Money")
    money.field.add(name="units", number=1, type=FieldProto.TYPE_INT64, label=FieldProto.LABEL_OPTIONAL)

    shop = descriptor_set.file.add(name="shop.proto", package="shop", dependency=["common.proto"])
    status = shop.enum_type.add(name="Status")
    status.value.add(name="UNKNOWN", number=0)
    status.value.add(name="ACTIVE", number=1)

    user = shop.message_type.add(name="User")
    user.field.add(name="display_name", number=1, type=FieldProto.TYPE_STRING, label=FieldProto.LABEL_OPTIONAL)
    user.field.add(name="tags", number=2, type=FieldProto.TYPE_STRING, label=FieldProto.LABEL_REPEATED)
    user.field.add(name="status", number=3, type=FieldProto.TYPE_ENUM, type_name=".shop.Status", label=FieldProto.LABEL_OPTIONAL)
    user.field.add(name="address", number=4, type=FieldProto.TYPE_MESSAGE, type_name=".shop.User.Address", label=FieldProto.LABEL_OPTIONAL)
    user.field.add(name="balance", number=5, type=FieldProto.TYPE_MESSAGE, type_name=".common.Money", label=FieldProto.LABEL_OPTIONAL)
    user.field.add(name="flags", number=6, type=FieldProto.TYPE_UINT32, label=FieldProto.LABEL_OPTIONAL)
    address = user.nested_type.add(name="Address")
    address.field.add(name="city", number=1, type=FieldProto.TYPE_STRING, label=FieldProto.LABEL_OPTIONAL)
    kind = user.enum_type.add(name="Kind")
    kind.value.add(name="PERSON", number=0)

    shop.message_type.add(name="Order")
    return descriptor_set

def test_build_type_graph_qualifies_names(shop_descriptor_set: descriptor_pb2.FileDescriptorSet) -> None:
    graph = build_type_graph(shop_descriptor_set, main_file_name="shop.proto")
    assert list(graph.messages) == ["common.Money", "shop.User", "shop.User.Address", "shop.Order"]
    assert list(graph.enums) == ["shop.Status", "shop.User.Kind"]
    assert graph.enums["shop.Status"].values == ["UNKNOWN", "ACTIVE"]

def test_build_type_graph_top_level_messages_come_from_main_file(shop_descriptor_set: descriptor_pb2.FileDescriptorSet) -> None:
    graph = build_type_graph(shop_descriptor_set, main_file_name="shop.proto")
    assert graph.top_level_messages == ["shop.User", "shop.Order"]
    assert graph.first_top_level_message().full_name == "shop.User"

def test_build_type_graph_falls_back_to_last_file(shop_descriptor_set: descriptor_pb2.FileDescriptorSet) -> None:
    graph = build_type_graph(shop_descriptor_set, main_file_name="unknown.proto")
    assert graph.top_level_messages == ["shop.User", "shop.Order"]

def test_build_type_graph_field_types(shop_descriptor_set: descriptor_pb2.FileDescriptorSet) -> None:
    fields = {f.name: f for f in build_type_graph(shop_descriptor_set).messages["shop.User"].fields}

    assert fields["display_name"].type == PrimitiveFieldType(tag="string")
    assert fields["display_name"].repeated is False
    assert fields["tags"].repeated is True
    assert fields["status"].type == EnumFieldType(full_name="shop.Status")
    assert fields["address"].type == MessageFieldType(full_name="shop.User.Address")
    assert fields["balance"].type == MessageFieldType(full_name="common.Money")
    assert fields["flags"].type == PrimitiveFieldType(tag="uint32")
    assert [f.number for f in fields.values()] == [1, 2, 3, 4, 5, 6]

def test_build_type_graph_empty_set() -> None:
    graph = build_type_graph(descriptor_pb2.FileDescriptorSet())
    assert graph.messages == {}
    assert graph.first_top_level_message() is None


# --- protoc integration ---

def test_load_keeps_declaration_order_and_field_case(loader: ProtoSchemaLoader, write_proto) -> None:
    proto_path = write_proto("""
        syntax = "proto3";

        enum GlobalStatus {
          UNKNOWN = 0;
          ACTIVE = 1;
        }

        message NestedMessage {
          bool is_active = 1;
          double score = 2;
        }

        message TestMessage {
          string name = 1;
          int32 userAge = 2;
          repeated string hobbies = 3;
          NestedMessage nested_info = 4;
          GlobalStatus user_status = 5;
        }
    """)
    graph = loader.load(proto_path)

    assert graph.top_level_messages == ["NestedMessage", "TestMessage"]
    assert graph.source == str(proto_path.resolve())
    assert [f.name for f in graph.messages["TestMessage"].fields] == ["name", "userAge", "hobbies", "nested_info", "user_status"]
    assert graph.messages["TestMessage"].fields[2].repeated is True
    assert "GlobalStatus" in graph.enums

def test_load_resolves_package_and_nested_types(loader: ProtoSchemaLoader, write_proto) -> None:
    proto_path = write_proto("""
        syntax = "proto3";
        package acme.shop;

        message Outer {
          message Inner {
            string label = 1;
          }
          enum Mode {
            MODE_UNSPECIFIED = 0;
          }
          Inner inner = 1;
          Mode mode = 2;
        }
    """)
    graph = loader.load(proto_path)

    assert graph.top_level_messages == ["acme.shop.Outer"]
    assert "acme.shop.Outer.Inner" in graph.messages
    assert graph.find_message(".acme.shop.Outer.Inner") is graph.messages["acme.shop.Outer.Inner"]
    inner, mode = graph.messages["acme.shop.Outer"].fields
    assert inner.type == MessageFieldType(full_name="acme.shop.Outer.Inner")
    assert mode.type == EnumFieldType(full_name="acme.shop.Outer.Mode")

def test_load_includes_imported_files(loader: ProtoSchemaLoader, write_proto) -> None:
    write_proto("""
        syntax = "proto3";
        package common;
        message Address {
          string city = 1;
        }
    """, file_name="common.proto")
    proto_path = write_proto("""
        syntax = "proto3";
        package shop;
        import "common.proto";
        message User {
          common.Address address = 1;
        }
    """, file_name="user.proto")

    graph = loader.load(proto_path)

    assert graph.top_level_messages == ["shop.User"]
    assert "common.Address" in graph.messages

def test_load_uses_configured_include_paths(tmp_path: Path, write_proto) -> None:
    shared_dir = tmp_path / "shared"
    shared_dir.mkdir()
    (shared_dir / "money.proto").write_text('syntax = "proto3";\nmessage Money { int64 units = 1; }\n')
    proto_path = write_proto("""
        syntax = "proto3";
        import "money.proto";
        message Invoice {
          Money total = 1;
        }
    """, file_name="invoice.proto")

    graph = ProtoSchemaLoader(include_paths=[shared_dir]).load(proto_path)
    assert graph.messages["Invoice"].fields[0].type == MessageFieldType(full_name="Money")

def test_load_exposes_map_fields_as_repeated_entries(loader: ProtoSchemaLoader, write_proto) -> None:
    proto_path = write_proto("""
        syntax = "proto3";
        message Inventory {
          map<string, int32> counts = 1;
        }
    """)
    graph = loader.load(proto_path)

    counts = graph.messages["Inventory"].fields[0]
    assert counts.repeated is True
    assert counts.type == MessageFieldType(full_name="Inventory.CountsEntry")
    assert [f.name for f in graph.messages["Inventory.CountsEntry"].fields] == ["key", "value"]
    assert graph.top_level_messages == ["Inventory"]

def test_load_missing_file_raises(loader: ProtoSchemaLoader, tmp_path: Path) -> None:
    with pytest.raises(SchemaLoadError) as exc_info:
        loader.load(tmp_path / "nonexistent.proto")
    assert "file does not exist" in str(exc_info.value)

def test_load_syntax_error_raises_with_protoc_output(loader: ProtoSchemaLoader, write_proto) -> None:
    proto_path = write_proto("""
        syntax = "proto3";
        message Broken {
          string name = ;
        }
    """)
    with pytest.raises(SchemaLoadError) as exc_info:
        loader.load(proto_path)
    assert exc_info.value.stderr
    assert exc_info.value.proto_file == str(proto_path.resolve())

def test_load_unresolved_type_raises(loader: ProtoSchemaLoader, write_proto) -> None:
    proto_path = write_proto("""
        syntax = "proto3";
        message Dangling {
          Missing ref = 1;
        }
    """)
    with pytest.raises(SchemaLoadError):
        loader.load(proto_path)

def test_load_timeout_raises(loader: ProtoSchemaLoader, write_proto) -> None:
    proto_path = write_proto('syntax = "proto3";\n')
    timeout = subprocess.TimeoutExpired(cmd="protoc", timeout=0.1)
    with patch("proto_glue.schema_gen.proto_loader.subprocess.run", side_effect=timeout):
        with pytest.raises(SchemaLoadError) as exc_info:
            loader.load(proto_path)
    assert "timed out" in exc_info.value.reason

def test_protoc_command(tmp_path: Path) -> None:
    extra = tmp_path / "extra"
    loader = ProtoSchemaLoader(include_paths=[extra])
    proto_path = tmp_path / "schema.proto"
    out = tmp_path / "out.pb"

    cmd = loader._protoc_command(proto_path, out)

    assert cmd[1:3] == ["-m", "grpc_tools.protoc"]
    assert cmd.index(f"--proto_path={tmp_path}") < cmd.index(f"--proto_path={extra.resolve()}")
    assert "--include_imports" in cmd
    assert f"--descriptor_set_out={out}" in cmd
    assert cmd[-1] == str(proto_path)
