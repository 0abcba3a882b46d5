"""
Custom exceptions for schema loading and conversion.
"""
from typing import Optional


class SchemaConversionError(Exception):
    """Base class for all proto-to-Glue conversion errors."""
    pass


class SchemaLoadError(SchemaConversionError):
    """Raised when a .proto file cannot be read, parsed or linked by protoc."""
    def __init__(self, proto_file: str, reason: str, stderr: Optional[str] = None):
        message = f"Failed to load proto file '{proto_file}': {reason}"
        if stderr:
            message = f"{message}\n{stderr.strip()}"
        super().__init__(message)
        self.proto_file = proto_file
        self.reason = reason
        self.stderr = stderr


class MessageNotFoundError(SchemaConversionError):
    """Raised when the requested message name is not declared in the schema."""
    def __init__(self, message_name: str):
        super().__init__(f"Message type not found in proto file: {message_name}")
        self.message_name = message_name


class NoMessageTypeFoundError(SchemaConversionError):
    """Raised when no message name was requested and the file declares no messages."""
    def __init__(self, proto_file: Optional[str] = None):
        message = "Message type not found in proto file"
        if proto_file:
            message = f"{message}: {proto_file} declares no message types"
        super().__init__(message)
        self.proto_file = proto_file


class CircularReferenceError(SchemaConversionError):
    """Raised when a message type contains itself, directly or through nested messages.
    Glue struct types cannot be recursive."""
    def __init__(self, type_name: str):
        super().__init__(f"Circular reference detected for message type: {type_name}")
        self.type_name = type_name


class UnsupportedTypeError(SchemaConversionError):
    """Raised when a field's primitive tag has no entry in the active type mapping."""
    def __init__(self, tag: str, field_name: Optional[str] = None):
        message = f"Unsupported field type: {tag}"
        if field_name:
            message = f"{message} (field '{field_name}')"
        super().__init__(message)
        self.tag = tag
        self.field_name = field_name
