"""Resolved Protocol Buffers type graph handed to the schema converter."""
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import Field

from .common import BasePydanticModel, FrozenPydanticModel


class PrimitiveFieldType(FrozenPydanticModel):
    kind: Literal["primitive"] = "primitive"
    tag: str  # Scalar wire type as written in .proto, e.g. "int32"


class EnumFieldType(FrozenPydanticModel):
    kind: Literal["enum"] = "enum"
    full_name: str


class MessageFieldType(FrozenPydanticModel):
    kind: Literal["message"] = "message"
    full_name: str


FieldType = Annotated[
    Union[PrimitiveFieldType, EnumFieldType, MessageFieldType],
    Field(discriminator="kind"),
]


class ProtoField(BasePydanticModel):
    name: str
    type: FieldType
    number: int = 0
    repeated: bool = False


class MessageType(BasePydanticModel):
    full_name: str = Field(..., description="Package-qualified name without a leading dot, e.g. 'shop.User'.")
    fields: List[ProtoField] = Field(default_factory=list)

    @property
    def name(self) -> str:
        return self.full_name.rsplit(".", 1)[-1]


class EnumType(BasePydanticModel):
    full_name: str
    values: List[str] = Field(default_factory=list)


class TypeGraph(BasePydanticModel):
    """
    All message and enum types reachable from one loaded schema.

    Dict insertion order is declaration order. ``top_level_messages`` lists the
    messages declared at file scope of the requested file (not of its imports).
    """
    messages: Dict[str, MessageType] = Field(default_factory=dict)
    enums: Dict[str, EnumType] = Field(default_factory=dict)
    top_level_messages: List[str] = Field(default_factory=list)
    source: Optional[str] = None

    def add_message(self, message: MessageType, top_level: bool = False) -> None:
        self.messages[message.full_name] = message
        if top_level:
            self.top_level_messages.append(message.full_name)

    def add_enum(self, enum: EnumType) -> None:
        self.enums[enum.full_name] = enum

    def find_message(self, name: str) -> Optional[MessageType]:
        """Looks up a message by fully-qualified name. A leading '.' is accepted."""
        return self.messages.get(name.lstrip("."))

    def first_top_level_message(self) -> Optional[MessageType]:
        if not self.top_level_messages:
            return None
        return self.messages[self.top_level_messages[0]]
