"""
AWS Glue Data Catalog column types.

Mirrors the type system of the Glue catalog: named scalar types, parametrised
scalars (decimal, char, varchar) and the complex ``array`` and ``struct`` types.
Every type renders to the DDL text Glue expects through ``input_string``.
"""
import re
from typing import Annotated, Dict, Iterable, Literal, Optional, Tuple, Union

from pydantic import Field

from .common import BasePydanticModel, FrozenPydanticModel


class ScalarType(FrozenPydanticModel):
    kind: Literal["scalar"] = "scalar"
    name: str
    input_string: str

    @property
    def is_primitive(self) -> bool:
        return True


class ArrayType(FrozenPydanticModel):
    kind: Literal["array"] = "array"
    element_type: "CatalogType"

    @property
    def is_primitive(self) -> bool:
        return False

    @property
    def input_string(self) -> str:
        return f"array<{self.element_type.input_string}>"


class StructType(FrozenPydanticModel):
    kind: Literal["struct"] = "struct"
    columns: Tuple["Column", ...] = ()

    @property
    def is_primitive(self) -> bool:
        return False

    @property
    def input_string(self) -> str:
        return f"struct<{','.join(column.ddl_fragment for column in self.columns)}>"


CatalogType = Annotated[
    Union[ScalarType, ArrayType, StructType],
    Field(discriminator="kind"),
]


class Column(FrozenPydanticModel):
    name: str
    type: CatalogType
    comment: Optional[str] = None

    @property
    def ddl_fragment(self) -> str:
        fragment = f"{self.name}:{self.type.input_string}"
        if self.comment:
            fragment += f" COMMENT '{self.comment}'"
        return fragment


ArrayType.model_rebuild()
StructType.model_rebuild()
Column.model_rebuild()


class GlueJsonColumn(BasePydanticModel):
    """Serializable (name, type-string) view of a Column."""
    name: str
    type: str


# Scalar types, see https://docs.aws.amazon.com/athena/latest/ug/data-types.html
BOOLEAN = ScalarType(name="BOOLEAN", input_string="boolean")
BINARY = ScalarType(name="BINARY", input_string="binary")
BIG_INT = ScalarType(name="BIG_INT", input_string="bigint")
DOUBLE = ScalarType(name="DOUBLE", input_string="double")
FLOAT = ScalarType(name="FLOAT", input_string="float")
INTEGER = ScalarType(name="INTEGER", input_string="int")
SMALL_INT = ScalarType(name="SMALL_INT", input_string="smallint")
TINY_INT = ScalarType(name="TINY_INT", input_string="tinyint")
DATE = ScalarType(name="DATE", input_string="date")
TIMESTAMP = ScalarType(name="TIMESTAMP", input_string="timestamp")
STRING = ScalarType(name="STRING", input_string="string")

NAMED_SCALAR_TYPES: Dict[str, ScalarType] = {
    scalar.name: scalar
    for scalar in (BOOLEAN, BINARY, BIG_INT, DOUBLE, FLOAT, INTEGER, SMALL_INT, TINY_INT, DATE, TIMESTAMP, STRING)
}

DEFAULT_TYPE_MAPPING: Dict[str, ScalarType] = {
    "double": DOUBLE,
    "float": FLOAT,
    "int64": BIG_INT,
    "uint64": BIG_INT,
    "int32": INTEGER,
    "bool": BOOLEAN,
    "string": STRING,
    "bytes": STRING,
    "enum": STRING,
}


def decimal(precision: int, scale: Optional[int] = None) -> ScalarType:
    if scale is None:
        return ScalarType(name="DECIMAL", input_string=f"decimal({precision})")
    return ScalarType(name="DECIMAL", input_string=f"decimal({precision},{scale})")


def char(length: int) -> ScalarType:
    if length <= 0 or length > 255:
        raise ValueError(f"char length must be between 1 and 255, got {length}")
    return ScalarType(name="CHAR", input_string=f"char({length})")


def varchar(length: int) -> ScalarType:
    if length <= 0 or length > 65535:
        raise ValueError(f"varchar length must be between 1 and 65535, got {length}")
    return ScalarType(name="VARCHAR", input_string=f"varchar({length})")


def array_of(element_type: Union[ScalarType, ArrayType, StructType]) -> ArrayType:
    return ArrayType(element_type=element_type)


def struct_of(columns: Iterable[Column]) -> StructType:
    return StructType(columns=tuple(columns))


_PARAMETRISED_SCALAR = re.compile(r"^(decimal|char|varchar)\s*\(\s*(\d+)\s*(?:,\s*(\d+)\s*)?\)$", re.IGNORECASE)


def resolve_scalar_type(spec: Union[str, ScalarType]) -> ScalarType:
    """
    Resolves a scalar type from its configuration spelling.

    Accepts the constant names ("BIG_INT"), the Glue DDL names ("bigint") and
    the parametrised forms "decimal(p[,s])", "char(n)" and "varchar(n)".
    """
    if isinstance(spec, ScalarType):
        return spec

    text = spec.strip()
    if text.upper() in NAMED_SCALAR_TYPES:
        return NAMED_SCALAR_TYPES[text.upper()]
    for scalar in NAMED_SCALAR_TYPES.values():
        if scalar.input_string == text.lower():
            return scalar

    match = _PARAMETRISED_SCALAR.match(text)
    if match:
        kind, first, second = match.group(1).lower(), int(match.group(2)), match.group(3)
        if kind == "decimal":
            return decimal(first, int(second) if second is not None else None)
        if second is not None:
            raise ValueError(f"{kind} takes a single length parameter: {spec!r}")
        return char(first) if kind == "char" else varchar(first)

    raise ValueError(f"Unknown Glue scalar type: {spec!r}")
