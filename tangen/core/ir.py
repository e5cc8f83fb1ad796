"""Intermediate Representation (IR) for validator schemas.

This module defines dataclasses that describe schema shapes in a
validator-agnostic way. Parsers lower GraphQL and OpenAPI specs into
these nodes and emitters turn them into Zod, Valibot, ArkType or
Effect Schema source code.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Literal, Union

StringFormat = Literal["email", "url", "uuid", "datetime", "date", "time", "ipv4", "ipv6"]

SchemaCategory = Literal[
    "enum", "input", "response", "params", "fragment", "component", "variables"
]

STRING_FORMATS = ("email", "url", "uuid", "datetime", "date", "time", "ipv4", "ipv6")

# How a property with required=False is expressed
OPTIONAL_NULLISH = "nullish"  # may be absent or null
OPTIONAL_ONLY = "optional"  # may be absent, never null


# =============================================================================
# Primitive nodes
# =============================================================================


@dataclass
class IRString:
    """A string, optionally narrowed by format and constraints."""
    kind: ClassVar[str] = "string"
    format: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    description: str | None = None


@dataclass
class IRNumber:
    """A number; integer=True restricts it to whole numbers."""
    kind: ClassVar[str] = "number"
    integer: bool = False
    min: float | None = None
    max: float | None = None
    description: str | None = None


@dataclass
class IRBoolean:
    kind: ClassVar[str] = "boolean"
    description: str | None = None


@dataclass
class IRBigInt:
    kind: ClassVar[str] = "bigint"
    description: str | None = None


@dataclass
class IRNull:
    kind: ClassVar[str] = "null"
    description: str | None = None


@dataclass
class IRUndefined:
    kind: ClassVar[str] = "undefined"
    description: str | None = None


@dataclass
class IRUnknown:
    kind: ClassVar[str] = "unknown"
    description: str | None = None


@dataclass
class IRNever:
    kind: ClassVar[str] = "never"
    description: str | None = None


@dataclass
class IRDate:
    kind: ClassVar[str] = "date"
    description: str | None = None


# =============================================================================
# Composite nodes
# =============================================================================


@dataclass
class IRProperty:
    """A property of an object schema.

    optional_style only matters when required is False: "nullish" accepts
    a missing value or null, "optional" accepts a missing value only.
    """
    schema: "SchemaIR"
    required: bool = True
    description: str | None = None
    optional_style: str = OPTIONAL_NULLISH


@dataclass
class IRObject:
    """An object with ordered properties.

    additional_properties: None leaves the validator default, False is
    strict, True passes unknown keys through, a SchemaIR types them.
    """
    kind: ClassVar[str] = "object"
    properties: dict[str, IRProperty] = field(default_factory=dict)
    additional_properties: Union[bool, "SchemaIR", None] = None
    description: str | None = None


@dataclass
class IRArray:
    kind: ClassVar[str] = "array"
    items: "SchemaIR"
    description: str | None = None


@dataclass
class IRTuple:
    kind: ClassVar[str] = "tuple"
    items: list["SchemaIR"] = field(default_factory=list)
    description: str | None = None


@dataclass
class IRRecord:
    kind: ClassVar[str] = "record"
    key_type: "SchemaIR"
    value_type: "SchemaIR"
    description: str | None = None


# =============================================================================
# Discrete values and logical combinations
# =============================================================================


@dataclass
class IREnum:
    """An ordered set of string or number values."""
    kind: ClassVar[str] = "enum"
    values: list[str | int | float] = field(default_factory=list)
    description: str | None = None


@dataclass
class IRLiteral:
    kind: ClassVar[str] = "literal"
    value: str | int | float | bool
    description: str | None = None


@dataclass
class IRUnion:
    kind: ClassVar[str] = "union"
    members: list["SchemaIR"] = field(default_factory=list)
    description: str | None = None


@dataclass
class IRIntersection:
    kind: ClassVar[str] = "intersection"
    members: list["SchemaIR"] = field(default_factory=list)
    description: str | None = None


# =============================================================================
# Indirection
# =============================================================================


@dataclass
class IRRef:
    """Reference to another named schema, resolved by name at emit time."""
    kind: ClassVar[str] = "ref"
    name: str
    description: str | None = None


@dataclass
class IRRaw:
    """Validator-specific source code emitted verbatim."""
    kind: ClassVar[str] = "raw"
    code: str
    description: str | None = None


SchemaIR = Union[
    IRString,
    IRNumber,
    IRBoolean,
    IRBigInt,
    IRNull,
    IRUndefined,
    IRUnknown,
    IRNever,
    IRDate,
    IRObject,
    IRArray,
    IRTuple,
    IRRecord,
    IREnum,
    IRLiteral,
    IRUnion,
    IRIntersection,
    IRRef,
    IRRaw,
]

SCHEMA_KINDS = tuple(cls.kind for cls in SchemaIR.__args__)


# =============================================================================
# Construction-time wrapper
# =============================================================================


@dataclass
class IRModified:
    """A schema plus absence/null modifiers, used only while building IR.

    Must be collapsed with resolve_modified() or to_property() before the
    schema lands in a NamedSchema or an object property.
    """
    schema: SchemaIR
    nullable: bool = False
    optional: bool = False
    nullish: bool = False


# =============================================================================
# Named entries and parser results
# =============================================================================


@dataclass(frozen=True)
class NamedSchema:
    """A top-level schema entry ready for code generation."""
    name: str
    schema: SchemaIR
    dependencies: frozenset[str] = frozenset()
    category: str | None = None


@dataclass
class SchemaIRResult:
    """Complete output of a parser: named schemas in dependency order."""
    schemas: list[NamedSchema] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def get(self, name: str) -> NamedSchema | None:
        """Look up an entry by name."""
        for entry in self.schemas:
            if entry.name == name:
                return entry
        return None

    @property
    def names(self) -> list[str]:
        return [entry.name for entry in self.schemas]


# =============================================================================
# Type guards
# =============================================================================


def is_string_schema(schema: Any) -> bool:
    return isinstance(schema, IRString)


def is_number_schema(schema: Any) -> bool:
    return isinstance(schema, IRNumber)


def is_object_schema(schema: Any) -> bool:
    return isinstance(schema, IRObject)


def is_array_schema(schema: Any) -> bool:
    return isinstance(schema, IRArray)


def is_enum_schema(schema: Any) -> bool:
    return isinstance(schema, IREnum)


def is_union_schema(schema: Any) -> bool:
    return isinstance(schema, IRUnion)


def is_ref_schema(schema: Any) -> bool:
    return isinstance(schema, IRRef)


def is_raw_schema(schema: Any) -> bool:
    return isinstance(schema, IRRaw)


def is_literal_schema(schema: Any) -> bool:
    return isinstance(schema, IRLiteral)


def is_record_schema(schema: Any) -> bool:
    return isinstance(schema, IRRecord)


def is_intersection_schema(schema: Any) -> bool:
    return isinstance(schema, IRIntersection)


def is_schema_ir(value: Any) -> bool:
    """Check whether a value is one of the closed set of IR nodes."""
    return isinstance(value, SchemaIR.__args__)


# =============================================================================
# Modifier collapse
# =============================================================================


def make_nullable(schema: SchemaIR) -> SchemaIR:
    """Wrap a schema so it also accepts null."""
    if isinstance(schema, IRUnion) and any(isinstance(m, IRNull) for m in schema.members):
        return schema
    return IRUnion(members=[schema, IRNull()])


def make_nullish(schema: SchemaIR) -> SchemaIR:
    """Wrap a schema so it also accepts null and undefined."""
    return IRUnion(members=[schema, IRNull(), IRUndefined()])


def resolve_modified(modified: IRModified) -> SchemaIR:
    """Collapse a modifier wrapper in a non-property position."""
    schema = modified.schema
    if modified.nullish or (modified.nullable and modified.optional):
        return make_nullish(schema)
    if modified.nullable:
        return make_nullable(schema)
    if modified.optional:
        return IRUnion(members=[schema, IRUndefined()])
    return schema


def to_property(modified: IRModified, description: str | None = None) -> IRProperty:
    """Collapse a modifier wrapper into an object property."""
    schema = modified.schema
    if modified.nullish or (modified.nullable and modified.optional):
        return IRProperty(schema=schema, required=False, description=description)
    if modified.optional:
        return IRProperty(
            schema=schema,
            required=False,
            description=description,
            optional_style=OPTIONAL_ONLY,
        )
    if modified.nullable:
        return IRProperty(schema=make_nullable(schema), description=description)
    return IRProperty(schema=schema, description=description)
