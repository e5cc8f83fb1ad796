"""Core modules for schema IR compilation."""

from .config import GraphQLSourceConfig, OpenAPISourceConfig, TangenConfig, load_config
from .emitters import (
    SUPPORTED_VALIDATORS,
    Emitter,
    EmitterOptions,
    EmitterResult,
    get_emitter,
    is_validator_library,
)
from .errors import (
    ConfigError,
    DuplicateSchemaError,
    ScalarMappingError,
    SchemaParseError,
    SourceLoadError,
    TangenError,
    UnknownValidatorError,
)
from .generator import GenerationResult, SchemaGenerator
from .graphql_parser import GraphQLSchemaParser, parse_graphql_to_ir
from .hooks import (
    AddHeaderHook,
    FilterSchemasHook,
    HookRunner,
    PostGenerateHook,
    PreGenerateHook,
)
from .ir import (
    IRArray,
    IRBigInt,
    IRBoolean,
    IRDate,
    IREnum,
    IRIntersection,
    IRLiteral,
    IRModified,
    IRNever,
    IRNull,
    IRNumber,
    IRObject,
    IRProperty,
    IRRaw,
    IRRecord,
    IRRef,
    IRString,
    IRTuple,
    IRUndefined,
    IRUnion,
    IRUnknown,
    NamedSchema,
    SchemaIR,
    SchemaIRResult,
)
from .openapi_parser import OpenAPISchemaParser, parse_openapi_to_ir
from .scalars import (
    DateHandler,
    DateTimeHandler,
    JSONHandler,
    ScalarHandler,
    ScalarRegistry,
    UUIDHandler,
)
from .utils import (
    create_named_schema,
    ensure_unique_names,
    extract_dependencies,
    topological_sort_schemas,
)

__all__ = [
    # Config
    "GraphQLSourceConfig",
    "OpenAPISourceConfig",
    "TangenConfig",
    "load_config",
    # Emitters
    "SUPPORTED_VALIDATORS",
    "Emitter",
    "EmitterOptions",
    "EmitterResult",
    "get_emitter",
    "is_validator_library",
    # Errors
    "ConfigError",
    "DuplicateSchemaError",
    "ScalarMappingError",
    "SchemaParseError",
    "SourceLoadError",
    "TangenError",
    "UnknownValidatorError",
    # Generator
    "GenerationResult",
    "SchemaGenerator",
    # Parsers
    "GraphQLSchemaParser",
    "OpenAPISchemaParser",
    "parse_graphql_to_ir",
    "parse_openapi_to_ir",
    # Hooks
    "PreGenerateHook",
    "PostGenerateHook",
    "AddHeaderHook",
    "FilterSchemasHook",
    "HookRunner",
    # IR types
    "IRArray",
    "IRBigInt",
    "IRBoolean",
    "IRDate",
    "IREnum",
    "IRIntersection",
    "IRLiteral",
    "IRModified",
    "IRNever",
    "IRNull",
    "IRNumber",
    "IRObject",
    "IRProperty",
    "IRRaw",
    "IRRecord",
    "IRRef",
    "IRString",
    "IRTuple",
    "IRUndefined",
    "IRUnion",
    "IRUnknown",
    "NamedSchema",
    "SchemaIR",
    "SchemaIRResult",
    # Scalars
    "ScalarHandler",
    "ScalarRegistry",
    "DateTimeHandler",
    "DateHandler",
    "UUIDHandler",
    "JSONHandler",
    # Utilities
    "create_named_schema",
    "ensure_unique_names",
    "extract_dependencies",
    "topological_sort_schemas",
]
