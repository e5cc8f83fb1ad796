"""IR utilities: naming conventions, dependency extraction and ordering."""

import re
from typing import Iterable

from .errors import DuplicateSchemaError
from .ir import (
    IRArray,
    IRIntersection,
    IRObject,
    IRRecord,
    IRRef,
    IRTuple,
    IRUnion,
    NamedSchema,
    SchemaIR,
)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


# =============================================================================
# Naming
# =============================================================================


def to_pascal_case(name: str) -> str:
    """Convert to PascalCase, e.g. "create_user" / "create-user" -> "CreateUser"."""
    result = re.sub(r"[-_](.)", lambda m: m.group(1).upper(), name)
    return result[:1].upper() + result[1:]


def to_camel_case(name: str) -> str:
    """Convert to camelCase, e.g. "CreateUser" -> "createUser"."""
    pascal = to_pascal_case(name)
    return pascal[:1].lower() + pascal[1:]


def to_schema_name(type_name: str) -> str:
    """Schema variable name for a type, e.g. "User" -> "userSchema"."""
    return f"{type_name[:1].lower()}{type_name[1:]}Schema"


def is_valid_identifier(name: str) -> bool:
    """Check if a property name can appear unquoted in an object literal."""
    return bool(_IDENTIFIER_RE.match(name))


def quote_string(value: str) -> str:
    """Render a JavaScript double-quoted string literal."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def get_safe_property_name(name: str) -> str:
    """Property key for an object literal, quoted only when it must be."""
    return name if is_valid_identifier(name) else quote_string(name)


# GraphQL operation naming ----------------------------------------------------


def to_query_variables_schema_name(operation_name: str) -> str:
    """e.g. "GetPets" -> "getPetsQueryVariablesSchema"."""
    return f"{to_camel_case(operation_name)}QueryVariablesSchema"


def to_mutation_variables_schema_name(operation_name: str) -> str:
    return f"{to_camel_case(operation_name)}MutationVariablesSchema"


def to_subscription_variables_schema_name(operation_name: str) -> str:
    return f"{to_camel_case(operation_name)}SubscriptionVariablesSchema"


def to_query_response_schema_name(operation_name: str) -> str:
    """e.g. "GetPets" -> "getPetsQuerySchema"."""
    return f"{to_camel_case(operation_name)}QuerySchema"


def to_mutation_response_schema_name(operation_name: str) -> str:
    return f"{to_camel_case(operation_name)}MutationSchema"


def to_subscription_response_schema_name(operation_name: str) -> str:
    return f"{to_camel_case(operation_name)}SubscriptionSchema"


def to_fragment_schema_name(fragment_name: str) -> str:
    """e.g. "PetFields" -> "petFieldsFragmentSchema"."""
    return f"{to_camel_case(fragment_name)}FragmentSchema"


def to_query_variables_type_name(operation_name: str) -> str:
    """e.g. "GetPets" -> "GetPetsQueryVariables"."""
    return f"{to_pascal_case(operation_name)}QueryVariables"


def to_mutation_variables_type_name(operation_name: str) -> str:
    return f"{to_pascal_case(operation_name)}MutationVariables"


def to_subscription_variables_type_name(operation_name: str) -> str:
    return f"{to_pascal_case(operation_name)}SubscriptionVariables"


def to_query_response_type_name(operation_name: str) -> str:
    """e.g. "GetPets" -> "GetPetsQuery"."""
    return f"{to_pascal_case(operation_name)}Query"


def to_mutation_response_type_name(operation_name: str) -> str:
    return f"{to_pascal_case(operation_name)}Mutation"


def to_subscription_response_type_name(operation_name: str) -> str:
    return f"{to_pascal_case(operation_name)}Subscription"


def to_fragment_type_name(fragment_name: str) -> str:
    """e.g. "PetFields" -> "PetFieldsFragment"."""
    return f"{to_pascal_case(fragment_name)}Fragment"


# =============================================================================
# Dependencies
# =============================================================================


def extract_dependencies(schema: SchemaIR) -> set[str]:
    """Collect the names of every ref reachable inside a schema."""
    deps: set[str] = set()

    def visit(node: SchemaIR):
        if isinstance(node, IRRef):
            deps.add(node.name)
        elif isinstance(node, IRObject):
            for prop in node.properties.values():
                visit(prop.schema)
            if node.additional_properties is not None and not isinstance(
                node.additional_properties, bool
            ):
                visit(node.additional_properties)
        elif isinstance(node, IRArray):
            visit(node.items)
        elif isinstance(node, IRTuple):
            for item in node.items:
                visit(item)
        elif isinstance(node, IRRecord):
            visit(node.key_type)
            visit(node.value_type)
        elif isinstance(node, (IRUnion, IRIntersection)):
            for member in node.members:
                visit(member)

    visit(schema)
    return deps


def create_named_schema(
    name: str, schema: SchemaIR, category: str | None = None
) -> NamedSchema:
    """Build a NamedSchema with its dependencies filled in."""
    dependencies = extract_dependencies(schema)
    dependencies.discard(name)
    return NamedSchema(
        name=name,
        schema=schema,
        dependencies=frozenset(dependencies),
        category=category,
    )


def topological_sort_schemas(schemas: Iterable[NamedSchema]) -> list[NamedSchema]:
    """Order schemas so dependencies come before dependents.

    Depth-first post-order over the input order. A dependency that is
    still being visited (a cycle) is skipped rather than reported, so
    mutually recursive entries keep their natural position and emitters
    must cope with forward references.
    """
    schemas = list(schemas)
    by_name = {s.name: s for s in schemas}
    position = {s.name: index for index, s in enumerate(schemas)}
    result: list[NamedSchema] = []
    visited: set[str] = set()
    visiting: set[str] = set()

    def visit(name: str):
        if name in visited or name in visiting:
            return
        entry = by_name.get(name)
        if entry is None:
            return
        visiting.add(name)
        # Dependencies in parse order; set iteration order must not leak out
        for dep in sorted((d for d in entry.dependencies if d in by_name), key=position.get):
            visit(dep)
        visiting.discard(name)
        visited.add(name)
        result.append(entry)

    for entry in schemas:
        visit(entry.name)
    return result


def ensure_unique_names(schemas: Iterable[NamedSchema]):
    """Raise DuplicateSchemaError if two entries share a name."""
    seen: set[str] = set()
    for entry in schemas:
        if entry.name in seen:
            raise DuplicateSchemaError(
                f'Schema name "{entry.name}" is defined more than once; '
                "namespace sources before emitting them together"
            )
        seen.add(entry.name)
