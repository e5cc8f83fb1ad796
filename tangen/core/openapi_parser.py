"""OpenAPI document to IR.

Lowers component schemas, per-operation parameter groups, request bodies
and success responses of an OpenAPI 3.x document (a plain dict as loaded
from JSON or YAML) into named IR schemas.
"""

import re
from typing import Any

from .errors import SchemaParseError
from .ir import (
    IRArray,
    IRBoolean,
    IREnum,
    IRIntersection,
    IRLiteral,
    IRModified,
    IRNever,
    IRNull,
    IRNumber,
    IRObject,
    IRRaw,
    IRRecord,
    IRRef,
    IRString,
    IRTuple,
    IRUnion,
    IRUnknown,
    NamedSchema,
    SchemaIR,
    SchemaIRResult,
    resolve_modified,
    to_property,
)
from .scalars import validate_scalar_overrides
from .utils import create_named_schema, topological_sort_schemas

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

COMPONENT_SCHEMA_PREFIX = "#/components/schemas/"

# OpenAPI string formats -> IR string formats
FORMAT_MAP = {
    "email": "email",
    "uri": "url",
    "url": "url",
    "uuid": "uuid",
    "date-time": "datetime",
    "date": "date",
    "time": "time",
    "ipv4": "ipv4",
    "ipv6": "ipv6",
}

PARAMETER_LOCATIONS = ("path", "query")

_MAX_REF_DEPTH = 32


class UnresolvedReferenceError(SchemaParseError):
    """A $ref could not be resolved inside the document."""


# =============================================================================
# Path filtering and naming
# =============================================================================


def glob_to_regex(pattern: str) -> re.Pattern:
    """Compile a path glob: `*` stays within a segment, `**` crosses segments."""
    parts = []
    index = 0
    while index < len(pattern):
        if pattern.startswith("**", index):
            parts.append(".*")
            index += 2
        elif pattern[index] == "*":
            parts.append("[^/]*")
            index += 1
        elif pattern[index] == "?":
            parts.append("[^/]")
            index += 1
        else:
            parts.append(re.escape(pattern[index]))
            index += 1
    return re.compile("^" + "".join(parts) + "$")


def filter_paths(
    paths: dict[str, Any],
    include: list[str] | None = None,
    exclude: list[str] | None = None,
) -> dict[str, Any]:
    """Keep the path items matching include (if given) and not matching exclude."""
    include_res = [glob_to_regex(p) for p in include or []]
    exclude_res = [glob_to_regex(p) for p in exclude or []]
    return {
        path: item
        for path, item in paths.items()
        if (not include_res or any(r.match(path) for r in include_res))
        and not any(r.match(path) for r in exclude_res)
    }


def _pascal_words(text: str) -> str:
    return "".join(word[:1].upper() + word[1:] for word in re.split(r"[^A-Za-z0-9]+", text) if word)


def to_type_name(text: str) -> str:
    """PascalCase identifier for a name taken from the document.

    "Pet.Item" -> "PetItem", "pet-status" -> "PetStatus". A leading digit
    gets an underscore prefix: "123list" -> "_123list".
    """
    name = _pascal_words(text) or "Unnamed"
    return f"_{name}" if name[0].isdigit() else name


def to_operation_name(method: str, path: str, operation_id: str | None = None) -> str:
    """Name for an operation's schemas.

    "listPets" -> "ListPets"; without an operationId, GET /pets/{petId}
    -> "GetPetsPetId".
    """
    if operation_id:
        return to_type_name(operation_id)
    return method.capitalize() + _pascal_words(path)


def _unescape_pointer(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


# =============================================================================
# Parser
# =============================================================================


class OpenAPISchemaParser:
    """Parses an OpenAPI document into IR.

    Example:
        parser = OpenAPISchemaParser(document, include=["/pets/**"])
        result = parser.parse()
    """

    def __init__(
        self,
        document: dict[str, Any],
        scalars: dict[str, str] | None = None,
        validator: str | None = None,
        include: list[str] | None = None,
        exclude: list[str] | None = None,
    ):
        """Initialize the parser.

        Args:
            document: The loaded OpenAPI document.
            scalars: Format name -> validator-specific code.
            validator: Target validator used to check scalar overrides.
            include: Path globs to keep (all paths when empty).
            exclude: Path globs to drop.

        Raises:
            SchemaParseError: If the document is not a usable OpenAPI 3 document.
            ScalarMappingError: If an override is not a plausible expression.
        """
        if not isinstance(document, dict):
            raise SchemaParseError("OpenAPI document must be a mapping")
        version = document.get("openapi")
        if not isinstance(version, str):
            if "swagger" in document:
                raise SchemaParseError("Swagger 2.0 documents are not supported; convert to OpenAPI 3")
            raise SchemaParseError("OpenAPI document has no 'openapi' version string")
        paths = document.get("paths") or {}
        components = document.get("components") or {}
        if not isinstance(paths, dict):
            raise SchemaParseError("OpenAPI 'paths' must be a mapping")
        if not isinstance(components, dict):
            raise SchemaParseError("OpenAPI 'components' must be a mapping")

        self.document = document
        self.paths = filter_paths(paths, include, exclude)
        self.component_schemas: dict[str, Any] = components.get("schemas") or {}
        if validator:
            scalars = validate_scalar_overrides(scalars, validator)
        self.scalars = dict(scalars or {})
        self.warnings: list[str] = []
        self._names: set[str] = set()
        # Component being lowered; broken refs inside it become unknown
        self._component: str | None = None
        self.component_names = self._component_type_names()

    def _component_type_names(self) -> dict[str, str]:
        """Map each component schema key to a unique PascalCase identifier."""
        names: dict[str, str] = {}
        owners: dict[str, str] = {}
        for key in self.component_schemas:
            name = to_type_name(key)
            if name in owners:
                unique = name
                suffix = 2
                while unique in owners:
                    unique = f"{name}{suffix}"
                    suffix += 1
                self.warnings.append(
                    f'Component schemas "{owners[name]}" and "{key}" both map to "{name}"; '
                    f'"{key}" is named "{unique}"'
                )
                name = unique
            owners[name] = key
            names[key] = name
        return names

    def parse(self) -> SchemaIRResult:
        """Parse components and operations into a sorted result."""
        entries: list[NamedSchema] = []
        for key, schema in self.component_schemas.items():
            self._component = key
            try:
                lowered = self._schema(schema)
            finally:
                self._component = None
            self._add(entries, [create_named_schema(self.component_names[key], lowered, "component")])

        for method, path, path_item, operation in self.iter_operations():
            try:
                operation_entries = self._operation(method, path, path_item, operation)
            except UnresolvedReferenceError as exc:
                self.warnings.append(f"Skipped {method.upper()} {path}: {exc}")
                continue
            self._add(entries, operation_entries)

        return SchemaIRResult(schemas=topological_sort_schemas(entries), warnings=self.warnings)

    def iter_operations(self):
        """Yield (method, path, path_item, operation) for every kept operation."""
        for path, path_item in self.paths.items():
            if not isinstance(path_item, dict):
                continue
            for method in HTTP_METHODS:
                operation = path_item.get(method)
                if isinstance(operation, dict):
                    yield method, path, path_item, operation

    def find_operation(self, operation_id: str):
        """Look up an operation by operationId, or None."""
        for method, path, path_item, operation in self.iter_operations():
            if operation.get("operationId") == operation_id:
                return method, path, path_item, operation
        return None

    def query_parameters(self, path_item: dict, operation: dict) -> list[dict]:
        """Resolved query parameter objects of an operation."""
        return [
            param for (_, location), param in self._merged_parameters(path_item, operation).items()
            if location == "query"
        ]

    def _add(self, entries: list[NamedSchema], new_entries: list[NamedSchema]):
        for entry in new_entries:
            if entry.name in self._names:
                self.warnings.append(
                    f'Duplicate schema name "{entry.name}" ({entry.category}); '
                    "keeping the first definition"
                )
                continue
            self._names.add(entry.name)
            entries.append(entry)

    # =========================================================================
    # References
    # =========================================================================

    def _resolve(self, node: Any) -> Any:
        """Follow local $ref pointers until a concrete object is reached."""
        depth = 0
        while isinstance(node, dict) and "$ref" in node:
            ref = node["$ref"]
            if not isinstance(ref, str) or not ref.startswith("#/"):
                raise UnresolvedReferenceError(f'unsupported reference "{ref}"')
            depth += 1
            if depth > _MAX_REF_DEPTH:
                raise UnresolvedReferenceError(f'reference "{ref}" is circular')
            target: Any = self.document
            for token in ref[2:].split("/"):
                token = _unescape_pointer(token)
                if isinstance(target, dict) and token in target:
                    target = target[token]
                elif isinstance(target, list) and token.isdigit() and int(token) < len(target):
                    target = target[int(token)]
                else:
                    raise UnresolvedReferenceError(f'cannot resolve reference "{ref}"')
            node = target
        return node

    # =========================================================================
    # Schemas
    # =========================================================================

    def _schema(self, node: Any) -> SchemaIR:
        return resolve_modified(self._lower(node))

    def _lower(self, node: Any) -> IRModified:
        """Lower a JSON Schema object, keeping nullability separate."""
        if node is True or node == {}:
            return IRModified(IRUnknown())
        if node is False:
            return IRModified(IRNever())
        if not isinstance(node, dict):
            return IRModified(IRUnknown())

        ref = node.get("$ref")
        if ref is not None:
            try:
                return self._lower_ref(node, ref)
            except UnresolvedReferenceError as exc:
                # Inside an operation the whole operation is skipped instead
                if self._component is None:
                    raise
                self.warnings.append(
                    f'Component schema "{self._component}": {exc}; typed as unknown'
                )
                return IRModified(IRUnknown())

        nullable = node.get("nullable") is True
        schema_type = node.get("type")
        if isinstance(schema_type, list):
            nullable = nullable or "null" in schema_type
            types = [t for t in schema_type if t != "null"]
            if len(types) > 1:
                members = [self._schema({**node, "type": t, "nullable": False}) for t in types]
                return IRModified(IRUnion(members=members), nullable=nullable)
            schema_type = types[0] if types else ("null" if "null" in schema_type else None)

        schema, enum_nullable = self._lower_shape(node, schema_type)
        description = node.get("description")
        if description and hasattr(schema, "description"):
            schema.description = description
        return IRModified(schema, nullable=nullable or enum_nullable)

    def _lower_ref(self, node: dict, ref: Any) -> IRModified:
        if isinstance(ref, str) and ref.startswith(COMPONENT_SCHEMA_PREFIX):
            key = _unescape_pointer(ref[len(COMPONENT_SCHEMA_PREFIX):])
            if key not in self.component_names:
                raise UnresolvedReferenceError(f'unknown component schema "{key}"')
            return IRModified(IRRef(name=self.component_names[key]), nullable=node.get("nullable") is True)
        return self._lower(self._resolve(node))

    def _lower_shape(self, node: dict, schema_type: str | None) -> tuple[SchemaIR, bool]:
        schema_format = node.get("format")
        if schema_format in self.scalars:
            return IRRaw(code=self.scalars[schema_format]), False
        if "const" in node:
            value = node["const"]
            return (IRNull() if value is None else IRLiteral(value=value)), False
        if "enum" in node:
            return self._enum(node["enum"])
        for keyword in ("oneOf", "anyOf"):
            if isinstance(node.get(keyword), list):
                members = [self._schema(member) for member in node[keyword]]
                return (members[0] if len(members) == 1 else IRUnion(members=members)), False
        if isinstance(node.get("allOf"), list):
            members = [self._schema(member) for member in node["allOf"]]
            if "properties" in node:
                rest = {k: v for k, v in node.items() if k not in ("allOf", "description")}
                members.append(self._schema(rest))
            return (members[0] if len(members) == 1 else IRIntersection(members=members)), False

        if schema_type == "object" or (
            schema_type is None and ("properties" in node or "additionalProperties" in node)
        ):
            return self._object(node), False
        if schema_type == "array":
            if isinstance(node.get("prefixItems"), list):
                return IRTuple(items=[self._schema(item) for item in node["prefixItems"]]), False
            items = node.get("items")
            return IRArray(items=self._schema(items) if items is not None else IRUnknown()), False
        if schema_type == "string":
            return (
                IRString(
                    format=FORMAT_MAP.get(schema_format),
                    min_length=node.get("minLength"),
                    max_length=node.get("maxLength"),
                    pattern=node.get("pattern"),
                ),
                False,
            )
        if schema_type in ("integer", "number"):
            return (
                IRNumber(
                    integer=schema_type == "integer",
                    min=node.get("minimum"),
                    max=node.get("maximum"),
                ),
                False,
            )
        if schema_type == "boolean":
            return IRBoolean(), False
        if schema_type == "null":
            return IRNull(), False
        return IRUnknown(), False

    def _enum(self, values: list) -> tuple[SchemaIR, bool]:
        """Lower an enum; a null value makes the result nullable instead."""
        nullable = None in values
        values = [value for value in values if value is not None]
        if not values:
            return (IRNull() if nullable else IRNever()), False
        if all(isinstance(v, str) for v in values) or all(
            isinstance(v, (int, float)) and not isinstance(v, bool) for v in values
        ):
            return IREnum(values=values), nullable
        return IRUnion(members=[IRLiteral(value=value) for value in values]), nullable

    def _object(self, node: dict) -> SchemaIR:
        properties = node.get("properties") or {}
        required = set(node.get("required") or [])
        additional = node.get("additionalProperties")

        if not properties:
            if isinstance(additional, dict) and additional:
                return IRRecord(key_type=IRString(), value_type=self._schema(additional))
            if additional is not False:
                return IRRecord(key_type=IRString(), value_type=IRUnknown())

        result = {}
        for key, prop_node in properties.items():
            modified = self._lower(prop_node)
            description = prop_node.get("description") if isinstance(prop_node, dict) else None
            if key not in required:
                modified = IRModified(modified.schema, nullish=True)
            result[key] = to_property(modified, description)

        if additional is None:
            extra = None
        elif isinstance(additional, bool):
            extra = additional
        elif isinstance(additional, dict) and additional:
            extra = self._schema(additional)
        else:
            extra = True
        return IRObject(properties=result, additional_properties=extra)

    # =========================================================================
    # Operations
    # =========================================================================

    def _operation(
        self, method: str, path: str, path_item: dict, operation: dict
    ) -> list[NamedSchema]:
        name = to_operation_name(method, path, operation.get("operationId"))
        entries = []

        params = self._parameters(path_item, operation)
        if params.properties:
            entries.append(create_named_schema(f"{name}Params", params, "params"))

        body = operation.get("requestBody")
        if body is not None:
            schema_node = self._media_schema(self._resolve(body).get("content"))
            if schema_node is not None:
                entries.append(create_named_schema(f"{name}Request", self._schema(schema_node), "input"))

        response_node = self._success_response(operation.get("responses") or {})
        if response_node is not None:
            entries.append(create_named_schema(f"{name}Response", self._schema(response_node), "response"))
        return entries

    def _merged_parameters(self, path_item: dict, operation: dict) -> dict[tuple[str, str], dict]:
        """Path-level parameters overridden by operation-level ones, by (name, in)."""
        merged: dict[tuple[str, str], dict] = {}
        for raw in list(path_item.get("parameters") or []) + list(operation.get("parameters") or []):
            param = self._resolve(raw)
            if not isinstance(param, dict) or "name" not in param:
                continue
            merged[(param["name"], param.get("in", ""))] = param
        return merged

    def _parameters(self, path_item: dict, operation: dict) -> IRObject:
        properties = {}
        for (param_name, location), param in self._merged_parameters(path_item, operation).items():
            if location not in PARAMETER_LOCATIONS:
                continue
            modified = self._lower(param.get("schema") or {})
            required = param.get("required") is True or location == "path"
            if not required:
                # Absent on the wire, not null, unless the schema says nullable
                modified = IRModified(modified.schema, optional=True, nullable=modified.nullable)
            properties[param_name] = to_property(modified, param.get("description"))
        return IRObject(properties=properties)

    def _media_schema(self, content: Any) -> Any:
        if not isinstance(content, dict):
            return None
        with_schema = [
            (media_type, media) for media_type, media in content.items()
            if isinstance(media, dict) and "schema" in media
        ]
        for media_type, media in with_schema:
            if media_type == "application/json":
                return media["schema"]
        for media_type, media in with_schema:
            if "json" in media_type:
                return media["schema"]
        return with_schema[0][1]["schema"] if with_schema else None

    def _success_response(self, responses: dict) -> Any:
        # YAML loads unquoted status codes as ints
        by_status = {str(code): response for code, response in responses.items()}
        for status in sorted(by_status):
            if not status.startswith("2"):
                continue
            response = self._resolve(by_status[status])
            if isinstance(response, dict):
                schema_node = self._media_schema(response.get("content"))
                if schema_node is not None:
                    return schema_node
        return None


def parse_openapi_to_ir(
    document: dict[str, Any],
    scalars: dict[str, str] | None = None,
    validator: str | None = None,
    include: list[str] | None = None,
    exclude: list[str] | None = None,
) -> SchemaIRResult:
    """Convenience wrapper around OpenAPISchemaParser."""
    return OpenAPISchemaParser(document, scalars, validator, include, exclude).parse()
