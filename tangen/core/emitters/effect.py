"""Effect Schema emitter.

Effect's schema objects do not implement the Standard Schema contract on
their own, so with standard_schema enabled every entry also exports a
Schema.standardSchemaV1 adapter.
"""

from ..ir import (
    OPTIONAL_ONLY,
    IRArray,
    IRBigInt,
    IRBoolean,
    IRDate,
    IREnum,
    IRIntersection,
    IRLiteral,
    IRNever,
    IRNull,
    IRNumber,
    IRObject,
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
)
from ..utils import get_safe_property_name, quote_string, to_schema_name
from .base import (
    EmitContext,
    EmitterOptions,
    EmitterResult,
    emit_module,
    format_literal,
    format_number,
    format_object_literal,
    split_nullish_members,
)

# Formats are kept as strings at the type level, checked by pattern
FORMAT_PATTERNS = {
    "email": r"/^[^\s@]+@[^\s@]+\.[^\s@]+$/",
    "url": r"/^[a-zA-Z][a-zA-Z\d+\-.]*:\/\/\S+$/",
    "datetime": r"/^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})$/",
    "date": r"/^\d{4}-\d{2}-\d{2}$/",
    "time": r"/^\d{2}:\d{2}:\d{2}(\.\d+)?$/",
    "ipv4": r"/^(\d{1,3}\.){3}\d{1,3}$/",
    "ipv6": r"/^[0-9a-fA-F:]+$/",
}

PRIMITIVES = {
    IRBoolean: "Schema.Boolean",
    IRBigInt: "Schema.BigIntFromSelf",
    IRNull: "Schema.Null",
    IRUndefined: "Schema.Undefined",
    IRUnknown: "Schema.Unknown",
    IRNever: "Schema.Never",
    IRDate: "Schema.DateFromSelf",
}


def _pipe(base: str, filters: list[str]) -> str:
    if not filters:
        return base
    return f"{base}.pipe({', '.join(filters)})"


def standard_schema_name(schema_var_name: str) -> str:
    """e.g. "petSchema" -> "petStandardSchema"."""
    return schema_var_name.removesuffix("Schema") + "StandardSchema"


class EffectEmitter:
    """Emits Effect Schema definitions."""

    library = "effect"

    def emit(
        self, schemas: list[NamedSchema], options: EmitterOptions | None = None
    ) -> EmitterResult:
        return emit_module(
            self,
            schemas,
            options,
            lambda node, ctx: self._render(node, ctx, 0),
            self._standard_schema_lines,
        )

    def get_import_statement(self) -> str:
        return 'import { Schema } from "effect"'

    def get_type_inference(self, schema_var_name: str, type_name: str) -> str:
        return f"export type {type_name} = Schema.Schema.Type<typeof {schema_var_name}>"

    def _standard_schema_lines(
        self, schema_var_name: str, named: NamedSchema, ctx: EmitContext
    ) -> list[str]:
        if not ctx.options.standard_schema:
            return []
        return [
            f"export const {standard_schema_name(schema_var_name)} = "
            f"Schema.standardSchemaV1({schema_var_name});"
        ]

    def _render(self, node: SchemaIR, ctx: EmitContext, depth: int) -> str:
        primitive = PRIMITIVES.get(type(node))
        if primitive:
            return primitive
        if isinstance(node, IRString):
            return self._string(node)
        if isinstance(node, IRNumber):
            filters = []
            if node.min is not None:
                filters.append(f"Schema.greaterThanOrEqualTo({format_number(node.min)})")
            if node.max is not None:
                filters.append(f"Schema.lessThanOrEqualTo({format_number(node.max)})")
            return _pipe("Schema.Int" if node.integer else "Schema.Number", filters)
        if isinstance(node, IRObject):
            return self._object(node, ctx, depth)
        if isinstance(node, IRArray):
            return f"Schema.Array({self._render(node.items, ctx, depth)})"
        if isinstance(node, IRTuple):
            items = ", ".join(self._render(item, ctx, depth) for item in node.items)
            return f"Schema.Tuple({items})"
        if isinstance(node, IRRecord):
            key = self._render(node.key_type, ctx, depth)
            value = self._render(node.value_type, ctx, depth)
            return f"Schema.Record({{ key: {key}, value: {value} }})"
        if isinstance(node, IREnum):
            if not node.values:
                return "Schema.Never"
            return f"Schema.Literal({', '.join(format_literal(v) for v in node.values)})"
        if isinstance(node, IRLiteral):
            return f"Schema.Literal({format_literal(node.value)})"
        if isinstance(node, IRUnion):
            return self._union(node, ctx, depth)
        if isinstance(node, IRIntersection):
            members = [self._render(member, ctx, depth) for member in node.members]
            if not members:
                return "Schema.Unknown"
            code = members[0]
            for member in members[1:]:
                code = f"Schema.extend({code}, {member})"
            return code
        if isinstance(node, IRRef):
            custom = ctx.custom_scalar(node.name)
            if custom:
                return custom
            name = to_schema_name(node.name)
            if ctx.is_forward_ref(node.name):
                return f"Schema.suspend((): Schema.Schema<any> => {name})"
            return name
        if isinstance(node, IRRaw):
            return node.code
        ctx.unsupported(node)
        return "Schema.Unknown"

    def _string(self, node: IRString) -> str:
        if node.format == "uuid":
            base, filters = "Schema.UUID", []
        else:
            base = "Schema.String"
            pattern = FORMAT_PATTERNS.get(node.format or "")
            filters = [f"Schema.pattern({pattern})"] if pattern else []
        if node.min_length is not None:
            filters.append(f"Schema.minLength({node.min_length})")
        if node.max_length is not None:
            filters.append(f"Schema.maxLength({node.max_length})")
        if node.pattern:
            filters.append(f"Schema.pattern(new RegExp({quote_string(node.pattern)}))")
        return _pipe(base, filters)

    def _object(self, node: IRObject, ctx: EmitContext, depth: int) -> str:
        fields = []
        for key, prop in node.properties.items():
            value = self._render(prop.schema, ctx, depth + 1)
            if not prop.required:
                if prop.optional_style != OPTIONAL_ONLY:
                    value = f"Schema.NullOr({value})"
                value = f"Schema.optional({value})"
            fields.append((get_safe_property_name(key), value, prop.description))
        body = format_object_literal(fields, depth)
        extra = node.additional_properties
        if extra is False:
            return (
                f"Schema.Struct({body}).annotations("
                '{ parseOptions: { onExcessProperty: "error" } })'
            )
        if extra is True:
            return f"Schema.Struct({body}, Schema.Record({{ key: Schema.String, value: Schema.Unknown }}))"
        if extra is not None:
            rest = self._render(extra, ctx, depth)
            return f"Schema.Struct({body}, Schema.Record({{ key: Schema.String, value: {rest} }}))"
        return f"Schema.Struct({body})"

    def _union(self, node: IRUnion, ctx: EmitContext, depth: int) -> str:
        if not node.members:
            return "Schema.Never"
        rest, has_null, has_undefined = split_nullish_members(node.members)
        if not rest or not (has_null or has_undefined):
            members = [self._render(member, ctx, depth) for member in node.members]
            return members[0] if len(members) == 1 else f"Schema.Union({', '.join(members)})"
        if len(rest) == 1:
            inner = self._render(rest[0], ctx, depth)
        else:
            inner = f"Schema.Union({', '.join(self._render(m, ctx, depth) for m in rest)})"
        if has_null and has_undefined:
            return f"Schema.NullishOr({inner})"
        if has_null:
            return f"Schema.NullOr({inner})"
        return f"Schema.UndefinedOr({inner})"


effect_emitter = EffectEmitter()
