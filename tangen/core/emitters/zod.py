"""Zod (v4) emitter."""

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

STRING_FORMATS = {
    "email": "z.email()",
    "url": "z.url()",
    "uuid": "z.uuid()",
    "datetime": "z.iso.datetime()",
    "date": "z.iso.date()",
    "time": "z.iso.time()",
    "ipv4": "z.ipv4()",
    "ipv6": "z.ipv6()",
}

PRIMITIVES = {
    IRBoolean: "z.boolean()",
    IRBigInt: "z.bigint()",
    IRNull: "z.null()",
    IRUndefined: "z.undefined()",
    IRUnknown: "z.unknown()",
    IRNever: "z.never()",
    IRDate: "z.date()",
}


class ZodEmitter:
    """Emits Zod schemas using the builder-style v4 API."""

    library = "zod"

    def emit(
        self, schemas: list[NamedSchema], options: EmitterOptions | None = None
    ) -> EmitterResult:
        return emit_module(self, schemas, options, lambda node, ctx: self._render(node, ctx, 0))

    def get_import_statement(self) -> str:
        return 'import * as z from "zod"'

    def get_type_inference(self, schema_var_name: str, type_name: str) -> str:
        return f"export type {type_name} = z.infer<typeof {schema_var_name}>"

    def _render(self, node: SchemaIR, ctx: EmitContext, depth: int) -> str:
        primitive = PRIMITIVES.get(type(node))
        if primitive:
            return primitive
        if isinstance(node, IRString):
            return self._string(node)
        if isinstance(node, IRNumber):
            code = "z.number()"
            if node.integer:
                code += ".int()"
            if node.min is not None:
                code += f".min({format_number(node.min)})"
            if node.max is not None:
                code += f".max({format_number(node.max)})"
            return code
        if isinstance(node, IRObject):
            return self._object(node, ctx, depth)
        if isinstance(node, IRArray):
            return f"z.array({self._render(node.items, ctx, depth)})"
        if isinstance(node, IRTuple):
            items = ", ".join(self._render(item, ctx, depth) for item in node.items)
            return f"z.tuple([{items}])"
        if isinstance(node, IRRecord):
            key = self._render(node.key_type, ctx, depth)
            value = self._render(node.value_type, ctx, depth)
            return f"z.record({key}, {value})"
        if isinstance(node, IREnum):
            return self._enum(node)
        if isinstance(node, IRLiteral):
            return f"z.literal({format_literal(node.value)})"
        if isinstance(node, IRUnion):
            return self._union(node, ctx, depth)
        if isinstance(node, IRIntersection):
            return self._intersection(node, ctx, depth)
        if isinstance(node, IRRef):
            custom = ctx.custom_scalar(node.name)
            if custom:
                return custom
            name = to_schema_name(node.name)
            if ctx.is_forward_ref(node.name):
                return f"z.lazy((): z.ZodType<any> => {name})"
            return name
        if isinstance(node, IRRaw):
            return node.code
        ctx.unsupported(node)
        return "z.unknown()"

    def _string(self, node: IRString) -> str:
        code = STRING_FORMATS.get(node.format or "", "z.string()")
        if node.min_length is not None:
            code += f".min({node.min_length})"
        if node.max_length is not None:
            code += f".max({node.max_length})"
        if node.pattern:
            code += f".regex(new RegExp({quote_string(node.pattern)}))"
        return code

    def _object(self, node: IRObject, ctx: EmitContext, depth: int) -> str:
        fields = []
        for key, prop in node.properties.items():
            value = self._render(prop.schema, ctx, depth + 1)
            if not prop.required:
                value += ".optional()" if prop.optional_style == OPTIONAL_ONLY else ".nullish()"
            fields.append((get_safe_property_name(key), value, prop.description))
        body = format_object_literal(fields, depth)
        extra = node.additional_properties
        if extra is False:
            return f"z.strictObject({body})"
        if extra is True:
            return f"z.looseObject({body})"
        if extra is not None:
            return f"z.object({body}).catchall({self._render(extra, ctx, depth)})"
        return f"z.object({body})"

    def _enum(self, node: IREnum) -> str:
        if not node.values:
            return "z.never()"
        if all(isinstance(value, str) for value in node.values):
            values = ", ".join(quote_string(value) for value in node.values)
            return f"z.enum([{values}])"
        literals = [f"z.literal({format_literal(value)})" for value in node.values]
        if len(literals) == 1:
            return literals[0]
        return f"z.union([{', '.join(literals)}])"

    def _union(self, node: IRUnion, ctx: EmitContext, depth: int) -> str:
        rest, has_null, has_undefined = split_nullish_members(node.members)
        if not node.members:
            return "z.never()"
        if not rest or not (has_null or has_undefined):
            members = [self._render(member, ctx, depth) for member in node.members]
            return members[0] if len(members) == 1 else f"z.union([{', '.join(members)}])"
        if len(rest) == 1:
            inner = self._render(rest[0], ctx, depth)
        else:
            inner = f"z.union([{', '.join(self._render(m, ctx, depth) for m in rest)}])"
        if has_null and has_undefined:
            return f"{inner}.nullish()"
        if has_null:
            return f"{inner}.nullable()"
        return f"{inner}.optional()"

    def _intersection(self, node: IRIntersection, ctx: EmitContext, depth: int) -> str:
        members = [self._render(member, ctx, depth) for member in node.members]
        if not members:
            return "z.unknown()"
        code = members[0]
        for member in members[1:]:
            code = f"z.intersection({code}, {member})"
        return code


zod_emitter = ZodEmitter()
