"""Valibot emitter.

Valibot composes validation actions with v.pipe(), so string formats and
numeric constraints become pipe actions instead of method chains.
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

STRING_ACTIONS = {
    "email": "v.email()",
    "url": "v.url()",
    "uuid": "v.uuid()",
    "datetime": "v.isoTimestamp()",
    "date": "v.isoDate()",
    "time": "v.isoTime()",
    "ipv4": "v.ipv4()",
    "ipv6": "v.ipv6()",
}

PRIMITIVES = {
    IRBoolean: "v.boolean()",
    IRBigInt: "v.bigint()",
    IRNull: "v.null()",
    IRUndefined: "v.undefined()",
    IRUnknown: "v.unknown()",
    IRNever: "v.never()",
    IRDate: "v.date()",
}


def _pipe(base: str, actions: list[str]) -> str:
    if not actions:
        return base
    return f"v.pipe({base}, {', '.join(actions)})"


class ValibotEmitter:
    """Emits Valibot schemas."""

    library = "valibot"

    def emit(
        self, schemas: list[NamedSchema], options: EmitterOptions | None = None
    ) -> EmitterResult:
        return emit_module(self, schemas, options, lambda node, ctx: self._render(node, ctx, 0))

    def get_import_statement(self) -> str:
        return 'import * as v from "valibot"'

    def get_type_inference(self, schema_var_name: str, type_name: str) -> str:
        return f"export type {type_name} = v.InferOutput<typeof {schema_var_name}>"

    def _render(self, node: SchemaIR, ctx: EmitContext, depth: int) -> str:
        primitive = PRIMITIVES.get(type(node))
        if primitive:
            return primitive
        if isinstance(node, IRString):
            actions = []
            if node.format in STRING_ACTIONS:
                actions.append(STRING_ACTIONS[node.format])
            if node.min_length is not None:
                actions.append(f"v.minLength({node.min_length})")
            if node.max_length is not None:
                actions.append(f"v.maxLength({node.max_length})")
            if node.pattern:
                actions.append(f"v.regex(new RegExp({quote_string(node.pattern)}))")
            return _pipe("v.string()", actions)
        if isinstance(node, IRNumber):
            actions = []
            if node.integer:
                actions.append("v.integer()")
            if node.min is not None:
                actions.append(f"v.minValue({format_number(node.min)})")
            if node.max is not None:
                actions.append(f"v.maxValue({format_number(node.max)})")
            return _pipe("v.number()", actions)
        if isinstance(node, IRObject):
            return self._object(node, ctx, depth)
        if isinstance(node, IRArray):
            return f"v.array({self._render(node.items, ctx, depth)})"
        if isinstance(node, IRTuple):
            items = ", ".join(self._render(item, ctx, depth) for item in node.items)
            return f"v.tuple([{items}])"
        if isinstance(node, IRRecord):
            key = self._render(node.key_type, ctx, depth)
            value = self._render(node.value_type, ctx, depth)
            return f"v.record({key}, {value})"
        if isinstance(node, IREnum):
            if not node.values:
                return "v.never()"
            if all(isinstance(value, str) for value in node.values):
                return f"v.picklist([{', '.join(quote_string(value) for value in node.values)}])"
            literals = [f"v.literal({format_literal(value)})" for value in node.values]
            return literals[0] if len(literals) == 1 else f"v.union([{', '.join(literals)}])"
        if isinstance(node, IRLiteral):
            return f"v.literal({format_literal(node.value)})"
        if isinstance(node, IRUnion):
            return self._union(node, ctx, depth)
        if isinstance(node, IRIntersection):
            members = [self._render(member, ctx, depth) for member in node.members]
            if not members:
                return "v.unknown()"
            return members[0] if len(members) == 1 else f"v.intersect([{', '.join(members)}])"
        if isinstance(node, IRRef):
            custom = ctx.custom_scalar(node.name)
            if custom:
                return custom
            name = to_schema_name(node.name)
            if ctx.is_forward_ref(node.name):
                return f"v.lazy((): v.GenericSchema<any> => {name})"
            return name
        if isinstance(node, IRRaw):
            return node.code
        ctx.unsupported(node)
        return "v.unknown()"

    def _object(self, node: IRObject, ctx: EmitContext, depth: int) -> str:
        fields = []
        for key, prop in node.properties.items():
            value = self._render(prop.schema, ctx, depth + 1)
            if not prop.required:
                wrapper = "v.optional" if prop.optional_style == OPTIONAL_ONLY else "v.nullish"
                value = f"{wrapper}({value})"
            fields.append((get_safe_property_name(key), value, prop.description))
        body = format_object_literal(fields, depth)
        extra = node.additional_properties
        if extra is False:
            return f"v.strictObject({body})"
        if extra is True:
            return f"v.looseObject({body})"
        if extra is not None:
            return f"v.objectWithRest({body}, {self._render(extra, ctx, depth)})"
        return f"v.object({body})"

    def _union(self, node: IRUnion, ctx: EmitContext, depth: int) -> str:
        if not node.members:
            return "v.never()"
        rest, has_null, has_undefined = split_nullish_members(node.members)
        if not rest or not (has_null or has_undefined):
            members = [self._render(member, ctx, depth) for member in node.members]
            return members[0] if len(members) == 1 else f"v.union([{', '.join(members)}])"
        if len(rest) == 1:
            inner = self._render(rest[0], ctx, depth)
        else:
            inner = f"v.union([{', '.join(self._render(m, ctx, depth) for m in rest)}])"
        if has_null and has_undefined:
            return f"v.nullish({inner})"
        if has_null:
            return f"v.nullable({inner})"
        return f"v.optional({inner})"


valibot_emitter = ValibotEmitter()
