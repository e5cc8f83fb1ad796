"""ArkType emitter.

ArkType definitions mix three forms: string DSL ("string | number"),
definition literals ({ ... } and [ ... ]) and Type expressions
(type.enumerated(...), schema variables, raw code). Each IR node renders to
a Definition tagged with its form so it can be embedded correctly: DSL is
quoted inside literals, and anything but an expression is wrapped in
type(...) where a Type instance is needed.
"""

from typing import NamedTuple

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
from ..utils import quote_string, to_schema_name
from .base import (
    INDENT,
    EmitContext,
    EmitterOptions,
    EmitterResult,
    emit_module,
    format_doc_comment,
    format_literal,
    format_number,
)

DSL = "dsl"
LITERAL = "literal"
EXPR = "expr"

STRING_FORMATS = {
    "email": "string.email",
    "url": "string.url",
    "uuid": "string.uuid",
    "datetime": "string.date.iso",
    "date": r"/^\d{4}-\d{2}-\d{2}$/",
    "time": r"/^\d{2}:\d{2}:\d{2}(\.\d+)?$/",
    "ipv4": "string.ip.v4",
    "ipv6": "string.ip.v6",
}

PRIMITIVES = {
    IRBoolean: "boolean",
    IRBigInt: "bigint",
    IRNull: "null",
    IRUndefined: "undefined",
    IRUnknown: "unknown",
    IRNever: "never",
    IRDate: "Date",
}


class Definition(NamedTuple):
    text: str
    form: str


def as_type(definition: Definition) -> str:
    """Expression evaluating to an ArkType Type instance."""
    if definition.form == DSL:
        return f"type({quote_string(definition.text)})"
    if definition.form == LITERAL:
        return f"type({definition.text})"
    return definition.text


def as_value(definition: Definition) -> str:
    """Form usable as a value inside an object or tuple definition."""
    if definition.form == DSL:
        return quote_string(definition.text)
    return definition.text


def _group(text: str) -> str:
    return f"({text})" if " " in text else text


class ArkTypeEmitter:
    """Emits ArkType definitions, preferring the string DSL where possible."""

    library = "arktype"

    def emit(
        self, schemas: list[NamedSchema], options: EmitterOptions | None = None
    ) -> EmitterResult:
        return emit_module(
            self, schemas, options, lambda node, ctx: as_type(self._render(node, ctx, 0))
        )

    def get_import_statement(self) -> str:
        return 'import { type } from "arktype"'

    def get_type_inference(self, schema_var_name: str, type_name: str) -> str:
        return f"export type {type_name} = typeof {schema_var_name}.infer"

    def _render(self, node: SchemaIR, ctx: EmitContext, depth: int) -> Definition:
        primitive = PRIMITIVES.get(type(node))
        if primitive:
            return Definition(primitive, DSL)
        if isinstance(node, IRString):
            return self._string(node)
        if isinstance(node, IRNumber):
            parts = ["number.integer" if node.integer else "number"]
            if node.min is not None:
                parts.append(f"number >= {format_number(node.min)}")
            if node.max is not None:
                parts.append(f"number <= {format_number(node.max)}")
            return Definition(" & ".join(parts), DSL)
        if isinstance(node, IRObject):
            return self._object(node, ctx, depth)
        if isinstance(node, IRArray):
            items = self._render(node.items, ctx, depth)
            if items.form == DSL:
                return Definition(f"{_group(items.text)}[]", DSL)
            return Definition(f"{as_type(items)}.array()", EXPR)
        if isinstance(node, IRTuple):
            items = ", ".join(as_value(self._render(item, ctx, depth)) for item in node.items)
            return Definition(f"[{items}]", LITERAL)
        if isinstance(node, IRRecord):
            key = self._render(node.key_type, ctx, depth)
            key_text = key.text if key.form == DSL else "string"
            value = as_value(self._render(node.value_type, ctx, depth + 1))
            return Definition(f"{{ {quote_string(f'[{key_text}]')}: {value} }}", LITERAL)
        if isinstance(node, IREnum):
            if not node.values:
                return Definition("never", DSL)
            values = ", ".join(format_literal(value) for value in node.values)
            return Definition(f"type.enumerated({values})", EXPR)
        if isinstance(node, IRLiteral):
            return self._literal(node.value)
        if isinstance(node, IRUnion):
            return self._combine(node.members, ctx, depth, " | ", "or", "never")
        if isinstance(node, IRIntersection):
            return self._combine(node.members, ctx, depth, " & ", "and", "unknown")
        if isinstance(node, IRRef):
            custom = ctx.custom_scalar(node.name)
            if custom:
                return Definition(custom, EXPR)
            if ctx.is_forward_ref(node.name):
                ctx.warnings.append(
                    f'Forward reference to "{node.name}" in {ctx.current} cannot be '
                    "expressed as an ArkType constant; emitted as unknown"
                )
                return Definition("unknown", DSL)
            return Definition(to_schema_name(node.name), EXPR)
        if isinstance(node, IRRaw):
            return Definition(node.code, EXPR)
        ctx.unsupported(node)
        return Definition("unknown", DSL)

    def _string(self, node: IRString) -> Definition:
        parts = [STRING_FORMATS.get(node.format or "", "string")]
        if node.min_length is not None:
            parts.append(f"string >= {node.min_length}")
        if node.max_length is not None:
            parts.append(f"string <= {node.max_length}")
        if node.pattern:
            parts.append("/" + node.pattern.replace("/", "\\/") + "/")
        return Definition(" & ".join(parts), DSL)

    def _literal(self, value) -> Definition:
        if isinstance(value, str):
            if "'" in value or "\\" in value:
                return Definition(f"type.unit({quote_string(value)})", EXPR)
            return Definition(f"'{value}'", DSL)
        return Definition(format_literal(value), DSL)

    def _object(self, node: IRObject, ctx: EmitContext, depth: int) -> Definition:
        inner = INDENT * (depth + 1)
        lines = []
        for key, prop in node.properties.items():
            value = self._render(prop.schema, ctx, depth + 1)
            if not prop.required:
                key = f"{key}?"
                if prop.optional_style != OPTIONAL_ONLY:
                    value = self._or_null(value)
            doc = format_doc_comment(prop.description, inner)
            if doc:
                lines.append(doc)
            # Every key is quoted exactly once, here and nowhere else
            lines.append(f"{inner}{quote_string(key)}: {as_value(value)},")
        extra = node.additional_properties
        if extra is False:
            lines.append(f'{inner}"+": "reject",')
        elif extra is not None and extra is not True:
            rest = as_value(self._render(extra, ctx, depth + 1))
            lines.append(f'{inner}"[string]": {rest},')
        if not lines:
            return Definition("{}", LITERAL)
        return Definition("{\n" + "\n".join(lines) + "\n" + INDENT * depth + "}", LITERAL)

    def _or_null(self, value: Definition) -> Definition:
        if value.form == DSL:
            return Definition(f"{value.text} | null", DSL)
        return Definition(f'{as_type(value)}.or("null")', EXPR)

    def _combine(
        self,
        members: list[SchemaIR],
        ctx: EmitContext,
        depth: int,
        operator: str,
        method: str,
        empty: str,
    ) -> Definition:
        rendered = [self._render(member, ctx, depth) for member in members]
        if not rendered:
            return Definition(empty, DSL)
        if len(rendered) == 1:
            return rendered[0]
        if all(item.form == DSL for item in rendered):
            texts = [item.text for item in rendered]
            if operator == " & ":
                texts = [f"({text})" if "|" in text else text for text in texts]
            return Definition(operator.join(texts), DSL)
        code = as_type(rendered[0])
        for item in rendered[1:]:
            code += f".{method}({as_type(item)})"
        return Definition(code, EXPR)


arktype_emitter = ArkTypeEmitter()
