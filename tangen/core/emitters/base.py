"""Shared emitter contract and module rendering.

Every emitter implements the Emitter protocol independently; this module
only holds the result/option types, the per-emission context and the
Jinja2 module template that all of them render through.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, Protocol, runtime_checkable

from jinja2 import Environment, PackageLoader, select_autoescape

from ..ir import NamedSchema, SchemaIR
from ..utils import quote_string, to_schema_name

HEADER_LINES = (
    "/* eslint-disable */",
    "/* This file is auto-generated by tangen. Do not edit. */",
)

INDENT = "  "


@dataclass
class EmitterOptions:
    """Options for emitting IR to code.

    Attributes:
        custom_scalars: Scalar name -> validator-specific code. A ref to one
            of these names is emitted verbatim instead of by variable name.
        standard_schema: The module is consumed by a form-validation
            context that relies on the Standard Schema contract.
    """
    custom_scalars: dict[str, str] = field(default_factory=dict)
    standard_schema: bool = False


@dataclass
class EmitterResult:
    """Generated module source plus any non-fatal warnings."""
    content: str
    warnings: list[str] = field(default_factory=list)


@runtime_checkable
class Emitter(Protocol):
    """Converts ordered named IR schemas into one validator's source code."""

    library: str

    def emit(
        self, schemas: list[NamedSchema], options: EmitterOptions | None = None
    ) -> EmitterResult:
        """Emit schemas, already in dependency order, as one module."""
        ...

    def get_import_statement(self) -> str:
        """Import statement for the validator library."""
        ...

    def get_type_inference(self, schema_var_name: str, type_name: str) -> str:
        """Type export inferring `type_name` from `schema_var_name`."""
        ...


@dataclass
class ModuleEntry:
    """One rendered `export const` plus its inferred type."""
    schema_name: str
    code: str
    type_line: str
    doc: str = ""
    extra_lines: list[str] = field(default_factory=list)


@dataclass
class EmitContext:
    """Mutable state for a single emit() call.

    declared holds the entry names already written to the module, so a ref
    to a module entry outside it is a forward reference.
    """
    options: EmitterOptions
    library: str
    module_names: set[str] = field(default_factory=set)
    declared: set[str] = field(default_factory=set)
    warnings: list[str] = field(default_factory=list)
    current: str = ""

    def custom_scalar(self, name: str) -> str | None:
        return self.options.custom_scalars.get(name)

    def is_forward_ref(self, name: str) -> bool:
        return name in self.module_names and name not in self.declared

    def unsupported(self, node: object) -> None:
        kind = getattr(node, "kind", type(node).__name__)
        self.warnings.append(
            f'Unsupported schema kind "{kind}" in {self.current}; '
            f"emitted as unknown for {self.library}"
        )


# =============================================================================
# Formatting helpers
# =============================================================================


def format_doc_comment(description: str | None, indent: str = "") -> str:
    """Render a description as a JSDoc comment, or "" when there is none."""
    if not description or not description.strip():
        return ""
    lines = description.strip().replace("*/", "*\\/").splitlines()
    if len(lines) == 1:
        return f"{indent}/** {lines[0].strip()} */"
    body = "\n".join(
        f"{indent} * {line.rstrip()}" if line.strip() else f"{indent} *" for line in lines
    )
    return f"{indent}/**\n{body}\n{indent} */"


def format_literal(value: str | int | float | bool) -> str:
    """Render a JSON-compatible scalar as a JavaScript literal."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return quote_string(value)
    return format_number(value)


def format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_object_literal(
    fields: Iterable[tuple[str, str, str | None]], depth: int
) -> str:
    """Render `(key, value, description)` triples as a multi-line object literal.

    Keys must already be in their final form (quoted where needed).
    """
    inner = INDENT * (depth + 1)
    lines = []
    for key, value, description in fields:
        doc = format_doc_comment(description, inner)
        if doc:
            lines.append(doc)
        lines.append(f"{inner}{key}: {value},")
    if not lines:
        return "{}"
    return "{\n" + "\n".join(lines) + "\n" + INDENT * depth + "}"


def split_nullish_members(members: list[SchemaIR]) -> tuple[list[SchemaIR], bool, bool]:
    """Separate null/undefined members from the rest of a union."""
    rest = []
    has_null = False
    has_undefined = False
    for member in members:
        kind = getattr(member, "kind", None)
        if kind == "null":
            has_null = True
        elif kind == "undefined":
            has_undefined = True
        else:
            rest.append(member)
    return rest, has_null, has_undefined


# =============================================================================
# Module rendering
# =============================================================================

_env = Environment(
    loader=PackageLoader("tangen", "templates"),
    autoescape=select_autoescape(),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


def render_module(import_statement: str, entries: list[ModuleEntry]) -> str:
    """Render the complete module text."""
    template = _env.get_template("schema_module.ts.j2")
    return template.render(
        header_lines=HEADER_LINES,
        import_statement=import_statement,
        entries=entries,
    )


def emit_module(
    emitter: Emitter,
    schemas: list[NamedSchema],
    options: EmitterOptions | None,
    render_schema: Callable[[SchemaIR, EmitContext], str],
    extra_lines: Callable[[str, NamedSchema, EmitContext], list[str]] | None = None,
) -> EmitterResult:
    """Drive one emitter over an ordered schema list.

    Args:
        emitter: The emitter supplying import and type-inference syntax.
        schemas: Named schemas in the order they should appear.
        options: Emitter options; defaults are used when None.
        render_schema: Renders one top-level IR node to an expression.
        extra_lines: Optional extra statements to add after an entry.

    Returns:
        EmitterResult with the module content and collected warnings.
    """
    ctx = EmitContext(
        options=options or EmitterOptions(),
        library=emitter.library,
        module_names={entry.name for entry in schemas},
    )
    entries = []
    for named in schemas:
        ctx.current = named.name
        schema_name = to_schema_name(named.name)
        code = render_schema(named.schema, ctx)
        ctx.declared.add(named.name)
        entries.append(
            ModuleEntry(
                schema_name=schema_name,
                code=code,
                type_line=emitter.get_type_inference(schema_name, named.name) + ";",
                doc=format_doc_comment(getattr(named.schema, "description", None)),
                extra_lines=extra_lines(schema_name, named, ctx) if extra_lines else [],
            )
        )
    content = render_module(emitter.get_import_statement() + ";", entries)
    return EmitterResult(content=content, warnings=ctx.warnings)
