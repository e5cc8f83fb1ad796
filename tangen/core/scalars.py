"""Custom scalar handling for schema generation.

Maps GraphQL custom scalars to IR, and checks caller-supplied scalar
overrides. Overrides are validator-specific source code emitted verbatim,
so they are the one place parsing needs to know the target validator.

Example usage:
    from tangen.core.scalars import ScalarRegistry, RawScalarHandler

    registry = ScalarRegistry()
    registry.register("Money", RawScalarHandler("z.string().regex(/^\\d+\\.\\d{2}$/)"))

    schema = registry.to_ir("DateTime")  # IRString(format="datetime")
"""

import re
from typing import Protocol, runtime_checkable

from .errors import ScalarMappingError
from .ir import IRBoolean, IRNumber, IRRaw, IRRecord, IRString, IRUnknown, SchemaIR


@runtime_checkable
class ScalarHandler(Protocol):
    """Protocol for custom scalar handlers.

    Implement this protocol to control how a GraphQL scalar is lowered
    into the IR.
    """

    def to_ir(self) -> SchemaIR:
        """Return a fresh IR node for the scalar."""
        ...


class StringFormatHandler:
    """Handler for scalars transported as formatted strings."""

    def __init__(self, string_format: str | None = None):
        self.string_format = string_format

    def to_ir(self) -> SchemaIR:
        return IRString(format=self.string_format)


class DateTimeHandler(StringFormatHandler):
    """Handler for DateTime scalars using ISO 8601 format."""

    def __init__(self):
        super().__init__("datetime")


class DateHandler(StringFormatHandler):
    """Handler for Date scalars using ISO 8601 date format."""

    def __init__(self):
        super().__init__("date")


class TimeHandler(StringFormatHandler):
    def __init__(self):
        super().__init__("time")


class UUIDHandler(StringFormatHandler):
    def __init__(self):
        super().__init__("uuid")


class JSONHandler:
    """Handler for JSON scalars (any value)."""

    def to_ir(self) -> SchemaIR:
        return IRUnknown()


class JSONObjectHandler:
    """Handler for JSONObject scalars (string-keyed map of anything)."""

    def to_ir(self) -> SchemaIR:
        return IRRecord(key_type=IRString(), value_type=IRUnknown())


class RawScalarHandler:
    """Handler for a caller-supplied, validator-specific expression."""

    def __init__(self, code: str):
        self.code = code

    def to_ir(self) -> SchemaIR:
        return IRRaw(code=self.code)


BUILTIN_SCALARS: dict[str, ScalarHandler] = {
    "ID": StringFormatHandler(),
    "String": StringFormatHandler(),
}


class _IntHandler:
    def to_ir(self) -> SchemaIR:
        return IRNumber(integer=True)


class _FloatHandler:
    def to_ir(self) -> SchemaIR:
        return IRNumber()


class _BooleanHandler:
    def to_ir(self) -> SchemaIR:
        return IRBoolean()


BUILTIN_SCALARS.update({
    "Int": _IntHandler(),
    "Float": _FloatHandler(),
    "Boolean": _BooleanHandler(),
})


class ScalarRegistry:
    """Registry for scalar handlers.

    Manages the mapping between GraphQL scalar names and their handlers.
    Built-in GraphQL scalars and a few common custom scalars are
    registered by default; overrides replace them.

    Example:
        registry = ScalarRegistry(overrides={"DateTime": "z.iso.datetime()"})
        registry.to_ir("DateTime")  # IRRaw(code="z.iso.datetime()")
    """

    def __init__(self, overrides: dict[str, str] | None = None):
        self._handlers: dict[str, ScalarHandler] = {}
        self._register_defaults()
        for name, code in (overrides or {}).items():
            self.register(name, RawScalarHandler(code))

    def _register_defaults(self):
        """Register built-in default handlers."""
        for name, handler in BUILTIN_SCALARS.items():
            self.register(name, handler)
        self.register("DateTime", DateTimeHandler())
        self.register("Date", DateHandler())
        self.register("Time", TimeHandler())
        self.register("UUID", UUIDHandler())
        self.register("JSON", JSONHandler())
        self.register("JSONObject", JSONObjectHandler())
        self.register("EmailAddress", StringFormatHandler("email"))
        self.register("URL", StringFormatHandler("url"))

    def register(self, scalar_name: str, handler: ScalarHandler):
        """Register a handler for a scalar type."""
        self._handlers[scalar_name] = handler

    def get(self, scalar_name: str) -> ScalarHandler | None:
        """Get the handler for a scalar type, or None if not registered."""
        return self._handlers.get(scalar_name)

    def has(self, scalar_name: str) -> bool:
        """Check if a handler is registered for a scalar type."""
        return scalar_name in self._handlers

    def to_ir(self, scalar_name: str) -> SchemaIR | None:
        """Lower a scalar to IR, or None when nothing is registered."""
        handler = self.get(scalar_name)
        return handler.to_ir() if handler else None


# =============================================================================
# Override plausibility checks
# =============================================================================

# Expression prefixes each validator's code is expected to start with
VALIDATOR_PREFIXES: dict[str, tuple[str, ...]] = {
    "zod": ("z.",),
    "valibot": ("v.",),
    "arktype": ("type(", "type."),
    "effect": ("Schema.",),
}

_SUGGESTIONS: dict[str, dict[str, str]] = {
    "zod": {
        "string": "z.string()",
        "number": "z.number()",
        "integer": "z.number().int()",
        "boolean": "z.boolean()",
        "date": "z.date()",
        "datetime": "z.iso.datetime()",
        "bigint": "z.bigint()",
        "unknown": "z.unknown()",
    },
    "valibot": {
        "string": "v.string()",
        "number": "v.number()",
        "integer": "v.pipe(v.number(), v.integer())",
        "boolean": "v.boolean()",
        "date": "v.date()",
        "datetime": "v.pipe(v.string(), v.isoTimestamp())",
        "bigint": "v.bigint()",
        "unknown": "v.unknown()",
    },
    "arktype": {
        "string": 'type("string")',
        "number": 'type("number")',
        "integer": 'type("number.integer")',
        "boolean": 'type("boolean")',
        "date": 'type("Date")',
        "datetime": 'type("string.date.iso")',
        "bigint": 'type("bigint")',
        "unknown": 'type("unknown")',
    },
    "effect": {
        "string": "Schema.String",
        "number": "Schema.Number",
        "integer": "Schema.Int",
        "boolean": "Schema.Boolean",
        "date": "Schema.DateFromSelf",
        "datetime": "Schema.DateTimeUtc",
        "bigint": "Schema.BigIntFromSelf",
        "unknown": "Schema.Unknown",
    },
}

_TYPE_WORDS = {
    "string": "string",
    "str": "string",
    "id": "string",
    "number": "number",
    "float": "number",
    "double": "number",
    "int": "integer",
    "integer": "integer",
    "boolean": "boolean",
    "bool": "boolean",
    "date": "date",
    "datetime": "datetime",
    "date-time": "datetime",
    "timestamp": "datetime",
    "bigint": "bigint",
    "any": "unknown",
    "unknown": "unknown",
    "json": "unknown",
    "object": "unknown",
}

_QUOTED_RE = re.compile(r"""^(['"`])(.*)\1$""", re.DOTALL)
_PAIRS = {")": "(", "]": "[", "}": "{"}


def suggest_expression(validator: str, hint: str | None = None) -> str:
    """Best-guess expression for a type word such as "string" or "int"."""
    word = _TYPE_WORDS.get((hint or "").strip().lower(), "string")
    return _SUGGESTIONS[validator][word]


def _is_balanced(code: str) -> bool:
    stack: list[str] = []
    quote: str | None = None
    escaped = False
    for char in code:
        if quote:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in "'\"`":
            quote = char
        elif char in "([{":
            stack.append(char)
        elif char in _PAIRS:
            if not stack or stack.pop() != _PAIRS[char]:
                return False
    return not stack and quote is None


def validate_scalar_expression(scalar: str, code: str, validator: str) -> str:
    """Check that an override looks like an expression for the validator.

    The check is structural only; nothing is executed. Returns the
    stripped code on success.

    Raises:
        ScalarMappingError: with a corrective suggestion when the value is
            a string literal, a bare type name, code for another validator,
            or has unbalanced brackets.
    """
    if validator not in VALIDATOR_PREFIXES:
        # Unknown validators are rejected by the emitter registry
        return code
    stripped = (code or "").strip()
    if not stripped:
        suggestion = suggest_expression(validator)
        raise ScalarMappingError(
            f'Custom scalar "{scalar}" has an empty mapping for {validator}. '
            f"Did you mean `{suggestion}`?",
            scalar,
            suggestion,
        )

    quoted = _QUOTED_RE.match(stripped)
    if quoted:
        suggestion = suggest_expression(validator, quoted.group(2))
        raise ScalarMappingError(
            f'Custom scalar "{scalar}" is mapped to the string literal {stripped}, '
            f"but {validator} needs an expression. Did you mean `{suggestion}`?",
            scalar,
            suggestion,
        )

    if stripped.lower() in _TYPE_WORDS:
        suggestion = suggest_expression(validator, stripped)
        raise ScalarMappingError(
            f'Custom scalar "{scalar}" is mapped to the type name "{stripped}", '
            f"but {validator} needs an expression. Did you mean `{suggestion}`?",
            scalar,
            suggestion,
        )

    for other, prefixes in VALIDATOR_PREFIXES.items():
        if other != validator and stripped.startswith(prefixes):
            suggestion = suggest_expression(validator)
            raise ScalarMappingError(
                f'Custom scalar "{scalar}" looks like a {other} expression '
                f"({stripped}) but the selected validator is {validator}. "
                f"Did you mean something like `{suggestion}`?",
                scalar,
                suggestion,
            )

    if not _is_balanced(stripped):
        raise ScalarMappingError(
            f'Custom scalar "{scalar}" has unbalanced brackets or quotes: {stripped}',
            scalar,
        )
    return stripped


def validate_scalar_overrides(overrides: dict[str, str] | None, validator: str) -> dict[str, str]:
    """Validate every override, returning the cleaned mapping."""
    return {
        name: validate_scalar_expression(name, code, validator)
        for name, code in (overrides or {}).items()
    }
