"""Tests for custom scalar handlers and override checks."""

import pytest

from tangen.core.errors import ScalarMappingError
from tangen.core.ir import IRBoolean, IRNumber, IRRaw, IRRecord, IRString, IRUnknown
from tangen.core.scalars import (
    DateHandler,
    DateTimeHandler,
    JSONHandler,
    JSONObjectHandler,
    RawScalarHandler,
    ScalarHandler,
    ScalarRegistry,
    UUIDHandler,
    suggest_expression,
    validate_scalar_expression,
    validate_scalar_overrides,
)


class TestHandlers:
    """Tests for the built-in handlers."""

    def test_datetime(self):
        assert DateTimeHandler().to_ir() == IRString(format="datetime")

    def test_date(self):
        assert DateHandler().to_ir() == IRString(format="date")

    def test_uuid(self):
        assert UUIDHandler().to_ir() == IRString(format="uuid")

    def test_json(self):
        assert JSONHandler().to_ir() == IRUnknown()

    def test_json_object(self):
        assert JSONObjectHandler().to_ir() == IRRecord(key_type=IRString(), value_type=IRUnknown())

    def test_raw(self):
        assert RawScalarHandler("z.string()").to_ir() == IRRaw(code="z.string()")

    def test_fresh_node_each_call(self):
        handler = DateTimeHandler()
        assert handler.to_ir() is not handler.to_ir()

    def test_handlers_satisfy_protocol(self):
        assert isinstance(DateTimeHandler(), ScalarHandler)
        assert isinstance(RawScalarHandler("v.string()"), ScalarHandler)


class TestScalarRegistry:
    """Tests for ScalarRegistry."""

    def test_builtin_scalars(self):
        registry = ScalarRegistry()
        assert registry.to_ir("ID") == IRString()
        assert registry.to_ir("String") == IRString()
        assert registry.to_ir("Int") == IRNumber(integer=True)
        assert registry.to_ir("Float") == IRNumber()
        assert registry.to_ir("Boolean") == IRBoolean()

    def test_common_custom_scalars(self):
        registry = ScalarRegistry()
        assert registry.to_ir("EmailAddress") == IRString(format="email")
        assert registry.to_ir("URL") == IRString(format="url")
        assert registry.has("JSON")

    def test_unregistered(self):
        registry = ScalarRegistry()
        assert registry.get("Money") is None
        assert registry.to_ir("Money") is None

    def test_overrides_replace_defaults(self):
        registry = ScalarRegistry(overrides={"DateTime": "z.date()"})
        assert registry.to_ir("DateTime") == IRRaw(code="z.date()")

    def test_register_custom(self):
        class MoneyHandler:
            def to_ir(self):
                return IRString(pattern=r"^\d+\.\d{2}$")

        registry = ScalarRegistry()
        registry.register("Money", MoneyHandler())
        assert registry.to_ir("Money").pattern == r"^\d+\.\d{2}$"


class TestValidateScalarExpression:
    """Tests for override plausibility checks."""

    def test_accepts_expression(self):
        assert validate_scalar_expression("Money", " z.string() ", "zod") == "z.string()"

    @pytest.mark.parametrize("validator,code", [
        ("zod", "z.iso.datetime()"),
        ("valibot", "v.pipe(v.string(), v.isoTimestamp())"),
        ("arktype", 'type("string.date.iso")'),
        ("effect", "Schema.DateTimeUtc"),
    ])
    def test_accepts_each_validator(self, validator, code):
        assert validate_scalar_expression("DateTime", code, validator) == code

    def test_rejects_string_literal(self):
        with pytest.raises(ScalarMappingError) as exc_info:
            validate_scalar_expression("Money", "'string'", "zod")
        assert exc_info.value.suggestion == "z.string()"
        assert "Did you mean `z.string()`?" in str(exc_info.value)
        assert exc_info.value.scalar == "Money"

    def test_rejects_bare_type_word(self):
        with pytest.raises(ScalarMappingError) as exc_info:
            validate_scalar_expression("Count", "int", "valibot")
        assert exc_info.value.suggestion == "v.pipe(v.number(), v.integer())"

    def test_rejects_other_validator(self):
        with pytest.raises(ScalarMappingError, match="looks like a zod expression"):
            validate_scalar_expression("Money", "z.string()", "effect")

    def test_rejects_empty(self):
        with pytest.raises(ScalarMappingError, match="empty mapping"):
            validate_scalar_expression("Money", "   ", "arktype")

    def test_rejects_unbalanced(self):
        with pytest.raises(ScalarMappingError, match="unbalanced"):
            validate_scalar_expression("Money", "z.string(", "zod")

    def test_brackets_inside_strings_ignored(self):
        code = 'z.string().regex(new RegExp("^[(]"))'
        assert validate_scalar_expression("Paren", code, "zod") == code

    def test_unknown_validator_passes_through(self):
        assert validate_scalar_expression("X", "'x'", "yup") == "'x'"

    def test_validate_overrides(self):
        assert validate_scalar_overrides({"A": " z.string() "}, "zod") == {"A": "z.string()"}
        assert validate_scalar_overrides(None, "zod") == {}

    def test_suggest_expression_defaults_to_string(self):
        assert suggest_expression("effect") == "Schema.String"
        assert suggest_expression("arktype", "bool") == 'type("boolean")'
