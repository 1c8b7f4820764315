"""
Tests for type and constraint validation.
"""

import pytest
from promptenv.core.annotation import parse_annotation
from promptenv.core.document import parse_content, parse_lines
from promptenv.core.errors import ErrorKind, ValidationResult
from promptenv.core.validator import (
    classify_error,
    get_example,
    get_suggestion,
    lint_lines,
    validate_against,
    validate_document,
    validate_value,
    validate_variable,
)


def ann(text: str):
    return parse_annotation(text)


class TestValidateInt:
    """Test int validation."""

    BOUNDED = "#prompt:N?|int;min:1;max:10"

    @pytest.mark.parametrize("value", ["1", "5", "10", "+7"])
    def test_in_range(self, value):
        assert validate_value(value, ann(self.BOUNDED)) is None

    def test_below_minimum(self):
        message = validate_value("0", ann(self.BOUNDED))
        assert message == "value 0 is below minimum 1"

    def test_above_maximum(self):
        message = validate_value("11", ann(self.BOUNDED))
        assert message == "value 11 exceeds maximum 10"

    @pytest.mark.parametrize("value", ["abc", "1.5", "12abc", " 5", "1_000", "0x10"])
    def test_not_an_integer(self, value):
        message = validate_value(value, ann(self.BOUNDED))
        assert message is not None
        assert classify_error(message) == ErrorKind.INVALID_TYPE

    def test_empty_fails_without_bounds(self):
        message = validate_value("", ann("#prompt:N?|int"))
        assert message == "value is required"

    def test_negative(self):
        assert validate_value("-5", ann("#prompt:N?|int;min:-10")) is None

    def test_malformed_bound_skipped(self):
        assert validate_value("100", ann("#prompt:N?|int;min:one;max:ten")) is None


class TestValidateNumeric:
    """Test numeric validation."""

    @pytest.mark.parametrize("value", ["0", "0.5", "1", "1e-1"])
    def test_in_range(self, value):
        assert validate_value(value, ann("#prompt:R?|numeric;min:0;max:1")) is None

    def test_out_of_range(self):
        assert validate_value("1.5", ann("#prompt:R?|numeric;min:0;max:1")) == "value 1.5 exceeds maximum 1"
        assert validate_value("-0.1", ann("#prompt:R?|numeric;min:0;max:1")) == "value -0.1 is below minimum 0"

    def test_not_a_number(self):
        assert validate_value("fast", ann("#prompt:R?|numeric")) == 'expected numeric, got "fast"'

    def test_empty(self):
        assert validate_value("", ann("#prompt:R?|numeric")) == "value is required"


class TestValidateString:
    """Test string validation."""

    def test_empty_valid_by_default(self):
        assert validate_value("", ann("#prompt:S?|string")) is None

    def test_minlen(self):
        assert validate_value("ab", ann("#prompt:S?|string;minlen:3")) == "length 2 is below minimum 3"
        assert validate_value("abc", ann("#prompt:S?|string;minlen:3")) is None

    def test_empty_fails_minlen(self):
        assert validate_value("", ann("#prompt:S?|string;minlen:1")) is not None

    def test_maxlen(self):
        assert validate_value("abcd", ann("#prompt:S?|string;maxlen:3")) == "length 4 exceeds maximum 3"

    def test_pattern(self):
        email = ann(r"#prompt:Email?|string;pattern:^[a-z]+@[a-z]+\.[a-z]+$")
        assert validate_value("me@example.com", email) is None
        message = validate_value("not-an-email", email)
        assert "does not match" in message
        assert classify_error(message) == ErrorKind.CONSTRAINT_VIOLATION

    def test_invalid_pattern_reported(self):
        message = validate_value("x", ann("#prompt:S?|string;pattern:[unclosed"))
        assert message.startswith("invalid pattern")


class TestValidateEnum:
    """Test enum validation."""

    ENV = "#prompt:Env?|enum;options:dev,staging,prod"

    def test_valid_option(self):
        assert validate_value("dev", ann(self.ENV)) is None

    def test_case_sensitive(self):
        message = validate_value("Dev", ann(self.ENV))
        assert "not in allowed" in message
        assert classify_error(message) == ErrorKind.CONSTRAINT_VIOLATION

    def test_empty_always_fails(self):
        assert validate_value("", ann(self.ENV)) == "value is required for enum"

    def test_options_trimmed(self):
        assert validate_value("staging", ann("#prompt:Env?|enum;options: dev , staging ")) is None

    def test_optional_empty(self):
        assert validate_value("", ann(self.ENV + ";optional")) is None


class TestValidateBoolean:
    """Test boolean validation."""

    @pytest.mark.parametrize("value", ["true", "FALSE", "Yes", "no", "1", "0", "ON", "off"])
    def test_valid(self, value):
        assert validate_value(value, ann("#prompt:B?|boolean")) is None

    @pytest.mark.parametrize("value", ["maybe", "2", "y", "t"])
    def test_invalid(self, value):
        assert "invalid boolean value" in validate_value(value, ann("#prompt:B?|boolean"))

    def test_empty(self):
        assert validate_value("", ann("#prompt:B?|boolean")) == "value is required for boolean"


class TestValidateObject:
    """Test object validation."""

    def test_json_default(self):
        assert validate_value('{"a": 1}', ann("#prompt:O?|object")) is None
        assert validate_value("[1, 2]", ann("#prompt:O?|object;format:json")) is None

    def test_invalid_json(self):
        assert validate_value("{a: 1", ann("#prompt:O?|object")).startswith("invalid JSON")

    def test_yaml(self):
        assert validate_value("key: value", ann("#prompt:O?|object;format:yaml")) is None

    def test_invalid_yaml(self):
        assert validate_value("a: [1, 2", ann("#prompt:O?|object;format:yaml")).startswith("invalid YAML")

    def test_deeply_nested_json_fails(self):
        """Nesting beyond the recursion limit is a validation failure."""
        message = validate_value("[" * 100000, ann("#prompt:O?|object"))
        assert message.startswith("invalid JSON")

    def test_deeply_nested_yaml_fails(self):
        message = validate_value("[" * 100000, ann("#prompt:O?|object;format:yaml"))
        assert message.startswith("invalid YAML")

    def test_unknown_format(self):
        assert validate_value("<a/>", ann("#prompt:O?|object;format:xml")) == "unknown object format: xml"

    def test_empty(self):
        assert validate_value("", ann("#prompt:O?|object")) == "value is required for object"


class TestValidateOptional:
    """Test the optional and no-annotation shortcuts."""

    def test_no_annotation(self):
        assert validate_value("anything", None) is None

    @pytest.mark.parametrize("type_name", ["int", "numeric", "boolean", "object", "string"])
    def test_optional_empty_always_valid(self, type_name):
        assert validate_value("", ann(f"#prompt:X?|{type_name};optional")) is None

    def test_optional_non_empty_still_validated(self):
        assert validate_value("abc", ann("#prompt:X?|int;optional")) is not None


class TestSuggestionsAndExamples:
    """Test reproducible suggestions and examples."""

    def test_int_range(self):
        a = ann("#prompt:N?|int;min:1;max:65535")
        assert get_suggestion(a) == "Enter an integer between 1 and 65535"
        assert get_example(a) == "1"

    def test_int_open_bounds(self):
        assert get_suggestion(ann("#prompt:N?|int;min:1")) == "Enter an integer >= 1"
        assert get_suggestion(ann("#prompt:N?|int;max:9")) == "Enter an integer <= 9"
        assert get_suggestion(ann("#prompt:N?|int")) == "Enter a valid integer"
        assert get_example(ann("#prompt:N?|int")) == "42"

    def test_enum(self):
        a = ann("#prompt:E?|enum;options:dev,prod")
        assert get_suggestion(a) == "Choose one of: dev,prod"
        assert get_example(a) == "dev"

    def test_object(self):
        assert get_example(ann("#prompt:O?|object;format:yaml")) == "key: value"
        assert get_example(ann("#prompt:O?|object")) == '{"key": "value"}'
        assert get_suggestion(ann("#prompt:O?|object")) == "Enter valid json"

    def test_every_type_has_text(self):
        for type_name in ["string", "int", "numeric", "boolean", "object"]:
            a = ann(f"#prompt:X?|{type_name}")
            assert get_suggestion(a)
            assert get_example(a)


class TestClassifyError:
    """Test message classification."""

    def test_required(self):
        assert classify_error("value is required for enum") == ErrorKind.MISSING_REQUIRED

    def test_constraint(self):
        assert classify_error('value "x" not in allowed options: a,b') == ErrorKind.CONSTRAINT_VIOLATION
        assert classify_error('value "x" does not match pattern ^a') == ErrorKind.CONSTRAINT_VIOLATION

    def test_other(self):
        assert classify_error("value 99999 exceeds maximum 65535") == ErrorKind.INVALID_TYPE


class TestValidateVariable:
    """Test validating variables against their own annotation."""

    def test_invalid_variable(self):
        doc = parse_content("PORT=abc #prompt:Port?|int;min:1\n")
        outcome = validate_variable(doc.variables[0])
        assert outcome.variable == "PORT"
        assert outcome.line_number == 1
        assert outcome.kind == ErrorKind.INVALID_TYPE
        assert outcome.suggestion == "Enter an integer >= 1"
        assert outcome.example == "1"

    def test_no_annotation(self):
        doc = parse_content("PORT=abc\n")
        assert validate_variable(doc.variables[0]) is None

    def test_validate_document_collects_all(self):
        doc = parse_content(
            "PORT=abc #prompt:Port?|int\n"
            "ENV=qa #prompt:Env?|enum;options:dev,prod\n"
            "NAME=ok #prompt:Name?|string\n"
        )
        result = validate_document(doc)
        assert not result.valid
        assert [o.variable for o in result.errors] == ["PORT", "ENV"]


class TestValidateAgainst:
    """Test validating a target against the distributable."""

    DIST = """#tool:environments=local,prod
DB_HOST=localhost #prompt:Host?|string
DB_PORT= #prompt:Port?|int;min:1;max:65535
DEBUG= #prompt:Debug?|boolean;optional
PLAIN=
"""

    def test_end_to_end_scenario(self):
        dist = parse_content(self.DIST, ".env.dist")
        target = parse_content("DB_HOST=db\nDB_PORT=99999\n", ".env.local")
        result = validate_against(dist, target)
        assert result.error_count() == 1
        outcome = result.errors[0]
        assert outcome.variable == "DB_PORT"
        assert outcome.line_number == 2
        assert outcome.kind in (ErrorKind.CONSTRAINT_VIOLATION, ErrorKind.INVALID_TYPE)
        assert "exceeds maximum" in outcome.message

    def test_missing_required(self):
        dist = parse_content(self.DIST)
        target = parse_content("DB_PORT=5432\n")
        result = validate_against(dist, target)
        assert [(o.variable, o.kind) for o in result.errors] == [("DB_HOST", ErrorKind.MISSING_REQUIRED)]
        assert result.errors[0].line_number == 0
        assert result.errors[0].example == "Host?"

    def test_optional_and_unannotated_may_be_missing(self):
        dist = parse_content(self.DIST)
        target = parse_content("DB_HOST=db\nDB_PORT=80\n")
        assert validate_against(dist, target).valid

    def test_present_but_empty_required(self):
        dist = parse_content(self.DIST)
        target = parse_content("DB_HOST=db\nDB_PORT=\n")
        result = validate_against(dist, target)
        assert result.errors[0].kind == ErrorKind.MISSING_REQUIRED

    def test_all_failures_collected(self):
        dist = parse_content(self.DIST)
        target = parse_content("DB_PORT=0\nDEBUG=maybe\n")
        result = validate_against(dist, target)
        assert [o.variable for o in result.errors] == ["DB_HOST", "DB_PORT", "DEBUG"]

    def test_strict_flags_unannotated(self):
        dist = parse_content(self.DIST)
        target = parse_content("DB_HOST=db\nDB_PORT=80\nPLAIN=x\n")
        result = validate_against(dist, target, strict=True)
        assert [(o.variable, o.kind) for o in result.errors] == [("PLAIN", ErrorKind.ANNOTATION_SYNTAX)]

    def test_strict_from_config(self):
        dist = parse_content("#tool:strict=true\nPLAIN=\n")
        target = parse_content("PLAIN=x\n")
        assert not validate_against(dist, target).valid


class TestLintLines:
    """Test linting of distributable lines."""

    def test_clean(self):
        assert lint_lines(["A=1 #prompt:A?|int", "# comment"]).valid

    def test_annotation_syntax(self):
        result = lint_lines(["A=1 #prompt:A?"])
        assert result.errors[0].kind == ErrorKind.ANNOTATION_SYNTAX
        assert "missing type separator" in result.errors[0].message

    def test_duplicates(self):
        result = lint_lines(["A=1", "B=2", "A=3"])
        outcome = result.errors[0]
        assert outcome.kind == ErrorKind.DUPLICATE_VARIABLE
        assert outcome.line_number == 3
        assert outcome.message == "Variable already defined on line 1"


class TestValidationResult:
    """Test result formatting."""

    def test_passed(self):
        assert ValidationResult().format_errors(".env") == "✓ VALIDATION PASSED: .env\n"

    def test_failed(self):
        dist = parse_lines(["PORT= #prompt:Port?|int;min:1;max:10"])
        target = parse_lines(["PORT=11"])
        text = validate_against(dist, target).format_errors(".env.local")
        assert "✗ VALIDATION FAILED: .env.local" in text
        assert "Line 1: PORT" in text
        assert "→ Fix: Enter an integer between 1 and 10" in text
        assert "→ Example: 1" in text
        assert "Found 1 error(s)" in text


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
