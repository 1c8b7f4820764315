"""
Type and constraint validation for annotated variables.

validate_value() is a pure function: given a raw value and an annotation it
returns None when the value is acceptable, or a message describing the
first failure. The document-level helpers turn those messages into
ValidationOutcome records and collect every failure instead of stopping at
the first one.
"""

import json
import re
from typing import Iterable, Optional, Union

import yaml

from .annotation import Annotation, AnnotationSyntaxError, VariableType, parse_annotation
from .document import Document, Variable
from .errors import (
    ErrorKind,
    ValidationOutcome,
    ValidationResult,
    annotation_syntax,
    duplicate_variable,
    missing_annotation,
    missing_required,
)
from .lexer import Lexer, TokenType


VALID_BOOLEANS = frozenset({"true", "false", "yes", "no", "1", "0", "on", "off"})

OBJECT_FORMATS = ("json", "yaml")
DEFAULT_OBJECT_FORMAT = "json"

_INTEGER_PATTERN = re.compile(r"^[+-]?[0-9]+$")


def _parse_int(text: str) -> Optional[int]:
    """Parse a base-10 signed integer; None on anything else."""
    if not _INTEGER_PATTERN.match(text):
        return None
    return int(text)


def _parse_float(text: str) -> Optional[float]:
    """Parse a float without surrounding whitespace or digit separators."""
    if not text or text != text.strip() or "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _format_number(n: Union[int, float]) -> str:
    if isinstance(n, float) and n.is_integer():
        return str(int(n))
    return str(n)


def _check_bounds(n: Union[int, float], annotation: Annotation, parse) -> Optional[str]:
    """Check inclusive min/max bounds; malformed bounds are skipped."""
    low = parse(annotation.get_constraint("min"))
    if low is not None and n < low:
        return f"value {_format_number(n)} is below minimum {_format_number(low)}"

    high = parse(annotation.get_constraint("max"))
    if high is not None and n > high:
        return f"value {_format_number(n)} exceeds maximum {_format_number(high)}"

    return None


def _validate_int(value: str, annotation: Annotation) -> Optional[str]:
    if value == "":
        return "value is required"

    n = _parse_int(value)
    if n is None:
        return f'expected integer, got "{value}"'

    return _check_bounds(n, annotation, _parse_int)


def _validate_numeric(value: str, annotation: Annotation) -> Optional[str]:
    if value == "":
        return "value is required"

    n = _parse_float(value)
    if n is None:
        return f'expected numeric, got "{value}"'

    return _check_bounds(n, annotation, _parse_float)


def _validate_string(value: str, annotation: Annotation) -> Optional[str]:
    minlen = _parse_int(annotation.get_constraint("minlen"))
    if minlen is not None and len(value) < minlen:
        return f"length {len(value)} is below minimum {minlen}"

    maxlen = _parse_int(annotation.get_constraint("maxlen"))
    if maxlen is not None and len(value) > maxlen:
        return f"length {len(value)} exceeds maximum {maxlen}"

    pattern = annotation.get_constraint("pattern")
    if pattern:
        try:
            regex = re.compile(pattern)
        except re.error as e:
            return f"invalid pattern: {e}"
        if not regex.search(value):
            return f'value "{value}" does not match pattern {pattern}'

    return None


def _validate_enum(value: str, annotation: Annotation) -> Optional[str]:
    if value == "":
        return "value is required for enum"

    raw_options = annotation.get_constraint("options")
    if not raw_options:
        return "enum has no options defined"

    if value in annotation.options:
        return None

    return f'value "{value}" not in allowed options: {raw_options}'


def _validate_boolean(value: str) -> Optional[str]:
    if value == "":
        return "value is required for boolean"

    if value.lower() not in VALID_BOOLEANS:
        return f'invalid boolean value "{value}" (use: true/false, yes/no, 1/0, on/off)'

    return None


def _validate_object(value: str, annotation: Annotation) -> Optional[str]:
    if value == "":
        return "value is required for object"

    fmt = annotation.get_constraint("format") or DEFAULT_OBJECT_FORMAT

    if fmt == "json":
        try:
            json.loads(value)
        except (ValueError, RecursionError) as e:
            return f"invalid JSON: {e}"
    elif fmt == "yaml":
        try:
            yaml.safe_load(value)
        except (yaml.YAMLError, RecursionError) as e:
            return f"invalid YAML: {e}"
    else:
        return f"unknown object format: {fmt}"

    return None


def validate_value(value: str, annotation: Optional[Annotation]) -> Optional[str]:
    """
    Validate a value against an annotation's type and constraints.

    Args:
        value: Raw value
        annotation: Annotation, or None for an unannotated variable

    Returns:
        None if the value is valid, otherwise a message describing the
        failure
    """
    if annotation is None:
        return None

    if value == "" and annotation.is_optional:
        return None

    var_type = annotation.type
    if var_type == VariableType.INT:
        return _validate_int(value, annotation)
    elif var_type == VariableType.NUMERIC:
        return _validate_numeric(value, annotation)
    elif var_type == VariableType.STRING:
        return _validate_string(value, annotation)
    elif var_type == VariableType.ENUM:
        return _validate_enum(value, annotation)
    elif var_type == VariableType.BOOLEAN:
        return _validate_boolean(value)
    elif var_type == VariableType.OBJECT:
        return _validate_object(value, annotation)

    raise ValueError(f"unhandled variable type: {var_type}")


def _range_suggestion(kind: str, annotation: Annotation) -> str:
    low = annotation.get_constraint("min")
    high = annotation.get_constraint("max")
    if low and high:
        return f"Enter {kind} between {low} and {high}"
    if low:
        return f"Enter {kind} >= {low}"
    if high:
        return f"Enter {kind} <= {high}"
    return f"Enter a valid {kind.split()[-1]}"


def get_suggestion(annotation: Annotation) -> str:
    """Describe how to enter a valid value for this annotation."""
    var_type = annotation.type
    if var_type == VariableType.INT:
        return _range_suggestion("an integer", annotation)
    elif var_type == VariableType.NUMERIC:
        return _range_suggestion("a number", annotation)
    elif var_type == VariableType.STRING:
        pattern = annotation.get_constraint("pattern")
        if pattern:
            return f"Enter a value matching pattern: {pattern}"
        return "Enter a valid string"
    elif var_type == VariableType.ENUM:
        return f"Choose one of: {annotation.get_constraint('options')}"
    elif var_type == VariableType.BOOLEAN:
        return "Enter true/false, yes/no, 1/0, or on/off"
    elif var_type == VariableType.OBJECT:
        fmt = annotation.get_constraint("format") or DEFAULT_OBJECT_FORMAT
        return f"Enter valid {fmt}"
    return "Enter a valid value"


def get_example(annotation: Annotation) -> str:
    """Return an example of a valid value for this annotation."""
    var_type = annotation.type
    if var_type == VariableType.INT:
        return annotation.get_constraint("min") or "42"
    elif var_type == VariableType.NUMERIC:
        return annotation.get_constraint("min") or "3.14"
    elif var_type == VariableType.STRING:
        return "example_value"
    elif var_type == VariableType.ENUM:
        options = annotation.options
        return options[0] if options else ""
    elif var_type == VariableType.BOOLEAN:
        return "true"
    elif var_type == VariableType.OBJECT:
        if annotation.get_constraint("format") == "yaml":
            return "key: value"
        return '{"key": "value"}'
    return ""


def classify_error(message: str) -> ErrorKind:
    """
    Map a validate_value() message to an ErrorKind.

    Messages mentioning "required" are missing values, option and pattern
    mismatches are constraint violations, everything else is a type error.
    """
    if "required" in message:
        return ErrorKind.MISSING_REQUIRED
    if "not in allowed" in message or "does not match" in message:
        return ErrorKind.CONSTRAINT_VIOLATION
    return ErrorKind.INVALID_TYPE


def make_outcome(name: str, line_number: int, message: str,
                 annotation: Annotation) -> ValidationOutcome:
    """Build a classified outcome with suggestion and example."""
    return ValidationOutcome(
        kind=classify_error(message),
        variable=name,
        line_number=line_number,
        message=message,
        suggestion=get_suggestion(annotation),
        example=get_example(annotation),
    )


def validate_variable(variable: Variable) -> Optional[ValidationOutcome]:
    """Validate a variable against its own annotation."""
    if variable.annotation is None:
        return None

    message = validate_value(variable.value, variable.annotation)
    if message is None:
        return None

    return make_outcome(variable.name, variable.line_number, message, variable.annotation)


def validate_document(document: Document) -> ValidationResult:
    """Validate every annotated variable of a document in place."""
    result = ValidationResult()

    for variable in document.variables:
        outcome = validate_variable(variable)
        if outcome is not None:
            result.add_error(outcome)

    return result


def validate_against(dist: Document, target: Document, strict: bool = False) -> ValidationResult:
    """
    Validate a target document against the distributable's annotations.

    Args:
        dist: Distributable (schema) document
        target: Document with concrete values
        strict: Report unannotated variables; also enabled by the
            distributable's strict setting

    Returns:
        ValidationResult with every failure found
    """
    result = ValidationResult()
    strict = strict or (dist.config is not None and dist.config.strict)

    for dist_var in dist.variables:
        annotation = dist_var.annotation
        target_var = target.get_variable(dist_var.name)

        if target_var is None:
            if annotation is not None and not annotation.is_optional:
                result.add_error(missing_required(dist_var.name, 0, annotation.prompt_text))
            continue

        if annotation is None:
            if strict:
                result.add_error(missing_annotation(dist_var.name, target_var.line_number))
            continue

        message = validate_value(target_var.value, annotation)
        if message is not None:
            result.add_error(make_outcome(dist_var.name, target_var.line_number, message, annotation))

    return result


def lint_lines(lines: Iterable[str]) -> ValidationResult:
    """
    Report problems the assembler silently tolerates.

    Rejected annotations become annotation_syntax outcomes and repeated
    names become duplicate_variable outcomes.
    """
    result = ValidationResult()
    first_seen = {}

    for token in Lexer(list(lines)).tokenize():
        if token.type != TokenType.VARIABLE:
            continue

        if token.name in first_seen:
            result.add_error(duplicate_variable(token.name, token.line_number, first_seen[token.name]))
        else:
            first_seen[token.name] = token.line_number

        if token.annotation:
            try:
                parse_annotation(token.annotation)
            except AnnotationSyntaxError as e:
                result.add_error(annotation_syntax(token.name, token.line_number, str(e)))

    return result
