"""
Structured validation outcomes.

Every failure carries the four fields a report needs: location (variable
and line), problem, suggested fix and an example of a valid value.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


ANNOTATION_SYNTAX_HINT = "Check annotation syntax: #prompt:Message?|type;constraint:value"
ANNOTATION_SYNTAX_EXAMPLE = "#prompt:Enter value?|string;minlen:1"


class ErrorKind(Enum):
    """Kinds of validation failure."""
    MISSING_REQUIRED = "missing_required"
    INVALID_TYPE = "invalid_type"
    CONSTRAINT_VIOLATION = "constraint_violation"
    ANNOTATION_SYNTAX = "annotation_syntax"
    DUPLICATE_VARIABLE = "duplicate_variable"


@dataclass(frozen=True)
class ValidationOutcome:
    """A single validation failure."""
    kind: ErrorKind
    variable: str
    line_number: int  # 0 when the variable is absent from the file
    message: str
    suggestion: str = ""
    example: str = ""

    def __str__(self):
        return f"{self.variable} (line {self.line_number}): {self.message}"

    def format(self) -> str:
        """Render the outcome as an indented block of plain text."""
        result = f"  Line {self.line_number}: {self.variable}\n"
        result += f"    ✗ {self.message}\n"
        if self.suggestion:
            result += f"    → Fix: {self.suggestion}\n"
        if self.example:
            result += f"    → Example: {self.example}\n"
        return result

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "variable": self.variable,
            "line": self.line_number,
            "message": self.message,
            "suggestion": self.suggestion,
            "example": self.example,
        }


@dataclass
class ValidationResult:
    """All outcomes collected while validating a file."""
    errors: List[ValidationOutcome] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def add_error(self, outcome: ValidationOutcome):
        self.errors.append(outcome)

    def error_count(self) -> int:
        return len(self.errors)

    def format_errors(self, file_path: str) -> str:
        """Render a pass/fail report for a file."""
        if self.valid:
            return f"✓ VALIDATION PASSED: {file_path}\n"

        result = f"✗ VALIDATION FAILED: {file_path}\n\n"
        for outcome in self.errors:
            result += outcome.format() + "\n"
        result += f"Found {len(self.errors)} error(s)\n"
        return result


def missing_required(variable: str, line_number: int, prompt: str) -> ValidationOutcome:
    """Outcome for a required variable without a value."""
    return ValidationOutcome(
        kind=ErrorKind.MISSING_REQUIRED,
        variable=variable,
        line_number=line_number,
        message="Required variable has no value",
        suggestion=f"Set a value for {variable}",
        example=prompt,
    )


def annotation_syntax(variable: str, line_number: int, message: str) -> ValidationOutcome:
    """Outcome for an annotation the parser rejects."""
    return ValidationOutcome(
        kind=ErrorKind.ANNOTATION_SYNTAX,
        variable=variable,
        line_number=line_number,
        message=f"Malformed annotation: {message}",
        suggestion=ANNOTATION_SYNTAX_HINT,
        example=ANNOTATION_SYNTAX_EXAMPLE,
    )


def missing_annotation(variable: str, line_number: int) -> ValidationOutcome:
    """Outcome for an unannotated variable in strict mode."""
    return ValidationOutcome(
        kind=ErrorKind.ANNOTATION_SYNTAX,
        variable=variable,
        line_number=line_number,
        message="Variable has no annotation (strict mode)",
        suggestion="Add an annotation to the distributable",
        example=ANNOTATION_SYNTAX_EXAMPLE,
    )


def duplicate_variable(variable: str, line_number: int, first_line: int) -> ValidationOutcome:
    """Outcome for a variable defined more than once."""
    return ValidationOutcome(
        kind=ErrorKind.DUPLICATE_VARIABLE,
        variable=variable,
        line_number=line_number,
        message=f"Variable already defined on line {first_line}",
        suggestion="Remove duplicate definition",
    )
