"""
Annotation grammar parser.

An annotation trails a variable line and tells the wizard how to ask for the
value and how to validate it:

    DB_PORT=5432 #prompt:Database port?|int;min:1;max:65535

Grammar:
    annotation = "#prompt:" message "|" type { ";" modifier }
    modifier   = "optional" | "secret" | name ":" value
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Tuple

from .lexer import ANNOTATION_PREFIX


logger = logging.getLogger(__name__)

KNOWN_CONSTRAINTS = frozenset({
    "min",
    "max",
    "minlen",
    "maxlen",
    "pattern",
    "options",
    "format",
    "encoding",
})

OPTIONAL_MODIFIER = "optional"
SECRET_MODIFIER = "secret"


class AnnotationSyntaxError(ValueError):
    """Raised when an annotation string is malformed."""


class VariableType(Enum):
    """Value types an annotation can declare."""
    STRING = "string"
    INT = "int"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    ENUM = "enum"
    OBJECT = "object"

    @classmethod
    def parse(cls, token: str) -> "VariableType":
        """Map a type token to a VariableType; unknown tokens are strings."""
        try:
            return cls(token)
        except ValueError:
            return cls.STRING


@dataclass(frozen=True)
class Constraint:
    """A named validation rule; the value is parsed by the validator."""
    name: str
    value: str


@dataclass(frozen=True)
class Annotation:
    """Prompt and validation metadata attached to a variable."""
    prompt_text: str
    type: VariableType = VariableType.STRING
    constraints: Tuple[Constraint, ...] = field(default_factory=tuple)
    is_optional: bool = False
    is_secret: bool = False

    def get_constraint(self, name: str) -> str:
        """Return the value of the first constraint with this name, or ''."""
        for constraint in self.constraints:
            if constraint.name == name:
                return constraint.value
        return ""

    def has_constraint(self, name: str) -> bool:
        return any(constraint.name == name for constraint in self.constraints)

    @property
    def options(self) -> List[str]:
        """Enum options, trimmed, in declaration order."""
        raw = self.get_constraint("options")
        if not raw:
            return []
        return [option.strip() for option in raw.split(",")]


def parse_annotation(text: str) -> Annotation:
    """
    Parse an annotation string.

    Args:
        text: Annotation text starting with '#prompt:'

    Returns:
        Annotation

    Raises:
        AnnotationSyntaxError: If the prefix, the '|' separator or the type
            is missing
    """
    text = text.strip()

    if not text.startswith(ANNOTATION_PREFIX):
        raise AnnotationSyntaxError("invalid annotation: missing prefix")

    content = text[len(ANNOTATION_PREFIX):]

    if "|" not in content:
        raise AnnotationSyntaxError("invalid annotation: missing type separator")

    prompt_text, rest = content.split("|", 1)
    parts = rest.split(";")
    if not parts[0].strip():
        raise AnnotationSyntaxError("invalid annotation: missing type")

    var_type = VariableType.parse(parts[0].strip())

    constraints: List[Constraint] = []
    is_optional = False
    is_secret = False

    for part in parts[1:]:
        part = part.strip()
        if not part:
            continue

        if part == OPTIONAL_MODIFIER:
            is_optional = True
            continue
        if part == SECRET_MODIFIER:
            is_secret = True
            continue

        if ":" not in part:
            logger.debug("Ignoring unknown modifier %r", part)
            continue

        name, value = part.split(":", 1)
        name = name.strip()

        if name not in KNOWN_CONSTRAINTS:
            logger.debug("Ignoring unknown constraint %r", name)
            continue

        constraints.append(Constraint(name=name, value=value.strip()))

    annotation = Annotation(
        prompt_text=prompt_text.strip(),
        type=var_type,
        constraints=tuple(constraints),
        is_optional=is_optional,
        is_secret=is_secret,
    )

    # An enum without options degrades to string.
    if annotation.type == VariableType.ENUM and not annotation.get_constraint("options"):
        annotation = replace(annotation, type=VariableType.STRING)

    return annotation


def format_annotation(annotation: Annotation) -> str:
    """
    Format an Annotation back to its textual form.

    Constraints are written in order, followed by the optional and secret
    modifiers.
    """
    parts = [annotation.type.value]
    parts.extend(f"{c.name}:{c.value}" for c in annotation.constraints)

    if annotation.is_optional:
        parts.append(OPTIONAL_MODIFIER)
    if annotation.is_secret:
        parts.append(SECRET_MODIFIER)

    return f"{ANNOTATION_PREFIX}{annotation.prompt_text}|{';'.join(parts)}"
