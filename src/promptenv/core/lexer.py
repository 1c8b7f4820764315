"""
Line tokenizer for annotated .env files.

Splits a physical line into a variable name, value and trailing annotation,
and classifies comment, blank and config lines. The token stream produced by
Lexer keeps the raw text of every line, so:
    write(tokenize(content)) == content (byte-identical)
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .config import is_config_line


# Uppercase letters, digits and underscores, starting with a letter.
VARIABLE_NAME_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*$")

ANNOTATION_PREFIX = "#prompt:"
ANNOTATION_MARKER = " " + ANNOTATION_PREFIX


class TokenizeError(ValueError):
    """Raised when a variable line carries an invalid variable name."""


class TokenType(Enum):
    """Token types for annotated .env lines."""
    CONFIG = "config"
    COMMENT = "comment"
    BLANK_LINE = "blank_line"
    VARIABLE = "variable"
    IGNORED = "ignored"
    INVALID = "invalid"


@dataclass
class Token:
    """A single line of the .env file."""
    type: TokenType
    raw: str  # Original text, including the line ending
    line_number: int = 0
    name: Optional[str] = None
    value: Optional[str] = None
    annotation: Optional[str] = None
    error: Optional[str] = None

    def __repr__(self):
        if self.type == TokenType.VARIABLE:
            return f"Token({self.type.value}, {self.name}={self.value})"
        return f"Token({self.type.value}, {repr(self.raw[:20])}...)"


def is_comment(line: str) -> bool:
    """Check if a line is a full-line comment."""
    return line.strip().startswith("#")


def is_empty_line(line: str) -> bool:
    """Check if a line is empty or whitespace only."""
    return line.strip() == ""


def is_annotation_line(line: str) -> bool:
    """Check if a line carries an inline annotation."""
    return ANNOTATION_MARKER in line


def extract_comment_text(line: str) -> str:
    """Return the text of a comment line without the leading '#'."""
    line = line.strip()
    if line.startswith("#"):
        return line[1:].strip()
    return ""


def parse_value(raw: str) -> str:
    """
    Normalize a raw value region.

    Trims whitespace and removes one layer of matching single or double
    quotes. No escape processing is done inside quotes.
    """
    value = raw.strip()
    if not value:
        return ""

    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        value = value[1:-1]

    if not value.strip():
        return ""

    return value


def tokenize_line(line: str) -> Tuple[str, str, str]:
    """
    Split one .env line into name, value and annotation.

    Args:
        line: Raw line without line ending

    Returns:
        Tuple of (name, value, annotation). All three are empty for blank
        lines, comments and lines without '='.

    Raises:
        TokenizeError: If the text before '=' is not a valid variable name
    """
    line = line.strip()

    if not line or line.startswith("#"):
        return "", "", ""

    eq_index = line.find("=")
    if eq_index == -1:
        return "", "", ""

    name = line[:eq_index].strip()
    if not name:
        return "", "", ""

    if not VARIABLE_NAME_PATTERN.match(name):
        raise TokenizeError(f"invalid variable name: {name!r}")

    rest = line[eq_index + 1:]
    annotation = ""

    marker_index = rest.find(ANNOTATION_MARKER)
    if marker_index != -1:
        annotation = rest[marker_index + 1:].strip()
        rest = rest[:marker_index]

    return name, parse_value(rest), annotation


class Lexer:
    """
    Lossless lexer for annotated .env files.

    Classifies every line, in priority order, as a config line, a standalone
    comment, a blank line or a variable line.
    """

    def __init__(self, lines: List[str]):
        self.lines = lines

    @classmethod
    def from_content(cls, content: str) -> "Lexer":
        return cls(content.splitlines(keepends=True))

    def tokenize(self) -> List[Token]:
        """
        Classify all lines.

        Returns:
            List of Token objects, one per line, in file order.
        """
        return [
            self._classify(line, line_number)
            for line_number, line in enumerate(self.lines, start=1)
        ]

    def _classify(self, raw: str, line_number: int) -> Token:
        """Classify a single line."""
        line = raw.rstrip("\r\n")

        if is_config_line(line):
            return Token(TokenType.CONFIG, raw=raw, line_number=line_number)

        if is_comment(line) and not is_annotation_line(line):
            return Token(TokenType.COMMENT, raw=raw, line_number=line_number,
                         value=extract_comment_text(line))

        if is_empty_line(line):
            return Token(TokenType.BLANK_LINE, raw=raw, line_number=line_number)

        try:
            name, value, annotation = tokenize_line(line)
        except TokenizeError as e:
            return Token(TokenType.INVALID, raw=raw, line_number=line_number, error=str(e))

        if not name:
            return Token(TokenType.IGNORED, raw=raw, line_number=line_number)

        return Token(
            type=TokenType.VARIABLE,
            raw=raw,
            line_number=line_number,
            name=name,
            value=value,
            annotation=annotation or None,
        )


def tokenize(content: str) -> List[Token]:
    """
    Tokenize .env file content.

    Args:
        content: String content of the file

    Returns:
        List of Token objects
    """
    return Lexer.from_content(content).tokenize()


def write(tokens: List[Token]) -> str:
    """
    Reconstruct file content from tokens.

    Args:
        tokens: List of Token objects

    Returns:
        String content byte-identical to the tokenized input
    """
    return "".join(token.raw for token in tokens)
