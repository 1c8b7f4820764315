"""
Document model and assembler.

Folds the token stream of an annotated .env file into a Document: ordered
variables, standalone comments and the optional project config. Parsing is
best-effort: a line with an invalid variable name is skipped and a malformed
annotation is dropped, but neither aborts the document.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .annotation import Annotation, AnnotationSyntaxError, format_annotation, parse_annotation
from .config import ProjectConfig, format_config, parse_config
from .lexer import ANNOTATION_MARKER, Lexer, TokenType


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Variable:
    """A single environment variable with optional annotation."""
    name: str
    value: str = ""
    annotation: Optional[Annotation] = None
    line_number: int = 0  # 1-indexed
    is_set: bool = False  # '=' was present on the line


@dataclass(frozen=True)
class Comment:
    """A standalone comment line (text without '#')."""
    text: str
    line_number: int


@dataclass
class Document:
    """A parsed .env or distributable file."""
    path: str
    variables: List[Variable] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)
    config: Optional[ProjectConfig] = None

    def get_variable(self, name: str) -> Optional[Variable]:
        """Return the variable with this name, or None."""
        for variable in self.variables:
            if variable.name == name:
                return variable
        return None

    def has_variable(self, name: str) -> bool:
        return self.get_variable(name) is not None

    def names(self) -> List[str]:
        return [variable.name for variable in self.variables]


def parse_lines(lines: Iterable[str], path: str = "") -> Document:
    """
    Assemble a Document from raw lines.

    Args:
        lines: Lines of the file, already split on line breaks
        path: Source identifier stored on the document

    Returns:
        Document. Duplicate names keep the position of the first occurrence
        and the data of the last one.
    """
    document = Document(path=path)
    config_lines: List[str] = []
    positions: Dict[str, int] = {}

    for token in Lexer(list(lines)).tokenize():
        if token.type == TokenType.CONFIG:
            config_lines.append(token.raw)
            continue

        if token.type == TokenType.COMMENT:
            if token.value:
                document.comments.append(Comment(text=token.value, line_number=token.line_number))
            continue

        if token.type == TokenType.INVALID:
            logger.debug("%s:%d: skipping line (%s)", path, token.line_number, token.error)
            continue

        if token.type != TokenType.VARIABLE:
            continue

        annotation = None
        if token.annotation:
            try:
                annotation = parse_annotation(token.annotation)
            except AnnotationSyntaxError as e:
                logger.debug("%s:%d: dropping annotation (%s)", path, token.line_number, e)

        value = token.value.strip()
        variable = Variable(
            name=token.name,
            value=value,
            annotation=annotation,
            line_number=token.line_number,
            is_set=value != "" or "=" in token.raw,
        )

        if token.name in positions:
            document.variables[positions[token.name]] = variable
        else:
            positions[token.name] = len(document.variables)
            document.variables.append(variable)

    if config_lines:
        document.config = parse_config(config_lines)

    return document


def parse_content(content: str, path: str = "") -> Document:
    """
    Assemble a Document from file content.

    Args:
        content: Text content
        path: Source identifier stored on the document

    Returns:
        Document
    """
    return parse_lines(content.split("\n"), path)


def unrepresentable_reason(value: str) -> Optional[str]:
    """
    Explain why a value cannot be written to a .env line.

    Line breaks split the assignment and a ' #prompt:' marker starts an
    annotation even inside quotes.

    Returns:
        None if the value survives format_variable() and parsing unchanged
    """
    if "\n" in value or "\r" in value:
        return "value contains a line break"
    if ANNOTATION_MARKER in value:
        return f"value contains the annotation marker '{ANNOTATION_MARKER.strip()}'"
    return None


def _quote(value: str) -> str:
    if not value:
        return value
    if any(ch.isspace() for ch in value) or "#" in value or value[0] in "\"'" or value[-1] in "\"'":
        return f'"{value}"'
    return value


def format_variable(variable: Variable, include_annotation: bool = True) -> str:
    """
    Format a variable as a .env line.

    Values containing whitespace, '#' or edge quotes are double-quoted so
    they parse back to the same value.
    """
    line = f"{variable.name}={_quote(variable.value)}"
    if include_annotation and variable.annotation is not None:
        line += " " + format_annotation(variable.annotation)
    return line


def serialize(document: Document, include_annotations: bool = True) -> List[str]:
    """
    Render a Document as lines.

    The config block comes first. Variables keep their document order; each
    comment is written before the first variable that follows it in the
    source, remaining comments go last.
    """
    lines: List[str] = []

    if document.config is not None:
        lines.extend(format_config(document.config))
        lines.append("")

    comments = sorted(document.comments, key=lambda c: c.line_number)
    index = 0

    for variable in document.variables:
        while index < len(comments) and comments[index].line_number < variable.line_number:
            lines.append(f"# {comments[index].text}")
            index += 1
        lines.append(format_variable(variable, include_annotations))

    lines.extend(f"# {comment.text}" for comment in comments[index:])
    return lines
