"""
Generation of environment files from a distributable.

Decides which variables need a value from the user, merges user answers
with existing target values and distributable defaults, and renders the
result.
"""

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, List, Optional

from .config import ProjectConfig
from .document import Document, Variable, serialize, unrepresentable_reason
from .errors import ErrorKind, ValidationOutcome
from .files import read_document, write_lines
from .validator import make_outcome, validate_value


logger = logging.getLogger(__name__)

DEFAULT_TARGET = ".env.local"
UNREPRESENTABLE_HINT = "Enter the value on a single line without ' #prompt:'"


@dataclass
class GenerateResult:
    """Summary of a generate run."""
    created: bool  # File was created rather than updated
    path: str
    variables: int
    prompted: int
    skipped: int


def targets_for_environments(config: Optional[ProjectConfig]) -> List[str]:
    """
    Target paths for every configured environment.

    Returns:
        ['.env.<env>', ...], or ['.env.local'] without environments
    """
    if config is None or not config.environments:
        return [DEFAULT_TARGET]
    return [f".env.{env}" for env in config.environments]


class Generator:
    """
    Builds a target file from a distributable.

    Value priority: user answer > non-empty target value > dist default.
    """

    def __init__(self, dist: Document, target_path: str,
                 target: Optional[Document] = None, keep_annotations: bool = False):
        self.dist = dist
        self.target_path = target_path
        self.target = target
        self.keep_annotations = keep_annotations

    def load_target(self) -> Optional[Document]:
        """Load the existing target file, if any."""
        if Path(self.target_path).exists():
            self.target = read_document(self.target_path)
        else:
            self.target = None
        return self.target

    def _target_value(self, name: str) -> str:
        if self.target is None:
            return ""
        existing = self.target.get_variable(name)
        return existing.value if existing is not None else ""

    def variables_to_prompt(self) -> List[Variable]:
        """
        Variables that need user input.

        A variable is prompted when it is annotated, has no default in the
        distributable and no value in the target.
        """
        return [
            v for v in self.dist.variables
            if v.annotation is not None and not v.value and not self._target_value(v.name)
        ]

    def check_value(self, variable: Variable, value: str) -> Optional[ValidationOutcome]:
        """Validate a candidate value before accepting it."""
        reason = unrepresentable_reason(value)
        if reason is not None:
            return ValidationOutcome(
                kind=ErrorKind.INVALID_TYPE,
                variable=variable.name,
                line_number=variable.line_number,
                message=reason,
                suggestion=UNREPRESENTABLE_HINT,
            )

        message = validate_value(value, variable.annotation)
        if message is None:
            return None
        return make_outcome(variable.name, variable.line_number, message, variable.annotation)

    def merge_variables(self, user_values: Dict[str, str]) -> List[Variable]:
        """
        Create the final variables for output.

        Args:
            user_values: Mapping of variable name to user-supplied value

        Returns:
            New Variable list in distributable order
        """
        merged = []

        for v in self.dist.variables:
            if v.name in user_values:
                merged.append(replace(v, value=user_values[v.name], is_set=True))
                continue

            existing = self._target_value(v.name)
            if existing:
                merged.append(replace(v, value=existing, is_set=True))
                continue

            merged.append(replace(v, is_set=v.value != ""))

        return merged

    def render(self, variables: List[Variable]) -> List[str]:
        """Render merged variables with the distributable's config and comments."""
        document = Document(
            path=self.target_path,
            variables=variables,
            comments=self.dist.comments,
            config=self.dist.config,
        )
        return serialize(document, include_annotations=self.keep_annotations)

    def write(self, variables: List[Variable]):
        """Write the rendered file to the target path."""
        write_lines(self.target_path, self.render(variables))
        logger.debug("Wrote %d variables to %s", len(variables), self.target_path)


def generate(dist_path: str, target_path: str, values: Dict[str, str],
             keep_annotations: bool = False) -> GenerateResult:
    """
    Generate a target file in one call.

    Args:
        dist_path: Path to the distributable
        target_path: Path to the file to create or update
        values: User-supplied values
        keep_annotations: Keep annotations in the generated file

    Returns:
        GenerateResult
    """
    dist = read_document(dist_path)
    generator = Generator(dist, target_path, keep_annotations=keep_annotations)
    existed = generator.load_target() is not None

    variables = generator.merge_variables(values)
    generator.write(variables)
    supplied = sum(1 for name in values if dist.has_variable(name))

    return GenerateResult(
        created=not existed,
        path=target_path,
        variables=len(variables),
        prompted=supplied,
        skipped=len(variables) - supplied,
    )
