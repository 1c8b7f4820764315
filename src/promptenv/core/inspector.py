"""
Comparison of a target file with the distributable.

Finds variables missing from the target, variables the distributable does
not know about, and values that fail their annotation.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from .document import Document, Variable, format_variable
from .errors import ValidationOutcome
from .validator import make_outcome, validate_value


@dataclass
class InspectionResult:
    """Discrepancies between a distributable and a target."""
    dist_path: str
    target_path: str
    missing: List[Variable] = field(default_factory=list)  # In dist, not in target
    extra: List[Variable] = field(default_factory=list)  # In target, not in dist
    invalid: List[ValidationOutcome] = field(default_factory=list)
    valid_count: int = 0

    def has_discrepancies(self) -> bool:
        return bool(self.missing or self.extra or self.invalid)

    def to_dict(self) -> dict:
        """JSON-ready report."""
        missing = []
        for v in self.missing:
            entry = {"name": v.name}
            if v.annotation is not None:
                entry["prompt"] = v.annotation.prompt_text
                entry["type"] = v.annotation.type.value
            missing.append(entry)

        return {
            "missing": missing,
            "extra": [{"name": v.name, "value": v.value} for v in self.extra],
            "invalid": [
                {"name": o.variable, "error": o.message, "kind": o.kind.value}
                for o in self.invalid
            ],
        }


def inspect(dist: Document, target: Document) -> InspectionResult:
    """
    Compare a target document against the distributable.

    Args:
        dist: Distributable document
        target: Target document

    Returns:
        InspectionResult
    """
    result = InspectionResult(dist_path=dist.path, target_path=target.path)
    dist_names = set(dist.names())

    for dist_var in dist.variables:
        target_var = target.get_variable(dist_var.name)

        if target_var is None:
            result.missing.append(dist_var)
            continue

        if dist_var.annotation is not None:
            message = validate_value(target_var.value, dist_var.annotation)
            if message is not None:
                result.invalid.append(
                    make_outcome(dist_var.name, target_var.line_number, message, dist_var.annotation)
                )
                continue

        result.valid_count += 1

    result.extra = [v for v in target.variables if v.name not in dist_names]
    return result


def auto_resolve(result: InspectionResult) -> Tuple[Dict[str, str], List[str]]:
    """
    Resolve missing variables without user input.

    Optional variables get an empty value and variables with a default get
    the default.

    Returns:
        Tuple of (updates, names that could not be resolved)
    """
    updates: Dict[str, str] = {}
    unresolvable: List[str] = []

    for v in result.missing:
        if v.annotation is not None and v.annotation.is_optional:
            updates[v.name] = ""
        elif v.value:
            updates[v.name] = v.value
        else:
            unresolvable.append(v.name)

    return updates, unresolvable


def apply_updates(target: Document, updates: Dict[str, str],
                  removes: Optional[Set[str]] = None) -> List[str]:
    """
    Render the target with updated, removed and new variables.

    Existing variables keep their order; new variables are appended in the
    order of the updates mapping.
    """
    removes = removes or set()
    pending = dict(updates)
    lines = []

    for v in target.variables:
        if v.name in removes:
            continue
        value = pending.pop(v.name, v.value)
        lines.append(format_variable(Variable(name=v.name, value=value), include_annotation=False))

    for name, value in pending.items():
        lines.append(format_variable(Variable(name=name, value=value), include_annotation=False))

    return lines
