"""
Project configuration embedded in the distributable.

Settings are stored as special full-line comments:
    #tool:environments=local,testing,production
    #tool:strict=true
    #tool:distPath=config/.env.dist
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Tuple


CONFIG_PREFIX = "#tool:"

DEFAULT_ENVIRONMENTS = ("local",)
DEFAULT_DIST_PATH = ".env.dist"

STRICT_TRUE_VALUES = frozenset({"true", "1", "yes"})


@dataclass
class ProjectConfig:
    """Project-level settings read from the config block."""
    environments: List[str] = field(default_factory=lambda: list(DEFAULT_ENVIRONMENTS))
    strict: bool = False  # Unannotated variables are errors
    dist_path: str = DEFAULT_DIST_PATH


def is_config_line(line: str) -> bool:
    """Check if a line is a config line."""
    return line.strip().startswith(CONFIG_PREFIX)


def parse_config_line(line: str) -> Tuple[str, str]:
    """
    Parse a single config line.

    Args:
        line: Raw line

    Returns:
        Tuple of (key, value), or ("", "") if the line is not a config line
        or has no '='
    """
    line = line.strip()
    if not line.startswith(CONFIG_PREFIX):
        return "", ""

    content = line[len(CONFIG_PREFIX):]
    if "=" not in content:
        return "", ""

    key, value = content.split("=", 1)
    return key.strip(), value.strip()


def parse_config(lines: Iterable[str]) -> ProjectConfig:
    """
    Build a ProjectConfig from config lines.

    Defaults are applied first; each recognized key overwrites them, last
    write wins. Non-config lines and unknown keys are ignored.
    """
    config = ProjectConfig()

    for line in lines:
        key, value = parse_config_line(line)
        if not key:
            continue

        if key == "environments":
            config.environments = [env.strip() for env in value.split(",") if env.strip()]
        elif key == "strict":
            config.strict = value in STRICT_TRUE_VALUES
        elif key == "distPath":
            if value:
                config.dist_path = value

    return config


def format_config_line(key: str, value: str) -> str:
    """Format a key-value pair as a config line."""
    return f"{CONFIG_PREFIX}{key}={value}"


def format_config(config: ProjectConfig) -> List[str]:
    """Format a ProjectConfig as config lines."""
    lines = [format_config_line("environments", ",".join(config.environments))]

    if config.strict:
        lines.append(format_config_line("strict", "true"))
    if config.dist_path and config.dist_path != DEFAULT_DIST_PATH:
        lines.append(format_config_line("distPath", config.dist_path))

    return lines
