"""
promptenv - annotated environment files

Parses .env files whose variables carry inline #prompt: annotations and
validates values against the declared types and constraints.
"""

__version__ = "0.1.0"

from .core import annotation, config, document, lexer, validator

__all__ = [
    "annotation",
    "config",
    "document",
    "lexer",
    "validator",
]
