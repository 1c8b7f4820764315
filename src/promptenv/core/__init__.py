"""
promptenv core modules.

Includes:
- lexer: Line tokenizer and lossless token stream
- config: #tool: config block parsing
- annotation: #prompt: annotation grammar
- document: Document assembler and serializer
- validator: Type and constraint validation
- errors: Structured validation outcomes
- files: Reading and writing documents
- generator: Target file generation
- inspector: Target vs distributable comparison
"""

from . import lexer
from . import config
from . import annotation
from . import document
from . import errors
from . import validator
from . import files
from . import generator
from . import inspector

__all__ = [
    "lexer",
    "config",
    "annotation",
    "document",
    "errors",
    "validator",
    "files",
    "generator",
    "inspector",
]
