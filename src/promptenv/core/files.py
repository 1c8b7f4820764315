"""
File I/O for .env documents.

The parser works on lines; this module is the only place that touches disk.
"""

from pathlib import Path
from typing import List, Union

from .document import Document, parse_lines


PathLike = Union[str, Path]


def read_lines(path: PathLike) -> List[str]:
    """
    Read a file as a list of lines without line endings.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    with open(path, 'r') as f:
        return f.read().splitlines()


def read_document(path: PathLike) -> Document:
    """
    Read and parse an .env file.

    Args:
        path: File path

    Returns:
        Document whose path is the given path
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return parse_lines(read_lines(path), str(path))


def write_lines(path: PathLike, lines: List[str]):
    """Write lines to a file, each terminated by a newline."""
    with open(path, 'w') as f:
        f.write("".join(f"{line}\n" for line in lines))


def append_lines(path: PathLike, lines: List[str]):
    """
    Append lines to a file.

    A newline is inserted first when the existing content does not end
    with one.
    """
    path = Path(path)
    needs_newline = False
    if path.exists():
        content = path.read_text()
        needs_newline = bool(content) and not content.endswith("\n")

    with open(path, 'a') as f:
        if needs_newline:
            f.write("\n")
        f.write("".join(f"{line}\n" for line in lines))
