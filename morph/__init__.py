"""Morph — staged language front end: lexer, parser, type checker and draft-mode interpreter."""

__version__ = "0.1.0"

from typing import Optional, TextIO

from morph.lexer import tokenize
from morph.parser import parse
from morph.checker import check
from morph.interpreter import interpret
from morph.ghost import validate_ghost
from morph.values import Value


def run_source(
    source: str,
    filename: str = "<stdin>",
    stdout: Optional[TextIO] = None,
    validate_ghosts: bool = True,
) -> Value:
    """Tokenize, parse and interpret source text. Does not type check."""
    module = parse(tokenize(source, filename), filename)
    return interpret(module, stdout=stdout, validate_ghosts=validate_ghosts)


__all__ = [
    "__version__",
    "tokenize",
    "parse",
    "check",
    "interpret",
    "validate_ghost",
    "run_source",
]
