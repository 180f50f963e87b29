"""
jinko Front End Package

Lexer, grammar, operator-precedence parser and AST for the jinko programming
language, plus a small tree-walking interpreter so that parsed programs can
run.

Architecture:
    jinko/
    ├── lexer/           # Terminal recognizers over an immutable cursor
    ├── parser/          # Grammar rules, shunting yard and AST nodes
    ├── interpreter/     # Execution context for AST nodes
    ├── errors.py        # Parse and runtime errors with diagnostics
    ├── config.py        # Settings shared by every phase
    └── cli.py           # `jinko` command line

Author: xwest
License: MIT
"""

__version__ = "0.1.0-alpha"
__author__ = "xwest"
__license__ = "MIT"

# The lexer goes first: errors.py depends on its token definitions
from .lexer import Token, Cursor, SourceLocation
from .config import JinkoConfig
from .errors import JinkoError, ParseError, ParseErrorKind, InterpreterError
from .parser import Parser, parse_string, parse_file
from .interpreter import Interpreter

__all__ = [
    # Core classes
    "Token",
    "Cursor",
    "SourceLocation",
    "JinkoConfig",
    "Parser",
    "parse_string",
    "parse_file",
    "Interpreter",

    # Errors
    "JinkoError",
    "ParseError",
    "ParseErrorKind",
    "InterpreterError",

    # Version info
    "__version__",
    "__author__",
    "__license__",
]
