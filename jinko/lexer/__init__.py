"""
jinko Lexer Package

Implements the terminal layer of the jinko front end. Instead of producing a
token stream up front, the lexer exposes one recognizer per terminal that
grammar rules call on demand over an immutable cursor.

Key Features:
- Whole-word keyword recognition (`mut_x` is an identifier, not `mut`)
- Signed 64-bit integer, float, boolean, character and string literals
- Explicit skipping of whitespace and comments, only where a rule allows it
- Source location tracking for diagnostics

Author: xwest
"""

from .tokens import TokenType, SourceLocation, KEYWORDS, PUNCTUATION, OPERATORS
from .cursor import Cursor, ParseContext
from .lexer import Token

__all__ = [
    "Token",
    "TokenType",
    "SourceLocation",
    "Cursor",
    "ParseContext",
    "KEYWORDS",
    "PUNCTUATION",
    "OPERATORS",
]
