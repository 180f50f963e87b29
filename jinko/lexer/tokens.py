"""
Terminal symbols of the jinko language.

This module lists every terminal the lexer recognizes:
- Reserved keywords
- Structural punctuation
- Binary operators
- Literal categories

Author: xwest
"""

from enum import Enum, auto
from dataclasses import dataclass


class TokenType(Enum):
    """
    Enumeration of all terminal categories in jinko.

    Organized by category for clarity and maintainability.
    """

    # ========================================================================
    # Literals
    # ========================================================================
    INTEGER = auto()                # 12, -4
    FLOAT = auto()                  # 3.14, -0.5
    BOOLEAN = auto()                # true, false
    CHARACTER = auto()              # 'a', '\n'
    STRING = auto()                 # "hello"

    # ========================================================================
    # Identifiers and Keywords
    # ========================================================================
    IDENTIFIER = auto()             # variable_name, Custom

    # Declarations
    FUNC = auto()                   # func
    EXT = auto()                    # ext
    TEST = auto()                   # test
    MOCK = auto()                   # mock
    TYPE = auto()                   # type

    # Control flow
    IF = auto()                     # if
    ELSE = auto()                   # else
    AUDIT = auto()                  # audit
    LOOP = auto()                   # loop
    WHILE = auto()                  # while
    FOR = auto()                    # for
    IN = auto()                     # in
    RETURN = auto()                 # return

    # Modules and variables
    INCL = auto()                   # incl
    AS = auto()                     # as
    MUT = auto()                    # mut

    # ========================================================================
    # Punctuation
    # ========================================================================
    LEFT_PAREN = auto()             # (
    RIGHT_PAREN = auto()            # )
    LEFT_BRACE = auto()             # {
    RIGHT_BRACE = auto()            # }
    COMMA = auto()                  # ,
    COLON = auto()                  # :
    SEMICOLON = auto()              # ;
    DOT = auto()                    # .
    ASSIGN = auto()                 # =
    ARROW = auto()                  # ->
    AT_SIGN = auto()                # @

    # ========================================================================
    # Binary operators
    # ========================================================================
    PLUS = auto()                   # +
    MINUS = auto()                  # -
    MULTIPLY = auto()               # *
    DIVIDE = auto()                 # /
    MODULO = auto()                 # %
    EQUAL = auto()                  # ==
    NOT_EQUAL = auto()              # !=
    LESS_THAN = auto()              # <
    GREATER_THAN = auto()           # >
    LESS_EQUAL = auto()             # <=
    GREATER_EQUAL = auto()          # >=
    LOGICAL_AND = auto()            # &&
    LOGICAL_OR = auto()             # ||
    BITWISE_AND = auto()            # &
    BITWISE_OR = auto()             # |
    BITWISE_XOR = auto()            # ^
    LEFT_SHIFT = auto()             # <<
    RIGHT_SHIFT = auto()            # >>


KEYWORDS = {
    "func": TokenType.FUNC,
    "ext": TokenType.EXT,
    "test": TokenType.TEST,
    "mock": TokenType.MOCK,
    "type": TokenType.TYPE,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "audit": TokenType.AUDIT,
    "loop": TokenType.LOOP,
    "while": TokenType.WHILE,
    "for": TokenType.FOR,
    "in": TokenType.IN,
    "incl": TokenType.INCL,
    "as": TokenType.AS,
    "return": TokenType.RETURN,
    "mut": TokenType.MUT,
}

BOOLEAN_LITERALS = {
    "true": True,
    "false": False,
}

# Words that can never name a symbol
RESERVED_WORDS = frozenset(KEYWORDS) | frozenset(BOOLEAN_LITERALS)

PUNCTUATION = {
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    "{": TokenType.LEFT_BRACE,
    "}": TokenType.RIGHT_BRACE,
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
    ";": TokenType.SEMICOLON,
    ".": TokenType.DOT,
    "=": TokenType.ASSIGN,
    "->": TokenType.ARROW,
    "@": TokenType.AT_SIGN,
}

OPERATORS = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.MULTIPLY,
    "/": TokenType.DIVIDE,
    "%": TokenType.MODULO,
    "==": TokenType.EQUAL,
    "!=": TokenType.NOT_EQUAL,
    "<": TokenType.LESS_THAN,
    ">": TokenType.GREATER_THAN,
    "<=": TokenType.LESS_EQUAL,
    ">=": TokenType.GREATER_EQUAL,
    "&&": TokenType.LOGICAL_AND,
    "||": TokenType.LOGICAL_OR,
    "&": TokenType.BITWISE_AND,
    "|": TokenType.BITWISE_OR,
    "^": TokenType.BITWISE_XOR,
    "<<": TokenType.LEFT_SHIFT,
    ">>": TokenType.RIGHT_SHIFT,
}

# Characters that can only appear in source as part of an operator
OPERATOR_CHARS = frozenset("+-*/%<>=!&|^~?")

INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1

ESCAPE_SEQUENCES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
    "\\": "\\",
    "'": "'",
    '"': '"',
}


@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in the source code.

    Used for error reporting and debugging information.
    """
    filename: str
    line: int
    column: int
    offset: int  # Character offset from start of file

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"

    def __repr__(self) -> str:
        return f"SourceLocation({self.filename!r}, {self.line}, {self.column}, {self.offset})"


def describe(token_type: TokenType) -> str:
    """Human readable spelling of a terminal, used in diagnostics."""
    for table in (PUNCTUATION, OPERATORS, KEYWORDS):
        for lexeme, candidate in table.items():
            if candidate is token_type:
                return f"'{lexeme}'"
    return token_type.name.lower().replace("_", " ")
