"""
jinko Lexer - terminal recognizers over an immutable cursor

There is no token stream. Each grammar rule asks for exactly the terminal it
expects next, and the recognizer either returns the advanced cursor with the
lexeme, or raises a ParseError. Insignificant input (whitespace and comments)
is only skipped when a rule explicitly asks for it.

Author: xwest
"""

import re
from typing import Callable, Tuple

from .cursor import Cursor
from .tokens import (
    TokenType, KEYWORDS, PUNCTUATION, BOOLEAN_LITERALS, RESERVED_WORDS,
    ESCAPE_SEQUENCES, INT_MIN, INT_MAX
)
from ..errors import (
    create_expected_token_error, create_malformed_literal_error
)


IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
INTEGER_PATTERN = re.compile(r"-?[0-9]+")
FLOAT_PATTERN = re.compile(r"-?[0-9]+\.[0-9]+")
WHITESPACE_PATTERN = re.compile(r"\s*")

LexResult = Tuple[Cursor, str]


def _is_identifier_char(char: str) -> bool:
    return char.isalnum() or char == "_"


def _keyword(word: str) -> Callable[[Cursor], LexResult]:
    token_type = KEYWORDS[word]

    def recognize(cursor: Cursor) -> LexResult:
        if cursor.startswith(word):
            after = cursor.source[cursor.offset + len(word):cursor.offset + len(word) + 1]
            if not after or not _is_identifier_char(after):
                return cursor.advance(len(word)), word
        raise create_expected_token_error(token_type, cursor)

    recognize.__name__ = f"{word}_tok"
    recognize.__doc__ = f"Recognize the `{word}` keyword as a whole word."
    return recognize


def _punctuation(symbol: str) -> Callable[[Cursor], LexResult]:
    token_type = PUNCTUATION[symbol]

    def recognize(cursor: Cursor) -> LexResult:
        if cursor.startswith(symbol):
            return cursor.advance(len(symbol)), symbol
        raise create_expected_token_error(token_type, cursor)

    recognize.__name__ = token_type.name.lower()
    recognize.__doc__ = f"Recognize `{symbol}`."
    return recognize


class Token:
    """
    Terminal recognizers of the jinko language.

    Every recognizer has the shape `(cursor) -> (cursor, lexeme)` and never
    looks further than the characters it matches, plus one character to make
    sure a keyword is not the prefix of a longer identifier.
    """

    # Keywords
    func_tok = staticmethod(_keyword("func"))
    ext_tok = staticmethod(_keyword("ext"))
    test_tok = staticmethod(_keyword("test"))
    mock_tok = staticmethod(_keyword("mock"))
    type_tok = staticmethod(_keyword("type"))
    if_tok = staticmethod(_keyword("if"))
    else_tok = staticmethod(_keyword("else"))
    audit_tok = staticmethod(_keyword("audit"))
    loop_tok = staticmethod(_keyword("loop"))
    while_tok = staticmethod(_keyword("while"))
    for_tok = staticmethod(_keyword("for"))
    in_tok = staticmethod(_keyword("in"))
    incl_tok = staticmethod(_keyword("incl"))
    as_tok = staticmethod(_keyword("as"))
    return_tok = staticmethod(_keyword("return"))
    mut_tok = staticmethod(_keyword("mut"))

    # Punctuation
    left_parenthesis = staticmethod(_punctuation("("))
    right_parenthesis = staticmethod(_punctuation(")"))
    left_curly_bracket = staticmethod(_punctuation("{"))
    right_curly_bracket = staticmethod(_punctuation("}"))
    comma = staticmethod(_punctuation(","))
    colon = staticmethod(_punctuation(":"))
    semicolon = staticmethod(_punctuation(";"))
    dot = staticmethod(_punctuation("."))
    equal = staticmethod(_punctuation("="))
    arrow = staticmethod(_punctuation("->"))
    at_sign = staticmethod(_punctuation("@"))

    @staticmethod
    def identifier(cursor: Cursor) -> LexResult:
        """Recognize a symbol name. Reserved words are never identifiers."""
        match = IDENTIFIER_PATTERN.match(cursor.source, cursor.offset)
        if match is None or match.group(0) in RESERVED_WORDS:
            raise create_expected_token_error(TokenType.IDENTIFIER, cursor)
        name = match.group(0)
        return cursor.advance(len(name)), name

    @staticmethod
    def consume_whitespaces(cursor: Cursor) -> LexResult:
        """Skip plain whitespace. Never fails."""
        match = WHITESPACE_PATTERN.match(cursor.source, cursor.offset)
        return cursor.move_to(match.end()), match.group(0)

    @staticmethod
    def maybe_consume_extra(cursor: Cursor) -> LexResult:
        """
        Skip insignificant input: whitespace, `//` and `#` line comments and
        `/* */` block comments. Never fails.

        Args:
            cursor: Position to start skipping from

        Returns:
            The cursor past the skipped input, and the skipped text
        """
        source = cursor.source
        pos = cursor.offset
        length = len(source)

        while pos < length:
            # Skip whitespace
            if source[pos].isspace():
                pos += 1
                continue

            # Skip line comments // and #
            if source.startswith("//", pos) or source[pos] == "#":
                newline = source.find("\n", pos)
                pos = length if newline == -1 else newline + 1
                continue

            # Skip block comments /* */
            if source.startswith("/*", pos):
                end = source.find("*/", pos + 2)
                pos = length if end == -1 else end + 2
                continue

            break

        return cursor.move_to(pos), source[cursor.offset:pos]

    skip = maybe_consume_extra

    # ------------------------------------------------------------------------
    # Literals
    # ------------------------------------------------------------------------

    @staticmethod
    def int_constant(cursor: Cursor) -> Tuple[Cursor, int]:
        """Recognize a signed 64-bit integer."""
        match = INTEGER_PATTERN.match(cursor.source, cursor.offset)
        if match is None:
            raise create_expected_token_error(TokenType.INTEGER, cursor)

        lexeme = match.group(0)
        value = int(lexeme)
        if not INT_MIN <= value <= INT_MAX:
            raise create_malformed_literal_error(
                lexeme, cursor.move_to(match.end()),
                "Integer literals must fit in a signed 64-bit integer."
            )
        return cursor.move_to(match.end()), value

    @staticmethod
    def float_constant(cursor: Cursor) -> Tuple[Cursor, float]:
        """Recognize a floating point number, digits required on both sides of the dot."""
        match = FLOAT_PATTERN.match(cursor.source, cursor.offset)
        if match is None:
            raise create_expected_token_error(TokenType.FLOAT, cursor)
        return cursor.move_to(match.end()), float(match.group(0))

    @staticmethod
    def bool_constant(cursor: Cursor) -> Tuple[Cursor, bool]:
        match = IDENTIFIER_PATTERN.match(cursor.source, cursor.offset)
        if match is None or match.group(0) not in BOOLEAN_LITERALS:
            raise create_expected_token_error(TokenType.BOOLEAN, cursor)
        return cursor.move_to(match.end()), BOOLEAN_LITERALS[match.group(0)]

    @staticmethod
    def char_constant(cursor: Cursor) -> Tuple[Cursor, str]:
        """Recognize a single quoted character, `'a'` or `'\\n'`."""
        if not cursor.startswith("'"):
            raise create_expected_token_error(TokenType.CHARACTER, cursor)

        inner, value = Token._character(cursor.advance(1), "'")
        if not inner.startswith("'"):
            raise create_malformed_literal_error(
                cursor.source[cursor.offset:inner.offset + 1], inner,
                "Character literals hold exactly one character; use double quotes for strings."
            )
        return inner.advance(1), value

    @staticmethod
    def string_constant(cursor: Cursor) -> Tuple[Cursor, str]:
        """Recognize a double quoted string with escape sequences."""
        if not cursor.startswith('"'):
            raise create_expected_token_error(TokenType.STRING, cursor)

        inner = cursor.advance(1)
        chars = []
        while not inner.startswith('"'):
            inner, char = Token._character(inner, '"')
            chars.append(char)

        return inner.advance(1), "".join(chars)

    @staticmethod
    def _character(cursor: Cursor, quote: str) -> Tuple[Cursor, str]:
        """Read one, possibly escaped, character inside a quoted literal."""
        current = cursor.peek()
        if not current or current == "\n" or current == quote:
            kind = "String" if quote == '"' else "Character"
            raise create_malformed_literal_error(
                quote + cursor.rest[:10], cursor,
                f"{kind} literals must be closed with a matching {quote} quote."
            )

        if current != "\\":
            return cursor.advance(1), current

        escaped = cursor.peek(2)[1:]
        if escaped not in ESCAPE_SEQUENCES:
            raise create_malformed_literal_error(
                "\\" + escaped, cursor,
                f"Unknown escape sequence; valid escapes are {', '.join(sorted(ESCAPE_SEQUENCES))}."
            )
        return cursor.advance(2), ESCAPE_SEQUENCES[escaped]
