"""
Entry point of the jinko front end.

Turns a complete source text into the root Block of the program. Top-level
instructions may omit their semicolons; an unterminated final instruction
becomes the value of the program.

Author: xwest
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..config import JinkoConfig
from ..lexer.cursor import Cursor
from ..lexer.lexer import Token
from ..errors import create_trailing_input_error, create_recursion_limit_error
from .ast_nodes import Block
from .combinators import furthest_error
from .constructs import Construct

logger = logging.getLogger(__name__)


class Parser:
    """
    Parses one jinko source file.

    Args:
        source: Complete program text
        filename: Name reported in source locations
        config: Parser tunables, defaults when omitted
    """

    def __init__(self, source: str, filename: str = "<string>",
                 config: Optional[JinkoConfig] = None):
        self.source = source
        self.filename = filename
        self.config = config or JinkoConfig()

    def parse(self) -> Block:
        """
        Parse the whole source.

        Returns:
            The root Block holding every top-level instruction

        Raises:
            ParseError: When the input is not a complete jinko program
        """
        logger.debug("Parsing %s (%d characters)", self.filename, len(self.source))
        start = Cursor.from_source(self.source, self.filename, self.config)

        try:
            cursor, (instructions, last) = Construct.many_instructions(start)
            cursor, _ = Token.maybe_consume_extra(cursor)
            if not cursor.at_end:
                self._reject_remaining(cursor)
        except RecursionError:
            raise create_recursion_limit_error(start, self.config.max_depth) from None

        logger.debug("Parsed %d top-level instructions from %s",
                     len(instructions) + (last is not None), self.filename)
        return Block(instructions, last, location=start.location)

    @staticmethod
    def _reject_remaining(cursor: Cursor):
        """Raise the most precise error for input no instruction could consume."""
        raise furthest_error(Construct.instruction, cursor, create_trailing_input_error(cursor))


def parse_string(source: str, filename: str = "<string>",
                 config: Optional[JinkoConfig] = None) -> Block:
    """Parse jinko source text."""
    return Parser(source, filename, config).parse()


def parse_file(path: Union[str, Path], config: Optional[JinkoConfig] = None) -> Block:
    """Read and parse a jinko source file."""
    path = Path(path)
    return Parser(path.read_text(encoding="utf-8"), str(path), config).parse()
