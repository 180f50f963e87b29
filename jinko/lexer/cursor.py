"""
Immutable read cursor over jinko source text.

Grammar rules never mutate input. They receive a cursor and hand back a new
one; a caller that sees a rule fail still holds its own, unchanged cursor, so
a failed attempt can never leak a partial advance.

Author: xwest
"""

from bisect import bisect_right
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from .tokens import SourceLocation
from ..config import JinkoConfig


class ParseContext:
    """
    State shared by every cursor of one parse.

    Holds the source, the configuration, a line index for locations and the
    packrat memo table. Nothing in here changes the meaning of a rule.
    """

    def __init__(self, source: str, filename: str = "<string>", config: Optional[JinkoConfig] = None):
        self.source = source
        self.filename = filename
        self.config = config or JinkoConfig()
        self.memo: Dict[Tuple, Any] = {}
        self._line_starts = [0]
        for index, char in enumerate(source):
            if char == "\n":
                self._line_starts.append(index + 1)

    def location(self, offset: int) -> SourceLocation:
        line = bisect_right(self._line_starts, offset)
        column = offset - self._line_starts[line - 1] + 1
        return SourceLocation(self.filename, line, column, offset)


@dataclass(frozen=True, eq=False)
class Cursor:
    """
    A position in the source, plus the nesting state of the rule holding it.

    Two cursors are equal when they point at the same offset of the same text,
    regardless of which parse produced them.
    """
    context: ParseContext = field(repr=False)
    offset: int = 0
    depth: int = 0
    # Cleared while parsing `if`/`while`/`for` heads, where `x { ... }` is a body
    allow_instantiation: bool = True

    @classmethod
    def from_source(cls, source: str, filename: str = "<string>",
                    config: Optional[JinkoConfig] = None) -> "Cursor":
        return cls(ParseContext(source, filename, config))

    @property
    def source(self) -> str:
        return self.context.source

    @property
    def config(self) -> JinkoConfig:
        return self.context.config

    @property
    def rest(self) -> str:
        """Remaining, unconsumed input."""
        return self.context.source[self.offset:]

    @property
    def at_end(self) -> bool:
        return self.offset >= len(self.context.source)

    @property
    def location(self) -> SourceLocation:
        return self.context.location(self.offset)

    def peek(self, count: int = 1) -> str:
        return self.context.source[self.offset:self.offset + count]

    def startswith(self, text: str) -> bool:
        return self.context.source.startswith(text, self.offset)

    def advance(self, count: int) -> "Cursor":
        return replace(self, offset=self.offset + count)

    def move_to(self, offset: int) -> "Cursor":
        return replace(self, offset=offset)

    def enter(self) -> "Cursor":
        """Descend one nesting level, failing fatally past the configured limit."""
        if self.depth >= self.context.config.max_depth:
            from ..errors import create_recursion_limit_error
            raise create_recursion_limit_error(self, self.context.config.max_depth)
        return replace(self, depth=self.depth + 1)

    def restricted(self) -> "Cursor":
        return replace(self, allow_instantiation=False)

    def unrestricted(self) -> "Cursor":
        return replace(self, allow_instantiation=True)

    def restore(self, origin: "Cursor") -> "Cursor":
        """Keep this position but take back the nesting state of `origin`."""
        return replace(self, depth=origin.depth, allow_instantiation=origin.allow_instantiation)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Cursor):
            return NotImplemented
        return self.offset == other.offset and self.context.source == other.context.source

    def __hash__(self) -> int:
        return hash((self.offset, self.context.source))

    def __repr__(self) -> str:
        rest = self.rest
        if len(rest) > 20:
            rest = rest[:20] + "..."
        return f"Cursor(offset={self.offset}, rest={rest!r})"
