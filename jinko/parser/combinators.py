"""
Composition primitives for grammar rules.

A rule is any callable `(cursor) -> (cursor, value)` that raises ParseError
when the input does not match. Because cursors are immutable, a failed rule
never leaves a partial advance behind: the caller simply keeps using the
cursor it already had.

Author: xwest
"""

import functools
from typing import Any, Callable, List, Optional, Tuple, TypeVar

from ..lexer.cursor import Cursor
from ..errors import ParseError

T = TypeVar("T")
Rule = Callable[[Cursor], Tuple[Cursor, T]]


def alt(*rules: Rule) -> Rule:
    """
    Ordered alternation.

    Tries each rule in turn and returns the first success. Later rules are
    never compared against an earlier success. When every rule fails, the
    error that got furthest into the input is raised; on a tie the later
    rule's error wins. Fatal errors abort immediately.
    """
    def parse(cursor: Cursor):
        best: Optional[ParseError] = None
        for rule in rules:
            try:
                return rule(cursor)
            except ParseError as error:
                if error.fatal:
                    raise
                if best is None or error.offset >= best.offset:
                    best = error
        raise best

    return parse


def opt(rule: Rule) -> Callable[[Cursor], Tuple[Cursor, Optional[Any]]]:
    """Run `rule`, yielding None at the original cursor when it fails."""
    def parse(cursor: Cursor):
        try:
            return rule(cursor)
        except ParseError as error:
            if error.fatal:
                raise
            return cursor, None

    return parse


def many0(rule: Rule) -> Callable[[Cursor], Tuple[Cursor, List[Any]]]:
    """Apply `rule` as many times as it succeeds while consuming input."""
    def parse(cursor: Cursor):
        values = []
        while True:
            try:
                next_cursor, value = rule(cursor)
            except ParseError as error:
                if error.fatal:
                    raise
                return cursor, values
            if next_cursor.offset == cursor.offset:
                return cursor, values
            values.append(value)
            cursor = next_cursor

    return parse


def furthest_error(rule: Rule, cursor: Cursor, error: ParseError) -> ParseError:
    """
    Pick the error to report for a failure at `cursor`.

    `opt` and `many0` drop the error of the rule they stopped on, so a
    sequence that then fails on a plain terminal hides the real problem.
    Running `rule` again at `cursor` recovers it: a fatal error, or one that
    got further into the input than `error`, replaces it.
    """
    try:
        rule(cursor)
    except ParseError as deeper:
        if deeper.fatal or deeper.offset > cursor.offset:
            return deeper
    return error


def memoize(rule: Rule) -> Rule:
    """
    Packrat cache for a rule.

    Results are stored per parse in the cursor's context, keyed by rule,
    offset and nesting state, so an alternation that retries the same nested
    construct from several branches only parses it once.
    """
    name = rule.__qualname__

    @functools.wraps(rule)
    def parse(cursor: Cursor):
        context = cursor.context
        if not context.config.memoize:
            return rule(cursor)

        key = (name, cursor.offset, cursor.depth, cursor.allow_instantiation)
        cached = context.memo.get(key)
        if cached is not None:
            succeeded, payload = cached
            if succeeded:
                return payload
            raise payload

        try:
            result = rule(cursor)
        except ParseError as error:
            if not error.fatal:
                context.memo[key] = (False, error)
            raise

        context.memo[key] = (True, result)
        return result

    return parse
