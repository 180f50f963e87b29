"""
Error handling for the jinko front end.

Provides structured parse errors carrying the unmatched remaining input and a
discriminated error kind, plus IDE-friendly diagnostics with source locations.

Author: xwest
"""

from enum import Enum
from typing import Iterable, List, Optional
from dataclasses import dataclass

from .lexer.tokens import SourceLocation, TokenType, describe


@dataclass
class Diagnostic:
    """A rendered error, warning or hint attached to a source location."""
    message: str
    location: Optional[SourceLocation]
    severity: str  # "error", "warning", "info", "hint"
    code: Optional[str] = None
    help_text: Optional[str] = None
    suggestions: Optional[List[str]] = None

    def __str__(self) -> str:
        severity_prefix = self.severity.upper()
        if self.code:
            severity_prefix = f"{severity_prefix}[{self.code}]"
        result = f"{severity_prefix}: {self.message}\n"
        if self.location is not None:
            result += f"  --> {self.location}\n"

        if self.help_text:
            result += f"  help: {self.help_text}\n"

        if self.suggestions:
            result += "  suggestions:\n"
            for suggestion in self.suggestions:
                result += f"    - {suggestion}\n"

        return result


class JinkoError(Exception):
    """
    Base class of every error raised by the jinko front end.

    The diagnostic is built on first access so that cheap, frequently
    discarded errors (failed alternation branches) never pay for it.
    """

    code: Optional[str] = None

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.help_text = help_text
        self.suggestions = suggestions
        self._diagnostic: Optional[Diagnostic] = None

    @property
    def location(self) -> Optional[SourceLocation]:
        return None

    @property
    def diagnostic(self) -> Diagnostic:
        if self._diagnostic is None:
            self._diagnostic = Diagnostic(
                message=self.message,
                location=self.location,
                severity="error",
                code=self.code,
                help_text=self.help_text,
                suggestions=self.suggestions
            )
        return self._diagnostic

    def __str__(self) -> str:
        return str(self.diagnostic)


class ParseErrorKind(Enum):
    """Discriminates why a grammar rule failed."""
    EXPECTED_TOKEN = "P001"
    UNRECOGNIZED_CONSTRUCT = "P002"
    TRAILING_INPUT = "P003"
    MALFORMED_LITERAL = "P004"
    UNKNOWN_DIRECTIVE = "P005"
    RECURSION_LIMIT = "P006"

    @property
    def code(self) -> str:
        return self.value


class ParseError(JinkoError):
    """
    Failure of a grammar rule.

    Carries the cursor at which the rule gave up, so callers can report the
    unmatched remaining input. A fatal error is never swallowed by ordered
    alternation and aborts the whole parse.
    """

    def __init__(
        self,
        kind: ParseErrorKind,
        cursor,
        message: str,
        expected: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
        fatal: bool = False
    ):
        super().__init__(message, kind.code, help_text, suggestions)
        self.kind = kind
        self.cursor = cursor
        self.expected = expected
        self.fatal = fatal

    @property
    def offset(self) -> int:
        return self.cursor.offset

    @property
    def remaining(self) -> str:
        """The input left unmatched when the rule failed."""
        return self.cursor.rest

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.cursor.location

    def __repr__(self) -> str:
        return f"ParseError({self.kind.name}, offset={self.offset}, {self.message!r})"


def suggest_corrections(word: str, candidates: Iterable[str], max_distance: int = 2) -> List[str]:
    """Suggest close spellings of `word` among `candidates` using edit distance."""
    scored = [(_edit_distance(word.lower(), candidate), candidate) for candidate in candidates]
    return [candidate for distance, candidate in sorted(scored) if distance <= max_distance][:3]


def _edit_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein distance between two strings."""
    if len(s1) < len(s2):
        return _edit_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def _found(cursor) -> str:
    rest = cursor.rest
    if not rest:
        return "end of input"
    return repr(rest[:12] + ("..." if len(rest) > 12 else ""))


# Helper functions for creating common parser errors

def create_expected_token_error(expected, cursor) -> ParseError:
    """Create an error for a terminal missing at the cursor."""
    expected_str = describe(expected) if isinstance(expected, TokenType) else expected
    return ParseError(
        ParseErrorKind.EXPECTED_TOKEN,
        cursor,
        message=f"Expected {expected_str}, found {_found(cursor)}",
        expected=expected_str
    )


def create_unrecognized_construct_error(construct: str, cursor, reason: Optional[str] = None) -> ParseError:
    """Create an error for input that no alternative of a rule accepts."""
    return ParseError(
        ParseErrorKind.UNRECOGNIZED_CONSTRUCT,
        cursor,
        message=f"Invalid {construct}: {reason}" if reason else f"Expected {construct}, found {_found(cursor)}",
        expected=construct
    )


def create_trailing_input_error(cursor) -> ParseError:
    """Create an error for input left over after a complete parse."""
    return ParseError(
        ParseErrorKind.TRAILING_INPUT,
        cursor,
        message=f"Unexpected trailing input {_found(cursor)}",
        help_text="Separate statements with ';' and check for unbalanced delimiters."
    )


def create_malformed_literal_error(lexeme: str, cursor, reason: str) -> ParseError:
    """Create an error for a literal that starts correctly but cannot be read."""
    return ParseError(
        ParseErrorKind.MALFORMED_LITERAL,
        cursor,
        message=f"Invalid literal: {lexeme!r}",
        help_text=reason
    )


def create_unknown_directive_error(name: str, cursor, known: Iterable[str]) -> ParseError:
    """Create an error for an `@name(...)` directive outside the built-in set."""
    known = list(known)
    return ParseError(
        ParseErrorKind.UNKNOWN_DIRECTIVE,
        cursor,
        message=f"Unknown interpreter directive '@{name}'",
        expected="interpreter directive",
        help_text=f"Available directives: {', '.join('@' + directive for directive in known)}",
        suggestions=[f"@{directive}" for directive in suggest_corrections(name, known)]
    )


def create_recursion_limit_error(cursor, max_depth: int) -> ParseError:
    """Create the fatal error raised when instructions nest too deeply."""
    return ParseError(
        ParseErrorKind.RECURSION_LIMIT,
        cursor,
        message=f"Instructions nested deeper than {max_depth} levels",
        help_text="Raise JinkoConfig.max_depth or split the nested code into functions.",
        fatal=True
    )


# ============================================================================
# Runtime errors
# ============================================================================

class InterpreterError(JinkoError):
    """Exception raised when executing an AST fails."""

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(message, code, help_text, suggestions)
        self._location = location

    @property
    def location(self) -> Optional[SourceLocation]:
        return self._location


class ReturnSignal(Exception):
    """Unwinds execution from a `return` up to the enclosing call."""

    def __init__(self, value):
        super().__init__("return outside of a function call")
        self.value = value


class QuitRequest(Exception):
    """Raised by the `@quit()` directive to stop the program."""

    def __init__(self, exit_code: int = 0):
        super().__init__(f"quit requested with exit code {exit_code}")
        self.exit_code = exit_code


def _type_name(value) -> str:
    if value is None:
        return "void"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "char" if len(value) == 1 else "string"
    return getattr(value, "type_name", type(value).__name__)


def create_undefined_symbol_error(kind: str, name: str, location: Optional[SourceLocation],
                                  candidates: Iterable[str] = ()) -> InterpreterError:
    """Create an error for a reference to an unknown variable, function or type."""
    suggestions = [f"Did you mean '{candidate}'?" for candidate in suggest_corrections(name, candidates)]
    return InterpreterError(
        message=f"Undefined {kind} '{name}'",
        location=location,
        code="E001",
        help_text=f"No {kind} named '{name}' is visible from this scope.",
        suggestions=suggestions or None
    )


def create_redefinition_error(kind: str, name: str, location: Optional[SourceLocation]) -> InterpreterError:
    """Create an error for declaring the same function or type twice."""
    help_text = "Use `mock` to replace an existing function." if kind == "function" else None
    return InterpreterError(
        message=f"{kind.capitalize()} '{name}' is already defined",
        location=location,
        code="E002",
        help_text=help_text
    )


def create_immutable_assignment_error(name: str, location: Optional[SourceLocation]) -> InterpreterError:
    """Create an error for re-assigning a variable not declared with `mut`."""
    return InterpreterError(
        message=f"Cannot assign twice to immutable variable '{name}'",
        location=location,
        code="E003",
        suggestions=[f"Declare it as `mut {name} = ...`"]
    )


def create_type_mismatch_error(expected: str, value, location: Optional[SourceLocation]) -> InterpreterError:
    """Create an error for a value of the wrong type."""
    return InterpreterError(
        message=f"Expected a value of type {expected}, found {_type_name(value)}",
        location=location,
        code="E004"
    )


def create_arity_error(name: str, expected: int, found: int,
                       location: Optional[SourceLocation]) -> InterpreterError:
    """Create an error for a call with the wrong number of arguments."""
    return InterpreterError(
        message=f"'{name}' takes {expected} argument(s) but {found} were given",
        location=location,
        code="E005"
    )


def create_extern_call_error(name: str, location: Optional[SourceLocation]) -> InterpreterError:
    """Create an error for calling a function declared with `ext`."""
    return InterpreterError(
        message=f"Cannot call external function '{name}'",
        location=location,
        code="E006",
        help_text="External functions are declarations only; no native library is loaded."
    )


def create_missing_value_error(text: str, location: Optional[SourceLocation]) -> InterpreterError:
    """Create an error for a statement used where a value is required."""
    return InterpreterError(
        message=f"'{text}' does not produce a value",
        location=location,
        code="E007"
    )


def create_unused_value_error(text: str, location: Optional[SourceLocation]) -> InterpreterError:
    """Create an error for a statement whose value is silently dropped."""
    return InterpreterError(
        message=f"Value of '{text}' is never used",
        location=location,
        code="E008",
        help_text="Store the value, make it the last instruction of the block, or wrap it in `audit { }`."
    )


def create_invalid_operation_error(operator: str, lhs, rhs, location: Optional[SourceLocation],
                                   reason: Optional[str] = None) -> InterpreterError:
    """Create an error for a binary operation the operands do not support."""
    return InterpreterError(
        message=reason or f"Cannot apply '{operator}' to {_type_name(lhs)} and {_type_name(rhs)}",
        location=location,
        code="E009"
    )


def create_include_error(path: str, location: Optional[SourceLocation], reason: str) -> InterpreterError:
    """Create an error for an `incl` the loader cannot satisfy."""
    return InterpreterError(
        message=f"Cannot include '{path}': {reason}",
        location=location,
        code="E010"
    )
