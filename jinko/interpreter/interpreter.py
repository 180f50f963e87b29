"""
Tree-walking interpreter for jinko programs.

AST nodes execute themselves; the interpreter is the context they run
against. It owns the scope stack, the declared tests, the audit state and the
set of included files, and implements the operations nodes delegate to it.

Author: xwest
"""

import logging
import math
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Set, TextIO

from ..config import JinkoConfig
from ..lexer.tokens import INT_MIN, INT_MAX
from ..errors import (
    JinkoError, ParseError, InterpreterError, ReturnSignal, QuitRequest,
    create_undefined_symbol_error, create_redefinition_error,
    create_immutable_assignment_error, create_arity_error, create_type_mismatch_error,
    create_unused_value_error, create_invalid_operation_error, create_include_error
)
from ..parser.ast_nodes import Instruction, Block, FunctionDec, FunctionKind, TypeDec, Directive
from .scope import ScopeMap, SymbolKind, Variable
from .values import ObjectInstance
from .loader import FileLoader

logger = logging.getLogger(__name__)

COMPARISON_OPERATORS = {"<", ">", "<=", ">="}
EQUALITY_OPERATORS = {"==", "!="}
BITWISE_OPERATORS = {"&", "|", "^", "<<", ">>"}
LOGICAL_OPERATORS = {"&&", "||"}


@dataclass
class TestResult:
    """Outcome of one `test` declaration."""
    name: str
    passed: bool
    error: Optional[JinkoError] = None

    def __str__(self) -> str:
        status = "ok" if self.passed else "FAILED"
        return f"test {self.name} ... {status}"


class Interpreter:
    """
    Execution context of a jinko program.

    Args:
        config: Shared settings, defaults when omitted
        loader: Resolves `incl` paths, relative to the working directory by default
        output: Stream receiving `@dump()` output
    """

    def __init__(self, config: Optional[JinkoConfig] = None,
                 loader: Optional[FileLoader] = None,
                 output: Optional[TextIO] = None):
        self.config = config or JinkoConfig()
        self.loader = loader or FileLoader(config=self.config)
        self.output = output or sys.stdout
        self.scopes = ScopeMap()
        self.tests: Dict[str, FunctionDec] = {}
        self.included: Set[Path] = set()
        self.aliases: Dict[str, Path] = {}
        self.in_audit = False

    # ========================================================================
    # Execution
    # ========================================================================

    def execute(self, root: Block) -> Any:
        """
        Run the entry block of a program in the global scope.

        Returns:
            The value of the block, or of a top-level `return`
        """
        logger.debug("Executing entry block")
        try:
            return root.run(self)
        except ReturnSignal as signal:
            return signal.value

    def run_tests(self) -> List[TestResult]:
        """Run every declared test. A test passes when it finishes without error."""
        results = []
        for name, test in self.tests.items():
            try:
                test.run(self, [], test)
            except InterpreterError as error:
                logger.info("test %s failed: %s", name, error.message)
                results.append(TestResult(name, False, error))
            else:
                logger.info("test %s passed", name)
                results.append(TestResult(name, True))
        return results

    def debug(self, kind: str, message: str):
        """Trace the execution of one node."""
        logger.debug("%s: %s", kind, message)

    @contextmanager
    def scope(self) -> Iterator[None]:
        """Run the enclosed code in a fresh innermost scope."""
        self.scopes.enter_scope()
        try:
            yield
        finally:
            self.scopes.exit_scope()

    @contextmanager
    def auditing(self) -> Iterator[None]:
        """Allow statements to drop their values while the context is active."""
        previous = self.in_audit
        self.in_audit = True
        try:
            yield
        finally:
            self.in_audit = previous

    def discard(self, value: Any, instruction: Instruction):
        """Drop the value of a statement, which is only legal inside `audit`."""
        if not self.in_audit:
            raise create_unused_value_error(instruction.print(), instruction.location)
        self.debug("AUDIT", f"discarding {value!r}")

    # ========================================================================
    # Variables
    # ========================================================================

    def get_variable(self, name: str, node: Instruction) -> Any:
        variable = self.scopes.lookup(SymbolKind.VARIABLE, name)
        if variable is None:
            raise create_undefined_symbol_error(
                "variable", name, node.location, self.scopes.visible_names(SymbolKind.VARIABLE)
            )
        return variable.value

    def assign(self, name: str, value: Any, mutable: bool, node: Instruction):
        """
        Assign a variable.

        The first assignment of a name declares it in the innermost scope.
        Later assignments update the existing variable, which must have been
        declared with `mut`.
        """
        variable = self.scopes.lookup(SymbolKind.VARIABLE, name)
        if variable is None:
            self.scopes.define(SymbolKind.VARIABLE, name, Variable(name, value, mutable))
            return
        if not variable.is_mutable:
            raise create_immutable_assignment_error(name, node.location)
        variable.value = value

    def declare(self, name: str, value: Any, node: Instruction):
        """Bind an immutable variable in the innermost scope, shadowing outer ones."""
        self.debug("DECLARE", f"{name} = {value!r} at {node.location}")
        self.scopes.define(SymbolKind.VARIABLE, name, Variable(name, value))

    # ========================================================================
    # Functions and types
    # ========================================================================

    def declare_function(self, dec: FunctionDec):
        """
        Register a function declaration.

        `func` and `ext` declare new names, `mock` replaces an existing
        function and `test` is stored apart for `run_tests`.
        """
        if dec.fn_kind is FunctionKind.TEST:
            if dec.name in self.tests:
                raise create_redefinition_error("test", dec.name, dec.location)
            self.tests[dec.name] = dec
            return

        existing = self.scopes.lookup(SymbolKind.FUNCTION, dec.name)

        if dec.fn_kind is FunctionKind.MOCK:
            if not self.scopes.replace(SymbolKind.FUNCTION, dec.name, dec):
                raise create_undefined_symbol_error(
                    "function", dec.name, dec.location, self.scopes.visible_names(SymbolKind.FUNCTION)
                )
            return

        if existing is not None:
            raise create_redefinition_error("function", dec.name, dec.location)
        self.scopes.define(SymbolKind.FUNCTION, dec.name, dec)

    def get_function(self, name: str, node: Instruction) -> FunctionDec:
        function = self.scopes.lookup(SymbolKind.FUNCTION, name)
        if function is None:
            raise create_undefined_symbol_error(
                "function", name, node.location, self.scopes.visible_names(SymbolKind.FUNCTION)
            )
        return function

    def declare_type(self, dec: TypeDec):
        if self.scopes.lookup(SymbolKind.TYPE, dec.name) is not None:
            raise create_redefinition_error("type", dec.name, dec.location)
        self.scopes.define(SymbolKind.TYPE, dec.name, dec)

    def get_type(self, name: str, node: Instruction) -> TypeDec:
        type_dec = self.scopes.lookup(SymbolKind.TYPE, name)
        if type_dec is None:
            raise create_undefined_symbol_error(
                "type", name, node.location, self.scopes.visible_names(SymbolKind.TYPE)
            )
        return type_dec

    def instantiate(self, type_dec: TypeDec, values: List[Any], node: Instruction) -> ObjectInstance:
        if len(values) != len(type_dec.fields):
            raise create_arity_error(type_dec.name, len(type_dec.fields), len(values), node.location)
        return ObjectInstance(type_dec.name, [field.name for field in type_dec.fields], list(values))

    # ========================================================================
    # Operations
    # ========================================================================

    def binary_operation(self, operator: str, lhs: Any, rhs: Any, node: Instruction) -> Any:
        """
        Apply a binary operator.

        Both operands must have the same type, except that ints and floats
        mix freely. Integer division and remainder truncate toward zero.
        """
        location = node.location

        if _is_number(lhs) and _is_number(rhs):
            return self._numeric_operation(operator, lhs, rhs, location)

        if type(lhs) is not type(rhs):
            raise create_invalid_operation_error(operator, lhs, rhs, location)

        if isinstance(lhs, bool):
            if operator in EQUALITY_OPERATORS:
                return _compare(operator, lhs, rhs)
            if operator == "&&":
                return lhs and rhs
            if operator == "||":
                return lhs or rhs
            if operator in ("&", "|", "^"):
                return bool(_bitwise(operator, lhs, rhs))

        elif isinstance(lhs, str):
            if operator == "+":
                return lhs + rhs
            if operator in EQUALITY_OPERATORS or operator in COMPARISON_OPERATORS:
                return _compare(operator, lhs, rhs)

        elif isinstance(lhs, ObjectInstance):
            if operator in EQUALITY_OPERATORS:
                return _compare(operator, lhs, rhs)

        raise create_invalid_operation_error(operator, lhs, rhs, location)

    def _numeric_operation(self, operator: str, lhs, rhs, location) -> Any:
        integers = isinstance(lhs, int) and isinstance(rhs, int)

        if operator in EQUALITY_OPERATORS or operator in COMPARISON_OPERATORS:
            return _compare(operator, lhs, rhs)

        if operator in LOGICAL_OPERATORS or (operator in BITWISE_OPERATORS and not integers):
            raise create_invalid_operation_error(operator, lhs, rhs, location)

        if operator in ("/", "%") and rhs == 0:
            raise create_invalid_operation_error(operator, lhs, rhs, location, "Division by zero")
        if operator in ("<<", ">>") and rhs < 0:
            raise create_invalid_operation_error(operator, lhs, rhs, location, "Negative shift count")
        if operator == "<<" and rhs >= 64 and lhs != 0:
            raise create_invalid_operation_error(operator, lhs, rhs, location, "Integer overflow")

        if operator in BITWISE_OPERATORS:
            result = _bitwise(operator, lhs, rhs)
        elif operator == "+":
            result = lhs + rhs
        elif operator == "-":
            result = lhs - rhs
        elif operator == "*":
            result = lhs * rhs
        elif integers:
            quotient = abs(lhs) // abs(rhs)
            if (lhs < 0) != (rhs < 0):
                quotient = -quotient
            result = quotient if operator == "/" else lhs - rhs * quotient
        elif operator == "/":
            result = lhs / rhs
        else:
            result = math.fmod(lhs, rhs)

        if integers and not INT_MIN <= result <= INT_MAX:
            raise create_invalid_operation_error(operator, lhs, rhs, location, "Integer overflow")
        return result

    def iterate(self, value: Any, node: Instruction) -> Iterator[Any]:
        """Values a `for` loop visits: characters of a string, fields of an object."""
        if isinstance(value, str):
            return iter(list(value))
        if isinstance(value, ObjectInstance):
            return iter(list(value.fields))
        raise create_type_mismatch_error("string or object", value, node.location)

    # ========================================================================
    # Includes and directives
    # ========================================================================

    def include(self, path: str, alias: Optional[str], node: Instruction):
        """
        Load, parse and run an included file in the current scope.

        A file is only ever included once, which makes cyclic includes
        harmless.
        """
        resolved = self.loader.resolve(path)
        if resolved is None:
            raise create_include_error(path, node.location, "no matching file or library directory")

        if alias is not None:
            self.aliases[alias] = resolved

        if resolved in self.included:
            self.debug("INCL", f"{resolved} already included")
            return
        self.included.add(resolved)

        try:
            block = self.loader.load(resolved)
        except ParseError as error:
            raise create_include_error(path, node.location, error.message) from error
        except OSError as error:
            raise create_include_error(path, node.location, str(error)) from error

        previous = self.loader
        self.loader = previous.for_file(resolved)
        try:
            block.run(self)
        finally:
            self.loader = previous

    def directive(self, directive: Directive, node: Instruction) -> Optional[str]:
        self.debug("DIRECTIVE", f"@{directive.value}() at {node.location}")
        if directive is Directive.QUIT:
            raise QuitRequest(0)

        text = self.dump()
        self.output.write(text + "\n")
        return text

    def dump(self) -> str:
        """Render every scope, outermost first."""
        lines = []
        for depth, scope in enumerate(self.scopes.scopes):
            lines.append(f"scope {depth}:")
            for variable in scope.variables.values():
                lines.append(f"  {variable}")
            for function in scope.functions.values():
                lines.append(f"  {function.fn_kind.value} {function.name}")
            for type_dec in scope.types.values():
                lines.append(f"  {type_dec.print()}")
        if self.tests:
            lines.append(f"tests: {', '.join(self.tests)}")
        return "\n".join(lines)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _compare(operator: str, lhs: Any, rhs: Any) -> bool:
    if operator == "==":
        return lhs == rhs
    if operator == "!=":
        return lhs != rhs
    if operator == "<":
        return lhs < rhs
    if operator == ">":
        return lhs > rhs
    if operator == "<=":
        return lhs <= rhs
    return lhs >= rhs


def _bitwise(operator: str, lhs, rhs):
    if operator == "&":
        return lhs & rhs
    if operator == "|":
        return lhs | rhs
    if operator == "^":
        return lhs ^ rhs
    if operator == "<<":
        return lhs << rhs
    return lhs >> rhs
