"""
Shunting yard parser for binary operations.

Reads an alternating run of operands and operators, with optional
parentheses, and builds a BinaryOp tree that honors operator precedence and
associativity. Operands themselves are parsed by a rule handed in by the
grammar, which keeps this module independent from the constructs.

Author: xwest
"""

from enum import IntEnum
from typing import Callable, List, Optional, Tuple

from ..lexer.cursor import Cursor
from ..lexer.lexer import Token
from ..lexer.tokens import OPERATORS, OPERATOR_CHARS
from ..errors import create_unrecognized_construct_error
from .ast_nodes import BinaryOp, Instruction


class Precedence(IntEnum):
    """Binding strength of binary operators, loosest first."""
    LOGICAL_OR = 1      # ||
    LOGICAL_AND = 2     # &&
    BITWISE_OR = 3      # |
    BITWISE_XOR = 4     # ^
    BITWISE_AND = 5     # &
    EQUALITY = 6        # ==, !=
    COMPARISON = 7      # <, >, <=, >=
    SHIFT = 8           # <<, >>
    TERM = 9            # +, -
    FACTOR = 10         # *, /, %


OPERATOR_TABLE = {
    "||": Precedence.LOGICAL_OR,
    "&&": Precedence.LOGICAL_AND,
    "|": Precedence.BITWISE_OR,
    "^": Precedence.BITWISE_XOR,
    "&": Precedence.BITWISE_AND,
    "==": Precedence.EQUALITY,
    "!=": Precedence.EQUALITY,
    "<": Precedence.COMPARISON,
    ">": Precedence.COMPARISON,
    "<=": Precedence.COMPARISON,
    ">=": Precedence.COMPARISON,
    "<<": Precedence.SHIFT,
    ">>": Precedence.SHIFT,
    "+": Precedence.TERM,
    "-": Precedence.TERM,
    "*": Precedence.FACTOR,
    "/": Precedence.FACTOR,
    "%": Precedence.FACTOR,
}

# Longest operators first so that `<<` is never read as `<`
_OPERATORS_BY_LENGTH = sorted(OPERATORS, key=len, reverse=True)

_LEFT_PAREN = "("

OperandRule = Callable[[Cursor], Tuple[Cursor, Instruction]]


class ShuntingYard:
    """
    Operator precedence parsing of `operand (operator operand)+`.

    The output stack holds built operands, the operator stack holds pending
    operators and open parentheses. An operator is pushed only after every
    stacked operator that binds at least as tightly has been reduced.
    """

    @staticmethod
    def parse(cursor: Cursor, operand: OperandRule) -> Tuple[Cursor, BinaryOp]:
        """
        Parse a binary operation starting at `cursor`.

        Args:
            cursor: Start of the expression
            operand: Rule parsing one operand

        Returns:
            The cursor right after the last operand, and the root BinaryOp

        Raises:
            ParseError: When no operator is present, an operator is not
                recognized, an operand is missing or parentheses do not match
        """
        start = cursor
        output: List[Instruction] = []
        operators: List[str] = []
        open_parens = 0
        saw_operator = False
        expect_operand = True
        end = cursor

        while True:
            cursor, _ = Token.maybe_consume_extra(cursor)

            if expect_operand:
                if cursor.startswith(_LEFT_PAREN):
                    operators.append(_LEFT_PAREN)
                    open_parens += 1
                    cursor = cursor.advance(1)
                    continue

                inner = cursor.unrestricted() if open_parens else cursor
                inner_end, node = operand(inner)
                cursor = inner_end.restore(cursor)
                output.append(node)
                end = cursor
                expect_operand = False
                continue

            if open_parens and cursor.startswith(")"):
                ShuntingYard._reduce_until_paren(operators, output)
                open_parens -= 1
                cursor = cursor.advance(1)
                end = cursor
                continue

            operator = ShuntingYard._operator(cursor)
            if operator is None:
                if cursor.peek() in OPERATOR_CHARS:
                    raise create_unrecognized_construct_error(
                        "binary operation", cursor,
                        f"unknown operator starting with '{cursor.peek()}'"
                    )
                break

            ShuntingYard._push_operator(operator, operators, output)
            saw_operator = True
            expect_operand = True
            cursor = cursor.advance(len(operator))

        if open_parens:
            raise create_unrecognized_construct_error("binary operation", end, "unclosed parenthesis")
        if not saw_operator:
            raise create_unrecognized_construct_error("binary operation", start, "no operator found")

        while operators:
            ShuntingYard._reduce(operators.pop(), output)

        return end, output.pop()

    @staticmethod
    def _operator(cursor: Cursor) -> Optional[str]:
        for operator in _OPERATORS_BY_LENGTH:
            if cursor.startswith(operator):
                return operator
        return None

    @staticmethod
    def _push_operator(operator: str, operators: List[str], output: List[Instruction]):
        precedence = OPERATOR_TABLE[operator]

        # Every operator is left associative: equal precedence reduces first
        while operators and operators[-1] != _LEFT_PAREN:
            if OPERATOR_TABLE[operators[-1]] >= precedence:
                ShuntingYard._reduce(operators.pop(), output)
            else:
                break

        operators.append(operator)

    @staticmethod
    def _reduce_until_paren(operators: List[str], output: List[Instruction]):
        while operators[-1] != _LEFT_PAREN:
            ShuntingYard._reduce(operators.pop(), output)
        operators.pop()

    @staticmethod
    def _reduce(operator: str, output: List[Instruction]):
        rhs = output.pop()
        lhs = output.pop()
        output.append(BinaryOp(operator, lhs, rhs, location=lhs.location))
