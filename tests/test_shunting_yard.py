"""
Test suite for binary operation parsing.

Tests cover:
- Operator precedence and left associativity
- Parentheses
- Operand kinds accepted inside operations
- Failures: missing operator, unknown operator, unclosed parenthesis

Author: xwest
"""

import unittest
import sys
import os

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from jinko.lexer import Cursor
from jinko.errors import ParseError
from jinko.parser.ast_nodes import BinaryOp, JinkInt, Var, FunctionCall, MethodCall
from jinko.parser.constructs import Construct
from jinko.parser.shunting_yard import ShuntingYard, OPERATOR_TABLE, Precedence


def binop(source: str):
    return Construct.binary_op(Cursor.from_source(source))


class TestPrecedence(unittest.TestCase):
    """Tree shapes produced by the shunting yard."""

    def test_multiplication_binds_tighter_than_addition(self):
        _, root = binop("1 + 2 * 3")
        self.assertIsInstance(root, BinaryOp)
        self.assertEqual(root.operator, "+")
        self.assertEqual(root.lhs, JinkInt(1))
        self.assertIsInstance(root.rhs, BinaryOp)
        self.assertEqual(root.rhs.operator, "*")
        self.assertEqual(root.rhs.lhs, JinkInt(2))
        self.assertEqual(root.rhs.rhs, JinkInt(3))

    def test_multiplication_first(self):
        _, root = binop("1 * 2 + 3")
        self.assertEqual(root.operator, "+")
        self.assertEqual(root.lhs.operator, "*")
        self.assertEqual(root.rhs, JinkInt(3))

    def test_left_associativity(self):
        _, root = binop("1 - 2 - 3")
        self.assertEqual(root.operator, "-")
        self.assertIsInstance(root.lhs, BinaryOp)
        self.assertEqual(root.lhs.print(), "1 - 2")
        self.assertEqual(root.rhs, JinkInt(3))

    def test_parentheses_override_precedence(self):
        _, root = binop("(1 + 2) * 3")
        self.assertEqual(root.operator, "*")
        self.assertEqual(root.lhs.operator, "+")
        self.assertEqual(root.print(), "(1 + 2) * 3")

    def test_nested_parentheses(self):
        _, root = binop("((1 + 2) * (3 - 4)) / 5")
        self.assertEqual(root.operator, "/")
        self.assertEqual(root.lhs.operator, "*")
        self.assertEqual(root.lhs.rhs.operator, "-")

    def test_comparison_and_logic(self):
        _, root = binop("a < 2 && b == c || d")
        self.assertEqual(root.operator, "||")
        self.assertEqual(root.lhs.operator, "&&")
        self.assertEqual(root.lhs.lhs.operator, "<")
        self.assertEqual(root.lhs.rhs.operator, "==")
        self.assertEqual(root.rhs, Var("d"))

    def test_two_character_operators(self):
        _, root = binop("a << 2 >= b")
        self.assertEqual(root.operator, ">=")
        self.assertEqual(root.lhs.operator, "<<")

    def test_operator_table_covers_precedence_levels(self):
        self.assertEqual(OPERATOR_TABLE["*"], Precedence.FACTOR)
        self.assertGreater(OPERATOR_TABLE["+"], OPERATOR_TABLE["<"])
        self.assertGreater(OPERATOR_TABLE["&&"], OPERATOR_TABLE["||"])


class TestOperands(unittest.TestCase):
    """Operands are full constructs, not just literals."""

    def test_call_operands(self):
        _, root = binop("f(1) + g()")
        self.assertIsInstance(root.lhs, FunctionCall)
        self.assertEqual(root.lhs.args, [JinkInt(1)])
        self.assertIsInstance(root.rhs, FunctionCall)

    def test_method_call_operand(self):
        _, root = binop("x.len() * 2")
        self.assertIsInstance(root.lhs, MethodCall)

    def test_negative_literal_operand(self):
        _, root = binop("3 * -1")
        self.assertEqual(root.rhs, JinkInt(-1))

    def test_no_space_around_operator(self):
        _, root = binop("x+1")
        self.assertEqual(root.operator, "+")
        self.assertEqual(root.lhs, Var("x"))

    def test_cursor_stops_after_last_operand(self):
        end, _ = binop("1 + 2 ; rest")
        self.assertEqual(end.rest, " ; rest")

    def test_comments_between_operands(self):
        end, root = binop("1 /* one */ + /* two */ 2")
        self.assertEqual(root.print(), "1 + 2")
        self.assertTrue(end.at_end)


class TestFailures(unittest.TestCase):
    """Inputs that are not binary operations."""

    def test_single_operand(self):
        with self.assertRaises(ParseError) as context:
            binop("12")
        self.assertEqual(context.exception.offset, 0)

    def test_missing_right_operand(self):
        with self.assertRaises(ParseError):
            binop("1 +")

    def test_unknown_operator(self):
        with self.assertRaises(ParseError) as context:
            binop("1 ! 2")
        self.assertIn("unknown operator", context.exception.message)

    def test_unclosed_parenthesis(self):
        with self.assertRaises(ParseError) as context:
            binop("(1 + 2")
        self.assertIn("unclosed parenthesis", context.exception.message)

    def test_operand_rule_is_pluggable(self):
        end, root = ShuntingYard.parse(Cursor.from_source("a + b"), Construct.variable)
        self.assertEqual(root, BinaryOp("+", Var("a"), Var("b")))
        self.assertTrue(end.at_end)


if __name__ == '__main__':
    unittest.main()
