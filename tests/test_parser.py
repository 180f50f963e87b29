"""
Test suite for the jinko parser entry point.

Tests cover:
- Root block construction and the program value
- Optional top-level semicolons
- Error reporting on incomplete or trailing input
- Recursion limits and file parsing

Author: xwest
"""

import unittest
import sys
import os
import tempfile
from pathlib import Path

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from jinko.config import JinkoConfig
from jinko.errors import ParseError, ParseErrorKind
from jinko.parser import Parser, parse_string, parse_file
from jinko.parser.ast_nodes import (
    Block, BinaryOp, FunctionDec, MethodCall, TypeDec, VarAssign, Var, JinkInt
)


class TestRootBlock(unittest.TestCase):

    def test_empty_program(self):
        self.assertEqual(parse_string(""), Block())
        self.assertEqual(parse_string("  // only a comment\n"), Block())

    def test_last_value(self):
        root = parse_string("x = 3; x * 4")
        self.assertEqual(len(root.instructions), 1)
        self.assertIsInstance(root.instructions[0], VarAssign)
        self.assertIsInstance(root.last, BinaryOp)

    def test_terminated_program_has_no_value(self):
        root = parse_string("x = 3; x * 4;")
        self.assertEqual(len(root.instructions), 2)
        self.assertIsNone(root.last)

    def test_semicolons_optional_at_top_level(self):
        root = parse_string("x = 1\ny = 2\nx + y")
        self.assertEqual([node.symbol for node in root.instructions], ["x", "y"])
        self.assertEqual(root.last, BinaryOp("+", Var("x"), Var("y")))

    def test_declarations(self):
        source = """
        type Point(x: int, y: int);

        func sum(p: Point) -> int {
            mut total = 0;
            for value in p {
                total = total + value;
            };
            total
        }

        p = Point { 4, 8 };
        p.sum()
        """
        root = parse_string(source)
        self.assertIsInstance(root.instructions[0], TypeDec)
        self.assertIsInstance(root.instructions[1], FunctionDec)
        self.assertIsInstance(root.instructions[2], VarAssign)
        self.assertIsInstance(root.last, MethodCall)

    def test_print_round_trip(self):
        source = "func f(a: int) -> int { if a > 1 { a } else { 1 } }\nf(3)"
        func = parse_string(source).instructions[0]
        self.assertEqual(parse_string(func.print()).last, func)

    def test_float_print_round_trip(self):
        for source in ("x = 100000000000000000000.0", "x = 0.0000001"):
            with self.subTest(source=source):
                assignment = parse_string(source).last
                self.assertEqual(parse_string(assignment.print()).last, assignment)

    def test_locations(self):
        root = parse_string("x = 1;\n  y", filename="main.jk")
        location = root.last.location
        self.assertEqual((location.line, location.column), (2, 3))
        self.assertEqual(str(location), "main.jk:2:3")

    def test_config_is_used(self):
        root = parse_string("1.f().g()", config=JinkoConfig(chained_method_calls=True))
        self.assertIsInstance(root.last.caller, MethodCall)


class TestErrors(unittest.TestCase):

    def test_trailing_input(self):
        with self.assertRaises(ParseError) as context:
            parse_string("1 }")
        error = context.exception
        self.assertEqual(error.kind, ParseErrorKind.TRAILING_INPUT)
        self.assertEqual(error.remaining, "}")

    def test_unchained_method_call_leaves_input(self):
        with self.assertRaises(ParseError):
            parse_string("1.double().double()")

    def test_furthest_error_is_reported(self):
        with self.assertRaises(ParseError) as context:
            parse_string("x = 1;\n@dmup()")
        error = context.exception
        self.assertEqual(error.kind, ParseErrorKind.UNKNOWN_DIRECTIVE)
        self.assertEqual(error.location.line, 2)
        self.assertIn("@dump", error.suggestions)

    def test_unknown_directive_inside_blocks(self):
        sources = [
            "func f() { @nope(); }",
            "if true { @nope() }",
            "loop { x = 1; @nope(); }",
            "audit { @nope() }",
        ]
        for source in sources:
            with self.subTest(source=source):
                with self.assertRaises(ParseError) as context:
                    parse_string(source)
                self.assertEqual(context.exception.kind, ParseErrorKind.UNKNOWN_DIRECTIVE)
                self.assertTrue(context.exception.remaining.startswith("nope"))

    def test_malformed_literal_inside_block(self):
        with self.assertRaises(ParseError) as context:
            parse_string("{ x = 99999999999999999999; }")
        self.assertEqual(context.exception.kind, ParseErrorKind.MALFORMED_LITERAL)

    def test_directive_error_line_in_function_body(self):
        with self.assertRaises(ParseError) as context:
            parse_string("func f() {\n    x = 1;\n    @dmup();\n}")
        error = context.exception
        self.assertEqual(error.kind, ParseErrorKind.UNKNOWN_DIRECTIVE)
        self.assertEqual(error.location.line, 3)

    def test_incomplete_program(self):
        for source in ("func f(", "{ 1", "x = ", "type T();"):
            with self.subTest(source=source):
                with self.assertRaises(ParseError):
                    parse_string(source)

    def test_diagnostic_text(self):
        with self.assertRaises(ParseError) as context:
            parse_string("1 }", filename="bad.jk")
        text = str(context.exception)
        self.assertIn("ERROR[P", text)
        self.assertIn("--> bad.jk:1:3", text)

    def test_recursion_limit(self):
        source = "{" * 100 + "}" * 100
        with self.assertRaises(ParseError) as context:
            parse_string(source)
        self.assertEqual(context.exception.kind, ParseErrorKind.RECURSION_LIMIT)
        self.assertTrue(context.exception.fatal)

    def test_nesting_within_limit(self):
        source = "{" * 5 + "1" + "}" * 5
        root = Parser(source, config=JinkoConfig(max_depth=8)).parse()
        self.assertIsInstance(root.last, Block)


class TestParseFile(unittest.TestCase):

    def test_parse_file(self):
        with tempfile.TemporaryDirectory() as directory:
            path = Path(directory) / "main.jk"
            path.write_text("x = 1;\nx", encoding="utf-8")
            root = parse_file(path)
        self.assertEqual(root.last, Var("x"))
        self.assertEqual(root.instructions[0].value, JinkInt(1))
        self.assertEqual(root.last.location.filename, str(path))

    def test_missing_file(self):
        with tempfile.TemporaryDirectory() as directory:
            with self.assertRaises(OSError):
                parse_file(Path(directory) / "missing.jk")


if __name__ == '__main__':
    unittest.main()
