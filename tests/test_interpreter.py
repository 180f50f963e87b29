"""
Test suite for the jinko interpreter.

Tests cover:
- Arithmetic, comparison and logical operations
- Variables, mutability and scoping
- Functions, mocks, external declarations and custom types
- Control flow and returns
- Audit blocks, directives, test declarations and includes

Author: xwest
"""

import unittest
import sys
import os
import io
import tempfile
from pathlib import Path

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from jinko.errors import InterpreterError, QuitRequest
from jinko.parser import parse_string
from jinko.interpreter import Interpreter, FileLoader, ObjectInstance, ScopeMap, SymbolKind, Variable


def run(source: str, interpreter: Interpreter = None):
    """Parse and execute `source`, returning the program value."""
    interpreter = interpreter or Interpreter(output=io.StringIO())
    return interpreter.execute(parse_string(source))


class TestOperations(unittest.TestCase):

    def test_arithmetic(self):
        self.assertEqual(run("1 + 2 * 3"), 7)
        self.assertEqual(run("(1 + 2) * 3"), 9)
        self.assertEqual(run("10 - 4 - 3"), 3)
        self.assertEqual(run("7 / 2"), 3)
        self.assertEqual(run("7 % 3"), 1)

    def test_integer_division_truncates_toward_zero(self):
        self.assertEqual(run("0 - 7 / 2"), -3)
        self.assertEqual(run("(0 - 7) / 2"), -3)
        self.assertEqual(run("(0 - 7) % 2"), -1)

    def test_floats(self):
        self.assertEqual(run("7.0 / 2"), 3.5)
        self.assertAlmostEqual(run("0.1 + 0.2"), 0.3)
        self.assertEqual(run("1 + 1.5"), 2.5)

    def test_bitwise(self):
        self.assertEqual(run("1 << 4"), 16)
        self.assertEqual(run("12 & 10"), 8)
        self.assertEqual(run("12 | 3"), 15)
        self.assertEqual(run("6 ^ 3"), 5)
        self.assertEqual(run("256 >> 4"), 16)

    def test_comparisons(self):
        self.assertIs(run("1 < 2"), True)
        self.assertIs(run("2 <= 1"), False)
        self.assertIs(run("3 == 3.0"), True)
        self.assertIs(run('"abc" != "abd"'), True)

    def test_logic(self):
        self.assertIs(run("true && false"), False)
        self.assertIs(run("true || false"), True)
        self.assertIs(run("1 < 2 && 3 > 2"), True)

    def test_strings(self):
        self.assertEqual(run('"ab" + "cd"'), "abcd")

    def test_invalid_operations(self):
        sources = [
            "1 / 0",
            "1 % 0",
            "true + 1",
            '"a" - "b"',
            "1.5 << 2",
            "1 << 64",
            "1 >> (0 - 1)",
            "9223372036854775807 + 1",
        ]
        for source in sources:
            with self.subTest(source=source):
                with self.assertRaises(InterpreterError) as context:
                    run(source)
                self.assertEqual(context.exception.code, "E009")

    def test_division_by_zero_message(self):
        with self.assertRaises(InterpreterError) as context:
            run("1 / 0")
        self.assertEqual(context.exception.message, "Division by zero")


class TestVariables(unittest.TestCase):

    def test_assignment(self):
        self.assertEqual(run("x = 3; x * 4"), 12)

    def test_immutable(self):
        with self.assertRaises(InterpreterError) as context:
            run("x = 1; x = 2")
        self.assertEqual(context.exception.code, "E003")

    def test_mutable(self):
        self.assertEqual(run("mut x = 1; x = x + 1; x"), 2)

    def test_undefined(self):
        with self.assertRaises(InterpreterError) as context:
            run("value = 1; valeu")
        error = context.exception
        self.assertEqual(error.code, "E001")
        self.assertIn("Did you mean 'value'?", error.suggestions)

    def test_block_scope(self):
        with self.assertRaises(InterpreterError) as context:
            run("{ y = 1; }; y")
        self.assertEqual(context.exception.code, "E001")

    def test_inner_block_updates_outer_mutable(self):
        self.assertEqual(run("mut x = 1; { x = 5; }; x"), 5)

    def test_statement_has_no_value(self):
        with self.assertRaises(InterpreterError) as context:
            run("x = { y = 1; }")
        self.assertEqual(context.exception.code, "E007")


class TestScopeMap(unittest.TestCase):

    def test_shadowing(self):
        scopes = ScopeMap()
        scopes.define(SymbolKind.VARIABLE, "x", Variable("x", 1))
        scopes.enter_scope()
        scopes.define(SymbolKind.VARIABLE, "x", Variable("x", 2))
        self.assertEqual(scopes.lookup(SymbolKind.VARIABLE, "x").value, 2)
        scopes.exit_scope()
        self.assertEqual(scopes.lookup(SymbolKind.VARIABLE, "x").value, 1)

    def test_namespaces_are_separate(self):
        scopes = ScopeMap()
        scopes.define(SymbolKind.VARIABLE, "f", Variable("f", 1))
        self.assertIsNone(scopes.lookup(SymbolKind.FUNCTION, "f"))

    def test_global_scope_is_kept(self):
        scopes = ScopeMap()
        self.assertIsNone(scopes.exit_scope())
        self.assertEqual(scopes.depth, 1)

    def test_replace(self):
        scopes = ScopeMap()
        self.assertFalse(scopes.replace(SymbolKind.FUNCTION, "f", None))
        scopes.define(SymbolKind.FUNCTION, "f", "old")
        scopes.enter_scope()
        self.assertTrue(scopes.replace(SymbolKind.FUNCTION, "f", "new"))
        self.assertIsNone(scopes.lookup_local(SymbolKind.FUNCTION, "f"))
        self.assertEqual(scopes.lookup(SymbolKind.FUNCTION, "f"), "new")


class TestFunctions(unittest.TestCase):

    def test_call(self):
        self.assertEqual(run("func add(a: int, b: int) -> int { a + b }\nadd(1, 2)"), 3)

    def test_method_call(self):
        self.assertEqual(run("func double(x: int) -> int { x * 2 }\n4.double()"), 8)

    def test_recursion(self):
        source = """
        func fact(n: int) -> int {
            if n <= 1 { 1 } else { n * fact(n - 1) }
        }
        fact(10)
        """
        self.assertEqual(run(source), 3628800)

    def test_arguments_shadow_globals(self):
        self.assertEqual(run("a = 1\nfunc f(a: int) -> int { a }\nf(2)"), 2)

    def test_return(self):
        self.assertEqual(run("func f() -> int { return 1; 2 }\nf()"), 1)

    def test_return_from_loop(self):
        source = """
        func f() -> int {
            mut i = 0;
            loop {
                i = i + 1;
                if i == 5 { return i }
            };
            0
        }
        f()
        """
        self.assertEqual(run(source), 5)

    def test_top_level_return(self):
        self.assertEqual(run("return 4;\n5"), 4)

    def test_arity(self):
        with self.assertRaises(InterpreterError) as context:
            run("func f(a: int) -> int { a }\nf()")
        self.assertEqual(context.exception.code, "E005")

    def test_undefined_function(self):
        with self.assertRaises(InterpreterError) as context:
            run("nope()")
        self.assertEqual(context.exception.code, "E001")

    def test_redefinition(self):
        with self.assertRaises(InterpreterError) as context:
            run("func f() {}\nfunc f() {}")
        self.assertEqual(context.exception.code, "E002")

    def test_mock(self):
        self.assertEqual(run("func f() -> int { 1 }\nmock f() -> int { 2 }\nf()"), 2)

    def test_mock_unknown_function(self):
        with self.assertRaises(InterpreterError) as context:
            run("mock f() -> int { 2 }")
        self.assertEqual(context.exception.code, "E001")

    def test_external_call(self):
        with self.assertRaises(InterpreterError) as context:
            run('ext func puts(s: string);\nputs("hi")')
        self.assertEqual(context.exception.code, "E006")

    def test_void_argument(self):
        with self.assertRaises(InterpreterError) as context:
            run("func g() {}\nfunc f(a: int) -> int { a }\nf(g())")
        self.assertEqual(context.exception.code, "E007")


class TestTypes(unittest.TestCase):

    def test_instantiation(self):
        value = run("type Point(x: int, y: int);\nPoint { 1, 2 }")
        self.assertIsInstance(value, ObjectInstance)
        self.assertEqual(value.type_name, "Point")
        self.assertEqual(value.get("y"), 2)
        self.assertEqual(str(value), "Point { x: 1, y: 2 }")

    def test_equality(self):
        source = "type P(x: int);\na = P { 1 };\nb = P { 1 };\na == b"
        self.assertIs(run(source), True)

    def test_wrong_field_count(self):
        with self.assertRaises(InterpreterError) as context:
            run("type P(x: int);\nP { 1, 2 }")
        self.assertEqual(context.exception.code, "E005")

    def test_unknown_type(self):
        with self.assertRaises(InterpreterError) as context:
            run("Q { 1 }")
        self.assertEqual(context.exception.code, "E001")

    def test_method_on_instance(self):
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
        self.assertEqual(run(source), 12)


class TestControlFlow(unittest.TestCase):

    def test_if_else(self):
        self.assertEqual(run("x = 3\nif x > 2 { 1 } else { 0 }"), 1)
        self.assertEqual(run("x = 1\nif x > 2 { 1 } else { 0 }"), 0)
        self.assertIsNone(run("if false { 1 }"))

    def test_condition_must_be_bool(self):
        with self.assertRaises(InterpreterError) as context:
            run("if 1 { 2 }")
        self.assertEqual(context.exception.code, "E004")

    def test_while(self):
        self.assertEqual(run("mut i = 0; while i < 3 { i = i + 1 }; i"), 3)

    def test_for_string(self):
        self.assertEqual(run('mut n = 0; for c in "abc" { n = n + 1 }; n'), 3)

    def test_for_variable_is_scoped(self):
        with self.assertRaises(InterpreterError) as context:
            run('for c in "ab" { }; c')
        self.assertEqual(context.exception.code, "E001")

    def test_for_requires_iterable(self):
        with self.assertRaises(InterpreterError) as context:
            run("for x in 3 { }")
        self.assertEqual(context.exception.code, "E004")


class TestAuditAndDirectives(unittest.TestCase):

    def test_unused_value(self):
        with self.assertRaises(InterpreterError) as context:
            run("func f() -> int { 1 }\nf(); 2")
        self.assertEqual(context.exception.code, "E008")

    def test_audit_allows_unused_values(self):
        self.assertEqual(run("func f() -> int { 1 }\naudit { f(); }; 2"), 2)

    def test_audit_state_is_restored(self):
        with self.assertRaises(InterpreterError) as context:
            run("func f() -> int { 1 }\naudit { f(); };\nf(); 2")
        self.assertEqual(context.exception.code, "E008")

    def test_dump(self):
        output = io.StringIO()
        interpreter = Interpreter(output=output)
        run("mut x = 1;\nfunc f() {}\n@dump()", interpreter)
        text = output.getvalue()
        self.assertIn("scope 0:", text)
        self.assertIn("mut x = 1", text)
        self.assertIn("func f", text)

    def test_quit(self):
        with self.assertRaises(QuitRequest) as context:
            run("@quit()\nnever()")
        self.assertEqual(context.exception.exit_code, 0)


class TestTests(unittest.TestCase):

    def test_run_tests(self):
        interpreter = Interpreter(output=io.StringIO())
        source = """
        func f() -> int { 1 }
        test passes() { x = f(); }
        test fails() { g() }
        """
        run(source, interpreter)
        results = interpreter.run_tests()
        self.assertEqual([result.name for result in results], ["passes", "fails"])
        self.assertTrue(results[0].passed)
        self.assertFalse(results[1].passed)
        self.assertEqual(results[1].error.code, "E001")
        self.assertEqual(str(results[0]), "test passes ... ok")
        self.assertEqual(str(results[1]), "test fails ... FAILED")

    def test_tests_do_not_run_with_program(self):
        self.assertEqual(run("test t() { g() }\n1"), 1)

    def test_duplicate_test(self):
        with self.assertRaises(InterpreterError) as context:
            run("test t() {}\ntest t() {}")
        self.assertEqual(context.exception.code, "E002")


class TestIncludes(unittest.TestCase):

    def setUp(self):
        self.directory = tempfile.TemporaryDirectory()
        self.root = Path(self.directory.name)

    def tearDown(self):
        self.directory.cleanup()

    def write(self, name: str, source: str) -> Path:
        path = self.root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
        return path

    def interpreter(self) -> Interpreter:
        return Interpreter(loader=FileLoader(self.root), output=io.StringIO())

    def test_include_file(self):
        self.write("helpers.jk", "func helper() -> int { 42 }")
        self.assertEqual(run("incl helpers\nhelper()", self.interpreter()), 42)

    def test_include_library_directory(self):
        self.write("mylib/lib.jk", "func helper() -> int { 7 }")
        interpreter = self.interpreter()
        self.assertEqual(run("incl mylib as m\nhelper()", interpreter), 7)
        self.assertEqual(interpreter.aliases["m"], (self.root / "mylib" / "lib.jk").resolve())

    def test_nested_include_is_relative(self):
        self.write("outer/lib.jk", "incl inner\nfunc outer() -> int { inner() + 1 }")
        self.write("outer/inner.jk", "func inner() -> int { 1 }")
        self.assertEqual(run("incl outer\nouter()", self.interpreter()), 2)

    def test_include_once(self):
        self.write("helpers.jk", "func helper() -> int { 42 }")
        source = "incl helpers\nincl helpers\nhelper()"
        self.assertEqual(run(source, self.interpreter()), 42)

    def test_cyclic_include(self):
        self.write("a.jk", "incl b\nfunc a() -> int { 1 }")
        self.write("b.jk", "incl a\nfunc b() -> int { 2 }")
        self.assertEqual(run("incl a\na() + b()", self.interpreter()), 3)

    def test_missing_include(self):
        with self.assertRaises(InterpreterError) as context:
            run("incl missing", self.interpreter())
        self.assertEqual(context.exception.code, "E010")

    def test_include_with_parse_error(self):
        self.write("broken.jk", "func (")
        with self.assertRaises(InterpreterError) as context:
            run("incl broken", self.interpreter())
        self.assertEqual(context.exception.code, "E010")


if __name__ == '__main__':
    unittest.main()
