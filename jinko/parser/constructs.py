"""
Grammar rules of the jinko language.

Every rule is a static method `(cursor) -> (cursor, node)` that raises
ParseError when the input does not match. Rules are composed with ordered
alternation: the order of alternatives is part of the grammar, since the
first alternative that succeeds wins.

Author: xwest
"""

from typing import List, Optional, Tuple

from ..lexer.cursor import Cursor
from ..lexer.lexer import Token
from ..errors import (
    ParseError, create_unrecognized_construct_error, create_unknown_directive_error
)
from .ast_nodes import (
    Instruction, Block, FunctionDec, FunctionKind, DecArg, TypeDec, TypeInstantiation,
    Incl, Var, VarAssign, FunctionCall, MethodCall, IfElse, Loop, Audit, Return,
    JkInst, Directive, JinkInt, JinkFloat, JinkBool, JinkChar, JinkString
)
from .combinators import alt, opt, many0, memoize, furthest_error
from .shunting_yard import ShuntingYard

ParseResult = Tuple[Cursor, Instruction]


class ConstantConstruct:
    """Literal values written directly in the source."""

    @staticmethod
    def char_constant(cursor: Cursor) -> Tuple[Cursor, JinkChar]:
        end, value = Token.char_constant(cursor)
        return end, JinkChar(value, location=cursor.location)

    @staticmethod
    def string_constant(cursor: Cursor) -> Tuple[Cursor, JinkString]:
        end, value = Token.string_constant(cursor)
        return end, JinkString(value, location=cursor.location)

    @staticmethod
    def float_constant(cursor: Cursor) -> Tuple[Cursor, JinkFloat]:
        end, value = Token.float_constant(cursor)
        return end, JinkFloat(value, location=cursor.location)

    @staticmethod
    def int_constant(cursor: Cursor) -> Tuple[Cursor, JinkInt]:
        end, value = Token.int_constant(cursor)
        return end, JinkInt(value, location=cursor.location)

    @staticmethod
    def bool_constant(cursor: Cursor) -> Tuple[Cursor, JinkBool]:
        end, value = Token.bool_constant(cursor)
        return end, JinkBool(value, location=cursor.location)


class Construct:
    """
    One rule per language construct.

    Rules that are retried from many alternatives (`instruction`, `block`,
    `function_call`) are memoized for the duration of a parse.
    """

    # ========================================================================
    # Instructions
    # ========================================================================

    @staticmethod
    @memoize
    def instruction(cursor: Cursor) -> ParseResult:
        """
        Parse any instruction, skipping insignificant input around it.

        The order of the alternatives decides ambiguities: binary operations
        come before anything that could be their first operand, method calls
        before plain calls and declaration keywords before calls and
        variables.
        """
        origin = cursor
        cursor = cursor.enter()
        cursor, _ = Token.maybe_consume_extra(cursor)

        cursor, value = alt(
            Construct.binary_op,
            Construct.method_call,
            Construct.function_declaration,
            Construct.type_declaration,
            Construct.ext_declaration,
            Construct.test_declaration,
            Construct.mock_declaration,
            Construct.type_instantiation,
            Construct.function_call,
            Construct.incl,
            Construct.if_else,
            Construct.any_loop,
            Construct.jinko_inst,
            Construct.audit,
            Construct.block,
            Construct.var_assignment,
            Construct.variable,
            Construct.return_expression,
            Construct.constant,
        )(cursor)

        cursor, _ = Token.maybe_consume_extra(cursor)
        return cursor.restore(origin), value

    @staticmethod
    def instruction_maybe_semicolon(cursor: Cursor) -> Tuple[Cursor, Tuple[Instruction, bool]]:
        """Parse an instruction and an optional `;`, reporting whether it was there."""
        cursor, value = Construct.instruction(cursor)
        cursor, semicolon = opt(Token.semicolon)(cursor)
        return cursor, (value, semicolon is not None)

    @staticmethod
    def many_instructions(cursor: Cursor) -> Tuple[Cursor, Tuple[List[Instruction], Optional[Instruction]]]:
        """
        Parse as many instructions as possible, semicolons optional.

        The final instruction is split off as the trailing value when it has
        no semicolon.
        """
        cursor, entries = many0(Construct.instruction_maybe_semicolon)(cursor)
        instructions = [value for value, _ in entries]
        last = None
        if entries and not entries[-1][1]:
            last = instructions.pop()
        return cursor, (instructions, last)

    @staticmethod
    def constant(cursor: Cursor) -> ParseResult:
        """
        `'<char>' | "<chars>" | <float> | <int> | true | false`
        """
        return alt(
            ConstantConstruct.char_constant,
            ConstantConstruct.string_constant,
            ConstantConstruct.float_constant,
            ConstantConstruct.int_constant,
            ConstantConstruct.bool_constant,
        )(cursor)

    @staticmethod
    def variable(cursor: Cursor) -> Tuple[Cursor, Var]:
        end, name = Token.identifier(cursor)
        return end, Var(name, location=cursor.location)

    @staticmethod
    def var_assignment(cursor: Cursor) -> Tuple[Cursor, VarAssign]:
        """
        `[mut] <identifier> = <instruction>`

        Whitespace around `=` is optional.
        """
        start = cursor
        cursor, mut = opt(Token.mut_tok)(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)

        cursor, symbol = Token.identifier(cursor)
        cursor, _ = Token.consume_whitespaces(cursor)
        cursor, _ = Token.equal(cursor)
        cursor, _ = Token.consume_whitespaces(cursor)
        cursor, value = Construct.instruction(cursor)

        return cursor, VarAssign(mut is not None, symbol, value, location=start.location)

    # ========================================================================
    # Calls
    # ========================================================================

    @staticmethod
    def _arg(cursor: Cursor) -> ParseResult:
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, value = Construct.instruction(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        return cursor, value

    @staticmethod
    def _arg_and_comma(cursor: Cursor) -> ParseResult:
        cursor, value = Construct._arg(cursor)
        cursor, _ = Token.comma(cursor)
        return cursor, value

    @staticmethod
    def args_list(cursor: Cursor) -> Tuple[Cursor, List[Instruction]]:
        """
        `(<instruction> ,)* <instruction>`

        The last argument is never followed by a comma, so a trailing comma
        is rejected and at least one argument is required.
        """
        origin = cursor
        cursor = cursor.unrestricted()
        cursor, args = many0(Construct._arg_and_comma)(cursor)
        cursor, last = Construct._arg(cursor)
        return cursor.restore(origin), args + [last]

    @staticmethod
    def _function_call_no_args(cursor: Cursor) -> Tuple[Cursor, FunctionCall]:
        start = cursor
        cursor, name = Token.identifier(cursor)
        cursor, _ = Token.left_parenthesis(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, _ = Token.right_parenthesis(cursor)
        return cursor, FunctionCall(name, location=start.location)

    @staticmethod
    def _function_call_args(cursor: Cursor) -> Tuple[Cursor, FunctionCall]:
        start = cursor
        cursor, name = Token.identifier(cursor)
        cursor, _ = Token.left_parenthesis(cursor)
        cursor, args = Construct.args_list(cursor)
        cursor, _ = Token.right_parenthesis(cursor)
        return cursor, FunctionCall(name, args, location=start.location)

    @staticmethod
    @memoize
    def function_call(cursor: Cursor) -> Tuple[Cursor, FunctionCall]:
        """
        `<identifier> ( [<instruction> (, <instruction>)*] )`
        """
        return alt(
            Construct._function_call_no_args,
            Construct._function_call_args,
        )(cursor)

    @staticmethod
    def _method_caller(cursor: Cursor) -> ParseResult:
        # Never a method call itself, which would recurse without consuming input
        return alt(
            Construct.function_call,
            Construct.variable,
            Construct.constant,
            Construct.if_else,
            Construct.block,
            Construct.any_loop,
            Construct.jinko_inst,
            Construct.audit,
        )(cursor)

    @staticmethod
    def _method(cursor: Cursor) -> Tuple[Cursor, FunctionCall]:
        cursor, _ = Token.dot(cursor)
        return Construct.function_call(cursor)

    @staticmethod
    def method_call(cursor: Cursor) -> Tuple[Cursor, MethodCall]:
        """
        `<caller> . <function_call>`

        A single `.method()` is consumed: in `a.b().c()` the `.c()` is left
        for the caller. With `chained_method_calls` enabled every following
        `.method()` wraps the previous call.
        """
        start = cursor
        cursor, caller = Construct._method_caller(cursor)
        cursor, method = Construct._method(cursor)
        call = MethodCall(caller, method, location=start.location)

        if cursor.config.chained_method_calls:
            cursor, methods = many0(Construct._method)(cursor)
            for method in methods:
                call = MethodCall(call, method, location=start.location)

        return cursor, call

    # ========================================================================
    # Blocks
    # ========================================================================

    @staticmethod
    def _stmt_semicolon(cursor: Cursor) -> ParseResult:
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, value = Construct.instruction(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, _ = Token.semicolon(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        return cursor, value

    @staticmethod
    @memoize
    def block(cursor: Cursor) -> Tuple[Cursor, Block]:
        """
        `{ (<instruction> ;)* [<instruction>] }`

        The optional unterminated instruction is the value of the block.
        """
        origin = cursor
        cursor, _ = Token.left_curly_bracket(cursor)
        cursor = cursor.unrestricted()
        cursor, _ = Token.maybe_consume_extra(cursor)

        cursor, instructions = many0(Construct._stmt_semicolon)(cursor)
        cursor, last = opt(Construct.instruction)(cursor)

        cursor, _ = Token.maybe_consume_extra(cursor)
        try:
            cursor, _ = Token.right_curly_bracket(cursor)
        except ParseError as missing:
            raise furthest_error(Construct.instruction, cursor, missing) from None

        return cursor.restore(origin), Block(instructions, last, location=origin.location)

    # ========================================================================
    # Declarations
    # ========================================================================

    @staticmethod
    def identifier_type(cursor: Cursor) -> Tuple[Cursor, DecArg]:
        """`<identifier> : <type>`"""
        cursor, name = Token.identifier(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, _ = Token.colon(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, ty = Token.identifier(cursor)
        return cursor, DecArg(name, ty)

    @staticmethod
    def _identifier_type_comma(cursor: Cursor) -> Tuple[Cursor, DecArg]:
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, arg = Construct.identifier_type(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, _ = Token.comma(cursor)
        return cursor, arg

    @staticmethod
    def args_dec_empty(cursor: Cursor) -> Tuple[Cursor, List[DecArg]]:
        """`( )`"""
        cursor, _ = Token.left_parenthesis(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, _ = Token.right_parenthesis(cursor)
        return cursor, []

    @staticmethod
    def args_dec_non_empty(cursor: Cursor) -> Tuple[Cursor, List[DecArg]]:
        """`( (<identifier> : <type> ,)* <identifier> : <type> )`"""
        cursor, _ = Token.left_parenthesis(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)

        cursor, args = many0(Construct._identifier_type_comma)(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, last = Construct.identifier_type(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)

        cursor, _ = Token.right_parenthesis(cursor)
        return cursor, args + [last]

    @staticmethod
    def args_dec(cursor: Cursor) -> Tuple[Cursor, List[DecArg]]:
        return alt(Construct.args_dec_empty, Construct.args_dec_non_empty)(cursor)

    @staticmethod
    def void_return_type(cursor: Cursor) -> Tuple[Cursor, Optional[str]]:
        """Confirm that no `->` follows. An arrow here is an error, not ignored."""
        cursor, _ = Token.maybe_consume_extra(cursor)
        _, arrow = opt(Token.arrow)(cursor)
        if arrow is not None:
            raise create_unrecognized_construct_error(
                "return type", cursor, "this declaration cannot return a value"
            )
        return cursor, None

    @staticmethod
    def non_void_return_type(cursor: Cursor) -> Tuple[Cursor, Optional[str]]:
        """`-> <type>`"""
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, _ = Token.arrow(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, ty = Token.identifier(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        return cursor, ty

    @staticmethod
    def return_type(cursor: Cursor) -> Tuple[Cursor, Optional[str]]:
        return alt(Construct.non_void_return_type, Construct.void_return_type)(cursor)

    @staticmethod
    def _signature(cursor: Cursor) -> Tuple[Cursor, Tuple[str, List[DecArg], Optional[str]]]:
        """`<identifier> <args_dec> <return_type>`, shared by func, ext and mock."""
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, name = Token.identifier(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, args = Construct.args_dec(cursor)
        cursor, ty = Construct.return_type(cursor)
        return cursor, (name, args, ty)

    @staticmethod
    def _function_content(cursor: Cursor, start: Cursor, kind: FunctionKind) -> Tuple[Cursor, FunctionDec]:
        cursor, (name, args, ty) = Construct._signature(cursor)
        cursor, block = Construct.block(cursor)
        return cursor, FunctionDec(name, ty, kind, args, block, location=start.location)

    @staticmethod
    def function_declaration(cursor: Cursor) -> Tuple[Cursor, FunctionDec]:
        """
        `func <identifier> ( <typed_args> ) [-> <type>] <block>`
        """
        start = cursor
        cursor, _ = Token.func_tok(cursor)
        return Construct._function_content(cursor, start, FunctionKind.FUNC)

    @staticmethod
    def mock_declaration(cursor: Cursor) -> Tuple[Cursor, FunctionDec]:
        """`mock <identifier> ( <typed_args> ) [-> <type>] <block>`"""
        start = cursor
        cursor, _ = Token.mock_tok(cursor)
        return Construct._function_content(cursor, start, FunctionKind.MOCK)

    @staticmethod
    def test_declaration(cursor: Cursor) -> Tuple[Cursor, FunctionDec]:
        """
        `test <identifier> ( ) <block>`

        Tests take no arguments and never return a value.
        """
        start = cursor
        cursor, _ = Token.test_tok(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, name = Token.identifier(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, _ = Construct.args_dec_empty(cursor)
        cursor, _ = Construct.void_return_type(cursor)
        cursor, block = Construct.block(cursor)
        return cursor, FunctionDec(name, None, FunctionKind.TEST, [], block, location=start.location)

    @staticmethod
    def ext_declaration(cursor: Cursor) -> Tuple[Cursor, FunctionDec]:
        """
        `ext func <identifier> ( <typed_args> ) [-> <type>] ;`

        External functions live in native code and never have a body.
        """
        start = cursor
        cursor, _ = Token.ext_tok(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, _ = Token.func_tok(cursor)
        cursor, (name, args, ty) = Construct._signature(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, _ = Token.semicolon(cursor)
        return cursor, FunctionDec(name, ty, FunctionKind.EXT, args, location=start.location)

    @staticmethod
    def type_declaration(cursor: Cursor) -> Tuple[Cursor, TypeDec]:
        """
        `type <TypeName> ( <typed_args> )`

        At least one field is required.
        """
        cursor, _ = Token.maybe_consume_extra(cursor)
        start = cursor
        cursor, _ = Token.type_tok(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, name = Token.identifier(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, fields = Construct.args_dec_non_empty(cursor)
        return cursor, TypeDec(name, fields, location=start.location)

    @staticmethod
    def type_instantiation(cursor: Cursor) -> Tuple[Cursor, TypeInstantiation]:
        """`<TypeName> { (<instruction> ,)* <instruction> }`"""
        if not cursor.allow_instantiation:
            raise create_unrecognized_construct_error(
                "type instantiation", cursor, "not allowed in a condition without parentheses"
            )

        start = cursor
        cursor, name = Token.identifier(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, _ = Token.left_curly_bracket(cursor)
        cursor, fields = Construct.args_list(cursor)
        cursor, _ = Token.right_curly_bracket(cursor)
        return cursor, TypeInstantiation(name, fields, location=start.location)

    @staticmethod
    def _path(cursor: Cursor) -> Tuple[Cursor, str]:
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, path = Token.identifier(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        return cursor, path

    @staticmethod
    def _as_identifier(cursor: Cursor) -> Tuple[Cursor, Optional[str]]:
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, keyword = opt(Token.as_tok)(cursor)
        alias = None
        if keyword is not None:
            cursor, _ = Token.maybe_consume_extra(cursor)
            cursor, alias = Token.identifier(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        return cursor, alias

    @staticmethod
    def incl(cursor: Cursor) -> Tuple[Cursor, Incl]:
        """`incl <path> [as <alias>]`"""
        cursor, _ = Token.maybe_consume_extra(cursor)
        start = cursor
        cursor, _ = Token.incl_tok(cursor)
        cursor, path = Construct._path(cursor)
        cursor, alias = Construct._as_identifier(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        return cursor, Incl(path, alias, location=start.location)

    # ========================================================================
    # Control flow
    # ========================================================================

    @staticmethod
    def _condition(cursor: Cursor) -> ParseResult:
        """An instruction in which `x { ... }` is not read as a type instantiation."""
        end, value = Construct.instruction(cursor.restricted())
        return end.restore(cursor), value

    @staticmethod
    def _else_block(cursor: Cursor) -> Tuple[Cursor, Block]:
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, _ = Token.else_tok(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        return Construct.block(cursor)

    @staticmethod
    def if_else(cursor: Cursor) -> Tuple[Cursor, IfElse]:
        """`if <instruction> <block> [else <block>]`"""
        cursor, _ = Token.maybe_consume_extra(cursor)
        start = cursor
        cursor, _ = Token.if_tok(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)

        cursor, condition = Construct._condition(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)

        cursor, if_body = Construct.block(cursor)
        cursor, else_body = opt(Construct._else_block)(cursor)

        return cursor, IfElse(condition, if_body, else_body, location=start.location)

    @staticmethod
    def audit(cursor: Cursor) -> Tuple[Cursor, Audit]:
        """`audit <block>`"""
        cursor, _ = Token.maybe_consume_extra(cursor)
        start = cursor
        cursor, _ = Token.audit_tok(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, block = Construct.block(cursor)
        return cursor, Audit(block, location=start.location)

    @staticmethod
    def loop_block(cursor: Cursor) -> Tuple[Cursor, Loop]:
        """`loop <block>`"""
        cursor, _ = Token.maybe_consume_extra(cursor)
        start = cursor
        cursor, _ = Token.loop_tok(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, block = Construct.block(cursor)
        return cursor, Loop.infinite(block, location=start.location)

    @staticmethod
    def while_block(cursor: Cursor) -> Tuple[Cursor, Loop]:
        """`while <instruction> <block>`"""
        cursor, _ = Token.maybe_consume_extra(cursor)
        start = cursor
        cursor, _ = Token.while_tok(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, condition = Construct._condition(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, block = Construct.block(cursor)
        return cursor, Loop.while_loop(condition, block, location=start.location)

    @staticmethod
    def for_block(cursor: Cursor) -> Tuple[Cursor, Loop]:
        """`for <variable> in <instruction> <block>`"""
        cursor, _ = Token.maybe_consume_extra(cursor)
        start = cursor
        cursor, _ = Token.for_tok(cursor)

        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, variable = Construct.variable(cursor)

        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, _ = Token.in_tok(cursor)

        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, iterable = Construct._condition(cursor)

        cursor, _ = Token.maybe_consume_extra(cursor)
        cursor, block = Construct.block(cursor)

        return cursor, Loop.for_loop(variable, iterable, block, location=start.location)

    @staticmethod
    def any_loop(cursor: Cursor) -> Tuple[Cursor, Loop]:
        return alt(
            Construct.loop_block,
            Construct.for_block,
            Construct.while_block,
        )(cursor)

    @staticmethod
    def return_expression(cursor: Cursor) -> Tuple[Cursor, Return]:
        """
        `return [<instruction>]`

        The returned instruction must produce a value, and the return has to
        end the statement.
        """
        start = cursor
        cursor, _ = Token.return_tok(cursor)
        cursor, _ = Token.maybe_consume_extra(cursor)

        value_start = cursor
        cursor, value = opt(Construct.instruction)(cursor)
        if value is not None and value.kind().is_statement:
            raise create_unrecognized_construct_error(
                "return value", value_start, f"'{value.print()}' does not produce a value"
            )

        cursor, _ = Token.maybe_consume_extra(cursor)
        if not (cursor.at_end or cursor.peek() in (";", "}")):
            raise create_unrecognized_construct_error(
                "return statement", cursor, "expected the end of the statement"
            )

        return cursor, Return(value, location=start.location)

    # ========================================================================
    # Directives and binary operations
    # ========================================================================

    @staticmethod
    def jinko_inst(cursor: Cursor) -> Tuple[Cursor, JkInst]:
        """
        `@<directive>( [args] )`

        Arguments are parsed like any call and then dropped; the name must
        be one of the built-in directives.
        """
        start = cursor
        cursor, _ = Token.at_sign(cursor)
        name_cursor = cursor
        cursor, call = Construct.function_call(cursor)

        directive = Directive.from_name(call.name)
        if directive is None:
            raise create_unknown_directive_error(
                call.name, name_cursor, [known.value for known in Directive]
            )

        return cursor, JkInst(directive, location=start.location)

    @staticmethod
    def _binop_operand(cursor: Cursor) -> ParseResult:
        return alt(
            Construct.method_call,
            Construct.type_instantiation,
            Construct.function_call,
            Construct.if_else,
            Construct.any_loop,
            Construct.jinko_inst,
            Construct.audit,
            Construct.block,
            Construct.variable,
            Construct.constant,
        )(cursor)

    @staticmethod
    def binary_op(cursor: Cursor) -> ParseResult:
        """
        `<operand> (<operator> <operand>)+`

        ```
        x + y; // Add x and y together
        a << 2; // Shift a by 2 bits
        a > 2; // Is a greater than 2?
        ```
        """
        return ShuntingYard.parse(cursor, Construct._binop_operand)
