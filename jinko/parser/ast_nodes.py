"""
Abstract Syntax Tree node definitions for jinko.

Every construct implements the same capability set: report its kind, render
a printable form and execute against an interpreter. The set of nodes is
open; a new construct only needs to subclass Instruction.

Nodes own their children exclusively and are never mutated once the grammar
rule that built them has returned.

Author: xwest
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional

from ..lexer.tokens import SourceLocation, ESCAPE_SEQUENCES
from ..errors import (
    ReturnSignal, create_type_mismatch_error, create_arity_error,
    create_extern_call_error, create_missing_value_error
)


@dataclass(frozen=True)
class InstrKind:
    """Whether a node produces a usable value, and of which type when known."""
    expression: bool
    ty: Optional[str] = None

    @classmethod
    def statement(cls) -> "InstrKind":
        return cls(False)

    @classmethod
    def expr(cls, ty: Optional[str] = None) -> "InstrKind":
        return cls(True, ty)

    @property
    def is_statement(self) -> bool:
        return not self.expression

    @property
    def is_expression(self) -> bool:
        return self.expression

    def __str__(self) -> str:
        if not self.expression:
            return "Statement"
        return f"Expression({self.ty})" if self.ty else "Expression"


class FunctionKind(Enum):
    """What a function declaration was introduced as."""
    UNKNOWN = "unknown"
    FUNC = "func"
    EXT = "ext"
    TEST = "test"
    MOCK = "mock"


class Directive(Enum):
    """Built-in interpreter directives, written `@name(...)`."""
    DUMP = "dump"
    QUIT = "quit"

    @classmethod
    def from_name(cls, name: str) -> Optional["Directive"]:
        for directive in cls:
            if directive.value == name:
                return directive
        return None


class LoopKind(Enum):
    LOOP = "loop"
    WHILE = "while"
    FOR = "for"


def _indent(text: str) -> str:
    return "\n".join("    " + line if line else line for line in text.split("\n"))


_PRINTABLE_ESCAPES = {char: "\\" + name for name, char in ESCAPE_SEQUENCES.items()}


def _escape(text: str, quote: str) -> str:
    escaped = []
    for char in text:
        if char in ("'", '"') and char != quote:
            escaped.append(char)
        else:
            escaped.append(_PRINTABLE_ESCAPES.get(char, char))
    return "".join(escaped)


class Instruction(ABC):
    """Base class for all AST nodes."""

    def __init__(self, location: Optional[SourceLocation] = None):
        self.location = location

    @abstractmethod
    def kind(self) -> InstrKind:
        """Report whether this node is a statement or an expression."""
        pass

    @abstractmethod
    def print(self) -> str:
        """Render the node back to jinko source form."""
        pass

    @abstractmethod
    def execute(self, interpreter) -> Any:
        """
        Run the node.

        Args:
            interpreter: Execution context holding scopes and declarations

        Returns:
            The produced value, or None for statements

        Raises:
            InterpreterError: On any runtime failure
        """
        pass

    def _fields(self) -> dict:
        return {key: value for key, value in vars(self).items() if key != "location"}

    def __eq__(self, other) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self._fields() == other._fields()

    __hash__ = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.print()!r})"


# ============================================================================
# Literals
# ============================================================================

class Constant(Instruction):
    """A raw value written in the source."""

    type_name = "unknown"

    def __init__(self, value: Any, location: Optional[SourceLocation] = None):
        super().__init__(location)
        self.value = value

    def kind(self) -> InstrKind:
        return InstrKind.expr(self.type_name)

    def print(self) -> str:
        return str(self.value)

    def execute(self, interpreter) -> Any:
        interpreter.debug(self.type_name.upper(), self.print())
        return self.value


class JinkInt(Constant):
    type_name = "int"


class JinkFloat(Constant):
    type_name = "float"

    def print(self) -> str:
        # The lexer only reads `digits.digits`, never an exponent
        text = format(Decimal(repr(self.value)), "f")
        return text if "." in text else text + ".0"


class JinkBool(Constant):
    type_name = "bool"

    def print(self) -> str:
        return "true" if self.value else "false"


class JinkChar(Constant):
    type_name = "char"

    def print(self) -> str:
        return "'" + _escape(self.value, "'") + "'"


class JinkString(Constant):
    type_name = "string"

    def print(self) -> str:
        return '"' + _escape(self.value, '"') + '"'


# ============================================================================
# Block
# ============================================================================

class Block(Instruction):
    """
    Braced sequence of statements with an optional trailing value.

    Statements run for their effect only; the trailing instruction, when
    present, is the value the block produces.
    """

    def __init__(self, instructions: Optional[List[Instruction]] = None,
                 last: Optional[Instruction] = None,
                 location: Optional[SourceLocation] = None):
        super().__init__(location)
        self.instructions = list(instructions or [])
        self.last = last

    def kind(self) -> InstrKind:
        if self.last is None:
            return InstrKind.statement()
        return self.last.kind()

    def print(self) -> str:
        if not self.instructions and self.last is None:
            return "{}"

        lines = ["{"]
        for instruction in self.instructions:
            lines.append(_indent(instruction.print() + ";"))
        if self.last is not None:
            lines.append(_indent(self.last.print()))
        lines.append("}")
        return "\n".join(lines)

    def execute(self, interpreter) -> Any:
        with interpreter.scope():
            return self.run(interpreter)

    def run(self, interpreter) -> Any:
        """Execute the block in the interpreter's current scope."""
        interpreter.debug("BLOCK", f"{len(self.instructions)} statements")
        for instruction in self.instructions:
            value = instruction.execute(interpreter)
            if value is not None:
                interpreter.discard(value, instruction)

        if self.last is None:
            return None
        return self.last.execute(interpreter)


# ============================================================================
# Declarations
# ============================================================================

@dataclass
class DecArg:
    """A typed `name: type` pair, used by function arguments and type fields."""
    name: str
    ty: str

    def print(self) -> str:
        return f"{self.name}: {self.ty}"


class FunctionDec(Instruction):
    """Function declaration: `func`, `ext func`, `test` or `mock`."""

    def __init__(self, name: str, ty: Optional[str] = None,
                 kind: FunctionKind = FunctionKind.UNKNOWN,
                 args: Optional[List[DecArg]] = None,
                 block: Optional[Block] = None,
                 location: Optional[SourceLocation] = None):
        super().__init__(location)
        self.name = name
        self.ty = ty
        self.fn_kind = kind
        self.args = list(args or [])
        self.block = block

        if kind is FunctionKind.EXT and block is not None:
            raise ValueError(f"external function '{name}' cannot have a body")
        if kind in (FunctionKind.FUNC, FunctionKind.TEST, FunctionKind.MOCK) and block is None:
            raise ValueError(f"{kind.value} '{name}' needs a body")
        if kind is FunctionKind.TEST and (self.args or ty is not None):
            raise ValueError(f"test '{name}' cannot take arguments or return a value")

    def kind(self) -> InstrKind:
        return InstrKind.statement()

    def print(self) -> str:
        prefix = {
            FunctionKind.UNKNOWN: "func",
            FunctionKind.FUNC: "func",
            FunctionKind.EXT: "ext func",
            FunctionKind.TEST: "test",
            FunctionKind.MOCK: "mock",
        }[self.fn_kind]

        signature = f"{prefix} {self.name}({', '.join(arg.print() for arg in self.args)})"
        if self.ty is not None:
            signature += f" -> {self.ty}"

        if self.block is None:
            return signature + ";"
        return f"{signature} {self.block.print()}"

    def execute(self, interpreter) -> Any:
        interpreter.debug("FUNCDEC", f"{self.fn_kind.value} {self.name}")
        interpreter.declare_function(self)
        return None

    def run(self, interpreter, values: List[Any], call_site: Optional[Instruction] = None) -> Any:
        """
        Execute the body with `values` bound to the declared arguments.

        Args:
            interpreter: Execution context
            values: Already evaluated arguments, in declaration order
            call_site: Node reported in diagnostics

        Returns:
            The body's value, or the value of the first executed `return`
        """
        location = call_site.location if call_site is not None else self.location

        if self.fn_kind is FunctionKind.EXT:
            raise create_extern_call_error(self.name, location)
        if len(values) != len(self.args):
            raise create_arity_error(self.name, len(self.args), len(values), location)

        with interpreter.scope():
            for arg, value in zip(self.args, values):
                interpreter.declare(arg.name, value, call_site or self)
            try:
                return self.block.run(interpreter)
            except ReturnSignal as signal:
                return signal.value


class TypeDec(Instruction):
    """Custom type declaration with at least one field."""

    def __init__(self, name: str, fields: List[DecArg],
                 location: Optional[SourceLocation] = None):
        super().__init__(location)
        if not fields:
            raise ValueError(f"type '{name}' must declare at least one field")
        self.name = name
        self.fields = list(fields)

    def kind(self) -> InstrKind:
        return InstrKind.statement()

    def print(self) -> str:
        return f"type {self.name}({', '.join(field.print() for field in self.fields)})"

    def execute(self, interpreter) -> Any:
        interpreter.debug("TYPEDEC", self.name)
        interpreter.declare_type(self)
        return None


class Incl(Instruction):
    """`incl path [as alias]`. Loading the path is left to the interpreter's loader."""

    def __init__(self, path: str, alias: Optional[str] = None,
                 location: Optional[SourceLocation] = None):
        super().__init__(location)
        self.path = path
        self.alias = alias

    def kind(self) -> InstrKind:
        return InstrKind.statement()

    def print(self) -> str:
        if self.alias is None:
            return f"incl {self.path}"
        return f"incl {self.path} as {self.alias}"

    def execute(self, interpreter) -> Any:
        interpreter.debug("INCL", self.print())
        interpreter.include(self.path, self.alias, self)
        return None


# ============================================================================
# Variables
# ============================================================================

class Var(Instruction):
    """Reference to a variable by name."""

    def __init__(self, name: str, location: Optional[SourceLocation] = None):
        super().__init__(location)
        self.name = name

    def kind(self) -> InstrKind:
        return InstrKind.expr()

    def print(self) -> str:
        return self.name

    def execute(self, interpreter) -> Any:
        interpreter.debug("VAR", self.name)
        return interpreter.get_variable(self.name, self)


class VarAssign(Instruction):
    """`[mut] symbol = value`."""

    def __init__(self, mutable: bool, symbol: str, value: Instruction,
                 location: Optional[SourceLocation] = None):
        super().__init__(location)
        self.mutable = mutable
        self.symbol = symbol
        self.value = value

    def kind(self) -> InstrKind:
        return InstrKind.statement()

    def print(self) -> str:
        prefix = "mut " if self.mutable else ""
        return f"{prefix}{self.symbol} = {self.value.print()}"

    def execute(self, interpreter) -> Any:
        value = self.value.execute(interpreter)
        if value is None:
            raise create_missing_value_error(self.value.print(), self.location)
        interpreter.debug("ASSIGN", f"{self.symbol} = {value!r}")
        interpreter.assign(self.symbol, value, mutable=self.mutable, node=self)
        return None


# ============================================================================
# Calls
# ============================================================================

class FunctionCall(Instruction):
    """Call of a named function with positional arguments."""

    def __init__(self, name: str, args: Optional[List[Instruction]] = None,
                 location: Optional[SourceLocation] = None):
        super().__init__(location)
        self.name = name
        self.args = list(args or [])

    def kind(self) -> InstrKind:
        return InstrKind.expr()

    def print(self) -> str:
        return f"{self.name}({', '.join(arg.print() for arg in self.args)})"

    def execute(self, interpreter) -> Any:
        interpreter.debug("CALL", self.name)
        function = interpreter.get_function(self.name, self)

        values = []
        for arg in self.args:
            value = arg.execute(interpreter)
            if value is None:
                raise create_missing_value_error(arg.print(), arg.location or self.location)
            values.append(value)

        return function.run(interpreter, values, self)


class MethodCall(Instruction):
    """
    `caller.method(args)`.

    The caller is kept apart from the call while parsing and only becomes the
    first argument when the node executes.
    """

    def __init__(self, caller: Instruction, call: FunctionCall,
                 location: Optional[SourceLocation] = None):
        super().__init__(location)
        self.caller = caller
        self.call = call

    def kind(self) -> InstrKind:
        return InstrKind.expr()

    def print(self) -> str:
        return f"{self.caller.print()}.{self.call.print()}"

    def desugar(self) -> FunctionCall:
        return FunctionCall(self.call.name, [self.caller] + self.call.args,
                            location=self.location)

    def execute(self, interpreter) -> Any:
        interpreter.debug("METHOD", self.print())
        return self.desugar().execute(interpreter)


class TypeInstantiation(Instruction):
    """`TypeName { value, value }`."""

    def __init__(self, type_name: str, fields: List[Instruction],
                 location: Optional[SourceLocation] = None):
        super().__init__(location)
        self.type_name = type_name
        self.fields = list(fields)

    def kind(self) -> InstrKind:
        return InstrKind.expr(self.type_name)

    def print(self) -> str:
        return f"{self.type_name} {{ {', '.join(field.print() for field in self.fields)} }}"

    def execute(self, interpreter) -> Any:
        interpreter.debug("INSTANCE", self.type_name)
        type_dec = interpreter.get_type(self.type_name, self)

        values = []
        for field in self.fields:
            value = field.execute(interpreter)
            if value is None:
                raise create_missing_value_error(field.print(), field.location or self.location)
            values.append(value)

        return interpreter.instantiate(type_dec, values, self)


class BinaryOp(Instruction):
    """Binary operation built by the shunting yard."""

    def __init__(self, operator: str, lhs: Instruction, rhs: Instruction,
                 location: Optional[SourceLocation] = None):
        super().__init__(location)
        self.operator = operator
        self.lhs = lhs
        self.rhs = rhs

    def kind(self) -> InstrKind:
        return InstrKind.expr()

    def print(self) -> str:
        return f"{self._operand(self.lhs)} {self.operator} {self._operand(self.rhs)}"

    @staticmethod
    def _operand(node: Instruction) -> str:
        if isinstance(node, BinaryOp):
            return f"({node.print()})"
        return node.print()

    def execute(self, interpreter) -> Any:
        lhs = self.lhs.execute(interpreter)
        rhs = self.rhs.execute(interpreter)
        interpreter.debug("BINOP", f"{lhs!r} {self.operator} {rhs!r}")
        return interpreter.binary_operation(self.operator, lhs, rhs, self)


# ============================================================================
# Control flow
# ============================================================================

class IfElse(Instruction):
    """`if condition { ... } [else { ... }]`."""

    def __init__(self, condition: Instruction, if_body: Block,
                 else_body: Optional[Block] = None,
                 location: Optional[SourceLocation] = None):
        super().__init__(location)
        self.condition = condition
        self.if_body = if_body
        self.else_body = else_body

    def kind(self) -> InstrKind:
        return self.if_body.kind()

    def print(self) -> str:
        text = f"if {self.condition.print()} {self.if_body.print()}"
        if self.else_body is not None:
            text += f" else {self.else_body.print()}"
        return text

    def execute(self, interpreter) -> Any:
        condition = self.condition.execute(interpreter)
        if not isinstance(condition, bool):
            raise create_type_mismatch_error("bool", condition, self.condition.location or self.location)

        interpreter.debug("IF", str(condition))
        if condition:
            return self.if_body.execute(interpreter)
        if self.else_body is not None:
            return self.else_body.execute(interpreter)
        return None


class Loop(Instruction):
    """
    One node for the three loop forms.

    `loop { }` has no head, `while cond { }` owns a condition and
    `for var in iterable { }` owns a variable and an iterable.
    """

    def __init__(self, loop_kind: LoopKind, block: Block,
                 condition: Optional[Instruction] = None,
                 variable: Optional[Var] = None,
                 iterable: Optional[Instruction] = None,
                 location: Optional[SourceLocation] = None):
        super().__init__(location)
        if (loop_kind is LoopKind.WHILE) != (condition is not None):
            raise ValueError("only while loops carry a condition")
        if (loop_kind is LoopKind.FOR) != (variable is not None and iterable is not None):
            raise ValueError("only for loops carry a variable and an iterable")
        self.loop_kind = loop_kind
        self.block = block
        self.condition = condition
        self.variable = variable
        self.iterable = iterable

    @classmethod
    def infinite(cls, block: Block, location: Optional[SourceLocation] = None) -> "Loop":
        return cls(LoopKind.LOOP, block, location=location)

    @classmethod
    def while_loop(cls, condition: Instruction, block: Block,
                   location: Optional[SourceLocation] = None) -> "Loop":
        return cls(LoopKind.WHILE, block, condition=condition, location=location)

    @classmethod
    def for_loop(cls, variable: Var, iterable: Instruction, block: Block,
                 location: Optional[SourceLocation] = None) -> "Loop":
        return cls(LoopKind.FOR, block, variable=variable, iterable=iterable, location=location)

    def kind(self) -> InstrKind:
        return InstrKind.statement()

    def print(self) -> str:
        if self.loop_kind is LoopKind.WHILE:
            return f"while {self.condition.print()} {self.block.print()}"
        if self.loop_kind is LoopKind.FOR:
            return f"for {self.variable.print()} in {self.iterable.print()} {self.block.print()}"
        return f"loop {self.block.print()}"

    def execute(self, interpreter) -> Any:
        interpreter.debug("LOOP", self.loop_kind.value)

        if self.loop_kind is LoopKind.LOOP:
            while True:
                self.block.execute(interpreter)

        if self.loop_kind is LoopKind.WHILE:
            while True:
                condition = self.condition.execute(interpreter)
                if not isinstance(condition, bool):
                    raise create_type_mismatch_error("bool", condition,
                                                     self.condition.location or self.location)
                if not condition:
                    return None
                self.block.execute(interpreter)

        for value in interpreter.iterate(self.iterable.execute(interpreter), self):
            with interpreter.scope():
                interpreter.declare(self.variable.name, value, self)
                self.block.run(interpreter)
        return None


class Audit(Instruction):
    """`audit { ... }`: a block allowed to ignore the values its statements produce."""

    def __init__(self, block: Block, location: Optional[SourceLocation] = None):
        super().__init__(location)
        self.block = block

    def kind(self) -> InstrKind:
        return self.block.kind()

    def print(self) -> str:
        return f"audit {self.block.print()}"

    def execute(self, interpreter) -> Any:
        with interpreter.auditing():
            return self.block.execute(interpreter)


class Return(Instruction):
    """`return [value]`."""

    def __init__(self, value: Optional[Instruction] = None,
                 location: Optional[SourceLocation] = None):
        super().__init__(location)
        self.value = value

    def kind(self) -> InstrKind:
        return InstrKind.statement()

    def print(self) -> str:
        if self.value is None:
            return "return"
        return f"return {self.value.print()}"

    def execute(self, interpreter) -> Any:
        value = None if self.value is None else self.value.execute(interpreter)
        interpreter.debug("RETURN", repr(value))
        raise ReturnSignal(value)


class JkInst(Instruction):
    """Interpreter directive such as `@dump()` or `@quit()`."""

    def __init__(self, directive: Directive, location: Optional[SourceLocation] = None):
        super().__init__(location)
        self.directive = directive

    def kind(self) -> InstrKind:
        return InstrKind.statement()

    def print(self) -> str:
        return f"@{self.directive.value}()"

    def execute(self, interpreter) -> Any:
        interpreter.debug("JKINST", self.directive.value)
        interpreter.directive(self.directive, self)
        return None
