"""
jinko Parser Package

Builds abstract syntax trees from jinko source through composable grammar
rules with ordered alternation, and a shunting yard for binary operations.

Key Features:
- Rules as plain functions over an immutable cursor
- Furthest-failure error reporting across alternatives
- Packrat caching of heavily retried rules
- Polymorphic AST nodes that print and execute themselves

Author: xwest
"""

from .ast_nodes import (
    InstrKind, FunctionKind, Directive, LoopKind, Instruction, Constant,
    JinkInt, JinkFloat, JinkBool, JinkChar, JinkString, Block, DecArg,
    FunctionDec, TypeDec, Incl, Var, VarAssign, FunctionCall, MethodCall,
    TypeInstantiation, BinaryOp, IfElse, Loop, Audit, Return, JkInst
)
from .combinators import alt, opt, many0, furthest_error, memoize
from .shunting_yard import ShuntingYard, Precedence, OPERATOR_TABLE
from .constructs import Construct, ConstantConstruct
from .parser import Parser, parse_string, parse_file

__all__ = [
    "InstrKind", "FunctionKind", "Directive", "LoopKind", "Instruction", "Constant",
    "JinkInt", "JinkFloat", "JinkBool", "JinkChar", "JinkString", "Block", "DecArg",
    "FunctionDec", "TypeDec", "Incl", "Var", "VarAssign", "FunctionCall", "MethodCall",
    "TypeInstantiation", "BinaryOp", "IfElse", "Loop", "Audit", "Return", "JkInst",
    "alt", "opt", "many0", "furthest_error", "memoize",
    "ShuntingYard", "Precedence", "OPERATOR_TABLE",
    "Construct", "ConstantConstruct",
    "Parser", "parse_string", "parse_file",
]
