"""
jinko Interpreter Package

Executes jinko abstract syntax trees. Nodes run themselves against an
Interpreter, which provides scopes, declarations, operators and includes.

Key Features:
- Nested scopes with immutable-by-default variables
- Functions, external declarations, tests and mocks
- Custom types instantiated as ObjectInstance values
- File-system includes with cycle protection

Author: xwest
"""

from .interpreter import Interpreter, TestResult
from .scope import ScopeMap, Scope, SymbolKind, Variable
from .values import ObjectInstance
from .loader import FileLoader

__all__ = [
    "Interpreter",
    "TestResult",
    "ScopeMap",
    "Scope",
    "SymbolKind",
    "Variable",
    "ObjectInstance",
    "FileLoader",
]
