"""
Scope management for the jinko interpreter.

Implements a stack of nested scopes holding:
- Variables, with their mutability
- Function declarations
- Type declarations

Lookups walk from the innermost scope outward; declarations always land in
the innermost scope.

Author: xwest
"""

from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum

from ..parser.ast_nodes import FunctionDec, TypeDec


class SymbolKind(Enum):
    """Namespaces of the scope map. A name may exist once in each."""
    VARIABLE = "variable"
    FUNCTION = "function"
    TYPE = "type"


@dataclass
class Variable:
    """A value bound to a name."""
    name: str
    value: Any
    is_mutable: bool = False

    def __str__(self) -> str:
        prefix = "mut " if self.is_mutable else ""
        return f"{prefix}{self.name} = {self.value!r}"


@dataclass
class Scope:
    """One level of the scope stack."""
    variables: Dict[str, Variable] = field(default_factory=dict)
    functions: Dict[str, FunctionDec] = field(default_factory=dict)
    types: Dict[str, TypeDec] = field(default_factory=dict)

    def table(self, kind: SymbolKind) -> Dict[str, Any]:
        if kind is SymbolKind.VARIABLE:
            return self.variables
        if kind is SymbolKind.FUNCTION:
            return self.functions
        return self.types

    def __str__(self) -> str:
        return (f"Scope({len(self.variables)} variables, {len(self.functions)} functions, "
                f"{len(self.types)} types)")


class ScopeMap:
    """
    Stack of scopes, innermost last.

    The outermost scope is the global scope and is never popped.
    """

    def __init__(self):
        self.scopes: List[Scope] = [Scope()]

    @property
    def depth(self) -> int:
        return len(self.scopes)

    @property
    def current(self) -> Scope:
        return self.scopes[-1]

    def enter_scope(self) -> Scope:
        """Push a fresh scope."""
        scope = Scope()
        self.scopes.append(scope)
        return scope

    def exit_scope(self) -> Optional[Scope]:
        """Pop the innermost scope. The global scope stays in place."""
        if len(self.scopes) > 1:
            return self.scopes.pop()
        return None

    def lookup(self, kind: SymbolKind, name: str) -> Optional[Any]:
        """Find the innermost binding of `name`, or None."""
        for scope in reversed(self.scopes):
            table = scope.table(kind)
            if name in table:
                return table[name]
        return None

    def lookup_local(self, kind: SymbolKind, name: str) -> Optional[Any]:
        """Look up a name in the innermost scope only."""
        return self.current.table(kind).get(name)

    def define(self, kind: SymbolKind, name: str, value: Any):
        """Bind `name` in the innermost scope, replacing a local binding."""
        self.current.table(kind)[name] = value

    def replace(self, kind: SymbolKind, name: str, value: Any) -> bool:
        """Rebind the innermost existing `name`. Returns False when none exists."""
        for scope in reversed(self.scopes):
            table = scope.table(kind)
            if name in table:
                table[name] = value
                return True
        return False

    def visible_names(self, kind: SymbolKind) -> List[str]:
        """Every name of `kind` reachable from the innermost scope."""
        names: Dict[str, None] = {}
        for scope in self.scopes:
            names.update(dict.fromkeys(scope.table(kind)))
        return list(names)

    def __str__(self) -> str:
        return f"ScopeMap(depth: {self.depth}, current: {self.current})"
