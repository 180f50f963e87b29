"""Runtime values that have no direct Python counterpart."""

from dataclasses import dataclass, field
from typing import Any, List


@dataclass
class ObjectInstance:
    """An instance of a custom type, fields in declaration order."""
    type_name: str
    field_names: List[str]
    fields: List[Any] = field(default_factory=list)

    def get(self, name: str) -> Any:
        return self.fields[self.field_names.index(name)]

    def __str__(self) -> str:
        values = ", ".join(f"{name}: {value!r}" for name, value in zip(self.field_names, self.fields))
        return f"{self.type_name} {{ {values} }}"
