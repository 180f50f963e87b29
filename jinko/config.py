"""Runtime configuration for the jinko parser, interpreter and CLI."""

import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class JinkoConfig:
    """Tunables shared by the parser, the interpreter and the command line."""

    # Maximum nesting of instructions inside one another
    max_depth: int = 32
    # Accept `a.b().c()` as nested method calls instead of stopping after `.b()`
    chained_method_calls: bool = False
    # Packrat caching of the heavily retried grammar rules
    memoize: bool = True
    log_level: str = "WARNING"
    source_extension: str = ".jk"

    def __post_init__(self):
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")
        self.log_level = self.log_level.upper()
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level: {self.log_level}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "JinkoConfig":
        """
        Build a configuration from `JINKO_*` environment variables.

        Explicit keyword overrides win over the environment.
        """
        environ = os.environ if environ is None else environ
        values = {}

        for item in fields(cls):
            raw = environ.get(f"JINKO_{item.name.upper()}")
            if raw is None:
                continue
            values[item.name] = _coerce(item.name, raw, item.default)

        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


def _coerce(name: str, raw: str, default):
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValueError(f"JINKO_{name.upper()} expects a boolean, got {raw!r}")
    if isinstance(default, int):
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"JINKO_{name.upper()} expects an integer, got {raw!r}") from None
    return raw
