"""
Source loading for `incl` instructions.

Author: xwest
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..config import JinkoConfig
from ..parser.ast_nodes import Block
from ..parser.parser import parse_file

logger = logging.getLogger(__name__)

LIBRARY_ENTRY = "lib"


class FileLoader:
    """
    Resolves included paths against a base directory.

    `incl name` looks for `name.jk` first and then for a `name/` directory
    holding a `lib.jk` entry file. Included files resolve their own includes
    relative to their own directory.

    Args:
        base_dir: Directory of the including file
        config: Provides the source file extension and the parser settings
    """

    def __init__(self, base_dir: Union[str, Path] = ".", config: Optional[JinkoConfig] = None):
        self.base_dir = Path(base_dir)
        self.config = config or JinkoConfig()

    def resolve(self, path: str) -> Optional[Path]:
        """Return the file `incl path` designates, or None when nothing matches."""
        extension = self.config.source_extension
        candidates = [
            self.base_dir / f"{path}{extension}",
            self.base_dir / path / f"{LIBRARY_ENTRY}{extension}",
        ]
        for candidate in candidates:
            if candidate.is_file():
                return candidate.resolve()
        return None

    def load(self, path: Path) -> Block:
        """Parse a resolved file."""
        logger.debug("Loading included file %s", path)
        return parse_file(path, self.config)

    def for_file(self, path: Path) -> "FileLoader":
        """Loader for the includes of the file at `path`."""
        return FileLoader(path.parent, self.config)
