"""
Errors raised while building a crate's module tree.

Every failure is fatal to the build that raised it: the first error aborts
the whole traversal and no partial :class:`~crate_tree.models.Package` is
ever returned.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence


class PackageError(Exception):
    """Base class for everything the module tree builder raises."""


class PackageIoError(PackageError):
    """
    A source file could not be read.

    Usually caused by a non-existent or non-readable file, or by a file whose
    contents are not valid UTF-8.
    """

    def __init__(self, path: Path, cause: Exception) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Error at {self.path}: {cause}")


class RustSyntaxError(PackageError):
    """Source text that the Rust grammar could not parse."""

    def __init__(
        self,
        message: str,
        line: int,
        column: int,
        path: Optional[Path] = None,
    ) -> None:
        self.message = message
        self.line = line
        self.column = column
        self.path = Path(path) if path is not None else None
        location = f"{line}:{column}"
        if self.path is not None:
            location = f"{self.path}:{location}"
        super().__init__(f"{location}: {message}")


class ModuleCycleError(PackageError):
    """A ``mod`` declaration resolved to a file that is already being built."""

    def __init__(self, path: Path, chain: Sequence[Path]) -> None:
        self.path = Path(path)
        self.chain = tuple(chain)
        trail = " -> ".join(str(p) for p in (*self.chain, self.path))
        super().__init__(f"Module file {self.path} includes itself: {trail}")
