"""
Module file layout
==================

Where does the source of ``mod name;`` live?

Given the file that contains the declaration and the declaration's internal
path, the file is looked up relative to a *base directory*::

    src/
      lib.rs          mod a;  mod b;        -> base directory src/
      a.rs            mod c;                -> base directory src/a/
      a/
        c.rs
      b/
        mod.rs        mod d;                -> base directory src/b/
        d.rs

* If the declaring file is a directory owner (``mod.rs``, ``lib.rs``,
  ``main.rs``) the base directory is the file's own directory.
* Otherwise it is the file path with its extension stripped.

The internal path segments after the declaring file's own root are appended
to the base directory.  If that directory holds an index file (``mod.rs``)
the module lives there, otherwise in the sibling file ``<name>.rs``.

Everything here except :func:`resolve_module_file`'s ``exists`` callback is
pure path arithmetic.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple


class InternalPathPolicy(enum.Enum):
    """
    How the ``internal_path`` of a file-backed submodule is recorded.

    ``FILE_RELATIVE``
        The path restarts at the submodule's own file: ``mod c;`` declared
        in ``a.rs`` gets internal path ``("c",)``.  Every module whose
        internal path has a single segment is a file root.
    ``CRATE_RELATIVE``
        The path keeps the whole ancestor chain: ``("crate", "a", "c")``.
        File roots are tracked by depth instead of by path length.

    Both policies resolve the same files.
    """

    FILE_RELATIVE = "file"
    CRATE_RELATIVE = "crate"


@dataclass(frozen=True)
class ModuleLayout:
    """Filesystem naming conventions for module source files."""

    extension: str = "rs"
    index_file: str = "mod.rs"
    directory_owners: Sequence[str] = ("mod.rs", "lib.rs", "main.rs")

    @classmethod
    def for_extension(cls, extension: str) -> ModuleLayout:
        """Layout whose index and crate-root files share *extension*."""
        ext = extension.lstrip(".")
        return cls(
            extension=ext,
            index_file=f"mod.{ext}",
            directory_owners=(f"mod.{ext}", f"lib.{ext}", f"main.{ext}"),
        )

    def sibling_name(self, segment: str) -> str:
        return f"{_file_stem(segment)}.{self.extension}"


def _file_stem(segment: str) -> str:
    # Raw identifiers (r#type) are stored on disk without their prefix.
    return segment[2:] if segment.startswith("r#") else segment


def base_directory(current_file: Path, layout: ModuleLayout) -> Optional[Path]:
    """
    Directory that holds the submodules declared in *current_file*.

    Returns None when *current_file* has no file name to reason about.
    """
    if not current_file.name:
        return None
    if current_file.name in layout.directory_owners:
        return current_file.parent
    return current_file.with_suffix("")


def candidate_directory(
    current_file: Path,
    internal_path: Sequence[str],
    layout: ModuleLayout,
    file_depth: int = 0,
) -> Optional[Path]:
    """
    Nested directory a declared-only module is looked up from.

    Parameters
    ----------
    current_file:
        File containing the ``mod name;`` declaration.
    internal_path:
        Internal path of the declared module, already extended with its name.
    layout:
        Naming conventions.
    file_depth:
        Index of *current_file*'s root segment within *internal_path*.
        Always 0 under :attr:`InternalPathPolicy.FILE_RELATIVE`.
    """
    directory = base_directory(current_file, layout)
    if directory is None:
        return None
    for segment in internal_path[file_depth + 1:]:
        directory = directory / _file_stem(segment)
    return directory


def module_file_candidates(directory: Path, layout: ModuleLayout) -> Tuple[Path, Path]:
    """Return ``(index_file, sibling_file)`` for a candidate directory."""
    index = directory / layout.index_file
    sibling = directory.parent / layout.sibling_name(directory.name)
    return index, sibling


def resolve_module_file(
    current_file: Path,
    internal_path: Sequence[str],
    layout: ModuleLayout,
    file_depth: int = 0,
    exists: Callable[[Path], bool] = Path.exists,
) -> Optional[Path]:
    """
    Pick the file defining a declared-only module.

    The index file wins when *exists* reports it present; otherwise the
    sibling file is returned whether or not it exists (reading it is the
    caller's job, and a missing file is the caller's error to report).
    """
    directory = candidate_directory(current_file, internal_path, layout, file_depth)
    if directory is None:
        return None
    index, sibling = module_file_candidates(directory, layout)
    return index if exists(index) else sibling
