"""
Core data models for the crate module tree.

Parsed source is represented by :class:`Item` / :class:`ModItem` values and
file-level :class:`Attribute` values.  The finished tree is a
:class:`Package` holding one :class:`Module` record per module, keyed by a
:data:`ModuleId`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

#: Handle for a :class:`Module`.  Allocated from zero in pre-order.
ModuleId = int

#: First segment of the root module's internal path.
ROOT_SEGMENT = "crate"


# ---------------------------------------------------------------------------
# Parsed source
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Visibility:
    """
    Syntactic visibility modifier of a declaration.

    This is only the marker as written: in ``mod a { pub mod b {} }`` the
    module ``b`` has visibility ``pub`` even though it is not reachable from
    outside the crate.  An empty ``text`` means no modifier was written.
    """

    text: str = ""

    @classmethod
    def public(cls) -> Visibility:
        return cls("pub")

    @classmethod
    def inherited(cls) -> Visibility:
        return cls("")

    @property
    def is_public(self) -> bool:
        return self.text == "pub"

    @property
    def is_inherited(self) -> bool:
        return not self.text

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Attribute:
    """An ``#[...]`` (outer) or ``#![...]`` (inner) attribute."""

    style: str  # "outer" | "inner"
    text: str
    line: int

    def to_dict(self) -> Dict[str, Any]:
        return {"style": self.style, "text": self.text, "line": self.line}


@dataclass(frozen=True)
class Item:
    """
    A top-level syntax item (function, struct, impl block, ``use`` …).

    Items are opaque to the module tree: only :class:`ModItem` is ever
    inspected.  ``node`` is the underlying tree-sitter node, kept for callers
    that want to analyse the item further.
    """

    kind: str
    text: str
    start_line: int
    end_line: int
    name: Optional[str] = None
    attributes: Tuple[Attribute, ...] = ()
    node: Any = field(default=None, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "name": self.name,
            "start_line": self.start_line,
            "end_line": self.end_line,
        }


@dataclass(frozen=True)
class ModItem(Item):
    """
    A ``mod`` declaration.

    ``content`` is ``None`` for a declared-only module (``mod a;``) and the
    tuple of body items for an inline one (``mod a { ... }``).
    """

    visibility: Visibility = field(default_factory=Visibility.inherited)
    content: Optional[Tuple[Item, ...]] = None

    @property
    def is_inline(self) -> bool:
        return self.content is not None


@dataclass(frozen=True)
class ParsedFile:
    """Result of parsing one source file."""

    items: Tuple[Item, ...]
    attributes: Tuple[Attribute, ...]


# ---------------------------------------------------------------------------
# Module tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Module:
    """One module of the crate, declared inline or in its own file."""

    file: Path                          # File in which this module's text resides
    internal_path: Tuple[str, ...]      # e.g. ("crate", "a", "b") or ("c",)
    visibility: Visibility
    submodules: Tuple[ModuleId, ...]    # Declaration order
    parent: ModuleId                    # The root module is its own parent
    items: Tuple[Item, ...] = field(default=(), repr=False)
    attributes: Optional[Tuple[Attribute, ...]] = field(default=None, repr=False)

    @property
    def name(self) -> str:
        return self.internal_path[-1]

    @property
    def is_file_root(self) -> bool:
        """True when this module's text is a whole file."""
        return self.attributes is not None

    def __repr__(self) -> str:
        return (
            f"Module(file={str(self.file)!r}, "
            f"internal_path={list(self.internal_path)}, "
            f"visibility=_, submodules={list(self.submodules)}, "
            f"parent={self.parent}, items=_, attributes=_)"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": str(self.file),
            "internal_path": list(self.internal_path),
            "visibility": self.visibility.text,
            "submodules": list(self.submodules),
            "parent": self.parent,
            "items": [i.to_dict() for i in self.items],
            "attributes": (
                [a.to_dict() for a in self.attributes]
                if self.attributes is not None
                else None
            ),
        }


@dataclass(frozen=True)
class Package:
    """
    A crate's module tree.

    Build one with :meth:`from_root_file`.  ``modules`` together with each
    record's ``parent`` / ``submodules`` forms a rooted tree whose root is
    its own parent.
    """

    root_module: ModuleId
    files_to_ids: Mapping[Path, ModuleId]
    modules: Mapping[ModuleId, Module]

    def __post_init__(self) -> None:
        object.__setattr__(self, "files_to_ids", MappingProxyType(dict(self.files_to_ids)))
        object.__setattr__(self, "modules", MappingProxyType(dict(self.modules)))

    @classmethod
    def from_root_file(cls, path, **options: Any) -> Package:
        """
        Build the crate tree with the file at *path* as root module.

        Keyword options are passed to
        :class:`~crate_tree.pipeline.crate_analysis.CrateAnalysis`
        (``layout``, ``path_policy``, ``parser``).

        Raises
        ------
        PackageError
            :class:`~crate_tree.errors.PackageIoError` or
            :class:`~crate_tree.errors.RustSyntaxError` for the first file
            that could not be read or parsed.
        """
        from .pipeline.crate_analysis import CrateAnalysis

        return CrateAnalysis(**options).analyze(path)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    @property
    def root(self) -> Module:
        return self.modules[self.root_module]

    def __getitem__(self, module_id: ModuleId) -> Module:
        return self.modules[module_id]

    def __len__(self) -> int:
        return len(self.modules)

    def children(self, module_id: ModuleId) -> List[Module]:
        return [self.modules[c] for c in self.modules[module_id].submodules]

    def module_for_file(self, path) -> Optional[Module]:
        """Return the file-root module of *path*, or None if it was never read."""
        module_id = self.files_to_ids.get(Path(path))
        return self.modules[module_id] if module_id is not None else None

    def walk(self) -> Iterator[Tuple[ModuleId, Module]]:
        """Yield ``(id, module)`` pairs in pre-order, children in declaration order."""
        stack = [self.root_module]
        while stack:
            module_id = stack.pop()
            module = self.modules[module_id]
            yield module_id, module
            stack.extend(reversed(module.submodules))

    def qualified_path(self, module_id: ModuleId) -> Tuple[str, ...]:
        """
        Crate-relative path of a module, e.g. ``("crate", "a", "b")``.

        Derived from the parent chain, so it does not depend on how
        ``internal_path`` was recorded.
        """
        names: List[str] = []
        current = module_id
        while current != self.root_module:
            module = self.modules[current]
            names.append(module.name)
            current = module.parent
        names.append(self.root.internal_path[0])
        return tuple(reversed(names))

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root_module": self.root_module,
            "files_to_ids": {str(p): i for p, i in self.files_to_ids.items()},
            "modules": {str(i): m.to_dict() for i, m in self.modules.items()},
        }
