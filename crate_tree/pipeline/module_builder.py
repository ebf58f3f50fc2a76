"""
PackageBuilder
==============

Recursive, depth-first construction of a crate's module tree.

Ids are allocated in pre-order: a module gets its id before any of its
submodules are explored, so the root is always ``0`` and every parent id is
smaller than its children's.  Inline modules (``mod a { ... }``) are built
from the enclosing file's items; declared-only modules (``mod a;``) are
located with :func:`~crate_tree.pipeline.module_layout.resolve_module_file`,
read, parsed and built as file roots.

The first read or parse failure propagates out of :meth:`PackageBuilder.add_module`
unchanged.  A builder that raised holds partial state and must be discarded.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from ..errors import ModuleCycleError, PackageIoError
from ..models import (
    Attribute,
    Item,
    ModItem,
    Module,
    ModuleId,
    Package,
    ParsedFile,
    Visibility,
)
from .module_layout import InternalPathPolicy, ModuleLayout, resolve_module_file

logger = logging.getLogger(__name__)


class PackageBuilder:
    """
    Owns id allocation and the growing ``id → Module`` map.

    Parameters
    ----------
    parser:
        Object with ``parse(source, path=None) -> ParsedFile``
        (normally :class:`~crate_tree.parser.rust_parser.RustParser`).
    layout:
        File naming conventions used for declared-only modules.
    path_policy:
        How internal paths of file-backed submodules are recorded.
    """

    def __init__(
        self,
        parser,
        layout: Optional[ModuleLayout] = None,
        path_policy: InternalPathPolicy = InternalPathPolicy.FILE_RELATIVE,
    ) -> None:
        self.parser = parser
        self.layout = layout or ModuleLayout()
        self.path_policy = path_policy
        #: Next unallocated id
        self.next_module_id: ModuleId = 0
        self.files_to_ids: Dict[Path, ModuleId] = {}
        self.modules: Dict[ModuleId, Module] = {}
        # Files currently being built, outermost first, as given and resolved
        self._file_chain: List[Path] = []
        self._resolved_chain: List[Path] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def next_id(self) -> ModuleId:
        module_id = self.next_module_id
        self.next_module_id += 1
        return module_id

    def load_file(self, path: Path) -> ParsedFile:
        """Read and parse one source file."""
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise PackageIoError(path, exc) from exc
        logger.info("Read %s (%d bytes)", path, len(source))
        return self.parser.parse(source, path=path)

    def add_module(
        self,
        parent: ModuleId,
        path: Path,
        internal_path: Sequence[str],
        items: Sequence[Item],
        attributes: Optional[Sequence[Attribute]],
        visibility: Visibility,
        file_depth: int = 0,
    ) -> ModuleId:
        """
        Allocate an id for a module, build its submodules, then store it.

        A module whose internal path ends at its file's root segment
        (length 1 under the file-relative policy) is registered as that
        file's module.
        """
        module_id = self.next_id()
        internal_path = tuple(internal_path)
        is_file_root = len(internal_path) == file_depth + 1
        if is_file_root:
            self.files_to_ids[path] = module_id
            self._file_chain.append(path)
            self._resolved_chain.append(path.resolve())

        logger.debug(
            "Module %d %s in %s (parent %d)",
            module_id, "::".join(internal_path), path, parent,
        )
        try:
            submodules = self.explore_submodules(
                items, module_id, path, internal_path, file_depth,
            )
        finally:
            if is_file_root:
                self._file_chain.pop()
                self._resolved_chain.pop()

        self.modules[module_id] = Module(
            file=path,
            internal_path=internal_path,
            visibility=visibility,
            submodules=tuple(submodules),
            parent=parent,
            items=tuple(items),
            attributes=tuple(attributes) if attributes is not None else None,
        )
        return module_id

    def explore_submodules(
        self,
        items: Sequence[Item],
        parent: ModuleId,
        path: Path,
        internal_path: Tuple[str, ...],
        file_depth: int = 0,
    ) -> List[ModuleId]:
        """
        Build every ``mod`` declared directly in *items*, in order.

        Modules nested inside other items (e.g. a ``mod`` inside a function
        body) are not visited.
        """
        submodules: List[ModuleId] = []
        for item in items:
            if not isinstance(item, ModItem):
                continue

            child_path = internal_path + (item.name,)

            if item.content is not None:
                submodules.append(self.add_module(
                    parent,
                    path,
                    child_path,
                    item.content,
                    None,
                    item.visibility,
                    file_depth,
                ))
                continue

            module_file = resolve_module_file(
                path, child_path, self.layout, file_depth,
            )
            if module_file is None:
                logger.warning(
                    "Cannot locate module %s declared in %s: no file name",
                    item.name, path,
                )
                continue
            logger.debug("Module %s resolved to %s", "::".join(child_path), module_file)

            if module_file.resolve() in self._resolved_chain:
                raise ModuleCycleError(module_file, self._file_chain)

            parsed = self.load_file(module_file)
            if self.path_policy is InternalPathPolicy.CRATE_RELATIVE:
                file_internal_path = child_path
                child_depth = len(child_path) - 1
            else:
                file_internal_path = (item.name,)
                child_depth = 0

            submodules.append(self.add_module(
                parent,
                module_file,
                file_internal_path,
                parsed.items,
                parsed.attributes,
                item.visibility,
                child_depth,
            ))
        return submodules

    def build(self, root_module: ModuleId) -> Package:
        """Freeze the builder's current state into a :class:`Package`."""
        return Package(
            root_module=root_module,
            files_to_ids=self.files_to_ids,
            modules=self.modules,
        )
