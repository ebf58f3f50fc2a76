"""
CrateAnalysis
=============

High-level entry point: read a crate's root file and build its
:class:`~crate_tree.models.Package`.

Combines :class:`~crate_tree.parser.rust_parser.RustParser` (source →
items) with :class:`~crate_tree.pipeline.module_builder.PackageBuilder`
(recursive module discovery).  Each call uses a fresh builder, so a failed
build never leaks partial state into the next one.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from ..models import ROOT_SEGMENT, Package, Visibility
from ..parser.rust_parser import RustParser
from .module_builder import PackageBuilder
from .module_layout import InternalPathPolicy, ModuleLayout

logger = logging.getLogger(__name__)


class CrateAnalysis:
    """
    High-level facade for building module trees.

    Parameters
    ----------
    layout:
        File naming conventions (defaults to the Rust ones: ``.rs`` files,
        ``mod.rs`` index files).
    path_policy:
        How internal paths of file-backed submodules are recorded; see
        :class:`~crate_tree.pipeline.module_layout.InternalPathPolicy`.
    parser:
        Source parser.  Defaults to a shared :class:`RustParser`.
    """

    def __init__(
        self,
        layout: Optional[ModuleLayout] = None,
        path_policy: InternalPathPolicy = InternalPathPolicy.FILE_RELATIVE,
        parser=None,
    ) -> None:
        self.layout = layout or ModuleLayout()
        self.path_policy = path_policy
        self.parser = parser or RustParser()

    def analyze(self, root_file: Union[str, Path]) -> Package:
        """
        Build the module tree rooted at *root_file* (``lib.rs``, ``main.rs`` …).

        Raises
        ------
        PackageIoError
            A file could not be read; carries the failing path.
        RustSyntaxError
            A file could not be parsed.
        """
        path = Path(root_file)
        builder = PackageBuilder(self.parser, self.layout, self.path_policy)
        parsed = builder.load_file(path)

        # The root is its own parent: pass the id it is about to receive.
        root_id = builder.add_module(
            builder.next_module_id,
            path,
            (ROOT_SEGMENT,),
            parsed.items,
            parsed.attributes,
            Visibility.public(),
        )
        package = builder.build(root_id)
        logger.info(
            "Built module tree for %s: %d modules across %d files",
            path, len(package.modules), len(package.files_to_ids),
        )
        return package
