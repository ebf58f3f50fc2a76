"""
crate-tree
==========

Build the module tree of a Rust crate: parse the crate root, discover every
``mod`` declaration, locate the files of declared-only modules through the
``mod.rs`` / ``<name>.rs`` conventions and assemble one record per module.

Quick start
-----------
>>> from crate_tree import Package
>>> package = Package.from_root_file("src/lib.rs")
>>> for module_id, module in package.walk():
...     print(module_id, "::".join(package.qualified_path(module_id)), module.file)
"""

from .errors import ModuleCycleError, PackageError, PackageIoError, RustSyntaxError
from .models import Attribute, Item, ModItem, Module, ModuleId, Package, Visibility
from .pipeline.crate_analysis import CrateAnalysis
from .pipeline.module_layout import InternalPathPolicy, ModuleLayout

__version__ = "0.1.0"
__all__ = [
    "Attribute",
    "CrateAnalysis",
    "InternalPathPolicy",
    "Item",
    "ModItem",
    "Module",
    "ModuleCycleError",
    "ModuleId",
    "ModuleLayout",
    "Package",
    "PackageError",
    "PackageIoError",
    "RustSyntaxError",
    "Visibility",
]
