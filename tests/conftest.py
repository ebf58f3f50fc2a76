from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Dict

import pytest

from crate_tree.models import Package

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def write_crate(tmp_path):
    """Write ``{relative path: source}`` under *tmp_path*; return the directory."""

    def _write(files: Dict[str, str]) -> Path:
        for rel, source in files.items():
            target = tmp_path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(textwrap.dedent(source), encoding="utf-8")
        return tmp_path

    return _write


def assert_tree_invariants(package: Package) -> None:
    """Structural properties every successfully built package satisfies."""
    root = package.modules[package.root_module]
    assert root.parent == package.root_module
    assert sorted(package.modules) == list(range(len(package.modules)))

    for module_id, module in package.modules.items():
        if module_id != package.root_module:
            assert module.parent != module_id
            assert module.parent < module_id
            assert module_id in package.modules[module.parent].submodules
        for child in module.submodules:
            assert package.modules[child].parent == module_id

    for path, module_id in package.files_to_ids.items():
        assert package.modules[module_id].file == path
        assert package.modules[module_id].attributes is not None
