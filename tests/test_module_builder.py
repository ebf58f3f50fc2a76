"""
Tests for module tree construction: PackageBuilder, CrateAnalysis and
Package.from_root_file.
"""
from __future__ import annotations

from pathlib import Path

import pytest

from conftest import FIXTURES, assert_tree_invariants
from crate_tree import (
    CrateAnalysis,
    InternalPathPolicy,
    ModuleCycleError,
    Package,
    PackageError,
    PackageIoError,
    RustSyntaxError,
)
from crate_tree.models import ModItem, ParsedFile, Visibility
from crate_tree.pipeline.module_builder import PackageBuilder
from crate_tree.parser.rust_parser import RustParser

SIMPLE = FIXTURES / "simple_crate" / "src"
DEEP = FIXTURES / "deep_crate" / "src"


def _shape(package: Package):
    """Isomorphism key: qualified path, file and children of every module."""
    return [
        (
            package.qualified_path(module_id),
            module.file,
            tuple(package[c].name for c in module.submodules),
        )
        for module_id, module in package.walk()
    ]


# ─────────────────────────────────────────────────────────────────────────────
# Scenarios
# ─────────────────────────────────────────────────────────────────────────────


class TestScenarios:
    def test_no_module_declarations(self, write_crate):
        root = write_crate({"lib.rs": "fn main() {}\n"}) / "lib.rs"
        package = Package.from_root_file(root)

        assert len(package) == 1
        assert package.root_module == 0
        assert package.root.submodules == ()
        assert package.root.internal_path == ("crate",)
        assert package.files_to_ids == {root: 0}
        assert_tree_invariants(package)

    def test_inline_module(self, write_crate):
        root = write_crate({"lib.rs": "mod a {}\n"}) / "lib.rs"
        package = Package.from_root_file(root)

        assert len(package) == 2
        assert package[0].internal_path == ("crate",)
        assert package[0].submodules == (1,)
        a = package[1]
        assert a.internal_path == ("crate", "a")
        assert a.parent == 0
        assert a.attributes is None
        assert a.file == root
        assert package.files_to_ids == {root: 0}

    def test_sibling_file(self, write_crate):
        crate = write_crate({
            "lib.rs": "mod a;\n",
            "a.rs": "#![allow(unused)]\nfn a() {}\n",
        })
        package = Package.from_root_file(crate / "lib.rs")

        assert len(package) == 2
        a = package[1]
        assert a.file == crate / "a.rs"
        assert a.internal_path == ("a",)
        assert a.parent == 0
        assert a.attributes is not None
        assert [attr.text for attr in a.attributes] == ["#![allow(unused)]"]
        assert package.files_to_ids[crate / "a.rs"] == 1

    def test_index_file_preferred_over_sibling(self, write_crate):
        crate = write_crate({
            "lib.rs": "mod a;\n",
            "a.rs": "fn flat() {}\n",
            "a/mod.rs": "fn nested() {}\n",
        })
        package = Package.from_root_file(crate / "lib.rs")

        a = package[1]
        assert a.file == crate / "a" / "mod.rs"
        assert [i.name for i in a.items] == ["nested"]
        assert crate / "a.rs" not in package.files_to_ids

    def test_missing_module_file(self, write_crate):
        crate = write_crate({"lib.rs": "mod present {}\nmod missing;\n"})
        with pytest.raises(PackageIoError) as info:
            Package.from_root_file(crate / "lib.rs")
        assert info.value.path == crate / "missing.rs"
        assert isinstance(info.value.cause, FileNotFoundError)
        assert str(crate / "missing.rs") in str(info.value)


# ─────────────────────────────────────────────────────────────────────────────
# Fixture crates
# ─────────────────────────────────────────────────────────────────────────────


class TestSimpleCrate:
    @pytest.fixture(scope="class")
    def package(self):
        return Package.from_root_file(SIMPLE / "lib.rs")

    def test_invariants(self, package):
        assert_tree_invariants(package)

    def test_preorder_ids(self, package):
        paths = {i: package.qualified_path(i) for i in package.modules}
        assert paths == {
            0: ("crate",),
            1: ("crate", "alpha"),
            2: ("crate", "alpha", "gamma"),
            3: ("crate", "beta"),
            4: ("crate", "beta", "delta"),
            5: ("crate", "inline"),
            6: ("crate", "inline", "nested"),
        }

    def test_declaration_order(self, package):
        assert package.root.submodules == (1, 3, 5)
        assert [m.name for m in package.children(0)] == ["alpha", "beta", "inline"]

    def test_files(self, package):
        assert package.files_to_ids == {
            SIMPLE / "lib.rs": 0,
            SIMPLE / "alpha.rs": 1,
            SIMPLE / "alpha" / "gamma.rs": 2,
            SIMPLE / "beta" / "mod.rs": 3,
            SIMPLE / "beta" / "delta.rs": 4,
        }

    def test_internal_paths_restart_per_file(self, package):
        assert package[2].internal_path == ("gamma",)
        assert package[4].internal_path == ("delta",)
        assert package[6].internal_path == ("crate", "inline", "nested")

    def test_attributes_only_on_file_roots(self, package):
        for module in package.modules.values():
            assert (module.attributes is not None) == (len(module.internal_path) == 1)
        assert [a.text for a in package.root.attributes] == [
            "#![allow(dead_code)]",
            "#![warn(missing_docs)]",
        ]

    def test_visibility_captured(self, package):
        assert package.root.visibility == Visibility.public()
        assert package[1].visibility.text == "pub"
        assert package[2].visibility.text == "pub(crate)"
        assert package[3].visibility.is_inherited
        assert package[6].visibility.text == "pub"

    def test_module_inside_function_not_discovered(self, package):
        assert all(m.name != "hidden" for m in package.modules.values())

    def test_items_kept(self, package):
        kinds = [i.kind for i in package.root.items]
        assert kinds == ["mod_item", "mod_item", "mod_item", "function_item"]
        assert isinstance(package.root.items[2], ModItem)
        assert [i.name for i in package[5].items] == ["nested", "helper"]

    def test_module_for_file(self, package):
        assert package.module_for_file(SIMPLE / "beta" / "mod.rs") is package[3]
        assert package.module_for_file(SIMPLE / "nowhere.rs") is None

    def test_idempotent(self, package):
        again = Package.from_root_file(SIMPLE / "lib.rs")
        assert _shape(again) == _shape(package)
        assert again.files_to_ids == package.files_to_ids

    def test_immutable(self, package):
        with pytest.raises(TypeError):
            package.modules[99] = package.root
        with pytest.raises(AttributeError):
            package.root.parent = 3

    def test_repr_elides_payloads(self, package):
        text = repr(package[1])
        assert "visibility=_" in text
        assert "items=_" in text
        assert "submodules=[2]" in text


class TestInternalPathPolicy:
    def test_file_relative_deep_chain(self):
        package = Package.from_root_file(DEEP / "main.rs")
        assert_tree_invariants(package)
        files = {package.qualified_path(i): m.file for i, m in package.modules.items()}
        assert files == {
            ("crate",): DEEP / "main.rs",
            ("crate", "a"): DEEP / "a.rs",
            ("crate", "a", "b"): DEEP / "a" / "b.rs",
            ("crate", "a", "b", "c"): DEEP / "a" / "b" / "c" / "mod.rs",
            ("crate", "a", "b", "c", "d"): DEEP / "a" / "b" / "c" / "d.rs",
            ("crate", "a", "inner"): DEEP / "a.rs",
            ("crate", "a", "inner", "leaf"): DEEP / "a" / "inner" / "leaf.rs",
        }
        by_name = {m.name: m for m in package.modules.values()}
        assert by_name["d"].internal_path == ("d",)
        assert by_name["leaf"].internal_path == ("leaf",)
        assert by_name["inner"].internal_path == ("a", "inner")

    def test_crate_relative_keeps_chain(self):
        package = Package.from_root_file(
            DEEP / "main.rs", path_policy=InternalPathPolicy.CRATE_RELATIVE,
        )
        for module_id, module in package.modules.items():
            assert module.internal_path == package.qualified_path(module_id)
        for path, module_id in package.files_to_ids.items():
            assert package[module_id].is_file_root

    def test_policies_resolve_same_files(self):
        relative = Package.from_root_file(DEEP / "main.rs")
        chained = Package.from_root_file(
            DEEP / "main.rs", path_policy=InternalPathPolicy.CRATE_RELATIVE,
        )
        assert _shape(relative) == _shape(chained)
        assert relative.files_to_ids == chained.files_to_ids
        for module_id in relative.modules:
            assert relative[module_id].is_file_root == chained[module_id].is_file_root


# ─────────────────────────────────────────────────────────────────────────────
# Failures
# ─────────────────────────────────────────────────────────────────────────────


class TestFailures:
    def test_missing_root(self, tmp_path):
        with pytest.raises(PackageIoError) as info:
            Package.from_root_file(tmp_path / "lib.rs")
        assert info.value.path == tmp_path / "lib.rs"
        assert isinstance(info.value.__cause__, OSError)

    def test_syntax_error_in_root(self, write_crate):
        crate = write_crate({"lib.rs": "fn broken( {\n"})
        with pytest.raises(RustSyntaxError) as info:
            Package.from_root_file(crate / "lib.rs")
        assert info.value.path == crate / "lib.rs"

    def test_syntax_error_in_submodule(self, write_crate):
        crate = write_crate({
            "lib.rs": "mod good;\nmod bad;\n",
            "good.rs": "fn good() {}\n",
            "bad.rs": "\n\nstruct {\n",
        })
        with pytest.raises(RustSyntaxError) as info:
            Package.from_root_file(crate / "lib.rs")
        assert info.value.path == crate / "bad.rs"
        assert info.value.line == 3

    def test_invalid_utf8_is_io_error(self, tmp_path):
        (tmp_path / "lib.rs").write_bytes(b"fn f() {}\n\xff\xfe\n")
        with pytest.raises(PackageIoError):
            Package.from_root_file(tmp_path / "lib.rs")

    def test_deep_failure_aborts_whole_build(self, write_crate):
        crate = write_crate({
            "lib.rs": "mod a;\nmod z {}\n",
            "a.rs": "mod b;\n",
        })
        with pytest.raises(PackageIoError) as info:
            Package.from_root_file(crate / "lib.rs")
        assert info.value.path == crate / "a" / "b.rs"

    def test_self_including_module(self, write_crate):
        crate = write_crate({"lib.rs": "mod lib;\n"})
        with pytest.raises(ModuleCycleError) as info:
            Package.from_root_file(crate / "lib.rs")
        assert info.value.path == crate / "lib.rs"
        assert isinstance(info.value, PackageError)

    def test_cycle_through_symlink(self, write_crate):
        crate = write_crate({"lib.rs": "mod a;\n"})
        (crate / "a.rs").symlink_to(crate / "lib.rs")
        with pytest.raises(ModuleCycleError) as info:
            Package.from_root_file(crate / "lib.rs")
        assert info.value.path == crate / "a.rs"
        assert info.value.chain == (crate / "lib.rs",)

    def test_failed_build_leaves_analysis_reusable(self, write_crate):
        crate = write_crate({
            "bad/lib.rs": "mod gone;\n",
            "good/lib.rs": "mod a {}\n",
        })
        analysis = CrateAnalysis()
        with pytest.raises(PackageIoError):
            analysis.analyze(crate / "bad" / "lib.rs")
        package = analysis.analyze(crate / "good" / "lib.rs")
        assert len(package) == 2
        assert list(package.files_to_ids) == [crate / "good" / "lib.rs"]


# ─────────────────────────────────────────────────────────────────────────────
# PackageBuilder with an injected parser
# ─────────────────────────────────────────────────────────────────────────────


class _TableParser:
    """Parser double returning pre-built results keyed by source text."""

    def __init__(self, table):
        self.table = table
        self.calls = []

    def parse(self, source, path=None):
        self.calls.append(path)
        return self.table[source]


class TestPackageBuilder:
    def test_ids_are_preorder(self, write_crate):
        crate = write_crate({"lib.rs": "root", "a.rs": "a"})
        a_decl = ModItem(kind="mod_item", text="mod a;", start_line=1, end_line=1, name="a")
        b_decl = ModItem(kind="mod_item", text="mod b {}", start_line=2, end_line=2,
                         name="b", content=())
        parser = _TableParser({
            "root": ParsedFile(items=(a_decl, b_decl), attributes=()),
            "a": ParsedFile(items=(), attributes=()),
        })
        builder = PackageBuilder(parser)
        parsed = builder.load_file(crate / "lib.rs")
        root_id = builder.add_module(
            builder.next_module_id, crate / "lib.rs", ("crate",),
            parsed.items, parsed.attributes, Visibility.public(),
        )
        package = builder.build(root_id)

        assert root_id == 0
        assert package.root.submodules == (1, 2)
        assert package[1].file == crate / "a.rs"
        assert package[2].internal_path == ("crate", "b")
        assert parser.calls == [crate / "lib.rs", crate / "a.rs"]
        assert builder.next_module_id == 3

    def test_parser_errors_pass_through(self, write_crate):
        crate = write_crate({"lib.rs": "anything"})
        error = RustSyntaxError("boom", line=4, column=2)

        class _Failing:
            def parse(self, source, path=None):
                raise error

        analysis = CrateAnalysis(parser=_Failing())
        with pytest.raises(RustSyntaxError) as info:
            analysis.analyze(crate / "lib.rs")
        assert info.value is error

    def test_default_parser(self):
        assert isinstance(CrateAnalysis().parser, RustParser)
