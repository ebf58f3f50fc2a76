"""
crate-tree – command-line interface
===================================

Usage
-----
::

    python -m crate_tree.cli ROOT_FILE [OPTIONS]

Options
-------
--format, -f          Output format: ``text`` (default), ``json``, ``dot`` or ``mermaid``.
--output, -o          Output file path (default: stdout).
--path-policy         Internal path recording: ``file`` (default) or ``crate``.
--extension           Source file extension (default: ``rs``).
--verbose, -v         Enable DEBUG logging.

Examples
--------
::

    python -m crate_tree.cli src/lib.rs
    python -m crate_tree.cli src/main.rs -f json -o tree.json
    python -m crate_tree.cli src/lib.rs -f dot | dot -Tsvg -o tree.svg
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .errors import PackageError
from .output.tree_render import ModuleTreeRenderer
from .pipeline.crate_analysis import CrateAnalysis
from .pipeline.module_layout import InternalPathPolicy, ModuleLayout


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="crate-tree",
        description="crate-tree – build the module tree of a Rust crate",
    )
    p.add_argument("root", help="Crate root file (lib.rs, main.rs, …)")
    p.add_argument(
        "--format", "-f",
        choices=["text", "json", "dot", "mermaid"],
        default="text",
        help="Output format (default: text)",
    )
    p.add_argument(
        "--output", "-o",
        default="-",
        metavar="FILE",
        help="Output file (default: stdout)",
    )
    p.add_argument(
        "--path-policy",
        choices=[policy.value for policy in InternalPathPolicy],
        default=InternalPathPolicy.FILE_RELATIVE.value,
        help=(
            "How internal paths of file modules are recorded: 'file' restarts "
            "at each file (default), 'crate' keeps the full chain"
        ),
    )
    p.add_argument(
        "--extension",
        default="rs",
        metavar="EXT",
        help="Extension of module source files (default: rs)",
    )
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    analysis = CrateAnalysis(
        layout=ModuleLayout.for_extension(args.extension),
        path_policy=InternalPathPolicy(args.path_policy),
    )
    try:
        package = analysis.analyze(args.root)
    except PackageError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    renderer = ModuleTreeRenderer()
    fmt = args.format
    if fmt == "json":
        output_text = renderer.to_json_str(package)
    elif fmt == "dot":
        output_text = renderer.to_dot(package)
    elif fmt == "mermaid":
        output_text = renderer.to_mermaid(package)
    else:
        output_text = renderer.to_text(package)

    if args.output == "-":
        sys.stdout.write(output_text)
    else:
        Path(args.output).write_text(output_text, encoding="utf-8")
        print(f"Module tree written to {args.output}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
