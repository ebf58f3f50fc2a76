"""
export_tree.py
==============

Write module-tree diagrams for one or more crate roots.

For each root file the script produces three files under
``outputs/tree/<crate-dir>/``:

* ``tree.dot``   – Graphviz DOT source (render with ``dot -Tsvg -o tree.svg tree.dot``)
* ``tree.json``  – Machine-readable module tree
* ``tree.mmd``   – Mermaid flowchart (paste into a GitHub Markdown fenced block)

Usage
-----
    python scripts/export_tree.py \\
        --roots tests/fixtures/simple_crate/src/lib.rs \\
                tests/fixtures/deep_crate/src/main.rs \\
        --output-dir outputs/tree
"""
from __future__ import annotations

import argparse
import logging
import subprocess
from pathlib import Path

from crate_tree.output.tree_render import ModuleTreeRenderer
from crate_tree.pipeline.crate_analysis import CrateAnalysis

logger = logging.getLogger("export_tree")


def _try_render_svg(dot_path: Path) -> None:
    """Render the DOT file to SVG via Graphviz when it is installed."""
    svg_path = dot_path.with_suffix(".svg")
    try:
        subprocess.run(
            ["dot", "-Tsvg", str(dot_path), "-o", str(svg_path)],
            check=True,
            capture_output=True,
        )
    except (FileNotFoundError, subprocess.CalledProcessError) as exc:
        logger.warning("Could not render %s: %s", dot_path, exc)
        return
    print(f"  rendered: {svg_path}")


def export_one(root: str, output_dir: Path, render_svg: bool) -> None:
    root_path = Path(root)
    # src/lib.rs -> the crate directory name
    crate_name = root_path.parent.parent.name or root_path.stem
    dest = output_dir / crate_name
    dest.mkdir(parents=True, exist_ok=True)

    package = CrateAnalysis().analyze(root_path)
    renderer = ModuleTreeRenderer()

    n_files = len(package.files_to_ids)
    print(f"  crate   : {crate_name}")
    print(f"  modules : {len(package)}  files: {n_files}")

    dot_path = dest / "tree.dot"
    dot_path.write_text(
        renderer.to_dot(package, title=f"{crate_name} module tree"),
        encoding="utf-8",
    )
    print(f"  wrote   : {dot_path}")
    if render_svg:
        _try_render_svg(dot_path)

    json_path = dest / "tree.json"
    json_path.write_text(renderer.to_json_str(package), encoding="utf-8")
    print(f"  wrote   : {json_path}")

    mmd_path = dest / "tree.mmd"
    mmd_path.write_text(renderer.to_mermaid(package), encoding="utf-8")
    print(f"  wrote   : {mmd_path}")


def main() -> None:
    p = argparse.ArgumentParser(
        description="Export crate module trees (DOT / JSON / Mermaid)"
    )
    p.add_argument("--roots", "-r", nargs="+", required=True, metavar="FILE",
                   help="Crate root file(s), e.g. src/lib.rs")
    p.add_argument("--output-dir", "-o", default="outputs/tree", metavar="DIR")
    p.add_argument("--render-svg", action="store_true",
                   help="Attempt to auto-render DOT → SVG via Graphviz")
    args = p.parse_args()

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    out = Path(args.output_dir)
    out.mkdir(parents=True, exist_ok=True)

    for root in args.roots:
        print(f"\n=== {root} ===")
        export_one(root=root, output_dir=out, render_svg=args.render_svg)


if __name__ == "__main__":
    main()
