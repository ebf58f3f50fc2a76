"""
tree_render.py
==============

Render a :class:`~crate_tree.models.Package` for people and tools.

Graph semantics
---------------
* **Nodes** – one per module id.
* **Edges** – parent → child for every submodule link.  The root's
  self-parent link is not an edge.
* **Styling**

  ==========  =======  ==========================================
  Kind        Color    Meaning
  ==========  =======  ==========================================
  ``root``    Blue     The crate root (``lib.rs`` / ``main.rs``).
  ``file``    Green    Module whose text is a whole file.
  ``inline``  Grey     Module declared inline, ``mod a { ... }``.
  ==========  =======  ==========================================

Outputs
-------
* **networkx** – :class:`networkx.DiGraph` for further analysis.
* **Text** – indented tree.
* **JSON** – machine-readable tree.
* **DOT** (Graphviz) and **Mermaid**.
"""
from __future__ import annotations

import json
import re
from typing import Any, Dict, List

import networkx as nx

from ..models import Module, ModuleId, Package

_FILL = {
    "root":   "#2E86AB",   # steel blue
    "file":   "#27AE60",   # emerald green
    "inline": "#95A5A6",   # concrete grey
}
_DOT_SHAPE = {
    "root":   "doubleoctagon",
    "file":   "folder",
    "inline": "box",
}


def _kind(package: Package, module_id: ModuleId, module: Module) -> str:
    if module_id == package.root_module:
        return "root"
    return "file" if module.is_file_root else "inline"


def _label(module: Module) -> str:
    vis = f"{module.visibility.text} " if module.visibility.text else ""
    return f"{vis}mod {module.name}"


def _dot_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


class ModuleTreeRenderer:
    """Turn a :class:`Package` into a graph, text, JSON, DOT or Mermaid."""

    # ------------------------------------------------------------------
    # networkx
    # ------------------------------------------------------------------

    def to_networkx(self, package: Package) -> nx.DiGraph:
        g = nx.DiGraph(root=package.root_module)
        for module_id, module in package.walk():
            g.add_node(
                module_id,
                name=module.name,
                path="::".join(package.qualified_path(module_id)),
                file=str(module.file),
                visibility=module.visibility.text,
                file_root=module.is_file_root,
                kind=_kind(package, module_id, module),
            )
            if module_id != package.root_module:
                g.add_edge(module.parent, module_id)
        return g

    # ------------------------------------------------------------------
    # Text renderer
    # ------------------------------------------------------------------

    def to_text(self, package: Package) -> str:
        """Indented tree, one module per line, file roots annotated."""
        g = self.to_networkx(package)
        lines: List[str] = []
        for module_id in nx.dfs_preorder_nodes(g, package.root_module):
            module = package[module_id]
            depth = len(package.qualified_path(module_id)) - 1
            if module_id == package.root_module:
                line = f"{module.name}  [{module.file}]"
            else:
                line = f"{'    ' * depth}{_label(module)}"
                if module.is_file_root:
                    line += f"  [{module.file}]"
            lines.append(line)
        return "\n".join(lines) + "\n"

    # ------------------------------------------------------------------
    # JSON renderer
    # ------------------------------------------------------------------

    def to_json(self, package: Package) -> Dict[str, Any]:
        """Render *package* as a JSON-serialisable dictionary."""
        return {
            "root": package.root_module,
            "files": {str(p): i for p, i in package.files_to_ids.items()},
            "modules": [
                {
                    "id": module_id,
                    "path": "::".join(package.qualified_path(module_id)),
                    "internal_path": list(module.internal_path),
                    "file": str(module.file),
                    "visibility": module.visibility.text,
                    "parent": module.parent,
                    "submodules": list(module.submodules),
                    "kind": _kind(package, module_id, module),
                    "item_count": len(module.items),
                    "attributes": (
                        [a.text for a in module.attributes]
                        if module.attributes is not None
                        else None
                    ),
                }
                for module_id, module in package.walk()
            ],
        }

    def to_json_str(self, package: Package, indent: int = 2) -> str:
        return json.dumps(self.to_json(package), indent=indent)

    # ------------------------------------------------------------------
    # DOT (Graphviz) renderer
    # ------------------------------------------------------------------

    def to_dot(self, package: Package, title: str = "") -> str:
        """Render *package* as a Graphviz DOT string."""
        title = title or f"{package.root.file} module tree"
        lines: List[str] = [
            'digraph "module_tree" {',
            f'    label="{_dot_escape(title)}";',
            '    labelloc=t;',
            '    rankdir=LR;',
            '    node [fontname="Courier New", fontsize=11];',
            '',
        ]
        for module_id, module in package.walk():
            kind = _kind(package, module_id, module)
            node_label = _dot_escape(_label(module) if kind != "root" else module.name)
            if module.is_file_root:
                node_label += f"\\n{_dot_escape(module.file.name)}"
            lines.append(
                f'    m{module_id} [label="{node_label}", shape={_DOT_SHAPE[kind]}, '
                f'style=filled, fillcolor="{_FILL[kind]}", fontcolor=white];'
            )
        lines.append('')
        for module_id, module in package.walk():
            for child in module.submodules:
                lines.append(f'    m{module_id} -> m{child};')
        lines.append('}')
        return '\n'.join(lines) + '\n'

    # ------------------------------------------------------------------
    # Mermaid renderer
    # ------------------------------------------------------------------

    def to_mermaid(self, package: Package) -> str:
        """Render *package* as a Mermaid flowchart."""
        lines: List[str] = ["flowchart TD"]
        for module_id, module in package.walk():
            kind = _kind(package, module_id, module)
            label = _label(module) if kind != "root" else module.name
            label = re.sub(r'["]', "'", label)
            lines.append(f'    m{module_id}["{label}"]:::{kind}')
        lines.append('')
        for module_id, module in package.walk():
            for child in module.submodules:
                lines.append(f'    m{module_id} --> m{child}')
        lines.append('')
        lines.append(f'    classDef root   fill:{_FILL["root"]},color:#fff')
        lines.append(f'    classDef file   fill:{_FILL["file"]},color:#fff')
        lines.append(f'    classDef inline fill:{_FILL["inline"]},color:#fff')
        return '\n'.join(lines) + '\n'
