"""
Presentation: box-drawing text and JSON for a DeencodeTree.

Read-only consumers of the tree; nothing here changes its shape.
"""

import json

from core import EncodeNode


def format_bytes(data):
    """Space-separated lowercase hex, e.g. ``48 65 6c``."""
    return " ".join(f"{b:02x}" for b in data)


def node_label(node):
    if isinstance(node, EncodeNode):
        return f"{node.name}: {format_bytes(node.output)}"
    return f"{node.name}: {node.output}"


def _render_children(children, prefix, lines):
    for i, child in enumerate(children):
        last = i == len(children) - 1
        lines.append(prefix + ("└─ " if last else "├─ ") + node_label(child))
        _render_children(child.children, prefix + ("   " if last else "│  "), lines)


def render_tree(tree):
    """
    Render *tree* as an indented diagram, children in tree order:

        Clément
        ├─ UTF-8: 43 6c c3 a9 6d 65 6e 74
        │  └─ Latin-1 / Codepage 1252: ClÃ©ment
        └─ Latin-1 / Codepage 1252: 43 6c e9 6d 65 6e 74
           └─ UTF-8: Cl\ufffdment
    """
    lines = [tree.input]
    _render_children(tree.encoders, "", lines)
    return "\n".join(lines)


def render_artifacts(strings, byte_seqs):
    """Summary of the distinct outputs returned by DeencodeTree.deduplicate()."""
    lines = [f"strings ({len(strings)}):"]
    lines.extend(f"  {s}" for s in strings)
    lines.append(f"bytes ({len(byte_seqs)}):")
    lines.extend(f"  {format_bytes(b)}" for b in byte_seqs)
    return "\n".join(lines)


def _encode_node_to_dict(node):
    return {
        "name": node.name,
        "output": list(node.output),
        "decoders": [_decode_node_to_dict(d) for d in node.decoders],
    }


def _decode_node_to_dict(node):
    out = {"name": node.name, "output": node.output}
    # leaves and pruned nodes alike serialize without the key
    if node.encoders:
        out["encoders"] = [_encode_node_to_dict(e) for e in node.encoders]
    return out


def tree_to_dict(tree):
    return {
        "input": tree.input,
        "encoders": [_encode_node_to_dict(e) for e in tree.encoders],
    }


def tree_to_json(tree, indent=None):
    return json.dumps(tree_to_dict(tree), ensure_ascii=False, indent=indent)
