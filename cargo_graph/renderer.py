"""
DOT serialization of styled flow graphs, and Graphviz invocation.
"""
from __future__ import annotations

import re
import subprocess
import time
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from cargo_graph.config import SETTINGS
from cargo_graph.errors import RenderError
from cargo_graph.logging_utils import get_logger
from cargo_graph.styler import StyledGraph

logger = get_logger(__name__)

TEXT_FORMATS = ("dot",)
IMAGE_FORMATS = ("svg", "png")
VALID_FORMATS = TEXT_FORMATS + IMAGE_FORMATS

# Global attribute blocks per layout preset: graph / node / edge.
STYLE_PRESETS: Dict[str, Dict[str, Sequence[str]]] = {
    "c-style": {
        "graph": (
            "rankdir=TB", "nodesep=1.2", "ranksep=1.5", "splines=ortho",
            "concentrate=true", "compound=true", "newrank=true",
        ),
        "node": ('fontname="Arial"', "fontsize=12", 'margin="0.5,0.3"', "height=0", "width=0"),
        "edge": (
            'fontname="Arial"', "fontsize=10", "dir=forward", "arrowsize=0.8",
            "penwidth=1", "minlen=2",
        ),
    },
    "default": {
        "graph": ("rankdir=TB", "nodesep=0.5", "ranksep=0.7", "splines=ortho", "concentrate=true"),
        "node": ('fontname="Arial"', "fontsize=10", 'margin="0.2,0.2"', "height=0.4", "width=0.4"),
        "edge": ('fontname="Arial"', "fontsize=10", "dir=forward", "arrowsize=0.8", "penwidth=1"),
    },
}

# Backslash must go first so later escapes are not doubled.
_LABEL_ESCAPES: Tuple[Tuple[str, str], ...] = (
    ("\\", "\\\\"),
    ('"', '\\"'),
    ("{", "\\{"),
    ("}", "\\}"),
    ("<", "\\<"),
    (">", "\\>"),
    ("|", "\\|"),
    ("\n", "\\n"),
)

_PLAIN_ID = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def escape_label(label: str) -> str:
    for raw, escaped in _LABEL_ESCAPES:
        label = label.replace(raw, escaped)
    return label


def _attr_value(value: str) -> str:
    return value if _PLAIN_ID.match(value) else f'"{value}"'


def _preset(style: str) -> Dict[str, Sequence[str]]:
    try:
        return STYLE_PRESETS[style]
    except KeyError:
        raise RenderError(
            f"Unsupported style: {style} (expected one of {', '.join(STYLE_PRESETS)})"
        ) from None


def _header(style: str) -> List[str]:
    lines = ["digraph G {"]
    for block, attrs in _preset(style).items():
        lines.append(f"    {block} [")
        lines.append(";\n".join(f"        {a}" for a in attrs))
        lines.append("    ];")
        lines.append("")
    return lines


def render_body(graph: StyledGraph, *, node_prefix: str = "node_", indent: str = "    ") -> List[str]:
    """Node and edge declarations, one per line."""
    lines: List[str] = []
    for node in graph.nodes:
        lines.append(
            f'{indent}{node_prefix}{node.id} [label="{escape_label(node.label)}", '
            f"shape={_attr_value(node.shape)}, style={_attr_value(node.style)}, "
            f'fillcolor="{node.fillcolor}"];'
        )
    for edge in graph.edges:
        lines.append(
            f"{indent}{node_prefix}{edge.source} -> {node_prefix}{edge.target} "
            f'[label="{escape_label(edge.label)}", color={_attr_value(edge.color)}, '
            f"style={_attr_value(edge.style)}];"
        )
    return lines


def render_dot(graph: StyledGraph, *, style: str = "c-style") -> str:
    lines = _header(style) + render_body(graph)
    lines.append("}")
    return "\n".join(lines) + "\n"


def _cluster_id(module: str) -> str:
    return re.sub(r"\W", "_", module)


def merge_graphs(sections: Sequence[Tuple[str, StyledGraph]], *, style: str = "c-style") -> str:
    """
    One document with a cluster per module, in the given order.

    Cluster and node names carry the module plus the section position, so
    modules that sanitize to the same identifier (``a-b`` and ``a_b``) stay apart.
    """
    lines = _header(style)
    for index, (module, graph) in enumerate(sections):
        cluster = f"{_cluster_id(module)}_{index}"
        lines.append(f"    subgraph cluster_{cluster} {{")
        lines.append(f'        label="{escape_label(module)}";')
        lines.append("        style=rounded;")
        lines.append("        color=gray;")
        lines.extend(render_body(graph, node_prefix=f"node_{cluster}_", indent="        "))
        lines.append("    }")
    lines.append("}")
    return "\n".join(lines) + "\n"


def convert_to_format(
    dot_content: str,
    fmt: str,
    output: Path,
    *,
    dot_bin: str | None = None,
) -> None:
    """Write DOT text as-is, or run Graphviz to produce an image."""
    if fmt not in VALID_FORMATS:
        raise RenderError(f"Unsupported output format: {fmt}")

    output.parent.mkdir(parents=True, exist_ok=True)
    if fmt in TEXT_FORMATS:
        output.write_text(dot_content, encoding="utf-8")
        return

    dot_bin = dot_bin or SETTINGS.dot_bin
    temp_dot = output.with_suffix(".dot")
    if temp_dot == output:
        temp_dot = output.with_name(output.name + ".tmp.dot")
    temp_dot.write_text(dot_content, encoding="utf-8")
    command = [dot_bin, f"-T{fmt}", str(temp_dot), "-o", str(output)]

    logger.info("Running graphviz to make the image...")
    start_time = time.time()
    try:
        subprocess.run(command, check=True, capture_output=True)
    except FileNotFoundError:
        raise RenderError(
            f"Failed to execute {dot_bin!r}. Is Graphviz installed? "
            "Use --format dot to write the DOT text instead."
        ) from None
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or b"").decode("utf-8", errors="ignore").strip()
        raise RenderError(f"{dot_bin} exited with status {e.returncode}: {stderr}") from e
    finally:
        temp_dot.unlink(missing_ok=True)
    logger.info(f"Graphviz finished in {time.time() - start_time:.2f} seconds.")
