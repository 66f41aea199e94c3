"""
Visual attributes for flow graph elements.

Pure table lookups from node kind / edge label to Graphviz attributes.
Only elements passing the visibility filter are styled.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from cargo_graph.config import GraphConfig
from cargo_graph.flow_graph import Edge, FlowGraph, Node, NodeKind
from cargo_graph.visibility import visible_edges, visible_nodes

NODE_SHAPES: Dict[NodeKind, str] = {
    NodeKind.FUNCTION_ENTRY: "oval",
    NodeKind.FUNCTION_EXIT: "oval",
    NodeKind.BASIC_BLOCK: "box",
    NodeKind.CONDITION: "diamond",
    NodeKind.LOOP: "hexagon",
}

NODE_FILLCOLORS: Dict[NodeKind, str] = {
    NodeKind.FUNCTION_ENTRY: "lightgreen",
    NodeKind.FUNCTION_EXIT: "lightpink",
    NodeKind.BASIC_BLOCK: "lightblue",
    NodeKind.CONDITION: "lightyellow",
    NodeKind.LOOP: "lightgray",
}

LABEL_PREFIXES: Dict[NodeKind, str] = {
    NodeKind.FUNCTION_ENTRY: "Start: ",
    NodeKind.FUNCTION_EXIT: "End: ",
    NodeKind.BASIC_BLOCK: "",
    NodeKind.CONDITION: "Condition: ",
    NodeKind.LOOP: "Loop: ",
}

# edge label -> (color, style)
EDGE_STYLES: Dict[str, Tuple[str, str]] = {
    "true": ("green", "solid"),
    "false": ("red", "solid"),
    "continue": ("blue", "dashed"),
    "break": ("red", "dashed"),
    "exhausted": ("red", "dashed"),
}
DEFAULT_EDGE_STYLE = ("black", "solid")


@dataclass(frozen=True)
class StyledNode:
    id: int
    label: str
    shape: str
    style: str
    fillcolor: str


@dataclass(frozen=True)
class StyledEdge:
    source: int
    target: int
    label: str
    color: str
    style: str


@dataclass
class StyledGraph:
    nodes: List[StyledNode] = field(default_factory=list)
    edges: List[StyledEdge] = field(default_factory=list)


_STATEMENT_BREAK = re.compile(r";[ \t]*(?=[^\s])")


def _label_text(node: Node) -> str:
    # one statement per line; a trailing ';' gets no extra line
    if node.kind is NodeKind.BASIC_BLOCK:
        return _STATEMENT_BREAK.sub(";\n", node.text)
    return node.text


def node_style(node: Node) -> StyledNode:
    style = "filled"
    if node.is_test and node.is_function_boundary:
        style = "filled,dashed"
    return StyledNode(
        id=node.id,
        label=LABEL_PREFIXES[node.kind] + _label_text(node),
        shape=NODE_SHAPES[node.kind],
        style=style,
        fillcolor=NODE_FILLCOLORS[node.kind],
    )


def edge_style(edge: Edge) -> StyledEdge:
    color, style = EDGE_STYLES.get(edge.label, DEFAULT_EDGE_STYLE)
    return StyledEdge(
        source=edge.source,
        target=edge.target,
        label=edge.label,
        color=color,
        style=style,
    )


def apply_style(graph: FlowGraph, config: GraphConfig | None = None) -> StyledGraph:
    config = config or GraphConfig()
    node_ids = visible_nodes(graph, config)
    edge_ids = visible_edges(graph, config)
    return StyledGraph(
        nodes=[node_style(n) for n in graph.nodes() if n.id in node_ids],
        edges=[edge_style(e) for e in graph.edges() if e.id in edge_ids],
    )
