"""Control-flow charts for Rust functions."""
from __future__ import annotations

from cargo_graph.builder import ControlFlowBuilder, build
from cargo_graph.canonicalize import canonicalize
from cargo_graph.collector import collect_functions
from cargo_graph.config import GraphConfig
from cargo_graph.flow_graph import Edge, FlowGraph, Node, NodeKind
from cargo_graph.visibility import visible_edges, visible_nodes

__version__ = "0.1.0"

__all__ = [
    "ControlFlowBuilder",
    "Edge",
    "FlowGraph",
    "GraphConfig",
    "Node",
    "NodeKind",
    "build",
    "canonicalize",
    "collect_functions",
    "visible_edges",
    "visible_nodes",
]
