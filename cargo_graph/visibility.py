"""Query-time view that hides the subgraphs of test functions."""
from __future__ import annotations

from typing import Set

from cargo_graph.config import GraphConfig
from cargo_graph.flow_graph import FlowGraph, NodeKind


def _reachable(graph: FlowGraph, start: int) -> Set[int]:
    seen: Set[int] = set()
    stack = [start]
    while stack:
        node_id = stack.pop()
        if node_id in seen:
            continue
        seen.add(node_id)
        stack.extend(graph.successors(node_id))
    return seen


def hidden_nodes(graph: FlowGraph, config: GraphConfig) -> Set[int]:
    """Every node reachable from a test function's entry, unless tests are included."""
    if config.include_tests:
        return set()
    hidden: Set[int] = set()
    for node in graph.nodes():
        if node.kind is NodeKind.FUNCTION_ENTRY and node.is_test and node.id not in hidden:
            hidden |= _reachable(graph, node.id)
    return hidden


def visible_nodes(graph: FlowGraph, config: GraphConfig) -> Set[int]:
    hidden = hidden_nodes(graph, config)
    return {n.id for n in graph.nodes() if n.id not in hidden}


def visible_edges(graph: FlowGraph, config: GraphConfig) -> Set[int]:
    """Ids of edges whose endpoints are both visible."""
    hidden = hidden_nodes(graph, config)
    return {
        e.id for e in graph.edges()
        if e.source not in hidden and e.target not in hidden
    }
