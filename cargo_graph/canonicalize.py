"""
Basic-block canonicalization.

Coalesces maximal runs of straight-line basic blocks into one node so the
rendered chart shows a block per run instead of a box per statement.
"""
from __future__ import annotations

from collections import deque
from typing import List, Set

from cargo_graph.flow_graph import FlowGraph, NodeKind
from cargo_graph.logging_utils import get_logger

logger = get_logger(__name__)


def is_mergeable(graph: FlowGraph, node_id: int) -> bool:
    """
    A basic block with exactly one predecessor and one successor, neither of
    which is a function entry or exit.
    """
    if not graph.has_node(node_id):
        return False
    if graph.node(node_id).kind is not NodeKind.BASIC_BLOCK:
        return False
    if graph.in_degree(node_id) != 1 or graph.out_degree(node_id) != 1:
        return False
    (pred,) = graph.predecessors(node_id)
    (succ,) = graph.successors(node_id)
    return not (graph.node(pred).is_function_boundary or graph.node(succ).is_function_boundary)


def _collect_chain(graph: FlowGraph, start: int, consumed: Set[int]) -> List[int]:
    # Back up to the head of the run first so chains are maximal.
    head = start
    seen = {start}
    while True:
        (pred,) = graph.predecessors(head)
        if pred in consumed or pred in seen or not is_mergeable(graph, pred):
            break
        seen.add(pred)
        head = pred

    chain = [head]
    members = {head}
    current = head
    while True:
        (succ,) = graph.successors(current)
        if succ in consumed or succ in members or not is_mergeable(graph, succ):
            break
        chain.append(succ)
        members.add(succ)
        current = succ
    return chain


def _validate_chain(graph: FlowGraph, chain: List[int]) -> bool:
    for node_id in chain:
        if not graph.has_node(node_id) or graph.node(node_id).kind is not NodeKind.BASIC_BLOCK:
            return False
    return all(graph.has_edge(a, b) for a, b in zip(chain, chain[1:]))


def _merge_chain(graph: FlowGraph, chain: List[int]) -> None:
    first = chain[0]
    members = set(chain)

    graph.node(first).text = "\n".join(graph.node(n).text for n in chain)

    for node_id in chain[1:]:
        for edge in graph.in_edges(node_id):
            if edge.source in members:
                graph.remove_edge(edge.id)
            else:
                graph.redirect_edge(edge.id, target=first)
        for edge in graph.out_edges(node_id):
            if edge.target in members:
                graph.remove_edge(edge.id)
            else:
                graph.redirect_edge(edge.id, source=first)
        graph.remove_node(node_id)


def canonicalize(graph: FlowGraph) -> FlowGraph:
    """
    Merge every maximal chain of mergeable basic blocks into its first node.

    Runs in place and returns the same graph. Running it again is a no-op.
    """
    consumed: Set[int] = set()
    queue = deque(n.id for n in graph.nodes() if is_mergeable(graph, n.id))
    merged = 0

    while queue:
        candidate = queue.popleft()
        if candidate in consumed or not is_mergeable(graph, candidate):
            continue

        chain = _collect_chain(graph, candidate, consumed)
        consumed.update(chain)
        if len(chain) < 2:
            continue

        if not _validate_chain(graph, chain):
            logger.debug(f"Skipping merge of inconsistent chain {chain}")
            continue

        _merge_chain(graph, chain)
        merged += len(chain) - 1

    if merged:
        logger.debug(f"Canonicalization removed {merged} node(s)")
    return graph
