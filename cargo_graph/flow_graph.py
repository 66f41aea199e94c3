"""
Flow graph arena shared by every analyzed function.

Nodes and edges live in growable lists and are addressed by their index.
Removing a node leaves a hole so an id is never handed out twice; edges only
store the ids of their endpoints, which keeps loop back-edges cheap.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional


class NodeKind(Enum):
    """Kinds of control points in the flow graph"""
    FUNCTION_ENTRY = "function_entry"
    FUNCTION_EXIT = "function_exit"
    BASIC_BLOCK = "basic_block"
    CONDITION = "condition"
    LOOP = "loop"


@dataclass
class Node:
    id: int
    kind: NodeKind
    # function name for entry/exit nodes, content otherwise
    text: str
    is_test: bool = False

    @property
    def is_function_boundary(self) -> bool:
        return self.kind in (NodeKind.FUNCTION_ENTRY, NodeKind.FUNCTION_EXIT)


@dataclass
class Edge:
    id: int
    source: int
    target: int
    label: str


class FlowGraph:
    """Directed multigraph of control points for one or more functions."""

    def __init__(self):
        self._nodes: List[Optional[Node]] = []
        self._edges: List[Optional[Edge]] = []
        self._out: Dict[int, List[int]] = {}
        self._in: Dict[int, List[int]] = {}

    def __repr__(self) -> str:
        return f"<FlowGraph nodes={self.node_count} edges={self.edge_count}>"

    @property
    def node_count(self) -> int:
        return len(self._out)

    @property
    def edge_count(self) -> int:
        return sum(1 for e in self._edges if e is not None)

    def add_node(self, kind: NodeKind, text: str, *, is_test: bool = False) -> int:
        node_id = len(self._nodes)
        self._nodes.append(Node(id=node_id, kind=kind, text=text, is_test=is_test))
        self._out[node_id] = []
        self._in[node_id] = []
        return node_id

    def add_edge(self, source: int, target: int, label: str) -> int:
        if not self.has_node(source) or not self.has_node(target):
            raise KeyError(f"Cannot connect missing node {source} -> {target}")
        edge_id = len(self._edges)
        self._edges.append(Edge(id=edge_id, source=source, target=target, label=label))
        self._out[source].append(edge_id)
        self._in[target].append(edge_id)
        return edge_id

    def has_node(self, node_id: int) -> bool:
        return node_id in self._out

    def node(self, node_id: int) -> Node:
        if not self.has_node(node_id):
            raise KeyError(f"No node with id {node_id}")
        return self._nodes[node_id]

    def edge(self, edge_id: int) -> Edge:
        e = self._edges[edge_id] if 0 <= edge_id < len(self._edges) else None
        if e is None:
            raise KeyError(f"No edge with id {edge_id}")
        return e

    def nodes(self) -> Iterator[Node]:
        """Live nodes in creation order."""
        return (n for n in self._nodes if n is not None)

    def edges(self) -> Iterator[Edge]:
        """Live edges in creation order."""
        return (e for e in self._edges if e is not None)

    def out_edges(self, node_id: int) -> List[Edge]:
        return [self._edges[i] for i in self._out[node_id]]

    def in_edges(self, node_id: int) -> List[Edge]:
        return [self._edges[i] for i in self._in[node_id]]

    def successors(self, node_id: int) -> List[int]:
        return [self._edges[i].target for i in self._out[node_id]]

    def predecessors(self, node_id: int) -> List[int]:
        return [self._edges[i].source for i in self._in[node_id]]

    def out_degree(self, node_id: int) -> int:
        return len(self._out[node_id])

    def in_degree(self, node_id: int) -> int:
        return len(self._in[node_id])

    def has_edge(self, source: int, target: int) -> bool:
        return self.has_node(source) and target in self.successors(source)

    def function_entries(self) -> List[Node]:
        return [n for n in self.nodes() if n.kind is NodeKind.FUNCTION_ENTRY]

    def redirect_edge(
        self,
        edge_id: int,
        *,
        source: int | None = None,
        target: int | None = None,
    ) -> None:
        """Move one or both endpoints of an edge, keeping its label and position."""
        e = self.edge(edge_id)
        if source is not None and source != e.source:
            self._out[e.source].remove(edge_id)
            self._out[source].append(edge_id)
            e.source = source
        if target is not None and target != e.target:
            self._in[e.target].remove(edge_id)
            self._in[target].append(edge_id)
            e.target = target

    def remove_edge(self, edge_id: int) -> None:
        e = self.edge(edge_id)
        self._out[e.source].remove(edge_id)
        self._in[e.target].remove(edge_id)
        self._edges[edge_id] = None

    def remove_node(self, node_id: int) -> None:
        """Remove a node together with every edge touching it."""
        self.node(node_id)
        for edge_id in list(self._out[node_id]) + list(self._in[node_id]):
            if self._edges[edge_id] is not None:
                self.remove_edge(edge_id)
        del self._out[node_id]
        del self._in[node_id]
        self._nodes[node_id] = None
