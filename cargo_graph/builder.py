"""
Control-flow graph construction.

Translates the statement tree of each function into nodes and edges of a
shared FlowGraph. The node that control currently flows out of (the
"predecessor") is passed into every build step and the step returns the node
control leaves from, so each statement kind can be built and tested on its own.
"""
from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple

from cargo_graph.flow_graph import FlowGraph, NodeKind
from cargo_graph.logging_utils import get_logger
from cargo_graph.statements import Expr, For, FunctionDef, If, Loop, Match, Statement, While

logger = get_logger(__name__)

# Edge labels
NEXT = "next"
ENTER_TEST = "enter-test"
TRUE = "true"
FALSE = "false"
DONE = "done"
ENTER_LOOP = "enter-loop"
CHECK = "check"
CONTINUE = "continue"
BREAK = "break"
EXHAUSTED = "exhausted"
CASE = "case"
RETURN = "return"

# Synthetic block texts
MERGE_TEXT = "merge"
MATCH_MERGE_TEXT = "after_match"
LOOP_ENTRY_TEXT = "loop_entry"
LOOP_EXIT_TEXT = "loop_exit"
UNCONDITIONAL_TEXT = "unconditional"


class ControlFlowBuilder:
    """
    Builds function subgraphs into one FlowGraph.

    Every ``_build_*`` method takes the predecessor node and an optional label
    for the edge leaving it, and returns the node control continues from.
    """

    def __init__(self, graph: FlowGraph | None = None):
        self.graph = graph if graph is not None else FlowGraph()

    def build_function(self, func: FunctionDef) -> Tuple[int, int]:
        """Add one function's subgraph; returns its (entry, exit) node ids."""
        g = self.graph
        entry = g.add_node(NodeKind.FUNCTION_ENTRY, func.name, is_test=func.is_test)
        exit_ = g.add_node(NodeKind.FUNCTION_EXIT, func.name, is_test=func.is_test)

        last = self.build_block(func.body, entry)
        g.add_edge(last, exit_, RETURN)

        logger.debug(f"Built {func.name}: entry={entry} exit={exit_}")
        return entry, exit_

    def build_block(
        self,
        body: Sequence[Statement],
        pred: int,
        label: Optional[str] = None,
    ) -> int:
        """
        Thread ``pred`` through a statement sequence.

        ``label`` replaces the default label of the first edge leaving ``pred``
        (e.g. "true" when the block is the taken branch of a condition).
        """
        for stmt in body:
            pred = self.build_statement(stmt, pred, label)
            label = None
        return pred

    def build_statement(self, stmt: Statement, pred: int, label: Optional[str] = None) -> int:
        if isinstance(stmt, If):
            return self._build_if(stmt, pred, label)
        if isinstance(stmt, While):
            return self._build_while(stmt, pred, label)
        if isinstance(stmt, Loop):
            return self._build_loop(stmt, pred, label)
        if isinstance(stmt, For):
            return self._build_for(stmt, pred, label)
        if isinstance(stmt, Match):
            return self._build_match(stmt, pred, label)
        if isinstance(stmt, Expr):
            return self._build_basic(stmt.text, pred, label)
        # Unknown statement kind: keep its text, lose its structure
        text = getattr(stmt, "text", "") or repr(stmt)
        logger.debug(f"Drawing unmodeled statement {type(stmt).__name__} as a block")
        return self._build_basic(text, pred, label)

    def _build_basic(self, text: str, pred: int, label: Optional[str]) -> int:
        node = self.graph.add_node(NodeKind.BASIC_BLOCK, text)
        self.graph.add_edge(pred, node, label or NEXT)
        return node

    def _build_branch(self, body: Sequence[Statement], cond: int, label: str, merge: int) -> None:
        """Walk one branch of a condition and join it into ``merge``."""
        last = self.build_block(body, cond, label)
        if last == cond:
            # empty branch: the condition flows straight to the join point
            self.graph.add_edge(cond, merge, label)
        else:
            self.graph.add_edge(last, merge, DONE)

    def _build_if(self, stmt: If, pred: int, label: Optional[str]) -> int:
        g = self.graph
        cond = g.add_node(NodeKind.CONDITION, stmt.condition)
        g.add_edge(pred, cond, label or ENTER_TEST)

        then_last = self.build_block(stmt.then_body, cond, TRUE)
        merge = g.add_node(NodeKind.BASIC_BLOCK, MERGE_TEXT)

        if stmt.orelse is None:
            g.add_edge(cond, merge, FALSE)
        elif isinstance(stmt.orelse, If):
            # else-if: nested condition rooted at this condition node
            else_last = self._build_if(stmt.orelse, cond, FALSE)
            g.add_edge(else_last, merge, DONE)
        else:
            self._build_branch(stmt.orelse, cond, FALSE, merge)

        g.add_edge(then_last, merge, TRUE if then_last == cond else DONE)
        return merge

    def _build_while(self, stmt: While, pred: int, label: Optional[str]) -> int:
        g = self.graph
        loop_entry = g.add_node(NodeKind.BASIC_BLOCK, LOOP_ENTRY_TEXT)
        g.add_edge(pred, loop_entry, label or ENTER_LOOP)

        cond = g.add_node(NodeKind.CONDITION, stmt.condition)
        g.add_edge(loop_entry, cond, CHECK)

        body_last = self.build_block(stmt.body, cond, TRUE)
        # back-edge
        g.add_edge(body_last, loop_entry, TRUE if body_last == cond else CONTINUE)

        exit_ = g.add_node(NodeKind.BASIC_BLOCK, LOOP_EXIT_TEXT)
        g.add_edge(cond, exit_, FALSE)
        return exit_

    def _build_header_loop(
        self,
        header_text: str,
        body: Sequence[Statement],
        pred: int,
        label: Optional[str],
        exit_label: str,
    ) -> int:
        g = self.graph
        header = g.add_node(NodeKind.LOOP, header_text)
        g.add_edge(pred, header, label or ENTER_LOOP)

        body_last = self.build_block(body, header)
        g.add_edge(body_last, header, CONTINUE)

        # Always present, even when the body can never leave the loop.
        exit_ = g.add_node(NodeKind.BASIC_BLOCK, LOOP_EXIT_TEXT)
        g.add_edge(header, exit_, exit_label)
        return exit_

    def _build_loop(self, stmt: Loop, pred: int, label: Optional[str]) -> int:
        return self._build_header_loop(UNCONDITIONAL_TEXT, stmt.body, pred, label, BREAK)

    def _build_for(self, stmt: For, pred: int, label: Optional[str]) -> int:
        header_text = f"for {stmt.pattern} in {stmt.iterable}"
        return self._build_header_loop(header_text, stmt.body, pred, label, EXHAUSTED)

    def _build_match(self, stmt: Match, pred: int, label: Optional[str]) -> int:
        g = self.graph
        cond = g.add_node(NodeKind.CONDITION, f"match {stmt.scrutinee}")
        g.add_edge(pred, cond, label or NEXT)

        merge = g.add_node(NodeKind.BASIC_BLOCK, MATCH_MERGE_TEXT)
        # arms stay in source order: it decides the fan-in order at the merge
        for arm in stmt.arms:
            arm_node = g.add_node(NodeKind.BASIC_BLOCK, f"case: {arm.pattern}")
            g.add_edge(cond, arm_node, CASE)
            arm_last = self.build_block(arm.body, arm_node)
            g.add_edge(arm_last, merge, NEXT)
        return merge


def build(functions: Iterable[FunctionDef], graph: FlowGraph | None = None) -> FlowGraph:
    """Build every function, in order, into one graph."""
    builder = ControlFlowBuilder(graph)
    count = 0
    for func in functions:
        builder.build_function(func)
        count += 1
    logger.debug(
        f"Built {count} function(s): {builder.graph.node_count} nodes, "
        f"{builder.graph.edge_count} edges"
    )
    return builder.graph
