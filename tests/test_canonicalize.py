import importlib

import pytest

canon_module = importlib.import_module("cargo_graph.canonicalize")
from cargo_graph.builder import build
from cargo_graph.canonicalize import canonicalize, is_mergeable
from cargo_graph.flow_graph import FlowGraph, NodeKind
from cargo_graph.statements import Expr, For, FunctionDef, If, Loop, Match, MatchArm, While


def snapshot(graph):
    nodes = [(n.id, n.kind, n.text, n.is_test) for n in graph.nodes()]
    edges = [(e.source, e.target, e.label) for e in graph.edges()]
    return nodes, edges


def chain_graph():
    """entry -> cond -> x -> y -> z -> loop -> exit"""
    g = FlowGraph()
    entry = g.add_node(NodeKind.FUNCTION_ENTRY, "f")
    cond = g.add_node(NodeKind.CONDITION, "c")
    a = g.add_node(NodeKind.BASIC_BLOCK, "x")
    b = g.add_node(NodeKind.BASIC_BLOCK, "y")
    c = g.add_node(NodeKind.BASIC_BLOCK, "z")
    loop = g.add_node(NodeKind.LOOP, "unconditional")
    exit_ = g.add_node(NodeKind.FUNCTION_EXIT, "f")
    g.add_edge(entry, cond, "enter-test")
    g.add_edge(cond, a, "true")
    g.add_edge(a, b, "next")
    g.add_edge(b, c, "next")
    g.add_edge(c, loop, "enter-loop")
    g.add_edge(loop, exit_, "return")
    return g, (entry, cond, a, b, c, loop, exit_)


def test_chain_merges_in_content_order():
    g, (entry, cond, a, b, c, loop, exit_) = chain_graph()
    canonicalize(g)

    assert g.node(a).text == "x\ny\nz"
    assert not g.has_node(b)
    assert not g.has_node(c)
    assert [(e.source, e.target, e.label) for e in g.edges()] == [
        (entry, cond, "enter-test"),
        (cond, a, "true"),
        (a, loop, "enter-loop"),
        (loop, exit_, "return"),
    ]


def test_first_node_keeps_its_identity_and_ids_are_not_reused():
    g, (entry, cond, a, b, c, loop, exit_) = chain_graph()
    canonicalize(g)
    new_id = g.add_node(NodeKind.BASIC_BLOCK, "later")
    assert new_id == exit_ + 1
    assert g.node(a).kind is NodeKind.BASIC_BLOCK


def test_blocks_next_to_entry_or_exit_are_not_merged():
    graph = build([FunctionDef("f", False, (Expr("a()"), Expr("b()"), Expr("c()"), Expr("d()")))])
    canonicalize(graph)
    texts = [n.text for n in graph.nodes() if n.kind is NodeKind.BASIC_BLOCK]
    assert texts == ["a()", "b()\nc()", "d()"]


def test_two_statement_function_is_untouched():
    graph = build([FunctionDef("f", False, (Expr("a()"), Expr("b()")))])
    before = snapshot(graph)
    canonicalize(graph)
    assert snapshot(graph) == before


def test_is_mergeable_rules():
    g, (entry, cond, a, b, c, loop, exit_) = chain_graph()
    assert is_mergeable(g, a)
    assert is_mergeable(g, b)
    assert not is_mergeable(g, cond)
    assert not is_mergeable(g, entry)
    assert not is_mergeable(g, exit_)
    g.add_edge(cond, b, "false")
    assert not is_mergeable(g, b)


def test_merge_points_are_kept():
    graph = build([FunctionDef("f", False, (
        Expr("start()"),
        If("c", (Expr("a()"),), (Expr("b()"),)),
        Expr("end()"),
    ))])
    canonicalize(graph)
    merge = next(n for n in graph.nodes() if n.text.startswith("merge"))
    assert graph.in_degree(merge.id) == 2


def test_loop_back_edge_is_preserved():
    graph = build([FunctionDef("f", False, (
        Expr("init()"),
        While("x > 0", (Expr("a()"), Expr("b()"), Expr("c()"))),
        Expr("done()"),
    ))])
    canonicalize(graph)
    body = next(n for n in graph.nodes() if n.text == "a()\nb()\nc()")
    loop_entry = next(n for n in graph.nodes() if n.text == "loop_entry")
    assert [(e.target, e.label) for e in graph.out_edges(body.id)] == [(loop_entry.id, "continue")]


def test_single_arm_match_merges_maximal_runs():
    graph = build([FunctionDef("f", False, (
        Expr("first()"),
        Match("v", (MatchArm("_", (Expr("arm()"),)),)),
        Expr("tail()"),
        Expr("last()"),
    ))])
    canonicalize(graph)
    texts = sorted(n.text for n in graph.nodes() if n.kind is NodeKind.BASIC_BLOCK)
    assert texts == ["case: _\narm()\nafter_match\ntail()", "first()", "last()"]


@pytest.mark.parametrize("body", [
    (Expr("a()"), Expr("b()"), Expr("c()"), Expr("d()")),
    (Expr("s()"), Match("v", (MatchArm("_", (Expr("x()"), Expr("y()"))),)), Expr("t()"), Expr("u()")),
    (
        Expr("a()"),
        If("p", (Expr("b()"), Expr("c()")), If("q", (Expr("d()"),))),
        Loop((Expr("e()"), Expr("f()"))),
        For("i", "0..n", (Match("i", (MatchArm("0", (Expr("g()"),)), MatchArm("_", ()))),)),
        Expr("h()"),
        Expr("z()"),
    ),
])
def test_canonicalize_is_idempotent(body):
    graph = build([FunctionDef("f", False, body), FunctionDef("t", True, body)])
    canonicalize(graph)
    once = snapshot(graph)
    canonicalize(graph)
    assert snapshot(graph) == once


def test_failed_validation_leaves_chain_unmerged(monkeypatch):
    g, _ = chain_graph()
    before = snapshot(g)
    monkeypatch.setattr(canon_module, "_validate_chain", lambda graph, chain: False)
    canonicalize(g)
    assert snapshot(g) == before


def test_validate_chain_rejects_disconnected_nodes():
    g, (entry, cond, a, b, c, loop, exit_) = chain_graph()
    assert canon_module._validate_chain(g, [a, b, c])
    assert not canon_module._validate_chain(g, [a, c])
    assert not canon_module._validate_chain(g, [cond, a])
