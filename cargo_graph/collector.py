"""
Function collection.

Walks a parsed Rust file, finds every function with a body (free functions,
methods in impl/trait blocks, functions in modules and nested functions) and
lowers each body into the statement tree the builder consumes.
"""
from __future__ import annotations

import re
from typing import List, Optional

from tree_sitter import Node

from cargo_graph.logging_utils import get_logger
from cargo_graph.rust_parser import SourceTree
from cargo_graph.statements import (
    Body,
    Expr,
    For,
    FunctionDef,
    If,
    Loop,
    Match,
    MatchArm,
    Statement,
    While,
)

logger = get_logger(__name__)

_COMMENTS = {"line_comment", "block_comment"}
_SKIPPED = _COMMENTS | {"empty_statement", "attribute_item", "inner_attribute_item", "label"}

_ATTRIBUTE = re.compile(r"^#\s*\[(.*)\]$", re.DOTALL)
_CFG_TEST = re.compile(r"^cfg\s*\(\s*test\s*\)$")


def _attributes(tree: SourceTree, item: Node) -> List[str]:
    """Inner text of the outer attributes written above an item, e.g. ``test``."""
    attrs: List[str] = []
    sib = item.prev_named_sibling
    while sib is not None and (sib.type == "attribute_item" or sib.type in _COMMENTS):
        if sib.type == "attribute_item":
            m = _ATTRIBUTE.match(tree.text(sib).strip())
            if m:
                attrs.append(m.group(1).strip())
        sib = sib.prev_named_sibling
    return attrs


def is_test_attribute(attr: str) -> bool:
    # #[test], #[tokio::test], #[async_std::test(...)]
    path = attr.split("(", 1)[0].strip()
    return path.split("::")[-1].strip() == "test"


def is_cfg_test_attribute(attr: str) -> bool:
    return _CFG_TEST.match(attr) is not None


def _field_text(tree: SourceTree, node: Node, name: str) -> str:
    child = node.child_by_field_name(name)
    return tree.text(child).strip() if child is not None else ""


def lower_block(tree: SourceTree, block: Optional[Node]) -> Body:
    if block is None:
        return ()
    stmts: List[Statement] = []
    for child in block.named_children:
        if child.type in _SKIPPED:
            continue
        stmts.extend(_lower_statement(tree, child))
    return tuple(stmts)


def _lower_statement(tree: SourceTree, node: Node) -> List[Statement]:
    if node.type == "expression_statement":
        inner = [c for c in node.named_children if c.type not in _COMMENTS]
        if not inner:
            return []
        return _lower_expression(tree, inner[0])
    # tail expressions, let bindings, nested items, macros
    return _lower_expression(tree, node)


def _lower_expression(tree: SourceTree, node: Node) -> List[Statement]:
    kind = node.type
    if kind == "block":
        return list(lower_block(tree, node))
    if kind in ("if_expression", "if_let_expression"):
        return [_lower_if(tree, node)]
    if kind in ("while_expression", "while_let_expression"):
        return [
            While(
                condition=_condition_text(tree, node),
                body=lower_block(tree, node.child_by_field_name("body")),
                text=tree.text(node),
            )
        ]
    if kind == "loop_expression":
        return [Loop(body=lower_block(tree, node.child_by_field_name("body")), text=tree.text(node))]
    if kind == "for_expression":
        return [
            For(
                pattern=_field_text(tree, node, "pattern"),
                iterable=_field_text(tree, node, "value"),
                body=lower_block(tree, node.child_by_field_name("body")),
                text=tree.text(node),
            )
        ]
    if kind == "match_expression":
        return [_lower_match(tree, node)]
    return [Expr(text=tree.text(node).strip())]


def _condition_text(tree: SourceTree, node: Node) -> str:
    if node.type.endswith("_let_expression"):
        # grammar versions before let-conditions were folded into `condition`
        return f"let {_field_text(tree, node, 'pattern')} = {_field_text(tree, node, 'value')}"
    return _field_text(tree, node, "condition")


def _lower_if(tree: SourceTree, node: Node) -> If:
    orelse: Body | If | None = None
    alternative = node.child_by_field_name("alternative")
    if alternative is not None:
        for branch in alternative.named_children:
            if branch.type in ("if_expression", "if_let_expression"):
                orelse = _lower_if(tree, branch)
                break
            if branch.type == "block":
                orelse = lower_block(tree, branch)
                break
    return If(
        condition=_condition_text(tree, node),
        then_body=lower_block(tree, node.child_by_field_name("consequence")),
        orelse=orelse,
        text=tree.text(node),
    )


def _lower_match(tree: SourceTree, node: Node) -> Match:
    arms: List[MatchArm] = []
    match_block = node.child_by_field_name("body")
    for arm in match_block.named_children if match_block is not None else ():
        if arm.type != "match_arm":
            continue
        value = arm.child_by_field_name("value")
        body = tuple(_lower_expression(tree, value)) if value is not None else ()
        arms.append(MatchArm(pattern=_field_text(tree, arm, "pattern"), body=body))
    return Match(scrutinee=_field_text(tree, node, "value"), arms=tuple(arms), text=tree.text(node))


def collect_functions(tree: SourceTree) -> List[FunctionDef]:
    """
    All functions with a body, in source order.

    Methods are named ``Type::method``. A function is a test function when it
    carries a ``#[test]``-style attribute or lives in a ``#[cfg(test)]`` module.
    """
    functions: List[FunctionDef] = []

    def visit(node: Node, in_test_module: bool, owner: str | None) -> None:
        for child in node.named_children:
            if child.type == "function_item":
                name_node = child.child_by_field_name("name")
                body = child.child_by_field_name("body")
                if name_node is not None and body is not None:
                    name = tree.text(name_node)
                    is_test = in_test_module or any(
                        is_test_attribute(a) for a in _attributes(tree, child)
                    )
                    functions.append(
                        FunctionDef(
                            name=f"{owner}::{name}" if owner else name,
                            is_test=is_test,
                            body=lower_block(tree, body),
                            line=child.start_point[0] + 1,
                        )
                    )
                visit(child, in_test_module, None)
            elif child.type == "mod_item":
                cfg_test = any(is_cfg_test_attribute(a) for a in _attributes(tree, child))
                visit(child, in_test_module or cfg_test, None)
            elif child.type == "impl_item":
                visit(child, in_test_module, _field_text(tree, child, "type") or None)
            elif child.type == "trait_item":
                visit(child, in_test_module, _field_text(tree, child, "name") or None)
            else:
                visit(child, in_test_module, owner)

    visit(tree.root, False, None)
    logger.debug(f"Collected {len(functions)} function(s) from {tree.path}")
    return functions
