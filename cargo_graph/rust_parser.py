"""Tree-sitter parsing of Rust source files."""
from __future__ import annotations

from dataclasses import dataclass

import tree_sitter_rust
from tree_sitter import Language, Node, Parser

from cargo_graph.errors import SourceParseError

RUST_LANGUAGE = Language(tree_sitter_rust.language())


@dataclass(frozen=True)
class SourceTree:
    """A parsed file: the tree-sitter root plus the bytes it indexes into."""
    source_bytes: bytes
    root: Node
    path: str = "<source>"

    def text(self, node: Node) -> str:
        return self.source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


def _first_error(node: Node) -> Node | None:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error:
            found = _first_error(child)
            if found is not None:
                return found
    return None


def parse_source(source: str, *, path: str = "<source>") -> SourceTree:
    """
    Parse Rust source text.

    Raises SourceParseError when tree-sitter had to recover from a syntax error.
    """
    parser = Parser(RUST_LANGUAGE)
    src_bytes = source.encode("utf-8", errors="ignore")
    tree = parser.parse(src_bytes)
    root = tree.root_node
    if root.has_error:
        bad = _first_error(root) or root
        line, column = bad.start_point[0] + 1, bad.start_point[1] + 1
        raise SourceParseError(f"Failed to parse {path}: syntax error at line {line}, column {column}")
    return SourceTree(source_bytes=src_bytes, root=root, path=path)
