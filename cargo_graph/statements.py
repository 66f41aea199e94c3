"""
Statement tree consumed by the control-flow builder.

The collector lowers a parsed Rust syntax tree into these plain records so the
builder never has to look at tree-sitter nodes. Every record keeps the source
text it came from; statements the builder does not model are drawn as opaque
blocks holding that text.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union


@dataclass(frozen=True)
class Expr:
    """Straight-line statement (call, assignment, let binding, macro, ...)."""
    text: str


@dataclass(frozen=True)
class If:
    condition: str
    then_body: Body
    # None, an else block, or a nested If for `else if`
    orelse: Body | If | None = None
    text: str = ""


@dataclass(frozen=True)
class While:
    condition: str
    body: Body
    text: str = ""


@dataclass(frozen=True)
class Loop:
    """Unconditional `loop { ... }`."""
    body: Body
    text: str = ""


@dataclass(frozen=True)
class For:
    pattern: str
    iterable: str
    body: Body
    text: str = ""


@dataclass(frozen=True)
class MatchArm:
    pattern: str
    body: Body


@dataclass(frozen=True)
class Match:
    scrutinee: str
    arms: Tuple[MatchArm, ...]
    text: str = ""


@dataclass(frozen=True)
class FunctionDef:
    name: str
    is_test: bool
    body: Body
    line: int = 0


Statement = Union[Expr, If, While, Loop, For, Match]
Body = Tuple[Statement, ...]
