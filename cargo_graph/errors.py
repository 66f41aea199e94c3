"""Exceptions raised outside the graph core."""
from __future__ import annotations


class CargoGraphError(Exception):
    """Base class for operator-facing failures."""


class SourceParseError(CargoGraphError):
    """Rust source could not be parsed."""


class CrateNotFoundError(CargoGraphError):
    """No Cargo.toml was found above the starting directory."""


class AnalysisError(CargoGraphError):
    """No input produced a graph."""


class RenderError(CargoGraphError):
    """Graphviz could not turn DOT text into the requested format."""
