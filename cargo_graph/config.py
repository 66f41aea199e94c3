"""Configuration settings for cargo-graph."""
from __future__ import annotations

import os
from dataclasses import dataclass


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Process-wide defaults, overridable through CARGO_GRAPH_* env vars."""

    # Graphviz executable used for svg/png output
    dot_bin: str = os.getenv("CARGO_GRAPH_DOT_BIN", "dot")
    output_format: str = os.getenv("CARGO_GRAPH_FORMAT", "svg")
    style: str = os.getenv("CARGO_GRAPH_STYLE", "c-style")
    include_tests: bool = _env_flag("CARGO_GRAPH_INCLUDE_TESTS")


@dataclass(frozen=True)
class GraphConfig:
    """Per-query view configuration; never affects graph construction."""

    include_tests: bool = False


SETTINGS = Settings()
