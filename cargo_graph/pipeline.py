"""
End-to-end flow: Rust source -> flow graph -> DOT text.

    parse -> collect functions -> build -> canonicalize -> style -> render
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

from tqdm import tqdm

from cargo_graph.builder import build
from cargo_graph.canonicalize import canonicalize
from cargo_graph.collector import collect_functions
from cargo_graph.config import GraphConfig
from cargo_graph.errors import AnalysisError, CargoGraphError, SourceParseError
from cargo_graph.flow_graph import FlowGraph
from cargo_graph.fs_utils import get_crate_root, iter_files
from cargo_graph.logging_utils import get_logger
from cargo_graph.renderer import merge_graphs, render_dot
from cargo_graph.rust_parser import parse_source
from cargo_graph.styler import StyledGraph, apply_style

logger = get_logger(__name__)


@dataclass(frozen=True)
class FileGraph:
    module: str
    path: Path
    graph: FlowGraph
    function_count: int


def build_flow_graph(source: str, *, path: str = "<source>") -> Tuple[FlowGraph, int]:
    """Canonical flow graph of every function in ``source``, plus the function count."""
    tree = parse_source(source, path=path)
    functions = collect_functions(tree)
    graph = canonicalize(build(functions))
    return graph, len(functions)


def analyze_source(
    source: str,
    *,
    config: GraphConfig | None = None,
    style: str = "c-style",
) -> str:
    graph, _ = build_flow_graph(source)
    return render_dot(apply_style(graph, config), style=style)


def analyze_file(
    path: Path,
    *,
    config: GraphConfig | None = None,
    style: str = "c-style",
) -> str:
    try:
        source = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise SourceParseError(f"Failed to read {path}: not valid UTF-8 ({e.reason} at byte {e.start})") from e
    graph, count = build_flow_graph(source, path=str(path))
    logger.info(f"Analyzed {path} ({count} functions, {graph.node_count} nodes)")
    return render_dot(apply_style(graph, config), style=style)


def analyze_crate_files(crate_root: Path, *, show_progress: bool = False) -> List[FileGraph]:
    """
    Build a graph per Rust file of the crate, in path order.

    Files that cannot be read or parsed are reported and skipped.
    """
    records = list(iter_files(crate_root))
    logger.info(f"Found {len(records)} Rust file(s) under {crate_root}")

    results: List[FileGraph] = []
    for rec in tqdm(records, desc="Analyzing", disable=not show_progress):
        try:
            source = rec.path.read_text(encoding="utf-8")
            graph, count = build_flow_graph(source, path=rec.relpath)
        except (OSError, UnicodeDecodeError, CargoGraphError) as e:
            logger.warning(f"Failed to analyze {rec.relpath}: {e}")
            continue
        results.append(FileGraph(module=rec.module_name, path=rec.path, graph=graph, function_count=count))
    return results


def analyze_crate(
    crate_root: Path,
    *,
    config: GraphConfig | None = None,
    style: str = "c-style",
    show_progress: bool = False,
) -> str:
    files = analyze_crate_files(crate_root, show_progress=show_progress)
    if not files:
        raise AnalysisError(f"No Rust files found or all analyses failed under {crate_root}")

    sections: List[Tuple[str, StyledGraph]] = [
        (f.module, apply_style(f.graph, config)) for f in files
    ]
    return merge_graphs(sections, style=style)


def generate_graph(
    *,
    file: Path | None = None,
    crate_root: Path | None = None,
    config: GraphConfig | None = None,
    style: str = "c-style",
    show_progress: bool = False,
) -> str:
    """DOT text for one file, or for the whole crate when no file is given."""
    if file is not None:
        return analyze_file(file, config=config, style=style)
    root = crate_root if crate_root is not None else get_crate_root()
    return analyze_crate(root, config=config, style=style, show_progress=show_progress)
