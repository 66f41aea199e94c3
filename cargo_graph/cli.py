"""
Command line for cargo-graph.

Installed as ``cargo-graph`` so it also runs as ``cargo graph ...``; cargo
passes the subcommand name through as the first argument.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from cargo_graph.config import SETTINGS, GraphConfig
from cargo_graph.errors import CargoGraphError
from cargo_graph.logging_utils import console, get_logger, setup_logging
from cargo_graph.renderer import STYLE_PRESETS, VALID_FORMATS, convert_to_format

logger = get_logger(__name__)


def _path(p: str) -> Path:
    return Path(p).expanduser()


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="cargo-graph",
        description="Generate control-flow charts for the functions of a Rust crate or file",
    )
    p.add_argument(
        "-i",
        "--file",
        type=_path,
        default=None,
        help="Rust source file to analyze (default: every .rs file of the current crate)",
    )
    p.add_argument(
        "-o",
        "--output",
        type=_path,
        default=None,
        help="Output file (default: print DOT text to stdout)",
    )
    p.add_argument(
        "-f",
        "--format",
        choices=VALID_FORMATS,
        default=SETTINGS.output_format,
        help=f"Output format (default: {SETTINGS.output_format})",
    )
    p.add_argument(
        "-s",
        "--style",
        choices=sorted(STYLE_PRESETS),
        default=SETTINGS.style,
        help=f"Flowchart layout style (default: {SETTINGS.style})",
    )
    p.add_argument(
        "--include-tests",
        action=argparse.BooleanOptionalAction,
        default=SETTINGS.include_tests,
        help="Draw #[test] functions and #[cfg(test)] modules (default: CARGO_GRAPH_INCLUDE_TESTS)",
    )
    p.add_argument(
        "--crate-root",
        type=_path,
        default=None,
        help="Crate directory to analyze (default: nearest Cargo.toml above the working directory)",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    return p


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    if argv and argv[0] == "graph":
        argv = argv[1:]

    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose)

    try:
        from cargo_graph.pipeline import generate_graph

        if args.file is not None and not args.file.exists():
            console.print(f"[bold red]Error:[/bold red] Input file does not exist: {args.file}")
            return 1

        dot_content = generate_graph(
            file=args.file,
            crate_root=args.crate_root,
            config=GraphConfig(include_tests=args.include_tests),
            style=args.style,
            show_progress=not args.verbose,
        )

        if args.output is None:
            sys.stdout.write(dot_content)
            return 0

        convert_to_format(dot_content, args.format, args.output)
        console.print(f"[green]Flow chart saved to:[/green] {args.output}")
        return 0

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        return 130
    except CargoGraphError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1
    except OSError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        if args.verbose:
            logger.exception("Traceback:")
        return 1


if __name__ == "__main__":
    sys.exit(main())
