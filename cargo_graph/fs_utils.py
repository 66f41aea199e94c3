"""Filesystem utilities for working with Rust crates."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from cargo_graph.errors import CrateNotFoundError

RUST_EXTS = {".rs"}

# Directories never analyzed: build output, integration tests, VCS/tooling
DEFAULT_EXCLUDE_DIRS = {
    "target",
    "tests",
    ".git",
    ".hg",
    ".svn",
    ".cargo",
    ".idea",
    ".vscode",
    "node_modules",
}


@dataclass(frozen=True)
class FileRecord:
    """Record of a file in the crate."""
    path: Path
    relpath: str

    @property
    def module_name(self) -> str:
        """``src/passes/builder.rs`` -> ``src::passes::builder``"""
        name = self.relpath[:-3] if self.relpath.endswith(".rs") else self.relpath
        return name.replace("/", "::")


def iter_files(
    root: Path,
    *,
    include_exts: set[str] | None = None,
    exclude_dir_names: set[str] | None = None,
) -> Iterable[FileRecord]:
    """
    Recursively iterate over files in a directory tree, sorted by path.

    Args:
        root: Root directory to search
        include_exts: Set of file extensions to include (default: Rust sources)
        exclude_dir_names: Set of directory names to skip

    Yields:
        FileRecord objects for matching files
    """
    root = root.resolve()
    include_exts = RUST_EXTS if include_exts is None else include_exts
    exclude_dirs = DEFAULT_EXCLUDE_DIRS if exclude_dir_names is None else exclude_dir_names

    if not root.exists():
        return

    if root.is_file():
        if root.suffix.lower() in include_exts:
            yield FileRecord(path=root, relpath=root.name)
        return

    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue

        relative = path.relative_to(root)
        # Skip excluded directories (below root only)
        if any(part in exclude_dirs for part in relative.parts[:-1]):
            continue

        if path.suffix.lower() not in include_exts:
            continue

        yield FileRecord(path=path, relpath=relative.as_posix())


def find_cargo_toml(start: Path | None = None) -> Path:
    """Nearest Cargo.toml in ``start`` or any of its parents."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / "Cargo.toml"
        if candidate.is_file():
            return candidate
    raise CrateNotFoundError(f"Could not find Cargo.toml in {current} or any parent directory")


def get_crate_root(start: Path | None = None) -> Path:
    return find_cargo_toml(start).parent
