"""
Setup script for cargo-graph
"""

from setuptools import setup, find_packages

setup(
    name="cargo-graph",
    version="0.1.0",
    description="Control-flow chart generator for Rust crates (Graphviz DOT/SVG/PNG)",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "tree-sitter>=0.23",
        "tree-sitter-rust>=0.23",
        "rich>=13.0",
        "tqdm>=4.60",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "cargo-graph=cargo_graph.cli:main",
        ],
    },
    python_requires=">=3.9",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Documentation",
        "Topic :: Software Development :: Code Generators",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
