import pytest

from cargo_graph import cli, renderer
from cargo_graph.cli import build_parser, main
from cargo_graph.config import Settings

SOURCE = """
fn main() {
    while running() {
        tick();
    }
}

#[test]
fn smoke() {
    main();
}
"""


@pytest.fixture
def rust_file(tmp_path):
    path = tmp_path / "main.rs"
    path.write_text(SOURCE, encoding="utf-8")
    return path


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.file is None
    assert args.output is None
    assert args.format == "svg"
    assert args.style == "c-style"
    assert args.include_tests is False


def test_prints_dot_to_stdout(rust_file, capsys):
    assert main(["-i", str(rust_file)]) == 0
    out = capsys.readouterr().out
    assert out.startswith("digraph G {")
    assert "Condition: running()" in out
    assert "smoke" not in out


def test_accepts_cargo_subcommand_name(rust_file, capsys):
    assert main(["graph", "-i", str(rust_file), "--include-tests"]) == 0
    assert 'label="Start: smoke"' in capsys.readouterr().out


def test_writes_dot_file(rust_file, tmp_path):
    out = tmp_path / "out" / "flow.dot"
    assert main(["-i", str(rust_file), "-f", "dot", "-o", str(out), "-s", "default"]) == 0
    text = out.read_text(encoding="utf-8")
    assert "nodesep=0.5" in text
    assert 'label="Start: main"' in text


def test_missing_input_file(tmp_path):
    assert main(["-i", str(tmp_path / "nope.rs")]) == 1


def test_include_tests_flag_overrides_environment(rust_file, capsys, monkeypatch):
    monkeypatch.setattr(cli, "SETTINGS", Settings(include_tests=True))
    assert build_parser().parse_args([]).include_tests is True
    assert main(["-i", str(rust_file), "--no-include-tests"]) == 0
    assert "smoke" not in capsys.readouterr().out


def test_non_utf8_input_is_reported(tmp_path):
    latin = tmp_path / "latin.rs"
    latin.write_bytes(b"fn main() { let s = \"caf\xe9\"; }\n")
    assert main(["-i", str(latin)]) == 1


def test_parse_error_is_reported(tmp_path):
    bad = tmp_path / "bad.rs"
    bad.write_text("fn (", encoding="utf-8")
    assert main(["-i", str(bad), "-f", "dot", "-o", str(tmp_path / "bad.dot")]) == 1
    assert not (tmp_path / "bad.dot").exists()


def test_missing_graphviz_returns_error(rust_file, tmp_path, monkeypatch):
    def fake_run(command, check, capture_output):
        raise FileNotFoundError(command[0])

    monkeypatch.setattr(renderer.subprocess, "run", fake_run)
    assert main(["-i", str(rust_file), "-f", "png", "-o", str(tmp_path / "flow.png")]) == 1


def test_crate_mode(tmp_path, capsys):
    (tmp_path / "Cargo.toml").write_text('[package]\nname = "demo"\n', encoding="utf-8")
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "main.rs").write_text(SOURCE, encoding="utf-8")
    assert main(["--crate-root", str(tmp_path)]) == 0
    assert "subgraph cluster_src__main" in capsys.readouterr().out
