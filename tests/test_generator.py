"""
End-to-end tests: header + tables in, Go files out.

The formatter is disabled (or pointed at a missing binary) so the tests
don't depend on a Go toolchain.
"""

import subprocess

import pytest

from gencgo.__main__ import main
from gencgo.generator import Generator, format_source

from conftest import FOO_HEADER, FOO_TABLES

PREAMBLE = 'package foo\n\n/* Generated by gencgo. DO NOT EDIT */\n\n// #include <foo.h>\nimport "C"\n'


@pytest.fixture
def generator(foo_model, foo_tables, tmp_path):
    return Generator(foo_model, foo_tables, tmp_path / "out", formatter=None)


def test_generate_enums(generator):
    path = generator.generate_enums()
    assert path.name == "enums.go"
    text = path.read_text()
    assert text.startswith(PREAMBLE)
    assert "type Foo int" in text
    assert "type Status int" in text


def test_generate_stubs_one_file_per_type(generator):
    paths = generator.generate_stubs()
    assert [p.name for p in paths] == ["Handle_gen.go", "Bar_gen.go", "Baz_gen.go"]
    for path in paths:
        assert path.read_text().startswith(PREAMBLE)
    assert "func NewHandle(a int)" in paths[0].read_text()
    assert not (generator.out_dir / "Qux_gen.go").exists()


def test_generate_stubs_single_file(generator):
    (path,) = generator.generate_stubs(split=False)
    assert path.name == "stubs_gen.go"
    text = path.read_text()
    assert text.index("type Handle struct") < text.index("type Bar struct") < text.index(
        "type Baz struct"
    )


def test_generate_methods(generator):
    path = generator.generate_methods()
    assert path.name == "methods_gen.go"
    assert "func (h *Handle) GetA() (a int, err error) {}" in path.read_text()


def test_files_are_overwritten(generator):
    path = generator.out_dir / "enums.go"
    path.parent.mkdir(parents=True)
    path.write_text("stale content\n")
    generator.generate_enums()
    assert "stale" not in path.read_text()


def test_failed_group_writes_no_file(generator, monkeypatch, caplog):
    from gencgo.errors import GenerationError

    original = generator.codegen.render_group

    def render_group(group):
        if group.go_type == "Bar":
            raise GenerationError("boom")
        return original(group)

    monkeypatch.setattr(generator.codegen, "render_group", render_group)
    paths = generator.generate_stubs()
    assert [p.name for p in paths] == ["Handle_gen.go", "Baz_gen.go"]
    assert not (generator.out_dir / "Bar_gen.go").exists()
    assert "Failed to render wrapper for barHandle_t" in caplog.text


def test_unexpected_render_error_skips_only_that_group(generator, monkeypatch, caplog):
    original = generator.codegen.render_group

    def render_group(group):
        if group.go_type == "Bar":
            raise RuntimeError("template blew up")
        return original(group)

    monkeypatch.setattr(generator.codegen, "render_group", render_group)
    paths = generator.generate_stubs()
    assert [p.name for p in paths] == ["Handle_gen.go", "Baz_gen.go"]
    assert not (generator.out_dir / "Bar_gen.go").exists()
    assert "func (b *Baz) N() int" in paths[1].read_text()
    assert "Failed to render wrapper for barHandle_t" in caplog.text
    assert "RuntimeError: template blew up" in caplog.text


def test_unexpected_method_error_is_logged(generator, monkeypatch, caplog):
    def render_methods(receiver, fn_names):
        raise TypeError("bad receiver")

    monkeypatch.setattr(generator.codegen, "render_methods", render_methods)
    path = generator.generate_methods()
    assert path.read_text().startswith(PREAMBLE)
    assert "Failed to render methods of fooHandle_t" in caplog.text


def test_format_source_failures_are_logged(tmp_path, caplog):
    path = tmp_path / "x.go"
    path.write_text("package x\n")
    assert format_source(path, None)
    assert not format_source(path, "gencgo-no-such-formatter")
    assert "gencgo-no-such-formatter not found" in caplog.text


def test_format_source_runs_formatter(tmp_path, monkeypatch):
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, 0, "", "")

    monkeypatch.setattr(subprocess, "run", fake_run)
    assert format_source(tmp_path / "x.go")
    assert calls == [["goimports", "-w", str(tmp_path / "x.go")]]


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def test_cli_generates_everything(tmp_path, capsys):
    out = tmp_path / "gen"
    rc = main(
        [str(FOO_HEADER), "--tables", str(FOO_TABLES), "-o", str(out),
         "--prefix", "foo", "--no-format"]
    )
    assert rc == 0
    assert sorted(p.name for p in out.iterdir()) == [
        "Bar_gen.go", "Baz_gen.go", "Handle_gen.go", "enums.go", "methods_gen.go",
    ]
    assert "[1/4] Parsing foo.h" in capsys.readouterr().out
    assert "func (h *Handle) GetA()" in (out / "methods_gen.go").read_text()


def test_cli_only_and_package(tmp_path):
    out = tmp_path / "gen"
    rc = main(
        [str(FOO_HEADER), "-t", str(FOO_TABLES), "-o", str(out), "--only", "enums",
         "--package", "cfoo", "--include", "foo/api.h", "--no-format", "--dump-ast"]
    )
    assert rc == 0
    assert sorted(p.name for p in out.iterdir()) == ["ast.json", "enums.go"]
    text = (out / "enums.go").read_text()
    assert text.startswith("package cfoo\n")
    assert "// #include <foo/api.h>\n" in text


def test_cli_explore(tmp_path, capsys):
    rc = main([str(FOO_HEADER), "--explore", "-o", str(tmp_path / "gen")])
    assert rc == 0
    out = capsys.readouterr().out
    assert "Enum fooEnum_t" in out
    assert "  FOO_FOO_BAR = 0" in out
    assert "Function fooStatus_t fooSetA(fooHandle_t handle, int a)" in out
    assert "Type fooHandle_t = struct fooContext * (handle)" in out
    assert not (tmp_path / "gen").exists()


def test_cli_fatal_errors(tmp_path, caplog):
    assert main([str(tmp_path / "missing.h"), "--no-format"]) == 1
    assert main([str(FOO_HEADER), "-t", str(tmp_path / "missing.json"), "--no-format"]) == 1
    assert "cannot read tables" in caplog.text


def test_cli_unloadable_header(tmp_path, caplog):
    header = tmp_path / "dir.h"
    header.mkdir()
    assert main([str(header), "-o", str(tmp_path / "gen"), "--no-format"]) == 1
    assert "Failed to parse" in caplog.text


def test_cli_rejects_unknown_step():
    with pytest.raises(SystemExit):
        main([str(FOO_HEADER), "--only", "enums,docs"])
