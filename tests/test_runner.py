from __future__ import annotations

from pathlib import Path

import pytest

from mdx_checker.checks import runner
from mdx_checker.checks.runner import process_file, run, run_files
from mdx_checker.config.loader import CheckerConfig, GlobalsPolicy
from mdx_checker.core.errors import DiscoveryError, MdxCompileError, ScriptError


class StubCompiler:
    """Echoes the source back as the compiled program; `<Broken` fails to compile."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    def compile(self, source, *, file_format, remark_plugins=(), rehype_plugins=()):
        self.calls.append((source, file_format))
        for lineno, line in enumerate(source.splitlines(), start=1):
            col = line.find("<Broken")
            if col >= 0:
                raise MdxCompileError("Unexpected closing tag", line=lineno, column=col + 1)
        return source


def _write(root: Path, files: dict[str, str]) -> None:
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


def test_one_unknown_global_fails_exactly_one_file(tmp_path: Path) -> None:
    _write(tmp_path, {"docs/a.mdx": "console.log(props.title);\n", "docs/b.mdx": "render(unsafeGlobal);\n"})
    batch = run(CheckerConfig(cwd=tmp_path, jobs=1), compiler=StubCompiler())
    assert batch.source == "all files"
    assert (batch.total_count, batch.failed_count) == (2, 1)
    (failure,) = batch.failures
    assert failure.relative_path == "docs/b.mdx"
    assert failure.error_kind == "unknown_globals"
    assert failure.unknown_globals == ("render", "unsafeGlobal")
    assert failure.message == (
        "These MDX global variables do not seem to be available in scope: render unsafeGlobal"
    )


def test_disabled_globals_never_runs_scope_check(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def _fail(*_args: object, **_kwargs: object) -> list[str]:
        raise AssertionError("scope check must not run")

    monkeypatch.setattr(runner, "get_unknown_globals", _fail)
    _write(tmp_path, {"docs/a.mdx": "render(unsafeGlobal);\n"})
    config = CheckerConfig(cwd=tmp_path, globals_policy=GlobalsPolicy.disabled(), jobs=1)
    batch = run(config, compiler=StubCompiler())
    assert batch.ok
    assert batch.total_count == 1


def test_custom_allow_list_replaces_defaults_unless_extended(tmp_path: Path) -> None:
    _write(tmp_path, {"docs/a.mdx": "console.log(siteConfig);\n"})
    only_custom = CheckerConfig(cwd=tmp_path, globals_policy=GlobalsPolicy.custom(["siteConfig"]), jobs=1)
    extended = CheckerConfig(cwd=tmp_path, globals_policy=GlobalsPolicy.custom(["siteConfig"], extend=True), jobs=1)
    assert run(only_custom, compiler=StubCompiler()).failures[0].unknown_globals == ("console",)
    assert run(extended, compiler=StubCompiler()).ok


def test_compile_error_keeps_line_and_column(tmp_path: Path) -> None:
    _write(tmp_path, {"docs/bad.mdx": "# Title\n\n  <Broken>\n"})
    batch = run(CheckerConfig(cwd=tmp_path, jobs=1), compiler=StubCompiler())
    (failure,) = batch.failures
    assert failure.error_kind == "compile"
    assert (failure.line, failure.column) == (3, 3)
    assert failure.message == "Unexpected closing tag"


def test_unparseable_output_is_a_file_error(tmp_path: Path) -> None:
    _write(tmp_path, {"docs/a.mdx": 'const s = "open;\n'})
    config = CheckerConfig(cwd=tmp_path, jobs=1)
    result = process_file("docs/a.mdx", config, StubCompiler(), config.globals_policy.allow_list())
    assert result.error_kind == "parse"
    assert result.message.startswith("unable to analyse compiled output:")
    assert (result.line, result.column) == (1, 11)


def test_unreadable_file_is_an_io_error(tmp_path: Path) -> None:
    config = CheckerConfig(cwd=tmp_path, jobs=1)
    result = process_file("docs/missing.mdx", config, StubCompiler(), None)
    assert result.status == "error"
    assert result.error_kind == "io"


def test_mdx_sources_are_preprocessed_and_md_sources_are_not(tmp_path: Path) -> None:
    _write(tmp_path, {"docs/a.mdx": "text <!-- note -->\n", "docs/b.md": "text <!-- note -->\n"})
    compiler = StubCompiler()
    config = CheckerConfig(cwd=tmp_path, file_format="detect", globals_policy=GlobalsPolicy.disabled(), jobs=1)
    run(config, compiler=compiler)
    assert compiler.calls == [("text {/* note */}\n", "mdx"), ("text <!-- note -->\n", "md")]


def test_parallel_run_keeps_discovery_order(tmp_path: Path) -> None:
    files = {f"docs/page{idx}.mdx": f"console.log({idx});\n" for idx in range(6)}
    files["docs/page3.mdx"] = "oops(3);\n"
    _write(tmp_path, files)
    config = CheckerConfig(cwd=tmp_path, jobs=4)
    ordered = sorted(files)
    batch = run_files(ordered, config, StubCompiler())
    assert [r.relative_path for r in batch.results] == ordered
    assert [r.relative_path for r in batch.failures] == ["docs/page3.mdx"]


def test_no_relevant_files_is_a_discovery_error(tmp_path: Path) -> None:
    _write(tmp_path, {"README.txt": "nothing here\n"})
    with pytest.raises(DiscoveryError, match="No relevant MDX files found"):
        run(CheckerConfig(cwd=tmp_path), compiler=StubCompiler())


class CrashingCompiler:
    def compile(self, source, *, file_format, remark_plugins=(), rehype_plugins=()):
        if "crash" in source:
            raise ScriptError("compiler driver crashed", 1, kind="driver_error")
        return source


def test_other_compiler_errors_fail_only_their_file(tmp_path: Path) -> None:
    _write(tmp_path, {"docs/a.mdx": "crash\n", "docs/b.mdx": "console.log(1);\n"})
    batch = run(CheckerConfig(cwd=tmp_path, jobs=2), compiler=CrashingCompiler())
    assert [r.status for r in batch.results] == ["error", "success"]
    (failure,) = batch.failures
    assert failure.error_kind == "compile"
    assert failure.message == "compiler driver crashed"
