from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from mdx_checker.cli import build_parser

ROOT = Path(__file__).resolve().parents[1]
FAKE_COMPILER = ROOT / "tests" / "fixtures" / "fake_mdx_compiler.py"


def _run_cli(*args: str) -> subprocess.CompletedProcess[str]:
    env = {"PYTHONPATH": str(ROOT / "src"), "PATH": os.environ.get("PATH", "")}
    return subprocess.run(
        [sys.executable, "-m", "mdx_checker.cli", *args],
        cwd=ROOT,
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )


@pytest.fixture
def site(docs_root: Path) -> Path:
    config = {"compiler_command": [sys.executable, str(FAKE_COMPILER)], "jobs": 2}
    (docs_root / "mdx-checker.json").write_text(json.dumps(config), encoding="utf-8")
    return docs_root


def test_parser_flags() -> None:
    ns = build_parser().parse_args(["-r", "main..HEAD", "--include", "a/*.mdx", "--include", "b/*.md", "--no-globals"])
    assert ns.git_range == "main..HEAD"
    assert ns.include == ["a/*.mdx", "b/*.md"]
    assert ns.no_globals is True


def test_parser_rejects_conflicting_flags() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--git-range", "main..HEAD", "--all"])
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--no-globals", "--globals-list", "a"])


@pytest.mark.integration
def test_version() -> None:
    proc = _run_cli("--version")
    assert proc.returncode == 0
    assert proc.stdout.startswith("mdx-checker ")


@pytest.mark.integration
def test_all_files_pass(site: Path) -> None:
    proc = _run_cli("--cwd", str(site), "-q")
    assert proc.returncode == 0, proc.stderr
    assert proc.stdout == "[SUCCESS] All 2 relevant MDX files compiled successfully!\n"


@pytest.mark.integration
def test_unknown_global_fails_with_report(site: Path) -> None:
    (site / "docs" / "bad.mdx").write_text("# Bad\n\n{unsafeGlobal}\n", encoding="utf-8")
    proc = _run_cli("--cwd", str(site), "-q")
    assert proc.returncode == 1
    assert proc.stdout == ""
    assert proc.stderr.startswith("[ERROR] 1/3 relevant MDX files couldn't compile!\n---\n")
    assert "Error while compiling file docs/bad.mdx\n" in proc.stderr
    assert "Details: These MDX global variables do not seem to be available in scope: unsafeGlobal" in proc.stderr


@pytest.mark.integration
def test_globals_flags(site: Path) -> None:
    (site / "docs" / "bad.mdx").write_text("{unsafeGlobal} {console.log(1)}\n", encoding="utf-8")
    assert _run_cli("--cwd", str(site), "-q", "--no-globals").returncode == 0
    assert _run_cli("--cwd", str(site), "-q", "--globals-list", "unsafeGlobal", "--extend-globals").returncode == 0
    custom_only = _run_cli("--cwd", str(site), "-q", "--globals-list", "unsafeGlobal")
    assert custom_only.returncode == 1
    assert "scope: console\n" in custom_only.stderr


@pytest.mark.integration
def test_compile_error_shows_position(site: Path) -> None:
    (site / "docs" / "broken.mdx").write_text("# T\n<Broken>\n", encoding="utf-8")
    proc = _run_cli("--cwd", str(site), "-q")
    assert proc.returncode == 1
    assert "Error while compiling file docs/broken.mdx (Line=2 Column=1)\nDetails: Unexpected closing tag" in proc.stderr


@pytest.mark.integration
def test_json_output_and_out_file(site: Path, tmp_path: Path) -> None:
    (site / "docs" / "bad.mdx").write_text("{unsafeGlobal}\n", encoding="utf-8")
    out_file = tmp_path / "reports" / "mdx.json"
    proc = _run_cli("--cwd", str(site), "--json", "--run-id", "ci-7", "--out-file", str(out_file))
    assert proc.returncode == 1
    payload = json.loads(proc.stdout)
    assert payload["tool"] == "mdx-checker"
    assert payload["run_id"] == "ci-7"
    assert payload["status"] == "fail"
    assert (payload["total_count"], payload["failed_count"]) == (3, 1)
    bad = [row for row in payload["files"] if row["status"] == "error"]
    assert [(row["path"], row["error_kind"], row["unknown_globals"]) for row in bad] == [
        ("docs/bad.mdx", "unknown_globals", ["unsafeGlobal"])
    ]
    assert json.loads(out_file.read_text(encoding="utf-8")) == payload


@pytest.mark.integration
def test_log_json_lines_on_stderr(site: Path) -> None:
    proc = _run_cli("--cwd", str(site), "--log-json", "--run-id", "logs-1")
    assert proc.returncode == 0
    events = [json.loads(line) for line in proc.stderr.splitlines() if line.startswith("{")]
    assert {(e["component"], e["action"]) for e in events} >= {("discovery", "walk"), ("runner", "finish")}
    assert all(e["run_id"] == "logs-1" for e in events)


@pytest.mark.integration
def test_no_relevant_files_exits_3(site: Path) -> None:
    proc = _run_cli("--cwd", str(site), "-q", "--include", "**/*.rst")
    assert proc.returncode == 3
    assert f"No relevant MDX files found in {site.resolve()}" in proc.stderr


@pytest.mark.integration
def test_config_errors_exit_2(site: Path) -> None:
    assert _run_cli("--cwd", str(site), "-q", "--jobs", "0").returncode == 2
    assert _run_cli("--cwd", str(site), "-q", "--extend-globals").returncode == 2
    assert _run_cli("--cwd", str(site / "missing"), "-q").returncode == 2
    (site / "mdx-checker.json").write_text(json.dumps({"jobs": "many"}), encoding="utf-8")
    proc = _run_cli("--cwd", str(site), "-q", "--json")
    assert proc.returncode == 2
    error = json.loads(proc.stderr.strip().splitlines()[-1])
    assert error["status"] == "error"
    assert error["errors"][0]["kind"] == "config_error"
    assert "invalid config at jobs" in error["errors"][0]["message"]
