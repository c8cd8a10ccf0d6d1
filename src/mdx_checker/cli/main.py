from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .. import __version__
from ..checks.report import build_payload, render_text, validate_payload
from ..checks.runner import run
from ..config.loader import CheckerConfig, GlobalsPolicy, find_config_file, load_config_file
from ..core.context import RunContext
from ..core.env import getenv
from ..core.errors import ConfigError, ScriptError
from ..core.exit_codes import ERR_FAILED, ERR_INTERNAL, OK
from ..core.git import read_head_sha
from ..core.logging import log_event
from ..files.discovery import parse_git_range
from .output import dumps_json, render_error, resolve_output_format


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="mdx-checker",
        description="Check MDX files changed in a git range or all files if not specified",
    )
    p.add_argument("--version", action="version", version=f"mdx-checker {__version__}")
    p.add_argument("-c", "--cwd", help="the directory containing your MDX files")
    range_group = p.add_mutually_exclusive_group()
    range_group.add_argument("-r", "--git-range", help="git range to check modified files, e.g. main..HEAD")
    range_group.add_argument("--all", action="store_true", help="check every relevant file (default without --git-range)")
    p.add_argument("--include", action="append", metavar="GLOB", help="include glob; repeatable, replaces defaults")
    p.add_argument("--exclude", action="append", metavar="GLOB", help="exclude glob; repeatable, replaces defaults")
    p.add_argument("--format", dest="file_format", choices=["mdx", "md", "detect"], help="compiler input format")
    globals_group = p.add_mutually_exclusive_group()
    globals_group.add_argument(
        "-g", "--globals", action="store_true", help="report unknown globals against the built-in allow-list"
    )
    globals_group.add_argument("--globals-list", metavar="NAMES", help="comma separated allow-list of global names")
    globals_group.add_argument("--no-globals", action="store_true", help="skip the unknown globals check")
    p.add_argument("--extend-globals", action="store_true", help="merge --globals-list with the built-in allow-list")
    p.add_argument("--config", help="config file (yaml or json); defaults to mdx-checker.yaml in --cwd")
    p.add_argument("--jobs", type=int, help="number of files compiled concurrently")
    p.add_argument("--compile-timeout", type=int, dest="compile_timeout_seconds", help="per-file compiler timeout")
    p.add_argument("--output", choices=["text", "json"], default=None, help="output format")
    p.add_argument("--json", action="store_true", help="alias for --output json")
    p.add_argument("--out-file", help="also write the JSON report to this path")
    p.add_argument("--run-id", help="run identifier for logs and reports")
    p.add_argument("--log-json", action="store_true", help="emit structured logs as JSON lines")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("-v", "--verbose", action="store_true", help="enable verbose diagnostics")
    vg.add_argument("-q", "--quiet", action="store_true", help="only emit the final result")
    return p


def _globals_override(ns: argparse.Namespace) -> GlobalsPolicy | None:
    if ns.no_globals:
        return GlobalsPolicy.disabled()
    if ns.globals_list is not None:
        names = [n.strip() for n in ns.globals_list.split(",") if n.strip()]
        return GlobalsPolicy.custom(names, extend=ns.extend_globals)
    if ns.globals:
        return GlobalsPolicy.default()
    if ns.extend_globals:
        raise ConfigError("--extend-globals requires --globals-list")
    return None


def build_config(ctx: RunContext, ns: argparse.Namespace) -> CheckerConfig:
    if not ctx.cwd.is_dir():
        raise ConfigError(f"--cwd is not a directory: {ctx.cwd}")
    config_path = Path(ns.config) if ns.config else find_config_file(ctx.cwd)
    if config_path is not None and not config_path.is_absolute():
        config_path = ctx.cwd / config_path
    file_values = load_config_file(config_path) if config_path is not None else {}
    if config_path is not None:
        log_event(ctx, "debug", "config", "loaded", path=str(config_path), keys=sorted(file_values))
    return CheckerConfig.build(
        ctx.cwd,
        file_values,
        git_range=parse_git_range(ns.git_range) if ns.git_range else None,
        include=ns.include,
        exclude=ns.exclude,
        file_format=ns.file_format,
        globals_policy=_globals_override(ns),
        jobs=ns.jobs,
        compile_timeout_seconds=ns.compile_timeout_seconds,
    )


def main(argv: list[str] | None = None) -> int:
    ns = build_parser().parse_args(argv)
    fmt = resolve_output_format(cli_json=ns.json, cli_format=ns.output, env_format=getenv("MDX_CHECKER_OUTPUT"))
    ctx = RunContext.from_args(ns.run_id, ns.cwd, fmt, ns.verbose, ns.quiet, ns.log_json)  # type: ignore[arg-type]
    as_json = ctx.output_format == "json"
    try:
        config = build_config(ctx, ns)
        log_event(
            ctx,
            "debug",
            "cli",
            "start",
            cwd=str(config.cwd),
            source=config.source_label,
            globals_check=config.globals_policy.mode,
            jobs=config.jobs,
        )
        batch = run(config, ctx=ctx)
        if as_json or ns.out_file:
            payload = build_payload(batch, ctx, git_sha=read_head_sha(config.cwd))
            validate_payload(payload)
            if ns.out_file:
                out = Path(ns.out_file)
                out.parent.mkdir(parents=True, exist_ok=True)
                out.write_text(dumps_json(payload, pretty=True) + "\n", encoding="utf-8")
            if as_json:
                print(dumps_json(payload))
        if not as_json:
            print(render_text(batch), file=(sys.stdout if batch.ok else sys.stderr))
        return OK if batch.ok else ERR_FAILED
    except ScriptError as exc:
        print(render_error(as_json=as_json, message=str(exc), code=exc.code, kind=exc.kind, run_id=ctx.run_id), file=sys.stderr)
        return exc.code
    except Exception as exc:  # pragma: no cover
        print(
            render_error(as_json=as_json, message=f"internal error: {exc}", code=ERR_INTERNAL, run_id=ctx.run_id),
            file=sys.stderr,
        )
        return ERR_INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
