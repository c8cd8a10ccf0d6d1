from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Iterable

from ..compile.compat import preprocess
from ..compile.compiler import Compiler, NodeMdxCompiler, resolve_format
from ..core.errors import MdxCompileError, ParseError, ScriptError, UnknownGlobalsError
from ..core.logging import log_event
from ..files.discovery import discover
from ..scope.checker import get_unknown_globals
from .model import BatchResult, FileResult

if TYPE_CHECKING:
    from ..config.loader import CheckerConfig
    from ..core.context import RunContext


def process_file(
    relative_path: str,
    config: CheckerConfig,
    compiler: Compiler,
    allow_list: frozenset[str] | None,
    ctx: RunContext | None = None,
) -> FileResult:
    """Compile one file and check its globals; per-file failures become error results."""
    start = time.perf_counter()

    def _done(**fields: object) -> FileResult:
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        result = FileResult(relative_path=relative_path, duration_ms=elapsed_ms, **fields)  # type: ignore[arg-type]
        log_event(ctx, "debug", "runner", "file", path=relative_path, status=result.status, duration_ms=elapsed_ms)
        return result

    file_format = resolve_format(relative_path, config.file_format)
    try:
        text = (config.cwd / relative_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        return _done(status="error", error_kind="io", message=f"unable to read file: {exc}")
    source = preprocess(text) if file_format == "mdx" else text
    try:
        compiled = compiler.compile(
            source,
            file_format=file_format,
            remark_plugins=config.remark_plugins,
            rehype_plugins=config.rehype_plugins,
        )
        if allow_list is not None:
            unknown = get_unknown_globals(compiled, allow_list)
            if unknown:
                raise UnknownGlobalsError.from_names(unknown)
    except MdxCompileError as exc:
        return _done(status="error", error_kind="compile", message=exc.message, line=exc.line, column=exc.column)
    except ParseError as exc:
        return _done(
            status="error",
            error_kind="parse",
            message=f"unable to analyse compiled output: {exc.message}",
            line=exc.line,
            column=exc.column,
        )
    except UnknownGlobalsError as exc:
        return _done(status="error", error_kind="unknown_globals", message=exc.message, unknown_globals=tuple(exc.names))
    except ScriptError as exc:
        return _done(status="error", error_kind="compile", message=exc.message)
    return _done(status="success")


def aggregate(source: str, results: Iterable[FileResult]) -> BatchResult:
    return BatchResult(source=source, results=tuple(results))


def run_files(
    files: list[str],
    config: CheckerConfig,
    compiler: Compiler,
    ctx: RunContext | None = None,
) -> BatchResult:
    allow_list = config.globals_policy.allow_list()

    def _run_one(path: str) -> FileResult:
        return process_file(path, config, compiler, allow_list, ctx)

    if config.jobs > 1 and len(files) > 1:
        with ThreadPoolExecutor(max_workers=min(config.jobs, len(files))) as ex:
            results = list(ex.map(_run_one, files))
    else:
        results = [_run_one(path) for path in files]
    batch = aggregate(config.source_label, results)
    log_event(
        ctx,
        "info",
        "runner",
        "finish",
        total=batch.total_count,
        failed=batch.failed_count,
        globals_check=config.globals_policy.mode,
    )
    return batch


def run(config: CheckerConfig, compiler: Compiler | None = None, ctx: RunContext | None = None) -> BatchResult:
    files = discover(config, ctx)
    if compiler is None:
        compiler = NodeMdxCompiler(
            cwd=config.cwd,
            command=config.compiler_command,
            timeout_seconds=config.compile_timeout_seconds,
            ctx=ctx,
        )
    return run_files(files, config, compiler, ctx)
