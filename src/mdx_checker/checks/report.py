from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import jsonschema

from .model import BatchResult, FileResult

if TYPE_CHECKING:
    from ..core.context import RunContext

SUCCESS_PREFIX = "[SUCCESS]"
ERROR_PREFIX = "[ERROR]"
SEPARATOR = "\n---\n"
REPORT_SCHEMA = Path(__file__).resolve().parents[1] / "config" / "schema" / "report.schema.json"


def format_line_column(line: int | None, column: int | None) -> str:
    parts: list[str] = []
    if line:
        parts.append(f"Line={line}")
    if column:
        parts.append(f"Column={column}")
    return f" ({' '.join(parts)})" if parts else ""


def format_file_error(result: FileResult) -> str:
    return (
        f"Error while compiling file {result.relative_path}{format_line_column(result.line, result.column)}\n"
        f"Details: {result.message}"
    )


def _noun(batch: BatchResult) -> str:
    return "relevant MDX files" if batch.source == "all files" else "relevant modified MDX files"


def render_text(batch: BatchResult) -> str:
    if batch.ok:
        return f"{SUCCESS_PREFIX} All {batch.total_count} {_noun(batch)} compiled successfully!"
    blocks = SEPARATOR.join(format_file_error(r) for r in batch.failures)
    return (
        f"{ERROR_PREFIX} {batch.failed_count}/{batch.total_count} {_noun(batch)} couldn't compile!"
        f"{SEPARATOR}{blocks}{SEPARATOR}"
    )


def build_payload(batch: BatchResult, ctx: RunContext, git_sha: str | None = None) -> dict[str, object]:
    payload: dict[str, object] = {
        "schema_version": 1,
        "tool": "mdx-checker",
        "kind": "mdx-compile-report",
        "status": "pass" if batch.ok else "fail",
        "run_id": ctx.run_id,
        "source": batch.source,
        "total_count": batch.total_count,
        "failed_count": batch.failed_count,
        "files": [r.to_row() for r in batch.results],
    }
    if git_sha:
        payload["git_sha"] = git_sha
    return payload


def validate_payload(payload: dict[str, object]) -> None:
    schema = json.loads(REPORT_SCHEMA.read_text(encoding="utf-8"))
    jsonschema.validate(payload, schema)
