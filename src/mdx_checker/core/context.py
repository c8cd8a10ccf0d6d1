from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from .clock import utc_stamp
from .env import getenv

OutputFormat = Literal["text", "json"]


@dataclass(frozen=True)
class RunContext:
    run_id: str
    cwd: Path
    output_format: OutputFormat
    verbose: bool
    quiet: bool
    log_json: bool

    @classmethod
    def from_args(
        cls,
        run_id: str | None,
        cwd: str | None,
        output_format: OutputFormat = "text",
        verbose: bool = False,
        quiet: bool = False,
        log_json: bool = False,
    ) -> "RunContext":
        resolved_cwd = Path(cwd).resolve() if cwd else Path.cwd().resolve()
        resolved_run_id = run_id or getenv("MDX_CHECKER_RUN_ID") or f"mdx-checker-{utc_stamp()}"
        return cls(
            run_id=resolved_run_id,
            cwd=resolved_cwd,
            output_format=output_format,
            verbose=verbose,
            quiet=quiet,
            log_json=log_json,
        )
