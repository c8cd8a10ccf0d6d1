from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from .errors import DiscoveryError
from .process import run_command

if TYPE_CHECKING:
    from .context import RunContext


def diff_names(cwd: Path, sha1: str, sha2: str | None = None, ctx: RunContext | None = None) -> list[str]:
    cmd = ["git", "diff", "--name-only", "--relative", "--diff-filter=d", sha1]
    if sha2:
        cmd.append(sha2)
    res = run_command(cmd, cwd, ctx=ctx)
    if res.code != 0:
        raise DiscoveryError(f"git diff failed for range {sha1}..{sha2 or ''}: {res.combined_output}")
    return [line.strip() for line in res.stdout.splitlines() if line.strip()]


def read_head_sha(cwd: Path) -> str:
    res = run_command(["git", "rev-parse", "--short", "HEAD"], cwd)
    sha = res.stdout.strip() if res.code == 0 else ""
    return sha or "unknown"
