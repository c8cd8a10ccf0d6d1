from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from ..core.errors import MdxCompileError
from ..core.process import run_command

if TYPE_CHECKING:
    from ..core.context import RunContext

DRIVER = Path(__file__).resolve().parent / "driver.mjs"


class Compiler(Protocol):
    def compile(
        self,
        source: str,
        *,
        file_format: str,
        remark_plugins: tuple[Any, ...] = (),
        rehype_plugins: tuple[Any, ...] = (),
    ) -> str:
        """Return compiled program text or raise ``MdxCompileError``."""
        ...


def resolve_format(path: str, file_format: str) -> str:
    if file_format == "detect":
        return "md" if path.endswith(".md") else "mdx"
    return file_format


def _plugin_payload(specs: tuple[Any, ...]) -> list[Any]:
    return [list(spec) if isinstance(spec, tuple) else spec for spec in specs]


def _position(raw: object) -> int | None:
    return raw if isinstance(raw, int) and not isinstance(raw, bool) else None


@dataclass(frozen=True)
class NodeMdxCompiler:
    """Runs ``@mdx-js/mdx`` from the checked project through a Node subprocess."""

    cwd: Path
    command: tuple[str, ...] = ("node",)
    timeout_seconds: int = 60
    ctx: RunContext | None = None

    def compile(
        self,
        source: str,
        *,
        file_format: str,
        remark_plugins: tuple[Any, ...] = (),
        rehype_plugins: tuple[Any, ...] = (),
    ) -> str:
        request = {
            "source": source,
            "format": file_format,
            "remarkPlugins": _plugin_payload(remark_plugins),
            "rehypePlugins": _plugin_payload(rehype_plugins),
        }
        cmd = [*self.command, "--input-type=module", "-e", DRIVER.read_text(encoding="utf-8")]
        res = run_command(cmd, self.cwd, input_text=json.dumps(request), timeout_seconds=self.timeout_seconds, ctx=self.ctx)
        if res.code != 0:
            raise MdxCompileError(f"MDX compiler exited with code {res.code}: {res.combined_output}")
        try:
            payload = json.loads(res.stdout)
        except json.JSONDecodeError as exc:
            raise MdxCompileError(f"MDX compiler returned invalid output: {res.combined_output[:500]}") from exc
        if not isinstance(payload, dict):
            raise MdxCompileError(f"MDX compiler returned invalid output: {res.combined_output[:500]}")
        if payload.get("ok"):
            return str(payload.get("value", ""))
        raise MdxCompileError(
            str(payload.get("message") or "unknown MDX compile error"),
            line=_position(payload.get("line")),
            column=_position(payload.get("column")),
        )
