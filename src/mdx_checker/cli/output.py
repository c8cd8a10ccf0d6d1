"""CLI payload output helpers."""

from __future__ import annotations

import json


def dumps_json(payload: dict[str, object], pretty: bool = False) -> str:
    if pretty:
        return json.dumps(payload, indent=2, sort_keys=True)
    return json.dumps(payload, sort_keys=True)


def resolve_output_format(*, cli_json: bool, cli_format: str | None, env_format: str | None = None) -> str:
    if cli_json:
        return "json"
    if cli_format:
        return cli_format
    return env_format if env_format in {"text", "json"} else "text"


def render_error(*, as_json: bool, message: str, code: int, kind: str = "generic_error", run_id: str = "") -> str:
    if as_json:
        return dumps_json(
            {
                "schema_version": 1,
                "tool": "mdx-checker",
                "status": "error",
                "run_id": run_id,
                "errors": [{"code": code, "kind": kind, "message": message}],
            }
        )
    return message
