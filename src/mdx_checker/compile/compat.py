"""Rewrites of legacy Markdown-isms that plain Markdown tolerates but MDX rejects."""

from __future__ import annotations

import re

_FENCE = re.compile(r"^ {0,3}(`{3,}|~{3,})")
_COMMENT_OR_CODE = re.compile(r"(`+)[^`]*?\1|<!--(.*?)-->", re.DOTALL)
_VOID_ELEMENT = re.compile(
    r"<(area|base|br|col|embed|hr|img|input|link|meta|source|track|wbr)\b([^<>]*?)(/?)>",
    re.IGNORECASE,
)


def _split_fences(text: str) -> list[tuple[bool, str]]:
    """Split ``text`` into (is_code, chunk) pieces along fenced code blocks."""
    chunks: list[tuple[bool, str]] = []
    buf: list[str] = []
    fence: str | None = None
    for line in text.splitlines(keepends=True):
        match = _FENCE.match(line)
        if fence is None and match:
            if buf:
                chunks.append((False, "".join(buf)))
            buf = [line]
            fence = match.group(1)
            continue
        buf.append(line)
        if fence is not None and match and match.group(1)[0] == fence[0] and len(match.group(1)) >= len(fence):
            if not line.strip().lstrip(fence[0]):
                chunks.append((True, "".join(buf)))
                buf = []
                fence = None
    if buf:
        chunks.append((fence is not None, "".join(buf)))
    return chunks


def _comment_to_expression(match: re.Match[str]) -> str:
    if match.group(1):
        return match.group(0)
    body = match.group(2).replace("*/", "* /")
    return "{/*" + body + "*/}"


def _close_void_element(match: re.Match[str]) -> str:
    tag, attrs, slash = match.group(1), match.group(2), match.group(3)
    if slash:
        return match.group(0)
    return f"<{tag}{attrs.rstrip()} />"


def _rewrite_prose(chunk: str) -> str:
    chunk = _COMMENT_OR_CODE.sub(_comment_to_expression, chunk)
    pieces = re.split(r"(`+[^`]*?`+)", chunk)
    return "".join(p if p.startswith("`") else _VOID_ELEMENT.sub(_close_void_element, p) for p in pieces)


def preprocess(text: str) -> str:
    return "".join(chunk if is_code else _rewrite_prose(chunk) for is_code, chunk in _split_fences(text))
