from __future__ import annotations

from typing import Iterable

from .bindings import UnitBindings, collect_bindings
from .lexer import CONTEXTUAL_KEYWORDS, Token, tokenize

_PROPERTY_PREFIX = frozenset({".", "?.", "#"})
_KEY_PREFIX = frozenset({"{", ","})
_LABEL_PREFIX = frozenset({";", "}"})


def _is_usage(tokens: list[Token], idx: int, bindings: UnitBindings) -> bool:
    tok = tokens[idx]
    if tok.value in CONTEXTUAL_KEYWORDS or bindings.is_usage_excluded(idx):
        return False
    prev = tokens[idx - 1] if idx > 0 else None
    nxt = tokens[idx + 1] if idx + 1 < len(tokens) else None
    if prev is not None and prev.kind == "punct" and prev.value in _PROPERTY_PREFIX:
        return False
    if prev is not None and prev.kind == "keyword" and prev.value in {"break", "continue"}:
        return False
    if nxt is not None and nxt.kind == "punct" and nxt.value == ":":
        if prev is None or (prev.kind == "punct" and prev.value in _KEY_PREFIX | _LABEL_PREFIX):
            return False
    return True


def free_identifiers(code: str) -> list[str]:
    """Names referenced in ``code`` but bound nowhere in it, in order of first use."""
    tokens = tokenize(code)
    bindings = collect_bindings(tokens)
    seen: dict[str, None] = {}
    for idx, tok in enumerate(tokens):
        if tok.kind != "ident" or tok.value in bindings.names or tok.value in seen:
            continue
        if _is_usage(tokens, idx, bindings):
            seen[tok.value] = None
    return list(seen)


def get_unknown_globals(code: str, allow_list: Iterable[str]) -> list[str]:
    """Free identifiers of a compiled unit that are not in ``allow_list``.

    Raises ``ParseError`` when ``code`` cannot be tokenized.
    """
    allowed = frozenset(allow_list)
    return [name for name in free_identifiers(code) if name not in allowed]
