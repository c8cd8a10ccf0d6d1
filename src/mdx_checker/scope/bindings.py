from __future__ import annotations

from dataclasses import dataclass, field

from .lexer import CLOSERS, OPENERS, Token

# A declarator initializer never runs past one of these.
_DECLARATION_KEYWORDS = frozenset({"const", "let", "var", "import", "export"})
# These end an initializer only when they open a new line after a complete value.
_STATEMENT_KEYWORDS = frozenset(
    {"break", "class", "continue", "do", "for", "function", "if", "return", "switch", "throw", "try", "while"}
)
_VALUE_END_KEYWORDS = frozenset({"false", "null", "super", "this", "true"})
_VALUE_END_PUNCT = frozenset({")", "]", "}", "++", "--"})
_CONTROL_KEYWORDS = frozenset({"if", "for", "while", "switch", "catch", "with", "function"})
_MEMBER_PREFIX = frozenset({"{", ";", "}", ",", "*", "get", "set", "async", "static"})
_CLASS_MEMBER_SUFFIX = frozenset({"=", ";", "(", "}"})


@dataclass
class UnitBindings:
    """Names bound anywhere in a compiled unit, plus token positions that are not usages."""

    names: set[str] = field(default_factory=set)
    declaration_sites: set[int] = field(default_factory=set)
    non_reference_sites: set[int] = field(default_factory=set)

    def bind(self, idx: int, tok: Token) -> None:
        self.names.add(tok.value)
        self.declaration_sites.add(idx)

    def is_usage_excluded(self, idx: int) -> bool:
        return idx in self.declaration_sites or idx in self.non_reference_sites


def match_brackets(tokens: list[Token]) -> dict[int, int]:
    pairs: dict[int, int] = {}
    stack: list[int] = []
    for idx, tok in enumerate(tokens):
        if tok.kind != "punct":
            continue
        if tok.value in OPENERS:
            stack.append(idx)
        elif tok.value in CLOSERS and stack:
            open_idx = stack.pop()
            pairs[open_idx] = idx
            pairs[idx] = open_idx
    return pairs


class _Collector:
    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.pairs = match_brackets(tokens)
        self.out = UnitBindings()

    def value(self, idx: int) -> str:
        if 0 <= idx < len(self.tokens):
            return self.tokens[idx].value
        return ""

    def is_punct(self, idx: int, value: str) -> bool:
        return 0 <= idx < len(self.tokens) and self.tokens[idx].kind == "punct" and self.tokens[idx].value == value

    def entries(self, open_idx: int) -> list[tuple[int, int]]:
        """Comma separated ranges directly inside the bracket group opened at ``open_idx``."""
        close_idx = self.pairs.get(open_idx, open_idx)
        ranges: list[tuple[int, int]] = []
        start = idx = open_idx + 1
        while idx < close_idx:
            if idx in self.pairs and self.tokens[idx].value in OPENERS:
                idx = self.pairs[idx] + 1
                continue
            if self.is_punct(idx, ","):
                ranges.append((start, idx))
                start = idx + 1
            idx += 1
        ranges.append((start, close_idx))
        return [(s, e) for s, e in ranges if s < e]

    def pattern(self, idx: int) -> int:
        """Bind every name introduced by the binding pattern at ``idx``; return the index after it."""
        tok = self.tokens[idx] if idx < len(self.tokens) else None
        if tok is None:
            return idx
        if tok.kind == "ident":
            self.out.bind(idx, tok)
            return idx + 1
        if tok.kind != "punct" or tok.value not in {"{", "["} or idx not in self.pairs:
            return idx + 1
        if tok.value == "{":
            for start, end in self.entries(idx):
                self.object_pattern_entry(start, end)
        else:
            for start, end in self.entries(idx):
                begin = start + 1 if self.is_punct(start, "...") else start
                if begin < end:
                    self.pattern(begin)
        return self.pairs[idx] + 1

    def object_pattern_entry(self, start: int, end: int) -> None:
        if self.is_punct(start, "..."):
            self.pattern(start + 1)
            return
        if self.is_punct(start, "["):
            close = self.pairs.get(start, start)
            if self.is_punct(close + 1, ":"):
                self.pattern(close + 2)
            return
        if self.is_punct(start + 1, ":"):
            self.out.non_reference_sites.add(start)
            self.pattern(start + 2)
            return
        if self.tokens[start].kind == "ident":
            self.out.bind(start, self.tokens[start])

    def params(self, open_idx: int) -> None:
        for start, end in self.entries(open_idx):
            begin = start + 1 if self.is_punct(start, "...") else start
            if begin < end:
                self.pattern(begin)

    def starts_statement(self, idx: int) -> bool:
        """A keyword on a new line right after a complete value begins the next statement."""
        if idx == 0:
            return True
        prev = self.tokens[idx - 1]
        if prev.line >= self.tokens[idx].line:
            return False
        if prev.kind == "punct":
            return prev.value in _VALUE_END_PUNCT
        if prev.kind == "keyword":
            return prev.value in _VALUE_END_KEYWORDS
        return True

    def skip_initializer(self, idx: int) -> int:
        while idx < len(self.tokens):
            tok = self.tokens[idx]
            if tok.kind == "punct":
                if tok.value in OPENERS and idx in self.pairs:
                    idx = self.pairs[idx] + 1
                    continue
                if tok.value in {",", ";"} or tok.value in CLOSERS:
                    return idx
            elif tok.kind == "keyword":
                if tok.value in _DECLARATION_KEYWORDS and not (tok.value == "import" and self.value(idx + 1) in {"(", "."}):
                    return idx
                if tok.value in _STATEMENT_KEYWORDS and self.starts_statement(idx):
                    return idx
            idx += 1
        return idx

    def declarators(self, idx: int) -> None:
        while idx < len(self.tokens):
            idx = self.pattern(idx)
            if self.is_punct(idx, "="):
                idx = self.skip_initializer(idx + 1)
            if not self.is_punct(idx, ","):
                return
            idx += 1

    def function(self, idx: int) -> None:
        nxt = idx + 1
        if self.is_punct(nxt, "*"):
            nxt += 1
        if nxt < len(self.tokens) and self.tokens[nxt].kind == "ident":
            self.out.bind(nxt, self.tokens[nxt])
            nxt += 1
        if self.is_punct(nxt, "("):
            self.params(nxt)

    def klass(self, idx: int) -> None:
        nxt = idx + 1
        if nxt < len(self.tokens) and self.tokens[nxt].kind == "ident":
            self.out.bind(nxt, self.tokens[nxt])
        body = nxt
        while body < len(self.tokens) and not self.is_punct(body, "{"):
            if body in self.pairs and self.tokens[body].value in OPENERS:
                body = self.pairs[body]
            body += 1
        if body in self.pairs:
            self.class_members(body)

    def class_members(self, open_idx: int) -> None:
        idx = open_idx + 1
        close_idx = self.pairs[open_idx]
        while idx < close_idx:
            tok = self.tokens[idx]
            if tok.kind == "punct" and tok.value in OPENERS and idx in self.pairs:
                idx = self.pairs[idx] + 1
                continue
            if (
                tok.kind == "ident"
                and (self.value(idx - 1) in _MEMBER_PREFIX or self.is_punct(idx - 1, "#"))
                and self.value(idx + 1) in _CLASS_MEMBER_SUFFIX
            ):
                self.out.non_reference_sites.add(idx)
            idx += 1

    def arrow(self, idx: int) -> None:
        prev = idx - 1
        if prev < 0:
            return
        tok = self.tokens[prev]
        if tok.kind == "ident":
            self.out.bind(prev, tok)
        elif self.is_punct(prev, ")") and prev in self.pairs:
            self.params(self.pairs[prev])

    def method(self, close_idx: int) -> None:
        """``name(params) {`` outside ``function``/control statements is a method definition."""
        open_idx = self.pairs.get(close_idx)
        if open_idx is None or open_idx == 0:
            return
        name = self.tokens[open_idx - 1]
        if name.kind not in {"ident", "keyword", "string", "number"} or name.value in _CONTROL_KEYWORDS:
            return
        if self.value(open_idx - 2) == "function" or (self.value(open_idx - 2) == "*" and self.value(open_idx - 3) == "function"):
            return
        if open_idx - 2 >= 0 and self.value(open_idx - 2) not in _MEMBER_PREFIX:
            return
        self.out.non_reference_sites.add(open_idx - 1)
        self.params(open_idx)

    def import_clause(self, idx: int) -> None:
        nxt = idx + 1
        if self.is_punct(nxt, "(") or self.is_punct(nxt, "."):
            return
        while nxt < len(self.tokens):
            tok = self.tokens[nxt]
            if tok.kind == "ident" and tok.value == "from":
                return
            if tok.kind == "string" or self.is_punct(nxt, ";"):
                return
            if tok.kind == "ident":
                self.out.bind(nxt, tok)
            elif self.is_punct(nxt, "*") and self.value(nxt + 1) == "as":
                nxt += 2
                if nxt < len(self.tokens):
                    self.out.bind(nxt, self.tokens[nxt])
            elif self.is_punct(nxt, "{") and nxt in self.pairs:
                for start, end in self.entries(nxt):
                    self.specifier(start, end, bind_local=True)
                nxt = self.pairs[nxt]
            nxt += 1

    def export_clause(self, idx: int) -> None:
        nxt = idx + 1
        if self.is_punct(nxt, "*"):
            if self.value(nxt + 1) == "as":
                self.out.non_reference_sites.add(nxt + 2)
            return
        if not self.is_punct(nxt, "{") or nxt not in self.pairs:
            return
        reexport = self.value(self.pairs[nxt] + 1) == "from"
        for start, end in self.entries(nxt):
            self.specifier(start, end, bind_local=False)
            if reexport:
                self.out.non_reference_sites.add(start)

    def specifier(self, start: int, end: int, bind_local: bool) -> None:
        """``name`` or ``name as alias`` inside an import/export brace list."""
        if end - start >= 3 and self.value(start + 1) == "as":
            alias = start + 2
            if bind_local:
                self.out.non_reference_sites.add(start)
                self.out.bind(alias, self.tokens[alias])
            else:
                self.out.non_reference_sites.add(alias)
            return
        if bind_local and self.tokens[start].kind == "ident":
            self.out.bind(start, self.tokens[start])

    def run(self) -> UnitBindings:
        for idx, tok in enumerate(self.tokens):
            if tok.kind == "keyword":
                if tok.value in {"var", "let", "const"}:
                    self.declarators(idx + 1)
                elif tok.value == "function":
                    self.function(idx)
                elif tok.value == "class":
                    self.klass(idx)
                elif tok.value == "catch" and self.is_punct(idx + 1, "("):
                    self.params(idx + 1)
                elif tok.value == "import":
                    self.import_clause(idx)
                elif tok.value == "export":
                    self.export_clause(idx)
            elif tok.kind == "punct":
                if tok.value == "=>":
                    self.arrow(idx)
                elif tok.value == ")" and self.is_punct(idx + 1, "{"):
                    self.method(idx)
        return self.out


def collect_bindings(tokens: list[Token]) -> UnitBindings:
    """Collect every name bound anywhere in the unit.

    Nested scopes are flattened into one table: a declaration in any inner
    function binds the name for the whole unit.
    """
    return _Collector(tokens).run()
