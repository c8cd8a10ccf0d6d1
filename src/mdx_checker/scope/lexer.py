"""Tokenizer for the JavaScript emitted by the MDX compiler.

Only what free-identifier analysis needs is modelled: identifiers, keywords,
punctuators and opaque literals. Template literal substitutions are tokenized
as code so identifiers used inside ``${...}`` are still seen.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..core.errors import ParseError

KEYWORDS = frozenset(
    {
        "break",
        "case",
        "catch",
        "class",
        "const",
        "continue",
        "debugger",
        "default",
        "delete",
        "do",
        "else",
        "enum",
        "export",
        "extends",
        "false",
        "finally",
        "for",
        "function",
        "if",
        "import",
        "in",
        "instanceof",
        "let",
        "new",
        "null",
        "return",
        "super",
        "switch",
        "this",
        "throw",
        "true",
        "try",
        "typeof",
        "var",
        "void",
        "while",
        "with",
    }
)

# Only keywords in some positions; never reported as references.
CONTEXTUAL_KEYWORDS = frozenset({"as", "async", "await", "from", "get", "of", "set", "static", "yield"})

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {v: k for k, v in OPENERS.items()}

_IDENT_START = re.compile(r"[^\W\d]|[$_]|\\u", re.UNICODE)
_IDENT = re.compile(r"(?:[\w$\u200c\u200d]|\\u\{[0-9a-fA-F]+\}|\\u[0-9a-fA-F]{4})+", re.UNICODE)
_NUMBER = re.compile(
    r"0[xX][0-9a-fA-F_]+n?|0[oO][0-7_]+n?|0[bB][01_]+n?|(?:\d[\d_]*\.?[\d_]*|\.\d[\d_]*)(?:[eE][+-]?\d+)?n?"
)
_PUNCTUATORS = sorted(
    [
        ">>>=", "...", "===", "!==", "**=", "<<=", ">>=", ">>>", "&&=", "||=", "??=",
        "=>", "==", "!=", "<=", ">=", "&&", "||", "??", "?.", "++", "--", "+=", "-=", "*=", "/=", "%=",
        "&=", "|=", "^=", "<<", ">>", "**",
        "{", "}", "(", ")", "[", "]", ";", ",", "<", ">", "+", "-", "*", "/", "%", "&", "|", "^",
        "!", "~", "?", ":", "=", ".", "@", "#",
    ],
    key=len,
    reverse=True,
)
_LINE_TERMINATORS = "\n\r\u2028\u2029"

# Keywords after which a `/` starts a regular expression rather than a division.
_REGEX_AFTER_KEYWORDS = frozenset(
    {"return", "typeof", "instanceof", "in", "of", "new", "delete", "void", "throw", "case", "do", "else", "yield", "await"}
)
# After the `)` closing the head of one of these, a `/` starts a regular expression.
_CONTROL_HEADS = frozenset({"if", "while", "for", "with"})


@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    start: int
    line: int
    column: int


class _Lexer:
    def __init__(self, code: str) -> None:
        self.code = code
        self.pos = 0
        self.line = 1
        self.line_start = 0
        self.tok_line = 1
        self.tok_column = 1
        self.tokens: list[Token] = []
        # One entry per open bracket; "${" marks a template substitution.
        self.stack: list[tuple[str, int]] = []
        # `(` positions heading an if/while/for/with, and token indexes of their `)`.
        self.control_opens: set[int] = set()
        self.control_closes: set[int] = set()

    def error(self, message: str, pos: int | None = None) -> ParseError:
        at = self.pos if pos is None else pos
        line = self.code.count("\n", 0, at) + 1
        column = at - (self.code.rfind("\n", 0, at) + 1) + 1
        return ParseError(f"{message} at line {line}, column {column}", line=line, column=column)

    def emit(self, kind: str, start: int) -> None:
        self.tokens.append(Token(kind, self.code[start : self.pos], start, self.tok_line, self.tok_column))

    def advance_to(self, end: int) -> None:
        chunk = self.code[self.pos : end]
        breaks = chunk.count("\n")
        if breaks:
            self.line += breaks
            self.line_start = self.pos + chunk.rfind("\n") + 1
        self.pos = end

    def regex_allowed(self) -> bool:
        if not self.tokens:
            return True
        prev = self.tokens[-1]
        if prev.kind in {"ident", "number", "string", "template", "regex"}:
            return False
        if prev.kind == "keyword":
            return prev.value in _REGEX_AFTER_KEYWORDS
        if prev.value == ")":
            return len(self.tokens) - 1 in self.control_closes
        return prev.value not in {"]", "}", "++", "--"}

    def run(self) -> list[Token]:
        code = self.code
        size = len(code)
        while self.pos < size:
            ch = code[self.pos]
            self.tok_line, self.tok_column = self.line, self.pos - self.line_start + 1
            if ch.isspace() or ch == "\ufeff":
                self.advance_to(self.pos + 1)
                continue
            if code.startswith("//", self.pos):
                end = self.pos + 2
                while end < size and code[end] not in _LINE_TERMINATORS:
                    end += 1
                self.advance_to(end)
                continue
            if code.startswith("/*", self.pos):
                end = code.find("*/", self.pos + 2)
                if end < 0:
                    raise self.error("unterminated comment")
                self.advance_to(end + 2)
                continue
            if ch in "'\"":
                self.read_string(ch)
                continue
            if ch == "`":
                self.read_template(self.pos)
                continue
            if ch == "}" and self.stack and self.stack[-1][0] == "${":
                self.stack.pop()
                self.read_template(self.pos)
                continue
            if ch == "/" and self.regex_allowed():
                self.read_regex()
                continue
            if ch.isdigit() or (ch == "." and self.pos + 1 < size and code[self.pos + 1].isdigit()):
                match = _NUMBER.match(code, self.pos)
                start = self.pos
                self.advance_to(match.end() if match else self.pos + 1)
                self.emit("number", start)
                continue
            if _IDENT_START.match(code, self.pos):
                match = _IDENT.match(code, self.pos)
                if match is None:
                    raise self.error("invalid identifier escape")
                start = self.pos
                self.advance_to(match.end())
                word = code[start : self.pos]
                self.emit("keyword" if word in KEYWORDS else "ident", start)
                continue
            self.read_punctuator()
        if self.stack:
            opener, at = self.stack[-1]
            raise self.error(f"unclosed `{opener}`", at)
        return self.tokens

    def read_string(self, quote: str) -> None:
        start = self.pos
        end = self.pos + 1
        size = len(self.code)
        while end < size:
            ch = self.code[end]
            if ch == "\\":
                end += 2
                continue
            if ch == quote:
                self.advance_to(end + 1)
                self.emit("string", start)
                return
            if ch in "\n\r":
                break
            end += 1
        raise self.error("unterminated string literal", start)

    def read_template(self, start: int) -> None:
        # `start` sits on the backtick or on the `}` closing a substitution.
        end = start + 1
        size = len(self.code)
        while end < size:
            ch = self.code[end]
            if ch == "\\":
                end += 2
                continue
            if ch == "`":
                self.advance_to(end + 1)
                self.emit("template", start)
                return
            if ch == "$" and self.code.startswith("${", end):
                self.advance_to(end + 2)
                self.emit("template", start)
                self.stack.append(("${", end))
                return
            end += 1
        raise self.error("unterminated template literal", start)

    def read_regex(self) -> None:
        start = self.pos
        end = self.pos + 1
        size = len(self.code)
        in_class = False
        while end < size:
            ch = self.code[end]
            if ch == "\\":
                end += 2
                continue
            if ch in _LINE_TERMINATORS:
                break
            if ch == "[":
                in_class = True
            elif ch == "]":
                in_class = False
            elif ch == "/" and not in_class:
                end += 1
                while end < size and (self.code[end].isalnum() or self.code[end] in "$_"):
                    end += 1
                self.advance_to(end)
                self.emit("regex", start)
                return
            end += 1
        raise self.error("unterminated regular expression", start)

    def read_punctuator(self) -> None:
        start = self.pos
        for punct in _PUNCTUATORS:
            if self.code.startswith(punct, start):
                break
        else:
            raise self.error(f"unexpected character {self.code[start]!r}")
        if punct == "?." and start + 2 < len(self.code) and self.code[start + 2].isdigit():
            punct = "?"
        self.advance_to(start + len(punct))
        self.emit("punct", start)
        if punct in OPENERS:
            if punct == "(" and len(self.tokens) > 1:
                before = self.tokens[-2]
                if before.kind == "keyword" and before.value in _CONTROL_HEADS:
                    self.control_opens.add(start)
            self.stack.append((punct, start))
        elif punct in CLOSERS:
            if not self.stack or self.stack[-1][0] != CLOSERS[punct]:
                raise self.error(f"unbalanced `{punct}`", start)
            _, opened_at = self.stack.pop()
            if opened_at in self.control_opens:
                self.control_closes.add(len(self.tokens) - 1)


def tokenize(code: str) -> list[Token]:
    """Split compiled JavaScript into tokens, raising ``ParseError`` on malformed input."""
    return _Lexer(code).run()
