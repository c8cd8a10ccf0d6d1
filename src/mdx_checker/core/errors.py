from __future__ import annotations

from dataclasses import dataclass, field

from .exit_codes import ERR_CONFIG, ERR_DISCOVERY, ERR_FAILED


@dataclass
class ScriptError(Exception):
    message: str
    code: int
    kind: str = "generic_error"

    def __str__(self) -> str:
        return self.message


class ConfigError(ScriptError):
    def __init__(self, message: str) -> None:
        super().__init__(message, ERR_CONFIG, kind="config_error")


class DiscoveryError(ScriptError):
    def __init__(self, message: str) -> None:
        super().__init__(message, ERR_DISCOVERY, kind="discovery_error")


@dataclass
class MdxCompileError(ScriptError):
    code: int = ERR_FAILED
    kind: str = "compile_error"
    line: int | None = None
    column: int | None = None


@dataclass
class ParseError(ScriptError):
    """Compiled output could not be split into tokens for scope analysis."""

    code: int = ERR_FAILED
    kind: str = "parse_error"
    line: int | None = None
    column: int | None = None


@dataclass
class UnknownGlobalsError(ScriptError):
    code: int = ERR_FAILED
    kind: str = "unknown_globals"
    names: list[str] = field(default_factory=list)

    @classmethod
    def from_names(cls, names: list[str]) -> "UnknownGlobalsError":
        return cls(
            "These MDX global variables do not seem to be available in scope: " + " ".join(names),
            names=list(names),
        )
