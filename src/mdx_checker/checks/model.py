from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

FileStatus = Literal["success", "error"]
ErrorKind = Literal["compile", "unknown_globals", "parse", "io"]


@dataclass(frozen=True)
class FileResult:
    relative_path: str
    status: FileStatus
    error_kind: ErrorKind | None = None
    message: str = ""
    line: int | None = None
    column: int | None = None
    unknown_globals: tuple[str, ...] = ()
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def to_row(self) -> dict[str, object]:
        return {
            "path": self.relative_path,
            "status": self.status,
            "error_kind": self.error_kind,
            "message": self.message,
            "line": self.line,
            "column": self.column,
            "unknown_globals": list(self.unknown_globals),
            "duration_ms": self.duration_ms,
        }


@dataclass(frozen=True)
class BatchResult:
    source: str
    results: tuple[FileResult, ...]

    @property
    def failures(self) -> tuple[FileResult, ...]:
        return tuple(r for r in self.results if not r.ok)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def total_count(self) -> int:
        return len(self.results)

    @property
    def failed_count(self) -> int:
        return len(self.failures)
