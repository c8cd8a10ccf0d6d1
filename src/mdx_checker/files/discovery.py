from __future__ import annotations

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from ..core.errors import ConfigError, DiscoveryError
from ..core.git import diff_names
from ..core.logging import log_event

if TYPE_CHECKING:
    from ..config.loader import CheckerConfig
    from ..core.context import RunContext

_BRACES = re.compile(r"\{([^{}]*,[^{}]*)\}")
_SKIP_DIRS = frozenset({".git", ".hg", ".svn"})


def expand_braces(pattern: str) -> list[str]:
    match = _BRACES.search(pattern)
    if match is None:
        return [pattern]
    out: list[str] = []
    for option in match.group(1).split(","):
        out.extend(expand_braces(pattern[: match.start()] + option + pattern[match.end() :]))
    return out


def _translate(pattern: str) -> str:
    parts: list[str] = []
    idx = 0
    size = len(pattern)
    while idx < size:
        if pattern.startswith("**/", idx):
            parts.append("(?:.*/)?")
            idx += 3
        elif pattern.startswith("/**", idx) and idx + 3 == size:
            parts.append("(?:/.*)?")
            idx += 3
        elif pattern.startswith("**", idx):
            parts.append(".*")
            idx += 2
        elif pattern[idx] == "*":
            parts.append("[^/]*")
            idx += 1
        elif pattern[idx] == "?":
            parts.append("[^/]")
            idx += 1
        elif pattern[idx] == "[":
            end = pattern.find("]", idx + 1)
            if end < 0:
                parts.append(re.escape("["))
                idx += 1
                continue
            body = pattern[idx + 1 : end]
            if body.startswith("!"):
                body = "^" + body[1:]
            parts.append(f"[{body}]")
            idx = end + 1
        else:
            parts.append(re.escape(pattern[idx]))
            idx += 1
    return "".join(parts)


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile("(?:" + "|".join(_translate(p) for p in expand_braces(pattern)) + r")\Z")
    except re.error as exc:
        raise ConfigError(f"invalid glob pattern `{pattern}`: {exc}") from exc


def matches(path: str, pattern: str) -> bool:
    """Glob match where ``**/`` spans zero or more directories and ``*`` stays within one."""
    rel = path.replace("\\", "/").removeprefix("./")
    return _compile(pattern.removeprefix("./")).match(rel) is not None


def filter_relevant(files: Iterable[str], include: Iterable[str], exclude: Iterable[str]) -> list[str]:
    include = tuple(include)
    exclude = tuple(exclude)
    return [
        f
        for f in files
        if any(matches(f, pat) for pat in include) and not any(matches(f, pat) for pat in exclude)
    ]


def all_files(cwd: Path, exclude: Iterable[str] = ()) -> list[str]:
    exclude = tuple(exclude)
    found: list[str] = []
    for root, dirs, names in os.walk(cwd):
        rel_root = Path(root).relative_to(cwd).as_posix()
        prefix = "" if rel_root == "." else f"{rel_root}/"
        dirs[:] = sorted(
            d for d in dirs if d not in _SKIP_DIRS and not any(matches(prefix + d, pat) for pat in exclude)
        )
        found.extend(prefix + name for name in names)
    return sorted(found)


def parse_git_range(raw: str) -> tuple[str, str | None]:
    text = raw.strip()
    if not text:
        raise ConfigError("git range cannot be empty")
    if ".." in text:
        sep = "..." if "..." in text else ".."
        sha1, sha2 = text.split(sep, 1)
        if not sha1 or not sha2:
            raise ConfigError(f"invalid git range `{raw}`: expected <sha1>..<sha2>")
        # git diff gives `a...b` merge-base semantics only as a single argument.
        return (text, None) if sep == "..." else (sha1, sha2)
    parts = text.split()
    if len(parts) == 2:
        return parts[0], parts[1]
    if len(parts) == 1:
        return parts[0], None
    raise ConfigError(f"invalid git range `{raw}`")


def discover(config: CheckerConfig, ctx: RunContext | None = None) -> list[str]:
    if config.git_range is not None:
        sha1, sha2 = config.git_range
        candidates = diff_names(config.cwd, sha1, sha2, ctx=ctx)
        log_event(ctx, "info", "discovery", "git-diff", range=config.source_label, modified=len(candidates))
    else:
        candidates = all_files(config.cwd, config.exclude)
        log_event(ctx, "info", "discovery", "walk", cwd=str(config.cwd), files=len(candidates))
    relevant = filter_relevant(candidates, config.include, config.exclude)
    if not relevant:
        if config.git_range is not None:
            raise DiscoveryError(f"No relevant modified MDX files found between {config.source_label}")
        raise DiscoveryError(f"No relevant MDX files found in {config.cwd}")
    log_event(ctx, "debug", "discovery", "relevant", files=relevant)
    return relevant
