from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Literal

import jsonschema
import yaml

from ..core.errors import ConfigError
from .defaults import (
    DEFAULT_COMPILE_TIMEOUT_SECONDS,
    DEFAULT_COMPILER_COMMAND,
    DEFAULT_EXCLUDE,
    DEFAULT_FORMAT,
    DEFAULT_GLOBALS,
    DEFAULT_INCLUDE,
    DEFAULT_JOBS,
    DEFAULT_REHYPE_PLUGINS,
    DEFAULT_REMARK_PLUGINS,
)

SCHEMA_DIR = Path(__file__).resolve().parent / "schema"
CONFIG_SCHEMA = SCHEMA_DIR / "config.schema.json"
CONFIG_FILE_NAMES = ("mdx-checker.yaml", "mdx-checker.yml", "mdx-checker.json")

GlobalsMode = Literal["default", "custom", "disabled"]
FileFormat = Literal["mdx", "md", "detect"]
PluginSpec = Any


@dataclass(frozen=True)
class GlobalsPolicy:
    """Where the allow-list of safe globals comes from.

    ``default`` uses the built-in list, ``custom`` uses ``names`` (merged with the
    built-in list when ``extend`` is set) and ``disabled`` skips the check.
    """

    mode: GlobalsMode = "default"
    names: frozenset[str] = frozenset()
    extend: bool = False

    @classmethod
    def default(cls) -> "GlobalsPolicy":
        return cls("default")

    @classmethod
    def custom(cls, names: Iterable[str], extend: bool = False) -> "GlobalsPolicy":
        return cls("custom", frozenset(names), extend)

    @classmethod
    def disabled(cls) -> "GlobalsPolicy":
        return cls("disabled")

    @classmethod
    def from_value(cls, value: object, extend: bool = False) -> "GlobalsPolicy":
        if value is None or value is True or value == "default":
            return cls.default()
        if value is False or value == "disabled":
            return cls.disabled()
        if isinstance(value, (list, tuple, set, frozenset)):
            return cls.custom((str(v) for v in value), extend)
        raise ConfigError(f"invalid globals setting: {value!r}")

    @property
    def enabled(self) -> bool:
        return self.mode != "disabled"

    def allow_list(self) -> frozenset[str] | None:
        if self.mode == "disabled":
            return None
        if self.mode == "default":
            return DEFAULT_GLOBALS
        if self.extend:
            return DEFAULT_GLOBALS | self.names
        return self.names


@dataclass(frozen=True)
class CheckerConfig:
    cwd: Path
    git_range: tuple[str, str | None] | None = None
    include: tuple[str, ...] = DEFAULT_INCLUDE
    exclude: tuple[str, ...] = DEFAULT_EXCLUDE
    file_format: FileFormat = DEFAULT_FORMAT  # type: ignore[assignment]
    remark_plugins: tuple[PluginSpec, ...] = DEFAULT_REMARK_PLUGINS
    rehype_plugins: tuple[PluginSpec, ...] = DEFAULT_REHYPE_PLUGINS
    globals_policy: GlobalsPolicy = field(default_factory=GlobalsPolicy.default)
    jobs: int = DEFAULT_JOBS
    compiler_command: tuple[str, ...] = DEFAULT_COMPILER_COMMAND
    compile_timeout_seconds: int = DEFAULT_COMPILE_TIMEOUT_SECONDS

    @property
    def source_label(self) -> str:
        if self.git_range is None:
            return "all files"
        sha1, sha2 = self.git_range
        return f"{sha1}..{sha2}" if sha2 else sha1

    @classmethod
    def build(cls, cwd: Path, file_values: dict[str, Any] | None = None, **overrides: Any) -> "CheckerConfig":
        """Merge config file values with explicit overrides; ``None`` overrides are ignored."""
        values: dict[str, Any] = {}
        data = dict(file_values or {})
        if "include" in data:
            values["include"] = tuple(data["include"])
        if "exclude" in data:
            values["exclude"] = tuple(data["exclude"])
        if "format" in data:
            values["file_format"] = data["format"]
        if "globals" in data or "extend_default_globals" in data:
            values["globals_policy"] = GlobalsPolicy.from_value(
                data.get("globals"), bool(data.get("extend_default_globals", False))
            )
        if "remark_plugins" in data:
            values["remark_plugins"] = tuple(_plugin_spec(p) for p in data["remark_plugins"])
        if "rehype_plugins" in data:
            values["rehype_plugins"] = tuple(_plugin_spec(p) for p in data["rehype_plugins"])
        if "jobs" in data:
            values["jobs"] = int(data["jobs"])
        if "compiler_command" in data:
            values["compiler_command"] = tuple(data["compiler_command"])
        if "compile_timeout_seconds" in data:
            values["compile_timeout_seconds"] = int(data["compile_timeout_seconds"])
        for key, value in overrides.items():
            if value is None:
                continue
            if key not in cls.__dataclass_fields__:
                raise ConfigError(f"unknown configuration key `{key}`")
            if key in {"include", "exclude", "remark_plugins", "rehype_plugins", "compiler_command"}:
                value = tuple(value)
            values[key] = value
        if values.get("jobs", DEFAULT_JOBS) < 1:
            raise ConfigError("jobs must be >= 1")
        return cls(cwd=cwd, **values)


def _plugin_spec(raw: Any) -> PluginSpec:
    if isinstance(raw, list):
        return (str(raw[0]), dict(raw[1]))
    return str(raw)


def find_config_file(cwd: Path) -> Path | None:
    for name in CONFIG_FILE_NAMES:
        candidate = cwd / name
        if candidate.is_file():
            return candidate
    return None


def load_config_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"config file not found: {path}")
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"{path}: unable to parse config: {exc}") from exc
    if data is None:
        data = {}
    schema = json.loads(CONFIG_SCHEMA.read_text(encoding="utf-8"))
    try:
        jsonschema.validate(data, schema)
    except jsonschema.ValidationError as exc:
        where = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise ConfigError(f"{path}: invalid config at {where}: {exc.message}") from exc
    return data
