from __future__ import annotations

DEFAULT_INCLUDE: tuple[str, ...] = ("**/*.{md,mdx}",)

DEFAULT_EXCLUDE: tuple[str, ...] = (
    "**/node_modules/**",
    "**/build/**",
    "**/.docusaurus/**",
)

DEFAULT_REMARK_PLUGINS: tuple[str, ...] = ()
DEFAULT_REHYPE_PLUGINS: tuple[str, ...] = ()

DEFAULT_FORMAT = "mdx"
DEFAULT_JOBS = 8
DEFAULT_COMPILER_COMMAND: tuple[str, ...] = ("node",)
DEFAULT_COMPILE_TIMEOUT_SECONDS = 60

# Language intrinsics and host objects reachable from compiled MDX.
_RUNTIME_GLOBALS = (
    "Array",
    "ArrayBuffer",
    "BigInt",
    "Boolean",
    "DataView",
    "Date",
    "Error",
    "EvalError",
    "Function",
    "Infinity",
    "Intl",
    "JSON",
    "Map",
    "Math",
    "NaN",
    "Number",
    "Object",
    "Promise",
    "Proxy",
    "RangeError",
    "ReferenceError",
    "Reflect",
    "RegExp",
    "Set",
    "String",
    "Symbol",
    "SyntaxError",
    "TypeError",
    "URIError",
    "URL",
    "URLSearchParams",
    "WeakMap",
    "WeakSet",
    "arguments",
    "clearInterval",
    "clearTimeout",
    "console",
    "decodeURI",
    "decodeURIComponent",
    "document",
    "encodeURI",
    "encodeURIComponent",
    "eval",
    "fetch",
    "globalThis",
    "isFinite",
    "isNaN",
    "localStorage",
    "navigator",
    "parseFloat",
    "parseInt",
    "process",
    "require",
    "setInterval",
    "setTimeout",
    "undefined",
    "window",
)

# Values a docs site injects into every MDX document.
_MDX_CONTEXT_GLOBALS = (
    "props",
    "frontMatter",
    "metadata",
    "contentTitle",
    "toc",
    "assets",
)

DEFAULT_GLOBALS: frozenset[str] = frozenset((*_RUNTIME_GLOBALS, *_MDX_CONTEXT_GLOBALS))
