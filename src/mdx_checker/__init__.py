__version__ = "0.1.0"

__all__ = [
    "__version__",
    "checks",
    "cli",
    "compile",
    "config",
    "core",
    "files",
    "scope",
]
