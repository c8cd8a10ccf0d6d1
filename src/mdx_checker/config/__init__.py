"""Checker configuration: built-in defaults, config file loading and the globals policy."""

from .defaults import DEFAULT_EXCLUDE, DEFAULT_GLOBALS, DEFAULT_INCLUDE
from .loader import CheckerConfig, GlobalsPolicy, load_config_file

__all__ = [
    "CheckerConfig",
    "DEFAULT_EXCLUDE",
    "DEFAULT_GLOBALS",
    "DEFAULT_INCLUDE",
    "GlobalsPolicy",
    "load_config_file",
]
