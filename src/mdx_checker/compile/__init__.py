"""Source preprocessing and the external MDX compiler capability."""

from .compat import preprocess
from .compiler import Compiler, NodeMdxCompiler, resolve_format

__all__ = ["Compiler", "NodeMdxCompiler", "preprocess", "resolve_format"]
