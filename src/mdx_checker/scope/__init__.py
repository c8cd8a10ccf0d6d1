"""Free identifier analysis over compiled MDX output."""

from .checker import free_identifiers, get_unknown_globals
from .lexer import Token, tokenize

__all__ = ["Token", "free_identifiers", "get_unknown_globals", "tokenize"]
