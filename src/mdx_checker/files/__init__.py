"""Locating the MDX/Markdown files a run should compile."""

from .discovery import discover, filter_relevant, matches, parse_git_range

__all__ = ["discover", "filter_relevant", "matches", "parse_git_range"]
