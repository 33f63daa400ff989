"""Reasoning tag lookup and partial-match scanning."""

from thinkstream.tags.dictionary import BUILTIN_DIALECTS, THINK_TAGS, TagDictionary
from thinkstream.tags.scanner import find_potential_start

__all__ = [
    "BUILTIN_DIALECTS",
    "THINK_TAGS",
    "TagDictionary",
    "find_potential_start",
]
