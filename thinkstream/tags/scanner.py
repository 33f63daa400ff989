"""Partial-match scanning for reasoning tags split across chunks."""

from __future__ import annotations


def find_potential_start(buffer: str, tag: str) -> int | None:
    """Locate the earliest full or still-ambiguous occurrence of ``tag``.

    A literal occurrence of ``tag`` anywhere in ``buffer`` wins and its
    first index is returned. Otherwise the longest suffix of ``buffer``
    that is also a prefix of ``tag`` is a candidate that the next chunk
    may complete, and its start index is returned.

    Args:
        buffer: Text not yet classified as reasoning or answer.
        tag: The delimiter being searched for.

    Returns:
        Start index of the match or candidate, or None when ``tag`` is
        empty or no suffix of ``buffer`` can begin ``tag``.
    """
    if not tag:
        return None

    direct = buffer.find(tag)
    if direct != -1:
        return direct

    # Only the last len(tag) - 1 characters can start an incomplete match
    start = max(0, len(buffer) - len(tag) + 1)
    for i in range(start, len(buffer)):
        if tag.startswith(buffer[i:]):
            return i
    return None
