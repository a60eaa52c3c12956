"""Shared-prefix compression for bundle source paths."""

from __future__ import annotations

from collections.abc import Iterable

ELLIPSIS = "…"


def common_prefix(strings: Iterable[str]) -> str:
    """Return the longest string that is a prefix of every element."""
    strings = list(strings)
    if not strings:
        return ""

    # The lexicographic extremes bound the prefix shared by everything between them.
    max_word = max(strings)
    prefix = min(strings)
    while not max_word.startswith(prefix):
        prefix = prefix[:-1]
    return prefix


def trim_common_prefix(string: str, prefix: str) -> str:
    """Replace a leading ``prefix`` with an ellipsis."""
    if not prefix:
        return string
    if string.startswith(prefix):
        return ELLIPSIS + string[len(prefix):]
    return string
