"""
Natural ordering for survey titles, answer codes and column names.

Comparison is case-insensitive and digit runs compare by numeric value,
so "Q2" sorts before "Q10" and "q1" sits beside "Q1".
"""

import re
from typing import Any, Callable, Iterable, List, Optional, Tuple

_DIGITS = re.compile(r"(\d+)")


def natural_key(value: Any) -> Tuple[tuple, str]:
    """
    Build a sort key for natural case-insensitive ordering.

    The text is split into alternating text and digit chunks. Text chunks
    compare case-folded, digit chunks compare as integers. The raw text is
    appended as a tiebreaker so that keys which only differ in case or in
    leading zeros still give a total order.

    Args:
        value: Anything; None sorts as the empty string, non-strings by str()

    Returns:
        A tuple usable as a ``sorted(key=...)`` result
    """
    text = "" if value is None else str(value)
    text = text.lstrip()
    parts: List[Any] = []
    for i, chunk in enumerate(_DIGITS.split(text)):
        # Odd positions always hold the digit runs.
        if i % 2:
            parts.append(int(chunk))
        else:
            parts.append(chunk.casefold())
    return tuple(parts), text


def natcasecmp(a: Any, b: Any) -> int:
    """Three-way natural comparison returning -1, 0 or 1."""
    ka, kb = natural_key(a), natural_key(b)
    if ka < kb:
        return -1
    if ka > kb:
        return 1
    return 0


def natural_sorted(items: Iterable[Any], key: Optional[Callable[[Any], Any]] = None) -> List[Any]:
    """Return ``items`` in natural order, optionally through a field getter."""
    if key is None:
        return sorted(items, key=natural_key)
    return sorted(items, key=lambda item: natural_key(key(item)))


__all__ = ["natural_key", "natcasecmp", "natural_sorted"]
