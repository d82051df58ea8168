"""
Frequency Tabulator — value counts and percentages per export column.

For every record and every column:
    - the column's base name (text before any "[") must pass the
      AccessFilter
    - blank values are skipped unless ``ignore_blanks`` is off
    - the column's total and the value's count are incremented, keyed by
      the FULL column name, so "Q1[SQ1]" and "Q1" are tallied separately

Percentages are ``count / total * 100`` rounded half-up to two places,
independently per value. They are not adjusted to sum to exactly 100.

IMPORTANT: This is a read-only projection. Records are never modified, and
the returned tabulation and its entries are read-only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional

from limetab.access import AccessFilter
from limetab.config import TabulationOptions, options_from_dict
from limetab.natural import natural_key

logger = logging.getLogger(__name__)

_CENTS = Decimal("0.01")


def percent(count: int, total: int) -> float:
    """``count / total * 100`` rounded half-up to two decimal places."""
    if total <= 0:
        return 0.0
    value = Decimal(count) * 100 / Decimal(total)
    return float(value.quantize(_CENTS, rounding=ROUND_HALF_UP))


def base_column(name: str) -> str:
    """Column name without any bracketed sub-question part."""
    return name.split("[", 1)[0]


@dataclass(frozen=True)
class ValueTally:
    """Occurrences of one value within a column."""
    count: int = 0
    percent: float = 0.0


@dataclass(frozen=True)
class ColumnTally:
    """
    Tabulation entry for one column. Read-only once returned.

    Properties:
        count: Number of non-skipped values seen
        vals: Observed value → ValueTally, in first-seen order
    """
    count: int = 0
    vals: Mapping[str, ValueTally] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_counts(cls, counts: Mapping[str, int]) -> "ColumnTally":
        """Build the entry from {value: occurrences}, computing percentages."""
        total = sum(counts.values())
        vals = {value: ValueTally(n, percent(n, total)) for value, n in counts.items()}
        return cls(count=total, vals=MappingProxyType(vals))


Tabulation = Mapping[str, ColumnTally]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def tabulate(
    records: Iterable[Mapping[str, Any]],
    access: Optional[AccessFilter] = None,
    ignore_blanks: bool = True,
    sort: bool = False,
) -> Tabulation:
    """
    Count values per column across all records.

    Args:
        records: Normalized export rows (or structured rows)
        access: Filter applied to base column names; None allows all
        ignore_blanks: Skip values that are empty after stripping
        sort: Order columns naturally instead of first-seen order

    Returns:
        Read-only {column name: ColumnTally}
    """
    counts: Dict[str, Dict[str, int]] = {}
    allowed_cache: Dict[str, bool] = {}
    rows = 0

    for record in records:
        rows += 1
        for name, raw in record.items():
            value = _cell(raw)
            if ignore_blanks and value.strip() == "":
                continue

            base = base_column(name)
            allowed = allowed_cache.get(base)
            if allowed is None:
                allowed = access is None or access.is_allowed(base)
                allowed_cache[base] = allowed
            if not allowed:
                continue

            column = counts.setdefault(name, {})
            column[value] = column.get(value, 0) + 1

    names = sorted(counts, key=natural_key) if sort else list(counts)
    result = MappingProxyType({name: ColumnTally.from_counts(counts[name]) for name in names})

    logger.debug("Tabulated %d records into %d columns", rows, len(result))
    return result


def tabulate_responses(
    records: Iterable[Mapping[str, Any]],
    options: Optional[Mapping[str, Any]] = None,
) -> Tabulation:
    """
    ``tabulate`` driven by an option mapping or TabulationOptions.

    Raises:
        ConfigurationError: On invalid options or access patterns
    """
    if not isinstance(options, TabulationOptions):
        options = options_from_dict(options)
    return tabulate(
        records,
        access=options.access_filter(),
        ignore_blanks=options.ignore_blanks,
        sort=options.sort,
    )


__all__ = [
    "ValueTally",
    "ColumnTally",
    "Tabulation",
    "percent",
    "base_column",
    "tabulate",
    "tabulate_responses",
]
