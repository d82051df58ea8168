"""
Response Normalizer (raw export text → flat records).

Survey exports arrive as delimited text whose first header cell is the
quoted literal ``"id"``:

    "id","Q1","Q2[SQ001]"
    1,"Y","A1"
    2,"N",""

Steps:
    1. Decode bytes as UTF-8 and strip a leading byte-order mark
    2. Detect the delimiter from the character following ``"id"``
       (unless one is given)
    3. Parse with the csv module; quoted fields may hold the delimiter
       and embedded newlines
    4. Drop a trailing record whose ``id`` is missing or empty

Each record is a dict keyed by header column in header order.
"""

from __future__ import annotations

import csv
import logging
import sys
from io import StringIO
from pathlib import Path
from typing import Dict, List, Optional, Union

from limetab.errors import MalformedInputError

logger = logging.getLogger(__name__)

BOM = "\ufeff"
ID_HEADER = '"id"'
ID_COLUMN = "id"

# Free-text answers can exceed the csv module default of 131072 characters.
_FIELD_LIMIT = sys.maxsize
while True:
    try:
        csv.field_size_limit(_FIELD_LIMIT)
        break
    except OverflowError:
        _FIELD_LIMIT = int(_FIELD_LIMIT / 10)

FlatRecord = Dict[str, str]


def strip_bom(text: str) -> str:
    return text.lstrip(BOM)


def detect_delimiter(text: str) -> str:
    """
    Read the delimiter off the ``"id"`` header cell.

    Raises:
        MalformedInputError: If the text does not start with ``"id"``
                             followed by one more character
    """
    if not text.startswith(ID_HEADER) or len(text) <= len(ID_HEADER):
        raise MalformedInputError("could not detect delimiter")
    delimiter = text[len(ID_HEADER)]
    if delimiter in "\r\n":
        raise MalformedInputError("could not detect delimiter")
    return delimiter


def _parse_rows(text: str, delimiter: str) -> List[FlatRecord]:
    """Parse delimited text into header-keyed records."""
    try:
        reader = csv.DictReader(StringIO(text, newline=""), delimiter=delimiter, strict=True)
    except (TypeError, ValueError) as e:
        raise MalformedInputError(f"Unusable delimiter {delimiter!r}: {e}") from e

    try:
        if reader.fieldnames is None:
            raise MalformedInputError("export has no header row")

        # Check for duplicates
        header = reader.fieldnames
        if len(header) != len(set(header)):
            duplicates = [name for name in header if header.count(name) > 1]
            raise MalformedInputError(
                f"Duplicate header columns: {', '.join(dict.fromkeys(duplicates))}"
            )

        records = []
        for row_num, row in enumerate(reader, start=2):  # header is line 1
            if None in row:
                raise MalformedInputError(
                    f"Row {row_num} has more fields than the header ({len(reader.fieldnames)})"
                )
            records.append({k: ("" if v is None else v) for k, v in row.items()})
    except csv.Error as e:
        raise MalformedInputError(f"Could not parse export: {e}") from e

    return records


def normalize_export(raw: Union[str, bytes], delimiter: Optional[str] = None) -> List[FlatRecord]:
    """
    Turn a raw delimited export into a list of flat records.

    Args:
        raw: Export text (already decoded from any transport envelope),
             or its UTF-8 bytes
        delimiter: Field delimiter; auto-detected from the ``"id"`` header
                   when omitted

    Returns:
        Records in export order, keyed by header column

    Raises:
        MalformedInputError: If the delimiter cannot be detected or the
                             text is not valid delimited data. No partial
                             result is returned.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise MalformedInputError(f"Export is not valid UTF-8: {e}") from e

    text = strip_bom(raw)

    if delimiter is None:
        delimiter = detect_delimiter(text)
    elif len(delimiter) != 1:
        raise MalformedInputError(f"Delimiter must be a single character, got {delimiter!r}")

    records = _parse_rows(text, delimiter)

    if records and not records[-1].get(ID_COLUMN):
        # Trailing newline artifact.
        records.pop()

    logger.debug("Normalized export into %d records (delimiter %r)", len(records), delimiter)
    return records


def load_export(path: Union[str, Path], delimiter: Optional[str] = None) -> List[FlatRecord]:
    """
    Read an export file and normalize it.

    Raises:
        FileNotFoundError: If the file doesn't exist
        MalformedInputError: As for ``normalize_export``
    """
    content = Path(path).read_bytes()
    return normalize_export(content, delimiter=delimiter)


__all__ = [
    "FlatRecord",
    "normalize_export",
    "load_export",
    "detect_delimiter",
    "strip_bom",
]
