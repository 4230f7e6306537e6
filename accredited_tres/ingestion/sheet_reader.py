"""
Sheet reader for Accredited TREs.

Tokenizes raw comma-delimited sheet exports into rows, drops blank separator
rows, and locates the header row so the preamble above it can be skipped.
"""

import csv
import io
import logging
from typing import List, Optional, Tuple

from accredited_tres.errors import SheetParseError

logger = logging.getLogger(__name__)

Row = List[str]


def is_empty_row(row: Row) -> bool:
    """A row is empty when every cell is blank after trimming."""
    return all(not cell.strip() for cell in row)


def _open_quote_at_end(raw_text: str) -> Optional[int]:
    """
    Find a quoted field left open at the end of the text.

    Follows the lenient csv reader's quoting states: a quote opens a field
    only at the start of a cell, a doubled quote inside it is an escape, and
    a quote anywhere else is literal text.

    Returns:
        Offset of the opening quote, or None when every quoted field closes
    """
    in_quotes = False
    field_start = True
    opened_at = None
    position = 0
    length = len(raw_text)

    while position < length:
        char = raw_text[position]
        if in_quotes:
            if char == '"':
                if position + 1 < length and raw_text[position + 1] == '"':
                    position += 1
                else:
                    in_quotes = False
        elif char == '"' and field_start:
            in_quotes = True
            opened_at = position
            field_start = False
        elif char in ',\r\n':
            field_start = True
        else:
            field_start = False
        position += 1

    return opened_at if in_quotes else None


def tokenize_rows(raw_text: str, strict_quoting: bool = False) -> List[Row]:
    """
    Split raw sheet text into rows of cells, discarding empty rows.

    Quoted cells may contain commas and line breaks. Row positions in the
    returned list are the positions used for record ids downstream. A stray
    quote inside a cell is kept as text; only a quoted field still open at
    the end of the text is unrecoverable.

    Args:
        raw_text: Raw comma-delimited text
        strict_quoting: Also raise on stray quotes inside cells

    Returns:
        Non-empty rows in input order

    Raises:
        SheetParseError: If the text has syntax the tokenizer cannot recover from
    """
    if raw_text.startswith("\ufeff"):
        raw_text = raw_text[1:]

    opened_at = _open_quote_at_end(raw_text)
    if opened_at is not None:
        line = raw_text.count("\n", 0, opened_at) + 1
        raise SheetParseError(f"Malformed sheet near line {line}: quoted field is never closed")

    reader = csv.reader(io.StringIO(raw_text, newline=""), strict=strict_quoting)
    rows = []
    try:
        for row in reader:
            if not is_empty_row(row):
                rows.append(row)
    except csv.Error as e:
        raise SheetParseError(f"Malformed sheet near line {reader.line_num}: {e}") from e

    return rows


def locate_header(rows: List[Row], header_marker: str = "enterprise name") -> Optional[int]:
    """
    Find the header row.

    Args:
        rows: Tokenized rows
        header_marker: Case-insensitive text a header cell contains

    Returns:
        Index of the first row with a cell containing the marker, or None
    """
    marker = header_marker.lower()
    for index, row in enumerate(rows):
        if any(marker in cell.lower() for cell in row):
            return index
    return None


def data_row_start(rows: List[Row], header_marker: str = "enterprise name",
                   fallback_preamble_rows: int = 4) -> Tuple[int, bool]:
    """
    Work out where data rows begin.

    Rows up to and including the header row are preamble. Without a header
    the first ``fallback_preamble_rows`` rows are treated as preamble.

    Args:
        rows: Tokenized rows
        header_marker: Case-insensitive header cell text
        fallback_preamble_rows: Preamble length when no header is found

    Returns:
        Tuple of (index of first data row, degraded flag)
    """
    header_index = locate_header(rows, header_marker)
    if header_index is None:
        logger.warning(
            f"No header row containing '{header_marker}' found, "
            f"skipping first {fallback_preamble_rows} rows instead"
        )
        return fallback_preamble_rows, True

    return header_index + 1, False
