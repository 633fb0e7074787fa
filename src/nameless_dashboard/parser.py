"""Delimited-text parser for the spreadsheet CSV export.

Best-effort on purpose: quoted spans protect the delimiter, one pair of
surrounding quotes is stripped from a cell, and nothing else is
unescaped. Malformed quoting never raises.
"""

from __future__ import annotations

DEFAULT_DELIMITER = ","
QUOTE = '"'


def split_lines(text: str) -> list[str]:
    """Split *text* on ``\\n``, dropping a trailing ``\\r`` from each line."""
    return [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]


def _unquote(cell: str) -> str:
    if len(cell) >= 2 and cell.startswith(QUOTE) and cell.endswith(QUOTE):
        return cell[1:-1]
    return cell


def split_cells(line: str, delimiter: str = DEFAULT_DELIMITER) -> list[str]:
    """Split one line into cells, honouring double-quoted spans.

    An empty line yields ``[]``; empty cells at the start, middle or end of
    a non-empty line are kept as ``""``.
    """
    if not line:
        return []

    cells: list[str] = []
    buf: list[str] = []
    in_quotes = False
    for ch in line:
        if ch == QUOTE and (in_quotes or not buf):
            # Only a quote at the start of a cell opens a span.
            in_quotes = not in_quotes
            buf.append(ch)
        elif ch == delimiter and not in_quotes:
            cells.append(_unquote("".join(buf)))
            buf = []
        else:
            buf.append(ch)
    cells.append(_unquote("".join(buf)))
    return cells


def parse_rows(text: str, delimiter: str = DEFAULT_DELIMITER) -> list[list[str]]:
    """Parse raw CSV *text* into rows of cell strings."""
    return [split_cells(line, delimiter) for line in split_lines(text)]
