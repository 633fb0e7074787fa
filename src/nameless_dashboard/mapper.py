"""Record mapping: raw rows to normalized records."""

from __future__ import annotations

import logging
import math
import re
import unicodedata
from collections.abc import Mapping, Sequence

from nameless_dashboard import UNKNOWN_MEMBER
from nameless_dashboard.headers import (
    MEETING_FIELDS,
    NOT_FOUND,
    SPEAKER_FIELDS,
    Field,
    missing_fields,
    resolve_columns,
)
from nameless_dashboard.models import MeetingRecord, SpeakerProfile

logger = logging.getLogger(__name__)

Columns = Mapping[Field, int]

# ── Numeric coercion ─────────────────────────────────────────────


_INT_PREFIX_RE = re.compile(r"^\s*([+-]?\d+)")
_FLOAT_PREFIX_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def parse_int(value: str | None) -> int:
    """Forgiving base-10 parse of the leading digits; ``0`` when there are none."""
    if value is None:
        return 0
    match = _INT_PREFIX_RE.match(value)
    if not match:
        return 0
    return int(match.group(1))


def _normalize_decimal_token(token: str) -> str:
    token = token.strip()
    token = re.sub(r"[\$€£]", "", token)
    token = re.sub(r"(?<=\d)\s+(?=\d)", "", token)
    token = token.strip()

    has_comma = "," in token
    has_dot = "." in token
    if has_comma and has_dot:
        # Right-most separator is the decimal one.
        if token.rfind(",") > token.rfind("."):
            return token.replace(".", "").replace(",", ".")
        return token.replace(",", "")
    if has_comma:
        return token.replace(",", ".", 1)
    return token


def parse_decimal(value: str | None) -> float:
    """Parse a currency amount, accepting a comma decimal separator.

    ``"150,00"`` -> ``150.0``; ``"1.234,56"`` -> ``1234.56``. Anything
    without a numeric prefix yields ``0.0``.
    """
    if value is None:
        return 0.0
    match = _FLOAT_PREFIX_RE.match(_normalize_decimal_token(value))
    if not match:
        return 0.0
    result = float(match.group(0))
    # Overflowing exponents ("1e999") are treated as unparseable.
    return result if math.isfinite(result) else 0.0


# ── Cell access ──────────────────────────────────────────────────


def cell(row: Sequence[str], index: int) -> str | None:
    """Return ``row[index]`` or ``None`` for ``NOT_FOUND`` / short rows."""
    if index == NOT_FOUND or index < 0 or index >= len(row):
        return None
    return row[index]


def _text(row: Sequence[str], index: int) -> str | None:
    value = cell(row, index)
    return value.strip() if value is not None else None


# ── Row mappers ──────────────────────────────────────────────────


def map_meeting_record(row: Sequence[str], columns: Columns) -> MeetingRecord | None:
    """Map one data row; ``None`` when the date cell is missing or blank."""
    date = _text(row, columns.get(Field.date, NOT_FOUND))
    if not date:
        return None

    member = _text(row, columns.get(Field.member, NOT_FOUND)) or UNKNOWN_MEMBER
    deal_idx = columns.get(Field.deal_closed, NOT_FOUND)
    target_idx = columns.get(Field.target, NOT_FOUND)

    return MeetingRecord(
        date=date,
        member=member,
        strategic_contacts=parse_int(cell(row, columns.get(Field.strategic_contacts, NOT_FOUND))),
        thanks_generated=parse_decimal(cell(row, columns.get(Field.thanks_generated, NOT_FOUND))),
        deal_closed=parse_decimal(cell(row, deal_idx)) if deal_idx != NOT_FOUND else 0.0,
        target=_text(row, target_idx) if target_idx != NOT_FOUND else None,
    )


def map_speaker(row: Sequence[str], columns: Columns) -> SpeakerProfile | None:
    """Map one roster row; ``None`` when the name cell is missing or blank."""
    name = _text(row, columns.get(Field.name, NOT_FOUND))
    if not name:
        return None
    return SpeakerProfile(
        name=name,
        profession=_text(row, columns.get(Field.profession, NOT_FOUND)),
        description=_text(row, columns.get(Field.description, NOT_FOUND)),
    )


def speaker_sort_key(name: str) -> tuple[str, str]:
    """Accent- and case-insensitive collation key, original string as tie-break."""
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), name


# ── Sheet mappers ────────────────────────────────────────────────


def _log_missing(columns: Columns, sheet_kind: str) -> None:
    missing = missing_fields(columns)
    if missing:
        logger.debug("No %s column for: %s", sheet_kind, ", ".join(missing))


def map_meeting_records(rows: Sequence[Sequence[str]]) -> list[MeetingRecord]:
    """Resolve headers from ``rows[0]`` and map the remaining rows."""
    if not rows:
        return []
    columns = resolve_columns(rows[0], MEETING_FIELDS)
    _log_missing(columns, "meeting")
    records: list[MeetingRecord] = []
    for row in rows[1:]:
        record = map_meeting_record(row, columns)
        if record is not None:
            records.append(record)
    return records


def map_speakers(rows: Sequence[Sequence[str]]) -> list[SpeakerProfile]:
    """Map a roster sheet; empty when it has no name column."""
    if not rows:
        return []
    columns = resolve_columns(rows[0], SPEAKER_FIELDS)
    _log_missing(columns, "roster")
    if columns[Field.name] == NOT_FOUND:
        return []
    speakers = [s for s in (map_speaker(row, columns) for row in rows[1:]) if s is not None]
    return sorted(speakers, key=lambda s: speaker_sort_key(s.name))
