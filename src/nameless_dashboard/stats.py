"""Derived views over the session's records: pure functions, no side effects."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

import pandas as pd

from nameless_dashboard.models import (
    DashboardStats,
    MeetingRecord,
    SpeakerProfile,
    SpeakerStats,
    ThanksItem,
)

WEEK_WINDOW_DAYS = 7
CHART_LIMIT = 10
RECENT_LIMIT = 8

MONTHS_IT = (
    "gennaio", "febbraio", "marzo", "aprile", "maggio", "giugno",
    "luglio", "agosto", "settembre", "ottobre", "novembre", "dicembre",
)

RECORD_COLUMNS = [
    "date", "member", "strategic_contacts", "thanks_generated", "deal_closed", "target",
]

# ── Dates ────────────────────────────────────────────────────────


def _canonical_date(day: str, month: str, year: str) -> str:
    year = year.strip()
    if len(year) == 2:
        year = f"20{year}"
    return f"{day.strip().zfill(2)}/{month.strip().zfill(2)}/{year}"


def normalize_date_str(value: str | None) -> str:
    """Return *value* as ``DD/MM/YYYY`` when it is a recognized date.

    Accepts ``D/M/Y``, ``D-M-Y``, ``Y-M-D`` and ``Y/M/D``; two-digit years
    are taken as 20YY. Unrecognized input comes back trimmed.
    """
    if not value:
        return ""
    clean = value.strip()

    for sep in ("-", "/"):
        if sep not in clean:
            continue
        parts = clean.split(sep)
        if len(parts) != 3:
            continue
        if len(parts[0].strip()) == 4:
            return _canonical_date(parts[2], parts[1], parts[0])
        return _canonical_date(parts[0], parts[1], parts[2])
    return clean


def parse_record_date(value: str | None) -> date | None:
    """Parse a record date, day-first; ``None`` when it is not a real date."""
    normalized = normalize_date_str(value)
    if not normalized:
        return None

    parts = normalized.split("/")
    if len(parts) == 3:
        try:
            return date(int(parts[2]), int(parts[1]), int(parts[0]))
        except ValueError:
            return None

    parsed = pd.to_datetime(normalized, errors="coerce", dayfirst=True)
    if pd.isna(parsed):
        return None
    return parsed.date()


def _as_date(value: date | datetime | None) -> date:
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value


def _meeting_key(meeting_date: date | str) -> str:
    if isinstance(meeting_date, date):
        return meeting_date.strftime("%d/%m/%Y")
    return normalize_date_str(meeting_date)


# ── Italian formatting ───────────────────────────────────────────


def format_date_it(value: date, *, with_year: bool = True) -> str:
    text = f"{value.day} {MONTHS_IT[value.month - 1]}"
    return f"{text} {value.year}" if with_year else text


def meeting_label(value: date) -> str:
    return f"Riunione del {format_date_it(value)}"


def splash_label(value: date) -> str:
    return f"Benvenuti alla riunione del {format_date_it(value, with_year=False)}"


def format_currency_eur(value: float) -> str:
    """Format *value* as whole euros, Italian style: ``1234.5`` -> ``"1.235 €"``."""
    amount = Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    digits = f"{abs(int(amount)):,}".replace(",", ".")
    return f"{sign}{digits}\u00a0€"


# ── Dashboard ────────────────────────────────────────────────────


def compute_dashboard_stats(
    records: Sequence[MeetingRecord], now: date | datetime | None = None
) -> DashboardStats:
    """Sum contacts and thanks overall and over the trailing week.

    A record dated exactly ``WEEK_WINDOW_DAYS`` days before *now* is in the
    week; records with unparseable dates only count toward the totals.
    """
    week_start = _as_date(now) - timedelta(days=WEEK_WINDOW_DAYS)
    stats = DashboardStats()
    for record in records:
        stats.contacts_total += record.strategic_contacts
        stats.thanks_total += record.thanks_generated
        record_date = parse_record_date(record.date)
        if record_date is not None and record_date >= week_start:
            stats.contacts_week += record.strategic_contacts
            stats.thanks_week += record.thanks_generated
    return stats


def next_meeting_date(
    records: Sequence[MeetingRecord], today: date | datetime | None = None
) -> date:
    """Earliest record date from tomorrow on; tomorrow when there is none."""
    today = _as_date(today)
    if not records:
        return today
    tomorrow = today + timedelta(days=1)
    upcoming = [
        d for d in (parse_record_date(r.date) for r in records) if d is not None and d >= tomorrow
    ]
    return min(upcoming, default=tomorrow)


def compute_chart_data(records: Sequence[MeetingRecord], limit: int = CHART_LIMIT) -> pd.DataFrame:
    """Return ``name`` (DD/MM), ``contacts`` and ``thanks`` for the first *limit* records."""
    rows = []
    for record in list(records)[:limit]:
        normalized = normalize_date_str(record.date)
        name = normalized[:5] if normalized.count("/") == 2 else record.date
        rows.append(
            {
                "name": name,
                "contacts": record.strategic_contacts,
                "thanks": record.thanks_generated,
            }
        )
    return pd.DataFrame(rows, columns=["name", "contacts", "thanks"])


def recent_records(records: Sequence[MeetingRecord], limit: int = RECENT_LIMIT) -> list[MeetingRecord]:
    return list(records)[:limit]


def records_frame(records: Sequence[MeetingRecord]) -> pd.DataFrame:
    """Tabular view of *records* in source order."""
    return pd.DataFrame([asdict(r) for r in records], columns=RECORD_COLUMNS)


# ── Speakers ─────────────────────────────────────────────────────


def compute_speaker_stats(
    exchanges: Sequence[MeetingRecord],
    speaker: SpeakerProfile | str,
    meeting_date: date | str,
) -> SpeakerStats:
    """Targets a speaker brought and thanks sent to them at one meeting."""
    name = speaker.name if isinstance(speaker, SpeakerProfile) else speaker
    speaker_key = name.strip().lower()
    meeting_key = _meeting_key(meeting_date)

    stats = SpeakerStats()
    for record in exchanges:
        if normalize_date_str(record.date) != meeting_key:
            continue

        if record.member.strip().lower() == speaker_key and record.target:
            for target in record.target.split(","):
                target = target.strip()
                if target and target not in stats.unique_targets:
                    stats.unique_targets.append(target)

        if (record.target or "").strip().lower() == speaker_key and record.deal_closed > 0:
            stats.thanks_breakdown.append(ThanksItem(member=record.member, amount=record.deal_closed))
            stats.thanks_sent_total += record.deal_closed
    return stats


def speakers_frame(
    speakers: Sequence[SpeakerProfile],
    exchanges: Sequence[MeetingRecord],
    meeting_date: date | str,
) -> pd.DataFrame:
    """One row per speaker with their stats for *meeting_date*."""
    rows = []
    for speaker in speakers:
        stats = compute_speaker_stats(exchanges, speaker, meeting_date)
        rows.append(
            {
                "name": speaker.name,
                "profession": speaker.profession,
                "description": speaker.description,
                "targets": ", ".join(stats.unique_targets),
                "thanks_sent": stats.thanks_sent_total,
            }
        )
    return pd.DataFrame(
        rows, columns=["name", "profession", "description", "targets", "thanks_sent"]
    )
