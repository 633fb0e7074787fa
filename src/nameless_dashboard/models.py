"""Data models used across the package."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from numbers import Integral
from typing import Any, Literal

SheetStatus = Literal["ok", "failed"]


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


# ── Sheet rows ───────────────────────────────────────────────────


@dataclass(frozen=True)
class MeetingRecord:
    """One row of exchange/meeting activity.

    ``date`` is kept as received (trimmed); see
    :func:`nameless_dashboard.stats.normalize_date_str` for comparisons.
    """

    date: str
    member: str
    strategic_contacts: int = 0
    thanks_generated: float = 0.0
    deal_closed: float = 0.0
    target: str | None = None


@dataclass(frozen=True)
class SpeakerProfile:
    """One roster entry for the speaker rotation."""

    name: str
    profession: str | None = None
    description: str | None = None


# ── Fetch results ────────────────────────────────────────────────


@dataclass(frozen=True)
class SheetResult:
    """Outcome of fetching one sheet.

    A failed fetch always carries an empty ``records`` tuple, so callers
    that only read ``records`` see "no data" either way.
    """

    sheet: str
    status: SheetStatus = "ok"
    records: tuple[Any, ...] = ()
    error: str = ""
    sha256: str = ""

    def __post_init__(self) -> None:
        if self.status not in ("ok", "failed"):
            raise ValueError(f"status must be 'ok' or 'failed', got {self.status!r}")
        if self.status == "failed" and self.records:
            raise ValueError("failed results must not carry records")
        object.__setattr__(self, "records", tuple(self.records))

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @classmethod
    def failed(cls, sheet: str, error: str) -> SheetResult:
        return cls(sheet=sheet, status="failed", records=(), error=error)


@dataclass(frozen=True)
class SessionContext:
    """Everything fetched for one session, passed explicitly to consumers."""

    meetings_result: SheetResult
    exchanges_result: SheetResult
    speakers_result: SheetResult
    loaded_at: datetime = field(default_factory=datetime.now)

    @property
    def meetings(self) -> tuple[MeetingRecord, ...]:
        return self.meetings_result.records

    @property
    def exchanges(self) -> tuple[MeetingRecord, ...]:
        return self.exchanges_result.records

    @property
    def speakers(self) -> tuple[SpeakerProfile, ...]:
        return self.speakers_result.records

    @property
    def results(self) -> tuple[SheetResult, SheetResult, SheetResult]:
        return (self.meetings_result, self.exchanges_result, self.speakers_result)


# ── Derived views ────────────────────────────────────────────────


@dataclass
class DashboardStats:
    contacts_week: int = 0
    contacts_total: int = 0
    thanks_week: float = 0.0
    thanks_total: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "contacts_week": self.contacts_week,
            "contacts_total": self.contacts_total,
            "thanks_week": self.thanks_week,
            "thanks_total": self.thanks_total,
        }


@dataclass(frozen=True)
class ThanksItem:
    member: str
    amount: float


@dataclass
class SpeakerStats:
    """What a speaker brought to (and received at) one meeting."""

    unique_targets: list[str] = field(default_factory=list)
    thanks_sent_total: float = 0.0
    thanks_breakdown: list[ThanksItem] = field(default_factory=list)


# ── Audit trail ──────────────────────────────────────────────────


@dataclass
class SheetEntry:
    name: str
    status: str = "ok"
    rows: int = 0
    error: str = ""
    sha256: str = ""

    def __post_init__(self) -> None:
        self.rows = _to_non_negative_int(self.rows, "rows")

    @classmethod
    def from_result(cls, result: SheetResult) -> SheetEntry:
        return cls(
            name=result.sheet,
            status=result.status,
            rows=len(result.records),
            error=result.error,
            sha256=result.sha256,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status,
            "rows": self.rows,
            "error": self.error,
            "sha256": self.sha256,
        }


@dataclass
class FetchManifest:
    """Audit-trail manifest for one export run."""

    tool: str = "nameless-dashboard"
    version: str = ""
    sheet_id: str = ""
    source: str = ""
    created_at_utc: str = ""
    sheets: list[SheetEntry] = field(default_factory=list)

    def __post_init__(self) -> None:
        if isinstance(self.sheets, (str, bytes)) or not isinstance(self.sheets, Sequence):
            raise TypeError("sheets must be a sequence of SheetEntry")
        for entry in self.sheets:
            if not isinstance(entry, SheetEntry):
                raise TypeError("sheets items must be SheetEntry")
        self.sheets = list(self.sheets)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "sheet_id": self.sheet_id,
            "source": self.source,
            "created_at_utc": self.created_at_utc,
            "sheets": [entry.to_dict() for entry in self.sheets],
        }
