from __future__ import annotations

import pytest

from nameless_dashboard.models import (
    FetchManifest,
    MeetingRecord,
    SessionContext,
    SheetEntry,
    SheetResult,
)


def test_failed_result_has_no_records() -> None:
    result = SheetResult.failed("Foglio1", "timeout")

    assert not result.ok
    assert result.records == ()
    assert result.error == "timeout"


def test_failed_result_rejects_records() -> None:
    record = MeetingRecord(date="01/06/2024", member="Mario")

    with pytest.raises(ValueError, match="failed"):
        SheetResult(sheet="x", status="failed", records=(record,))


def test_result_rejects_unknown_status() -> None:
    with pytest.raises(ValueError, match="status"):
        SheetResult(sheet="x", status="partial")  # type: ignore[arg-type]


def test_result_records_are_frozen_into_a_tuple() -> None:
    record = MeetingRecord(date="01/06/2024", member="Mario")

    result = SheetResult(sheet="x", records=[record])  # type: ignore[arg-type]

    assert result.records == (record,)


def test_session_context_exposes_plain_tuples() -> None:
    record = MeetingRecord(date="01/06/2024", member="Mario")
    session = SessionContext(
        meetings_result=SheetResult(sheet="a", records=(record,)),
        exchanges_result=SheetResult.failed("b", "down"),
        speakers_result=SheetResult(sheet="c"),
    )

    assert session.meetings == (record,)
    assert session.exchanges == ()
    assert session.speakers == ()
    assert [r.sheet for r in session.results] == ["a", "b", "c"]


def test_sheet_entry_rejects_negative_and_non_integer_rows() -> None:
    with pytest.raises(ValueError, match="rows"):
        SheetEntry(name="a", rows=-1)

    with pytest.raises(TypeError, match="rows"):
        SheetEntry(name="a", rows=True)  # type: ignore[arg-type]


def test_manifest_to_dict_keeps_per_sheet_status() -> None:
    manifest = FetchManifest(
        version="0.1.0",
        sheets=[
            SheetEntry.from_result(SheetResult(sheet="a")),
            SheetEntry.from_result(SheetResult.failed("b", "down")),
        ],
    )

    payload = manifest.to_dict()

    assert payload["tool"] == "nameless-dashboard"
    assert payload["sheets"][1] == {
        "name": "b", "status": "failed", "rows": 0, "error": "down", "sha256": "",
    }


def test_manifest_rejects_non_entry_sheets() -> None:
    with pytest.raises(TypeError, match="sheets"):
        FetchManifest(sheets=["a"])  # type: ignore[list-item]

    with pytest.raises(TypeError, match="sheets"):
        FetchManifest(sheets="a")  # type: ignore[arg-type]
