"""Tests for Excel report writing behavior and formatting contracts."""

from __future__ import annotations

from datetime import date
from pathlib import Path

from openpyxl import load_workbook

from nameless_dashboard.models import MeetingRecord, SessionContext, SheetResult, SpeakerProfile
from nameless_dashboard.report import EUR_FMT, REPORT_NAME, write_report

TODAY = date(2024, 6, 15)


def _session(exchanges_ok: bool = True) -> SessionContext:
    meetings = (
        MeetingRecord(date="10/06/2024", member="Mario Rossi", strategic_contacts=3, thanks_generated=150.0),
        MeetingRecord(date="20/06/2024", member="=HYPERLINK(\"x\")", strategic_contacts=1),
    )
    exchanges = (
        MeetingRecord(
            date="20/06/2024", member="Luca Verdi", target="Anna Bianchi", deal_closed=300.0
        ),
    )
    speakers = (SpeakerProfile(name="Anna Bianchi", profession="Avvocato"),)
    return SessionContext(
        meetings_result=SheetResult(sheet="elenco riunioni", records=meetings),
        exchanges_result=(
            SheetResult(sheet="Foglio1", records=exchanges)
            if exchanges_ok
            else SheetResult.failed("Foglio1", "network unreachable")
        ),
        speakers_result=SheetResult(sheet="elenco nomi", records=speakers),
    )


def test_write_report_creates_expected_sheets(tmp_path: Path) -> None:
    report_path = write_report(tmp_path, _session(), today=TODAY)

    assert report_path == tmp_path / REPORT_NAME
    wb = load_workbook(report_path)
    assert wb.sheetnames == ["Dashboard", "Chart", "Meetings", "Exchanges", "Speakers"]
    assert not (tmp_path / "Dashboard_Report.tmp.xlsx").exists()


def test_dashboard_sheet_shows_meeting_label_and_kpis(tmp_path: Path) -> None:
    wb = load_workbook(write_report(tmp_path, _session(), today=TODAY))
    ws = wb["Dashboard"]

    assert ws["A2"].value == "Riunione del 20 giugno 2024"
    labels = {ws.cell(row=r, column=1).value: ws.cell(row=r, column=2) for r in range(1, ws.max_row + 1)}
    assert labels["Contatti (Totali)"].value == 4
    assert labels["Grazie (Totali)"].value == 150.0
    assert labels["Grazie (Totali)"].number_format == EUR_FMT


def test_failed_sheet_looks_like_an_empty_sheet_on_dashboard(tmp_path: Path) -> None:
    wb = load_workbook(write_report(tmp_path, _session(exchanges_ok=False), today=TODAY))
    dashboard = wb["Dashboard"]

    rows = [[cell.value for cell in row] for row in dashboard.iter_rows(min_col=1, max_col=3)]
    assert ["Foglio1", "Rows: 0", None] in rows
    assert not any("network unreachable" in str(value) for row in rows for value in row)
    assert wb["Exchanges"]["A2"].value == "No data"


def test_data_sheets_apply_formats_and_guard_formulas(tmp_path: Path) -> None:
    wb = load_workbook(write_report(tmp_path, _session(), today=TODAY))
    meetings = wb["Meetings"]

    header = [cell.value for cell in meetings[1]]
    assert header[:4] == ["date", "member", "strategic_contacts", "thanks_generated"]
    assert meetings["D2"].number_format == EUR_FMT
    assert meetings["B3"].value == "'=HYPERLINK(\"x\")"
    assert "Meetings" in meetings.tables


def test_speakers_sheet_reports_thanks_for_next_meeting(tmp_path: Path) -> None:
    wb = load_workbook(write_report(tmp_path, _session(), today=TODAY))
    speakers = wb["Speakers"]

    header = [cell.value for cell in speakers[1]]
    row = dict(zip(header, [cell.value for cell in speakers[2]]))
    assert row["name"] == "Anna Bianchi"
    assert row["thanks_sent"] == 300.0
