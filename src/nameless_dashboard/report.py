"""Excel export writer — produces Dashboard_Report.xlsx."""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, cast

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo
from openpyxl.worksheet.worksheet import Worksheet

from nameless_dashboard.models import SessionContext
from nameless_dashboard.stats import (
    compute_chart_data,
    compute_dashboard_stats,
    meeting_label,
    next_meeting_date,
    records_frame,
    speakers_frame,
)

REPORT_NAME = "Dashboard_Report.xlsx"

# ── Style constants ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="4F46E5", end_color="4F46E5", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

TITLE_FONT = Font(name="Calibri", bold=True, size=14, color="4F46E5")
SUBTITLE_FONT = Font(name="Calibri", bold=False, size=10, color="808080")
LABEL_FONT = Font(name="Calibri", bold=True, size=11)
VALUE_FONT = Font(name="Calibri", size=11)

NOTE_FILL = PatternFill(start_color="FFF2CC", end_color="FFF2CC", fill_type="solid")
KPI_FILL = PatternFill(start_color="E0E7FF", end_color="E0E7FF", fill_type="solid")

# Whole euros, matching the on-screen badges.
EUR_FMT = '#,##0 "€"'
INT_FMT = '#,##0'

_COL_FORMATS: dict[str, str] = {
    "strategic_contacts": INT_FMT,
    "contacts": INT_FMT,
    "thanks_generated": EUR_FMT,
    "deal_closed": EUR_FMT,
    "thanks": EUR_FMT,
    "thanks_sent": EUR_FMT,
}

_AUTO_WIDTH_SAMPLE_ROWS = 300
_EXCEL_FORMULA_PREFIXES = ("=", "+", "-", "@")


# ── Helpers ──────────────────────────────────────────────────────


def _style_header(ws: Worksheet, ncols: int) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=1, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _auto_width(ws: Worksheet) -> None:
    max_row = min(ws.max_row, _AUTO_WIDTH_SAMPLE_ROWS + 1)  # include header row
    for c_idx in range(1, ws.max_column + 1):
        letter = get_column_letter(c_idx)
        width = 0
        for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=c_idx, max_col=c_idx):
            width = max(width, len(str(row[0].value or "")))
        ws.column_dimensions[letter].width = min(width + 4, 40)


def _apply_number_formats(ws: Worksheet, col_names: list[str]) -> None:
    if ws.max_row < 2:
        return
    for c_idx, name in enumerate(col_names, 1):
        fmt = _COL_FORMATS.get(name.lower())
        if fmt:
            for row in ws.iter_rows(min_row=2, max_row=ws.max_row, min_col=c_idx, max_col=c_idx):
                for cell in row:
                    cell.number_format = fmt


def _sanitize_table_name(name: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9_]", "_", name)
    if not cleaned:
        cleaned = "Table"
    if not re.match(r"^[A-Za-z_]", cleaned):
        cleaned = f"_{cleaned}"
    return cleaned[:255]


def _unique_table_name(ws: Worksheet, base_name: str) -> str:
    parent = ws.parent
    if parent is None:
        return base_name

    existing: set[str] = set()
    for sheet in parent.worksheets:
        existing.update(cast(Iterable[str], sheet.tables.keys()))
    if base_name not in existing:
        return base_name

    suffix = 1
    while f"{base_name}_{suffix}" in existing:
        suffix += 1
    return f"{base_name}_{suffix}"


def _add_excel_table(ws: Worksheet, name: str, ncols: int, nrows: int) -> None:
    if nrows < 1 or ncols < 1:
        return
    ref = f"A1:{get_column_letter(ncols)}{nrows + 1}"  # +1 for header
    table = Table(displayName=_unique_table_name(ws, _sanitize_table_name(name)), ref=ref)
    table.tableStyleInfo = TableStyleInfo(
        name="TableStyleMedium2", showFirstColumn=False,
        showLastColumn=False, showRowStripes=True, showColumnStripes=False,
    )
    ws.add_table(table)


def _excel_value(val: Any) -> Any:
    """Convert pandas scalars and guard text against formula injection."""
    try:
        if pd.isna(val):
            return None
    except (TypeError, ValueError):
        return val

    item = getattr(val, "item", None)
    if callable(item):
        val = item()

    if isinstance(val, str):
        if val.startswith("'"):
            return val
        stripped = val.lstrip()
        if stripped and stripped[0] in _EXCEL_FORMULA_PREFIXES:
            return f"'{val}"

    return val


def _df_to_sheet(wb: Workbook, name: str, df: pd.DataFrame) -> None:
    ws = wb.create_sheet(title=name)
    col_names = [str(c) for c in df.columns]

    for c_idx, col_name in enumerate(col_names, 1):
        ws.cell(row=1, column=c_idx, value=col_name)
    if df.empty:
        ws.cell(row=2, column=1, value="No data").font = VALUE_FONT
    for r_idx, row_vals in enumerate(df.itertuples(index=False, name=None), 2):
        for c_idx, val in enumerate(row_vals, 1):
            ws.cell(row=r_idx, column=c_idx, value=_excel_value(val))
    _style_header(ws, len(col_names))
    ws.freeze_panes = "A2"
    _auto_width(ws)
    if not df.empty:
        _apply_number_formats(ws, col_names)
        _add_excel_table(ws, name, len(col_names), len(df))


def _fill_row(ws: Worksheet, row: int, fill: PatternFill, ncols: int = 4) -> None:
    for c in range(1, ncols + 1):
        ws.cell(row=row, column=c).fill = fill


def _write_dashboard(wb: Workbook, session: SessionContext, today: date) -> None:
    ws = wb.create_sheet(title="Dashboard")
    stats = compute_dashboard_stats(session.meetings, now=today)
    meeting = next_meeting_date(session.meetings, today=today)

    # ── Title ────────────────────────────────────────────────────
    ws.cell(row=1, column=1, value="Nameless: Dashboard").font = TITLE_FONT
    ws.merge_cells("A1:D1")
    ws.cell(row=2, column=1, value=meeting_label(meeting)).font = SUBTITLE_FONT
    ws.merge_cells("A2:D2")
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    ws.cell(row=3, column=1, value=f"Generated {generated}").font = SUBTITLE_FONT
    ws.merge_cells("A3:D3")

    # ── Sources ──────────────────────────────────────────────────
    row = 5
    ws.cell(row=row, column=1, value="Sources").font = LABEL_FONT
    _fill_row(ws, row, NOTE_FILL)
    row += 1
    for result in session.results:
        ws.cell(row=row, column=1, value=result.sheet)
        ws.cell(row=row, column=2, value=f"Rows: {len(result.records)}").font = VALUE_FONT
        _fill_row(ws, row, NOTE_FILL)
        row += 1

    # ── KPI cards ────────────────────────────────────────────────
    row += 1
    ws.cell(row=row, column=1, value="Key Metrics").font = LABEL_FONT
    _fill_row(ws, row, KPI_FILL)
    row += 1
    kpis: list[tuple[str, float, str]] = [
        ("Contatti (Settimana)", stats.contacts_week, INT_FMT),
        ("Contatti (Totali)", stats.contacts_total, INT_FMT),
        ("Grazie (Settimana)", stats.thanks_week, EUR_FMT),
        ("Grazie (Totali)", stats.thanks_total, EUR_FMT),
    ]
    for label, value, fmt in kpis:
        lbl_cell = ws.cell(row=row, column=1, value=label)
        lbl_cell.font = LABEL_FONT
        lbl_cell.fill = KPI_FILL
        val_cell = ws.cell(row=row, column=2, value=value)
        val_cell.font = VALUE_FONT
        val_cell.fill = KPI_FILL
        val_cell.number_format = fmt
        val_cell.alignment = Alignment(horizontal="right")
        row += 1

    ws.column_dimensions["A"].width = 24
    ws.column_dimensions["B"].width = 18
    ws.column_dimensions["C"].width = 40
    ws.column_dimensions["D"].width = 18


# ── Public API ───────────────────────────────────────────────────


def write_report(out_dir: Path, session: SessionContext, today: date | None = None) -> Path:
    """Write ``Dashboard_Report.xlsx`` for *session* and return the path."""
    today = today or date.today()
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    report_path = out_dir / REPORT_NAME

    wb = Workbook()
    active_sheet = wb.active
    if active_sheet is not None:
        wb.remove(active_sheet)

    _write_dashboard(wb, session, today)
    _df_to_sheet(wb, "Chart", compute_chart_data(session.meetings))
    _df_to_sheet(wb, "Meetings", records_frame(session.meetings))
    _df_to_sheet(wb, "Exchanges", records_frame(session.exchanges))
    meeting = next_meeting_date(session.meetings, today=today)
    _df_to_sheet(wb, "Speakers", speakers_frame(session.speakers, session.exchanges, meeting))

    tmp_path = out_dir / "Dashboard_Report.tmp.xlsx"
    wb.save(tmp_path)
    tmp_path.replace(report_path)
    return report_path
