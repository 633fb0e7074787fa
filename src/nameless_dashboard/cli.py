"""CLI entry point for nameless-dashboard."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, datetime
from enum import Enum
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table as RichTable

from nameless_dashboard import __version__
from nameless_dashboard.config import DashboardConfig, build_config
from nameless_dashboard.fetcher import load_session_sync
from nameless_dashboard.io import write_json
from nameless_dashboard.models import (
    FetchManifest,
    MeetingRecord,
    SessionContext,
    SheetEntry,
    SpeakerProfile,
)
from nameless_dashboard.report import write_report
from nameless_dashboard.stats import (
    compute_chart_data,
    compute_dashboard_stats,
    compute_speaker_stats,
    format_currency_eur,
    meeting_label,
    next_meeting_date,
    parse_record_date,
    recent_records,
    splash_label,
)
from nameless_dashboard.utils import utcnow_iso

app = typer.Typer(
    name="nameless",
    help="nameless-dashboard: meeting statistics from the chapter's spreadsheets.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

BAR_WIDTH = 30


class ChartMetric(str, Enum):
    contacts = "contacts"
    thanks = "thanks"


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"nameless-dashboard v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    pkg_logger = logging.getLogger("nameless_dashboard")
    pkg_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(h, RichHandler) for h in pkg_logger.handlers):
        pkg_logger.addHandler(RichHandler(console=err_console, show_path=False))


def _state(ctx: typer.Context) -> tuple[DashboardConfig, date]:
    obj = ctx.ensure_object(dict)
    return obj["config"], obj["today"]


def _load(config: DashboardConfig) -> SessionContext:
    with console.status("Sincronizzazione Nameless…"):
        return load_session_sync(config)


def _bar(value: float, peak: float) -> str:
    if peak <= 0 or value <= 0:
        return ""
    return "█" * max(1, round(value / peak * BAR_WIDTH))


def _resolve_meeting_date(raw: str | None, records: Sequence[MeetingRecord], today: date) -> date:
    if raw is None:
        return next_meeting_date(records, today=today)
    parsed = parse_record_date(raw)
    if parsed is None:
        raise ValueError(f"Invalid --meeting-date {raw!r} (expected DD/MM/YYYY)")
    return parsed


def _speaker_panel(
    speaker: SpeakerProfile,
    position: int,
    total: int,
    exchanges: Sequence[MeetingRecord],
    meeting: date,
) -> Panel:
    stats = compute_speaker_stats(exchanges, speaker, meeting)
    lines: list[str] = [f"[bold]{escape(speaker.name)}[/bold]"]
    if speaker.profession:
        lines.append(f"[cyan]{escape(speaker.profession)}[/cyan]")
    if speaker.description:
        lines.append(f'[italic]"{escape(speaker.description)}"[/italic]')

    lines.append("")
    lines.append("[bold blue]Contatti portati[/bold blue]")
    if stats.unique_targets:
        lines.append("  " + " · ".join(escape(target.upper()) for target in stats.unique_targets))
    else:
        lines.append("  [dim]Nessun contatto registrato[/dim]")

    lines.append("[bold green]Grazie ricevuti[/bold green]")
    if stats.thanks_breakdown:
        for item in stats.thanks_breakdown:
            lines.append(
                f"  grazie a {escape(item.member)} per {format_currency_eur(item.amount)}"
            )
        lines.append(f"  Totale: {format_currency_eur(stats.thanks_sent_total)}")
    else:
        lines.append("  [dim]Nessun grazie registrato[/dim]")

    return Panel(
        "\n".join(lines),
        title=f"Speaker {position} / {total}",
        border_style="magenta",
    )


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    config_file: Path | None = typer.Option(
        None, "--config",
        help="Config file with key=value lines (sheet_id, meetings_sheet, ...).",
    ),
    sheet_id: str | None = typer.Option(
        None, "--sheet-id", envvar="NAMELESS_SHEET_ID",
        help="Spreadsheet id of the public CSV export.",
    ),
    meetings_sheet: str | None = typer.Option(
        None, "--meetings-sheet", envvar="NAMELESS_MEETINGS_SHEET",
        help="Name of the meeting-log sheet.",
    ),
    exchanges_sheet: str | None = typer.Option(
        None, "--exchanges-sheet", envvar="NAMELESS_EXCHANGES_SHEET",
        help="Name of the per-exchange sheet (targets, deals closed).",
    ),
    speakers_sheet: str | None = typer.Option(
        None, "--speakers-sheet", envvar="NAMELESS_SPEAKERS_SHEET",
        help="Name of the speaker roster sheet.",
    ),
    snapshot_dir: Path | None = typer.Option(
        None, "--snapshot-dir", envvar="NAMELESS_SNAPSHOT_DIR",
        help="Read '<sheet name>.csv' files from this directory instead of the network.",
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", envvar="NAMELESS_TIMEOUT",
        help="HTTP timeout in seconds (default: none).",
    ),
    today: datetime | None = typer.Option(
        None, "--today", formats=["%Y-%m-%d"],
        help="Reference date for weekly stats and the next meeting (default: today).",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log debug details, including fetch failure tracebacks.",
    ),
) -> None:
    """nameless-dashboard CLI."""
    _configure_logging(verbose)
    try:
        config = build_config(
            config_file,
            sheet_id=sheet_id,
            meetings_sheet=meetings_sheet,
            exchanges_sheet=exchanges_sheet,
            speakers_sheet=speakers_sheet,
            snapshot_dir=snapshot_dir,
            timeout=timeout,
        )
    except ValueError as exc:
        _err(str(exc))
        raise typer.Exit(code=2)

    obj = ctx.ensure_object(dict)
    obj["config"] = config
    obj["today"] = today.date() if today else date.today()


# ── dashboard command ────────────────────────────────────────────


@app.command()
def dashboard(
    ctx: typer.Context,
    metric: ChartMetric = typer.Option(
        ChartMetric.contacts, "--metric",
        help="Chart metric: contacts or thanks.",
    ),
    limit: int = typer.Option(
        8, "--limit", min=1,
        help="How many recent records to list.",
    ),
) -> None:
    """Show the weekly/total badges, the chart rows and recent records."""
    config, today = _state(ctx)
    session = _load(config)
    meetings = session.meetings

    stats = compute_dashboard_stats(meetings, now=today)
    meeting = next_meeting_date(meetings, today=today)

    console.print(Panel(
        f"[bold]Nameless[/bold] Dashboard\n{meeting_label(meeting)}",
        border_style="blue",
    ))

    badges = RichTable(title="Statistiche", show_lines=True)
    badges.add_column("Contatti (Settimana)", justify="right", style="blue")
    badges.add_column("Contatti (Totali)", justify="right", style="magenta")
    badges.add_column("Grazie (Settimana)", justify="right", style="green")
    badges.add_column("Grazie (Totali)", justify="right", style="yellow")
    badges.add_row(
        str(stats.contacts_week),
        str(stats.contacts_total),
        format_currency_eur(stats.thanks_week),
        format_currency_eur(stats.thanks_total),
    )
    console.print(badges)

    chart = compute_chart_data(meetings)
    column = metric.value
    peak = float(chart[column].max()) if not chart.empty else 0.0
    chart_tbl = RichTable(title=f"Andamento: {column}")
    chart_tbl.add_column("Data", style="bold")
    chart_tbl.add_column(column.capitalize(), justify="right")
    chart_tbl.add_column("", style="blue" if metric is ChartMetric.contacts else "green")
    for name, value in zip(chart["name"], chart[column]):
        shown = format_currency_eur(value) if metric is ChartMetric.thanks else str(int(value))
        chart_tbl.add_row(escape(str(name)), shown, _bar(float(value), peak))
    console.print(chart_tbl)

    recent = RichTable(title="Ultimi scambi")
    recent.add_column("Data", style="bold")
    recent.add_column("Membro")
    recent.add_column("Contatti", justify="right")
    recent.add_column("Grazie", justify="right", style="green")
    for record in recent_records(meetings, limit=limit):
        recent.add_row(
            escape(record.date),
            escape(record.member),
            str(record.strategic_contacts),
            format_currency_eur(record.thanks_generated),
        )
    console.print(recent)


# ── speakers command ─────────────────────────────────────────────


@app.command()
def speakers(
    ctx: typer.Context,
    meeting_date: str | None = typer.Option(
        None, "--meeting-date",
        help="Meeting to report on, DD/MM/YYYY (default: next meeting).",
    ),
    index: int | None = typer.Option(
        None, "--index", min=1,
        help="Show only the speaker at this 1-based position.",
    ),
) -> None:
    """Show the speaker rotation with each speaker's contribution."""
    config, today = _state(ctx)
    session = _load(config)

    try:
        meeting = _resolve_meeting_date(meeting_date, session.meetings, today)
    except ValueError as exc:
        _err(str(exc))
        raise typer.Exit(code=2)

    roster = session.speakers
    console.print(f"[dim]{meeting_label(meeting)}[/dim]")
    if not roster:
        console.print("Nessuno speaker")
        return

    positions = list(range(1, len(roster) + 1))
    if index is not None:
        # Wraps around like the rotation view.
        positions = [(index - 1) % len(roster) + 1]
    for position in positions:
        console.print(
            _speaker_panel(roster[position - 1], position, len(roster), session.exchanges, meeting)
        )


# ── splash command ───────────────────────────────────────────────


@app.command()
def splash(ctx: typer.Context) -> None:
    """Print the welcome line for the next meeting."""
    config, today = _state(ctx)
    session = _load(config)
    meeting = next_meeting_date(session.meetings, today=today)
    console.print(Panel(
        f"[bold]{splash_label(meeting)}[/bold]",
        title="Nameless", border_style="magenta",
    ))


# ── export command ───────────────────────────────────────────────


@app.command()
def export(
    ctx: typer.Context,
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for the workbook + fetch manifest.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
) -> None:
    """Write Dashboard_Report.xlsx and fetch_manifest.json."""
    config, today = _state(ctx)
    created_at = utcnow_iso()
    session = _load(config)

    try:
        report_path = write_report(out_dir, session, today=today)
        manifest = FetchManifest(
            version=__version__,
            sheet_id=config.sheet_id,
            source=config.source,
            created_at_utc=created_at,
            sheets=[SheetEntry.from_result(result) for result in session.results],
        )
        manifest_path = write_json(out_dir / "fetch_manifest.json", manifest.to_dict())
    except OSError as exc:
        _err(f"Could not write export: {exc}")
        raise typer.Exit(code=1)

    if not quiet:
        console.print(f"  Report   -> {report_path}")
        console.print(f"  Manifest -> {manifest_path}")
        rows = sum(len(result.records) for result in session.results)
        console.print(Panel(
            f"[green]Done[/green]: {rows} rows -> {report_path}",
            title="Export Complete", border_style="green",
        ))
