"""Sheet fetching — retrieve raw CSV and run it through parse + map.

Every fetch is independently resilient: failures are logged and come back
as a ``failed`` :class:`SheetResult` with no records, never as exceptions.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any
from urllib.parse import quote

import httpx

from nameless_dashboard.config import DashboardConfig
from nameless_dashboard.io import read_snapshot, snapshot_path
from nameless_dashboard.mapper import map_meeting_records, map_speakers
from nameless_dashboard.models import SessionContext, SheetResult
from nameless_dashboard.parser import parse_rows
from nameless_dashboard.utils import sha256_text

logger = logging.getLogger(__name__)

GVIZ_CSV_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq?tqx=out:csv&sheet={sheet}"


class SheetKind(str, Enum):
    meetings = "meetings"
    exchanges = "exchanges"
    speakers = "speakers"


def sheet_csv_url(sheet_id: str, sheet_name: str) -> str:
    """Return the public CSV export URL of one named sheet."""
    return GVIZ_CSV_URL.format(sheet_id=sheet_id, sheet=quote(sheet_name, safe="-_.!~*'()"))


def sheet_name_for(config: DashboardConfig, kind: SheetKind) -> str:
    return {
        SheetKind.meetings: config.meetings_sheet,
        SheetKind.exchanges: config.exchanges_sheet,
        SheetKind.speakers: config.speakers_sheet,
    }[kind]


def parse_sheet(kind: SheetKind, text: str) -> list[Any]:
    """Parse raw CSV *text* into the record type of *kind*."""
    rows = parse_rows(text)
    if kind is SheetKind.speakers:
        return list(map_speakers(rows))
    return list(map_meeting_records(rows))


async def fetch_sheet_text(
    client: httpx.AsyncClient, config: DashboardConfig, sheet_name: str
) -> str:
    """Return the raw CSV of *sheet_name*; raises on any transport failure."""
    if config.snapshot_dir is not None:
        return await asyncio.to_thread(
            read_snapshot, snapshot_path(config.snapshot_dir, sheet_name)
        )
    response = await client.get(sheet_csv_url(config.sheet_id, sheet_name))
    response.raise_for_status()
    return response.text


async def fetch_sheet(
    client: httpx.AsyncClient, config: DashboardConfig, kind: SheetKind
) -> SheetResult:
    """Fetch, parse and map one sheet, degrading to an empty failed result."""
    sheet_name = sheet_name_for(config, kind)
    try:
        text = await fetch_sheet_text(client, config, sheet_name)
        records = parse_sheet(kind, text)
    except Exception as exc:
        logger.warning("Error fetching data from sheet %r: %s", sheet_name, exc)
        logger.debug("Fetch failure details for sheet %r", sheet_name, exc_info=True)
        return SheetResult.failed(sheet_name, str(exc) or type(exc).__name__)

    logger.debug("Loaded %d %s from sheet %r", len(records), kind.value, sheet_name)
    return SheetResult(sheet=sheet_name, records=tuple(records), sha256=sha256_text(text))


async def load_session(
    config: DashboardConfig, client: httpx.AsyncClient | None = None
) -> SessionContext:
    """Fetch the three sheets concurrently and bundle them for the session.

    A client passed in by the caller is left open.
    """
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=config.timeout, follow_redirects=True)
    try:
        meetings, exchanges, speakers = await asyncio.gather(
            fetch_sheet(client, config, SheetKind.meetings),
            fetch_sheet(client, config, SheetKind.exchanges),
            fetch_sheet(client, config, SheetKind.speakers),
        )
    finally:
        if owns_client:
            await client.aclose()
    return SessionContext(
        meetings_result=meetings,
        exchanges_result=exchanges,
        speakers_result=speakers,
    )


def load_session_sync(config: DashboardConfig) -> SessionContext:
    """Blocking entry point for the CLI."""
    return asyncio.run(load_session(config))
