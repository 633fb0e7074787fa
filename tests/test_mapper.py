"""Targeted tests for record mapping and numeric coercion."""

from __future__ import annotations

import logging

import pytest

from nameless_dashboard import UNKNOWN_MEMBER
from nameless_dashboard.headers import NOT_FOUND, Field
from nameless_dashboard.mapper import (
    cell,
    map_meeting_record,
    map_meeting_records,
    map_speakers,
    parse_decimal,
    parse_int,
)
from nameless_dashboard.models import MeetingRecord, SpeakerProfile
from nameless_dashboard.parser import parse_rows
from nameless_dashboard.stats import format_currency_eur


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("3", 3), (" 12abc", 12), ("3.9", 3), ("-2", -2), ("abc", 0), ("", 0), (None, 0)],
)
def test_parse_int_is_forgiving(raw: str | None, expected: int) -> None:
    assert parse_int(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("150,00", 150.0),
        ("150.5", 150.5),
        ("€ 1.234,56", 1234.56),
        ("1,234.56", 1234.56),
        ("12 euro", 12.0),
        ("n/a", 0.0),
        ("1e999", 0.0),
        ("-1e999", 0.0),
        ("", 0.0),
        (None, 0.0),
    ],
)
def test_parse_decimal_handles_comma_decimals(raw: str | None, expected: float) -> None:
    assert parse_decimal(raw) == pytest.approx(expected)


def test_comma_decimal_matches_dot_rewrite() -> None:
    assert parse_decimal("1.234,56") == parse_decimal("1234.56")
    assert parse_decimal("99,5") == parse_decimal("99.5")


def test_cell_checks_sentinel_and_row_length() -> None:
    row = ["a", "b"]

    assert cell(row, NOT_FOUND) is None
    assert cell(row, 5) is None
    assert cell(row, 1) == "b"


def test_end_to_end_meeting_sheet() -> None:
    text = "Data,Membro,Contatti Strategici,Grazie Generati\n01/06/2024,Mario Rossi,3,150,00\n"

    records = map_meeting_records(parse_rows(text))

    assert records == [
        MeetingRecord(
            date="01/06/2024",
            member="Mario Rossi",
            strategic_contacts=3,
            thanks_generated=150.0,
            deal_closed=0.0,
            target=None,
        )
    ]


def test_quoted_comma_decimal_is_parsed() -> None:
    text = 'Data,Membro,Contatti,Grazie\n01/06/2024,Mario,1,"150,75"\n'

    (record,) = map_meeting_records(parse_rows(text))

    assert record.thanks_generated == pytest.approx(150.75)


def test_rows_without_date_are_dropped() -> None:
    text = "Data,Membro,Contatti,Grazie\n,,,\n   ,Luigi,2,10\n02/06/2024,Anna,1,5\n"

    records = map_meeting_records(parse_rows(text))

    assert [r.member for r in records] == ["Anna"]


def test_missing_date_column_drops_every_row() -> None:
    text = "Membro,Contatti,Grazie\nMario,1,10\n"

    assert map_meeting_records(parse_rows(text)) == []


def test_member_defaults_to_placeholder() -> None:
    columns = {Field.date: 0, Field.member: 1}

    record = map_meeting_record(["01/06/2024", "  "], columns)

    assert record is not None
    assert record.member == UNKNOWN_MEMBER


def test_exchange_sheet_maps_target_and_deal_closed() -> None:
    text = (
        "Data,Membro,Contatti,Grazie,Target,Affare fatto\n"
        '05/06/2024,Anna Bianchi,2,0,"Luca Verdi, Sara Neri","1.500,00"\n'
        "05/06/2024,Luca Verdi,0,0,,\n"
    )

    first, second = map_meeting_records(parse_rows(text))

    assert first.target == "Luca Verdi, Sara Neri"
    assert first.deal_closed == pytest.approx(1500.0)
    assert second.target == ""
    assert second.deal_closed == 0.0


def test_short_row_leaves_target_absent() -> None:
    text = "Data,Membro,Target\n05/06/2024,Anna\n"

    (record,) = map_meeting_records(parse_rows(text))

    assert record.target is None


def test_speakers_are_filtered_and_sorted() -> None:
    text = (
        "Nome,Professione,Breve descrizione\n"
        "zeno Galli,Architetto,Case passive\n"
        ",Idraulico,\n"
        "Élise Conti,Notaio,\n"
        "Anna Bianchi,Avvocato,Diritto societario\n"
    )

    speakers = map_speakers(parse_rows(text))

    assert [s.name for s in speakers] == ["Anna Bianchi", "Élise Conti", "zeno Galli"]
    assert speakers[0] == SpeakerProfile(
        name="Anna Bianchi", profession="Avvocato", description="Diritto societario"
    )
    assert speakers[1].description == ""


def test_speakers_without_name_column_is_empty() -> None:
    assert map_speakers(parse_rows("Professione\nAvvocato\n")) == []


def test_speaker_optional_columns_absent() -> None:
    (speaker,) = map_speakers(parse_rows("Nome\nAnna\n"))

    assert speaker.profession is None
    assert speaker.description is None


def test_overflowing_amount_does_not_break_currency_format() -> None:
    text = "Data,Membro,Contatti,Grazie\n01/06/2024,Mario,1,1e999\n"

    (record,) = map_meeting_records(parse_rows(text))

    assert record.thanks_generated == 0.0
    assert format_currency_eur(record.thanks_generated) == "0\u00a0€"


def test_missing_columns_are_logged_at_debug(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="nameless_dashboard.mapper"):
        map_meeting_records(parse_rows("Data,Membro\n01/06/2024,Mario\n"))

    assert any("strategic_contacts" in message for message in caplog.messages)
