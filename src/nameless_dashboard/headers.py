"""Map loosely-named header cells to semantic fields."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from enum import Enum

NOT_FOUND = -1


class Field(str, Enum):
    date = "date"
    member = "member"
    strategic_contacts = "strategic_contacts"
    thanks_generated = "thanks_generated"
    deal_closed = "deal_closed"
    target = "target"
    name = "name"
    profession = "profession"
    description = "description"


# Substrings matched against lowercased, trimmed labels.
FIELD_KEYWORDS: dict[Field, tuple[str, ...]] = {
    Field.date: ("data",),
    Field.member: ("membro", "nome"),
    Field.strategic_contacts: ("contatti", "strategici"),
    Field.thanks_generated: ("grazie",),
    Field.deal_closed: ("affare fatto",),
    Field.target: ("target", "destinatario", "referenza", "contatto"),
    Field.name: ("nome",),
    Field.profession: ("professione",),
    Field.description: ("breve descrizione", "descrizione"),
}

MEETING_FIELDS: tuple[Field, ...] = (
    Field.date,
    Field.member,
    Field.strategic_contacts,
    Field.thanks_generated,
    Field.deal_closed,
    Field.target,
)
SPEAKER_FIELDS: tuple[Field, ...] = (Field.name, Field.profession, Field.description)


def normalize_header(label: object) -> str:
    return str(label).strip().lower()


def resolve_column(headers: Sequence[str], field: Field) -> int:
    """Return the index of the leftmost header matching *field*, else ``NOT_FOUND``."""
    keywords = FIELD_KEYWORDS[field]
    for idx, label in enumerate(headers):
        normalized = normalize_header(label)
        if any(keyword in normalized for keyword in keywords):
            return idx
    return NOT_FOUND


def resolve_columns(headers: Sequence[str], fields: Iterable[Field]) -> dict[Field, int]:
    """Resolve every field in *fields* against the same header row."""
    return {field: resolve_column(headers, field) for field in fields}


def missing_fields(columns: Mapping[Field, int]) -> list[str]:
    return sorted(field.value for field, idx in columns.items() if idx == NOT_FOUND)
