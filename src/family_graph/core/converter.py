"""
Record-to-entity conversion.

Turns finalized level-0 record trees (HEAD, INDI, FAM, SOUR, OBJE, NOTE)
into typed entities and resolves NOTE/SOUR/OBJE pointers. Pointers may
refer forward, so notes, sources and media are indexed before people and
families are converted. Unresolvable pointers are dropped.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from family_graph.core.models import (
    Event,
    Family,
    GenealogyDate,
    Media,
    ParsedGedcom,
    Person,
    Sex,
    Source,
    SourceCitation,
)

if TYPE_CHECKING:
    from family_graph.core.gedcom import RecordNode

logger = logging.getLogger(__name__)

# Vital events stored in dedicated Person fields; first matching tag wins.
VITAL_EVENTS = {
    "BIRT": "birth",
    "DEAT": "death",
    "BAPM": "baptism",
    "CHR": "baptism",
    "BURI": "burial",
}

INDIVIDUAL_EVENTS = (
    "CONF", "GRAD", "EMIG", "IMMI", "NATU", "RESI", "EVEN", "FACT",
    "ADOP", "CREM", "CENS", "PROB", "WILL", "RETI", "BARM", "BASM",
    "BLES", "CHRA", "FCOM", "ORDN",
)

FAMILY_EVENTS = ("ENGA", "MARB", "MARC", "MARL", "MARS", "ANUL", "DIVF", "CENS", "EVEN")

NOTE_TAGS = ("NOTE", "SNOTE")  # SNOTE: GEDCOM 7 shared note

PERSON_TAGS = frozenset({
    "NAME", "SEX", "OCCU", "EDUC", "RELI", "FAMC", "FAMS", "OBJE", "SOUR",
    "REFN", "RIN", "AFN", "CHAN", *NOTE_TAGS, *VITAL_EVENTS, *INDIVIDUAL_EVENTS,
})

FAMILY_TAGS = frozenset({
    "HUSB", "WIFE", "CHIL", "MARR", "DIV", "SOUR", "OBJE", "REFN", "RIN",
    "CHAN", "NCHI", *NOTE_TAGS, *FAMILY_EVENTS,
})

SOURCE_TAGS = frozenset({
    "TITL", "AUTH", "PUBL", "TEXT", "DATA", "ABBR", "REFN", "RIN", "CHAN",
    *NOTE_TAGS,
})

MEDIA_TAGS = frozenset({"FILE", "FORM", "TITL", "TYPE", "REFN", "RIN", "CHAN", *NOTE_TAGS})

EVENT_TAGS = frozenset({
    "DATE", "PLAC", "ADDR", "CAUS", "AGE", "TYPE", "SOUR", *NOTE_TAGS,
})

IDENTIFIER_TAGS = ("REFN", "RIN", "AFN")

_NAME_PATTERN = re.compile(r"^([^/]*)/([^/]*)/?(.*)$")
_COORDINATE_PATTERN = re.compile(r'^([NSEW])?\s*(-?\d+(?:\.\d+)?)$', re.IGNORECASE)


def _clean(value: str | None) -> str | None:
    """Strip a value; empty strings become None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def _collapse(text: str) -> str:
    return " ".join(text.split())


def parse_coordinate(value: str | None) -> float | None:
    """Parse a LATI/LONG value like N42.3601 or W71.0589."""
    if not value:
        return None
    match = _COORDINATE_PATTERN.match(value.strip())
    if not match:
        return None
    number = float(match.group(2))
    if (match.group(1) or "").upper() in ("S", "W"):
        number = -abs(number)
    return number


def split_name(value: str) -> tuple[str, str, str]:
    """Split "Given /Surname/ Suffix" into its three parts."""
    match = _NAME_PATTERN.match(value.strip())
    if not match:
        return _collapse(value), "", ""
    given, surname, suffix = match.groups()
    return _collapse(given or ""), _collapse(surname or ""), _collapse(suffix or "")


class RecordConverter:
    """
    Converts record trees into a ParsedGedcom.

    Holds the note/source/media maps used to resolve pointers; a fresh
    converter is used for each parse.
    """

    def __init__(self):
        self.header: dict = {}
        self.notes: dict[str, str] = {}
        self.sources: dict[str, Source] = {}
        self.media: dict[str, Media] = {}

    def convert(self, records: list[RecordNode]) -> ParsedGedcom:
        """Convert all records, resolving references across them."""
        by_type: dict[str, list[RecordNode]] = {}
        for record in records:
            by_type.setdefault(record.tag, []).append(record)

        for record in by_type.get("HEAD", []):
            self.header = record.to_dict()

        for tag in NOTE_TAGS:
            for record in by_type.get(tag, []):
                if record.xref:
                    self.notes[record.xref] = record.value or ""

        for record in by_type.get("SOUR", []):
            if record.xref:
                self.sources[record.xref] = self.convert_source(record)

        for record in by_type.get("OBJE", []):
            if record.xref:
                self.media[record.xref] = self.convert_media(record)

        people: dict[str, Person] = {}
        for record in by_type.get("INDI", []):
            if not record.xref:
                logger.debug("Skipping INDI record without xref")
                continue
            if record.xref in people:
                logger.warning("Duplicate individual id %s; keeping the last record", record.xref)
            people[record.xref] = self.convert_individual(record)

        families: dict[str, Family] = {}
        for record in by_type.get("FAM", []):
            if not record.xref:
                logger.debug("Skipping FAM record without xref")
                continue
            if record.xref in families:
                logger.warning("Duplicate family id %s; keeping the last record", record.xref)
            families[record.xref] = self.convert_family(record)

        return ParsedGedcom(
            header=self.header,
            people=list(people.values()),
            families=list(families.values()),
            sources=list(self.sources.values()),
            media=list(self.media.values()),
            notes=dict(self.notes),
        )

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    def convert_individual(self, record: RecordNode) -> Person:
        """Convert an INDI record. Edge lists are left empty for the linker."""
        person = Person(id=record.xref)
        self._apply_names(person, record)
        person.sex = Sex.from_gedcom(record.value_of("SEX"))

        for node in record.children:
            field_name = VITAL_EVENTS.get(node.tag)
            if field_name and getattr(person, field_name) is None:
                setattr(person, field_name, self.convert_event(node))
            elif node.tag in INDIVIDUAL_EVENTS:
                event = self.convert_event(node)
                if event:
                    person.events.append(event)

        person.occupation = _clean(record.value_of("OCCU"))
        person.education = _clean(record.value_of("EDUC"))
        person.religion = _clean(record.value_of("RELI"))

        person.notes = self.resolve_notes(record)
        person.media = self.resolve_media(record)
        person.sources = self.resolve_citations(record)

        person.family_child_ids = [v.strip() for v in record.values("FAMC")]
        person.family_spouse_ids = [v.strip() for v in record.values("FAMS")]

        for tag in IDENTIFIER_TAGS:
            value = _clean(record.value_of(tag))
            if value:
                person.identifiers[tag] = value
        person.last_changed = _clean(record.value_of("CHAN", "DATE"))
        person.unknown = self._unknown(record, PERSON_TAGS)
        return person

    def convert_family(self, record: RecordNode) -> Family:
        """Convert a FAM record."""
        family = Family(
            id=record.xref,
            husband_id=_clean(record.value_of("HUSB")),
            wife_id=_clean(record.value_of("WIFE")),
            children_ids=[v.strip() for v in record.values("CHIL")],
        )

        marriage = record.first("MARR")
        if marriage:
            family.marriage = self.convert_event(marriage)
        divorce = record.first("DIV")
        if divorce:
            family.divorce = self.convert_event(divorce)

        for node in record.children:
            if node.tag in FAMILY_EVENTS:
                event = self.convert_event(node)
                if event:
                    family.events.append(event)

        family.notes = self.resolve_notes(record)
        family.sources = self.resolve_citations(record)
        family.unknown = self._unknown(record, FAMILY_TAGS)
        return family

    def convert_source(self, record: RecordNode) -> Source:
        """Convert a SOUR record."""
        return Source(
            id=record.xref,
            title=_clean(record.value_of("TITL")),
            author=_clean(record.value_of("AUTH")),
            publication=_clean(record.value_of("PUBL")),
            text=_clean(record.value_of("TEXT") or record.value_of("DATA", "TEXT")),
            abbreviation=_clean(record.value_of("ABBR")),
            notes=self.resolve_notes(record),
            unknown=self._unknown(record, SOURCE_TAGS),
        )

    def convert_media(self, node: RecordNode) -> Media:
        """
        Convert an OBJE record or inline OBJE structure.

        Accepts both the 5.5 shape (FORM/TITL beside FILE) and the 5.5.1
        shape (FORM/TITL under FILE, TYPE under FORM).
        """
        file_node = node.first("FILE")
        form_node = node.first("FORM") or (file_node.first("FORM") if file_node else None)
        title = node.value_of("TITL") or (file_node.value_of("TITL") if file_node else None)
        media_type = node.value_of("TYPE")
        if not media_type and form_node:
            media_type = form_node.value_of("TYPE") or form_node.value_of("MEDI")

        return Media(
            id=node.xref,
            title=_clean(title),
            file=_clean(file_node.value) if file_node else None,
            format=_clean(form_node.value) if form_node else None,
            type=_clean(media_type),
            unknown=self._unknown(node, MEDIA_TAGS),
        )

    # -------------------------------------------------------------------------
    # Structures
    # -------------------------------------------------------------------------

    def convert_event(self, node: RecordNode) -> Event | None:
        """
        Convert an event structure.

        Returns None unless the event has a DATE or a PLAC.
        """
        date_text = _clean(node.value_of("DATE"))
        place_node = node.first("PLAC")
        place = _clean(place_node.value) if place_node else None
        if date_text is None and place is None:
            return None

        event = Event(
            event_type=node.tag,
            display_date=date_text,
            date=GenealogyDate.from_gedcom(date_text) if date_text else None,
            place=place,
            address=_clean(node.value_of("ADDR")),
            cause=_clean(node.value_of("CAUS")),
            age=_clean(node.value_of("AGE")),
            description=_clean(node.value_of("TYPE")),
        )
        if event.description is None and node.value and node.value.strip().upper() != "Y":
            event.description = _clean(node.value)

        if place_node:
            map_node = place_node.first("MAP")
            if map_node:
                event.latitude = parse_coordinate(map_node.value_of("LATI"))
                event.longitude = parse_coordinate(map_node.value_of("LONG"))

        event.notes = self.resolve_notes(node)
        event.sources = self.resolve_citations(node)
        event.unknown = self._unknown(node, EVENT_TAGS)
        return event

    def resolve_notes(self, node: RecordNode) -> list[str]:
        """Inline note texts and resolved NOTE pointers, in order."""
        notes = []
        for child in node.children:
            if child.tag not in NOTE_TAGS:
                continue
            if child.is_pointer:
                text = self.notes.get(child.value.strip())
                if text is None:
                    logger.debug("Unresolved note reference %s", child.value)
                    continue
            else:
                text = child.value
            if text:
                notes.append(text)
        return notes

    def resolve_citations(self, node: RecordNode) -> list[SourceCitation]:
        """SOUR pointers resolved to citations; inline sources kept as text."""
        citations = []
        for child in node.all("SOUR"):
            page = _clean(child.value_of("PAGE"))
            text = _clean(child.value_of("DATA", "TEXT") or child.value_of("TEXT"))
            if child.is_pointer:
                source_id = child.value.strip()
                source = self.sources.get(source_id)
                if source is None:
                    logger.debug("Unresolved source reference %s", source_id)
                    continue
                citations.append(SourceCitation(
                    source_id=source_id,
                    title=source.title,
                    page=page,
                    text=text or source.text,
                ))
            elif child.value:
                citations.append(SourceCitation(title=_clean(child.value), page=page, text=text))
        return citations

    def resolve_media(self, node: RecordNode) -> list[Media]:
        """OBJE pointers resolved to media records; inline OBJE converted."""
        media = []
        for child in node.all("OBJE"):
            if child.is_pointer:
                item = self.media.get(child.value.strip())
                if item is None:
                    logger.debug("Unresolved media reference %s", child.value)
                    continue
                media.append(item.model_copy())
            else:
                media.append(self.convert_media(child))
        return media

    def _apply_names(self, person: Person, record: RecordNode) -> None:
        """Fill name fields, preferring GIVN/SURN over the slashed form."""
        names = record.all("NAME")
        if not names:
            return

        primary = names[0]
        given, surname, suffix = split_name(primary.value or "")

        given = _clean(primary.value_of("GIVN")) or given
        surname = _clean(primary.value_of("SURN")) or surname
        suffix = _clean(primary.value_of("NSFX")) or suffix

        person.given_name = given
        person.surname = surname
        person.suffix = suffix or None
        person.prefix = _clean(primary.value_of("NPFX"))
        person.nickname = _clean(primary.value_of("NICK"))

        if primary.value and primary.value.strip():
            full = _collapse(primary.value.replace("/", " "))
        else:
            full = " ".join(part for part in (given, surname, suffix) if part)
        person.name = full or "Unknown"

        for other in names[1:]:
            if other.value and other.value.strip():
                person.alternate_names.append(_collapse(other.value.replace("/", " ")))

    @staticmethod
    def _unknown(record: RecordNode, known: frozenset[str]) -> dict[str, list[str]]:
        """Values of unrecognised tags, kept opaque."""
        bucket: dict[str, list[str]] = {}
        for child in record.children:
            if child.tag not in known:
                bucket.setdefault(child.tag, []).append(child.value or "")
        return bucket
