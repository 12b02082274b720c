"""
Core data models for the family graph.

These models hold:
- GEDCOM dates with qualifiers (ABT, BEF, AFT, BET...AND...)
- Events, people, families, sources and media
- The parsed result handed to the data store
- Query results returned by the data store
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


MONTHS = {
    "JAN": 1, "FEB": 2, "MAR": 3, "APR": 4, "MAY": 5, "JUN": 6,
    "JUL": 7, "AUG": 8, "SEP": 9, "OCT": 10, "NOV": 11, "DEC": 12,
}

MONTH_ABBREVIATIONS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
                       "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

_APPROXIMATE_QUALIFIERS = re.compile(r"^(ABT|ABOUT|EST|CAL)\.?\s*")
_RANGE_QUALIFIERS = {
    "BEF": "before",
    "AFT": "after",
    "BET": "between",
}
_RANGE_PATTERN = re.compile(r"^(BEF|AFT|BET)\.?\s*")

_DAY_MONTH_YEAR = re.compile(r"(\d{1,2})\s+([A-Z]{3})\s+(\d{3,4})")
_MONTH_YEAR = re.compile(r"([A-Z]{3})\s+(\d{3,4})")
_YEAR = re.compile(r"\b(\d{3,4})\b")


class Sex(str, Enum):
    """Sex as recorded in the SEX tag."""
    MALE = "male"
    FEMALE = "female"
    UNKNOWN = "unknown"

    @classmethod
    def from_gedcom(cls, value: str | None) -> Sex:
        """Map a SEX value (M/F/anything else) to a Sex."""
        code = (value or "").strip().upper()
        if code == "M":
            return cls.MALE
        if code == "F":
            return cls.FEMALE
        return cls.UNKNOWN


class DateRange(str, Enum):
    """Range classifier for GEDCOM date qualifiers."""
    NONE = "none"
    BEFORE = "before"
    AFTER = "after"
    BETWEEN = "between"


def _match_date_parts(text: str) -> tuple[int | None, int | None, int | None]:
    """Find (year, month, day) in an upper-cased date fragment."""
    full = _DAY_MONTH_YEAR.search(text)
    if full and full.group(2) in MONTHS:
        return int(full.group(3)), MONTHS[full.group(2)], int(full.group(1))

    month_year = _MONTH_YEAR.search(text)
    if month_year and month_year.group(1) in MONTHS:
        return int(month_year.group(2)), MONTHS[month_year.group(1)], None

    year = _YEAR.search(text)
    if year:
        return int(year.group(1)), None, None

    return None, None, None


class GenealogyDate(BaseModel):
    """
    Structured GEDCOM date.

    Supports qualifiers: ABT/EST/CAL (approximate), BEF/AFT/BET...AND... (range).
    Formats: DD MMM YYYY, MMM YYYY, YYYY. Unparseable text keeps
    original_text with every numeric field empty.
    """
    year: int | None = None
    month: int | None = None
    day: int | None = None
    approximate: bool = False
    range: DateRange = DateRange.NONE
    end_year: int | None = None  # For BET...AND...
    end_month: int | None = None
    end_day: int | None = None
    original_text: str = ""

    @classmethod
    def from_gedcom(cls, date_str: str) -> GenealogyDate:
        """Parse a GEDCOM date string. Never raises."""
        original = date_str or ""
        working = original.strip().upper()

        approximate = False
        date_range = DateRange.NONE

        match = _APPROXIMATE_QUALIFIERS.match(working)
        if match:
            approximate = True
            working = working[match.end():]
        else:
            match = _RANGE_PATTERN.match(working)
            if match:
                date_range = DateRange(_RANGE_QUALIFIERS[match.group(1)])
                working = working[match.end():]

        end_year = end_month = end_day = None
        if date_range == DateRange.BETWEEN and " AND " in f" {working} ":
            first, _, second = f" {working} ".partition(" AND ")
            working = first.strip()
            end_year, end_month, end_day = _match_date_parts(second)

        year, month, day = _match_date_parts(working)

        return cls(
            year=year, month=month, day=day,
            approximate=approximate,
            range=date_range,
            end_year=end_year, end_month=end_month, end_day=end_day,
            original_text=original,
        )

    @property
    def is_empty(self) -> bool:
        """True when no numeric component could be recognised."""
        return self.year is None and self.month is None and self.day is None

    def display(self) -> str:
        """Human-readable rendering, e.g. "Abt 15 Mar 1890"."""
        parts = []
        if self.approximate:
            parts.append("Abt")
        if self.range == DateRange.BEFORE:
            parts.append("Bef")
        elif self.range == DateRange.AFTER:
            parts.append("Aft")
        elif self.range == DateRange.BETWEEN:
            parts.append("Bet")

        if self.day:
            parts.append(str(self.day))
        if self.month:
            parts.append(MONTH_ABBREVIATIONS[self.month - 1])
        if self.year:
            parts.append(str(self.year))

        if self.range == DateRange.BETWEEN and self.end_year:
            parts.append("and")
            if self.end_day:
                parts.append(str(self.end_day))
            if self.end_month:
                parts.append(MONTH_ABBREVIATIONS[self.end_month - 1])
            parts.append(str(self.end_year))

        if self.is_empty:
            return self.original_text
        return " ".join(parts)


class Media(BaseModel):
    """Multimedia object (OBJE), either a record or an inline descriptor."""
    id: str | None = None
    title: str | None = None
    file: str | None = None
    format: str | None = None
    type: str | None = None
    unknown: dict[str, list[str]] = Field(default_factory=dict)


class Source(BaseModel):
    """Source record (SOUR)."""
    id: str
    title: str | None = None
    author: str | None = None
    publication: str | None = None
    text: str | None = None
    abbreviation: str | None = None
    notes: list[str] = Field(default_factory=list)
    unknown: dict[str, list[str]] = Field(default_factory=dict)


class SourceCitation(BaseModel):
    """A SOUR pointer or inline source attached to a person, family or event."""
    source_id: str | None = None
    title: str | None = None
    page: str | None = None
    text: str | None = None


class Event(BaseModel):
    """A genealogical event (birth, death, marriage, etc.)."""
    event_type: str  # BIRT, DEAT, MARR, BURI, RESI, EVEN, etc.
    display_date: str | None = None  # DATE value as written
    date: GenealogyDate | None = None
    place: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    address: str | None = None
    cause: str | None = None
    age: str | None = None
    description: str | None = None  # TYPE value, or the EVEN value
    notes: list[str] = Field(default_factory=list)
    sources: list[SourceCitation] = Field(default_factory=list)
    unknown: dict[str, list[str]] = Field(default_factory=dict)

    @property
    def year(self) -> int | None:
        """Year of the event if known."""
        return self.date.year if self.date else None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class SpouseLink(BaseModel):
    """Spouse edge on a person, carrying the family's marriage data."""
    spouse_id: str
    family_id: str | None = None
    marriage: Event | None = None
    divorce: Event | None = None


class Person(BaseModel):
    """
    Individual (INDI) in the family graph.

    The parents/spouses/children edge lists are filled by the graph linker,
    not by the record converter.
    """
    id: str
    name: str = "Unknown"
    given_name: str = ""
    surname: str = ""
    prefix: str | None = None
    suffix: str | None = None
    nickname: str | None = None
    alternate_names: list[str] = Field(default_factory=list)

    sex: Sex = Sex.UNKNOWN

    # Vital events
    birth: Event | None = None
    death: Event | None = None
    baptism: Event | None = None
    burial: Event | None = None

    # Other events and attributes (CONF, GRAD, EMIG, IMMI, NATU, RESI, EVEN, ...)
    events: list[Event] = Field(default_factory=list)

    occupation: str | None = None
    education: str | None = None
    religion: str | None = None

    notes: list[str] = Field(default_factory=list)
    media: list[Media] = Field(default_factory=list)
    sources: list[SourceCitation] = Field(default_factory=list)

    # Graph edges
    parents: list[str] = Field(default_factory=list)
    spouses: list[SpouseLink] = Field(default_factory=list)
    children: list[str] = Field(default_factory=list)

    # Family pointers as written in the record
    family_child_ids: list[str] = Field(default_factory=list)  # FAMC
    family_spouse_ids: list[str] = Field(default_factory=list)  # FAMS

    identifiers: dict[str, str] = Field(default_factory=dict)  # REFN, RIN, AFN
    last_changed: str | None = None
    unknown: dict[str, list[str]] = Field(default_factory=dict)

    @property
    def photo(self) -> str | None:
        """File of the first attached media object, if any."""
        for item in self.media:
            if item.file:
                return item.file
        return None

    @property
    def birth_year(self) -> int | None:
        return self.birth.year if self.birth else None

    @property
    def death_year(self) -> int | None:
        return self.death.year if self.death else None


class Family(BaseModel):
    """
    Family unit (FAM) linking spouses and children.

    A family with neither spouse still groups its children.
    """
    id: str
    husband_id: str | None = None
    wife_id: str | None = None
    children_ids: list[str] = Field(default_factory=list)
    marriage: Event | None = None
    divorce: Event | None = None
    events: list[Event] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    sources: list[SourceCitation] = Field(default_factory=list)
    unknown: dict[str, list[str]] = Field(default_factory=dict)


class ParsedGedcom(BaseModel):
    """Result of parsing one GEDCOM text."""
    header: dict[str, Any] = Field(default_factory=dict)
    people: list[Person] = Field(default_factory=list)
    families: list[Family] = Field(default_factory=list)
    sources: list[Source] = Field(default_factory=list)
    media: list[Media] = Field(default_factory=list)
    notes: dict[str, str] = Field(default_factory=dict)

    @property
    def version(self) -> str | None:
        """GEDCOM version from HEAD.GEDC.VERS."""
        gedc = self.header.get("GEDC")
        if isinstance(gedc, list):
            gedc = gedc[0] if gedc else None
        if isinstance(gedc, dict):
            vers = gedc.get("VERS")
            if isinstance(vers, list):
                return vers[0] if vers else None
            return vers
        return None

    def stats(self) -> dict[str, Any]:
        """Counts per collection."""
        return {
            "individuals": len(self.people),
            "families": len(self.families),
            "sources": len(self.sources),
            "media": len(self.media),
            "notes": len(self.notes),
            "version": self.version,
        }


# =============================================================================
# Query results
# =============================================================================

class GenerationEntry(BaseModel):
    """A person reached by an ancestor/descendant traversal."""
    person: Person
    generation: int


class SpouseEntry(BaseModel):
    """A resolved spouse with the marriage data of their shared family."""
    person: Person
    family_id: str | None = None
    marriage: Event | None = None
    divorce: Event | None = None


class TimelineEvent(BaseModel):
    """One dated entry on the family timeline."""
    kind: Literal["birth", "death", "marriage", "event"]
    person: Person
    spouse: Person | None = None
    date: GenealogyDate
    display_date: str | None = None
    place: str | None = None
    title: str
    year: int


class LocationOccurrence(BaseModel):
    """A person's event at a place."""
    person_id: str
    event_type: str
    display_date: str | None = None


class Location(BaseModel):
    """Events grouped by place string."""
    place: str
    latitude: float | None = None
    longitude: float | None = None
    occurrences: list[LocationOccurrence] = Field(default_factory=list)


class RelationshipStep(BaseModel):
    """
    One edge on a relationship path.

    relation is what person_id is to the previous person on the path.
    """
    person_id: str
    relation: Literal["parent", "child", "spouse"]


class RelationshipResult(BaseModel):
    """Outcome of a relationship calculation."""
    relationship: str
    path: list[RelationshipStep] = Field(default_factory=list)
    found: bool = True
