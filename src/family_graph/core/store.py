"""
Family data store.

Indexed read model over a parsed family graph. Each load builds a complete
snapshot (linked people, id index) off to the side and swaps it in with a
single assignment, so queries see either the old graph or the new one.
Every query is total: unknown ids and empty stores give empty results.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Literal

from family_graph.config import Settings
from family_graph.core.gedcom import GedcomParser, normalize_xref
from family_graph.core.linker import link_family_graph
from family_graph.core.models import (
    Event,
    Family,
    GenerationEntry,
    Location,
    LocationOccurrence,
    Media,
    ParsedGedcom,
    Person,
    RelationshipResult,
    RelationshipStep,
    Sex,
    Source,
    SpouseEntry,
    TimelineEvent,
)
from family_graph.core.relationship import calculate_relationship

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Snapshot:
    """One complete, linked graph."""
    people: list[Person] = field(default_factory=list)
    families: list[Family] = field(default_factory=list)
    sources: list[Source] = field(default_factory=list)
    media: list[Media] = field(default_factory=list)
    header: dict[str, Any] = field(default_factory=dict)
    version: str | None = None
    people_by_id: dict[str, Person] = field(default_factory=dict)
    families_by_id: dict[str, Family] = field(default_factory=dict)
    loaded: bool = False

    @classmethod
    def build(cls, parsed: ParsedGedcom) -> _Snapshot:
        people = list(parsed.people)
        families = list(parsed.families)
        link_family_graph(people, families)
        return cls(
            people=people,
            families=families,
            sources=list(parsed.sources),
            media=list(parsed.media),
            header=dict(parsed.header),
            version=parsed.version,
            people_by_id={person.id: person for person in people},
            families_by_id={family.id: family for family in families},
            loaded=True,
        )


class FamilyDataStore:
    """
    Query layer over one family graph.

    Construct one store per graph; stores share no state.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        self._snapshot = _Snapshot()
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self, parsed: ParsedGedcom) -> None:
        """Replace the current graph with a parsed one."""
        snapshot = _Snapshot.build(parsed)
        with self._lock:
            self._snapshot = snapshot
        logger.info("Loaded %d people, %d families", len(snapshot.people), len(snapshot.families))

    def load_text(self, content: str) -> ParsedGedcom:
        """
        Parse GEDCOM text and replace the current graph.

        On GedcomParseError the previous graph is left untouched.
        """
        parsed = GedcomParser(encoding=self.settings.encoding).parse(content)
        self.load(parsed)
        return parsed

    def load_file(self, path: str | Path) -> ParsedGedcom:
        """Read a GEDCOM file and replace the current graph."""
        parsed = GedcomParser(encoding=self.settings.encoding).load(path)
        self.load(parsed)
        return parsed

    def clear(self) -> None:
        """Drop the current graph and its index."""
        with self._lock:
            self._snapshot = _Snapshot()

    @property
    def is_loaded(self) -> bool:
        return self._snapshot.loaded

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_person(self, person_id: str | None) -> Person | None:
        """Look up a person by id ("@I1@" or "I1")."""
        key = self._person_key(person_id)
        return self._snapshot.people_by_id.get(key) if key else None

    def get_family(self, family_id: str | None) -> Family | None:
        """Look up a family by id ("@F1@" or "F1")."""
        if not family_id:
            return None
        families = self._snapshot.families_by_id
        return families.get(family_id) or families.get(normalize_xref(family_id))

    def _person_key(self, person_id: str | None) -> str | None:
        """Index key for an id given with or without the @ delimiters."""
        if not person_id:
            return None
        if person_id in self._snapshot.people_by_id:
            return person_id
        return normalize_xref(person_id)

    def get_all_people(self) -> list[Person]:
        return list(self._snapshot.people)

    def get_all_families(self) -> list[Family]:
        return list(self._snapshot.families)

    def get_all_sources(self) -> list[Source]:
        return list(self._snapshot.sources)

    def get_all_media(self) -> list[Media]:
        return list(self._snapshot.media)

    def get_header(self) -> dict[str, Any]:
        return dict(self._snapshot.header)

    def search_people(self, query: str) -> list[Person]:
        """Case-insensitive substring search on full, given and surname."""
        needle = (query or "").lower()
        return [
            person for person in self._snapshot.people
            if needle in person.name.lower()
            or (person.given_name and needle in person.given_name.lower())
            or (person.surname and needle in person.surname.lower())
        ]

    def get_statistics(self) -> dict[str, Any]:
        """Counts of the loaded collections."""
        snapshot = self._snapshot
        return {
            "individuals": len(snapshot.people),
            "families": len(snapshot.families),
            "sources": len(snapshot.sources),
            "media": len(snapshot.media),
            "version": snapshot.version,
        }

    # -------------------------------------------------------------------------
    # Traversal
    # -------------------------------------------------------------------------

    def get_ancestors(self, person_id: str, max_generations: int | None = None) -> list[GenerationEntry]:
        """Ancestors in pre-order, tagged with their generation (parents = 1)."""
        return self._traverse(person_id, "parents", max_generations)

    def get_descendants(self, person_id: str, max_generations: int | None = None) -> list[GenerationEntry]:
        """Descendants in pre-order, tagged with their generation (children = 1)."""
        return self._traverse(person_id, "children", max_generations)

    def _traverse(
        self,
        person_id: str,
        edge: Literal["parents", "children"],
        max_generations: int | None,
    ) -> list[GenerationEntry]:
        """
        Depth-first walk along one edge kind.

        Uses an explicit stack of edge iterators; each person is emitted at
        most once and the walk stops at max_generations.
        """
        if max_generations is None:
            max_generations = self.settings.max_generations

        snapshot = self._snapshot
        root = snapshot.people_by_id.get(self._person_key(person_id) or "")
        if root is None or max_generations < 1:
            return []

        result: list[GenerationEntry] = []
        visited = {root.id}
        stack: list[tuple[Iterator[str], int]] = [(iter(getattr(root, edge)), 1)]

        while stack:
            edges, generation = stack[-1]
            next_id = next(edges, None)
            if next_id is None:
                stack.pop()
                continue
            if next_id in visited:
                continue

            person = snapshot.people_by_id.get(next_id)
            if person is None:
                continue

            visited.add(next_id)
            result.append(GenerationEntry(person=person, generation=generation))
            if generation < max_generations:
                stack.append((iter(getattr(person, edge)), generation + 1))

        return result

    def get_parents(self, person_id: str) -> list[Person]:
        return self._resolve(self._edge_ids(person_id, "parents"))

    def get_children(self, person_id: str) -> list[Person]:
        return self._resolve(self._edge_ids(person_id, "children"))

    def get_siblings(self, person_id: str) -> list[Person]:
        """All other children of any parent, half-siblings included."""
        person = self.get_person(person_id)
        if person is None:
            return []

        sibling_ids: list[str] = []
        for parent in self.get_parents(person.id):
            for child_id in parent.children:
                if child_id != person.id and child_id not in sibling_ids:
                    sibling_ids.append(child_id)
        return self._resolve(sibling_ids)

    def get_spouses(self, person_id: str) -> list[SpouseEntry]:
        """Spouses with the marriage/divorce events of each shared family."""
        person = self.get_person(person_id)
        if person is None:
            return []

        entries = []
        for link in person.spouses:
            spouse = self._snapshot.people_by_id.get(link.spouse_id)
            if spouse is None:
                continue
            entries.append(SpouseEntry(
                person=spouse,
                family_id=link.family_id,
                marriage=link.marriage,
                divorce=link.divorce,
            ))
        return entries

    def _edge_ids(self, person_id: str, edge: str) -> list[str]:
        person = self.get_person(person_id)
        return list(getattr(person, edge)) if person else []

    def _resolve(self, ids: list[str]) -> list[Person]:
        people_by_id = self._snapshot.people_by_id
        return [people_by_id[i] for i in ids if i in people_by_id]

    # -------------------------------------------------------------------------
    # Timeline and places
    # -------------------------------------------------------------------------

    def get_timeline_events(self, include_other_events: bool = False) -> list[TimelineEvent]:
        """
        Dated births, deaths and marriages, ascending by year.

        With the default "male_spouse" policy a marriage is emitted only from
        the spouse recorded as male, so couples with no male spouse get no
        marriage entry. When both spouses are male the family still gets a
        single entry, from whichever spouse comes first. The "per_family"
        policy emits one per family instead.
        """
        snapshot = self._snapshot
        per_family = self.settings.timeline_marriage_policy == "per_family"
        events: list[TimelineEvent] = []
        married_families: set[str | None] = set()

        for person in snapshot.people:
            for kind, event, verb in (("birth", person.birth, "was born"),
                                      ("death", person.death, "passed away")):
                if event and event.year:
                    events.append(TimelineEvent(
                        kind=kind,
                        person=person,
                        date=event.date,
                        display_date=event.display_date,
                        place=event.place,
                        title=f"{person.name} {verb}",
                        year=event.year,
                    ))

            if not per_family and person.sex == Sex.MALE:
                for link in person.spouses:
                    marriage = link.marriage
                    spouse = snapshot.people_by_id.get(link.spouse_id)
                    if link.family_id in married_families:
                        continue
                    if marriage and marriage.year and spouse:
                        married_families.add(link.family_id)
                        events.append(self._marriage_entry(person, spouse, marriage))

            if include_other_events:
                for event in person.events:
                    if event.year:
                        events.append(TimelineEvent(
                            kind="event",
                            person=person,
                            date=event.date,
                            display_date=event.display_date,
                            place=event.place,
                            title=f"{person.name}: {event.description or event.event_type}",
                            year=event.year,
                        ))

        if per_family:
            for family in snapshot.families:
                marriage = family.marriage
                if not (marriage and marriage.year):
                    continue
                husband = snapshot.people_by_id.get(family.husband_id or "")
                wife = snapshot.people_by_id.get(family.wife_id or "")
                first = husband or wife
                if first is None:
                    continue
                other = wife if husband else None
                events.append(self._marriage_entry(first, other, marriage))

        return sorted(events, key=lambda e: e.year)

    @staticmethod
    def _marriage_entry(person: Person, spouse: Person | None, marriage: Event) -> TimelineEvent:
        title = f"{person.name} married {spouse.name}" if spouse else f"{person.name} married"
        return TimelineEvent(
            kind="marriage",
            person=person,
            spouse=spouse,
            date=marriage.date,
            display_date=marriage.display_date,
            place=marriage.place,
            title=title,
            year=marriage.year,
        )

    def get_locations(self) -> list[Location]:
        """Events grouped by place string, in first-seen order."""
        locations: dict[str, Location] = {}

        for person in self._snapshot.people:
            vital = [person.birth, person.baptism, person.death, person.burial]
            for event in [*vital, *person.events]:
                if event is None or not event.place:
                    continue
                location = locations.get(event.place)
                if location is None:
                    location = locations[event.place] = Location(place=event.place)
                if location.latitude is None and event.has_coordinates:
                    location.latitude = event.latitude
                    location.longitude = event.longitude
                location.occurrences.append(LocationOccurrence(
                    person_id=person.id,
                    event_type=event.event_type,
                    display_date=event.display_date,
                ))

        return list(locations.values())

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------

    def calculate_relationship(self, person1_id: str, person2_id: str) -> RelationshipResult:
        """
        Shortest kinship path from person1 to person2 and its label.

        The label describes person1 relative to person2.
        """
        start = self._person_key(person1_id) or ""
        target = self._person_key(person2_id) or ""
        people_by_id = self._snapshot.people_by_id

        def neighbours(current_id: str) -> Iterator[RelationshipStep]:
            person = people_by_id.get(current_id)
            if person is None:
                return
            for parent_id in person.parents:
                yield RelationshipStep(person_id=parent_id, relation="parent")
            for child_id in person.children:
                yield RelationshipStep(person_id=child_id, relation="child")
            for link in person.spouses:
                yield RelationshipStep(person_id=link.spouse_id, relation="spouse")

        return calculate_relationship(start, target, neighbours)
