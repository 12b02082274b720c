"""Tests for the family data store."""

from __future__ import annotations

import threading

import pytest

from family_graph.config import Settings
from family_graph.core.gedcom import GedcomParseError
from family_graph.core.models import ParsedGedcom, Person
from family_graph.core.store import FamilyDataStore


HALF_SIBLINGS = """0 HEAD
0 @I1@ INDI
1 NAME Father /Doe/
1 SEX M
0 @I2@ INDI
1 NAME First /Wife/
1 SEX F
0 @I3@ INDI
1 NAME Elder /Doe/
0 @I4@ INDI
1 NAME Second /Wife/
1 SEX F
0 @I5@ INDI
1 NAME Younger /Doe/
0 @F1@ FAM
1 HUSB @I1@
1 WIFE @I2@
1 CHIL @I3@
0 @F2@ FAM
1 HUSB @I1@
1 WIFE @I4@
1 CHIL @I5@
0 TRLR
"""


def _chain(length: int) -> ParsedGedcom:
    """P0 -> P1 -> ... as parent -> child edges, without families."""
    people = [Person(id=f"P{i}", name=f"Person {i}") for i in range(length)]
    for parent, child in zip(people, people[1:]):
        parent.children.append(child.id)
        child.parents.append(parent.id)
    return ParsedGedcom(people=people)


class TestLoading:
    """Tests for loading and replacing graphs."""

    def test_empty_store(self):
        """Test queries on a store with nothing loaded."""
        store = FamilyDataStore()
        assert not store.is_loaded
        assert store.get_person("@I1@") is None
        assert store.search_people("smith") == []
        assert store.get_ancestors("@I1@") == []
        assert store.get_timeline_events() == []
        assert store.get_statistics()["individuals"] == 0
        assert not store.calculate_relationship("@I1@", "@I2@").found

    def test_load_file(self, sample_gedcom_file):
        """Test loading a file from disk."""
        store = FamilyDataStore()
        parsed = store.load_file(sample_gedcom_file)
        assert store.is_loaded
        assert len(parsed.people) == 9
        assert len(store.get_all_people()) == 9

    def test_load_replaces_graph(self, store: FamilyDataStore):
        """Test a second load fully replaces the first."""
        store.load_text(HALF_SIBLINGS)
        assert len(store.get_all_people()) == 5
        assert store.get_person("@I1@").name == "Father Doe"
        assert store.get_person("@I9@") is None
        assert store.search_people("lathrop") == []

    def test_failed_load_keeps_graph(self, store: FamilyDataStore):
        """Test a parse failure leaves the previous graph in place."""
        with pytest.raises(GedcomParseError):
            store.load_text("this is not a GEDCOM file")
        assert len(store.get_all_people()) == 9
        assert store.get_person("@I1@").name == "William Lathrop Sr."

    def test_clear(self, store: FamilyDataStore):
        """Test clear empties the store."""
        store.clear()
        assert not store.is_loaded
        assert store.get_all_people() == []

    def test_concurrent_reads_during_load(self, store: FamilyDataStore, sample_gedcom_content: str):
        """Test readers always see a complete graph while loads run."""
        sizes = set()

        def reader():
            for _ in range(200):
                sizes.add(len(store.get_all_people()))

        def writer():
            for _ in range(5):
                store.load_text(HALF_SIBLINGS)
                store.load_text(sample_gedcom_content)

        threads = [threading.Thread(target=reader) for _ in range(3)]
        threads.append(threading.Thread(target=writer))
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sizes <= {5, 9}


class TestLookups:
    """Tests for single-record lookups and search."""

    def test_get_person(self, store: FamilyDataStore):
        """Test looking up a person by id."""
        person = store.get_person("@I1@")
        assert person.name == "William Lathrop Sr."
        assert person.birth.display_date == "15 MAR 1890"

    def test_get_person_without_delimiters(self, store: FamilyDataStore):
        """Test ids without @ delimiters."""
        assert store.get_person("I3").name == "William Lathrop Jr."

    def test_get_unknown_person(self, store: FamilyDataStore):
        """Test unknown and empty ids."""
        assert store.get_person("@I404@") is None
        assert store.get_person("") is None
        assert store.get_person(None) is None

    def test_get_family(self, store: FamilyDataStore):
        """Test looking up a family by id."""
        assert store.get_family("F2").husband_id == "@I3@"
        assert store.get_family("@F404@") is None

    def test_search_case_insensitive(self, store: FamilyDataStore):
        """Test search matches names regardless of case."""
        ids = [p.id for p in store.search_people("lathrop")]
        assert ids == ["@I1@", "@I3@", "@I4@", "@I6@"]
        assert len(store.search_people("LATHROP")) == 4

    def test_search_given_name(self, store: FamilyDataStore):
        """Test search on a given name."""
        assert [p.id for p in store.search_people("dorothy")] == ["@I5@"]

    def test_search_name_parts(self):
        """Test GIVN and SURN match even when the full name does not."""
        store = FamilyDataStore()
        store.load_text(
            "0 @I1@ INDI\n1 NAME Bill /Smyth/\n2 GIVN William\n2 SURN Smith\n"
            "0 @I2@ INDI\n1 NAME Mary /Jones/\n0 TRLR"
        )
        assert store.get_person("@I1@").name == "Bill Smyth"
        assert [p.id for p in store.search_people("william")] == ["@I1@"]
        assert [p.id for p in store.search_people("SMITH")] == ["@I1@"]
        assert [p.id for p in store.search_people("bill")] == ["@I1@"]

    def test_search_no_match(self, store: FamilyDataStore):
        """Test a query matching nobody."""
        assert store.search_people("zzz") == []

    def test_statistics(self, store: FamilyDataStore):
        """Test record counts and version."""
        stats = store.get_statistics()
        assert stats == {
            "individuals": 9,
            "families": 3,
            "sources": 1,
            "media": 1,
            "version": "5.5.1",
        }

    def test_collections(self, store: FamilyDataStore):
        """Test sources, media, families and header."""
        assert [s.title for s in store.get_all_sources()] == ["Massachusetts Vital Records"]
        assert store.get_all_media()[0].file == "photos/william.jpg"
        assert len(store.get_all_families()) == 3
        assert store.get_header()["GEDC"][0]["VERS"] == ["5.5.1"]


class TestTraversal:
    """Tests for ancestor and descendant walks."""

    def test_ancestors(self, store: FamilyDataStore):
        """Test ancestors come in pre-order with generations."""
        entries = store.get_ancestors("@I6@")
        assert [(e.person.id, e.generation) for e in entries] == [
            ("@I3@", 1), ("@I1@", 2), ("@I2@", 2), ("@I5@", 1),
        ]

    def test_descendants(self, store: FamilyDataStore):
        """Test descendants come in pre-order."""
        entries = store.get_descendants("@I1@")
        assert [(e.person.id, e.generation) for e in entries] == [
            ("@I3@", 1), ("@I6@", 2), ("@I4@", 1), ("@I7@", 2),
        ]

    def test_generation_limit(self, store: FamilyDataStore):
        """Test max_generations stops the walk."""
        entries = store.get_descendants("@I1@", max_generations=1)
        assert [e.person.id for e in entries] == ["@I3@", "@I4@"]
        assert store.get_descendants("@I1@", max_generations=0) == []

    def test_default_limit_from_settings(self):
        """Test the walk depth comes from settings."""
        store = FamilyDataStore(Settings(max_generations=3))
        store.load(_chain(8))
        assert [e.person.id for e in store.get_descendants("P0")] == ["P1", "P2", "P3"]
        assert len(store.get_descendants("P0", max_generations=20)) == 7

    def test_unknown_person(self, store: FamilyDataStore):
        """Test unknown ids give empty lists."""
        assert store.get_ancestors("@I404@") == []
        assert store.get_descendants("@I404@") == []

    def test_cycle_terminates(self):
        """Test a person listed as their own ancestor does not loop."""
        a = Person(id="A", name="A", parents=["B"], children=["B"])
        b = Person(id="B", name="B", parents=["A"], children=["A"])
        store = FamilyDataStore()
        store.load(ParsedGedcom(people=[a, b]))

        assert [e.person.id for e in store.get_ancestors("A", max_generations=50)] == ["B"]
        assert [e.person.id for e in store.get_descendants("B", max_generations=50)] == ["A"]

    def test_deep_chain(self):
        """Test a long line of descent does not hit recursion limits."""
        store = FamilyDataStore()
        store.load(_chain(3000))
        entries = store.get_descendants("P0", max_generations=5000)
        assert len(entries) == 2999
        assert entries[-1].generation == 2999

    def test_dangling_edge_is_skipped(self):
        """Test an edge to a missing person is skipped."""
        person = Person(id="A", name="A", parents=["missing"])
        store = FamilyDataStore()
        store.load(ParsedGedcom(people=[person]))
        assert store.get_ancestors("A") == []
        assert store.get_parents("A") == []


class TestImmediateFamily:
    """Tests for one-hop relatives."""

    def test_parents_and_children(self, store: FamilyDataStore):
        """Test parents and children in order."""
        assert [p.id for p in store.get_parents("@I3@")] == ["@I1@", "@I2@"]
        assert [p.id for p in store.get_children("@I1@")] == ["@I3@", "@I4@"]
        assert store.get_parents("@I1@") == []

    def test_siblings(self, store: FamilyDataStore):
        """Test full siblings are listed once."""
        assert [p.id for p in store.get_siblings("@I3@")] == ["@I4@"]
        assert store.get_siblings("@I6@") == []
        assert store.get_siblings("@I404@") == []

    def test_half_siblings(self):
        """Test half-siblings through one parent."""
        store = FamilyDataStore()
        store.load_text(HALF_SIBLINGS)
        assert [p.id for p in store.get_siblings("@I3@")] == ["@I5@"]
        assert [p.id for p in store.get_siblings("@I5@")] == ["@I3@"]

    def test_spouses(self, store: FamilyDataStore):
        """Test spouse entries carry family and marriage."""
        spouses = store.get_spouses("@I4@")
        assert len(spouses) == 1
        assert spouses[0].person.id == "@I8@"
        assert spouses[0].family_id == "@F3@"
        assert spouses[0].marriage is None

        william = store.get_spouses("@I1@")[0]
        assert william.person.name == "Mary Johnson"
        assert william.marriage.year == 1915

    def test_multiple_spouses(self):
        """Test spouses from several families."""
        store = FamilyDataStore()
        store.load_text(HALF_SIBLINGS)
        assert [s.person.id for s in store.get_spouses("@I1@")] == ["@I2@", "@I4@"]


class TestTimeline:
    """Tests for timeline events."""

    def test_timeline_order(self, store: FamilyDataStore):
        """Test events are sorted by year."""
        events = store.get_timeline_events()
        years = [e.year for e in events]
        assert years == sorted(years)
        assert years == [1890, 1892, 1915, 1920, 1922, 1943, 1945, 1949, 1965]

    def test_timeline_kinds(self, store: FamilyDataStore):
        """Test births, deaths and marriages are all listed."""
        events = store.get_timeline_events()
        assert [e.kind for e in events].count("birth") == 6
        assert [e.kind for e in events].count("death") == 1

        marriages = [e for e in events if e.kind == "marriage"]
        assert [m.title for m in marriages] == [
            "William Lathrop Sr. married Mary Johnson",
            "William Lathrop Jr. married Dorothy Smith",
        ]
        assert marriages[0].place == "Boston, Massachusetts, USA"

    def test_timeline_titles(self, store: FamilyDataStore):
        """Test event titles."""
        events = store.get_timeline_events()
        assert events[0].title == "William Lathrop Sr. was born"
        assert events[-1].title == "William Lathrop Sr. passed away"

    def test_undated_events_are_left_out(self):
        """Test events without a year are skipped."""
        store = FamilyDataStore()
        store.load_text("0 @I1@ INDI\n1 NAME A /B/\n1 BIRT\n2 PLAC Nowhere\n0 TRLR")
        assert store.get_timeline_events() == []

    def test_marriage_without_male_spouse(self):
        """Test the marriage policies on a couple with no male spouse."""
        content = (
            "0 @I1@ INDI\n1 NAME Ann /A/\n1 SEX F\n"
            "0 @I2@ INDI\n1 NAME Beth /B/\n1 SEX F\n"
            "0 @F1@ FAM\n1 HUSB @I1@\n1 WIFE @I2@\n1 MARR\n2 DATE 2005\n0 TRLR"
        )
        store = FamilyDataStore()
        store.load_text(content)
        assert store.get_timeline_events() == []

        per_family = FamilyDataStore(Settings(timeline_marriage_policy="per_family"))
        per_family.load_text(content)
        events = per_family.get_timeline_events()
        assert len(events) == 1
        assert events[0].title == "Ann A married Beth B"

    def test_marriage_with_two_male_spouses(self):
        """Test a family whose spouses are both male gets one marriage entry."""
        store = FamilyDataStore()
        store.load_text(
            "0 @I1@ INDI\n1 NAME Carl /C/\n1 SEX M\n"
            "0 @I2@ INDI\n1 NAME Dan /D/\n1 SEX M\n"
            "0 @F1@ FAM\n1 HUSB @I1@\n1 WIFE @I2@\n1 MARR\n2 DATE 2010\n0 TRLR"
        )
        marriages = [e for e in store.get_timeline_events() if e.kind == "marriage"]
        assert len(marriages) == 1
        assert marriages[0].title == "Carl C married Dan D"
        assert marriages[0].year == 2010

    def test_other_events(self):
        """Test non-vital events are opt-in."""
        store = FamilyDataStore()
        store.load_text(
            "0 @I1@ INDI\n1 NAME A /B/\n1 BIRT\n2 DATE 1900\n"
            "1 RESI\n2 DATE 1930\n2 PLAC Hartford\n0 TRLR"
        )
        assert len(store.get_timeline_events()) == 1

        events = store.get_timeline_events(include_other_events=True)
        assert [e.kind for e in events] == ["birth", "event"]
        assert events[1].title == "A B: RESI"


class TestLocations:
    """Tests for events grouped by place."""

    def test_locations(self, store: FamilyDataStore):
        """Test events grouped by place with coordinates."""
        locations = store.get_locations()
        assert [loc.place for loc in locations] == [
            "Boston, Massachusetts, USA",
            "Hartford, Connecticut, USA",
        ]

        boston = locations[0]
        assert boston.latitude == 42.3601
        assert boston.longitude == -71.0589
        assert [(o.person_id, o.event_type) for o in boston.occurrences] == [
            ("@I1@", "BIRT"), ("@I3@", "BIRT"),
        ]
        assert locations[1].latitude is None
