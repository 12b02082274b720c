"""Core models, GEDCOM parsing and the family data store."""

from family_graph.core.models import (
    DateRange,
    Event,
    Family,
    GenealogyDate,
    GenerationEntry,
    Location,
    Media,
    ParsedGedcom,
    Person,
    RelationshipResult,
    RelationshipStep,
    Sex,
    Source,
    SourceCitation,
    SpouseEntry,
    SpouseLink,
    TimelineEvent,
)
from family_graph.core.gedcom import (
    GedcomLine,
    GedcomParseError,
    GedcomParser,
    RecordBuilder,
    RecordNode,
    parse_gedcom,
    read_gedcom_file,
    tokenize,
)
from family_graph.core.converter import RecordConverter
from family_graph.core.linker import link_family_graph
from family_graph.core.store import FamilyDataStore

__all__ = [
    "DateRange",
    "Event",
    "Family",
    "GenealogyDate",
    "GenerationEntry",
    "Location",
    "Media",
    "ParsedGedcom",
    "Person",
    "RelationshipResult",
    "RelationshipStep",
    "Sex",
    "Source",
    "SourceCitation",
    "SpouseEntry",
    "SpouseLink",
    "TimelineEvent",
    "GedcomLine",
    "GedcomParseError",
    "GedcomParser",
    "RecordBuilder",
    "RecordNode",
    "parse_gedcom",
    "read_gedcom_file",
    "tokenize",
    "RecordConverter",
    "link_family_graph",
    "FamilyDataStore",
]
