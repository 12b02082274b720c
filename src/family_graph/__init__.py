"""
Family Graph

GEDCOM 5.5 / 5.5.1 / 7.0 parsing into a linked family graph, with
ancestor, descendant and relationship queries.
"""

__version__ = "0.1.0"

from family_graph.core.models import (
    Event,
    Family,
    GenealogyDate,
    Media,
    ParsedGedcom,
    Person,
    Source,
)
from family_graph.core.gedcom import GedcomParseError, GedcomParser, parse_gedcom
from family_graph.core.store import FamilyDataStore

__all__ = [
    "Event",
    "Family",
    "GenealogyDate",
    "Media",
    "ParsedGedcom",
    "Person",
    "Source",
    "GedcomParseError",
    "GedcomParser",
    "parse_gedcom",
    "FamilyDataStore",
]
