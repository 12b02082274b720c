"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from family_graph.core.gedcom import parse_gedcom
from family_graph.core.models import ParsedGedcom
from family_graph.core.store import FamilyDataStore


# =============================================================================
# Sample Data Fixtures
# =============================================================================

SAMPLE_GEDCOM = """0 HEAD
1 SOUR TestApp
2 VERS 1.0
1 GEDC
2 VERS 5.5.1
2 FORM LINEAGE-LINKED
1 CHAR UTF-8
0 @I1@ INDI
1 NAME William /Lathrop/ Sr.
2 GIVN William
2 SURN Lathrop
1 SEX M
1 BIRT
2 DATE 15 MAR 1890
2 PLAC Boston, Massachusetts, USA
3 MAP
4 LATI N42.3601
4 LONG W71.0589
1 DEAT
2 DATE 22 NOV 1965
2 PLAC Hartford, Connecticut, USA
1 OCCU Factory Foreman
1 NOTE William immigrated as a young child
2 CONT and worked his way up
2 CONC  to foreman.
1 SOUR @S1@
2 PAGE p. 12
1 OBJE @M1@
1 _CUSTOM opaque value
1 FAMS @F1@
0 @I2@ INDI
1 NAME Mary /Johnson/
1 SEX F
1 BIRT
2 DATE ABT 1892
1 NOTE @N1@
1 FAMS @F1@
0 @I3@ INDI
1 NAME William /Lathrop/ Jr.
1 SEX M
1 BIRT
2 DATE 3 APR 1920
2 PLAC Boston, Massachusetts, USA
1 FAMC @F1@
1 FAMS @F2@
0 @I4@ INDI
1 NAME Helen /Lathrop/
1 SEX F
1 BIRT
2 DATE 1922
1 FAMC @F1@
1 FAMS @F3@
0 @I5@ INDI
1 NAME Dorothy /Smith/
1 SEX F
1 FAMS @F2@
0 @I6@ INDI
1 NAME Robert /Lathrop/
1 SEX M
1 BIRT
2 DATE 1945
1 FAMC @F2@
0 @I7@ INDI
1 NAME Susan /Brown/
1 SEX F
1 BIRT
2 DATE BET 1949 AND 1951
1 FAMC @F3@
0 @I8@ INDI
1 NAME George /Brown/
1 SEX M
1 FAMS @F3@
0 @I9@ INDI
1 NAME Ann /Stranger/
1 SEX F
0 @F1@ FAM
1 HUSB @I1@
1 WIFE @I2@
1 CHIL @I3@
1 CHIL @I4@
1 MARR
2 DATE 12 JUN 1915
2 PLAC Boston, Massachusetts, USA
0 @F2@ FAM
1 HUSB @I3@
1 WIFE @I5@
1 CHIL @I6@
1 MARR
2 DATE 1943
0 @F3@ FAM
1 HUSB @I8@
1 WIFE @I4@
1 CHIL @I7@
0 @S1@ SOUR
1 TITL Massachusetts Vital Records
1 AUTH Commonwealth of Massachusetts
1 PUBL Boston, 1900
0 @M1@ OBJE
1 FILE photos/william.jpg
2 FORM jpg
3 TYPE photo
2 TITL William Lathrop portrait
0 @N1@ NOTE Mary kept the family
1 CONT bible.
this line is malformed
0 TRLR
"""


@pytest.fixture
def sample_gedcom_content() -> str:
    """Three-generation Lathrop family plus one unrelated person."""
    return SAMPLE_GEDCOM


@pytest.fixture
def sample_gedcom_file(tmp_path: Path, sample_gedcom_content: str) -> Path:
    """Create a temporary GEDCOM file."""
    gedcom_path = tmp_path / "lathrop.ged"
    gedcom_path.write_text(sample_gedcom_content, encoding="utf-8")
    return gedcom_path


@pytest.fixture
def parsed_sample(sample_gedcom_content: str) -> ParsedGedcom:
    """Parsed and linked sample family."""
    return parse_gedcom(sample_gedcom_content)


@pytest.fixture
def store(sample_gedcom_content: str) -> FamilyDataStore:
    """Store loaded with the sample family."""
    data_store = FamilyDataStore()
    data_store.load_text(sample_gedcom_content)
    return data_store
