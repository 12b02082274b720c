"""
GEDCOM 5.5 / 5.5.1 / 7.0 reading.

Handles:
- Tokenizing raw text into (level, xref, tag, value) lines
- Rebuilding the level-nested record tree (with CONT/CONC joining)
- Converting records to entities and linking the family graph
- Decoding files from disk
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Iterator

from family_graph.core.converter import RecordConverter
from family_graph.core.linker import link_family_graph
from family_graph.core.models import ParsedGedcom

logger = logging.getLogger(__name__)

_LINE_PATTERN = re.compile(r'^(\d+)\s+(?:(@[^@\s]+@)\s+)?(\S+)(?:\s(.*))?$')
_POINTER_PATTERN = re.compile(r'^@[^@\s]+@$')
_NEWLINES = re.compile(r"\r\n|\r|\n")

CONTINUATION_TAGS = ("CONT", "CONC")


class GedcomParseError(ValueError):
    """Raised when input cannot be read as GEDCOM at all."""


def is_pointer(value: str | None) -> bool:
    """True for a bare cross-reference value like @I1@."""
    return bool(value) and bool(_POINTER_PATTERN.match(value.strip()))


def normalize_xref(xref: str) -> str:
    """Return an xref in @ID@ form ("I1" and "@I1@" both give "@I1@")."""
    xref = xref.strip()
    if xref.startswith("@") and xref.endswith("@") and len(xref) > 2:
        return xref
    return f"@{xref.strip('@')}@"


@dataclass
class GedcomLine:
    """A single parsed GEDCOM line."""
    level: int
    tag: str
    value: str | None = None
    xref: str | None = None  # @I123@ style ID
    line_number: int = 0

    @classmethod
    def parse(cls, line: str, line_number: int = 0) -> GedcomLine | None:
        """Parse a GEDCOM line, or return None if it is not one."""
        line = line.lstrip()
        if not line.strip():
            return None

        # Pattern: level [xref] tag [value]
        # Examples:
        #   0 @I1@ INDI
        #   1 NAME John /Smith/
        #   2 DATE 15 JAN 1862
        match = _LINE_PATTERN.match(line)
        if not match:
            return None

        tag = match.group(3).upper()
        value = match.group(4) or ""
        # CONC may rely on a trailing space to join words
        if tag != "CONC":
            value = value.rstrip()
        return cls(
            level=int(match.group(1)),
            tag=tag,
            value=value if value.strip() else None,
            xref=match.group(2),
            line_number=line_number,
        )


def tokenize(text: str) -> Iterator[GedcomLine]:
    """Yield GedcomLines in file order, skipping blank and malformed lines."""
    if text.startswith("\ufeff"):
        text = text[1:]

    for line_number, raw in enumerate(_NEWLINES.split(text), start=1):
        if not raw.strip():
            continue
        parsed = GedcomLine.parse(raw, line_number)
        if parsed is None:
            logger.debug("Skipping malformed line %d: %r", line_number, raw[:80])
            continue
        yield parsed


@dataclass
class RecordNode:
    """
    One tag in the record tree.

    A node without children is a plain field; repeated tags are simply
    several child nodes with the same tag, so lookups always return lists.
    """
    tag: str
    value: str | None = None
    xref: str | None = None
    children: list[RecordNode] = field(default_factory=list)

    @property
    def is_pointer(self) -> bool:
        return is_pointer(self.value)

    def all(self, tag: str) -> list[RecordNode]:
        """All direct children with the given tag, in file order."""
        return [child for child in self.children if child.tag == tag]

    def first(self, tag: str) -> RecordNode | None:
        """First direct child with the given tag."""
        for child in self.children:
            if child.tag == tag:
                return child
        return None

    def values(self, tag: str) -> list[str]:
        """Values of all direct children with the given tag."""
        return [child.value for child in self.children if child.tag == tag and child.value]

    def value_of(self, *path: str) -> str | None:
        """Value at a path of first-occurrence tags, like ('NAME', 'GIVN')."""
        node: RecordNode | None = self
        for tag in path:
            node = node.first(tag) if node else None
        return node.value if node else None

    def append_text(self, text: str | None, newline: bool) -> None:
        """Apply a CONT (newline=True) or CONC line to this node's value."""
        text = text or ""
        if self.value is None:
            self.value = text
        elif newline:
            self.value = f"{self.value}\n{text}"
        else:
            self.value = f"{self.value}{text}"

    def to_dict(self) -> dict[str, Any]:
        """Raw map of the subtree: tag -> list of values or nested maps."""
        result: dict[str, Any] = {}
        for child in self.children:
            if child.children:
                item: Any = child.to_dict()
                if child.value is not None:
                    item["_value"] = child.value
            else:
                item = child.value
            result.setdefault(child.tag, []).append(item)
        return result


class RecordBuilder:
    """
    Rebuilds level-0 records from a token stream.

    Keeps an explicit stack of open nodes: stack[n] is the open node at
    level n. A new line truncates the stack to its level and attaches to
    the node left on top.
    """

    def __init__(self):
        self.records: list[RecordNode] = []
        self._stack: list[RecordNode] = []

    def feed(self, line: GedcomLine) -> None:
        """Consume one line."""
        if line.level == 0:
            self._finish_record()
            record = RecordNode(tag=line.tag, value=line.value, xref=line.xref)
            self._stack = [record]
            return

        if not self._stack:
            logger.debug("Line %d appears before any record, ignoring", line.line_number)
            return

        del self._stack[line.level:]
        parent = self._stack[-1]

        if line.tag in CONTINUATION_TAGS:
            parent.append_text(line.value, newline=line.tag == "CONT")
            return

        node = RecordNode(tag=line.tag, value=line.value, xref=line.xref)
        parent.children.append(node)
        self._stack.append(node)

    def close(self) -> list[RecordNode]:
        """Finish the last record and return all records."""
        self._finish_record()
        return self.records

    def _finish_record(self) -> None:
        if self._stack:
            self.records.append(self._stack[0])
        self._stack = []


def build_records(lines: Iterable[GedcomLine]) -> list[RecordNode]:
    """Run a token stream through a RecordBuilder."""
    builder = RecordBuilder()
    for line in lines:
        builder.feed(line)
    return builder.close()


class GedcomParser:
    """
    GEDCOM text to family graph.

    Runs tokenizer, record builder, converter and linker in order and
    returns a fully linked ParsedGedcom, or raises GedcomParseError.
    """

    def __init__(self, encoding: str = "utf-8-sig"):
        self.encoding = encoding

    def parse(self, content: str) -> ParsedGedcom:
        """Parse decoded GEDCOM text."""
        if not isinstance(content, str):
            raise GedcomParseError(
                f"Expected decoded GEDCOM text, got {type(content).__name__}"
            )

        records = build_records(tokenize(content))
        if not records:
            raise GedcomParseError("No GEDCOM records found; is this a GEDCOM file?")

        parsed = RecordConverter().convert(records)
        link_family_graph(parsed.people, parsed.families)

        logger.info(
            "Parsed GEDCOM: %d people, %d families, %d sources, %d media",
            len(parsed.people), len(parsed.families),
            len(parsed.sources), len(parsed.media),
        )
        return parsed

    def decode(self, data: bytes) -> str:
        """Decode raw file bytes with the configured encoding."""
        try:
            return data.decode(self.encoding)
        except (UnicodeDecodeError, LookupError) as e:
            raise GedcomParseError(f"Could not decode GEDCOM as {self.encoding}: {e}") from e

    def parse_bytes(self, data: bytes) -> ParsedGedcom:
        """Decode and parse raw file bytes."""
        return self.parse(self.decode(data))

    def load(self, path: str | Path) -> ParsedGedcom:
        """Read and parse a GEDCOM file."""
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise GedcomParseError(f"Could not read {path}: {e}") from e
        return self.parse_bytes(data)


def parse_gedcom(content: str) -> ParsedGedcom:
    """Parse decoded GEDCOM text with default settings."""
    return GedcomParser().parse(content)


def read_gedcom_file(path: str | Path, encoding: str = "utf-8-sig") -> ParsedGedcom:
    """Read, decode and parse a GEDCOM file."""
    return GedcomParser(encoding=encoding).load(path)
