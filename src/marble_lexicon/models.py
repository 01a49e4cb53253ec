"""Domain model dataclasses and enums for marble-lexicon."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class DictionaryType(str, Enum):
    """MARBLE dictionaries handled by the converter."""

    GREEK = "SDBG"
    HEBREW = "SDBH"


class SenseType(str, Enum):
    """Kind of meaning a sense or taxonomy describes."""

    LEXICAL = "Lexical"
    CONTEXTUAL = "Contextual"


ENTRY_PREFIX = "entry-"
SENSE_PREFIX = "sense-"
OCCURRENCE_TYPE = "U23003"


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class PositionalIndex:
    """Position of a sense inside its entry's base form / meaning tree.

    ``con_meaning`` is ``None`` for lexical senses.
    """

    base_form: int
    lex_meaning: int
    con_meaning: int | None = None

    @property
    def is_lexical(self) -> bool:
        return self.con_meaning is None

    @classmethod
    def parse(cls, index: str) -> PositionalIndex | None:
        """Parse a 6 or 9 digit cross-reference index."""
        if len(index) not in (6, 9) or not (index.isascii() and index.isdigit()):
            return None
        con = int(index[6:9]) if len(index) == 9 else None
        return cls(int(index[0:3]), int(index[3:6]), con)


@dataclass(frozen=True, slots=True)
class Domain:
    """Semantic-domain annotation attached to a sense."""

    taxonomy: str
    code: str
    label: str = ""


@dataclass(frozen=True, slots=True)
class Reference:
    """A parsed canonical scripture location."""

    book_num: int
    chapter_num: int
    verse_num: int
    word_num: int


# ---------------------------------------------------------------------------
# Lexicon structures
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class Sense:
    id: str
    index: PositionalIndex
    definition: str = ""
    glosses: list[str] = field(default_factory=list)
    domains: list[Domain] = field(default_factory=list)
    occurrences: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.definition and not self.glosses


@dataclass(slots=True)
class Entry:
    id: str
    lemma: str
    strongs_codes: list[str] = field(default_factory=list)
    senses: list[Sense] = field(default_factory=list)


# language code -> lemma -> Entry
EntriesByLanguage = dict[str, dict[str, Entry]]


@dataclass(slots=True)
class SubDomain:
    code: str
    label: str = ""
    subdomains: list[SubDomain] = field(default_factory=list)


@dataclass(slots=True)
class Taxonomy:
    id: str
    title: str
    subdomains: list[SubDomain] = field(default_factory=list)


# language code -> taxonomy id -> Taxonomy
TaxonomiesByLanguage = dict[str, dict[str, Taxonomy]]


# ---------------------------------------------------------------------------
# Run statistics
# ---------------------------------------------------------------------------

@dataclass
class ExtractionStats:
    """Counters collected while reading lexicon files."""

    files_found: int = 0
    files_processed: int = 0
    files_failed: int = 0
    entries_read: int = 0
    entries_skipped: int = 0


@dataclass
class LinkStats:
    """Counters collected while attaching cross-references."""

    files_processed: int = 0
    files_skipped: int = 0
    files_failed: int = 0
    total_links: int = 0
    bad_links: int = 0
    odd_links: int = 0
    mismatched_links: int = 0
    processed_links: int = 0
    unresolved_links: int = 0

    def merge(self, other: LinkStats) -> None:
        self.total_links += other.total_links
        self.bad_links += other.bad_links
        self.odd_links += other.odd_links
        self.mismatched_links += other.mismatched_links
        self.processed_links += other.processed_links
        self.unresolved_links += other.unresolved_links


@dataclass
class RemovalStats:
    """Entries and senses pruned per language, plus what remains."""

    entries_removed: dict[str, int] = field(default_factory=dict)
    senses_removed: dict[str, int] = field(default_factory=dict)
    entries_remaining: dict[str, int] = field(default_factory=dict)
    senses_remaining: dict[str, int] = field(default_factory=dict)
    # languages dropped because of an id collision
    failed_languages: list[str] = field(default_factory=list)

    @property
    def total_entries_removed(self) -> int:
        return sum(self.entries_removed.values())

    @property
    def total_senses_removed(self) -> int:
        return sum(self.senses_removed.values())

    @property
    def total_entries(self) -> int:
        return sum(self.entries_remaining.values())

    @property
    def total_senses(self) -> int:
        return sum(self.senses_remaining.values())


@dataclass
class LoadStats:
    """Outcome of loading normalized documents into the database."""

    documents_loaded: int = 0
    documents_skipped: int = 0
    documents_failed: int = 0
    failures: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.documents_failed == 0
