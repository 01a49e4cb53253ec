"""Database connection, DDL, and low-level insert helpers for the lexicon database."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any, Iterable, Sequence

from marble_lexicon.exceptions import DatabaseError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0"

# Rows per multi-row INSERT statement
BULK_INSERT_ROWS = 500

# ---------------------------------------------------------------------------
# DDL statements
# ---------------------------------------------------------------------------

_DDL = """
-- Meta table
CREATE TABLE IF NOT EXISTS meta (
    key TEXT NOT NULL,
    value TEXT,
    UNIQUE (key)
);

-- Reference texts, entries, senses
CREATE TABLE IF NOT EXISTS LexicalReferenceTexts (
    LexicalReferenceTextKey INTEGER PRIMARY KEY,
    Id TEXT NOT NULL,
    Version TEXT NOT NULL,
    UNIQUE (Id, Version)
);

CREATE TABLE IF NOT EXISTS Entries (
    EntryKey INTEGER PRIMARY KEY,
    LexicalReferenceTextKey INTEGER NOT NULL,
    Id TEXT NOT NULL,
    Lemma TEXT NOT NULL,
    UNIQUE (Id, LexicalReferenceTextKey),
    UNIQUE (Lemma, LexicalReferenceTextKey),
    FOREIGN KEY (LexicalReferenceTextKey) REFERENCES LexicalReferenceTexts (LexicalReferenceTextKey)
);

CREATE TABLE IF NOT EXISTS Languages (
    LanguageKey INTEGER PRIMARY KEY,
    BCP47Code TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS Senses (
    SenseKey INTEGER PRIMARY KEY,
    EntryKey INTEGER NOT NULL,
    LanguageKey INTEGER NOT NULL,
    Id TEXT NOT NULL,
    Definition TEXT,
    UNIQUE (Id, EntryKey, LanguageKey),
    FOREIGN KEY (EntryKey) REFERENCES Entries (EntryKey),
    FOREIGN KEY (LanguageKey) REFERENCES Languages (LanguageKey)
);

CREATE TABLE IF NOT EXISTS Glosses (
    SenseKey INTEGER NOT NULL,
    Gloss TEXT NOT NULL,
    PRIMARY KEY (SenseKey, Gloss),
    FOREIGN KEY (SenseKey) REFERENCES Senses (SenseKey)
) WITHOUT ROWID;

-- Corpora and taxonomies
CREATE TABLE IF NOT EXISTS Corpora (
    CorpusKey INTEGER PRIMARY KEY,
    Id TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS Taxonomies (
    TaxonomyKey INTEGER PRIMARY KEY,
    Id TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS TaxonomyDomains (
    TaxonomyDomainKey INTEGER PRIMARY KEY,
    TaxonomyKey INTEGER NOT NULL,
    ParentTaxonomyDomainKey INTEGER,
    DomainCode TEXT NOT NULL,
    UNIQUE (TaxonomyKey, DomainCode),
    FOREIGN KEY (TaxonomyKey) REFERENCES Taxonomies (TaxonomyKey),
    FOREIGN KEY (ParentTaxonomyDomainKey) REFERENCES TaxonomyDomains (TaxonomyDomainKey)
);

CREATE TABLE IF NOT EXISTS TaxonomyDomainLabels (
    TaxonomyDomainKey INTEGER NOT NULL,
    LanguageKey INTEGER NOT NULL,
    Label TEXT NOT NULL,
    PRIMARY KEY (TaxonomyDomainKey, LanguageKey),
    FOREIGN KEY (TaxonomyDomainKey) REFERENCES TaxonomyDomains (TaxonomyDomainKey)
) WITHOUT ROWID;

-- Strong's codes
CREATE TABLE IF NOT EXISTS EntryStrongsCodes (
    EntryKey INTEGER NOT NULL,
    StrongsCode TEXT NOT NULL,
    PRIMARY KEY (EntryKey, StrongsCode),
    FOREIGN KEY (EntryKey) REFERENCES Entries (EntryKey)
) WITHOUT ROWID;

CREATE TABLE IF NOT EXISTS SenseStrongsCodes (
    SenseKey INTEGER NOT NULL,
    StrongsCode TEXT NOT NULL,
    PRIMARY KEY (SenseKey, StrongsCode),
    FOREIGN KEY (SenseKey) REFERENCES Senses (SenseKey)
) WITHOUT ROWID;

-- Occurrences
CREATE TABLE IF NOT EXISTS EntryOccurrences (
    EntryKey INTEGER NOT NULL,
    CorpusKey INTEGER NOT NULL,
    BookNum INTEGER NOT NULL,
    ChapterNum INTEGER NOT NULL,
    VerseNum INTEGER NOT NULL,
    WordNum INTEGER NOT NULL,
    PRIMARY KEY (EntryKey, CorpusKey, BookNum, ChapterNum, VerseNum, WordNum),
    FOREIGN KEY (EntryKey) REFERENCES Entries (EntryKey),
    FOREIGN KEY (CorpusKey) REFERENCES Corpora (CorpusKey)
) WITHOUT ROWID;

CREATE TABLE IF NOT EXISTS SenseOccurrences (
    SenseKey INTEGER NOT NULL,
    CorpusKey INTEGER NOT NULL,
    BookNum INTEGER NOT NULL,
    ChapterNum INTEGER NOT NULL,
    VerseNum INTEGER NOT NULL,
    WordNum INTEGER NOT NULL,
    PRIMARY KEY (SenseKey, CorpusKey, BookNum, ChapterNum, VerseNum, WordNum),
    FOREIGN KEY (SenseKey) REFERENCES Senses (SenseKey),
    FOREIGN KEY (CorpusKey) REFERENCES Corpora (CorpusKey)
) WITHOUT ROWID;

-- Domain links (DomainCode is not a foreign key: the taxonomy may lack
-- a translation for the lexicon language)
CREATE TABLE IF NOT EXISTS EntryDomains (
    EntryKey INTEGER NOT NULL,
    TaxonomyKey INTEGER NOT NULL,
    DomainCode TEXT NOT NULL,
    PRIMARY KEY (EntryKey, TaxonomyKey, DomainCode),
    FOREIGN KEY (EntryKey) REFERENCES Entries (EntryKey),
    FOREIGN KEY (TaxonomyKey) REFERENCES Taxonomies (TaxonomyKey)
) WITHOUT ROWID;

CREATE TABLE IF NOT EXISTS SenseDomains (
    SenseKey INTEGER NOT NULL,
    TaxonomyKey INTEGER NOT NULL,
    DomainCode TEXT NOT NULL,
    PRIMARY KEY (SenseKey, TaxonomyKey, DomainCode),
    FOREIGN KEY (SenseKey) REFERENCES Senses (SenseKey),
    FOREIGN KEY (TaxonomyKey) REFERENCES Taxonomies (TaxonomyKey)
) WITHOUT ROWID;

-- Indexes
CREATE INDEX IF NOT EXISTS idx_entries_lemma ON Entries (Lemma);
CREATE INDEX IF NOT EXISTS idx_entryoccurrences_entry ON EntryOccurrences (EntryKey);
CREATE INDEX IF NOT EXISTS idx_entryoccurrences_reference ON EntryOccurrences (BookNum, ChapterNum, VerseNum);
CREATE INDEX IF NOT EXISTS idx_senseoccurrences_sense ON SenseOccurrences (SenseKey);
CREATE INDEX IF NOT EXISTS idx_senseoccurrences_reference ON SenseOccurrences (BookNum, ChapterNum, VerseNum);

-- Views
CREATE VIEW IF NOT EXISTS SenseOccurrenceView AS
SELECT
    s.SenseKey,
    lrt.Id AS Lexicon,
    c.Id AS SourceText,
    e.Lemma,
    s.Definition,
    so.BookNum,
    so.ChapterNum,
    so.VerseNum,
    so.WordNum,
    l.BCP47Code
FROM SenseOccurrences so
    JOIN Senses s ON so.SenseKey = s.SenseKey
    JOIN Entries e ON s.EntryKey = e.EntryKey
    JOIN Corpora c ON so.CorpusKey = c.CorpusKey
    JOIN Languages l ON s.LanguageKey = l.LanguageKey
    JOIN LexicalReferenceTexts lrt ON e.LexicalReferenceTextKey = lrt.LexicalReferenceTextKey;

CREATE VIEW IF NOT EXISTS EntryOccurrenceView AS
SELECT
    e.EntryKey,
    lrt.Id AS Lexicon,
    c.Id AS SourceText,
    e.Lemma,
    eo.BookNum,
    eo.ChapterNum,
    eo.VerseNum,
    eo.WordNum
FROM EntryOccurrences eo
    JOIN Entries e ON eo.EntryKey = e.EntryKey
    JOIN Corpora c ON eo.CorpusKey = c.CorpusKey
    JOIN LexicalReferenceTexts lrt ON e.LexicalReferenceTextKey = lrt.LexicalReferenceTextKey;

CREATE VIEW IF NOT EXISTS SenseDomainView AS
SELECT
    s.SenseKey,
    e.Lemma,
    s.Id AS SenseId,
    t.Id AS Taxonomy,
    sd.DomainCode,
    tdl.Label,
    l.BCP47Code
FROM SenseDomains sd
    JOIN Senses s ON sd.SenseKey = s.SenseKey
    JOIN Entries e ON s.EntryKey = e.EntryKey
    JOIN Taxonomies t ON sd.TaxonomyKey = t.TaxonomyKey
    JOIN Languages l ON s.LanguageKey = l.LanguageKey
    LEFT JOIN TaxonomyDomains td
        ON td.TaxonomyKey = sd.TaxonomyKey AND td.DomainCode = sd.DomainCode
    LEFT JOIN TaxonomyDomainLabels tdl
        ON tdl.TaxonomyDomainKey = td.TaxonomyDomainKey AND tdl.LanguageKey = s.LanguageKey;
"""

_BULK_PRAGMAS = (
    "PRAGMA synchronous = OFF",
    "PRAGMA journal_mode = MEMORY",
    "PRAGMA temp_store = MEMORY",
    "PRAGMA cache_size = -200000",
)

TABLES = (
    "LexicalReferenceTexts",
    "Entries",
    "Languages",
    "Senses",
    "Glosses",
    "Corpora",
    "Taxonomies",
    "TaxonomyDomains",
    "TaxonomyDomainLabels",
    "EntryStrongsCodes",
    "SenseStrongsCodes",
    "EntryOccurrences",
    "SenseOccurrences",
    "EntryDomains",
    "SenseDomains",
)


def connect(db_path: str | Path = ":memory:", *, bulk: bool = False) -> sqlite3.Connection:
    """Open a database connection.

    With ``bulk`` the connection trades durability for import speed.
    Transactions are managed explicitly by the caller.
    """
    conn = sqlite3.connect(str(db_path), isolation_level=None)
    conn.execute("PRAGMA foreign_keys = ON")
    if bulk:
        for pragma in _BULK_PRAGMAS:
            conn.execute(pragma)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection, schema_path: str | Path | None = None) -> None:
    """Create all tables if they don't exist. Set schema version.

    A *schema_path* replaces the built-in DDL; the meta table is always created.
    """
    ddl = _DDL if schema_path is None else Path(schema_path).read_text(encoding="utf-8")
    conn.executescript(ddl)
    conn.execute(
        "CREATE TABLE IF NOT EXISTS meta (key TEXT NOT NULL, value TEXT, UNIQUE (key))"
    )
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
        (SCHEMA_VERSION,),
    )
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) "
        "VALUES ('created_at', strftime('%Y-%m-%dT%H:%M:%f', 'now'))",
    )


def create_database(
    db_path: str | Path,
    schema_path: str | Path | None = None,
) -> sqlite3.Connection:
    """Create a fresh database at *db_path*, removing any existing file."""
    path = Path(db_path)
    if str(db_path) != ":memory:" and path.exists():
        logger.info("Removing existing database %s", path)
        path.unlink()
    conn = connect(db_path, bulk=True)
    init_db(conn, schema_path)
    return conn


def check_schema_version(conn: sqlite3.Connection) -> None:
    """Verify the database schema version is compatible."""
    try:
        row = conn.execute(
            "SELECT value FROM meta WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.OperationalError:
        # meta table doesn't exist - uninitialized DB
        return
    if row is None:
        return
    version = row[0]
    if version != SCHEMA_VERSION:
        raise DatabaseError(
            f"Incompatible schema version: {version} "
            f"(expected {SCHEMA_VERSION})"
        )


def optimize_database(conn: sqlite3.Connection) -> None:
    """Reclaim space and refresh query planner statistics."""
    logger.info("Optimizing database...")
    conn.execute("VACUUM")
    conn.execute("ANALYZE")


def table_counts(conn: sqlite3.Connection) -> dict[str, int]:
    counts = {}
    for table in TABLES:
        try:
            counts[table] = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
        except sqlite3.OperationalError:
            continue
    return counts


# ---------------------------------------------------------------------------
# Insert helpers
# ---------------------------------------------------------------------------

def insert(conn: sqlite3.Connection, table: str, values: dict[str, Any]) -> sqlite3.Cursor:
    """``INSERT OR IGNORE`` a single row."""
    columns = ", ".join(values)
    placeholders = ", ".join("?" for _ in values)
    return conn.execute(
        f"INSERT OR IGNORE INTO {table} ({columns}) VALUES ({placeholders})",
        tuple(values.values()),
    )


def insert_and_get_key(
    conn: sqlite3.Connection,
    table: str,
    key_column: str,
    values: dict[str, Any],
    lookup: dict[str, Any] | None = None,
) -> int:
    """Insert a row if absent and return its primary key.

    *lookup* names the natural key used to find an existing row; it
    defaults to *values*.
    """
    cur = insert(conn, table, values)
    if cur.rowcount:
        return cur.lastrowid
    lookup = values if lookup is None else lookup
    where = " AND ".join(f"{column} IS ?" for column in lookup)
    row = conn.execute(
        f"SELECT {key_column} FROM {table} WHERE {where}",
        tuple(lookup.values()),
    ).fetchone()
    if row is None:
        raise DatabaseError(f"Failed to get {key_column} from {table} for {lookup}")
    return row[0]


def bulk_insert(
    conn: sqlite3.Connection,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    chunk_size: int = BULK_INSERT_ROWS,
) -> None:
    """``INSERT OR IGNORE`` rows with multi-row statements."""
    rows = list(rows)
    if not rows:
        return
    row_placeholder = "(" + ", ".join("?" for _ in columns) + ")"
    column_list = ", ".join(columns)
    for start in range(0, len(rows), chunk_size):
        chunk = rows[start:start + chunk_size]
        sql = (
            f"INSERT OR IGNORE INTO {table} ({column_list}) VALUES "
            + ", ".join(row_placeholder for _ in chunk)
        )
        conn.execute(sql, [value for row in chunk for value in row])
