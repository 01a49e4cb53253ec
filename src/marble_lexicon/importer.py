"""Load normalized lexicon XML documents into the relational database."""

from __future__ import annotations

import logging
import sqlite3
from collections import deque
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Iterable

from lxml import etree

from marble_lexicon import db as _db
from marble_lexicon.exceptions import DatabaseError, DataImportError, LoadError
from marble_lexicon.exporter import ROOT_TAG, SCHEMA_VERSION
from marble_lexicon.models import OCCURRENCE_TYPE, LoadStats
from marble_lexicon.references import parse_canonical
from marble_lexicon.xmlio import element_text, parse_document

logger = logging.getLogger(__name__)

ENTRY_BATCH_SIZE = 100


class KeyCache:
    """Taxonomy and corpus keys created during one import run.

    Keys recorded inside a document's transaction stay pending until
    :meth:`commit`; :meth:`rollback` forgets them again.
    """

    def __init__(self) -> None:
        self.taxonomies: dict[str, int] = {}
        self.corpora: dict[str, int] = {}
        self._pending: list[tuple[dict[str, int], str]] = []

    def put(self, table: dict[str, int], name: str, key: int) -> None:
        table[name] = key
        self._pending.append((table, name))

    def commit(self) -> None:
        self._pending.clear()

    def rollback(self) -> None:
        for table, name in self._pending:
            table.pop(name, None)
        self._pending.clear()


class LexiconLoader:
    """Loads ``LexicalReferenceText`` documents, one transaction each."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        *,
        verbose: bool = False,
        batch_size: int = ENTRY_BATCH_SIZE,
    ) -> None:
        self._conn = conn
        self.verbose = verbose
        self.batch_size = batch_size
        self.cache = KeyCache()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        """Run the block in one transaction; roll back on any error."""
        self._conn.execute("BEGIN")
        try:
            yield
        except BaseException:
            self._conn.rollback()
            self.cache.rollback()
            raise
        else:
            self._conn.commit()
            self.cache.commit()

    # ------------------------------------------------------------------
    # Files and directories
    # ------------------------------------------------------------------

    def load_paths(self, directories: Iterable[str | Path]) -> LoadStats:
        """Load every ``*.xml`` file found (recursively) under *directories*.

        A document that fails to load is rolled back and counted; the run
        continues with the next one.
        """
        stats = LoadStats()
        for directory in directories:
            logger.info("Processing directory: %s", directory)
            for path in find_documents(directory):
                try:
                    loaded = self.load_file(path)
                except LoadError as e:
                    logger.error("%s", e)
                    stats.documents_failed += 1
                    stats.failures.append(str(path))
                    continue
                if loaded:
                    stats.documents_loaded += 1
                else:
                    stats.documents_skipped += 1
        return stats

    def load_file(self, path: str | Path) -> bool:
        """Load one document. Returns False if it was skipped.

        Raises:
            LoadError: if the document could not be parsed or stored.
        """
        logger.info("Processing %s...", path)
        try:
            root = parse_document(path)
        except DataImportError as e:
            raise LoadError(str(e)) from e
        return self.load_document(root, source=str(path))

    def load_document(self, root: etree._Element, source: str = "<document>") -> bool:
        if root.tag != ROOT_TAG:
            logger.warning("Skipping %s: not a valid %s file", source, ROOT_TAG)
            return False
        schema_version = root.get("SchemaVersion")
        if schema_version != SCHEMA_VERSION:
            logger.warning("Skipping %s: unsupported schema version %s", source, schema_version)
            return False
        text_id = root.get("Id")
        data_version = root.get("DataVersion")
        language = root.get("Language")
        if not text_id or not data_version or not language:
            logger.warning("Skipping %s: missing required attributes", source)
            return False

        try:
            with self.transaction():
                language_key = _db.insert_and_get_key(
                    self._conn, "Languages", "LanguageKey", {"BCP47Code": language}
                )
                text_key = _db.insert_and_get_key(
                    self._conn, "LexicalReferenceTexts", "LexicalReferenceTextKey",
                    {"Id": text_id, "Version": data_version},
                )
                for taxonomy in root.iterfind("Taxonomies/Taxonomy"):
                    self._load_taxonomy(taxonomy, language_key)
                self._load_entries(root.findall("Entries/Entry"), text_key, language_key, source)
        except (sqlite3.Error, DatabaseError) as e:
            if self.verbose:
                self.log_table_counts()
            raise LoadError(f"Error loading {source}: {e}") from e

        logger.info("Loaded %s", source)
        return True

    def log_table_counts(self) -> None:
        for table, count in _db.table_counts(self._conn).items():
            logger.info("  %s: %d rows", table, count)

    # ------------------------------------------------------------------
    # Taxonomies
    # ------------------------------------------------------------------

    def _taxonomy_key(self, taxonomy_id: str) -> int:
        key = self.cache.taxonomies.get(taxonomy_id)
        if key is None:
            key = _db.insert_and_get_key(
                self._conn, "Taxonomies", "TaxonomyKey", {"Id": taxonomy_id}
            )
            self.cache.put(self.cache.taxonomies, taxonomy_id, key)
        return key

    def _corpus_key(self, corpus_id: str) -> int:
        key = self.cache.corpora.get(corpus_id)
        if key is None:
            key = _db.insert_and_get_key(self._conn, "Corpora", "CorpusKey", {"Id": corpus_id})
            self.cache.put(self.cache.corpora, corpus_id, key)
        return key

    def _load_taxonomy(self, taxonomy: etree._Element, language_key: int) -> None:
        taxonomy_id = taxonomy.get("Id")
        if not taxonomy_id:
            logger.warning("Skipping taxonomy: missing Id attribute")
            return
        taxonomy_key = self._taxonomy_key(taxonomy_id)

        pending = deque(
            (sub, None) for sub in taxonomy.iterfind("SubDomains/SubDomain")
        )
        while pending:
            sub, parent_key = pending.popleft()
            code = sub.get("Code")
            if not code:
                logger.warning("Skipping subdomain of %s: missing Code attribute", taxonomy_id)
                continue
            domain_key = _db.insert_and_get_key(
                self._conn, "TaxonomyDomains", "TaxonomyDomainKey",
                {"TaxonomyKey": taxonomy_key, "ParentTaxonomyDomainKey": parent_key,
                 "DomainCode": code},
                lookup={"TaxonomyKey": taxonomy_key, "DomainCode": code},
            )
            name = sub.get("Name")
            if name:
                _db.insert(self._conn, "TaxonomyDomainLabels", {
                    "TaxonomyDomainKey": domain_key,
                    "LanguageKey": language_key,
                    "Label": name,
                })
            pending.extend((child, domain_key) for child in sub.iterfind("SubDomains/SubDomain"))

    # ------------------------------------------------------------------
    # Entries and senses
    # ------------------------------------------------------------------

    def _load_entries(
        self,
        entries: list[etree._Element],
        text_key: int,
        language_key: int,
        source: str,
    ) -> None:
        total = len(entries)
        for start in range(0, total, self.batch_size):
            for entry in entries[start:start + self.batch_size]:
                self._load_entry(entry, text_key, language_key)
            logger.debug(
                "%s: %d/%d entries", source, min(start + self.batch_size, total), total
            )

    def _load_entry(self, entry: etree._Element, text_key: int, language_key: int) -> None:
        entry_id = entry.get("Id")
        lemma = entry.get("Lemma")
        if not entry_id or not lemma:
            logger.warning("Skipping entry: missing Id or Lemma attribute")
            return

        entry_key = _db.insert_and_get_key(
            self._conn, "Entries", "EntryKey",
            {"LexicalReferenceTextKey": text_key, "Id": entry_id, "Lemma": lemma},
            lookup={"Id": entry_id, "LexicalReferenceTextKey": text_key},
        )
        self._load_strongs(entry, "EntryStrongsCodes", "EntryKey", entry_key)
        self._load_occurrences(entry, "EntryOccurrences", "EntryKey", entry_key)
        self._load_domains(entry, "EntryDomains", "EntryKey", entry_key)

        for sense in entry.iterfind("Senses/Sense"):
            self._load_sense(sense, entry_key, language_key, entry_id)

    def _load_sense(
        self,
        sense: etree._Element,
        entry_key: int,
        language_key: int,
        entry_id: str,
    ) -> None:
        sense_id = sense.get("Id")
        if not sense_id:
            logger.warning("Skipping sense of entry %s: missing Id attribute", entry_id)
            return

        definition = element_text(sense.find("Definition")) or None
        sense_key = _db.insert_and_get_key(
            self._conn, "Senses", "SenseKey",
            {"EntryKey": entry_key, "LanguageKey": language_key,
             "Id": sense_id, "Definition": definition},
            lookup={"Id": sense_id, "EntryKey": entry_key, "LanguageKey": language_key},
        )
        self._load_strongs(sense, "SenseStrongsCodes", "SenseKey", sense_key)

        glosses = [element_text(g) for g in sense.iterfind("Glosses/Gloss")]
        _db.bulk_insert(
            self._conn, "Glosses", ("SenseKey", "Gloss"),
            [(sense_key, gloss) for gloss in glosses if gloss],
        )
        self._load_occurrences(sense, "SenseOccurrences", "SenseKey", sense_key)
        self._load_domains(sense, "SenseDomains", "SenseKey", sense_key)

    def _load_strongs(self, elem: etree._Element, table: str, key_column: str, key: int) -> None:
        codes = [element_text(c) for c in elem.iterfind("StrongsCodes/StrongsCode")]
        _db.bulk_insert(
            self._conn, table, (key_column, "StrongsCode"),
            [(key, code) for code in codes if code],
        )

    def _load_occurrences(
        self,
        elem: etree._Element,
        table: str,
        key_column: str,
        key: int,
    ) -> None:
        for corpus in elem.iterfind("Occurrences/Corpus"):
            corpus_id = corpus.get("Id")
            if not corpus_id:
                logger.warning("Skipping corpus: missing Id attribute")
                continue
            corpus_key = self._corpus_key(corpus_id)

            rows = []
            for occurrence in corpus.iterfind("Occurrence"):
                if occurrence.get("Type") != OCCURRENCE_TYPE:
                    logger.warning("Skipping occurrence: type is not %s", OCCURRENCE_TYPE)
                    continue
                reference = parse_canonical(element_text(occurrence))
                if reference is None:
                    continue
                rows.append((
                    key, corpus_key, reference.book_num, reference.chapter_num,
                    reference.verse_num, reference.word_num,
                ))
            _db.bulk_insert(
                self._conn, table,
                (key_column, "CorpusKey", "BookNum", "ChapterNum", "VerseNum", "WordNum"),
                rows,
            )

    def _load_domains(self, elem: etree._Element, table: str, key_column: str, key: int) -> None:
        for domain in elem.iterfind("Domains/Domain"):
            taxonomy_id = domain.get("Taxonomy")
            code = domain.get("Code")
            if not taxonomy_id or not code:
                logger.warning("Skipping domain: missing required attributes")
                continue
            _db.insert(self._conn, table, {
                key_column: key,
                "TaxonomyKey": self._taxonomy_key(taxonomy_id),
                "DomainCode": code,
            })


def find_documents(directory: str | Path) -> list[Path]:
    """All ``*.xml`` files under *directory*, recursively, in path order."""
    directory = Path(directory)
    return sorted(p for p in directory.rglob("*") if p.is_file() and p.suffix.lower() == ".xml")


def import_lexicons(
    directories: Iterable[str | Path],
    db_path: str | Path,
    *,
    schema_path: str | Path | None = None,
    verbose: bool = False,
) -> LoadStats:
    """Build a new database at *db_path* from the documents in *directories*.

    Raises:
        DatabaseError: if *schema_path* records an incompatible schema version.
    """
    logger.info("Initializing database at %s...", db_path)
    conn = _db.create_database(db_path, schema_path)
    try:
        if schema_path is not None:
            # a custom schema may record its own version in meta
            _db.check_schema_version(conn)
        loader = LexiconLoader(conn, verbose=verbose)
        stats = loader.load_paths(directories)
        _db.optimize_database(conn)
    finally:
        conn.close()
    return stats
