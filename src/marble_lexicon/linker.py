"""Attach MARBLELinks scripture occurrences to extracted senses."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from lxml import etree

from marble_lexicon import references
from marble_lexicon.exceptions import DataImportError
from marble_lexicon.models import (
    DictionaryType,
    EntriesByLanguage,
    LinkStats,
    PositionalIndex,
    Sense,
)
from marble_lexicon.xmlio import element_text, parse_document

logger = logging.getLogger(__name__)

LINKS_FILE_RE = re.compile(r"^MARBLELinks-([A-Z0-9]{3})\.XML$", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class LexicalLink:
    """A parsed ``DICT:lemma:index[:label]`` descriptor."""

    dictionary: str
    lemma: str
    index: PositionalIndex
    raw_index: str


def parse_lexical_link(text: str) -> LexicalLink | None:
    """Parse a lexical link descriptor; ``None`` if it is malformed."""
    parts = text.split(":")
    if len(parts) < 3:
        return None
    dictionary, lemma, raw_index = parts[0].upper(), parts[1], parts[2]
    if not lemma or not raw_index:
        logger.warning("Invalid lexical link format: %r", text)
        return None
    index = PositionalIndex.parse(raw_index)
    if index is None:
        logger.warning("Invalid sense index %r in link %r", raw_index, text)
        return None
    return LexicalLink(dictionary, lemma, index, raw_index)


def find_link_files(directory: str | Path) -> list[Path]:
    directory = Path(directory)
    return sorted(p for p in directory.iterdir() if p.is_file() and LINKS_FILE_RE.match(p.name))


def link_files(
    directory: str | Path,
    entries: EntriesByLanguage,
    dictionary: DictionaryType,
) -> LinkStats:
    """Process every ``MARBLELinks-<BOOK>.XML`` file in *directory*.

    Files for books outside the supported book list are skipped.
    """
    stats = LinkStats()
    files = find_link_files(directory)
    logger.info("Found %d MARBLELinks files to process", len(files))

    for path in files:
        match = LINKS_FILE_RE.match(path.name)
        if match and match.group(1).upper() not in references.NUMBER_BY_BOOK:
            stats.files_skipped += 1
            continue
        try:
            file_stats = link_file(path, entries, dictionary)
        except DataImportError as e:
            stats.files_failed += 1
            logger.error("Error processing MARBLELinks file %s: %s", path, e)
            continue
        stats.merge(file_stats)
        stats.files_processed += 1
        logger.debug("Processed %d/%d link files", stats.files_processed, len(files))

    return stats


def link_file(
    path: str | Path,
    entries: EntriesByLanguage,
    dictionary: DictionaryType,
) -> LinkStats:
    root = parse_document(path)
    return link_document(root, entries, dictionary, source=Path(path).name)


def link_document(
    root: etree._Element,
    entries: EntriesByLanguage,
    dictionary: DictionaryType,
    source: str = "<document>",
) -> LinkStats:
    """Attach the occurrences of every ``MARBLELink`` under *root*."""
    stats = LinkStats()
    expected = DictionaryType(dictionary).value

    for marble_link in root.iter("MARBLELink"):
        code = marble_link.get("Id", "")
        if not references.is_valid_encoded(code):
            logger.warning("Invalid MARBLELink ID: %r in file %s", code, source)
            stats.total_links += 1
            stats.bad_links += 1
            continue
        if not references.is_text_position(code):
            stats.total_links += 1
            stats.odd_links += 1
            continue
        reference = references.encoded_to_canonical(code)
        if not reference:
            logger.warning("Could not convert MARBLELink ID %r in file %s", code, source)
            stats.total_links += 1
            stats.bad_links += 1
            continue

        for link_elem in marble_link.iter("LexicalLink"):
            stats.total_links += 1
            text = element_text(link_elem)
            if not text:
                logger.warning("Empty LexicalLink in MARBLELink %r in file %s", code, source)
                stats.bad_links += 1
                continue
            if text.split(":", 1)[0].upper() != expected:
                stats.mismatched_links += 1
                continue
            link = parse_lexical_link(text)
            if link is None:
                stats.bad_links += 1
                continue
            if attach_occurrence(entries, link, reference):
                stats.processed_links += 1
            else:
                logger.warning(
                    "Could not find sense index %r for lemma %r to add occurrence %r",
                    link.raw_index, link.lemma, reference,
                )
                stats.unresolved_links += 1

    return stats


def attach_occurrence(entries: EntriesByLanguage, link: LexicalLink, reference: str) -> bool:
    """Add *reference* to the matching sense in every language.

    Returns True if at least one sense received the occurrence.
    """
    attached = False
    for by_lemma in entries.values():
        entry = by_lemma.get(link.lemma)
        if entry is None:
            continue
        sense = find_sense(entry.senses, link.index)
        if sense is not None:
            sense.occurrences.append(reference)
            attached = True
    return attached


def find_sense(senses: list[Sense], index: PositionalIndex) -> Sense | None:
    for sense in senses:
        if sense.index == index:
            return sense
    return None
