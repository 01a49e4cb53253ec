"""Read MARBLE lexicon files into per-language entries and senses."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from lxml import etree

from marble_lexicon import references
from marble_lexicon.config import DictionaryConfig
from marble_lexicon.exceptions import DataImportError
from marble_lexicon.identifiers import taxonomy_id, transform_domain_code
from marble_lexicon.models import (
    ENTRY_PREFIX,
    SENSE_PREFIX,
    Domain,
    EntriesByLanguage,
    Entry,
    ExtractionStats,
    PositionalIndex,
    Sense,
    SenseType,
)
from marble_lexicon.xmlio import element_text, parse_document

logger = logging.getLogger(__name__)

LEXICON_FILE_RE = re.compile(r"^\w{4}-\d{2}\.xml$", re.IGNORECASE)

# A contextual domain labelled "-" carries grammatical, not semantic, information
_GRAMMATICAL_DOMAIN = "-"


def find_lexicon_files(directory: str | Path) -> list[Path]:
    """Return lexicon source files (e.g. ``SDBG-01.XML``) in name order."""
    directory = Path(directory)
    return sorted(
        p for p in directory.iterdir() if p.is_file() and LEXICON_FILE_RE.match(p.name)
    )


def extract_lexicon_files(
    directory: str | Path,
    rules: DictionaryConfig,
    entries: EntriesByLanguage | None = None,
) -> tuple[EntriesByLanguage, ExtractionStats]:
    """Extract every lexicon file in *directory*.

    A file that cannot be parsed is logged and skipped.
    """
    if entries is None:
        entries = {}
    stats = ExtractionStats()

    files = find_lexicon_files(directory)
    stats.files_found = len(files)
    logger.info("Found %d lexicon files in %s", len(files), directory)

    for path in files:
        try:
            extract_lexicon_file(path, rules, entries, stats)
        except DataImportError as e:
            stats.files_failed += 1
            logger.error("Error processing lexicon file %s: %s", path, e)
            continue
        stats.files_processed += 1

    return entries, stats


def extract_lexicon_file(
    path: str | Path,
    rules: DictionaryConfig,
    entries: EntriesByLanguage,
    stats: ExtractionStats | None = None,
) -> None:
    root = parse_document(path)
    extract_lexicon_document(root, rules, entries, stats, source=Path(path).name)


def extract_lexicon_document(
    root: etree._Element,
    rules: DictionaryConfig,
    entries: EntriesByLanguage,
    stats: ExtractionStats | None = None,
    source: str = "<document>",
) -> None:
    """Add every ``Lexicon_Entry`` under *root* to *entries*."""
    if stats is None:
        stats = ExtractionStats()
    for position, record in enumerate(root.iter("Lexicon_Entry")):
        stats.entries_read += 1
        if not _extract_entry(record, position, rules, entries, source):
            stats.entries_skipped += 1


def extract_definition_and_glosses(elem: etree._Element) -> tuple[str, list[str]]:
    """Return the short definition and the unique, non-empty glosses."""
    definition = element_text(elem.find(".//DefinitionShort"))

    glosses: list[str] = []
    container = elem.find(".//Glosses")
    if container is not None:
        for gloss_elem in container.iter("Gloss"):
            gloss = element_text(gloss_elem)
            if gloss and gloss not in glosses:
                glosses.append(gloss)
    return definition, glosses


# ---------------------------------------------------------------------------
# Entry walk
# ---------------------------------------------------------------------------

def _extract_entry(
    record: etree._Element,
    position: int,
    rules: DictionaryConfig,
    entries: EntriesByLanguage,
    source: str,
) -> bool:
    lemma = record.get("Lemma", "")
    entry_id = record.get("Id", "")
    if not lemma or not entry_id:
        logger.warning("Entry ID or lemma is missing for entry %d in file %s", position, source)
        return False

    version = _parse_version(record.get("Version"))
    if not rules.include_entry(version):
        logger.warning(
            "Skipping entry %r (%s) with version %d in file %s", lemma, entry_id, version, source
        )
        return False

    strongs = [
        code for code in (element_text(s) for s in record.iterfind("StrongCodes/Strong")) if code
    ]
    lexical_taxonomy = taxonomy_id(rules.dictionary, SenseType.LEXICAL)
    contextual_taxonomy = taxonomy_id(rules.dictionary, SenseType.CONTEXTUAL)

    def add_sense(language: str, sense: Sense) -> None:
        by_lemma = entries.setdefault(language, {})
        entry = by_lemma.get(lemma)
        if entry is None:
            entry = Entry(id=f"{ENTRY_PREFIX}{entry_id}", lemma=lemma, strongs_codes=list(strongs))
            by_lemma[lemma] = entry
        entry.senses.append(sense)

    for bf_index, base_form in enumerate(record.iter("BaseForm")):
        base_form_id = base_form.get("Id", "")
        if not base_form_id:
            logger.warning("BaseForm ID is missing for entry %s in file %s", entry_id, source)
            continue

        for lm_index, lex_meaning in enumerate(base_form.iter("LEXMeaning")):
            if rules.excludes_meaning(lex_meaning.get("IsBiblicalTerm", "")):
                continue
            lex_meaning_id = lex_meaning.get("Id", "")
            if not lex_meaning_id:
                logger.warning(
                    "LEXMeaning ID is missing for entry %s, base form %s in file %s",
                    entry_id, base_form_id, source,
                )
                continue

            lex_domains = _extract_domains(
                lex_meaning, lexical_taxonomy, "LEXDomains/LEXDomain",
                subdomain_path="LEXSubDomains/LEXSubDomain", source=source,
            )
            core_domains = _extract_domains(
                lex_meaning, contextual_taxonomy, "LEXCoreDomains/LEXCoreDomain", source=source,
            )

            for lex_sense in lex_meaning.iter("LEXSense"):
                language = lex_sense.get("LanguageCode", "")
                if not language:
                    logger.warning(
                        "Language code is missing for LEXSense in entry %s, base form %s in file %s",
                        entry_id, base_form_id, source,
                    )
                    continue
                definition, glosses = extract_definition_and_glosses(lex_sense)
                add_sense(language, Sense(
                    id=f"{SENSE_PREFIX}{entry_id}-{base_form_id}-{lex_meaning_id}",
                    index=PositionalIndex(bf_index, lm_index),
                    definition=definition,
                    glosses=glosses,
                    domains=combine_domains(lex_domains, core_domains),
                ))

            if not rules.include_contextual(version):
                logger.warning(
                    "Skipping contextual meanings for entry %r (%s), base form %s in file %s",
                    lemma, entry_id, base_form_id, source,
                )
                continue

            contextual = lex_meaning.iterfind("CONMeanings/ContextualMeaning")
            for cm_index, con_meaning in enumerate(contextual):
                con_meaning_id = con_meaning.get("Id", "")
                if not con_meaning_id:
                    logger.warning(
                        "ContextualMeaning ID is missing for entry %s, base form %s in file %s",
                        entry_id, base_form_id, source,
                    )
                    continue

                con_domains = _extract_domains(
                    con_meaning, contextual_taxonomy, "CONDomains/CONDomain", source=source,
                )
                occurrences = extract_con_references(con_meaning, source)

                for con_sense in con_meaning.iter("CONSense"):
                    language = con_sense.get("LanguageCode", "")
                    if not language:
                        logger.warning(
                            "Language code is missing for CONSense in entry %s, base form %s in file %s",
                            entry_id, base_form_id, source,
                        )
                        continue
                    definition, glosses = extract_definition_and_glosses(con_sense)
                    add_sense(language, Sense(
                        id=(
                            f"{SENSE_PREFIX}{entry_id}-{base_form_id}"
                            f"-{lex_meaning_id}-{con_meaning_id}"
                        ),
                        index=PositionalIndex(bf_index, lm_index, cm_index),
                        definition=definition,
                        glosses=glosses,
                        domains=combine_domains(con_domains, core_domains),
                        occurrences=list(occurrences),
                    ))

    return True


def _parse_version(value: str | None) -> int:
    try:
        return int(value) if value else 0
    except ValueError:
        return 0


# ---------------------------------------------------------------------------
# Domains and references
# ---------------------------------------------------------------------------

def _extract_domains(
    container: etree._Element,
    taxonomy: str,
    path: str,
    *,
    subdomain_path: str | None = None,
    source: str = "<document>",
) -> list[Domain]:
    """Collect domain annotations, preferring subdomains when present."""
    if subdomain_path is not None:
        domains = _domains_from(container, taxonomy, subdomain_path, source)
        if domains:
            return domains
    return _domains_from(container, taxonomy, path, source)


def _domains_from(
    container: etree._Element,
    taxonomy: str,
    path: str,
    source: str,
) -> list[Domain]:
    domains: list[Domain] = []
    tag = path.rsplit("/", 1)[-1]
    for elem in container.iterfind(path):
        label = element_text(elem)
        codes = transform_domain_code(elem.get("Code", ""))
        if not codes:
            if label == _GRAMMATICAL_DOMAIN:
                continue
            logger.warning(
                "Empty %s code with value %r for element %s in file %s",
                tag, label, container.get("Id"), source,
            )
            continue
        domains.extend(Domain(taxonomy, code, label) for code in codes)
    return domains


def combine_domains(*groups: list[Domain]) -> list[Domain]:
    """Concatenate domain lists, keeping the first of each (taxonomy, code)."""
    seen: set[tuple[str, str]] = set()
    combined: list[Domain] = []
    for group in groups:
        for domain in group:
            key = (domain.taxonomy, domain.code)
            if domain.code and key not in seen:
                seen.add(key)
                combined.append(domain)
    return combined


def extract_con_references(con_meaning: etree._Element, source: str = "<document>") -> list[str]:
    """Return canonical occurrences listed under ``CONReferences``.

    Only the first 14 characters of a reference are used; trailing notes
    such as ``{N:001}`` are ignored.
    """
    occurrences: list[str] = []
    duplicates: list[str] = []
    for ref_elem in con_meaning.iterfind("CONReferences/CONReference"):
        code = element_text(ref_elem)[:14]
        if not references.is_valid_encoded(code):
            logger.warning("Invalid CONReference ID: %r in file %s", code, source)
            continue
        if not references.is_text_position(code):
            logger.warning("Odd CONReference ID (skipped): %r in file %s", code, source)
            continue
        canonical = references.encoded_to_canonical(code)
        if not canonical:
            logger.warning(
                "Could not convert CONReference ID %r to a reference in file %s", code, source
            )
            continue
        if canonical in occurrences:
            duplicates.append(canonical)
            continue
        occurrences.append(canonical)

    if duplicates:
        logger.warning(
            "Duplicate CONReference IDs found in file %s: %s", source, ", ".join(duplicates)
        )
    return occurrences
