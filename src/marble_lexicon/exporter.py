"""Render validated lexicon data to normalized XML, one file per language."""

from __future__ import annotations

import logging
from pathlib import Path

from lxml import etree

from marble_lexicon.config import DictionaryConfig
from marble_lexicon.exceptions import ExportError
from marble_lexicon.identifiers import clean_id
from marble_lexicon.models import (
    OCCURRENCE_TYPE,
    EntriesByLanguage,
    Entry,
    Sense,
    SubDomain,
    Taxonomy,
    TaxonomiesByLanguage,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0"
ROOT_TAG = "LexicalReferenceText"


def output_filename(language: str) -> str:
    return f"lexicon_{language}.xml"


def write_lexicons(
    output_dir: str | Path,
    entries: EntriesByLanguage,
    rules: DictionaryConfig,
    data_version: str,
    taxonomies: TaxonomiesByLanguage | None = None,
) -> list[Path]:
    """Write ``lexicon_<language>.xml`` for every language in *entries*."""
    output_dir = Path(output_dir)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ExportError(f"Cannot create output directory {output_dir}: {e}") from e

    written = []
    for language, by_lemma in entries.items():
        path = output_dir / output_filename(language)
        root = build_document(
            by_lemma, language, rules, data_version,
            (taxonomies or {}).get(language),
        )
        write_document(root, path)
        logger.info("Generated %s with %d entries", path, len(by_lemma))
        written.append(path)
    return written


def write_document(root: etree._Element, path: str | Path) -> None:
    try:
        etree.ElementTree(root).write(
            str(path), encoding="UTF-8", xml_declaration=True, pretty_print=True
        )
    except OSError as e:
        raise ExportError(f"Failed to write {path}: {e}") from e


def build_document(
    by_lemma: dict[str, Entry],
    language: str,
    rules: DictionaryConfig,
    data_version: str,
    taxonomies: dict[str, Taxonomy] | None = None,
) -> etree._Element:
    """Build the ``LexicalReferenceText`` tree for one language."""
    root = etree.Element(ROOT_TAG)
    root.set("SchemaVersion", SCHEMA_VERSION)
    root.set("Id", rules.dictionary.value)
    root.set("Title", rules.title)
    root.set("DataVersion", data_version)
    root.set("Language", language)

    entries_elem = etree.SubElement(root, "Entries")
    for lemma in sorted(by_lemma):
        _add_entry(entries_elem, by_lemma[lemma], rules.corpus_id)

    if taxonomies:
        taxonomies_elem = etree.SubElement(root, "Taxonomies")
        for taxonomy in taxonomies.values():
            tax_elem = etree.SubElement(taxonomies_elem, "Taxonomy")
            tax_elem.set("Id", taxonomy.id)
            tax_elem.set("Title", taxonomy.title)
            _add_subdomains(etree.SubElement(tax_elem, "SubDomains"), taxonomy.subdomains)

    return root


def _add_entry(parent: etree._Element, entry: Entry, corpus_id: str) -> None:
    entry_elem = etree.SubElement(parent, "Entry")
    entry_elem.set("Id", clean_id(entry.id))
    entry_elem.set("Lemma", entry.lemma)

    if entry.strongs_codes:
        codes_elem = etree.SubElement(entry_elem, "StrongsCodes")
        for code in entry.strongs_codes:
            etree.SubElement(codes_elem, "StrongsCode").text = code

    senses_elem = etree.SubElement(entry_elem, "Senses")
    for sense in entry.senses:
        _add_sense(senses_elem, sense, corpus_id)


def _add_sense(parent: etree._Element, sense: Sense, corpus_id: str) -> None:
    sense_elem = etree.SubElement(parent, "Sense")
    sense_elem.set("Id", clean_id(sense.id))
    etree.SubElement(sense_elem, "Definition").text = sense.definition

    glosses_elem = etree.SubElement(sense_elem, "Glosses")
    for gloss in sense.glosses:
        etree.SubElement(glosses_elem, "Gloss").text = gloss

    if sense.occurrences:
        occurrences_elem = etree.SubElement(sense_elem, "Occurrences")
        corpus_elem = etree.SubElement(occurrences_elem, "Corpus")
        corpus_elem.set("Id", corpus_id)
        for occurrence in sense.occurrences:
            occ_elem = etree.SubElement(corpus_elem, "Occurrence")
            occ_elem.set("Type", OCCURRENCE_TYPE)
            occ_elem.text = occurrence

    if sense.domains:
        domains_elem = etree.SubElement(sense_elem, "Domains")
        for domain in sense.domains:
            domain_elem = etree.SubElement(domains_elem, "Domain")
            domain_elem.set("Taxonomy", domain.taxonomy)
            domain_elem.set("Code", domain.code)
            domain_elem.text = domain.label


def _add_subdomains(container: etree._Element, subdomains: list[SubDomain]) -> None:
    pending = [(container, subdomains)]
    while pending:
        parent, children = pending.pop()
        for sub in children:
            sub_elem = etree.SubElement(parent, "SubDomain")
            sub_elem.set("Code", sub.code)
            if sub.label:
                sub_elem.set("Name", sub.label)
            if sub.subdomains:
                pending.append((etree.SubElement(sub_elem, "SubDomains"), sub.subdomains))
