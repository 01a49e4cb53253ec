"""Build per-language semantic-domain taxonomies from MARBLE domain files."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path

from lxml import etree

from marble_lexicon.config import DictionaryConfig
from marble_lexicon.exceptions import DataImportError
from marble_lexicon.identifiers import taxonomy_id, transform_domain_code
from marble_lexicon.models import SenseType, SubDomain, TaxonomiesByLanguage, Taxonomy
from marble_lexicon.xmlio import element_text, parse_document

logger = logging.getLogger(__name__)

TOP_LEVEL = 1


@dataclass
class DomainRecord:
    """One ``SemanticDomain`` definition with its localized labels."""

    code: str
    level: int
    has_subdomains: bool
    labels: dict[str, str] = field(default_factory=dict)


def find_domain_files(directory: str | Path, rules: DictionaryConfig) -> list[Path]:
    """Return ``<DICT>-DOMAINS*.XML`` files for the dictionary."""
    prefix = f"{rules.dictionary.value}-DOMAINS"
    directory = Path(directory)
    return sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.name.upper().startswith(prefix) and p.suffix.upper() == ".XML"
    )


def sense_type_for_file(path: str | Path) -> SenseType:
    """``*DOMAINS1`` files hold lexical domains, the others contextual ones."""
    return SenseType.LEXICAL if Path(path).stem.endswith("1") else SenseType.CONTEXTUAL


def build_taxonomy_files(
    directory: str | Path,
    rules: DictionaryConfig,
    taxonomies: TaxonomiesByLanguage | None = None,
) -> TaxonomiesByLanguage:
    if taxonomies is None:
        taxonomies = {}

    files = find_domain_files(directory, rules)
    if not files:
        logger.warning("No domain files found for %s in %s", rules.dictionary.value, directory)
        return taxonomies

    logger.info("Found %d domain files to process", len(files))
    for path in files:
        try:
            root = parse_document(path)
        except DataImportError as e:
            logger.error("Error processing domain file %s: %s", path, e)
            continue
        build_taxonomies(root, rules, sense_type_for_file(path), taxonomies, source=path.name)

    logger.info("Processed %d languages for domain taxonomies", len(taxonomies))
    return taxonomies


def read_domain_records(root: etree._Element, source: str = "<document>") -> dict[str, DomainRecord]:
    """Index ``SemanticDomain`` records by normalized code.

    Records without exactly one usable code are skipped.
    """
    records: dict[str, DomainRecord] = {}
    for position, elem in enumerate(root.iter("SemanticDomain")):
        code_elem = elem.find("Code")
        if code_elem is None:
            logger.warning("Semantic domain #%d has no Code element in %s", position, source)
            continue
        codes = transform_domain_code(element_text(code_elem))
        if not codes:
            logger.warning("Semantic domain #%d has empty Code in %s", position, source)
            continue
        if len(codes) != 1:
            logger.warning(
                "Semantic domain #%d has multiple codes (%s) in %s",
                position, ", ".join(codes), source,
            )
            continue

        try:
            level = int(element_text(elem.find("Level")) or 0)
        except ValueError:
            level = 0
        labels: dict[str, str] = {}
        for loc in elem.iterfind("SemanticDomainLocalizations/SemanticDomainLocalization"):
            language = loc.get("LanguageCode", "")
            if language and language not in labels:
                labels[language] = element_text(loc.find("Label"))

        records[codes[0]] = DomainRecord(
            code=codes[0],
            level=level,
            has_subdomains=element_text(elem.find("HasSubDomains")) == "true",
            labels=labels,
        )
    return records


def build_taxonomies(
    root: etree._Element,
    rules: DictionaryConfig,
    sense_type: SenseType,
    taxonomies: TaxonomiesByLanguage,
    source: str = "<document>",
) -> None:
    """Build one taxonomy per localization language found under *root*."""
    records = read_domain_records(root, source)

    languages: list[str] = []
    for record in records.values():
        for language in record.labels:
            if language not in languages:
                languages.append(language)

    tax_id = taxonomy_id(rules.dictionary, sense_type)
    title = f"{sense_type.value} Semantic Domains for {rules.language_name}"
    for language in languages:
        taxonomies.setdefault(language, {})[tax_id] = Taxonomy(
            id=tax_id,
            title=title,
            subdomains=build_domain_tree(records, language),
        )

    logger.info(
        "Processed %d languages for %s domain taxonomy in %s",
        len(languages), sense_type.value, source,
    )


def build_domain_tree(records: dict[str, DomainRecord], language: str) -> list[SubDomain]:
    """Arrange *records* into a tree using their level counters.

    A child's code extends its parent's code with ``"."`` and sits exactly
    one level deeper; children are only expanded when ``HasSubDomains`` is set.
    """
    by_level: dict[int, list[DomainRecord]] = {}
    for record in records.values():
        by_level.setdefault(record.level, []).append(record)

    roots = [
        SubDomain(r.code, r.labels.get(language, "")) for r in by_level.get(TOP_LEVEL, [])
    ]
    pending = deque((node, TOP_LEVEL) for node in roots)
    while pending:
        node, level = pending.popleft()
        prefix = node.code + "."
        for record in by_level.get(level + 1, []):
            if not record.code.startswith(prefix):
                continue
            child = SubDomain(record.code, record.labels.get(language, ""))
            node.subdomains.append(child)
            if record.has_subdomains:
                pending.append((child, level + 1))
    return roots
