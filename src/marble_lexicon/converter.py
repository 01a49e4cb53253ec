"""Conversion pipeline: MARBLE source files to normalized lexicon XML."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from marble_lexicon.config import ConversionConfig
from marble_lexicon.exceptions import ConfigError
from marble_lexicon.exporter import write_lexicons
from marble_lexicon.extractor import extract_lexicon_files
from marble_lexicon.linker import link_files
from marble_lexicon.models import (
    EntriesByLanguage,
    ExtractionStats,
    LinkStats,
    RemovalStats,
    TaxonomiesByLanguage,
)
from marble_lexicon.taxonomy import build_taxonomy_files
from marble_lexicon.validator import validate_lexicon

logger = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    """What a conversion run read, linked, pruned and wrote."""
    extraction: ExtractionStats
    links: LinkStats
    removal: RemovalStats
    taxonomy_languages: list[str] = field(default_factory=list)
    output_files: list[Path] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def failed_languages(self) -> list[str]:
        return self.removal.failed_languages

    @property
    def success(self) -> bool:
        return not self.removal.failed_languages


def _require_dir(path: Path | None, label: str) -> Path:
    if path is None:
        raise ConfigError(f"No {label} directory configured")
    if not Path(path).is_dir():
        raise ConfigError(f"{label.capitalize()} directory '{path}' does not exist")
    return Path(path)


def convert(config: ConversionConfig) -> ConversionResult:
    """Run extraction, linking, taxonomy building, validation and export.

    Languages whose ids collide after normalization are not written; see
    ConversionResult.failed_languages.

    Raises:
        ConfigError: if a required directory is missing.
        ExportError: if an output file cannot be written.
    """
    input_dir = _require_dir(config.input_dir, "input")
    links_dir = _require_dir(config.links_dir, "MARBLELinks")
    if config.output_dir is None:
        raise ConfigError("No output directory configured")
    rules = config.rules
    started = time.perf_counter()

    logger.info("Step 1: Processing lexicon files...")
    entries: EntriesByLanguage = {}
    entries, extraction = _timed(
        "Lexicon processing", extract_lexicon_files, input_dir, rules, entries
    )

    logger.info("Step 2: Processing MARBLELinks files to add occurrences...")
    links = _timed("MARBLELinks processing", link_files, links_dir, entries, rules.dictionary)

    taxonomies: TaxonomiesByLanguage = {}
    if config.domains_dir is not None and Path(config.domains_dir).is_dir():
        logger.info("Step 3: Processing domain files to build taxonomies...")
        _timed("Domain processing", build_taxonomy_files, config.domains_dir, rules, taxonomies)
    else:
        logger.info("Skipping domain processing: no domain directory provided or it does not exist")

    logger.info("Validating entries and senses...")
    removal = _timed("Validation", validate_lexicon, entries)

    logger.info("Writing output files...")
    output_files = _timed(
        "Writing output", write_lexicons,
        config.output_dir, entries, rules, config.data_version, taxonomies,
    )

    return ConversionResult(
        extraction=extraction,
        links=links,
        removal=removal,
        taxonomy_languages=sorted(taxonomies),
        output_files=output_files,
        duration_seconds=time.perf_counter() - started,
    )


def _timed(label, func, *args):
    start = time.perf_counter()
    result = func(*args)
    logger.info("%s completed in %.2f seconds", label, time.perf_counter() - start)
    return result
