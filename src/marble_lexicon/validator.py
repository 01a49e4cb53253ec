"""Deduplication and integrity checks for extracted lexicon data.

Runs per language, in this order:

1. condense every sense id;
2. merge or drop senses that share a condensed id within an entry;
3. require entry and sense ids to be unique across the language;
4. prune senses without definition and glosses, then entries left empty;
5. drop duplicate occurrences from each sense.
"""

from __future__ import annotations

import logging

from marble_lexicon.exceptions import DuplicateIdError
from marble_lexicon.identifiers import condense_sense_id
from marble_lexicon.models import EntriesByLanguage, Entry, RemovalStats, Sense

logger = logging.getLogger(__name__)


def validate_lexicon(entries: EntriesByLanguage) -> RemovalStats:
    """Normalize *entries* in place and return what was pruned.

    A language in which two entries or two senses end up with the same id
    is removed from *entries* and listed in ``failed_languages``; the other
    languages are still validated.
    """
    stats = RemovalStats()
    for language in list(entries):
        by_lemma = entries[language]
        condense_ids(by_lemma)
        for entry in by_lemma.values():
            merge_duplicate_senses(language, entry)
        try:
            check_unique_ids(language, by_lemma)
        except DuplicateIdError as e:
            logger.error("Dropping language %r: %s", language, e)
            del entries[language]
            stats.failed_languages.append(language)
            continue
        remove_empty(language, by_lemma, stats)
        remove_duplicate_occurrences(by_lemma)
    return stats


def condense_ids(by_lemma: dict[str, Entry]) -> None:
    for entry in by_lemma.values():
        for sense in entry.senses:
            sense.id = condense_sense_id(sense.id)


def can_combine(first: Sense, second: Sense) -> bool:
    """True when the two senses do not both carry a definition or glosses."""
    return (not first.definition or not second.definition) and (
        not first.glosses or not second.glosses
    )


def merge_duplicate_senses(language: str, entry: Entry) -> None:
    """Collapse senses of *entry* that share an id."""
    unique: dict[str, Sense] = {}
    for sense in entry.senses:
        kept = unique.get(sense.id)
        if kept is None:
            unique[sense.id] = sense
            continue

        if can_combine(kept, sense):
            if not kept.definition:
                kept.definition = sense.definition
            if not kept.glosses:
                kept.glosses = list(sense.glosses)
            for domain in sense.domains:
                if domain not in kept.domains:
                    kept.domains.append(domain)
            kept.occurrences.extend(sense.occurrences)
            logger.warning(
                "Senses combined in language %r, lemma %r, sense ID %r",
                language, entry.lemma, sense.id,
            )
        else:
            logger.warning(
                "Duplicate sense removed in language %r, lemma %r, sense ID %r, glosses: [%s]",
                language, entry.lemma, sense.id, ", ".join(sense.glosses),
            )
    entry.senses = list(unique.values())


def check_unique_ids(language: str, by_lemma: dict[str, Entry]) -> None:
    entry_ids: set[str] = set()
    sense_ids: set[str] = set()
    for entry in by_lemma.values():
        if entry.id in entry_ids:
            raise DuplicateIdError(f"Duplicate entry ID found in language {language!r}: {entry.id}")
        entry_ids.add(entry.id)
        for sense in entry.senses:
            if sense.id in sense_ids:
                raise DuplicateIdError(
                    f"Duplicate sense ID found in language {language!r}: {sense.id}"
                )
            sense_ids.add(sense.id)


def remove_empty(language: str, by_lemma: dict[str, Entry], stats: RemovalStats) -> None:
    senses_removed = 0
    entries_removed = 0
    for lemma in list(by_lemma):
        entry = by_lemma[lemma]
        kept = [s for s in entry.senses if not s.is_empty]
        senses_removed += len(entry.senses) - len(kept)
        entry.senses = kept
        if not kept:
            del by_lemma[lemma]
            entries_removed += 1

    stats.entries_removed[language] = entries_removed
    stats.senses_removed[language] = senses_removed
    stats.entries_remaining[language] = len(by_lemma)
    stats.senses_remaining[language] = sum(len(e.senses) for e in by_lemma.values())


def remove_duplicate_occurrences(by_lemma: dict[str, Entry]) -> None:
    for entry in by_lemma.values():
        for sense in entry.senses:
            unique = list(dict.fromkeys(sense.occurrences))
            if len(unique) != len(sense.occurrences):
                seen: set[str] = set()
                duplicates = []
                for occurrence in sense.occurrences:
                    if occurrence in seen:
                        duplicates.append(occurrence)
                    seen.add(occurrence)
                logger.warning(
                    "Duplicate occurrences found for sense %s: %s", sense.id, ", ".join(duplicates)
                )
                sense.occurrences = unique
