"""Identifier normalization: sense ids, domain codes, output ids."""

from __future__ import annotations

import logging
import re

from marble_lexicon.models import ENTRY_PREFIX, SENSE_PREFIX, DictionaryType, SenseType

logger = logging.getLogger(__name__)

_NON_DIGITS_RE = re.compile(r"\D", re.ASCII)

# Rendered id widths: 6 digits for the entry, 9 more for the
# base form / lexical meaning / contextual meaning levels.
ENTRY_ID_WIDTH = 6
SENSE_ID_WIDTH = 15


# ---------------------------------------------------------------------------
# Sense ids
# ---------------------------------------------------------------------------

def condense_sense_id(sense_id: str) -> str:
    """Reduce a composite ``sense-`` id to its minimal form.

    Two layouts are recognised:

    * equal-width segments that refine each other, e.g.
      ``sense-12300-12345`` -> ``sense-12345``;
    * shrinking segments that overwrite the tail of the first one, e.g.
      ``sense-1234-56-78`` -> ``sense-1278``.

    Anything else is returned unchanged.
    """
    if not sense_id or not sense_id.startswith(SENSE_PREFIX):
        return sense_id

    parts = sense_id[len(SENSE_PREFIX):].split("-")
    if not all(_is_digits(part) for part in parts):
        return sense_id

    width = len(parts[0])
    if all(len(part) == width for part in parts):
        for prev, curr in zip(parts, parts[1:]):
            if not _refines(prev, curr):
                return sense_id
        return SENSE_PREFIX + parts[-1]

    for prev, curr in zip(parts, parts[1:]):
        if len(curr) > len(prev):
            return sense_id

    result = parts[0]
    for part in parts[1:]:
        result = result[: len(result) - len(part)] + part
    return SENSE_PREFIX + result


def _refines(prev: str, curr: str) -> bool:
    """True when *curr* fills in the trailing zeros of *prev*."""
    pos = 0
    while pos < len(prev) and prev[pos] == curr[pos]:
        pos += 1
    tail_prev = prev[pos:]
    tail_curr = curr[pos:]
    return set(tail_prev) <= {"0"} and any(ch != "0" for ch in tail_curr)


def _is_digits(text: str) -> bool:
    return text.isascii() and text.isdigit()


# ---------------------------------------------------------------------------
# Domain codes
# ---------------------------------------------------------------------------

def transform_domain_code(code: str) -> list[str]:
    """Normalize a raw MARBLE domain code to dotted decimal form.

    ``001002003`` becomes ``1.2.3``. A ``DDD.DDD`` pair is split into two
    independent codes. When the code carries a qualifier prefix such as
    ``001002:001003`` only the part after the first separator is kept.
    A digit count that is not a multiple of three is passed through raw.
    """
    if not code:
        return []

    if len(code) == 7 and code[3] == "." and _is_digits(code[:3]) and _is_digits(code[4:]):
        return [str(int(code[:3])), str(int(code[4:]))]

    updated = code
    seen_separator = False
    for i, ch in enumerate(code):
        if not _is_digits(ch):
            seen_separator = True
        elif seen_separator:
            updated = code[i:]
            break

    digits = _NON_DIGITS_RE.sub("", updated)
    if not digits:
        return []

    if len(digits) % 3 != 0:
        logger.warning("Invalid domain code length: %s", code)
        return [code]

    chunks = [str(int(digits[i:i + 3])) for i in range(0, len(digits), 3)]
    return [".".join(chunks)]


# ---------------------------------------------------------------------------
# Output ids
# ---------------------------------------------------------------------------

def clean_id(item_id: str) -> str:
    """Strip the ``entry-``/``sense-`` prefix and trim to the rendered width."""
    if item_id.startswith(ENTRY_PREFIX):
        return item_id[len(ENTRY_PREFIX):len(ENTRY_PREFIX) + ENTRY_ID_WIDTH]
    if item_id.startswith(SENSE_PREFIX):
        return item_id[len(SENSE_PREFIX):len(SENSE_PREFIX) + SENSE_ID_WIDTH]
    return item_id


def taxonomy_id(dictionary: DictionaryType, sense_type: SenseType) -> str:
    return f"{dictionary.value}-{sense_type.value}"
