"""Scripture reference codec.

MARBLE encodes a word position as a 14-digit string::

    BBB CCC VVV SS WWW
    |   |   |   |  +-- word position, doubled (odd values are apparatus-only)
    |   |   |   +----- segment, ignored
    |   |   +--------- verse
    |   +------------- chapter
    +----------------- book number (001-123)

The canonical form used in the normalized output is ``"BOOK C:V!W"``
(USFM book code, chapter, verse and word index without leading zeros).
"""

from __future__ import annotations

import logging
import re

from marble_lexicon.models import Reference

logger = logging.getLogger(__name__)

BOOK_CODES: tuple[str, ...] = (
    "GEN", "EXO", "LEV", "NUM", "DEU", "JOS", "JDG", "RUT", "1SA", "2SA",
    "1KI", "2KI", "1CH", "2CH", "EZR", "NEH", "EST", "JOB", "PSA", "PRO",
    "ECC", "SNG", "ISA", "JER", "LAM", "EZK", "DAN", "HOS", "JOL", "AMO",
    "OBA", "JON", "MIC", "NAM", "HAB", "ZEP", "HAG", "ZEC", "MAL", "MAT",
    "MRK", "LUK", "JHN", "ACT", "ROM", "1CO", "2CO", "GAL", "EPH", "PHP",
    "COL", "1TH", "2TH", "1TI", "2TI", "TIT", "PHM", "HEB", "JAS", "1PE",
    "2PE", "1JN", "2JN", "3JN", "JUD", "REV", "TOB", "JDT", "ESG", "WIS",
    "SIR", "BAR", "LJE", "S3Y", "SUS", "BEL", "1MA", "2MA", "3MA", "4MA",
    "1ES", "2ES", "MAN", "PS2", "ODA", "PSS", "JSA", "JDB", "TBS", "SST",
    "DNT", "BLT", "XXA", "XXB", "XXC", "XXD", "XXE", "XXF", "XXG", "FRT",
    "BAK", "OTH", "3ES", "EZA", "5EZ", "6EZ", "INT", "CNC", "GLO", "TDX",
    "NDX", "DAG", "PS3", "2BA", "LBA", "JUB", "ENO", "1MQ", "2MQ", "3MQ",
    "REP", "4BA", "LAO",
)

# "001" -> "GEN"
BOOK_BY_NUMBER: dict[str, str] = {
    f"{number:03d}": code for number, code in enumerate(BOOK_CODES, start=1)
}
NUMBER_BY_BOOK: dict[str, int] = {
    code: number for number, code in enumerate(BOOK_CODES, start=1)
}

_ENCODED_RE = re.compile(r"^\d{14}$", re.ASCII)
_CANONICAL_RE = re.compile(r"^(\w+)\s+(\d+):(\d+)!(\d+)$", re.ASCII)


def is_valid_encoded(code: str) -> bool:
    """True when *code* is a 14-digit encoded location."""
    return bool(code) and _ENCODED_RE.match(code) is not None


def is_text_position(code: str) -> bool:
    """True when the encoded location points at a word in the running text.

    Odd word positions refer to the critical apparatus and cannot be linked.
    """
    return is_valid_encoded(code) and int(code[13]) % 2 == 0


def encoded_to_canonical(code: str) -> str:
    """Convert a 14-digit encoded location to ``"BOOK C:V!W"``.

    Returns an empty string when the code is malformed or the book is unknown.
    """
    if not is_valid_encoded(code):
        return ""

    book = BOOK_BY_NUMBER.get(code[0:3])
    if book is None:
        logger.warning("Unknown book number %s in encoded reference %s", code[0:3], code)
        return ""

    chapter = int(code[3:6])
    verse = int(code[6:9])
    word = int(code[11:]) // 2
    return f"{book} {chapter}:{verse}!{word}"


def book_number(book_code: str) -> int:
    """Return the canonical ordinal (1-123) for a book code.

    Unknown codes fall back to the sum of the code's character values so the
    result stays deterministic; a warning is logged.
    """
    number = NUMBER_BY_BOOK.get(book_code)
    if number is not None:
        return number
    logger.warning("Unknown book code %r, using fallback number", book_code)
    return sum(ord(ch) for ch in book_code)


def parse_canonical(reference: str) -> Reference | None:
    """Parse ``"BOOK C:V!W"`` into its numeric parts, or ``None``."""
    match = _CANONICAL_RE.match(reference.strip()) if reference else None
    if match is None:
        logger.warning("Malformed canonical reference: %r", reference)
        return None
    book, chapter, verse, word = match.groups()
    return Reference(book_number(book), int(chapter), int(verse), int(word))
