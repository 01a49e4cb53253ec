"""Shared test fixtures for marble-lexicon."""

from pathlib import Path

import pytest
from lxml import etree

from marble_lexicon import db
from marble_lexicon.config import DEFAULT_DICTIONARIES
from marble_lexicon.importer import LexiconLoader
from marble_lexicon.models import DictionaryType

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir():
    return FIXTURES


@pytest.fixture
def greek_rules():
    return DEFAULT_DICTIONARIES[DictionaryType.GREEK]


@pytest.fixture
def hebrew_rules():
    return DEFAULT_DICTIONARIES[DictionaryType.HEBREW]


@pytest.fixture
def db_conn():
    """In-memory database with the lexicon schema."""
    conn = db.connect(":memory:")
    db.init_db(conn)
    yield conn
    conn.close()


@pytest.fixture
def loader(db_conn):
    return LexiconLoader(db_conn)


@pytest.fixture
def xml():
    """Parse an XML string into an element."""
    def _parse(text: str):
        return etree.fromstring(text.strip().encode("utf-8"))
    return _parse


COLLIDING_LEXICON = """<?xml version="1.0" encoding="UTF-8"?>
<ArrayOfLexicon_Entry>
  <Lexicon_Entry Id="000001000000000" Lemma="a">
    <BaseForm Id="000001001000000"><LEXMeaning Id="000001001001000">
      <LEXSense LanguageCode="en"><DefinitionShort>x</DefinitionShort></LEXSense>
      <LEXSense LanguageCode="fr"><DefinitionShort>x</DefinitionShort></LEXSense>
    </LEXMeaning></BaseForm>
  </Lexicon_Entry>
  <Lexicon_Entry Id="000001000000000" Lemma="b">
    <BaseForm Id="000001001000000"><LEXMeaning Id="000001001002000">
      <LEXSense LanguageCode="en"><DefinitionShort>y</DefinitionShort></LEXSense>
    </LEXMeaning></BaseForm>
  </Lexicon_Entry>
</ArrayOfLexicon_Entry>
"""


@pytest.fixture
def colliding_lexicon(tmp_path):
    """Lexicon directory whose English entries share an id; French is clean."""
    lexicon = tmp_path / "lexicon"
    lexicon.mkdir()
    (lexicon / "SDBG-01.XML").write_text(COLLIDING_LEXICON, encoding="utf-8")
    return lexicon
