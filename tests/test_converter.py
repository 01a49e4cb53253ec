"""End-to-end tests for the conversion pipeline."""

import pytest
from lxml import etree

from marble_lexicon.config import ConversionConfig
from marble_lexicon.converter import convert
from marble_lexicon.exceptions import ConfigError
from marble_lexicon.importer import import_lexicons
from marble_lexicon.models import DictionaryType

from conftest import FIXTURES

HEBREW_LEXICON = """<?xml version="1.0" encoding="UTF-8"?>
<ArrayOfLexicon_Entry>
  <Lexicon_Entry Id="000010000000000" Lemma="אָב" Version="2">
    <BaseForm Id="000010001000000"><LEXMeaning Id="000010001001000">
      <LEXSense LanguageCode="en"><DefinitionShort>father</DefinitionShort></LEXSense>
    </LEXMeaning></BaseForm>
  </Lexicon_Entry>
  <Lexicon_Entry Id="000011000000000" Lemma="אֶבֶן" Version="5">
    <BaseForm Id="000011001000000">
      <LEXMeaning Id="000011001001000" IsBiblicalTerm="N">
        <LEXSense LanguageCode="en"><DefinitionShort>excluded</DefinitionShort></LEXSense>
      </LEXMeaning>
      <LEXMeaning Id="000011001002000" IsBiblicalTerm="Y">
        <LEXSense LanguageCode="en"><DefinitionShort>stone</DefinitionShort></LEXSense>
      </LEXMeaning>
    </BaseForm>
  </Lexicon_Entry>
</ArrayOfLexicon_Entry>
"""

HEBREW_LINKS = """<?xml version="1.0" encoding="UTF-8"?>
<MARBLELinks>
  <MARBLELink Id="00100100100002">
    <LexicalLinks>
      <LexicalLink>SDBH:אֶבֶן:000001</LexicalLink>
      <LexicalLink>SDBH:אֶבֶן:000000</LexicalLink>
    </LexicalLinks>
  </MARBLELink>
</MARBLELinks>
"""


@pytest.fixture
def greek_config(tmp_path):
    return ConversionConfig(
        dictionary=DictionaryType.GREEK,
        data_version="0.9",
        input_dir=FIXTURES / "lexicon",
        output_dir=tmp_path / "out",
        links_dir=FIXTURES / "links",
        domains_dir=FIXTURES / "domains",
    )


@pytest.fixture
def result(greek_config):
    return convert(greek_config)


def read_output(path):
    return etree.parse(str(path)).getroot()


class TestGreekConversion:
    def test_statistics(self, result):
        assert result.extraction.entries_read == 3
        assert result.extraction.entries_skipped == 1
        assert result.links.total_links == 8
        assert result.links.processed_links == 3
        assert result.links.files_skipped == 1
        assert result.removal.total_entries == 3
        assert result.removal.total_senses == 4
        assert result.taxonomy_languages == ["en", "fr"]
        assert result.duration_seconds >= 0

    def test_output_files(self, result, greek_config):
        assert [p.name for p in result.output_files] == ["lexicon_en.xml", "lexicon_fr.xml"]
        assert all(p.parent == greek_config.output_dir for p in result.output_files)

    def test_english_document(self, result):
        root = read_output(result.output_files[0])
        assert root.get("Language") == "en"
        assert root.get("DataVersion") == "0.9"
        assert [e.get("Lemma") for e in root.iterfind("Entries/Entry")] == ["ἀγαθός", "λόγος"]

        senses = root.findall("Entries/Entry[@Lemma='ἀγαθός']/Senses/Sense")
        assert [s.get("Id") for s in senses] == ["000001001001000", "000001001001001"]
        assert [o.text for o in senses[0].iterfind("Occurrences/Corpus/Occurrence")] == ["MAT 1:1!1"]
        assert [o.text for o in senses[1].iterfind("Occurrences/Corpus/Occurrence")] == [
            "MAT 1:18!2", "MAT 1:1!1",
        ]
        assert [(d.get("Taxonomy"), d.get("Code")) for d in senses[0].iterfind("Domains/Domain")] == [
            ("SDBG-Lexical", "1.2.3"), ("SDBG-Contextual", "89"),
        ]

        taxonomies = [t.get("Id") for t in root.iterfind("Taxonomies/Taxonomy")]
        assert sorted(taxonomies) == ["SDBG-Contextual", "SDBG-Lexical"]

    def test_french_document(self, result):
        root = read_output(result.output_files[1])
        assert [e.get("Lemma") for e in root.iterfind("Entries/Entry")] == ["ἀγαθός"]
        assert root.find("Taxonomies/Taxonomy[@Id='SDBG-Lexical']") is not None

    def test_output_loads(self, result, tmp_path):
        stats = import_lexicons([result.output_files[0].parent], tmp_path / "lexicon.db")
        assert stats.documents_loaded == 2
        assert stats.success

    def test_without_domains(self, greek_config):
        greek_config.domains_dir = None
        result = convert(greek_config)
        assert result.taxonomy_languages == []
        assert read_output(result.output_files[0]).find("Taxonomies") is None


class TestHebrewConversion:
    @pytest.fixture
    def config(self, tmp_path):
        (tmp_path / "lexicon").mkdir()
        (tmp_path / "lexicon" / "SDBH-01.XML").write_text(HEBREW_LEXICON, encoding="utf-8")
        (tmp_path / "links").mkdir()
        (tmp_path / "links" / "MARBLELinks-GEN.XML").write_text(HEBREW_LINKS, encoding="utf-8")
        return ConversionConfig(
            dictionary=DictionaryType.HEBREW,
            data_version="1.0",
            input_dir=tmp_path / "lexicon",
            output_dir=tmp_path / "out",
            links_dir=tmp_path / "links",
        )

    def test_gating_and_exclusion(self, config):
        result = convert(config)
        assert result.extraction.entries_skipped == 1
        assert result.links.processed_links == 1
        assert result.links.unresolved_links == 1

        root = read_output(result.output_files[0])
        assert root.get("Id") == "SDBH"
        assert [e.get("Lemma") for e in root.iterfind("Entries/Entry")] == ["אֶבֶן"]
        sense = root.find("Entries/Entry/Senses/Sense")
        assert sense.findtext("Definition") == "stone"
        assert sense.find("Occurrences/Corpus").get("Id") == "UBSBHS4"
        assert sense.findtext("Occurrences/Corpus/Occurrence") == "GEN 1:1!1"


class TestErrors:
    def test_missing_input_directory(self, greek_config, tmp_path):
        greek_config.input_dir = tmp_path / "missing"
        with pytest.raises(ConfigError, match="does not exist"):
            convert(greek_config)

    def test_missing_links_directory(self, greek_config):
        greek_config.links_dir = None
        with pytest.raises(ConfigError, match="No MARBLELinks directory"):
            convert(greek_config)

    def test_missing_output(self, greek_config):
        greek_config.output_dir = None
        with pytest.raises(ConfigError, match="No output directory"):
            convert(greek_config)

    def test_duplicate_ids_drop_only_that_language(self, greek_config, colliding_lexicon, caplog):
        greek_config.input_dir = colliding_lexicon
        result = convert(greek_config)

        assert result.failed_languages == ["en"]
        assert not result.success
        assert [p.name for p in result.output_files] == ["lexicon_fr.xml"]
        assert not (greek_config.output_dir / "lexicon_en.xml").exists()
        assert (greek_config.output_dir / "lexicon_fr.xml").exists()
        assert "Duplicate entry ID found in language 'en'" in caplog.text
