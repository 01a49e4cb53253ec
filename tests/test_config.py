"""
Tests for conversion settings and YAML configuration.
"""
from pathlib import Path

import pytest

from marble_lexicon.config import (
    DEFAULT_DICTIONARIES,
    ConversionConfig,
    DictionaryConfig,
    load_config,
)
from marble_lexicon.exceptions import ConfigError
from marble_lexicon.models import DictionaryType


class TestDictionaryRules:
    """Tests for per-dictionary inclusion rules."""

    def test_greek_not_gated(self, greek_rules):
        """Greek entries are included regardless of version."""
        assert greek_rules.include_entry(0)
        assert greek_rules.include_contextual(0)
        assert not greek_rules.excludes_meaning("X")

    def test_hebrew_version_gates(self, hebrew_rules):
        """Hebrew entries need version 3, contextual meanings version 5."""
        assert not hebrew_rules.include_entry(2)
        assert hebrew_rules.include_entry(3)
        assert not hebrew_rules.include_contextual(4)
        assert hebrew_rules.include_contextual(5)

    def test_hebrew_exclusions(self, hebrew_rules):
        """IsBiblicalTerm markers X and N are excluded, case-insensitively."""
        assert hebrew_rules.excludes_meaning("X")
        assert hebrew_rules.excludes_meaning("n")
        assert not hebrew_rules.excludes_meaning("Y")
        assert not hebrew_rules.excludes_meaning("")

    def test_output_metadata(self, greek_rules, hebrew_rules):
        assert (greek_rules.title, greek_rules.corpus_id) == ("Biblical Greek Dictionary", "UBSGNT5")
        assert (hebrew_rules.title, hebrew_rules.corpus_id) == ("Biblical Hebrew Dictionary", "UBSBHS4")


class TestConversionConfig:
    def test_rules_follow_dictionary(self):
        config = ConversionConfig(dictionary=DictionaryType.HEBREW, data_version="1")
        assert config.rules is DEFAULT_DICTIONARIES[DictionaryType.HEBREW]

    def test_dictionaries_not_shared(self):
        """Each config gets its own copy of the default rules table."""
        first = ConversionConfig(dictionary=DictionaryType.GREEK, data_version="1")
        second = ConversionConfig(dictionary=DictionaryType.GREEK, data_version="1")
        first.dictionaries[DictionaryType.GREEK] = None
        assert second.rules is DEFAULT_DICTIONARIES[DictionaryType.GREEK]


class TestLoadConfig:
    """Tests for YAML parsing."""

    def test_load_from_file(self, tmp_path):
        """Relative paths are resolved against the config file."""
        yaml_file = tmp_path / "convert.yaml"
        yaml_file.write_text("""
dictionary: sdbg
version: "1.0"
input: data/lexicon
output: /srv/out
links: data/links
domains: data/domains
""")
        config = load_config(yaml_file)

        assert config.dictionary == DictionaryType.GREEK
        assert config.data_version == "1.0"
        assert config.input_dir == tmp_path / "data" / "lexicon"
        assert config.output_dir == Path("/srv/out")
        assert config.links_dir == tmp_path / "data" / "links"
        assert config.domains_dir == tmp_path / "data" / "domains"

    def test_load_from_string(self):
        """Numeric versions are kept as strings; paths stay relative."""
        config = load_config("dictionary: SDBH\nversion: 1.5\ninput: lexicon\n")
        assert config.dictionary == DictionaryType.HEBREW
        assert config.data_version == "1.5"
        assert config.input_dir == Path("lexicon")
        assert config.links_dir is None

    def test_load_from_dict(self):
        config = load_config({"dictionary": "SDBG", "version": "2"})
        assert config.rules.dictionary == DictionaryType.GREEK

    def test_dictionary_overrides(self):
        """Per-dictionary settings can be overridden."""
        config = load_config({
            "dictionary": "SDBH",
            "version": "1",
            "dictionaries": {
                "sdbh": {
                    "min_contextual_version": 4,
                    "excluded_biblical_terms": ["x"],
                    "title": "Hebrew Lexicon",
                },
            },
        })
        rules = config.rules
        assert isinstance(rules, DictionaryConfig)
        assert rules.min_contextual_version == 4
        assert rules.excluded_biblical_terms == ("X",)
        assert rules.title == "Hebrew Lexicon"
        assert rules.corpus_id == "UBSBHS4"
        assert DEFAULT_DICTIONARIES[DictionaryType.HEBREW].min_contextual_version == 5

    def test_parse_error_missing_dictionary(self):
        with pytest.raises(ConfigError, match="'dictionary'"):
            load_config({"version": "1"})

    def test_parse_error_missing_version(self):
        with pytest.raises(ConfigError, match="'version'"):
            load_config({"dictionary": "SDBG"})

    def test_parse_error_unknown_dictionary(self):
        with pytest.raises(ConfigError, match="must be one of: SDBG, SDBH"):
            load_config({"dictionary": "XYZ", "version": "1"})

    def test_parse_error_path_type(self):
        with pytest.raises(ConfigError, match="'input' must be a path string"):
            load_config({"dictionary": "SDBG", "version": "1", "input": 3})

    def test_parse_error_unknown_setting(self):
        with pytest.raises(ConfigError, match="Unknown setting 'SDBG.colour'"):
            load_config({
                "dictionary": "SDBG", "version": "1",
                "dictionaries": {"SDBG": {"colour": "blue"}},
            })

    def test_parse_error_setting_type(self):
        with pytest.raises(ConfigError, match="must be of type int"):
            load_config({
                "dictionary": "SDBG", "version": "1",
                "dictionaries": {"SDBG": {"min_lexical_version": True}},
            })

    def test_parse_error_invalid_yaml(self, tmp_path):
        """Invalid YAML reports the offending line."""
        yaml_file = tmp_path / "bad.yaml"
        yaml_file.write_text("dictionary: [SDBG\nversion: 1\n")
        with pytest.raises(ConfigError) as exc_info:
            load_config(yaml_file)
        assert exc_info.value.line is not None

    def test_parse_error_not_mapping(self):
        with pytest.raises(ConfigError, match="must be a mapping"):
            load_config("- a\n- b\n")

    def test_parse_error_empty(self):
        with pytest.raises(ConfigError, match="Empty configuration"):
            load_config("\n")

    def test_file_not_found(self):
        with pytest.raises(FileNotFoundError):
            load_config("/nonexistent/convert.yaml")
