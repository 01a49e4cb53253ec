"""Tests for semantic-domain taxonomy building."""

import pytest

from marble_lexicon.models import SenseType, SubDomain
from marble_lexicon.taxonomy import (
    DomainRecord,
    build_domain_tree,
    build_taxonomies,
    build_taxonomy_files,
    find_domain_files,
    read_domain_records,
    sense_type_for_file,
)

from conftest import FIXTURES


@pytest.fixture
def taxonomies(greek_rules):
    return build_taxonomy_files(FIXTURES / "domains", greek_rules)


class TestDomainFiles:
    def test_find_for_dictionary(self, tmp_path, greek_rules, hebrew_rules):
        for name in ("SDBG-DOMAINS1.XML", "sdbg-domains2.xml", "SDBH-DOMAINS1.XML", "SDBG-01.XML"):
            (tmp_path / name).write_text("<SemanticDomains/>")
        assert [p.name for p in find_domain_files(tmp_path, greek_rules)] == [
            "SDBG-DOMAINS1.XML", "sdbg-domains2.xml",
        ]
        assert [p.name for p in find_domain_files(tmp_path, hebrew_rules)] == ["SDBH-DOMAINS1.XML"]

    @pytest.mark.parametrize("name, expected", [
        ("SDBG-DOMAINS1.XML", SenseType.LEXICAL),
        ("SDBG-DOMAINS2.XML", SenseType.CONTEXTUAL),
        ("/data/domains1/SDBH-DOMAINS2.XML", SenseType.CONTEXTUAL),
    ])
    def test_sense_type(self, name, expected):
        assert sense_type_for_file(name) == expected


class TestReadDomainRecords:
    def test_records(self):
        from lxml import etree
        root = etree.parse(str(FIXTURES / "domains" / "SDBG-DOMAINS1.XML")).getroot()
        records = read_domain_records(root)
        assert list(records) == ["1", "1.1", "1.1.1", "1.2", "2"]
        assert records["1"] == DomainRecord(
            "1", 1, True, {"en": "Objects", "fr": "Objets"}
        )
        assert not records["1.2"].has_subdomains

    def test_bad_codes_skipped(self, xml, caplog):
        root = xml("""
            <SemanticDomains>
              <SemanticDomain><Level>1</Level></SemanticDomain>
              <SemanticDomain><Code/><Level>1</Level></SemanticDomain>
              <SemanticDomain><Code>001.002</Code><Level>1</Level></SemanticDomain>
            </SemanticDomains>""")
        assert read_domain_records(root) == {}
        assert "multiple codes" in caplog.text


class TestBuildDomainTree:
    def test_levels_and_prefixes(self):
        records = {
            "1": DomainRecord("1", 1, True, {"en": "A"}),
            "1.1": DomainRecord("1.1", 2, False, {"en": "A1"}),
            "2": DomainRecord("2", 1, True, {"en": "B"}),
            "2.1": DomainRecord("2.1", 2, True, {"en": "B1"}),
            "2.1.1": DomainRecord("2.1.1", 3, False, {"en": "B11"}),
            "12": DomainRecord("12", 1, False, {"en": "L"}),
        }
        tree = build_domain_tree(records, "en")
        assert tree == [
            SubDomain("1", "A", [SubDomain("1.1", "A1")]),
            SubDomain("2", "B", [SubDomain("2.1", "B1", [SubDomain("2.1.1", "B11")])]),
            SubDomain("12", "L"),
        ]

    def test_children_not_expanded_without_flag(self):
        records = {
            "1": DomainRecord("1", 1, False, {"en": "A"}),
            "1.1": DomainRecord("1.1", 2, False, {"en": "A1"}),
            "1.1.1": DomainRecord("1.1.1", 3, False, {"en": "A11"}),
        }
        assert build_domain_tree(records, "en") == [
            SubDomain("1", "A", [SubDomain("1.1", "A1")]),
        ]

    def test_missing_label(self):
        records = {"1": DomainRecord("1", 1, False, {"en": "A"})}
        assert build_domain_tree(records, "fr") == [SubDomain("1", "")]


class TestBuildTaxonomies:
    def test_languages(self, taxonomies):
        assert set(taxonomies) == {"en", "fr"}
        assert set(taxonomies["en"]) == {"SDBG-Lexical", "SDBG-Contextual"}
        assert set(taxonomies["fr"]) == {"SDBG-Lexical"}

    def test_title(self, taxonomies):
        assert taxonomies["en"]["SDBG-Lexical"].title == "Lexical Semantic Domains for Greek"
        assert taxonomies["en"]["SDBG-Contextual"].title == "Contextual Semantic Domains for Greek"

    def test_english_tree(self, taxonomies):
        assert taxonomies["en"]["SDBG-Lexical"].subdomains == [
            SubDomain("1", "Objects", [
                SubDomain("1.1", "Animals", [SubDomain("1.1.1", "Mammals")]),
                SubDomain("1.2", "Plants"),
            ]),
            SubDomain("2", "Events"),
        ]
        assert taxonomies["en"]["SDBG-Contextual"].subdomains == [SubDomain("89", "Quality")]

    def test_french_tree_keeps_unlabelled(self, taxonomies):
        tree = taxonomies["fr"]["SDBG-Lexical"].subdomains
        assert [d.label for d in tree] == ["Objets", ""]
        assert [d.code for d in tree[0].subdomains] == ["1.1", "1.2"]

    def test_hebrew_has_no_files(self, hebrew_rules, caplog):
        assert build_taxonomy_files(FIXTURES / "domains", hebrew_rules) == {}
        assert "No domain files found" in caplog.text

    def test_merges_into_existing(self, xml, greek_rules):
        taxonomies = {"en": {"other": None}}
        root = xml("""
            <SemanticDomains><SemanticDomain>
              <Code>001</Code><Level>1</Level>
              <SemanticDomainLocalizations>
                <SemanticDomainLocalization LanguageCode="en"><Label>X</Label></SemanticDomainLocalization>
              </SemanticDomainLocalizations>
            </SemanticDomain></SemanticDomains>""")
        build_taxonomies(root, greek_rules, SenseType.LEXICAL, taxonomies)
        assert set(taxonomies["en"]) == {"other", "SDBG-Lexical"}
