"""Tests for sense-id condensing and domain-code normalization."""

import pytest

from marble_lexicon.identifiers import (
    clean_id,
    condense_sense_id,
    taxonomy_id,
    transform_domain_code,
)
from marble_lexicon.models import DictionaryType, SenseType


class TestCondenseSenseId:
    @pytest.mark.parametrize("sense_id,expected", [
        ("sense-12300-12345", "sense-12345"),
        ("sense-10000-12000-12300-12345", "sense-12345"),
        ("sense-000001000000000-000001001000000-000001001001000", "sense-000001001001000"),
        ("sense-1234-56", "sense-1256"),
        ("sense-1234-56-78", "sense-1278"),
    ])
    def test_condensed(self, sense_id, expected):
        assert condense_sense_id(sense_id) == expected

    @pytest.mark.parametrize("sense_id", [
        "sense-12345-67890",
        "sense-12-3456",
        "sense-1234-56-7890",
        "sense-12345-12345",
        "entry-12345",
        "sense",
        "sense-abc-123",
        "sense-12²-123",
        "",
        "sense-",
        "12345-67890",
    ])
    def test_unchanged(self, sense_id):
        assert condense_sense_id(sense_id) == sense_id

    def test_single_segment(self):
        assert condense_sense_id("sense-12345") == "sense-12345"

    def test_idempotent(self):
        once = condense_sense_id("sense-10000-12000-12300-12345")
        assert condense_sense_id(once) == once


class TestTransformDomainCode:
    @pytest.mark.parametrize("code,expected", [
        ("001002003", ["1.2.3"]),
        ("123456789", ["123.456.789"]),
        ("001042099", ["1.42.99"]),
        ("001ABCDEFG002003", ["2.3"]),
        ("123&gt;456789", ["456.789"]),
        ("123.456", ["123", "456"]),
        (".123456", ["123.456"]),
        ("123456.", ["123.456"]),
        ("123:456", ["456"]),
        ("001002:001003", ["1.3"]),
        ("12².456", ["456"]),
        ("", []),
        ("---", []),
    ])
    def test_normalized(self, code, expected):
        assert transform_domain_code(code) == expected

    @pytest.mark.parametrize("code", ["123", "00100212", "12"])
    def test_short_or_odd_length(self, code):
        result = transform_domain_code(code)
        assert len(result) == 1
        if len(code) % 3:
            assert result == [code]

    def test_three_digits(self):
        assert transform_domain_code("123") == ["123"]

    def test_odd_length_warns(self, caplog):
        assert transform_domain_code("00100212") == ["00100212"]
        assert "Invalid domain code length" in caplog.text


class TestCleanId:
    def test_entry_id(self):
        assert clean_id("entry-000001000000000") == "000001"

    def test_sense_id(self):
        assert clean_id("sense-000001001001000") == "000001001001000"

    def test_long_sense_id_truncated(self):
        assert clean_id("sense-000001001001000-000001001001001") == "000001001001000"

    def test_other_id(self):
        assert clean_id("SDBG") == "SDBG"


def test_taxonomy_id():
    assert taxonomy_id(DictionaryType.GREEK, SenseType.LEXICAL) == "SDBG-Lexical"
    assert taxonomy_id(DictionaryType.HEBREW, SenseType.CONTEXTUAL) == "SDBH-Contextual"
