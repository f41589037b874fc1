"""
Unit tests for text normalization
"""

import pytest

from product_matching.matching.normalizer import normalize_text


class TestNormalizeText:
    """Test normalize_text canonicalization"""

    def test_lowercases_and_trims(self):
        """Test case folding and outer whitespace removal"""
        assert normalize_text("  Harel Pension  ") == "harel pension"

    def test_collapses_inner_whitespace(self):
        """Test runs of whitespace become a single space"""
        assert normalize_text("קרן \t  פנסיה\nמקיפה") == "קרן פנסיה מקיפה"

    @pytest.mark.parametrize(
        "raw",
        ['קופ"ג', "קופ'ג", "קופ\u05f4ג", "קופ\u05f3ג", "קופ\u201cג", "קופ\u2019ג"],
    )
    def test_removes_quote_characters(self, raw):
        """Test ASCII, Hebrew and typographic quotes are all dropped"""
        assert normalize_text(raw) == "קופג"

    def test_removes_direction_marks(self):
        """Test LRM/RLM marks copied from spreadsheets are dropped"""
        assert normalize_text("\u200fהראל\u200e") == "הראל"

    def test_none_is_empty(self):
        """Test None normalizes to empty string"""
        assert normalize_text(None) == ""

    def test_non_string_input(self):
        """Test numbers are converted with str()"""
        assert normalize_text(5551234) == "5551234"

    @pytest.mark.parametrize(
        "text",
        ["", "  ", 'מסלול אג"ח  ממשלתי', "\u200fHAREL  ביטוח\u200e", "  a\t b  "],
    )
    def test_idempotent(self, text):
        """Test normalizing twice equals normalizing once"""
        once = normalize_text(text)
        assert normalize_text(once) == once
