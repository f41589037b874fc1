"""
Unit tests for the 30-digit investment track code parser
"""

import pytest

from product_matching.taxonomy.maslul_code import (
    get_tax_approval_number,
    is_valid_maslul_code,
    parse_maslul_code,
)

HP = "520004078"
TAX_APPROVAL = "00000000001234"
TRACK = "0000567"
CODE = HP + TAX_APPROVAL + TRACK


class TestMaslulCode:
    """Test track code parsing"""

    def test_parse(self):
        parts = parse_maslul_code(CODE)

        assert parts.hp_number == HP
        assert parts.tax_approval_number == TAX_APPROVAL
        assert parts.track_number == TRACK

    def test_whitespace_is_ignored(self):
        spaced = f" {HP} {TAX_APPROVAL}\t{TRACK} "

        assert is_valid_maslul_code(spaced)
        assert parse_maslul_code(spaced).track_number == TRACK

    @pytest.mark.parametrize(
        "code",
        ["", None, CODE[:-1], CODE + "1", CODE[:-1] + "X", "-" + CODE[1:]],
    )
    def test_invalid_codes(self, code):
        assert is_valid_maslul_code(code) is False
        assert parse_maslul_code(code) is None
        assert get_tax_approval_number(code) is None

    def test_tax_approval_number(self):
        assert get_tax_approval_number(CODE) == TAX_APPROVAL
