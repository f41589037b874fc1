"""
Unit tests for domain models and import-boundary parsing
"""

import math

import pytest
from pydantic import ValidationError

from product_matching.models.domain import (
    ExposureData,
    FieldMatch,
    ImportedProductRecord,
    MatchMethod,
    MatchOutcome,
    ProductKind,
    ResolutionPath,
    ResolvedMatch,
    SelectedProduct,
    TaxonomyRow,
    clean_cell_text,
    clean_identifier,
    parse_number,
)


class TestParseNumber:
    """Test numeric parsing at the import boundary"""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("₪1,234.50", 1234.5),
            ("0.25%", 0.25),
            (" 1 000 ", 1000.0),
            (42, 42.0),
            (3.5, 3.5),
            ("-2.5", -2.5),
        ],
    )
    def test_parses(self, raw, expected):
        assert parse_number(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", [None, "", "abc", "1.2.3", float("nan"), float("inf"), True])
    def test_unparsable_is_zero(self, raw):
        result = parse_number(raw)
        assert result == 0.0
        assert not math.isnan(result)


class TestCellCleaning:
    """Test text and identifier cleaning"""

    def test_clean_cell_text(self):
        assert clean_cell_text("\u200f  מגדל   ביטוח \u200e") == "מגדל ביטוח"
        assert clean_cell_text(None) == ""

    def test_clean_identifier(self):
        assert clean_identifier(5551234.0) == "5551234"
        assert clean_identifier(" 77 ") == "77"
        assert clean_identifier("  ") is None
        assert clean_identifier(None) is None


class TestTaxonomyRow:
    """Test taxonomy row coercion"""

    def test_nulls_become_empty_strings(self):
        row = TaxonomyRow(company=None, category=None, new_track_name=None)

        assert row.company == ""
        assert row.category == ""
        assert row.new_track_name == ""
        assert row.product_number == ""

    def test_numeric_product_number(self):
        assert TaxonomyRow(product_number=5551234.0).product_number == "5551234"
        assert TaxonomyRow(product_number=5551234).product_number == "5551234"

    def test_track_name_falls_back_to_old(self):
        assert TaxonomyRow(old_track_name="ישן").track_name == "ישן"
        assert TaxonomyRow(old_track_name="ישן", new_track_name="חדש").track_name == "חדש"

    def test_rows_are_immutable(self):
        row = TaxonomyRow(company="הראל")
        with pytest.raises(ValidationError):
            row.company = "מגדל"

    def test_exposure_property(self):
        row = TaxonomyRow(exposure_stocks=80, asset_composition="מניות")

        exposure = row.exposure
        assert exposure.exposure_stocks == 80
        assert exposure.exposure_bonds is None
        assert exposure.asset_composition == "מניות"


class TestExposureData:
    """Test exposure helpers"""

    def test_has_exposure(self):
        assert ExposureData(exposure_bonds=10).has_exposure
        assert not ExposureData(exposure_bonds=0).has_exposure
        assert not ExposureData().has_exposure

    def test_percentages(self):
        percentages = ExposureData(exposure_israel=70).percentages()

        assert len(percentages) == 6
        assert percentages["exposure_israel"] == 70
        assert percentages["exposure_stocks"] is None


class TestImportedProductRecord:
    """Test raw import record parsing"""

    def test_numeric_fields_are_parsed(self):
        record = ImportedProductRecord(amount="₪12,500", deposit_fee="2%", accumulation_fee="n/a")

        assert record.amount == 12500.0
        assert record.deposit_fee == 2.0
        assert record.accumulation_fee == 0.0

    def test_text_fields_are_cleaned(self):
        record = ImportedProductRecord(manufacturer="\u200fהראל  חברה לביטוח", product_name=None)

        assert record.manufacturer == "הראל חברה לביטוח"
        assert record.product_name == ""

    def test_identifiers(self):
        record = ImportedProductRecord(product_number=7770001.0, policy_number="")

        assert record.product_number == "7770001"
        assert record.policy_number is None

    def test_savings_dedup_key(self):
        record = ImportedProductRecord(
            product_type="קרן פנסיה",
            product_name="מקיפה",
            plan_name="מסלול",
            manufacturer="הראל",
            policy_number="1",
        )
        assert record.dedup_key == ("savings", "מקיפה", "מסלול", "הראל", "1")

    def test_insurance_dedup_key(self):
        record = ImportedProductRecord(
            kind=ProductKind.INSURANCE,
            product_type="ריסק",
            product_name="ביטוח חיים",
            manufacturer="הפניקס",
        )
        assert record.dedup_key == ("insurance", "ריסק", "הפניקס", "ביטוח חיים", "")


class TestSelectedProduct:
    """Test derived fields of the output record"""

    def test_include_exposure_data_derived(self):
        product = SelectedProduct(id="1", exposure_stocks=40)
        assert product.include_exposure_data is True

    def test_zero_exposure_not_included(self):
        product = SelectedProduct(id="1", exposure_stocks=0, include_exposure_data=True)
        assert product.include_exposure_data is False

    def test_role_default(self):
        assert SelectedProduct(id="1").type.value == "current"


class TestMatchModels:
    """Test match result models"""

    def test_resolved_match_build_copies_exposure(self):
        match = ResolvedMatch.build(
            "קרן פנסיה",
            "מסלול מניות",
            "הראל",
            "5551234",
            ExposureData(exposure_stocks=80, asset_composition="מניות"),
        )

        assert match.exposure_stocks == 80
        assert match.exposure_bonds is None
        assert match.asset_composition == "מניות"
        assert match.exposure.exposure_stocks == 80

    def test_resolved_match_without_exposure(self):
        match = ResolvedMatch.build("קרן פנסיה", "מסלול כללי", "הראל")
        assert all(value is None for value in match.exposure.percentages().values())
        assert match.product_number is None

    def test_field_match_score_range(self):
        with pytest.raises(ValidationError):
            FieldMatch(value="x", score=1.5)

    def test_exposure_found(self):
        result = ResolvedMatch()

        assert not MatchOutcome(result=result, matched_via=MatchMethod.FALLBACK).exposure_found
        assert MatchOutcome(
            result=result,
            matched_via=MatchMethod.SCOPED,
            resolution_path=ResolutionPath.FIELD_SCAN,
        ).exposure_found
