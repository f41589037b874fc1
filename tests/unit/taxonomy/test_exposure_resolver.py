"""
Unit tests for exposure resolution
"""

from product_matching.models.domain import ResolutionPath, TaxonomyRow
from product_matching.taxonomy.exposure import ExposureResolver, extract_exposure
from product_matching.taxonomy.index import TaxonomyIndex


class TestExposureResolver:
    """Test the product number -> company/track -> field scan cascade"""

    def test_product_number_first(self, taxonomy_index):
        """Test the product number wins over conflicting free text"""
        resolver = ExposureResolver(taxonomy_index)

        row, path = resolver.resolve_with_path("כלל", "קופת גמל", "מסלול כללי", "5551234")

        assert row.company == "הראל"
        assert path == ResolutionPath.PRODUCT_NUMBER

    def test_unknown_number_falls_back_to_company_and_track(self, taxonomy_index):
        resolver = ExposureResolver(taxonomy_index)

        row, path = resolver.resolve_with_path("כלל", "קרן פנסיה", "מסלול מניות", "999")

        assert row.product_number == "6660001"
        assert path == ResolutionPath.COMPANY_AND_TRACK

    def test_field_scan(self):
        """Test rows without any track label are found by the linear scan"""
        row = TaxonomyRow(company="פסגות", category="קופת גמל", exposure_stocks=30)
        resolver = ExposureResolver(TaxonomyIndex.build([row]))

        found, path = resolver.resolve_with_path("פסגות", "קופת גמל", "")

        assert found == row
        assert path == ResolutionPath.FIELD_SCAN

    def test_not_found(self, taxonomy_index):
        resolver = ExposureResolver(taxonomy_index)

        assert resolver.resolve("הפניקס", "קרן פנסיה", "מסלול מניות") is None
        assert resolver.resolve_with_path("הפניקס", "קרן פנסיה", "מסלול מניות") == (None, None)

    def test_empty_index(self):
        resolver = ExposureResolver(TaxonomyIndex.empty())
        assert resolver.resolve("הראל", "קרן פנסיה", "מסלול מניות", "5551234") is None

    def test_resolve_exposure(self, taxonomy_index):
        exposure = ExposureResolver(taxonomy_index).resolve_exposure(
            "הראל", "קרן פנסיה", "מסלול מניות"
        )

        assert exposure.exposure_stocks == 80
        assert exposure.exposure_bonds == 15


class TestExtractExposure:
    """Test exposure extraction keeps missing values as None"""

    def test_missing_fields_stay_none(self, taxonomy_index):
        exposure = extract_exposure(taxonomy_index.get_by_product_number("5551234"))

        assert exposure.exposure_stocks == 80
        assert exposure.exposure_israel is None
        assert exposure.exposure_illiquid_assets is None

    def test_zero_is_kept(self):
        exposure = extract_exposure(
            TaxonomyRow(company="א", category="ב", exposure_stocks=0, exposure_bonds=None)
        )

        assert exposure.exposure_stocks == 0
        assert exposure.exposure_bonds is None
        assert exposure.has_exposure is False

    def test_no_row(self):
        exposure = extract_exposure(None)
        assert all(value is None for value in exposure.percentages().values())
