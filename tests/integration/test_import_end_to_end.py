"""
End-to-end tests: taxonomy source -> service -> import pipeline.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from product_matching.config.settings import ApplicationSettings, TaxonomySettings
from product_matching.models.database import Base
from product_matching.models.domain import (
    ClearinghouseAssetRow,
    MatchMethod,
    ProductRole,
    SourceKind,
)
from product_matching.pipeline.import_pipeline import ImportPipeline
from product_matching.repositories.taxonomy_repository import (
    TaxonomyRepository,
    load_rows_from_file,
)
from product_matching.services.aggregation import compare_products
from product_matching.services.taxonomy_service import TaxonomyService, database_loader
from product_matching.taxonomy.sources import build_taxonomy_rows


@pytest.fixture
def taxonomy_database(tmp_path, taxonomy_json_file):
    """SQLite taxonomy store seeded from the sample export"""
    url = f"sqlite:///{tmp_path / 'taxonomy.db'}"
    engine = create_engine(url)
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        TaxonomyRepository(session).upsert_rows(load_rows_from_file(taxonomy_json_file))
    engine.dispose()
    return url


class TestFileBackedImport:
    """Test an import against a taxonomy export file"""

    def test_current_and_recommended(self, taxonomy_json_file, import_records):
        settings = ApplicationSettings(taxonomy=TaxonomySettings(source_file=taxonomy_json_file))
        service = TaxonomyService.from_settings(settings)
        assert service.reload()

        pipeline = ImportPipeline(service.matcher())
        current = pipeline.run(import_records)
        recommended = pipeline.run(import_records[:2], role=ProductRole.RECOMMENDED)

        assert [outcome.matched_via for outcome in current.outcomes] == [
            MatchMethod.SCOPED,
            MatchMethod.SCOPED,
            MatchMethod.FALLBACK,
        ]

        comparison = compare_products(current.products, recommended.products)
        assert comparison.current_total_amount == 120000 + 50000 + 250
        assert comparison.recommended_total_amount == 120000
        assert recommended.duplicates_merged == 1
        assert comparison.recommended_exposure.exposure_stocks == 80


class TestDatabaseBackedImport:
    """Test an import against the SQL taxonomy store"""

    def test_database_loader(self, taxonomy_database, import_records):
        service = TaxonomyService(database_loader(taxonomy_database))
        assert service.reload()

        result = ImportPipeline(service.matcher()).run(import_records)

        pension, study_fund, _ = result.products
        assert pension.product_number == "5551234"
        assert pension.exposure_bonds == 15
        assert study_fund.sub_category == "מסלול אג\"ח"
        assert study_fund.exposure_bonds == 85

    def test_from_settings_with_database(self, taxonomy_database):
        settings = ApplicationSettings(taxonomy=TaxonomySettings(database_url=taxonomy_database))
        service = TaxonomyService.from_settings(settings)

        assert service.reload()
        assert "מגדל" in service.index.companies

    def test_empty_database_keeps_raw_values(self, tmp_path, import_records):
        """Test a store without tables degrades to echoing the import text"""
        service = TaxonomyService(database_loader(f"sqlite:///{tmp_path / 'empty.db'}"))
        assert service.reload()
        assert service.index.is_empty()

        result = ImportPipeline(service.matcher()).run(import_records)

        assert result.products[0].company == "הראל"
        assert all(outcome.matched_via == MatchMethod.FALLBACK for outcome in result.outcomes)


class TestClearinghouseTaxonomy:
    """Test taxonomy rows derived from clearinghouse asset lines"""

    def test_derived_rows_feed_the_matcher(self):
        asset_rows = [
            ClearinghouseAssetRow(
                kind=SourceKind.PENSION,
                track_number="5559999",
                company="הראל",
                track_name="מסלול מניות",
                asset_type_id="4705",
                percentage=70,
            ),
            ClearinghouseAssetRow(
                kind=SourceKind.PENSION,
                track_number="5559999",
                company="הראל",
                track_name="מסלול מניות",
                asset_type_id="4732",
                percentage=35,
            ),
        ]

        service = TaxonomyService(lambda: build_taxonomy_rows(asset_rows))
        assert service.reload()

        outcome = service.matcher().match_product("", "", "", product_number="5559999")

        assert outcome.matched_via == MatchMethod.PRODUCT_CODE
        assert outcome.result.category == "קרן פנסיה"
        assert outcome.result.exposure_stocks == 70
        assert outcome.result.exposure_foreign_investments == 35
        assert outcome.result.exposure_israel == 65
