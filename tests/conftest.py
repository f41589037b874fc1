"""
Shared pytest fixtures for the product matching test suite.

The sample taxonomy covers every branch of the matching cascade: product
number hits, scoped tracks, tracks carrying a number in their name, old
track name aliases and rows without exposure data.
"""
import json
from pathlib import Path

import pytest

from product_matching.config.settings import get_settings
from product_matching.models.domain import (
    ImportedProductRecord,
    ProductKind,
    TaxonomyRow,
)
from product_matching.pipeline.smart_matcher import SmartProductMatcher
from product_matching.taxonomy.index import TaxonomyIndex

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ============================================================================
# TAXONOMY FIXTURES
# ============================================================================

SAMPLE_TAXONOMY = [
    {
        "company": "הראל",
        "category": "קרן פנסיה",
        "sub_category": "מסלול מניות",
        "product_number": "5551234",
        "exposure_stocks": 80,
        "exposure_bonds": 15,
    },
    {
        "company": "הראל",
        "category": "קרן פנסיה",
        "sub_category": "מסלול כללי",
        "product_number": "5551235",
        "exposure_stocks": 40,
        "exposure_bonds": 50,
        "exposure_foreign_currency": 20,
        "exposure_foreign_investments": 30,
        "exposure_israel": 70,
        "exposure_illiquid_assets": 10,
    },
    {
        "company": "מגדל",
        "category": "קרן השתלמות",
        "old_track_name": "אג\"ח ללא מניות",
        "new_track_name": "מסלול אג\"ח",
        "product_number": "7770001",
        "exposure_bonds": 85,
        "exposure_foreign_currency": 5,
    },
    {
        "company": "מגדל",
        "category": "קופת גמל",
        "sub_category": "מסלול מדדי מניות 2345",
        "exposure_stocks": 95,
    },
    {
        "company": "כלל",
        "category": "קרן פנסיה",
        "sub_category": "מסלול מניות",
        "product_number": "6660001",
        "exposure_stocks": 75,
        "exposure_bonds": 20,
    },
    {
        "company": "אלטשולר שחם",
        "category": "קופת גמל",
        "sub_category": "מסלול כללי",
        "asset_composition": "תיק מאוזן",
    },
    {
        "company": "",
        "category": "קרן פנסיה",
        "sub_category": "מסלול ללא חברה",
        "product_number": "1000001",
    },
]


def _to_row(record: dict) -> TaxonomyRow:
    fields = dict(record)
    sub_category = fields.pop("sub_category", "")
    fields.setdefault("old_track_name", sub_category)
    fields.setdefault("new_track_name", sub_category)
    return TaxonomyRow(**fields)


@pytest.fixture
def taxonomy_rows():
    """Sample taxonomy rows (one of them invalid: no company)"""
    return [_to_row(record) for record in SAMPLE_TAXONOMY]


@pytest.fixture
def taxonomy_index(taxonomy_rows):
    return TaxonomyIndex.build(taxonomy_rows)


@pytest.fixture
def matcher(taxonomy_index):
    return SmartProductMatcher(taxonomy_index)


@pytest.fixture
def taxonomy_json_file(tmp_path):
    """Sample taxonomy written as a products_taxonomy JSON export"""
    path = tmp_path / "taxonomy.json"
    path.write_text(json.dumps(SAMPLE_TAXONOMY, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def taxonomy_csv_file():
    return FIXTURES_DIR / "taxonomy.csv"


# ============================================================================
# IMPORT FIXTURES
# ============================================================================

@pytest.fixture
def import_records():
    """Imported rows: one savings product twice, another savings, one policy"""
    return [
        ImportedProductRecord(
            kind=ProductKind.SAVINGS,
            product_type="קרן פנסיה",
            product_name="הראל פנסיה",
            investment_track="מסלול מניות",
            manufacturer="הראל",
            amount="₪100,000",
            deposit_fee="1.5%",
            accumulation_fee="0.2",
            policy_number="P-1",
        ),
        ImportedProductRecord(
            kind=ProductKind.SAVINGS,
            product_type="קרן פנסיה",
            product_name="הראל פנסיה",
            investment_track="מסלול מניות",
            manufacturer="הראל",
            amount=120000,
            deposit_fee=0,
            accumulation_fee=0.25,
            policy_number="P-1",
        ),
        ImportedProductRecord(
            kind=ProductKind.SAVINGS,
            product_type="קרן השתלמות",
            product_name="מגדל השתלמות",
            plan_name="מסלול אג\"ח",
            manufacturer="מגדל",
            amount=50000,
            deposit_fee=0,
            accumulation_fee=0.5,
            policy_number="P-2",
        ),
        ImportedProductRecord(
            kind=ProductKind.INSURANCE,
            product_name="ביטוח חיים",
            manufacturer="הפניקס",
            amount=250,
            policy_number="INS-9",
        ),
    ]


@pytest.fixture
def import_file(tmp_path, import_records):
    path = tmp_path / "records.json"
    path.write_text(
        json.dumps(
            [record.model_dump(mode="json") for record in import_records],
            ensure_ascii=False,
        ),
        encoding="utf-8",
    )
    return path


# ============================================================================
# SETTINGS
# ============================================================================

@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; every test starts from a clean read"""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
