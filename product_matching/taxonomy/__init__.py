"""Taxonomy index, exposure resolution and source normalization"""

from product_matching.taxonomy.exposure import ExposureResolver, extract_exposure
from product_matching.taxonomy.index import ProductNumberCollision, TaxonomyIndex
from product_matching.taxonomy.maslul_code import (
    get_tax_approval_number,
    is_valid_maslul_code,
    parse_maslul_code,
)
from product_matching.taxonomy.sources import build_taxonomy_rows, category_for

__all__ = [
    "TaxonomyIndex",
    "ProductNumberCollision",
    "ExposureResolver",
    "extract_exposure",
    "build_taxonomy_rows",
    "category_for",
    "parse_maslul_code",
    "is_valid_maslul_code",
    "get_tax_approval_number",
]
