"""Product matching pipeline"""

from product_matching.pipeline.import_pipeline import ImportPipeline, dedupe_records
from product_matching.pipeline.smart_matcher import SmartProductMatcher, extract_product_number

__all__ = [
    "SmartProductMatcher",
    "extract_product_number",
    "ImportPipeline",
    "dedupe_records",
]
