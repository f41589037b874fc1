"""Core shared types for the product matching package"""

from product_matching.core.exceptions import (
    ImportRecordError,
    MatchingPipelineError,
    TaxonomyLoadError,
)

__all__ = [
    "MatchingPipelineError",
    "TaxonomyLoadError",
    "ImportRecordError",
]
