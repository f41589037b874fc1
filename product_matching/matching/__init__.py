"""Fuzzy text matching against taxonomy values"""

from product_matching.matching.normalizer import normalize_text
from product_matching.matching.similarity import edit_similarity, similarity
from product_matching.matching.taxonomy_matcher import (
    DEFAULT_MATCH_THRESHOLD,
    DEFAULT_SUB_CATEGORY,
    batch_match,
    match_category,
    match_company,
    match_sub_category,
    resolve_category,
    resolve_company,
    resolve_sub_category,
)

__all__ = [
    "DEFAULT_MATCH_THRESHOLD",
    "DEFAULT_SUB_CATEGORY",
    "normalize_text",
    "similarity",
    "edit_similarity",
    "match_category",
    "match_company",
    "match_sub_category",
    "resolve_category",
    "resolve_company",
    "resolve_sub_category",
    "batch_match",
]
