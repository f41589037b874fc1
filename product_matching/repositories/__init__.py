"""Data access for the reference taxonomy"""

from product_matching.repositories.taxonomy_repository import (
    TaxonomyRepository,
    load_rows_from_file,
    row_from_record,
)

__all__ = ["TaxonomyRepository", "load_rows_from_file", "row_from_record"]
