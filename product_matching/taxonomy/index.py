"""
In-memory taxonomy index.

Built once from the full list of taxonomy rows and never mutated afterwards;
a reload builds a new index and replaces the old one wholesale.
"""
from collections import defaultdict
from typing import Iterable, Optional

import structlog

from product_matching.models.domain import ProductNumberCollision, TaxonomyRow

logger = structlog.get_logger(__name__)


class TaxonomyIndex:
    """
    Read-only lookup structure over taxonomy rows.

    Indexes:
    - product number -> row
    - (company, track name) -> rows (new and old track names)
    - category -> sub-categories
    - (category, company) -> sub-categories
    - (category, sub-category) -> companies

    Example:
        index = TaxonomyIndex.build(rows)
        row = index.get_by_product_number("5551234")
    """

    def __init__(
        self,
        rows: tuple[TaxonomyRow, ...],
        by_product_number: dict[str, TaxonomyRow],
        by_company_and_track: dict[tuple[str, str], list[TaxonomyRow]],
        sub_categories_by_category: dict[str, set[str]],
        sub_categories_by_category_and_company: dict[tuple[str, str], set[str]],
        companies_by_category_and_sub_category: dict[tuple[str, str], set[str]],
        collisions: list[ProductNumberCollision],
        skipped_rows: int = 0,
    ):
        self._rows = rows
        self._by_product_number = by_product_number
        self._by_company_and_track = by_company_and_track
        self._sub_categories_by_category = sub_categories_by_category
        self._sub_categories_by_category_and_company = sub_categories_by_category_and_company
        self._companies_by_category_and_sub_category = companies_by_category_and_sub_category
        self._categories = sorted({row.category for row in rows})
        self._companies = sorted({row.company for row in rows})
        self._collisions = tuple(collisions)
        self.skipped_rows = skipped_rows

    @classmethod
    def build(cls, rows: Iterable[TaxonomyRow]) -> "TaxonomyIndex":
        """
        Build an index in a single pass over the rows.

        Rows without a company or category are skipped. Duplicate product
        numbers keep the last row; every collision is recorded and logged.
        """
        kept: list[TaxonomyRow] = []
        by_product_number: dict[str, TaxonomyRow] = {}
        by_company_and_track: dict[tuple[str, str], list[TaxonomyRow]] = defaultdict(list)
        sub_categories_by_category: dict[str, set[str]] = defaultdict(set)
        sub_categories_by_category_and_company: dict[tuple[str, str], set[str]] = defaultdict(set)
        companies_by_category_and_sub_category: dict[tuple[str, str], set[str]] = defaultdict(set)
        collisions: list[ProductNumberCollision] = []
        skipped = 0

        for row in rows:
            if not row.company or not row.category:
                skipped += 1
                continue

            kept.append(row)

            if row.product_number:
                previous = by_product_number.get(row.product_number)
                if previous is not None:
                    collisions.append(
                        ProductNumberCollision(
                            product_number=row.product_number, replaced=previous, kept=row
                        )
                    )
                    logger.warning(
                        "Duplicate product number in taxonomy, keeping last row",
                        product_number=row.product_number,
                        replaced_company=previous.company,
                        replaced_track=previous.track_name,
                        kept_company=row.company,
                        kept_track=row.track_name,
                    )
                by_product_number[row.product_number] = row

            if row.track_name:
                by_company_and_track[(row.company, row.track_name)].append(row)
            if row.old_track_name and row.old_track_name != row.track_name:
                by_company_and_track[(row.company, row.old_track_name)].append(row)

            if row.new_track_name:
                sub_categories_by_category[row.category].add(row.new_track_name)
                sub_categories_by_category_and_company[(row.category, row.company)].add(
                    row.new_track_name
                )
                companies_by_category_and_sub_category[
                    (row.category, row.new_track_name)
                ].add(row.company)

        if skipped:
            logger.debug("Skipped taxonomy rows without company or category", count=skipped)

        index = cls(
            rows=tuple(kept),
            by_product_number=by_product_number,
            by_company_and_track=dict(by_company_and_track),
            sub_categories_by_category=dict(sub_categories_by_category),
            sub_categories_by_category_and_company=dict(sub_categories_by_category_and_company),
            companies_by_category_and_sub_category=dict(companies_by_category_and_sub_category),
            collisions=collisions,
            skipped_rows=skipped,
        )

        logger.info(
            "Taxonomy index built",
            rows=len(kept),
            categories=len(index.categories),
            companies=len(index.companies),
            product_numbers=len(by_product_number),
            collisions=len(collisions),
        )
        return index

    @classmethod
    def empty(cls) -> "TaxonomyIndex":
        """An index with no rows; every lookup misses"""
        return cls(
            rows=(),
            by_product_number={},
            by_company_and_track={},
            sub_categories_by_category={},
            sub_categories_by_category_and_company={},
            companies_by_category_and_sub_category={},
            collisions=[],
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def rows(self) -> tuple[TaxonomyRow, ...]:
        return self._rows

    @property
    def categories(self) -> list[str]:
        return list(self._categories)

    @property
    def companies(self) -> list[str]:
        return list(self._companies)

    @property
    def collisions(self) -> tuple[ProductNumberCollision, ...]:
        return self._collisions

    def __len__(self) -> int:
        return len(self._rows)

    def is_empty(self) -> bool:
        return not self._rows

    def get_by_product_number(self, product_number: Optional[str]) -> Optional[TaxonomyRow]:
        if not product_number:
            return None
        return self._by_product_number.get(str(product_number).strip())

    def get_by_company_and_track(self, company: str, track_name: str) -> Optional[TaxonomyRow]:
        """First row indexed under (company, track name)"""
        matches = self._by_company_and_track.get((company, track_name))
        return matches[0] if matches else None

    def get_all_by_company_and_track(
        self, company: str, track_name: str
    ) -> list[TaxonomyRow]:
        return list(self._by_company_and_track.get((company, track_name), ()))

    def find_by_fields(
        self, company: str, category: str, track_name: str
    ) -> Optional[TaxonomyRow]:
        """Linear scan: company, category and either track name must match"""
        for row in self._rows:
            if (
                row.company == company
                and row.category == category
                and (row.new_track_name == track_name or row.old_track_name == track_name)
            ):
                return row
        return None

    def get_sub_categories(
        self, category: Optional[str] = None, company: Optional[str] = None
    ) -> list[str]:
        """
        Sub-categories, optionally narrowed to a category and/or company.

        With no arguments this is every known sub-category.
        """
        if category and company:
            return sorted(self._sub_categories_by_category_and_company.get((category, company), ()))
        if category:
            return sorted(self._sub_categories_by_category.get(category, ()))
        if company:
            return sorted(
                {
                    sub
                    for (_, row_company), subs in self._sub_categories_by_category_and_company.items()
                    if row_company == company
                    for sub in subs
                }
            )
        return self.all_sub_categories()

    def all_sub_categories(self) -> list[str]:
        return sorted(
            {sub for subs in self._sub_categories_by_category.values() for sub in subs}
        )

    def get_companies(self, category: Optional[str] = None) -> list[str]:
        """Companies, optionally only those offering the given category"""
        if not category:
            return self.companies
        return sorted(
            {
                company
                for (row_category, company) in self._sub_categories_by_category_and_company
                if row_category == category
            }
            | {row.company for row in self._rows if row.category == category}
        )

    def get_companies_for_track(self, category: str, sub_category: str) -> list[str]:
        return sorted(self._companies_by_category_and_sub_category.get((category, sub_category), ()))
