"""
Exposure resolution: find the taxonomy row behind a product and read its
asset exposure percentages.
"""
from typing import Optional

import structlog

from product_matching.models.domain import ExposureData, ResolutionPath, TaxonomyRow
from product_matching.taxonomy.index import TaxonomyIndex

logger = structlog.get_logger(__name__)


def extract_exposure(row: Optional[TaxonomyRow]) -> ExposureData:
    """Exposure fields of a row; missing values stay None, never 0"""
    if row is None:
        return ExposureData()
    return row.exposure


class ExposureResolver:
    """
    Resolves (company, category, track) or a product number to a taxonomy row.

    Lookup order, first hit wins:
    1. product number
    2. (company, track name) index
    3. linear scan over company, category and either track name
    """

    def __init__(self, index: TaxonomyIndex):
        self.index = index
        self.logger = logger.bind(component="exposure_resolver")

    def resolve_with_path(
        self,
        company: str,
        category: str,
        track_name: str,
        product_number: Optional[str] = None,
    ) -> tuple[Optional[TaxonomyRow], Optional[ResolutionPath]]:
        """Resolve a row and report which lookup found it"""
        if product_number:
            row = self.index.get_by_product_number(product_number)
            if row is not None:
                self.logger.debug(
                    "Exposure resolved by product number",
                    product_number=product_number,
                )
                return row, ResolutionPath.PRODUCT_NUMBER

        row = self.index.get_by_company_and_track(company, track_name)
        if row is not None:
            self.logger.debug(
                "Exposure resolved by company and track",
                company=company,
                track_name=track_name,
            )
            return row, ResolutionPath.COMPANY_AND_TRACK

        row = self.index.find_by_fields(company, category, track_name)
        if row is not None:
            self.logger.debug(
                "Exposure resolved by field scan",
                company=company,
                category=category,
                track_name=track_name,
            )
            return row, ResolutionPath.FIELD_SCAN

        self.logger.debug(
            "No taxonomy row for exposure",
            company=company,
            category=category,
            track_name=track_name,
            product_number=product_number,
        )
        return None, None

    def resolve(
        self,
        company: str,
        category: str,
        track_name: str,
        product_number: Optional[str] = None,
    ) -> Optional[TaxonomyRow]:
        row, _ = self.resolve_with_path(company, category, track_name, product_number)
        return row

    def resolve_exposure(
        self,
        company: str,
        category: str,
        track_name: str,
        product_number: Optional[str] = None,
    ) -> ExposureData:
        return extract_exposure(self.resolve(company, category, track_name, product_number))
