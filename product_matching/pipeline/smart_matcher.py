"""
Smart product matcher.

Resolves a raw imported product (free-text category, track and company plus
an optional product number) to a canonical taxonomy identity and its
exposure data, trying identification strategies in priority order:

1. product number lookup (explicit, or the first number in the free text)
2. number found inside a sub-category of the matched (category, company)
3. fuzzy sub-category match scoped to the matched (category, company)
4. fuzzy sub-category match against every known sub-category
"""
import re
from typing import Optional

import structlog

from product_matching.matching.taxonomy_matcher import (
    DEFAULT_MATCH_THRESHOLD,
    DEFAULT_SUB_CATEGORY,
    resolve_category,
    resolve_company,
    resolve_sub_category,
)
from product_matching.models.domain import (
    FieldMatch,
    MatchMethod,
    MatchOutcome,
    NumberSource,
    ResolutionPath,
    ResolvedMatch,
    TaxonomyRow,
)
from product_matching.taxonomy.exposure import ExposureResolver, extract_exposure
from product_matching.taxonomy.index import TaxonomyIndex

logger = structlog.get_logger(__name__)

_NUMBER = re.compile(r"\d+")


def extract_product_number(
    raw_sub_category: Optional[str], raw_category: Optional[str]
) -> tuple[Optional[str], NumberSource]:
    """First run of digits in the sub-category, else in the category"""
    for text, source in (
        (raw_sub_category, NumberSource.SUB_CATEGORY),
        (raw_category, NumberSource.CATEGORY),
    ):
        if text:
            found = _NUMBER.search(str(text))
            if found:
                return found.group(0), source
    return None, NumberSource.NONE


class SmartProductMatcher:
    """
    Priority cascade over one taxonomy index.

    Query-only: the index is never modified, so one matcher can serve any
    number of imports.

    Example:
        matcher = SmartProductMatcher(TaxonomyIndex.build(rows))
        outcome = matcher.match_product("פנסיה", "מסלול מניות", "הראל")
        outcome.result.exposure_stocks
    """

    def __init__(
        self,
        index: TaxonomyIndex,
        threshold: float = DEFAULT_MATCH_THRESHOLD,
        default_sub_category: str = DEFAULT_SUB_CATEGORY,
    ):
        self.index = index
        self.threshold = threshold
        self.default_sub_category = default_sub_category
        self.resolver = ExposureResolver(index)
        self.logger = logger.bind(component="smart_matcher")

    def match_product(
        self,
        raw_category: Optional[str],
        raw_sub_category: Optional[str],
        raw_company: Optional[str],
        product_number: Optional[str] = None,
    ) -> MatchOutcome:
        """Resolve one raw product; never raises for a miss"""
        raw_category = raw_category or ""
        raw_sub_category = raw_sub_category or ""
        raw_company = raw_company or ""

        if product_number:
            number, number_source = str(product_number).strip(), NumberSource.EXPLICIT
        else:
            number, number_source = extract_product_number(raw_sub_category, raw_category)

        self.logger.debug(
            "Matching product",
            category=raw_category,
            sub_category=raw_sub_category,
            company=raw_company,
            product_number=number,
            number_source=number_source.value,
        )

        # Direct code lookup overrides the free text
        if number:
            row = self.index.get_by_product_number(number)
            if row is not None:
                self.logger.info(
                    "Product matched by product number",
                    product_number=number,
                    company=row.company,
                    category=row.category,
                    sub_category=row.new_track_name,
                )
                return self._code_outcome(row, number_source)
            self.logger.debug("Product number not in taxonomy", product_number=number)

        category_match = resolve_category(raw_category, self.index.categories, self.threshold)
        company_match = resolve_company(raw_company, self.index.companies, self.threshold)

        if category_match.matched and company_match.matched:
            scoped = self.index.get_sub_categories(category_match.value, company_match.value)

            if number:
                with_number = next((sub for sub in scoped if number in sub), None)
                if with_number is not None:
                    sub_match = FieldMatch(
                        value=with_number,
                        score=1.0,
                        matched=True,
                        original_input=raw_sub_category,
                    )
                    return self._resolved_outcome(
                        MatchMethod.SCOPED_NUMBER,
                        category_match,
                        company_match,
                        sub_match,
                        number,
                        number_source,
                    )

            sub_match = resolve_sub_category(
                raw_sub_category, scoped, self.threshold, self.default_sub_category
            )
            return self._resolved_outcome(
                MatchMethod.SCOPED,
                category_match,
                company_match,
                sub_match,
                number,
                number_source,
            )

        sub_match = resolve_sub_category(
            raw_sub_category,
            self.index.all_sub_categories(),
            self.threshold,
            self.default_sub_category,
        )
        return self._resolved_outcome(
            MatchMethod.FALLBACK,
            category_match,
            company_match,
            sub_match,
            number,
            number_source,
        )

    def _code_outcome(self, row: TaxonomyRow, number_source: NumberSource) -> MatchOutcome:
        result = ResolvedMatch.build(
            category=row.category,
            sub_category=row.new_track_name or row.old_track_name,
            company=row.company,
            product_number=row.product_number,
            exposure=extract_exposure(row),
        )
        return MatchOutcome(
            result=result,
            matched_via=MatchMethod.PRODUCT_CODE,
            score=1.0,
            product_number_source=number_source,
            resolution_path=ResolutionPath.PRODUCT_NUMBER,
        )

    def _resolved_outcome(
        self,
        method: MatchMethod,
        category_match: FieldMatch,
        company_match: FieldMatch,
        sub_match: FieldMatch,
        number: Optional[str],
        number_source: NumberSource,
    ) -> MatchOutcome:
        row, path = self.resolver.resolve_with_path(
            company_match.value, category_match.value, sub_match.value, number
        )

        if row is not None:
            resolved_number = row.product_number or None
        elif number_source == NumberSource.EXPLICIT:
            resolved_number = number
        else:
            resolved_number = None

        result = ResolvedMatch.build(
            category=category_match.value,
            sub_category=sub_match.value,
            company=company_match.value,
            product_number=resolved_number,
            exposure=extract_exposure(row) if row is not None else None,
        )
        score = (category_match.score + company_match.score + sub_match.score) / 3

        self.logger.info(
            "Product matched",
            matched_via=method.value,
            category=result.category,
            sub_category=result.sub_category,
            company=result.company,
            score=round(score, 2),
            exposure_found=row is not None,
        )

        return MatchOutcome(
            result=result,
            matched_via=method,
            score=score,
            product_number_source=number_source,
            category_match=category_match,
            company_match=company_match,
            sub_category_match=sub_match,
            resolution_path=path,
        )
