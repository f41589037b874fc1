"""
Import pipeline: raw imported rows in, matched SelectedProducts out.

Rows come from an external Excel/XML/ZIP parser already mapped onto
ImportedProductRecord. The pipeline merges duplicate rows, runs the smart
matcher on each product and builds the records consumed by the report layer.
"""
from typing import Callable, Iterable, Optional

import structlog

from product_matching.models.domain import (
    EXPOSURE_FIELDS,
    ImportedProductRecord,
    ImportResult,
    MatchOutcome,
    ProductKind,
    ProductRole,
    SelectedProduct,
)
from product_matching.pipeline.smart_matcher import SmartProductMatcher
from product_matching.services.aggregation import calculate_import_kpis

logger = structlog.get_logger(__name__)

IdFactory = Callable[[ImportedProductRecord, int], str]

_TEXT_FIELDS = (
    "product_type",
    "product_name",
    "plan_name",
    "investment_track",
    "manufacturer",
    "product_number",
    "policy_number",
)
_NUMERIC_FIELDS = ("amount", "deposit_fee", "accumulation_fee")


def default_id_factory(record: ImportedProductRecord, position: int) -> str:
    return f"{record.kind.value}-{position}"


def _merge(existing: ImportedProductRecord, duplicate: ImportedProductRecord) -> ImportedProductRecord:
    updates = {}
    for name in _NUMERIC_FIELDS:
        updates[name] = max(getattr(existing, name), getattr(duplicate, name))
    for name in _TEXT_FIELDS:
        if not getattr(existing, name) and getattr(duplicate, name):
            updates[name] = getattr(duplicate, name)
    return existing.model_copy(update=updates)


def dedupe_records(
    records: Iterable[ImportedProductRecord],
) -> tuple[list[ImportedProductRecord], int]:
    """
    Merge rows that describe the same product.

    Numeric fields keep the larger value, text fields the first non-empty
    one. Returns the merged records in first-seen order and the number of
    rows folded into an earlier one.
    """
    merged: dict[tuple, ImportedProductRecord] = {}
    duplicates = 0

    for record in records:
        key = record.dedup_key
        existing = merged.get(key)
        if existing is None:
            merged[key] = record
            continue
        duplicates += 1
        merged[key] = _merge(existing, record)

    if duplicates:
        logger.info("Merged duplicate import rows", duplicates=duplicates, kept=len(merged))
    return list(merged.values()), duplicates


class ImportPipeline:
    """
    Dedupe, match and convert a batch of imported records.

    Example:
        pipeline = ImportPipeline(SmartProductMatcher(index))
        result = pipeline.run(records)
        result.products
    """

    def __init__(self, matcher: SmartProductMatcher):
        self.matcher = matcher
        self.logger = logger.bind(component="import_pipeline")

    def match_record(self, record: ImportedProductRecord) -> MatchOutcome:
        if record.kind == ProductKind.INSURANCE:
            return self.matcher.match_product(
                record.product_type or record.product_name,
                "",
                record.manufacturer,
                record.product_number,
            )
        return self.matcher.match_product(
            record.product_type or record.product_name,
            record.investment_track or record.plan_name,
            record.manufacturer,
            record.product_number,
        )

    def to_selected_product(
        self,
        record: ImportedProductRecord,
        outcome: MatchOutcome,
        product_id: str,
        role: ProductRole = ProductRole.CURRENT,
    ) -> SelectedProduct:
        """Build the output record; empty matches fall back to the raw import text"""
        result = outcome.result
        is_insurance = record.kind == ProductKind.INSURANCE

        return SelectedProduct(
            id=product_id,
            category=result.category or record.product_type or record.product_name,
            sub_category=result.sub_category,
            company=result.company or record.manufacturer,
            amount=record.amount,
            management_fee_on_deposit=0.0 if is_insurance else record.deposit_fee,
            management_fee_on_accumulation=0.0 if is_insurance else record.accumulation_fee,
            investment_track="" if is_insurance else record.investment_track,
            type=role,
            product_number=result.product_number,
            notes=record.policy_number or "",
            **{name: getattr(result, name) for name in EXPOSURE_FIELDS},
        )

    def run(
        self,
        records: Iterable[ImportedProductRecord],
        role: ProductRole = ProductRole.CURRENT,
        id_factory: Optional[IdFactory] = None,
    ) -> ImportResult:
        """Run the full import over a batch of records"""
        id_factory = id_factory or default_id_factory
        unique, duplicates = dedupe_records(records)

        self.logger.info(
            "Import started",
            records=len(unique) + duplicates,
            unique_records=len(unique),
            role=role.value,
        )

        products = []
        outcomes = []
        for position, record in enumerate(unique, start=1):
            outcome = self.match_record(record)
            outcomes.append(outcome)
            products.append(
                self.to_selected_product(record, outcome, id_factory(record, position), role)
            )

        result = ImportResult(
            products=products,
            outcomes=outcomes,
            kpis=calculate_import_kpis(unique),
            duplicates_merged=duplicates,
        )

        self.logger.info(
            "Import completed",
            products=len(products),
            duplicates_merged=duplicates,
            with_exposure=sum(1 for outcome in outcomes if outcome.exposure_found),
        )
        return result
