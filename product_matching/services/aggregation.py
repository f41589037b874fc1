"""
Aggregation utilities for groups of resolved products.

Everything here is total: empty inputs and zero weights give 0 rather than
raising or producing NaN.
"""
from typing import Iterable, Optional, Sequence

from product_matching.models.domain import (
    EXPOSURE_FIELDS,
    ExposureData,
    ImportedProductRecord,
    ImportKpis,
    ProductComparison,
    ProductKind,
    SelectedProduct,
)


def average(values: Iterable[float]) -> float:
    """Arithmetic mean; 0 for no values"""
    values = list(values)
    if not values:
        return 0.0
    return sum(values) / len(values)


def weighted_average(pairs: Iterable[tuple[float, float]]) -> float:
    """Sum(value * weight) / Sum(weight); 0 when the weights sum to 0"""
    total = 0.0
    total_weight = 0.0
    for value, weight in pairs:
        total += value * weight
        total_weight += weight
    if total_weight == 0:
        return 0.0
    return total / total_weight


def percent_difference(a: float, b: float) -> float:
    """Percentage-point change from a to b"""
    return b - a


def average_field(products: Iterable[object], field: str) -> Optional[float]:
    """
    Mean of one attribute over the products that define it.

    None when no product defines the field, so callers can tell "no data"
    apart from an average of 0.
    """
    values = [
        value
        for value in (getattr(product, field, None) for product in products)
        if value is not None
    ]
    if not values:
        return None
    return sum(values) / len(values)


def exposure_averages(products: Sequence[SelectedProduct]) -> ExposureData:
    return ExposureData(
        **{name: average_field(products, name) for name in EXPOSURE_FIELDS}
    )


def calculate_import_kpis(records: Iterable[ImportedProductRecord]) -> ImportKpis:
    """
    Headline figures of an import.

    The accumulation fee is weighted by each product's accumulation, the
    deposit fee is a plain average over savings products.
    """
    savings = []
    insurance = []
    for record in records:
        if record.kind == ProductKind.INSURANCE:
            insurance.append(record)
        else:
            savings.append(record)

    return ImportKpis(
        savings_product_count=len(savings),
        total_accumulation=sum(record.amount for record in savings),
        avg_accumulation_fee=weighted_average(
            (record.accumulation_fee, record.amount) for record in savings
        ),
        avg_deposit_fee=average(record.deposit_fee for record in savings),
        insurance_policy_count=len(insurance),
        total_monthly_premium=sum(record.amount for record in insurance),
    )


def compare_products(
    current: Sequence[SelectedProduct], recommended: Sequence[SelectedProduct]
) -> ProductComparison:
    """Totals, average fees and exposures of current vs recommended products"""
    current_deposit = average(p.management_fee_on_deposit for p in current)
    recommended_deposit = average(p.management_fee_on_deposit for p in recommended)
    current_accumulation = average(p.management_fee_on_accumulation for p in current)
    recommended_accumulation = average(
        p.management_fee_on_accumulation for p in recommended
    )

    return ProductComparison(
        current_total_amount=sum(p.amount for p in current),
        recommended_total_amount=sum(p.amount for p in recommended),
        current_avg_deposit_fee=current_deposit,
        recommended_avg_deposit_fee=recommended_deposit,
        current_avg_accumulation_fee=current_accumulation,
        recommended_avg_accumulation_fee=recommended_accumulation,
        deposit_fee_difference=percent_difference(current_deposit, recommended_deposit),
        accumulation_fee_difference=percent_difference(
            current_accumulation, recommended_accumulation
        ),
        current_exposure=exposure_averages(current),
        recommended_exposure=exposure_averages(recommended),
    )
