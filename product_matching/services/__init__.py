"""Services built on top of the matching core"""

from product_matching.services.aggregation import (
    average,
    average_field,
    calculate_import_kpis,
    compare_products,
    exposure_averages,
    percent_difference,
    weighted_average,
)

__all__ = [
    "average",
    "weighted_average",
    "percent_difference",
    "average_field",
    "exposure_averages",
    "calculate_import_kpis",
    "compare_products",
]
