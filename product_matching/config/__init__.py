"""Configuration for the product matching package"""

from product_matching.config.logging import configure_logging
from product_matching.config.settings import (
    ApplicationSettings,
    get_environment_info,
    get_settings,
    validate_settings,
)

__all__ = [
    "ApplicationSettings",
    "configure_logging",
    "get_environment_info",
    "get_settings",
    "validate_settings",
]
