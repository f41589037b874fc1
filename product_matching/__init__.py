"""
Product Taxonomy Matching

Fuzzy matching of imported financial products against a reference taxonomy,
with exposure resolution for pension, provident and study fund tracks.
"""

__version__ = "1.0.0"
__author__ = "Product Matching Team"
__email__ = "team@company.com"
__description__ = "Fuzzy product-taxonomy matching and exposure resolution"

# Package metadata
__all__ = [
    "__version__",
    "__author__",
    "__email__",
    "__description__",
]

# Version info tuple for programmatic access
VERSION_INFO = tuple(int(x) for x in __version__.split("."))


def get_version() -> str:
    """Get package version string"""
    return __version__


def get_version_info() -> tuple:
    """Get version as tuple of integers"""
    return VERSION_INFO
