# esm_vendor/__init__.py
"""
esm_vendor package initializer.
Defines package version and exposes the crawler API.
"""
__version__ = "0.1.0"

from esm_vendor.crawler.crawler import DependencyCrawler, fetch_dependencies
from esm_vendor.crawler.models import FetchedResource
from esm_vendor.exceptions import (
    ChannelProtocolError,
    FetchError,
    ImportMapError,
    ParseError,
    ResolutionError,
    VendorError,
)
from esm_vendor.storage import vendor

__all__ = [
    "__version__",
    "DependencyCrawler",
    "fetch_dependencies",
    "FetchedResource",
    "vendor",
    "VendorError",
    "ResolutionError",
    "ParseError",
    "FetchError",
    "ChannelProtocolError",
    "ImportMapError",
]
